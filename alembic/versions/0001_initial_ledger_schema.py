"""initial ledger schema: zones, payers, fee catalog, billing, audit

Revision ID: 0001_initial
Revises:
Create Date: 2026-10-19

"""
from alembic import op
import sqlalchemy as sa
from sqlalchemy.dialects import postgresql


revision = "0001_initial"
down_revision = None
branch_labels = None
depends_on = None

ID = sa.BigInteger().with_variant(sa.Integer(), "sqlite")
MONEY = sa.Numeric(12, 2)

ENUMS = {
    "payer_kind": ("Business", "Property"),
    "payer_status": ("Active", "Inactive", "Suspended"),
    "bill_status": ("Pending", "Served", "Partially Paid", "Paid", "Overdue"),
    "payment_status": ("Successful", "Pending", "Failed", "Cancelled"),
    "payment_method": ("Cash", "Mobile Money", "Bank Transfer", "Online", "Cheque"),
    "adjustment_type": ("Single", "Bulk"),
    "adjustment_method": ("Fixed Amount", "Percentage"),
    "adjustable_field": ("old_bill", "arrears", "current_bill"),
}


def enum(name: str) -> postgresql.ENUM:
    return postgresql.ENUM(*ENUMS[name], name=name, create_type=False)


def timestamps() -> list:
    return [
        sa.Column("created_at", sa.DateTime(), nullable=False),
        sa.Column("updated_at", sa.DateTime(), nullable=False),
    ]


def ledger_columns() -> list:
    return [
        sa.Column("old_bill", MONEY, nullable=False, server_default="0"),
        sa.Column("previous_payments", MONEY, nullable=False, server_default="0"),
        sa.Column("arrears", MONEY, nullable=False, server_default="0"),
        sa.Column("current_bill", MONEY, nullable=False, server_default="0"),
        sa.Column("amount_payable", MONEY, nullable=False, server_default="0"),
    ]


def payer_columns() -> list:
    return [
        sa.Column("account_number", sa.String(20), nullable=False),
        sa.Column("owner_name", sa.String(150), nullable=False),
        sa.Column("telephone", sa.String(30), nullable=True),
        sa.Column("latitude", sa.Float(), nullable=True),
        sa.Column("longitude", sa.Float(), nullable=True),
        sa.Column("batch", sa.String(50), nullable=True),
        sa.Column("status", enum("payer_status"), nullable=False),
        sa.Column("created_by", sa.String(64), nullable=True),
        sa.Column("zone_id", ID, nullable=False),
        sa.Column("sub_zone_id", ID, nullable=True),
        *ledger_columns(),
        *timestamps(),
        sa.ForeignKeyConstraint(["zone_id"], ["zones.id"]),
        sa.ForeignKeyConstraint(["sub_zone_id"], ["sub_zones.id"]),
    ]


def payer_indexes(table: str) -> None:
    op.create_index(op.f(f"ix_{table}_account_number"), table, ["account_number"], unique=True)
    for column in ("status", "zone_id", "sub_zone_id", "amount_payable"):
        op.create_index(op.f(f"ix_{table}_{column}"), table, [column], unique=False)


def upgrade() -> None:
    bind = op.get_bind()
    for name in ENUMS:
        postgresql.ENUM(*ENUMS[name], name=name).create(bind, checkfirst=True)

    op.create_table(
        "zones",
        sa.Column("id", ID, autoincrement=True, nullable=False),
        sa.Column("zone_name", sa.String(100), nullable=False),
        sa.Column("zone_code", sa.String(20), nullable=True),
        sa.Column("description", sa.Text(), nullable=True),
        sa.Column("created_by", sa.String(64), nullable=True),
        *timestamps(),
        sa.PrimaryKeyConstraint("id"),
        sa.UniqueConstraint("zone_name"),
        sa.UniqueConstraint("zone_code"),
    )

    op.create_table(
        "sub_zones",
        sa.Column("id", ID, autoincrement=True, nullable=False),
        sa.Column("zone_id", ID, nullable=False),
        sa.Column("sub_zone_name", sa.String(100), nullable=False),
        sa.Column("sub_zone_code", sa.String(20), nullable=True),
        sa.Column("description", sa.Text(), nullable=True),
        sa.Column("created_by", sa.String(64), nullable=True),
        *timestamps(),
        sa.ForeignKeyConstraint(["zone_id"], ["zones.id"]),
        sa.PrimaryKeyConstraint("id"),
        sa.UniqueConstraint("zone_id", "sub_zone_name", name="uq_sub_zones_zone_name"),
    )
    op.create_index(op.f("ix_sub_zones_zone_id"), "sub_zones", ["zone_id"], unique=False)

    account_sequences = op.create_table(
        "account_sequences",
        sa.Column("payer_kind", enum("payer_kind"), nullable=False),
        sa.Column("last_value", ID, nullable=False, server_default="0"),
        sa.PrimaryKeyConstraint("payer_kind"),
    )
    op.bulk_insert(
        account_sequences,
        [{"payer_kind": "Business", "last_value": 0}, {"payer_kind": "Property", "last_value": 0}],
    )

    op.create_table(
        "businesses",
        sa.Column("id", ID, autoincrement=True, nullable=False),
        sa.Column("business_name", sa.String(200), nullable=False),
        sa.Column("business_type", sa.String(100), nullable=False),
        sa.Column("category", sa.String(100), nullable=False),
        sa.Column("exact_location", sa.Text(), nullable=True),
        *payer_columns(),
        sa.PrimaryKeyConstraint("id"),
    )
    payer_indexes("businesses")
    op.create_index(op.f("ix_businesses_business_name"), "businesses", ["business_name"], unique=False)

    op.create_table(
        "properties",
        sa.Column("id", ID, autoincrement=True, nullable=False),
        sa.Column("gender", sa.String(10), nullable=True),
        sa.Column("location", sa.Text(), nullable=True),
        sa.Column("structure", sa.String(100), nullable=False),
        sa.Column("ownership_type", sa.String(50), nullable=False, server_default="Self"),
        sa.Column("property_type", sa.String(50), nullable=False, server_default="Modern"),
        sa.Column("number_of_rooms", sa.Integer(), nullable=False, server_default="1"),
        sa.Column("property_use", sa.String(50), nullable=False),
        *payer_columns(),
        sa.PrimaryKeyConstraint("id"),
    )
    payer_indexes("properties")

    op.create_table(
        "business_fee_structure",
        sa.Column("id", ID, autoincrement=True, nullable=False),
        sa.Column("business_type", sa.String(100), nullable=False),
        sa.Column("category", sa.String(100), nullable=False),
        sa.Column("fee_amount", MONEY, nullable=False),
        sa.Column("created_by", sa.String(64), nullable=True),
        sa.Column("is_active", sa.Boolean(), nullable=False, server_default=sa.true()),
        *timestamps(),
        sa.PrimaryKeyConstraint("id"),
        sa.UniqueConstraint("business_type", "category", name="uq_business_fee_type_category"),
    )
    op.create_index(op.f("ix_business_fee_structure_business_type"), "business_fee_structure", ["business_type"], unique=False)
    op.create_index(op.f("ix_business_fee_structure_is_active"), "business_fee_structure", ["is_active"], unique=False)

    op.create_table(
        "property_fee_structure",
        sa.Column("id", ID, autoincrement=True, nullable=False),
        sa.Column("structure", sa.String(100), nullable=False),
        sa.Column("property_use", sa.String(50), nullable=False),
        sa.Column("fee_per_room", MONEY, nullable=False),
        sa.Column("created_by", sa.String(64), nullable=True),
        sa.Column("is_active", sa.Boolean(), nullable=False, server_default=sa.true()),
        *timestamps(),
        sa.PrimaryKeyConstraint("id"),
        sa.UniqueConstraint("structure", "property_use", name="uq_property_fee_structure_use"),
    )
    op.create_index(op.f("ix_property_fee_structure_structure"), "property_fee_structure", ["structure"], unique=False)
    op.create_index(op.f("ix_property_fee_structure_is_active"), "property_fee_structure", ["is_active"], unique=False)

    op.create_table(
        "bills",
        sa.Column("id", ID, autoincrement=True, nullable=False),
        sa.Column("bill_number", sa.String(30), nullable=False),
        sa.Column("bill_type", enum("payer_kind"), nullable=False),
        sa.Column("reference_id", ID, nullable=False),
        sa.Column("billing_year", sa.Integer(), nullable=False),
        sa.Column("status", enum("bill_status"), nullable=False),
        sa.Column("due_date", sa.Date(), nullable=True),
        sa.Column("generated_by", sa.String(64), nullable=True),
        sa.Column("generated_at", sa.DateTime(), nullable=False),
        *ledger_columns(),
        *timestamps(),
        sa.PrimaryKeyConstraint("id"),
        sa.UniqueConstraint("bill_type", "reference_id", "billing_year", name="uq_bills_payer_year"),
    )
    op.create_index(op.f("ix_bills_bill_number"), "bills", ["bill_number"], unique=True)
    for column in ("bill_type", "reference_id", "billing_year", "status", "amount_payable"):
        op.create_index(op.f(f"ix_bills_{column}"), "bills", [column], unique=False)

    op.create_table(
        "payments",
        sa.Column("id", ID, autoincrement=True, nullable=False),
        sa.Column("payment_reference", sa.String(30), nullable=False),
        sa.Column("bill_id", ID, nullable=False),
        sa.Column("amount_paid", MONEY, nullable=False),
        sa.Column("payment_method", enum("payment_method"), nullable=False),
        sa.Column("payment_status", enum("payment_status"), nullable=False),
        sa.Column("payment_date", sa.DateTime(), nullable=False),
        sa.Column("notes", sa.Text(), nullable=True),
        sa.Column("processed_by", sa.String(64), nullable=True),
        *timestamps(),
        sa.ForeignKeyConstraint(["bill_id"], ["bills.id"]),
        sa.PrimaryKeyConstraint("id"),
    )
    op.create_index(op.f("ix_payments_payment_reference"), "payments", ["payment_reference"], unique=True)
    op.create_index(op.f("ix_payments_bill_id"), "payments", ["bill_id"], unique=False)
    op.create_index(op.f("ix_payments_payment_status"), "payments", ["payment_status"], unique=False)

    op.create_table(
        "bill_adjustments",
        sa.Column("id", ID, autoincrement=True, nullable=False),
        sa.Column("adjustment_type", enum("adjustment_type"), nullable=False),
        sa.Column("target_type", enum("payer_kind"), nullable=False),
        sa.Column("target_id", ID, nullable=False),
        sa.Column("bill_id", ID, nullable=True),
        sa.Column("adjustment_method", enum("adjustment_method"), nullable=False),
        sa.Column("adjustment_value", MONEY, nullable=False),
        sa.Column("target_field", enum("adjustable_field"), nullable=False),
        sa.Column("old_amount", MONEY, nullable=False),
        sa.Column("new_amount", MONEY, nullable=False),
        sa.Column("reason", sa.Text(), nullable=False),
        sa.Column("applied_by", sa.String(64), nullable=True),
        sa.Column("applied_at", sa.DateTime(), nullable=False),
        *timestamps(),
        sa.PrimaryKeyConstraint("id"),
    )
    op.create_index(op.f("ix_bill_adjustments_target_type"), "bill_adjustments", ["target_type"], unique=False)
    op.create_index(op.f("ix_bill_adjustments_target_id"), "bill_adjustments", ["target_id"], unique=False)

    op.create_table(
        "audit_logs",
        sa.Column("id", ID, autoincrement=True, nullable=False),
        sa.Column("actor_id", sa.String(64), nullable=True),
        sa.Column("actor_name", sa.String(150), nullable=True),
        sa.Column("action", sa.String(50), nullable=False),
        sa.Column("table_name", sa.String(64), nullable=False),
        sa.Column("record_id", sa.String(64), nullable=True),
        sa.Column("old_values", sa.JSON(), nullable=True),
        sa.Column("new_values", sa.JSON(), nullable=True),
        sa.Column("ip_address", sa.String(45), nullable=True),
        sa.Column("user_agent", sa.Text(), nullable=True),
        sa.Column("created_at", sa.DateTime(), nullable=False),
        sa.PrimaryKeyConstraint("id"),
    )
    for column in ("actor_id", "action", "table_name", "record_id", "created_at"):
        op.create_index(op.f(f"ix_audit_logs_{column}"), "audit_logs", [column], unique=False)


def downgrade() -> None:
    for table in (
        "audit_logs",
        "bill_adjustments",
        "payments",
        "bills",
        "property_fee_structure",
        "business_fee_structure",
        "properties",
        "businesses",
        "account_sequences",
        "sub_zones",
        "zones",
    ):
        op.drop_table(table)

    bind = op.get_bind()
    for name in reversed(list(ENUMS)):
        postgresql.ENUM(name=name).drop(bind, checkfirst=True)
