"""Integration tests: HTTP surface over the ledger services"""

import pytest
from decimal import Decimal
from unittest.mock import AsyncMock, patch

from sqlalchemy.exc import OperationalError

from revenue_ledger.services.cascade_service import CascadeService


@pytest.mark.asyncio
async def test_health(async_client):
    response = await async_client.get("http://test/health")
    assert response.status_code == 200
    body = response.json()
    assert body["status"] == "healthy"
    assert "audit_write_failures" in body


@pytest.mark.asyncio
async def test_create_business(async_client, actor_headers, business_data):
    payload = business_data().model_dump(mode="json")
    response = await async_client.post("/businesses", json=payload, headers=actor_headers)

    assert response.status_code == 201
    body = response.json()
    assert body["success"] is True
    assert body["message"] == "Business registered successfully! Account Number: BIZ000001"
    assert Decimal(str(body["data"]["amount_payable"])) == Decimal("140.00")
    assert body["data"]["created_by"] == actor_headers["X-Actor-Id"]


@pytest.mark.asyncio
async def test_create_requires_actor(async_client, business_data):
    payload = business_data().model_dump(mode="json")
    response = await async_client.post("/businesses", json=payload)
    assert response.status_code == 401


@pytest.mark.asyncio
async def test_validation_errors_listed(async_client, actor_headers, zone_id):
    response = await async_client.post(
        "/properties",
        json={"owner_name": "Yaw Asante", "zone_id": zone_id, "number_of_rooms": 0, "latitude": "north"},
        headers=actor_headers,
    )

    assert response.status_code == 422
    error = response.json()["error"]
    assert error["code"] == "VALIDATION_ERROR"
    assert error["errors"] == [
        "Property structure is required.",
        "Property use is required.",
        "Latitude must be a valid number between -90 and 90.",
        "Number of rooms must be at least 1.",
    ]


@pytest.mark.asyncio
async def test_update_business(async_client, actor_headers, business_ref):
    response = await async_client.put(
        f"/businesses/{business_ref.id}", json={"arrears": "0"}, headers=actor_headers
    )
    assert response.status_code == 200
    assert Decimal(str(response.json()["data"]["amount_payable"])) == Decimal("120.00")


@pytest.mark.asyncio
async def test_get_missing_business(async_client):
    response = await async_client.get("/businesses/404")
    assert response.status_code == 404
    assert response.json()["error"]["code"] == "RESOURCE_NOT_FOUND"


@pytest.mark.asyncio
async def test_lookup_account(async_client, business_ref):
    response = await async_client.get("/accounts/BIZ000001")
    assert response.status_code == 200
    assert response.json()["data"]["id"] == business_ref.id

    assert (await async_client.get("/accounts/PROP000099")).status_code == 404


@pytest.mark.asyncio
async def test_relationship_summary(async_client, seeded_business):
    response = await async_client.get(f"/businesses/{seeded_business.id}/relationships")

    assert response.status_code == 200
    data = response.json()["data"]
    assert data["bill_count"] == 3
    assert data["payment_count"] == 2
    assert Decimal(str(data["payment_total"])) == Decimal("75.50")
    assert data["adjustment_count"] == 1
    assert data["has_relationships"] is True


@pytest.mark.asyncio
async def test_confirmed_delete(async_client, actor_headers, seeded_business):
    summary = (await async_client.get(f"/businesses/{seeded_business.id}/relationships")).json()["data"]

    response = await async_client.request(
        "DELETE",
        f"/businesses/{seeded_business.id}",
        json={"expected": summary},
        headers=actor_headers,
    )

    assert response.status_code == 200
    body = response.json()
    assert body["message"] == (
        "Business deleted successfully! Related records also deleted: "
        "3 bill record(s), 2 payment record(s), 1 bill adjustment(s)."
    )
    assert body["data"]["audit_recorded"] is True
    assert (await async_client.get(f"/businesses/{seeded_business.id}")).status_code == 404


@pytest.mark.asyncio
async def test_stale_delete_conflicts(async_client, actor_headers, seeded_business):
    stale = {"bill_count": 1, "payment_count": 0, "payment_total": "0.00", "adjustment_count": 0}

    response = await async_client.request(
        "DELETE", f"/businesses/{seeded_business.id}", json={"expected": stale}, headers=actor_headers
    )

    assert response.status_code == 409
    assert response.json()["error"]["code"] == "CONFLICT"
    assert (await async_client.get(f"/businesses/{seeded_business.id}")).status_code == 200


@pytest.mark.asyncio
async def test_delete_missing_business(async_client, actor_headers):
    response = await async_client.delete("/businesses/404", headers=actor_headers)
    assert response.status_code == 404


@pytest.mark.asyncio
async def test_storage_failure_hides_details(async_client, actor_headers, seeded_business):
    failure = OperationalError("DELETE FROM bills", {}, Exception("disk I/O error"))

    with patch.object(CascadeService, "_delete_bills", AsyncMock(side_effect=failure)):
        response = await async_client.delete(f"/businesses/{seeded_business.id}", headers=actor_headers)

    assert response.status_code == 500
    assert response.json() == {
        "success": False,
        "error": {
            "code": "STORAGE_FAILURE",
            "message": "The operation could not be completed. Please try again.",
            "errors": None,
        },
    }
    summary = (await async_client.get(f"/businesses/{seeded_business.id}/relationships")).json()["data"]
    assert summary["bill_count"] == 3


@pytest.mark.asyncio
async def test_unknown_fee_is_404(async_client):
    response = await async_client.get(
        "/fees/resolve", params={"kind": "business", "fee_type": "Retail", "category": "Unregistered-Category"}
    )
    assert response.status_code == 404


@pytest.mark.asyncio
async def test_fee_import_upload(async_client, actor_headers):
    content = b"structure,property_use,fee_per_room\nMud Brick,Residential,5\nConcrete Block,Commercial,25\n"

    response = await async_client.post(
        "/fees/property/import",
        files={"file": ("fees.csv", content, "text/csv")},
        headers=actor_headers,
    )
    assert response.status_code == 200
    assert response.json()["data"]["created"] == 2

    rejected = await async_client.post(
        "/fees/property/import",
        files={"file": ("fees.xlsx", content, "application/octet-stream")},
        headers=actor_headers,
    )
    assert rejected.status_code == 400


@pytest.mark.asyncio
async def test_bill_and_payment_flow(async_client, actor_headers, business_ref):
    fee = await async_client.post(
        "/fees/business",
        json={"business_type": "Retail", "category": "Small Shop", "fee_amount": "150.00"},
        headers=actor_headers,
    )
    assert fee.status_code == 201

    bill = await async_client.post(
        f"/businesses/{business_ref.id}/bills", json={"billing_year": 2025}, headers=actor_headers
    )
    assert bill.status_code == 201
    bill_id = bill.json()["data"]["id"]

    payment = await async_client.post(
        f"/bills/{bill_id}/payments", json={"amount_paid": "190.00", "payment_method": "Mobile Money"},
        headers=actor_headers,
    )
    assert payment.status_code == 201

    paid = (await async_client.get(f"/bills/{bill_id}")).json()["data"]
    assert paid["status"] == "Paid"

    duplicate = await async_client.post(
        f"/businesses/{business_ref.id}/bills", json={"billing_year": 2025}, headers=actor_headers
    )
    assert duplicate.status_code == 409


@pytest.mark.asyncio
async def test_zone_in_use_delete_conflicts(async_client, actor_headers, zone_id, business_ref):
    response = await async_client.delete(f"/zones/{zone_id}", headers=actor_headers)
    assert response.status_code == 409
    assert "1 business(es)" in response.json()["error"]["message"]


@pytest.mark.asyncio
async def test_audit_log_listing(async_client, business_ref):
    response = await async_client.get("/audit-logs", params={"table_name": "businesses"})
    assert response.status_code == 200
    entries = response.json()["data"]
    assert [e["action"] for e in entries] == ["CREATE"]
