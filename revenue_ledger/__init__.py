"""Billing ledger and referential-integrity core for municipal revenue collection."""

__version__ = "1.0.0"
