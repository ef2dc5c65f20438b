"""Unit tests for the JSON log formatter"""

import json
import logging

from revenue_ledger.core.logging import AUDIT_ALERT_LOGGER, LedgerJsonFormatter


def _format(logger_name: str, **extra) -> dict:
    record = logging.LogRecord(logger_name, logging.ERROR, __file__, 1, "Audit log write failed", None, None)
    for key, value in extra.items():
        setattr(record, key, value)
    return json.loads(LedgerJsonFormatter("%(message)s").format(record))


def test_alert_lines_are_marked():
    line = _format(AUDIT_ALERT_LOGGER, table_name="businesses")
    assert line["alert"] == "audit_write_failure"
    assert line["level"] == "ERROR"
    assert line["table_name"] == "businesses"


def test_ordinary_lines_carry_correlation_id():
    line = _format("revenue_ledger.services.cascade_service", correlation_id="req-42")
    assert line["correlation_id"] == "req-42"
    assert "alert" not in line
