"""Structured JSON Logging Configuration"""

import logging
import sys
from typing import Optional
from pythonjsonlogger import jsonlogger

from revenue_ledger.config import settings

# Lost audit writes are reported here; alerting keys on this logger name
AUDIT_ALERT_LOGGER = "revenue_ledger.audit.alerts"

_configured = False


class LedgerJsonFormatter(jsonlogger.JsonFormatter):
    """JSON log lines tagged with environment, correlation id and alert marker"""

    def add_fields(self, log_record: dict, record: logging.LogRecord, message_dict: dict) -> None:
        super().add_fields(log_record, record, message_dict)

        log_record["level"] = record.levelname
        log_record["logger"] = record.name
        log_record["environment"] = settings.ENVIRONMENT
        log_record["app_name"] = settings.APP_NAME

        if hasattr(record, "correlation_id"):
            log_record["correlation_id"] = record.correlation_id
        if record.name == AUDIT_ALERT_LOGGER:
            log_record.setdefault("alert", "audit_write_failure")


def setup_logging(level: Optional[str] = None) -> None:
    """
    Configure the root logger once per process.

    LOG_FORMAT=json gives one JSON object per line; anything else gives
    plain text for local development. Audit alerts are always emitted,
    whatever the configured level.
    """
    global _configured
    if _configured:
        return

    handler = logging.StreamHandler(sys.stdout)
    if settings.LOG_FORMAT == "json":
        handler.setFormatter(
            LedgerJsonFormatter(fmt="%(asctime)s %(level)s %(name)s %(message)s", datefmt="%Y-%m-%d %H:%M:%S")
        )
    else:
        handler.setFormatter(
            logging.Formatter(fmt="%(asctime)s - %(name)s - %(levelname)s - %(message)s", datefmt="%Y-%m-%d %H:%M:%S")
        )

    root_logger = logging.getLogger()
    root_logger.setLevel(getattr(logging, (level or settings.LOG_LEVEL).upper()))
    root_logger.addHandler(handler)

    logging.getLogger(AUDIT_ALERT_LOGGER).setLevel(logging.ERROR)

    # Reduce noise from third-party libraries
    for name in ("uvicorn.access", "sqlalchemy.engine", "aiosqlite"):
        logging.getLogger(name).setLevel(logging.WARNING)
    _configured = True


def get_logger(name: str) -> logging.Logger:
    """Named logger; configuration happens once in setup_logging"""
    return logging.getLogger(name)
