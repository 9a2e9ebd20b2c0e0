"""Structured JSON logging for production observability"""

import logging
import sys
from datetime import datetime, timezone
from typing import Any, Dict
from pythonjsonlogger import jsonlogger

from household_ledger.config import settings


class CustomJsonFormatter(jsonlogger.JsonFormatter):
    """Custom JSON formatter with timestamp and service metadata"""

    def add_fields(self, log_record: Dict[str, Any], record: logging.LogRecord, message_dict: Dict[str, Any]) -> None:
        super().add_fields(log_record, record, message_dict)
        log_record["timestamp"] = datetime.now(timezone.utc).isoformat()
        log_record["level"] = record.levelname
        log_record["service"] = settings.service_name


def setup_logging(level: str = "INFO") -> None:
    """Configure structured JSON logging"""
    logger = logging.getLogger()
    logger.setLevel(level)

    # Remove existing handlers
    logger.handlers.clear()

    handler = logging.StreamHandler(sys.stdout)
    formatter = CustomJsonFormatter(
        "%(timestamp)s %(level)s %(name)s %(message)s"
    )
    handler.setFormatter(formatter)
    logger.addHandler(handler)


def log_balances_computed(
    request_id: str,
    household_id: str,
    balance_count: int,
    duration_ms: float,
) -> None:
    """Log structured balance computation outcome"""
    logging.info(
        "Balances computed",
        extra={
            "request_id": request_id,
            "household_id": household_id,
            "step": "balances_complete",
            "balance_count": balance_count,
            "duration_ms": duration_ms,
        },
    )


def log_insights_computed(
    request_id: str,
    household_id: str,
    total_spent: float,
    trend: str,
    duration_ms: float,
) -> None:
    """Log structured insights computation outcome"""
    logging.info(
        "Insights computed",
        extra={
            "request_id": request_id,
            "household_id": household_id,
            "step": "insights_complete",
            "total_spent": total_spent,
            "trend": trend,
            "duration_ms": duration_ms,
        },
    )
