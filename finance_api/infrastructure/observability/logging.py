"""Structured JSON logging for production observability"""

import logging
import sys
from datetime import datetime, timezone
from typing import Any, Dict
from pythonjsonlogger.json import JsonFormatter

from finance_api.domain.models import DuplicationResult


class CustomJsonFormatter(JsonFormatter):
    """Custom JSON formatter with timestamp and service metadata"""

    def add_fields(self, log_record: Dict[str, Any], record: logging.LogRecord, message_dict: Dict[str, Any]) -> None:
        super().add_fields(log_record, record, message_dict)
        log_record["timestamp"] = datetime.now(timezone.utc).isoformat()
        log_record["level"] = record.levelname
        log_record["service"] = "finance-api"


def setup_logging(level: str = "INFO") -> None:
    """Configure structured JSON logging"""
    logger = logging.getLogger()
    logger.setLevel(level)

    # Remove existing handlers
    logger.handlers.clear()

    # JSON handler for stdout
    handler = logging.StreamHandler(sys.stdout)
    formatter = CustomJsonFormatter(
        "%(timestamp)s %(level)s %(name)s %(message)s"
    )
    handler.setFormatter(formatter)
    logger.addHandler(handler)


def log_duplication(
    request_id: str,
    user_id: str,
    variant: str,
    result: DuplicationResult,
    duration_ms: float,
) -> None:
    """Log structured duplication outcome"""
    logging.info(
        "Period duplication completed",
        extra={
            "request_id": request_id,
            "user_id": user_id,
            "step": "duplication_complete",
            "variant": variant,
            "source_period": result.source_period,
            "target_period": result.target_period,
            "transactions_created": result.transactions_created,
            "transactions_existing": result.transactions_existing,
            "bills_created": result.bills_created,
            "bills_existing": result.bills_existing,
            "bills_skipped_stale": result.bills_skipped_stale,
            "duration_ms": duration_ms,
        },
    )
