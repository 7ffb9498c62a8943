"""Structured JSON logging for production observability"""

import logging
import sys
from datetime import datetime, timezone
from typing import Any, Dict, Optional

from pythonjsonlogger import jsonlogger

from finflow_core.config import settings


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


def log_debt_payment(
    request_id: str,
    space_id: str,
    debt_id: str,
    transaction_id: Optional[str],
    obligation_id: Optional[str],
    duration_ms: float,
) -> None:
    logging.info(
        "Debt payment confirmed",
        extra={
            "request_id": request_id,
            "space_id": space_id,
            "step": "debt_payment_confirmed",
            "debt_id": debt_id,
            "transaction_id": transaction_id,
            "matched_obligation_id": obligation_id,
            "duration_ms": duration_ms,
        },
    )


def log_obligation_payment(
    request_id: str,
    space_id: str,
    obligation_id: str,
    transaction_id: Optional[str],
    remaining: float,
    duration_ms: float,
) -> None:
    logging.info(
        "Obligation payment confirmed",
        extra={
            "request_id": request_id,
            "space_id": space_id,
            "step": "obligation_payment_confirmed",
            "obligation_id": obligation_id,
            "transaction_id": transaction_id,
            "remaining": remaining,
            "duration_ms": duration_ms,
        },
    )


def log_recurring_run(
    request_id: str,
    space_id: str,
    generated: int,
    updated_rules: int,
    duration_ms: float,
) -> None:
    logging.info(
        "Recurring run completed",
        extra={
            "request_id": request_id,
            "space_id": space_id,
            "step": "recurring_run_completed",
            "generated": generated,
            "updated_rules": updated_rules,
            "duration_ms": duration_ms,
        },
    )


def log_document_confirmation(
    request_id: str,
    space_id: str,
    obligation_id: Optional[str],
    debt_id: Optional[str],
    transaction_id: Optional[str],
    duration_ms: float,
) -> None:
    logging.info(
        "Document confirmation saved",
        extra={
            "request_id": request_id,
            "space_id": space_id,
            "step": "document_confirmation_saved",
            "obligation_id": obligation_id,
            "debt_id": debt_id,
            "transaction_id": transaction_id,
            "duration_ms": duration_ms,
        },
    )
