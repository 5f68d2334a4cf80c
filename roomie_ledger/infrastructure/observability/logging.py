"""Structured JSON logging for production observability"""

import logging
import sys
from datetime import datetime, timezone
from typing import Any, Dict
from pythonjsonlogger import jsonlogger


class CustomJsonFormatter(jsonlogger.JsonFormatter):
    """Custom JSON formatter with timestamp and service metadata"""

    def add_fields(self, log_record: Dict[str, Any], record: logging.LogRecord, message_dict: Dict[str, Any]) -> None:
        super().add_fields(log_record, record, message_dict)
        log_record["timestamp"] = datetime.now(timezone.utc).isoformat()
        log_record["level"] = record.levelname
        log_record["service"] = "roomie-ledger"


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


def log_expense_event(
    request_id: str,
    group_id: str,
    actor_id: str,
    action: str,
    expense_id: str,
    amount_cents: int,
) -> None:
    """Log an expense add/remove for auditing"""
    logging.info(
        "Expense %s",
        action,
        extra={
            "request_id": request_id,
            "group_id": group_id,
            "actor_id": actor_id,
            "step": f"expense_{action}",
            "expense_id": expense_id,
            "amount_cents": amount_cents,
        },
    )


def log_settlement(
    request_id: str,
    group_id: str,
    actor_id: str,
    transfer_count: int,
    duration_ms: float,
) -> None:
    """Log structured settlement outcome for analysis"""
    logging.info(
        "Settlement completed",
        extra={
            "request_id": request_id,
            "group_id": group_id,
            "actor_id": actor_id,
            "step": "settle_complete",
            "settlement_outcome": "committed" if transfer_count else "noop",
            "transfer_count": transfer_count,
            "duration_ms": duration_ms,
        },
    )
