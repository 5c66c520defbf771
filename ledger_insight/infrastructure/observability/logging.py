"""Structured JSON logging for production observability"""

import logging
import sys
from datetime import datetime, timezone
from typing import Any, Dict, Optional

from pythonjsonlogger import jsonlogger

from ledger_insight.config import settings


class CustomJsonFormatter(jsonlogger.JsonFormatter):
    """Custom JSON formatter with timestamp and service metadata"""

    def add_fields(self, log_record: Dict[str, Any], record: logging.LogRecord, message_dict: Dict[str, Any]) -> None:
        super().add_fields(log_record, record, message_dict)
        log_record["timestamp"] = datetime.now(timezone.utc).isoformat()
        log_record["level"] = record.levelname
        log_record["service"] = settings.service_name


def setup_logging(level: Optional[str] = None) -> None:
    """
    Route root logging to stdout as JSON lines.

    Called once by the embedding application. The level defaults to the
    configured `log_level`.
    """
    root = logging.getLogger()
    root.setLevel((level or settings.log_level).upper())
    root.handlers.clear()

    handler = logging.StreamHandler(sys.stdout)
    handler.setFormatter(CustomJsonFormatter("%(timestamp)s %(level)s %(name)s %(message)s"))
    root.addHandler(handler)


def log_ledger_built(
    customer_id: str,
    transaction_count: int,
    filtered_count: int,
    final_balance: float,
    duration_ms: float,
) -> None:
    """Log structured ledger outcome"""
    logging.info(
        "Ledger built",
        extra={
            "customer_id": customer_id,
            "step": "ledger_complete",
            "transaction_count": transaction_count,
            "filtered_count": filtered_count,
            "final_balance": final_balance,
            "duration_ms": duration_ms,
        },
    )


def log_insight(
    customer_id: str,
    score: int,
    classification: str,
    months: int,
    duration_ms: float,
) -> None:
    """Log structured insight outcome for analysis"""
    logging.info(
        "Insight completed",
        extra={
            "customer_id": customer_id,
            "step": "insight_complete",
            "score": score,
            "classification": classification,
            "months": months,
            "duration_ms": duration_ms,
        },
    )
