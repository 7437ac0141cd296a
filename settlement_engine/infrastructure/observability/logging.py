"""Structured JSON logging for production observability"""

import logging
import sys
from datetime import datetime, timezone
from typing import Any, Dict, Optional
from pythonjsonlogger import jsonlogger

from settlement_engine.config import settings


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

    # JSON handler for stdout
    handler = logging.StreamHandler(sys.stdout)
    formatter = CustomJsonFormatter(
        "%(timestamp)s %(level)s %(name)s %(message)s"
    )
    handler.setFormatter(formatter)
    logger.addHandler(handler)


def log_data_source_failure(operation: str, error: Exception, **context: Any) -> None:
    """Log a failed read/write against the financial data source"""
    logging.error(
        f"Data source failure in {operation}: {error}",
        extra={"step": operation, "error_type": type(error).__name__, **context},
    )


def log_payment_outcome(
    settlement_id: str,
    accepted: bool,
    amount_piasters: int,
    payment_method: Optional[str] = None,
    reason: Optional[str] = None,
) -> None:
    """Log structured payment outcome for reconciliation"""
    extra = {
        "settlement_id": settlement_id,
        "step": "record_payment",
        "payment_outcome": "accepted" if accepted else "rejected",
        "amount_piasters": amount_piasters,
        "payment_method": payment_method,
    }
    if accepted:
        logging.info("Settlement payment recorded", extra=extra)
    else:
        logging.warning(f"Settlement payment rejected: {reason}", extra=extra)
