"""Structured JSON logging for production observability"""

import logging
import sys
from datetime import datetime, timezone
from decimal import Decimal
from typing import Any, Dict, Optional
from pythonjsonlogger import jsonlogger

from spendwise.config import settings


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
        "%(timestamp)s %(level)s %(name)s %(message)s",
        json_default=str,
    )
    handler.setFormatter(formatter)
    logger.addHandler(handler)


def log_expense_created(
    request_id: str,
    user_id: str,
    expense_id: str,
    amount: Decimal,
    savings_account_id: Optional[str],
) -> None:
    """Log expense creation, including any linked withdrawal"""
    logging.info(
        "Expense created",
        extra={
            "request_id": request_id,
            "user_id": user_id,
            "step": "expense_created",
            "expense_id": expense_id,
            "amount": str(amount),
            "linked_account_id": savings_account_id,
        },
    )


def log_transaction_posted(
    request_id: str,
    user_id: str,
    account_id: str,
    tx_type: str,
    amount: Decimal,
    new_balance: Decimal,
) -> None:
    """Log ledger posting with the resulting balance"""
    logging.info(
        "Savings transaction posted",
        extra={
            "request_id": request_id,
            "user_id": user_id,
            "step": "transaction_posted",
            "account_id": account_id,
            "transaction_type": tx_type,
            "amount": str(amount),
            "balance": str(new_balance),
        },
    )


def log_forecast(
    request_id: str,
    user_id: str,
    category_id: Optional[str],
    predicted_amount: float,
    confidence: float,
    trend: str,
    duration_ms: float,
) -> None:
    """Log forecast outcome for analysis"""
    logging.info(
        "Forecast computed",
        extra={
            "request_id": request_id,
            "user_id": user_id,
            "step": "forecast_complete",
            "category_id": category_id,
            "predicted_amount": predicted_amount,
            "confidence": confidence,
            "trend": trend,
            "duration_ms": duration_ms,
        },
    )
