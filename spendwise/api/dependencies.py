"""Dependency injection for FastAPI endpoints"""

from datetime import datetime, timezone, tzinfo
from fastapi import Request
from spendwise.config import settings
from spendwise.infrastructure.clients.insights import InsightClient
from spendwise.utils.date_utils import get_timezone


def get_request_id(request: Request) -> str:
    """Extract request ID from request state"""
    return getattr(request.state, "request_id", "unknown")


def get_now() -> datetime:
    """Current instant (UTC). Overridden in tests to pin the current month."""
    return datetime.now(timezone.utc)


def get_local_timezone() -> tzinfo:
    """Zone used to resolve calendar month boundaries"""
    return get_timezone(settings.timezone)


def get_insight_client() -> InsightClient:
    """Provide insight service client instance"""
    return InsightClient()
