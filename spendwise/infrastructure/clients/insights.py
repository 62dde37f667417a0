"""Insight service HTTP client with exponential backoff retry logic"""

import asyncio
import logging
from typing import Any, Dict, List

import httpx

from spendwise.config import settings
from spendwise.domain.exceptions import InsightServiceError
from spendwise.domain.models import InsightType
from spendwise.infrastructure.observability.metrics import insight_failure_counter, insight_latency_histogram

logger = logging.getLogger(__name__)

VALID_TYPES = {t.value for t in InsightType}


def parse_insights(data: Any) -> List[Dict[str, Any]]:
    """
    Keep well-formed insights from a service reply.

    Entries with an unknown type or missing title/content are dropped.

    Raises:
        InsightServiceError: If the reply is not an object with an insights list
    """
    if not isinstance(data, dict) or not isinstance(data.get("insights"), list):
        raise InsightServiceError("Invalid insight payload from service")

    insights = []
    for item in data["insights"]:
        if not isinstance(item, dict):
            continue
        if item.get("type") not in VALID_TYPES or not item.get("title") or not item.get("content"):
            logger.warning("Dropping malformed insight", extra={"insight": item})
            continue
        insights.append(
            {
                "type": item["type"],
                "title": str(item["title"]),
                "content": str(item["content"]),
                "data": item.get("data"),
            }
        )
    return insights


class InsightClient:
    """Client for the external service that turns spending data into insight text"""

    def __init__(self, service_url: str | None = None, timeout: float | None = None):
        self.service_url = service_url or settings.insight_service_url
        self.timeout = timeout or settings.http_timeout_seconds
        self.max_retries = settings.insight_max_retries
        self.backoff_base = settings.insight_backoff_base

    async def generate_insights(self, payload: Dict[str, Any]) -> List[Dict[str, Any]]:
        """
        Send the numeric spending payload and return generated insights.

        Retry strategy:
        - Exponential backoff: 1s, 2s, 4s (base * 2^attempt)
        - Retries on 5xx errors and network failures
        - Tracks latency histogram and failure counter

        Raises:
            InsightServiceError: After the final failed attempt or on a malformed reply
        """
        attempt = 0
        async with httpx.AsyncClient(timeout=self.timeout) as client:
            while True:
                try:
                    with insight_latency_histogram.time():
                        response = await client.post(self.service_url, json=payload)
                        response.raise_for_status()
                    return parse_insights(response.json())

                except (httpx.HTTPStatusError, httpx.RequestError) as e:
                    attempt += 1
                    insight_failure_counter.inc()

                    if attempt >= self.max_retries:
                        raise InsightServiceError(f"Insight service unavailable after {attempt} attempts") from e

                    backoff = self.backoff_base * (2 ** (attempt - 1))
                    await asyncio.sleep(backoff)

                except ValueError as e:
                    insight_failure_counter.inc()
                    raise InsightServiceError(f"Invalid JSON from insight service: {e}") from e
