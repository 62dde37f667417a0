"""/v1/insights - expiring per-user insight cache and its refresh"""

import logging
import time
from datetime import datetime, timedelta, tzinfo
from typing import Optional

from fastapi import APIRouter, Depends, HTTPException, Query, Request, Response
from sqlalchemy.orm import Session

from spendwise.api.dependencies import get_insight_client, get_local_timezone, get_now, get_request_id
from spendwise.api.v1.common import (
    history_entries,
    insight_response,
    load_budget_status,
    load_spending_history,
    parse_uuid,
    status_response,
)
from spendwise.api.v1.schemas import ClearedResponse, InsightListResponse, InsightRefreshRequest, InsightTypeLiteral
from spendwise.config import settings
from spendwise.domain.exceptions import InsightServiceError, NotFoundError
from spendwise.domain.models import InsightType
from spendwise.infrastructure.clients.insights import InsightClient
from spendwise.infrastructure.database.repositories import InsightRepository
from spendwise.infrastructure.database.session import get_db

router = APIRouter()

FALLBACK_INSIGHT = {
    "type": InsightType.SAVING_TIP.value,
    "title": "Track Your Spending",
    "content": "Keep adding your expenses to get personalized insights about your spending patterns.",
    "data": None,
}


@router.get("/insights", response_model=InsightListResponse)
def list_insights(
    user_id: str = Query(..., description="User identifier"),
    type: Optional[InsightTypeLiteral] = Query(None),
    db: Session = Depends(get_db),
    now: datetime = Depends(get_now),
):
    """Unexpired insights for a user"""
    insights = InsightRepository(db).list_active(user_id, now, type)
    return InsightListResponse(user_id=user_id, insights=[insight_response(i) for i in insights])


@router.post("/insights/refresh", response_model=InsightListResponse)
async def refresh_insights(
    body: InsightRefreshRequest,
    request: Request,
    db: Session = Depends(get_db),
    now: datetime = Depends(get_now),
    tz: tzinfo = Depends(get_local_timezone),
    insight_client: InsightClient = Depends(get_insight_client),
):
    """
    Regenerate a user's insights.

    Flow:
    1. Build the numeric payload (recent spending history + current budget status)
    2. Ask the insight service for a fresh batch
    3. Replace the unexpired batch in one transaction

    If the insight service fails, the current batch is left as it is.
    """
    start_time = time.time()
    request_id = get_request_id(request)

    history = load_spending_history(db, body.user_id, settings.insight_history_months, now, tz)
    status = load_budget_status(db, body.user_id, now, tz)
    payload = {
        "user_id": body.user_id,
        "spending_history": [entry.model_dump(mode="json") for entry in history_entries(history)],
        "budget_status": status_response(status, body.user_id).model_dump(mode="json"),
    }
    # Release the read transaction before the slow outbound call
    db.rollback()

    try:
        generated = await insight_client.generate_insights(payload)
    except InsightServiceError as e:
        logging.error(f"Insight service error: {e}", extra={"request_id": request_id})
        raise HTTPException(status_code=503, detail="Insight service unavailable")

    batch = generated or [FALLBACK_INSIGHT]
    expires_at = now + timedelta(days=settings.insight_ttl_days)

    try:
        inserted = InsightRepository(db).replace_active(body.user_id, now, batch, expires_at)
        db.commit()
    except Exception as e:
        db.rollback()
        logging.error(f"Unexpected error: {e}", extra={"request_id": request_id})
        raise HTTPException(status_code=500, detail="Internal server error")

    logging.info(
        "Insights refreshed",
        extra={
            "request_id": request_id,
            "user_id": body.user_id,
            "step": "insights_refreshed",
            "insight_count": len(inserted),
            "duration_ms": (time.time() - start_time) * 1000,
        },
    )
    return InsightListResponse(user_id=body.user_id, insights=[insight_response(i) for i in inserted])


@router.delete("/insights/expired", response_model=ClearedResponse)
def clear_expired(
    user_id: str = Query(..., description="User identifier"),
    db: Session = Depends(get_db),
    now: datetime = Depends(get_now),
):
    removed = InsightRepository(db).delete_expired(user_id, now)
    db.commit()
    return ClearedResponse(removed=removed)


@router.delete("/insights/{insight_id}", status_code=204)
def delete_insight(insight_id: str, db: Session = Depends(get_db)):
    insight_uuid = parse_uuid(insight_id, "insight ID")
    repo = InsightRepository(db)
    try:
        repo.delete_insight(repo.require_insight(insight_uuid))
        db.commit()
        return Response(status_code=204)
    except NotFoundError as e:
        db.rollback()
        raise HTTPException(status_code=404, detail=str(e))
