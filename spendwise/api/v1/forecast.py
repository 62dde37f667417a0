"""GET /v1/forecast - next-period spending prediction"""

import time
from datetime import datetime, tzinfo
from typing import Optional

from fastapi import APIRouter, Depends, Query, Request
from sqlalchemy.orm import Session

from spendwise.api.dependencies import get_local_timezone, get_now, get_request_id
from spendwise.api.v1.common import load_spending_history, parse_uuid
from spendwise.api.v1.schemas import ForecastResponse
from spendwise.config import settings
from spendwise.domain.forecasting import predict_next_period
from spendwise.infrastructure.database.session import get_db
from spendwise.infrastructure.observability.logging import log_forecast
from spendwise.infrastructure.observability.metrics import record_forecast

router = APIRouter()


@router.get("/forecast", response_model=ForecastResponse)
def predict_budget(
    request: Request,
    user_id: str = Query(..., description="User identifier"),
    category_id: Optional[str] = Query(None, description="Forecast one category instead of total spend"),
    db: Session = Depends(get_db),
    now: datetime = Depends(get_now),
    tz: tzinfo = Depends(get_local_timezone),
):
    """
    Predict next month's spend from the trailing history.

    Flow:
    1. Build the trailing monthly series (most recent first)
    2. Weighted moving average over non-zero months
    3. Confidence from the coefficient of variation, trend from recent vs oldest months
    """
    category_key = str(parse_uuid(category_id, "category ID")) if category_id else None
    start_time = time.time()
    history = load_spending_history(db, user_id, settings.forecast_history_months, now, tz)
    forecast = predict_next_period(history, category_key)

    duration_ms = (time.time() - start_time) * 1000
    record_forecast(forecast.trend.value)
    log_forecast(
        get_request_id(request),
        user_id,
        category_key,
        forecast.predicted_amount,
        forecast.confidence,
        forecast.trend.value,
        duration_ms,
    )

    return ForecastResponse(
        predicted_amount=forecast.predicted_amount,
        confidence=forecast.confidence,
        trend=forecast.trend.value,
        data_points=forecast.data_points,
    )
