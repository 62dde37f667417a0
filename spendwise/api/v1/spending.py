"""GET /v1/spending/* - monthly aggregation and multi-month trend series"""

from datetime import datetime, tzinfo

from fastapi import APIRouter, Depends, HTTPException, Query
from sqlalchemy.orm import Session

from spendwise.api.dependencies import get_local_timezone, get_now
from spendwise.api.v1.common import decimal_map, history_entries, load_spending_history
from spendwise.api.v1.schemas import MonthlySpendingResponse, SpendingHistoryResponse
from spendwise.config import settings
from spendwise.domain.aggregation import aggregate_expenses
from spendwise.infrastructure.database.repositories import ExpenseRepository
from spendwise.infrastructure.database.session import get_db
from spendwise.utils.date_utils import month_window, to_utc

router = APIRouter()


@router.get("/spending/monthly", response_model=MonthlySpendingResponse)
def get_monthly_spending(
    user_id: str = Query(..., description="User identifier"),
    month: int = Query(..., description="Month key YYYYMM, e.g. 202402"),
    db: Session = Depends(get_db),
    tz: tzinfo = Depends(get_local_timezone),
):
    """
    Total, per-category spend and expense count for one calendar month.

    A month without expenses returns zeros, not an error.
    """
    try:
        window = month_window(month, tz)
    except ValueError as e:
        raise HTTPException(status_code=422, detail=str(e))

    records = ExpenseRepository(db).get_expense_records(user_id, to_utc(window.start, tz), to_utc(window.end, tz))
    summary = aggregate_expenses(records)

    return MonthlySpendingResponse(
        month=month,
        total=float(summary.total),
        by_category=decimal_map(summary.by_category),
        expense_count=summary.count,
    )


@router.get("/spending/history", response_model=SpendingHistoryResponse)
def get_spending_history(
    user_id: str = Query(..., description="User identifier"),
    months: int = Query(settings.default_history_months, ge=1, le=24, description="Months to look back"),
    db: Session = Depends(get_db),
    now: datetime = Depends(get_now),
    tz: tzinfo = Depends(get_local_timezone),
):
    """
    Trailing monthly totals, most recent month first.

    Always returns exactly `months` entries; months without spend are zeros.
    """
    history = load_spending_history(db, user_id, months, now, tz)
    return SpendingHistoryResponse(user_id=user_id, months=history_entries(history))
