"""/v1/budgets - monthly budgets and current month status"""

import logging
from datetime import datetime, tzinfo
from typing import List

from fastapi import APIRouter, Depends, HTTPException, Query, Request, Response
from sqlalchemy.orm import Session

from spendwise.api.dependencies import get_local_timezone, get_now, get_request_id
from spendwise.api.v1.common import budget_response, load_budget_status, parse_optional_uuid, parse_uuid, status_response
from spendwise.api.v1.schemas import BudgetCreate, BudgetResponse, BudgetStatusResponse, BudgetUpdate
from spendwise.domain.exceptions import InvariantViolationError, NotFoundError
from spendwise.infrastructure.database.repositories import BudgetRepository, CategoryRepository
from spendwise.infrastructure.database.session import get_db
from spendwise.utils.date_utils import parse_month_key

router = APIRouter()


@router.get("/budgets/status", response_model=BudgetStatusResponse)
def get_current_month_status(
    user_id: str = Query(..., description="User identifier"),
    db: Session = Depends(get_db),
    now: datetime = Depends(get_now),
    tz: tzinfo = Depends(get_local_timezone),
):
    """
    Budgets of the current month with spend against each.

    total_spent covers every expense of the month even when no overall
    budget is set.
    """
    return status_response(load_budget_status(db, user_id, now, tz), user_id)


@router.get("/budgets", response_model=List[BudgetResponse])
def list_budgets(
    user_id: str = Query(..., description="User identifier"),
    month: int = Query(..., description="Month key YYYYMM"),
    db: Session = Depends(get_db),
):
    return [budget_response(b) for b in BudgetRepository(db).get_by_month(user_id, month)]


@router.post("/budgets", response_model=BudgetResponse)
def create_budget(body: BudgetCreate, request: Request, db: Session = Depends(get_db)):
    """
    Set a budget for a month, overall or for one category.

    A budget already present for the same user, month and category has its
    amount replaced instead of a second row being created.
    """
    request_id = get_request_id(request)
    category_uuid = parse_optional_uuid(body.category_id, "category ID")
    try:
        parse_month_key(body.month)
    except ValueError as e:
        raise HTTPException(status_code=422, detail=str(e))

    try:
        if category_uuid is not None:
            CategoryRepository(db).require_visible(category_uuid, body.user_id)
        budget = BudgetRepository(db).upsert_budget(body.user_id, body.month, body.amount, category_uuid)
        db.commit()
        return budget_response(budget)

    except NotFoundError as e:
        db.rollback()
        raise HTTPException(status_code=404, detail=str(e))

    except InvariantViolationError as e:
        db.rollback()
        logging.warning(f"Budget conflict: {e}", extra={"request_id": request_id})
        raise HTTPException(status_code=409, detail=str(e))


@router.patch("/budgets/{budget_id}", response_model=BudgetResponse)
def update_budget(budget_id: str, body: BudgetUpdate, db: Session = Depends(get_db)):
    budget_uuid = parse_uuid(budget_id, "budget ID")
    repo = BudgetRepository(db)
    try:
        budget = repo.update_amount(repo.require_budget(budget_uuid), body.amount)
        db.commit()
        return budget_response(budget)

    except NotFoundError as e:
        db.rollback()
        raise HTTPException(status_code=404, detail=str(e))


@router.delete("/budgets/{budget_id}", status_code=204)
def delete_budget(budget_id: str, db: Session = Depends(get_db)):
    budget_uuid = parse_uuid(budget_id, "budget ID")
    repo = BudgetRepository(db)
    try:
        repo.delete_budget(repo.require_budget(budget_uuid))
        db.commit()
        return Response(status_code=204)

    except NotFoundError as e:
        db.rollback()
        raise HTTPException(status_code=404, detail=str(e))
