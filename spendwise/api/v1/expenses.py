"""/v1/expenses - expense recording, linked-account withdrawals and browsing"""

import logging
import uuid
from datetime import datetime, tzinfo
from decimal import Decimal
from typing import List, Optional

from fastapi import APIRouter, Depends, HTTPException, Query, Request, Response
from sqlalchemy.orm import Session

from spendwise.api.dependencies import get_local_timezone, get_request_id
from spendwise.api.v1.common import expense_response, parse_optional_uuid, parse_uuid
from spendwise.api.v1.schemas import (
    DayExpenses,
    ExpenseCalendarResponse,
    ExpenseCreate,
    ExpensePage,
    ExpenseResponse,
    ExpenseUpdate,
)
from spendwise.domain.aggregation import group_expenses_by_day
from spendwise.domain.exceptions import InvalidTransactionDataError, NotFoundError
from spendwise.domain.ledger import compensating_entry
from spendwise.domain.models import TransactionType
from spendwise.infrastructure.database.models import Expense, SavingsTransaction
from spendwise.infrastructure.database.repositories import (
    CategoryRepository,
    ExpenseRepository,
    SavingsRepository,
    to_expense_record,
)
from spendwise.infrastructure.database.session import get_db
from spendwise.infrastructure.observability.logging import log_expense_created, log_transaction_posted
from spendwise.infrastructure.observability.metrics import record_expense, record_savings_transaction
from spendwise.utils.date_utils import month_key, month_window, to_utc

router = APIRouter()


def withdraw_from_account(
    savings_repo: SavingsRepository,
    account_id: uuid.UUID,
    user_id: str,
    amount: Decimal,
    description: str,
    date: datetime,
) -> SavingsTransaction:
    """First half of a linked expense: debit the paying account through the ledger"""
    account = savings_repo.require_account(account_id, user_id=user_id, lock=True)
    return savings_repo.post_transaction(
        account, TransactionType.WITHDRAWAL, amount, f"Expense: {description}", date
    )


def _compensate_linked_expense(
    savings_repo: SavingsRepository,
    expense: Expense,
    new_amount: Decimal,
    label: str,
    date: datetime,
) -> Optional[SavingsTransaction]:
    """Post the ledger entry that keeps a linked account in step with its expense"""
    if expense.savings_account_id is None:
        return None
    entry = compensating_entry(Decimal(expense.amount), new_amount)
    if entry is None:
        return None
    tx_type, amount = entry
    account = savings_repo.require_account(expense.savings_account_id, lock=True)
    tx = savings_repo.post_transaction(account, tx_type, amount, f"{label}: {expense.description}", date)
    record_savings_transaction(tx_type.value)
    return tx


@router.post("/expenses", response_model=ExpenseResponse, status_code=201)
def create_expense(
    body: ExpenseCreate,
    request: Request,
    db: Session = Depends(get_db),
    tz: tzinfo = Depends(get_local_timezone),
):
    """
    Record an expense.

    Flow:
    1. Check the category is visible to the user
    2. If paid from a savings account, post the withdrawal (ledger row + balance)
    3. Insert the expense
    4. Commit both together; any failure leaves neither behind
    """
    request_id = get_request_id(request)
    category_uuid = parse_uuid(body.category_id, "category ID")
    account_uuid = parse_optional_uuid(body.savings_account_id, "savings account ID")
    expense_date = to_utc(body.date, tz)

    try:
        CategoryRepository(db).require_visible(category_uuid, body.user_id)

        savings_repo = SavingsRepository(db)
        withdrawal = None
        if account_uuid is not None:
            withdrawal = withdraw_from_account(
                savings_repo, account_uuid, body.user_id, body.amount, body.description, expense_date
            )

        expense = ExpenseRepository(db).create_expense(
            user_id=body.user_id,
            category_id=category_uuid,
            amount=body.amount,
            description=body.description,
            date=expense_date,
            notes=body.notes,
            savings_account_id=account_uuid,
            ai_categorized=body.ai_categorized,
            ai_confidence=body.ai_confidence,
        )

        db.commit()

        record_expense(linked=withdrawal is not None)
        log_expense_created(request_id, body.user_id, str(expense.id), body.amount, body.savings_account_id)
        if withdrawal is not None:
            record_savings_transaction(TransactionType.WITHDRAWAL.value)
            log_transaction_posted(
                request_id,
                body.user_id,
                body.savings_account_id,
                TransactionType.WITHDRAWAL.value,
                body.amount,
                Decimal(withdrawal.account.balance),
            )

        return expense_response(expense)

    except NotFoundError as e:
        db.rollback()
        logging.warning(f"Expense rejected: {e}", extra={"request_id": request_id})
        raise HTTPException(status_code=404, detail=str(e))

    except InvalidTransactionDataError as e:
        db.rollback()
        raise HTTPException(status_code=422, detail=str(e))

    except Exception as e:
        db.rollback()
        logging.error(f"Unexpected error: {e}", extra={"request_id": request_id})
        raise HTTPException(status_code=500, detail="Internal server error")


@router.get("/expenses", response_model=ExpensePage)
def list_expenses(
    user_id: str = Query(..., description="User identifier"),
    limit: int = Query(20, ge=1, le=100),
    cursor: Optional[str] = Query(None, description="next_cursor from the previous page"),
    db: Session = Depends(get_db),
):
    """Newest-first page of a user's expenses"""
    repo = ExpenseRepository(db)
    cursor_expense = None
    if cursor is not None:
        cursor_expense = repo.get_expense(parse_uuid(cursor, "cursor"))
        if cursor_expense is None or cursor_expense.user_id != user_id:
            raise HTTPException(status_code=400, detail="Invalid cursor")

    expenses = repo.list_expenses(user_id, limit + 1, cursor_expense)
    has_more = len(expenses) > limit
    items = expenses[:limit]

    return ExpensePage(
        items=[expense_response(e) for e in items],
        has_more=has_more,
        next_cursor=str(items[-1].id) if has_more else None,
    )


@router.get("/expenses/recent", response_model=List[ExpenseResponse])
def recent_expenses(
    user_id: str = Query(..., description="User identifier"),
    limit: int = Query(5, ge=1, le=50),
    db: Session = Depends(get_db),
):
    return [expense_response(e) for e in ExpenseRepository(db).list_expenses(user_id, limit)]


@router.get("/expenses/calendar", response_model=ExpenseCalendarResponse)
def expense_calendar(
    user_id: str = Query(..., description="User identifier"),
    year: int = Query(..., ge=1),
    month: int = Query(..., ge=1, le=12),
    db: Session = Depends(get_db),
    tz: tzinfo = Depends(get_local_timezone),
):
    """A month of expenses grouped by local calendar day"""
    key = month_key(year, month)
    window = month_window(key, tz)
    expenses = ExpenseRepository(db).get_expenses_between(user_id, to_utc(window.start, tz), to_utc(window.end, tz))
    by_day = group_expenses_by_day([to_expense_record(e) for e in expenses], tz)

    return ExpenseCalendarResponse(
        month=key,
        total=float(sum((Decimal(e.amount) for e in expenses), Decimal("0"))),
        by_day={
            day: DayExpenses(total=float(s.total), count=s.count, expenses=[r.expense_id for r in s.expenses])
            for day, s in sorted(by_day.items())
        },
        expenses=[expense_response(e) for e in expenses],
    )


@router.get("/expenses/{expense_id}", response_model=ExpenseResponse)
def get_expense(expense_id: str, db: Session = Depends(get_db)):
    expense = ExpenseRepository(db).get_expense(parse_uuid(expense_id, "expense ID"))
    if not expense:
        raise HTTPException(status_code=404, detail="Expense not found")
    return expense_response(expense)


@router.patch("/expenses/{expense_id}", response_model=ExpenseResponse)
def update_expense(
    expense_id: str,
    body: ExpenseUpdate,
    request: Request,
    db: Session = Depends(get_db),
    tz: tzinfo = Depends(get_local_timezone),
):
    """
    Edit amount, category, description, date or notes.

    Changing the amount of a linked expense posts a compensating ledger
    entry for the difference so the account balance does not drift.
    """
    request_id = get_request_id(request)
    expense_uuid = parse_uuid(expense_id, "expense ID")
    category_uuid = parse_optional_uuid(body.category_id, "category ID")
    updates = body.model_dump(exclude_unset=True, exclude_none=True)

    try:
        repo = ExpenseRepository(db)
        expense = repo.require_expense(expense_uuid)

        if category_uuid is not None:
            CategoryRepository(db).require_visible(category_uuid, expense.user_id)
            updates["category_id"] = category_uuid
        if "date" in updates:
            updates["date"] = to_utc(updates["date"], tz)
        if "amount" in updates:
            _compensate_linked_expense(
                SavingsRepository(db), expense, updates["amount"], "Adjustment", updates.get("date", expense.date)
            )

        repo.update_expense(expense, updates)
        db.commit()
        return expense_response(expense)

    except NotFoundError as e:
        db.rollback()
        raise HTTPException(status_code=404, detail=str(e))

    except Exception as e:
        db.rollback()
        logging.error(f"Unexpected error: {e}", extra={"request_id": request_id})
        raise HTTPException(status_code=500, detail="Internal server error")


@router.delete("/expenses/{expense_id}", status_code=204)
def delete_expense(
    expense_id: str,
    request: Request,
    db: Session = Depends(get_db),
):
    """Delete an expense; a linked account gets its withdrawal reversed"""
    request_id = get_request_id(request)
    expense_uuid = parse_uuid(expense_id, "expense ID")

    try:
        repo = ExpenseRepository(db)
        expense = repo.require_expense(expense_uuid)
        _compensate_linked_expense(SavingsRepository(db), expense, Decimal("0"), "Reversal", expense.date)
        repo.delete_expense(expense)
        db.commit()
        return Response(status_code=204)

    except NotFoundError as e:
        db.rollback()
        raise HTTPException(status_code=404, detail=str(e))

    except Exception as e:
        db.rollback()
        logging.error(f"Unexpected error: {e}", extra={"request_id": request_id})
        raise HTTPException(status_code=500, detail="Internal server error")
