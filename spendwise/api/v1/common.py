"""Shared helpers for v1 routers: id parsing, ORM-to-schema mapping, spending loaders"""

import uuid
from datetime import datetime, tzinfo
from typing import Dict, List, Optional

from fastapi import HTTPException
from sqlalchemy.orm import Session

from spendwise.api.v1 import schemas
from spendwise.domain.aggregation import aggregate_expenses, build_spending_history
from spendwise.domain.budgets import evaluate_budget_status
from spendwise.domain.models import BudgetProgress, BudgetStatus, MonthlySpending
from spendwise.infrastructure.database.models import Budget, Expense, SavingsAccount, SavingsTransaction, Insight
from spendwise.infrastructure.database.repositories import BudgetRepository, ExpenseRepository
from spendwise.utils.date_utils import current_month_key, month_window, to_utc, trailing_month_windows


def parse_uuid(value: str, label: str = "ID") -> uuid.UUID:
    """Parse a path/body identifier, 400 on malformed input"""
    try:
        return uuid.UUID(value)
    except (ValueError, AttributeError, TypeError):
        raise HTTPException(status_code=400, detail=f"Invalid {label} format")


def parse_optional_uuid(value: Optional[str], label: str = "ID") -> Optional[uuid.UUID]:
    return parse_uuid(value, label) if value is not None else None


def decimal_map(values: Dict[str, object]) -> Dict[str, float]:
    return {key: float(amount) for key, amount in values.items()}


def expense_response(expense: Expense) -> schemas.ExpenseResponse:
    return schemas.ExpenseResponse(
        id=str(expense.id),
        user_id=expense.user_id,
        category_id=str(expense.category_id),
        amount=float(expense.amount),
        description=expense.description,
        date=expense.date,
        notes=expense.notes,
        savings_account_id=str(expense.savings_account_id) if expense.savings_account_id else None,
        ai_categorized=expense.ai_categorized,
        ai_confidence=expense.ai_confidence,
    )


def budget_response(budget: Budget) -> schemas.BudgetResponse:
    return schemas.BudgetResponse(
        id=str(budget.id),
        user_id=budget.user_id,
        category_id=str(budget.category_id) if budget.category_id else None,
        amount=float(budget.amount),
        month=budget.month,
    )


def account_response(account: SavingsAccount) -> schemas.AccountResponse:
    return schemas.AccountResponse(
        id=str(account.id),
        user_id=account.user_id,
        bank_id=str(account.bank_id),
        account_name=account.account_name,
        balance=float(account.balance),
        account_type=account.account_type,
        interest_rate=account.interest_rate,
        maturity_date=account.maturity_date,
    )


def transaction_response(tx: SavingsTransaction) -> schemas.TransactionResponse:
    return schemas.TransactionResponse(
        id=str(tx.id),
        account_id=str(tx.account_id),
        type=tx.type,
        amount=float(tx.amount),
        description=tx.description,
        date=tx.date,
    )


def insight_response(insight: Insight) -> schemas.InsightResponse:
    return schemas.InsightResponse(
        id=str(insight.id),
        type=insight.type,
        title=insight.title,
        content=insight.content,
        data=insight.data,
        expires_at=insight.expires_at,
    )


def progress_response(progress: BudgetProgress, user_id: str) -> schemas.BudgetProgressResponse:
    budget = progress.budget
    return schemas.BudgetProgressResponse(
        budget=schemas.BudgetResponse(
            id=budget.budget_id,
            user_id=user_id,
            category_id=budget.category_id,
            amount=float(budget.amount),
            month=budget.month,
        ),
        spent=float(progress.spent),
        remaining=float(progress.remaining),
        percentage_used=progress.percentage_used,
        over_budget=progress.over_budget,
        over_by=float(progress.over_by),
    )


def status_response(status: BudgetStatus, user_id: str) -> schemas.BudgetStatusResponse:
    return schemas.BudgetStatusResponse(
        month=status.month,
        total_spent=float(status.total_spent),
        overall_budget=progress_response(status.overall_budget, user_id) if status.overall_budget else None,
        category_budgets=[progress_response(p, user_id) for p in status.category_budgets],
    )


def history_entries(history: List[MonthlySpending]) -> List[schemas.HistoryEntry]:
    return [
        schemas.HistoryEntry(month=m.month, total=float(m.total), by_category=decimal_map(m.by_category))
        for m in history
    ]


def load_spending_history(
    db: Session,
    user_id: str,
    months_back: int,
    now: datetime,
    tz: tzinfo,
) -> List[MonthlySpending]:
    """
    Trailing monthly series, most-recent-first.

    The whole range is read in one query so every month comes from the same
    snapshot; bucketing happens in memory.
    """
    windows = trailing_month_windows(months_back, now, tz)
    oldest, newest = windows[-1][1], windows[0][1]
    records = ExpenseRepository(db).get_expense_records(user_id, to_utc(oldest.start, tz), to_utc(newest.end, tz))
    return build_spending_history(records, windows)


def load_budget_status(db: Session, user_id: str, now: datetime, tz: tzinfo) -> BudgetStatus:
    """Budgets of the month containing now, measured against that month's spend"""
    month = current_month_key(now, tz)
    window = month_window(month, tz)
    records = ExpenseRepository(db).get_expense_records(user_id, to_utc(window.start, tz), to_utc(window.end, tz))
    budgets = BudgetRepository(db).get_budget_records(user_id, month)
    return evaluate_budget_status(budgets, aggregate_expenses(records), month)
