"""Data access layer for spendwise entities"""

import uuid
from datetime import datetime
from decimal import Decimal
from typing import Any, Dict, List, Optional, Sequence

from sqlalchemy import and_, or_, text
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from spendwise.domain.exceptions import InvariantViolationError, NotFoundError
from spendwise.domain.ledger import apply_transaction
from spendwise.domain.models import BudgetRecord, ExpenseRecord, TransactionType
from spendwise.infrastructure.database.models import (
    Bank,
    Budget,
    Category,
    Expense,
    Insight,
    SavingsAccount,
    SavingsTransaction,
)

# Default category that takes over the expenses of a deleted user category
FALLBACK_CATEGORY_NAME = "Other"


def to_expense_record(expense: Expense) -> ExpenseRecord:
    return ExpenseRecord(
        expense_id=str(expense.id),
        category_id=str(expense.category_id),
        amount=Decimal(expense.amount),
        date=expense.date,
    )


def to_budget_record(budget: Budget) -> BudgetRecord:
    return BudgetRecord(
        budget_id=str(budget.id),
        month=budget.month,
        amount=Decimal(budget.amount),
        category_id=str(budget.category_id) if budget.category_id else None,
    )


class CategoryRepository:
    """Repository for default and user-owned categories"""

    def __init__(self, db: Session):
        self.db = db

    def list_for_user(self, user_id: Optional[str]) -> List[Category]:
        """Default categories followed by the user's own"""
        defaults = self.db.query(Category).filter(Category.is_default.is_(True)).order_by(Category.name).all()
        if not user_id:
            return defaults
        custom = self.db.query(Category).filter(Category.user_id == user_id).order_by(Category.name).all()
        return defaults + custom

    def get_category(self, category_id: uuid.UUID) -> Optional[Category]:
        return self.db.get(Category, category_id)

    def require_visible(self, category_id: uuid.UUID, user_id: str) -> Category:
        """Category usable by the user: a default or one they own"""
        category = self.get_category(category_id)
        if category is None or not (category.is_default or category.user_id == user_id):
            raise NotFoundError("Category", category_id)
        return category

    def require_owned(self, category_id: uuid.UUID, user_id: str) -> Category:
        """Category the user may modify. Defaults are immutable."""
        category = self.get_category(category_id)
        if category is None:
            raise NotFoundError("Category", category_id)
        if category.is_default:
            raise InvariantViolationError("Cannot modify default categories")
        if category.user_id != user_id:
            raise NotFoundError("Category", category_id)
        return category

    def create_category(self, user_id: str, name: str, icon: str, color: str) -> Category:
        category = Category(user_id=user_id, name=name, icon=icon, color=color, is_default=False)
        self.db.add(category)
        self.db.flush()
        return category

    def update_category(self, category: Category, updates: Dict[str, Any]) -> Category:
        for key, value in updates.items():
            setattr(category, key, value)
        self.db.flush()
        return category

    def delete_category(self, category: Category) -> int:
        """
        Delete a user category. Its expenses move to the default fallback
        category and its budgets are dropped. Returns the number of expenses moved.
        """
        fallback = (
            self.db.query(Category)
            .filter(Category.is_default.is_(True), Category.name == FALLBACK_CATEGORY_NAME)
            .first()
        )
        if fallback is None:
            raise InvariantViolationError(f"Default category '{FALLBACK_CATEGORY_NAME}' is missing")

        moved = (
            self.db.query(Expense)
            .filter(Expense.category_id == category.id)
            .update({Expense.category_id: fallback.id}, synchronize_session=False)
        )
        self.db.query(Budget).filter(Budget.category_id == category.id).delete(synchronize_session=False)
        self.db.delete(category)
        self.db.flush()
        return moved


class ExpenseRepository:
    """Repository for expenses and their aggregation inputs"""

    def __init__(self, db: Session):
        self.db = db

    def create_expense(
        self,
        user_id: str,
        category_id: uuid.UUID,
        amount: Decimal,
        description: str,
        date: datetime,
        notes: Optional[str] = None,
        savings_account_id: Optional[uuid.UUID] = None,
        ai_categorized: Optional[bool] = None,
        ai_confidence: Optional[float] = None,
    ) -> Expense:
        """Persist expense without committing"""
        expense = Expense(
            user_id=user_id,
            category_id=category_id,
            amount=amount,
            description=description,
            date=date,
            notes=notes,
            savings_account_id=savings_account_id,
            ai_categorized=ai_categorized,
            ai_confidence=ai_confidence,
        )
        self.db.add(expense)
        self.db.flush()
        return expense

    def get_expense(self, expense_id: uuid.UUID) -> Optional[Expense]:
        return self.db.get(Expense, expense_id)

    def require_expense(self, expense_id: uuid.UUID) -> Expense:
        expense = self.get_expense(expense_id)
        if expense is None:
            raise NotFoundError("Expense", expense_id)
        return expense

    def list_expenses(self, user_id: str, limit: int, cursor: Optional[Expense] = None) -> List[Expense]:
        """Newest first; with a cursor, only expenses strictly after it in that order"""
        query = self.db.query(Expense).filter(Expense.user_id == user_id)
        if cursor is not None:
            query = query.filter(
                or_(
                    Expense.date < cursor.date,
                    and_(Expense.date == cursor.date, Expense.id < cursor.id),
                )
            )
        return query.order_by(Expense.date.desc(), Expense.id.desc()).limit(limit).all()

    def get_expenses_between(self, user_id: str, start: datetime, end: datetime) -> List[Expense]:
        """All expenses with start <= date <= end, oldest first"""
        return (
            self.db.query(Expense)
            .filter(Expense.user_id == user_id, Expense.date >= start, Expense.date <= end)
            .order_by(Expense.date)
            .all()
        )

    def get_expense_records(self, user_id: str, start: datetime, end: datetime) -> List[ExpenseRecord]:
        return [to_expense_record(e) for e in self.get_expenses_between(user_id, start, end)]

    def update_expense(self, expense: Expense, updates: Dict[str, Any]) -> Expense:
        for key, value in updates.items():
            setattr(expense, key, value)
        self.db.flush()
        return expense

    def delete_expense(self, expense: Expense) -> None:
        self.db.delete(expense)
        self.db.flush()


class BudgetRepository:
    """Repository for monthly budgets"""

    def __init__(self, db: Session):
        self.db = db

    def get_by_month(self, user_id: str, month: int) -> List[Budget]:
        return (
            self.db.query(Budget)
            .filter(Budget.user_id == user_id, Budget.month == month)
            .order_by(Budget.created_at)
            .all()
        )

    def get_budget_records(self, user_id: str, month: int) -> List[BudgetRecord]:
        return [to_budget_record(b) for b in self.get_by_month(user_id, month)]

    def find_budget(self, user_id: str, month: int, category_id: Optional[uuid.UUID]) -> Optional[Budget]:
        category_filter = Budget.category_id.is_(None) if category_id is None else Budget.category_id == category_id
        return (
            self.db.query(Budget)
            .filter(Budget.user_id == user_id, Budget.month == month, category_filter)
            .first()
        )

    def upsert_budget(
        self,
        user_id: str,
        month: int,
        amount: Decimal,
        category_id: Optional[uuid.UUID] = None,
    ) -> Budget:
        """At most one budget per (user, month, category): update in place if present"""
        existing = self.find_budget(user_id, month, category_id)
        if existing is not None:
            existing.amount = amount
            self.db.flush()
            return existing

        budget = Budget(user_id=user_id, month=month, amount=amount, category_id=category_id)
        self.db.add(budget)
        try:
            self.db.flush()
        except IntegrityError as e:
            raise InvariantViolationError(f"Budget already exists for month {month}") from e
        return budget

    def require_budget(self, budget_id: uuid.UUID) -> Budget:
        budget = self.db.get(Budget, budget_id)
        if budget is None:
            raise NotFoundError("Budget", budget_id)
        return budget

    def update_amount(self, budget: Budget, amount: Decimal) -> Budget:
        budget.amount = amount
        self.db.flush()
        return budget

    def delete_budget(self, budget: Budget) -> None:
        self.db.delete(budget)
        self.db.flush()


class SavingsRepository:
    """Repository for savings accounts and their append-only ledger"""

    def __init__(self, db: Session):
        self.db = db

    def create_account(
        self,
        user_id: str,
        bank_id: uuid.UUID,
        balance: Decimal,
        account_type: str,
        account_name: Optional[str] = None,
        interest_rate: Optional[float] = None,
        maturity_date: Optional[datetime] = None,
    ) -> SavingsAccount:
        if self.db.get(Bank, bank_id) is None:
            raise NotFoundError("Bank", bank_id)
        account = SavingsAccount(
            user_id=user_id,
            bank_id=bank_id,
            account_name=account_name,
            balance=balance,
            account_type=account_type,
            interest_rate=interest_rate,
            maturity_date=maturity_date,
        )
        self.db.add(account)
        self.db.flush()
        return account

    def require_account(self, account_id: uuid.UUID, user_id: Optional[str] = None, lock: bool = False) -> SavingsAccount:
        """Fetch an account, optionally row-locked for a balance update"""
        query = self.db.query(SavingsAccount).filter(SavingsAccount.id == account_id)
        if lock:
            query = query.with_for_update()
        account = query.first()
        if account is None or (user_id is not None and account.user_id != user_id):
            raise NotFoundError("Savings account", account_id)
        return account

    def list_accounts(self, user_id: str, account_type: Optional[str] = None) -> List[SavingsAccount]:
        query = self.db.query(SavingsAccount).filter(SavingsAccount.user_id == user_id)
        if account_type:
            query = query.filter(SavingsAccount.account_type == account_type)
        return query.order_by(SavingsAccount.created_at).all()

    def update_account(self, account: SavingsAccount, updates: Dict[str, Any]) -> SavingsAccount:
        """Patch account details (name, interest rate, maturity)"""
        for key, value in updates.items():
            setattr(account, key, value)
        self.db.flush()
        return account

    def set_balance(self, account: SavingsAccount, balance: Decimal) -> SavingsAccount:
        """Manual correction: overwrite the stored balance without a ledger entry"""
        account.balance = balance
        self.db.flush()
        return account

    def post_transaction(
        self,
        account: SavingsAccount,
        tx_type: TransactionType,
        amount: Decimal,
        description: str,
        date: datetime,
    ) -> SavingsTransaction:
        """Insert a ledger row and move the stored balance in the same unit of work"""
        account.balance = apply_transaction(Decimal(account.balance), tx_type, amount)
        transaction = SavingsTransaction(
            user_id=account.user_id,
            account_id=account.id,
            type=TransactionType(tx_type).value,
            amount=amount,
            description=description,
            date=date,
        )
        self.db.add(transaction)
        self.db.flush()
        return transaction

    def delete_account(self, account: SavingsAccount) -> int:
        """
        Remove an account with its ledger. Linked expenses keep existing but
        lose the link. Returns the number of ledger rows removed.
        """
        removed = (
            self.db.query(SavingsTransaction)
            .filter(SavingsTransaction.account_id == account.id)
            .delete(synchronize_session=False)
        )
        self.db.query(Expense).filter(Expense.savings_account_id == account.id).update(
            {Expense.savings_account_id: None}, synchronize_session=False
        )
        self.db.delete(account)
        self.db.flush()
        return removed

    def list_transactions(
        self,
        user_id: str,
        account_id: Optional[uuid.UUID] = None,
        limit: int = 20,
    ) -> List[SavingsTransaction]:
        query = self.db.query(SavingsTransaction).filter(SavingsTransaction.user_id == user_id)
        if account_id is not None:
            query = query.filter(SavingsTransaction.account_id == account_id)
        return (
            query.order_by(SavingsTransaction.date.desc(), SavingsTransaction.created_at.desc())
            .limit(limit)
            .all()
        )


class InsightRepository:
    """Repository for the per-user expiring insight cache"""

    def __init__(self, db: Session):
        self.db = db

    def list_active(self, user_id: str, now: datetime, insight_type: Optional[str] = None) -> List[Insight]:
        query = self.db.query(Insight).filter(Insight.user_id == user_id, Insight.expires_at > now)
        if insight_type:
            query = query.filter(Insight.type == insight_type)
        return query.order_by(Insight.created_at).all()

    def _lock_user(self, user_id: str) -> None:
        # Serializes concurrent refreshes for one user until the transaction ends
        if self.db.get_bind().dialect.name == "postgresql":
            self.db.execute(text("SELECT pg_advisory_xact_lock(hashtext(:key))"), {"key": f"insights:{user_id}"})

    def replace_active(
        self,
        user_id: str,
        now: datetime,
        batch: Sequence[Dict[str, Any]],
        expires_at: datetime,
    ) -> List[Insight]:
        """Delete the user's unexpired insights, then insert the fresh batch"""
        self._lock_user(user_id)
        self.db.query(Insight).filter(Insight.user_id == user_id, Insight.expires_at > now).delete(
            synchronize_session=False
        )
        inserted = []
        for item in batch:
            insight = Insight(
                user_id=user_id,
                type=item["type"],
                title=item["title"],
                content=item["content"],
                data=item.get("data"),
                expires_at=expires_at,
            )
            self.db.add(insight)
            inserted.append(insight)
        self.db.flush()
        return inserted

    def delete_expired(self, user_id: str, now: datetime) -> int:
        return (
            self.db.query(Insight)
            .filter(Insight.user_id == user_id, Insight.expires_at <= now)
            .delete(synchronize_session=False)
        )

    def require_insight(self, insight_id: uuid.UUID) -> Insight:
        insight = self.db.get(Insight, insight_id)
        if insight is None:
            raise NotFoundError("Insight", insight_id)
        return insight

    def delete_insight(self, insight: Insight) -> None:
        self.db.delete(insight)
        self.db.flush()


class BankRepository:
    """Repository for the static bank directory"""

    def __init__(self, db: Session):
        self.db = db

    def list_banks(self, bank_type: Optional[str] = None) -> List[Bank]:
        query = self.db.query(Bank)
        if bank_type:
            query = query.filter(Bank.type == bank_type)
        return query.order_by(Bank.name).all()

    def require_bank(self, bank_id: uuid.UUID) -> Bank:
        bank = self.db.get(Bank, bank_id)
        if bank is None:
            raise NotFoundError("Bank", bank_id)
        return bank
