"""Pydantic schemas for API request/response validation"""

from datetime import datetime
from decimal import Decimal
from typing import Any, Dict, List, Literal, Optional

from pydantic import BaseModel, Field

TransactionTypeLiteral = Literal["deposit", "withdrawal", "interest"]
AccountTypeLiteral = Literal["savings", "time_deposit"]
InsightTypeLiteral = Literal["spending_pattern", "budget_prediction", "anomaly", "saving_tip"]
BankTypeLiteral = Literal["bank", "digital_bank", "e_wallet"]


# Categories

class CategoryCreate(BaseModel):
    """Request body for POST /v1/categories"""

    user_id: str = Field(..., min_length=1, description="User identifier")
    name: str = Field(..., min_length=1)
    icon: str = Field(..., min_length=1)
    color: str = Field(..., min_length=1)


class CategoryUpdate(BaseModel):
    """Request body for PATCH /v1/categories/{category_id}"""

    user_id: str = Field(..., min_length=1)
    name: Optional[str] = Field(None, min_length=1)
    icon: Optional[str] = Field(None, min_length=1)
    color: Optional[str] = Field(None, min_length=1)


class CategoryResponse(BaseModel):
    id: str
    name: str
    icon: str
    color: str
    is_default: bool
    user_id: Optional[str] = None


# Expenses

class ExpenseCreate(BaseModel):
    """Request body for POST /v1/expenses"""

    user_id: str = Field(..., min_length=1, description="User identifier")
    category_id: str
    amount: Decimal = Field(..., gt=0, max_digits=14, decimal_places=2, description="Amount spent")
    description: str = Field(..., min_length=1)
    date: datetime
    notes: Optional[str] = None
    savings_account_id: Optional[str] = Field(None, description="Account the expense is paid from")
    ai_categorized: Optional[bool] = None
    ai_confidence: Optional[float] = Field(None, ge=0, le=1)


class ExpenseUpdate(BaseModel):
    """Request body for PATCH /v1/expenses/{expense_id}"""

    category_id: Optional[str] = None
    amount: Optional[Decimal] = Field(None, gt=0, max_digits=14, decimal_places=2)
    description: Optional[str] = Field(None, min_length=1)
    date: Optional[datetime] = None
    notes: Optional[str] = None


class ExpenseResponse(BaseModel):
    id: str
    user_id: str
    category_id: str
    amount: float
    description: str
    date: datetime
    notes: Optional[str] = None
    savings_account_id: Optional[str] = None
    ai_categorized: Optional[bool] = None
    ai_confidence: Optional[float] = None


class ExpensePage(BaseModel):
    """Response for GET /v1/expenses"""

    items: List[ExpenseResponse]
    has_more: bool
    next_cursor: Optional[str] = None


class DayExpenses(BaseModel):
    total: float
    count: int
    expenses: List[str]  # expense ids


class ExpenseCalendarResponse(BaseModel):
    """Response for GET /v1/expenses/calendar"""

    month: int
    total: float
    by_day: Dict[str, DayExpenses]
    expenses: List[ExpenseResponse]


# Spending

class MonthlySpendingResponse(BaseModel):
    """Response for GET /v1/spending/monthly"""

    month: int
    total: float
    by_category: Dict[str, float]
    expense_count: int


class HistoryEntry(BaseModel):
    month: int
    total: float
    by_category: Dict[str, float]


class SpendingHistoryResponse(BaseModel):
    """Response for GET /v1/spending/history"""

    user_id: str
    months: List[HistoryEntry]


# Budgets

class BudgetCreate(BaseModel):
    """Request body for POST /v1/budgets"""

    user_id: str = Field(..., min_length=1)
    category_id: Optional[str] = Field(None, description="Omit for the overall budget")
    amount: Decimal = Field(..., ge=0, max_digits=14, decimal_places=2)
    month: int = Field(..., description="YYYYMM, e.g. 202402")


class BudgetUpdate(BaseModel):
    """Request body for PATCH /v1/budgets/{budget_id}"""

    amount: Decimal = Field(..., ge=0, max_digits=14, decimal_places=2)


class BudgetResponse(BaseModel):
    id: str
    user_id: str
    category_id: Optional[str] = None
    amount: float
    month: int


class BudgetProgressResponse(BaseModel):
    budget: BudgetResponse
    spent: float
    remaining: float
    percentage_used: float
    over_budget: bool
    over_by: float


class BudgetStatusResponse(BaseModel):
    """Response for GET /v1/budgets/status"""

    month: int
    total_spent: float
    overall_budget: Optional[BudgetProgressResponse] = None
    category_budgets: List[BudgetProgressResponse]


class ForecastResponse(BaseModel):
    """Response for GET /v1/forecast"""

    predicted_amount: float
    confidence: float
    trend: Literal["increasing", "decreasing", "stable"]
    data_points: int


# Savings

class AccountCreate(BaseModel):
    """Request body for POST /v1/savings/accounts"""

    user_id: str = Field(..., min_length=1)
    bank_id: str
    account_name: Optional[str] = None
    balance: Decimal = Field(Decimal("0"), max_digits=14, decimal_places=2)
    account_type: AccountTypeLiteral = "savings"
    interest_rate: Optional[float] = Field(None, ge=0)
    maturity_date: Optional[datetime] = None


class AccountUpdate(BaseModel):
    """Request body for PATCH /v1/savings/accounts/{account_id}"""

    user_id: str = Field(..., min_length=1)
    account_name: Optional[str] = None
    balance: Optional[Decimal] = Field(None, max_digits=14, decimal_places=2, description="Manual balance override")
    interest_rate: Optional[float] = Field(None, ge=0)
    maturity_date: Optional[datetime] = None


class AccountResponse(BaseModel):
    id: str
    user_id: str
    bank_id: str
    account_name: Optional[str] = None
    balance: float
    account_type: AccountTypeLiteral
    interest_rate: Optional[float] = None
    maturity_date: Optional[datetime] = None


class SavingsSummaryResponse(BaseModel):
    """Response for GET /v1/savings/summary"""

    total: float
    savings_total: float
    time_deposit_total: float
    account_count: int


class TransactionCreate(BaseModel):
    """Request body for POST /v1/savings/transactions"""

    user_id: str = Field(..., min_length=1)
    account_id: str
    type: TransactionTypeLiteral
    amount: Decimal = Field(..., gt=0, max_digits=14, decimal_places=2)
    description: str = ""
    date: datetime


class TransactionPosted(BaseModel):
    """Response for POST /v1/savings/transactions"""

    transaction_id: str
    account_id: str
    balance: float


class TransactionResponse(BaseModel):
    id: str
    account_id: str
    type: TransactionTypeLiteral
    amount: float
    description: str
    date: datetime


# Banks

class BankResponse(BaseModel):
    id: str
    name: str
    short_name: str
    color: str
    interest_rate: Optional[str] = None
    type: BankTypeLiteral


# Insights

class InsightRefreshRequest(BaseModel):
    """Request body for POST /v1/insights/refresh"""

    user_id: str = Field(..., min_length=1)


class InsightResponse(BaseModel):
    id: str
    type: InsightTypeLiteral
    title: str
    content: str
    data: Optional[Any] = None
    expires_at: datetime


class InsightListResponse(BaseModel):
    user_id: str
    insights: List[InsightResponse]


class ClearedResponse(BaseModel):
    removed: int
