"""Domain models - pure Python dataclasses representing business entities"""

from dataclasses import dataclass, field
from datetime import datetime
from decimal import Decimal
from enum import Enum
from typing import Dict, List, Optional


class TransactionType(str, Enum):
    DEPOSIT = "deposit"
    WITHDRAWAL = "withdrawal"
    INTEREST = "interest"


class AccountType(str, Enum):
    SAVINGS = "savings"
    TIME_DEPOSIT = "time_deposit"


class InsightType(str, Enum):
    SPENDING_PATTERN = "spending_pattern"
    BUDGET_PREDICTION = "budget_prediction"
    ANOMALY = "anomaly"
    SAVING_TIP = "saving_tip"


class Trend(str, Enum):
    INCREASING = "increasing"
    DECREASING = "decreasing"
    STABLE = "stable"


@dataclass(frozen=True)
class TimeWindow:
    """Inclusive [start, end] range of instants"""

    start: datetime
    end: datetime

    def contains(self, instant: datetime) -> bool:
        return self.start <= instant <= self.end


@dataclass
class ExpenseRecord:
    """Expense as seen by the aggregation engine"""

    expense_id: str
    category_id: str
    amount: Decimal
    date: datetime  # UTC instant


@dataclass
class SpendingSummary:
    """Aggregated spend over one time window"""

    total: Decimal = Decimal("0")
    by_category: Dict[str, Decimal] = field(default_factory=dict)
    count: int = 0


@dataclass
class DaySummary:
    """Spend for a single local calendar day"""

    total: Decimal = Decimal("0")
    count: int = 0
    expenses: List[ExpenseRecord] = field(default_factory=list)


@dataclass
class MonthlySpending:
    """One entry of a spending history series"""

    month: int  # YYYYMM
    total: Decimal
    by_category: Dict[str, Decimal]


@dataclass
class BudgetRecord:
    """Configured spending target for a month"""

    budget_id: str
    month: int
    amount: Decimal
    category_id: Optional[str] = None  # None = overall budget


@dataclass
class BudgetProgress:
    """Spend measured against one budget"""

    budget: BudgetRecord
    spent: Decimal
    remaining: Decimal
    percentage_used: float
    over_budget: bool
    over_by: Decimal


@dataclass
class BudgetStatus:
    """Current month budget picture for a user"""

    month: int
    total_spent: Decimal
    overall_budget: Optional[BudgetProgress]
    category_budgets: List[BudgetProgress]


@dataclass
class Forecast:
    """Next-period spending prediction"""

    predicted_amount: float
    confidence: float
    trend: Trend
    data_points: int = 0
