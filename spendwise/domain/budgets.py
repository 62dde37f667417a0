"""Budget status evaluation - spend against overall and per-category budgets"""

from decimal import Decimal
from typing import List, Optional, Sequence

from spendwise.domain.models import BudgetProgress, BudgetRecord, BudgetStatus, SpendingSummary


def percentage_used(spent: Decimal, amount: Decimal) -> float:
    """
    Share of the budget consumed, as a percentage clamped to 100.

    Zero or negative budgets report 0% so callers never see NaN or inf.
    """
    if amount <= 0:
        return 0.0
    ratio = min(spent / amount, Decimal("1"))
    return round(float(ratio) * 100, 2)


def is_over_budget(spent: Decimal, amount: Decimal) -> bool:
    return spent > amount


def measure_budget(budget: BudgetRecord, spent: Decimal) -> BudgetProgress:
    """Compare spend against a single budget"""
    return BudgetProgress(
        budget=budget,
        spent=spent,
        remaining=budget.amount - spent,
        percentage_used=percentage_used(spent, budget.amount),
        over_budget=is_over_budget(spent, budget.amount),
        over_by=max(spent - budget.amount, Decimal("0")),
    )


def evaluate_budget_status(
    budgets: Sequence[BudgetRecord],
    summary: SpendingSummary,
    month: int,
) -> BudgetStatus:
    """
    Combine a month's budgets with that month's spending summary.

    Budgets split into at most one overall budget (no category) and any
    number of category budgets. Category spend defaults to 0 when the
    category had no expenses. total_spent always covers the whole month,
    whether or not an overall budget exists.
    """
    overall: Optional[BudgetProgress] = None
    category_budgets: List[BudgetProgress] = []

    for budget in budgets:
        if budget.category_id is None:
            if overall is None:
                overall = measure_budget(budget, summary.total)
            continue
        spent = summary.by_category.get(budget.category_id, Decimal("0"))
        category_budgets.append(measure_budget(budget, spent))

    return BudgetStatus(
        month=month,
        total_spent=summary.total,
        overall_budget=overall,
        category_budgets=category_budgets,
    )
