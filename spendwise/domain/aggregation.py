"""Expense aggregation - monthly totals, category breakdowns and trend series"""

from collections import defaultdict
from datetime import tzinfo
from decimal import Decimal
from typing import Dict, Iterable, List, Optional, Sequence, Tuple

from spendwise.domain.models import (
    DaySummary,
    ExpenseRecord,
    MonthlySpending,
    SpendingSummary,
    TimeWindow,
)
from spendwise.utils.date_utils import as_utc


def aggregate_expenses(
    records: Iterable[ExpenseRecord],
    window: Optional[TimeWindow] = None,
) -> SpendingSummary:
    """
    Roll expense records up into total, per-category spend and count.

    If a window is given, only records inside it (both bounds inclusive)
    are counted. No records yields a zero summary, never an error.
    """
    by_category: Dict[str, Decimal] = defaultdict(Decimal)
    total = Decimal("0")
    count = 0

    for record in records:
        if window is not None and not window.contains(as_utc(record.date)):
            continue
        by_category[record.category_id] += record.amount
        total += record.amount
        count += 1

    return SpendingSummary(total=total, by_category=dict(by_category), count=count)


def build_spending_history(
    records: Sequence[ExpenseRecord],
    windows: Sequence[Tuple[int, TimeWindow]],
) -> List[MonthlySpending]:
    """
    Bucket records into one MonthlySpending per window, keeping window order.

    Months without expenses produce zero-valued entries so the series has
    no gaps.
    """
    history = []
    for key, window in windows:
        summary = aggregate_expenses(records, window)
        history.append(MonthlySpending(month=key, total=summary.total, by_category=summary.by_category))
    return history


def group_expenses_by_day(records: Iterable[ExpenseRecord], tz: tzinfo) -> Dict[str, DaySummary]:
    """Group expenses by local calendar day ("YYYY-MM-DD")"""
    days: Dict[str, DaySummary] = {}
    for record in records:
        day_key = as_utc(record.date).astimezone(tz).strftime("%Y-%m-%d")
        day = days.setdefault(day_key, DaySummary())
        day.total += record.amount
        day.count += 1
        day.expenses.append(record)
    return days
