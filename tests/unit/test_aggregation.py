"""Unit tests for expense aggregation and history bucketing"""

from datetime import datetime, timedelta, timezone
from decimal import Decimal
from spendwise.domain.aggregation import aggregate_expenses, build_spending_history, group_expenses_by_day
from spendwise.utils.date_utils import month_window, trailing_month_windows

UTC = timezone.utc


def test_aggregate_single_category(make_record):
    """100 + 200 + 300 in one category"""
    records = [make_record(100), make_record(200), make_record(300)]

    summary = aggregate_expenses(records)

    assert summary.total == Decimal("600")
    assert summary.by_category == {"cat-a": Decimal("600")}
    assert summary.count == 3


def test_aggregate_empty():
    summary = aggregate_expenses([])

    assert summary.total == 0
    assert summary.by_category == {}
    assert summary.count == 0


def test_total_equals_sum_of_categories(make_record):
    records = [
        make_record("12.50", "food"),
        make_record("7.25", "transport"),
        make_record("0.10", "food"),
        make_record("99.99", "bills"),
    ]

    summary = aggregate_expenses(records)

    assert summary.total == sum(summary.by_category.values())
    assert summary.by_category["food"] == Decimal("12.60")


def test_window_bounds_are_inclusive(make_record):
    window = month_window(202403, UTC)
    records = [
        make_record(1, date=window.start),
        make_record(2, date=window.end),
        make_record(4, date=window.start - timedelta(microseconds=1)),
        make_record(8, date=window.end + timedelta(microseconds=1)),
    ]

    summary = aggregate_expenses(records, window)

    assert summary.total == Decimal("3")
    assert summary.count == 2


def test_naive_dates_are_treated_as_utc(make_record):
    """Rows read back from SQLite lose their tzinfo"""
    window = month_window(202403, UTC)
    records = [make_record(5, date=datetime(2024, 3, 31, 23, 0))]

    assert aggregate_expenses(records, window).total == Decimal("5")


def test_history_has_no_gaps(make_record):
    now = datetime(2024, 3, 15, tzinfo=UTC)
    windows = trailing_month_windows(6, now, UTC)
    records = [
        make_record(100, date=datetime(2024, 3, 2, tzinfo=UTC)),
        make_record(50, date=datetime(2023, 12, 31, 23, 59, tzinfo=UTC)),
    ]

    history = build_spending_history(records, windows)

    assert [m.month for m in history] == [202403, 202402, 202401, 202312, 202311, 202310]
    assert [m.total for m in history] == [Decimal("100"), 0, 0, Decimal("50"), 0, 0]
    assert history[1].by_category == {}


def test_history_month_keys_strictly_decreasing(make_record):
    windows = trailing_month_windows(12, datetime(2024, 1, 1, tzinfo=UTC), UTC)
    history = build_spending_history([], windows)

    keys = [m.month for m in history]
    assert len(keys) == 12
    assert all(a > b for a, b in zip(keys, keys[1:]))


def test_group_by_day(make_record):
    records = [
        make_record(10, date=datetime(2024, 3, 1, 9, tzinfo=UTC)),
        make_record(15, date=datetime(2024, 3, 1, 18, tzinfo=UTC)),
        make_record(20, date=datetime(2024, 3, 2, 9, tzinfo=UTC)),
    ]

    days = group_expenses_by_day(records, UTC)

    assert set(days) == {"2024-03-01", "2024-03-02"}
    assert days["2024-03-01"].total == Decimal("25")
    assert days["2024-03-01"].count == 2
    assert len(days["2024-03-02"].expenses) == 1
