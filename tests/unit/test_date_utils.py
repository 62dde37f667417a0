"""Unit tests for month keys and time windows"""

import pytest
from datetime import datetime, timedelta, timezone
from zoneinfo import ZoneInfo
from spendwise.utils.date_utils import (
    month_key,
    month_window,
    parse_month_key,
    shift_month,
    to_utc,
    trailing_month_windows,
)

UTC = timezone.utc


def test_parse_month_key():
    assert parse_month_key(202402) == (2024, 2)
    assert month_key(2024, 2) == 202402


@pytest.mark.parametrize("key", [202400, 202413, 2024, 99])
def test_parse_month_key_rejects_invalid_month(key):
    with pytest.raises(ValueError):
        parse_month_key(key)


def test_month_window_leap_february():
    """February 2024 has 29 days"""
    window = month_window(202402, UTC)

    assert window.start == datetime(2024, 2, 1, tzinfo=UTC)
    assert window.end == datetime(2024, 2, 29, 23, 59, 59, 999999, tzinfo=UTC)


def test_month_window_common_february():
    assert month_window(202302, UTC).end.day == 28


def test_month_window_december():
    window = month_window(202312, UTC)

    assert window.start == datetime(2023, 12, 1, tzinfo=UTC)
    assert window.end == datetime(2023, 12, 31, 23, 59, 59, 999999, tzinfo=UTC)


def test_month_windows_are_contiguous():
    """End of one month is immediately followed by the start of the next"""
    january = month_window(202401, UTC)
    february = month_window(202402, UTC)

    assert february.start - january.end == timedelta(microseconds=1)


def test_month_window_bounds_inclusive():
    window = month_window(202403, UTC)

    assert window.contains(window.start)
    assert window.contains(window.end)
    assert not window.contains(window.end + timedelta(microseconds=1))


def test_shift_month_rolls_year():
    assert shift_month(2024, 1, -1) == (2023, 12)
    assert shift_month(2023, 12, 1) == (2024, 1)
    assert shift_month(2024, 3, -14) == (2023, 1)


def test_trailing_month_windows_cross_year():
    reference = datetime(2024, 2, 10, tzinfo=UTC)
    windows = trailing_month_windows(4, reference, UTC)

    assert [key for key, _ in windows] == [202402, 202401, 202312, 202311]


def test_trailing_month_windows_use_local_month():
    """Late evening UTC on the 31st is already next month in Manila"""
    manila = ZoneInfo("Asia/Manila")
    reference = datetime(2024, 1, 31, 20, 0, tzinfo=UTC)

    windows = trailing_month_windows(1, reference, manila)

    assert windows[0][0] == 202402


def test_to_utc_reads_naive_as_local():
    manila = ZoneInfo("Asia/Manila")
    result = to_utc(datetime(2024, 3, 1, 8, 0), manila)

    assert result == datetime(2024, 3, 1, 0, 0, tzinfo=UTC)
