"""Budget forecasting engine - weighted moving average with variance-based confidence"""

import math
from typing import List, Optional, Sequence

from spendwise.domain.models import Forecast, MonthlySpending, Trend

# Most recent month first
FORECAST_WEIGHTS = [0.30, 0.25, 0.20, 0.15, 0.07, 0.03]

TREND_UP_FACTOR = 1.1
TREND_DOWN_FACTOR = 0.9


def extract_series(history: Sequence[MonthlySpending], category_id: Optional[str] = None) -> List[float]:
    """Pick the monthly scalar to forecast: a category sub-total or the overall total"""
    if category_id is not None:
        return [float(month.by_category.get(category_id, 0)) for month in history]
    return [float(month.total) for month in history]


def non_zero_months(values: Sequence[float]) -> List[float]:
    """Drop months without spend; a zero month means missing data, not zero spending"""
    return [v for v in values if v > 0]


def round_half_up(value: float, places: int = 2) -> float:
    """Round with ties going up (0.625 -> 0.63), unlike round() which rounds ties to even"""
    factor = 10 ** places
    return math.floor(value * factor + 0.5) / factor


def _mean(values: Sequence[float]) -> float:
    return sum(values) / len(values) if values else 0.0


def classify_trend(values: Sequence[float]) -> Trend:
    """
    Compare the two most recent data points against the two oldest.

    values must be most-recent-first. With fewer than two points the
    available ones are averaged, so a single point is always stable.
    """
    if not values:
        return Trend.STABLE

    recent_avg = _mean(values[:2])
    older_avg = _mean(values[-2:])

    if recent_avg > older_avg * TREND_UP_FACTOR:
        return Trend.INCREASING
    if recent_avg < older_avg * TREND_DOWN_FACTOR:
        return Trend.DECREASING
    return Trend.STABLE


def weighted_moving_average(values: Sequence[float], weights: Sequence[float] = FORECAST_WEIGHTS) -> float:
    """
    Weighted mean of up to len(weights) most recent values.

    Weights are truncated to the number of data points and re-normalized,
    so short series still produce a proper weighted mean.
    """
    used = list(zip(values, weights))
    total_weight = sum(w for _, w in used)
    if total_weight == 0:
        return 0.0
    return sum(v * w for v, w in used) / total_weight


def confidence_score(values: Sequence[float]) -> float:
    """
    1 - coefficient of variation, clamped to [0, 1].

    Uses the population standard deviation. A zero mean gives a
    coefficient of 0.
    """
    if not values:
        return 0.0
    mean = _mean(values)
    variance = sum((v - mean) ** 2 for v in values) / len(values)
    std_dev = math.sqrt(variance)
    coeff_of_variation = std_dev / mean if mean > 0 else 0.0
    return max(0.0, min(1.0, 1 - coeff_of_variation))


def predict_next_period(history: Sequence[MonthlySpending], category_id: Optional[str] = None) -> Forecast:
    """
    Main entry point: project next month's spend from a trend series.

    history is most-recent-first. Returns a neutral (0, 0, stable) forecast
    when there is no non-zero month to learn from.
    """
    values = non_zero_months(extract_series(history, category_id))

    if not values:
        return Forecast(predicted_amount=0.0, confidence=0.0, trend=Trend.STABLE, data_points=0)

    return Forecast(
        predicted_amount=round_half_up(weighted_moving_average(values)),
        confidence=round_half_up(confidence_score(values)),
        trend=classify_trend(values),
        data_points=len(values),
    )
