"""Prometheus metrics for spending activity, ledger postings and insight service health"""

from prometheus_client import Counter, Histogram

# Expense metrics
expense_counter = Counter(
    "spendwise_expense_total",
    "Expenses recorded",
    ["source"],  # cash | savings_account
)

# Ledger metrics
savings_transaction_counter = Counter(
    "spendwise_savings_transaction_total",
    "Savings ledger entries posted",
    ["type"],  # deposit | withdrawal | interest
)

# Forecast metrics
forecast_counter = Counter(
    "spendwise_forecast_total",
    "Budget forecasts computed",
    ["trend"],  # increasing | decreasing | stable
)

# Insight service metrics
insight_latency_histogram = Histogram(
    "insight_service_latency_seconds",
    "Insight service response time",
    buckets=[0.25, 0.5, 1.0, 2.5, 5.0, 10.0, 30.0],
)

insight_failure_counter = Counter(
    "insight_service_failures_total",
    "Failed insight service calls",
)

# Service health
request_duration_histogram = Histogram(
    "http_request_duration_seconds",
    "HTTP request latency",
    ["method", "endpoint", "status"],
)


def record_expense(linked: bool) -> None:
    """Count an expense by payment source"""
    expense_counter.labels(source="savings_account" if linked else "cash").inc()


def record_savings_transaction(tx_type: str) -> None:
    savings_transaction_counter.labels(type=tx_type).inc()


def record_forecast(trend: str) -> None:
    forecast_counter.labels(trend=trend).inc()
