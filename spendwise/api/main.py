"""FastAPI application factory"""

from fastapi import FastAPI
from prometheus_client import generate_latest, CONTENT_TYPE_LATEST
from starlette.responses import Response

from spendwise.api.middleware import RequestIDMiddleware, MetricsMiddleware
from spendwise.api.v1 import banks, budgets, categories, expenses, forecast, insights, savings, spending
from spendwise.infrastructure.observability.logging import setup_logging
from spendwise.config import settings

setup_logging(settings.log_level)

V1_ROUTERS = {
    "categories": categories.router,
    "expenses": expenses.router,
    "spending": spending.router,
    "budgets": budgets.router,
    "forecast": forecast.router,
    "savings": savings.router,
    "banks": banks.router,
    "insights": insights.router,
}


def create_app() -> FastAPI:
    """Build the spendwise API with tracing/metrics middleware and all v1 routers"""
    app = FastAPI(
        title="Spendwise",
        description="Expense aggregation, budget tracking, forecasting and savings ledger service",
        version="0.1.0",
    )

    # Last added runs first: request id is set before metrics are timed
    app.add_middleware(MetricsMiddleware)
    app.add_middleware(RequestIDMiddleware)

    @app.get("/health")
    def health_check():
        return {"status": "ok", "service": settings.service_name}

    @app.get("/metrics")
    def metrics():
        return Response(content=generate_latest(), media_type=CONTENT_TYPE_LATEST)

    for tag, router in V1_ROUTERS.items():
        app.include_router(router, prefix="/v1", tags=[tag])

    return app


app = create_app()
