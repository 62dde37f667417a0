"""Integration tests for spending, budget, forecast and category endpoints"""

from decimal import Decimal
from unittest.mock import patch

import pytest
from fastapi.testclient import TestClient
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from spendwise.infrastructure.database.models import Budget

pytestmark = pytest.mark.integration

USER = "user_a"


def add_expense(client: TestClient, category_id: str, amount, date: str, user_id: str = USER, **extra):
    response = client.post(
        "/v1/expenses",
        json={
            "user_id": user_id,
            "category_id": category_id,
            "amount": amount,
            "description": extra.pop("description", "Test expense"),
            "date": date,
            **extra,
        },
    )
    assert response.status_code == 201, response.text
    return response.json()


def test_health_endpoint(client: TestClient):
    response = client.get("/health")
    assert response.status_code == 200
    assert response.json()["status"] == "ok"


def test_metrics_endpoint(client: TestClient, categories):
    add_expense(client, categories["Groceries"], 10, "2024-03-02T10:00:00Z")

    response = client.get("/metrics")
    assert response.status_code == 200
    assert "spendwise_expense_total" in response.text


def test_request_id_header(client: TestClient):
    response = client.get("/health", headers={"X-Request-ID": "req-123"})
    assert response.headers["X-Request-ID"] == "req-123"


def test_monthly_spending_scenario(client: TestClient, categories):
    """100, 200, 300 in one category within a month"""
    groceries = categories["Groceries"]
    for amount in (100, 200, 300):
        add_expense(client, groceries, amount, "2024-03-05T10:00:00Z")

    response = client.get("/v1/spending/monthly", params={"user_id": USER, "month": 202403})

    assert response.status_code == 200
    data = response.json()
    assert data["total"] == 600
    assert data["by_category"] == {groceries: 600}
    assert data["expense_count"] == 3


def test_monthly_spending_boundaries(client: TestClient, categories):
    food = categories["Food & Dining"]
    add_expense(client, food, 1, "2024-03-01T00:00:00Z")
    add_expense(client, food, 2, "2024-03-31T23:59:59.999999Z")
    add_expense(client, food, 4, "2024-04-01T00:00:00Z")
    add_expense(client, food, 8, "2024-02-29T23:59:59Z")

    march = client.get("/v1/spending/monthly", params={"user_id": USER, "month": 202403}).json()
    february = client.get("/v1/spending/monthly", params={"user_id": USER, "month": 202402}).json()

    assert march["total"] == 3
    assert march["expense_count"] == 2
    assert february["total"] == 8


def test_monthly_spending_empty_month(client: TestClient):
    data = client.get("/v1/spending/monthly", params={"user_id": USER, "month": 202001}).json()

    assert data == {"month": 202001, "total": 0, "by_category": {}, "expense_count": 0}


def test_monthly_spending_invalid_month(client: TestClient):
    response = client.get("/v1/spending/monthly", params={"user_id": USER, "month": 202413})
    assert response.status_code == 422


def test_monthly_spending_is_per_user(client: TestClient, categories):
    add_expense(client, categories["Travel"], 500, "2024-03-05T10:00:00Z", user_id="someone_else")

    data = client.get("/v1/spending/monthly", params={"user_id": USER, "month": 202403}).json()
    assert data["total"] == 0


def test_spending_history_has_no_gaps(client: TestClient, categories):
    add_expense(client, categories["Shopping"], 75, "2024-01-20T10:00:00Z")

    response = client.get("/v1/spending/history", params={"user_id": USER, "months": 6})

    assert response.status_code == 200
    months = response.json()["months"]
    assert [m["month"] for m in months] == [202403, 202402, 202401, 202312, 202311, 202310]
    assert [m["total"] for m in months] == [0, 0, 75, 0, 0, 0]


def test_spending_history_default_length(client: TestClient):
    months = client.get("/v1/spending/history", params={"user_id": USER}).json()["months"]
    assert len(months) == 6


def test_budget_status_over_budget(client: TestClient, categories):
    """Budget 500, spent 600"""
    add_expense(client, categories["Groceries"], 600, "2024-03-10T10:00:00Z")
    client.post("/v1/budgets", json={"user_id": USER, "amount": 500, "month": 202403})

    data = client.get("/v1/budgets/status", params={"user_id": USER}).json()

    assert data["month"] == 202403
    assert data["total_spent"] == 600
    overall = data["overall_budget"]
    assert overall["over_budget"] is True
    assert overall["over_by"] == 100
    assert overall["percentage_used"] == 100
    assert overall["remaining"] == -100


def test_budget_status_without_overall_budget(client: TestClient, categories):
    groceries, travel = categories["Groceries"], categories["Travel"]
    add_expense(client, groceries, 120, "2024-03-03T10:00:00Z")
    add_expense(client, travel, 80, "2024-03-04T10:00:00Z")
    client.post("/v1/budgets", json={"user_id": USER, "category_id": groceries, "amount": 200, "month": 202403})
    client.post("/v1/budgets", json={"user_id": USER, "category_id": categories["Healthcare"], "amount": 50, "month": 202403})

    data = client.get("/v1/budgets/status", params={"user_id": USER}).json()

    assert data["overall_budget"] is None
    assert data["total_spent"] == 200
    spent = {b["budget"]["category_id"]: b["spent"] for b in data["category_budgets"]}
    assert spent == {groceries: 120, categories["Healthcare"]: 0}


def test_budget_status_ignores_other_months(client: TestClient, categories):
    add_expense(client, categories["Groceries"], 999, "2024-02-10T10:00:00Z")
    client.post("/v1/budgets", json={"user_id": USER, "amount": 100, "month": 202402})

    data = client.get("/v1/budgets/status", params={"user_id": USER}).json()

    assert data["total_spent"] == 0
    assert data["overall_budget"] is None


def test_zero_budget_reports_zero_percent(client: TestClient, categories):
    add_expense(client, categories["Groceries"], 40, "2024-03-10T10:00:00Z")
    client.post("/v1/budgets", json={"user_id": USER, "amount": 0, "month": 202403})

    overall = client.get("/v1/budgets/status", params={"user_id": USER}).json()["overall_budget"]

    assert overall["percentage_used"] == 0
    assert overall["over_budget"] is True


def test_create_budget_twice_updates_existing(client: TestClient, categories):
    body = {"user_id": USER, "category_id": categories["Groceries"], "amount": 300, "month": 202403}
    first = client.post("/v1/budgets", json=body).json()
    second = client.post("/v1/budgets", json={**body, "amount": 450}).json()

    assert first["id"] == second["id"]
    budgets = client.get("/v1/budgets", params={"user_id": USER, "month": 202403}).json()
    assert len(budgets) == 1
    assert budgets[0]["amount"] == 450


def test_overall_budget_upsert(client: TestClient):
    first = client.post("/v1/budgets", json={"user_id": USER, "amount": 1000, "month": 202403}).json()
    second = client.post("/v1/budgets", json={"user_id": USER, "amount": 1200, "month": 202403}).json()

    assert first["id"] == second["id"]
    assert second["amount"] == 1200


def test_database_rejects_second_overall_budget(db: Session):
    db.add(Budget(user_id=USER, month=202403, amount=Decimal("100")))
    db.add(Budget(user_id=USER, month=202403, amount=Decimal("200")))

    with pytest.raises(IntegrityError):
        db.flush()
    db.rollback()


@patch("spendwise.infrastructure.database.repositories.BudgetRepository.find_budget", return_value=None)
def test_racing_overall_budget_insert_conflicts(mock_find, client: TestClient, db: Session):
    """Both requests miss the existing row, as two concurrent inserts would"""
    first = client.post("/v1/budgets", json={"user_id": USER, "amount": 1000, "month": 202403})
    second = client.post("/v1/budgets", json={"user_id": USER, "amount": 1200, "month": 202403})

    assert first.status_code == 200
    assert second.status_code == 409
    assert db.query(Budget).filter(Budget.user_id == USER).count() == 1


def test_budget_invalid_month(client: TestClient):
    response = client.post("/v1/budgets", json={"user_id": USER, "amount": 10, "month": 202400})
    assert response.status_code == 422


def test_update_and_delete_budget(client: TestClient):
    budget = client.post("/v1/budgets", json={"user_id": USER, "amount": 100, "month": 202403}).json()

    updated = client.patch(f"/v1/budgets/{budget['id']}", json={"amount": 150})
    assert updated.status_code == 200
    assert updated.json()["amount"] == 150

    assert client.delete(f"/v1/budgets/{budget['id']}").status_code == 204
    assert client.patch(f"/v1/budgets/{budget['id']}", json={"amount": 1}).status_code == 404


def test_forecast_scenario(client: TestClient, categories):
    """History [0, 0, 100, 200, 150, 300] ending March 2024"""
    groceries = categories["Groceries"]
    add_expense(client, groceries, 100, "2024-01-15T10:00:00Z")
    add_expense(client, groceries, 200, "2023-12-15T10:00:00Z")
    add_expense(client, groceries, 150, "2023-11-15T10:00:00Z")
    add_expense(client, groceries, 300, "2023-10-15T10:00:00Z")

    response = client.get("/v1/forecast", params={"user_id": USER})

    assert response.status_code == 200
    data = response.json()
    assert data["predicted_amount"] == pytest.approx(172.22)
    assert data["trend"] == "decreasing"
    assert data["data_points"] == 4
    assert 0 <= data["confidence"] <= 1


def test_forecast_by_category(client: TestClient, categories):
    groceries, travel = categories["Groceries"], categories["Travel"]
    add_expense(client, groceries, 100, "2024-03-01T10:00:00Z")
    add_expense(client, travel, 900, "2024-03-02T10:00:00Z")
    add_expense(client, groceries, 100, "2024-02-01T10:00:00Z")

    data = client.get("/v1/forecast", params={"user_id": USER, "category_id": groceries}).json()

    assert data["predicted_amount"] == 100
    assert data["confidence"] == 1
    assert data["trend"] == "stable"


def test_forecast_without_history(client: TestClient):
    data = client.get("/v1/forecast", params={"user_id": "brand_new"}).json()

    assert data == {"predicted_amount": 0, "confidence": 0, "trend": "stable", "data_points": 0}


def test_categories_list_defaults_and_custom(client: TestClient):
    created = client.post(
        "/v1/categories", json={"user_id": USER, "name": "Pets", "icon": "pawprint", "color": "#123456"}
    )
    assert created.status_code == 201

    mine = client.get("/v1/categories", params={"user_id": USER}).json()
    theirs = client.get("/v1/categories", params={"user_id": "other"}).json()

    assert len(mine) == 13
    assert len(theirs) == 12
    assert any(c["name"] == "Pets" and not c["is_default"] for c in mine)


def test_default_category_is_immutable(client: TestClient, categories):
    category_id = categories["Other"]

    patch = client.patch(f"/v1/categories/{category_id}", json={"user_id": USER, "name": "Misc"})
    delete = client.delete(f"/v1/categories/{category_id}", params={"user_id": USER})

    assert patch.status_code == 409
    assert delete.status_code == 409


def test_user_category_update_and_delete(client: TestClient):
    category = client.post(
        "/v1/categories", json={"user_id": USER, "name": "Pets", "icon": "pawprint", "color": "#123456"}
    ).json()

    renamed = client.patch(f"/v1/categories/{category['id']}", json={"user_id": USER, "name": "Pet care"})
    assert renamed.json()["name"] == "Pet care"

    stranger = client.delete(f"/v1/categories/{category['id']}", params={"user_id": "other"})
    assert stranger.status_code == 404

    assert client.delete(f"/v1/categories/{category['id']}", params={"user_id": USER}).status_code == 204


def test_deleting_category_moves_expenses_to_other(client: TestClient, categories):
    category = client.post(
        "/v1/categories", json={"user_id": USER, "name": "Pets", "icon": "pawprint", "color": "#123456"}
    ).json()
    expense = add_expense(client, category["id"], 45, "2024-03-06T10:00:00Z", description="Dog food")
    client.post("/v1/budgets", json={"user_id": USER, "category_id": category["id"], "amount": 100, "month": 202403})

    response = client.delete(f"/v1/categories/{category['id']}", params={"user_id": USER})

    assert response.status_code == 204
    moved = client.get(f"/v1/expenses/{expense['id']}").json()
    assert moved["category_id"] == categories["Other"]
    assert client.get("/v1/budgets", params={"user_id": USER, "month": 202403}).json() == []
    monthly = client.get("/v1/spending/monthly", params={"user_id": USER, "month": 202403}).json()
    assert monthly["by_category"] == {categories["Other"]: 45}


def test_expense_with_unknown_category(client: TestClient):
    response = client.post(
        "/v1/expenses",
        json={
            "user_id": USER,
            "category_id": "00000000-0000-0000-0000-000000000000",
            "amount": 10,
            "description": "Lunch",
            "date": "2024-03-05T10:00:00Z",
        },
    )
    assert response.status_code == 404


def test_expense_rejects_non_positive_amount(client: TestClient, categories):
    response = client.post(
        "/v1/expenses",
        json={
            "user_id": USER,
            "category_id": categories["Groceries"],
            "amount": 0,
            "description": "Nothing",
            "date": "2024-03-05T10:00:00Z",
        },
    )
    assert response.status_code == 422


def test_expense_invalid_id(client: TestClient):
    assert client.get("/v1/expenses/not-a-uuid").status_code == 400


def test_expense_pagination(client: TestClient, categories):
    for day in (1, 2, 3):
        add_expense(client, categories["Groceries"], day, f"2024-03-0{day}T10:00:00Z")

    first = client.get("/v1/expenses", params={"user_id": USER, "limit": 2}).json()
    assert [e["amount"] for e in first["items"]] == [3, 2]
    assert first["has_more"] is True

    second = client.get("/v1/expenses", params={"user_id": USER, "limit": 2, "cursor": first["next_cursor"]}).json()
    assert [e["amount"] for e in second["items"]] == [1]
    assert second["has_more"] is False
    assert second["next_cursor"] is None


def test_expense_update_and_delete(client: TestClient, categories):
    expense = add_expense(client, categories["Groceries"], 50, "2024-03-05T10:00:00Z")

    updated = client.patch(
        f"/v1/expenses/{expense['id']}",
        json={"amount": 70, "category_id": categories["Shopping"], "notes": "Corrected"},
    )
    assert updated.status_code == 200
    assert updated.json()["amount"] == 70
    assert updated.json()["category_id"] == categories["Shopping"]

    monthly = client.get("/v1/spending/monthly", params={"user_id": USER, "month": 202403}).json()
    assert monthly["by_category"] == {categories["Shopping"]: 70}

    assert client.delete(f"/v1/expenses/{expense['id']}").status_code == 204
    assert client.get(f"/v1/expenses/{expense['id']}").status_code == 404
    assert client.delete(f"/v1/expenses/{expense['id']}").status_code == 404


def test_expense_calendar(client: TestClient, categories):
    add_expense(client, categories["Groceries"], 10, "2024-03-01T09:00:00Z")
    add_expense(client, categories["Groceries"], 15, "2024-03-01T18:00:00Z")
    add_expense(client, categories["Travel"], 20, "2024-03-20T09:00:00Z")

    data = client.get("/v1/expenses/calendar", params={"user_id": USER, "year": 2024, "month": 3}).json()

    assert data["month"] == 202403
    assert data["total"] == 45
    assert data["by_day"]["2024-03-01"]["total"] == 25
    assert data["by_day"]["2024-03-01"]["count"] == 2
    assert set(data["by_day"]) == {"2024-03-01", "2024-03-20"}


def test_recent_expenses(client: TestClient, categories):
    for day in range(1, 8):
        add_expense(client, categories["Groceries"], day, f"2024-03-0{day}T10:00:00Z")

    recent = client.get("/v1/expenses/recent", params={"user_id": USER}).json()

    assert [e["amount"] for e in recent] == [7, 6, 5, 4, 3]
