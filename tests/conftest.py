"""Pytest fixtures for testing"""

import pytest
from datetime import datetime, timezone
from decimal import Decimal
from typing import Callable, Dict, Generator
from fastapi.testclient import TestClient
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker, Session
from spendwise.api.dependencies import get_now
from spendwise.api.main import create_app
from spendwise.domain.models import ExpenseRecord
from spendwise.infrastructure.database.models import Bank, Base, Category
from spendwise.infrastructure.database.seed import bootstrap
from spendwise.infrastructure.database.session import get_db


# Test database
TEST_DATABASE_URL = "sqlite:///./test.db"
engine = create_engine(TEST_DATABASE_URL, connect_args={"check_same_thread": False})
TestingSessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=engine)

# Pinned "now" for the API: mid-March 2024
FIXED_NOW = datetime(2024, 3, 15, 12, 0, tzinfo=timezone.utc)


@pytest.fixture
def db() -> Generator[Session, None, None]:
    """Create test database with reference data and a session"""
    Base.metadata.create_all(bind=engine)
    db = TestingSessionLocal()
    bootstrap(db)
    db.commit()
    try:
        yield db
    finally:
        db.close()
        Base.metadata.drop_all(bind=engine)


@pytest.fixture
def client(db: Session) -> TestClient:
    """Create FastAPI test client with test database and a pinned clock"""
    app = create_app()

    def override_get_db():
        try:
            yield db
        finally:
            pass

    app.dependency_overrides[get_db] = override_get_db
    app.dependency_overrides[get_now] = lambda: FIXED_NOW
    return TestClient(app)


@pytest.fixture
def categories(db: Session) -> Dict[str, str]:
    """Default category ids by name"""
    return {c.name: str(c.id) for c in db.query(Category).filter(Category.is_default.is_(True)).all()}


@pytest.fixture
def bank_id(db: Session) -> str:
    return str(db.query(Bank).filter(Bank.name == "BPI").one().id)


@pytest.fixture
def make_record() -> Callable[..., ExpenseRecord]:
    """Factory for domain expense records"""
    counter = {"n": 0}

    def _make(amount, category_id: str = "cat-a", date: datetime = FIXED_NOW) -> ExpenseRecord:
        counter["n"] += 1
        return ExpenseRecord(
            expense_id=f"exp_{counter['n']}",
            category_id=category_id,
            amount=Decimal(str(amount)),
            date=date,
        )

    return _make
