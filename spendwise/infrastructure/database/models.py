"""SQLAlchemy ORM models for expenses, budgets, savings and insights"""

import uuid
from sqlalchemy import (
    Column,
    Boolean,
    DateTime,
    Float,
    ForeignKey,
    Index,
    Integer,
    JSON,
    Numeric,
    Text,
    UniqueConstraint,
    Uuid,
)
from sqlalchemy.orm import declarative_base, relationship
from sqlalchemy.sql import func

Base = declarative_base()

# Money columns: 14 digits, 2 decimal places
Money = Numeric(14, 2)


class Category(Base):
    """Expense category - shared default (no owner) or owned by one user"""

    __tablename__ = "category"

    id = Column(Uuid(as_uuid=True), primary_key=True, default=uuid.uuid4)
    user_id = Column(Text, nullable=True, index=True)
    name = Column(Text, nullable=False)
    icon = Column(Text, nullable=False)
    color = Column(Text, nullable=False)
    is_default = Column(Boolean, nullable=False, default=False)


class Expense(Base):
    """Money spent by a user, optionally paid from a savings account"""

    __tablename__ = "expense"

    id = Column(Uuid(as_uuid=True), primary_key=True, default=uuid.uuid4)
    user_id = Column(Text, nullable=False, index=True)
    category_id = Column(Uuid(as_uuid=True), ForeignKey("category.id"), nullable=False, index=True)
    savings_account_id = Column(
        Uuid(as_uuid=True), ForeignKey("savings_account.id", ondelete="SET NULL"), nullable=True
    )
    amount = Column(Money, nullable=False)
    description = Column(Text, nullable=False)
    date = Column(DateTime(timezone=True), nullable=False, index=True)
    notes = Column(Text, nullable=True)
    ai_categorized = Column(Boolean, nullable=True)
    ai_confidence = Column(Float, nullable=True)
    created_at = Column(DateTime(timezone=True), nullable=False, server_default=func.now())
    updated_at = Column(DateTime(timezone=True), nullable=False, server_default=func.now(), onupdate=func.now())

    category = relationship("Category")


class Budget(Base):
    """Monthly spending target, overall (no category) or per category"""

    __tablename__ = "budget"
    __table_args__ = (UniqueConstraint("user_id", "month", "category_id", name="uq_budget_user_month_category"),)

    id = Column(Uuid(as_uuid=True), primary_key=True, default=uuid.uuid4)
    user_id = Column(Text, nullable=False, index=True)
    category_id = Column(Uuid(as_uuid=True), ForeignKey("category.id", ondelete="CASCADE"), nullable=True)
    month = Column(Integer, nullable=False)  # YYYYMM
    amount = Column(Money, nullable=False)
    created_at = Column(DateTime(timezone=True), nullable=False, server_default=func.now())
    updated_at = Column(DateTime(timezone=True), nullable=False, server_default=func.now(), onupdate=func.now())


# At most one overall (NULL category) budget per user and month
Index(
    "uq_budget_user_month_overall",
    Budget.user_id,
    Budget.month,
    unique=True,
    postgresql_where=Budget.category_id.is_(None),
    sqlite_where=Budget.category_id.is_(None),
)


class Bank(Base):
    """Static bank / digital bank / e-wallet directory entry"""

    __tablename__ = "bank"

    id = Column(Uuid(as_uuid=True), primary_key=True, default=uuid.uuid4)
    name = Column(Text, nullable=False, unique=True)
    short_name = Column(Text, nullable=False)
    color = Column(Text, nullable=False)
    interest_rate = Column(Text, nullable=True)  # e.g. "5.25% - 5.75%"
    type = Column(Text, nullable=False)  # bank | digital_bank | e_wallet
    is_default = Column(Boolean, nullable=False, default=True)


class SavingsAccount(Base):
    """Savings account with a stored running balance"""

    __tablename__ = "savings_account"

    id = Column(Uuid(as_uuid=True), primary_key=True, default=uuid.uuid4)
    user_id = Column(Text, nullable=False, index=True)
    bank_id = Column(Uuid(as_uuid=True), ForeignKey("bank.id"), nullable=False)
    account_name = Column(Text, nullable=True)
    balance = Column(Money, nullable=False, default=0)
    account_type = Column(Text, nullable=False, default="savings")  # savings | time_deposit
    interest_rate = Column(Float, nullable=True)
    maturity_date = Column(DateTime(timezone=True), nullable=True)
    created_at = Column(DateTime(timezone=True), nullable=False, server_default=func.now())
    updated_at = Column(DateTime(timezone=True), nullable=False, server_default=func.now(), onupdate=func.now())

    bank = relationship("Bank")
    transactions = relationship("SavingsTransaction", back_populates="account", passive_deletes=True)


class SavingsTransaction(Base):
    """Immutable ledger entry against a savings account"""

    __tablename__ = "savings_transaction"

    id = Column(Uuid(as_uuid=True), primary_key=True, default=uuid.uuid4)
    user_id = Column(Text, nullable=False, index=True)
    account_id = Column(
        Uuid(as_uuid=True), ForeignKey("savings_account.id", ondelete="CASCADE"), nullable=False, index=True
    )
    type = Column(Text, nullable=False)  # deposit | withdrawal | interest
    amount = Column(Money, nullable=False)  # always positive
    description = Column(Text, nullable=False)
    date = Column(DateTime(timezone=True), nullable=False)
    created_at = Column(DateTime(timezone=True), nullable=False, server_default=func.now())

    account = relationship("SavingsAccount", back_populates="transactions")


class Insight(Base):
    """Cached, expiring spending insight"""

    __tablename__ = "insight"

    id = Column(Uuid(as_uuid=True), primary_key=True, default=uuid.uuid4)
    user_id = Column(Text, nullable=False, index=True)
    type = Column(Text, nullable=False)
    title = Column(Text, nullable=False)
    content = Column(Text, nullable=False)
    data = Column(JSON, nullable=True)
    expires_at = Column(DateTime(timezone=True), nullable=False)
    created_at = Column(DateTime(timezone=True), nullable=False, server_default=func.now())


class SchemaMigration(Base):
    """Data migrations that have already been applied"""

    __tablename__ = "schema_migration"

    name = Column(Text, primary_key=True)
    applied_at = Column(DateTime(timezone=True), nullable=False, server_default=func.now())
