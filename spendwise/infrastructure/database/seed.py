"""Reference data seeding and versioned data migrations"""

import logging
from typing import Callable, Dict, List

from sqlalchemy.orm import Session

from spendwise.infrastructure.database.models import Bank, Base, Category, SchemaMigration
from spendwise.infrastructure.database.session import engine, session_scope

logger = logging.getLogger(__name__)

DEFAULT_CATEGORIES = [
    {"name": "Food & Dining", "icon": "fork.knife", "color": "#ef4444"},
    {"name": "Transportation", "icon": "car.fill", "color": "#f97316"},
    {"name": "Shopping", "icon": "bag.fill", "color": "#eab308"},
    {"name": "Entertainment", "icon": "tv.fill", "color": "#84cc16"},
    {"name": "Bills & Utilities", "icon": "bolt.fill", "color": "#22c55e"},
    {"name": "Healthcare", "icon": "heart.fill", "color": "#14b8a6"},
    {"name": "Travel", "icon": "airplane", "color": "#06b6d4"},
    {"name": "Education", "icon": "book.fill", "color": "#3b82f6"},
    {"name": "Personal Care", "icon": "sparkles", "color": "#8b5cf6"},
    {"name": "Groceries", "icon": "cart.fill", "color": "#a855f7"},
    {"name": "Subscriptions", "icon": "repeat", "color": "#ec4899"},
    {"name": "Other", "icon": "ellipsis.circle.fill", "color": "#6b7280"},
]

DEFAULT_BANKS = [
    # Digital banks
    {"name": "Maya Bank", "short_name": "Maya", "color": "#00D09C", "interest_rate": "5.25% - 5.75%", "type": "digital_bank"},
    {"name": "Tonik Digital Bank", "short_name": "Tonik", "color": "#7B68EE", "interest_rate": "4.35% - 6%", "type": "digital_bank"},
    {"name": "GoTyme Bank", "short_name": "GoTyme", "color": "#00CED1", "interest_rate": "5% - 5.5%", "type": "digital_bank"},
    {"name": "UnionDigital Bank", "short_name": "UDigital", "color": "#4B0082", "interest_rate": "4% - 4.125%", "type": "digital_bank"},
    {"name": "CIMB Bank", "short_name": "CIMB", "color": "#ED1C24", "interest_rate": "5.5% - 5.75%", "type": "digital_bank"},
    {"name": "ING Bank", "short_name": "ING", "color": "#FF6200", "interest_rate": "4% - 4.5%", "type": "digital_bank"},
    {"name": "Seabank", "short_name": "SeaBank", "color": "#00A9E0", "interest_rate": "5% - 6%", "type": "digital_bank"},
    {"name": "OwnBank", "short_name": "OwnBank", "color": "#000000", "interest_rate": "5.3% - 6.5%", "type": "digital_bank"},
    {"name": "NetBank Mobile", "short_name": "NetBank", "color": "#6B5B95", "interest_rate": "6% - 7%", "type": "digital_bank"},
    {"name": "UNO Digital Bank", "short_name": "UNO", "color": "#8B008B", "interest_rate": "4.5% - 5.25%", "type": "digital_bank"},
    # Traditional banks
    {"name": "BPI", "short_name": "BPI", "color": "#C41E3A", "interest_rate": "0.25% - 1%", "type": "bank"},
    {"name": "BDO", "short_name": "BDO", "color": "#003DA5", "interest_rate": "0.25% - 0.5%", "type": "bank"},
    {"name": "Metrobank", "short_name": "Metrobank", "color": "#00529B", "interest_rate": "0.25% - 0.5%", "type": "bank"},
    {"name": "Security Bank", "short_name": "SecBank", "color": "#0066B3", "interest_rate": "0.25% - 1%", "type": "bank"},
    {"name": "Landbank", "short_name": "Landbank", "color": "#008751", "interest_rate": "0.25% - 0.5%", "type": "bank"},
    {"name": "PNB", "short_name": "PNB", "color": "#003366", "interest_rate": "0.25% - 0.5%", "type": "bank"},
    {"name": "RCBC", "short_name": "RCBC", "color": "#DAA520", "interest_rate": "0.25% - 1%", "type": "bank"},
    {"name": "Chinabank", "short_name": "Chinabank", "color": "#B22222", "interest_rate": "0.25% - 0.5%", "type": "bank"},
    {"name": "EastWest Bank", "short_name": "EastWest", "color": "#4169E1", "interest_rate": "0.25% - 1%", "type": "bank"},
    {"name": "UnionBank", "short_name": "UnionBank", "color": "#FF8C00", "interest_rate": "0.5% - 2%", "type": "bank"},
    # E-wallets
    {"name": "GCash", "short_name": "GCash", "color": "#007DFE", "interest_rate": "4% - 6%", "type": "e_wallet"},
    {"name": "PayMaya", "short_name": "PayMaya", "color": "#00D09C", "interest_rate": "5%", "type": "e_wallet"},
    {"name": "GrabPay", "short_name": "GrabPay", "color": "#00B14F", "interest_rate": "3%", "type": "e_wallet"},
    {"name": "ShopeePay", "short_name": "ShopeePay", "color": "#EE4D2D", "interest_rate": "3%", "type": "e_wallet"},
]


def seed_default_categories(db: Session) -> int:
    """Insert the shared categories once. Returns the number inserted."""
    if db.query(Category.id).filter(Category.is_default.is_(True)).first():
        return 0
    for category in DEFAULT_CATEGORIES:
        db.add(Category(is_default=True, user_id=None, **category))
    db.flush()
    return len(DEFAULT_CATEGORIES)


def seed_default_banks(db: Session) -> int:
    """Insert the bank directory once. Returns the number inserted."""
    if db.query(Bank.id).filter(Bank.is_default.is_(True)).first():
        return 0
    for bank in DEFAULT_BANKS:
        db.add(Bank(is_default=True, **bank))
    db.flush()
    return len(DEFAULT_BANKS)


def migrate_bank_short_names(db: Session) -> None:
    """Align already-seeded banks with the directory's short names"""
    short_names = {bank["name"]: bank["short_name"] for bank in DEFAULT_BANKS}
    for bank in db.query(Bank).all():
        expected = short_names.get(bank.name)
        if expected and bank.short_name != expected:
            logger.info("Patching bank short name", extra={"bank": bank.name, "short_name": expected})
            bank.short_name = expected
    db.flush()


# Applied in order; names are recorded and never rerun
MIGRATIONS: Dict[str, Callable[[Session], None]] = {
    "bank_short_names_v2": migrate_bank_short_names,
}


def apply_migrations(db: Session) -> List[str]:
    """Run data migrations not yet recorded in schema_migration"""
    applied = {row.name for row in db.query(SchemaMigration).all()}
    ran = []
    for name, migration in MIGRATIONS.items():
        if name in applied:
            continue
        migration(db)
        db.add(SchemaMigration(name=name))
        db.flush()
        ran.append(name)
    return ran


def bootstrap(db: Session) -> None:
    """Seed reference data and bring data migrations up to date"""
    categories = seed_default_categories(db)
    banks = seed_default_banks(db)
    migrations = apply_migrations(db)
    logger.info(
        "Bootstrap complete",
        extra={"categories_seeded": categories, "banks_seeded": banks, "migrations_applied": migrations},
    )


if __name__ == "__main__":
    from spendwise.config import settings
    from spendwise.infrastructure.observability.logging import setup_logging

    setup_logging(settings.log_level)
    Base.metadata.create_all(bind=engine)
    with session_scope() as session:
        bootstrap(session)
