import logging

from sqlalchemy import create_engine, inspect, text
from sqlalchemy.orm import DeclarativeBase, sessionmaker

from farm_manager.config import settings

logger = logging.getLogger(__name__)

connect_args = {}
if settings.DATABASE_URL.startswith("sqlite"):
    connect_args["check_same_thread"] = False

engine = create_engine(settings.DATABASE_URL, connect_args=connect_args)
SessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=engine)


class Base(DeclarativeBase):
    pass


def get_db():
    db = SessionLocal()
    try:
        yield db
    finally:
        db.close()


def _migrate_add_columns(bind=None):
    """Add missing columns to existing tables (works for both SQLite and PostgreSQL)."""
    bind = bind or engine
    inspector = inspect(bind)
    tables = inspector.get_table_names()

    if "inventory_items" in tables:
        existing = {col["name"] for col in inspector.get_columns("inventory_items")}
        new_cols = {
            "minimum_level": "NUMERIC(14, 3) DEFAULT NULL",
            "initial_quantity": "NUMERIC(14, 3) DEFAULT 0",
            "version": "INTEGER DEFAULT 0",
        }
        with bind.begin() as conn:
            for col_name, col_type in new_cols.items():
                if col_name not in existing:
                    conn.execute(text(f"ALTER TABLE inventory_items ADD COLUMN {col_name} {col_type}"))
                    logger.info("Added column inventory_items.%s", col_name)

    if "inventory_transactions" in tables:
        existing = {col["name"] for col in inspector.get_columns("inventory_transactions")}
        new_cols = {
            "destination_or_source": "VARCHAR DEFAULT NULL",
            "unit_price": "NUMERIC(14, 2) DEFAULT NULL",
            "total_price": "NUMERIC(14, 2) DEFAULT NULL",
            "sequence": "INTEGER DEFAULT 0",
        }
        with bind.begin() as conn:
            for col_name, col_type in new_cols.items():
                if col_name not in existing:
                    conn.execute(text(f"ALTER TABLE inventory_transactions ADD COLUMN {col_name} {col_type}"))
                    logger.info("Added column inventory_transactions.%s", col_name)

    if "purchase_requests" in tables:
        existing = {col["name"] for col in inspector.get_columns("purchase_requests")}
        new_cols = {
            "andamento": "TEXT DEFAULT NULL",
            "finalizado_por": "VARCHAR DEFAULT NULL",
        }
        with bind.begin() as conn:
            for col_name, col_type in new_cols.items():
                if col_name not in existing:
                    conn.execute(text(f"ALTER TABLE purchase_requests ADD COLUMN {col_name} {col_type}"))
                    logger.info("Added column purchase_requests.%s", col_name)


def import_models():
    # Import all models so Base.metadata knows about them
    import farm_manager.models.farm  # noqa: F401
    import farm_manager.models.inventory  # noqa: F401
    import farm_manager.models.purchase_request  # noqa: F401
    import farm_manager.models.user  # noqa: F401


def init_db(bind=None):
    bind = bind or engine
    import_models()
    Base.metadata.create_all(bind=bind)
    _migrate_add_columns(bind)
