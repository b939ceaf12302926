"""SQLite database engine, schema, and counters via SQLAlchemy Core."""

from supplyctl.infrastructure.database.counters import claim_next_value, peek_next_value
from supplyctl.infrastructure.database.engine import (
    create_db_engine,
    database_path,
    init_database,
)
from supplyctl.infrastructure.database.schema import (
    accounts,
    counters,
    items,
    metadata,
    notifications,
    registry_meta,
)

__all__ = [
    "accounts",
    "claim_next_value",
    "counters",
    "create_db_engine",
    "database_path",
    "init_database",
    "items",
    "metadata",
    "notifications",
    "peek_next_value",
    "registry_meta",
]
