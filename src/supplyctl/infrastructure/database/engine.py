"""SQLite engine and first-run seeding.

One database file per registry, at ``<root>/.supplyctl/supplyctl.db``.
Operations are short Core transactions, so there is no ORM session layer.
"""

from __future__ import annotations

from datetime import UTC, datetime
from pathlib import Path
from typing import Any

from sqlalchemy import create_engine, event
from sqlalchemy.dialects.sqlite import insert as sqlite_insert
from sqlalchemy.engine import Engine

from supplyctl.infrastructure.database.counters import SKU_COUNTER
from supplyctl.infrastructure.database.schema import counters, metadata, registry_meta

DATA_DIRNAME = ".supplyctl"
DB_FILENAME = "supplyctl.db"

_PRAGMAS = ("journal_mode=WAL", "foreign_keys=ON", "busy_timeout=5000")


def create_db_engine(db_path: Path) -> Engine:
    """Engine for *db_path* with WAL journaling and foreign keys on every connection."""
    engine = create_engine(f"sqlite:///{db_path}")

    @event.listens_for(engine, "connect")
    def _apply_pragmas(dbapi_conn: Any, _record: Any) -> None:
        cursor = dbapi_conn.cursor()
        for pragma in _PRAGMAS:
            cursor.execute(f"PRAGMA {pragma}")
        cursor.close()

    return engine


def database_path(registry_root: Path) -> Path:
    return registry_root / DATA_DIRNAME / DB_FILENAME


def init_database(registry_root: Path, *, owner: str) -> Engine:
    """Create or open the registry database and return its engine.

    Tables are created when missing. The sku counter starts at 0, and
    *owner* is recorded only on first run; reopening never changes it.
    """
    db_path = database_path(registry_root)
    db_path.parent.mkdir(parents=True, exist_ok=True)

    engine = create_db_engine(db_path)
    metadata.create_all(engine)

    with engine.begin() as conn:
        conn.execute(
            sqlite_insert(counters)
            .values(name=SKU_COUNTER, next_value=0)
            .on_conflict_do_nothing(index_elements=["name"])
        )
        conn.execute(
            sqlite_insert(registry_meta)
            .values(
                [
                    {"key": "owner", "value": owner},
                    {"key": "created", "value": datetime.now(UTC).isoformat()},
                ]
            )
            .on_conflict_do_nothing(index_elements=["key"])
        )
    return engine
