"""Sku allocation.

The counter is advanced on the caller's connection, inside the same
transaction as the item insert, so a rolled-back listing gives its sku
back and skus stay dense from 0.
"""

from __future__ import annotations

from typing import TYPE_CHECKING

from sqlalchemy import select, update

from supplyctl.infrastructure.database.schema import counters

if TYPE_CHECKING:
    from sqlalchemy import Connection

SKU_COUNTER = "sku"

KNOWN_COUNTERS = frozenset({SKU_COUNTER})


def _require_known(name: str) -> None:
    if name not in KNOWN_COUNTERS:
        msg = f"Unknown counter: {name!r}. Expected one of {sorted(KNOWN_COUNTERS)}"
        raise ValueError(msg)


def peek_next_value(conn: Connection, name: str = SKU_COUNTER) -> int:
    """The value the next claim would return, without advancing."""
    _require_known(name)
    stmt = select(counters.c.next_value).where(counters.c.name == name)
    return int(conn.execute(stmt).scalar_one())


def claim_next_value(conn: Connection, name: str = SKU_COUNTER) -> int:
    """Advance counter *name* by one and return the value it held.

    Raises:
        ValueError: If *name* is not a known counter.
    """
    _require_known(name)
    advanced = conn.execute(
        update(counters)
        .where(counters.c.name == name)
        .values(next_value=counters.c.next_value + 1)
        .returning(counters.c.next_value)
    ).scalar_one()
    return int(advanced) - 1
