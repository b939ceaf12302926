"""Registry — the item store with atomic transaction coordination.

The Registry is the single dependency injected into every service. It owns
the database engine and the notification event bus. The
:meth:`Registry.transaction` context manager wraps one operation:

- **DB**: Native SQLAlchemy ``engine.begin()`` with auto-commit/rollback.
  Item writes, the sku counter, ledger transfers, and notification rows
  share the one connection, so they commit or roll back together.
- **Notifications**: recorded in the ``notifications`` table inside the
  transaction; delivery to plugins happens only after commit.
"""

from __future__ import annotations

import json
import logging
from contextlib import contextmanager
from dataclasses import dataclass, field
from datetime import UTC, datetime
from typing import TYPE_CHECKING, Any

from sqlalchemy import insert, select, update

from supplyctl.domain.errors import NotFoundError
from supplyctl.domain.items import Item
from supplyctl.domain.lifecycle import INITIAL_STATE, ItemState
from supplyctl.domain.settlement import MAX_AMOUNT
from supplyctl.infrastructure.database.counters import (
    SKU_COUNTER,
    claim_next_value,
    peek_next_value,
)
from supplyctl.infrastructure.database.engine import DATA_DIRNAME, init_database
from supplyctl.infrastructure.database.schema import PENDING, items, notifications, registry_meta
from supplyctl.infrastructure.ledger import Ledger

if TYPE_CHECKING:
    from collections.abc import Iterator
    from pathlib import Path

    from sqlalchemy import Connection, Row
    from sqlalchemy.engine import Engine

    from supplyctl.config.settings import SupplySettings

logger = logging.getLogger(__name__)


def row_to_item(row: Row[Any]) -> Item:
    """Build an :class:`Item` snapshot from an ``items`` row."""
    return Item(
        sku=row.sku,
        name=row.name,
        price=row.price,
        state=ItemState(row.state),
        seller=row.seller,
        buyer=row.buyer,
        created=row.created,
        modified=row.modified,
    )


@dataclass(frozen=True)
class PendingNotification:
    """A notification recorded in the current transaction, awaiting delivery."""

    id: int
    hook_name: str
    payload: dict[str, Any]


# ---------------------------------------------------------------------------
# RegistryTransaction: yielded to callers within transaction()
# ---------------------------------------------------------------------------


@dataclass
class RegistryTransaction:
    """Active transaction context with the DB connection and a bound ledger.

    All writes made through this object share :attr:`conn`; raising out of
    the ``with`` block discards every one of them.
    """

    conn: Connection
    now: str
    _registry: Registry
    notifications: list[PendingNotification] = field(default_factory=list)
    _ledger: Ledger | None = field(default=None, repr=False)

    @property
    def ledger(self) -> Ledger:
        """Ledger bound to this transaction's connection."""
        if self._ledger is None:
            self._ledger = Ledger(self.conn, now=self.now)
        return self._ledger

    # ------------------------------------------------------------------
    # Items
    # ------------------------------------------------------------------

    def get_item(self, sku: int) -> Item:
        """Load the item *sku*.

        Raises:
            NotFoundError: If no item has that sku.
        """
        row = None
        if 0 <= sku <= MAX_AMOUNT:
            row = self.conn.execute(select(items).where(items.c.sku == sku)).first()
        if row is None:
            msg = f"No item found with sku: {sku}"
            raise NotFoundError(msg, sku=sku)
        return row_to_item(row)

    def insert_item(self, name: str, price: int, seller: str) -> Item:
        """Allocate the next sku and insert a ForSale item owned by *seller*."""
        sku = claim_next_value(self.conn, SKU_COUNTER)
        self.conn.execute(
            insert(items).values(
                sku=sku,
                name=name,
                price=price,
                state=int(INITIAL_STATE),
                seller=seller,
                buyer=None,
                created=self.now,
                modified=self.now,
            )
        )
        return self.get_item(sku)

    def set_item_state(self, sku: int, state: ItemState, *, buyer: str | None = None) -> Item:
        """Write *state* (and *buyer*, when given) for item *sku*."""
        values: dict[str, Any] = {"state": int(state), "modified": self.now}
        if buyer is not None:
            values["buyer"] = buyer
        self.conn.execute(update(items).where(items.c.sku == sku).values(**values))
        return self.get_item(sku)

    # ------------------------------------------------------------------
    # Notifications
    # ------------------------------------------------------------------

    def record_notification(
        self,
        hook_name: str,
        payload: dict[str, Any],
        *,
        sku: int | None = None,
    ) -> PendingNotification:
        """Append a notification to the durable stream as part of this transaction."""
        result = self.conn.execute(
            insert(notifications).values(
                hook_name=hook_name,
                sku=sku,
                payload=json.dumps(payload),
                status=PENDING,
                retries=0,
                created=self.now,
            )
        )
        assert result.lastrowid is not None
        pending = PendingNotification(id=result.lastrowid, hook_name=hook_name, payload=payload)
        self.notifications.append(pending)
        return pending


# ---------------------------------------------------------------------------
# Registry: the store
# ---------------------------------------------------------------------------


class Registry:
    """Store encapsulating the item table, ledger, and notification stream.

    Constructed once at CLI startup from :class:`SupplySettings` and stored
    on the CLI context.  Services receive the Registry via their
    :class:`BaseService` constructor.
    """

    def __init__(self, settings: SupplySettings) -> None:
        self._settings = settings
        self._engine: Engine = init_database(self.root, owner=settings.registry.owner)
        self._event_bus: Any | None = None
        with self.transaction() as txn:
            txn.ledger.ensure_escrow()

    @property
    def root(self) -> Path:
        """The registry root directory."""
        return self._settings.registry_root

    @property
    def engine(self) -> Engine:
        """The underlying SQLAlchemy engine (for direct access when needed)."""
        return self._engine

    @property
    def settings(self) -> SupplySettings:
        """The resolved settings for this registry."""
        return self._settings

    @property
    def event_bus(self) -> Any | None:
        """The notification event bus (None if not initialized)."""
        return self._event_bus

    @property
    def owner(self) -> str:
        """Identity recorded when the registry was first initialized."""
        with self._engine.connect() as conn:
            return str(
                conn.execute(
                    select(registry_meta.c.value).where(registry_meta.c.key == "owner")
                ).scalar_one()
            )

    def next_sku(self) -> int:
        """The sku the next created item will receive."""
        with self._engine.connect() as conn:
            return peek_next_value(conn, SKU_COUNTER)

    def init_event_bus(self, *, sync: bool = False) -> None:
        """Initialize the notification event bus.

        Discovers entry-point observers and local ones from
        ``.supplyctl/plugins/``. AppContext calls this when the registry
        is first used.
        """
        from supplyctl.plugins.event_bus import EventBus
        from supplyctl.plugins.manager import PluginManager

        pm = PluginManager()
        pm.discover_and_load(local_dir=self.root / DATA_DIRNAME / "plugins")

        events = self._settings.events
        self._event_bus = EventBus(
            self._engine,
            pm,
            sync=sync,
            max_retries=events.max_retries,
            max_workers=events.max_workers,
        )

    def close(self) -> None:
        """Stop the event bus and release database connections."""
        if self._event_bus is not None:
            self._event_bus.shutdown()
        self._engine.dispose()

    @contextmanager
    def transaction(self) -> Iterator[RegistryTransaction]:
        """One atomic registry operation.

        All writes commit when the block exits normally and roll back when
        it raises. Nothing is partially applied.

        Usage::

            with registry.transaction() as txn:
                item = txn.get_item(sku)
                txn.ledger.transfer(buyer, ESCROW_IDENTITY, offered)
                txn.set_item_state(sku, ItemState.SOLD, buyer=buyer)
        """
        now = datetime.now(UTC).isoformat()
        with self._engine.begin() as conn:
            txn = RegistryTransaction(conn=conn, now=now, _registry=self)
            try:
                yield txn
            except BaseException:
                logger.debug("Registry transaction rolled back", exc_info=True)
                raise
