"""ItemService — the item lifecycle registry.

Every mutating operation runs one registry transaction in three stages:

    GUARD → MUTATE (+ SETTLE) → NOTIFY

Guards (existence, state, identity, payment) run before any write. A
failure anywhere raises a domain error out of the transaction, rolling
back the state change, the sku counter, ledger transfers, and the
notification row together. Committed notifications are delivered to
observers only after the transaction ends.
"""

from __future__ import annotations

import json
import logging
from typing import Any

from sqlalchemy import func, select

from supplyctl.domain.access import require_state, verify_caller
from supplyctl.domain.errors import RegistryError, ValidationError
from supplyctl.domain.items import ESCROW_IDENTITY
from supplyctl.domain.lifecycle import ItemState, next_state
from supplyctl.domain.settlement import MAX_AMOUNT, plan_settlement, require_amount
from supplyctl.infrastructure.database.counters import SKU_COUNTER, peek_next_value
from supplyctl.infrastructure.database.schema import items, notifications
from supplyctl.infrastructure.registry import row_to_item
from supplyctl.services.base import BaseService
from supplyctl.services.contracts import HistoryData, ItemListData, dump_validated
from supplyctl.services.result import ServiceResult
from supplyctl.services.telemetry import trace_span, traced

logger = logging.getLogger(__name__)


class ItemService(BaseService):
    """Creates items and moves them through ForSale → Sold → Shipped → Received."""

    # ------------------------------------------------------------------
    # Creation
    # ------------------------------------------------------------------

    @traced
    def add_item(self, name: str, price: int, *, caller: str | None) -> ServiceResult:
        """List a new item for sale with the caller as seller.

        Returns the allocated sku in ``data["sku"]``.
        """
        op = "add_item"
        warnings: list[str] = []
        try:
            seller = self._resolve_identity(caller, role="seller")
            clean_name = name.strip()
            if not clean_name:
                raise ValidationError("Item name must not be empty", field="name")
            require_amount(price, field="price")

            with self._registry.transaction() as txn:
                # Open the seller's payout account.
                if txn.ledger.get_account(seller) is None:
                    txn.ledger.open_account(seller)
                item = txn.insert_item(clean_name, price, seller)
                txn.record_notification(
                    "for_sale",
                    {"sku": item.sku, "name": item.name, "price": item.price, "seller": seller},
                    sku=item.sku,
                )
        except RegistryError as exc:
            logger.debug("%s rejected: %s", op, exc.code)
            return ServiceResult.failure(op, exc)

        logger.debug("Listed sku %d (%s) for %s", item.sku, item.name, seller)
        self._deliver_notifications(txn.notifications, warnings)
        return ServiceResult(ok=True, op=op, data=item.to_dict(), warnings=warnings)

    # ------------------------------------------------------------------
    # Purchase and settlement
    # ------------------------------------------------------------------

    @traced
    def buy_item(self, sku: int, offered: int, *, caller: str | None) -> ServiceResult:
        """Purchase item *sku*, paying *offered* from the caller's account.

        The price goes to the seller and any overage back to the caller.
        """
        op = "buy_item"
        warnings: list[str] = []
        try:
            purchaser = self._resolve_identity(caller, role="buyer")

            with self._registry.transaction() as txn:
                # ── GUARD ────────────────────────────────────────────
                item = txn.get_item(sku)
                require_state(item, ItemState.FOR_SALE)
                plan = plan_settlement(
                    purchaser=purchaser,
                    seller=item.seller,
                    offered=offered,
                    price=item.price,
                )

                ledger = txn.ledger
                with trace_span("collect_payment"):
                    ledger.transfer(plan.purchaser, ESCROW_IDENTITY, plan.offered)

                # ── MUTATE ───────────────────────────────────────────
                # Buyer and state are written before any outbound transfer.
                item = txn.set_item_state(sku, ItemState.SOLD, buyer=purchaser)

                # ── SETTLE ───────────────────────────────────────────
                with trace_span("settle"):
                    ledger.transfer(ESCROW_IDENTITY, plan.seller, plan.price)
                    ledger.transfer(ESCROW_IDENTITY, plan.purchaser, plan.overage)

                # ── NOTIFY ───────────────────────────────────────────
                txn.record_notification(
                    "sold",
                    {
                        "sku": sku,
                        "buyer": purchaser,
                        "seller": plan.seller,
                        "price": plan.price,
                    },
                    sku=sku,
                )
        except RegistryError as exc:
            logger.debug("%s rejected for sku %s: %s", op, sku, exc.code)
            return ServiceResult.failure(op, exc)

        logger.debug("Sold sku %d to %s (refund %d)", sku, purchaser, plan.overage)
        self._deliver_notifications(txn.notifications, warnings)
        data = {**item.to_dict(), "paid": plan.price, "refunded": plan.overage}
        return ServiceResult(ok=True, op=op, data=data, warnings=warnings)

    # ------------------------------------------------------------------
    # Custody transfer
    # ------------------------------------------------------------------

    @traced
    def ship_item(self, sku: int, *, caller: str | None) -> ServiceResult:
        """Mark a sold item shipped. Only the recorded seller may ship."""
        return self._advance("ship_item", sku, caller, required=ItemState.SOLD, role="seller")

    @traced
    def receive_item(self, sku: int, *, caller: str | None) -> ServiceResult:
        """Acknowledge receipt of a shipped item. Only the recorded buyer may receive."""
        return self._advance(
            "receive_item", sku, caller, required=ItemState.SHIPPED, role="buyer"
        )

    def _advance(
        self,
        op: str,
        sku: int,
        caller: str | None,
        *,
        required: ItemState,
        role: str,
    ) -> ServiceResult:
        """Move *sku* one step forward from *required*, restricted to *role*."""
        warnings: list[str] = []
        target = next_state(required)
        assert target is not None
        try:
            actor = self._resolve_identity(caller, role=role)
            with self._registry.transaction() as txn:
                item = txn.get_item(sku)
                require_state(item, required)
                expected = item.seller if role == "seller" else item.buyer
                verify_caller(expected, actor, role=role)

                item = txn.set_item_state(sku, target)
                txn.record_notification(
                    _HOOK_FOR_STATE[target],
                    {"sku": sku, "seller": item.seller, "buyer": item.buyer},
                    sku=sku,
                )
        except RegistryError as exc:
            logger.debug("%s rejected for sku %s: %s", op, sku, exc.code)
            return ServiceResult.failure(op, exc)

        self._deliver_notifications(txn.notifications, warnings)
        return ServiceResult(ok=True, op=op, data=item.to_dict(), warnings=warnings)

    # ------------------------------------------------------------------
    # Inspection
    # ------------------------------------------------------------------

    @traced
    def fetch_item(self, sku: int) -> ServiceResult:
        """Full snapshot of item *sku*. Read-only; open to every caller."""
        op = "fetch_item"
        try:
            with self._registry.transaction() as txn:
                item = txn.get_item(sku)
        except RegistryError as exc:
            return ServiceResult.failure(op, exc)
        return ServiceResult(ok=True, op=op, data=item.to_dict())

    @traced
    def list_items(
        self,
        *,
        state: ItemState | None = None,
        seller: str | None = None,
        buyer: str | None = None,
    ) -> ServiceResult:
        """Item snapshots ordered by sku, optionally filtered."""
        stmt = select(items).order_by(items.c.sku)
        if state is not None:
            stmt = stmt.where(items.c.state == int(state))
        if seller is not None:
            stmt = stmt.where(items.c.seller == seller)
        if buyer is not None:
            stmt = stmt.where(items.c.buyer == buyer)

        with self._registry.engine.connect() as conn:
            rows = conn.execute(stmt).fetchall()

        payload = [row_to_item(row).to_dict() for row in rows]
        data = dump_validated(ItemListData, {"count": len(payload), "items": payload})
        return ServiceResult(ok=True, op="list_items", data=data)

    @traced
    def history(self, *, sku: int | None = None, limit: int | None = None) -> ServiceResult:
        """The notification stream in emission order, optionally for one sku.

        With *limit*, only the most recent *limit* entries are returned.
        """
        op = "history"
        if limit is not None and (
            isinstance(limit, bool) or not isinstance(limit, int) or not 1 <= limit <= MAX_AMOUNT
        ):
            exc = ValidationError(
                f"limit must be an integer from 1 to {MAX_AMOUNT}, got {limit!r}", field="limit"
            )
            return ServiceResult.failure(op, exc)

        if sku is not None and not 0 <= sku <= MAX_AMOUNT:
            data = dump_validated(HistoryData, {"count": 0, "items": []})
            return ServiceResult(ok=True, op=op, data=data)

        stmt = select(notifications).order_by(notifications.c.id.desc())
        if sku is not None:
            stmt = stmt.where(notifications.c.sku == sku)
        if limit is not None:
            stmt = stmt.limit(limit)

        with self._registry.engine.connect() as conn:
            rows = conn.execute(stmt).fetchall()

        entries = [
            {
                "id": row.id,
                "hook_name": row.hook_name,
                "sku": row.sku,
                "payload": json.loads(row.payload),
                "status": row.status,
                "retries": row.retries or 0,
                "error": row.error,
                "created": row.created,
            }
            for row in reversed(rows)
        ]
        data = dump_validated(HistoryData, {"count": len(entries), "items": entries})
        return ServiceResult(ok=True, op=op, data=data)

    @traced
    def info(self) -> ServiceResult:
        """Registry summary: owner, next sku, and item counts per state."""
        with self._registry.engine.connect() as conn:
            next_sku = peek_next_value(conn, SKU_COUNTER)
            counts = conn.execute(
                select(items.c.state, func.count()).group_by(items.c.state)
            ).fetchall()

        by_state: dict[str, int] = {s.label: 0 for s in ItemState}
        for state_code, count in counts:
            by_state[ItemState(state_code).label] = count

        data: dict[str, Any] = {
            "name": self._registry.settings.registry.name,
            "owner": self._registry.owner,
            "root": str(self._registry.root),
            "next_sku": next_sku,
            "item_count": sum(by_state.values()),
            "states": by_state,
        }
        return ServiceResult(ok=True, op="info", data=data)


_HOOK_FOR_STATE: dict[ItemState, str] = {
    ItemState.FOR_SALE: "for_sale",
    ItemState.SOLD: "sold",
    ItemState.SHIPPED: "shipped",
    ItemState.RECEIVED: "received",
}
