"""Tests for Registry — transaction coordination and item persistence."""

from __future__ import annotations

import json
from pathlib import Path

import pytest
from sqlalchemy import select

from supplyctl.config.settings import SupplySettings
from supplyctl.domain.errors import NotFoundError
from supplyctl.domain.items import ESCROW_IDENTITY
from supplyctl.domain.lifecycle import ItemState
from supplyctl.infrastructure.database.schema import items, notifications
from supplyctl.infrastructure.registry import Registry
from supplyctl.plugins.event_bus import EventBus


class _Abort(Exception):
    pass


class TestRegistryInit:
    def test_escrow_account_opened(self, registry: Registry) -> None:
        with registry.transaction() as txn:
            assert txn.ledger.balance(ESCROW_IDENTITY) == 0

    def test_default_owner(self, registry: Registry) -> None:
        assert registry.owner == "deployer"

    def test_configured_owner(self, tmp_path: Path) -> None:
        (tmp_path / "supplyctl.toml").write_text('[registry]\nowner = "acme"\n')
        reg = Registry(SupplySettings.from_cli(registry_root=tmp_path))
        try:
            assert reg.owner == "acme"
        finally:
            reg.close()

    def test_owner_never_reassigned(self, registry: Registry, tmp_path: Path) -> None:
        registry.close()
        (tmp_path / "supplyctl.toml").write_text('[registry]\nowner = "usurper"\n')
        reg = Registry(SupplySettings.from_cli(registry_root=tmp_path))
        try:
            assert reg.owner == "deployer"
        finally:
            reg.close()

    def test_no_event_bus_until_requested(self, registry: Registry) -> None:
        assert registry.event_bus is None
        registry.init_event_bus(sync=True)
        assert isinstance(registry.event_bus, EventBus)


class TestTransaction:
    def test_insert_item_allocates_skus(self, registry: Registry) -> None:
        with registry.transaction() as txn:
            first = txn.insert_item("Widget", 100, "alice")
            second = txn.insert_item("Gadget", 5, "alice")
        assert (first.sku, second.sku) == (0, 1)
        assert first.state is ItemState.FOR_SALE
        assert registry.next_sku() == 2

    def test_get_missing_item(self, registry: Registry) -> None:
        with pytest.raises(NotFoundError), registry.transaction() as txn:
            txn.get_item(42)

    @pytest.mark.parametrize("sku", [-1, 2**63, 2**64])
    def test_get_item_outside_sku_range(self, registry: Registry, sku: int) -> None:
        with pytest.raises(NotFoundError), registry.transaction() as txn:
            txn.get_item(sku)

    def test_set_item_state_records_buyer(self, registry: Registry) -> None:
        with registry.transaction() as txn:
            txn.insert_item("Widget", 100, "alice")
            item = txn.set_item_state(0, ItemState.SOLD, buyer="bob")
        assert item.state is ItemState.SOLD
        assert item.buyer == "bob"

    def test_rollback_discards_everything(self, registry: Registry) -> None:
        with pytest.raises(_Abort), registry.transaction() as txn:
            txn.ledger.open_account("bob")
            txn.ledger.credit("bob", 10)
            item = txn.insert_item("Widget", 100, "alice")
            txn.record_notification("for_sale", {"sku": item.sku}, sku=item.sku)
            raise _Abort

        assert registry.next_sku() == 0
        with registry.engine.connect() as conn:
            assert conn.execute(select(items)).fetchall() == []
            assert conn.execute(select(notifications)).fetchall() == []
        with registry.transaction() as txn:
            assert txn.ledger.get_account("bob") is None

    def test_record_notification(self, registry: Registry) -> None:
        with registry.transaction() as txn:
            pending = txn.record_notification("shipped", {"sku": 3, "seller": "a"}, sku=3)
        assert txn.notifications == [pending]
        with registry.engine.connect() as conn:
            row = conn.execute(select(notifications)).one()
        assert row.hook_name == "shipped"
        assert row.status == "pending"
        assert json.loads(row.payload) == {"sku": 3, "seller": "a"}
