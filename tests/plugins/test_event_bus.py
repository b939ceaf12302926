"""Tests for EventBus — notification delivery to observer plugins."""

from __future__ import annotations

import json
from collections.abc import Iterator
from typing import Any

import pytest
from sqlalchemy import insert, select
from sqlalchemy.engine import Engine

from supplyctl.infrastructure.database.schema import notifications
from supplyctl.plugins.event_bus import EventBus
from supplyctl.plugins.hookspecs import hookimpl
from supplyctl.plugins.manager import PluginManager

# ---------------------------------------------------------------------------
# Fake plugins for testing
# ---------------------------------------------------------------------------


class RecordingPlugin:
    """Plugin that records all hook calls."""

    def __init__(self) -> None:
        self.calls: list[tuple[str, dict[str, Any]]] = []

    @hookimpl
    def for_sale(self, sku: int, name: str, price: int, seller: str) -> None:
        self.calls.append(("for_sale", {"sku": sku, "name": name, "price": price}))

    @hookimpl
    def sold(self, sku: int, buyer: str) -> None:
        self.calls.append(("sold", {"sku": sku, "buyer": buyer}))


class FailingPlugin:
    """Plugin that always raises on for_sale."""

    @hookimpl
    def for_sale(self, sku: int) -> None:
        msg = "Plugin exploded!"
        raise RuntimeError(msg)


# ---------------------------------------------------------------------------
# Fixtures
# ---------------------------------------------------------------------------


def _record(engine: Engine, hook_name: str, payload: dict[str, Any]) -> int:
    with engine.begin() as conn:
        result = conn.execute(
            insert(notifications).values(
                hook_name=hook_name,
                sku=payload.get("sku"),
                payload=json.dumps(payload),
                status="pending",
                retries=0,
                created="2026-01-01T00:00:00+00:00",
            )
        )
        assert result.lastrowid is not None
        return result.lastrowid


def _status(engine: Engine, event_id: int) -> Any:
    with engine.connect() as conn:
        return conn.execute(select(notifications).where(notifications.c.id == event_id)).one()


_LISTING = {"sku": 0, "name": "Widget", "price": 100, "seller": "alice"}


@pytest.fixture
def pm() -> PluginManager:
    return PluginManager()


@pytest.fixture
def bus(db_engine: Engine, pm: PluginManager) -> Iterator[EventBus]:
    event_bus = EventBus(db_engine, pm, sync=True, max_retries=2)
    yield event_bus
    event_bus.shutdown()


# ---------------------------------------------------------------------------
# Tests
# ---------------------------------------------------------------------------


class TestDelivery:
    def test_sync_delivery_calls_plugin(
        self, bus: EventBus, pm: PluginManager, db_engine: Engine
    ) -> None:
        plugin = RecordingPlugin()
        pm.register_plugin(plugin)
        event_id = _record(db_engine, "for_sale", _LISTING)

        bus.deliver(event_id, "for_sale", _LISTING)

        assert plugin.calls == [("for_sale", {"sku": 0, "name": "Widget", "price": 100})]
        row = _status(db_engine, event_id)
        assert row.status == "completed"
        assert row.completed is not None

    def test_plugins_may_take_argument_subsets(
        self, bus: EventBus, pm: PluginManager, db_engine: Engine
    ) -> None:
        plugin = RecordingPlugin()
        pm.register_plugin(plugin)
        payload = {"sku": 0, "buyer": "bob", "seller": "alice", "price": 100}
        event_id = _record(db_engine, "sold", payload)

        bus.deliver(event_id, "sold", payload)

        assert plugin.calls == [("sold", {"sku": 0, "buyer": "bob"})]

    def test_no_plugins_completes(self, bus: EventBus, db_engine: Engine) -> None:
        event_id = _record(db_engine, "for_sale", _LISTING)
        bus.deliver(event_id, "for_sale", _LISTING)
        assert _status(db_engine, event_id).status == "completed"

    def test_failure_is_recorded_not_raised(
        self, bus: EventBus, pm: PluginManager, db_engine: Engine
    ) -> None:
        pm.register_plugin(FailingPlugin())
        event_id = _record(db_engine, "for_sale", _LISTING)

        bus.deliver(event_id, "for_sale", _LISTING)

        row = _status(db_engine, event_id)
        assert row.status == "failed"
        assert row.retries == 1
        assert "exploded" in row.error

    def test_dead_letter_after_max_retries(
        self, bus: EventBus, pm: PluginManager, db_engine: Engine
    ) -> None:
        pm.register_plugin(FailingPlugin())
        event_id = _record(db_engine, "for_sale", _LISTING)

        bus.deliver(event_id, "for_sale", _LISTING)
        bus.drain()

        row = _status(db_engine, event_id)
        assert row.status == "dead_letter"
        assert row.retries == 2

    def test_async_delivery(self, db_engine: Engine, pm: PluginManager) -> None:
        plugin = RecordingPlugin()
        pm.register_plugin(plugin)
        event_bus = EventBus(db_engine, pm, sync=False, max_workers=1)
        event_id = _record(db_engine, "for_sale", _LISTING)

        event_bus.deliver(event_id, "for_sale", _LISTING)
        event_bus.shutdown()

        assert len(plugin.calls) == 1
        assert _status(db_engine, event_id).status == "completed"


class TestDrain:
    def test_drain_retries_failed_then_succeeds(
        self, bus: EventBus, pm: PluginManager, db_engine: Engine
    ) -> None:
        failing = FailingPlugin()
        pm.register_plugin(failing)
        event_id = _record(db_engine, "for_sale", _LISTING)
        bus.deliver(event_id, "for_sale", _LISTING)
        pm.unregister(failing)

        summary = bus.drain()

        assert summary == [{"id": event_id, "hook_name": "for_sale", "status": "completed"}]

    def test_drain_ignores_completed(self, bus: EventBus, db_engine: Engine) -> None:
        event_id = _record(db_engine, "for_sale", _LISTING)
        bus.deliver(event_id, "for_sale", _LISTING)
        assert bus.drain() == []

    def test_drain_picks_up_pending(self, bus: EventBus, db_engine: Engine) -> None:
        event_id = _record(db_engine, "for_sale", _LISTING)
        assert [r["id"] for r in bus.drain()] == [event_id]
