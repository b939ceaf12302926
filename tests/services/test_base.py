"""Tests for BaseService identity resolution and notification hand-off."""

from __future__ import annotations

from typing import Any

import pytest

from supplyctl.domain.errors import AuthorizationError, ValidationError
from supplyctl.infrastructure.registry import PendingNotification, Registry
from supplyctl.services.base import BaseService


class TestResolveIdentity:
    def test_strips(self) -> None:
        assert BaseService._resolve_identity("  bob  ") == "bob"

    def test_none_names_role(self) -> None:
        with pytest.raises(ValidationError, match="A seller identity is required"):
            BaseService._resolve_identity(None, role="seller")

    def test_blank(self) -> None:
        with pytest.raises(ValidationError):
            BaseService._resolve_identity("   ")

    def test_reserved(self) -> None:
        with pytest.raises(AuthorizationError):
            BaseService._resolve_identity("registry:escrow")


class _ExplodingBus:
    def deliver(self, event_id: int, hook_name: str, payload: dict[str, Any]) -> bool:
        msg = "bus offline"
        raise RuntimeError(msg)

    def shutdown(self) -> None:
        pass


class TestDeliverNotifications:
    def test_noop_without_bus(self, registry: Registry) -> None:
        warnings: list[str] = []
        BaseService(registry)._deliver_notifications(
            [PendingNotification(id=1, hook_name="for_sale", payload={"sku": 0})], warnings
        )
        assert warnings == []

    def test_bus_errors_become_warnings(
        self, registry: Registry, monkeypatch: pytest.MonkeyPatch
    ) -> None:
        monkeypatch.setattr(registry, "_event_bus", _ExplodingBus())
        warnings: list[str] = []
        BaseService(registry)._deliver_notifications(
            [PendingNotification(id=4, hook_name="sold", payload={"sku": 0})], warnings
        )
        assert warnings == ["Observer failed on sold for notification 4"]
