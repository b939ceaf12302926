"""Tests for the Item snapshot model and identity helpers."""

from __future__ import annotations

import pytest
from pydantic import ValidationError

from supplyctl.domain.items import (
    ESCROW_IDENTITY,
    Item,
    is_reserved_identity,
    normalize_identity,
)
from supplyctl.domain.lifecycle import ItemState


class TestIdentity:
    def test_strips_whitespace(self) -> None:
        assert normalize_identity("  alice ") == "alice"

    def test_identities_are_case_sensitive(self) -> None:
        assert normalize_identity("Alice") != normalize_identity("alice")

    @pytest.mark.parametrize("raw", ["", "   ", "\t"])
    def test_blank_rejected(self, raw: str) -> None:
        with pytest.raises(ValueError, match="non-empty"):
            normalize_identity(raw)

    def test_escrow_is_reserved(self) -> None:
        assert is_reserved_identity(ESCROW_IDENTITY)
        assert not is_reserved_identity("alice")

    @pytest.mark.parametrize("identity", ["registry:treasury", "registry:", "registry:escrow:2"])
    def test_whole_registry_namespace_is_reserved(self, identity: str) -> None:
        assert is_reserved_identity(identity)

    @pytest.mark.parametrize("identity", ["registry", "Registry:treasury", "my-registry:x"])
    def test_lookalikes_are_not_reserved(self, identity: str) -> None:
        assert not is_reserved_identity(identity)


class TestItem:
    def test_defaults_to_for_sale_without_buyer(self) -> None:
        item = Item(sku=0, name="Widget", price=100, seller="alice")
        assert item.state is ItemState.FOR_SALE
        assert item.buyer is None

    def test_state_accepts_label(self) -> None:
        item = Item(sku=1, name="Widget", price=100, seller="alice", state="Sold", buyer="bob")
        assert item.state is ItemState.SOLD

    def test_buyer_required_after_sale(self) -> None:
        with pytest.raises(ValidationError, match="buyer must be unset"):
            Item(sku=0, name="Widget", price=100, seller="alice", state=ItemState.SHIPPED)

    def test_buyer_forbidden_while_for_sale(self) -> None:
        with pytest.raises(ValidationError):
            Item(sku=0, name="Widget", price=100, seller="alice", buyer="bob")

    def test_negative_price_rejected(self) -> None:
        with pytest.raises(ValidationError):
            Item(sku=0, name="Widget", price=-1, seller="alice")

    def test_frozen(self) -> None:
        item = Item(sku=0, name="Widget", price=100, seller="alice")
        with pytest.raises(ValidationError):
            item.price = 5  # type: ignore[misc]

    def test_to_dict(self) -> None:
        item = Item(
            sku=4,
            name="Widget",
            price=100,
            state=ItemState.RECEIVED,
            seller="alice",
            buyer="bob",
        )
        data = item.to_dict()
        assert data["sku"] == 4
        assert data["state"] == "Received"
        assert data["state_code"] == 3
        assert data["seller"] == "alice"
        assert data["buyer"] == "bob"
