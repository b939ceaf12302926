"""Tests for telemetry primitives: Span, trace_span, @traced."""

from __future__ import annotations

import time
from collections.abc import Callable, Generator

import pytest

from supplyctl.infrastructure.registry import Registry
from supplyctl.services.items import ItemService
from supplyctl.services.result import ServiceResult
from supplyctl.services.telemetry import (
    Span,
    _current_span,
    disable_telemetry,
    enable_telemetry,
    trace_span,
    traced,
)


@pytest.fixture(autouse=True)
def _reset_telemetry_state() -> Generator[None]:
    """Ensure clean telemetry state for every test."""
    yield
    disable_telemetry()
    _current_span.set(None)


class TestSpan:
    def test_duration_before_end_is_zero(self) -> None:
        assert Span(name="test").duration_ms == 0.0

    def test_duration_after_end(self) -> None:
        span = Span(name="test")
        time.sleep(0.002)
        span.end()
        assert span.duration_ms > 0

    def test_to_dict_minimal(self) -> None:
        span = Span(name="root")
        span.end()
        d = span.to_dict()
        assert d["name"] == "root"
        assert "children" not in d
        assert "annotations" not in d

    def test_annotations(self) -> None:
        span = Span(name="root")
        span.annotate("sku", 3)
        assert span.to_dict()["annotations"] == {"sku": 3}


class TestTraceSpan:
    def test_disabled_yields_none(self) -> None:
        with trace_span("child") as span:
            assert span is None

    def test_no_parent_yields_none(self) -> None:
        enable_telemetry()
        with trace_span("child") as span:
            assert span is None

    def test_nested_under_parent(self) -> None:
        enable_telemetry()
        root = Span(name="root")
        token = _current_span.set(root)
        try:
            with trace_span("child") as child:
                assert _current_span.get() is child
        finally:
            _current_span.reset(token)
        assert [c.name for c in root.children] == ["child"]


class TestTraced:
    def test_disabled_leaves_result_untouched(self) -> None:
        @traced
        def op() -> ServiceResult:
            return ServiceResult(ok=True, op="x")

        assert op().meta is None

    def test_enabled_injects_span_tree(self) -> None:
        @traced
        def op() -> ServiceResult:
            with trace_span("inner"):
                pass
            return ServiceResult(ok=True, op="x", meta={"kept": 1})

        enable_telemetry()
        meta = op().meta
        assert meta is not None
        assert meta["kept"] == 1
        assert meta["telemetry"]["children"][0]["name"] == "inner"

    def test_exception_propagates(self) -> None:
        @traced
        def op() -> ServiceResult:
            msg = "boom"
            raise RuntimeError(msg)

        enable_telemetry()
        with pytest.raises(RuntimeError):
            op()
        assert _current_span.get() is None

    def test_buy_item_spans(self, registry: Registry, fund: Callable[[str, int], int]) -> None:
        svc = ItemService(registry)
        sku = svc.add_item("Widget", 100, caller="alice").data["sku"]
        fund("bob", 100)

        enable_telemetry()
        result = svc.buy_item(sku, 100, caller="bob")

        assert result.meta is not None
        tree = result.meta["telemetry"]
        assert tree["name"] == "ItemService.buy_item"
        assert [c["name"] for c in tree["children"]] == ["collect_payment", "settle"]
