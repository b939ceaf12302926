"""Service call tracing for ``--verbose``.

Each ``@traced`` service method opens a root :class:`Span`; stages inside
it (payment collection, settlement) open children with :func:`trace_span`.
When the call returns a :class:`ServiceResult`, the tree lands in
``meta["telemetry"]`` and a summary line is logged through structlog.

Disabled tracing costs one ContextVar lookup per call.
"""

from __future__ import annotations

import functools
import time
from collections.abc import Callable, Generator, Iterator
from contextlib import contextmanager
from contextvars import ContextVar
from dataclasses import dataclass, field
from typing import Any, ParamSpec, TypeVar

import structlog

from supplyctl.services.result import ServiceResult

log = structlog.get_logger("supplyctl.telemetry")

_tracing: ContextVar[bool] = ContextVar("supplyctl_tracing", default=False)
_current_span: ContextVar[Span | None] = ContextVar("supplyctl_current_span", default=None)

_P = ParamSpec("_P")
_R = TypeVar("_R")


@dataclass
class Span:
    """One timed stage of a service call."""

    name: str
    parent: Span | None = None
    children: list[Span] = field(default_factory=list)
    started: float = field(default_factory=time.perf_counter)
    finished: float | None = None
    annotations: dict[str, Any] = field(default_factory=dict)

    @property
    def duration_ms(self) -> float:
        if self.finished is None:
            return 0.0
        return (self.finished - self.started) * 1000

    def end(self) -> None:
        self.finished = time.perf_counter()

    def annotate(self, key: str, value: Any) -> None:
        self.annotations[key] = value

    def to_dict(self) -> dict[str, Any]:
        node: dict[str, Any] = {"name": self.name, "duration_ms": round(self.duration_ms, 2)}
        if self.annotations:
            node["annotations"] = dict(self.annotations)
        if self.children:
            node["children"] = [child.to_dict() for child in self.children]
        return node


@contextmanager
def _activate(span: Span) -> Iterator[Span]:
    """Make *span* current until the block exits, then close it."""
    token = _current_span.set(span)
    try:
        yield span
    finally:
        span.end()
        _current_span.reset(token)


@contextmanager
def trace_span(name: str) -> Generator[Span | None]:
    """Time a stage under the active service span.

    Yields None when tracing is off or no service call is in progress.
    """
    parent = _current_span.get() if _tracing.get() else None
    if parent is None:
        yield None
        return
    child = Span(name=name, parent=parent)
    parent.children.append(child)
    with _activate(child):
        yield child


def traced(func: Callable[_P, _R]) -> Callable[_P, _R]:  # noqa: UP047
    """Wrap a service method in a root span and attach it to the result."""

    @functools.wraps(func)
    def wrapper(*args: _P.args, **kwargs: _P.kwargs) -> _R:
        if not _tracing.get():
            return func(*args, **kwargs)

        root = Span(name=func.__qualname__)
        try:
            with _activate(root):
                result = func(*args, **kwargs)
        except Exception:
            log.debug("service.span", span=root.name, ok=False)
            raise

        if not isinstance(result, ServiceResult):
            log.debug("service.span", span=root.name, duration_ms=round(root.duration_ms, 2))
            return result

        if isinstance(result.data.get("sku"), int):
            root.annotate("sku", result.data["sku"])
        log.debug(
            "service.span",
            span=root.name,
            op=result.op,
            ok=result.ok,
            duration_ms=round(root.duration_ms, 2),
            stages=[child.name for child in root.children],
        )
        meta = {**(result.meta or {}), "telemetry": root.to_dict()}
        return result.model_copy(update={"meta": meta})  # type: ignore[return-value]

    return wrapper


def enable_telemetry() -> None:
    """Turn tracing on for the current context (``--verbose``)."""
    _tracing.set(True)


def disable_telemetry() -> None:
    _tracing.set(False)
