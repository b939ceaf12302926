"""Shapes of the list-style payloads the services return.

List, history, and check payloads are validated on the way out, so a
renamed key or a bad state label fails inside the service rather than
in a renderer or a JSON consumer.
"""

from __future__ import annotations

from typing import Any, Literal, TypeVar

from pydantic import BaseModel, ConfigDict

T = TypeVar("T", bound=BaseModel)


def dump_validated(model_cls: type[T], data: dict[str, Any]) -> dict[str, Any]:
    """Round-trip *data* through *model_cls*; raises pydantic's ValidationError on mismatch."""
    return model_cls.model_validate(data).model_dump(mode="python")


class ItemPayload(BaseModel):
    """One item snapshot as returned by item operations."""

    model_config = ConfigDict(extra="allow")

    sku: int
    name: str
    price: int
    state: Literal["ForSale", "Sold", "Shipped", "Received"]
    state_code: int
    seller: str
    buyer: str | None = None
    created: str | None = None
    modified: str | None = None


class ItemListData(BaseModel):
    """Payload contract for ``ItemService.list_items``."""

    count: int
    items: list[ItemPayload]


class NotificationEntry(BaseModel):
    """One row of the notification stream."""

    id: int
    hook_name: Literal["for_sale", "sold", "shipped", "received"]
    sku: int | None = None
    payload: dict[str, Any]
    status: Literal["pending", "completed", "failed", "dead_letter"]
    retries: int = 0
    error: str | None = None
    created: str


class HistoryData(BaseModel):
    """Payload contract for ``ItemService.history``."""

    count: int
    items: list[NotificationEntry]


class CheckIssue(BaseModel):
    """One integrity finding returned by ``CheckService.check``."""

    model_config = ConfigDict(extra="allow")

    category: str
    severity: Literal["warning", "error"]
    sku: int | None = None
    identity: str | None = None
    message: str


class CheckResultData(BaseModel):
    """Payload contract for ``CheckService.check``."""

    issues: list[CheckIssue]
    count: int
    error_count: int
    warning_count: int
    healthy: bool
