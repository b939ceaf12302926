"""CheckService — registry invariant audit.

Read-only linter over the committed registry state. Three categories:
item structure (dense skus, buyer/state agreement), ledger health (escrow
settled, balances non-negative), and notification stream coverage.
"""

from __future__ import annotations

from typing import TYPE_CHECKING, Any

from sqlalchemy import func, select

from supplyctl.domain.items import ESCROW_IDENTITY
from supplyctl.domain.lifecycle import ItemState
from supplyctl.infrastructure.database.counters import SKU_COUNTER, peek_next_value
from supplyctl.infrastructure.database.schema import DEAD_LETTER, accounts, items, notifications
from supplyctl.services.base import BaseService
from supplyctl.services.contracts import CheckResultData, dump_validated
from supplyctl.services.result import ServiceResult
from supplyctl.services.telemetry import trace_span, traced

if TYPE_CHECKING:
    from sqlalchemy import Connection

SEVERITY_ERROR = "error"
SEVERITY_WARNING = "warning"

CAT_ITEMS = "item_structure"
CAT_LEDGER = "ledger_health"
CAT_STREAM = "notification_stream"

_VALID_STATES = frozenset(int(s) for s in ItemState)


class CheckService(BaseService):
    """Reports invariant violations without modifying anything."""

    @traced
    def check(self, *, min_severity: str = SEVERITY_WARNING) -> ServiceResult:
        """Run every check category and summarize the findings.

        With *min_severity* ``"error"``, warnings are dropped from the report.
        """
        issues: list[dict[str, Any]] = []
        with self._registry.engine.connect() as conn:
            with trace_span("items"):
                issues.extend(_check_items(conn))
            with trace_span("ledger"):
                issues.extend(_check_ledger(conn))
            with trace_span("notifications"):
                issues.extend(_check_stream(conn))

        if min_severity == SEVERITY_ERROR:
            issues = [i for i in issues if i["severity"] == SEVERITY_ERROR]

        error_count = sum(1 for i in issues if i["severity"] == SEVERITY_ERROR)
        data = dump_validated(
            CheckResultData,
            {
                "issues": issues,
                "count": len(issues),
                "error_count": error_count,
                "warning_count": len(issues) - error_count,
                "healthy": error_count == 0,
            },
        )
        return ServiceResult(ok=True, op="check", data=data)


def _issue(category: str, severity: str, message: str, **extra: Any) -> dict[str, Any]:
    return {"category": category, "severity": severity, "message": message, **extra}


def _check_items(conn: Connection) -> list[dict[str, Any]]:
    issues: list[dict[str, Any]] = []
    rows = conn.execute(
        select(items.c.sku, items.c.state, items.c.buyer).order_by(items.c.sku)
    ).fetchall()

    for expected_sku, row in enumerate(rows):
        if row.sku != expected_sku:
            issues.append(
                _issue(
                    CAT_ITEMS,
                    SEVERITY_ERROR,
                    f"Sku gap: expected {expected_sku}, found {row.sku}",
                    sku=row.sku,
                )
            )
            break

    next_sku = peek_next_value(conn, SKU_COUNTER)
    if next_sku != len(rows):
        issues.append(
            _issue(
                CAT_ITEMS,
                SEVERITY_ERROR,
                f"Sku counter is {next_sku} but {len(rows)} items exist",
            )
        )

    for row in rows:
        if row.state not in _VALID_STATES:
            issues.append(
                _issue(CAT_ITEMS, SEVERITY_ERROR, f"Unknown state code {row.state}", sku=row.sku)
            )
            continue
        for_sale = row.state == ItemState.FOR_SALE
        if for_sale and row.buyer is not None:
            issues.append(
                _issue(CAT_ITEMS, SEVERITY_ERROR, "Buyer set on an item for sale", sku=row.sku)
            )
        elif not for_sale and row.buyer is None:
            issues.append(
                _issue(
                    CAT_ITEMS,
                    SEVERITY_ERROR,
                    f"No buyer recorded on a {ItemState(row.state).label} item",
                    sku=row.sku,
                )
            )
    return issues


def _check_ledger(conn: Connection) -> list[dict[str, Any]]:
    issues: list[dict[str, Any]] = []
    escrow = conn.execute(
        select(accounts.c.balance).where(accounts.c.identity == ESCROW_IDENTITY)
    ).scalar_one_or_none()
    if escrow is None:
        issues.append(
            _issue(CAT_LEDGER, SEVERITY_ERROR, "Escrow account missing", identity=ESCROW_IDENTITY)
        )
    elif escrow != 0:
        issues.append(
            _issue(
                CAT_LEDGER,
                SEVERITY_ERROR,
                f"Escrow holds {escrow}; it must be empty between operations",
                identity=ESCROW_IDENTITY,
            )
        )

    negative = conn.execute(
        select(accounts.c.identity, accounts.c.balance).where(accounts.c.balance < 0)
    ).fetchall()
    for row in negative:
        issues.append(
            _issue(
                CAT_LEDGER,
                SEVERITY_ERROR,
                f"Negative balance {row.balance}",
                identity=row.identity,
            )
        )
    return issues


def _check_stream(conn: Connection) -> list[dict[str, Any]]:
    """Every item should have one notification per state it has reached."""
    issues: list[dict[str, Any]] = []
    counts = dict(
        conn.execute(
            select(notifications.c.sku, func.count())
            .where(notifications.c.sku.is_not(None))
            .group_by(notifications.c.sku)
        ).fetchall()
    )
    for row in conn.execute(select(items.c.sku, items.c.state)).fetchall():
        if row.state not in _VALID_STATES:
            continue
        expected = int(row.state) + 1
        found = counts.get(row.sku, 0)
        if found != expected:
            issues.append(
                _issue(
                    CAT_STREAM,
                    SEVERITY_WARNING,
                    f"Expected {expected} notifications, found {found}",
                    sku=row.sku,
                )
            )

    dead = conn.execute(
        select(func.count())
        .select_from(notifications)
        .where(notifications.c.status == DEAD_LETTER)
    ).scalar_one()
    if dead:
        issues.append(
            _issue(CAT_STREAM, SEVERITY_WARNING, f"{dead} notifications dead-lettered")
        )
    return issues
