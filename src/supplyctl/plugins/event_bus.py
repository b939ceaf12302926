"""Post-commit delivery of lifecycle notifications to observers.

A notification row is inserted by the same registry transaction as the
transition it describes. Once that transaction commits, the bus hands the
row's payload to the matching pluggy hook, either inline (``--sync``) or
on a small thread pool, and records the outcome on the row:

    pending → completed
    pending → failed → … → dead_letter   (after ``max_retries`` attempts)

Observer exceptions are recorded, never raised.
"""

from __future__ import annotations

import json
import logging
from concurrent.futures import Future, ThreadPoolExecutor
from datetime import UTC, datetime
from typing import TYPE_CHECKING, Any

from sqlalchemy import select, update

from supplyctl.infrastructure.database.schema import (
    COMPLETED,
    DEAD_LETTER,
    FAILED,
    PENDING,
    notifications,
)

if TYPE_CHECKING:
    from sqlalchemy.engine import Engine

    from supplyctl.plugins.manager import PluginManager

# Statuses drain() picks up again.
RETRYABLE = (PENDING, FAILED)

logger = logging.getLogger(__name__)


def _stamp() -> str:
    return datetime.now(UTC).isoformat()


class EventBus:
    """Hands committed notifications to observer hooks and tracks their status.

    Parameters:
        engine: Engine over the registry database.
        plugin_manager: Source of the hook relay.
        sync: Deliver inline instead of on the thread pool.
        max_retries: Failed attempts before a row becomes ``dead_letter``.
        max_workers: Thread pool size for async delivery.
    """

    def __init__(
        self,
        engine: Engine,
        plugin_manager: PluginManager,
        *,
        sync: bool = False,
        max_retries: int = 3,
        max_workers: int = 2,
    ) -> None:
        self._engine = engine
        self._pm = plugin_manager
        self._max_retries = max_retries
        self._pool = None if sync else ThreadPoolExecutor(
            max_workers=max_workers, thread_name_prefix="supplyctl-notify"
        )
        self._inflight: list[Future[str]] = []

    @property
    def plugin_manager(self) -> PluginManager:
        return self._pm

    def deliver(self, event_id: int, hook_name: str, payload: dict[str, Any]) -> bool | None:
        """Deliver notification *event_id*.

        Inline delivery returns True when every observer succeeded. Queued
        delivery returns None.
        """
        if self._pool is None:
            return self._dispatch(event_id, hook_name, payload) == COMPLETED
        self._inflight.append(self._pool.submit(self._dispatch, event_id, hook_name, payload))
        return None

    def drain(self) -> list[dict[str, Any]]:
        """Redeliver every pending or failed row, oldest first, on this thread.

        Returns ``{id, hook_name, status}`` per row attempted.
        """
        self._wait()
        with self._engine.connect() as conn:
            rows = conn.execute(
                select(notifications.c.id, notifications.c.hook_name, notifications.c.payload)
                .where(notifications.c.status.in_(RETRYABLE))
                .order_by(notifications.c.id)
            ).fetchall()

        return [
            {
                "id": row.id,
                "hook_name": row.hook_name,
                "status": self._dispatch(row.id, row.hook_name, json.loads(row.payload)),
            }
            for row in rows
        ]

    def shutdown(self) -> None:
        """Wait for queued deliveries and stop the pool."""
        self._wait()
        if self._pool is not None:
            self._pool.shutdown(wait=True)
            self._pool = None

    def _dispatch(self, event_id: int, hook_name: str, payload: dict[str, Any]) -> str:
        hook = getattr(self._pm.hook, hook_name, None)
        try:
            if hook is not None:
                hook(**payload)
        except Exception as exc:
            logger.debug("Observer of %s failed on notification %d: %s", hook_name, event_id, exc)
            return self._record_failure(event_id, str(exc))
        self._record_status(event_id, COMPLETED, completed=_stamp())
        return COMPLETED

    def _record_failure(self, event_id: int, error: str) -> str:
        with self._engine.connect() as conn:
            attempts = 1 + conn.execute(
                select(notifications.c.retries).where(notifications.c.id == event_id)
            ).scalar_one()
        status = DEAD_LETTER if attempts >= self._max_retries else FAILED
        if status == DEAD_LETTER:
            logger.warning("Notification %d dead-lettered after %d attempts", event_id, attempts)
        self._record_status(
            event_id,
            status,
            error=error,
            retries=attempts,
            completed=_stamp() if status == DEAD_LETTER else None,
        )
        return status

    def _record_status(self, event_id: int, status: str, **values: Any) -> None:
        with self._engine.begin() as conn:
            conn.execute(
                update(notifications)
                .where(notifications.c.id == event_id)
                .values(status=status, **values)
            )

    def _wait(self) -> None:
        pending, self._inflight = self._inflight, []
        for future in pending:
            try:
                future.result(timeout=30)
            except Exception:
                logger.warning("Queued notification delivery raised", exc_info=True)
