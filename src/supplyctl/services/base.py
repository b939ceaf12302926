"""BaseService — foundation for all supplyctl services.

Every service receives a :class:`Registry` at construction time. Services
own their transaction boundaries via ``self._registry.transaction()`` and
raise domain errors inside it so a rejected operation leaves no writes.
"""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING

from supplyctl.domain.errors import AuthorizationError, ValidationError
from supplyctl.domain.items import is_reserved_identity, normalize_identity

if TYPE_CHECKING:
    from supplyctl.infrastructure.registry import PendingNotification, Registry

logger = logging.getLogger(__name__)


class BaseService:
    """Base for all service-layer classes.

    Usage::

        class ItemService(BaseService):
            def ship_item(self, sku: int, *, caller: str) -> ServiceResult:
                with self._registry.transaction() as txn:
                    ...
    """

    def __init__(self, registry: Registry) -> None:
        self._registry = registry

    @staticmethod
    def _resolve_identity(raw: str | None, *, role: str = "caller") -> str:
        """Normalize an acting identity and refuse the registry's own identities."""
        if raw is None:
            msg = f"A {role} identity is required"
            raise ValidationError(msg, role=role)
        try:
            identity = normalize_identity(raw)
        except ValueError as exc:
            raise ValidationError(str(exc), role=role) from exc
        if is_reserved_identity(identity):
            msg = f"Identity {identity!r} is reserved for the registry"
            raise AuthorizationError(msg, identity=identity, role=role)
        return identity

    def _deliver_notifications(
        self,
        pending: list[PendingNotification],
        warnings: list[str],
    ) -> None:
        """Hand committed notifications to observers. No-op without an event bus.

        INVARIANT: Observer failures are warnings, never errors.
        """
        bus = self._registry.event_bus
        if bus is None:
            return
        for note in pending:
            try:
                delivered = bus.deliver(note.id, note.hook_name, note.payload)
            except Exception:
                logger.debug("Notification delivery failed for %s", note.hook_name, exc_info=True)
                delivered = False
            if delivered is False:
                warnings.append(f"Observer failed on {note.hook_name} for notification {note.id}")
