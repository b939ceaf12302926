"""The return type of every service operation.

Services never raise domain errors to their callers. A failure inside an
operation rolls its transaction back and comes out as
``ServiceResult(ok=False, error=...)``, which the CLI renders on stderr
with exit code 1.
"""

from __future__ import annotations

from typing import TYPE_CHECKING, Any

from pydantic import BaseModel, Field

if TYPE_CHECKING:
    from supplyctl.domain.errors import RegistryError


class ServiceError(BaseModel):
    """Code, message, and structured context of a failed operation."""

    model_config = {"frozen": True}

    code: str
    message: str
    detail: dict[str, Any] = Field(default_factory=dict)

    @classmethod
    def from_exception(cls, exc: RegistryError) -> ServiceError:
        return cls(code=exc.code, message=exc.message, detail=dict(exc.detail))


class ServiceResult(BaseModel):
    """Outcome of one registry operation.

    Attributes:
        ok: Whether the operation committed.
        op: Operation name, e.g. ``"buy_item"``; selects the renderer.
        data: Payload on success (item snapshot, balance, report, ...).
        warnings: Non-fatal problems, such as observer failures.
        error: Set when ``ok`` is False.
        meta: Extras such as the ``--verbose`` span tree.
    """

    model_config = {"frozen": True}

    ok: bool
    op: str
    data: dict[str, Any] = Field(default_factory=dict)
    warnings: list[str] = Field(default_factory=list)
    error: ServiceError | None = None
    meta: dict[str, Any] | None = None

    @classmethod
    def failure(cls, op: str, exc: RegistryError) -> ServiceResult:
        return cls(ok=False, op=op, error=ServiceError.from_exception(exc))

    @property
    def error_code(self) -> str | None:
        """The failure code, or None on success."""
        return self.error.code if self.error else None
