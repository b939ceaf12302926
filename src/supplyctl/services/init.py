"""InitService — create a registry directory, config, and database."""

from __future__ import annotations

import json
import logging
from pathlib import Path
from typing import TYPE_CHECKING

from supplyctl.config.discovery import CONFIG_FILENAME
from supplyctl.config.models import RegistryConfig
from supplyctl.domain.errors import ValidationError
from supplyctl.domain.items import is_reserved_identity, normalize_identity
from supplyctl.infrastructure.database.engine import database_path
from supplyctl.services.result import ServiceResult
from supplyctl.services.telemetry import traced

if TYPE_CHECKING:
    from supplyctl.config.settings import SupplySettings

logger = logging.getLogger(__name__)


class InitService:
    """Stateless initializer; there is no registry to inject before init runs."""

    @staticmethod
    @traced
    def init_registry(
        settings: SupplySettings,
        path: Path,
        *,
        name: str | None = None,
        owner: str | None = None,
    ) -> ServiceResult:
        """Initialize a registry rooted at *path*.

        Writes a sparse ``supplyctl.toml`` when none exists and creates the
        database. Re-running on an existing registry is safe: the stored
        owner is kept and reported with a warning.
        """
        from supplyctl.infrastructure.registry import Registry

        op = "init_registry"
        warnings: list[str] = []
        root = path.resolve()

        try:
            resolved_owner = normalize_identity(owner or settings.registry.owner)
        except ValueError as exc:
            return ServiceResult.failure(op, ValidationError(str(exc), field="owner"))
        if is_reserved_identity(resolved_owner):
            err = ValidationError(
                f"Identity {resolved_owner!r} is reserved for the registry", field="owner"
            )
            return ServiceResult.failure(op, err)
        resolved_name = name or settings.registry.name

        root.mkdir(parents=True, exist_ok=True)
        existed = database_path(root).exists()

        config_file = root / CONFIG_FILENAME
        if config_file.exists():
            warnings.append(f"Kept existing {CONFIG_FILENAME}")
        else:
            config_file.write_text(_render_config(resolved_name, resolved_owner), encoding="utf-8")

        scoped = settings.model_copy(
            update={
                "registry_root": root,
                "config_path": config_file,
                "registry": RegistryConfig(name=resolved_name, owner=resolved_owner),
            }
        )
        registry = Registry(scoped)
        try:
            stored_owner = registry.owner
        finally:
            registry.close()

        if existed:
            warnings.append(f"Registry already initialized; owner remains {stored_owner}")
        logger.debug("Initialized registry at %s (owner %s)", root, stored_owner)

        return ServiceResult(
            ok=True,
            op=op,
            data={
                "root": str(root),
                "database": str(database_path(root)),
                "config": str(config_file),
                "name": resolved_name,
                "owner": stored_owner,
            },
            warnings=warnings,
        )


def _render_config(name: str, owner: str) -> str:
    # JSON string escaping is valid TOML basic-string escaping.
    return f"[registry]\nname = {json.dumps(name)}\nowner = {json.dumps(owner)}\n"
