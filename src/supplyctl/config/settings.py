"""``SupplySettings``: the single configuration object of an invocation.

Sources, strongest first:

1. keyword arguments (CLI flags from Click)
2. ``SUPPLYCTL_*`` environment variables (``__`` separates sections)
3. ``supplyctl.toml`` (see :mod:`supplyctl.config.discovery`)
4. defaults of the section models
"""

from __future__ import annotations

from contextvars import ContextVar
from pathlib import Path
from typing import Any

from pydantic import Field
from pydantic_settings import BaseSettings, PydanticBaseSettingsSource

from supplyctl.config.discovery import find_config, read_toml
from supplyctl.config.models import EventsConfig, LedgerConfig, RegistryConfig

# TOML payload for the settings object under construction.
_file_data: ContextVar[dict[str, Any] | None] = ContextVar("supplyctl_file_data", default=None)


class TomlSettingsSource(PydanticBaseSettingsSource):
    """Settings source over an already-parsed ``supplyctl.toml``."""

    def __init__(self, settings_cls: type[BaseSettings], data: dict[str, Any] | None) -> None:
        super().__init__(settings_cls)
        self._data = data or {}

    def get_field_value(self, field: Any, field_name: str) -> tuple[Any, str, bool]:
        return self._data.get(field_name), field_name, field_name in self._data

    def __call__(self) -> dict[str, Any]:
        return {key: value for key, value in self._data.items() if key in self.settings_cls.model_fields}


class SupplySettings(BaseSettings):
    """Frozen, merged configuration stored on the CLI's ``AppContext``.

    Attributes:
        registry_root: Directory holding ``.supplyctl/``. This is the parent
            of the config file, or the working directory without one.
        config_path: The config file in effect, if any.
        caller: Identity the invocation acts as (``--as``).
    """

    model_config = {
        "frozen": True,
        "env_prefix": "SUPPLYCTL_",
        "env_nested_delimiter": "__",
    }

    registry_root: Path = Field(default_factory=Path.cwd)
    config_path: Path | None = None

    json_output: bool = False
    quiet: bool = False
    verbose: bool = False
    log_json: bool = False
    sync: bool = False
    caller: str | None = None

    registry: RegistryConfig = Field(default_factory=RegistryConfig)
    ledger: LedgerConfig = Field(default_factory=LedgerConfig)
    events: EventsConfig = Field(default_factory=EventsConfig)

    @classmethod
    def settings_customise_sources(
        cls,
        settings_cls: type[BaseSettings],
        init_settings: PydanticBaseSettingsSource,
        env_settings: PydanticBaseSettingsSource,
        dotenv_settings: PydanticBaseSettingsSource,
        file_secret_settings: PydanticBaseSettingsSource,
    ) -> tuple[PydanticBaseSettingsSource, ...]:
        return init_settings, env_settings, TomlSettingsSource(settings_cls, _file_data.get())

    @classmethod
    def from_cli(
        cls,
        *,
        config_path: str | None = None,
        registry_root: Path | None = None,
        **cli_flags: Any,
    ) -> SupplySettings:
        """Build settings for one CLI invocation.

        An explicit *config_path* that does not exist is ignored. Flags
        passed as None are dropped so they never mask env or file values.
        """
        if config_path:
            toml_path: Path | None = Path(config_path)
            if not toml_path.is_file():
                toml_path = None
        else:
            toml_path = find_config(registry_root)

        if registry_root is None:
            registry_root = toml_path.parent if toml_path else Path.cwd()

        token = _file_data.set(read_toml(toml_path) if toml_path else None)
        try:
            return cls(
                registry_root=registry_root,
                config_path=toml_path,
                **{flag: value for flag, value in cli_flags.items() if value is not None},
            )
        finally:
            _file_data.reset(token)
