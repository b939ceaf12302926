"""Pydantic configuration models with code-baked defaults.

Sparse TOML contract: defaults baked here, supplyctl.toml only contains overrides.
A fresh registry needs at most [registry] owner.
"""

from __future__ import annotations

from pydantic import BaseModel, Field, field_validator

# --- supplyctl.toml sections ---


class RegistryConfig(BaseModel):
    """[registry] section."""

    model_config = {"frozen": True}

    name: str = "supply-registry"
    owner: str = "deployer"

    @field_validator("owner")
    @classmethod
    def _owner_not_blank(cls, value: str) -> str:
        if not value.strip():
            msg = "registry.owner must not be blank"
            raise ValueError(msg)
        return value.strip()


class LedgerConfig(BaseModel):
    """[ledger] section."""

    model_config = {"frozen": True}

    currency: str = "USD"
    auto_open_on_deposit: bool = True


class EventsConfig(BaseModel):
    """[events] section."""

    model_config = {"frozen": True}

    max_retries: int = Field(default=3, ge=1)
    max_workers: int = Field(default=2, ge=1)


class SupplyConfig(BaseModel):
    """Root configuration composing all sections."""

    model_config = {"frozen": True}

    registry: RegistryConfig = Field(default_factory=RegistryConfig)
    ledger: LedgerConfig = Field(default_factory=LedgerConfig)
    events: EventsConfig = Field(default_factory=EventsConfig)
