"""Item snapshot model and identity primitives."""

from __future__ import annotations

from typing import Any

from pydantic import BaseModel, Field, field_validator, model_validator

from supplyctl.domain.lifecycle import INITIAL_STATE, ItemState, parse_state

# Every identity under this prefix belongs to the registry itself.
RESERVED_PREFIX = "registry:"

# Reserved ledger identity holding incoming payments during settlement.
ESCROW_IDENTITY = f"{RESERVED_PREFIX}escrow"


def normalize_identity(raw: str) -> str:
    """Strip surrounding whitespace; identities are otherwise opaque.

    Raises:
        ValueError: If the identity is empty.
    """
    identity = raw.strip()
    if not identity:
        msg = "Identity must be a non-empty string"
        raise ValueError(msg)
    return identity


def is_reserved_identity(identity: str) -> bool:
    """True for identities in the registry-owned ``registry:`` namespace."""
    return identity.startswith(RESERVED_PREFIX)


class Item(BaseModel):
    """Immutable snapshot of one registry item.

    ``buyer`` is None (the unset sentinel) exactly while the item is for sale.
    """

    model_config = {"frozen": True}

    sku: int = Field(ge=0)
    name: str
    price: int = Field(ge=0)
    state: ItemState = INITIAL_STATE
    seller: str
    buyer: str | None = None
    created: str | None = None
    modified: str | None = None

    @field_validator("state", mode="before")
    @classmethod
    def _coerce_state(cls, value: Any) -> Any:
        if isinstance(value, str):
            return parse_state(value)
        return value

    @model_validator(mode="after")
    def _buyer_matches_state(self) -> Item:
        if (self.buyer is None) != (self.state == ItemState.FOR_SALE):
            msg = (
                f"Item {self.sku}: buyer must be unset exactly while ForSale "
                f"(state={self.state.label}, buyer={self.buyer!r})"
            )
            raise ValueError(msg)
        return self

    def to_dict(self) -> dict[str, Any]:
        """Plain payload for service results and notifications."""
        return {
            "sku": self.sku,
            "name": self.name,
            "price": self.price,
            "state": self.state.label,
            "state_code": int(self.state),
            "seller": self.seller,
            "buyer": self.buyer,
            "created": self.created,
            "modified": self.modified,
        }
