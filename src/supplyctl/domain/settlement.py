"""Settlement arithmetic for purchases.

The purchaser's offered amount is split into the item's price (paid to the
seller) and the overage (returned to the purchaser). All amounts are
integer minor units; floats are rejected.
"""

from __future__ import annotations

from dataclasses import dataclass

from supplyctl.domain.errors import PaymentError, ValidationError

# Largest amount, balance, or sku the store can hold (signed 64-bit).
MAX_AMOUNT = 2**63 - 1


def require_amount(amount: int, *, field: str = "amount") -> None:
    """Reject non-integer, negative, or unstorably large amounts."""
    if isinstance(amount, bool) or not isinstance(amount, int):
        msg = f"{field} must be an integer in minor units, got {type(amount).__name__}"
        raise ValidationError(msg, field=field)
    if amount < 0:
        msg = f"{field} must be >= 0, got {amount}"
        raise ValidationError(msg, field=field, value=amount)
    if amount > MAX_AMOUNT:
        msg = f"{field} must be <= {MAX_AMOUNT}, got {amount}"
        raise ValidationError(msg, field=field, value=amount)


def require_paid_enough(offered: int, price: int) -> None:
    """Raise :class:`PaymentError` if *offered* is below *price*."""
    if offered < price:
        msg = f"Offered {offered} is less than the price {price}"
        raise PaymentError(msg, offered=offered, price=price)


def compute_overage(offered: int, price: int) -> int:
    """Return ``offered - price``.

    The paid-enough check runs here as well, so the subtraction can never
    go negative regardless of how callers order their guards.
    """
    require_paid_enough(offered, price)
    return offered - price


@dataclass(frozen=True)
class SettlementPlan:
    """Value movements for one purchase."""

    purchaser: str
    seller: str
    offered: int
    price: int
    overage: int


def plan_settlement(*, purchaser: str, seller: str, offered: int, price: int) -> SettlementPlan:
    """Validate amounts and split *offered* into price and overage."""
    require_amount(offered, field="offered")
    require_amount(price, field="price")
    overage = compute_overage(offered, price)
    return SettlementPlan(
        purchaser=purchaser,
        seller=seller,
        offered=offered,
        price=price,
        overage=overage,
    )
