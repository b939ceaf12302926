"""Typed registry failures.

Every failure carries a stable ``code`` so callers can branch on the cause.
Errors are raised inside a registry transaction, which rolls back every
write made so far, and are converted to ``ServiceResult`` errors at the
service boundary.
"""

from __future__ import annotations

from typing import Any


class RegistryError(Exception):
    """Base class for all registry operation failures."""

    code = "REGISTRY_ERROR"

    def __init__(self, message: str, **detail: Any) -> None:
        super().__init__(message)
        self.message = message
        self.detail = detail


class AuthorizationError(RegistryError):
    """Caller identity does not match the identity the operation requires."""

    code = "UNAUTHORIZED"


class StateError(RegistryError):
    """Item is not in the source state the transition requires."""

    code = "INVALID_STATE"


class PaymentError(RegistryError):
    """Offered amount is below the item's price."""

    code = "PAYMENT_REQUIRED"


class NotFoundError(RegistryError):
    """Referenced sku or account does not exist."""

    code = "NOT_FOUND"


class ValidationError(RegistryError):
    """Operation input is malformed (negative price, empty name, ...)."""

    code = "VALIDATION_FAILED"


class AccountExistsError(RegistryError):
    """Ledger account is already open."""

    code = "ACCOUNT_EXISTS"


class TransferError(RegistryError):
    """A ledger transfer could not be carried out."""

    code = "TRANSFER_FAILED"


class InsufficientFundsError(TransferError):
    """Sender balance is below the transfer amount."""


class TransferRefusedError(TransferError):
    """Recipient account does not accept funds."""


class UnknownAccountError(TransferError):
    """Sender or recipient account is not open."""


class BalanceOverflowError(TransferError):
    """Recipient balance would exceed the largest storable amount."""
