"""Ledger — account balances and value transfers.

A :class:`Ledger` is bound to the connection of an active registry
transaction. Transfers raise on failure instead of returning a flag, so a
failed transfer aborts the enclosing operation and SQLAlchemy rolls back
every write made within it, including earlier transfers.

All amounts are integer minor units.
"""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING, Any

from sqlalchemy import insert, select, update

from supplyctl.domain.errors import (
    AccountExistsError,
    BalanceOverflowError,
    InsufficientFundsError,
    NotFoundError,
    TransferRefusedError,
    UnknownAccountError,
    ValidationError,
)
from supplyctl.domain.items import ESCROW_IDENTITY
from supplyctl.domain.settlement import MAX_AMOUNT
from supplyctl.infrastructure.database.schema import accounts

if TYPE_CHECKING:
    from sqlalchemy import Connection, Row

logger = logging.getLogger(__name__)


class Ledger:
    """Balance bookkeeping over the ``accounts`` table.

    Parameters:
        conn: Connection inside an active transaction (caller owns it).
        now: Timestamp stamped on every account row this ledger touches.
    """

    def __init__(self, conn: Connection, *, now: str) -> None:
        self._conn = conn
        self._now = now

    # ------------------------------------------------------------------
    # Accounts
    # ------------------------------------------------------------------

    def get_account(self, identity: str) -> Row[Any] | None:
        """Return the account row for *identity*, or None."""
        return self._conn.execute(select(accounts).where(accounts.c.identity == identity)).first()

    def open_account(self, identity: str, *, accepts_funds: bool = True) -> None:
        """Open an empty account.

        Raises:
            AccountExistsError: If the account is already open.
        """
        if self.get_account(identity) is not None:
            msg = f"Account already exists: {identity}"
            raise AccountExistsError(msg, identity=identity)
        self._conn.execute(
            insert(accounts).values(
                identity=identity,
                balance=0,
                accepts_funds=1 if accepts_funds else 0,
                created=self._now,
                modified=self._now,
            )
        )
        logger.debug("Opened account %s", identity)

    def ensure_escrow(self) -> None:
        """Open the registry escrow account if it is missing."""
        if self.get_account(ESCROW_IDENTITY) is None:
            self.open_account(ESCROW_IDENTITY)

    def balance(self, identity: str) -> int:
        """Current balance of *identity*.

        Raises:
            NotFoundError: If the account does not exist.
        """
        row = self.get_account(identity)
        if row is None:
            msg = f"No account found for: {identity}"
            raise NotFoundError(msg, identity=identity)
        return int(row.balance)

    def set_accepts_funds(self, identity: str, accepts: bool) -> None:
        """Allow or refuse inbound transfers to *identity*."""
        if self.get_account(identity) is None:
            msg = f"No account found for: {identity}"
            raise NotFoundError(msg, identity=identity)
        self._conn.execute(
            update(accounts)
            .where(accounts.c.identity == identity)
            .values(accepts_funds=1 if accepts else 0, modified=self._now)
        )

    def credit(self, identity: str, amount: int) -> int:
        """Add externally sourced funds to *identity*. Returns the new balance.

        Raises:
            BalanceOverflowError: The balance would exceed ``MAX_AMOUNT``.
        """
        _require_positive(amount)
        new_balance = _checked_sum(identity, self.balance(identity), amount)
        self._set_balance(identity, new_balance)
        return new_balance

    # ------------------------------------------------------------------
    # Transfers
    # ------------------------------------------------------------------

    def transfer(self, sender: str, recipient: str, amount: int) -> None:
        """Move *amount* from *sender* to *recipient*.

        A zero amount is a no-op once both accounts are confirmed to exist.

        Raises:
            UnknownAccountError: Either account is not open.
            TransferRefusedError: Recipient does not accept funds.
            InsufficientFundsError: Sender balance is below *amount*.
            BalanceOverflowError: Recipient balance would exceed ``MAX_AMOUNT``.
        """
        if isinstance(amount, bool) or not isinstance(amount, int) or amount < 0:
            msg = f"Transfer amount must be a non-negative integer, got {amount!r}"
            raise ValidationError(msg, amount=amount)

        source = self.get_account(sender)
        if source is None:
            msg = f"Sender account is not open: {sender}"
            raise UnknownAccountError(msg, identity=sender)
        target = self.get_account(recipient)
        if target is None:
            msg = f"Recipient account is not open: {recipient}"
            raise UnknownAccountError(msg, identity=recipient)

        if amount == 0 or sender == recipient:
            return

        if not target.accepts_funds:
            msg = f"Recipient {recipient} does not accept funds"
            raise TransferRefusedError(msg, recipient=recipient, amount=amount)
        if source.balance < amount:
            msg = f"Insufficient funds: {sender} holds {source.balance}, needs {amount}"
            raise InsufficientFundsError(
                msg,
                sender=sender,
                balance=int(source.balance),
                amount=amount,
            )

        credited = _checked_sum(recipient, int(target.balance), amount)
        self._set_balance(sender, int(source.balance) - amount)
        self._set_balance(recipient, credited)
        logger.debug("Transferred %d from %s to %s", amount, sender, recipient)

    def _set_balance(self, identity: str, balance: int) -> None:
        self._conn.execute(
            update(accounts)
            .where(accounts.c.identity == identity)
            .values(balance=balance, modified=self._now)
        )


def _require_positive(amount: int) -> None:
    if isinstance(amount, bool) or not isinstance(amount, int) or amount <= 0:
        msg = f"Amount must be a positive integer, got {amount!r}"
        raise ValidationError(msg, amount=amount)
    if amount > MAX_AMOUNT:
        msg = f"Amount must be <= {MAX_AMOUNT}, got {amount}"
        raise ValidationError(msg, amount=amount)


def _checked_sum(identity: str, balance: int, amount: int) -> int:
    total = balance + amount
    if total > MAX_AMOUNT:
        msg = f"Balance of {identity} would exceed {MAX_AMOUNT}"
        raise BalanceOverflowError(msg, identity=identity, balance=balance, amount=amount)
    return total
