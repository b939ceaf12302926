"""AccountService — ledger accounts that fund purchases and receive payouts."""

from __future__ import annotations

import logging

from supplyctl.domain.errors import NotFoundError, RegistryError
from supplyctl.services.base import BaseService
from supplyctl.services.result import ServiceResult
from supplyctl.services.telemetry import traced

logger = logging.getLogger(__name__)


class AccountService(BaseService):
    """Opens accounts, credits deposits, and reports balances.

    The registry escrow identity is reserved: it cannot be opened,
    credited, or toggled through this service.
    """

    @traced
    def open_account(self, identity: str, *, accepts_funds: bool = True) -> ServiceResult:
        """Open an empty account for *identity*."""
        op = "open_account"
        try:
            who = self._resolve_identity(identity, role="account")
            with self._registry.transaction() as txn:
                txn.ledger.open_account(who, accepts_funds=accepts_funds)
        except RegistryError as exc:
            return ServiceResult.failure(op, exc)
        return ServiceResult(
            ok=True,
            op=op,
            data=self._account_data(who, balance=0, accepts_funds=accepts_funds),
        )

    @traced
    def deposit(self, identity: str, amount: int) -> ServiceResult:
        """Credit *amount* to *identity*, opening the account if configured to."""
        op = "deposit"
        warnings: list[str] = []
        try:
            who = self._resolve_identity(identity, role="account")
            with self._registry.transaction() as txn:
                ledger = txn.ledger
                if ledger.get_account(who) is None:
                    if not self._registry.settings.ledger.auto_open_on_deposit:
                        msg = f"No account found for: {who}"
                        raise NotFoundError(msg, identity=who)
                    ledger.open_account(who)
                    warnings.append(f"Opened account {who}")
                balance = ledger.credit(who, amount)
                accepts = bool(ledger.get_account(who).accepts_funds)
        except RegistryError as exc:
            return ServiceResult.failure(op, exc)

        logger.debug("Deposited %d to %s", amount, who)
        data = self._account_data(who, balance=balance, accepts_funds=accepts)
        data["amount"] = amount
        return ServiceResult(ok=True, op=op, data=data, warnings=warnings)

    @traced
    def balance(self, identity: str) -> ServiceResult:
        """Current balance of *identity*."""
        op = "balance"
        try:
            with self._registry.transaction() as txn:
                row = txn.ledger.get_account(identity.strip())
                if row is None:
                    msg = f"No account found for: {identity}"
                    raise NotFoundError(msg, identity=identity)
        except RegistryError as exc:
            return ServiceResult.failure(op, exc)
        return ServiceResult(
            ok=True,
            op=op,
            data=self._account_data(
                row.identity, balance=int(row.balance), accepts_funds=bool(row.accepts_funds)
            ),
        )

    @traced
    def set_accepts_funds(self, identity: str, accepts: bool) -> ServiceResult:
        """Allow or refuse inbound transfers to *identity*."""
        op = "accept_funds" if accepts else "refuse_funds"
        try:
            who = self._resolve_identity(identity, role="account")
            with self._registry.transaction() as txn:
                txn.ledger.set_accepts_funds(who, accepts)
                balance = txn.ledger.balance(who)
        except RegistryError as exc:
            return ServiceResult.failure(op, exc)
        return ServiceResult(
            ok=True,
            op=op,
            data=self._account_data(who, balance=balance, accepts_funds=accepts),
        )

    def _account_data(
        self, identity: str, *, balance: int, accepts_funds: bool
    ) -> dict[str, object]:
        return {
            "identity": identity,
            "balance": balance,
            "currency": self._registry.settings.ledger.currency,
            "accepts_funds": accepts_funds,
        }
