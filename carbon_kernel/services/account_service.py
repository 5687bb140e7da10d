"""
AccountService -- credit and proceeds balances per identity.

Responsibility:
    Read-modify-write of CreditAccount and ProceedsAccount records.  This is
    the only code that changes how many credits an identity owns.

Invariants enforced:
    - Balances never go negative (CreditAccount.debit refuses).
    - Credit/debit amounts are strictly positive.
    - An identity with no record has balance 0; the record is created on
      its first credit.

Audit relevance:
    Every balance change is logged with owner, account type, delta and the
    resulting balance.
"""

from __future__ import annotations

from carbon_kernel.domain.records import CreditAccount
from carbon_kernel.logging_config import get_logger
from carbon_kernel.services.base import MarketService

logger = get_logger("services.accounts")


class AccountService(MarketService):
    """Credit / debit operations over identity-keyed accounts."""

    def get_account(
        self,
        owner: str,
        account_type: type[CreditAccount] = CreditAccount,
    ) -> CreditAccount:
        """Current account for ``owner``; an empty one if never credited."""
        account = self._read(account_type, account_type.key_for(owner))
        return account if account is not None else account_type(owner=owner)

    def balance_of(
        self,
        owner: str,
        account_type: type[CreditAccount] = CreditAccount,
    ) -> int:
        return self.get_account(owner, account_type).balance

    def credit(
        self,
        owner: str,
        amount: int,
        account_type: type[CreditAccount] = CreditAccount,
    ) -> CreditAccount:
        """
        Add ``amount`` to ``owner``'s balance.

        Raises:
            InvalidAmountError: If amount <= 0.
        """
        account = self.get_account(owner, account_type).credit(amount)
        self._write(account.key, account)
        logger.info(
            "account_credited",
            extra={
                "owner": owner,
                "account_type": account_type.__name__,
                "amount": amount,
                "balance": account.balance,
            },
        )
        return account

    def debit(
        self,
        owner: str,
        amount: int,
        account_type: type[CreditAccount] = CreditAccount,
    ) -> CreditAccount:
        """
        Remove ``amount`` from ``owner``'s balance.

        Raises:
            InvalidAmountError: If amount <= 0.
            InsufficientCreditsError: If the balance is lower than amount.
        """
        account = self.get_account(owner, account_type).debit(amount)
        self._write(account.key, account)
        logger.info(
            "account_debited",
            extra={
                "owner": owner,
                "account_type": account_type.__name__,
                "amount": amount,
                "balance": account.balance,
            },
        )
        return account
