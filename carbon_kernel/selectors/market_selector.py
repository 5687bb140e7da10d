"""
Module: carbon_kernel.selectors.market_selector
Responsibility: Read-only marketplace queries: balances, single records, the
    total credit supply and a canonical hash of the world state.
Architecture position: Kernel > Selectors.  Reads through LedgerAccess only.
    Selectors NEVER put -- they are read-only by design.

Invariants enforced:
    - Credit conservation can be checked from outside the services:
      total_credit_supply() is the sum of every CreditAccount balance.
    - canonical_hash() is deterministic: the same world state always
      produces the same hash, regardless of scan order.
"""

from __future__ import annotations

from carbon_kernel.domain.ledger import LedgerAccess
from carbon_kernel.domain.records import (
    CREDITS_PREFIX,
    GOVERNMENT_KEY,
    Auction,
    CreditAccount,
    GovernmentProfile,
    LedgerRecord,
    ProceedsAccount,
    Proposal,
    Sale,
    auction_key,
    proposal_key,
    sale_key,
)
from carbon_kernel.exceptions import (
    AuctionNotFoundError,
    NotInitializedError,
    ProposalNotFoundError,
    SaleNotFoundError,
)
from carbon_kernel.utils.hashing import hash_payload


class MarketSelector:
    """
    Read-only queries over the world state.

    Contract:
        Accepts a LedgerAccess from the caller; never writes through it.
    """

    def __init__(self, ledger: LedgerAccess):
        self.ledger = ledger

    def _decode(self, record_type: type[LedgerRecord], key: str):
        raw = self.ledger.get(key)
        if raw is None or len(raw) == 0:
            return None
        return record_type.from_bytes(key, raw)

    def credit_balance(self, identity: str) -> int:
        account = self._decode(CreditAccount, CreditAccount.key_for(identity))
        return account.balance if account else 0

    def proceeds_balance(self, identity: str) -> int:
        account = self._decode(ProceedsAccount, ProceedsAccount.key_for(identity))
        return account.balance if account else 0

    def government(self) -> GovernmentProfile:
        profile = self._decode(GovernmentProfile, GOVERNMENT_KEY)
        if profile is None:
            raise NotInitializedError()
        return profile

    def proposal(self, proposal_id: str) -> Proposal:
        proposal = self._decode(Proposal, proposal_key(proposal_id))
        if proposal is None:
            raise ProposalNotFoundError(proposal_id)
        return proposal

    def auction(self, auction_id: str) -> Auction:
        auction = self._decode(Auction, auction_key(auction_id))
        if auction is None:
            raise AuctionNotFoundError(auction_id)
        return auction

    def sale(self, sale_id: str) -> Sale:
        sale = self._decode(Sale, sale_key(sale_id))
        if sale is None:
            raise SaleNotFoundError(sale_id)
        return sale

    def credit_balances(self) -> dict[str, int]:
        """Balance of every identity that ever held credits."""
        balances: dict[str, int] = {}
        for key, raw in self.ledger.scan_prefix(CREDITS_PREFIX):
            account = CreditAccount.from_bytes(key, raw)
            balances[account.owner] = account.balance
        return balances

    def total_credit_supply(self) -> int:
        """Sum of all CreditAccount balances (credits in circulation)."""
        return sum(self.credit_balances().values())

    def canonical_hash(self) -> str:
        """
        SHA-256 over the full world state.

        Two peers that applied the same transactions report the same hash.
        """
        state = {key: raw for key, raw in self.ledger.scan_prefix("")}
        return hash_payload(state)
