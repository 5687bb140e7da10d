"""
Hypothesis property tests for marketplace invariants.

The contract runs against a dict-backed LedgerAccess so each generated
example starts from an empty world state without touching the database.

Properties:
- Bid monotonicity: across any sequence of bids, highestBid never
  decreases and is at least startingBid once a bid is accepted.
- Credit conservation: total credit supply changes only through issuance
  and auction settlement, by exactly the minted amount; sales only move
  credits between accounts.
- Purchases never exceed the listing and never drive a balance negative.
"""

from typing import Iterator

from hypothesis import HealthCheck, given, settings
from hypothesis import strategies as st

from carbon_kernel.contract import CarbonMarketplace
from carbon_kernel.domain.clock import DeterministicClock
from carbon_kernel.domain.ledger import LedgerAccess, StaticIdentity, TransactionContext
from carbon_kernel.exceptions import MarketplaceError
from carbon_kernel.selectors.market_selector import MarketSelector

GOVERNMENT = "gov-admin"
PARTIES = ["party-a", "party-b", "party-c", "party-d"]

FUZZ_SETTINGS = settings(
    max_examples=75,
    deadline=None,
    suppress_health_check=[HealthCheck.too_slow],
)


class DictLedger(LedgerAccess):
    """World state held in a dict; every call is immediately visible."""

    def __init__(self):
        self.state: dict[str, bytes] = {}

    def get(self, key: str) -> bytes | None:
        return self.state.get(key)

    def put(self, key: str, value: bytes) -> None:
        self.state[key] = value

    def scan_prefix(self, prefix: str) -> Iterator[tuple[str, bytes]]:
        for key in sorted(self.state):
            if key.startswith(prefix):
                yield key, self.state[key]


class Harness:
    """Runs invocations against one DictLedger with rollback on error."""

    def __init__(self):
        self.ledger = DictLedger()
        self.clock = DeterministicClock()
        self._tx = 0

    def call(self, caller: str, method: str, *args):
        self._tx += 1
        snapshot = dict(self.ledger.state)
        ctx = TransactionContext(
            ledger=self.ledger,
            identity=StaticIdentity(caller),
            timestamp=self.clock.now_utc(),
            tx_id=f"tx-fuzz-{self._tx}",
        )
        try:
            message = CarbonMarketplace(ctx).invoke(method, *args)
        except MarketplaceError:
            self.ledger.state = snapshot
            raise
        return message, ctx.created_ids

    def try_call(self, caller: str, method: str, *args) -> bool:
        try:
            self.call(caller, method, *args)
        except MarketplaceError:
            return False
        return True

    @property
    def selector(self) -> MarketSelector:
        return MarketSelector(self.ledger)


def _initialized() -> Harness:
    harness = Harness()
    harness.call(GOVERNMENT, "initLedger", "Republic", "Testland", "Climate")
    return harness


bids = st.lists(
    st.tuples(st.sampled_from(PARTIES), st.integers(min_value=-10, max_value=500)),
    min_size=1,
    max_size=30,
)


class TestBidMonotonicity:

    @FUZZ_SETTINGS
    @given(starting_bid=st.integers(min_value=1, max_value=200), sequence=bids)
    def test_highest_bid_never_decreases(self, starting_bid, sequence):
        harness = _initialized()
        _, ids = harness.call(GOVERNMENT, "createAuction", "10", str(starting_bid), "60")
        auction_id = ids[0]

        previous = 0
        for bidder, amount in sequence:
            accepted = harness.try_call(bidder, "placeBid", auction_id, str(amount))
            auction = harness.selector.auction(auction_id)

            assert auction.highest_bid >= previous
            if accepted:
                assert auction.highest_bid == amount
                assert auction.highest_bidder == bidder
                assert amount > previous
            if auction.has_bids:
                assert auction.highest_bid >= starting_bid
            previous = auction.highest_bid


operations = st.lists(
    st.one_of(
        st.tuples(st.just("issue"), st.sampled_from(PARTIES), st.integers(min_value=-5, max_value=100)),
        st.tuples(st.just("auction"), st.sampled_from(PARTIES), st.integers(min_value=1, max_value=100)),
        st.tuples(st.just("sell"), st.sampled_from(PARTIES), st.integers(min_value=-5, max_value=60)),
        st.tuples(st.just("buy"), st.sampled_from(PARTIES), st.integers(min_value=-5, max_value=60)),
    ),
    min_size=1,
    max_size=25,
)


class TestCreditConservation:

    @FUZZ_SETTINGS
    @given(steps=operations)
    def test_supply_changes_only_by_minting(self, steps):
        harness = _initialized()
        sale_ids: list[str] = []

        for kind, party, amount in steps:
            supply_before = harness.selector.total_credit_supply()
            minted = 0

            if kind == "issue":
                try:
                    _, ids = harness.call(party, "submitProposal", "Project", "10")
                    harness.call(GOVERNMENT, "approveProject", ids[0], str(amount))
                    harness.call(GOVERNMENT, "issueCarbonCredits", ids[0])
                    minted = amount
                except MarketplaceError:
                    pass
            elif kind == "auction":
                _, ids = harness.call(GOVERNMENT, "createAuction", str(amount), "1", "1")
                harness.try_call(party, "placeBid", ids[0], "5")
                harness.clock.advance(1)
                harness.call(GOVERNMENT, "endAuction", ids[0])
                if harness.selector.auction(ids[0]).has_bids:
                    minted = amount
            elif kind == "sell":
                try:
                    _, ids = harness.call(party, "createSale", str(amount), "3")
                    sale_ids.append(ids[0])
                except MarketplaceError:
                    pass
            elif kind == "buy" and sale_ids:
                harness.try_call(party, "buyCredits", sale_ids[-1], str(amount))

            assert harness.selector.total_credit_supply() == supply_before + minted
            assert all(balance >= 0 for balance in harness.selector.credit_balances().values())

            for sale_id in sale_ids:
                sale = harness.selector.sale(sale_id)
                assert sale.credits_for_sale >= 0
                assert sale.sold == (sale.credits_for_sale == 0)


class TestPurchaseBounds:

    @FUZZ_SETTINGS
    @given(
        listed=st.integers(min_value=1, max_value=50),
        purchases=st.lists(st.integers(min_value=1, max_value=60), min_size=1, max_size=10),
    )
    def test_sold_credits_never_exceed_listing(self, listed, purchases):
        harness = _initialized()
        _, ids = harness.call("seller", "submitProposal", "Project", "10")
        harness.call(GOVERNMENT, "approveProject", ids[0], str(listed))
        harness.call(GOVERNMENT, "issueCarbonCredits", ids[0])
        _, sale_ids = harness.call("seller", "createSale", str(listed), "2")

        bought = 0
        for amount in purchases:
            if harness.try_call("buyer", "buyCredits", sale_ids[0], str(amount)):
                bought += amount

        assert bought <= listed
        assert harness.selector.credit_balance("buyer") == bought
        assert harness.selector.credit_balance("seller") == listed - bought
        assert harness.selector.proceeds_balance("seller") == bought * 2
