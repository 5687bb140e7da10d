"""Tests for MarketSelector read-only queries."""

import pytest

from carbon_kernel.exceptions import (
    AuctionNotFoundError,
    NotInitializedError,
    SaleNotFoundError,
)
from carbon_kernel.selectors.market_selector import MarketSelector
from carbon_kernel.services.account_service import AccountService
from carbon_kernel.services.world_state_service import WorldStateLedger
from tests.conftest import BUYER, NGO


class TestMarketSelector:

    def test_empty_world_state(self, session):
        selector = MarketSelector(WorldStateLedger(session, "tx-read"))
        assert selector.credit_balance(NGO) == 0
        assert selector.proceeds_balance(NGO) == 0
        assert selector.credit_balances() == {}
        assert selector.total_credit_supply() == 0

    def test_lookups_raise_typed_errors(self, session):
        selector = MarketSelector(WorldStateLedger(session, "tx-read"))
        with pytest.raises(NotInitializedError):
            selector.government()
        with pytest.raises(AuctionNotFoundError):
            selector.auction("missing")
        with pytest.raises(SaleNotFoundError):
            selector.sale("missing")

    def test_balances_and_supply(self, make_ctx, session):
        accounts = AccountService(make_ctx(NGO))
        accounts.credit(NGO, 30)
        accounts.credit(BUYER, 12)

        selector = MarketSelector(WorldStateLedger(session, "tx-read"))
        assert selector.credit_balances() == {NGO: 30, BUYER: 12}
        assert selector.total_credit_supply() == 42

    def test_canonical_hash_reflects_state(self, make_ctx, session):
        first_view = MarketSelector(WorldStateLedger(session, "tx-read-1"))
        empty_hash = first_view.canonical_hash()

        AccountService(make_ctx(NGO)).credit(NGO, 5)
        AccountService(make_ctx(BUYER)).credit(BUYER, 7)
        populated = MarketSelector(WorldStateLedger(session, "tx-read-2")).canonical_hash()

        assert populated != empty_hash
        assert len(populated) == 64

    def test_selector_never_writes(self, make_ctx, session):
        AccountService(make_ctx(NGO)).credit(NGO, 5)
        ledger = WorldStateLedger(session, "tx-read")
        selector = MarketSelector(ledger)
        selector.credit_balances()
        selector.canonical_hash()
        assert ledger.write_set == {}
