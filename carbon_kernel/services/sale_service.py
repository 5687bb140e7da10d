"""
SaleService -- secondary-market listings and purchases.

Responsibility:
    Lists credits for sale at a fixed price and fills purchases against a
    listing, moving credits from seller to buyer and recording the seller's
    proceeds.

Architecture position:
    Kernel > Services.  Uses AccountService for every balance change.

State machine:
    Listed --buyCredits--> Partially Filled* --buyCredits--> Sold

Invariants enforced:
    - credits_for_sale never increases and reaches exactly 0 before sold.
    - Listing checks but does not reserve the seller's credits; each
      purchase debits the seller, so credits listed on several sales can
      only be sold once.
    - Purchases move credits; they never mint them.
    - total_cost is added to the seller's ProceedsAccount.  Buyers are not
      debited: there is no currency ledger.

Failure modes:
    - SaleNotFoundError, AlreadySoldError, ExceedsListingError,
      SelfPurchaseError, InsufficientCreditsError, InvalidAmountError.
    - DuplicateRecordError if a new sale id is already taken.
"""

from __future__ import annotations

from carbon_kernel.domain.records import ProceedsAccount, Sale, sale_key
from carbon_kernel.exceptions import (
    AlreadySoldError,
    ExceedsListingError,
    InsufficientCreditsError,
    InvalidAmountError,
    SaleNotFoundError,
    SelfPurchaseError,
)
from carbon_kernel.logging_config import get_logger
from carbon_kernel.services.account_service import AccountService
from carbon_kernel.services.base import MarketService

logger = get_logger("services.sales")


class SaleService(MarketService):
    """Secondary sale lifecycle operations."""

    def __init__(self, ctx, accounts: AccountService | None = None):
        super().__init__(ctx)
        self._accounts = accounts or AccountService(ctx)

    def get(self, sale_id: str) -> Sale:
        """
        Load a sale.

        Raises:
            SaleNotFoundError: If no sale exists under the id.
        """
        sale = self._read(Sale, sale_key(sale_id))
        if sale is None:
            raise SaleNotFoundError(sale_id)
        return sale

    def create(self, credits_for_sale: int, price_per_credit: int) -> Sale:
        """
        List ``credits_for_sale`` of the caller's credits.

        Raises:
            InvalidAmountError: If credits_for_sale <= 0 or price < 0.
            InsufficientCreditsError: If the caller holds fewer credits.
        """
        if credits_for_sale <= 0:
            raise InvalidAmountError("credits for sale", credits_for_sale, "must be positive")
        if price_per_credit < 0:
            raise InvalidAmountError("price per credit", price_per_credit, "must not be negative")

        seller = self.ctx.caller
        balance = self._accounts.balance_of(seller)
        if balance < credits_for_sale:
            raise InsufficientCreditsError(seller, balance, credits_for_sale)

        sale = Sale(
            id=self.ctx.new_id("sale"),
            credits_for_sale=credits_for_sale,
            price_per_credit=price_per_credit,
            seller=seller,
        )
        self._create(sale_key(sale.id), sale)
        logger.info(
            "sale_created",
            extra={
                "sale_id": sale.id,
                "seller": seller,
                "credits_for_sale": credits_for_sale,
                "price_per_credit": price_per_credit,
            },
        )
        return sale

    def buy(self, sale_id: str, credits_to_buy: int) -> Sale:
        """
        Buy ``credits_to_buy`` credits from a sale.

        Postconditions:
            seller credits -= n, buyer credits += n,
            seller proceeds += n * price_per_credit,
            sale.credits_for_sale -= n (sold when it reaches 0).

        Raises:
            SaleNotFoundError: If the sale does not exist.
            AlreadySoldError: If nothing is left on the sale.
            InvalidAmountError: If credits_to_buy <= 0.
            ExceedsListingError: If more than the remaining credits are asked for.
            SelfPurchaseError: If the buyer is the seller.
            InsufficientCreditsError: If the seller no longer holds the credits.
        """
        sale = self.get(sale_id)
        buyer = self.ctx.caller

        if sale.sold:
            raise AlreadySoldError(sale_id)
        if credits_to_buy <= 0:
            raise InvalidAmountError("credits to buy", credits_to_buy, "must be positive")
        if credits_to_buy > sale.credits_for_sale:
            raise ExceedsListingError(sale_id, credits_to_buy, sale.credits_for_sale)
        if buyer == sale.seller:
            raise SelfPurchaseError(sale_id, sale.seller)

        total_cost = credits_to_buy * sale.price_per_credit

        self._accounts.debit(sale.seller, credits_to_buy)
        self._accounts.credit(buyer, credits_to_buy)
        if total_cost > 0:
            self._accounts.credit(sale.seller, total_cost, ProceedsAccount)

        filled = sale.fill(credits_to_buy)
        self._write(sale_key(sale_id), filled)
        logger.info(
            "credits_bought",
            extra={
                "sale_id": sale_id,
                "buyer": buyer,
                "seller": sale.seller,
                "credits": credits_to_buy,
                "total_cost": total_cost,
                "remaining": filled.credits_for_sale,
                "sold": filled.sold,
            },
        )
        return filled
