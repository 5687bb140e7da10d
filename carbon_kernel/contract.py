"""
CarbonMarketplace -- invocation surface exposed to the external dispatcher.

Responsibility:
    Maps dispatcher method names (``initLedger``, ``placeBid``, ...) onto the
    marketplace services, converts string arguments into integers, and turns
    service results into the human-readable confirmation strings returned to
    the caller.

Architecture position:
    Kernel > Contract -- the outermost kernel layer.  Runs inside a
    TransactionContext built by InvocationService; never opens or commits a
    transaction itself.

Invariants enforced:
    - Every numeric argument must be a base-10 integer (InvalidArgumentError).
    - Each method receives exactly its declared number of arguments.
    - Query methods never write.

Usage:
    contract = CarbonMarketplace(ctx)
    message = contract.invoke("placeBid", auction_id, "60")
"""

from __future__ import annotations

from typing import Any, Callable

from carbon_kernel.domain.ledger import TransactionContext
from carbon_kernel.exceptions import InvalidArgumentError, UnknownMethodError
from carbon_kernel.selectors.market_selector import MarketSelector
from carbon_kernel.services.account_service import AccountService
from carbon_kernel.services.auction_service import AuctionService
from carbon_kernel.services.government_service import GovernmentService
from carbon_kernel.services.proposal_service import ProposalService
from carbon_kernel.services.sale_service import SaleService
from carbon_kernel.utils.hashing import canonicalize_json


def parse_int(name: str, value: Any) -> int:
    """
    Parse a dispatcher argument as a base-10 integer.

    Raises:
        InvalidArgumentError: For booleans, floats, or non-integer strings.
    """
    if isinstance(value, bool):
        raise InvalidArgumentError(name, value)
    if isinstance(value, int):
        return value
    if isinstance(value, str):
        text = value.strip()
        body = text[1:] if text[:1] in ("-", "+") else text
        if body.isascii() and body.isdigit():
            return int(text)
    raise InvalidArgumentError(name, value)


class CarbonMarketplace:
    """Dispatcher-facing marketplace contract."""

    # dispatcher name -> (handler attribute, argument count, writes?)
    METHODS: dict[str, tuple[str, int, bool]] = {
        "initLedger": ("init_ledger", 3, True),
        "submitProposal": ("submit_proposal", 2, True),
        "approveProject": ("approve_project", 2, True),
        "issueCarbonCredits": ("issue_carbon_credits", 1, True),
        "createAuction": ("create_auction", 3, True),
        "placeBid": ("place_bid", 2, True),
        "endAuction": ("end_auction", 1, True),
        "createSale": ("create_sale", 2, True),
        "buyCredits": ("buy_credits", 2, True),
        "getCreditBalance": ("get_credit_balance", 1, False),
        "getProceedsBalance": ("get_proceeds_balance", 1, False),
        "getGovernment": ("get_government", 0, False),
        "getProposal": ("get_proposal", 1, False),
        "getAuction": ("get_auction", 1, False),
        "getSale": ("get_sale", 1, False),
    }

    def __init__(self, ctx: TransactionContext):
        self.ctx = ctx
        self.government = GovernmentService(ctx)
        self.accounts = AccountService(ctx)
        self.proposals = ProposalService(ctx, self.government, self.accounts)
        self.auctions = AuctionService(ctx, self.government, self.accounts)
        self.sales = SaleService(ctx, self.accounts)
        self.selector = MarketSelector(ctx.ledger)

    @classmethod
    def is_query(cls, method: str) -> bool:
        if method not in cls.METHODS:
            raise UnknownMethodError(method)
        return not cls.METHODS[method][2]

    def invoke(self, method: str, *args: Any) -> str:
        """
        Run one dispatcher method.

        Raises:
            UnknownMethodError: If ``method`` is not exposed.
            InvalidArgumentError: If the argument count is wrong.
            MarketplaceError: Whatever the operation raises.
        """
        if method not in self.METHODS:
            raise UnknownMethodError(method)
        attr, arity, _ = self.METHODS[method]
        if len(args) != arity:
            raise InvalidArgumentError(
                f"{method} arguments (expected {arity})", list(args)
            )
        handler: Callable[..., str] = getattr(self, attr)
        return handler(*args)

    # --- Bootstrap ---

    def init_ledger(self, government_name: str, country: str, dept_name: str) -> str:
        profile = self.government.initialize(government_name, country, dept_name)
        return f"Ledger initialized by {profile.government_address}"

    # --- NGO / corporate and government proposal functions ---

    def submit_proposal(self, description: str, target: Any) -> str:
        proposal = self.proposals.submit(
            description, parse_int("carbonReductionTarget", target)
        )
        return f"Project proposal {proposal.id} submitted by {proposal.proposer}"

    def approve_project(self, proposal_id: str, credits: Any) -> str:
        proposal = self.proposals.approve(
            proposal_id, parse_int("allocatedCredits", credits)
        )
        return (
            f"Project {proposal.id} approved with "
            f"{proposal.allocated_credits} carbon credits allocated"
        )

    def issue_carbon_credits(self, proposal_id: str) -> str:
        proposal = self.proposals.issue_credits(proposal_id)
        return f"Issued {proposal.allocated_credits} carbon credits to {proposal.proposer}"

    # --- Auction functions ---

    def create_auction(self, total_credits: Any, starting_bid: Any, duration: Any) -> str:
        auction = self.auctions.create(
            parse_int("totalCredits", total_credits),
            parse_int("startingBid", starting_bid),
            parse_int("auctionDuration", duration),
        )
        return f"Auction {auction.id} created"

    def place_bid(self, auction_id: str, amount: Any) -> str:
        auction = self.auctions.place_bid(auction_id, parse_int("bidAmount", amount))
        return f"Bid of {auction.highest_bid} placed for auction {auction.id}"

    def end_auction(self, auction_id: str) -> str:
        auction = self.auctions.end(auction_id)
        if not auction.has_bids:
            return f"Auction {auction.id} ended with no bids"
        return (
            f"Auction {auction.id} ended. {auction.total_credits} carbon credits "
            f"transferred to {auction.highest_bidder}"
        )

    # --- Secondary marketplace functions ---

    def create_sale(self, credits_for_sale: Any, price_per_credit: Any) -> str:
        sale = self.sales.create(
            parse_int("creditsForSale", credits_for_sale),
            parse_int("pricePerCredit", price_per_credit),
        )
        return f"Sale {sale.id} created by {sale.seller}"

    def buy_credits(self, sale_id: str, credits_to_buy: Any) -> str:
        credits = parse_int("creditsToBuy", credits_to_buy)
        self.sales.buy(sale_id, credits)
        return f"{credits} credits bought from sale {sale_id} by {self.ctx.caller}"

    # --- Queries ---

    def get_credit_balance(self, identity: str) -> str:
        return str(self.selector.credit_balance(identity))

    def get_proceeds_balance(self, identity: str) -> str:
        return str(self.selector.proceeds_balance(identity))

    def get_government(self) -> str:
        return canonicalize_json(self.selector.government().to_dict())

    def get_proposal(self, proposal_id: str) -> str:
        return canonicalize_json(self.selector.proposal(proposal_id).to_dict())

    def get_auction(self, auction_id: str) -> str:
        return canonicalize_json(self.selector.auction(auction_id).to_dict())

    def get_sale(self, sale_id: str) -> str:
        return canonicalize_json(self.selector.sale(sale_id).to_dict())
