"""
AuctionService -- timed auctions of government credit pools.

Responsibility:
    Creates auctions, accepts strictly increasing bids while the auction is
    open, and settles an expired auction once by minting its credit pool to
    the highest bidder.

Architecture position:
    Kernel > Services.  Expiry is evaluated lazily against the transaction
    timestamp frozen in the TransactionContext; there is no scheduler.

State machine:
    Created --placeBid--> Bidding --endAuction (now >= endTime)--> Ended

Invariants enforced:
    - highest_bid only increases and is >= starting_bid once a bid exists.
    - Settlement happens once (``ended`` flag) and never before end_time.
    - A bid is rejected once end_time has passed or the auction has ended.
    - An auction with no bids ends without minting anything.

Failure modes:
    - AuctionNotFoundError, AuctionEndedError, BidTooLowError,
      StillOngoingError, AlreadyEndedError, InvalidAmountError.
    - NotInitializedError / UnauthorizedCallerError on creation.
    - DuplicateRecordError if a new auction id is already taken.
"""

from __future__ import annotations

from carbon_kernel.domain.records import Auction, auction_key
from carbon_kernel.exceptions import (
    AlreadyEndedError,
    AuctionEndedError,
    AuctionNotFoundError,
    BidTooLowError,
    InvalidAmountError,
    StillOngoingError,
)
from carbon_kernel.logging_config import get_logger
from carbon_kernel.services.account_service import AccountService
from carbon_kernel.services.base import MarketService
from carbon_kernel.services.government_service import GovernmentService

logger = get_logger("services.auctions")


class AuctionService(MarketService):
    """Auction lifecycle operations."""

    def __init__(
        self,
        ctx,
        government: GovernmentService | None = None,
        accounts: AccountService | None = None,
    ):
        super().__init__(ctx)
        self._government = government or GovernmentService(ctx)
        self._accounts = accounts or AccountService(ctx)

    def get(self, auction_id: str) -> Auction:
        """
        Load an auction.

        Raises:
            AuctionNotFoundError: If no auction exists under the id.
        """
        auction = self._read(Auction, auction_key(auction_id))
        if auction is None:
            raise AuctionNotFoundError(auction_id)
        return auction

    def create(self, total_credits: int, starting_bid: int, duration_seconds: int) -> Auction:
        """
        Open an auction ending ``duration_seconds`` after the transaction time.

        Raises:
            InvalidAmountError: If any argument is not positive.
        """
        self._government.require_government("create auctions")

        if total_credits <= 0:
            raise InvalidAmountError("total credits", total_credits, "must be positive")
        if starting_bid <= 0:
            raise InvalidAmountError("starting bid", starting_bid, "must be positive")
        if duration_seconds <= 0:
            raise InvalidAmountError("auction duration", duration_seconds, "must be positive")

        auction = Auction(
            id=self.ctx.new_id("auction"),
            total_credits=total_credits,
            starting_bid=starting_bid,
            end_time=self.ctx.now_ms + duration_seconds * 1000,
            creator=self.ctx.caller,
        )
        self._create(auction_key(auction.id), auction)
        logger.info(
            "auction_created",
            extra={
                "auction_id": auction.id,
                "total_credits": total_credits,
                "starting_bid": starting_bid,
                "end_time": auction.end_time,
            },
        )
        return auction

    def place_bid(self, auction_id: str, amount: int) -> Auction:
        """
        Record the caller as highest bidder at ``amount``.

        Raises:
            AuctionNotFoundError: If the auction does not exist.
            AuctionEndedError: If end_time has passed or it was settled.
            BidTooLowError: If amount <= highest_bid or < starting_bid.
        """
        auction = self.get(auction_id)
        now_ms = self.ctx.now_ms

        if not auction.is_open_at(now_ms):
            raise AuctionEndedError(auction_id, auction.end_time)
        if amount <= auction.highest_bid or amount < auction.starting_bid:
            raise BidTooLowError(auction_id, amount, auction.highest_bid, auction.starting_bid)

        updated = auction.with_bid(self.ctx.caller, amount)
        self._write(auction_key(auction_id), updated)
        logger.info(
            "bid_placed",
            extra={
                "auction_id": auction_id,
                "bidder": updated.highest_bidder,
                "amount": amount,
                "previous_bid": auction.highest_bid,
            },
        )
        return updated

    def end(self, auction_id: str) -> Auction:
        """
        Settle an expired auction.

        Postconditions:
            ended is True.  If any bid was placed, the highest bidder's
            CreditAccount grew by total_credits; otherwise no credits moved.

        Raises:
            AuctionNotFoundError: If the auction does not exist.
            StillOngoingError: If now < end_time.
            AlreadyEndedError: If it was settled before.
        """
        auction = self.get(auction_id)
        now_ms = self.ctx.now_ms

        if now_ms < auction.end_time:
            raise StillOngoingError(auction_id, auction.end_time, now_ms)
        if auction.ended:
            raise AlreadyEndedError(auction_id)

        closed = auction.close()
        self._write(auction_key(auction_id), closed)

        if closed.has_bids:
            self._accounts.credit(closed.highest_bidder, closed.total_credits)
            logger.info(
                "auction_settled",
                extra={
                    "auction_id": auction_id,
                    "winner": closed.highest_bidder,
                    "winning_bid": closed.highest_bid,
                    "credits": closed.total_credits,
                },
            )
        else:
            logger.info("auction_ended_without_bids", extra={"auction_id": auction_id})
        return closed
