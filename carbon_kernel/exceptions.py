"""
Typed Exception Hierarchy for the Carbon Kernel.

===============================================================================
WHY TYPED EXCEPTIONS
===============================================================================

Every failed invocation is reported to the dispatcher as a transaction
failure. Callers must be able to tell "auction still running" from "bid too
low" without parsing message text, so:

  1. Every error has a TYPED exception class (catch by type, not message)
  2. Every exception has a CODE attribute (machine-readable, API-safe)
  3. Exceptions carry structured DATA (record ids, amounts, identities)

Example:
    try:
        contract.invoke("placeBid", auction_id, "60")
    except BidTooLowError as e:
        api_response(code=e.code, highest_bid=e.highest_bid)

===============================================================================
EXCEPTION HIERARCHY
===============================================================================

    MarketplaceError (base)
    |
    +-- RecordNotFoundError                (code NOT_FOUND)
    |   +-- ProposalNotFoundError
    |   +-- AuctionNotFoundError
    |   +-- SaleNotFoundError
    |
    +-- ValidationError
    |   +-- InvalidArgumentError
    |   +-- InvalidAmountError
    |   +-- UnknownMethodError
    |   +-- DuplicateTransactionError
    |
    +-- AuthorizationError
    |   +-- UnauthorizedCallerError
    |   +-- NotInitializedError
    |
    +-- ProposalError
    |   +-- AlreadyApprovedError
    |   +-- NotApprovedError
    |   +-- AlreadyIssuedError
    |
    +-- AuctionError
    |   +-- AuctionEndedError
    |   +-- StillOngoingError
    |   +-- AlreadyEndedError
    |   +-- BidTooLowError
    |
    +-- SaleError
    |   +-- AlreadySoldError
    |   +-- ExceedsListingError
    |   +-- SelfPurchaseError
    |
    +-- AccountError
    |   +-- InsufficientCreditsError
    |
    +-- StorageError
    |   +-- CorruptRecordError
    |   +-- DuplicateRecordError
    |
    +-- ConcurrencyError
        +-- OptimisticLockError

===============================================================================
ERROR CODES - QUICK REFERENCE
===============================================================================

Category        | Code                        | When Raised
----------------|-----------------------------|-----------------------------------------
Lookup          | NOT_FOUND                   | Proposal / auction / sale key absent
----------------|-----------------------------|-----------------------------------------
Validation      | INVALID_ARGUMENT            | Argument is not a base-10 integer
                | INVALID_AMOUNT              | Amount outside its allowed range
                | UNKNOWN_METHOD              | Dispatcher name not registered
                | DUPLICATE_TRANSACTION       | Write invocation reuses a committed tx id
----------------|-----------------------------|-----------------------------------------
Authorization   | UNAUTHORIZED                | Caller is not the government identity
                | NOT_INITIALIZED             | No government profile on the ledger
----------------|-----------------------------|-----------------------------------------
Proposal        | ALREADY_APPROVED            | approveProject on approved proposal
                | NOT_APPROVED                | issueCarbonCredits before approval
                | ALREADY_ISSUED              | Second issuance for one proposal
----------------|-----------------------------|-----------------------------------------
Auction         | AUCTION_ENDED               | Bid after endTime or after settlement
                | STILL_ONGOING               | endAuction before endTime
                | ALREADY_ENDED               | Second endAuction
                | BID_TOO_LOW                 | Bid not above highest / below starting
----------------|-----------------------------|-----------------------------------------
Sale            | ALREADY_SOLD                | Purchase against a sold-out sale
                | EXCEEDS_LISTING             | Purchase larger than remaining credits
                | SELF_PURCHASE               | Seller buying from own sale
----------------|-----------------------------|-----------------------------------------
Account         | INSUFFICIENT_CREDITS        | Balance lower than requested amount
----------------|-----------------------------|-----------------------------------------
Storage         | CORRUPT_RECORD              | Stored bytes fail to decode
                | DUPLICATE_RECORD            | New record would overwrite an existing key
----------------|-----------------------------|-----------------------------------------
Concurrency     | OPTIMISTIC_LOCK_CONFLICT    | Read-set invalidated by another commit

===============================================================================
HANDLING PATTERNS
===============================================================================

1. Business errors are terminal: the invocation's transaction is rolled back
   and the exception is surfaced verbatim to the caller.

2. ConcurrencyError is the only retryable category. InvocationService
   re-runs the whole invocation in a fresh transaction:

    try:
        result = invocation_service.invoke("placeBid", [auction_id, "60"], caller)
    except OptimisticLockError as e:
        log.warning(f"conflict on {e.entity_id} after retries")
"""


class MarketplaceError(Exception):
    """
    Base exception for all carbon kernel errors.

    All subclasses must have a `code` class attribute for machine-readable
    error identification.
    """

    code: str = "MARKETPLACE_ERROR"


# Lookup exceptions


class RecordNotFoundError(MarketplaceError):
    """Referenced ledger record does not exist."""

    code: str = "NOT_FOUND"
    record_type: str = "record"

    def __init__(self, record_id: str):
        self.record_id = record_id
        super().__init__(f"{self.record_type.capitalize()} {record_id} does not exist")


class ProposalNotFoundError(RecordNotFoundError):
    """Proposal with given ID was not found."""

    record_type = "proposal"


class AuctionNotFoundError(RecordNotFoundError):
    """Auction with given ID was not found."""

    record_type = "auction"


class SaleNotFoundError(RecordNotFoundError):
    """Sale with given ID was not found."""

    record_type = "sale"


# Validation exceptions


class ValidationError(MarketplaceError):
    """Base exception for malformed invocation arguments."""

    code: str = "VALIDATION_ERROR"


class InvalidArgumentError(ValidationError):
    """Argument could not be parsed into the expected type."""

    code: str = "INVALID_ARGUMENT"

    def __init__(self, name: str, value: object):
        self.name = name
        self.value = value
        super().__init__(f"Invalid value for {name}: {value!r}")


class InvalidAmountError(ValidationError):
    """Numeric argument is outside its allowed range."""

    code: str = "INVALID_AMOUNT"

    def __init__(self, name: str, value: int, reason: str):
        self.name = name
        self.value = value
        self.reason = reason
        super().__init__(f"Invalid {name} {value}: {reason}")


class UnknownMethodError(ValidationError):
    """Dispatcher was asked for a method the contract does not expose."""

    code: str = "UNKNOWN_METHOD"

    def __init__(self, method: str):
        self.method = method
        super().__init__(f"Unknown marketplace method: {method}")


class DuplicateTransactionError(ValidationError):
    """A write invocation reused the id of an already committed transaction."""

    code: str = "DUPLICATE_TRANSACTION"

    def __init__(self, tx_id: str):
        self.tx_id = tx_id
        super().__init__(f"Transaction {tx_id} has already been committed")


# Authorization exceptions


class AuthorizationError(MarketplaceError):
    """Base exception for caller capability failures."""

    code: str = "AUTHORIZATION_ERROR"


class UnauthorizedCallerError(AuthorizationError):
    """Caller lacks the capability required by the operation."""

    code: str = "UNAUTHORIZED"

    def __init__(self, caller: str, operation: str):
        self.caller = caller
        self.operation = operation
        super().__init__(f"Caller {caller} is not authorized to {operation}")


class NotInitializedError(AuthorizationError):
    """Government profile has not been written to the ledger."""

    code: str = "NOT_INITIALIZED"

    def __init__(self):
        super().__init__("Ledger has not been initialized with government details")


# Proposal exceptions


class ProposalError(MarketplaceError):
    """Base exception for proposal lifecycle errors."""

    code: str = "PROPOSAL_ERROR"


class AlreadyApprovedError(ProposalError):
    """Proposal is already approved."""

    code: str = "ALREADY_APPROVED"

    def __init__(self, proposal_id: str):
        self.proposal_id = proposal_id
        super().__init__(f"Project {proposal_id} already approved")


class NotApprovedError(ProposalError):
    """Credits cannot be issued for an unapproved proposal."""

    code: str = "NOT_APPROVED"

    def __init__(self, proposal_id: str):
        self.proposal_id = proposal_id
        super().__init__(f"Project {proposal_id} is not approved")


class AlreadyIssuedError(ProposalError):
    """Credits for this proposal have already been minted."""

    code: str = "ALREADY_ISSUED"

    def __init__(self, proposal_id: str, allocated_credits: int):
        self.proposal_id = proposal_id
        self.allocated_credits = allocated_credits
        super().__init__(
            f"Credits for project {proposal_id} already issued "
            f"({allocated_credits} credits)"
        )


# Auction exceptions


class AuctionError(MarketplaceError):
    """Base exception for auction lifecycle errors."""

    code: str = "AUCTION_ERROR"


class AuctionEndedError(AuctionError):
    """Auction no longer accepts bids."""

    code: str = "AUCTION_ENDED"

    def __init__(self, auction_id: str, end_time: int):
        self.auction_id = auction_id
        self.end_time = end_time
        super().__init__(f"Auction {auction_id} has ended")


class StillOngoingError(AuctionError):
    """Auction cannot be settled before its end time."""

    code: str = "STILL_ONGOING"

    def __init__(self, auction_id: str, end_time: int, now: int):
        self.auction_id = auction_id
        self.end_time = end_time
        self.now = now
        super().__init__(
            f"Auction {auction_id} is still ongoing "
            f"({end_time - now} ms remaining)"
        )


class AlreadyEndedError(AuctionError):
    """Auction has already been settled."""

    code: str = "ALREADY_ENDED"

    def __init__(self, auction_id: str):
        self.auction_id = auction_id
        super().__init__(f"Auction {auction_id} already ended")


class BidTooLowError(AuctionError):
    """Bid does not beat the highest bid or the starting bid."""

    code: str = "BID_TOO_LOW"

    def __init__(self, auction_id: str, amount: int, highest_bid: int, starting_bid: int):
        self.auction_id = auction_id
        self.amount = amount
        self.highest_bid = highest_bid
        self.starting_bid = starting_bid
        super().__init__(
            f"Bid too low for auction {auction_id}: {amount} "
            f"(highest={highest_bid}, starting={starting_bid})"
        )


# Sale exceptions


class SaleError(MarketplaceError):
    """Base exception for secondary sale errors."""

    code: str = "SALE_ERROR"


class AlreadySoldError(SaleError):
    """Sale has no credits left."""

    code: str = "ALREADY_SOLD"

    def __init__(self, sale_id: str):
        self.sale_id = sale_id
        super().__init__(f"Sale {sale_id} already completed")


class ExceedsListingError(SaleError):
    """Purchase asks for more credits than the sale still lists."""

    code: str = "EXCEEDS_LISTING"

    def __init__(self, sale_id: str, requested: int, remaining: int):
        self.sale_id = sale_id
        self.requested = requested
        self.remaining = remaining
        super().__init__(
            f"Sale {sale_id} lists {remaining} credits, {requested} requested"
        )


class SelfPurchaseError(SaleError):
    """Seller attempted to buy from their own sale."""

    code: str = "SELF_PURCHASE"

    def __init__(self, sale_id: str, seller: str):
        self.sale_id = sale_id
        self.seller = seller
        super().__init__(f"Seller {seller} cannot buy from own sale {sale_id}")


# Account exceptions


class AccountError(MarketplaceError):
    """Base exception for credit account errors."""

    code: str = "ACCOUNT_ERROR"


class InsufficientCreditsError(AccountError):
    """Account balance is lower than the amount required."""

    code: str = "INSUFFICIENT_CREDITS"

    def __init__(self, owner: str, balance: int, requested: int):
        self.owner = owner
        self.balance = balance
        self.requested = requested
        super().__init__(
            f"Insufficient credits for {owner}: balance={balance}, "
            f"requested={requested}"
        )


# Storage exceptions


class StorageError(MarketplaceError):
    """Base exception for world-state storage errors."""

    code: str = "STORAGE_ERROR"


class CorruptRecordError(StorageError):
    """Bytes stored under a key do not decode into the expected record."""

    code: str = "CORRUPT_RECORD"

    def __init__(self, key: str, reason: str):
        self.key = key
        self.reason = reason
        super().__init__(f"Corrupt record at {key}: {reason}")


class DuplicateRecordError(StorageError):
    """A newly created record collides with an existing world-state key."""

    code: str = "DUPLICATE_RECORD"

    def __init__(self, key: str):
        self.key = key
        super().__init__(f"Record already exists at {key}")


# Concurrency exceptions


class ConcurrencyError(MarketplaceError):
    """Base exception for concurrency-related errors."""

    code: str = "CONCURRENCY_ERROR"


class OptimisticLockError(ConcurrencyError):
    """Optimistic locking conflict detected."""

    code: str = "OPTIMISTIC_LOCK_CONFLICT"

    def __init__(self, entity_type: str, entity_id: str):
        self.entity_type = entity_type
        self.entity_id = entity_id
        super().__init__(
            f"Optimistic lock conflict on {entity_type} {entity_id}: "
            "entity was modified by another transaction"
        )
