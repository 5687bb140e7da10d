"""
Records -- marketplace entities stored in the world state.

Responsibility:
    Immutable value objects for every record the marketplace persists, plus
    the key scheme and the canonical byte codec.  Lifecycle steps return a
    new record via ``dataclasses.replace``; nothing here touches the ledger.

Architecture position:
    Kernel > Domain -- pure functional core, zero I/O.

Invariants enforced:
    - CreditAccount / ProceedsAccount balances never go negative
      (``debit`` refuses, ``__post_init__`` rejects corrupt state).
    - Amounts passed to ``credit`` / ``debit`` are strictly positive.

Wire format:
    Canonical JSON (sorted keys, no whitespace) with camelCase field names,
    one record per key.  Fields added after the first release (``issued``,
    ``creator``) default when absent so older records still decode.
"""

from __future__ import annotations

import json
from dataclasses import dataclass, replace
from typing import Any, ClassVar

from carbon_kernel.exceptions import (
    CorruptRecordError,
    InsufficientCreditsError,
    InvalidAmountError,
)
from carbon_kernel.utils.hashing import canonicalize_json

GOVERNMENT_KEY = "governmentDetails"
PROPOSAL_PREFIX = "proposal_"
AUCTION_PREFIX = "auction_"
SALE_PREFIX = "sale_"
CREDITS_PREFIX = "credits_"
PROCEEDS_PREFIX = "proceeds_"


def proposal_key(proposal_id: str) -> str:
    return f"{PROPOSAL_PREFIX}{proposal_id}"


def auction_key(auction_id: str) -> str:
    return f"{AUCTION_PREFIX}{auction_id}"


def sale_key(sale_id: str) -> str:
    return f"{SALE_PREFIX}{sale_id}"


def encode_record(data: dict[str, Any]) -> bytes:
    """Canonical bytes for a record dict."""
    return canonicalize_json(data).encode("utf-8")


def decode_record(key: str, raw: bytes) -> dict[str, Any]:
    """
    Parse stored bytes back into a dict.

    Raises:
        CorruptRecordError: If the bytes are not a JSON object.
    """
    try:
        data = json.loads(raw.decode("utf-8"))
    except (UnicodeDecodeError, json.JSONDecodeError) as exc:
        raise CorruptRecordError(key, str(exc)) from exc
    if not isinstance(data, dict):
        raise CorruptRecordError(key, f"expected object, got {type(data).__name__}")
    return data


class LedgerRecord:
    """Shared codec for record dataclasses."""

    def to_dict(self) -> dict[str, Any]:
        raise NotImplementedError

    @classmethod
    def from_dict(cls, data: dict[str, Any]):
        raise NotImplementedError

    def to_bytes(self) -> bytes:
        return encode_record(self.to_dict())

    @classmethod
    def from_bytes(cls, key: str, raw: bytes):
        data = decode_record(key, raw)
        try:
            return cls.from_dict(data)
        except (KeyError, TypeError, ValueError) as exc:
            raise CorruptRecordError(key, f"{type(exc).__name__}: {exc}") from exc


@dataclass(frozen=True)
class GovernmentProfile(LedgerRecord):
    """Singleton describing the administering government department."""

    government_address: str
    government_name: str
    country: str
    dept_name: str

    def to_dict(self) -> dict[str, Any]:
        return {
            "governmentAddress": self.government_address,
            "governmentName": self.government_name,
            "country": self.country,
            "deptName": self.dept_name,
        }

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> GovernmentProfile:
        return cls(
            government_address=data["governmentAddress"],
            government_name=data["governmentName"],
            country=data["country"],
            dept_name=data["deptName"],
        )


@dataclass(frozen=True)
class Proposal(LedgerRecord):
    """
    Emission-reduction project asking for a credit allocation.

    Lifecycle: submitted (unapproved, 0 credits) -> approved (positive
    allocation) -> issued (allocation minted to the proposer).
    """

    id: str
    proposer: str
    project_description: str
    carbon_reduction_target: int
    approved: bool = False
    allocated_credits: int = 0
    issued: bool = False

    def to_dict(self) -> dict[str, Any]:
        return {
            "id": self.id,
            "proposer": self.proposer,
            "projectDescription": self.project_description,
            "carbonReductionTarget": self.carbon_reduction_target,
            "approved": self.approved,
            "allocatedCredits": self.allocated_credits,
            "issued": self.issued,
        }

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> Proposal:
        return cls(
            id=data["id"],
            proposer=data["proposer"],
            project_description=data["projectDescription"],
            carbon_reduction_target=int(data["carbonReductionTarget"]),
            approved=bool(data["approved"]),
            allocated_credits=int(data["allocatedCredits"]),
            issued=bool(data.get("issued", False)),
        )

    def approve(self, credits: int) -> Proposal:
        return replace(self, approved=True, allocated_credits=credits)

    def mark_issued(self) -> Proposal:
        return replace(self, issued=True)


@dataclass(frozen=True)
class Auction(LedgerRecord):
    """
    Time-bounded sale of a government credit pool to the highest bidder.

    ``end_time`` is epoch milliseconds.  ``highest_bidder`` is empty until
    the first accepted bid.
    """

    id: str
    total_credits: int
    starting_bid: int
    end_time: int
    highest_bid: int = 0
    highest_bidder: str = ""
    ended: bool = False
    creator: str = ""

    def to_dict(self) -> dict[str, Any]:
        return {
            "id": self.id,
            "totalCredits": self.total_credits,
            "startingBid": self.starting_bid,
            "highestBid": self.highest_bid,
            "highestBidder": self.highest_bidder,
            "endTime": self.end_time,
            "ended": self.ended,
            "creator": self.creator,
        }

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> Auction:
        return cls(
            id=data["id"],
            total_credits=int(data["totalCredits"]),
            starting_bid=int(data["startingBid"]),
            end_time=int(data["endTime"]),
            highest_bid=int(data["highestBid"]),
            highest_bidder=data["highestBidder"],
            ended=bool(data["ended"]),
            creator=data.get("creator", ""),
        )

    @property
    def has_bids(self) -> bool:
        return self.highest_bidder != ""

    def is_open_at(self, now_ms: int) -> bool:
        """Bids are accepted up to and including ``end_time``."""
        return not self.ended and now_ms <= self.end_time

    def with_bid(self, bidder: str, amount: int) -> Auction:
        return replace(self, highest_bid=amount, highest_bidder=bidder)

    def close(self) -> Auction:
        return replace(self, ended=True)


@dataclass(frozen=True)
class Sale(LedgerRecord):
    """Standing secondary-market offer at a fixed price per credit."""

    id: str
    credits_for_sale: int
    price_per_credit: int
    seller: str
    sold: bool = False

    def to_dict(self) -> dict[str, Any]:
        return {
            "id": self.id,
            "creditsForSale": self.credits_for_sale,
            "pricePerCredit": self.price_per_credit,
            "seller": self.seller,
            "sold": self.sold,
        }

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> Sale:
        return cls(
            id=data["id"],
            credits_for_sale=int(data["creditsForSale"]),
            price_per_credit=int(data["pricePerCredit"]),
            seller=data["seller"],
            sold=bool(data["sold"]),
        )

    def fill(self, credits: int) -> Sale:
        """Remove ``credits`` from the listing; sold once nothing remains."""
        remaining = self.credits_for_sale - credits
        return replace(self, credits_for_sale=remaining, sold=remaining == 0)


@dataclass(frozen=True)
class CreditAccount(LedgerRecord):
    """
    Carbon credits held by one identity.

    Contract:
        The only representation of credit ownership.  ``credit`` and
        ``debit`` return a new account; the balance never goes negative.
    """

    KEY_PREFIX: ClassVar[str] = CREDITS_PREFIX

    owner: str
    balance: int = 0

    def __post_init__(self) -> None:
        if self.balance < 0:
            raise ValueError(f"negative balance {self.balance} for {self.owner}")

    @classmethod
    def key_for(cls, owner: str) -> str:
        return f"{cls.KEY_PREFIX}{owner}"

    @property
    def key(self) -> str:
        return self.key_for(self.owner)

    def to_dict(self) -> dict[str, Any]:
        return {"owner": self.owner, "balance": self.balance}

    @classmethod
    def from_dict(cls, data: dict[str, Any]):
        return cls(owner=data["owner"], balance=int(data["balance"]))

    def credit(self, amount: int):
        if amount <= 0:
            raise InvalidAmountError("credit amount", amount, "must be positive")
        return replace(self, balance=self.balance + amount)

    def debit(self, amount: int):
        if amount <= 0:
            raise InvalidAmountError("debit amount", amount, "must be positive")
        if amount > self.balance:
            raise InsufficientCreditsError(self.owner, self.balance, amount)
        return replace(self, balance=self.balance - amount)


@dataclass(frozen=True)
class ProceedsAccount(CreditAccount):
    """
    Informational sale revenue earned by a seller.

    Buyers are never debited: there is no currency ledger, only this
    record of what each seller is owed.
    """

    KEY_PREFIX: ClassVar[str] = PROCEEDS_PREFIX
