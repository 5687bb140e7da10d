"""
Ledger and identity collaborators, and the per-invocation context.

Responsibility:
    Declares the two interfaces the marketplace logic consumes (LedgerAccess
    for key/value state, IdentityAccess for the caller) and bundles them with
    the transaction timestamp and id generator into a TransactionContext.

Architecture position:
    Kernel > Domain -- interfaces only, zero I/O.  The SQLAlchemy-backed
    LedgerAccess lives in services/world_state_service.py.

Invariants enforced:
    - ``now`` and ``caller`` are fixed for the whole invocation.
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from datetime import datetime
from typing import Iterator

from carbon_kernel.domain.clock import to_epoch_ms
from carbon_kernel.domain.ids import RecordIdGenerator


class LedgerAccess(ABC):
    """
    Key/value access scoped to the currently executing transaction.

    Contract:
        ``get`` returns the bytes visible to this transaction (including its
        own earlier writes) or None.  ``put`` stages a write that becomes
        visible to other transactions only when the transaction commits.
    """

    @abstractmethod
    def get(self, key: str) -> bytes | None:
        ...

    @abstractmethod
    def put(self, key: str, value: bytes) -> None:
        ...

    @abstractmethod
    def scan_prefix(self, prefix: str) -> Iterator[tuple[str, bytes]]:
        """Yield (key, value) pairs whose key starts with ``prefix``, in key order."""
        ...


class IdentityAccess(ABC):
    """Resolves the identity of the party invoking the current transaction."""

    @abstractmethod
    def current_caller_identity(self) -> str:
        ...


class StaticIdentity(IdentityAccess):
    """Identity already resolved by the authentication layer."""

    def __init__(self, identity: str):
        if not identity:
            raise ValueError("caller identity must be a non-empty string")
        self._identity = identity

    def current_caller_identity(self) -> str:
        return self._identity


@dataclass
class TransactionContext:
    """Everything one marketplace invocation may observe."""

    ledger: LedgerAccess
    identity: IdentityAccess
    timestamp: datetime
    tx_id: str
    government_identity: str | None = None
    _ids: RecordIdGenerator = field(init=False, repr=False)

    def __post_init__(self) -> None:
        self._ids = RecordIdGenerator(self.tx_id)

    @property
    def caller(self) -> str:
        return self.identity.current_caller_identity()

    @property
    def now_ms(self) -> int:
        return to_epoch_ms(self.timestamp)

    def new_id(self, kind: str) -> str:
        return self._ids.next_id(kind)

    @property
    def created_ids(self) -> tuple[str, ...]:
        return self._ids.issued
