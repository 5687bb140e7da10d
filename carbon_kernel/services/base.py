"""
MarketService -- abstract base for all marketplace services.

Responsibility:
    Provides the common constructor and record load/store helpers for every
    service that implements marketplace operations.  Services receive a
    TransactionContext and talk to the world state only through its
    LedgerAccess -- never through a database session.

Architecture position:
    Kernel > Services -- imperative shell over the pure domain records.

Invariants enforced:
    - Records created by an operation never overwrite an existing key.
    - Services never commit or roll back.  InvocationService owns the
      transaction boundary, so an exception anywhere in an operation
      discards all of that operation's writes.
"""

from abc import ABC
from typing import TypeVar

from carbon_kernel.domain.ledger import TransactionContext
from carbon_kernel.domain.records import LedgerRecord
from carbon_kernel.exceptions import DuplicateRecordError

RecordType = TypeVar("RecordType", bound=LedgerRecord)


class MarketService(ABC):
    """
    Abstract base class for marketplace services.

    Contract:
        Accepts the invocation's TransactionContext.  Reads return decoded
        records or None; writes encode canonically and ``put`` under the
        record's key.
    """

    def __init__(self, ctx: TransactionContext):
        self.ctx = ctx
        self.ledger = ctx.ledger

    def _read(self, record_type: type[RecordType], key: str) -> RecordType | None:
        raw = self.ledger.get(key)
        if raw is None or len(raw) == 0:
            return None
        return record_type.from_bytes(key, raw)

    def _write(self, key: str, record: LedgerRecord) -> None:
        self.ledger.put(key, record.to_bytes())

    def _create(self, key: str, record: LedgerRecord) -> None:
        """
        Store a new record under a key that must not exist yet.

        Raises:
            DuplicateRecordError: If the key already holds a record.
        """
        existing = self.ledger.get(key)
        if existing is not None and len(existing) > 0:
            raise DuplicateRecordError(key)
        self._write(key, record)
