"""
WorldStateLedger -- SQLAlchemy-backed LedgerAccess with optimistic concurrency.

Responsibility:
    Implements ``get`` / ``put`` / ``scan_prefix`` over the ``world_state``
    table inside the caller's session, remembering the version of every key
    it reads so the read-set can be re-validated just before commit.

Architecture position:
    Kernel > Services -- imperative shell infrastructure.
    Constructed once per invocation by InvocationService; handed to the
    marketplace services inside a TransactionContext.

Invariants enforced:
    - Written keys: SQLAlchemy's ``version_id_col`` turns the UPDATE into
      ``... WHERE version = <loaded>``; a concurrent commit makes it match
      zero rows (StaleDataError).  Two inserts of one absent key collide on
      the primary key (IntegrityError).  Both become OptimisticLockError.
    - Read-only keys: ``validate_read_set`` re-reads their versions (with a
      shared row lock on PostgreSQL) and raises OptimisticLockError if any
      changed, or if an absent key has since been created.

Failure modes:
    - OptimisticLockError on any conflict above.  The session is then
      unusable and the caller's session_scope rolls it back.

Audit relevance:
    Every written row carries ``last_tx_id``.  ``write_set_digest`` is a
    SHA-256 over the staged writes, logged when the invocation commits.
"""

from __future__ import annotations

from typing import Iterator

from sqlalchemy import select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session
from sqlalchemy.orm.exc import StaleDataError

from carbon_kernel.domain.ledger import LedgerAccess
from carbon_kernel.exceptions import OptimisticLockError
from carbon_kernel.logging_config import get_logger
from carbon_kernel.models.world_state import WorldStateEntry
from carbon_kernel.utils.hashing import hash_payload

logger = get_logger("services.world_state")

_ABSENT: int = 0


class WorldStateLedger(LedgerAccess):
    """
    Transaction-scoped view of the world state.

    Contract:
        Never calls ``session.commit()`` -- the caller owns the transaction.
        Reads observe this transaction's own staged writes.

    Guarantees:
        - Each key is loaded from the database at most once per instance.
        - ``read_set`` maps every key observed to the version seen
          (0 for a key that did not exist).
    """

    def __init__(self, session: Session, tx_id: str):
        self._session = session
        self._tx_id = tx_id
        self._entries: dict[str, WorldStateEntry | None] = {}
        self._read_versions: dict[str, int] = {}
        self._writes: dict[str, bytes] = {}

    @property
    def tx_id(self) -> str:
        return self._tx_id

    @property
    def read_set(self) -> dict[str, int]:
        return dict(self._read_versions)

    @property
    def write_set(self) -> dict[str, bytes]:
        return dict(self._writes)

    def _load(self, key: str) -> WorldStateEntry | None:
        if key in self._entries:
            return self._entries[key]
        entry = self._session.get(WorldStateEntry, key)
        self._entries[key] = entry
        self._read_versions.setdefault(key, entry.version if entry else _ABSENT)
        return entry

    def get(self, key: str) -> bytes | None:
        entry = self._load(key)
        return entry.value if entry is not None else None

    def put(self, key: str, value: bytes) -> None:
        entry = self._load(key)
        if entry is None:
            entry = WorldStateEntry(key=key, value=value, last_tx_id=self._tx_id)
            self._session.add(entry)
            self._entries[key] = entry
        else:
            entry.value = value
            entry.last_tx_id = self._tx_id
        self._writes[key] = value
        self._flush(key)

    def scan_prefix(self, prefix: str) -> Iterator[tuple[str, bytes]]:
        stmt = (
            select(WorldStateEntry)
            .where(WorldStateEntry.key.startswith(prefix, autoescape=True))
            .order_by(WorldStateEntry.key)
        )
        for entry in self._session.execute(stmt).scalars():
            self._entries.setdefault(entry.key, entry)
            self._read_versions.setdefault(entry.key, entry.version)
            yield entry.key, entry.value

    def _flush(self, key: str) -> None:
        try:
            self._session.flush()
        except (StaleDataError, IntegrityError) as exc:
            logger.warning(
                "world_state_write_conflict",
                extra={"key": key, "tx_id": self._tx_id, "error": type(exc).__name__},
            )
            raise OptimisticLockError("world_state", key) from exc

    def validate_read_set(self) -> None:
        """
        Confirm no key this transaction only read was changed by another commit.

        Preconditions:
            Called once, after the marketplace operation finished and before
            the caller commits.

        Raises:
            OptimisticLockError: naming the first key whose version moved.
        """
        read_only = sorted(k for k in self._read_versions if k not in self._writes)
        if not read_only:
            return

        stmt = (
            select(WorldStateEntry.key, WorldStateEntry.version)
            .where(WorldStateEntry.key.in_(read_only))
            .with_for_update(read=True)
        )
        committed = {row.key: row.version for row in self._session.execute(stmt)}

        for key in read_only:
            seen = self._read_versions[key]
            current = committed.get(key, _ABSENT)
            if current != seen:
                logger.warning(
                    "read_set_invalidated",
                    extra={
                        "key": key,
                        "tx_id": self._tx_id,
                        "seen_version": seen,
                        "current_version": current,
                    },
                )
                raise OptimisticLockError("world_state", key)

    def write_set_digest(self) -> str:
        return hash_payload({key: value for key, value in sorted(self._writes.items())})
