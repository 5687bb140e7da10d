"""
Module: carbon_kernel.models.world_state
Responsibility: ORM persistence for the versioned key-value world state that
    every marketplace record (government profile, proposals, auctions, sales,
    accounts) lives in.
Architecture position: Kernel > Models.  May import from db/base.py only.
    MUST NOT import from services/, selectors/, domain/, or outer layers.

Invariants enforced:
    - One row per key (primary key on ``key``).
    - ``version`` starts at 1 and is incremented by SQLAlchemy on every UPDATE
      (``version_id_col``).  An UPDATE whose WHERE clause no longer matches the
      version the session loaded raises StaleDataError, which the ledger
      translates into OptimisticLockError.

Failure modes:
    - IntegrityError when two transactions insert the same absent key.
    - StaleDataError when two transactions update the same key.

Audit relevance:
    ``last_tx_id`` names the transaction that produced the current value, so
    every record can be traced back to the invocation that wrote it.
"""

from datetime import datetime

from sqlalchemy import BigInteger, DateTime, Index, LargeBinary, String, Text, func
from sqlalchemy.orm import Mapped, mapped_column

from carbon_kernel.db.base import Base


class WorldStateEntry(Base):
    """
    A single key/value pair of the world state.

    Contract:
        ``value`` holds the canonical JSON bytes of one record.  Keys are
        namespaced by record type (``proposal_<id>``, ``credits_<identity>``,
        ...), so a prefix scan lists all records of one type.

    Guarantees:
        - ``version`` is strictly increasing per key.
        - ``updated_at`` is refreshed by the database on every write.
    """

    __tablename__ = "world_state"

    __table_args__ = (
        Index("idx_world_state_last_tx", "last_tx_id"),
    )

    # Unbounded: account keys embed caller identities of any length
    key: Mapped[str] = mapped_column(
        Text,
        primary_key=True,
    )

    value: Mapped[bytes] = mapped_column(
        LargeBinary,
        nullable=False,
    )

    version: Mapped[int] = mapped_column(
        BigInteger,
        nullable=False,
    )

    # Transaction that wrote the current value
    last_tx_id: Mapped[str] = mapped_column(
        String(64),
        nullable=False,
    )

    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        server_default=func.now(),
        onupdate=func.now(),
        nullable=False,
    )

    __mapper_args__ = {"version_id_col": version}

    def __repr__(self) -> str:
        return f"<WorldStateEntry {self.key} v{self.version}>"
