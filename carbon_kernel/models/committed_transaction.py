"""
Module: carbon_kernel.models.committed_transaction
Responsibility: ORM persistence for the log of committed write invocations,
    one row per transaction id.
Architecture position: Kernel > Models.  May import from db/base.py only.
    MUST NOT import from services/, selectors/, domain/, or outer layers.

Invariants enforced:
    - A transaction id commits at most once (primary key on ``tx_id``).
      Record ids are derived from the transaction id, so a reused id would
      regenerate the ids of records that already exist.

Failure modes:
    - IntegrityError when two transactions commit the same ``tx_id``;
      InvocationService reports it as DuplicateTransactionError.

Audit relevance:
    Each row names the method, caller and write-set digest of one committed
    invocation.  Rows are inserted in the invocation's own transaction, so
    a rolled-back invocation leaves no row behind.
"""

from datetime import datetime

from sqlalchemy import DateTime, Integer, String, Text, func
from sqlalchemy.orm import Mapped, mapped_column

from carbon_kernel.db.base import Base


class CommittedTransaction(Base):
    """A write invocation that has committed."""

    __tablename__ = "committed_transactions"

    tx_id: Mapped[str] = mapped_column(
        String(64),
        primary_key=True,
    )

    method: Mapped[str] = mapped_column(
        String(64),
        nullable=False,
    )

    caller_id: Mapped[str] = mapped_column(
        Text,
        nullable=False,
    )

    attempts: Mapped[int] = mapped_column(
        Integer,
        nullable=False,
    )

    write_set_digest: Mapped[str | None] = mapped_column(
        String(64),
        nullable=True,
    )

    committed_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        server_default=func.now(),
        nullable=False,
    )

    def __repr__(self) -> str:
        return f"<CommittedTransaction {self.tx_id} {self.method}>"
