"""
SequenceService -- monotonic sequence allocation via locked counter rows.

Responsibility:
    Provides strictly monotonically increasing sequence numbers, used to
    mint transaction ids for invocations that arrive without one.  Uses a
    dedicated counter table with row-level locking (``SELECT ... FOR UPDATE``)
    to guarantee uniqueness and ordering under concurrent access.

Architecture position:
    Kernel > Services -- imperative shell infrastructure.
    Called by InvocationService in its own short transaction, so the counter
    row lock is never held while marketplace logic runs.

Invariants enforced:
    - Sequence monotonicity: the locked counter row is the sole source of
      truth for the next value.  Aggregate-max-plus-one is never used.

Failure modes:
    - IntegrityError: Concurrent counter creation race (handled via
      savepoint rollback and retry).
"""

from sqlalchemy import BigInteger, Integer, String, select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Mapped, Session, mapped_column

from carbon_kernel.db.base import Base
from carbon_kernel.logging_config import get_logger

logger = get_logger("services.sequence")


class SequenceCounter(Base):
    """
    Sequence counter table.

    Each row represents a named sequence with its current value.
    Row-level locking ensures monotonicity under concurrency.
    """

    __tablename__ = "sequence_counters"

    id: Mapped[int] = mapped_column(
        Integer,
        primary_key=True,
        autoincrement=True,
    )

    # Sequence name (e.g., "transaction")
    name: Mapped[str] = mapped_column(
        String(50),
        nullable=False,
        unique=True,
    )

    current_value: Mapped[int] = mapped_column(
        BigInteger,
        nullable=False,
        default=0,
    )


def format_tx_id(value: int) -> str:
    """Render a transaction sequence value as a transaction id."""
    return f"tx-{value:012d}"


class SequenceService:
    """
    Service for generating transactional sequence numbers.

    Contract:
        Accepts a sequence name and returns the next strictly-monotonic
        integer value.  The increment is transactional -- it is only
        committed when the caller's transaction commits.

    Non-goals:
        - Does NOT call ``session.commit()`` -- caller controls boundaries.

    Usage:
        with session_scope() as session:
            seq = SequenceService(session).next_value(SequenceService.TRANSACTION)
    """

    # Well-known sequence names
    TRANSACTION = "transaction"

    def __init__(self, session: Session):
        self._session = session

    def _locked_counter(self, sequence_name: str) -> SequenceCounter | None:
        return self._session.execute(
            select(SequenceCounter)
            .where(SequenceCounter.name == sequence_name)
            .with_for_update()
            .execution_options(populate_existing=True)
        ).scalar_one_or_none()

    def next_value(self, sequence_name: str) -> int:
        """
        Get the next value for a named sequence.

        Postconditions:
            - Returns an integer > 0 that is strictly greater than any
              previously returned value for this sequence name.
            - The counter row is locked until the transaction completes.
        """
        counter = self._locked_counter(sequence_name)

        if counter is None:
            # First use of this sequence; another session may be creating it.
            savepoint = self._session.begin_nested()
            try:
                self._session.add(SequenceCounter(name=sequence_name, current_value=1))
                self._session.flush()
                savepoint.commit()
                logger.debug(
                    "sequence_allocated",
                    extra={"sequence_name": sequence_name, "value": 1},
                )
                return 1
            except IntegrityError:
                logger.debug(
                    "sequence_counter_race_retry",
                    extra={"sequence_name": sequence_name},
                )
                savepoint.rollback()
                self._session.expire_all()
                counter = self._locked_counter(sequence_name)
                if counter is None:
                    raise

        counter.current_value += 1
        self._session.flush()
        logger.debug(
            "sequence_allocated",
            extra={"sequence_name": sequence_name, "value": counter.current_value},
        )
        return counter.current_value

    def current_value(self, sequence_name: str) -> int | None:
        """
        Get the current value of a sequence without incrementing.

        Returns:
            Current value, or None if sequence doesn't exist.
        """
        counter = self._session.execute(
            select(SequenceCounter)
            .where(SequenceCounter.name == sequence_name)
        ).scalar_one_or_none()

        return counter.current_value if counter else None

    def initialize_sequences(self) -> None:
        """
        Initialize all well-known sequences.

        Called during database setup to ensure sequences exist.
        """
        for name in [self.TRANSACTION]:
            existing = self._session.execute(
                select(SequenceCounter)
                .where(SequenceCounter.name == name)
            ).scalar_one_or_none()

            if existing is None:
                self._session.add(SequenceCounter(name=name, current_value=0))

        self._session.flush()
