"""
InvocationService -- one dispatcher call, one atomic transaction.

Responsibility:
    Owns the transaction boundary for marketplace invocations: allocates a
    transaction id, freezes the transaction timestamp, opens a session,
    builds the TransactionContext, runs the contract method, validates the
    read-set and commits.  Any exception rolls the whole invocation back.

Architecture position:
    Kernel > Services -- imperative shell, the entry point a transport layer
    (RPC server, message consumer, test harness) calls.

Invariants enforced:
    - Atomicity: all writes of an invocation commit together or not at all.
    - Business errors are terminal and never retried.
    - ConcurrencyError is retried in a fresh transaction, up to
      ``max_attempts`` in total.  The retry reuses the transaction id and
      timestamp, so it produces the same record ids.
    - A write invocation commits each transaction id at most once.  The id
      is recorded in ``committed_transactions`` in the same transaction, so
      reusing it cannot regenerate the ids of existing records.

Failure modes:
    - Any MarketplaceError raised by the contract propagates unchanged.
    - OptimisticLockError propagates once attempts are exhausted.
    - DuplicateTransactionError if a write invocation reuses a committed
      transaction id.

Audit relevance:
    Every invocation logs ``invocation_committed`` (with the write-set digest)
    or ``invocation_rejected`` (with the error code), bound to tx_id,
    caller_id and method through LogContext.

Usage:
    service = build_invocation_service("default")
    # or, with an engine already initialized:
    service = InvocationService(get_session_factory(), SystemClock())
    result = service.invoke("placeBid", [auction_id, "60"], caller="x509::bidder")
    print(result.message)
"""

from __future__ import annotations

from dataclasses import dataclass
from pathlib import Path
from typing import Any, Sequence

from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session, sessionmaker

from carbon_kernel.contract import CarbonMarketplace
from carbon_kernel.db.engine import (
    create_tables,
    get_session_factory,
    init_engine_from_url,
    session_scope,
)
from carbon_kernel.domain.clock import Clock, SystemClock
from carbon_kernel.domain.ledger import StaticIdentity, TransactionContext
from carbon_kernel.exceptions import (
    ConcurrencyError,
    DuplicateTransactionError,
    InvalidArgumentError,
    MarketplaceError,
)
from carbon_kernel.logging_config import LogContext, configure_logging, get_logger
from carbon_kernel.models.committed_transaction import CommittedTransaction
from carbon_kernel.services.sequence_service import SequenceService, format_tx_id
from carbon_kernel.services.world_state_service import WorldStateLedger

logger = get_logger("services.invocation")

MAX_TX_ID_LENGTH = 64


@dataclass(frozen=True)
class InvocationResult:
    """Outcome of a committed invocation."""

    tx_id: str
    method: str
    caller: str
    message: str
    attempts: int
    created_ids: tuple[str, ...] = ()
    write_set_digest: str | None = None

    @property
    def record_id(self) -> str | None:
        """Id of the first record the invocation created, if any."""
        return self.created_ids[0] if self.created_ids else None


class InvocationService:
    """Runs contract methods inside atomic, retryable transactions."""

    DEFAULT_MAX_ATTEMPTS = 3

    def __init__(
        self,
        session_factory: sessionmaker[Session] | None = None,
        clock: Clock | None = None,
        government_identity: str | None = None,
        max_attempts: int = DEFAULT_MAX_ATTEMPTS,
    ):
        if max_attempts < 1:
            raise ValueError(f"max_attempts must be at least 1, got {max_attempts}")
        self._session_factory = session_factory
        self._clock = clock or SystemClock()
        self._government_identity = government_identity
        self._max_attempts = max_attempts

    @classmethod
    def from_config(
        cls,
        config: Any,
        session_factory: sessionmaker[Session] | None = None,
        clock: Clock | None = None,
    ) -> InvocationService:
        """Build from a MarketplaceConfig (any object with the same attributes)."""
        return cls(
            session_factory=session_factory,
            clock=clock,
            government_identity=config.government_identity,
            max_attempts=config.max_attempts,
        )

    def next_tx_id(self) -> str:
        """Allocate a transaction id in its own short transaction."""
        with session_scope(self._session_factory) as session:
            value = SequenceService(session).next_value(SequenceService.TRANSACTION)
        return format_tx_id(value)

    def invoke(
        self,
        method: str,
        args: Sequence[Any] = (),
        caller: str = "",
        tx_id: str | None = None,
        correlation_id: str | None = None,
    ) -> InvocationResult:
        """
        Execute ``method`` with ``args`` on behalf of ``caller``.

        Raises:
            UnknownMethodError: Before any transaction is opened.
            InvalidArgumentError: If ``caller`` is empty, or an explicit
                ``tx_id`` is empty or longer than MAX_TX_ID_LENGTH.
            DuplicateTransactionError: If a write method reuses the id of a
                committed transaction.
            MarketplaceError: Whatever the operation raises.
        """
        writes = not CarbonMarketplace.is_query(method)
        if not caller:
            raise InvalidArgumentError("caller", caller)
        if tx_id is None:
            tx_id = self.next_tx_id()
        elif not tx_id or len(tx_id) > MAX_TX_ID_LENGTH:
            raise InvalidArgumentError("tx_id", tx_id)

        timestamp = self._clock.now_utc()

        with LogContext.bind(
            tx_id=tx_id,
            caller_id=caller,
            method=method,
            correlation_id=correlation_id,
        ):
            attempt = 1
            while True:
                try:
                    result = self._run_once(
                        method, list(args), caller, tx_id, timestamp, attempt, writes
                    )
                except ConcurrencyError as exc:
                    if attempt >= self._max_attempts:
                        logger.error(
                            "invocation_conflict_exhausted",
                            extra={"attempts": attempt, "code": exc.code},
                        )
                        raise
                    logger.warning(
                        "invocation_conflict_retry",
                        extra={"attempt": attempt, "max_attempts": self._max_attempts},
                    )
                    attempt += 1
                    continue
                except MarketplaceError as exc:
                    logger.info(
                        "invocation_rejected",
                        extra={"code": exc.code, "reason": str(exc)},
                    )
                    raise
                return result

    def _run_once(
        self,
        method: str,
        args: list[Any],
        caller: str,
        tx_id: str,
        timestamp,
        attempt: int,
        writes: bool,
    ) -> InvocationResult:
        with session_scope(self._session_factory) as session:
            if writes and session.get(CommittedTransaction, tx_id) is not None:
                raise DuplicateTransactionError(tx_id)
            ledger = WorldStateLedger(session, tx_id)
            ctx = TransactionContext(
                ledger=ledger,
                identity=StaticIdentity(caller),
                timestamp=timestamp,
                tx_id=tx_id,
                government_identity=self._government_identity,
            )
            message = CarbonMarketplace(ctx).invoke(method, *args)
            ledger.validate_read_set()
            digest = ledger.write_set_digest() if ledger.write_set else None
            if writes:
                self._record_commit(session, tx_id, method, caller, attempt, digest)

        logger.info(
            "invocation_committed",
            extra={
                "attempts": attempt,
                "keys_written": len(ledger.write_set),
                "write_set_digest": digest,
            },
        )
        return InvocationResult(
            tx_id=tx_id,
            method=method,
            caller=caller,
            message=message,
            attempts=attempt,
            created_ids=ctx.created_ids,
            write_set_digest=digest,
        )

    def _record_commit(
        self,
        session: Session,
        tx_id: str,
        method: str,
        caller: str,
        attempt: int,
        digest: str | None,
    ) -> None:
        session.add(
            CommittedTransaction(
                tx_id=tx_id,
                method=method,
                caller_id=caller,
                attempts=attempt,
                write_set_digest=digest,
            )
        )
        try:
            session.flush()
        except IntegrityError as exc:
            # Another invocation committed the same id first
            raise DuplicateTransactionError(tx_id) from exc


def build_invocation_service(
    config_name: str = "default",
    config_dir: Path | None = None,
    clock: Clock | None = None,
) -> InvocationService:
    """Build an InvocationService from a configuration set (production entrypoint).

    Loads the set via get_active_config, applies its log level, initializes
    the engine from its database URL, creates any missing tables and
    sequence counters, and wires the government identity and retry limit.

    Args:
        config_name: Name of the YAML set under carbon_config/sets.
        config_dir: Optional directory holding the sets.
        clock: Optional clock; default SystemClock.
    """
    from carbon_config import get_active_config

    config = get_active_config(config_name, config_dir=config_dir)
    configure_logging(level=config.log_level)
    init_engine_from_url(config.database_url, echo=config.echo_sql)
    create_tables()
    session_factory = get_session_factory()
    with session_scope(session_factory) as session:
        SequenceService(session).initialize_sequences()
    return InvocationService.from_config(config, session_factory, clock)
