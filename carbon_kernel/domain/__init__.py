"""Pure domain layer: records, clock, identifiers and collaborator interfaces."""

from carbon_kernel.domain.clock import (
    Clock,
    DeterministicClock,
    SystemClock,
    to_epoch_ms,
)
from carbon_kernel.domain.ids import RecordIdGenerator
from carbon_kernel.domain.ledger import (
    IdentityAccess,
    LedgerAccess,
    StaticIdentity,
    TransactionContext,
)
from carbon_kernel.domain.records import (
    Auction,
    CreditAccount,
    GovernmentProfile,
    ProceedsAccount,
    Proposal,
    Sale,
)

__all__ = [
    "Auction",
    "Clock",
    "CreditAccount",
    "DeterministicClock",
    "GovernmentProfile",
    "IdentityAccess",
    "LedgerAccess",
    "ProceedsAccount",
    "Proposal",
    "RecordIdGenerator",
    "Sale",
    "StaticIdentity",
    "SystemClock",
    "TransactionContext",
    "to_epoch_ms",
]
