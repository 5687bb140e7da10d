"""ORM models for the carbon kernel."""

from carbon_kernel.models.committed_transaction import CommittedTransaction
from carbon_kernel.models.world_state import WorldStateEntry

__all__ = [
    "CommittedTransaction",
    "WorldStateEntry",
]
