"""Services for the carbon kernel (write side).

InvocationService is imported from ``carbon_kernel.services.invocation_service``
directly; it depends on the contract, which depends on this package.
"""

from carbon_kernel.services.account_service import AccountService
from carbon_kernel.services.auction_service import AuctionService
from carbon_kernel.services.government_service import GovernmentService
from carbon_kernel.services.proposal_service import ProposalService
from carbon_kernel.services.sale_service import SaleService
from carbon_kernel.services.sequence_service import SequenceService, format_tx_id
from carbon_kernel.services.world_state_service import WorldStateLedger

__all__ = [
    "AccountService",
    "AuctionService",
    "GovernmentService",
    "ProposalService",
    "SaleService",
    "SequenceService",
    "WorldStateLedger",
    "format_tx_id",
]
