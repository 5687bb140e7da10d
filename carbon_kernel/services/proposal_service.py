"""
ProposalService -- project proposals, approval and credit issuance.

Responsibility:
    Drives a Proposal through submitted -> approved -> issued and mints the
    approved allocation into the proposer's CreditAccount exactly once.

Architecture position:
    Kernel > Services.  Uses GovernmentService for capability checks and
    AccountService for the mint.

Invariants enforced:
    - allocated_credits is nonzero only if approved.
    - Approval happens once; issuance happens once (``issued`` flag).
    - Issuance is the only path that mints credits for a proposal.

Failure modes:
    - ProposalNotFoundError, AlreadyApprovedError, NotApprovedError,
      AlreadyIssuedError, InvalidAmountError.
    - NotInitializedError / UnauthorizedCallerError from the government
      check on approve and issue.
    - DuplicateRecordError if a submitted proposal id is already taken.
"""

from __future__ import annotations

from carbon_kernel.domain.records import Proposal, proposal_key
from carbon_kernel.exceptions import (
    AlreadyApprovedError,
    AlreadyIssuedError,
    InvalidAmountError,
    NotApprovedError,
    ProposalNotFoundError,
)
from carbon_kernel.logging_config import get_logger
from carbon_kernel.services.account_service import AccountService
from carbon_kernel.services.base import MarketService
from carbon_kernel.services.government_service import GovernmentService

logger = get_logger("services.proposals")


class ProposalService(MarketService):
    """Proposal lifecycle operations."""

    def __init__(
        self,
        ctx,
        government: GovernmentService | None = None,
        accounts: AccountService | None = None,
    ):
        super().__init__(ctx)
        self._government = government or GovernmentService(ctx)
        self._accounts = accounts or AccountService(ctx)

    def get(self, proposal_id: str) -> Proposal:
        """
        Load a proposal.

        Raises:
            ProposalNotFoundError: If no proposal exists under the id.
        """
        proposal = self._read(Proposal, proposal_key(proposal_id))
        if proposal is None:
            raise ProposalNotFoundError(proposal_id)
        return proposal

    def submit(self, description: str, target: int) -> Proposal:
        """
        Store a new unapproved proposal owned by the caller.

        Postconditions:
            approved is False, allocated_credits is 0, issued is False.
        """
        if target < 0:
            raise InvalidAmountError("carbon reduction target", target, "must not be negative")

        proposal = Proposal(
            id=self.ctx.new_id("proposal"),
            proposer=self.ctx.caller,
            project_description=description,
            carbon_reduction_target=target,
        )
        self._create(proposal_key(proposal.id), proposal)
        logger.info(
            "proposal_submitted",
            extra={
                "proposal_id": proposal.id,
                "proposer": proposal.proposer,
                "carbon_reduction_target": target,
            },
        )
        return proposal

    def approve(self, proposal_id: str, credits: int) -> Proposal:
        """
        Approve a proposal with a positive credit allocation.

        Raises:
            ProposalNotFoundError: If the proposal does not exist.
            AlreadyApprovedError: If it was approved before.
            InvalidAmountError: If credits <= 0.
        """
        self._government.require_government("approve projects")
        proposal = self.get(proposal_id)

        if proposal.approved:
            raise AlreadyApprovedError(proposal_id)
        if credits <= 0:
            raise InvalidAmountError("allocated credits", credits, "must be positive")

        approved = proposal.approve(credits)
        self._write(proposal_key(proposal_id), approved)
        logger.info(
            "proposal_approved",
            extra={"proposal_id": proposal_id, "allocated_credits": credits},
        )
        return approved

    def issue_credits(self, proposal_id: str) -> Proposal:
        """
        Mint the approved allocation to the proposer, once.

        Raises:
            ProposalNotFoundError: If the proposal does not exist.
            NotApprovedError: If it is not approved.
            AlreadyIssuedError: If credits were already minted for it.
        """
        self._government.require_government("issue carbon credits")
        proposal = self.get(proposal_id)

        if not proposal.approved:
            raise NotApprovedError(proposal_id)
        if proposal.issued:
            raise AlreadyIssuedError(proposal_id, proposal.allocated_credits)

        self._accounts.credit(proposal.proposer, proposal.allocated_credits)
        issued = proposal.mark_issued()
        self._write(proposal_key(proposal_id), issued)
        logger.info(
            "credits_issued",
            extra={
                "proposal_id": proposal_id,
                "proposer": proposal.proposer,
                "credits": proposal.allocated_credits,
            },
        )
        return issued
