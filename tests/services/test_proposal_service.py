"""
Tests for ProposalService.

Covers:
- Submission defaults and deterministic ids
- Approval: authorization, positivity, single approval
- Issuance: requires approval, mints exactly once
"""

import pytest

from carbon_kernel.exceptions import (
    AlreadyApprovedError,
    AlreadyIssuedError,
    DuplicateRecordError,
    InvalidAmountError,
    NotApprovedError,
    NotInitializedError,
    ProposalNotFoundError,
    UnauthorizedCallerError,
)
from carbon_kernel.services.account_service import AccountService
from carbon_kernel.services.government_service import GovernmentService
from carbon_kernel.services.proposal_service import ProposalService
from tests.conftest import BUYER, GOVERNMENT, NGO


@pytest.fixture
def initialized(make_ctx):
    GovernmentService(make_ctx(GOVERNMENT)).initialize("Republic", "Testland", "Climate")


@pytest.fixture
def submitted(make_ctx, initialized):
    return ProposalService(make_ctx(NGO)).submit("Mangrove restoration", 500)


class TestSubmit:

    def test_defaults(self, make_ctx):
        proposal = ProposalService(make_ctx(NGO)).submit("Solar farm", 1200)

        assert proposal.proposer == NGO
        assert proposal.carbon_reduction_target == 1200
        assert proposal.approved is False
        assert proposal.allocated_credits == 0
        assert proposal.issued is False

    def test_persisted_under_proposal_key(self, make_ctx, session):
        from carbon_kernel.models.world_state import WorldStateEntry

        proposal = ProposalService(make_ctx(NGO)).submit("Solar farm", 1200)
        entry = session.get(WorldStateEntry, f"proposal_{proposal.id}")
        assert entry is not None
        assert entry.last_tx_id.startswith("tx-test-")

    def test_no_initialization_required(self, make_ctx):
        ProposalService(make_ctx(NGO)).submit("Wind", 10)

    def test_ids_are_unique_within_one_transaction(self, make_ctx):
        service = ProposalService(make_ctx(NGO))
        first = service.submit("A", 1)
        second = service.submit("B", 2)
        assert first.id != second.id

    def test_negative_target_rejected(self, make_ctx):
        with pytest.raises(InvalidAmountError):
            ProposalService(make_ctx(NGO)).submit("Bad", -1)

    def test_reused_transaction_id_cannot_replace_issued_proposal(self, make_ctx, initialized):
        original = ProposalService(make_ctx(NGO, tx_id="tx-client-1")).submit("Mangroves", 500)
        ProposalService(make_ctx(GOVERNMENT)).approve(original.id, 100)
        ProposalService(make_ctx(GOVERNMENT)).issue_credits(original.id)

        with pytest.raises(DuplicateRecordError) as exc_info:
            ProposalService(make_ctx(BUYER, tx_id="tx-client-1")).submit("Copy", 1)
        assert exc_info.value.key == f"proposal_{original.id}"

        stored = ProposalService(make_ctx(NGO)).get(original.id)
        assert stored.proposer == NGO
        assert stored.issued is True
        accounts = AccountService(make_ctx(NGO))
        assert accounts.balance_of(NGO) == 100
        assert accounts.balance_of(BUYER) == 0


class TestApprove:

    def test_approve_sets_allocation(self, make_ctx, submitted):
        approved = ProposalService(make_ctx(GOVERNMENT)).approve(submitted.id, 100)
        assert approved.approved is True
        assert approved.allocated_credits == 100

        reloaded = ProposalService(make_ctx(NGO)).get(submitted.id)
        assert reloaded == approved

    def test_second_approval_rejected(self, make_ctx, submitted):
        ProposalService(make_ctx(GOVERNMENT)).approve(submitted.id, 100)
        with pytest.raises(AlreadyApprovedError):
            ProposalService(make_ctx(GOVERNMENT)).approve(submitted.id, 200)
        assert ProposalService(make_ctx(NGO)).get(submitted.id).allocated_credits == 100

    @pytest.mark.parametrize("credits", [0, -10])
    def test_non_positive_credits_rejected(self, make_ctx, submitted, credits):
        with pytest.raises(InvalidAmountError):
            ProposalService(make_ctx(GOVERNMENT)).approve(submitted.id, credits)

    def test_unknown_proposal(self, make_ctx, initialized):
        with pytest.raises(ProposalNotFoundError) as exc_info:
            ProposalService(make_ctx(GOVERNMENT)).approve("missing", 100)
        assert exc_info.value.record_id == "missing"
        assert exc_info.value.code == "NOT_FOUND"

    def test_non_government_rejected(self, make_ctx, submitted):
        with pytest.raises(UnauthorizedCallerError):
            ProposalService(make_ctx(NGO)).approve(submitted.id, 100)

    def test_requires_initialized_ledger(self, make_ctx):
        proposal = ProposalService(make_ctx(NGO)).submit("Wind", 10)
        with pytest.raises(NotInitializedError):
            ProposalService(make_ctx(GOVERNMENT)).approve(proposal.id, 100)


class TestIssueCredits:

    def test_issue_mints_to_proposer(self, make_ctx, submitted):
        ProposalService(make_ctx(GOVERNMENT)).approve(submitted.id, 100)
        issued = ProposalService(make_ctx(GOVERNMENT)).issue_credits(submitted.id)

        assert issued.issued is True
        assert AccountService(make_ctx(NGO)).balance_of(NGO) == 100

    def test_unapproved_rejected(self, make_ctx, submitted):
        with pytest.raises(NotApprovedError):
            ProposalService(make_ctx(GOVERNMENT)).issue_credits(submitted.id)
        assert AccountService(make_ctx(NGO)).balance_of(NGO) == 0

    def test_second_issue_rejected(self, make_ctx, submitted):
        ProposalService(make_ctx(GOVERNMENT)).approve(submitted.id, 100)
        ProposalService(make_ctx(GOVERNMENT)).issue_credits(submitted.id)

        with pytest.raises(AlreadyIssuedError) as exc_info:
            ProposalService(make_ctx(GOVERNMENT)).issue_credits(submitted.id)
        assert exc_info.value.allocated_credits == 100
        assert AccountService(make_ctx(NGO)).balance_of(NGO) == 100

    def test_non_government_rejected(self, make_ctx, submitted):
        ProposalService(make_ctx(GOVERNMENT)).approve(submitted.id, 100)
        with pytest.raises(UnauthorizedCallerError):
            ProposalService(make_ctx(NGO)).issue_credits(submitted.id)
