"""Accepting and rejecting ingested leads."""

from uuid import uuid4

import pytest

from fakes import FakeLeadRepository, FakeStaffRepository, make_lead, make_staff
from removals_crm.core.exceptions import (
    InvalidStatusTransitionError,
    LeadNotFoundError,
)
from removals_crm.schemas.common import LeadStatus
from removals_crm.services.lead_assignment import LeadAssignmentManager
from removals_crm.services.lead_review_service import (
    LeadReviewService,
    validate_status_transition,
)


@pytest.fixture
def review_service() -> LeadReviewService:
    return LeadReviewService(assignment_manager=LeadAssignmentManager())


class TestValidateStatusTransition:
    def test_pending_can_be_accepted_or_rejected(self):
        validate_status_transition("pending", LeadStatus.new)
        validate_status_transition("pending", LeadStatus.rejected)

    @pytest.mark.parametrize(
        "current, target",
        [
            ("rejected", LeadStatus.new),
            ("new", LeadStatus.rejected),
            ("won", LeadStatus.new),
        ],
    )
    def test_everything_else_is_refused(self, current, target):
        with pytest.raises(InvalidStatusTransitionError) as exc_info:
            validate_status_transition(current, target)
        assert exc_info.value.detail == (
            f"Cannot transition from {current} to {target.value}"
        )


class TestAcceptLead:
    @pytest.mark.asyncio
    async def test_accept_moves_to_new_and_assigns(self, review_service, activity_repo):
        lead = make_lead()
        lead_repo = FakeLeadRepository([lead])
        staff_repo = FakeStaffRepository([make_staff("Bob"), make_staff("Alice")])
        actor = uuid4()

        accepted, assignee = await review_service.accept_lead(
            lead.id, actor, lead_repo, staff_repo, activity_repo
        )

        assert accepted.status == "new"
        assert assignee.name == "Alice"
        assert accepted.assigned_to_id == assignee.id
        status_change, assignment = activity_repo.activities
        assert status_change.type == "status_change"
        assert status_change.description == "Lead accepted"
        assert status_change.details == {"from": "pending", "to": "new"}
        assert status_change.staff_id == actor
        assert assignment.type == "assignment"
        assert lead_repo.commits == 1

    @pytest.mark.asyncio
    async def test_accept_keeps_existing_owner(self, review_service, activity_repo):
        owner = make_staff("Carol")
        lead = make_lead(assigned_to_id=owner.id)
        lead_repo = FakeLeadRepository([lead])

        accepted, assignee = await review_service.accept_lead(
            lead.id, None, lead_repo, FakeStaffRepository([owner]), activity_repo
        )

        assert assignee is None
        assert accepted.assigned_to_id == owner.id
        assert accepted.status == "new"

    @pytest.mark.asyncio
    async def test_accept_twice_is_refused(self, review_service, activity_repo):
        lead = make_lead(status="new")

        with pytest.raises(InvalidStatusTransitionError):
            await review_service.accept_lead(
                lead.id,
                None,
                FakeLeadRepository([lead]),
                FakeStaffRepository(),
                activity_repo,
            )
        assert activity_repo.activities == []

    @pytest.mark.asyncio
    async def test_unknown_lead(self, review_service, lead_repo, staff_repo, activity_repo):
        with pytest.raises(LeadNotFoundError):
            await review_service.accept_lead(
                uuid4(), None, lead_repo, staff_repo, activity_repo
            )


class TestRejectLead:
    @pytest.mark.asyncio
    async def test_reject(self, review_service, activity_repo):
        lead = make_lead()
        lead_repo = FakeLeadRepository([lead])

        rejected = await review_service.reject_lead(
            lead.id, None, lead_repo, activity_repo
        )

        assert rejected.status == "rejected"
        assert rejected.assigned_to_id is None
        assert activity_repo.activities[0].description == "Lead rejected"
        assert lead_repo.commits == 1

    @pytest.mark.asyncio
    async def test_rejected_is_terminal(self, review_service, activity_repo):
        lead = make_lead(status="rejected")

        with pytest.raises(InvalidStatusTransitionError):
            await review_service.reject_lead(
                lead.id, None, FakeLeadRepository([lead]), activity_repo
            )
