import logging
from typing import Optional, Tuple
from uuid import UUID

from removals_crm.core.constants import ALLOWED_TRANSITIONS
from removals_crm.core.exceptions import (
    InvalidStatusTransitionError,
    LeadNotFoundError,
)
from removals_crm.models.lead import Lead
from removals_crm.models.staff import StaffMember
from removals_crm.repositories.activity_repository import ActivityRepository
from removals_crm.repositories.lead_repository import LeadRepository
from removals_crm.repositories.staff_repository import StaffRepository
from removals_crm.schemas.common import ActivityType, LeadStatus
from removals_crm.services.lead_assignment import LeadAssignmentManager

logger = logging.getLogger(__name__)


def validate_status_transition(current_status: str, new_status: LeadStatus) -> None:
    """Validate status transitions using the single source of truth."""
    allowed = ALLOWED_TRANSITIONS.get(current_status, [])
    if new_status.value not in allowed:
        raise InvalidStatusTransitionError(
            f"Cannot transition from {current_status} to {new_status.value}"
        )


class LeadReviewService:
    """Inbox review of ingested leads.

    Ingested leads wait as ``pending`` until someone accepts them (they
    become ``new`` and get an owner) or rejects them.
    """

    def __init__(self, assignment_manager: LeadAssignmentManager) -> None:
        self._assignment_manager = assignment_manager

    async def accept_lead(
        self,
        lead_id: UUID,
        acting_user_id: Optional[UUID],
        lead_repo: LeadRepository,
        staff_repo: StaffRepository,
        activity_repo: ActivityRepository,
    ) -> Tuple[Lead, Optional[StaffMember]]:
        """Move a pending lead to ``new`` and assign it.

        Returns the lead and its new owner (``None`` when the lead already
        had one or no staff member is active).
        """
        lead = await self._transition(
            lead_id,
            LeadStatus.new,
            "Lead accepted",
            acting_user_id,
            lead_repo,
            activity_repo,
        )
        assignee = await self._assignment_manager.assign_lead(
            lead, staff_repo, lead_repo, activity_repo
        )
        await lead_repo.commit()
        return lead, assignee

    async def reject_lead(
        self,
        lead_id: UUID,
        acting_user_id: Optional[UUID],
        lead_repo: LeadRepository,
        activity_repo: ActivityRepository,
    ) -> Lead:
        lead = await self._transition(
            lead_id,
            LeadStatus.rejected,
            "Lead rejected",
            acting_user_id,
            lead_repo,
            activity_repo,
        )
        await lead_repo.commit()
        return lead

    async def _transition(
        self,
        lead_id: UUID,
        new_status: LeadStatus,
        description: str,
        acting_user_id: Optional[UUID],
        lead_repo: LeadRepository,
        activity_repo: ActivityRepository,
    ) -> Lead:
        lead = await lead_repo.get_by_id(lead_id)
        if lead is None:
            raise LeadNotFoundError()

        previous_status = lead.status
        validate_status_transition(previous_status, new_status)
        await lead_repo.update_status(lead, new_status.value)
        await activity_repo.create(
            lead_id=lead.id,
            staff_id=acting_user_id,
            type=ActivityType.status_change.value,
            description=description,
            details={"from": previous_status, "to": new_status.value},
        )
        logger.info("Lead %s moved %s -> %s", lead.id, previous_status, new_status.value)
        return lead
