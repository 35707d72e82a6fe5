from typing import Optional
from uuid import UUID

from fastapi import APIRouter, Depends

from removals_crm.api.deps import (
    get_activity_repo,
    get_assignment_manager,
    get_lead_repo,
    get_lead_review_service,
    get_staff_repo,
)
from removals_crm.repositories.activity_repository import ActivityRepository
from removals_crm.repositories.lead_repository import LeadRepository
from removals_crm.repositories.staff_repository import StaffRepository
from removals_crm.schemas.lead import (
    LeadAssignmentResponse,
    LeadOut,
    LeadReviewRequest,
    ManualAssignRequest,
)
from removals_crm.services.lead_assignment import LeadAssignmentManager
from removals_crm.services.lead_review_service import LeadReviewService

router = APIRouter(prefix="/leads", tags=["Leads"])


@router.post("/{lead_id}/assign", response_model=LeadAssignmentResponse)
async def assign_lead(
    lead_id: UUID,
    payload: ManualAssignRequest,
    manager: LeadAssignmentManager = Depends(get_assignment_manager),
    lead_repo: LeadRepository = Depends(get_lead_repo),
    staff_repo: StaffRepository = Depends(get_staff_repo),
    activity_repo: ActivityRepository = Depends(get_activity_repo),
) -> LeadAssignmentResponse:
    """Manually (re)assign a lead, whoever owns it now."""
    lead = await manager.manual_assign(
        lead_id,
        payload.user_id,
        payload.acting_user_id,
        staff_repo=staff_repo,
        lead_repo=lead_repo,
        activity_repo=activity_repo,
    )
    return LeadAssignmentResponse(
        assigned=True,
        lead=LeadOut.model_validate(lead),
        assigned_to_id=lead.assigned_to_id,
    )


@router.post("/{lead_id}/accept", response_model=LeadAssignmentResponse)
async def accept_lead(
    lead_id: UUID,
    payload: Optional[LeadReviewRequest] = None,
    service: LeadReviewService = Depends(get_lead_review_service),
    lead_repo: LeadRepository = Depends(get_lead_repo),
    staff_repo: StaffRepository = Depends(get_staff_repo),
    activity_repo: ActivityRepository = Depends(get_activity_repo),
) -> LeadAssignmentResponse:
    """Accept a pending lead (``pending`` -> ``new``) and auto-assign it."""
    lead, assignee = await service.accept_lead(
        lead_id,
        payload.acting_user_id if payload else None,
        lead_repo=lead_repo,
        staff_repo=staff_repo,
        activity_repo=activity_repo,
    )
    return LeadAssignmentResponse(
        assigned=assignee is not None,
        lead=LeadOut.model_validate(lead),
        assigned_to_id=lead.assigned_to_id,
    )


@router.post("/{lead_id}/reject", response_model=LeadOut)
async def reject_lead(
    lead_id: UUID,
    payload: Optional[LeadReviewRequest] = None,
    service: LeadReviewService = Depends(get_lead_review_service),
    lead_repo: LeadRepository = Depends(get_lead_repo),
    activity_repo: ActivityRepository = Depends(get_activity_repo),
) -> LeadOut:
    lead = await service.reject_lead(
        lead_id,
        payload.acting_user_id if payload else None,
        lead_repo=lead_repo,
        activity_repo=activity_repo,
    )
    return LeadOut.model_validate(lead)
