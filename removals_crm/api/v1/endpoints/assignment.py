from typing import List

from fastapi import APIRouter, Depends, Response

from removals_crm.api.deps import (
    get_assignment_manager,
    get_lead_repo,
    get_rule_store,
    get_staff_repo,
)
from removals_crm.repositories.lead_repository import LeadRepository
from removals_crm.repositories.staff_repository import StaffRepository
from removals_crm.schemas.assignment import (
    AssignmentRule,
    AssignmentRuleCreate,
    AssignmentRuleUpdate,
    StaffWorkload,
)
from removals_crm.services.lead_assignment import (
    AssignmentRuleStore,
    LeadAssignmentManager,
)

router = APIRouter(prefix="/assignment", tags=["Assignment"])


@router.get("/rules", response_model=List[AssignmentRule])
async def list_rules(
    rule_store: AssignmentRuleStore = Depends(get_rule_store),
) -> List[AssignmentRule]:
    """Rules in evaluation order (ascending priority)."""
    return rule_store.get_rules()


@router.post("/rules", response_model=AssignmentRule, status_code=201)
async def add_rule(
    payload: AssignmentRuleCreate,
    rule_store: AssignmentRuleStore = Depends(get_rule_store),
) -> AssignmentRule:
    return rule_store.add_rule(payload)


@router.patch("/rules/{rule_id}", response_model=AssignmentRule)
async def update_rule(
    rule_id: str,
    payload: AssignmentRuleUpdate,
    rule_store: AssignmentRuleStore = Depends(get_rule_store),
) -> AssignmentRule:
    return rule_store.update_rule(rule_id, payload)


@router.delete("/rules/{rule_id}", status_code=204)
async def delete_rule(
    rule_id: str,
    rule_store: AssignmentRuleStore = Depends(get_rule_store),
) -> Response:
    rule_store.delete_rule(rule_id)
    return Response(status_code=204)


@router.get("/workload", response_model=List[StaffWorkload])
async def get_staff_workload(
    manager: LeadAssignmentManager = Depends(get_assignment_manager),
    staff_repo: StaffRepository = Depends(get_staff_repo),
    lead_repo: LeadRepository = Depends(get_lead_repo),
) -> List[StaffWorkload]:
    """Per active staff member: ``new`` leads and total leads owned."""
    return await manager.get_staff_workload(staff_repo, lead_repo)
