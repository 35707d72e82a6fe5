import logging
from typing import Any, Dict, List, Optional, Sequence
from uuid import UUID, uuid4

from removals_crm.core.constants import WORKLOAD_STATUSES
from removals_crm.core.exceptions import (
    AssignmentRuleNotFoundError,
    LeadNotFoundError,
    StaffNotFoundError,
)
from removals_crm.models.lead import Lead
from removals_crm.models.staff import StaffMember
from removals_crm.repositories.activity_repository import ActivityRepository
from removals_crm.repositories.lead_repository import LeadRepository
from removals_crm.repositories.staff_repository import StaffRepository
from removals_crm.schemas.assignment import (
    AssignmentRule,
    AssignmentRuleCreate,
    AssignmentRuleUpdate,
    StaffWorkload,
)
from removals_crm.schemas.common import ActivityType

logger = logging.getLogger(__name__)

REASON_RULE = "rule-based"
REASON_LOAD_BALANCED = "load-balanced"


class AssignmentRuleStore:
    """Assignment rules held in memory for the lifetime of the process."""

    def __init__(self, rules: Optional[Sequence[AssignmentRule]] = None) -> None:
        self._rules: Dict[str, AssignmentRule] = {
            rule.id: rule for rule in rules or ()
        }

    def get_rules(self) -> List[AssignmentRule]:
        """All rules, lowest priority number first (insertion order on ties)."""
        return sorted(self._rules.values(), key=lambda rule: rule.priority)

    def get_rule(self, rule_id: str) -> AssignmentRule:
        rule = self._rules.get(rule_id)
        if rule is None:
            raise AssignmentRuleNotFoundError(f"Assignment rule {rule_id} not found")
        return rule

    def add_rule(self, data: AssignmentRuleCreate) -> AssignmentRule:
        rule = AssignmentRule(id=f"rule_{uuid4().hex[:12]}", **data.model_dump())
        self._rules[rule.id] = rule
        return rule

    def update_rule(self, rule_id: str, updates: AssignmentRuleUpdate) -> AssignmentRule:
        rule = self.get_rule(rule_id)
        changes = {
            field: value
            for field, value in updates.model_dump(exclude_unset=True).items()
            if value is not None
        }
        updated = AssignmentRule.model_validate({**rule.model_dump(), **changes})
        self._rules[rule_id] = updated
        return updated

    def delete_rule(self, rule_id: str) -> None:
        self.get_rule(rule_id)
        del self._rules[rule_id]


def rule_matches(rule: AssignmentRule, lead: Lead) -> bool:
    """True when every condition present on *rule* holds for *lead*.

    A lead with unknown bedrooms never satisfies a rule that sets a
    bedroom bound, but does not affect rules without one.
    """
    conditions = rule.conditions

    if conditions.sources:
        allowed = {source.value for source in conditions.sources}
        if lead.source not in allowed:
            return False

    if conditions.postcodes:
        postcode = (lead.from_postcode or "").upper()
        if not any(
            postcode.startswith(prefix.strip().upper())
            for prefix in conditions.postcodes
        ):
            return False

    if conditions.has_bedroom_bounds:
        if lead.bedrooms is None:
            return False
        if conditions.min_bedrooms is not None and lead.bedrooms < conditions.min_bedrooms:
            return False
        if conditions.max_bedrooms is not None and lead.bedrooms > conditions.max_bedrooms:
            return False

    return True


class LeadAssignmentManager:
    """Chooses an owner for a lead.

    Enabled rules are tried in priority order and the first one whose
    target is an active staff member wins.  Otherwise the lead goes to
    the active staff member with the fewest leads in
    ``WORKLOAD_STATUSES``; ties go to the alphabetically first name.
    """

    def __init__(self, rule_store: Optional[AssignmentRuleStore] = None) -> None:
        self._rules: AssignmentRuleStore = rule_store or AssignmentRuleStore()

    @property
    def rule_store(self) -> AssignmentRuleStore:
        return self._rules

    async def assign_lead(
        self,
        lead: Lead,
        staff_repo: StaffRepository,
        lead_repo: LeadRepository,
        activity_repo: ActivityRepository,
    ) -> Optional[StaffMember]:
        """Assign an unowned lead and return the new owner.

        Returns ``None`` without side effects when the lead already has
        an owner or there is nobody active to give it to.
        """
        if lead.assigned_to_id is not None:
            return None

        active_staff = await staff_repo.get_active_staff()
        if not active_staff:
            logger.info("No active staff to assign lead %s to", lead.id)
            return None

        metadata: Dict[str, Any]
        rule_choice = self._match_rule(lead, active_staff)
        if rule_choice is not None:
            rule, assignee = rule_choice
            metadata = {
                "reason": REASON_RULE,
                "rule_id": rule.id,
                "rule_name": rule.name,
            }
        else:
            assignee = await self._least_loaded(active_staff, lead_repo)
            metadata = {"reason": REASON_LOAD_BALANCED}

        lead.assigned_to_id = assignee.id
        await lead_repo.save(lead)
        await activity_repo.create(
            lead_id=lead.id,
            type=ActivityType.assignment.value,
            description=f"Lead auto-assigned to {assignee.name}",
            details={
                "assigned_to_id": str(assignee.id),
                "assigned_to_name": assignee.name,
                **metadata,
            },
        )
        logger.info(
            "Lead %s assigned to %s (%s)", lead.id, assignee.name, metadata["reason"]
        )
        return assignee

    async def manual_assign(
        self,
        lead_id: UUID,
        user_id: UUID,
        acting_user_id: Optional[UUID],
        staff_repo: StaffRepository,
        lead_repo: LeadRepository,
        activity_repo: ActivityRepository,
    ) -> Lead:
        """Give *lead_id* to *user_id*, replacing any current owner.

        Raises:
            LeadNotFoundError: If the lead does not exist.
            StaffNotFoundError: If the staff member does not exist.
        """
        lead = await lead_repo.get_by_id(lead_id)
        if lead is None:
            raise LeadNotFoundError()

        assignee = await staff_repo.get_by_id(user_id)
        if assignee is None:
            raise StaffNotFoundError()

        previous = None
        if lead.assigned_to_id is not None:
            previous = await staff_repo.get_by_id(lead.assigned_to_id)

        lead.assigned_to_id = assignee.id
        await lead_repo.save(lead)

        if previous is not None:
            description = f"Lead reassigned from {previous.name} to {assignee.name}"
        else:
            description = f"Lead manually assigned to {assignee.name}"

        await activity_repo.create(
            lead_id=lead.id,
            staff_id=acting_user_id,
            type=ActivityType.assignment.value,
            description=description,
            details={
                "assigned_to_id": str(assignee.id),
                "assigned_to_name": assignee.name,
                "previous_assignee_id": str(previous.id) if previous else None,
                "previous_assignee_name": previous.name if previous else None,
                "manual": True,
            },
        )
        await lead_repo.commit()
        return lead

    async def get_staff_workload(
        self, staff_repo: StaffRepository, lead_repo: LeadRepository
    ) -> List[StaffWorkload]:
        active_staff = await staff_repo.get_active_staff()
        staff_ids = [member.id for member in active_staff]
        new_counts = await lead_repo.count_by_owner_and_status(
            staff_ids, WORKLOAD_STATUSES
        )
        totals = await lead_repo.count_by_owner(staff_ids)
        return [
            StaffWorkload(
                staff_id=member.id,
                name=member.name,
                new_leads=new_counts.get(member.id, 0),
                total_leads=totals.get(member.id, 0),
            )
            for member in active_staff
        ]

    # ------------------------------------------------------------------
    # Private helpers
    # ------------------------------------------------------------------

    def _match_rule(
        self, lead: Lead, active_staff: List[StaffMember]
    ) -> Optional[tuple]:
        staff_by_id = {member.id: member for member in active_staff}
        for rule in self._rules.get_rules():
            if not rule.enabled or not rule_matches(rule, lead):
                continue
            assignee = staff_by_id.get(rule.assign_to_user_id)
            if assignee is None:
                logger.warning(
                    "Assignment rule %r targets unknown or inactive staff %s; skipping",
                    rule.name,
                    rule.assign_to_user_id,
                )
                continue
            return rule, assignee
        return None

    @staticmethod
    async def _least_loaded(
        active_staff: List[StaffMember], lead_repo: LeadRepository
    ) -> StaffMember:
        # One grouped query, so every count comes from the same snapshot
        counts = await lead_repo.count_by_owner_and_status(
            [member.id for member in active_staff], WORKLOAD_STATUSES
        )
        return min(
            active_staff,
            key=lambda member: (counts.get(member.id, 0), member.name, str(member.id)),
        )
