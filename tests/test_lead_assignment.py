"""Tests for rule-based and load-balanced lead assignment."""

import logging
from uuid import uuid4

import pytest
from pydantic import ValidationError

from fakes import FakeLeadRepository, FakeStaffRepository, make_lead, make_staff
from removals_crm.core.exceptions import (
    AssignmentRuleNotFoundError,
    LeadNotFoundError,
    StaffNotFoundError,
)
from removals_crm.schemas.assignment import (
    AssignmentConditions,
    AssignmentRuleCreate,
    AssignmentRuleUpdate,
)
from removals_crm.schemas.common import LeadSource
from removals_crm.services.lead_assignment import (
    REASON_LOAD_BALANCED,
    REASON_RULE,
    AssignmentRuleStore,
    LeadAssignmentManager,
    rule_matches,
)


def _rule(store: AssignmentRuleStore, assignee, priority=100, enabled=True, **conditions):
    return store.add_rule(
        AssignmentRuleCreate(
            name=f"to {assignee.name}",
            priority=priority,
            enabled=enabled,
            conditions=AssignmentConditions(**conditions),
            assign_to_user_id=assignee.id,
        )
    )


@pytest.fixture
def team():
    return make_staff("Alice"), make_staff("Bob"), make_staff("Carol")


class TestRuleMatching:
    def _matches(self, lead, **conditions):
        store = AssignmentRuleStore()
        return rule_matches(_rule(store, make_staff("X"), **conditions), lead)

    def test_rule_without_conditions_matches_everything(self):
        assert self._matches(make_lead())

    def test_source_condition(self):
        lead = make_lead(source="getamover")
        assert self._matches(lead, sources=[LeadSource.GETAMOVER, LeadSource.WEBSITE])
        assert not self._matches(lead, sources=[LeadSource.COMPAREMYMOVE])

    def test_postcode_prefix_is_case_insensitive(self):
        lead = make_lead(from_postcode="NN1 1AA")
        assert self._matches(lead, postcodes=["nn"])
        assert self._matches(lead, postcodes=["MK", "NN1"])
        assert not self._matches(lead, postcodes=["MK"])
        assert not self._matches(make_lead(from_postcode=None), postcodes=["NN"])

    def test_bedroom_bounds_are_inclusive(self):
        assert self._matches(make_lead(bedrooms=3), min_bedrooms=3, max_bedrooms=4)
        assert self._matches(make_lead(bedrooms=4), min_bedrooms=3, max_bedrooms=4)
        assert not self._matches(make_lead(bedrooms=5), max_bedrooms=4)
        assert not self._matches(make_lead(bedrooms=1), min_bedrooms=2)

    def test_unknown_bedrooms_never_satisfy_a_bound(self):
        lead = make_lead(bedrooms=None)
        assert not self._matches(lead, min_bedrooms=0)
        assert self._matches(lead, sources=[LeadSource.MANUAL])

    def test_inverted_bedroom_range_rejected(self):
        with pytest.raises(ValidationError):
            AssignmentConditions(min_bedrooms=5, max_bedrooms=2)


class TestAssignLead:
    """Verify rule priority and the load-balanced fallback."""

    @pytest.mark.asyncio
    async def test_lowest_priority_number_wins(self, team, activity_repo, lead_repo):
        alice, bob, carol = team
        manager = LeadAssignmentManager()
        _rule(manager.rule_store, bob, priority=5)
        winner = _rule(manager.rule_store, carol, priority=1)
        lead = make_lead(status="new")

        assignee = await manager.assign_lead(
            lead, FakeStaffRepository(list(team)), lead_repo, activity_repo
        )

        assert assignee is carol
        assert lead.assigned_to_id == carol.id
        details = activity_repo.activities[0].details
        assert details["reason"] == REASON_RULE
        assert details["rule_id"] == winner.id
        assert details["assigned_to_id"] == str(carol.id)
        assert activity_repo.activities[0].description == "Lead auto-assigned to Carol"

    @pytest.mark.asyncio
    async def test_disabled_rule_is_ignored(self, team, activity_repo, lead_repo):
        alice, bob, carol = team
        manager = LeadAssignmentManager()
        _rule(manager.rule_store, carol, priority=1, enabled=False)

        assignee = await manager.assign_lead(
            make_lead(), FakeStaffRepository(list(team)), lead_repo, activity_repo
        )

        assert assignee is alice
        assert activity_repo.activities[0].details["reason"] == REASON_LOAD_BALANCED

    @pytest.mark.asyncio
    async def test_rule_for_inactive_staff_falls_through(
        self, team, activity_repo, lead_repo, caplog
    ):
        alice, bob, carol = team
        retired = make_staff("Dave", is_active=False)
        manager = LeadAssignmentManager()
        _rule(manager.rule_store, retired, priority=1)
        _rule(manager.rule_store, bob, priority=2)

        with caplog.at_level(logging.WARNING):
            assignee = await manager.assign_lead(
                make_lead(),
                FakeStaffRepository([*team, retired]),
                lead_repo,
                activity_repo,
            )

        assert assignee is bob
        assert any("Dave" in r.getMessage() for r in caplog.records)

    @pytest.mark.asyncio
    async def test_non_matching_rule_uses_load_balancing(
        self, team, activity_repo, lead_repo
    ):
        alice, bob, carol = team
        manager = LeadAssignmentManager()
        _rule(manager.rule_store, carol, postcodes=["MK"])

        assignee = await manager.assign_lead(
            make_lead(from_postcode="NN1 1AA"),
            FakeStaffRepository(list(team)),
            lead_repo,
            activity_repo,
        )

        assert assignee is alice

    @pytest.mark.asyncio
    async def test_load_balancing_evens_out_workload(self, team, activity_repo):
        """Ten leads over 5/2/2 existing new leads end up at most one apart."""
        alice, bob, carol = team
        existing = (
            [make_lead(status="new", assigned_to_id=alice.id) for _ in range(5)]
            + [make_lead(status="new", assigned_to_id=bob.id) for _ in range(2)]
            + [make_lead(status="new", assigned_to_id=carol.id) for _ in range(2)]
        )
        incoming = [make_lead(status="new") for _ in range(10)]
        lead_repo = FakeLeadRepository(existing + incoming)
        staff_repo = FakeStaffRepository(list(team))
        manager = LeadAssignmentManager()
        owner_ids = [alice.id, bob.id, carol.id]

        picked = []
        for lead in incoming:
            before = await lead_repo.count_by_owner_and_status(owner_ids, ("new",))
            assignee = await manager.assign_lead(
                lead, staff_repo, lead_repo, activity_repo
            )
            # Each pick goes to someone with the lowest load at that moment
            assert before[assignee.id] == min(before.values())
            picked.append(assignee)

        assert [member.name for member in picked].count("Alice") == 2
        counts = await lead_repo.count_by_owner_and_status(owner_ids, ("new",))
        assert max(counts.values()) - min(counts.values()) <= 1

    @pytest.mark.asyncio
    async def test_only_new_leads_count_towards_load(self, team, activity_repo):
        alice, bob, carol = team
        lead_repo = FakeLeadRepository(
            [make_lead(status="won", assigned_to_id=alice.id) for _ in range(3)]
            + [make_lead(status="new", assigned_to_id=bob.id)]
            + [make_lead(status="new", assigned_to_id=carol.id)]
        )

        assignee = await LeadAssignmentManager().assign_lead(
            make_lead(), FakeStaffRepository(list(team)), lead_repo, activity_repo
        )

        assert assignee is alice

    @pytest.mark.asyncio
    async def test_already_assigned_lead_is_left_alone(
        self, team, activity_repo, lead_repo
    ):
        owner = uuid4()
        lead = make_lead(assigned_to_id=owner)

        assignee = await LeadAssignmentManager().assign_lead(
            lead, FakeStaffRepository(list(team)), lead_repo, activity_repo
        )

        assert assignee is None
        assert lead.assigned_to_id == owner
        assert activity_repo.activities == []

    @pytest.mark.asyncio
    async def test_no_active_staff(self, activity_repo, lead_repo):
        lead = make_lead()
        staff_repo = FakeStaffRepository([make_staff("Zed", is_active=False)])

        assignee = await LeadAssignmentManager().assign_lead(
            lead, staff_repo, lead_repo, activity_repo
        )

        assert assignee is None
        assert lead.assigned_to_id is None

    @pytest.mark.asyncio
    async def test_auto_assignment_does_not_commit(self, team, activity_repo, lead_repo):
        await LeadAssignmentManager().assign_lead(
            make_lead(), FakeStaffRepository(list(team)), lead_repo, activity_repo
        )

        assert lead_repo.commits == 0


class TestManualAssign:
    @pytest.mark.asyncio
    async def test_first_assignment(self, team, activity_repo):
        alice, bob, carol = team
        lead = make_lead()
        lead_repo = FakeLeadRepository([lead])
        actor = uuid4()

        result = await LeadAssignmentManager().manual_assign(
            lead.id, bob.id, actor, FakeStaffRepository(list(team)), lead_repo, activity_repo
        )

        assert result.assigned_to_id == bob.id
        activity = activity_repo.activities[0]
        assert activity.description == "Lead manually assigned to Bob"
        assert activity.staff_id == actor
        assert activity.details["manual"] is True
        assert activity.details["previous_assignee_id"] is None
        assert lead_repo.commits == 1

    @pytest.mark.asyncio
    async def test_reassignment_records_previous_owner(self, team, activity_repo):
        alice, bob, carol = team
        lead = make_lead(assigned_to_id=alice.id)
        lead_repo = FakeLeadRepository([lead])

        await LeadAssignmentManager().manual_assign(
            lead.id, bob.id, None, FakeStaffRepository(list(team)), lead_repo, activity_repo
        )

        activity = activity_repo.activities[0]
        assert activity.description == "Lead reassigned from Alice to Bob"
        assert activity.details["previous_assignee_id"] == str(alice.id)
        assert activity.details["previous_assignee_name"] == "Alice"

    @pytest.mark.asyncio
    async def test_unknown_lead(self, team, activity_repo, lead_repo):
        with pytest.raises(LeadNotFoundError):
            await LeadAssignmentManager().manual_assign(
                uuid4(), team[0].id, None, FakeStaffRepository(list(team)),
                lead_repo, activity_repo,
            )

    @pytest.mark.asyncio
    async def test_unknown_staff(self, activity_repo):
        lead = make_lead()
        with pytest.raises(StaffNotFoundError):
            await LeadAssignmentManager().manual_assign(
                lead.id, uuid4(), None, FakeStaffRepository(),
                FakeLeadRepository([lead]), activity_repo,
            )


class TestStaffWorkload:
    @pytest.mark.asyncio
    async def test_counts_new_and_total(self, team):
        alice, bob, carol = team
        lead_repo = FakeLeadRepository(
            [
                make_lead(status="new", assigned_to_id=alice.id),
                make_lead(status="won", assigned_to_id=alice.id),
                make_lead(status="new", assigned_to_id=bob.id),
            ]
        )

        workload = await LeadAssignmentManager().get_staff_workload(
            FakeStaffRepository(list(team)), lead_repo
        )

        by_name = {row.name: (row.new_leads, row.total_leads) for row in workload}
        assert by_name == {"Alice": (1, 2), "Bob": (1, 1), "Carol": (0, 0)}


class TestAssignmentRuleStore:
    def test_rules_sorted_by_priority(self):
        store = AssignmentRuleStore()
        low = _rule(store, make_staff("A"), priority=50)
        high = _rule(store, make_staff("B"), priority=1)

        assert [rule.id for rule in store.get_rules()] == [high.id, low.id]
        assert low.id.startswith("rule_")

    def test_partial_update_keeps_other_fields(self):
        store = AssignmentRuleStore()
        rule = _rule(store, make_staff("A"), priority=50, postcodes=["NN"])

        updated = store.update_rule(rule.id, AssignmentRuleUpdate(priority=3))

        assert updated.priority == 3
        assert updated.conditions.postcodes == ["NN"]
        assert updated.name == rule.name
        assert store.get_rule(rule.id).priority == 3

    def test_delete(self):
        store = AssignmentRuleStore()
        rule = _rule(store, make_staff("A"))

        store.delete_rule(rule.id)

        assert store.get_rules() == []
        with pytest.raises(AssignmentRuleNotFoundError):
            store.get_rule(rule.id)

    def test_unknown_rule(self):
        store = AssignmentRuleStore()
        with pytest.raises(AssignmentRuleNotFoundError):
            store.update_rule("rule_missing", AssignmentRuleUpdate(enabled=False))
        with pytest.raises(AssignmentRuleNotFoundError):
            store.delete_rule("rule_missing")
