# -*- coding: utf-8 -*-
# SPDX-License-Identifier: Apache-2.0

"""
Unit tests for the help request ledger and the assignment matcher.
"""

import pytest
from datetime import timedelta

from domain import assignments
from domain.errors import (
    AuthorizationDenied, InvalidTransition, NotFound, ValidationError, VolunteerUnavailable
)
from models.entities import HelpRequest, Volunteer
from models.requests import RegisterActorRequest, RegisterOrganizationRequest, SubmitHelpRequest
from services.store import AUDIT_LOGS, HELP_REQUESTS


def submission(title="Water needed", urgency="high", **overrides):
    data = {
        "title": title,
        "description": "Twenty families without drinking water",
        "location": "Hlaing Township",
        "urgency": urgency,
    }
    data.update(overrides)
    return SubmitHelpRequest(**data)


class TestSubmit:

    def test_submit_starts_pending_without_assignee(self, help_request_ledger, citizen):
        request = help_request_ledger.submit(citizen, submission())

        assert request.status == "pending"
        assert request.assigned_to is None
        assert request.requested_by == citizen.name
        assert request.urgency == "high"

    def test_default_urgency(self, help_request_ledger, citizen):
        request = help_request_ledger.submit(citizen, SubmitHelpRequest(
            title="Tarps", description="Roof gone", location="Insein"
        ))
        assert request.urgency == "medium"

    def test_blank_location_rejected(self, help_request_ledger, citizen, store):
        with pytest.raises(ValidationError):
            help_request_ledger.submit(citizen, submission(location="  "))
        assert store.count(HELP_REQUESTS) == 0

    def test_unknown_request(self, help_request_ledger):
        with pytest.raises(NotFound):
            help_request_ledger.get("65f0000000000000000000ff")


class TestAssign:
    """Explicit operator selection, validated but never ranked."""

    def test_assign_active_supply_volunteer(self, coordination, help_request_ledger, citizen, operator, supplier, store):
        request = help_request_ledger.submit(citizen, submission())

        assigned = coordination.assign(operator, request.id, supplier.id)

        assert assigned.status == "assigned"
        assert assigned.assigned_to == supplier.name
        assert assigned.assigned_volunteer_id == supplier.id
        assert help_request_ledger.get(request.id).status == "assigned"
        assert any(e.action == "assign" and e.entity_id == request.id for e in store.values(AUDIT_LOGS))

    def test_pending_volunteer_unavailable(self, coordination, help_request_ledger, citizen, operator, organization):
        """A volunteer who has not been approved cannot take the request."""
        pending = coordination.register_actor(RegisterActorRequest(
            name="New Volunteer", email="new@example.org", role="supply_volunteer", organization_id=organization.id
        ))
        request = help_request_ledger.submit(citizen, submission())

        with pytest.raises(VolunteerUnavailable) as exc_info:
            coordination.assign(operator, request.id, pending.id)

        assert exc_info.value.volunteer_id == pending.id
        unchanged = help_request_ledger.get(request.id)
        assert unchanged.status == "pending"
        assert unchanged.assigned_to is None

    def test_tracking_volunteer_unavailable(self, coordination, help_request_ledger, volunteer_roster,
                                            citizen, operator, tracker):
        volunteer_roster.approve(operator, tracker.id)
        request = help_request_ledger.submit(citizen, submission())

        with pytest.raises(VolunteerUnavailable):
            coordination.assign(operator, request.id, tracker.id)

    def test_volunteer_of_other_organization_unavailable(self, coordination, help_request_ledger,
                                                         volunteer_roster, citizen, operator):
        outsider = volunteer_roster.register("Outsider", "supply_volunteer", "65f0000000000000000000ee")
        volunteer_roster.replace(outsider.evolve(status="active"))
        request = help_request_ledger.submit(citizen, submission())

        with pytest.raises(VolunteerUnavailable):
            coordination.assign(operator, request.id, outsider.id)

    def test_assigned_request_cannot_be_reassigned(self, coordination, help_request_ledger,
                                                   citizen, operator, supplier):
        request = help_request_ledger.submit(citizen, submission())
        coordination.assign(operator, request.id, supplier.id)

        with pytest.raises(InvalidTransition):
            coordination.assign(operator, request.id, supplier.id)

    def test_only_organizations_assign(self, coordination, help_request_ledger, citizen, admin, supplier):
        request = help_request_ledger.submit(citizen, submission())

        with pytest.raises(AuthorizationDenied):
            coordination.assign(admin, request.id, supplier.id)

    def test_unknown_volunteer(self, coordination, help_request_ledger, citizen, operator):
        request = help_request_ledger.submit(citizen, submission())

        with pytest.raises(NotFound):
            coordination.assign(operator, request.id, "65f0000000000000000000ff")

    def test_eligible_candidates(self, coordination, volunteer_roster, operator, supplier, tracker, organization):
        volunteer_roster.approve(operator, tracker.id)
        volunteer_roster.register("Pending Supply", "supply_volunteer", organization.id)

        candidates = coordination.eligible_candidates(operator)

        assert [volunteer.id for volunteer in candidates] == [supplier.id]

    def test_candidates_require_organization_role(self, coordination, citizen):
        with pytest.raises(AuthorizationDenied):
            coordination.eligible_candidates(citizen)


class TestComplete:
    """Completion credits exactly one volunteer exactly once."""

    def test_complete_credits_volunteer(self, coordination, help_request_ledger, volunteer_roster,
                                        citizen, operator, supplier):
        request = help_request_ledger.submit(citizen, submission())
        coordination.assign(operator, request.id, supplier.id)

        completed = coordination.complete(operator, request.id)

        assert completed.status == "completed"
        assert completed.assigned_to == supplier.name
        assert completed.completed_at is not None
        assert volunteer_roster.get(supplier.id).assignments_completed == 1

    def test_second_completion_fails(self, coordination, help_request_ledger, volunteer_roster,
                                     citizen, operator, supplier):
        request = help_request_ledger.submit(citizen, submission())
        coordination.assign(operator, request.id, supplier.id)
        coordination.complete(operator, request.id)

        with pytest.raises(InvalidTransition):
            coordination.complete(operator, request.id)
        assert volunteer_roster.get(supplier.id).assignments_completed == 1

    def test_pending_request_cannot_complete(self, coordination, help_request_ledger, citizen, operator):
        request = help_request_ledger.submit(citizen, submission())

        with pytest.raises(InvalidTransition):
            coordination.complete(operator, request.id)

    def test_assigned_volunteer_completes_own_request(self, coordination, help_request_ledger,
                                                      volunteer_roster, citizen, operator, supplier):
        request = help_request_ledger.submit(citizen, submission())
        coordination.assign(operator, request.id, supplier.id)

        completed = coordination.complete(supplier, request.id)

        assert completed.status == "completed"
        assert volunteer_roster.get(supplier.id).assignments_completed == 1

    def test_other_volunteer_cannot_complete(self, coordination, help_request_ledger, actor_registry,
                                             citizen, operator, supplier):
        other = actor_registry.provision("Other Supply", "other-supply@example.org", "supply_volunteer")
        request = help_request_ledger.submit(citizen, submission())
        coordination.assign(operator, request.id, supplier.id)

        with pytest.raises(AuthorizationDenied):
            coordination.complete(other, request.id)
        assert help_request_ledger.get(request.id).status == "assigned"

    def test_foreign_operator_cannot_complete(self, coordination, help_request_ledger, organization_directory,
                                             actor_registry, volunteer_roster, admin, citizen, operator, supplier):
        registered = organization_directory.register(admin, RegisterOrganizationRequest(
            name="Mandalay Aid", username="mdy-aid", secret="pw", region="Mandalay",
            contact_email="ops@mdy.example.org",
        ))
        coordination.approve_organization(admin, registered.id)
        foreign = actor_registry.find_organization_actor(registered.id)
        request = help_request_ledger.submit(citizen, submission())
        coordination.assign(operator, request.id, supplier.id)

        with pytest.raises(AuthorizationDenied):
            coordination.complete(foreign, request.id)

        assert help_request_ledger.get(request.id).status == "assigned"
        assert volunteer_roster.get(supplier.id).assignments_completed == 0
        assert coordination.complete(operator, request.id).status == "completed"


class TestLedgerReads:

    def test_queue_order(self, help_request_ledger, citizen):
        low = help_request_ledger.submit(citizen, submission(title="Low", urgency="low"))
        high = help_request_ledger.submit(citizen, submission(title="High", urgency="high"))
        medium = help_request_ledger.submit(citizen, submission(title="Medium", urgency="medium"))

        assert [r.id for r in help_request_ledger.list(citizen)] == [high.id, medium.id, low.id]

    def test_filters(self, help_request_ledger, citizen):
        help_request_ledger.submit(citizen, submission(urgency="low"))
        help_request_ledger.submit(citizen, submission(urgency="high"))

        filtered = help_request_ledger.list(citizen, assignments.HelpRequestFilters(urgency="low"))
        assert [r.urgency for r in filtered] == ["low"]

    def test_summary(self, coordination, help_request_ledger, citizen, operator, supplier):
        first = help_request_ledger.submit(citizen, submission(urgency="high"))
        help_request_ledger.submit(citizen, submission(urgency="low"))
        coordination.assign(operator, first.id, supplier.id)

        summary = help_request_ledger.summary(citizen)

        assert summary["total"] == 2
        assert summary["pending"] == 1
        assert summary["assigned"] == 1
        assert summary["completed"] == 0
        assert summary["byUrgency"] == {"low": 1, "medium": 0, "high": 1}


class TestAssignmentDomain:

    def test_completed_requests_sort_last(self):
        base = HelpRequest(title="a", description="d", location="l", requested_by="x", urgency="high")
        done = base.evolve(
            id="65f0000000000000000000aa", status="completed", assigned_to="V", assigned_volunteer_id="v",
            requested_at=base.requested_at + timedelta(minutes=1)
        )
        low = base.evolve(id="65f0000000000000000000bb", urgency="low")

        assert assignments.filter_requests([done, base, low]) == [base, low, done]

    def test_eligibility_reasons(self):
        volunteer = Volunteer(name="V", role="supply_volunteer", organization_id="org")

        assert "not active" in assignments.check_eligibility(volunteer, "org").reason
        active = volunteer.evolve(status="active")
        assert assignments.check_eligibility(active, "org").eligible
        assert "does not belong" in assignments.check_eligibility(active, "other").reason

    def test_completion_without_roster_entry(self):
        request = HelpRequest(
            title="a", description="d", location="l", requested_by="x",
            status="assigned", assigned_to="Gone", assigned_volunteer_id="v"
        )

        completed, credited = assignments.apply_completion(request, None)

        assert completed.status == "completed"
        assert credited is None

    def test_release_reverts_to_pending(self):
        request = HelpRequest(
            title="a", description="d", location="l", requested_by="x",
            status="assigned", assigned_to="V", assigned_volunteer_id="v"
        )

        released = assignments.release_assignment(request)

        assert released.status == "pending"
        assert released.assigned_to is None
        assert released.assigned_volunteer_id is None
