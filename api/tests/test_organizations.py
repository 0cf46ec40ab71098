# -*- coding: utf-8 -*-
# SPDX-License-Identifier: Apache-2.0

"""
Unit tests for the organization directory and its read-models.
"""

import pytest

from domain import organizations as directory
from domain.errors import AuthorizationDenied, Conflict, NotFound, ValidationError
from models.requests import RegisterOrganizationRequest, UpdateOrganizationRequest


def registration(name="Relief Myanmar", username="relief", region="Yangon", funding=None, **extra):
    return RegisterOrganizationRequest(
        name=name, username=username, secret="s3cret", region=region, funding=funding, **extra
    )


class TestRegistration:

    def test_register_defaults(self, organization_directory, citizen):
        organization = organization_directory.register(citizen, registration())

        assert organization.status == "pending"
        assert organization.funding == "$0"
        assert organization.volunteer_count == 0
        assert organization.supplies is None
        assert organization.credentials.username == "relief"

    def test_duplicate_username_conflicts(self, organization_directory, citizen):
        organization_directory.register(citizen, registration())

        with pytest.raises(Conflict):
            organization_directory.register(citizen, registration(name="Copycat"))

    def test_invalid_funding_rejected(self, organization_directory, citizen):
        with pytest.raises(ValidationError) as exc_info:
            organization_directory.register(citizen, registration(funding="lots"))
        assert exc_info.value.errors[0]["field"] == "funding"


class TestStatusChanges:
    """Organization status transitions are admin-only."""

    def test_admin_approves(self, organization_directory, citizen, admin):
        organization = organization_directory.register(citizen, registration(name="X", region="Yangon"))

        approved = organization_directory.approve(admin, organization.id)

        assert approved.status == "active"
        assert approved.updated_at >= organization.updated_at

    def test_non_admin_approval_denied(self, organization_directory, citizen, operator):
        organization = organization_directory.register(citizen, registration(name="X", username="x"))

        for actor in (citizen, operator):
            with pytest.raises(AuthorizationDenied):
                organization_directory.approve(actor, organization.id)
        assert organization_directory.get(organization.id).status == "pending"

    def test_reject(self, organization_directory, citizen, admin):
        organization = organization_directory.register(citizen, registration())
        assert organization_directory.reject(admin, organization.id).status == "inactive"

    def test_unknown_organization(self, organization_directory, admin):
        with pytest.raises(NotFound):
            organization_directory.approve(admin, "65f0000000000000000000ff")


class TestUpdate:

    def test_merge_update(self, organization_directory, organization, admin):
        updated = organization_directory.update(admin, organization.id, UpdateOrganizationRequest(
            funding="$75,000",
            volunteer_count=40,
            contact={"phone": "+95 9 111"},
            supplies={"water": 300, "food": 120},
        ))

        assert updated.id == organization.id
        assert updated.created_at == organization.created_at
        assert updated.status == organization.status
        assert updated.funding == "$75,000"
        assert updated.volunteer_count == 40
        assert updated.contact.phone == "+95 9 111"
        assert updated.contact.email == organization.contact.email
        assert updated.supplies.water == 300
        assert updated.supplies.medical == 0

    def test_empty_update_is_a_no_op(self, organization_directory, organization, admin):
        assert organization_directory.update(admin, organization.id, UpdateOrganizationRequest()) is organization

    def test_update_admin_only(self, organization_directory, organization, operator):
        with pytest.raises(AuthorizationDenied):
            organization_directory.update(operator, organization.id, UpdateOrganizationRequest(name="Mine now"))

    def test_invalid_merge_rejected(self, organization_directory, organization, admin):
        with pytest.raises(ValidationError):
            organization_directory.update(admin, organization.id, UpdateOrganizationRequest(funding="free"))
        assert organization_directory.get(organization.id).funding == "$50,000"


class TestDelete:

    def test_delete_admin_only(self, organization_directory, organization, operator, admin):
        with pytest.raises(AuthorizationDenied):
            organization_directory.delete(operator, organization.id)

        organization_directory.delete(admin, organization.id)
        with pytest.raises(NotFound):
            organization_directory.get(organization.id)


class TestReadModels:

    def test_funding_total_tracks_operations(self, organization_directory, citizen, admin):
        """Aggregate funding always equals the sum of parsed funding values."""
        first = organization_directory.register(citizen, registration(username="a", funding="$50,000"))
        second = organization_directory.register(citizen, registration(username="b", funding="$12,500.50"))
        organization_directory.register(citizen, registration(username="c"))

        organization_directory.approve(admin, first.id)
        organization_directory.reject(admin, second.id)
        organization_directory.update(admin, first.id, UpdateOrganizationRequest(funding="$60,000"))

        summary = organization_directory.summary(admin)
        expected = sum(directory.parse_funding(o.funding) for o in organization_directory.list(admin))

        assert summary["totalFunding"] == expected == 72500.50
        assert summary["total"] == 3
        assert summary["active"] == 1
        assert summary["pending"] == 1
        assert summary["inactive"] == 1

    def test_summary_hides_financials_from_non_admins(self, organization_directory, organization, citizen, operator):
        for actor in (citizen, operator):
            summary = organization_directory.summary(actor)
            assert "totalFunding" not in summary
            assert "supplies" not in summary
            assert summary["total"] == 1

    def test_region_breakdown_and_supplies(self, organization_directory, citizen, admin):
        first = organization_directory.register(citizen, registration(username="a", region="Yangon"))
        organization_directory.register(citizen, registration(username="b", region="Mandalay"))
        organization_directory.update(admin, first.id, UpdateOrganizationRequest(
            volunteer_count=5, supplies={"medical": 10}
        ))

        summary = organization_directory.summary(admin)

        assert summary["byRegion"] == [
            {"region": "Yangon", "organizations": 1, "volunteers": 5},
            {"region": "Mandalay", "organizations": 1, "volunteers": 0},
        ]
        assert summary["totalVolunteers"] == 5
        assert summary["supplies"]["medical"] == 10

    def test_roster_volunteers_follow_the_roster(self, organization_directory, coordination, organization,
                                                 admin, tracker, supplier):
        summary = organization_directory.summary(admin)
        assert summary["rosterVolunteers"] == 1
        assert summary["totalVolunteers"] == 0

        coordination.delete_organization(admin, organization.id)

        assert organization_directory.summary(admin)["rosterVolunteers"] == 0

    def test_partners_exclude_own_and_inactive(self, organization_directory, organization, operator, citizen, admin):
        active_partner = organization_directory.register(citizen, registration(name="Partner", username="p"))
        organization_directory.approve(admin, active_partner.id)
        organization_directory.register(citizen, registration(name="Pending", username="q"))

        assert [o.id for o in organization_directory.partners(operator)] == [active_partner.id]

    def test_list_by_status(self, organization_directory, organization, citizen):
        organization_directory.register(citizen, registration(username="pending-one"))

        assert [o.id for o in organization_directory.list(citizen, "active")] == [organization.id]


class TestRendering:
    """Secrets never leave the directory; financials only for permitted actors."""

    def test_secret_never_rendered(self, organization_directory, organization, admin):
        data = organization_directory.render(organization, admin)

        assert data["credentials"] == {"username": "relief-mm"}
        assert data["funding"] == "$50,000"

    def test_financials_for_own_operator_only(self, organization_directory, organization, operator, citizen):
        assert "funding" in organization_directory.render(organization, operator)
        assert organization_directory.can_view_financials(operator, organization)

        public = organization_directory.render(organization, citizen)
        assert "funding" not in public
        assert "supplies" not in public
        assert public["name"] == organization.name


class TestParseFunding:

    @pytest.mark.parametrize("funding,expected", [
        ("$50,000", 50000.0),
        ("$1,250.75", 1250.75),
        ("0", 0.0),
        ("", 0.0),
        (None, 0.0),
        ("USD 3,000", 3000.0),
        ("$1.2.3", 123.0),
    ])
    def test_parse(self, funding, expected):
        assert directory.parse_funding(funding) == expected
