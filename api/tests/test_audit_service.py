# -*- coding: utf-8 -*-
# SPDX-License-Identifier: Apache-2.0

"""
Unit tests for the audit trail.
"""

from datetime import timedelta

from models.requests import RegisterOrganizationRequest
from services.audit import AuditFilters, redact


class TestAuditService:

    def test_log_action_records_actor_and_states(self, audit, citizen):
        entry = audit.log_action(citizen, "pin", "p1", "confirm", before={"status": "pending"}, after={"status": "confirmed"})

        assert entry.actor_id == citizen.id
        assert entry.actor_role == "user"
        assert entry.before == {"status": "pending"}
        assert audit.get_audit_log(entry.id) == entry

    def test_system_actions(self, audit):
        entry = audit.log_action(None, "volunteer", "v1", "orphan")
        assert entry.actor_id == "system"
        assert entry.actor_role is None

    def test_secrets_are_redacted(self, organization_directory, audit, citizen):
        organization = organization_directory.register(citizen, RegisterOrganizationRequest(
            name="Relief", username="relief", secret="hunter2", region="Yangon"
        ))

        result = audit.query_audit_logs(AuditFilters(entity="organization", entity_id=organization.id))

        assert result.total == 1
        credentials = result.items[0].after["credentials"]
        assert credentials == {"username": "relief"}

    def test_query_filters_and_order(self, audit, citizen, admin):
        first = audit.log_action(citizen, "pin", "p1", "create")
        second = audit.log_action(admin, "pin", "p1", "confirm")
        audit.log_action(admin, "help_request", "r1", "submit")

        pins = audit.query_audit_logs(AuditFilters(entity="pin"))
        assert {e.id for e in pins.items} == {first.id, second.id}
        assert pins.items[0].timestamp >= pins.items[1].timestamp

        by_actor = audit.query_audit_logs(AuditFilters(actor_id=citizen.id, entity="pin"))
        assert [e.id for e in by_actor.items] == [first.id]

        by_action = audit.query_audit_logs(AuditFilters(action="submit"))
        assert by_action.total == 1

    def test_date_range(self, audit, citizen):
        entry = audit.log_action(citizen, "pin", "p1", "create")

        assert audit.query_audit_logs(AuditFilters(start_date=entry.timestamp - timedelta(seconds=1))).total >= 1
        assert audit.query_audit_logs(AuditFilters(start_date=entry.timestamp + timedelta(days=1))).total == 0

    def test_pagination(self, audit, citizen):
        for index in range(5):
            audit.log_action(citizen, "pin", f"p{index}", "create")

        page = audit.query_audit_logs(AuditFilters(entity="pin"), page=2, page_size=2)

        assert page.total == 5
        assert len(page.items) == 2
        assert page.total_pages == 3


def test_redact_nested():
    assert redact({"a": 1, "secret": "x", "nested": {"secret": "y", "b": 2}}) == {"a": 1, "nested": {"b": 2}}
    assert redact(None) is None
