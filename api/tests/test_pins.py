# -*- coding: utf-8 -*-
# SPDX-License-Identifier: Apache-2.0

"""
Unit tests for the incident pin registry and its state machine.
"""

import pytest
from datetime import timedelta

from domain import pins as pin_domain
from domain.errors import AuthorizationDenied, InvalidTransition, NotFound, ValidationError
from models.entities import Pin
from models.enums import Action, ActorRole
from models.requests import CreatePinRequest
from services.store import AUDIT_LOGS, PINS


def report(kind="damaged", title="Collapse", **overrides):
    data = {
        "kind": kind,
        "title": title,
        "description": "Building collapsed on 5th street",
        "lat": 16.78,
        "lng": 96.16,
    }
    data.update(overrides)
    return CreatePinRequest(**data)


@pytest.fixture
def supply_actor(actor_registry):
    return actor_registry.provision("Ma Supply", "supply-only@example.org", ActorRole.SUPPLY_VOLUNTEER)


@pytest.fixture
def tracking_actor(actor_registry):
    return actor_registry.provision("Ko Tracker", "tracker-only@example.org", ActorRole.TRACKING_VOLUNTEER)


class TestPinCreation:

    def test_citizen_report_starts_pending(self, pin_registry, citizen):
        pin = pin_registry.create(citizen, report())

        assert pin.status == "pending"
        assert pin.created_by == citizen.name
        assert pin.created_by_id == citizen.id
        assert pin_registry.get(pin.id) == pin

    def test_tracking_volunteer_report_starts_confirmed(self, pin_registry, tracking_actor):
        pin = pin_registry.create(tracking_actor, report(kind="safe", title="Shelter"))
        assert pin.status == "confirmed"

    def test_ids_are_unique(self, pin_registry, citizen):
        ids = {pin_registry.create(citizen, report()).id for _ in range(5)}
        assert len(ids) == 5

    def test_image_reference_is_stored_opaquely(self, pin_registry, citizen):
        pin = pin_registry.create(citizen, report(image="img://uploads/abc123"))
        assert pin.image == "img://uploads/abc123"

    def test_create_is_audited(self, pin_registry, citizen, store):
        pin = pin_registry.create(citizen, report())

        entries = [e for e in store.values(AUDIT_LOGS) if e.entity == "pin"]
        assert len(entries) == 1
        assert entries[0].entity_id == pin.id
        assert entries[0].action == "create"
        assert entries[0].actor_id == citizen.id

    def test_blank_title_rejected(self, pin_registry, citizen, store):
        """Whitespace passes the request model but not the record."""
        with pytest.raises(ValidationError) as exc_info:
            pin_registry.create(citizen, report(title="   "))

        assert exc_info.value.errors[0]["field"] == "title"
        assert store.count(PINS) == 0


class TestPinLifecycle:
    """Pin transitions follow pending -> confirmed -> completed or pending -> deleted."""

    def test_confirm_then_complete(self, pin_registry, citizen, tracking_actor, supply_actor):
        pin = pin_registry.create(citizen, report())

        confirmed = pin_registry.transition(tracking_actor, pin.id, Action.PIN_CONFIRM)
        assert confirmed.status == "confirmed"

        completed = pin_registry.transition(supply_actor, pin.id, Action.PIN_COMPLETE)
        assert completed.status == "completed"

        with pytest.raises(InvalidTransition):
            pin_registry.transition(supply_actor, pin.id, Action.PIN_COMPLETE)
        assert pin_registry.get(pin.id).status == "completed"

    def test_deny_removes_pin(self, pin_registry, citizen, tracking_actor, store):
        pin = pin_registry.create(citizen, report())

        denied = pin_registry.transition(tracking_actor, pin.id, Action.PIN_DENY)

        assert denied.id == pin.id
        assert store.get(PINS, pin.id) is None
        with pytest.raises(NotFound):
            pin_registry.get(pin.id)

        deny_entry = [e for e in store.values(AUDIT_LOGS) if e.action == "deny"][0]
        assert deny_entry.before["id"] == pin.id
        assert deny_entry.after is None

    def test_wrong_role_denied_and_state_unchanged(self, pin_registry, citizen, supply_actor):
        pin = pin_registry.create(citizen, report())

        with pytest.raises(AuthorizationDenied):
            pin_registry.transition(citizen, pin.id, Action.PIN_CONFIRM)
        with pytest.raises(AuthorizationDenied):
            pin_registry.transition(supply_actor, pin.id, Action.PIN_CONFIRM)

        assert pin_registry.get(pin.id).status == "pending"

    def test_complete_pending_pin_is_invalid(self, pin_registry, citizen, supply_actor):
        pin = pin_registry.create(citizen, report())

        with pytest.raises(InvalidTransition):
            pin_registry.transition(supply_actor, pin.id, Action.PIN_COMPLETE)

    def test_safe_zone_never_completes(self, pin_registry, tracking_actor, supply_actor):
        pin = pin_registry.create(tracking_actor, report(kind="safe", title="Park"))

        with pytest.raises(InvalidTransition):
            pin_registry.transition(supply_actor, pin.id, Action.PIN_COMPLETE)
        assert pin_registry.get(pin.id).status == "confirmed"

    def test_confirmed_pin_cannot_be_denied(self, pin_registry, tracking_actor):
        pin = pin_registry.create(tracking_actor, report())

        with pytest.raises(InvalidTransition):
            pin_registry.transition(tracking_actor, pin.id, Action.PIN_DENY)

    def test_unknown_pin(self, pin_registry, tracking_actor):
        with pytest.raises(NotFound):
            pin_registry.transition(tracking_actor, "65f0000000000000000000ff", Action.PIN_CONFIRM)

    def test_non_pin_action_rejected(self, pin_registry, citizen, tracking_actor):
        pin = pin_registry.create(citizen, report())

        with pytest.raises(ValidationError):
            pin_registry.transition(tracking_actor, pin.id, Action.REQUEST_ASSIGN)


class TestPinProjection:
    """Read-time projection by role."""

    def test_supply_volunteer_sees_confirmed_damaged_only(self, pin_registry, citizen, tracking_actor, supply_actor):
        pending = pin_registry.create(citizen, report(title="Pending"))
        confirmed = pin_registry.create(tracking_actor, report(title="Confirmed"))
        pin_registry.create(tracking_actor, report(kind="safe", title="Safe"))

        visible = pin_registry.list(supply_actor)

        assert [pin.id for pin in visible] == [confirmed.id]
        assert len(pin_registry.list(citizen)) == 3
        assert pending.id in [pin.id for pin in pin_registry.list(tracking_actor)]

    def test_filters(self, pin_registry, citizen):
        first = pin_registry.create(citizen, report(title="First"))
        second = pin_registry.create(citizen, report(kind="safe", title="Second"))

        assert {pin.id for pin in pin_registry.list(citizen)} == {first.id, second.id}
        only_safe = pin_registry.list(citizen, pin_domain.PinFilters(kind="safe"))
        assert [pin.id for pin in only_safe] == [second.id]

    def test_summary(self, pin_registry, citizen, tracking_actor):
        pin_registry.create(citizen, report())
        pin_registry.create(tracking_actor, report(kind="safe", title="Safe"))

        summary = pin_registry.summary(citizen)

        assert summary["total"] == 2
        assert summary["byStatus"] == {"pending": 1, "confirmed": 1, "completed": 0}
        assert summary["byKind"] == {"damaged": 1, "safe": 1}


class TestPinDomain:

    def test_apply_transition(self):
        pin = Pin(kind="damaged", title="t", description="d", lat=0, lng=0, created_by="x")

        assert pin_domain.apply_transition(pin, Action.PIN_CONFIRM).status == "confirmed"
        assert pin_domain.apply_transition(pin, Action.PIN_DENY) is None
        with pytest.raises(ValueError):
            pin_domain.apply_transition(pin, Action.AUDIT_READ)

    def test_completion_records_delivering_volunteer(self, supplier):
        pin = Pin(kind="damaged", status="confirmed", title="t", description="d", lat=0, lng=0, created_by="x")

        completed = pin_domain.apply_transition(pin, Action.PIN_COMPLETE, supplier)

        assert completed.status == "completed"
        assert completed.assigned_to == supplier.name
        assert completed.assigned_volunteer_id == supplier.id

    def test_projection_orders_by_creation(self, citizen):
        older = Pin(kind="damaged", title="a", description="d", lat=0, lng=0, created_by="x")
        newer = older.evolve(id="65f0000000000000000000aa", created_at=older.created_at + timedelta(minutes=5))

        assert pin_domain.project_for_actor(citizen, [older, newer]) == [newer, older]
