# SPDX-License-Identifier: Apache-2.0

"""
Incident pin domain logic.

Pure functions for the pin lifecycle state machine, role-based read
projection, filtering, and summary counters.

    pending   --confirm(tracking_volunteer)--> confirmed
    pending   --deny(tracking_volunteer)-----> [deleted]
    confirmed --complete(supply_volunteer, kind=damaged)--> completed
"""

from collections import Counter
from dataclasses import dataclass
from typing import Any, Dict, Iterable, List, Optional

from models.entities import Actor, Pin
from models.enums import Action, ActorRole, PinKind, PinStatus
from models.requests import CreatePinRequest
from domain.authorization import initial_pin_status

# Target status per transition; None means the pin is removed.
PIN_TRANSITIONS: Dict[Action, Optional[PinStatus]] = {
    Action.PIN_CONFIRM: PinStatus.CONFIRMED,
    Action.PIN_DENY: None,
    Action.PIN_COMPLETE: PinStatus.COMPLETED,
}

PIN_ACTIONS = tuple(PIN_TRANSITIONS)


@dataclass
class PinFilters:
    """Filters for pin queries."""
    kind: Optional[PinKind] = None
    status: Optional[PinStatus] = None


def build_pin(actor: Actor, request: CreatePinRequest) -> Pin:
    """
    Build a new pin reported by an actor.

    Args:
        actor: Reporting actor
        request: Validated pin report

    Returns:
        Pin with a fresh id, current timestamp and role-dependent initial status
    """
    return Pin(
        kind=request.kind,
        status=initial_pin_status(actor),
        title=request.title,
        description=request.description,
        lat=request.lat,
        lng=request.lng,
        image=request.image,
        created_by=actor.name,
        created_by_id=actor.id,
    )


def apply_transition(pin: Pin, action: Action, actor: Optional[Actor] = None) -> Optional[Pin]:
    """
    Apply a lifecycle transition whose preconditions were already checked.

    Completion records the delivering supply volunteer as the pin's assignee.

    Returns:
        The updated pin, or None when the transition deletes it
    """
    action = Action(action)
    if action not in PIN_TRANSITIONS:
        raise ValueError(f"Unknown pin transition: {action.value}")

    target_status = PIN_TRANSITIONS[action]
    if target_status is None:
        return None
    if action == Action.PIN_COMPLETE and actor is not None:
        return pin.evolve(status=target_status, assigned_to=actor.name, assigned_volunteer_id=actor.id)
    return pin.evolve(status=target_status)


def is_visible_to(actor: Actor, pin: Pin) -> bool:
    """Supply volunteers only see confirmed damaged pins awaiting delivery."""
    if actor.role == ActorRole.SUPPLY_VOLUNTEER:
        return pin.status == PinStatus.CONFIRMED and pin.kind == PinKind.DAMAGED
    return True


def project_for_actor(actor: Actor, pins: Iterable[Pin], filters: Optional[PinFilters] = None) -> List[Pin]:
    """
    Read-time projection of the pin registry for an actor.

    Args:
        actor: Actor reading the registry
        pins: All stored pins
        filters: Optional kind/status filters

    Returns:
        Visible pins, newest first
    """
    filters = filters or PinFilters()
    visible = []
    for pin in pins:
        if not is_visible_to(actor, pin):
            continue
        if filters.kind and pin.kind != filters.kind:
            continue
        if filters.status and pin.status != filters.status:
            continue
        visible.append(pin)

    return sorted(visible, key=lambda p: p.created_at, reverse=True)


def summarize_pins(pins: Iterable[Pin]) -> Dict[str, Any]:
    """Count pins by status and by kind."""
    pins = list(pins)
    by_status = Counter(pin.status for pin in pins)
    by_kind = Counter(pin.kind for pin in pins)

    return {
        "total": len(pins),
        "byStatus": {status.value: by_status.get(status.value, 0) for status in PinStatus},
        "byKind": {kind.value: by_kind.get(kind.value, 0) for kind in PinKind},
    }
