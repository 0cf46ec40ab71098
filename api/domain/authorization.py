# SPDX-License-Identifier: Apache-2.0

"""
Authorization gate for role-based access control.

This module holds the capability table mapping (role, action, target state)
to a permit/deny decision. Every function here is pure: registries consult
the gate before each mutation and turn a denial into the matching error,
and the HAL layer consults it to decide which affordance links to render.
"""

from dataclasses import dataclass
from typing import Any, Callable, Dict, Iterable, List, Optional, Tuple

from domain.errors import AuthenticationRequired, AuthorizationDenied, InvalidTransition
from models.entities import Actor, HelpRequest, Organization, Pin, Volunteer
from models.enums import (
    Action,
    ActorRole,
    PinKind,
    PinStatus,
    RequestStatus,
)

ROLE_DENIAL = "role"
STATE_DENIAL = "state"


@dataclass
class AuthorizationResult:
    """Result of an authorization check."""
    allowed: bool
    reason: Optional[str] = None
    denial: Optional[str] = None


ALLOWED = AuthorizationResult(allowed=True)

ANY_ROLE = tuple(ActorRole)

# Roles permitted per action, before any scope or state check.
ROLE_TABLE: Dict[Action, Tuple[ActorRole, ...]] = {
    Action.PIN_CREATE: ANY_ROLE,
    Action.PIN_LIST: ANY_ROLE,
    Action.PIN_CONFIRM: (ActorRole.TRACKING_VOLUNTEER,),
    Action.PIN_DENY: (ActorRole.TRACKING_VOLUNTEER,),
    Action.PIN_COMPLETE: (ActorRole.SUPPLY_VOLUNTEER,),

    Action.REQUEST_SUBMIT: ANY_ROLE,
    Action.REQUEST_LIST: ANY_ROLE,
    Action.REQUEST_ASSIGN: (ActorRole.ORGANIZATION,),
    Action.REQUEST_COMPLETE: (ActorRole.ORGANIZATION, ActorRole.SUPPLY_VOLUNTEER),
    Action.REQUEST_CANDIDATES: (ActorRole.ORGANIZATION,),

    Action.VOLUNTEER_LIST: (ActorRole.ORGANIZATION, ActorRole.ADMIN),
    Action.VOLUNTEER_APPROVE: (ActorRole.ORGANIZATION,),
    Action.VOLUNTEER_REJECT: (ActorRole.ORGANIZATION,),
    Action.VOLUNTEER_REMOVE: (ActorRole.ORGANIZATION,),

    Action.ORGANIZATION_REGISTER: ANY_ROLE,
    Action.ORGANIZATION_LIST: ANY_ROLE,
    Action.ORGANIZATION_SUMMARY: ANY_ROLE,
    Action.ORGANIZATION_APPROVE: (ActorRole.ADMIN,),
    Action.ORGANIZATION_REJECT: (ActorRole.ADMIN,),
    Action.ORGANIZATION_UPDATE: (ActorRole.ADMIN,),
    Action.ORGANIZATION_DELETE: (ActorRole.ADMIN,),
    Action.ORGANIZATION_VIEW_FINANCIALS: (ActorRole.ADMIN, ActorRole.ORGANIZATION),

    Action.AUDIT_READ: (ActorRole.ADMIN,),
}


def _deny_role(reason: str) -> AuthorizationResult:
    return AuthorizationResult(allowed=False, reason=reason, denial=ROLE_DENIAL)


def _deny_state(reason: str) -> AuthorizationResult:
    return AuthorizationResult(allowed=False, reason=reason, denial=STATE_DENIAL)


def _check_pin_confirm(actor: Actor, pin: Optional[Pin]) -> AuthorizationResult:
    if pin is not None and pin.status != PinStatus.PENDING:
        return _deny_state(f"Pin {pin.id} is {pin.status}; only pending pins can be reviewed")
    return ALLOWED


def _check_pin_complete(actor: Actor, pin: Optional[Pin]) -> AuthorizationResult:
    if pin is None:
        return ALLOWED
    if pin.kind != PinKind.DAMAGED:
        return _deny_state(f"Pin {pin.id} is a {pin.kind} pin; only damaged pins can be completed")
    if pin.status != PinStatus.CONFIRMED:
        return _deny_state(f"Pin {pin.id} is {pin.status}; only confirmed pins can be completed")
    return ALLOWED


def _check_request_assign(actor: Actor, request: Optional[HelpRequest]) -> AuthorizationResult:
    if request is not None and request.status != RequestStatus.PENDING:
        return _deny_state(f"Help request {request.id} is {request.status}; only pending requests can be assigned")
    return ALLOWED


def _check_request_complete(actor: Actor, request: Optional[HelpRequest]) -> AuthorizationResult:
    if request is None:
        return ALLOWED
    if actor.role == ActorRole.SUPPLY_VOLUNTEER and request.assigned_volunteer_id != actor.id:
        return _deny_role(f"Help request {request.id} is not assigned to this volunteer")
    if (actor.role == ActorRole.ORGANIZATION and request.status != RequestStatus.PENDING
            and request.assigned_organization_id != actor.organization_id):
        return _deny_role(f"Help request {request.id} was assigned by another organization")
    if request.status != RequestStatus.ASSIGNED:
        return _deny_state(f"Help request {request.id} is {request.status}; only assigned requests can be completed")
    return ALLOWED


def _check_volunteer_scope(actor: Actor, volunteer: Optional[Volunteer]) -> AuthorizationResult:
    if volunteer is not None and volunteer.organization_id != actor.organization_id:
        return _deny_role(f"Volunteer {volunteer.id} does not belong to this organization")
    return ALLOWED


def _check_view_financials(actor: Actor, organization: Optional[Organization]) -> AuthorizationResult:
    if actor.role == ActorRole.ADMIN:
        return ALLOWED
    if organization is None or organization.id != actor.organization_id:
        return _deny_role("Financial details are only visible to admins and the organization itself")
    return ALLOWED


# Scope and state checks run after the role check passes.
TARGET_CHECKS: Dict[Action, Callable[[Actor, Any], AuthorizationResult]] = {
    Action.PIN_CONFIRM: _check_pin_confirm,
    Action.PIN_DENY: _check_pin_confirm,
    Action.PIN_COMPLETE: _check_pin_complete,
    Action.REQUEST_ASSIGN: _check_request_assign,
    Action.REQUEST_COMPLETE: _check_request_complete,
    Action.VOLUNTEER_APPROVE: _check_volunteer_scope,
    Action.VOLUNTEER_REJECT: _check_volunteer_scope,
    Action.VOLUNTEER_REMOVE: _check_volunteer_scope,
    Action.ORGANIZATION_VIEW_FINANCIALS: _check_view_financials,
}


def evaluate(actor: Optional[Actor], action: Action, target: Any = None) -> AuthorizationResult:
    """
    Decide whether an actor may perform an action on a target.

    Args:
        actor: Authenticated actor, or None for anonymous callers
        action: Action being attempted
        target: Pin, HelpRequest, Volunteer or Organization the action applies to;
            None when checking the capability without a concrete target

    Returns:
        AuthorizationResult; ``denial`` is "role" when the actor's role or scope
        forbids the action and "state" when the target's state does
    """
    if actor is None:
        return _deny_role("Authentication required")

    action = Action(action)
    allowed_roles = ROLE_TABLE.get(action, ())
    if ActorRole(actor.role) not in allowed_roles:
        return _deny_role(f"Role {ActorRole(actor.role).value} cannot perform {action.value}")

    check = TARGET_CHECKS.get(action)
    if check is None:
        return ALLOWED
    return check(actor, target)


def can_perform(actor: Optional[Actor], action: Action, target: Any = None) -> bool:
    """Advisory boolean form of :func:`evaluate`."""
    return evaluate(actor, action, target).allowed


def initial_pin_status(actor: Actor) -> PinStatus:
    """Pins reported by tracking volunteers skip review."""
    if actor.role == ActorRole.TRACKING_VOLUNTEER:
        return PinStatus.CONFIRMED
    return PinStatus.PENDING


def allowed_actions(actor: Optional[Actor], actions: Iterable[Action], target: Any = None) -> List[Action]:
    """
    Filter a list of candidate actions down to those the actor may perform now.

    Args:
        actor: Authenticated actor
        actions: Candidate actions for the target's resource type
        target: Current target record

    Returns:
        Permitted actions in the order given
    """
    return [action for action in actions if can_perform(actor, action, target)]


def get_action_description(action: Action) -> str:
    """
    Get human-readable description for an action.

    Args:
        action: Action enum member or its string value

    Returns:
        Human-readable description
    """
    action_descriptions = {
        # Pin actions
        "pin:create": "Report a damaged location or safe zone",
        "pin:list": "View reported pins",
        "pin:confirm": "Confirm a pending pin after field verification",
        "pin:deny": "Deny and remove a pending pin",
        "pin:complete": "Mark a confirmed damaged pin as supplied",

        # Help request actions
        "request:submit": "Submit a help request",
        "request:list": "View help requests",
        "request:assign": "Assign a volunteer to a help request",
        "request:complete": "Mark an assigned help request as completed",
        "request:candidates": "List volunteers eligible for assignment",

        # Volunteer actions
        "volunteer:list": "View the volunteer roster",
        "volunteer:approve": "Approve a volunteer application",
        "volunteer:reject": "Reject a volunteer application",
        "volunteer:remove": "Remove a volunteer from the roster",

        # Organization actions
        "organization:register": "Register a relief organization",
        "organization:list": "View the organization directory",
        "organization:approve": "Approve an organization",
        "organization:reject": "Reject an organization",
        "organization:update": "Edit organization details",
        "organization:delete": "Delete an organization",
        "organization:view_financials": "View organization funding and supplies",
        "organization:summary": "View directory totals",

        # Audit actions
        "audit:read": "View audit logs",
    }

    value = action.value if isinstance(action, Action) else str(action)
    return action_descriptions.get(value, f"Action: {value}")


def enforce(actor: Optional[Actor], action: Action, target: Any = None) -> None:
    """
    Turn a gate denial into the matching error for registry mutations.

    Raises:
        AuthenticationRequired: No actor is bound to the call
        AuthorizationDenied: The actor's role or scope forbids the action
        InvalidTransition: The target's state forbids the action
    """
    if actor is None:
        raise AuthenticationRequired()

    result = evaluate(actor, action, target)
    if result.allowed:
        return
    if result.denial == ROLE_DENIAL:
        raise AuthorizationDenied(result.reason, action=Action(action).value)
    raise InvalidTransition(result.reason, action=Action(action).value)
