# SPDX-License-Identifier: Apache-2.0

"""
Help request and assignment domain logic.

Pure functions for request intake, volunteer eligibility, the
assign/complete transitions, and request read-models. Matching is explicit
selection by an organization operator: nothing here ranks or auto-selects
volunteers, it only validates the operator's choice.
"""

from collections import Counter
from dataclasses import dataclass
from typing import Any, Dict, Iterable, List, Optional, Tuple

from models.base import utc_now
from models.entities import Actor, HelpRequest, Volunteer
from models.enums import RequestStatus, Urgency, VolunteerRole, VolunteerStatus
from models.requests import SubmitHelpRequest

URGENCY_RANK = {
    Urgency.HIGH.value: 0,
    Urgency.MEDIUM.value: 1,
    Urgency.LOW.value: 2,
}


@dataclass
class HelpRequestFilters:
    """Filters for help request queries."""
    status: Optional[RequestStatus] = None
    urgency: Optional[Urgency] = None


@dataclass
class EligibilityResult:
    """Result of a volunteer eligibility check."""
    eligible: bool
    reason: Optional[str] = None


def build_help_request(actor: Actor, request: SubmitHelpRequest) -> HelpRequest:
    """
    Build a new pending help request.

    Args:
        actor: Submitting actor
        request: Validated submission

    Returns:
        HelpRequest with status pending and no assignee
    """
    return HelpRequest(
        title=request.title,
        description=request.description,
        location=request.location,
        urgency=request.urgency,
        status=RequestStatus.PENDING,
        requested_by=actor.name,
        requested_by_id=actor.id,
    )


def check_eligibility(volunteer: Volunteer, organization_id: Optional[str]) -> EligibilityResult:
    """
    Check whether a volunteer can take a delivery assignment.

    Args:
        volunteer: Candidate volunteer
        organization_id: Organization of the operator making the assignment

    Returns:
        EligibilityResult with the first failed precondition as reason
    """
    if volunteer.status != VolunteerStatus.ACTIVE:
        return EligibilityResult(False, f"Volunteer {volunteer.id} is {volunteer.status}, not active")

    if volunteer.role != VolunteerRole.SUPPLY_VOLUNTEER:
        return EligibilityResult(False, f"Volunteer {volunteer.id} is not a supply volunteer")

    if volunteer.organization_id != organization_id:
        return EligibilityResult(False, f"Volunteer {volunteer.id} does not belong to this organization")

    return EligibilityResult(True)


def eligible_candidates(volunteers: Iterable[Volunteer], organization_id: Optional[str]) -> List[Volunteer]:
    """Active supply volunteers of an organization, by name."""
    candidates = [
        volunteer for volunteer in volunteers
        if check_eligibility(volunteer, organization_id).eligible
    ]
    return sorted(candidates, key=lambda v: v.name.lower())


def apply_assignment(request: HelpRequest, volunteer: Volunteer, organization_id: Optional[str]) -> HelpRequest:
    """Bind a pending request to an eligible volunteer of the assigning organization."""
    return request.evolve(
        status=RequestStatus.ASSIGNED,
        assigned_to=volunteer.name,
        assigned_volunteer_id=volunteer.id,
        assigned_organization_id=organization_id,
    )


def apply_completion(request: HelpRequest, volunteer: Optional[Volunteer]) -> Tuple[HelpRequest, Optional[Volunteer]]:
    """
    Complete an assigned request and credit the volunteer.

    Args:
        request: Request in status assigned
        volunteer: Assigned volunteer, or None when the roster entry is gone

    Returns:
        Tuple of (completed request, volunteer with assignments_completed + 1)
    """
    completed = request.evolve(status=RequestStatus.COMPLETED, completed_at=utc_now())
    if volunteer is None:
        return completed, None

    credited = volunteer.evolve(assignments_completed=volunteer.assignments_completed + 1)
    return completed, credited


def release_assignment(request: HelpRequest) -> HelpRequest:
    """Revert an open assignment to pending with the assignee cleared."""
    return request.evolve(
        status=RequestStatus.PENDING,
        assigned_to=None,
        assigned_volunteer_id=None,
        assigned_organization_id=None,
    )


def filter_requests(requests: Iterable[HelpRequest], filters: Optional[HelpRequestFilters] = None) -> List[HelpRequest]:
    """
    Filter help requests and order them for the coordination queue.

    Open requests come first, then by urgency (high first), then newest first.
    """
    filters = filters or HelpRequestFilters()
    matched = [
        request for request in requests
        if (not filters.status or request.status == filters.status)
        and (not filters.urgency or request.urgency == filters.urgency)
    ]

    matched.sort(key=lambda r: r.requested_at, reverse=True)
    matched.sort(key=lambda r: (r.status == RequestStatus.COMPLETED, URGENCY_RANK.get(r.urgency, 3)))
    return matched


def summarize_requests(requests: Iterable[HelpRequest]) -> Dict[str, Any]:
    """Count requests by status and urgency."""
    requests = list(requests)
    by_status = Counter(request.status for request in requests)
    by_urgency = Counter(request.urgency for request in requests)

    return {
        "total": len(requests),
        "pending": by_status.get(RequestStatus.PENDING.value, 0),
        "assigned": by_status.get(RequestStatus.ASSIGNED.value, 0),
        "completed": by_status.get(RequestStatus.COMPLETED.value, 0),
        "byUrgency": {urgency.value: by_urgency.get(urgency.value, 0) for urgency in Urgency},
    }
