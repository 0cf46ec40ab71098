# SPDX-License-Identifier: Apache-2.0

"""
Volunteer roster domain logic.

Pure functions for roster entries, status changes, and the back-reference
cleanup that has to happen before a volunteer leaves the roster.
"""

from collections import Counter
from typing import Any, Dict, Iterable, List, Optional, Tuple

from models.entities import ContactInfo, HelpRequest, Pin, Volunteer
from models.enums import RequestStatus, VolunteerStatus
from domain.assignments import release_assignment


def build_volunteer(
    name: str,
    role: str,
    organization_id: Optional[str],
    email: Optional[str] = None,
    phone: Optional[str] = None,
    location: Optional[str] = None,
    volunteer_id: Optional[str] = None,
) -> Volunteer:
    """
    Build a pending roster entry.

    Args:
        name: Volunteer display name
        role: tracking_volunteer or supply_volunteer
        organization_id: Organization the volunteer applies to
        email: Contact email
        phone: Contact phone
        location: Home base
        volunteer_id: Reuse an existing id (the actor id for self-registered volunteers)

    Returns:
        Volunteer with status pending and no completed assignments
    """
    data: Dict[str, Any] = {
        "name": name,
        "role": role,
        "status": VolunteerStatus.PENDING,
        "contact": ContactInfo(email=email, phone=phone),
        "location": location or "",
        "assignments_completed": 0,
        "organization_id": organization_id,
    }
    if volunteer_id:
        data["id"] = volunteer_id
    return Volunteer(**data)


def apply_status(volunteer: Volunteer, status: VolunteerStatus) -> Tuple[Volunteer, bool]:
    """
    Move a volunteer to a roster status.

    Returns:
        Tuple of (volunteer, changed); changed is False when already in that status
    """
    if volunteer.status == status:
        return volunteer, False
    return volunteer.evolve(status=status), True


def orphan(volunteer: Volunteer) -> Volunteer:
    """Detach a volunteer from its organization."""
    return volunteer.evolve(organization_id=None)


def release_references(
    volunteer: Volunteer,
    requests: Iterable[HelpRequest],
    pins: Iterable[Pin],
) -> Tuple[List[HelpRequest], List[Pin]]:
    """
    Compute the records whose back-references to a volunteer must be cleared.

    Open (assigned) requests revert to pending; completed requests keep their
    historical assignee. Pins delivered by the volunteer lose the
    assignment.

    Returns:
        Tuple of (updated requests, updated pins)
    """
    released_requests = [
        release_assignment(request)
        for request in requests
        if request.status == RequestStatus.ASSIGNED
        and request.assigned_volunteer_id == volunteer.id
    ]

    released_pins = [
        pin.evolve(assigned_to=None, assigned_volunteer_id=None)
        for pin in pins
        if pin.assigned_volunteer_id == volunteer.id
    ]

    return released_requests, released_pins


def filter_roster(volunteers: Iterable[Volunteer], organization_id: Optional[str] = None,
                  status: Optional[VolunteerStatus] = None) -> List[Volunteer]:
    """Volunteers of one organization (or all when None), oldest first."""
    matched = [
        volunteer for volunteer in volunteers
        if (organization_id is None or volunteer.organization_id == organization_id)
        and (status is None or volunteer.status == status)
    ]
    return sorted(matched, key=lambda v: v.joined_at)


def summarize_roster(volunteers: Iterable[Volunteer]) -> Dict[str, Any]:
    """Count volunteers by status and role."""
    volunteers = list(volunteers)
    by_status = Counter(volunteer.status for volunteer in volunteers)
    by_role = Counter(volunteer.role for volunteer in volunteers)

    return {
        "total": len(volunteers),
        "active": by_status.get(VolunteerStatus.ACTIVE.value, 0),
        "pending": by_status.get(VolunteerStatus.PENDING.value, 0),
        "inactive": by_status.get(VolunteerStatus.INACTIVE.value, 0),
        "byRole": dict(by_role),
        "assignmentsCompleted": sum(volunteer.assignments_completed for volunteer in volunteers),
    }
