# SPDX-License-Identifier: Apache-2.0

"""
Organization directory domain logic.

Pure functions for organization registration, admin updates, and the
directory read-models. Aggregates are always recomputed from the current
directory contents; nothing here is persisted separately.
"""

import re
from collections import Counter
from typing import Any, Dict, Iterable, List, Optional

from models.base import utc_now
from models.entities import Actor, ContactInfo, Credentials, Organization, Supplies, Volunteer
from models.enums import Action, OrganizationStatus, VolunteerStatus
from models.requests import RegisterOrganizationRequest, UpdateOrganizationRequest
from domain.authorization import can_perform

SUPPLY_FIELDS = ("medical", "food", "water", "shelter", "equipment")
FINANCIAL_FIELDS = ("funding", "supplies")
DEFAULT_FUNDING = "$0"


def parse_funding(funding: Optional[str]) -> float:
    """
    Parse a currency string such as "$50,000" into a number.

    Everything but digits and the decimal point is ignored; an unparseable
    value counts as zero.
    """
    cleaned = re.sub(r"[^0-9.]", "", funding or "")
    if not cleaned:
        return 0.0
    try:
        return float(cleaned)
    except ValueError:
        digits = re.sub(r"[^0-9]", "", cleaned)
        return float(digits) if digits else 0.0


def build_organization(request: RegisterOrganizationRequest) -> Organization:
    """
    Build a pending organization from a registration.

    Args:
        request: Validated registration

    Returns:
        Organization with status pending, no volunteers and no supplies
    """
    return Organization(
        name=request.name,
        credentials=Credentials(username=request.username, secret=request.secret),
        region=request.region,
        funding=request.funding or DEFAULT_FUNDING,
        volunteer_count=0,
        status=OrganizationStatus.PENDING,
        contact=ContactInfo(email=request.contact_email, phone=request.contact_phone),
        supplies=None,
    )


def merge_update(organization: Organization, update: UpdateOrganizationRequest) -> Organization:
    """
    Merge admin-supplied fields into an organization.

    Only fields present in the update are applied; id, createdAt and status
    are not part of the update model and cannot change here.
    """
    changes = update.model_dump(exclude_unset=True)
    if not changes:
        return organization

    if "contact" in changes and changes["contact"] is not None:
        merged_contact = organization.contact.model_dump()
        merged_contact.update({k: v for k, v in changes["contact"].items() if v is not None})
        changes["contact"] = merged_contact

    changes["updated_at"] = utc_now()
    return organization.evolve(**changes)


def set_status(organization: Organization, status: OrganizationStatus) -> Organization:
    """Apply an admin status decision."""
    return organization.evolve(status=status, updated_at=utc_now())


def sum_supplies(organizations: Iterable[Organization]) -> Dict[str, int]:
    """Total supplies across organizations that report an inventory."""
    totals = {field: 0 for field in SUPPLY_FIELDS}
    for organization in organizations:
        if organization.supplies is None:
            continue
        for field in SUPPLY_FIELDS:
            totals[field] += getattr(organization.supplies, field)
    return totals


def region_breakdown(organizations: Iterable[Organization]) -> List[Dict[str, Any]]:
    """Organizations and declared volunteers per region, in first-seen order."""
    regions: Dict[str, Dict[str, Any]] = {}
    for organization in organizations:
        entry = regions.setdefault(
            organization.region,
            {"region": organization.region, "organizations": 0, "volunteers": 0},
        )
        entry["organizations"] += 1
        entry["volunteers"] += organization.volunteer_count
    return list(regions.values())


def summarize_directory(
    organizations: Iterable[Organization],
    include_financials: bool = True,
    roster: Iterable[Volunteer] = (),
) -> Dict[str, Any]:
    """
    Compute the directory aggregates.

    ``totalVolunteers`` sums the headcount each organization declares;
    ``rosterVolunteers`` counts active roster entries of listed organizations.

    Args:
        organizations: Every organization in the directory
        include_financials: Whether to include funding and supply totals
        roster: Volunteer roster entries

    Returns:
        Dictionary of counts, totals and breakdowns
    """
    organizations = list(organizations)
    by_status = Counter(organization.status for organization in organizations)
    listed = {organization.id for organization in organizations}

    summary: Dict[str, Any] = {
        "total": len(organizations),
        "active": by_status.get(OrganizationStatus.ACTIVE.value, 0),
        "pending": by_status.get(OrganizationStatus.PENDING.value, 0),
        "inactive": by_status.get(OrganizationStatus.INACTIVE.value, 0),
        "totalVolunteers": sum(organization.volunteer_count for organization in organizations),
        "rosterVolunteers": sum(
            1 for volunteer in roster
            if volunteer.organization_id in listed and volunteer.status == VolunteerStatus.ACTIVE
        ),
        "byStatus": {status.value: by_status.get(status.value, 0) for status in OrganizationStatus},
        "byRegion": region_breakdown(organizations),
    }

    if include_financials:
        summary["totalFunding"] = sum(parse_funding(organization.funding) for organization in organizations)
        summary["supplies"] = sum_supplies(organizations)
        summary["fundingByOrganization"] = [
            {"id": organization.id, "name": organization.name, "funding": parse_funding(organization.funding)}
            for organization in organizations
        ]

    return summary


def partners(organizations: Iterable[Organization], actor: Actor) -> List[Organization]:
    """Active organizations other than the actor's own, by name."""
    return sorted(
        (
            organization for organization in organizations
            if organization.status == OrganizationStatus.ACTIVE
            and organization.id != actor.organization_id
        ),
        key=lambda o: o.name.lower(),
    )


def render_organization(organization: Organization, actor: Optional[Actor]) -> Dict[str, Any]:
    """
    Serialize an organization for an actor.

    The credential secret is never rendered. Funding and supplies are only
    rendered for actors allowed to view the organization's financials.
    """
    data = organization.to_json()
    credentials = data.get("credentials") or {}
    credentials.pop("secret", None)
    data["credentials"] = credentials

    if not can_perform(actor, Action.ORGANIZATION_VIEW_FINANCIALS, organization):
        for field in FINANCIAL_FIELDS:
            data.pop(field, None)

    return data
