# -*- coding: utf-8 -*-
# SPDX-License-Identifier: Apache-2.0

"""
Enumeration types for the Quake Response coordination platform.
"""

from enum import Enum


class ActorRole(str, Enum):
    """Role held by an authenticated actor (exactly one at a time)."""
    USER = "user"
    TRACKING_VOLUNTEER = "tracking_volunteer"
    SUPPLY_VOLUNTEER = "supply_volunteer"
    ORGANIZATION = "organization"
    ADMIN = "admin"


SELF_SERVICE_ROLES = (
    ActorRole.USER,
    ActorRole.TRACKING_VOLUNTEER,
    ActorRole.SUPPLY_VOLUNTEER,
)


class PinKind(str, Enum):
    """Kind of field-reported location."""
    DAMAGED = "damaged"
    SAFE = "safe"


class PinStatus(str, Enum):
    """Incident pin lifecycle status."""
    PENDING = "pending"
    CONFIRMED = "confirmed"
    COMPLETED = "completed"


class Urgency(str, Enum):
    """Help request urgency."""
    LOW = "low"
    MEDIUM = "medium"
    HIGH = "high"


class RequestStatus(str, Enum):
    """Help request assignment status."""
    PENDING = "pending"
    ASSIGNED = "assigned"
    COMPLETED = "completed"


class VolunteerRole(str, Enum):
    """Volunteer specialization."""
    TRACKING_VOLUNTEER = "tracking_volunteer"
    SUPPLY_VOLUNTEER = "supply_volunteer"


class VolunteerStatus(str, Enum):
    """Volunteer roster status."""
    PENDING = "pending"
    ACTIVE = "active"
    INACTIVE = "inactive"


class OrganizationStatus(str, Enum):
    """Organization approval status."""
    PENDING = "pending"
    ACTIVE = "active"
    INACTIVE = "inactive"


class Action(str, Enum):
    """Actions checked by the authorization gate."""
    PIN_CREATE = "pin:create"
    PIN_LIST = "pin:list"
    PIN_CONFIRM = "pin:confirm"
    PIN_DENY = "pin:deny"
    PIN_COMPLETE = "pin:complete"

    REQUEST_SUBMIT = "request:submit"
    REQUEST_LIST = "request:list"
    REQUEST_ASSIGN = "request:assign"
    REQUEST_COMPLETE = "request:complete"
    REQUEST_CANDIDATES = "request:candidates"

    VOLUNTEER_LIST = "volunteer:list"
    VOLUNTEER_APPROVE = "volunteer:approve"
    VOLUNTEER_REJECT = "volunteer:reject"
    VOLUNTEER_REMOVE = "volunteer:remove"

    ORGANIZATION_REGISTER = "organization:register"
    ORGANIZATION_LIST = "organization:list"
    ORGANIZATION_APPROVE = "organization:approve"
    ORGANIZATION_REJECT = "organization:reject"
    ORGANIZATION_UPDATE = "organization:update"
    ORGANIZATION_DELETE = "organization:delete"
    ORGANIZATION_VIEW_FINANCIALS = "organization:view_financials"
    ORGANIZATION_SUMMARY = "organization:summary"

    AUDIT_READ = "audit:read"
