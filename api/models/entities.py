# -*- coding: utf-8 -*-
# SPDX-License-Identifier: Apache-2.0

"""
Core entity models for the Quake Response coordination platform.
"""

import re
from datetime import datetime
from typing import Any, Dict, Optional
from pydantic import Field, field_validator, model_validator

from .base import BaseRecord, CamelModel, utc_now
from .enums import (
    ActorRole,
    PinKind,
    PinStatus,
    Urgency,
    RequestStatus,
    VolunteerRole,
    VolunteerStatus,
    OrganizationStatus,
)

EMAIL_PATTERN = r'^[a-zA-Z0-9._%+-]+@[a-zA-Z0-9.-]+\.[a-zA-Z]{2,}$'


def _require_text(value: str, label: str) -> str:
    if not value or not value.strip():
        raise ValueError(f'{label} cannot be empty')
    return value.strip()


class ContactInfo(CamelModel):
    """Email/phone pair used by volunteers and organizations."""

    email: Optional[str] = Field(None, description="Contact email")
    phone: Optional[str] = Field(None, max_length=40, description="Contact phone")

    @field_validator('email')
    @classmethod
    def validate_email(cls, v):
        """Validate email format."""
        if v is None or not v.strip():
            return None
        if not re.match(EMAIL_PATTERN, v.strip().lower()):
            raise ValueError('Invalid email format')
        return v.strip().lower()


class Actor(BaseRecord):
    """Authenticated identity holding exactly one role."""

    name: str = Field(..., min_length=1, max_length=200, description="Display name")
    email: str = Field(..., description="Login email")
    phone: Optional[str] = Field(None, max_length=40, description="Phone number")
    role: ActorRole = Field(..., description="Actor role")
    organization_id: Optional[str] = Field(None, description="Organization the actor belongs to")
    created_at: datetime = Field(default_factory=utc_now, description="Registration timestamp")

    @field_validator('name')
    @classmethod
    def validate_name(cls, v):
        """Validate actor name."""
        return _require_text(v, 'Actor name')

    @field_validator('email')
    @classmethod
    def validate_email(cls, v):
        """Validate and normalize email."""
        if not re.match(EMAIL_PATTERN, v.strip().lower()):
            raise ValueError('Invalid email format')
        return v.strip().lower()

    @model_validator(mode='after')
    def validate_organization_scope(self):
        """Organization actors must be bound to an organization."""
        if self.role == ActorRole.ORGANIZATION and not self.organization_id:
            raise ValueError('organization_id is required for organization actors')
        return self


class Pin(BaseRecord):
    """Field-reported incident location."""

    kind: PinKind = Field(..., description="Damaged location or safe zone")
    status: PinStatus = Field(default=PinStatus.PENDING, description="Lifecycle status")
    title: str = Field(..., min_length=1, max_length=200, description="Short title")
    description: str = Field(..., min_length=1, max_length=2000, description="Field description")
    lat: float = Field(..., ge=-90, le=90, description="Latitude")
    lng: float = Field(..., ge=-180, le=180, description="Longitude")
    created_by: str = Field(..., description="Name of the reporting actor")
    created_by_id: Optional[str] = Field(None, description="Reporting actor ID")
    created_at: datetime = Field(default_factory=utc_now, description="Report timestamp")
    assigned_to: Optional[str] = Field(None, description="Team or volunteer handling the pin")
    assigned_volunteer_id: Optional[str] = Field(None, description="Volunteer handling the pin")
    image: Optional[str] = Field(None, description="Opaque image-store reference")

    @field_validator('title')
    @classmethod
    def validate_title(cls, v):
        """Validate pin title."""
        return _require_text(v, 'Pin title')

    @field_validator('description')
    @classmethod
    def validate_description(cls, v):
        """Validate pin description."""
        return _require_text(v, 'Pin description')

    @model_validator(mode='after')
    def validate_kind_status(self):
        """Safe zones terminate at confirmed."""
        if self.kind == PinKind.SAFE and self.status == PinStatus.COMPLETED:
            raise ValueError('Safe-zone pins cannot be completed')
        return self

    def can_confirm(self) -> bool:
        """Check if pin can be confirmed."""
        return self.status == PinStatus.PENDING

    def can_deny(self) -> bool:
        """Check if pin can be denied."""
        return self.status == PinStatus.PENDING

    def can_complete(self) -> bool:
        """Check if pin can be marked completed by a supply delivery."""
        return self.status == PinStatus.CONFIRMED and self.kind == PinKind.DAMAGED


class HelpRequest(BaseRecord):
    """Resource request awaiting a volunteer."""

    title: str = Field(..., min_length=1, max_length=200, description="Request title")
    description: str = Field(..., min_length=1, max_length=2000, description="Request details")
    location: str = Field(..., min_length=1, max_length=300, description="Delivery location")
    urgency: Urgency = Field(default=Urgency.MEDIUM, description="Urgency")
    status: RequestStatus = Field(default=RequestStatus.PENDING, description="Assignment status")
    requested_by: str = Field(..., description="Name of the requesting actor")
    requested_by_id: Optional[str] = Field(None, description="Requesting actor ID")
    requested_at: datetime = Field(default_factory=utc_now, description="Submission timestamp")
    assigned_to: Optional[str] = Field(None, description="Assigned volunteer name")
    assigned_volunteer_id: Optional[str] = Field(None, description="Assigned volunteer ID")
    assigned_organization_id: Optional[str] = Field(None, description="Organization that made the assignment")
    completed_at: Optional[datetime] = Field(None, description="Completion timestamp")

    @field_validator('title', 'description', 'location')
    @classmethod
    def validate_text(cls, v, info):
        """Validate required text fields."""
        return _require_text(v, info.field_name.capitalize())

    @model_validator(mode='after')
    def validate_assignment(self):
        """assigned_to is set if and only if the request is assigned or completed."""
        has_assignee = bool(self.assigned_to)
        needs_assignee = self.status in (RequestStatus.ASSIGNED, RequestStatus.COMPLETED)
        if has_assignee != needs_assignee:
            raise ValueError(
                f'assigned_to must be set exactly when status is assigned or completed '
                f'(status={self.status})'
            )
        if self.status == RequestStatus.ASSIGNED and not self.assigned_volunteer_id:
            raise ValueError('assigned_volunteer_id is required when status is assigned')
        return self


class Volunteer(BaseRecord):
    """Volunteer on an organization's roster."""

    name: str = Field(..., min_length=1, max_length=200, description="Volunteer name")
    contact: ContactInfo = Field(default_factory=ContactInfo, description="Contact details")
    role: VolunteerRole = Field(..., description="Volunteer specialization")
    status: VolunteerStatus = Field(default=VolunteerStatus.PENDING, description="Roster status")
    location: str = Field(default="", max_length=300, description="Home base")
    joined_at: datetime = Field(default_factory=utc_now, description="Registration timestamp")
    assignments_completed: int = Field(default=0, ge=0, description="Completed assignments")
    organization_id: Optional[str] = Field(None, description="Owning organization (null when orphaned)")

    @field_validator('name')
    @classmethod
    def validate_name(cls, v):
        """Validate volunteer name."""
        return _require_text(v, 'Volunteer name')

    def is_active(self) -> bool:
        """Only active volunteers are eligible for assignment."""
        return self.status == VolunteerStatus.ACTIVE


class Credentials(CamelModel):
    """Organization login credentials (stored opaquely, never rendered)."""

    username: str = Field(..., min_length=1, max_length=100, description="Login username")
    secret: str = Field(..., min_length=1, description="Login secret")


class Supplies(CamelModel):
    """Organization supply inventory."""

    medical: int = Field(default=0, ge=0)
    food: int = Field(default=0, ge=0)
    water: int = Field(default=0, ge=0)
    shelter: int = Field(default=0, ge=0)
    equipment: int = Field(default=0, ge=0)


class Organization(BaseRecord):
    """Relief organization awaiting or holding admin approval."""

    name: str = Field(..., min_length=1, max_length=200, description="Organization name")
    credentials: Credentials = Field(..., description="Login credentials")
    region: str = Field(..., min_length=1, max_length=100, description="Operating region")
    funding: str = Field(default="$0", max_length=50, description="Funding as a currency string")
    volunteer_count: int = Field(default=0, ge=0, description="Declared volunteer headcount")
    status: OrganizationStatus = Field(default=OrganizationStatus.PENDING, description="Approval status")
    contact: ContactInfo = Field(default_factory=ContactInfo, description="Contact details")
    supplies: Optional[Supplies] = Field(None, description="Supply inventory")
    created_at: datetime = Field(default_factory=utc_now, description="Registration timestamp")
    updated_at: datetime = Field(default_factory=utc_now, description="Last update timestamp")

    @field_validator('name', 'region')
    @classmethod
    def validate_text(cls, v, info):
        """Validate required text fields."""
        return _require_text(v, f'Organization {info.field_name}')

    @field_validator('funding')
    @classmethod
    def validate_funding(cls, v):
        """Funding must contain at least one digit."""
        if not re.search(r'\d', v or ''):
            raise ValueError('Funding must be a currency amount such as "$50,000"')
        return v.strip()


class AuditEntry(BaseRecord):
    """Audit trail entry for a successful mutation."""

    timestamp: datetime = Field(default_factory=utc_now, description="Action timestamp")
    actor_id: str = Field(..., description="Actor who performed the action")
    actor_role: Optional[str] = Field(None, description="Role held at the time")
    entity: str = Field(..., description="Entity type")
    entity_id: str = Field(..., description="Entity identifier")
    action: str = Field(..., description="Action performed")
    before: Optional[Dict[str, Any]] = Field(None, description="State before action")
    after: Optional[Dict[str, Any]] = Field(None, description="State after action")
    trace_id: Optional[str] = Field(None, description="OpenTelemetry trace ID")
    span_id: Optional[str] = Field(None, description="OpenTelemetry span ID")

    @field_validator('entity')
    @classmethod
    def validate_entity(cls, v):
        """Validate entity type."""
        valid_entities = ['actor', 'pin', 'help_request', 'volunteer', 'organization']
        if v not in valid_entities:
            raise ValueError(f'Invalid entity type: {v}')
        return v
