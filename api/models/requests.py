# -*- coding: utf-8 -*-
# SPDX-License-Identifier: Apache-2.0

"""
Request models for API endpoints.
"""

import re
from typing import Optional
from pydantic import BaseModel, Field, ConfigDict, field_validator
from pydantic.alias_generators import to_camel

from .entities import EMAIL_PATTERN, ContactInfo, Supplies
from .enums import (
    ActorRole, OrganizationStatus, PinKind, PinStatus, RequestStatus, Urgency, VolunteerStatus, SELF_SERVICE_ROLES,
)


class RequestModel(BaseModel):
    """Base for request bodies: camelCase on the wire, unknown fields rejected."""

    model_config = ConfigDict(
        populate_by_name=True,
        alias_generator=to_camel,
        use_enum_values=True,
        extra='forbid',
    )


class RegisterActorRequest(RequestModel):
    """Self-service registration for citizens and volunteers."""

    name: str = Field(..., min_length=1, max_length=200, description="Display name")
    email: str = Field(..., description="Login email")
    phone: Optional[str] = Field(None, max_length=40, description="Phone number")
    role: ActorRole = Field(default=ActorRole.USER, description="Requested role")
    organization_id: Optional[str] = Field(None, description="Organization to volunteer with")
    location: Optional[str] = Field(None, max_length=300, description="Volunteer home base")

    @field_validator('email')
    @classmethod
    def validate_email(cls, v):
        """Validate email format."""
        if not re.match(EMAIL_PATTERN, v.strip().lower()):
            raise ValueError('Invalid email format')
        return v.strip().lower()

    @field_validator('role')
    @classmethod
    def validate_role(cls, v):
        """Only citizen and volunteer roles can self-register."""
        if ActorRole(v) not in SELF_SERVICE_ROLES:
            raise ValueError(f'Role {ActorRole(v).value} cannot be self-registered')
        return v


class LoginRequest(RequestModel):
    """Request model for opening a session."""

    email: str = Field(..., min_length=3, description="Login email")


class CreatePinRequest(RequestModel):
    """Request model for reporting a pin."""

    kind: PinKind = Field(..., description="Damaged location or safe zone")
    title: str = Field(..., min_length=1, max_length=200, description="Short title")
    description: str = Field(..., min_length=1, max_length=2000, description="Field description")
    lat: float = Field(..., ge=-90, le=90, description="Latitude from the geolocation provider")
    lng: float = Field(..., ge=-180, le=180, description="Longitude from the geolocation provider")
    image: Optional[str] = Field(None, max_length=500, description="Opaque image-store reference")


class PinQuery(RequestModel):
    """Query parameters for listing pins."""

    model_config = ConfigDict(extra='ignore')

    kind: Optional[PinKind] = None
    status: Optional[PinStatus] = None
    page: int = Field(default=1, ge=1)
    page_size: int = Field(default=50, ge=1, le=200)


class SubmitHelpRequest(RequestModel):
    """Request model for submitting a help request."""

    title: str = Field(..., min_length=1, max_length=200, description="Request title")
    description: str = Field(..., min_length=1, max_length=2000, description="Request details")
    location: str = Field(..., min_length=1, max_length=300, description="Delivery location")
    urgency: Urgency = Field(default=Urgency.MEDIUM, description="Urgency")


class HelpRequestQuery(RequestModel):
    """Query parameters for listing help requests."""

    model_config = ConfigDict(extra='ignore')

    status: Optional[RequestStatus] = None
    urgency: Optional[Urgency] = None
    page: int = Field(default=1, ge=1)
    page_size: int = Field(default=50, ge=1, le=200)


class AssignVolunteerRequest(RequestModel):
    """Request model for binding a help request to a volunteer."""

    volunteer_id: str = Field(..., min_length=1, description="Volunteer to assign")


class VolunteerQuery(RequestModel):
    """Query parameters for listing the roster."""

    model_config = ConfigDict(extra='ignore')

    status: Optional[VolunteerStatus] = None
    page: int = Field(default=1, ge=1)
    page_size: int = Field(default=50, ge=1, le=200)


class OrganizationQuery(RequestModel):
    """Query parameters for listing organizations."""

    model_config = ConfigDict(extra='ignore')

    status: Optional[OrganizationStatus] = None
    page: int = Field(default=1, ge=1)
    page_size: int = Field(default=50, ge=1, le=200)


class RegisterOrganizationRequest(RequestModel):
    """Request model for registering an organization."""

    name: str = Field(..., min_length=1, max_length=200, description="Organization name")
    username: str = Field(..., min_length=1, max_length=100, description="Login username")
    secret: str = Field(..., min_length=1, description="Login secret")
    region: str = Field(..., min_length=1, max_length=100, description="Operating region")
    funding: Optional[str] = Field(None, max_length=50, description="Funding, e.g. $50,000")
    contact_email: Optional[str] = Field(None, description="Contact email")
    contact_phone: Optional[str] = Field(None, max_length=40, description="Contact phone")


class UpdateOrganizationRequest(RequestModel):
    """Request model for admin updates; id, createdAt and status are not accepted."""

    name: Optional[str] = Field(None, min_length=1, max_length=200)
    region: Optional[str] = Field(None, min_length=1, max_length=100)
    funding: Optional[str] = Field(None, max_length=50)
    volunteer_count: Optional[int] = Field(None, ge=0)
    contact: Optional[ContactInfo] = None
    supplies: Optional[Supplies] = None


class PinPath(BaseModel):
    """Path parameters for a single pin."""

    pin_id: str = Field(..., description="Pin ID")


class HelpRequestPath(BaseModel):
    """Path parameters for a single help request."""

    request_id: str = Field(..., description="Help request ID")


class VolunteerPath(BaseModel):
    """Path parameters for a single volunteer."""

    volunteer_id: str = Field(..., description="Volunteer ID")


class OrganizationPath(BaseModel):
    """Path parameters for a single organization."""

    org_id: str = Field(..., description="Organization ID")


class AuditQuery(RequestModel):
    """Query parameters for the audit trail."""

    model_config = ConfigDict(extra='ignore')

    entity: Optional[str] = None
    action: Optional[str] = None
    entity_id: Optional[str] = None
    page: int = Field(default=1, ge=1)
    page_size: int = Field(default=50, ge=1, le=200)
