# -*- coding: utf-8 -*-
# SPDX-License-Identifier: Apache-2.0

"""
Models package - Pydantic schemas and data models for the Quake Response platform.
"""

# Base models
from .base import BaseRecord, CamelModel, generate_object_id, utc_now

# Enumerations
from .enums import (
    ActorRole,
    PinKind,
    PinStatus,
    Urgency,
    RequestStatus,
    VolunteerRole,
    VolunteerStatus,
    OrganizationStatus,
    Action,
)

# Core entities
from .entities import (
    ContactInfo,
    Actor,
    Pin,
    HelpRequest,
    Volunteer,
    Credentials,
    Supplies,
    Organization,
    AuditEntry,
)

# Request models
from .requests import (
    RegisterActorRequest,
    LoginRequest,
    CreatePinRequest,
    PinQuery,
    SubmitHelpRequest,
    HelpRequestQuery,
    AssignVolunteerRequest,
    VolunteerQuery,
    OrganizationQuery,
    RegisterOrganizationRequest,
    UpdateOrganizationRequest,
    AuditQuery,
    PinPath,
    HelpRequestPath,
    VolunteerPath,
    OrganizationPath,
)

# Response models
from .responses import HalLink, SessionTokenResponse

__all__ = [
    # Base models
    "BaseRecord",
    "CamelModel",
    "generate_object_id",
    "utc_now",

    # Enumerations
    "ActorRole",
    "PinKind",
    "PinStatus",
    "Urgency",
    "RequestStatus",
    "VolunteerRole",
    "VolunteerStatus",
    "OrganizationStatus",
    "Action",

    # Core entities
    "ContactInfo",
    "Actor",
    "Pin",
    "HelpRequest",
    "Volunteer",
    "Credentials",
    "Supplies",
    "Organization",
    "AuditEntry",

    # Request models
    "RegisterActorRequest",
    "LoginRequest",
    "CreatePinRequest",
    "PinQuery",
    "SubmitHelpRequest",
    "HelpRequestQuery",
    "AssignVolunteerRequest",
    "VolunteerQuery",
    "OrganizationQuery",
    "RegisterOrganizationRequest",
    "UpdateOrganizationRequest",
    "AuditQuery",
    "PinPath",
    "HelpRequestPath",
    "VolunteerPath",
    "OrganizationPath",

    # Response models
    "HalLink",
    "SessionTokenResponse",
]
