# -*- coding: utf-8 -*-
# SPDX-License-Identifier: Apache-2.0

"""
Services package - Registries over the record store and external integrations.
"""

from .store import RecordStore, PaginationResult, paginate
from .mongodb import MongoDBService
from .session import SessionStore, InMemorySessionStore, RedisSessionStore, create_session_store
from .auth import AuthService, AuthenticationError, TokenValidationError
from .audit import AuditService, AuditFilters
from .identity import ActorRegistry
from .pins import PinRegistry
from .help_requests import HelpRequestLedger
from .volunteers import VolunteerRoster
from .organizations import OrganizationDirectory
from .coordination import CoordinationService
from .hal import HalFormatter, create_hal_formatter

__all__ = [
    "RecordStore",
    "PaginationResult",
    "paginate",
    "MongoDBService",
    "SessionStore",
    "InMemorySessionStore",
    "RedisSessionStore",
    "create_session_store",
    "AuthService",
    "AuthenticationError",
    "TokenValidationError",
    "AuditService",
    "AuditFilters",
    "ActorRegistry",
    "PinRegistry",
    "HelpRequestLedger",
    "VolunteerRoster",
    "OrganizationDirectory",
    "CoordinationService",
    "HalFormatter",
    "create_hal_formatter",
]
