# SPDX-License-Identifier: Apache-2.0

"""
Coordination error taxonomy.

Every failure raised by a registry leaves the registry state untouched; the
HTTP layer maps each class to an RFC 7807 problem document through its
status code and error type.
"""

from typing import Any, Dict, List, Optional


class CoordinationError(Exception):
    """Base class for coordination workflow errors."""

    def __init__(self, message: str, status_code: int = 500, error_type: str = "application-error"):
        super().__init__(message)
        self.message = message
        self.status_code = status_code
        self.error_type = error_type


class ValidationError(CoordinationError):
    """Missing or malformed required fields."""

    def __init__(self, message: str, errors: Optional[List[Dict[str, Any]]] = None):
        super().__init__(message, 400, "validation-error")
        self.errors = errors or []

    @classmethod
    def from_pydantic(cls, message: str, error) -> "ValidationError":
        """Build from a pydantic ValidationError raised while constructing a record."""
        errors = []
        for item in error.errors():
            errors.append({
                "field": ".".join(str(loc) for loc in item["loc"]),
                "message": item["msg"],
                "type": item["type"],
            })
        return cls(message, errors)


class AuthenticationRequired(CoordinationError):
    """No actor is bound to the request."""

    def __init__(self, message: str = "Authentication required"):
        super().__init__(message, 401, "authentication-required")


class AuthorizationDenied(CoordinationError):
    """The actor's role or scope does not allow the action."""

    def __init__(self, message: str, action: Optional[str] = None):
        super().__init__(message, 403, "insufficient-permissions")
        self.action = action


class NotFound(CoordinationError):
    """Unknown id."""

    def __init__(self, entity: str, entity_id: str):
        super().__init__(f"{entity} {entity_id} not found", 404, "resource-not-found")
        self.entity = entity
        self.entity_id = entity_id


class InvalidTransition(CoordinationError):
    """The target is not in a state that allows the action."""

    def __init__(self, message: str, action: Optional[str] = None):
        super().__init__(message, 409, "invalid-transition")
        self.action = action


class VolunteerUnavailable(CoordinationError):
    """Assignment precondition on the volunteer failed."""

    def __init__(self, message: str, volunteer_id: Optional[str] = None):
        super().__init__(message, 409, "volunteer-unavailable")
        self.volunteer_id = volunteer_id


class Conflict(CoordinationError):
    """A uniqueness constraint would be violated."""

    def __init__(self, message: str):
        super().__init__(message, 409, "resource-conflict")
