# SPDX-License-Identifier: Apache-2.0

"""
Authentication middleware for session-bound JWT tokens.

This module provides Flask middleware for extracting bearer tokens,
resolving them to a live session, and binding the session's actor to the
request for the authorization gate.
"""

from functools import wraps
from flask import request, g, current_app
from typing import Optional, Dict, Any, Callable
from opentelemetry import trace
import logging

from domain.errors import AuthenticationRequired
from models.entities import Actor
from services.auth import AuthService, TokenValidationError
from services.identity import ActorRegistry

tracer = trace.get_tracer(__name__)
logger = logging.getLogger(__name__)


class AuthMiddleware:
    """
    JWT authentication middleware for Flask applications.

    Handles token extraction, session validation and actor resolution for
    protected endpoints.
    """

    def __init__(self, auth_service: AuthService, actor_registry: ActorRegistry):
        """
        Initialize the authentication middleware.

        Args:
            auth_service: Token and session service
            actor_registry: Registry the session's actor id is resolved against
        """
        self.auth_service = auth_service
        self.actor_registry = actor_registry

    def extract_token_from_request(self) -> Optional[str]:
        """
        Extract JWT token from request headers.

        Returns:
            JWT token string or None if not found
        """
        auth_header = request.headers.get('Authorization', '')

        if not auth_header:
            return None

        if auth_header.startswith('Bearer '):
            return auth_header[7:].strip() or None

        return auth_header

    def get_request_info(self) -> Dict[str, Any]:
        """Request metadata for authentication logs."""
        return {
            "ip_address": request.remote_addr,
            "user_agent": request.headers.get('User-Agent', ''),
            "request_id": request.headers.get('X-Request-ID')
        }

    def authenticate(self) -> Actor:
        """
        Resolve the actor behind the request's bearer token.

        Raises:
            AuthenticationRequired: Missing, invalid or revoked token, or an
                actor that no longer exists
        """
        with tracer.start_as_current_span("auth.middleware.validate_request") as span:
            span.set_attribute("auth.operation", "validate_request")

            token = self.extract_token_from_request()
            if not token:
                span.set_attribute("auth.result", "missing_token")
                logger.warning("Authentication failed: missing token", extra=self.get_request_info())
                raise AuthenticationRequired("Missing authorization token")

            try:
                actor_id = self.auth_service.resolve_actor_id(token)
            except TokenValidationError as e:
                span.set_attribute("auth.result", "invalid_token")
                logger.warning(f"Authentication failed: {str(e)}", extra=self.get_request_info())
                raise AuthenticationRequired(str(e))

            actor = self.actor_registry.find(actor_id)
            if actor is None:
                span.set_attribute("auth.result", "unknown_actor")
                logger.warning("Authentication failed: actor not found", extra={"actor_id": actor_id})
                raise AuthenticationRequired("Session actor no longer exists")

            span.set_attributes({
                "auth.result": "success",
                "actor.id": actor.id,
                "actor.role": actor.role
            })
            logger.debug(
                "Authentication successful",
                extra={"actor_id": actor.id, "role": actor.role, **self.get_request_info()}
            )
            return actor


def require_jwt(f: Callable) -> Callable:
    """
    Require a live session for a Flask route.

    The resolved actor is stored in ``g.actor`` and passed to the route as its
    first argument.
    """
    @wraps(f)
    def decorated_function(*args, **kwargs):
        auth_middleware: AuthMiddleware = current_app.auth_middleware
        actor = auth_middleware.authenticate()
        g.actor = actor
        return f(actor, *args, **kwargs)
    return decorated_function
