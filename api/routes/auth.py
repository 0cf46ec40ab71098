# -*- coding: utf-8 -*-
# SPDX-License-Identifier: Apache-2.0

"""
Authentication endpoints for registration, login, logout and the current actor.
"""

from flask import current_app
from flask_openapi3 import APIBlueprint, Tag
from opentelemetry import trace
from opentelemetry.trace import Status, StatusCode
import logging

from domain.errors import AuthenticationRequired
from models.entities import Actor
from models.enums import VolunteerRole
from models.requests import LoginRequest, RegisterActorRequest
from models.responses import SessionTokenResponse
from services.auth import AuthenticationError
from middleware.auth import require_jwt

# Set up logging and tracing
logger = logging.getLogger(__name__)
tracer = trace.get_tracer(__name__)

# Create API blueprint
auth_tag = Tag(name="Authentication", description="Actor registration and session management")
auth_bp = APIBlueprint(
    'auth',
    __name__,
    url_prefix='/api/auth',
    abp_tags=[auth_tag]
)


@auth_bp.post('/register')
def register(body: RegisterActorRequest):
    """
    Register a citizen or volunteer.

    Volunteers who name an organization are also added to its roster as
    pending applicants.
    """
    actor = current_app.coordination.register_actor(body)
    return current_app.hal_formatter.format_actor(actor), 201


@auth_bp.post('/login')
def login(body: LoginRequest):
    """
    Open a session and return its bearer token.

    Credentials are not checked; the email identifies the actor.
    """
    with tracer.start_as_current_span("auth.login", attributes={"operation": "login"}) as span:
        actor = current_app.actor_registry.find_by_email(body.email)
        if actor is None:
            span.set_status(Status(StatusCode.ERROR, "Actor not found"))
            logger.warning("Login attempt with unknown email")
            raise AuthenticationRequired("Unknown email")

        try:
            session = current_app.auth_service.open_session(actor)
        except AuthenticationError as e:
            span.set_status(Status(StatusCode.ERROR, str(e)))
            return current_app.hal_formatter.format_error(
                "service-unavailable", "Service Unavailable", 503, str(e), "/api/auth/login"
            ), 503

        span.set_attribute("actor.id", actor.id)
        response = SessionTokenResponse(**session).model_dump(by_alias=True)
        response["actor"] = current_app.hal_formatter.format_actor(actor)
        return response, 200


@auth_bp.post('/logout')
@require_jwt
def logout(actor: Actor):
    """End the current session; its token stops working immediately."""
    token = current_app.auth_middleware.extract_token_from_request()
    cleared = current_app.auth_service.close_session(token)
    logger.info("Logout", extra={"actor_id": actor.id, "cleared": cleared})
    return {"loggedOut": True}, 200


@auth_bp.get('/me')
@require_jwt
def me(actor: Actor):
    """Current actor, with its roster entry for volunteers."""
    response = current_app.hal_formatter.format_actor(actor)
    if actor.role in tuple(role.value for role in VolunteerRole):
        volunteer = current_app.volunteer_roster.find(actor.id)
        if volunteer is not None:
            response["volunteer"] = volunteer.to_json()
    return response, 200
