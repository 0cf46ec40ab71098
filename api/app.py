"""
Quake Response API - Flask Application Entry Point

This module builds the Flask application with OpenAPI 3.0 support, wires the
registries over a shared record store, and configures middleware for the
earthquake-response coordination platform.
"""

import os
from typing import Any, Dict, Optional
from flask_openapi3 import OpenAPI, Info, Tag
import logging

from observability.config import setup_observability
from observability.middleware import add_observability_middleware
from middleware.auth import AuthMiddleware
from middleware.error_handler import ErrorHandlerMiddleware
from middleware.validation import validation_error_callback
from models.entities import Actor, AuditEntry, HelpRequest, Organization, Pin, Volunteer
from models.enums import ActorRole
from services.audit import AuditService
from services.auth import AuthService
from services.coordination import CoordinationService
from services.hal import create_hal_formatter
from services.help_requests import HelpRequestLedger
from services.identity import ActorRegistry
from services.mongodb import MongoDBService
from services.organizations import OrganizationDirectory
from services.pins import PinRegistry
from services.session import SessionStore, create_session_store
from services.store import (
    ACTORS, AUDIT_LOGS, HELP_REQUESTS, ORGANIZATIONS, PINS, VOLUNTEERS,
    RecordPersistence, RecordStore,
)
from services.volunteers import VolunteerRoster

logger = logging.getLogger(__name__)

SERVICE_NAME = "quake-response-api"
SERVICE_VERSION = "1.0.0"

RECORD_MODELS = {
    ACTORS: Actor,
    PINS: Pin,
    HELP_REQUESTS: HelpRequest,
    VOLUNTEERS: Volunteer,
    ORGANIZATIONS: Organization,
    AUDIT_LOGS: AuditEntry,
}

# OpenAPI info
info = Info(
    title="Quake Response API",
    version=SERVICE_VERSION,
    description="Earthquake-response coordination API with HATEOAS Level-3 support"
)

# API tags for organization
tags = [
    Tag(name="Authentication", description="Actor registration and session management"),
    Tag(name="Pins", description="Field-reported damaged locations and safe zones"),
    Tag(name="Help Requests", description="Resource requests and volunteer assignment"),
    Tag(name="Volunteers", description="Volunteer roster review"),
    Tag(name="Organizations", description="Relief organization directory"),
    Tag(name="Audit Logs", description="Audit trail querying"),
    Tag(name="Health", description="System health and status")
]

health_tag = Tag(name="Health", description="System health and status")


def load_config() -> Dict[str, Any]:
    """Read application configuration from the environment."""
    environment = os.getenv('ENVIRONMENT', 'development')
    return {
        'ENVIRONMENT': environment,
        'DEBUG': environment == 'development',
        'BASE_URL': os.getenv('BASE_URL', 'http://localhost:5000'),
        'PROBLEM_BASE_URL': os.getenv('PROBLEM_BASE_URL', 'https://api.quake-response.org/problems/'),

        # Security configuration
        'JWT_ACCESS_TOKEN_EXPIRES': int(os.getenv('JWT_ACCESS_TOKEN_EXPIRES', '3600')),
        'JWT_PRIVATE_KEY': os.getenv('JWT_PRIVATE_KEY'),
        'JWT_PUBLIC_KEY': os.getenv('JWT_PUBLIC_KEY'),

        # Persistence configuration
        'PERSISTENCE_ENABLED': os.getenv('PERSISTENCE_ENABLED', 'false').lower() == 'true',
        'MONGODB_URI': os.getenv('MONGODB_URI', 'mongodb://localhost:27017/quake_response_dev'),
        'MONGODB_DATABASE': os.getenv('MONGODB_DATABASE', 'quake_response_dev'),

        # Session configuration
        'SESSION_BACKEND': os.getenv('SESSION_BACKEND', 'memory'),
        'REDIS_URL': os.getenv('REDIS_URL', 'redis://localhost:6379'),

        # Feature flags
        'OTEL_ENABLED': os.getenv('OTEL_ENABLED', 'true').lower() == 'true',

        # Bootstrap admin
        'ADMIN_EMAIL': os.getenv('ADMIN_EMAIL', 'admin@quake-response.org'),
        'ADMIN_NAME': os.getenv('ADMIN_NAME', 'Platform Admin'),
    }


def create_app(
    config: Optional[Dict[str, Any]] = None,
    persistence: Optional[RecordPersistence] = None,
    session_store: Optional[SessionStore] = None,
) -> OpenAPI:
    """
    Build the Flask application.

    Args:
        config: Overrides applied on top of the environment configuration
        persistence: Write-through collaborator; defaults to MongoDB when
            PERSISTENCE_ENABLED is set
        session_store: Session store; defaults to the SESSION_BACKEND choice

    Returns:
        Configured OpenAPI (Flask) application
    """
    settings = load_config()
    settings.update(config or {})

    setup_observability(settings['ENVIRONMENT'], settings['OTEL_ENABLED'])

    app = OpenAPI(
        __name__,
        info=info,
        validation_error_status=400,
        validation_error_callback=validation_error_callback
    )
    app.config.update(settings)

    add_observability_middleware(app, instrument=settings['OTEL_ENABLED'])

    # Persistence
    mongodb_service = None
    if persistence is None and settings['PERSISTENCE_ENABLED']:
        mongodb_service = MongoDBService(settings['MONGODB_URI'], settings['MONGODB_DATABASE'])
        mongodb_service.create_indexes()
        persistence = mongodb_service

    store = RecordStore(persistence)
    store.hydrate(RECORD_MODELS)

    # Sessions and tokens
    if session_store is None:
        session_store = create_session_store(settings['SESSION_BACKEND'], settings['REDIS_URL'])
    auth_service = AuthService(
        session_store,
        settings['JWT_ACCESS_TOKEN_EXPIRES'],
        settings['JWT_PRIVATE_KEY'],
        settings['JWT_PUBLIC_KEY']
    )

    # Registries
    audit_service = AuditService(store)
    actor_registry = ActorRegistry(store, audit_service)
    pin_registry = PinRegistry(store, audit_service)
    help_request_ledger = HelpRequestLedger(store, audit_service)
    volunteer_roster = VolunteerRoster(store, audit_service)
    organization_directory = OrganizationDirectory(store, audit_service)
    coordination = CoordinationService(
        store,
        audit_service,
        actor_registry,
        help_request_ledger,
        volunteer_roster,
        organization_directory
    )

    admin = actor_registry.ensure(settings['ADMIN_NAME'], settings['ADMIN_EMAIL'], ActorRole.ADMIN)
    logger.info("Admin actor ready", extra={"actor_id": admin.id})

    # Middleware
    hal_formatter = create_hal_formatter(settings['BASE_URL'], settings['PROBLEM_BASE_URL'])
    auth_middleware = AuthMiddleware(auth_service, actor_registry)
    ErrorHandlerMiddleware(app, hal_formatter)

    # Make services available to routes
    app.record_store = store
    app.mongodb_service = mongodb_service
    app.session_store = session_store
    app.auth_service = auth_service
    app.audit_service = audit_service
    app.actor_registry = actor_registry
    app.pin_registry = pin_registry
    app.help_request_ledger = help_request_ledger
    app.volunteer_roster = volunteer_roster
    app.organization_directory = organization_directory
    app.coordination = coordination
    app.hal_formatter = hal_formatter
    app.auth_middleware = auth_middleware

    # Register routes
    from routes.auth import auth_bp
    from routes.pins import pins_bp
    from routes.help_requests import requests_bp
    from routes.volunteers import volunteers_bp
    from routes.organizations import org_bp
    from routes.audit import audit_bp

    app.register_api(auth_bp)
    app.register_api(pins_bp)
    app.register_api(requests_bp)
    app.register_api(volunteers_bp)
    app.register_api(org_bp)
    app.register_api(audit_bp)

    @app.get('/api/healthz', tags=[health_tag])
    def health_check():
        """Health of the record store and its collaborators."""
        dependencies = {
            "sessions": {
                "backend": settings['SESSION_BACKEND'],
                "status": "healthy" if session_store.is_available() else "unhealthy"
            }
        }
        if mongodb_service is not None:
            dependencies["mongodb"] = mongodb_service.health_check()

        unhealthy = [name for name, check in dependencies.items() if check.get("status") != "healthy"]
        health = {
            "status": "unhealthy" if unhealthy else "healthy",
            "service": SERVICE_NAME,
            "version": SERVICE_VERSION,
            "environment": settings['ENVIRONMENT'],
            "persistence": store.persistence_enabled,
            "records": {collection: store.count(collection) for collection in RECORD_MODELS},
            "dependencies": dependencies,
            "_links": {
                "self": hal_formatter.link_builder.build_self_link("/api/healthz").model_dump(exclude_none=True),
                "docs": hal_formatter.link_builder.build_link(
                    "/openapi/openapi.json", title="API schema"
                ).model_dump(exclude_none=True)
            }
        }
        return health, 503 if unhealthy else 200

    logger.info(
        "Application created",
        extra={"environment": settings['ENVIRONMENT'], "persistence": store.persistence_enabled}
    )
    return app


if __name__ == '__main__':
    # Development server
    application = create_app()
    application.run(
        host='0.0.0.0',
        port=int(os.getenv('PORT', 5000)),
        debug=application.config['DEBUG']
    )
