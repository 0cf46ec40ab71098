# -*- coding: utf-8 -*-
# SPDX-License-Identifier: Apache-2.0

"""
Audit log endpoints for querying the mutation trail.
"""

from flask import current_app
from flask_openapi3 import APIBlueprint, Tag
from opentelemetry import trace
import logging

from domain.authorization import enforce
from models.entities import Actor
from models.enums import Action
from models.requests import AuditQuery
from services.audit import AuditFilters
from middleware.auth import require_jwt

# Set up logging and tracing
logger = logging.getLogger(__name__)
tracer = trace.get_tracer(__name__)

# Create API blueprint
audit_tag = Tag(name="Audit Logs", description="Audit trail querying")
audit_bp = APIBlueprint(
    'audit',
    __name__,
    url_prefix='/api/audit',
    abp_tags=[audit_tag]
)


@audit_bp.get('')
@require_jwt
def list_audit_logs(actor: Actor, query: AuditQuery):
    """
    List audit entries, newest first.

    Admin only. Credential secrets are never present in the recorded
    before/after states.
    """
    enforce(actor, Action.AUDIT_READ)

    with tracer.start_as_current_span("routes.audit.list") as span:
        filters = AuditFilters(entity=query.entity, action=query.action, entity_id=query.entity_id)
        result = current_app.audit_service.query_audit_logs(filters, query.page, query.page_size)
        span.set_attribute("audit.total", result.total)

        logger.info(
            "Audit logs queried",
            extra={"actor_id": actor.id, "entity": query.entity, "action": query.action, "total": result.total}
        )

        hal = current_app.hal_formatter
        return hal.format_collection(
            [hal.format_audit_entry(entry) for entry in result.items],
            result,
            "/api/audit",
            {"entity": query.entity, "action": query.action, "entityId": query.entity_id}
        ), 200
