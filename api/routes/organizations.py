# -*- coding: utf-8 -*-
# SPDX-License-Identifier: Apache-2.0

"""
Organization directory endpoints: registration, admin review and read-models.
"""

from flask import current_app
from flask_openapi3 import APIBlueprint, Tag
from opentelemetry import trace
import logging

from models.entities import Actor
from models.requests import (
    OrganizationPath,
    OrganizationQuery,
    RegisterOrganizationRequest,
    UpdateOrganizationRequest,
)
from services.store import paginate
from middleware.auth import require_jwt

# Set up logging and tracing
logger = logging.getLogger(__name__)
tracer = trace.get_tracer(__name__)

# Create API blueprint
org_tag = Tag(name="Organizations", description="Relief organization directory")
org_bp = APIBlueprint(
    'organizations',
    __name__,
    url_prefix='/api/organizations',
    abp_tags=[org_tag]
)


@org_bp.get('')
@require_jwt
def list_organizations(actor: Actor, query: OrganizationQuery):
    """List organizations; financial fields only appear where the actor may see them."""
    organizations = current_app.organization_directory.list(actor, query.status)
    page = paginate(organizations, query.page, query.page_size)

    hal = current_app.hal_formatter
    return hal.format_collection(
        [hal.format_organization(organization, actor) for organization in page.items],
        page,
        "/api/organizations",
        {"status": query.status},
        {"create": hal.link_builder.build_link("/api/organizations", method="POST",
                                               content_type="application/json", title="Register an organization")}
    ), 200


@org_bp.post('')
@require_jwt
def register_organization(actor: Actor, body: RegisterOrganizationRequest):
    """Register an organization; it awaits admin approval."""
    organization = current_app.organization_directory.register(actor, body)
    return current_app.hal_formatter.format_organization(organization, actor), 201


@org_bp.get('/summary')
@require_jwt
def organization_summary(actor: Actor):
    """
    Directory aggregates.

    Funding and supply totals are included for admins only.
    """
    return current_app.organization_directory.summary(actor), 200


@org_bp.get('/partners')
@require_jwt
def list_partners(actor: Actor):
    """Active organizations other than the actor's own."""
    hal = current_app.hal_formatter
    partners = current_app.organization_directory.partners(actor)
    return {
        "total": len(partners),
        "_links": {"self": hal.link_builder.build_self_link("/api/organizations/partners").model_dump(exclude_none=True)},
        "_embedded": {"items": [hal.format_organization(organization, actor) for organization in partners]}
    }, 200


@org_bp.get('/<string:org_id>')
@require_jwt
def get_organization(actor: Actor, path: OrganizationPath):
    organization = current_app.organization_directory.get(path.org_id)
    return current_app.hal_formatter.format_organization(organization, actor), 200


@org_bp.put('/<string:org_id>')
@require_jwt
def update_organization(actor: Actor, path: OrganizationPath, body: UpdateOrganizationRequest):
    """Merge admin edits; id, creation time and status cannot be changed here."""
    organization = current_app.organization_directory.update(actor, path.org_id, body)
    return current_app.hal_formatter.format_organization(organization, actor), 200


@org_bp.delete('/<string:org_id>')
@require_jwt
def delete_organization(actor: Actor, path: OrganizationPath):
    """Delete an organization permanently; its volunteers are orphaned."""
    with tracer.start_as_current_span("routes.organizations.delete") as span:
        span.set_attribute("organization.id", path.org_id)
        current_app.coordination.delete_organization(actor, path.org_id)
        return "", 204


@org_bp.post('/<string:org_id>/approve')
@require_jwt
def approve_organization(actor: Actor, path: OrganizationPath):
    """Activate an organization and provision its operator account."""
    organization = current_app.coordination.approve_organization(actor, path.org_id)
    return current_app.hal_formatter.format_organization(organization, actor), 200


@org_bp.post('/<string:org_id>/reject')
@require_jwt
def reject_organization(actor: Actor, path: OrganizationPath):
    organization = current_app.organization_directory.reject(actor, path.org_id)
    return current_app.hal_formatter.format_organization(organization, actor), 200
