# -*- coding: utf-8 -*-
# SPDX-License-Identifier: Apache-2.0

"""
Help request endpoints: intake, the coordination queue, and volunteer
assignment and completion.
"""

from flask import current_app
from flask_openapi3 import APIBlueprint, Tag
from opentelemetry import trace
import logging

from domain.assignments import HelpRequestFilters
from models.entities import Actor
from models.requests import AssignVolunteerRequest, HelpRequestPath, HelpRequestQuery, SubmitHelpRequest
from services.store import paginate
from middleware.auth import require_jwt

# Set up logging and tracing
logger = logging.getLogger(__name__)
tracer = trace.get_tracer(__name__)

# Create API blueprint
requests_tag = Tag(name="Help Requests", description="Resource requests and volunteer assignment")
requests_bp = APIBlueprint(
    'help_requests',
    __name__,
    url_prefix='/api/requests',
    abp_tags=[requests_tag]
)


@requests_bp.get('')
@require_jwt
def list_requests(actor: Actor, query: HelpRequestQuery):
    """List help requests: open first, then by urgency, then newest."""
    filters = HelpRequestFilters(status=query.status, urgency=query.urgency)
    requests = current_app.help_request_ledger.list(actor, filters)
    page = paginate(requests, query.page, query.page_size)

    hal = current_app.hal_formatter
    return hal.format_collection(
        [hal.format_help_request(request, actor) for request in page.items],
        page,
        "/api/requests",
        {"status": query.status, "urgency": query.urgency},
        {"create": hal.link_builder.build_link("/api/requests", method="POST",
                                               content_type="application/json", title="Submit a help request")}
    ), 200


@requests_bp.post('')
@require_jwt
def submit_request(actor: Actor, body: SubmitHelpRequest):
    """Submit a help request; it starts pending with no assignee."""
    request = current_app.help_request_ledger.submit(actor, body)
    return current_app.hal_formatter.format_help_request(request, actor), 201


@requests_bp.get('/summary')
@require_jwt
def request_summary(actor: Actor):
    """Request counts by status and urgency."""
    return current_app.help_request_ledger.summary(actor), 200


@requests_bp.get('/candidates')
@require_jwt
def list_candidates(actor: Actor):
    """Active supply volunteers of the operator's organization."""
    hal = current_app.hal_formatter
    candidates = current_app.coordination.eligible_candidates(actor)
    return {
        "total": len(candidates),
        "_links": {"self": hal.link_builder.build_self_link("/api/requests/candidates").model_dump(exclude_none=True)},
        "_embedded": {"items": [hal.format_volunteer(volunteer, actor) for volunteer in candidates]}
    }, 200


@requests_bp.get('/<string:request_id>')
@require_jwt
def get_request(actor: Actor, path: HelpRequestPath):
    """Get a single help request with the actions the actor may take."""
    request = current_app.help_request_ledger.get(path.request_id)
    return current_app.hal_formatter.format_help_request(request, actor), 200


@requests_bp.post('/<string:request_id>/assign')
@require_jwt
def assign_request(actor: Actor, path: HelpRequestPath, body: AssignVolunteerRequest):
    """
    Assign a pending request to a volunteer chosen by the operator.

    The volunteer must be an active supply volunteer of the operator's
    organization; otherwise the request is left untouched and 409 is returned.
    """
    with tracer.start_as_current_span("routes.requests.assign") as span:
        span.set_attributes({"help_request.id": path.request_id, "volunteer.id": body.volunteer_id})
        request = current_app.coordination.assign(actor, path.request_id, body.volunteer_id)
        return current_app.hal_formatter.format_help_request(request, actor), 200


@requests_bp.post('/<string:request_id>/complete')
@require_jwt
def complete_request(actor: Actor, path: HelpRequestPath):
    """Complete an assigned request and credit the assigned volunteer."""
    with tracer.start_as_current_span("routes.requests.complete") as span:
        span.set_attribute("help_request.id", path.request_id)
        request = current_app.coordination.complete(actor, path.request_id)
        return current_app.hal_formatter.format_help_request(request, actor), 200
