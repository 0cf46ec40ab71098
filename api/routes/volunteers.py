# -*- coding: utf-8 -*-
# SPDX-License-Identifier: Apache-2.0

"""
Volunteer roster endpoints for organization operators.
"""

from flask import current_app
from flask_openapi3 import APIBlueprint, Tag
import logging

from models.entities import Actor
from models.requests import VolunteerPath, VolunteerQuery
from services.store import paginate
from middleware.auth import require_jwt

logger = logging.getLogger(__name__)

volunteers_tag = Tag(name="Volunteers", description="Volunteer roster review")
volunteers_bp = APIBlueprint(
    'volunteers',
    __name__,
    url_prefix='/api/volunteers',
    abp_tags=[volunteers_tag]
)


@volunteers_bp.get('')
@require_jwt
def list_volunteers(actor: Actor, query: VolunteerQuery):
    """List the operator's roster (every volunteer for admins)."""
    volunteers = current_app.volunteer_roster.list(actor, query.status)
    page = paginate(volunteers, query.page, query.page_size)

    hal = current_app.hal_formatter
    return hal.format_collection(
        [hal.format_volunteer(volunteer, actor) for volunteer in page.items],
        page,
        "/api/volunteers",
        {"status": query.status}
    ), 200


@volunteers_bp.get('/summary')
@require_jwt
def volunteer_summary(actor: Actor):
    """Roster counts by status and role."""
    return current_app.volunteer_roster.summary(actor), 200


@volunteers_bp.get('/<string:volunteer_id>')
@require_jwt
def get_volunteer(actor: Actor, path: VolunteerPath):
    volunteer = current_app.volunteer_roster.view(actor, path.volunteer_id)
    return current_app.hal_formatter.format_volunteer(volunteer, actor), 200


@volunteers_bp.post('/<string:volunteer_id>/approve')
@require_jwt
def approve_volunteer(actor: Actor, path: VolunteerPath):
    """Activate a volunteer; approving an active volunteer changes nothing."""
    volunteer = current_app.volunteer_roster.approve(actor, path.volunteer_id)
    return current_app.hal_formatter.format_volunteer(volunteer, actor), 200


@volunteers_bp.post('/<string:volunteer_id>/reject')
@require_jwt
def reject_volunteer(actor: Actor, path: VolunteerPath):
    """Deactivate a volunteer; rejecting an inactive volunteer changes nothing."""
    volunteer = current_app.volunteer_roster.reject(actor, path.volunteer_id)
    return current_app.hal_formatter.format_volunteer(volunteer, actor), 200
