# -*- coding: utf-8 -*-
# SPDX-License-Identifier: Apache-2.0

"""
Incident pin endpoints: reporting, listing and the review lifecycle.
"""

from flask import current_app
from flask_openapi3 import APIBlueprint, Tag
from opentelemetry import trace
import logging

from domain import pins as pin_domain
from domain.errors import NotFound
from models.entities import Actor
from models.enums import Action
from models.requests import CreatePinRequest, PinPath, PinQuery
from services.store import paginate
from middleware.auth import require_jwt

# Set up logging and tracing
logger = logging.getLogger(__name__)
tracer = trace.get_tracer(__name__)

# Create API blueprint
pins_tag = Tag(name="Pins", description="Field-reported damaged locations and safe zones")
pins_bp = APIBlueprint(
    'pins',
    __name__,
    url_prefix='/api/pins',
    abp_tags=[pins_tag]
)


@pins_bp.get('')
@require_jwt
def list_pins(actor: Actor, query: PinQuery):
    """
    List pins visible to the current actor, newest first.

    Supply volunteers only see confirmed damaged pins.
    """
    filters = pin_domain.PinFilters(kind=query.kind, status=query.status)
    pins = current_app.pin_registry.list(actor, filters)
    page = paginate(pins, query.page, query.page_size)

    hal = current_app.hal_formatter
    return hal.format_collection(
        [hal.format_pin(pin, actor) for pin in page.items],
        page,
        "/api/pins",
        {"kind": query.kind, "status": query.status},
        {"create": hal.link_builder.build_link("/api/pins", method="POST",
                                               content_type="application/json", title="Report a pin")}
    ), 200


@pins_bp.post('')
@require_jwt
def create_pin(actor: Actor, body: CreatePinRequest):
    """Report a damaged location or safe zone."""
    pin = current_app.pin_registry.create(actor, body)
    return current_app.hal_formatter.format_pin(pin, actor), 201


@pins_bp.get('/summary')
@require_jwt
def pin_summary(actor: Actor):
    """Pin counts by status and kind over the pins visible to the actor."""
    return current_app.pin_registry.summary(actor), 200


@pins_bp.get('/<string:pin_id>')
@require_jwt
def get_pin(actor: Actor, path: PinPath):
    """Get a single pin with the lifecycle actions the actor may take."""
    pin = current_app.pin_registry.get(path.pin_id)
    if not pin_domain.is_visible_to(actor, pin):
        raise NotFound("Pin", path.pin_id)
    return current_app.hal_formatter.format_pin(pin, actor), 200


def _transition(actor: Actor, pin_id: str, action: Action):
    with tracer.start_as_current_span("routes.pins.transition") as span:
        span.set_attributes({"pin.id": pin_id, "pin.action": action.value, "actor.id": actor.id})
        pin = current_app.pin_registry.transition(actor, pin_id, action)

        hal = current_app.hal_formatter
        if action == Action.PIN_DENY:
            response = pin.to_json()
            response["_links"] = {
                "collection": hal.link_builder.build_collection_link("/api/pins").model_dump(exclude_none=True)
            }
            return response, 200
        return hal.format_pin(pin, actor), 200


@pins_bp.post('/<string:pin_id>/confirm')
@require_jwt
def confirm_pin(actor: Actor, path: PinPath):
    """Confirm a pending pin after field verification."""
    return _transition(actor, path.pin_id, Action.PIN_CONFIRM)


@pins_bp.post('/<string:pin_id>/deny')
@require_jwt
def deny_pin(actor: Actor, path: PinPath):
    """Deny a pending pin; the pin is removed and returned."""
    return _transition(actor, path.pin_id, Action.PIN_DENY)


@pins_bp.post('/<string:pin_id>/complete')
@require_jwt
def complete_pin(actor: Actor, path: PinPath):
    """Mark a confirmed damaged pin as supplied."""
    return _transition(actor, path.pin_id, Action.PIN_COMPLETE)
