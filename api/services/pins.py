# -*- coding: utf-8 -*-
# SPDX-License-Identifier: Apache-2.0

"""
Incident pin registry.

Owns the pin collection and applies the lifecycle state machine after
consulting the authorization gate.
"""

import logging
from typing import Any, Dict, List, Optional

from opentelemetry import trace
from pydantic import ValidationError as PydanticValidationError

from domain import pins as pin_domain
from domain.authorization import enforce
from domain.errors import NotFound, ValidationError
from models.entities import Actor, Pin
from models.enums import Action
from models.requests import CreatePinRequest
from .audit import AuditService
from .store import PINS, RecordStore

logger = logging.getLogger(__name__)
tracer = trace.get_tracer(__name__)


class PinRegistry:
    """Registry of field-reported incident pins."""

    def __init__(self, store: RecordStore, audit: AuditService):
        self.store = store
        self.audit = audit

    def get(self, pin_id: str) -> Pin:
        """Get a pin by id or raise NotFound."""
        pin = self.store.get(PINS, pin_id)
        if pin is None:
            raise NotFound("Pin", pin_id)
        return pin

    def create(self, actor: Actor, request: CreatePinRequest) -> Pin:
        """
        Report a new pin.

        Tracking volunteers' reports start confirmed; everyone else's start
        pending review.
        """
        enforce(actor, Action.PIN_CREATE)

        with tracer.start_as_current_span("pins.create") as span:
            try:
                pin = pin_domain.build_pin(actor, request)
            except PydanticValidationError as e:
                raise ValidationError.from_pydantic("Invalid pin", e)

            with self.store.transaction():
                self.store.put(PINS, pin)
                self.audit.log_action(actor, "pin", pin.id, "create", after=pin.to_json())

            span.set_attributes({"pin.id": pin.id, "pin.kind": pin.kind, "pin.status": pin.status})
            logger.info(
                "Pin reported",
                extra={"pin_id": pin.id, "kind": pin.kind, "status": pin.status, "actor_id": actor.id}
            )
            return pin

    def transition(self, actor: Actor, pin_id: str, action: Action) -> Pin:
        """
        Apply confirm, deny or complete to a pin.

        Returns:
            The updated pin, or the removed pin for deny

        Raises:
            NotFound: Unknown pin id
            AuthorizationDenied: Actor's role cannot perform the action
            InvalidTransition: Pin's state does not allow the action
        """
        action = Action(action)
        if action not in pin_domain.PIN_ACTIONS:
            raise ValidationError(f"Unsupported pin action: {action.value}")

        with tracer.start_as_current_span("pins.transition") as span:
            span.set_attributes({"pin.id": pin_id, "pin.action": action.value})

            with self.store.transaction():
                pin = self.get(pin_id)
                enforce(actor, action, pin)

                before = pin.to_json()
                updated = pin_domain.apply_transition(pin, action, actor)

                if updated is None:
                    self.store.delete(PINS, pin.id)
                    result = pin
                    after = None
                else:
                    self.store.put(PINS, updated)
                    result = updated
                    after = updated.to_json()

                self.audit.log_action(actor, "pin", pin.id, action.value.split(":")[1], before=before, after=after)

            logger.info(
                "Pin transitioned",
                extra={
                    "pin_id": pin_id,
                    "action": action.value,
                    "from_status": before["status"],
                    "to_status": after["status"] if after else "deleted",
                    "actor_id": actor.id
                }
            )
            return result

    def list(self, actor: Actor, filters: Optional[pin_domain.PinFilters] = None) -> List[Pin]:
        """Pins visible to the actor, newest first."""
        enforce(actor, Action.PIN_LIST)
        return pin_domain.project_for_actor(actor, self.store.values(PINS), filters)

    def summary(self, actor: Actor) -> Dict[str, Any]:
        """Counts by status and kind over the pins visible to the actor."""
        return pin_domain.summarize_pins(self.list(actor))

