# -*- coding: utf-8 -*-
# SPDX-License-Identifier: Apache-2.0

"""
Volunteer roster.

Organizations review their own applicants: approve makes a volunteer
eligible for assignment, reject parks it as inactive. Both are idempotent.
"""

import logging
from typing import Any, Dict, List, Optional

from opentelemetry import trace
from pydantic import ValidationError as PydanticValidationError

from domain import roster
from domain.authorization import enforce
from domain.errors import NotFound, ValidationError
from models.entities import Actor, Volunteer
from models.enums import Action, ActorRole, VolunteerRole, VolunteerStatus
from .audit import AuditService
from .store import VOLUNTEERS, RecordStore

logger = logging.getLogger(__name__)
tracer = trace.get_tracer(__name__)

STATUS_ACTIONS = {
    Action.VOLUNTEER_APPROVE: VolunteerStatus.ACTIVE,
    Action.VOLUNTEER_REJECT: VolunteerStatus.INACTIVE,
}


class VolunteerRoster:
    """Roster of tracking and supply volunteers."""

    def __init__(self, store: RecordStore, audit: AuditService):
        self.store = store
        self.audit = audit

    def get(self, volunteer_id: str) -> Volunteer:
        """Get a volunteer by id or raise NotFound."""
        volunteer = self.store.get(VOLUNTEERS, volunteer_id)
        if volunteer is None:
            raise NotFound("Volunteer", volunteer_id)
        return volunteer

    def find(self, volunteer_id: str) -> Optional[Volunteer]:
        return self.store.get(VOLUNTEERS, volunteer_id)

    def register(
        self,
        name: str,
        role: VolunteerRole,
        organization_id: Optional[str],
        email: Optional[str] = None,
        phone: Optional[str] = None,
        location: Optional[str] = None,
        volunteer_id: Optional[str] = None,
        performed_by: Optional[Actor] = None,
    ) -> Volunteer:
        """
        Add a pending roster entry with no completed assignments.

        Raises:
            ValidationError: Empty name or unknown volunteer role
        """
        with tracer.start_as_current_span("volunteers.register") as span:
            try:
                volunteer = roster.build_volunteer(
                    name=name,
                    role=role,
                    organization_id=organization_id,
                    email=email,
                    phone=phone,
                    location=location,
                    volunteer_id=volunteer_id,
                )
            except PydanticValidationError as e:
                raise ValidationError.from_pydantic("Invalid volunteer", e)

            with self.store.transaction():
                self.store.put(VOLUNTEERS, volunteer)
                self.audit.log_action(performed_by, "volunteer", volunteer.id, "register", after=volunteer.to_json())

            span.set_attributes({"volunteer.id": volunteer.id, "volunteer.role": volunteer.role})
            logger.info(
                "Volunteer registered",
                extra={"volunteer_id": volunteer.id, "role": volunteer.role, "organization_id": organization_id}
            )
            return volunteer

    def approve(self, actor: Actor, volunteer_id: str) -> Volunteer:
        """Activate a volunteer of the actor's organization."""
        return self._set_status(actor, volunteer_id, Action.VOLUNTEER_APPROVE)

    def reject(self, actor: Actor, volunteer_id: str) -> Volunteer:
        """Deactivate a volunteer of the actor's organization."""
        return self._set_status(actor, volunteer_id, Action.VOLUNTEER_REJECT)

    def _set_status(self, actor: Actor, volunteer_id: str, action: Action) -> Volunteer:
        status = STATUS_ACTIONS[action]

        with tracer.start_as_current_span("volunteers.set_status") as span:
            span.set_attributes({"volunteer.id": volunteer_id, "volunteer.action": action.value})

            with self.store.transaction():
                volunteer = self.get(volunteer_id)
                enforce(actor, action, volunteer)

                updated, changed = roster.apply_status(volunteer, status)
                span.set_attribute("volunteer.changed", changed)
                if not changed:
                    return volunteer

                self.store.put(VOLUNTEERS, updated)
                self.audit.log_action(
                    actor, "volunteer", volunteer.id, action.value.split(":")[1],
                    before=volunteer.to_json(), after=updated.to_json()
                )

            logger.info(
                "Volunteer status changed",
                extra={"volunteer_id": volunteer_id, "status": updated.status, "actor_id": actor.id}
            )
            return updated

    def list(self, actor: Actor, status: Optional[VolunteerStatus] = None) -> List[Volunteer]:
        """
        Roster visible to the actor.

        Organizations see their own volunteers; admins see everyone.
        """
        enforce(actor, Action.VOLUNTEER_LIST)
        organization_id = None if actor.role == ActorRole.ADMIN else actor.organization_id
        return roster.filter_roster(self.store.values(VOLUNTEERS), organization_id, status)

    def view(self, actor: Actor, volunteer_id: str) -> Volunteer:
        """
        Get one roster entry, scoped like list.

        Raises:
            NotFound: Unknown id, or a volunteer of another organization
        """
        enforce(actor, Action.VOLUNTEER_LIST)
        volunteer = self.get(volunteer_id)
        if actor.role != ActorRole.ADMIN and volunteer.organization_id != actor.organization_id:
            raise NotFound("Volunteer", volunteer_id)
        return volunteer

    def summary(self, actor: Actor) -> Dict[str, Any]:
        return roster.summarize_roster(self.list(actor))

    def for_organization(self, organization_id: str) -> List[Volunteer]:
        return roster.filter_roster(self.store.values(VOLUNTEERS), organization_id)

    def orphan(self, organization_id: str, performed_by: Optional[Actor] = None) -> List[Volunteer]:
        """
        Detach every volunteer from a deleted organization.

        Returns:
            The orphaned volunteers
        """
        orphaned = []
        with self.store.transaction():
            for volunteer in self.for_organization(organization_id):
                updated = roster.orphan(volunteer)
                self.store.put(VOLUNTEERS, updated)
                self.audit.log_action(
                    performed_by, "volunteer", volunteer.id, "orphan",
                    before=volunteer.to_json(), after=updated.to_json()
                )
                orphaned.append(updated)

        if orphaned:
            logger.info(
                "Volunteers orphaned",
                extra={"organization_id": organization_id, "count": len(orphaned)}
            )
        return orphaned

    def replace(self, volunteer: Volunteer) -> Volunteer:
        """Store an updated volunteer; callers hold the store transaction."""
        return self.store.put(VOLUNTEERS, volunteer)

    def delete(self, volunteer_id: str) -> Optional[Volunteer]:
        return self.store.delete(VOLUNTEERS, volunteer_id)
