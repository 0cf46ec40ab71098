# -*- coding: utf-8 -*-
# SPDX-License-Identifier: Apache-2.0

"""
Identity and role registry.

Holds every actor and the single role each one carries. Roles are fixed at
registration; there is no promotion flow. Self-service registration is
limited to citizens and volunteers, while organization and admin actors are
provisioned by the system.
"""

import logging
from typing import List, Optional

from opentelemetry import trace
from pydantic import ValidationError as PydanticValidationError

from domain.errors import Conflict, NotFound, ValidationError
from models.entities import Actor
from models.enums import ActorRole, SELF_SERVICE_ROLES
from models.requests import RegisterActorRequest
from .audit import AuditService
from .store import ACTORS, RecordStore

logger = logging.getLogger(__name__)
tracer = trace.get_tracer(__name__)


class ActorRegistry:
    """Registry of authenticated identities."""

    def __init__(self, store: RecordStore, audit: AuditService):
        self.store = store
        self.audit = audit

    def get(self, actor_id: str) -> Actor:
        """Get an actor by id or raise NotFound."""
        actor = self.store.get(ACTORS, actor_id)
        if actor is None:
            raise NotFound("Actor", actor_id)
        return actor

    def find(self, actor_id: str) -> Optional[Actor]:
        return self.store.get(ACTORS, actor_id)

    def find_by_email(self, email: str) -> Optional[Actor]:
        """Case-insensitive lookup by login email."""
        email = (email or "").strip().lower()
        for actor in self.store.values(ACTORS):
            if actor.email == email:
                return actor
        return None

    def find_organization_actor(self, organization_id: str) -> Optional[Actor]:
        for actor in self.store.values(ACTORS):
            if actor.role == ActorRole.ORGANIZATION and actor.organization_id == organization_id:
                return actor
        return None

    def list(self, role: Optional[ActorRole] = None) -> List[Actor]:
        actors = self.store.values(ACTORS)
        if role:
            actors = [actor for actor in actors if actor.role == role]
        return sorted(actors, key=lambda a: a.created_at)

    def register(self, request: RegisterActorRequest) -> Actor:
        """
        Self-service registration for citizens and volunteers.

        Raises:
            ValidationError: Role not open to self-service
            Conflict: Email already registered
        """
        if ActorRole(request.role) not in SELF_SERVICE_ROLES:
            raise ValidationError(f"Role {request.role} cannot be self-registered")

        return self.provision(
            name=request.name,
            email=request.email,
            role=ActorRole(request.role),
            phone=request.phone,
            organization_id=request.organization_id,
        )

    def provision(
        self,
        name: str,
        email: str,
        role: ActorRole,
        phone: Optional[str] = None,
        organization_id: Optional[str] = None,
        performed_by: Optional[Actor] = None,
    ) -> Actor:
        """
        Create an actor with any role.

        Args:
            name: Display name
            email: Login email (unique, case-insensitive)
            role: Role held for the actor's lifetime
            phone: Phone number
            organization_id: Organization the actor belongs to
            performed_by: Actor doing the provisioning, for the audit trail

        Returns:
            The stored actor
        """
        with tracer.start_as_current_span("identity.provision") as span:
            span.set_attribute("actor.role", ActorRole(role).value)

            try:
                actor = Actor(
                    name=name,
                    email=email,
                    role=role,
                    phone=phone,
                    organization_id=organization_id,
                )
            except PydanticValidationError as e:
                raise ValidationError.from_pydantic("Invalid actor", e)

            with self.store.transaction():
                if self.find_by_email(actor.email) is not None:
                    raise Conflict(f"An actor with email {actor.email} is already registered")

                self.store.put(ACTORS, actor)
                self.audit.log_action(
                    performed_by or actor, "actor", actor.id, "register",
                    after=actor.to_json()
                )

            span.set_attribute("actor.id", actor.id)
            logger.info(
                "Actor registered",
                extra={"actor_id": actor.id, "role": actor.role, "organization_id": actor.organization_id}
            )
            return actor

    def ensure(self, name: str, email: str, role: ActorRole, organization_id: Optional[str] = None) -> Actor:
        """Return the actor registered under an email, provisioning it if needed."""
        with self.store.transaction():
            existing = self.find_by_email(email)
            if existing is not None:
                return existing
            return self.provision(name=name, email=email, role=role, organization_id=organization_id)

    def for_organization(self, organization_id: str) -> List[Actor]:
        return [actor for actor in self.list() if actor.organization_id == organization_id]

    def detach(self, actor: Actor, performed_by: Optional[Actor] = None) -> Actor:
        """Clear a volunteer actor's organization."""
        updated = actor.evolve(organization_id=None)
        with self.store.transaction():
            self.store.put(ACTORS, updated)
            self.audit.log_action(
                performed_by or actor, "actor", actor.id, "detach",
                before=actor.to_json(), after=updated.to_json()
            )
        return updated

    def retire(self, actor: Actor, performed_by: Optional[Actor] = None) -> Actor:
        """
        Remove an actor.

        Tokens already issued to the actor stop authenticating, since the
        auth middleware rejects sessions whose actor no longer exists.
        """
        with self.store.transaction():
            self.store.delete(ACTORS, actor.id)
            self.audit.log_action(performed_by or actor, "actor", actor.id, "retire", before=actor.to_json())

        logger.info("Actor retired", extra={"actor_id": actor.id, "role": actor.role})
        return actor
