# -*- coding: utf-8 -*-
# SPDX-License-Identifier: Apache-2.0

"""
Organization directory.

Any authenticated actor may register an organization; it starts pending and
only an admin can move it between statuses, edit it or delete it.
"""

import logging
from typing import Any, Dict, List, Optional

from opentelemetry import trace
from pydantic import ValidationError as PydanticValidationError

from domain import organizations as directory
from domain.authorization import can_perform, enforce
from domain.errors import Conflict, NotFound, ValidationError
from models.entities import Actor, Organization
from models.enums import Action, ActorRole, OrganizationStatus
from models.requests import RegisterOrganizationRequest, UpdateOrganizationRequest
from .audit import AuditService
from .store import ORGANIZATIONS, VOLUNTEERS, RecordStore

logger = logging.getLogger(__name__)
tracer = trace.get_tracer(__name__)

STATUS_ACTIONS = {
    Action.ORGANIZATION_APPROVE: OrganizationStatus.ACTIVE,
    Action.ORGANIZATION_REJECT: OrganizationStatus.INACTIVE,
}


class OrganizationDirectory:
    """Directory of relief organizations."""

    def __init__(self, store: RecordStore, audit: AuditService):
        self.store = store
        self.audit = audit

    def get(self, org_id: str) -> Organization:
        """Get an organization by id or raise NotFound."""
        organization = self.store.get(ORGANIZATIONS, org_id)
        if organization is None:
            raise NotFound("Organization", org_id)
        return organization

    def find(self, org_id: Optional[str]) -> Optional[Organization]:
        if not org_id:
            return None
        return self.store.get(ORGANIZATIONS, org_id)

    def find_by_username(self, username: str) -> Optional[Organization]:
        for organization in self.store.values(ORGANIZATIONS):
            if organization.credentials.username == username:
                return organization
        return None

    def register(self, actor: Actor, registration: RegisterOrganizationRequest) -> Organization:
        """
        Register a pending organization.

        Raises:
            ValidationError: Missing name, username, secret or region, or bad funding
            Conflict: Username already taken
        """
        enforce(actor, Action.ORGANIZATION_REGISTER)

        with tracer.start_as_current_span("organizations.register") as span:
            try:
                organization = directory.build_organization(registration)
            except PydanticValidationError as e:
                raise ValidationError.from_pydantic("Invalid organization", e)

            with self.store.transaction():
                if self.find_by_username(organization.credentials.username) is not None:
                    raise Conflict(f"Username {organization.credentials.username} is already registered")

                self.store.put(ORGANIZATIONS, organization)
                self.audit.log_action(actor, "organization", organization.id, "register", after=organization.to_json())

            span.set_attributes({"organization.id": organization.id, "organization.region": organization.region})
            logger.info(
                "Organization registered",
                extra={"organization_id": organization.id, "region": organization.region, "actor_id": actor.id}
            )
            return organization

    def approve(self, actor: Actor, org_id: str) -> Organization:
        return self._set_status(actor, org_id, Action.ORGANIZATION_APPROVE)

    def reject(self, actor: Actor, org_id: str) -> Organization:
        return self._set_status(actor, org_id, Action.ORGANIZATION_REJECT)

    def _set_status(self, actor: Actor, org_id: str, action: Action) -> Organization:
        status = STATUS_ACTIONS[action]

        with tracer.start_as_current_span("organizations.set_status") as span:
            span.set_attributes({"organization.id": org_id, "organization.action": action.value})

            with self.store.transaction():
                organization = self.get(org_id)
                enforce(actor, action, organization)

                updated = directory.set_status(organization, status)
                self.store.put(ORGANIZATIONS, updated)
                self.audit.log_action(
                    actor, "organization", org_id, action.value.split(":")[1],
                    before=organization.to_json(), after=updated.to_json()
                )

            logger.info(
                "Organization status changed",
                extra={
                    "organization_id": org_id,
                    "from_status": organization.status,
                    "to_status": updated.status,
                    "actor_id": actor.id
                }
            )
            return updated

    def update(self, actor: Actor, org_id: str, changes: UpdateOrganizationRequest) -> Organization:
        """
        Merge admin edits into an organization.

        Raises:
            ValidationError: Merged record is invalid
        """
        with tracer.start_as_current_span("organizations.update") as span:
            span.set_attribute("organization.id", org_id)

            with self.store.transaction():
                organization = self.get(org_id)
                enforce(actor, Action.ORGANIZATION_UPDATE, organization)

                try:
                    updated = directory.merge_update(organization, changes)
                except PydanticValidationError as e:
                    raise ValidationError.from_pydantic("Invalid organization update", e)

                if updated is organization:
                    return organization

                self.store.put(ORGANIZATIONS, updated)
                self.audit.log_action(
                    actor, "organization", org_id, "update",
                    before=organization.to_json(), after=updated.to_json()
                )

            logger.info(
                "Organization updated",
                extra={"organization_id": org_id, "fields": sorted(changes.model_fields_set), "actor_id": actor.id}
            )
            return updated

    def delete(self, actor: Actor, org_id: str) -> Organization:
        """
        Remove an organization permanently.

        Volunteer cleanup is the caller's responsibility; see
        CoordinationService.delete_organization.
        """
        with self.store.transaction():
            organization = self.get(org_id)
            enforce(actor, Action.ORGANIZATION_DELETE, organization)

            self.store.delete(ORGANIZATIONS, org_id)
            self.audit.log_action(actor, "organization", org_id, "delete", before=organization.to_json())

        logger.info("Organization deleted", extra={"organization_id": org_id, "actor_id": actor.id})
        return organization

    def list(self, actor: Actor, status: Optional[OrganizationStatus] = None) -> List[Organization]:
        """Organizations ordered by registration time."""
        enforce(actor, Action.ORGANIZATION_LIST)
        organizations = self.store.values(ORGANIZATIONS)
        if status:
            organizations = [organization for organization in organizations if organization.status == status]
        return sorted(organizations, key=lambda o: o.created_at)

    def summary(self, actor: Actor) -> Dict[str, Any]:
        """
        Directory aggregates, recomputed on every call.

        Funding and supply totals are only included for admins.
        """
        enforce(actor, Action.ORGANIZATION_SUMMARY)
        return directory.summarize_directory(
            self.store.values(ORGANIZATIONS),
            include_financials=actor.role == ActorRole.ADMIN,
            roster=self.store.values(VOLUNTEERS),
        )

    def partners(self, actor: Actor) -> List[Organization]:
        """Active organizations other than the actor's own."""
        enforce(actor, Action.ORGANIZATION_LIST)
        return directory.partners(self.store.values(ORGANIZATIONS), actor)

    def render(self, organization: Organization, actor: Optional[Actor]) -> Dict[str, Any]:
        """Serialize an organization without its secret, and without financials unless permitted."""
        return directory.render_organization(organization, actor)

    def can_view_financials(self, actor: Optional[Actor], organization: Organization) -> bool:
        return can_perform(actor, Action.ORGANIZATION_VIEW_FINANCIALS, organization)
