# -*- coding: utf-8 -*-
# SPDX-License-Identifier: Apache-2.0

"""
Coordination service.

Operations that span more than one registry: actor registration with its
roster entry, volunteer assignment and completion, volunteer removal with
back-reference cleanup, and organization approval and deletion. Each one runs
inside a single store transaction, so either every record it touches changes
or none does.
"""

import logging
from typing import List

from opentelemetry import trace

from domain import assignments, roster
from domain.authorization import enforce
from domain.errors import VolunteerUnavailable
from models.entities import Actor, HelpRequest, Organization, Volunteer
from models.enums import Action, ActorRole, VolunteerRole
from models.requests import RegisterActorRequest
from .audit import AuditService
from .help_requests import HelpRequestLedger
from .identity import ActorRegistry
from .organizations import OrganizationDirectory
from .store import PINS, HELP_REQUESTS, RecordStore
from .volunteers import VolunteerRoster

logger = logging.getLogger(__name__)
tracer = trace.get_tracer(__name__)

VOLUNTEER_ROLES = tuple(role.value for role in VolunteerRole)


class CoordinationService:
    """Cross-registry workflows over the shared record store."""

    def __init__(
        self,
        store: RecordStore,
        audit: AuditService,
        actors: ActorRegistry,
        requests: HelpRequestLedger,
        volunteers: VolunteerRoster,
        organizations: OrganizationDirectory,
    ):
        self.store = store
        self.audit = audit
        self.actors = actors
        self.requests = requests
        self.volunteers = volunteers
        self.organizations = organizations

    def register_actor(self, registration: RegisterActorRequest) -> Actor:
        """
        Self-service registration.

        A volunteer who names an organization also lands on that
        organization's roster as a pending volunteer sharing the actor's id.

        Raises:
            NotFound: Named organization does not exist
            Conflict: Email already registered
        """
        with tracer.start_as_current_span("coordination.register_actor") as span:
            span.set_attribute("actor.role", registration.role)

            with self.store.transaction():
                if registration.organization_id:
                    self.organizations.get(registration.organization_id)

                actor = self.actors.register(registration)

                if actor.role in VOLUNTEER_ROLES and actor.organization_id:
                    self.volunteers.register(
                        name=actor.name,
                        role=VolunteerRole(actor.role),
                        organization_id=actor.organization_id,
                        email=actor.email,
                        phone=actor.phone,
                        location=registration.location,
                        volunteer_id=actor.id,
                        performed_by=actor,
                    )
                    span.set_attribute("volunteer.registered", True)

            return actor

    def eligible_candidates(self, actor: Actor) -> List[Volunteer]:
        """Active supply volunteers of the operator's organization."""
        enforce(actor, Action.REQUEST_CANDIDATES)
        return assignments.eligible_candidates(
            self.volunteers.for_organization(actor.organization_id), actor.organization_id
        )

    def assign(self, actor: Actor, request_id: str, volunteer_id: str) -> HelpRequest:
        """
        Bind a pending help request to a volunteer chosen by the operator.

        Raises:
            NotFound: Unknown request or volunteer
            AuthorizationDenied: Actor is not an organization operator
            InvalidTransition: Request is not pending
            VolunteerUnavailable: Volunteer is not active, not a supply
                volunteer, or not in the operator's organization
        """
        with tracer.start_as_current_span("coordination.assign") as span:
            span.set_attributes({"help_request.id": request_id, "volunteer.id": volunteer_id})

            with self.store.transaction():
                request = self.requests.get(request_id)
                enforce(actor, Action.REQUEST_ASSIGN, request)

                volunteer = self.volunteers.get(volunteer_id)
                eligibility = assignments.check_eligibility(volunteer, actor.organization_id)
                if not eligibility.eligible:
                    span.set_attribute("assignment.rejected", eligibility.reason)
                    raise VolunteerUnavailable(eligibility.reason, volunteer_id=volunteer_id)

                updated = assignments.apply_assignment(request, volunteer, actor.organization_id)
                self.requests.replace(updated)
                self.audit.log_action(
                    actor, "help_request", request_id, "assign",
                    before=request.to_json(), after=updated.to_json()
                )

            logger.info(
                "Volunteer assigned",
                extra={"request_id": request_id, "volunteer_id": volunteer_id, "actor_id": actor.id}
            )
            return updated

    def complete(self, actor: Actor, request_id: str) -> HelpRequest:
        """
        Complete an assigned request and credit its volunteer exactly once.

        Both records change in one transaction; if persisting either fails,
        neither change is kept.

        Raises:
            InvalidTransition: Request is not assigned (including a second completion)
        """
        with tracer.start_as_current_span("coordination.complete") as span:
            span.set_attribute("help_request.id", request_id)

            with self.store.transaction():
                request = self.requests.get(request_id)
                enforce(actor, Action.REQUEST_COMPLETE, request)

                volunteer = self.volunteers.find(request.assigned_volunteer_id) if request.assigned_volunteer_id else None
                completed, credited = assignments.apply_completion(request, volunteer)

                self.requests.replace(completed)
                self.audit.log_action(
                    actor, "help_request", request_id, "complete",
                    before=request.to_json(), after=completed.to_json()
                )

                if credited is not None:
                    self.volunteers.replace(credited)
                    self.audit.log_action(
                        actor, "volunteer", credited.id, "credit",
                        before=volunteer.to_json(), after=credited.to_json()
                    )

            span.set_attribute("volunteer.credited", credited is not None)
            logger.info(
                "Help request completed",
                extra={
                    "request_id": request_id,
                    "volunteer_id": request.assigned_volunteer_id,
                    "assignments_completed": credited.assignments_completed if credited else None,
                    "actor_id": actor.id
                }
            )
            return completed

    def remove_volunteer(self, actor: Actor, volunteer_id: str) -> Volunteer:
        """
        Take a volunteer off the roster.

        Open assignments revert to pending and pins assigned to the volunteer
        lose the assignment; completed requests keep their assignee.
        """
        with tracer.start_as_current_span("coordination.remove_volunteer") as span:
            span.set_attribute("volunteer.id", volunteer_id)

            with self.store.transaction():
                volunteer = self.volunteers.get(volunteer_id)
                enforce(actor, Action.VOLUNTEER_REMOVE, volunteer)

                released_requests, released_pins = roster.release_references(
                    volunteer,
                    self.store.values(HELP_REQUESTS),
                    self.store.values(PINS),
                )

                for request in released_requests:
                    before = self.requests.get(request.id).to_json()
                    self.requests.replace(request)
                    self.audit.log_action(
                        actor, "help_request", request.id, "release",
                        before=before, after=request.to_json()
                    )

                for pin in released_pins:
                    self.store.put(PINS, pin)
                    self.audit.log_action(actor, "pin", pin.id, "release", after=pin.to_json())

                self.volunteers.delete(volunteer_id)
                self.audit.log_action(actor, "volunteer", volunteer_id, "remove", before=volunteer.to_json())

            span.set_attributes({
                "volunteer.released_requests": len(released_requests),
                "volunteer.released_pins": len(released_pins)
            })
            logger.info(
                "Volunteer removed",
                extra={
                    "volunteer_id": volunteer_id,
                    "released_requests": len(released_requests),
                    "released_pins": len(released_pins),
                    "actor_id": actor.id
                }
            )
            return volunteer

    def approve_organization(self, actor: Actor, org_id: str) -> Organization:
        """
        Activate an organization and make sure it has an operator account.

        The operator actor uses the organization's contact email; nothing is
        provisioned when the organization has no contact email.
        """
        with self.store.transaction():
            organization = self.organizations.approve(actor, org_id)

            email = organization.contact.email
            if email and self.actors.find_organization_actor(org_id) is None:
                if self.actors.find_by_email(email) is None:
                    self.actors.provision(
                        name=organization.name,
                        email=email,
                        role=ActorRole.ORGANIZATION,
                        phone=organization.contact.phone,
                        organization_id=org_id,
                        performed_by=actor,
                    )
                else:
                    logger.warning(
                        "Organization contact email already belongs to another actor",
                        extra={"organization_id": org_id}
                    )

        return organization

    def delete_organization(self, actor: Actor, org_id: str) -> Organization:
        """
        Delete an organization and clear every reference to it.

        Roster entries and volunteer actors are orphaned, the operator actor
        is retired (organization actors cannot exist without one), and open
        requests the organization assigned keep their volunteer but lose the
        assigning organization.
        """
        with tracer.start_as_current_span("coordination.delete_organization") as span:
            span.set_attribute("organization.id", org_id)

            with self.store.transaction():
                organization = self.organizations.delete(actor, org_id)
                orphaned = self.volunteers.orphan(org_id, performed_by=actor)

                retired = []
                for member in self.actors.for_organization(org_id):
                    if member.role == ActorRole.ORGANIZATION:
                        retired.append(self.actors.retire(member, performed_by=actor))
                    else:
                        self.actors.detach(member, performed_by=actor)

                for request in self.store.values(HELP_REQUESTS):
                    if request.assigned_organization_id == org_id:
                        updated = request.evolve(assigned_organization_id=None)
                        self.requests.replace(updated)
                        self.audit.log_action(
                            actor, "help_request", request.id, "detach",
                            before=request.to_json(), after=updated.to_json()
                        )

            span.set_attributes({
                "organization.orphaned_volunteers": len(orphaned),
                "organization.retired_actors": len(retired)
            })
            return organization
