# -*- coding: utf-8 -*-
# SPDX-License-Identifier: Apache-2.0

"""
Help request ledger.

Owns the help request collection. Assignment and completion touch the
volunteer roster as well, so they live in the coordination service; the
ledger handles intake and reads.
"""

import logging
from typing import Any, Dict, List, Optional

from opentelemetry import trace
from pydantic import ValidationError as PydanticValidationError

from domain import assignments
from domain.authorization import enforce
from domain.errors import NotFound, ValidationError
from models.entities import Actor, HelpRequest
from models.enums import Action
from models.requests import SubmitHelpRequest
from .audit import AuditService
from .store import HELP_REQUESTS, RecordStore

logger = logging.getLogger(__name__)
tracer = trace.get_tracer(__name__)


class HelpRequestLedger:
    """Ledger of resource requests awaiting delivery."""

    def __init__(self, store: RecordStore, audit: AuditService):
        self.store = store
        self.audit = audit

    def get(self, request_id: str) -> HelpRequest:
        """Get a help request by id or raise NotFound."""
        request = self.store.get(HELP_REQUESTS, request_id)
        if request is None:
            raise NotFound("Help request", request_id)
        return request

    def submit(self, actor: Actor, submission: SubmitHelpRequest) -> HelpRequest:
        """
        Record a new help request.

        Args:
            actor: Submitting actor
            submission: Validated submission

        Returns:
            Pending help request with no assignee

        Raises:
            ValidationError: Empty title, description or location
        """
        enforce(actor, Action.REQUEST_SUBMIT)

        with tracer.start_as_current_span("help_requests.submit") as span:
            try:
                request = assignments.build_help_request(actor, submission)
            except PydanticValidationError as e:
                raise ValidationError.from_pydantic("Invalid help request", e)

            with self.store.transaction():
                self.store.put(HELP_REQUESTS, request)
                self.audit.log_action(actor, "help_request", request.id, "submit", after=request.to_json())

            span.set_attributes({"help_request.id": request.id, "help_request.urgency": request.urgency})
            logger.info(
                "Help request submitted",
                extra={"request_id": request.id, "urgency": request.urgency, "actor_id": actor.id}
            )
            return request

    def list(self, actor: Actor, filters: Optional[assignments.HelpRequestFilters] = None) -> List[HelpRequest]:
        """Open requests first, then by urgency, then newest."""
        enforce(actor, Action.REQUEST_LIST)
        return assignments.filter_requests(self.store.values(HELP_REQUESTS), filters)

    def summary(self, actor: Actor) -> Dict[str, Any]:
        return assignments.summarize_requests(self.list(actor))

    def replace(self, request: HelpRequest) -> HelpRequest:
        """Store an updated request; callers hold the store transaction."""
        return self.store.put(HELP_REQUESTS, request)
