# -*- coding: utf-8 -*-
# SPDX-License-Identifier: Apache-2.0

"""
Audit service for mutation logging with OpenTelemetry correlation.
"""

import logging
from datetime import datetime
from typing import Dict, List, Optional, Any
from opentelemetry import trace

from models.entities import Actor, AuditEntry
from .store import AUDIT_LOGS, PaginationResult, RecordStore, paginate

logger = logging.getLogger(__name__)
tracer = trace.get_tracer(__name__)

REDACTED_KEYS = {"secret"}


class AuditFilters:
    """Filters for audit log queries."""

    def __init__(
        self,
        actor_id: Optional[str] = None,
        entity: Optional[str] = None,
        action: Optional[str] = None,
        start_date: Optional[datetime] = None,
        end_date: Optional[datetime] = None,
        trace_id: Optional[str] = None,
        entity_id: Optional[str] = None
    ):
        self.actor_id = actor_id
        self.entity = entity
        self.action = action
        self.start_date = start_date
        self.end_date = end_date
        self.trace_id = trace_id
        self.entity_id = entity_id

    def matches(self, entry: AuditEntry) -> bool:
        """Check whether an entry satisfies every set filter."""
        if self.actor_id and entry.actor_id != self.actor_id:
            return False
        if self.entity and entry.entity != self.entity:
            return False
        if self.action and entry.action != self.action:
            return False
        if self.trace_id and entry.trace_id != self.trace_id:
            return False
        if self.entity_id and entry.entity_id != self.entity_id:
            return False
        if self.start_date and entry.timestamp < self.start_date:
            return False
        if self.end_date and entry.timestamp > self.end_date:
            return False
        return True


def redact(state: Optional[Dict[str, Any]]) -> Optional[Dict[str, Any]]:
    """Copy a record snapshot with credential secrets removed."""
    if state is None:
        return None

    cleaned = {}
    for key, value in state.items():
        if key in REDACTED_KEYS:
            continue
        cleaned[key] = redact(value) if isinstance(value, dict) else value
    return cleaned


class AuditService:
    """Audit trail kept in the record store alongside the records it describes."""

    def __init__(self, store: RecordStore):
        """Initialize audit service with the record store dependency."""
        self.store = store
        logger.info("Audit service initialized")

    def log_action(
        self,
        actor: Optional[Actor],
        entity: str,
        entity_id: str,
        action: str,
        before: Optional[Dict[str, Any]] = None,
        after: Optional[Dict[str, Any]] = None
    ) -> AuditEntry:
        """
        Log an audit trail entry with trace correlation and structured logging.

        Called inside the registry transaction, so the entry commits or rolls
        back together with the change it describes.

        Args:
            actor: Actor performing the action (None for system bootstrap)
            entity: Type of entity being acted upon
            entity_id: ID of the specific entity
            action: Action being performed
            before: State before the action (optional)
            after: State after the action (optional)

        Returns:
            AuditEntry: The stored entry
        """
        with tracer.start_as_current_span("audit.log_action") as span:
            span_context = span.get_span_context()

            entry = AuditEntry(
                actor_id=actor.id if actor else "system",
                actor_role=actor.role if actor else None,
                entity=entity,
                entity_id=entity_id,
                action=action,
                before=redact(before),
                after=redact(after),
                trace_id=format(span_context.trace_id, "032x") if span_context.is_valid else None,
                span_id=format(span_context.span_id, "016x") if span_context.is_valid else None,
            )

            span.set_attributes({
                "audit.entity": entity,
                "audit.action": action,
                "audit.actor_id": entry.actor_id,
                "audit.entity_id": entity_id
            })

            self.store.put(AUDIT_LOGS, entry)

            changes_count = 0
            if before and after:
                changes_count = len(self._calculate_changes(before, after))

            logger.info(
                "Audit trail entry created",
                extra={
                    "audit_id": entry.id,
                    "entity": entity,
                    "entity_id": entity_id,
                    "action": action,
                    "actor_id": entry.actor_id,
                    "trace_id": entry.trace_id,
                    "changes_count": changes_count,
                    "audit_category": "business_action"
                }
            )

            return entry

    def query_audit_logs(
        self,
        filters: AuditFilters,
        page: int = 1,
        page_size: int = 50
    ) -> PaginationResult:
        """
        Query audit logs with filtering and pagination, newest first.

        Args:
            filters: Audit log filters
            page: Page number (1-based)
            page_size: Number of items per page

        Returns:
            PaginationResult: Paginated audit log results
        """
        with tracer.start_as_current_span("audit.query_logs") as span:
            entries = [entry for entry in self.store.values(AUDIT_LOGS) if filters.matches(entry)]
            entries.sort(key=lambda e: e.timestamp, reverse=True)

            span.set_attributes({
                "audit.query.page": page,
                "audit.query.page_size": page_size,
                "audit.query.matched": len(entries)
            })

            return paginate(entries, page, page_size)

    def get_audit_log(self, audit_id: str) -> Optional[AuditEntry]:
        """Get a specific audit log entry by ID."""
        return self.store.get(AUDIT_LOGS, audit_id)

    def _calculate_changes(self, before: Dict[str, Any], after: Dict[str, Any]) -> List[Dict[str, Any]]:
        """
        Calculate field-level changes for detailed audit trail.

        Args:
            before: State before the change
            after: State after the change

        Returns:
            List[Dict]: List of field changes
        """
        changes = []

        all_keys = set(before.keys()) | set(after.keys())

        for key in all_keys:
            old_value = before.get(key)
            new_value = after.get(key)

            # Skip timestamp fields and identifiers
            if key in ["updatedAt", "id"]:
                continue

            if old_value != new_value:
                changes.append({
                    "field": key,
                    "old_value": old_value,
                    "new_value": new_value
                })

        return changes
