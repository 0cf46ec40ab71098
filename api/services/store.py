# -*- coding: utf-8 -*-
# SPDX-License-Identifier: Apache-2.0

"""
Authoritative in-process record store with write-through persistence.

Each registry owns one collection (id -> record map). All reads and writes
are serialized by a single re-entrant lock, and every mutation runs inside a
transaction that snapshots the records it touches. Writes are flushed to the
persistence collaborator when the outermost transaction exits; if the flush
raises, every touched record is restored and the error propagates.
"""

import logging
import threading
from contextlib import contextmanager
from typing import Any, Dict, Iterator, List, Optional, Protocol, Tuple, Type

from opentelemetry import trace

from models.base import BaseRecord

logger = logging.getLogger(__name__)
tracer = trace.get_tracer(__name__)

ACTORS = "actors"
PINS = "pins"
HELP_REQUESTS = "help_requests"
VOLUNTEERS = "volunteers"
ORGANIZATIONS = "organizations"
AUDIT_LOGS = "audit_logs"

_MISSING = object()


class PaginationResult:
    """Result container for paginated queries."""

    def __init__(self, items: List[Any], total: int, page: int, page_size: int):
        self.items = items
        self.total = total
        self.page = page
        self.page_size = page_size
        self.total_pages = (total + page_size - 1) // page_size
        self.has_next = page < self.total_pages
        self.has_prev = page > 1


def paginate(items: List[Any], page: int = 1, page_size: int = 50) -> PaginationResult:
    """Slice an already ordered list into one page."""
    start = (page - 1) * page_size
    return PaginationResult(items[start:start + page_size], len(items), page, page_size)


class RecordPersistence(Protocol):
    """Write-through target for committed records."""

    def upsert_record(self, collection: str, document: Dict[str, Any]) -> None: ...

    def delete_record(self, collection: str, record_id: str) -> None: ...

    def load_records(self, collection: str) -> List[Dict[str, Any]]: ...


class _Transaction:
    """Snapshot of touched records plus the writes to flush."""

    def __init__(self):
        self.snapshot: Dict[Tuple[str, str], Any] = {}
        self.writes: List[Tuple[str, str, Optional[BaseRecord]]] = []

    def remember(self, collection: str, record_id: str, previous: Any) -> None:
        self.snapshot.setdefault((collection, record_id), previous)


class RecordStore:
    """Per-collection id -> record maps behind one lock."""

    def __init__(self, persistence: Optional[RecordPersistence] = None):
        self._lock = threading.RLock()
        self._collections: Dict[str, Dict[str, BaseRecord]] = {}
        self._persistence = persistence
        self._transaction: Optional[_Transaction] = None

    @property
    def lock(self) -> threading.RLock:
        """Lock serializing every registry operation."""
        return self._lock

    @property
    def persistence_enabled(self) -> bool:
        return self._persistence is not None

    def _collection(self, collection: str) -> Dict[str, BaseRecord]:
        return self._collections.setdefault(collection, {})

    # Reads

    def get(self, collection: str, record_id: str) -> Optional[BaseRecord]:
        """Get a record by id."""
        with self._lock:
            return self._collection(collection).get(record_id)

    def values(self, collection: str) -> List[BaseRecord]:
        """Snapshot of all records in a collection."""
        with self._lock:
            return list(self._collection(collection).values())

    def count(self, collection: str) -> int:
        with self._lock:
            return len(self._collection(collection))

    # Writes

    @contextmanager
    def transaction(self) -> Iterator["RecordStore"]:
        """
        Group mutations so they commit or roll back together.

        Nested transactions join the outermost one.
        """
        with self._lock:
            if self._transaction is not None:
                yield self
                return

            self._transaction = _Transaction()
            try:
                yield self
                self._flush(self._transaction)
            except Exception:
                self._rollback(self._transaction)
                raise
            finally:
                self._transaction = None

    def put(self, collection: str, record: BaseRecord) -> BaseRecord:
        """Insert or replace a record."""
        with self.transaction():
            records = self._collection(collection)
            self._transaction.remember(collection, record.id, records.get(record.id, _MISSING))
            records[record.id] = record
            self._transaction.writes.append((collection, record.id, record))
            return record

    def delete(self, collection: str, record_id: str) -> Optional[BaseRecord]:
        """Remove a record, returning it (or None when absent)."""
        with self.transaction():
            records = self._collection(collection)
            if record_id not in records:
                return None
            previous = records.pop(record_id)
            self._transaction.remember(collection, record_id, previous)
            self._transaction.writes.append((collection, record_id, None))
            return previous

    def _flush(self, transaction: _Transaction) -> None:
        if self._persistence is None or not transaction.writes:
            return

        with tracer.start_as_current_span("store.flush") as span:
            span.set_attribute("store.writes", len(transaction.writes))
            for collection, record_id, record in transaction.writes:
                if record is None:
                    self._persistence.delete_record(collection, record_id)
                else:
                    self._persistence.upsert_record(collection, record.to_document())

    def _rollback(self, transaction: _Transaction) -> None:
        for (collection, record_id), previous in transaction.snapshot.items():
            records = self._collection(collection)
            if previous is _MISSING:
                records.pop(record_id, None)
            else:
                records[record_id] = previous

        if transaction.snapshot:
            logger.warning(
                "Store transaction rolled back",
                extra={"records_restored": len(transaction.snapshot)}
            )

    # Hydration

    def hydrate(self, models: Dict[str, Type[BaseRecord]]) -> Dict[str, int]:
        """
        Load persisted records into memory.

        Args:
            models: Collection name -> record class

        Returns:
            Number of records loaded per collection
        """
        loaded: Dict[str, int] = {}
        if self._persistence is None:
            return loaded

        with self._lock, tracer.start_as_current_span("store.hydrate"):
            for collection, model in models.items():
                records = self._collection(collection)
                for document in self._persistence.load_records(collection):
                    record = model.model_validate(document)
                    records[record.id] = record
                loaded[collection] = len(records)

        logger.info("Record store hydrated", extra={"collections": loaded})
        return loaded

    def clear(self) -> None:
        """Drop all in-memory records."""
        with self._lock:
            self._collections.clear()
