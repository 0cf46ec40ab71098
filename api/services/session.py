# SPDX-License-Identifier: Apache-2.0

"""
Session stores.

A session binds an opaque session id to the id of the actor who opened it.
The lifecycle is load / save / clear; the token service puts the session id
in the token's ``sid`` claim, so clearing a session revokes its token.
"""

import json
import os
import threading
import time
from abc import ABC, abstractmethod
from typing import Dict, Optional, Tuple
import redis
from opentelemetry import trace
import logging

tracer = trace.get_tracer(__name__)
logger = logging.getLogger(__name__)

SESSION_KEY_PREFIX = "session:"


class SessionStore(ABC):
    """Session persistence interface."""

    @abstractmethod
    def load(self, session_id: str) -> Optional[str]:
        """Return the actor id bound to a live session, or None."""

    @abstractmethod
    def save(self, session_id: str, actor_id: str, ttl_seconds: int) -> bool:
        """Bind a session to an actor for ttl_seconds."""

    @abstractmethod
    def clear(self, session_id: str) -> bool:
        """End a session; returns False when it did not exist."""

    def is_available(self) -> bool:
        return True


class InMemorySessionStore(SessionStore):
    """Process-local session store for development and tests."""

    def __init__(self):
        self._sessions: Dict[str, Tuple[str, float]] = {}
        self._lock = threading.Lock()

    def load(self, session_id: str) -> Optional[str]:
        with self._lock:
            entry = self._sessions.get(session_id)
            if entry is None:
                return None
            actor_id, expires_at = entry
            if expires_at <= time.time():
                del self._sessions[session_id]
                return None
            return actor_id

    def save(self, session_id: str, actor_id: str, ttl_seconds: int) -> bool:
        now = time.time()
        with self._lock:
            expired = [sid for sid, (_, expires_at) in self._sessions.items() if expires_at <= now]
            for sid in expired:
                del self._sessions[sid]
            self._sessions[session_id] = (actor_id, now + ttl_seconds)
        return True

    def clear(self, session_id: str) -> bool:
        with self._lock:
            return self._sessions.pop(session_id, None) is not None


class RedisSessionStore(SessionStore):
    """
    Session store backed by Redis through redis-py.

    Redis errors are logged and treated as a missing session, so an
    unreachable Redis fails closed rather than authenticating anyone.
    """

    def __init__(self, redis_url: Optional[str] = None, client: Optional[redis.Redis] = None):
        """
        Initialize the Redis session store.

        Args:
            redis_url: Redis connection URL (redis://host:port)
            client: Preconfigured client, used instead of redis_url when given
        """
        self.redis_url = redis_url or os.getenv("REDIS_URL", "redis://localhost:6379")

        if client is not None:
            self.client = client
            return

        try:
            self.client = redis.from_url(self.redis_url, decode_responses=True)
            self.client.ping()
            logger.info(f"Redis session store initialized at {self.redis_url}")
        except redis.RedisError as e:
            logger.error(f"Failed to initialize Redis session store: {str(e)}")
            self.client = None

    def is_available(self) -> bool:
        return self.client is not None

    def _key(self, session_id: str) -> str:
        return f"{SESSION_KEY_PREFIX}{session_id}"

    def load(self, session_id: str) -> Optional[str]:
        if not self.is_available():
            return None

        with tracer.start_as_current_span("session.load") as span:
            span.set_attribute("redis.operation", "get")
            try:
                raw = self.client.get(self._key(session_id))
            except redis.RedisError as e:
                span.set_attribute("redis.result", "error")
                logger.error(f"Redis session load failed: {str(e)}")
                return None

            if raw is None:
                span.set_attribute("redis.result", "miss")
                return None

            span.set_attribute("redis.result", "hit")
            return json.loads(raw).get("actorId")

    def save(self, session_id: str, actor_id: str, ttl_seconds: int) -> bool:
        if not self.is_available():
            return False

        with tracer.start_as_current_span("session.save") as span:
            span.set_attributes({"redis.operation": "setex", "redis.ttl": ttl_seconds})
            value = json.dumps({"actorId": actor_id, "createdAt": int(time.time())})
            try:
                return bool(self.client.setex(self._key(session_id), ttl_seconds, value))
            except redis.RedisError as e:
                span.set_attribute("redis.result", "error")
                logger.error(f"Redis session save failed: {str(e)}")
                return False

    def clear(self, session_id: str) -> bool:
        if not self.is_available():
            return False

        with tracer.start_as_current_span("session.clear") as span:
            span.set_attribute("redis.operation", "delete")
            try:
                return self.client.delete(self._key(session_id)) > 0
            except redis.RedisError as e:
                span.set_attribute("redis.result", "error")
                logger.error(f"Redis session clear failed: {str(e)}")
                return False


def create_session_store(backend: str = "memory", redis_url: Optional[str] = None) -> SessionStore:
    """Create the session store selected by configuration."""
    if backend == "redis":
        return RedisSessionStore(redis_url)
    return InMemorySessionStore()
