# SPDX-License-Identifier: Apache-2.0

"""
Authentication service for session-bound JWT tokens.

This module issues and validates RS256-signed access tokens. Each token
carries the id of a server-side session in its ``sid`` claim; a token is
only accepted while that session is live, so logout revokes it.
"""

import os
import uuid
import jwt
from datetime import datetime, timedelta, timezone
from typing import Optional, Dict, Any, Tuple
from cryptography.hazmat.primitives import serialization
from cryptography.hazmat.primitives.asymmetric import rsa
from opentelemetry import trace
import logging

from models.entities import Actor
from .session import SessionStore

tracer = trace.get_tracer(__name__)
logger = logging.getLogger(__name__)


class AuthenticationError(Exception):
    """Raised when a session cannot be opened."""
    pass


class TokenValidationError(Exception):
    """Raised when token validation fails."""
    pass


class AuthService:
    """
    JWT session service with RS256 signing.

    Credentials are not verified here: login resolves an actor by email and
    opens a session for it.
    """

    def __init__(
        self,
        session_store: SessionStore,
        access_token_expires: int = 3600,
        private_key: Optional[str] = None,
        public_key: Optional[str] = None
    ):
        """
        Initialize the authentication service.

        Args:
            session_store: Store holding live sessions
            access_token_expires: Token and session lifetime in seconds
            private_key: RS256 private key for token signing (PEM format)
            public_key: RS256 public key for token verification (PEM format)
        """
        self.session_store = session_store
        self.access_token_expires = access_token_expires
        self.algorithm = "RS256"

        private_key = private_key or os.getenv("JWT_PRIVATE_KEY")
        public_key = public_key or os.getenv("JWT_PUBLIC_KEY")
        if not private_key or not public_key:
            logger.warning("No JWT key pair configured, generating development key pair")
            private_key, public_key = self._generate_dev_key_pair()

        self.private_key = private_key
        self.public_key = public_key

    def _generate_dev_key_pair(self) -> Tuple[str, str]:
        """Generate RSA key pair for development use."""
        private_key = rsa.generate_private_key(
            public_exponent=65537,
            key_size=2048
        )

        private_pem = private_key.private_bytes(
            encoding=serialization.Encoding.PEM,
            format=serialization.PrivateFormat.PKCS8,
            encryption_algorithm=serialization.NoEncryption()
        ).decode('utf-8')

        public_pem = private_key.public_key().public_bytes(
            encoding=serialization.Encoding.PEM,
            format=serialization.PublicFormat.SubjectPublicKeyInfo
        ).decode('utf-8')

        return private_pem, public_pem

    def open_session(self, actor: Actor) -> Dict[str, Any]:
        """
        Open a session for an actor and issue its access token.

        Args:
            actor: Actor logging in

        Returns:
            Dictionary containing access_token and metadata
        """
        with tracer.start_as_current_span("auth.open_session") as span:
            span.set_attributes({
                "auth.operation": "open_session",
                "actor.id": actor.id,
                "actor.role": actor.role
            })

            session_id = uuid.uuid4().hex
            now = datetime.now(timezone.utc)
            expires_at = now + timedelta(seconds=self.access_token_expires)

            if not self.session_store.save(session_id, actor.id, self.access_token_expires):
                span.set_attribute("auth.session_saved", False)
                raise AuthenticationError("Session store unavailable")

            payload = {
                "sub": actor.id,
                "sid": session_id,
                "role": actor.role,
                "org_id": actor.organization_id,
                "name": actor.name,
                "iat": now,
                "exp": expires_at,
                "type": "access"
            }

            try:
                access_token = jwt.encode(payload, self.private_key, algorithm=self.algorithm)
            except Exception as e:
                self.session_store.clear(session_id)
                logger.error(f"Token generation failed: {str(e)}")
                raise AuthenticationError(f"Failed to generate token: {str(e)}")

            logger.info(
                "Session opened",
                extra={
                    "actor_id": actor.id,
                    "role": actor.role,
                    "expires_at": expires_at.isoformat()
                }
            )

            return {
                "access_token": access_token,
                "token_type": "Bearer",
                "expires_in": self.access_token_expires,
                "expires_at": expires_at.isoformat()
            }

    def validate_token(self, token: str) -> Dict[str, Any]:
        """
        Validate and decode a JWT token.

        Args:
            token: JWT token string to validate

        Returns:
            Decoded token payload

        Raises:
            TokenValidationError: If token is invalid or expired
        """
        with tracer.start_as_current_span("auth.validate_token") as span:
            span.set_attribute("auth.operation", "validate_token")

            try:
                payload = jwt.decode(
                    token,
                    self.public_key,
                    algorithms=[self.algorithm],
                    options={"verify_exp": True, "require": ["sub", "sid", "exp"]}
                )
            except jwt.ExpiredSignatureError:
                span.set_attribute("auth.validation_result", "expired")
                logger.warning("Token validation failed: token expired")
                raise TokenValidationError("Token has expired")
            except jwt.InvalidTokenError as e:
                span.set_attribute("auth.validation_result", "invalid")
                logger.warning(f"Token validation failed: {str(e)}")
                raise TokenValidationError(f"Invalid token: {str(e)}")

            if payload.get("type") != "access":
                span.set_attribute("auth.validation_result", "wrong_type")
                raise TokenValidationError("Invalid token type. Expected access")

            span.set_attributes({
                "auth.validation_result": "success",
                "actor.id": payload.get("sub")
            })
            return payload

    def resolve_actor_id(self, token: str) -> str:
        """
        Resolve the actor behind a token with a live session.

        Raises:
            TokenValidationError: If the token is invalid or its session has ended
        """
        payload = self.validate_token(token)
        actor_id = self.session_store.load(payload["sid"])

        if actor_id is None or actor_id != payload["sub"]:
            logger.warning("Token rejected: session ended", extra={"actor_id": payload.get("sub")})
            raise TokenValidationError("Session has ended")

        return actor_id

    def close_session(self, token: str) -> bool:
        """
        End the session behind a token.

        Returns:
            True if a live session was cleared
        """
        with tracer.start_as_current_span("auth.close_session") as span:
            payload = self.validate_token(token)
            cleared = self.session_store.clear(payload["sid"])
            span.set_attribute("auth.session_cleared", cleared)

            logger.info("Session closed", extra={"actor_id": payload.get("sub"), "cleared": cleared})
            return cleared
