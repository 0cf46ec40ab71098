# -*- coding: utf-8 -*-
# SPDX-License-Identifier: Apache-2.0

"""
Tests for middleware functionality.
"""

import pytest
from unittest.mock import Mock
from flask import Flask, g
from pydantic import BaseModel, ValidationError
from werkzeug.exceptions import MethodNotAllowed

from domain.errors import (
    AuthenticationRequired, InvalidTransition, NotFound, ValidationError as CoordinationValidationError
)
from middleware.auth import AuthMiddleware, require_jwt
from middleware.error_handler import ErrorHandlerMiddleware
from middleware.validation import format_validation_errors, validation_error_callback
from models.entities import Actor
from services.auth import TokenValidationError
from services.hal import HalFormatter


class TestValidationFormatting:
    """Test request validation error rendering."""

    class PinBody(BaseModel):
        title: str
        lat: float

    def test_format_validation_errors(self):
        with pytest.raises(ValidationError) as exc_info:
            self.PinBody.model_validate({"lat": "north"})

        errors = format_validation_errors(exc_info.value)

        fields = {error["field"]: error for error in errors}
        assert set(fields) == {"title", "lat"}
        assert fields["title"]["type"] == "missing"

    def test_validation_error_callback(self):
        app = Flask(__name__)
        app.hal_formatter = HalFormatter("https://api.example.com")

        with pytest.raises(ValidationError) as exc_info:
            self.PinBody.model_validate({})

        with app.test_request_context('/api/pins', method='POST'):
            response = validation_error_callback(exc_info.value)

        body = response.get_json()
        assert response.status_code == 400
        assert body["type"].endswith("/validation-error")
        assert body["instance"] == "/api/pins"
        assert len(body["errors"]) == 2


class TestErrorHandlerMiddleware:
    """Test error handler middleware functionality."""

    def setup_method(self):
        self.app = Flask(__name__)
        self.app.config['ENVIRONMENT'] = 'test'
        ErrorHandlerMiddleware(self.app, HalFormatter("https://api.example.com"))

        @self.app.route('/missing')
        def missing():
            raise NotFound("Pin", "p1")

        @self.app.route('/conflict')
        def conflict():
            raise InvalidTransition("Pin p1 is confirmed", action="pin:deny")

        @self.app.route('/invalid')
        def invalid():
            raise CoordinationValidationError("Invalid pin", [{"field": "title", "message": "empty", "type": "value_error"}])

        @self.app.route('/anonymous')
        def anonymous():
            raise AuthenticationRequired()

        @self.app.route('/crash')
        def crash():
            raise RuntimeError("database exploded")

        @self.app.route('/only-post', methods=['POST'])
        def only_post():
            return {}

        self.client = self.app.test_client()

    def test_not_found(self):
        response = self.client.get('/missing')
        body = response.get_json()

        assert response.status_code == 404
        assert body["type"] == "https://api.quake-response.org/problems/resource-not-found"
        assert body["title"] == "Resource Not Found"
        assert body["detail"] == "Pin p1 not found"
        assert body["instance"] == "/missing"

    def test_invalid_transition(self):
        response = self.client.get('/conflict')

        assert response.status_code == 409
        assert response.get_json()["type"].endswith("/invalid-transition")

    def test_validation_error_carries_field_errors(self):
        body = self.client.get('/invalid').get_json()

        assert body["status"] == 400
        assert body["errors"][0]["field"] == "title"

    def test_authentication_required_links_login(self):
        response = self.client.get('/anonymous')

        assert response.status_code == 401
        assert "login" in response.get_json()["_links"]

    def test_unexpected_error(self):
        response = self.client.get('/crash')
        body = response.get_json()

        assert response.status_code == 500
        assert body["type"].endswith("/internal-server-error")
        assert "RuntimeError" in body["detail"]

    def test_unexpected_error_hidden_in_production(self):
        self.app.config['ENVIRONMENT'] = 'production'

        body = self.client.get('/crash').get_json()

        assert body["detail"] == "An unexpected error occurred"

    def test_werkzeug_client_errors(self):
        assert self.client.get('/nowhere').status_code == 404

        response = self.client.get('/only-post')
        assert response.status_code == MethodNotAllowed.code
        assert response.get_json()["type"].endswith("/method-not-allowed")


class TestAuthMiddleware:
    """Test bearer token resolution."""

    def setup_method(self):
        self.app = Flask(__name__)
        self.actor = Actor(name="Aye Aye", email="aye@example.org", role="user")
        self.auth_service = Mock()
        self.actor_registry = Mock()
        self.actor_registry.find.return_value = self.actor
        self.middleware = AuthMiddleware(self.auth_service, self.actor_registry)
        self.app.auth_middleware = self.middleware

    def test_extract_token(self):
        with self.app.test_request_context(headers={"Authorization": "Bearer abc.def"}):
            assert self.middleware.extract_token_from_request() == "abc.def"
        with self.app.test_request_context():
            assert self.middleware.extract_token_from_request() is None
        with self.app.test_request_context(headers={"Authorization": "Bearer "}):
            assert self.middleware.extract_token_from_request() is None

    def test_authenticate(self):
        self.auth_service.resolve_actor_id.return_value = self.actor.id

        with self.app.test_request_context(headers={"Authorization": "Bearer token"}):
            assert self.middleware.authenticate() is self.actor

        self.auth_service.resolve_actor_id.assert_called_once_with("token")

    def test_missing_token(self):
        with self.app.test_request_context():
            with pytest.raises(AuthenticationRequired) as exc_info:
                self.middleware.authenticate()
        assert "Missing" in exc_info.value.message

    def test_revoked_token(self):
        self.auth_service.resolve_actor_id.side_effect = TokenValidationError("Session has ended")

        with self.app.test_request_context(headers={"Authorization": "Bearer token"}):
            with pytest.raises(AuthenticationRequired) as exc_info:
                self.middleware.authenticate()
        assert exc_info.value.message == "Session has ended"

    def test_deleted_actor(self):
        self.auth_service.resolve_actor_id.return_value = "gone"
        self.actor_registry.find.return_value = None

        with self.app.test_request_context(headers={"Authorization": "Bearer token"}):
            with pytest.raises(AuthenticationRequired):
                self.middleware.authenticate()

    def test_require_jwt_passes_actor(self):
        self.auth_service.resolve_actor_id.return_value = self.actor.id

        @require_jwt
        def view(actor, value=None):
            return actor, value

        with self.app.test_request_context(headers={"Authorization": "Bearer token"}):
            actor, value = view(value=3)
            assert g.actor is self.actor

        assert actor is self.actor
        assert value == 3
