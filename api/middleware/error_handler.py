# -*- coding: utf-8 -*-
# SPDX-License-Identifier: Apache-2.0

"""
Error handling middleware with structured HAL responses.
Provides centralized error handling and formatting for Flask applications.
"""

from flask import Flask, request
from werkzeug.exceptions import HTTPException
from typing import Dict, Any, Tuple
from opentelemetry import trace
from opentelemetry.trace import Status, StatusCode
import logging

from domain.errors import CoordinationError, ValidationError
from services.hal import HalFormatter

tracer = trace.get_tracer(__name__)
logger = logging.getLogger(__name__)

ERROR_TITLES = {
    "validation-error": "Validation Error",
    "authentication-required": "Authentication Required",
    "insufficient-permissions": "Insufficient Permissions",
    "resource-not-found": "Resource Not Found",
    "invalid-transition": "Invalid Transition",
    "volunteer-unavailable": "Volunteer Unavailable",
    "resource-conflict": "Resource Conflict",
    "internal-server-error": "Internal Server Error",
}

HTTP_ERROR_TYPES = {
    400: ("bad-request", "Bad Request"),
    401: ("authentication-required", "Authentication Required"),
    403: ("insufficient-permissions", "Insufficient Permissions"),
    404: ("resource-not-found", "Resource Not Found"),
    405: ("method-not-allowed", "Method Not Allowed"),
    409: ("resource-conflict", "Resource Conflict"),
    415: ("unsupported-media-type", "Unsupported Media Type"),
    422: ("validation-error", "Validation Error"),
}


class ErrorHandlerMiddleware:
    """Centralized error handling middleware with HAL response formatting."""

    def __init__(self, app: Flask, hal_formatter: HalFormatter):
        self.app = app
        self.hal_formatter = hal_formatter
        self.register_error_handlers()

    def register_error_handlers(self):
        """Register error handlers with Flask application."""

        @self.app.errorhandler(CoordinationError)
        def handle_coordination_error(error):
            return self.handle_coordination_error(error)

        @self.app.errorhandler(HTTPException)
        def handle_http_exception(error):
            if error.code is not None and error.code >= 500:
                return self.handle_server_error(error)
            return self.handle_client_error(error)

        @self.app.errorhandler(Exception)
        def handle_generic_exception(error):
            return self.handle_unexpected_error(error)

    def _record_on_span(self, error: Exception, error_type: str, status: int):
        span = trace.get_current_span()
        if span.is_recording():
            span.record_exception(error)
            span.set_attributes({"error.type": error_type, "error.status": status})
            if status >= 500:
                span.set_status(Status(StatusCode.ERROR, str(error)))

    def handle_coordination_error(self, error: CoordinationError) -> Tuple[Dict[str, Any], int]:
        """
        Handle errors raised by the registries and the authorization gate.

        Args:
            error: Coordination error

        Returns:
            Tuple of (problem document, status code)
        """
        self._record_on_span(error, error.error_type, error.status_code)

        log = logger.warning if error.status_code < 500 else logger.error
        log(
            f"Request failed: {error.error_type}",
            extra={
                "error_type": error.error_type,
                "status_code": error.status_code,
                "detail": error.message,
                "path": request.path,
                "method": request.method
            }
        )

        validation_errors = error.errors if isinstance(error, ValidationError) else None
        error_response = self.hal_formatter.format_error(
            error.error_type,
            ERROR_TITLES.get(error.error_type, "Application Error"),
            error.status_code,
            error.message,
            request.path,
            validation_errors
        )
        return error_response, error.status_code

    def handle_client_error(self, error: HTTPException) -> Tuple[Dict[str, Any], int]:
        """
        Handle client errors (4xx status codes) raised by Flask or werkzeug.

        Args:
            error: HTTP exception

        Returns:
            Tuple of (error response dict, status code)
        """
        error_type, title = HTTP_ERROR_TYPES.get(error.code, ("client-error", error.name))
        detail = str(error.description) if error.description else title

        self._record_on_span(error, error_type, error.code)
        logger.warning(
            f"Client error: {title}",
            extra={
                "error_type": error_type,
                "status_code": error.code,
                "detail": detail,
                "path": request.path,
                "method": request.method,
                "user_agent": request.headers.get('User-Agent'),
                "ip_address": request.remote_addr
            }
        )

        error_response = self.hal_formatter.format_error(error_type, title, error.code, detail, request.path)
        return error_response, error.code

    def handle_server_error(self, error: HTTPException) -> Tuple[Dict[str, Any], int]:
        """
        Handle server errors (5xx status codes).

        Args:
            error: HTTP exception

        Returns:
            Tuple of (error response dict, status code)
        """
        self._record_on_span(error, "internal-server-error", error.code)

        logger.error(
            f"Server error: {error.name}",
            extra={
                "status_code": error.code,
                "path": request.path,
                "method": request.method
            },
            exc_info=True
        )

        detail = str(error.description) if error.description else error.name
        if self.app.config.get('ENVIRONMENT') == 'production':
            detail = "An internal server error occurred"

        error_response = self.hal_formatter.format_error(
            "internal-server-error", ERROR_TITLES["internal-server-error"], error.code, detail, request.path
        )
        return error_response, error.code

    def handle_unexpected_error(self, error: Exception) -> Tuple[Dict[str, Any], int]:
        """
        Handle unexpected exceptions not caught by specific handlers.

        Args:
            error: Unexpected exception

        Returns:
            Tuple of (error response dict, status code)
        """
        self._record_on_span(error, "unexpected-error", 500)

        logger.error(
            f"Unexpected error: {error.__class__.__name__}",
            extra={
                "error_type": "unexpected-error",
                "error_class": error.__class__.__name__,
                "error_message": str(error),
                "path": request.path,
                "method": request.method
            },
            exc_info=True
        )

        detail = "An unexpected error occurred"
        if self.app.config.get('ENVIRONMENT') != 'production':
            detail = f"{error.__class__.__name__}: {str(error)}"

        error_response = self.hal_formatter.format_error(
            "internal-server-error", ERROR_TITLES["internal-server-error"], 500, detail, request.path
        )
        return error_response, 500
