# -*- coding: utf-8 -*-
# SPDX-License-Identifier: Apache-2.0

"""
Request validation error formatting.

flask-openapi3 validates path, query and body parameters against the
pydantic models declared on each route; this module turns the resulting
pydantic ValidationError into the API's problem document.
"""

from flask import request, current_app, jsonify, make_response, Response
from typing import Dict, Any, List
from pydantic import ValidationError
from opentelemetry import trace
import logging

tracer = trace.get_tracer(__name__)
logger = logging.getLogger(__name__)


def format_validation_errors(validation_error: ValidationError) -> List[Dict[str, Any]]:
    """
    Format Pydantic validation errors for API response.

    Args:
        validation_error: Pydantic ValidationError

    Returns:
        List of formatted error dictionaries
    """
    errors = []

    for error in validation_error.errors():
        field_path = ".".join(str(loc) for loc in error["loc"])
        errors.append({
            "field": field_path,
            "message": error["msg"],
            "type": error["type"]
        })

    return errors


def validation_error_callback(validation_error: ValidationError) -> Response:
    """
    Render a request validation failure as a 400 problem document.

    Registered as the OpenAPI app's ``validation_error_callback``.
    """
    validation_errors = format_validation_errors(validation_error)

    span = trace.get_current_span()
    if span.is_recording():
        span.set_attributes({
            "validation.result": "validation_error",
            "validation.error_count": len(validation_errors)
        })

    logger.warning(
        "Request validation failed",
        extra={
            "model": validation_error.title,
            "path": request.path,
            "method": request.method,
            "errors": validation_errors
        }
    )

    error_response = current_app.hal_formatter.format_error(
        "validation-error",
        "Validation Error",
        400,
        f"Request validation failed for {validation_error.title}",
        request.path,
        validation_errors
    )
    return make_response(jsonify(error_response), 400)
