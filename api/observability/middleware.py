"""
Observability Middleware

Per-request correlation for the coordination API: every response carries a
request id (echoed from the client when supplied), spans are tagged with the
acting role, and each request is logged at a level matching its outcome.
"""

import time
import uuid
import logging
from flask import Flask, request, g
from opentelemetry import trace
from opentelemetry.instrumentation.flask import FlaskInstrumentor

REQUEST_ID_HEADER = "X-Request-Id"
TRACE_ID_HEADER = "X-Trace-Id"

# Polled by load balancers every few seconds
QUIET_PATHS = frozenset({"/api/healthz"})

logger = logging.getLogger(__name__)


def _log_level(status_code: int, path: str) -> int:
    if status_code >= 500:
        return logging.ERROR
    if status_code >= 400:
        return logging.WARNING
    if path in QUIET_PATHS:
        return logging.DEBUG
    return logging.INFO


def add_observability_middleware(app: Flask, instrument: bool = True):
    """Add OpenTelemetry instrumentation and request logging to Flask app."""

    if instrument:
        FlaskInstrumentor().instrument_app(app, excluded_urls=",".join(QUIET_PATHS))

    @app.before_request
    def before_request():
        g.start_time = time.perf_counter()
        g.request_id = request.headers.get(REQUEST_ID_HEADER) or uuid.uuid4().hex
        g.trace_id = None

        span = trace.get_current_span()
        if span.is_recording():
            g.trace_id = format(span.get_span_context().trace_id, "032x")
            span.set_attribute("http.request_id", g.request_id)

    @app.after_request
    def after_request(response):
        duration_ms = round((time.perf_counter() - g.get('start_time', time.perf_counter())) * 1000, 2)
        actor = g.get('actor')

        span = trace.get_current_span()
        if span.is_recording():
            span.set_attribute("http.duration_ms", duration_ms)
            if actor is not None:
                span.set_attributes({"actor.id": actor.id, "actor.role": actor.role})

        logger.log(
            _log_level(response.status_code, request.path),
            f"{request.method} {request.path} {response.status_code}",
            extra={
                "request_id": g.get('request_id'),
                "status_code": response.status_code,
                "duration_ms": duration_ms,
                "actor_id": actor.id if actor is not None else None,
                "actor_role": actor.role if actor is not None else None,
                "trace_id": g.get('trace_id')
            }
        )

        response.headers[REQUEST_ID_HEADER] = g.get('request_id', '')
        if g.get('trace_id'):
            response.headers[TRACE_ID_HEADER] = g.trace_id
        return response
