# SPDX-License-Identifier: Apache-2.0

"""
Request instrumentation for the registry API.

Flask auto-instrumentation provides the HTTP spans; this adds request
timing, one structured log line per request with the caller's identity,
and the X-Trace-Id response header.
"""

import time
import logging
from flask import Flask, request, g
from opentelemetry import trace
from opentelemetry.instrumentation.flask import FlaskInstrumentor

logger = logging.getLogger(__name__)


def add_observability_middleware(app: Flask):
    """Instrument the app and log every completed request."""
    FlaskInstrumentor().instrument_app(app)

    @app.before_request
    def start_request_timer():
        g.start_time = time.monotonic()

    @app.after_request
    def log_request(response):
        duration_ms = round((time.monotonic() - g.get('start_time', time.monotonic())) * 1000, 2)
        user_context = g.get('user_context')

        span = trace.get_current_span()
        if span.is_recording():
            span.set_attribute("http.duration_ms", duration_ms)
            response.headers['X-Trace-Id'] = format(span.get_span_context().trace_id, "032x")

        logger.info(
            "HTTP request completed",
            extra={
                "method": request.method,
                "path": request.path,
                "status_code": response.status_code,
                "duration_ms": duration_ms,
                "user_id": user_context.user_id if user_context else None,
                "role": user_context.role if user_context else None
            }
        )
        return response
