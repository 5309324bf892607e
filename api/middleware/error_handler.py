# -*- coding: utf-8 -*-
# SPDX-License-Identifier: Apache-2.0

"""
Error handling middleware with RFC 7807 problem responses.
Provides centralized error handling and formatting for Flask applications.
"""

from flask import Flask, request, jsonify
from werkzeug.exceptions import HTTPException
from typing import Dict, Any, List, Optional, Tuple
from pydantic import ValidationError
from opentelemetry import trace
import logging

tracer = trace.get_tracer(__name__)
logger = logging.getLogger(__name__)

PROBLEM_BASE_URL = "https://api.viangola.ao/problems"


def build_problem(
    error_type: str,
    title: str,
    status: int,
    detail: str,
    instance: str,
    errors: Optional[List[Dict[str, Any]]] = None
) -> Dict[str, Any]:
    """
    Build an RFC 7807 problem details body.

    Args:
        error_type: Problem type slug (e.g. "resource-not-found")
        title: Short human-readable summary
        status: HTTP status code
        detail: Explanation specific to this occurrence
        instance: Request path
        errors: Field-level validation errors, if any

    Returns:
        Problem details dictionary
    """
    problem = {
        "type": f"{PROBLEM_BASE_URL}/{error_type}",
        "title": title,
        "status": status,
        "detail": detail,
        "instance": instance
    }
    if errors:
        problem["errors"] = errors
    return problem


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
        message = error["msg"]
        # pydantic prefixes errors raised in validators
        if message.startswith("Value error, "):
            message = message[len("Value error, "):]
        errors.append({
            "field": field_path,
            "message": message,
            "type": error["type"]
        })

    return errors


class ErrorHandlerMiddleware:
    """Centralized error handling middleware with problem response formatting."""

    CLIENT_ERRORS = {
        400: ("bad-request", "Bad Request"),
        401: ("authentication-required", "Authentication Required"),
        403: ("insufficient-permissions", "Insufficient Permissions"),
        404: ("resource-not-found", "Resource Not Found"),
        405: ("method-not-allowed", "Method Not Allowed"),
        409: ("resource-conflict", "Resource Conflict"),
        415: ("unsupported-media-type", "Unsupported Media Type"),
        422: ("validation-error", "Validation Error"),
    }

    SERVER_ERRORS = {
        500: ("internal-server-error", "Internal Server Error"),
        502: ("bad-gateway", "Bad Gateway"),
        503: ("service-unavailable", "Service Unavailable"),
        504: ("gateway-timeout", "Gateway Timeout"),
    }

    def __init__(self, app: Flask):
        self.app = app
        self.register_error_handlers()

    def register_error_handlers(self):
        """Register error handlers with Flask application."""

        @self.app.errorhandler(HTTPException)
        def handle_http_exception(error: HTTPException):
            # Routing redirects are HTTPExceptions too
            if error.code is None or error.code < 400:
                return error

            if error.code in self.SERVER_ERRORS:
                error_type, title = self.SERVER_ERRORS[error.code]
                return self.handle_server_error(error, error_type, title)

            error_type, title = self.CLIENT_ERRORS.get(error.code, ("http-error", error.name))
            return self.handle_client_error(error, error_type, title)

        # Handle generic exceptions
        @self.app.errorhandler(Exception)
        def handle_generic_exception(error):
            return self.handle_unexpected_error(error)

    def handle_client_error(
        self,
        error: HTTPException,
        error_type: str,
        title: str
    ) -> Tuple[Any, int]:
        """
        Handle client errors (4xx status codes).

        Args:
            error: HTTP exception
            error_type: Error type identifier
            title: Error title

        Returns:
            Tuple of (problem response, status code)
        """
        with tracer.start_as_current_span("error_handler.client_error") as span:
            span.set_attributes({
                "error.type": error_type,
                "error.status": error.code,
                "http.method": request.method,
                "http.path": request.path
            })

            detail = str(error.description) if error.description else title

            logger.warning(
                f"Client error: {title}",
                extra={
                    "error_type": error_type,
                    "status_code": error.code,
                    "detail": detail,
                    "path": request.path,
                    "method": request.method,
                    "ip_address": request.remote_addr
                }
            )

            problem = build_problem(error_type, title, error.code, detail, request.path)
            return jsonify(problem), error.code

    def handle_server_error(
        self,
        error: HTTPException,
        error_type: str,
        title: str
    ) -> Tuple[Any, int]:
        """
        Handle server errors (5xx status codes).

        Args:
            error: HTTP exception
            error_type: Error type identifier
            title: Error title

        Returns:
            Tuple of (problem response, status code)
        """
        with tracer.start_as_current_span("error_handler.server_error") as span:
            span.set_attributes({
                "error.type": error_type,
                "error.status": error.code,
                "http.method": request.method,
                "http.path": request.path
            })

            detail = str(error.description) if error.description else title

            logger.error(
                f"Server error: {title}",
                extra={
                    "error_type": error_type,
                    "status_code": error.code,
                    "detail": detail,
                    "path": request.path,
                    "method": request.method
                },
                exc_info=True
            )

            # Don't expose internal error details in production
            if self.app.config.get('ENVIRONMENT') == 'production':
                detail = "An internal server error occurred"

            problem = build_problem(error_type, title, error.code, detail, request.path)
            return jsonify(problem), error.code

    def handle_unexpected_error(self, error: Exception) -> Tuple[Any, int]:
        """
        Handle unexpected exceptions not caught by specific handlers.

        Args:
            error: Unexpected exception

        Returns:
            Tuple of (problem response, status code)
        """
        with tracer.start_as_current_span("error_handler.unexpected_error") as span:
            span.set_attributes({
                "error.type": "unexpected-error",
                "error.class": error.__class__.__name__,
                "http.method": request.method,
                "http.path": request.path
            })
            span.record_exception(error)

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

            # Don't expose internal error details
            detail = "An unexpected error occurred"
            if self.app.config.get('ENVIRONMENT') != 'production':
                detail = f"{error.__class__.__name__}: {str(error)}"

            problem = build_problem("internal-server-error", "Internal Server Error", 500, detail, request.path)
            return jsonify(problem), 500


class CustomException(Exception):
    """Base class for custom application exceptions."""

    title = "Application Error"

    def __init__(self, message: str, status_code: int = 500, error_type: str = "application-error"):
        super().__init__(message)
        self.message = message
        self.status_code = status_code
        self.error_type = error_type


class ValidationException(CustomException):
    """Exception for validation errors."""

    title = "Validation Error"

    def __init__(self, message: str, validation_errors: list = None):
        super().__init__(message, 400, "validation-error")
        self.validation_errors = validation_errors or []


class AuthenticationException(CustomException):
    """Exception for authentication errors."""

    title = "Authentication Required"

    def __init__(self, message: str, error_type: str = "authentication-required"):
        super().__init__(message, 401, error_type)


class AuthorizationException(CustomException):
    """Exception for authorization errors."""

    title = "Insufficient Permissions"

    def __init__(self, message: str):
        super().__init__(message, 403, "insufficient-permissions")


class NotFoundException(CustomException):
    """Exception for resource not found errors."""

    title = "Resource Not Found"

    def __init__(self, message: str):
        super().__init__(message, 404, "resource-not-found")


class ConflictException(CustomException):
    """Exception for resource conflict errors."""

    title = "Resource Conflict"

    def __init__(self, message: str):
        super().__init__(message, 409, "resource-conflict")


def register_custom_error_handlers(app: Flask):
    """
    Register handlers for custom exceptions.

    Args:
        app: Flask application
    """

    @app.errorhandler(CustomException)
    def handle_custom_exception(error: CustomException):
        with tracer.start_as_current_span("error_handler.custom_exception") as span:
            span.set_attributes({
                "error.type": error.error_type,
                "error.status": error.status_code,
                "http.method": request.method,
                "http.path": request.path
            })

            logger.warning(
                f"Custom exception: {error.error_type}",
                extra={
                    "error_type": error.error_type,
                    "status_code": error.status_code,
                    "error_message": error.message,
                    "path": request.path,
                    "method": request.method
                }
            )

            errors = error.validation_errors if isinstance(error, ValidationException) else None
            problem = build_problem(
                error.error_type,
                error.title,
                error.status_code,
                error.message,
                request.path,
                errors
            )
            return jsonify(problem), error.status_code

    @app.errorhandler(ValidationError)
    def handle_entity_validation_error(error: ValidationError):
        # Cross-field rules checked when a record is assembled from a request
        validation_errors = format_validation_errors(error)

        logger.warning(
            "Record validation failed",
            extra={
                "model": error.title,
                "path": request.path,
                "method": request.method,
                "errors": validation_errors
            }
        )

        problem = build_problem(
            "validation-error",
            ValidationException.title,
            400,
            f"Record validation failed for {error.title}",
            request.path,
            validation_errors
        )
        return jsonify(problem), 400
