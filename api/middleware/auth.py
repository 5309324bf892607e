# SPDX-License-Identifier: Apache-2.0

"""
Authentication middleware for JWT token validation and user context extraction.

This module provides Flask middleware for validating bearer tokens, resolving
the caller's role and building the user context (with the role's permission
strings) for request processing.
"""

from functools import wraps
from flask import request, g
from typing import Optional, Dict, Any, Callable
from opentelemetry import trace
import logging

from domain.permissions import check_permission, permission_strings
from models.entities import UserContext
from models.enums import UserRole
from middleware.error_handler import AuthenticationException, AuthorizationException
from services.auth import TokenValidationError

tracer = trace.get_tracer(__name__)
logger = logging.getLogger(__name__)

ROLE_VALUES = frozenset(role.value for role in UserRole)


def _known_role(candidate: Any) -> bool:
    return isinstance(candidate, str) and candidate in ROLE_VALUES


class AuthMiddleware:
    """
    JWT authentication middleware for Flask applications.

    Handles token extraction, validation, role resolution and user context
    building for protected endpoints.
    """

    def __init__(self, auth_service, mongodb_service=None):
        """
        Initialize the authentication middleware.

        Args:
            auth_service: JWT verification service
            mongodb_service: Optional MongoDB service holding the authoritative user records
        """
        self.auth_service = auth_service
        self.mongodb_service = mongodb_service

    def extract_token_from_request(self) -> Optional[str]:
        """
        Extract JWT token from request headers.

        Returns:
            JWT token string or None if not found
        """
        auth_header = request.headers.get('Authorization', '')

        if not auth_header:
            return None

        # Handle "Bearer <token>" format
        if auth_header.startswith('Bearer '):
            return auth_header[7:].strip() or None

        # Handle direct token (less common)
        return auth_header

    def resolve_role(self, token_payload: Dict[str, Any]) -> Optional[str]:
        """
        Find the registry role of the token subject.

        The stored user record wins when there is one. Otherwise only claims
        the user cannot edit are trusted: the top-level "role" claim and
        app_metadata.role. user_metadata is never consulted.

        Args:
            token_payload: Decoded JWT payload

        Returns:
            Role value, or None when no known role applies
        """
        if self.mongodb_service is not None:
            user = self.mongodb_service.find_by_id("users", str(token_payload["sub"]))
            if user and _known_role(user.get("role")):
                return user["role"]

        app_metadata = token_payload.get("app_metadata")
        candidates = [
            token_payload.get("role"),
            app_metadata.get("role") if isinstance(app_metadata, dict) else None,
        ]
        for candidate in candidates:
            if _known_role(candidate):
                return candidate

        return None

    def build_user_context(self, token_payload: Dict[str, Any], request_info: Dict[str, Any]) -> UserContext:
        """
        Build user context from validated token payload and request information.

        Args:
            token_payload: Decoded JWT payload
            request_info: Request metadata (IP, user agent)

        Returns:
            UserContext object for request processing

        Raises:
            AuthenticationException: If the subject has no registry role
        """
        role = self.resolve_role(token_payload)
        if role is None:
            raise AuthenticationException("Token does not carry a registry role", "unknown-role")

        metadata = token_payload.get("user_metadata")
        if not isinstance(metadata, dict):
            metadata = {}

        return UserContext(
            user_id=str(token_payload["sub"]),
            role=role,
            email=token_payload.get("email"),
            name=token_payload.get("name") or metadata.get("name"),
            badge=token_payload.get("badge") or metadata.get("badge"),
            permissions=permission_strings(role),
            token_payload=token_payload,
            ip_address=request_info.get("ip_address"),
            user_agent=request_info.get("user_agent")
        )

    def get_request_info(self) -> Dict[str, Any]:
        """
        Extract request metadata for user context.

        Returns:
            Dictionary with request information
        """
        return {
            "ip_address": request.remote_addr,
            "user_agent": request.headers.get('User-Agent', ''),
            "request_id": request.headers.get('X-Request-ID')
        }

    def authenticate(self) -> UserContext:
        """
        Authenticate the current request.

        Returns:
            UserContext for the caller

        Raises:
            AuthenticationException: If the token is missing or invalid
        """
        with tracer.start_as_current_span("auth.middleware.validate_request") as span:
            span.set_attribute("auth.operation", "validate_request")

            token = self.extract_token_from_request()
            if not token:
                span.set_attribute("auth.result", "missing_token")
                logger.warning("Authentication failed: missing token")
                raise AuthenticationException("Missing authorization token")

            try:
                token_payload = self.auth_service.validate_token(token)
            except TokenValidationError as e:
                span.set_attribute("auth.result", "invalid_token")
                logger.warning(f"Authentication failed: {str(e)}")
                raise AuthenticationException(str(e), "invalid-token")

            user_context = self.build_user_context(token_payload, self.get_request_info())

            span.set_attributes({
                "auth.result": "success",
                "user.id": user_context.user_id,
                "user.role": user_context.role
            })

            logger.debug(
                "Authentication successful",
                extra={
                    "user_id": user_context.user_id,
                    "role": user_context.role,
                    "ip_address": user_context.ip_address
                }
            )

            return user_context


def require_auth(auth_middleware: AuthMiddleware) -> Callable:
    """
    Decorator to require JWT authentication for Flask routes.

    The wrapped route receives the UserContext as its first argument.

    Args:
        auth_middleware: Configured AuthMiddleware instance

    Returns:
        Decorator function
    """
    def decorator(f: Callable) -> Callable:
        @wraps(f)
        def decorated_function(*args, **kwargs):
            user_context = auth_middleware.authenticate()

            # Store user context in Flask's g object
            g.user_context = user_context

            return f(user_context, *args, **kwargs)

        return decorated_function
    return decorator


def ensure_permission(user_context: UserContext, resource: str, action: str) -> None:
    """
    Check the role table for a resource/action pair.

    Args:
        user_context: Authenticated caller
        resource: Functional area
        action: Requested action

    Raises:
        AuthorizationException: If the caller's role lacks the permission
    """
    with tracer.start_as_current_span("auth.middleware.check_permission") as span:
        required = f"{resource}:{action}"
        span.set_attributes({
            "auth.operation": "check_permission",
            "auth.required_permission": required,
            "user.id": user_context.user_id,
            "user.role": user_context.role
        })

        result = check_permission(user_context.role, resource, action)
        if not result.allowed:
            span.set_attribute("auth.permission_result", "denied")
            logger.warning(
                f"Authorization failed: missing permission '{required}'",
                extra={
                    "user_id": user_context.user_id,
                    "role": user_context.role,
                    "required_permission": required
                }
            )
            raise AuthorizationException(result.reason)

        span.set_attribute("auth.permission_result", "granted")
