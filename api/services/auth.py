# SPDX-License-Identifier: Apache-2.0

"""
Authentication service for JWT bearer token verification.

Tokens are issued by the hosted identity backend; this service only verifies
them. HS256 tokens are checked against a shared secret, RS256 tokens against
the backend's PEM public key.
"""

import jwt
from typing import Optional, Dict, Any, List
from cryptography.hazmat.primitives import serialization
from opentelemetry import trace
import logging

tracer = trace.get_tracer(__name__)
logger = logging.getLogger(__name__)

SUPPORTED_ALGORITHMS = ("HS256", "RS256")


class TokenValidationError(Exception):
    """Raised when token validation fails."""
    pass


class AuthService:
    """
    JWT verification service.

    Validates signature, expiry and (optionally) audience of bearer tokens
    and returns their claims.
    """

    def __init__(
        self,
        secret: Optional[str] = None,
        algorithm: str = "HS256",
        public_key: Optional[str] = None,
        audience: Optional[str] = None
    ):
        """
        Initialize the authentication service.

        Args:
            secret: Shared secret for HS256 tokens
            algorithm: Signing algorithm, HS256 or RS256
            public_key: PEM public key for RS256 tokens
            audience: Expected "aud" claim, if the backend sets one

        Raises:
            ValueError: If the algorithm is unsupported or its key is missing
        """
        if algorithm not in SUPPORTED_ALGORITHMS:
            raise ValueError(f"Unsupported JWT algorithm: {algorithm}")

        self.algorithm = algorithm
        self.audience = audience

        if algorithm == "RS256":
            if not public_key:
                raise ValueError("JWT_PUBLIC_KEY is required for RS256")
            self.verification_key = self._load_public_key(public_key)
        else:
            if not secret:
                raise ValueError("JWT_SECRET is required for HS256")
            self.verification_key = secret

    def _load_public_key(self, pem: str):
        """Parse a PEM public key once at startup."""
        try:
            return serialization.load_pem_public_key(pem.encode('utf-8'))
        except ValueError as e:
            logger.error(f"Invalid JWT public key: {str(e)}")
            raise ValueError(f"Invalid JWT public key: {str(e)}")

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
            span.set_attributes({
                "auth.operation": "validate_token",
                "auth.algorithm": self.algorithm
            })

            options = {"verify_exp": True, "verify_aud": self.audience is not None}
            required: List[str] = ["sub", "exp"]

            try:
                payload = jwt.decode(
                    token,
                    self.verification_key,
                    algorithms=[self.algorithm],
                    audience=self.audience,
                    options={**options, "require": required}
                )

                span.set_attributes({
                    "auth.validation_result": "success",
                    "user.id": payload.get("sub")
                })

                logger.debug(
                    "Token validated successfully",
                    extra={"user_id": payload.get("sub")}
                )

                return payload

            except jwt.ExpiredSignatureError:
                span.set_attribute("auth.validation_result", "expired")
                logger.warning("Token validation failed: token expired")
                raise TokenValidationError("Token has expired")

            except jwt.InvalidTokenError as e:
                span.set_attribute("auth.validation_result", "invalid")
                logger.warning(f"Token validation failed: {str(e)}")
                raise TokenValidationError(f"Invalid token: {str(e)}")
