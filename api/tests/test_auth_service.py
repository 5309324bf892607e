# SPDX-License-Identifier: Apache-2.0

"""
Tests for bearer token verification.
"""

import pytest
import jwt
from datetime import datetime, timedelta, timezone
from cryptography.hazmat.primitives import serialization
from cryptography.hazmat.primitives.asymmetric import rsa

from services.auth import AuthService, TokenValidationError

SECRET = "unit-test-secret-key-0123456789abcdef"


def claims(**overrides):
    payload = {
        "sub": "user-1",
        "role": "citizen",
        "exp": datetime.now(timezone.utc) + timedelta(minutes=5)
    }
    payload.update(overrides)
    return payload


@pytest.fixture(scope="module")
def rsa_keys():
    """RSA key pair as (private key object, public PEM)."""
    private_key = rsa.generate_private_key(public_exponent=65537, key_size=2048)
    public_pem = private_key.public_key().public_bytes(
        encoding=serialization.Encoding.PEM,
        format=serialization.PublicFormat.SubjectPublicKeyInfo
    ).decode("utf-8")
    return private_key, public_pem


class TestHS256:
    """Test shared-secret tokens."""

    def test_valid_token(self):
        service = AuthService(secret=SECRET)
        token = jwt.encode(claims(), SECRET, algorithm="HS256")

        payload = service.validate_token(token)

        assert payload["sub"] == "user-1"
        assert payload["role"] == "citizen"

    def test_expired_token(self):
        service = AuthService(secret=SECRET)
        token = jwt.encode(claims(exp=datetime.now(timezone.utc) - timedelta(minutes=1)), SECRET, algorithm="HS256")

        with pytest.raises(TokenValidationError, match="Token has expired"):
            service.validate_token(token)

    def test_wrong_secret(self):
        service = AuthService(secret=SECRET)
        token = jwt.encode(claims(), "another-secret-key-0123456789abcdef", algorithm="HS256")

        with pytest.raises(TokenValidationError, match="Invalid token"):
            service.validate_token(token)

    def test_subject_required(self):
        service = AuthService(secret=SECRET)
        payload = claims()
        del payload["sub"]
        token = jwt.encode(payload, SECRET, algorithm="HS256")

        with pytest.raises(TokenValidationError):
            service.validate_token(token)

    def test_garbage(self):
        with pytest.raises(TokenValidationError):
            AuthService(secret=SECRET).validate_token("not.a.jwt")

    def test_audience_checked_when_configured(self):
        service = AuthService(secret=SECRET, audience="authenticated")

        good = jwt.encode(claims(aud="authenticated"), SECRET, algorithm="HS256")
        bad = jwt.encode(claims(aud="anon"), SECRET, algorithm="HS256")

        assert service.validate_token(good)["aud"] == "authenticated"
        with pytest.raises(TokenValidationError):
            service.validate_token(bad)

    def test_audience_ignored_when_not_configured(self):
        token = jwt.encode(claims(aud="authenticated"), SECRET, algorithm="HS256")
        assert AuthService(secret=SECRET).validate_token(token)["sub"] == "user-1"


class TestRS256:
    """Test public-key tokens."""

    def test_valid_token(self, rsa_keys):
        private_key, public_pem = rsa_keys
        service = AuthService(algorithm="RS256", public_key=public_pem)
        token = jwt.encode(claims(), private_key, algorithm="RS256")

        assert service.validate_token(token)["sub"] == "user-1"

    def test_hs256_token_rejected(self, rsa_keys):
        _, public_pem = rsa_keys
        service = AuthService(algorithm="RS256", public_key=public_pem)
        token = jwt.encode(claims(), SECRET, algorithm="HS256")

        with pytest.raises(TokenValidationError):
            service.validate_token(token)


class TestConfiguration:
    """Test constructor checks."""

    def test_unsupported_algorithm(self):
        with pytest.raises(ValueError):
            AuthService(secret=SECRET, algorithm="none")

    def test_rs256_needs_public_key(self):
        with pytest.raises(ValueError):
            AuthService(algorithm="RS256")

    def test_hs256_needs_secret(self):
        with pytest.raises(ValueError):
            AuthService(secret="")

    def test_invalid_pem(self):
        with pytest.raises(ValueError, match="Invalid JWT public key"):
            AuthService(algorithm="RS256", public_key="-----BEGIN PUBLIC KEY-----\nnope\n-----END PUBLIC KEY-----")
