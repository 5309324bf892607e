# -*- coding: utf-8 -*-
# SPDX-License-Identifier: Apache-2.0

"""
Tests for middleware functionality.
"""

import pytest
from unittest.mock import Mock, MagicMock
from flask import Flask, g
from pydantic import BaseModel, Field
from werkzeug.exceptions import NotFound, ServiceUnavailable

from middleware.validation import ValidationMiddleware
from middleware.error_handler import (
    ErrorHandlerMiddleware, ValidationException, AuthenticationException, AuthorizationException,
    NotFoundException, ConflictException, build_problem, register_custom_error_handlers
)
from middleware.auth import AuthMiddleware, ensure_permission, require_auth
from models.entities import UserContext
from services.auth import TokenValidationError


class SampleModel(BaseModel):
    name: str = Field(..., min_length=1)
    count: int = Field(default=1, ge=1)


class TestValidationMiddleware:
    """Test validation middleware functionality."""

    def setup_method(self):
        """Set up test fixtures."""
        self.app = Flask(__name__)
        self.validation_middleware = ValidationMiddleware()

    def test_format_validation_errors(self):
        """Test formatting Pydantic validation errors."""
        validation_error = Mock()
        validation_error.errors.return_value = [
            {"loc": ("name",), "msg": "Field required", "type": "missing"},
            {"loc": ("plate",), "msg": "Value error, Invalid Angolan plate: X", "type": "value_error"},
        ]

        result = self.validation_middleware.format_validation_errors(validation_error)

        assert result == [
            {"field": "name", "message": "Field required", "type": "missing"},
            {"field": "plate", "message": "Invalid Angolan plate: X", "type": "value_error"},
        ]

    def test_load_json_body(self):
        with self.app.test_request_context('/', method='POST', json={"name": "x", "count": 3}):
            model = self.validation_middleware.load_json_body(SampleModel)

        assert model.name == "x"
        assert model.count == 3

    def test_load_json_body_requires_json(self):
        with self.app.test_request_context('/', method='POST', data="name=x"):
            with pytest.raises(ValidationException) as exc_info:
                self.validation_middleware.load_json_body(SampleModel)

        assert exc_info.value.validation_errors[0]["field"] == "content-type"

    def test_load_json_body_rejects_non_objects(self):
        with self.app.test_request_context('/', method='POST', json=[1, 2]):
            with pytest.raises(ValidationException, match="Invalid JSON"):
                self.validation_middleware.load_json_body(SampleModel)

    def test_load_json_body_field_errors(self):
        with self.app.test_request_context('/', method='POST', json={"name": "", "count": 0}):
            with pytest.raises(ValidationException) as exc_info:
                self.validation_middleware.load_json_body(SampleModel)

        fields = {error["field"] for error in exc_info.value.validation_errors}
        assert fields == {"name", "count"}

    def test_load_query_params(self):
        with self.app.test_request_context('/?name=abc&count=2'):
            model = self.validation_middleware.load_query_params(SampleModel)

        assert model.count == 2

    def test_load_query_params_invalid(self):
        with self.app.test_request_context('/?count=zero'):
            with pytest.raises(ValidationException):
                self.validation_middleware.load_query_params(SampleModel)


class TestErrorHandlerMiddleware:
    """Test problem response formatting."""

    def setup_method(self):
        self.app = Flask(__name__)
        self.app.config['ENVIRONMENT'] = 'test'
        ErrorHandlerMiddleware(self.app)
        register_custom_error_handlers(self.app)

        @self.app.route('/missing')
        def missing():
            raise NotFoundException("Vehicle not found")

        @self.app.route('/conflict')
        def conflict():
            raise ConflictException("Plate already registered")

        @self.app.route('/invalid')
        def invalid():
            raise ValidationException("Bad input", [{"field": "plate", "message": "x", "type": "plate_error"}])

        @self.app.route('/entity')
        def entity():
            SampleModel(name="")

        @self.app.route('/boom')
        def boom():
            raise RuntimeError("kaput")

        @self.app.route('/http')
        def http():
            raise NotFound()

        @self.app.route('/unavailable')
        def unavailable():
            raise ServiceUnavailable()

        self.client = self.app.test_client()

    def test_build_problem(self):
        problem = build_problem("resource-not-found", "Resource Not Found", 404, "x", "/api/x")

        assert problem == {
            "type": "https://api.viangola.ao/problems/resource-not-found",
            "title": "Resource Not Found",
            "status": 404,
            "detail": "x",
            "instance": "/api/x"
        }

    def test_custom_exception(self):
        response = self.client.get('/missing')

        assert response.status_code == 404
        data = response.get_json()
        assert data["type"].endswith("/resource-not-found")
        assert data["detail"] == "Vehicle not found"
        assert data["instance"] == "/missing"

    def test_conflict(self):
        response = self.client.get('/conflict')
        assert response.status_code == 409
        assert response.get_json()["title"] == "Resource Conflict"

    def test_validation_exception_carries_errors(self):
        response = self.client.get('/invalid')

        assert response.status_code == 400
        assert response.get_json()["errors"][0]["field"] == "plate"

    def test_entity_validation_error_is_400(self):
        response = self.client.get('/entity')

        assert response.status_code == 400
        data = response.get_json()
        assert data["type"].endswith("/validation-error")
        assert data["errors"][0]["field"] == "name"

    def test_unexpected_error(self):
        response = self.client.get('/boom')

        assert response.status_code == 500
        assert "RuntimeError" in response.get_json()["detail"]

    def test_unexpected_error_hidden_in_production(self):
        self.app.config['ENVIRONMENT'] = 'production'

        response = self.client.get('/boom')

        assert response.get_json()["detail"] == "An unexpected error occurred"

    def test_http_exception(self):
        response = self.client.get('/http')

        assert response.status_code == 404
        assert response.get_json()["type"].endswith("/resource-not-found")

    def test_service_unavailable(self):
        response = self.client.get('/unavailable')

        assert response.status_code == 503
        assert response.get_json()["type"].endswith("/service-unavailable")


class TestAuthMiddleware:
    """Test token handling and role resolution."""

    def setup_method(self):
        self.app = Flask(__name__)
        self.auth_service = Mock()
        self.mongodb_service = MagicMock()
        self.mongodb_service.find_by_id.return_value = None
        self.middleware = AuthMiddleware(self.auth_service, self.mongodb_service)

    def test_extract_bearer_token(self):
        with self.app.test_request_context('/', headers={'Authorization': 'Bearer abc.def'}):
            assert self.middleware.extract_token_from_request() == 'abc.def'

        with self.app.test_request_context('/'):
            assert self.middleware.extract_token_from_request() is None

    @pytest.mark.parametrize("payload,expected", [
        ({"sub": "u1", "role": "agent"}, "agent"),
        ({"sub": "u1", "role": "authenticated", "app_metadata": {"role": "operator"}}, "operator"),
    ])
    def test_resolve_role_from_claims(self, payload, expected):
        assert self.middleware.resolve_role(payload) == expected
        self.mongodb_service.find_by_id.assert_called_once_with("users", "u1")

    def test_resolve_role_from_user_record(self):
        self.mongodb_service.find_by_id.return_value = {"id": "u1", "role": "citizen"}

        assert self.middleware.resolve_role({"sub": "u1"}) == "citizen"
        self.mongodb_service.find_by_id.assert_called_once_with("users", "u1")

    def test_user_record_wins_over_claims(self):
        self.mongodb_service.find_by_id.return_value = {"id": "u1", "role": "citizen"}

        payload = {"sub": "u1", "role": "operator", "app_metadata": {"role": "operator"}}

        assert self.middleware.resolve_role(payload) == "citizen"

    def test_user_metadata_never_sets_role(self):
        payload = {"sub": "u1", "role": "authenticated", "user_metadata": {"role": "operator"}}

        assert self.middleware.resolve_role(payload) is None

    @pytest.mark.parametrize("payload", [
        {"sub": "u1", "role": ["operator"]},
        {"sub": "u1", "role": {"name": "operator"}},
        {"sub": "u1", "app_metadata": "operator"},
        {"sub": "u1", "app_metadata": ["operator"]},
        {"sub": "u1", "app_metadata": {"role": ["operator"]}},
    ])
    def test_malformed_role_claims_are_ignored(self, payload):
        assert self.middleware.resolve_role(payload) is None

    def test_malformed_stored_role_falls_back_to_claims(self):
        self.mongodb_service.find_by_id.return_value = {"id": "u1", "role": ["operator"]}

        assert self.middleware.resolve_role({"sub": "u1", "role": "agent"}) == "agent"

    def test_unknown_role(self):
        assert self.middleware.resolve_role({"sub": "u1", "role": "admin"}) is None

    def test_build_user_context(self):
        payload = {"sub": "u1", "role": "agent", "email": "a@b.ao", "user_metadata": {"name": "Ana", "badge": "PN-7"}}

        context = self.middleware.build_user_context(payload, {"ip_address": "10.0.0.1"})

        assert context.user_id == "u1"
        assert context.role == "agent"
        assert context.name == "Ana"
        assert context.badge == "PN-7"
        assert "fines:create" in context.permissions
        assert context.ip_address == "10.0.0.1"

    def test_build_user_context_without_role(self):
        with pytest.raises(AuthenticationException) as exc_info:
            self.middleware.build_user_context({"sub": "u1"}, {})

        assert exc_info.value.error_type == "unknown-role"

    def test_authenticate_missing_token(self):
        with self.app.test_request_context('/'):
            with pytest.raises(AuthenticationException, match="Missing authorization token"):
                self.middleware.authenticate()

    def test_authenticate_invalid_token(self):
        self.auth_service.validate_token.side_effect = TokenValidationError("Token has expired")

        with self.app.test_request_context('/', headers={'Authorization': 'Bearer x'}):
            with pytest.raises(AuthenticationException) as exc_info:
                self.middleware.authenticate()

        assert exc_info.value.error_type == "invalid-token"
        assert exc_info.value.status_code == 401

    def test_require_auth_passes_context(self):
        self.auth_service.validate_token.return_value = {"sub": "u1", "role": "citizen"}

        @require_auth(self.middleware)
        def view(user_context):
            return user_context

        with self.app.test_request_context('/', headers={'Authorization': 'Bearer x'}):
            context = view()
            assert g.user_context is context

        assert context.role == "citizen"

    def test_ensure_permission(self):
        citizen = UserContext(user_id="u1", role="citizen")

        ensure_permission(citizen, "vehicles", "create")
        with pytest.raises(AuthorizationException, match="Missing required permission: users:read"):
            ensure_permission(citizen, "users", "read")
