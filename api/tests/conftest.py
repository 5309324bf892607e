# -*- coding: utf-8 -*-
# SPDX-License-Identifier: Apache-2.0

"""
Pytest configuration and fixtures.

Endpoint tests run against the real Flask app with the MongoDB service
replaced by a MagicMock; bearer tokens are minted with the app's HS256
secret.
"""

import os
import pytest
import jwt
from datetime import date, datetime, timedelta, timezone
from typing import Any, Dict
from unittest.mock import MagicMock
from bson import ObjectId

# Set test environment before the app module is imported
os.environ['ENVIRONMENT'] = 'test'
os.environ['OTEL_ENABLED'] = 'false'
os.environ['JWT_SECRET'] = 'viangola-test-secret-key-0123456789abcdef'
os.environ['JWT_ALGORITHM'] = 'HS256'
os.environ['MONGODB_DATABASE'] = 'viangola_test'

from models.entities import Document, Driver, Fine, Notification, User, Vehicle
from services.mongodb import PaginationResult

OPERATOR_ID = str(ObjectId())
AGENT_ID = str(ObjectId())
CITIZEN_ID = str(ObjectId())
COMPANY_ID = str(ObjectId())

USER_IDS = {
    "operator": OPERATOR_ID,
    "agent": AGENT_ID,
    "citizen": CITIZEN_ID,
    "company": COMPANY_ID,
}


def stored(entity) -> Dict[str, Any]:
    """An entity as the MongoDB service returns it (camelCase keys, string "id")."""
    document = entity.to_document()
    document["id"] = str(document.pop("_id"))
    return document


def make_token(user_id: str, role: str = None, expires_in: int = 3600, **claims) -> str:
    """Mint an HS256 token signed with the test secret."""
    payload = {
        "sub": user_id,
        "exp": datetime.now(timezone.utc) + timedelta(seconds=expires_in),
        "iat": datetime.now(timezone.utc),
        **claims
    }
    if role:
        payload["role"] = role
    return jwt.encode(payload, os.environ['JWT_SECRET'], algorithm="HS256")


@pytest.fixture
def flask_app():
    """The application under test."""
    from app import app
    app.config['TESTING'] = True
    return app


@pytest.fixture
def mock_mongo(flask_app, monkeypatch):
    """MongoDB service mock with empty-registry defaults."""
    mock = MagicMock()
    mock.paginate.side_effect = lambda collection, filters=None, page=1, page_size=20, **kwargs: (
        PaginationResult([], 0, page, page_size)
    )
    mock.find.return_value = []
    mock.find_one.return_value = None
    mock.find_by_id.return_value = None
    mock.distinct.return_value = []
    mock.count.return_value = 0
    mock.update_by_id.return_value = True
    mock.update_many.return_value = 0
    mock.delete_by_id.return_value = True
    mock.create.side_effect = lambda collection, document, user_id: str(document["_id"])
    mock.health_check.return_value = {"status": "healthy", "ping": True, "database": "viangola_test"}

    monkeypatch.setattr(flask_app, 'mongodb_service', mock)
    monkeypatch.setattr(flask_app.auth_middleware, 'mongodb_service', mock)
    return mock


@pytest.fixture
def client(flask_app, mock_mongo):
    """Create test client."""
    with flask_app.test_client() as client:
        yield client


@pytest.fixture
def auth_headers():
    """Factory for bearer headers of a given role."""
    def _headers(role: str, user_id: str = None, **claims) -> Dict[str, str]:
        token = make_token(user_id or USER_IDS[role], role, **claims)
        return {
            'Authorization': f'Bearer {token}',
            'Content-Type': 'application/json'
        }
    return _headers


@pytest.fixture
def today():
    """Fixed reference date for expiry calculations."""
    return date(2025, 6, 15)


@pytest.fixture
def make_vehicle():
    def _make(owner_id: str = CITIZEN_ID, **overrides) -> Vehicle:
        data = {
            "plate": "LD-35-87-IA",
            "brand": "Toyota",
            "model": "Hilux",
            "year": 2020,
            "color": "Branco",
            "owner_id": owner_id,
        }
        data.update(overrides)
        return Vehicle(**data)
    return _make


@pytest.fixture
def make_driver():
    def _make(owner_id: str = CITIZEN_ID, **overrides) -> Driver:
        data = {
            "name": "João Manuel",
            "license_number": "LA-123456",
            "categories": ["B"],
            "issue_date": date(2020, 3, 1),
            "expiry_date": date(2030, 3, 1),
            "birth_date": date(1990, 5, 20),
            "owner_id": owner_id,
        }
        data.update(overrides)
        return Driver(**data)
    return _make


@pytest.fixture
def make_document():
    def _make(owner_id: str = CITIZEN_ID, **overrides) -> Document:
        data = {
            "type": "Seguro",
            "vehicle_plate": "LD3587IA",
            "file_name": "seguro.pdf",
            "file_url": "https://storage.example.ao/seguro.pdf",
            "expiry_date": date(2030, 1, 1),
            "owner_id": owner_id,
        }
        data.update(overrides)
        return Document(**data)
    return _make


@pytest.fixture
def make_fine():
    def _make(**overrides) -> Fine:
        data = {
            "type": "Excesso de velocidade",
            "vehicle_plate": "LD-35-87-IA",
            "driver_name": "João Manuel",
            "driver_license": "LA-123456",
            "amount": 25000.0,
            "points": 3,
            "location": "Av. 4 de Fevereiro, Luanda",
            "date": date(2025, 6, 1),
            "time": "14:30",
            "agent_id": AGENT_ID,
            "created_by": AGENT_ID,
        }
        data.update(overrides)
        return Fine(**data)
    return _make


@pytest.fixture
def make_user():
    def _make(**overrides) -> User:
        data = {
            "id": CITIZEN_ID,
            "email": "cidadao@example.ao",
            "name": "Maria Santos",
            "role": "citizen",
        }
        data.update(overrides)
        return User(**data)
    return _make


@pytest.fixture
def make_notification():
    def _make(**overrides) -> Notification:
        data = {
            "user_id": CITIZEN_ID,
            "type": "expiry",
            "title": "Seguro a expirar",
            "description": "O seguro do veículo LD-35-87-IA expira em 10 dias",
            "vehicle_plate": "LD3587IA",
        }
        data.update(overrides)
        return Notification(**data)
    return _make
