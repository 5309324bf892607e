# SPDX-License-Identifier: Apache-2.0

"""
Integration tests for search, reports, plate helpers, permissions and health.
"""

import logging
from datetime import date, datetime, timedelta

from conftest import COMPANY_ID, stored
from services.mongodb import DOCUMENTS, DRIVERS, FINES, VEHICLES


class TestSearch:
    """Test registry search."""

    def test_plate_search_matches_canonical_form(self, client, mock_mongo, auth_headers, make_vehicle):
        mock_mongo.find.side_effect = lambda collection, filters=None, **kwargs: (
            [stored(make_vehicle())] if collection == VEHICLES else []
        )

        response = client.get('/api/search?q=LD-35-87&type=vehicles&limit=5', headers=auth_headers("agent"))

        assert response.status_code == 200
        data = response.get_json()
        assert data["query"] == "LD-35-87"
        assert data["total"] == 1
        assert list(data["results"]) == ["vehicles"]
        assert data["results"]["vehicles"][0]["plate_display"] == "LD-35-87-IA"

        args, kwargs = mock_mongo.find.call_args
        assert args[0] == VEHICLES
        assert {"plate": {"$regex": "LD3587", "$options": "i"}} in args[1]["$or"]
        assert kwargs["limit"] == 5

    def test_all_resources_grouped(self, client, mock_mongo, auth_headers):
        response = client.get('/api/search?q=Manuel', headers=auth_headers("operator"))

        assert response.status_code == 200
        assert response.get_json()["results"] == {"vehicles": [], "drivers": [], "fines": []}
        assert [c[0][0] for c in mock_mongo.find.call_args_list] == [VEHICLES, DRIVERS, FINES]

    def test_empty_term_rejected(self, client, auth_headers):
        assert client.get('/api/search?q=', headers=auth_headers("agent")).status_code == 400

    def test_owners_cannot_search(self, client, auth_headers):
        assert client.get('/api/search?q=LD', headers=auth_headers("citizen")).status_code == 403
        assert client.get('/api/search?q=LD', headers=auth_headers("company")).status_code == 403


class TestReports:
    """Test the summary report."""

    def test_operator_summary(self, client, mock_mongo, auth_headers, make_fine, make_vehicle):
        def find(collection, filters=None, **kwargs):
            if collection == FINES:
                return [
                    stored(make_fine(amount=1000)),
                    stored(make_fine(amount=500, status="paid", payment_date=datetime(2025, 6, 2))),
                    stored(make_fine(amount=900, status="cancelled")),
                ]
            if collection == VEHICLES:
                return [stored(make_vehicle())]
            return []
        mock_mongo.find.side_effect = find

        response = client.get('/api/reports/summary', headers=auth_headers("operator"))

        assert response.status_code == 200
        data = response.get_json()
        assert data["vehicles_registered"] == 1
        assert data["fines_applied"] == 2
        assert data["pending_fines"] == 1
        assert data["pending_amount"] == 1000
        assert data["paid_amount"] == 500
        assert data["period"] == "all"
        assert data["generated_at"] == date.today().isoformat()

    def test_period_limits_by_creation_date(self, client, mock_mongo, auth_headers):
        response = client.get('/api/reports/summary?period=week', headers=auth_headers("operator"))

        assert response.status_code == 200
        assert response.get_json()["period"] == "week"
        start = date.today() - timedelta(days=7)
        for call in mock_mongo.find.call_args_list:
            assert call[0][1] == {"createdAt": {"$gte": datetime(start.year, start.month, start.day)}}

    def test_unknown_period(self, client, auth_headers):
        assert client.get('/api/reports/summary?period=decade', headers=auth_headers("operator")).status_code == 400

    def test_company_report_is_scoped(self, client, mock_mongo, auth_headers):
        response = client.get('/api/reports/summary', headers=auth_headers("company"))

        assert response.status_code == 200
        assert response.get_json()["fines_applied"] == 0
        calls = [(c[0][0], c[0][1]) for c in mock_mongo.find.call_args_list]
        assert calls == [
            (VEHICLES, {"ownerId": COMPANY_ID}),
            (DRIVERS, {"ownerId": COMPANY_ID}),
            (DOCUMENTS, {"ownerId": COMPANY_ID}),
        ]

    def test_citizens_have_no_reports(self, client, auth_headers):
        assert client.get('/api/reports/summary', headers=auth_headers("citizen")).status_code == 403


class TestPlates:
    """Test plate helpers for clients."""

    def test_format_partial_input(self, client, auth_headers):
        response = client.get('/api/plates/format?value=ld3587', headers=auth_headers("citizen"))

        assert response.status_code == 200
        assert response.get_json() == {"value": "ld3587", "normalized": "LD3587", "formatted": "LD-35-87"}

    def test_format_empty_input(self, client, auth_headers):
        response = client.get('/api/plates/format', headers=auth_headers("citizen"))
        assert response.get_json()["formatted"] == ""

    def test_validate_long_plate(self, client, auth_headers):
        response = client.get('/api/plates/validate?value=lda1234ab', headers=auth_headers("agent"))

        assert response.get_json() == {
            "value": "lda1234ab",
            "valid": True,
            "kind": "long",
            "canonical": "LDA1234AB",
            "formatted": "LDA-12-34-AB"
        }

    def test_validate_invalid_plate(self, client, auth_headers):
        data = client.get('/api/plates/validate?value=AB-12-34-CD', headers=auth_headers("agent")).get_json()

        assert data["valid"] is False
        assert data["kind"] is None
        assert data["canonical"] is None

    def test_requires_authentication(self, client):
        assert client.get('/api/plates/format?value=LD').status_code == 401


class TestPermissionsAndHealth:
    """Test permission introspection and the health endpoint."""

    def test_my_permissions(self, client, auth_headers):
        response = client.get('/api/permissions/me', headers=auth_headers("citizen"))

        assert response.status_code == 200
        data = response.get_json()
        assert data["role"] == "citizen"
        assert data["resources"]["vehicles"] == ["create", "read", "update"]
        assert data["resources"]["profile"] == ["read", "update"]
        assert "users" not in data["resources"]
        assert "fines:read" in data["permissions"]

    def test_agent_permissions(self, client, auth_headers):
        data = client.get('/api/permissions/me', headers=auth_headers("agent")).get_json()

        assert data["resources"]["fines"] == ["create", "read", "update"]
        assert data["resources"]["search"] == ["read"]

    def test_health(self, client, mock_mongo):
        response = client.get('/api/healthz')

        assert response.status_code == 200
        data = response.get_json()
        assert data["status"] == "healthy"
        assert data["service"] == "viangola-api"
        assert data["dependencies"]["mongodb"]["ping"] is True

    def test_health_degraded(self, client, mock_mongo):
        mock_mongo.health_check.return_value = {"status": "unhealthy", "error": "timeout", "database": "viangola_test"}

        response = client.get('/api/healthz')

        assert response.status_code == 503
        assert response.get_json()["status"] == "unhealthy"


class TestRequestLogging:
    """Test the per-request log line."""

    def test_logs_caller_identity(self, client, auth_headers, caplog):
        with caplog.at_level(logging.INFO, logger="observability.middleware"):
            client.get('/api/permissions/me', headers=auth_headers("agent"))

        record = [r for r in caplog.records if r.getMessage() == "HTTP request completed"][-1]
        assert record.path == "/api/permissions/me"
        assert record.status_code == 200
        assert record.role == "agent"
        assert record.duration_ms >= 0

    def test_anonymous_request(self, client, caplog):
        with caplog.at_level(logging.INFO, logger="observability.middleware"):
            client.get('/api/healthz')

        record = [r for r in caplog.records if r.getMessage() == "HTTP request completed"][-1]
        assert record.user_id is None
        assert record.role is None
