# -*- coding: utf-8 -*-
# SPDX-License-Identifier: Apache-2.0

"""
Integration tests for notification endpoints.
"""

from bson import ObjectId

from conftest import CITIZEN_ID, stored
from services.mongodb import NOTIFICATIONS, PaginationResult


class TestNotificationEndpoints:
    """Test notification endpoints."""

    def test_list_requires_authentication(self, client):
        assert client.get('/api/notifications').status_code == 401

    def test_list_with_unread_count(self, client, mock_mongo, auth_headers, make_notification):
        mock_mongo.paginate.side_effect = None
        mock_mongo.paginate.return_value = PaginationResult([stored(make_notification())], 1, 1, 20)
        mock_mongo.count.return_value = 3

        response = client.get('/api/notifications', headers=auth_headers("citizen"))

        assert response.status_code == 200
        data = response.get_json()
        assert data["unread"] == 3
        assert data["items"][0]["title"] == "Seguro a expirar"
        assert data["items"][0]["read"] is False
        assert mock_mongo.paginate.call_args[0][1] == {"userId": CITIZEN_ID}
        mock_mongo.count.assert_called_once_with(NOTIFICATIONS, {"userId": CITIZEN_ID, "read": False})

    def test_list_unread_only(self, client, mock_mongo, auth_headers):
        response = client.get('/api/notifications?unread_only=true', headers=auth_headers("agent"))

        assert response.status_code == 200
        assert mock_mongo.paginate.call_args[0][1]["read"] is False

    def test_mark_read(self, client, mock_mongo, auth_headers):
        notification_id = str(ObjectId())

        response = client.post(f'/api/notifications/{notification_id}/read', headers=auth_headers("citizen"))

        assert response.status_code == 200
        assert response.get_json() == {"id": notification_id, "read": True}
        args, kwargs = mock_mongo.update_by_id.call_args
        assert args[:3] == (NOTIFICATIONS, notification_id, {"read": True})
        assert kwargs["filters"] == {"userId": CITIZEN_ID}

    def test_mark_read_of_someone_else(self, client, mock_mongo, auth_headers):
        mock_mongo.update_by_id.return_value = False

        response = client.post(f'/api/notifications/{ObjectId()}/read', headers=auth_headers("citizen"))

        assert response.status_code == 404
        assert response.get_json()["detail"] == "Notification not found"

    def test_mark_all_read(self, client, mock_mongo, auth_headers):
        mock_mongo.update_many.return_value = 4

        response = client.post('/api/notifications/read-all', headers=auth_headers("citizen"))

        assert response.status_code == 200
        assert response.get_json() == {"updated": 4}
        mock_mongo.update_many.assert_called_once_with(
            NOTIFICATIONS, {"userId": CITIZEN_ID, "read": False}, {"read": True}
        )

    def test_delete(self, client, mock_mongo, auth_headers):
        notification_id = str(ObjectId())

        response = client.delete(f'/api/notifications/{notification_id}', headers=auth_headers("company"))

        assert response.status_code == 204

    def test_delete_missing(self, client, mock_mongo, auth_headers):
        mock_mongo.delete_by_id.return_value = False

        response = client.delete(f'/api/notifications/{ObjectId()}', headers=auth_headers("company"))

        assert response.status_code == 404
