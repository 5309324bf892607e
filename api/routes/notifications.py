# SPDX-License-Identifier: Apache-2.0

"""
In-app notification endpoints. Every caller only ever sees their own.
"""

from flask import jsonify
from flask_openapi3 import APIBlueprint, Tag
from opentelemetry import trace
import logging

from domain import scoping
from middleware.error_handler import NotFoundException
from models.entities import Notification, UserContext
from models.requests import NotificationFilters
from services.mongodb import NOTIFICATIONS
from routes.common import RecordPath, load_query, mongo, paginated, require_jwt

logger = logging.getLogger(__name__)
tracer = trace.get_tracer(__name__)

notifications_tag = Tag(name="Notifications", description="In-app notifications")
notifications_bp = APIBlueprint(
    'notifications',
    __name__,
    url_prefix='/api/notifications',
    abp_tags=[notifications_tag]
)


@notifications_bp.get('')
@require_jwt
def list_notifications(user_context: UserContext):
    """List the caller's notifications, newest first."""
    filters = load_query(NotificationFilters)

    with tracer.start_as_current_span("notifications.list", attributes={"user.id": user_context.user_id}):
        query = scoping.notification_filter(user_context, filters.unread_only)
        result = mongo().paginate(NOTIFICATIONS, query, filters.page, filters.page_size)

        response = paginated(result, Notification)
        response["unread"] = mongo().count(
            NOTIFICATIONS, scoping.notification_filter(user_context, unread_only=True)
        )
        return jsonify(response), 200


@notifications_bp.post('/<record_id>/read')
@require_jwt
def mark_notification_read(user_context: UserContext, path: RecordPath):
    """Mark one notification as read."""
    updated = mongo().update_by_id(
        NOTIFICATIONS,
        path.record_id,
        {"read": True},
        user_context.user_id,
        filters=scoping.notification_filter(user_context)
    )
    if not updated:
        raise NotFoundException("Notification not found")
    return jsonify({"id": path.record_id, "read": True}), 200


@notifications_bp.post('/read-all')
@require_jwt
def mark_all_notifications_read(user_context: UserContext):
    """Mark every unread notification of the caller as read."""
    count = mongo().update_many(
        NOTIFICATIONS,
        scoping.notification_filter(user_context, unread_only=True),
        {"read": True}
    )

    logger.info("Notifications marked as read", extra={"user_id": user_context.user_id, "count": count})
    return jsonify({"updated": count}), 200


@notifications_bp.delete('/<record_id>')
@require_jwt
def delete_notification(user_context: UserContext, path: RecordPath):
    """Delete one of the caller's notifications."""
    deleted = mongo().delete_by_id(
        NOTIFICATIONS,
        path.record_id,
        filters=scoping.notification_filter(user_context)
    )
    if not deleted:
        raise NotFoundException("Notification not found")
    return '', 204
