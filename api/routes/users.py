# SPDX-License-Identifier: Apache-2.0

"""
User administration and self-service profile endpoints.
"""

from flask import jsonify
from flask_openapi3 import APIBlueprint, Tag
from opentelemetry import trace
import logging

from domain.permissions import has_permission
from middleware.auth import ensure_permission
from middleware.error_handler import NotFoundException
from models.entities import User, UserContext
from models.requests import CreateUserRequest, UpdateProfileRequest, UpdateUserRequest, UserFilters
from services.mongodb import USERS
from routes.common import (
    RecordPath, get_entity, insert_entity, load_body, load_query, merge_filters,
    mongo, paginated, permission_required, require_jwt, save_entity
)

logger = logging.getLogger(__name__)
tracer = trace.get_tracer(__name__)

users_tag = Tag(name="Users", description="User administration and profiles")
users_bp = APIBlueprint(
    'users',
    __name__,
    url_prefix='/api/users',
    abp_tags=[users_tag]
)


def _own_record(user_context: UserContext) -> User:
    document = mongo().find_by_id(USERS, user_context.user_id)
    if document is None:
        raise NotFoundException("No profile registered for this user")
    return User.from_document(document)


@users_bp.get('/me')
@require_jwt
def get_profile(user_context: UserContext):
    """The caller's own user record, with their role's permissions."""
    user = _own_record(user_context)
    data = user.to_response()
    data["permissions"] = user_context.permissions
    return jsonify(data), 200


@users_bp.put('/me')
@require_jwt
def update_profile(user_context: UserContext):
    """
    Edit the caller's own profile.

    Citizens edit through the profile permission, operators through their
    user administration rights.
    """
    if not has_permission(user_context.role, 'users', 'update'):
        ensure_permission(user_context, 'profile', 'update')

    body = load_body(UpdateProfileRequest)
    user = _own_record(user_context)

    changes = body.changes()
    updated = User.model_validate({**user.model_dump(), **changes})
    updated.update_timestamp(user_context.user_id)
    save_entity(USERS, updated, user_context.user_id)

    logger.info("Profile updated", extra={"user_id": user_context.user_id, "fields": sorted(changes)})
    return jsonify(updated.to_response()), 200


@users_bp.get('')
@require_jwt
@permission_required('users', 'read')
def list_users(user_context: UserContext):
    """List registered users."""
    filters = load_query(UserFilters)

    with tracer.start_as_current_span("users.list", attributes={"user.id": user_context.user_id}) as span:
        query = merge_filters({"role": filters.role} if filters.role else None)
        result = mongo().paginate(USERS, query, filters.page, filters.page_size)

        span.set_attribute("users.total", result.total)
        return jsonify(paginated(result, User)), 200


@users_bp.get('/<record_id>')
@require_jwt
@permission_required('users', 'read')
def get_user(user_context: UserContext, path: RecordPath):
    """Get a user by ID."""
    return jsonify(get_entity(USERS, path.record_id, User, "User").to_response()), 200


@users_bp.post('')
@require_jwt
@permission_required('users', 'create')
def create_user(user_context: UserContext):
    """
    Create a user record.

    The ID should be the identity backend's subject so that the record
    matches the caller's tokens; a new ID is generated otherwise.
    """
    body = load_body(CreateUserRequest)

    data = body.model_dump(exclude_none=True)
    user = User(**data, created_by=user_context.user_id, updated_by=user_context.user_id)
    insert_entity(USERS, user, user_context.user_id, f"A user with email {user.email} already exists")

    logger.info(
        "User created",
        extra={"created_user_id": user.id, "role": user.role, "user_id": user_context.user_id}
    )
    return jsonify(user.to_response()), 201


@users_bp.put('/<record_id>')
@require_jwt
@permission_required('users', 'update')
def update_user(user_context: UserContext, path: RecordPath):
    """Administrative edit of a user record."""
    body = load_body(UpdateUserRequest)
    user = get_entity(USERS, path.record_id, User, "User")

    changes = body.changes()
    updated = User.model_validate({**user.model_dump(), **changes})
    updated.update_timestamp(user_context.user_id)
    save_entity(USERS, updated, user_context.user_id)

    logger.info(
        "User updated",
        extra={"updated_user_id": updated.id, "fields": sorted(changes), "user_id": user_context.user_id}
    )
    return jsonify(updated.to_response()), 200


@users_bp.delete('/<record_id>')
@require_jwt
@permission_required('users', 'delete')
def delete_user(user_context: UserContext, path: RecordPath):
    """Remove a user record."""
    user = get_entity(USERS, path.record_id, User, "User")
    mongo().delete_by_id(USERS, user.id)

    logger.warning("User deleted", extra={"deleted_user_id": user.id, "user_id": user_context.user_id})
    return '', 204
