# SPDX-License-Identifier: Apache-2.0

"""
Permission introspection for clients deciding which screens to show.
"""

from flask import jsonify
from flask_openapi3 import APIBlueprint, Tag

from domain.permissions import ACTION_ORDER, get_role_permissions
from models.entities import UserContext
from routes.common import require_jwt

permissions_tag = Tag(name="Permissions", description="Role permissions")
permissions_bp = APIBlueprint(
    'permissions',
    __name__,
    url_prefix='/api/permissions',
    abp_tags=[permissions_tag]
)


@permissions_bp.get('/me')
@require_jwt
def get_my_permissions(user_context: UserContext):
    """The caller's role and everything it grants."""
    resources = {
        permission.resource: [action for action in ACTION_ORDER if permission.allows(action)]
        for permission in get_role_permissions(user_context.role)
    }
    return jsonify({
        "user_id": user_context.user_id,
        "role": user_context.role,
        "permissions": user_context.permissions,
        "resources": resources
    }), 200
