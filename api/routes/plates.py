# SPDX-License-Identifier: Apache-2.0

"""
Plate formatting and validation for thin clients.
"""

from flask import jsonify
from flask_openapi3 import APIBlueprint, Tag

from domain.plates import canonical_plate, format_plate, normalize_plate, plate_kind
from models.entities import UserContext
from models.requests import PlateQuery
from routes.common import load_query, require_jwt

plates_tag = Tag(name="Plates", description="Angolan plate formatting")
plates_bp = APIBlueprint(
    'plates',
    __name__,
    url_prefix='/api/plates',
    abp_tags=[plates_tag]
)


@plates_bp.get('/format')
@require_jwt
def format_plate_input(user_context: UserContext):
    """Format partial plate input as the user types it."""
    query = load_query(PlateQuery)
    return jsonify({
        "value": query.value,
        "normalized": normalize_plate(query.value),
        "formatted": format_plate(query.value)
    }), 200


@plates_bp.get('/validate')
@require_jwt
def validate_plate_input(user_context: UserContext):
    """Check a complete plate and report its shape."""
    query = load_query(PlateQuery)
    kind = plate_kind(query.value)
    return jsonify({
        "value": query.value,
        "valid": kind is not None,
        "kind": kind.value if kind else None,
        "canonical": canonical_plate(query.value) if kind else None,
        "formatted": format_plate(query.value) if kind else None
    }), 200
