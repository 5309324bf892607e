# SPDX-License-Identifier: Apache-2.0

"""
Shared helpers for the registry endpoints: authentication decorators,
path models, request loading and persistence shortcuts.
"""

from functools import wraps
from typing import Any, Dict, List, Optional, Type, TypeVar

from flask import current_app
from pydantic import BaseModel, Field

from domain.plates import canonical_plate, validate_plate
from middleware.auth import require_auth, ensure_permission
from middleware.error_handler import ConflictException, NotFoundException, ValidationException
from models.base import BaseEntity
from models.entities import UserContext
from services.mongodb import DRIVERS, VEHICLES, DuplicateRecordError, MongoDBService, PaginationResult

EntityT = TypeVar("EntityT", bound=BaseEntity)
ModelT = TypeVar("ModelT", bound=BaseModel)


class RecordPath(BaseModel):
    record_id: str = Field(..., description="Record ID")


class PlatePath(BaseModel):
    plate: str = Field(..., description="Vehicle plate, hyphenated or not")


class LicensePath(BaseModel):
    license_number: str = Field(..., description="Driving licence number")


def require_jwt(f):
    """Require a valid bearer token; the route receives the UserContext first."""
    @wraps(f)
    def decorated_function(*args, **kwargs):
        auth_middleware = current_app.auth_middleware
        return require_auth(auth_middleware)(f)(*args, **kwargs)
    return decorated_function


def permission_required(resource: str, action: str):
    """Require a resource/action permission from the role table. Use below require_jwt."""
    def decorator(f):
        @wraps(f)
        def decorated_function(user_context: UserContext, *args, **kwargs):
            ensure_permission(user_context, resource, action)
            return f(user_context, *args, **kwargs)
        return decorated_function
    return decorator


def mongo() -> MongoDBService:
    return current_app.mongodb_service


def load_body(model_class: Type[ModelT]) -> ModelT:
    return current_app.validation_middleware.load_json_body(model_class)


def load_query(model_class: Type[ModelT]) -> ModelT:
    return current_app.validation_middleware.load_query_params(model_class)


def require_plate(value: str) -> str:
    """Canonical plate from a path or query value, or a 400."""
    if not validate_plate(value):
        raise ValidationException(
            f"Invalid Angolan plate: {value}",
            [{"field": "plate", "message": "Invalid Angolan plate", "type": "plate_error"}]
        )
    return canonical_plate(value)


def get_entity(collection: str, record_id: str, entity_class: Type[EntityT], label: str) -> EntityT:
    """Load a record by ID or raise NotFoundException."""
    document = mongo().find_by_id(collection, record_id)
    if document is None:
        raise NotFoundException(f"{label} not found")
    return entity_class.from_document(document)


def insert_entity(collection: str, entity: BaseEntity, user_id: str, conflict_message: str) -> str:
    """Insert a new entity, mapping unique index violations to 409."""
    try:
        return mongo().create(collection, entity.to_document(), user_id)
    except DuplicateRecordError:
        raise ConflictException(conflict_message)


def save_entity(collection: str, entity: BaseEntity, user_id: str, conflict_message: str = "Record conflict") -> None:
    """Overwrite the stored fields of an existing entity."""
    document = entity.to_document()
    document.pop("_id")
    try:
        updated = mongo().update_by_id(collection, entity.id, document, user_id)
    except DuplicateRecordError:
        raise ConflictException(conflict_message)
    if not updated:
        raise NotFoundException("Record not found")


def paginated(result: PaginationResult, entity_class: Type[BaseEntity], serializer=None) -> Dict[str, Any]:
    """Serialize a page of stored documents through their entity model."""
    serialize = serializer or (lambda entity: entity.to_response())
    items = [serialize(entity_class.from_document(document)) for document in result.items]
    return result.to_dict(items)


def empty_page(page: int, page_size: int) -> Dict[str, Any]:
    return PaginationResult([], 0, page, page_size).to_dict()


def owned_plates(user_id: str) -> List[str]:
    """Plates of the vehicles a user owns."""
    return mongo().distinct(VEHICLES, "plate", {"ownerId": user_id})


def owned_licenses(user_id: str) -> List[str]:
    """Licence numbers of the driver records a user owns."""
    return mongo().distinct(DRIVERS, "licenseNumber", {"ownerId": user_id})


def merge_filters(*filters: Optional[Dict[str, Any]]) -> Dict[str, Any]:
    """AND together non-empty filters."""
    clauses = [f for f in filters if f]
    if not clauses:
        return {}
    if len(clauses) == 1:
        return dict(clauses[0])
    return {"$and": clauses}
