# -*- coding: utf-8 -*-
# SPDX-License-Identifier: Apache-2.0

"""
Base entity models with common fields and validation.
"""

from datetime import date, datetime
from typing import Any, Dict, Optional
from pydantic import BaseModel, Field, ConfigDict
from pydantic.alias_generators import to_camel
from bson import ObjectId


def generate_object_id() -> str:
    """Generate a new MongoDB ObjectId as string."""
    return str(ObjectId())


def to_document_key(doc_id: str) -> Any:
    """ObjectId for generated IDs; identity provider subjects are kept as strings."""
    if ObjectId.is_valid(doc_id):
        return ObjectId(doc_id)
    return doc_id


def _encode_dates(value: Any) -> Any:
    """Store calendar dates as ISO strings; BSON only knows datetimes."""
    if isinstance(value, datetime):
        return value
    if isinstance(value, date):
        return value.isoformat()
    if isinstance(value, list):
        return [_encode_dates(item) for item in value]
    if isinstance(value, dict):
        return {key: _encode_dates(item) for key, item in value.items()}
    return value


def to_storage_fields(changes: Dict[str, Any]) -> Dict[str, Any]:
    """Map snake_case field changes to stored camelCase keys."""
    return {to_camel(key): _encode_dates(value) for key, value in changes.items()}


class BaseEntity(BaseModel):
    """Base entity with common fields for all registry records."""

    model_config = ConfigDict(
        # Documents are stored with camelCase keys
        alias_generator=to_camel,
        populate_by_name=True,
        use_enum_values=True,
        validate_assignment=True,
        arbitrary_types_allowed=True
    )

    id: str = Field(default_factory=generate_object_id, description="Unique identifier")
    created_at: datetime = Field(default_factory=datetime.utcnow, description="Creation timestamp")
    updated_at: datetime = Field(default_factory=datetime.utcnow, description="Last update timestamp")
    created_by: Optional[str] = Field(None, description="User ID who created this record")
    updated_by: Optional[str] = Field(None, description="User ID who last updated this record")

    def update_timestamp(self, updated_by: str) -> None:
        """Update the timestamp and updated_by fields."""
        self.updated_at = datetime.utcnow()
        self.updated_by = updated_by

    def to_document(self) -> Dict[str, Any]:
        """Serialize to a MongoDB document keyed by ObjectId."""
        document = _encode_dates(self.model_dump(by_alias=True, exclude={"id"}))
        document["_id"] = to_document_key(self.id)
        return document

    @classmethod
    def from_document(cls, document: Dict[str, Any]):
        """Build an entity from a MongoDB document (with "_id" or "id")."""
        data = dict(document)
        if "_id" in data:
            data["id"] = str(data.pop("_id"))
        return cls.model_validate(data)

    def to_response(self) -> Dict[str, Any]:
        """Serialize for JSON responses."""
        return self.model_dump(mode="json")


class BaseEntityCreate(BaseModel):
    """Base model for record creation requests."""

    model_config = ConfigDict(
        use_enum_values=True,
        validate_assignment=True,
        extra="forbid"
    )


class BaseEntityUpdate(BaseModel):
    """Base model for record update requests."""

    model_config = ConfigDict(
        use_enum_values=True,
        validate_assignment=True,
        extra="forbid"
    )

    def changes(self) -> Dict[str, Any]:
        """Fields explicitly set on the request."""
        return self.model_dump(exclude_unset=True)
