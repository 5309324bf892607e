# SPDX-License-Identifier: Apache-2.0

"""
Vehicle document endpoints.

Documents carry a link to the uploaded file; the upload itself happens
against object storage before the record is created here.
"""

from flask import jsonify
from flask_openapi3 import APIBlueprint, Tag
from opentelemetry import trace
import logging
from typing import Dict, Any

from domain import scoping
from domain.expiry import expiry_status
from middleware.error_handler import NotFoundException
from models.entities import Document, UserContext
from models.requests import CreateDocumentRequest, DocumentFilters, UpdateDocumentRequest
from services.mongodb import DOCUMENTS, VEHICLES
from routes.common import (
    PlatePath, RecordPath, get_entity, insert_entity, load_body, load_query, merge_filters,
    mongo, paginated, permission_required, require_jwt, require_plate, save_entity
)

logger = logging.getLogger(__name__)
tracer = trace.get_tracer(__name__)

documents_tag = Tag(name="Documents", description="Vehicle documents")
documents_bp = APIBlueprint(
    'documents',
    __name__,
    url_prefix='/api/documents',
    abp_tags=[documents_tag]
)


def document_response(document: Document) -> Dict[str, Any]:
    """Document JSON with the status derived from its expiry date."""
    data = document.to_response()
    data["status"] = expiry_status(document.expiry_date)
    return data


def _load_accessible(user_context: UserContext, record_id: str) -> Document:
    document = get_entity(DOCUMENTS, record_id, Document, "Document")
    if not scoping.can_access_record(user_context, document):
        raise NotFoundException("Document not found")
    return document


@documents_bp.get('')
@require_jwt
@permission_required('documents', 'read')
def list_documents(user_context: UserContext):
    """List documents visible to the caller, optionally by type or plate."""
    filters = load_query(DocumentFilters)

    with tracer.start_as_current_span(
        "documents.list",
        attributes={"user.id": user_context.user_id, "user.role": user_context.role}
    ) as span:
        query = merge_filters(
            scoping.document_filter(user_context),
            {"type": filters.type} if filters.type else None,
            {"vehiclePlate": filters.plate} if filters.plate else None
        )
        result = mongo().paginate(DOCUMENTS, query, filters.page, filters.page_size)

        span.set_attribute("documents.total", result.total)
        return jsonify(paginated(result, Document, document_response)), 200


@documents_bp.get('/by-vehicle/<plate>')
@require_jwt
@permission_required('documents', 'read')
def list_vehicle_documents(user_context: UserContext, path: PlatePath):
    """All documents attached to a vehicle."""
    plate = require_plate(path.plate)
    query = merge_filters(scoping.document_filter(user_context), {"vehiclePlate": plate})

    documents = [
        document_response(Document.from_document(document))
        for document in mongo().find(DOCUMENTS, query)
    ]
    return jsonify({"items": documents, "total": len(documents)}), 200


@documents_bp.get('/<record_id>')
@require_jwt
@permission_required('documents', 'read')
def get_document(user_context: UserContext, path: RecordPath):
    """Get a document by ID."""
    return jsonify(document_response(_load_accessible(user_context, path.record_id))), 200


@documents_bp.post('')
@require_jwt
@permission_required('documents', 'create')
def create_document(user_context: UserContext):
    """Attach a document to a vehicle the caller can see. The document belongs to the vehicle owner."""
    body = load_body(CreateDocumentRequest)

    vehicle = mongo().find_one(
        VEHICLES,
        merge_filters(scoping.vehicle_filter(user_context), {"plate": body.vehicle_plate})
    )
    if vehicle is None:
        raise NotFoundException(f"No vehicle registered with plate {body.vehicle_plate}")

    document = Document(**body.model_dump(), owner_id=vehicle["ownerId"],
                        status=expiry_status(body.expiry_date),
                        created_by=user_context.user_id, updated_by=user_context.user_id)
    insert_entity(DOCUMENTS, document, user_context.user_id, "Document already exists")

    logger.info(
        "Document registered",
        extra={
            "document_id": document.id,
            "document_type": document.type,
            "plate": document.vehicle_plate,
            "user_id": user_context.user_id
        }
    )
    return jsonify(document_response(document)), 201


@documents_bp.put('/<record_id>')
@require_jwt
@permission_required('documents', 'update')
def update_document(user_context: UserContext, path: RecordPath):
    """Update a document's metadata."""
    body = load_body(UpdateDocumentRequest)
    document = _load_accessible(user_context, path.record_id)

    changes = body.changes()
    updated = Document.model_validate({**document.model_dump(), **changes})
    updated.update_timestamp(user_context.user_id)
    save_entity(DOCUMENTS, updated, user_context.user_id)

    logger.info(
        "Document updated",
        extra={"document_id": updated.id, "fields": sorted(changes), "user_id": user_context.user_id}
    )
    return jsonify(document_response(updated)), 200


@documents_bp.delete('/<record_id>')
@require_jwt
@permission_required('documents', 'delete')
def delete_document(user_context: UserContext, path: RecordPath):
    """Remove a document."""
    document = _load_accessible(user_context, path.record_id)
    mongo().delete_by_id(DOCUMENTS, document.id)

    logger.warning(
        "Document deleted",
        extra={"document_id": document.id, "user_id": user_context.user_id}
    )
    return '', 204
