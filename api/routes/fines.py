# SPDX-License-Identifier: Apache-2.0

"""
Traffic fine endpoints.

This module implements fine listing, application by agents, corrections,
and the payment / contest / cancellation workflow. Status changes only go
through the workflow endpoints.
"""

from flask import jsonify
from flask_openapi3 import APIBlueprint, Tag
from opentelemetry import trace
from opentelemetry.trace import Status, StatusCode
import logging
from typing import List, Tuple

from domain import fines as fine_domain
from domain import scoping
from middleware.error_handler import ConflictException, NotFoundException
from models.entities import Fine, UserContext
from models.enums import FineStatus
from models.requests import (
    ContestFineRequest, CreateFineRequest, FineFilters, PendingFinesQuery, UpdateFineRequest
)
from services.mongodb import FINES, NOTIFICATIONS, VEHICLES
from routes.common import (
    RecordPath, empty_page, get_entity, insert_entity, load_body, load_query, merge_filters,
    mongo, owned_licenses, owned_plates, paginated, permission_required, require_jwt, save_entity
)

logger = logging.getLogger(__name__)
tracer = trace.get_tracer(__name__)

fines_tag = Tag(name="Fines", description="Traffic fines and payment workflow")
fines_bp = APIBlueprint(
    'fines',
    __name__,
    url_prefix='/api/fines',
    abp_tags=[fines_tag]
)

EDITABLE_STATUSES = (FineStatus.PENDING.value, FineStatus.CONTESTED.value)


def _ownership(user_context: UserContext) -> Tuple[List[str], List[str]]:
    """Licence numbers and plates through which a caller sees fines."""
    if scoping.is_staff(user_context):
        return [], []
    return owned_licenses(user_context.user_id), owned_plates(user_context.user_id)


def _load_accessible(user_context: UserContext, record_id: str) -> Fine:
    fine = get_entity(FINES, record_id, Fine, "Fine")
    licenses, plates = _ownership(user_context)
    if not scoping.can_access_fine(user_context, fine, licenses, plates):
        raise NotFoundException("Fine not found")
    return fine


def _apply_workflow(user_context: UserContext, fine: Fine, result: fine_domain.WorkflowResult, operation: str):
    """Persist a successful workflow result or report why it failed."""
    with tracer.start_as_current_span(
        f"fines.{operation}",
        attributes={"fine.id": fine.id, "fine.status": fine.status, "user.id": user_context.user_id}
    ) as span:
        if not result.success:
            span.set_status(Status(StatusCode.ERROR, result.error_message))
            logger.warning(
                f"Fine {operation} rejected",
                extra={
                    "fine_id": fine.id,
                    "status": fine.status,
                    "errors": result.validation_errors,
                    "user_id": user_context.user_id
                }
            )
            detail = "; ".join(result.validation_errors) or result.error_message
            raise ConflictException(f"{result.error_message}: {detail}")

        save_entity(FINES, result.fine, user_context.user_id)

        logger.info(
            f"Fine {operation} completed",
            extra={
                "fine_id": fine.id,
                "previous_status": fine.status,
                "status": result.fine.status,
                "user_id": user_context.user_id
            }
        )
        span.set_status(Status(StatusCode.OK))
        return jsonify(result.fine.to_response()), 200


@fines_bp.get('')
@require_jwt
@permission_required('fines', 'read')
def list_fines(user_context: UserContext):
    """
    List fines visible to the caller.

    Citizens and companies see the fines raised against the vehicles and
    driving licences they own.
    """
    filters = load_query(FineFilters)

    with tracer.start_as_current_span(
        "fines.list",
        attributes={"user.id": user_context.user_id, "user.role": user_context.role}
    ) as span:
        licenses, plates = _ownership(user_context)
        scope = scoping.fine_filter(user_context, licenses, plates)
        if scope is None:
            span.set_attribute("fines.total", 0)
            return jsonify(empty_page(filters.page, filters.page_size)), 200

        query = merge_filters(scope, {"status": filters.status} if filters.status else None)
        result = mongo().paginate(FINES, query, filters.page, filters.page_size, sort_by="date")

        span.set_attribute("fines.total", result.total)
        return jsonify(paginated(result, Fine)), 200


@fines_bp.get('/pending')
@require_jwt
@permission_required('fines', 'read')
def list_pending_fines(user_context: UserContext):
    """Pending fines for a plate and/or a licence number."""
    criteria = load_query(PendingFinesQuery)

    licenses, plates = _ownership(user_context)
    scope = scoping.fine_filter(user_context, licenses, plates)
    if scope is None:
        return jsonify({"items": [], "total": 0, "total_amount": 0.0}), 200

    query = merge_filters(scope, scoping.pending_fines_filter(criteria.plate, criteria.license))
    fines = [Fine.from_document(document) for document in mongo().find(FINES, query, sort_by="date")]

    return jsonify({
        "items": [fine.to_response() for fine in fines],
        "total": len(fines),
        "total_amount": sum(fine.amount for fine in fines)
    }), 200


@fines_bp.get('/<record_id>')
@require_jwt
@permission_required('fines', 'read')
def get_fine(user_context: UserContext, path: RecordPath):
    """Get a fine by ID."""
    return jsonify(_load_accessible(user_context, path.record_id).to_response()), 200


@fines_bp.post('')
@require_jwt
@permission_required('fines', 'create')
def create_fine(user_context: UserContext):
    """
    Apply a fine.

    The issuing agent is recorded from the caller. When the plate belongs to
    a registered vehicle, its owner receives an in-app notification.
    """
    body = load_body(CreateFineRequest)

    with tracer.start_as_current_span(
        "fines.create",
        attributes={"user.id": user_context.user_id, "vehicle.plate": body.vehicle_plate}
    ) as span:
        fine = Fine(
            **body.model_dump(),
            agent_id=user_context.user_id,
            agent_name=user_context.name,
            agent_badge=user_context.badge,
            created_by=user_context.user_id,
            updated_by=user_context.user_id
        )
        insert_entity(FINES, fine, user_context.user_id, "Fine already exists")

        vehicle = mongo().find_one(VEHICLES, {"plate": fine.vehicle_plate})
        if vehicle is not None:
            notification = fine_domain.build_fine_notification(fine, vehicle["ownerId"])
            insert_entity(NOTIFICATIONS, notification, user_context.user_id, "Notification already exists")
            span.set_attribute("fine.owner_notified", True)

        logger.info(
            "Fine applied",
            extra={
                "fine_id": fine.id,
                "plate": fine.vehicle_plate,
                "driver_license": fine.driver_license,
                "amount": fine.amount,
                "owner_notified": vehicle is not None,
                "user_id": user_context.user_id
            }
        )

        span.set_status(Status(StatusCode.OK))
        return jsonify(fine.to_response()), 201


@fines_bp.put('/<record_id>')
@require_jwt
@permission_required('fines', 'update')
def update_fine(user_context: UserContext, path: RecordPath):
    """Correct the details of an open fine."""
    body = load_body(UpdateFineRequest)
    fine = _load_accessible(user_context, path.record_id)

    if fine.status not in EDITABLE_STATUSES:
        raise ConflictException(f"A {fine.status} fine cannot be edited")

    changes = body.changes()
    updated = Fine.model_validate({**fine.model_dump(), **changes})
    updated.update_timestamp(user_context.user_id)
    save_entity(FINES, updated, user_context.user_id)

    logger.info(
        "Fine corrected",
        extra={"fine_id": updated.id, "fields": sorted(changes), "user_id": user_context.user_id}
    )
    return jsonify(updated.to_response()), 200


@fines_bp.delete('/<record_id>')
@require_jwt
@permission_required('fines', 'delete')
def delete_fine(user_context: UserContext, path: RecordPath):
    """Remove a fine."""
    fine = _load_accessible(user_context, path.record_id)
    mongo().delete_by_id(FINES, fine.id)

    logger.warning(
        "Fine deleted",
        extra={"fine_id": fine.id, "status": fine.status, "user_id": user_context.user_id}
    )
    return '', 204


@fines_bp.post('/<record_id>/payment-reference')
@require_jwt
@permission_required('fines', 'read')
def request_payment_reference(user_context: UserContext, path: RecordPath):
    """Generate the RUPE reference used to pay a pending fine."""
    fine = _load_accessible(user_context, path.record_id)
    result = fine_domain.request_payment(fine, user_context.user_id)
    return _apply_workflow(user_context, fine, result, "payment_reference")


@fines_bp.post('/<record_id>/pay')
@require_jwt
@permission_required('fines', 'update')
def confirm_payment(user_context: UserContext, path: RecordPath):
    """Record that a fine has been paid."""
    fine = _load_accessible(user_context, path.record_id)
    result = fine_domain.mark_paid(fine, user_id=user_context.user_id)
    return _apply_workflow(user_context, fine, result, "payment")


@fines_bp.post('/<record_id>/contest')
@require_jwt
@permission_required('fines', 'read')
def contest_fine(user_context: UserContext, path: RecordPath):
    """Contest a pending fine with a reason."""
    body = load_body(ContestFineRequest)
    fine = _load_accessible(user_context, path.record_id)
    result = fine_domain.contest(fine, body.reason, user_id=user_context.user_id)
    return _apply_workflow(user_context, fine, result, "contest")


@fines_bp.post('/<record_id>/cancel')
@require_jwt
@permission_required('fines', 'update')
def cancel_fine(user_context: UserContext, path: RecordPath):
    """Cancel a pending or contested fine."""
    fine = _load_accessible(user_context, path.record_id)
    result = fine_domain.cancel(fine, user_id=user_context.user_id)
    return _apply_workflow(user_context, fine, result, "cancel")
