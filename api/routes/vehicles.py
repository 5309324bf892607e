# SPDX-License-Identifier: Apache-2.0

"""
Vehicle registration endpoints.
"""

from dataclasses import asdict
from flask import jsonify
from flask_openapi3 import APIBlueprint, Tag
from opentelemetry import trace
from opentelemetry.trace import Status, StatusCode
import logging
from typing import Dict, Any

from domain import scoping
from domain.expiry import vehicle_expiry_alerts
from middleware.error_handler import NotFoundException
from models.entities import UserContext, Vehicle
from models.enums import UserRole
from models.requests import CreateVehicleRequest, UpdateVehicleRequest, VehicleFilters
from services.mongodb import VEHICLES
from routes.common import (
    PlatePath, RecordPath, get_entity, insert_entity, load_body, load_query, merge_filters,
    mongo, paginated, permission_required, require_jwt, require_plate, save_entity
)

# Set up logging and tracing
logger = logging.getLogger(__name__)
tracer = trace.get_tracer(__name__)

vehicles_tag = Tag(name="Vehicles", description="Vehicle registration")
vehicles_bp = APIBlueprint(
    'vehicles',
    __name__,
    url_prefix='/api/vehicles',
    abp_tags=[vehicles_tag]
)


def vehicle_response(vehicle: Vehicle) -> Dict[str, Any]:
    """Vehicle JSON with its display plate and paper expiry alerts."""
    data = vehicle.to_response()
    data["alerts"] = [
        {**asdict(alert), "expiry_date": alert.expiry_date.isoformat()}
        for alert in vehicle_expiry_alerts(vehicle)
    ]
    return data


def _load_accessible(user_context: UserContext, record_id: str) -> Vehicle:
    vehicle = get_entity(VEHICLES, record_id, Vehicle, "Vehicle")
    if not scoping.can_access_record(user_context, vehicle):
        # Other owners' vehicles are indistinguishable from missing ones
        raise NotFoundException("Vehicle not found")
    return vehicle


@vehicles_bp.get('')
@require_jwt
@permission_required('vehicles', 'read')
def list_vehicles(user_context: UserContext):
    """List vehicles visible to the caller."""
    filters = load_query(VehicleFilters)

    with tracer.start_as_current_span(
        "vehicles.list",
        attributes={"user.id": user_context.user_id, "user.role": user_context.role}
    ) as span:
        query = merge_filters(
            scoping.vehicle_filter(user_context),
            {"status": filters.status} if filters.status else None
        )
        result = mongo().paginate(VEHICLES, query, filters.page, filters.page_size)

        span.set_attribute("vehicles.total", result.total)
        return jsonify(paginated(result, Vehicle, vehicle_response)), 200


@vehicles_bp.get('/<record_id>')
@require_jwt
@permission_required('vehicles', 'read')
def get_vehicle(user_context: UserContext, path: RecordPath):
    """Get a vehicle by ID."""
    vehicle = _load_accessible(user_context, path.record_id)
    return jsonify(vehicle_response(vehicle)), 200


@vehicles_bp.get('/by-plate/<plate>')
@require_jwt
@permission_required('vehicles', 'read')
def get_vehicle_by_plate(user_context: UserContext, path: PlatePath):
    """Look up a vehicle by plate, in either notation."""
    plate = require_plate(path.plate)

    with tracer.start_as_current_span("vehicles.by_plate", attributes={"vehicle.plate": plate}):
        document = mongo().find_one(VEHICLES, {"plate": plate})
        if document is None:
            raise NotFoundException(f"No vehicle registered with plate {path.plate}")

        vehicle = Vehicle.from_document(document)
        if not scoping.can_access_record(user_context, vehicle):
            raise NotFoundException(f"No vehicle registered with plate {path.plate}")

        return jsonify(vehicle_response(vehicle)), 200


@vehicles_bp.post('')
@require_jwt
@permission_required('vehicles', 'create')
def create_vehicle(user_context: UserContext):
    """Register a vehicle. Operators may register on behalf of another owner."""
    body = load_body(CreateVehicleRequest)

    with tracer.start_as_current_span(
        "vehicles.create",
        attributes={"user.id": user_context.user_id, "vehicle.plate": body.plate}
    ) as span:
        data = body.model_dump(exclude={"owner_id"})
        owner_id = user_context.user_id
        if body.owner_id and user_context.role == UserRole.OPERATOR.value:
            owner_id = body.owner_id

        vehicle = Vehicle(**data, owner_id=owner_id, created_by=user_context.user_id,
                          updated_by=user_context.user_id)
        insert_entity(VEHICLES, vehicle, user_context.user_id,
                      f"Vehicle with plate {vehicle.display_plate} is already registered")

        logger.info(
            "Vehicle registered",
            extra={
                "vehicle_id": vehicle.id,
                "plate": vehicle.plate,
                "owner_id": owner_id,
                "user_id": user_context.user_id
            }
        )

        span.set_status(Status(StatusCode.OK))
        return jsonify(vehicle_response(vehicle)), 201


@vehicles_bp.put('/<record_id>')
@require_jwt
@permission_required('vehicles', 'update')
def update_vehicle(user_context: UserContext, path: RecordPath):
    """Update a vehicle."""
    body = load_body(UpdateVehicleRequest)
    vehicle = _load_accessible(user_context, path.record_id)

    changes = body.changes()
    updated = Vehicle.model_validate({**vehicle.model_dump(), **changes})
    updated.update_timestamp(user_context.user_id)
    save_entity(VEHICLES, updated, user_context.user_id,
                f"Vehicle with plate {updated.display_plate} is already registered")

    logger.info(
        "Vehicle updated",
        extra={
            "vehicle_id": updated.id,
            "fields": sorted(changes),
            "user_id": user_context.user_id
        }
    )
    return jsonify(vehicle_response(updated)), 200


@vehicles_bp.delete('/<record_id>')
@require_jwt
@permission_required('vehicles', 'delete')
def delete_vehicle(user_context: UserContext, path: RecordPath):
    """Remove a vehicle from the registry."""
    vehicle = _load_accessible(user_context, path.record_id)
    mongo().delete_by_id(VEHICLES, vehicle.id)

    logger.warning(
        "Vehicle deleted",
        extra={"vehicle_id": vehicle.id, "plate": vehicle.plate, "user_id": user_context.user_id}
    )
    return '', 204
