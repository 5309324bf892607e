# SPDX-License-Identifier: Apache-2.0

"""
Driving licence endpoints.
"""

from flask import jsonify
from flask_openapi3 import APIBlueprint, Tag
from opentelemetry import trace
import logging
from typing import Dict, Any

from domain import scoping
from domain.expiry import days_until, driver_status
from middleware.error_handler import NotFoundException
from models.entities import Driver, UserContext
from models.enums import UserRole
from models.requests import CreateDriverRequest, DriverFilters, UpdateDriverRequest
from services.mongodb import DRIVERS
from routes.common import (
    LicensePath, RecordPath, get_entity, insert_entity, load_body, load_query, merge_filters,
    mongo, paginated, permission_required, require_jwt, save_entity
)

logger = logging.getLogger(__name__)
tracer = trace.get_tracer(__name__)

drivers_tag = Tag(name="Drivers", description="Driving licences")
drivers_bp = APIBlueprint(
    'drivers',
    __name__,
    url_prefix='/api/drivers',
    abp_tags=[drivers_tag]
)


def driver_response(driver: Driver) -> Dict[str, Any]:
    """Driver JSON with the status derived from expiry date and points."""
    data = driver.to_response()
    data["status"] = driver_status(driver)
    data["days_until_expiry"] = days_until(driver.expiry_date)
    return data


def _load_accessible(user_context: UserContext, record_id: str) -> Driver:
    driver = get_entity(DRIVERS, record_id, Driver, "Driver")
    if not scoping.can_access_record(user_context, driver):
        raise NotFoundException("Driver not found")
    return driver


@drivers_bp.get('')
@require_jwt
@permission_required('drivers', 'read')
def list_drivers(user_context: UserContext):
    """List driver records visible to the caller."""
    filters = load_query(DriverFilters)

    with tracer.start_as_current_span(
        "drivers.list",
        attributes={"user.id": user_context.user_id, "user.role": user_context.role}
    ) as span:
        query = merge_filters(
            scoping.driver_filter(user_context),
            {"status": filters.status} if filters.status else None
        )
        result = mongo().paginate(DRIVERS, query, filters.page, filters.page_size)

        span.set_attribute("drivers.total", result.total)
        return jsonify(paginated(result, Driver, driver_response)), 200


@drivers_bp.get('/me')
@require_jwt
def get_my_licence(user_context: UserContext):
    """The driving licence registered to the caller."""
    document = mongo().find_one(DRIVERS, {"ownerId": user_context.user_id})
    if document is None:
        raise NotFoundException("No driving licence registered for this user")
    return jsonify(driver_response(Driver.from_document(document))), 200


@drivers_bp.get('/by-license/<license_number>')
@require_jwt
@permission_required('drivers', 'read')
def get_driver_by_license(user_context: UserContext, path: LicensePath):
    """Look up a driver by licence number."""
    license_number = path.license_number.strip().upper()

    with tracer.start_as_current_span("drivers.by_license", attributes={"driver.license": license_number}):
        document = mongo().find_one(DRIVERS, {"licenseNumber": license_number})
        if document is None:
            raise NotFoundException(f"No driver registered with licence {license_number}")

        driver = Driver.from_document(document)
        if not scoping.can_access_record(user_context, driver):
            raise NotFoundException(f"No driver registered with licence {license_number}")

        return jsonify(driver_response(driver)), 200


@drivers_bp.get('/<record_id>')
@require_jwt
@permission_required('drivers', 'read')
def get_driver(user_context: UserContext, path: RecordPath):
    """Get a driver by ID."""
    return jsonify(driver_response(_load_accessible(user_context, path.record_id))), 200


@drivers_bp.post('')
@require_jwt
@permission_required('drivers', 'create')
def create_driver(user_context: UserContext):
    """Register a driving licence. Operators may register on behalf of another owner."""
    body = load_body(CreateDriverRequest)

    data = body.model_dump(exclude={"owner_id"})
    owner_id = user_context.user_id
    if body.owner_id and user_context.role == UserRole.OPERATOR.value:
        owner_id = body.owner_id

    driver = Driver(**data, owner_id=owner_id, created_by=user_context.user_id,
                    updated_by=user_context.user_id)
    insert_entity(DRIVERS, driver, user_context.user_id,
                  f"Licence {driver.license_number} is already registered")

    logger.info(
        "Driver registered",
        extra={
            "driver_id": driver.id,
            "license_number": driver.license_number,
            "owner_id": owner_id,
            "user_id": user_context.user_id
        }
    )
    return jsonify(driver_response(driver)), 201


@drivers_bp.put('/<record_id>')
@require_jwt
@permission_required('drivers', 'update')
def update_driver(user_context: UserContext, path: RecordPath):
    """Update a driver record."""
    body = load_body(UpdateDriverRequest)
    driver = _load_accessible(user_context, path.record_id)

    changes = body.changes()
    updated = Driver.model_validate({**driver.model_dump(), **changes})
    updated.update_timestamp(user_context.user_id)
    save_entity(DRIVERS, updated, user_context.user_id)

    logger.info(
        "Driver updated",
        extra={"driver_id": updated.id, "fields": sorted(changes), "user_id": user_context.user_id}
    )
    return jsonify(driver_response(updated)), 200


@drivers_bp.delete('/<record_id>')
@require_jwt
@permission_required('drivers', 'delete')
def delete_driver(user_context: UserContext, path: RecordPath):
    """Remove a driver record."""
    driver = _load_accessible(user_context, path.record_id)
    mongo().delete_by_id(DRIVERS, driver.id)

    logger.warning(
        "Driver deleted",
        extra={"driver_id": driver.id, "user_id": user_context.user_id}
    )
    return '', 204
