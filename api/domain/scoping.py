# SPDX-License-Identifier: Apache-2.0

"""
Role-based query scoping.

Operators and agents work over the whole registry. Citizens and companies
only ever see records they own, plus the fines raised against their
vehicles or driving licences. These functions compose the MongoDB filters
for each case; they never touch the database themselves.
"""

import re
from typing import Any, Dict, Iterable, List, Optional

from models.entities import UserContext, Fine
from models.enums import FineStatus, UserRole
from .plates import canonical_plate, looks_like_plate


STAFF_ROLES = frozenset({UserRole.OPERATOR.value, UserRole.AGENT.value})
OWNER_ROLES = frozenset({UserRole.CITIZEN.value, UserRole.COMPANY.value})

SEARCH_FIELDS: Dict[str, List[str]] = {
    "vehicles": ["plate", "brand", "model"],
    "drivers": ["name", "licenseNumber"],
    "fines": ["vehiclePlate", "driverName", "type"],
}

# Stored fields that hold canonical plates
PLATE_FIELDS = frozenset({"plate", "vehiclePlate"})


def _role(user_context: UserContext) -> str:
    role = user_context.role
    return role.value if isinstance(role, UserRole) else role


def is_staff(user_context: UserContext) -> bool:
    """Operators and agents are not restricted to their own records."""
    return _role(user_context) in STAFF_ROLES


def vehicle_filter(user_context: UserContext) -> Dict[str, Any]:
    """Filter for the vehicles a caller may list."""
    if is_staff(user_context):
        return {}
    return {"ownerId": user_context.user_id}


def driver_filter(user_context: UserContext) -> Dict[str, Any]:
    """Filter for the driver records a caller may list."""
    if is_staff(user_context):
        return {}
    return {"ownerId": user_context.user_id}


def document_filter(user_context: UserContext) -> Dict[str, Any]:
    """Filter for the documents a caller may list."""
    if _role(user_context) in OWNER_ROLES:
        return {"ownerId": user_context.user_id}
    return {}


def notification_filter(user_context: UserContext, unread_only: bool = False) -> Dict[str, Any]:
    """Notifications are always private to their recipient."""
    query: Dict[str, Any] = {"userId": user_context.user_id}
    if unread_only:
        query["read"] = False
    return query


def fine_filter(
    user_context: UserContext,
    license_numbers: Iterable[str] = (),
    plates: Iterable[str] = ()
) -> Optional[Dict[str, Any]]:
    """
    Filter for the fines a caller may list.

    Args:
        user_context: Authenticated caller
        license_numbers: Licence numbers of driver records the caller owns
        plates: Plates of vehicles the caller owns

    Returns:
        MongoDB filter, or None when the caller can see no fines at all
    """
    if is_staff(user_context):
        return {}

    licenses = sorted({number.upper() for number in license_numbers if number})
    canonical = sorted({canonical_plate(plate) for plate in plates if plate})

    clauses = []
    if licenses:
        clauses.append({"driverLicense": {"$in": licenses}})
    if canonical:
        clauses.append({"vehiclePlate": {"$in": canonical}})

    if not clauses:
        return None
    if len(clauses) == 1:
        return clauses[0]
    return {"$or": clauses}


def pending_fines_filter(plate: Optional[str] = None, license_number: Optional[str] = None) -> Dict[str, Any]:
    """
    Filter for pending fines matching a plate, a licence, or either.

    Args:
        plate: Vehicle plate in any notation
        license_number: Driving licence number

    Returns:
        MongoDB filter restricted to pending fines
    """
    query: Dict[str, Any] = {"status": FineStatus.PENDING.value}

    clauses = []
    if plate:
        clauses.append({"vehiclePlate": canonical_plate(plate)})
    if license_number:
        clauses.append({"driverLicense": license_number.strip().upper()})

    if len(clauses) == 1:
        query.update(clauses[0])
    elif clauses:
        query["$or"] = clauses

    return query


def search_filter(resource: str, term: str) -> Dict[str, Any]:
    """
    Case-insensitive free-text filter over a resource's searchable fields.

    Plate-looking terms are also matched in canonical form, so "LD-35-87"
    finds "LD3587IA".

    Args:
        resource: One of vehicles, drivers, fines
        term: Free text typed by the user

    Returns:
        MongoDB filter

    Raises:
        ValueError: If the resource is not searchable
    """
    if resource not in SEARCH_FIELDS:
        raise ValueError(f"Resource '{resource}' is not searchable")

    term = (term or "").strip()
    if not term:
        return {}

    pattern = re.escape(term)
    plate_pattern = re.escape(canonical_plate(term)) if looks_like_plate(term) else None

    clauses = []
    for field in SEARCH_FIELDS[resource]:
        field_pattern = plate_pattern if field in PLATE_FIELDS and plate_pattern else pattern
        clauses.append({field: {"$regex": field_pattern, "$options": "i"}})

    return {"$or": clauses}


def can_access_record(user_context: UserContext, record: Any) -> bool:
    """
    Check whether a caller may see a single owned record.

    Args:
        user_context: Authenticated caller
        record: Entity (or document dict) carrying an owner_id / ownerId

    Returns:
        True for staff, or when the caller owns the record
    """
    if is_staff(user_context):
        return True

    if isinstance(record, dict):
        owner_id = record.get("owner_id", record.get("ownerId"))
    else:
        owner_id = getattr(record, "owner_id", None)

    return owner_id is not None and owner_id == user_context.user_id


def can_access_fine(
    user_context: UserContext,
    fine: Fine,
    license_numbers: Iterable[str] = (),
    plates: Iterable[str] = ()
) -> bool:
    """Check whether a caller may see a fine, by plate or licence ownership."""
    if is_staff(user_context):
        return True

    licenses = {number.upper() for number in license_numbers if number}
    canonical = {canonical_plate(plate) for plate in plates if plate}
    return fine.driver_license in licenses or fine.vehicle_plate in canonical
