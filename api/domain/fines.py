# SPDX-License-Identifier: Apache-2.0

"""
Fine domain logic for the payment and contest workflow.

This module contains pure functions for fine status transitions, RUPE
payment reference generation and the owner notification raised when a
fine is applied. Workflow functions return a new Fine inside a
WorkflowResult and never mutate their input.
"""

import secrets
from dataclasses import dataclass, field
from datetime import datetime
from typing import Any, Dict, List, Optional

from models.entities import Fine, Notification
from models.enums import FineStatus, NotificationPriority, NotificationType
from .plates import format_plate


RUPE_PREFIX = "RUPE"

VALID_TRANSITIONS = {
    FineStatus.PENDING.value: [FineStatus.PAID.value, FineStatus.CONTESTED.value, FineStatus.CANCELLED.value],
    FineStatus.CONTESTED.value: [FineStatus.PAID.value, FineStatus.CANCELLED.value],
    FineStatus.PAID.value: [],  # Terminal state
    FineStatus.CANCELLED.value: []  # Terminal state
}


@dataclass
class ValidationResult:
    """Result of a fine transition check."""
    is_valid: bool
    errors: List[str] = field(default_factory=list)


@dataclass
class WorkflowResult:
    """Result of a fine workflow operation."""
    success: bool
    fine: Optional[Fine] = None
    error_message: Optional[str] = None
    validation_errors: List[str] = field(default_factory=list)


def generate_rupe_reference() -> str:
    """Generate a RUPE payment reference: "RUPE" followed by 8 digits, the first non-zero."""
    return f"{RUPE_PREFIX}{10000000 + secrets.randbelow(90000000)}"


def validate_status_transition(current_status: str, new_status: str) -> ValidationResult:
    """
    Validate a fine status transition.

    Args:
        current_status: Current fine status
        new_status: Desired new status

    Returns:
        ValidationResult with validation status and errors
    """
    errors = []

    if new_status not in VALID_TRANSITIONS.get(current_status, []):
        errors.append(f"Invalid status transition from {current_status} to {new_status}")

    return ValidationResult(is_valid=len(errors) == 0, errors=errors)


def _with_changes(fine: Fine, changes: Dict[str, Any], user_id: Optional[str]) -> Fine:
    """Build the updated fine in one validation pass so status invariants hold."""
    data = fine.model_dump()
    data.update(changes)
    data["updated_at"] = datetime.utcnow()
    if user_id:
        data["updated_by"] = user_id
    return Fine.model_validate(data)


def request_payment(fine: Fine, user_id: Optional[str] = None) -> WorkflowResult:
    """
    Attach a RUPE payment reference to a pending fine.

    Args:
        fine: Fine to pay
        user_id: Caller requesting the reference

    Returns:
        WorkflowResult with the updated fine or errors
    """
    errors = []
    if fine.status != FineStatus.PENDING.value:
        errors.append(f"Cannot request payment for a fine in status {fine.status}")
    if fine.rupe_reference:
        errors.append("Fine already has a payment reference")

    if errors:
        return WorkflowResult(
            success=False,
            error_message="Payment reference cannot be generated",
            validation_errors=errors
        )

    updated = _with_changes(fine, {"rupe_reference": generate_rupe_reference()}, user_id)
    return WorkflowResult(success=True, fine=updated)


def mark_paid(fine: Fine, when: Optional[datetime] = None, user_id: Optional[str] = None) -> WorkflowResult:
    """
    Record payment of a fine.

    Args:
        fine: Fine being paid
        when: Payment timestamp (defaults to now)
        user_id: Caller confirming the payment

    Returns:
        WorkflowResult with the updated fine or errors
    """
    validation = validate_status_transition(fine.status, FineStatus.PAID.value)
    if not validation.is_valid:
        return WorkflowResult(
            success=False,
            error_message="Fine cannot be marked as paid",
            validation_errors=validation.errors
        )

    updated = _with_changes(fine, {
        "status": FineStatus.PAID.value,
        "payment_date": when or datetime.utcnow()
    }, user_id)
    return WorkflowResult(success=True, fine=updated)


def contest(
    fine: Fine,
    reason: str,
    when: Optional[datetime] = None,
    user_id: Optional[str] = None
) -> WorkflowResult:
    """
    Contest a pending fine.

    Args:
        fine: Fine being contested
        reason: Why the fine is contested
        when: Contest timestamp (defaults to now)
        user_id: Caller contesting

    Returns:
        WorkflowResult with the updated fine or errors
    """
    errors = []
    if fine.status != FineStatus.PENDING.value:
        errors.append("Only pending fines can be contested")
    if not reason or not reason.strip():
        errors.append("A reason is required to contest a fine")

    if errors:
        return WorkflowResult(
            success=False,
            error_message="Fine cannot be contested",
            validation_errors=errors
        )

    updated = _with_changes(fine, {
        "status": FineStatus.CONTESTED.value,
        "contest_reason": reason.strip(),
        "contest_date": when or datetime.utcnow()
    }, user_id)
    return WorkflowResult(success=True, fine=updated)


def cancel(fine: Fine, user_id: Optional[str] = None) -> WorkflowResult:
    """
    Cancel a pending or contested fine.

    Args:
        fine: Fine to cancel
        user_id: Caller cancelling

    Returns:
        WorkflowResult with the updated fine or errors
    """
    validation = validate_status_transition(fine.status, FineStatus.CANCELLED.value)
    if not validation.is_valid:
        return WorkflowResult(
            success=False,
            error_message="Fine cannot be cancelled",
            validation_errors=validation.errors
        )

    updated = _with_changes(fine, {"status": FineStatus.CANCELLED.value}, user_id)
    return WorkflowResult(success=True, fine=updated)


def build_fine_notification(fine: Fine, owner_id: str) -> Notification:
    """
    Build the in-app notification recorded for a vehicle owner when a fine is applied.

    Args:
        fine: The newly applied fine
        owner_id: User ID of the vehicle owner

    Returns:
        Unsaved Notification entity
    """
    return Notification(
        user_id=owner_id,
        type=NotificationType.FINE,
        priority=NotificationPriority.HIGH,
        title="Nova multa aplicada",
        description=(
            f"{fine.type} - {format_plate(fine.vehicle_plate)}, "
            f"{fine.location}, {fine.amount:,.2f} Kz"
        ),
        vehicle_plate=fine.vehicle_plate,
        created_by=fine.created_by
    )
