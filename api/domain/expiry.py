# SPDX-License-Identifier: Apache-2.0

"""
Expiry status derivation for licences, vehicle papers and documents.
"""

from dataclasses import dataclass
from datetime import date
from typing import List, Optional

from models.entities import Driver, Vehicle
from models.enums import DocumentStatus, DriverStatus


DEFAULT_WARNING_DAYS = 30

VEHICLE_EXPIRY_FIELDS = (
    ("insurance", "insurance_expiry"),
    ("circulation", "circulation_expiry"),
    ("inspection", "inspection_expiry"),
)


@dataclass
class ExpiryAlert:
    """A vehicle paper that is expiring or already expired."""
    kind: str
    status: str
    days: int
    expiry_date: date


def days_until(expiry: date, today: Optional[date] = None) -> int:
    """Whole days from today to expiry; negative once expired."""
    today = today or date.today()
    return (expiry - today).days


def expiry_status(
    expiry: Optional[date],
    today: Optional[date] = None,
    warning_days: int = DEFAULT_WARNING_DAYS
) -> str:
    """
    Classify an expiry date.

    Args:
        expiry: Expiry date, or None when the record never expires
        today: Reference date (defaults to the current date)
        warning_days: Days before expiry at which a record counts as expiring

    Returns:
        "valid", "expiring" or "expired"
    """
    if expiry is None:
        return DocumentStatus.VALID.value

    remaining = days_until(expiry, today)
    if remaining < 0:
        return DocumentStatus.EXPIRED.value
    if remaining < warning_days:
        return DocumentStatus.EXPIRING.value
    return DocumentStatus.VALID.value


def driver_status(driver: Driver, today: Optional[date] = None) -> str:
    """
    Derive a driving licence status.

    Suspension is only lifted by an operator, so a suspended licence stays
    suspended here. Reaching the points threshold also suspends.
    """
    if driver.status == DriverStatus.SUSPENDED.value:
        return DriverStatus.SUSPENDED.value
    if driver.points >= driver.max_points:
        return DriverStatus.SUSPENDED.value
    return expiry_status(driver.expiry_date, today)


def vehicle_expiry_alerts(
    vehicle: Vehicle,
    today: Optional[date] = None,
    warning_days: int = DEFAULT_WARNING_DAYS
) -> List[ExpiryAlert]:
    """
    List the vehicle papers (insurance, circulation tax, inspection) that need attention.

    Args:
        vehicle: Vehicle to inspect
        today: Reference date
        warning_days: Warning window in days

    Returns:
        Alerts for expiring or expired papers, in a fixed order
    """
    alerts = []
    for kind, field_name in VEHICLE_EXPIRY_FIELDS:
        expiry = getattr(vehicle, field_name)
        if expiry is None:
            continue

        status = expiry_status(expiry, today, warning_days)
        if status != DocumentStatus.VALID.value:
            alerts.append(ExpiryAlert(
                kind=kind,
                status=status,
                days=days_until(expiry, today),
                expiry_date=expiry
            ))

    return alerts
