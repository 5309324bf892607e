# SPDX-License-Identifier: Apache-2.0

"""
Registry summary reports.
"""

from collections import Counter
from dataclasses import dataclass, field, asdict
from datetime import date, datetime, timedelta
from typing import Any, Dict, Iterable, Optional

from models.entities import Document, Driver, Fine, Vehicle
from models.enums import DocumentStatus, DriverStatus, FineStatus
from .expiry import driver_status, expiry_status


PERIOD_DAYS = {
    "week": 7,
    "month": 30,
    "quarter": 90,
    "year": 365,
}


@dataclass
class RegistrySummary:
    """Headline figures for the reports screen."""
    vehicles_registered: int = 0
    active_drivers: int = 0
    fines_applied: int = 0
    pending_fines: int = 0
    pending_amount: float = 0.0
    paid_amount: float = 0.0
    documents_processed: int = 0
    expiring_documents: int = 0
    fines_by_type: Dict[str, int] = field(default_factory=dict)

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)


def period_start(period: Optional[str], today: Optional[date] = None) -> Optional[datetime]:
    """
    Start of a reporting period.

    Args:
        period: One of week, month, quarter, year; None for all time
        today: Reference date

    Returns:
        Datetime at the start of the period, or None for all time

    Raises:
        ValueError: If the period is unknown
    """
    if not period:
        return None
    if period not in PERIOD_DAYS:
        raise ValueError(f"Unknown report period '{period}'")

    today = today or date.today()
    start = today - timedelta(days=PERIOD_DAYS[period])
    return datetime(start.year, start.month, start.day)


def build_summary(
    vehicles: Iterable[Vehicle],
    drivers: Iterable[Driver],
    fines: Iterable[Fine],
    documents: Iterable[Document],
    today: Optional[date] = None
) -> RegistrySummary:
    """
    Aggregate registry records into summary figures.

    Args:
        vehicles: Vehicles in the caller's scope
        drivers: Driver records in the caller's scope
        fines: Fines in the caller's scope
        documents: Documents in the caller's scope
        today: Reference date for licence and document expiry

    Returns:
        RegistrySummary
    """
    summary = RegistrySummary()
    fine_types = Counter()

    summary.vehicles_registered = sum(1 for _ in vehicles)
    summary.active_drivers = sum(
        1 for driver in drivers
        if driver_status(driver, today) == DriverStatus.VALID.value
    )

    for fine in fines:
        if fine.status == FineStatus.CANCELLED.value:
            continue
        summary.fines_applied += 1
        fine_types[fine.type] += 1
        if fine.status == FineStatus.PENDING.value:
            summary.pending_fines += 1
            summary.pending_amount += fine.amount
        elif fine.status == FineStatus.PAID.value:
            summary.paid_amount += fine.amount

    for document in documents:
        summary.documents_processed += 1
        if expiry_status(document.expiry_date, today) == DocumentStatus.EXPIRING.value:
            summary.expiring_documents += 1

    summary.fines_by_type = dict(fine_types.most_common())
    return summary
