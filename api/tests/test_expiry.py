# SPDX-License-Identifier: Apache-2.0

"""
Tests for expiry status derivation.
"""

from datetime import date

import pytest

from domain.expiry import days_until, driver_status, expiry_status, vehicle_expiry_alerts


class TestExpiryStatus:
    """Test the 30-day warning window."""

    def test_no_expiry_is_valid(self, today):
        assert expiry_status(None, today) == "valid"

    @pytest.mark.parametrize("expiry,expected", [
        (date(2025, 6, 14), "expired"),
        (date(2025, 6, 15), "expiring"),
        (date(2025, 7, 14), "expiring"),
        (date(2025, 7, 15), "valid"),
        (date(2026, 1, 1), "valid"),
    ])
    def test_boundaries(self, today, expiry, expected):
        assert expiry_status(expiry, today) == expected

    def test_custom_window(self, today):
        assert expiry_status(date(2025, 8, 1), today, warning_days=60) == "expiring"

    def test_days_until(self, today):
        assert days_until(date(2025, 6, 20), today) == 5
        assert days_until(date(2025, 6, 10), today) == -5


class TestDriverStatus:
    """Test licence status derivation."""

    def test_valid_licence(self, make_driver, today):
        assert driver_status(make_driver(), today) == "valid"

    def test_expired_licence(self, make_driver, today):
        driver = make_driver(issue_date=date(2015, 1, 1), expiry_date=date(2025, 1, 1))
        assert driver_status(driver, today) == "expired"

    def test_expiring_licence(self, make_driver, today):
        assert driver_status(make_driver(expiry_date=date(2025, 7, 1)), today) == "expiring"

    def test_points_threshold_suspends(self, make_driver, today):
        assert driver_status(make_driver(points=12), today) == "suspended"
        assert driver_status(make_driver(points=11), today) == "valid"
        assert driver_status(make_driver(points=5, max_points=5), today) == "suspended"

    def test_suspension_is_sticky(self, make_driver, today):
        assert driver_status(make_driver(status="suspended", points=0), today) == "suspended"


class TestVehicleExpiryAlerts:
    """Test insurance, circulation tax and inspection alerts."""

    def test_no_dates_no_alerts(self, make_vehicle, today):
        assert vehicle_expiry_alerts(make_vehicle(), today) == []

    def test_alerts_in_fixed_order(self, make_vehicle, today):
        vehicle = make_vehicle(
            insurance_expiry=date(2025, 6, 25),
            circulation_expiry=date(2026, 1, 1),
            inspection_expiry=date(2025, 5, 1)
        )

        alerts = vehicle_expiry_alerts(vehicle, today)

        assert [(a.kind, a.status, a.days) for a in alerts] == [
            ("insurance", "expiring", 10),
            ("inspection", "expired", -45),
        ]
        assert alerts[0].expiry_date == date(2025, 6, 25)
