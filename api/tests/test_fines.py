# SPDX-License-Identifier: Apache-2.0

"""
Tests for the fine payment and contest workflow.
"""

import re
from datetime import datetime

import pytest

from domain import fines
from models.enums import FineStatus


class TestRupeReference:
    """Test payment reference generation."""

    def test_format(self):
        for _ in range(50):
            assert re.match(r"^RUPE[1-9]\d{7}$", fines.generate_rupe_reference())


class TestStatusTransitions:
    """Test the transition table."""

    @pytest.mark.parametrize("current,new", [
        ("pending", "paid"),
        ("pending", "contested"),
        ("pending", "cancelled"),
        ("contested", "paid"),
        ("contested", "cancelled"),
    ])
    def test_allowed(self, current, new):
        assert fines.validate_status_transition(current, new).is_valid is True

    @pytest.mark.parametrize("current,new", [
        ("paid", "pending"),
        ("paid", "cancelled"),
        ("cancelled", "pending"),
        ("contested", "contested"),
        ("unknown", "paid"),
    ])
    def test_rejected(self, current, new):
        result = fines.validate_status_transition(current, new)
        assert result.is_valid is False
        assert result.errors == [f"Invalid status transition from {current} to {new}"]


class TestRequestPayment:
    """Test RUPE reference requests."""

    def test_pending_fine_gets_reference(self, make_fine):
        fine = make_fine()

        result = fines.request_payment(fine, "user-1")

        assert result.success is True
        assert re.match(r"^RUPE\d{8}$", result.fine.rupe_reference)
        assert result.fine.status == FineStatus.PENDING.value
        assert result.fine.updated_by == "user-1"
        assert fine.rupe_reference is None

    def test_reference_only_once(self, make_fine):
        result = fines.request_payment(make_fine(rupe_reference="RUPE12345678"))

        assert result.success is False
        assert result.validation_errors == ["Fine already has a payment reference"]

    def test_not_for_paid_fines(self, make_fine):
        fine = make_fine(status="paid", payment_date=datetime(2025, 6, 2))

        result = fines.request_payment(fine)

        assert result.success is False
        assert result.error_message == "Payment reference cannot be generated"


class TestMarkPaid:
    """Test payment confirmation."""

    def test_pending_to_paid(self, make_fine):
        when = datetime(2025, 6, 10, 9, 0)

        result = fines.mark_paid(make_fine(), when)

        assert result.success is True
        assert result.fine.status == "paid"
        assert result.fine.payment_date == when

    def test_contested_can_be_paid(self, make_fine):
        fine = make_fine(status="contested", contest_reason="Não era eu", contest_date=datetime(2025, 6, 3))
        assert fines.mark_paid(fine).success is True

    def test_cancelled_cannot_be_paid(self, make_fine):
        result = fines.mark_paid(make_fine(status="cancelled"))
        assert result.success is False
        assert result.fine is None


class TestContest:
    """Test contesting."""

    def test_contest_pending(self, make_fine):
        result = fines.contest(make_fine(), "  Radar mal calibrado  ", user_id="user-1")

        assert result.success is True
        assert result.fine.status == "contested"
        assert result.fine.contest_reason == "Radar mal calibrado"
        assert result.fine.contest_date is not None

    def test_reason_required(self, make_fine):
        result = fines.contest(make_fine(), "   ")
        assert result.success is False
        assert "A reason is required to contest a fine" in result.validation_errors

    def test_only_pending(self, make_fine):
        fine = make_fine(status="contested", contest_reason="x")
        result = fines.contest(fine, "again")
        assert result.success is False
        assert "Only pending fines can be contested" in result.validation_errors


class TestCancel:
    """Test cancellation."""

    def test_cancel_pending(self, make_fine):
        assert fines.cancel(make_fine()).fine.status == "cancelled"

    def test_cannot_cancel_paid(self, make_fine):
        fine = make_fine(status="paid", payment_date=datetime(2025, 6, 2))
        result = fines.cancel(fine)
        assert result.success is False
        assert result.error_message == "Fine cannot be cancelled"


class TestFineNotification:
    """Test the owner notification raised with a new fine."""

    def test_build(self, make_fine):
        fine = make_fine()

        notification = fines.build_fine_notification(fine, "owner-1")

        assert notification.user_id == "owner-1"
        assert notification.type == "fine"
        assert notification.priority == "high"
        assert notification.read is False
        assert notification.vehicle_plate == "LD3587IA"
        assert "LD-35-87-IA" in notification.description
        assert "25,000.00 Kz" in notification.description
