"""
Tests for the booking status machine
"""

import pytest
from decimal import Decimal

from warehouse_booking.models.booking import Booking, BookingStatus
from warehouse_booking.services.booking_lifecycle import (
    can_transition,
    is_terminal,
    on_payment_completed,
    on_payment_recorded,
)

PENDING = BookingStatus.PENDING
CONFIRMED = BookingStatus.CONFIRMED
ACTIVE = BookingStatus.ACTIVE
COMPLETED = BookingStatus.COMPLETED
CANCELLED = BookingStatus.CANCELLED


def booking_in(status: BookingStatus, total_price: str = "100.00") -> Booking:
    return Booking(id="booking-1", status=status.value, total_price=Decimal(total_price))


class TestTransitions:

    @pytest.mark.parametrize("current,target", [
        (PENDING, CONFIRMED),
        (PENDING, CANCELLED),
        (CONFIRMED, ACTIVE),
        (CONFIRMED, CANCELLED),
        (ACTIVE, COMPLETED),
        (ACTIVE, CANCELLED),
    ])
    def test_allowed(self, current, target):
        assert can_transition(current, target)

    @pytest.mark.parametrize("current,target", [
        (PENDING, ACTIVE),
        (PENDING, COMPLETED),
        (CONFIRMED, PENDING),
        (ACTIVE, CONFIRMED),
    ])
    def test_not_allowed(self, current, target):
        assert not can_transition(current, target)

    @pytest.mark.parametrize("terminal", [COMPLETED, CANCELLED])
    def test_terminal_states_have_no_exits(self, terminal):
        assert is_terminal(terminal)
        assert not any(can_transition(terminal, target) for target in BookingStatus)

    def test_accepts_stored_string_values(self):
        assert can_transition("pending", "confirmed")
        assert is_terminal("cancelled")
        assert not is_terminal("active")


class TestPaymentDrivenTransitions:

    def test_first_payment_confirms_pending_booking(self):
        booking = booking_in(PENDING)

        assert on_payment_recorded(booking)
        assert booking.status == CONFIRMED.value
        assert booking.updated_at is not None

    def test_payment_on_confirmed_booking_changes_nothing(self):
        booking = booking_in(CONFIRMED)

        assert not on_payment_recorded(booking)
        assert booking.status == CONFIRMED.value

    def test_full_payment_activates_confirmed_booking(self):
        booking = booking_in(CONFIRMED)

        assert on_payment_completed(booking, Decimal("100.00"))
        assert booking.status == ACTIVE.value

    def test_partial_payment_keeps_booking_confirmed(self):
        booking = booking_in(CONFIRMED)

        assert not on_payment_completed(booking, Decimal("99.99"))
        assert booking.status == CONFIRMED.value

    def test_full_payment_on_pending_booking_confirms_then_activates(self):
        booking = booking_in(PENDING)

        assert on_payment_completed(booking, Decimal("100.00"))
        assert booking.status == ACTIVE.value

    @pytest.mark.parametrize("terminal", [COMPLETED, CANCELLED])
    def test_terminal_booking_never_changes(self, terminal):
        booking = booking_in(terminal)

        assert not on_payment_recorded(booking)
        assert not on_payment_completed(booking, Decimal("1000.00"))
        assert booking.status == terminal.value
