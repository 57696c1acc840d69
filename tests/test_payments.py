"""
Tests for payment recording and the payment-driven booking lifecycle
"""

import pytest
from decimal import Decimal

from warehouse_booking.models.booking import BookingStatus
from warehouse_booking.models.payment import PaymentMethod, PaymentStatus
from warehouse_booking.services.booking_service import BookingService
from warehouse_booking.services.payment_service import PaymentService, completed_total
from warehouse_booking.services.results import ErrorKind

from tests.factories import FIXED_NOW, add_booking, create_unit, create_user, fixed_clock, make_settings, utc


@pytest.fixture
def owner(db):
    return create_user(db)


@pytest.fixture
def booking(db, owner):
    """Pending booking priced at 160.00 (two days at 80.00)"""
    unit = create_unit(db)
    service = BookingService(db, make_settings(), clock=fixed_clock)
    return service.create_reservation(owner.id, unit.id, utc(2025, 3, 1), utc(2025, 3, 3)).value


@pytest.fixture
def payments(db):
    return PaymentService(db, make_settings(), clock=fixed_clock)


class TestRecordPayment:

    def test_first_payment_confirms_booking(self, payments, owner, booking):
        result = payments.record_payment(owner.id, booking.id, Decimal("60.00"), PaymentMethod.CASH)

        assert result.ok
        assert result.value.status == PaymentStatus.PENDING.value
        assert result.value.payment_method == PaymentMethod.CASH.value
        assert booking.status == BookingStatus.CONFIRMED.value

    @pytest.mark.parametrize("amount", ["0", "-5.00"])
    def test_non_positive_amount_rejected(self, payments, owner, booking, amount):
        result = payments.record_payment(owner.id, booking.id, Decimal(amount), PaymentMethod.CASH)

        assert result.error.kind is ErrorKind.VALIDATION

    def test_amount_above_remaining_balance_rejected(self, payments, owner, booking):
        first = payments.record_payment(owner.id, booking.id, Decimal("100.00"), PaymentMethod.BANK_TRANSFER).value
        payments.update_payment(owner.id, first.id, status=PaymentStatus.COMPLETED)

        result = payments.record_payment(owner.id, booking.id, Decimal("60.01"), PaymentMethod.CASH)

        assert result.error.kind is ErrorKind.VALIDATION

    def test_cancelled_booking_rejects_payment(self, db, payments, owner, booking):
        BookingService(db, make_settings(), clock=fixed_clock).cancel_reservation(booking.id, owner.id)

        result = payments.record_payment(owner.id, booking.id, Decimal("10.00"), PaymentMethod.CASH)

        assert result.error.kind is ErrorKind.STATE

    def test_other_users_booking_is_not_found(self, db, payments, booking):
        stranger = create_user(db, email="stranger@example.com")

        result = payments.record_payment(stranger.id, booking.id, Decimal("10.00"), PaymentMethod.CASH)

        assert result.error.kind is ErrorKind.NOT_FOUND


class TestCompletePayment:

    def test_full_completed_payments_activate_booking(self, payments, owner, booking):
        first = payments.record_payment(owner.id, booking.id, Decimal("100.00"), PaymentMethod.CREDIT_CARD).value
        second = payments.record_payment(owner.id, booking.id, Decimal("60.00"), PaymentMethod.CREDIT_CARD).value

        result = payments.update_payment(owner.id, first.id, status=PaymentStatus.COMPLETED, transaction_id="tx-1")
        assert result.ok
        assert result.value.payment_date == FIXED_NOW
        assert result.value.transaction_id == "tx-1"
        assert booking.status == BookingStatus.CONFIRMED.value

        payments.update_payment(owner.id, second.id, status=PaymentStatus.COMPLETED)
        assert booking.status == BookingStatus.ACTIVE.value

    def test_completing_beyond_booking_price_rejected(self, db, payments, owner, booking):
        first = payments.record_payment(owner.id, booking.id, Decimal("160.00"), PaymentMethod.CASH).value
        second = payments.record_payment(owner.id, booking.id, Decimal("160.00"), PaymentMethod.CASH).value
        payments.update_payment(owner.id, first.id, status=PaymentStatus.COMPLETED)

        result = payments.update_payment(owner.id, second.id, status=PaymentStatus.COMPLETED)

        assert result.error.kind is ErrorKind.VALIDATION
        db.refresh(second)
        assert second.status == PaymentStatus.PENDING.value
        assert completed_total(db, booking.id) == Decimal("160.00")

    def test_refund_leaves_booking_status_unchanged(self, db, payments, owner, booking):
        payment = payments.record_payment(owner.id, booking.id, Decimal("160.00"), PaymentMethod.CREDIT_CARD).value
        payments.update_payment(owner.id, payment.id, status=PaymentStatus.COMPLETED)

        result = payments.update_payment(owner.id, payment.id, status=PaymentStatus.REFUNDED)

        assert result.ok
        assert result.value.status == PaymentStatus.REFUNDED.value
        assert booking.status == BookingStatus.ACTIVE.value
        assert completed_total(db, booking.id) == Decimal("0")

    def test_illegal_payment_status_change(self, payments, owner, booking):
        payment = payments.record_payment(owner.id, booking.id, Decimal("10.00"), PaymentMethod.CASH).value

        result = payments.update_payment(owner.id, payment.id, status=PaymentStatus.REFUNDED)

        assert result.error.kind is ErrorKind.STATE

    def test_unknown_payment(self, payments, owner):
        assert payments.update_payment(owner.id, "missing", notes="x").error.kind is ErrorKind.NOT_FOUND

    def test_completing_payment_of_cancelled_booking_keeps_it_cancelled(self, db, payments, owner):
        unit = create_unit(db, unit_number="B-2")
        cancelled = add_booking(
            db, owner, unit, utc(2025, 5, 1), utc(2025, 5, 2),
            status=BookingStatus.CONFIRMED, total_price="80.00",
        )
        payment = payments.record_payment(owner.id, cancelled.id, Decimal("80.00"), PaymentMethod.CASH).value
        BookingService(db, make_settings(), clock=fixed_clock).cancel_reservation(cancelled.id, owner.id)

        result = payments.update_payment(owner.id, payment.id, status=PaymentStatus.COMPLETED)

        assert result.ok
        assert cancelled.status == BookingStatus.CANCELLED.value


class TestListPayments:

    def test_lists_booking_payments(self, db, payments, owner, booking):
        payments.record_payment(owner.id, booking.id, Decimal("10.00"), PaymentMethod.CASH)
        payments.record_payment(owner.id, booking.id, Decimal("20.00"), PaymentMethod.CASH)
        stranger = create_user(db, email="stranger@example.com")

        result = payments.list_payments(owner.id, booking.id)

        assert sorted(p.amount for p in result.value) == [Decimal("10.00"), Decimal("20.00")]
        assert payments.list_payments(stranger.id, booking.id).error.kind is ErrorKind.NOT_FOUND


class TestGetPayment:

    def test_owner_sees_payment(self, payments, owner, booking):
        payment = payments.record_payment(owner.id, booking.id, Decimal("10.00"), PaymentMethod.CASH).value

        result = payments.get_payment(owner.id, payment.id)

        assert result.ok
        assert result.value.id == payment.id
        assert result.value.booking_id == booking.id

    def test_other_users_payment_is_not_found(self, db, payments, owner, booking):
        payment = payments.record_payment(owner.id, booking.id, Decimal("10.00"), PaymentMethod.CASH).value
        stranger = create_user(db, email="stranger@example.com")

        assert payments.get_payment(stranger.id, payment.id).error.kind is ErrorKind.NOT_FOUND

    def test_unknown_payment(self, payments, owner):
        assert payments.get_payment(owner.id, "missing").error.kind is ErrorKind.NOT_FOUND
