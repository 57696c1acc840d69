"""
Payment recording for bookings.

Payments drive the booking lifecycle: the first payment recorded against a
pending booking confirms it, and once completed payments cover the booking
price the booking becomes active.
"""

import logging
from datetime import datetime
from decimal import Decimal
from typing import Callable, Dict, FrozenSet, List, Optional

from sqlalchemy import func
from sqlalchemy.exc import DBAPIError, SQLAlchemyError
from sqlalchemy.orm import Session

from ..config import Settings
from ..models.booking import Booking
from ..models.payment import Payment, PaymentMethod, PaymentStatus
from ..utils.db_helpers import acquire_row_lock, is_lock_contention
from ..utils.logging_config import get_logger
from ..utils.timeutils import utcnow
from .booking_lifecycle import is_terminal, on_payment_completed, on_payment_recorded
from .results import (
    ServiceResult,
    not_found,
    state_error,
    transient_store_error,
    validation_error,
)

logger = get_logger(__name__)

PAYMENT_TRANSITIONS: Dict[PaymentStatus, FrozenSet[PaymentStatus]] = {
    PaymentStatus.PENDING: frozenset({
        PaymentStatus.PROCESSING, PaymentStatus.COMPLETED, PaymentStatus.FAILED,
    }),
    PaymentStatus.PROCESSING: frozenset({PaymentStatus.COMPLETED, PaymentStatus.FAILED}),
    PaymentStatus.COMPLETED: frozenset({PaymentStatus.REFUNDED}),
    PaymentStatus.FAILED: frozenset(),
    PaymentStatus.REFUNDED: frozenset(),
}


def completed_total(db: Session, booking_id: str) -> Decimal:
    """Sum of completed payments of a booking"""
    total = db.query(func.coalesce(func.sum(Payment.amount), 0)).filter(
        Payment.booking_id == booking_id,
        Payment.status == PaymentStatus.COMPLETED.value,
    ).scalar()
    return Decimal(str(total))


class PaymentService:
    def __init__(
        self,
        db: Session,
        settings: Settings,
        clock: Callable[[], datetime] = utcnow,
    ):
        self.db = db
        self.settings = settings
        self.clock = clock

    def _run(self, action: str, work) -> ServiceResult:
        try:
            result = work()
            if result.ok:
                self.db.commit()
            else:
                self.db.rollback()
            return result
        except DBAPIError as e:
            self.db.rollback()
            if is_lock_contention(e):
                logger.warning(f"{action}: lock contention: {e}")
                return ServiceResult.from_error(
                    transient_store_error("Booking is being updated by another request, please retry")
                )
            logger.exception(f"{action}: store failure")
            return ServiceResult.from_error(transient_store_error("Payment store is temporarily unavailable"))
        except SQLAlchemyError:
            self.db.rollback()
            logger.exception(f"{action}: store failure")
            return ServiceResult.from_error(transient_store_error("Payment store is temporarily unavailable"))

    def _lock_owned_booking(self, booking_id: str, owner_id: str) -> Optional[Booking]:
        return acquire_row_lock(
            self.db,
            Booking,
            (Booking.id == booking_id) & (Booking.user_id == owner_id),
            nowait=self.settings.booking_lock_nowait,
        )

    def _find_owned_payment(self, payment_id: str, owner_id: str) -> Optional[Payment]:
        return self.db.query(Payment).join(Booking).filter(
            Payment.id == payment_id,
            Booking.user_id == owner_id,
        ).first()

    def record_payment(
        self,
        owner_id: str,
        booking_id: str,
        amount: Decimal,
        method: PaymentMethod,
        transaction_id: Optional[str] = None,
        notes: Optional[str] = None,
    ) -> ServiceResult[Payment]:
        amount = Decimal(str(amount))
        if amount <= 0:
            return ServiceResult.from_error(validation_error("Payment amount must be positive"))

        def work() -> ServiceResult[Payment]:
            booking = self._lock_owned_booking(booking_id, owner_id)
            if booking is None:
                return ServiceResult.from_error(not_found("Booking not found"))

            if is_terminal(booking.status):
                return ServiceResult.from_error(
                    state_error("Cannot record payments for completed or cancelled bookings")
                )

            paid = completed_total(self.db, booking.id)
            if paid + amount > Decimal(str(booking.total_price)):
                return ServiceResult.from_error(
                    validation_error("Payment amount exceeds remaining balance")
                )

            payment = Payment(
                booking_id=booking.id,
                amount=amount,
                status=PaymentStatus.PENDING.value,
                payment_method=PaymentMethod(method).value,
                transaction_id=transaction_id,
                notes=notes,
                created_at=self.clock(),
            )
            self.db.add(payment)
            on_payment_recorded(booking)
            self.db.flush()

            logger.log_with_context(
                logging.INFO,
                f"Payment recorded for booking {booking.id}",
                entity_type="payment",
                entity_id=payment.id,
                unit_id=booking.unit_id,
                booking_id=booking.id,
                amount=str(amount),
                booking_status=booking.status,
            )
            return ServiceResult.success(payment)

        return self._run("record_payment", work)

    def update_payment(
        self,
        owner_id: str,
        payment_id: str,
        status: Optional[PaymentStatus] = None,
        transaction_id: Optional[str] = None,
        notes: Optional[str] = None,
    ) -> ServiceResult[Payment]:
        def work() -> ServiceResult[Payment]:
            payment = self._find_owned_payment(payment_id, owner_id)
            if payment is None:
                return ServiceResult.from_error(not_found("Payment not found"))

            booking = self._lock_owned_booking(payment.booking_id, owner_id)

            if status is not None:
                current = PaymentStatus(payment.status)
                target = PaymentStatus(status)
                if target is not current:
                    if target not in PAYMENT_TRANSITIONS[current]:
                        return ServiceResult.from_error(
                            state_error(f"Cannot change payment status from {current.value} to {target.value}")
                        )
                    if target is PaymentStatus.COMPLETED:
                        paid = completed_total(self.db, booking.id)
                        if paid + Decimal(str(payment.amount)) > Decimal(str(booking.total_price)):
                            return ServiceResult.from_error(
                                validation_error("Payment amount exceeds remaining balance")
                            )
                        payment.status = target.value
                        payment.payment_date = self.clock()
                        self.db.flush()
                        on_payment_completed(booking, paid + Decimal(str(payment.amount)))
                    else:
                        # refunds and failures never move the booking backwards
                        payment.status = target.value

            if transaction_id is not None:
                payment.transaction_id = transaction_id
            if notes is not None:
                payment.notes = notes

            payment.updated_at = self.clock()
            self.db.flush()
            return ServiceResult.success(payment)

        return self._run("update_payment", work)

    def get_payment(self, owner_id: str, payment_id: str) -> ServiceResult[Payment]:
        """Payments on someone else's booking are reported as not found"""
        try:
            payment = self._find_owned_payment(payment_id, owner_id)
            if payment is None:
                return ServiceResult.from_error(not_found("Payment not found"))
            return ServiceResult.success(payment)
        except SQLAlchemyError:
            self.db.rollback()
            logger.exception("get_payment: store failure")
            return ServiceResult.from_error(transient_store_error("Payment store is temporarily unavailable"))

    def list_payments(
self, owner_id: str, booking_id: str) -> ServiceResult[List[Payment]]:
        try:
            booking = self.db.query(Booking).filter(
                Booking.id == booking_id,
                Booking.user_id == owner_id,
            ).first()
            if booking is None:
                return ServiceResult.from_error(not_found("Booking not found"))

            payments = (
                self.db.query(Payment)
                .filter(Payment.booking_id == booking.id)
                .order_by(Payment.created_at.desc())
                .all()
            )
            return ServiceResult.success(payments)
        except SQLAlchemyError:
            self.db.rollback()
            logger.exception("list_payments: store failure")
            return ServiceResult.from_error(transient_store_error("Payment store is temporarily unavailable"))
