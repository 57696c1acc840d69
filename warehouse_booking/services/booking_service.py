"""
Booking Admission Service

Creates, reschedules and cancels warehouse unit bookings.

Admission of a new booking:
1. end must be after start
2. start must not be in the past
3. the unit must exist (its row is locked for the rest of the transaction)
4. the unit must be available and active
5. no non-cancelled booking of the unit may overlap [start, end)
6. the price is computed from the unit's active pricing rules
7. the booking is stored as pending

Steps 3-7 run in one transaction holding the unit lock, so two requests
for overlapping windows on one unit cannot both be admitted.
"""

import time
from datetime import datetime
from typing import Callable, List, Optional, TypeVar

from sqlalchemy import and_
from sqlalchemy.exc import DBAPIError, IntegrityError, SQLAlchemyError
from sqlalchemy.orm import Session, selectinload

from ..config import Settings
from ..models.booking import Booking, BookingStatus, BOOKING_EXCLUSION_CONSTRAINT
from ..models.user import User
from ..models.warehouse import WarehouseUnit
from ..utils.db_helpers import acquire_row_lock, is_lock_contention
from ..utils.logging_config import get_logger
from ..utils.timeutils import ensure_utc, utcnow
from .availability import UNIT_ALREADY_BOOKED, admission_error, is_unit_bookable
from .booking_lifecycle import can_transition, is_terminal
from .pricing_engine import PriceQuote, PricingEngine
from .results import (
    ErrorKind,
    ServiceError,
    ServiceResult,
    conflict,
    not_found,
    state_error,
    transient_store_error,
    validation_error,
)

logger = get_logger(__name__)

T = TypeVar("T")

END_BEFORE_START = "End date must be after start date"
START_IN_PAST = "Start date cannot be in the past"
BOOKING_NOT_FOUND = "Booking not found"
UNIT_NOT_FOUND = "Warehouse unit not found"
USER_NOT_FOUND = "User not found"
UNIT_BUSY = "Unit is being booked by another request, please retry"
STORE_UNAVAILABLE = "Booking store is temporarily unavailable"


class BookingService:
    """
    Booking admission, rescheduling and cancellation.

    Every public method returns a ServiceResult; store failures are rolled
    back and reported as transient errors.
    """

    def __init__(
        self,
        db: Session,
        settings: Settings,
        clock: Callable[[], datetime] = utcnow,
    ):
        self.db = db
        self.settings = settings
        self.clock = clock

    # ------------------------------------------------------------------
    # validation and store plumbing
    # ------------------------------------------------------------------

    def _validate_window(
        self,
        start: datetime,
        end: datetime,
        check_past: bool = True,
    ) -> Optional[ServiceError]:
        if end <= start:
            return validation_error(END_BEFORE_START)
        if check_past and start < self.clock():
            return validation_error(START_IN_PAST)
        return None

    def _lock_unit(self, unit_id: str) -> Optional[WarehouseUnit]:
        return acquire_row_lock(
            self.db,
            WarehouseUnit,
            WarehouseUnit.id == unit_id,
            nowait=self.settings.booking_lock_nowait,
            options=(selectinload(WarehouseUnit.pricing),),
        )

    def _lock_owned_booking(self, booking_id: str, owner_id: str) -> Optional[Booking]:
        # a booking of another user is reported exactly like a missing one
        return acquire_row_lock(
            self.db,
            Booking,
            and_(Booking.id == booking_id, Booking.user_id == owner_id),
            nowait=self.settings.booking_lock_nowait,
        )

    def _in_transaction(self, action: str, work: Callable[[], ServiceResult[T]]) -> ServiceResult[T]:
        """Run work, commit on success and roll back on any failure"""
        try:
            result = work()
            if result.ok:
                self.db.commit()
            else:
                self.db.rollback()
            return result
        except IntegrityError as e:
            self.db.rollback()
            if BOOKING_EXCLUSION_CONSTRAINT in str(e.orig):
                logger.warning(f"{action}: overlap rejected by exclusion constraint")
                return ServiceResult.from_error(conflict(UNIT_ALREADY_BOOKED))
            logger.warning(f"{action}: integrity error: {e.orig}")
            return ServiceResult.failure(ErrorKind.CONFLICT, "Booking conflicts with existing data")
        except DBAPIError as e:
            self.db.rollback()
            if is_lock_contention(e):
                logger.warning(f"{action}: lock contention: {e}")
                return ServiceResult.from_error(transient_store_error(UNIT_BUSY))
            logger.exception(f"{action}: store failure")
            return ServiceResult.from_error(transient_store_error(STORE_UNAVAILABLE))
        except SQLAlchemyError:
            self.db.rollback()
            logger.exception(f"{action}: store failure")
            return ServiceResult.from_error(transient_store_error(STORE_UNAVAILABLE))

    def _read(self, action: str, work: Callable[[], ServiceResult[T]]) -> ServiceResult[T]:
        try:
            return work()
        except SQLAlchemyError:
            self.db.rollback()
            logger.exception(f"{action}: store failure")
            return ServiceResult.from_error(transient_store_error(STORE_UNAVAILABLE))

    # ------------------------------------------------------------------
    # read operations
    # ------------------------------------------------------------------

    def check_availability(self, unit_id: str, start: datetime, end: datetime) -> ServiceResult[bool]:
        """
        Whether [start, end) could be booked on the unit right now.

        Fails closed: a missing, unavailable or inactive unit is reported
        as unavailable. Nothing is written.
        """
        start, end = ensure_utc(start), ensure_utc(end)

        def work() -> ServiceResult[bool]:
            unit = self.db.query(WarehouseUnit).filter(WarehouseUnit.id == unit_id).first()
            if not is_unit_bookable(unit):
                return ServiceResult.success(False)
            return ServiceResult.success(admission_error(self.db, unit, start, end) is None)

        return self._read("check_availability", work)

    def quote(self, unit_id: str, start: datetime, end: datetime) -> ServiceResult[PriceQuote]:
        """Price a window without booking it"""
        start, end = ensure_utc(start), ensure_utc(end)
        error = self._validate_window(start, end)
        if error:
            return ServiceResult.from_error(error)

        def work() -> ServiceResult[PriceQuote]:
            unit = (
                self.db.query(WarehouseUnit)
                .options(selectinload(WarehouseUnit.pricing))
                .filter(WarehouseUnit.id == unit_id)
                .first()
            )
            if unit is None:
                return ServiceResult.from_error(not_found(UNIT_NOT_FOUND))
            return ServiceResult.success(PricingEngine(unit.pricing).quote(start, end))

        return self._read("quote", work)

    def get_reservation(self, booking_id: str, owner_id: str) -> ServiceResult[Booking]:
        def work() -> ServiceResult[Booking]:
            booking = self.db.query(Booking).filter(
                Booking.id == booking_id,
                Booking.user_id == owner_id,
            ).first()
            if booking is None:
                return ServiceResult.from_error(not_found(BOOKING_NOT_FOUND))
            return ServiceResult.success(booking)

        return self._read("get_reservation", work)

    def list_reservations(self, owner_id: str) -> ServiceResult[List[Booking]]:
        def work() -> ServiceResult[List[Booking]]:
            bookings = (
                self.db.query(Booking)
                .options(selectinload(Booking.unit).selectinload(WarehouseUnit.warehouse))
                .filter(Booking.user_id == owner_id)
                .order_by(Booking.created_at.desc())
                .all()
            )
            return ServiceResult.success(bookings)

        return self._read("list_reservations", work)

    # ------------------------------------------------------------------
    # write operations
    # ------------------------------------------------------------------

    def create_reservation(
        self,
        owner_id: str,
        unit_id: str,
        start: datetime,
        end: datetime,
        notes: Optional[str] = None,
    ) -> ServiceResult[Booking]:
        started = time.perf_counter()
        start, end = ensure_utc(start), ensure_utc(end)

        # no store access for a malformed window
        error = self._validate_window(start, end)
        if error:
            logger.reservation_rejected(unit_id, error.kind.value, error.message)
            return ServiceResult.from_error(error)

        def work() -> ServiceResult[Booking]:
            owner = self.db.query(User).filter(User.id == owner_id).first()
            if owner is None:
                return ServiceResult.from_error(not_found(USER_NOT_FOUND))

            unit = self._lock_unit(unit_id)
            if unit is None:
                return ServiceResult.from_error(not_found(UNIT_NOT_FOUND))

            error = admission_error(self.db, unit, start, end)
            if error:
                return ServiceResult.from_error(error)

            booking = Booking(
                user_id=owner.id,
                unit_id=unit.id,
                start_at=start,
                end_at=end,
                status=BookingStatus.PENDING.value,
                total_price=PricingEngine(unit.pricing).calculate_price(start, end),
                notes=notes,
                created_at=self.clock(),
            )
            self.db.add(booking)
            self.db.flush()
            return ServiceResult.success(booking)

        result = self._in_transaction("create_reservation", work)

        if result.ok:
            logger.reservation_created(
                result.value.id,
                unit_id,
                result.value.total_price,
                duration_ms=round((time.perf_counter() - started) * 1000, 2),
            )
        else:
            logger.reservation_rejected(unit_id, result.error.kind.value, result.error.message)
        return result

    def update_reservation(
        self,
        booking_id: str,
        owner_id: str,
        start: Optional[datetime] = None,
        end: Optional[datetime] = None,
        status: Optional[BookingStatus] = None,
        notes: Optional[str] = None,
    ) -> ServiceResult[Booking]:
        """
        Reschedule a booking and/or change its status or notes.

        A date change re-validates the window (the past check only applies
        when the start itself moves), re-checks overlap against every other
        booking of the unit and recomputes the price.
        """
        start, end = ensure_utc(start), ensure_utc(end)

        def work() -> ServiceResult[Booking]:
            booking = self._lock_owned_booking(booking_id, owner_id)
            if booking is None:
                return ServiceResult.from_error(not_found(BOOKING_NOT_FOUND))

            if is_terminal(booking.status):
                return ServiceResult.from_error(
                    state_error("Cannot update completed or cancelled bookings")
                )

            if start is not None or end is not None:
                stored_start = ensure_utc(booking.start_at)
                new_start = start or stored_start
                new_end = end or ensure_utc(booking.end_at)

                error = self._validate_window(new_start, new_end, check_past=new_start != stored_start)
                if error:
                    return ServiceResult.from_error(error)

                unit = self._lock_unit(booking.unit_id)
                if unit is None:
                    return ServiceResult.from_error(not_found(UNIT_NOT_FOUND))

                error = admission_error(
                    self.db, unit, new_start, new_end,
                    exclude_booking_id=booking.id,
                    require_bookable=False,
                )
                if error:
                    return ServiceResult.from_error(error)

                booking.start_at = new_start
                booking.end_at = new_end
                booking.total_price = PricingEngine(unit.pricing).calculate_price(new_start, new_end)

            if status is not None:
                current = BookingStatus(booking.status)
                target = BookingStatus(status)
                if target is not current:
                    if not can_transition(current, target):
                        return ServiceResult.from_error(
                            state_error(f"Cannot change status from {current.value} to {target.value}")
                        )
                    booking.status = target.value
                    logger.reservation_status_changed(booking.id, current.value, target.value)

            if notes is not None:
                booking.notes = notes

            booking.updated_at = self.clock()
            self.db.flush()
            return ServiceResult.success(booking)

        return self._in_transaction("update_reservation", work)

    def cancel_reservation(self, booking_id: str, owner_id: str) -> ServiceResult[bool]:
        def work() -> ServiceResult[bool]:
            booking = self._lock_owned_booking(booking_id, owner_id)
            if booking is None:
                return ServiceResult.from_error(not_found(BOOKING_NOT_FOUND))

            if is_terminal(booking.status):
                return ServiceResult.from_error(
                    state_error("Cannot cancel completed or already cancelled bookings")
                )

            old_status = booking.status
            booking.status = BookingStatus.CANCELLED.value
            booking.updated_at = self.clock()
            logger.reservation_status_changed(booking.id, old_status, booking.status)
            return ServiceResult.success(True)

        return self._in_transaction("cancel_reservation", work)
