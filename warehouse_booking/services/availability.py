"""
Availability checks for warehouse units.

Bookings occupy half-open windows [start, end), so a booking ending at
10:00 and another starting at 10:00 do not overlap.
"""

import logging
from datetime import datetime
from typing import Optional

from sqlalchemy import and_
from sqlalchemy.orm import Query, Session

from ..models.booking import Booking, BookingStatus
from ..models.warehouse import WarehouseUnit
from .results import ServiceError, conflict

logger = logging.getLogger(__name__)

UNIT_NOT_AVAILABLE = "Warehouse unit is not available"
UNIT_ALREADY_BOOKED = "Unit is already booked for the selected dates"


def intervals_overlap(
    a_start: datetime,
    a_end: datetime,
    b_start: datetime,
    b_end: datetime,
) -> bool:
    """True when [a_start, a_end) and [b_start, b_end) share at least one instant"""
    return a_start < b_end and b_start < a_end


def overlap_clause(start_column, end_column, start: datetime, end: datetime):
    """SQL form of intervals_overlap for a stored window against [start, end)"""
    return and_(start_column < end, start < end_column)


def is_unit_bookable(unit: Optional[WarehouseUnit]) -> bool:
    return unit is not None and unit.is_bookable


def find_conflicts(
    db: Session,
    unit_id: str,
    start: datetime,
    end: datetime,
    exclude_booking_id: Optional[str] = None,
) -> Query:
    """Non-cancelled bookings of the unit that overlap [start, end)"""
    query = db.query(Booking).filter(
        Booking.unit_id == unit_id,
        Booking.status != BookingStatus.CANCELLED.value,
        overlap_clause(Booking.start_at, Booking.end_at, start, end),
    )

    if exclude_booking_id:
        query = query.filter(Booking.id != exclude_booking_id)

    return query


def has_conflict(
    db: Session,
    unit_id: str,
    start: datetime,
    end: datetime,
    exclude_booking_id: Optional[str] = None,
) -> bool:
    return find_conflicts(db, unit_id, start, end, exclude_booking_id).first() is not None


def admission_error(
    db: Session,
    unit: Optional[WarehouseUnit],
    start: datetime,
    end: datetime,
    exclude_booking_id: Optional[str] = None,
    require_bookable: bool = True,
) -> Optional[ServiceError]:
    """
    Shared availability decision for create, reschedule and the read-only check.

    Returns None when the window can be admitted, otherwise the conflict to
    report. The caller is responsible for the unit lookup (and its lock).
    """
    if require_bookable and not is_unit_bookable(unit):
        return conflict(UNIT_NOT_AVAILABLE)

    if has_conflict(db, unit.id, start, end, exclude_booking_id):
        logger.info(
            f"Overlap on unit {unit.id} for [{start.isoformat()}, {end.isoformat()})"
        )
        return conflict(UNIT_ALREADY_BOOKED)

    return None
