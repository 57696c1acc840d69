"""
Booking lifecycle.

    pending -> confirmed -> active -> completed
       \\           \\          \\
        +-----------+----------+--> cancelled

completed and cancelled are terminal: a booking in either state is frozen.
pending -> confirmed and confirmed -> active are driven by payments.
"""

import logging
from decimal import Decimal
from typing import Dict, FrozenSet, Optional

from ..models.booking import Booking, BookingStatus
from ..utils.timeutils import utcnow

logger = logging.getLogger(__name__)

TERMINAL_STATUSES: FrozenSet[BookingStatus] = frozenset({
    BookingStatus.COMPLETED,
    BookingStatus.CANCELLED,
})

ALLOWED_TRANSITIONS: Dict[BookingStatus, FrozenSet[BookingStatus]] = {
    BookingStatus.PENDING: frozenset({BookingStatus.CONFIRMED, BookingStatus.CANCELLED}),
    BookingStatus.CONFIRMED: frozenset({BookingStatus.ACTIVE, BookingStatus.CANCELLED}),
    BookingStatus.ACTIVE: frozenset({BookingStatus.COMPLETED, BookingStatus.CANCELLED}),
    BookingStatus.COMPLETED: frozenset(),
    BookingStatus.CANCELLED: frozenset(),
}


def is_terminal(status) -> bool:
    return BookingStatus(status) in TERMINAL_STATUSES


def can_transition(current, target) -> bool:
    """Whether a booking in `current` may move to `target`"""
    return BookingStatus(target) in ALLOWED_TRANSITIONS[BookingStatus(current)]


def _move(booking: Booking, target: BookingStatus) -> Optional[BookingStatus]:
    old = BookingStatus(booking.status)
    if not can_transition(old, target):
        return None
    booking.status = target.value
    booking.updated_at = utcnow()
    logger.info(f"Booking {booking.id} status {old.value} -> {target.value}")
    return old


def on_payment_recorded(booking: Booking) -> bool:
    """First payment against a pending booking confirms it"""
    if BookingStatus(booking.status) is not BookingStatus.PENDING:
        return False
    return _move(booking, BookingStatus.CONFIRMED) is not None


def on_payment_completed(booking: Booking, total_paid: Decimal) -> bool:
    """
    A confirmed booking becomes active once completed payments cover its price.

    A pending booking whose payment completes directly is confirmed first.
    """
    if is_terminal(booking.status):
        return False
    if Decimal(str(total_paid)) < Decimal(str(booking.total_price)):
        return False

    if BookingStatus(booking.status) is BookingStatus.PENDING:
        _move(booking, BookingStatus.CONFIRMED)
    if BookingStatus(booking.status) is BookingStatus.CONFIRMED:
        return _move(booking, BookingStatus.ACTIVE) is not None
    return False
