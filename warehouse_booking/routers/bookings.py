from fastapi import APIRouter, Depends, Query, status
from typing import List
from datetime import datetime

from ..models.booking import Booking
from ..schemas.booking import (
    AvailabilityResponse,
    BookingCreate,
    BookingResponse,
    BookingSummaryResponse,
    BookingUpdate,
    QuoteResponse,
    UnitSummary,
    UserSummary,
)
from ..schemas.payment import PaymentResponse
from ..services.booking_service import BookingService
from ..services.payment_service import PaymentService
from ..utils.dependencies import get_booking_service, get_current_user_id, get_payment_service
from ..utils.http_errors import unwrap
from ..utils.timeutils import ensure_utc

router = APIRouter(prefix="/api/bookings", tags=["Bookings"])


def to_booking_response(booking: Booking) -> BookingResponse:
    """Full booking view with owner, unit and payments"""
    user = booking.user
    unit = booking.unit

    return BookingResponse(
        id=booking.id,
        user_id=booking.user_id,
        unit_id=booking.unit_id,
        start_date=ensure_utc(booking.start_at),
        end_date=ensure_utc(booking.end_at),
        status=booking.status,
        total_price=booking.total_price,
        notes=booking.notes,
        created_at=ensure_utc(booking.created_at),
        updated_at=ensure_utc(booking.updated_at),
        user=UserSummary(
            id=user.id,
            email=user.email,
            full_name=user.full_name,
        ) if user else None,
        unit=UnitSummary(
            id=unit.id,
            unit_number=unit.unit_number,
            warehouse_id=unit.warehouse_id,
            warehouse_name=unit.warehouse.name if unit.warehouse else "",
            square_meters=unit.square_meters,
        ) if unit else None,
        payments=[PaymentResponse.model_validate(p) for p in booking.payments],
    )


def to_booking_summary(booking: Booking) -> BookingSummaryResponse:
    unit = booking.unit
    return BookingSummaryResponse(
        id=booking.id,
        unit_id=booking.unit_id,
        unit_number=unit.unit_number if unit else "",
        warehouse_name=unit.warehouse.name if unit and unit.warehouse else "",
        start_date=ensure_utc(booking.start_at),
        end_date=ensure_utc(booking.end_at),
        status=booking.status,
        total_price=booking.total_price,
        created_at=ensure_utc(booking.created_at),
    )


@router.get("", response_model=List[BookingSummaryResponse])
def list_bookings(
    user_id: str = Depends(get_current_user_id),
    service: BookingService = Depends(get_booking_service),
):
    """Bookings of the calling user, newest first"""
    bookings = unwrap(service.list_reservations(user_id))
    return [to_booking_summary(b) for b in bookings]


@router.get("/check-availability", response_model=AvailabilityResponse)
def check_availability(
    unit_id: str = Query(..., min_length=1),
    start_date: datetime = Query(...),
    end_date: datetime = Query(...),
    service: BookingService = Depends(get_booking_service),
):
    """Whether the unit is free over [start_date, end_date)"""
    is_available = unwrap(service.check_availability(unit_id, start_date, end_date))
    return AvailabilityResponse(
        unit_id=unit_id,
        start_date=ensure_utc(start_date),
        end_date=ensure_utc(end_date),
        is_available=is_available,
    )


@router.get("/quote", response_model=QuoteResponse)
def quote_booking(
    unit_id: str = Query(..., min_length=1),
    start_date: datetime = Query(...),
    end_date: datetime = Query(...),
    service: BookingService = Depends(get_booking_service),
):
    """Price a window on the unit without booking it"""
    quote = unwrap(service.quote(unit_id, start_date, end_date))
    return QuoteResponse(
        unit_id=unit_id,
        start_date=ensure_utc(start_date),
        end_date=ensure_utc(end_date),
        duration_hours=quote.duration_hours,
        pricing_type=quote.tier.value if quote.tier else None,
        units=quote.units,
        unit_price=quote.unit_price,
        discount_percentage=quote.discount_percentage,
        base_amount=quote.base_amount,
        total_price=quote.total,
    )


@router.get("/{booking_id}", response_model=BookingResponse)
def get_booking(
    booking_id: str,
    user_id: str = Depends(get_current_user_id),
    service: BookingService = Depends(get_booking_service),
):
    booking = unwrap(service.get_reservation(booking_id, user_id))
    return to_booking_response(booking)


@router.post("", response_model=BookingResponse, status_code=status.HTTP_201_CREATED)
def create_booking(
    booking_data: BookingCreate,
    user_id: str = Depends(get_current_user_id),
    service: BookingService = Depends(get_booking_service),
):
    """
    Book a unit for [start_date, end_date).

    The booking is created as pending with its price computed from the
    unit's pricing rules. 409 when the unit is unavailable or already booked
    for an overlapping window; 503 when the store is busy (safe to retry).
    """
    booking = unwrap(service.create_reservation(
        owner_id=user_id,
        unit_id=booking_data.unit_id,
        start=booking_data.start_date,
        end=booking_data.end_date,
        notes=booking_data.notes,
    ))
    return to_booking_response(booking)


@router.put("/{booking_id}", response_model=BookingResponse)
def update_booking(
    booking_id: str,
    booking_data: BookingUpdate,
    user_id: str = Depends(get_current_user_id),
    service: BookingService = Depends(get_booking_service),
):
    booking = unwrap(service.update_reservation(
        booking_id,
        user_id,
        start=booking_data.start_date,
        end=booking_data.end_date,
        status=booking_data.status,
        notes=booking_data.notes,
    ))
    return to_booking_response(booking)


@router.post("/{booking_id}/cancel")
def cancel_booking(
    booking_id: str,
    user_id: str = Depends(get_current_user_id),
    service: BookingService = Depends(get_booking_service),
):
    unwrap(service.cancel_reservation(booking_id, user_id))
    return {"success": True}


@router.get("/{booking_id}/payments", response_model=List[PaymentResponse])
def list_booking_payments(
    booking_id: str,
    user_id: str = Depends(get_current_user_id),
    service: PaymentService = Depends(get_payment_service),
):
    payments = unwrap(service.list_payments(user_id, booking_id))
    return [PaymentResponse.model_validate(p) for p in payments]
