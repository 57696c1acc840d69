import re
from datetime import datetime
from decimal import Decimal
from typing import List, Optional

from pydantic import BaseModel, Field, field_validator

from ..models.booking import BookingStatus
from ..utils.timeutils import ensure_utc
from .payment import PaymentResponse


def _strip_markup(value):
    """Remove script tags and inline event handlers from free text"""
    if isinstance(value, str):
        value = re.sub(r'<script[^>]*>.*?</script>', '', value, flags=re.IGNORECASE | re.DOTALL)
        value = re.sub(r'on\w+\s*=', '', value, flags=re.IGNORECASE)
    return value


class BookingCreate(BaseModel):
    unit_id: str = Field(..., min_length=1, max_length=36)
    start_date: datetime = Field(..., description="Start of the booking window (inclusive)")
    end_date: datetime = Field(..., description="End of the booking window (exclusive)")
    notes: Optional[str] = Field(None, max_length=1000)

    @field_validator('start_date', 'end_date')
    @classmethod
    def normalize_timezone(cls, v):
        return ensure_utc(v)

    @field_validator('notes', mode='before')
    @classmethod
    def sanitize_notes(cls, v):
        return _strip_markup(v)


class BookingUpdate(BaseModel):
    start_date: Optional[datetime] = None
    end_date: Optional[datetime] = None
    status: Optional[BookingStatus] = None
    notes: Optional[str] = Field(None, max_length=1000)

    @field_validator('start_date', 'end_date')
    @classmethod
    def normalize_timezone(cls, v):
        return ensure_utc(v)

    @field_validator('notes', mode='before')
    @classmethod
    def sanitize_notes(cls, v):
        return _strip_markup(v)


class UserSummary(BaseModel):
    id: str
    email: str
    full_name: str


class UnitSummary(BaseModel):
    id: str
    unit_number: str
    warehouse_id: str
    warehouse_name: str = ""
    square_meters: Decimal


class BookingSummaryResponse(BaseModel):
    id: str
    unit_id: str
    unit_number: str = ""
    warehouse_name: str = ""
    start_date: datetime
    end_date: datetime
    status: BookingStatus
    total_price: Decimal
    created_at: datetime


class BookingResponse(BaseModel):
    id: str
    user_id: str
    unit_id: str
    start_date: datetime
    end_date: datetime
    status: BookingStatus
    total_price: Decimal
    notes: Optional[str] = None
    created_at: datetime
    updated_at: Optional[datetime] = None

    user: Optional[UserSummary] = None
    unit: Optional[UnitSummary] = None
    payments: List[PaymentResponse] = []


class AvailabilityResponse(BaseModel):
    unit_id: str
    start_date: datetime
    end_date: datetime
    is_available: bool


class QuoteResponse(BaseModel):
    unit_id: str
    start_date: datetime
    end_date: datetime
    duration_hours: Decimal
    pricing_type: Optional[str] = None
    units: int
    unit_price: Decimal
    discount_percentage: Decimal
    base_amount: Decimal
    total_price: Decimal
