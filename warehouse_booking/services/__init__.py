# Services package
from .results import ErrorKind, ServiceError, ServiceResult
from .pricing_engine import PricingEngine, PriceQuote, calculate_price
from .availability import intervals_overlap, find_conflicts, admission_error
from .booking_service import BookingService
from .payment_service import PaymentService

__all__ = [
    "ErrorKind", "ServiceError", "ServiceResult",
    "PricingEngine", "PriceQuote", "calculate_price",
    "intervals_overlap", "find_conflicts", "admission_error",
    "BookingService",
    "PaymentService",
]
