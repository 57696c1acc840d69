# Models package
from .user import User
from .warehouse import Warehouse, WarehouseUnit
from .pricing import UnitPricing, PricingType
from .booking import Booking, BookingStatus
from .payment import Payment, PaymentStatus, PaymentMethod

__all__ = [
    "User",
    "Warehouse", "WarehouseUnit",
    "UnitPricing", "PricingType",
    "Booking", "BookingStatus",
    "Payment", "PaymentStatus", "PaymentMethod",
]
