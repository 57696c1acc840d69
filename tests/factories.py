"""
Test data helpers: settings, a fixed clock, and factories for users,
warehouse units with pricing rules, and bookings.
"""

from datetime import datetime, timedelta, timezone
from decimal import Decimal
from typing import Iterable, Optional, Tuple

from warehouse_booking.config import Settings
from warehouse_booking.models import Booking, BookingStatus, User, Warehouse, WarehouseUnit, UnitPricing

FIXED_NOW = datetime(2025, 1, 15, 12, 0, tzinfo=timezone.utc)
TEST_SECRET = "test-secret-key-for-warehouse-booking-tests"


def make_settings(**overrides) -> Settings:
    values = dict(
        environment="test",
        database_url="sqlite://",
        secret_key=TEST_SECRET,
        log_json=False,
        log_level="WARNING",
        rate_limit_enabled=False,
    )
    values.update(overrides)
    return Settings(**values)


def fixed_clock() -> datetime:
    return FIXED_NOW


def create_user(db, email: str = "owner@example.com") -> User:
    user = User(email=email, first_name="Test", last_name="Owner", is_active=True, created_at=FIXED_NOW)
    db.add(user)
    db.commit()
    return user


def create_unit(
    db,
    rules: Iterable[Tuple[str, str, Optional[str]]] = (("daily", "80.00", None),),
    is_available: bool = True,
    is_active: bool = True,
    unit_number: str = "A-1",
) -> WarehouseUnit:
    """Warehouse unit with (pricing_type, price, discount) rules, all active"""
    warehouse = db.query(Warehouse).filter(Warehouse.name == "Main Depot").first()
    if warehouse is None:
        warehouse = Warehouse(name="Main Depot", city="Riga", is_active=True, created_at=FIXED_NOW)
        db.add(warehouse)
        db.flush()

    unit = WarehouseUnit(
        warehouse_id=warehouse.id,
        unit_number=unit_number,
        square_meters=Decimal("40.00"),
        is_available=is_available,
        is_active=is_active,
        created_at=FIXED_NOW,
    )
    db.add(unit)
    db.flush()

    for offset, (pricing_type, price, discount) in enumerate(rules):
        db.add(UnitPricing(
            unit_id=unit.id,
            pricing_type=pricing_type,
            price=Decimal(price),
            discount_percentage=Decimal(discount) if discount is not None else None,
            is_active=True,
            created_at=FIXED_NOW + timedelta(seconds=offset),
        ))

    db.commit()
    return unit




def add_booking(db, user, unit, start, end, status=BookingStatus.PENDING, total_price="0.00") -> Booking:
    booking = Booking(
        user_id=user.id,
        unit_id=unit.id,
        start_at=start,
        end_at=end,
        status=status.value,
        total_price=Decimal(total_price),
        created_at=FIXED_NOW,
    )
    db.add(booking)
    db.commit()
    return booking


def utc(*args) -> datetime:
    return datetime(*args, tzinfo=timezone.utc)
