import uuid
import enum
from sqlalchemy import (
    Column, String, Numeric, ForeignKey, DateTime, Index, CheckConstraint, DDL, event
)
from sqlalchemy.orm import relationship
from ..database import Base
from ..utils.timeutils import utcnow


class BookingStatus(str, enum.Enum):
    PENDING = "pending"
    CONFIRMED = "confirmed"
    ACTIVE = "active"
    COMPLETED = "completed"
    CANCELLED = "cancelled"


class Booking(Base):
    """
    A reservation of one warehouse unit over the half-open window [start_at, end_at).
    """
    __tablename__ = "bookings"

    id = Column(String(36), primary_key=True, default=lambda: str(uuid.uuid4()))
    user_id = Column(String(36), ForeignKey("users.id", ondelete="CASCADE"), nullable=False, index=True)
    unit_id = Column(String(36), ForeignKey("warehouse_units.id", ondelete="CASCADE"), nullable=False)
    start_at = Column(DateTime(timezone=True), nullable=False)
    end_at = Column(DateTime(timezone=True), nullable=False)
    status = Column(String(20), nullable=False, default=BookingStatus.PENDING.value)
    total_price = Column(Numeric(18, 2), nullable=False, default=0)
    notes = Column(String(1000), nullable=True)

    created_at = Column(DateTime(timezone=True), default=utcnow, nullable=False)
    updated_at = Column(DateTime(timezone=True), nullable=True, onupdate=utcnow)

    # Relationships
    user = relationship("User", back_populates="bookings")
    unit = relationship("WarehouseUnit", back_populates="bookings")
    payments = relationship(
        "Payment",
        back_populates="booking",
        order_by="Payment.created_at.desc()",
        cascade="all, delete-orphan",
    )

    __table_args__ = (
        CheckConstraint("end_at > start_at", name="ck_booking_window_ordered"),
        Index("ix_booking_unit_window", "unit_id", "start_at", "end_at"),
        Index("ix_booking_unit_status", "unit_id", "status"),
    )

    def __repr__(self):
        return f"<Booking {self.id} unit={self.unit_id} [{self.start_at} - {self.end_at}) {self.status}>"


# Database-level guard against double booking on PostgreSQL. Two
# non-cancelled bookings of one unit may not share any instant.
BOOKING_EXCLUSION_CONSTRAINT = "ex_booking_unit_no_overlap"

event.listen(
    Booking.__table__,
    "before_create",
    DDL("CREATE EXTENSION IF NOT EXISTS btree_gist").execute_if(dialect="postgresql"),
)
event.listen(
    Booking.__table__,
    "after_create",
    DDL(
        f"ALTER TABLE bookings ADD CONSTRAINT {BOOKING_EXCLUSION_CONSTRAINT} "
        "EXCLUDE USING gist (unit_id WITH =, tstzrange(start_at, end_at, '[)') WITH &&) "
        "WHERE (status <> 'cancelled')"
    ).execute_if(dialect="postgresql"),
)
