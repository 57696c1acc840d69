import uuid
from sqlalchemy import Column, String, Numeric, ForeignKey, DateTime, Boolean, UniqueConstraint
from sqlalchemy.orm import relationship
from ..database import Base
from ..utils.timeutils import utcnow


class Warehouse(Base):
    __tablename__ = "warehouses"

    id = Column(String(36), primary_key=True, default=lambda: str(uuid.uuid4()))
    name = Column(String(200), nullable=False)
    address = Column(String(500), nullable=True)
    city = Column(String(100), nullable=True)
    is_active = Column(Boolean, nullable=False, default=True)

    created_at = Column(DateTime(timezone=True), default=utcnow, nullable=False)
    updated_at = Column(DateTime(timezone=True), nullable=True, onupdate=utcnow)

    units = relationship("WarehouseUnit", back_populates="warehouse", cascade="all, delete-orphan")

    def __repr__(self):
        return f"<Warehouse {self.name}>"


class WarehouseUnit(Base):
    """A leasable subdivision of a warehouse with its own pricing and availability."""
    __tablename__ = "warehouse_units"

    id = Column(String(36), primary_key=True, default=lambda: str(uuid.uuid4()))
    warehouse_id = Column(String(36), ForeignKey("warehouses.id", ondelete="CASCADE"), nullable=False, index=True)
    unit_number = Column(String(50), nullable=False)
    square_meters = Column(Numeric(10, 2), nullable=False)
    description = Column(String(500), nullable=True)
    is_available = Column(Boolean, nullable=False, default=True)
    is_active = Column(Boolean, nullable=False, default=True)

    created_at = Column(DateTime(timezone=True), default=utcnow, nullable=False)
    updated_at = Column(DateTime(timezone=True), nullable=True, onupdate=utcnow)

    # Relationships
    warehouse = relationship("Warehouse", back_populates="units")
    pricing = relationship(
        "UnitPricing",
        back_populates="unit",
        order_by="[UnitPricing.created_at, UnitPricing.id]",
        cascade="all, delete-orphan",
    )
    bookings = relationship("Booking", back_populates="unit")

    __table_args__ = (
        UniqueConstraint("warehouse_id", "unit_number", name="uq_warehouse_unit_number"),
    )

    @property
    def is_bookable(self) -> bool:
        return bool(self.is_available and self.is_active)

    def __repr__(self):
        return f"<WarehouseUnit {self.unit_number} warehouse={self.warehouse_id}>"
