"""
Unit Pricing Model

A unit carries one rule per pricing tier (hourly, daily, monthly, yearly).
Each rule has a strictly positive rate and an optional percentage discount.
Only active rules take part in price calculation.
"""

import uuid
import enum
from sqlalchemy import Column, String, Numeric, ForeignKey, DateTime, Boolean, CheckConstraint
from sqlalchemy.orm import relationship
from ..database import Base
from ..utils.timeutils import utcnow


class PricingType(str, enum.Enum):
    HOURLY = "hourly"
    DAILY = "daily"
    MONTHLY = "monthly"
    YEARLY = "yearly"


class UnitPricing(Base):
    __tablename__ = "unit_pricing"

    id = Column(String(36), primary_key=True, default=lambda: str(uuid.uuid4()))
    unit_id = Column(String(36), ForeignKey("warehouse_units.id", ondelete="CASCADE"), nullable=False, index=True)
    pricing_type = Column(String(20), nullable=False)
    price = Column(Numeric(18, 2), nullable=False)
    discount_percentage = Column(Numeric(5, 2), nullable=True)
    is_active = Column(Boolean, nullable=False, default=True)

    created_at = Column(DateTime(timezone=True), default=utcnow, nullable=False)
    updated_at = Column(DateTime(timezone=True), nullable=True, onupdate=utcnow)

    unit = relationship("WarehouseUnit", back_populates="pricing")

    __table_args__ = (
        CheckConstraint("price > 0", name="ck_unit_pricing_price_positive"),
        CheckConstraint(
            "discount_percentage IS NULL OR (discount_percentage >= 0 AND discount_percentage <= 100)",
            name="ck_unit_pricing_discount_range",
        ),
        CheckConstraint(
            "pricing_type IN ('hourly', 'daily', 'monthly', 'yearly')",
            name="ck_unit_pricing_type",
        ),
    )

    def __repr__(self):
        return f"<UnitPricing unit_id={self.unit_id} {self.pricing_type}={self.price}>"
