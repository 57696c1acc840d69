"""
Pricing Engine Service

Computes the total price of a booking window from a unit's tiered pricing rules.

Tier selection is threshold based and evaluated from the coarsest tier down:
1. >= 8760 hours (365 days) with an active yearly rule
2. >= 720 hours (30 days) with an active monthly rule
3. >= 24 hours with an active daily rule
4. any duration with an active hourly rule
5. otherwise the price is zero

The first tier whose threshold is met and that has an active rule wins.
Billable units are the duration rounded up to whole tier periods, and the
rule's discount percentage is applied to rate x units.
"""

from datetime import datetime, timedelta
from decimal import Decimal, ROUND_HALF_UP
from typing import Iterable, List, Optional, Sequence
from dataclasses import dataclass

from ..models.pricing import PricingType, UnitPricing
from ..utils.timeutils import ensure_utc

_MICROSECONDS_PER_HOUR = 3_600 * 1_000_000
_CENT = Decimal("0.01")

# (tier, hours per billable unit), coarsest first
TIER_ORDER = (
    (PricingType.YEARLY, 8760),
    (PricingType.MONTHLY, 720),
    (PricingType.DAILY, 24),
    (PricingType.HOURLY, 1),
)


@dataclass
class PriceQuote:
    """Breakdown of one price calculation"""
    duration_hours: Decimal
    tier: Optional[PricingType]
    units: int
    unit_price: Decimal
    discount_percentage: Decimal
    base_amount: Decimal  # rate x units, before discount
    total: Decimal
    rule_id: Optional[str] = None


def _duration_microseconds(start: datetime, end: datetime) -> int:
    return (ensure_utc(end) - ensure_utc(start)) // timedelta(microseconds=1)


def _ceil_div(numerator: int, denominator: int) -> int:
    return -(-numerator // denominator)


def _rule_sort_key(rule: UnitPricing):
    created_at = ensure_utc(rule.created_at) if rule.created_at else None
    # rules without a timestamp yet sort last
    return (created_at is None, created_at or datetime.max, str(rule.id or ""))


def select_rule(rules: Iterable[UnitPricing], tier: PricingType) -> Optional[UnitPricing]:
    """
    Pick the active rule for a tier.

    When several active rules share the tier, the earliest created wins,
    ties broken by the lowest id.
    """
    candidates = [
        rule for rule in rules
        if rule.is_active and PricingType(rule.pricing_type) is tier
    ]
    if not candidates:
        return None
    return min(candidates, key=_rule_sort_key)


class PricingEngine:
    """
    Core pricing engine for booking windows.

    Pricing Formula:
    1. tier = first of (yearly, monthly, daily, hourly) whose threshold is met
       and which has an active rule
    2. units = ceil(duration_hours / tier_hours)
    3. total = round(rate * units * (1 - discount/100), 2)

    All arithmetic is Decimal; rounding happens once, on the final total.
    """

    def __init__(self, rules: Sequence[UnitPricing]):
        self.rules: List[UnitPricing] = list(rules)

    def quote(self, start: datetime, end: datetime) -> PriceQuote:
        duration_us = _duration_microseconds(start, end)
        duration_hours = Decimal(duration_us) / Decimal(_MICROSECONDS_PER_HOUR)

        for tier, tier_hours in TIER_ORDER:
            tier_us = tier_hours * _MICROSECONDS_PER_HOUR
            # hourly has no lower threshold
            if tier is not PricingType.HOURLY and duration_us < tier_us:
                continue

            rule = select_rule(self.rules, tier)
            if rule is None:
                continue

            units = max(_ceil_div(duration_us, tier_us), 0)
            rate = Decimal(str(rule.price))
            discount = Decimal(str(rule.discount_percentage or 0))

            base_amount = rate * units
            total = base_amount
            if discount > 0:
                total = base_amount * (1 - discount / 100)

            return PriceQuote(
                duration_hours=duration_hours,
                tier=tier,
                units=units,
                unit_price=rate,
                discount_percentage=discount,
                base_amount=base_amount.quantize(_CENT, rounding=ROUND_HALF_UP),
                total=total.quantize(_CENT, rounding=ROUND_HALF_UP),
                rule_id=rule.id,
            )

        return PriceQuote(
            duration_hours=duration_hours,
            tier=None,
            units=0,
            unit_price=Decimal("0.00"),
            discount_percentage=Decimal("0"),
            base_amount=Decimal("0.00"),
            total=Decimal("0.00"),
        )

    def calculate_price(self, start: datetime, end: datetime) -> Decimal:
        return self.quote(start, end).total


def calculate_price(rules: Sequence[UnitPricing], start: datetime, end: datetime) -> Decimal:
    """Total price of [start, end) under the given pricing rules"""
    return PricingEngine(rules).calculate_price(start, end)
