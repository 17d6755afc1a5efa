"""
Seat pricing.

Resolution order (first match wins):
  1. Seat-level override for the duration class (hourly rate x hours,
     daily flat, monthly rate x months). Yearly has no override class.
  2. Library-wide tier defaults from TIER_RATES.
  3. Yearly = 12 x monthly tier rate x YEARLY_MULTIPLIER, always from the
     tier table.
"""

from dataclasses import dataclass
from decimal import Decimal, InvalidOperation
from typing import Optional

from studyspace.core.exceptions import InvalidDuration, InvalidRequest
from studyspace.schemas.duration import (
    DailyDuration,
    HourlyDuration,
    MonthlyDuration,
    YearlyDuration,
)

TIER_RATES = {
    "hourly": {"basic": Decimal("25"), "standard": Decimal("40"), "premium": Decimal("60")},
    "daily": {"basic": Decimal("250"), "standard": Decimal("400"), "premium": Decimal("600")},
    "monthly": {"basic": Decimal("4500"), "standard": Decimal("6000"), "premium": Decimal("8500")},
}

# 15% loyalty discount on a full year
YEARLY_MULTIPLIER = Decimal("0.85")


@dataclass(frozen=True)
class PriceQuote:
    description: str
    quantity: Decimal
    unit_price: Decimal
    total: Decimal

    def as_line_item(self) -> dict:
        # JSON column: keep amounts as strings so no precision is lost
        return {
            "description": self.description,
            "quantity": str(self.quantity),
            "unit_price": str(self.unit_price),
            "total": str(self.total),
        }


def duration_class(duration) -> Optional[str]:
    """Override/tier bucket for a duration; None for yearly."""
    if isinstance(duration, HourlyDuration):
        return "hourly"
    if isinstance(duration, DailyDuration):
        return "daily"
    if isinstance(duration, MonthlyDuration):
        return "monthly"
    if isinstance(duration, YearlyDuration):
        return None
    raise InvalidDuration(f"Unrecognised booking duration: {duration!r}")


def _tier_rate(bucket: str, tier: str) -> Decimal:
    try:
        return TIER_RATES[bucket][tier]
    except KeyError:
        raise InvalidRequest(f"Unknown seat tier '{tier}'") from None


def _override_rate(bucket: Optional[str], seat_overrides: Optional[dict]) -> Optional[Decimal]:
    if bucket is None or not seat_overrides:
        return None
    raw = seat_overrides.get(bucket)
    if raw is None:
        return None
    try:
        rate = Decimal(str(raw))
    except InvalidOperation:
        raise InvalidRequest(f"Seat override rate for '{bucket}' is not a number: {raw!r}") from None
    if not rate.is_finite():
        raise InvalidRequest(f"Seat override rate for '{bucket}' is not a number: {raw!r}")
    if rate < 0:
        raise InvalidRequest(f"Seat override rate for '{bucket}' must not be negative")
    return rate


def quote(duration, tier: str, seat_overrides: Optional[dict] = None) -> PriceQuote:
    bucket = duration_class(duration)
    rate = _override_rate(bucket, seat_overrides)
    source = "custom" if rate is not None else tier

    if isinstance(duration, HourlyDuration):
        unit = rate if rate is not None else _tier_rate("hourly", tier)
        hours = Decimal(duration.hours)
        return PriceQuote(f"Seat booking, {duration.hours} hours ({source})", hours, unit, unit * hours)

    if isinstance(duration, DailyDuration):
        unit = rate if rate is not None else _tier_rate("daily", tier)
        return PriceQuote(f"Seat booking, full day ({source})", Decimal(1), unit, unit)

    if isinstance(duration, MonthlyDuration):
        unit = rate if rate is not None else _tier_rate("monthly", tier)
        months = Decimal(duration.months)
        return PriceQuote(f"Seat booking, {duration.months} months ({source})", months, unit, unit * months)

    # yearly
    unit = _tier_rate("monthly", tier) * YEARLY_MULTIPLIER
    return PriceQuote(f"Seat booking, 1 year ({tier}, 15% off)", Decimal(12), unit, unit * 12)


def price(duration, tier: str, seat_overrides: Optional[dict] = None) -> Decimal:
    return quote(duration, tier, seat_overrides).total
