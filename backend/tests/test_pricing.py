"""
Tests for seat price resolution and bill construction.
"""

from datetime import datetime
from decimal import Decimal

import pytest

from studyspace.core.exceptions import InvalidRequest
from studyspace.schemas.duration import DailyDuration, HourlyDuration, MonthlyDuration, YearlyDuration
from studyspace.services import billing_service
from studyspace.services.billing_service import build_bill
from studyspace.services.pricing_service import price, quote


def test_tier_defaults():
    assert price(HourlyDuration(hours=4), "standard") == 160
    assert price(DailyDuration(), "premium") == 600
    assert price(MonthlyDuration(months=3), "basic") == 13500
    assert price(YearlyDuration(), "standard") == 61200


@pytest.mark.parametrize(
    "tier, expected",
    [("basic", 45900), ("standard", 61200), ("premium", 86700)],
)
def test_yearly_is_twelve_discounted_months(tier, expected):
    assert price(YearlyDuration(), tier) == expected


def test_hourly_override_wins_over_tier():
    assert price(HourlyDuration(hours=4), "basic", {"hourly": 100}) == 400


def test_daily_override_is_flat():
    assert price(DailyDuration(), "basic", {"daily": 320}) == 320


def test_monthly_override_multiplies_months():
    assert price(MonthlyDuration(months=2), "premium", {"monthly": 5000}) == 10000


def test_override_for_other_class_is_ignored():
    assert price(DailyDuration(), "standard", {"hourly": 100}) == 400


def test_yearly_never_reads_overrides():
    overrides = {"hourly": 1, "daily": 1, "monthly": 1, "yearly": 1}
    assert price(YearlyDuration(), "standard", overrides) == 61200


def test_unknown_tier_is_invalid():
    with pytest.raises(InvalidRequest):
        price(HourlyDuration(hours=4), "gold")


def test_negative_override_is_invalid():
    with pytest.raises(InvalidRequest):
        price(HourlyDuration(hours=4), "basic", {"hourly": -5})


@pytest.mark.parametrize("raw", ["ten", "", "NaN", "Infinity", [40]])
def test_non_numeric_override_is_invalid(raw):
    with pytest.raises(InvalidRequest):
        price(MonthlyDuration(months=1), "basic", {"monthly": raw})


def test_quote_line_item():
    item = quote(MonthlyDuration(months=3), "basic").as_line_item()
    assert Decimal(item["quantity"]) == 3
    assert Decimal(item["unit_price"]) == 4500
    assert Decimal(item["total"]) == 13500


def _bill(price_quote):
    return build_bill(
        bill_id="bill-1",
        library_id="library1",
        booking_id="booking-1",
        student_id="ST1",
        student_name="Asha Rao",
        price_quote=price_quote,
        due_date=datetime(2024, 3, 1, 9, 0),
    )


def test_bill_without_tax():
    bill = _bill(quote(HourlyDuration(hours=4), "standard"))
    assert bill.status == "Due"
    assert bill.subtotal == 160
    assert bill.taxes == 0
    assert bill.total_amount == 160
    assert len(bill.line_items) == 1


def test_bill_tax_is_its_own_line_item(monkeypatch):
    monkeypatch.setattr(billing_service.settings, "TAX_RATE", Decimal("0.18"))
    bill = _bill(quote(HourlyDuration(hours=4), "standard"))

    assert bill.subtotal == Decimal("160.00")
    assert bill.taxes == Decimal("28.80")
    assert bill.total_amount == bill.subtotal + bill.taxes
    assert sum(Decimal(item["total"]) for item in bill.line_items) == bill.total_amount
