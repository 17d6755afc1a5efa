"""
Bill construction for a new seat booking.

Taxes, when configured, become their own line item so the bill total is
always both subtotal + taxes and the sum of its line items.
"""

import uuid
from datetime import datetime
from decimal import ROUND_HALF_UP, Decimal

from studyspace.core.config import get_settings
from studyspace.models.bill import DUE, Bill
from studyspace.services.pricing_service import PriceQuote

settings = get_settings()

CENTS = Decimal("0.01")


def new_bill_id() -> str:
    return str(uuid.uuid4())


def build_bill(
    *,
    bill_id: str,
    library_id: str,
    booking_id: str,
    student_id: str,
    student_name: str,
    price_quote: PriceQuote,
    due_date: datetime,
) -> Bill:
    subtotal = price_quote.total.quantize(CENTS, rounding=ROUND_HALF_UP)
    taxes = (subtotal * settings.TAX_RATE).quantize(CENTS, rounding=ROUND_HALF_UP)

    line_items = [price_quote.as_line_item()]
    if taxes:
        line_items.append({
            "description": f"Tax ({settings.TAX_RATE * 100:g}%)",
            "quantity": "1",
            "unit_price": str(taxes),
            "total": str(taxes),
        })

    return Bill(
        id=bill_id,
        library_id=library_id,
        student_id=student_id,
        student_name=student_name,
        booking_id=booking_id,
        line_items=line_items,
        subtotal=subtotal,
        taxes=taxes,
        total_amount=subtotal + taxes,
        status=DUE,
        due_date=due_date,
    )
