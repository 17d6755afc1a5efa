"""
Booking duration as a tagged union discriminated on `type`.

    {"type": "hourly", "hours": 4}
    {"type": "daily"}
    {"type": "monthly", "months": 3}
    {"type": "yearly"}
"""

from typing import Annotated, Literal, Union

from pydantic import BaseModel, Field, TypeAdapter

ALLOWED_HOURS = (4, 6, 12, 24)


class HourlyDuration(BaseModel):
    type: Literal["hourly"] = "hourly"
    hours: Literal[4, 6, 12, 24]


class DailyDuration(BaseModel):
    type: Literal["daily"] = "daily"


class MonthlyDuration(BaseModel):
    type: Literal["monthly"] = "monthly"
    months: int = Field(..., ge=1, le=120)


class YearlyDuration(BaseModel):
    type: Literal["yearly"] = "yearly"


BookingDuration = Annotated[
    Union[HourlyDuration, DailyDuration, MonthlyDuration, YearlyDuration],
    Field(discriminator="type"),
]

duration_adapter = TypeAdapter(BookingDuration)
