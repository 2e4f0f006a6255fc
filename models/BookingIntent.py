from datetime import date, datetime, time
from typing import Annotated, Literal, Optional, Union

from pydantic import BaseModel, Field, field_validator


class TimerIntent(BaseModel):
    """Fixed-duration booking, billed for the booked minutes."""
    kind: Literal["timer"] = "timer"
    duration_minutes: int = Field(gt=0)


class SetIntent(BaseModel):
    """Booking that runs until a wall-clock time, rolled to the next day if already past."""
    kind: Literal["set"] = "set"
    target_time: time

    @field_validator("target_time")
    @classmethod
    def _local_target_time(cls, value: time) -> time:
        if value.tzinfo is None:
            return value
        return datetime.combine(date.today(), value).astimezone().time()


class FrameIntent(BaseModel):
    """Open-ended booking billed per frame played."""
    kind: Literal["frame"] = "frame"
    frame_count: Optional[int] = Field(default=None, ge=0)


BookingIntent = Annotated[
    Union[TimerIntent, SetIntent, FrameIntent],
    Field(discriminator="kind"),
]
