from datetime import datetime
from typing import Annotated

from pydantic import AfterValidator


def to_local_naive(value: datetime) -> datetime:
    """Offset-aware input (e.g. ``...Z`` from JS clients) becomes naive server-local time."""
    if value.tzinfo is None:
        return value
    return value.astimezone().replace(tzinfo=None)


# stored columns and the server clock are naive local time
LocalDateTime = Annotated[datetime, AfterValidator(to_local_naive)]
