"""
Shared interval and booking-intent utilities.
"""
import math
from dataclasses import dataclass
from datetime import datetime, time, timedelta
from typing import Optional

from models import (
    BookingIntent,
    FrameIntent,
    QueueStatus,
    ReservationStatus,
    SessionStatus,
    SetIntent,
    TableStatus,
    TimerIntent,
)


@dataclass(frozen=True)
class TimeWindow:
    """
    Half-open interval [start, end).

    ``end=None`` means open-ended: the window occupies the table
    indefinitely from ``start``.
    """
    start: datetime
    end: Optional[datetime] = None

    @property
    def is_open_ended(self) -> bool:
        return self.end is None

    def label(self) -> str:
        if self.end is None:
            return f"from {format_time(self.start)} (open-ended)"
        return f"{format_time(self.start)} - {format_time(self.end)}"


def windows_overlap(a: TimeWindow, b: TimeWindow) -> bool:
    """start1 < end2 and end1 > start2, with a missing end treated as +infinity."""
    starts_before_b_ends = b.end is None or a.start < b.end
    ends_after_b_starts = a.end is None or a.end > b.start
    return starts_before_b_ends and ends_after_b_starts


def candidate_window(
    now: datetime,
    start: Optional[datetime] = None,
    end: Optional[datetime] = None,
    duration_minutes: Optional[int] = None,
) -> TimeWindow:
    """Builds the window of a requested booking; a missing start means "now"."""
    start = start or now
    if end is None and duration_minutes:
        end = start + timedelta(minutes=duration_minutes)
    return TimeWindow(start=start, end=end)


def compute_end_time(intent: BookingIntent, now: datetime) -> Optional[datetime]:
    if isinstance(intent, TimerIntent):
        return now + timedelta(minutes=intent.duration_minutes)
    if isinstance(intent, SetIntent):
        target = datetime.combine(now.date(), intent.target_time)
        if target <= now:
            target += timedelta(days=1)
        return target
    if isinstance(intent, FrameIntent):
        return None
    raise TypeError(f"Unknown booking intent: {intent!r}")


def intent_columns(intent: BookingIntent) -> dict:
    """Flattens an intent into the booking columns shared by sessions and queue entries."""
    return {
        "booking_type": intent.kind,
        "duration_minutes": intent.duration_minutes if isinstance(intent, TimerIntent) else None,
        "set_time": intent.target_time if isinstance(intent, SetIntent) else None,
        "frame_count": intent.frame_count if isinstance(intent, FrameIntent) else None,
    }


def intent_from_columns(
    booking_type: Optional[str],
    duration_minutes: Optional[int] = None,
    set_time: Optional[time] = None,
    frame_count: Optional[int] = None,
) -> BookingIntent:
    if booking_type == "set" and set_time is not None:
        return SetIntent(target_time=set_time)
    if booking_type == "frame":
        return FrameIntent(frame_count=frame_count)
    if duration_minutes:
        return TimerIntent(duration_minutes=duration_minutes)
    # a timer without duration behaves like a stopwatch
    return FrameIntent(frame_count=frame_count)


def session_window(session) -> TimeWindow:
    """Effective occupancy of a session record."""
    if session.booking_end_time is not None:
        return TimeWindow(session.start_time, session.booking_end_time)
    if session.duration_minutes:
        return TimeWindow(session.start_time, session.start_time + timedelta(minutes=session.duration_minutes))
    return TimeWindow(session.start_time, None)


def reservation_window(reservation) -> TimeWindow:
    return TimeWindow(reservation.from_time, reservation.to_time)


def elapsed_minutes(start: datetime, end: datetime) -> int:
    """Wall-clock minutes between two instants, rounded up."""
    return max(0, math.ceil((end - start).total_seconds() / 60))


def derive_table_status(
    table,
    active_session=None,
    seated_entry=None,
    covering_reservation=None,
) -> TableStatus:
    """Status a table should show given the commitments that actually exist on it."""
    if table.status == TableStatus.MAINTENANCE.value:
        return TableStatus.MAINTENANCE
    if active_session is not None and active_session.status == SessionStatus.ACTIVE.value:
        return TableStatus.RESERVED
    if seated_entry is not None and seated_entry.status == QueueStatus.SEATED.value:
        return TableStatus.OCCUPIED
    if covering_reservation is not None and covering_reservation.status == ReservationStatus.ACTIVE.value:
        return TableStatus.RESERVED
    return TableStatus.AVAILABLE


def format_time(dt: datetime) -> str:
    return dt.strftime("%H:%M")


def format_datetime(dt: datetime) -> str:
    return dt.strftime("%Y-%m-%d %H:%M")
