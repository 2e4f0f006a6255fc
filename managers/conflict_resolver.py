"""
Conflict detection across the three ways a table gets committed:
live sessions, advance reservations and seated queue parties.

The resolver never writes. Callers decide what to do with a report, usually
through :meth:`ConflictResolver.ensure_bookable`, which raises a
``ConflictError`` the HTTP layer renders as 409.
"""
from datetime import date, datetime, timedelta
from typing import Callable, Optional

from loguru import logger
from sqlalchemy.exc import SQLAlchemyError

from config import (
    MAX_SUGGESTIONS,
    SLOT_DAY_END_HOUR,
    SLOT_DAY_START_HOUR,
    SUGGESTION_CANDIDATES,
    SUGGESTION_STEP_MINUTES,
)
from exceptions import ConflictError
from helper import TimeWindow, format_time, reservation_window, session_window, windows_overlap
from models import (
    AvailableSlot,
    Conflict,
    ConflictReport,
    ConflictSummary,
    ConflictType,
    OverrideMode,
    QueueEntryDB,
    QueueStatus,
    ReservationStatus,
    SessionStatus,
    Severity,
    Suggestion,
    TableReservationDB,
    TableSessionDB,
)
from repository import Repository


class ConflictResolver:

    def __init__(self, repo: Repository, clock: Callable[[], datetime] = datetime.now):
        self.repo = repo
        self.clock = clock

    def check_conflicts(
        self,
        table_id: int,
        window: TimeWindow,
        exclude_session_id: Optional[int] = None,
        exclude_reservation_id: Optional[int] = None,
        exclude_queue_id: Optional[int] = None,
    ) -> ConflictReport:
        """
        Reports every existing commitment on ``table_id`` that overlaps ``window``.
        Build ``window`` with :func:`helper.candidate_window` so a missing
        start is clamped to now.

        A failure while gathering commitments yields an error-severity
        ``system_error`` conflict, never an empty report.
        """
        conflicts: list[Conflict] = []
        try:
            conflicts.extend(self._session_conflicts(table_id, window, exclude_session_id))
            conflicts.extend(self._reservation_conflicts(table_id, window, exclude_reservation_id))
            conflicts.extend(self._queue_conflicts(table_id, window, exclude_queue_id))
        except (SQLAlchemyError, ValueError, TypeError, AttributeError) as e:
            logger.exception(f"Conflict check failed for table {table_id}")
            conflicts = [
                Conflict(
                    type=ConflictType.SYSTEM_ERROR,
                    severity=Severity.ERROR,
                    source="System",
                    message="Unable to verify booking conflicts. Please try again.",
                    details={"error": str(e)},
                )
            ]

        severity = Severity.NONE
        for conflict in conflicts:
            if conflict.severity.rank > severity.rank:
                severity = conflict.severity

        return ConflictReport(has_conflicts=bool(conflicts), severity=severity, conflicts=conflicts)

    def _session_conflicts(self, table_id, window, exclude_id):
        sessions = self.repo.find(TableSessionDB, table_id=table_id, status=SessionStatus.ACTIVE.value)
        for session in sessions:
            if exclude_id is not None and session.id == exclude_id:
                continue
            existing = session_window(session)
            if not windows_overlap(window, existing):
                continue
            yield Conflict(
                type=ConflictType.ACTIVE_SESSION,
                severity=Severity.ERROR,
                source="Active Table Session",
                customer=session.customer_name or "Unknown Customer",
                conflict_start=existing.start,
                conflict_end=existing.end,
                message=(
                    f"Table is occupied until {format_time(existing.end)}"
                    if existing.end is not None
                    else "Table is currently in an active session"
                ),
                details={
                    "session_id": session.id,
                    "booking_type": session.booking_type,
                    "duration_minutes": session.duration_minutes,
                },
            )

    def _reservation_conflicts(self, table_id, window, exclude_id):
        reservations = self.repo.find(
            TableReservationDB,
            table_id=table_id,
            status=[ReservationStatus.PENDING.value, ReservationStatus.ACTIVE.value],
        )
        for reservation in reservations:
            if exclude_id is not None and reservation.id == exclude_id:
                continue
            existing = reservation_window(reservation)
            if not windows_overlap(window, existing):
                continue
            active = reservation.status == ReservationStatus.ACTIVE.value
            yield Conflict(
                type=ConflictType.RESERVATION,
                severity=Severity.ERROR if active else Severity.WARNING,
                source="Advance Reservation",
                customer=reservation.customer_name or "Reserved Customer",
                conflict_start=existing.start,
                conflict_end=existing.end,
                message=f"Reserved from {format_time(existing.start)} to {format_time(existing.end)}",
                details={
                    "reservation_id": reservation.id,
                    "status": reservation.status,
                    "phone": reservation.customer_phone,
                    "notes": reservation.notes,
                },
            )

    def _queue_conflicts(self, table_id, window, exclude_id):
        # a seated party has no window: it is about to occupy the table
        entries = self.repo.find(QueueEntryDB, preferred_table_id=table_id, status=QueueStatus.SEATED.value)
        for entry in entries:
            if exclude_id is not None and entry.id == exclude_id:
                continue
            yield Conflict(
                type=ConflictType.QUEUE_ASSIGNMENT,
                severity=Severity.WARNING,
                source="Queue Assignment",
                customer=entry.customer_name,
                conflict_start=window.start,
                conflict_end=None,
                message=f"Table is assigned to queue member: {entry.customer_name}",
                details={
                    "queue_id": entry.id,
                    "phone": entry.phone,
                    "members": entry.members,
                    "wait_time": entry.estimated_wait_minutes,
                },
            )

    def suggest_alternatives(
        self, table_id: int, requested_start: datetime, duration_minutes: int
    ) -> list[Suggestion]:
        """Up to three conflict-free windows at 30-minute steps from the requested start."""
        suggestions = []
        search_start = max(self.clock(), requested_start)
        for i in range(SUGGESTION_CANDIDATES):
            slot_start = search_start + timedelta(minutes=i * SUGGESTION_STEP_MINUTES)
            slot_end = slot_start + timedelta(minutes=duration_minutes)
            report = self.check_conflicts(table_id, TimeWindow(slot_start, slot_end))
            if report.has_conflicts:
                continue
            suggestions.append(
                Suggestion(
                    start_time=slot_start,
                    end_time=slot_end,
                    label=f"{format_time(slot_start)} - {format_time(slot_end)}",
                )
            )
            if len(suggestions) >= MAX_SUGGESTIONS:
                break
        return suggestions

    def available_slots(self, table_id: int, day: date) -> list[AvailableSlot]:
        """Hour-by-hour availability of a table across the opening day."""
        slots = []
        current = datetime.combine(day, datetime.min.time()).replace(hour=SLOT_DAY_START_HOUR)
        day_end = current.replace(hour=SLOT_DAY_END_HOUR)
        while current < day_end:
            slot_end = current + timedelta(hours=1)
            report = self.check_conflicts(table_id, TimeWindow(current, slot_end))
            if report.has_conflicts:
                slots.append(AvailableSlot(
                    start_time=current,
                    end_time=slot_end,
                    available=False,
                    conflicts=len(report.conflicts),
                    reason=report.conflicts[0].message,
                ))
            else:
                slots.append(AvailableSlot(
                    start_time=current,
                    end_time=slot_end,
                    available=True,
                    label=f"{format_time(current)} - {format_time(slot_end)}",
                ))
            current = slot_end
        return slots

    @staticmethod
    def summarize(report: ConflictReport) -> ConflictSummary:
        if not report.has_conflicts:
            return ConflictSummary(
                title="No Conflicts",
                message="Table is available for booking.",
                can_proceed=True,
            )

        errors = [c for c in report.conflicts if c.severity == Severity.ERROR]
        if errors:
            return ConflictSummary(
                title="Booking Conflict",
                message=f"Cannot book: {errors[0].message}",
                can_proceed=False,
                severity=Severity.ERROR,
                details=[c.message for c in errors],
            )

        warnings = [c for c in report.conflicts if c.severity == Severity.WARNING]
        return ConflictSummary(
            title="Booking Warning",
            message=f"Potential conflict: {warnings[0].message}",
            can_proceed=True,
            severity=Severity.WARNING,
            question="Do you want to proceed anyway?",
            details=[c.message for c in warnings],
        )

    @staticmethod
    def allows(report: ConflictReport, override: OverrideMode = OverrideMode.NONE) -> bool:
        """Whether a booking may go ahead; error severity ignores ``override``."""
        if report.severity == Severity.ERROR:
            return False
        if report.severity == Severity.WARNING:
            return override == OverrideMode.ACKNOWLEDGE_WARNINGS
        return True

    def ensure_bookable(
        self,
        table_id: int,
        window: TimeWindow,
        override: OverrideMode = OverrideMode.NONE,
        duration_minutes: Optional[int] = None,
        status_code: int = 409,
        **exclude,
    ) -> ConflictReport:
        """Runs :meth:`check_conflicts` and raises ``ConflictError`` unless the booking may proceed."""
        report = self.check_conflicts(table_id, window, **exclude)
        if self.allows(report, override):
            return report

        summary = self.summarize(report)
        if duration_minutes is None and window.end is not None:
            duration_minutes = int((window.end - window.start).total_seconds() // 60)
        suggestions = self.suggest_alternatives(table_id, window.start, duration_minutes or 60)
        logger.info(
            f"Booking on table {table_id} for {window.label()} blocked "
            f"({report.severity.value}, {len(report.conflicts)} conflict(s))"
        )
        raise ConflictError(
            summary.message,
            report=report,
            summary=summary,
            suggestions=suggestions,
            status_code=status_code,
        )
