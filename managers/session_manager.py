"""
Live occupancy of tables: walk-in starts, stops and externally triggered
auto-releases.

Stopping a session hands the freed table to the waitlist before it is marked
available, so a waiting party for the same game is seated without staff
involvement.
"""
from dataclasses import dataclass
from datetime import datetime
from typing import Callable, Iterable, Optional

from loguru import logger

from billing import BillingService
from exceptions import InternalError, NotFoundError, ValidationError
from helper import TimeWindow, compute_end_time, intent_columns, reservation_window, session_window
from managers.conflict_resolver import ConflictResolver
from managers.queue_manager import QueueAssignment, QueueManager
from managers.table_manager import TableManager
from models import (
    BillDB,
    BookingIntent,
    CartItem,
    GameDB,
    OrderDB,
    OverrideMode,
    QueueEntryDB,
    ReservationStatus,
    SessionStatus,
    TableDB,
    TableReservationDB,
    TableSessionDB,
    TableStatus,
)
from repository import Repository


@dataclass
class StopResult:
    session: TableSessionDB
    bill: Optional[BillDB] = None
    queue_assignment: Optional[QueueAssignment] = None


class SessionManager:

    def __init__(
        self,
        repo: Repository,
        clock: Callable[[], datetime] = datetime.now,
        resolver: Optional[ConflictResolver] = None,
        billing: Optional[BillingService] = None,
        queue: Optional[QueueManager] = None,
    ):
        self.repo = repo
        self.clock = clock
        self.resolver = resolver or ConflictResolver(repo, clock)
        self.billing = billing or BillingService(repo, clock)
        self.tables = TableManager(repo, clock)
        self.queue = queue or QueueManager(repo, clock, resolver=self.resolver, billing=self.billing)

    def get(self, session_id: int) -> TableSessionDB:
        return self.repo.require(TableSessionDB, session_id, "Session")

    def list_active(self) -> list[TableSessionDB]:
        return self.repo.find(
            TableSessionDB, order_by=TableSessionDB.start_time.asc(), status=SessionStatus.ACTIVE.value
        )

    def start(
        self,
        table_id: int,
        game_id: int,
        intent: BookingIntent,
        customer_name: Optional[str] = None,
        reservation_id: Optional[int] = None,
        override: OverrideMode = OverrideMode.NONE,
    ) -> tuple[TableSessionDB, OrderDB]:
        """
        Starts a walk-in session on a table.

        When ``reservation_id`` is given, that reservation is the booking being
        fulfilled: it does not count as a conflict and becomes active.
        """
        with self.repo.transaction():
            table = self.repo.lock_table(table_id)
            if table is None:
                raise NotFoundError("Table not found")
            self.repo.require(GameDB, game_id, "Game")
            if table.game_id != game_id:
                raise ValidationError(f"Table {table.id} is not set up for game {game_id}")
            if table.status == TableStatus.MAINTENANCE.value:
                raise ValidationError("Table is under maintenance")

            reservation = None
            if reservation_id is not None:
                reservation = self.repo.require(TableReservationDB, reservation_id, "Reservation")
                if reservation.table_id != table.id:
                    raise ValidationError(f"Reservation {reservation_id} is for another table")
                if reservation.status not in (ReservationStatus.PENDING.value, ReservationStatus.ACTIVE.value):
                    raise ValidationError(f"Reservation {reservation_id} is {reservation.status}")

            if table.status != TableStatus.AVAILABLE.value:
                # stored status may be stale; the resolver below judges the real commitments
                self.tables.reconcile(table)

            now = self.clock()
            window = TimeWindow(now, compute_end_time(intent, now))
            self.resolver.ensure_bookable(
                table.id,
                window,
                override,
                exclude_reservation_id=reservation_id,
            )

            session = self.open_session(table, game_id, intent, customer_name, now, reservation=reservation)
            order = self.billing.create_pending_order(customer_name, "walk_in", session_id=session.id)
            logger.info(f"Session {session.id} started on table {table.id} ({intent.kind}, until {window.end})")
            return session, order

    def open_session(
        self,
        table: TableDB,
        game_id: int,
        intent: BookingIntent,
        customer_name: Optional[str],
        now: datetime,
        reservation: Optional[TableReservationDB] = None,
        queue_entry: Optional[QueueEntryDB] = None,
    ) -> TableSessionDB:
        """Persists an active session and marks the table reserved. Conflict checks are the caller's job."""
        session = self.repo.create(
            TableSessionDB,
            table_id=table.id,
            game_id=game_id,
            customer_name=customer_name,
            start_time=now,
            booking_end_time=compute_end_time(intent, now),
            status=SessionStatus.ACTIVE.value,
            reservation_id=reservation.id if reservation else None,
            queue_entry_id=queue_entry.id if queue_entry else None,
            **intent_columns(intent),
        )
        if reservation is not None:
            self.repo.update(reservation, status=ReservationStatus.ACTIVE.value)
        self.tables.set_status(table, TableStatus.RESERVED)
        return session

    def stop(
        self,
        session_id: int,
        skip_bill: bool = False,
        cart_items: Optional[Iterable[CartItem]] = None,
        auto_released: bool = False,
    ) -> StopResult:
        """
        Closes an active session, bills it unless ``skip_bill`` and offers the
        freed table to the waitlist. A session that is not active is rejected
        without side effects.
        """
        with self.repo.transaction():
            session = self.get(session_id)
            if session.status != SessionStatus.ACTIVE.value:
                raise ValidationError("Session is not active")

            table = self.repo.lock_table(session.table_id)
            if table is None:
                raise InternalError("Linked table not found for session")

            now = self.clock()
            if cart_items is not None:
                session.cart_items = [CartItem.model_validate(i).model_dump() for i in cart_items]
            self.repo.update(session, status=SessionStatus.COMPLETED.value, end_time=now)

            self._settle_reservations(session, table, now)

            bill = None
            if not skip_bill:
                bill = self.billing.create_bill(session, table, session.cart_items, auto_released=auto_released)

            assignment = self.queue.try_assign_freed_table(table.id, session.game_id, sessions=self)
            if not assignment.assigned:
                self.tables.reconcile(table)

            logger.info(
                f"Session {session.id} on table {table.id} stopped"
                f"{' (auto-release)' if auto_released else ''}: {assignment.message}"
            )
            return StopResult(session=session, bill=bill, queue_assignment=assignment)

    def auto_release(self, session_id: int, cart_items: Optional[Iterable[CartItem]] = None) -> StopResult:
        """
        Stop triggered by an expiry timer or scheduled sweep instead of staff.
        A repeated call for the same session fails with "Session is not active".
        """
        return self.stop(session_id, skip_bill=False, cart_items=cart_items, auto_released=True)

    def _settle_reservations(self, session: TableSessionDB, table: TableDB, now: datetime) -> None:
        """
        The reservation the session was started for is done; any other
        reservation whose window covers now was fulfilled by this walk-in.
        """
        reservations = self.repo.find(
            TableReservationDB,
            table_id=table.id,
            status=[ReservationStatus.PENDING.value, ReservationStatus.ACTIVE.value],
        )
        for reservation in reservations:
            if reservation.id == session.reservation_id:
                self.repo.update(reservation, status=ReservationStatus.DONE.value)
                continue
            window = reservation_window(reservation)
            if window.start <= now < window.end:
                logger.info(f"Reservation {reservation.id} on table {table.id} consumed by session {session.id}")
                self.repo.update(reservation, status=ReservationStatus.CANCELLED.value)

    def update(
        self,
        session_id: int,
        frame_count: Optional[int] = None,
        duration_minutes: Optional[int] = None,
        cart_items: Optional[Iterable[CartItem]] = None,
        override: OverrideMode = OverrideMode.NONE,
    ) -> TableSessionDB:
        """
        Edits frame count, duration or the saved cart of an active session.
        A longer duration must still fit around the table's other bookings.
        """
        with self.repo.transaction():
            session = self.get(session_id)
            if session.status != SessionStatus.ACTIVE.value:
                raise ValidationError("Session is not active")

            if duration_minutes is not None:
                if duration_minutes <= 0:
                    raise ValidationError("Duration must be positive")
                # a fixed duration turns any booking into a timer booking
                session.booking_type = "timer"
                session.set_time = None
                session.duration_minutes = duration_minutes
                session.booking_end_time = None
                window = session_window(session)
                self.resolver.ensure_bookable(
                    session.table_id, window, override, exclude_session_id=session.id
                )
                self.repo.update(session, booking_end_time=window.end)

            if frame_count is not None:
                if frame_count < 0:
                    raise ValidationError("Frame count cannot be negative")
                self.repo.update(session, frame_count=frame_count)

            if cart_items is not None:
                self.repo.update(session, cart_items=[CartItem.model_validate(i).model_dump() for i in cart_items])

            return session
