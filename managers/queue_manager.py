"""
Waitlist of parties waiting for a table of a given game.

Entries move waiting -> seated -> served, or to cancelled from waiting or
seated (no-show). When a session ends, :meth:`QueueManager.try_assign_freed_table`
starts the next party's session directly on the freed table.
"""
from dataclasses import dataclass
from datetime import datetime, timedelta
from typing import TYPE_CHECKING, Callable, Iterable, Optional

from loguru import logger

from billing import BillingService
from config import (
    DEFAULT_QUEUE_WINDOW_MINUTES,
    QUEUE_WAIT_MINUTES_PER_ENTRY,
    RESERVATION_LOOKAHEAD_MINUTES,
    RESERVATION_LOOKBEHIND_MINUTES,
)
from exceptions import NotFoundError, ValidationError
from helper import TimeWindow, compute_end_time, format_time, intent_columns, intent_from_columns
from managers.conflict_resolver import ConflictResolver
from managers.table_manager import TableManager
from models import (
    BookingIntent,
    CartItem,
    GameDB,
    OrderDB,
    OverrideMode,
    QueueEntryDB,
    QueueStatus,
    ReservationStatus,
    TableDB,
    TableReservationDB,
    TableSessionDB,
    TableStatus,
)
from repository import Repository

if TYPE_CHECKING:
    from managers.session_manager import SessionManager


@dataclass
class QueueAssignment:
    assigned: bool
    message: str
    entry: Optional[QueueEntryDB] = None
    session: Optional[TableSessionDB] = None
    order: Optional[OrderDB] = None


class QueueManager:

    def __init__(
        self,
        repo: Repository,
        clock: Callable[[], datetime] = datetime.now,
        resolver: Optional[ConflictResolver] = None,
        billing: Optional[BillingService] = None,
    ):
        self.repo = repo
        self.clock = clock
        self.resolver = resolver or ConflictResolver(repo, clock)
        self.billing = billing or BillingService(repo, clock)
        self.tables = TableManager(repo, clock)

    def get(self, entry_id: int) -> QueueEntryDB:
        return self.repo.require(QueueEntryDB, entry_id, "Queue entry")

    def list_waiting(self, game_id: Optional[int] = None) -> list[QueueEntryDB]:
        filters = {"status": QueueStatus.WAITING.value}
        if game_id is not None:
            filters["game_id"] = game_id
        return self.repo.find(QueueEntryDB, order_by=QueueEntryDB.created_at.asc(), **filters)

    def enqueue(
        self,
        customer_name: str,
        game_id: int,
        intent: BookingIntent,
        preferred_table_id: Optional[int] = None,
        phone: Optional[str] = None,
        members: int = 1,
        cart_items: Optional[Iterable[CartItem]] = None,
    ) -> tuple[QueueEntryDB, Optional[OrderDB]]:
        with self.repo.transaction():
            self.repo.require(GameDB, game_id, "Game")
            if preferred_table_id is not None:
                table = self.repo.require(TableDB, preferred_table_id, "Table")
                if table.game_id != game_id:
                    raise ValidationError(f"Table {table.id} is not set up for game {game_id}")

            ahead = self.repo.count(QueueEntryDB, game_id=game_id, status=QueueStatus.WAITING.value)
            entry = self.repo.create(
                QueueEntryDB,
                customer_name=customer_name,
                phone=phone,
                members=members,
                game_id=game_id,
                preferred_table_id=preferred_table_id,
                status=QueueStatus.WAITING.value,
                estimated_wait_minutes=ahead * QUEUE_WAIT_MINUTES_PER_ENTRY,
                created_at=self.clock(),
                **intent_columns(intent),
            )

            order = None
            if cart_items:
                order = self.billing.create_pending_order(customer_name, "queue", queue_id=entry.id, items=cart_items)

            logger.info(f"Queue entry {entry.id} for game {game_id}: {customer_name}, {ahead} ahead")
            return entry, order

    def _intent(self, entry: QueueEntryDB) -> BookingIntent:
        return intent_from_columns(entry.booking_type, entry.duration_minutes, entry.set_time, entry.frame_count)

    def _assumed_window(self, entry: QueueEntryDB, now: datetime) -> TimeWindow:
        """The entry's declared window, or a default hour for open-ended play."""
        end = compute_end_time(self._intent(entry), now)
        if end is None:
            end = now + timedelta(minutes=DEFAULT_QUEUE_WINDOW_MINUTES)
        return TimeWindow(now, end)

    def _seat(self, entry: QueueEntryDB, table: TableDB, override: OverrideMode) -> None:
        if table.status != TableStatus.AVAILABLE.value:
            raise ValidationError("Table is not available")
        if table.game_id != entry.game_id:
            raise ValidationError(f"Table {table.id} is not set up for game {entry.game_id}")

        self.resolver.ensure_bookable(
            table.id,
            self._assumed_window(entry, self.clock()),
            override,
            status_code=400,
            exclude_queue_id=entry.id,
        )
        self.repo.update(entry, status=QueueStatus.SEATED.value, preferred_table_id=table.id)
        self.tables.set_status(table, TableStatus.OCCUPIED)
        logger.info(f"Queue entry {entry.id} seated at table {table.id}")

    def assign(self, entry_id: int, table_id: int, override: OverrideMode = OverrideMode.NONE) -> tuple[QueueEntryDB, TableDB]:
        with self.repo.transaction():
            entry = self.get(entry_id)
            if entry.status != QueueStatus.WAITING.value:
                raise ValidationError(f"Queue entry is {entry.status}, not waiting")
            table = self.repo.lock_table(table_id)
            if table is None:
                raise NotFoundError("Table not found")
            self._seat(entry, table, override)
            return entry, table

    def auto_next(self, game_id: Optional[int] = None) -> tuple[QueueEntryDB, TableDB]:
        """Seats the longest-waiting party at the first free table that fits its window."""
        with self.repo.transaction():
            filters = {"status": QueueStatus.WAITING.value}
            if game_id is not None:
                filters["game_id"] = game_id
            entry = self.repo.find_one(QueueEntryDB, order_by=QueueEntryDB.created_at.asc(), **filters)
            if entry is None:
                raise ValidationError("Queue is empty")

            candidates = self.repo.find(
                TableDB,
                order_by=TableDB.id.asc(),
                game_id=entry.game_id,
                status=TableStatus.AVAILABLE.value,
            )
            # the party's own choice first
            candidates.sort(key=lambda t: t.id != entry.preferred_table_id)

            window = self._assumed_window(entry, self.clock())
            for candidate in candidates:
                report = self.resolver.check_conflicts(candidate.id, window, exclude_queue_id=entry.id)
                if not self.resolver.allows(report):
                    continue
                table = self.repo.lock_table(candidate.id)
                if table.status != TableStatus.AVAILABLE.value:
                    continue
                self._seat(entry, table, OverrideMode.NONE)
                return entry, table

            raise ValidationError("No suitable table available")

    def complete(self, entry_id: int) -> QueueEntryDB:
        with self.repo.transaction():
            entry = self.get(entry_id)
            if entry.status != QueueStatus.SEATED.value:
                raise ValidationError(f"Queue entry is {entry.status}, not seated")
            self.repo.update(entry, status=QueueStatus.SERVED.value)
            self._free_table(entry.preferred_table_id)
            return entry

    def cancel(self, entry_id: int, reason: str = "cancelled") -> QueueEntryDB:
        with self.repo.transaction():
            entry = self.get(entry_id)
            if entry.status not in (QueueStatus.WAITING.value, QueueStatus.SEATED.value):
                raise ValidationError(f"Queue entry is already {entry.status}")
            was_seated = entry.status == QueueStatus.SEATED.value
            self.repo.update(entry, status=QueueStatus.CANCELLED.value, cancel_reason=reason)
            if was_seated:
                self._free_table(entry.preferred_table_id)
            cancelled_orders = self.billing.cancel_pending_orders(entry.id)
            logger.info(f"Queue entry {entry.id} cancelled ({reason}), {cancelled_orders} order(s) cancelled")
            return entry

    def no_show(self, entry_id: int) -> QueueEntryDB:
        """A seated party that never arrived releases its table."""
        entry = self.get(entry_id)
        if entry.status != QueueStatus.SEATED.value:
            raise ValidationError(f"Queue entry is {entry.status}, not seated")
        return self.cancel(entry_id, reason="no_show")

    def clear(self) -> int:
        """Cancels every waiting entry of the station."""
        with self.repo.transaction():
            entries = self.repo.find(QueueEntryDB, status=QueueStatus.WAITING.value)
            for entry in entries:
                self.repo.update(entry, status=QueueStatus.CANCELLED.value, cancel_reason="cleared")
                self.billing.cancel_pending_orders(entry.id)
            logger.info(f"Queue cleared: {len(entries)} waiting entries cancelled")
            return len(entries)

    def _free_table(self, table_id: Optional[int]) -> None:
        if table_id is None:
            return
        table = self.repo.lock_table(table_id)
        if table is not None:
            self.tables.reconcile(table)

    def _imminent_reservation(self, table_id: int, now: datetime) -> Optional[TableReservationDB]:
        reservations = self.repo.find(
            TableReservationDB,
            table_id=table_id,
            status=[ReservationStatus.PENDING.value, ReservationStatus.ACTIVE.value],
        )
        lower = now - timedelta(minutes=RESERVATION_LOOKBEHIND_MINUTES)
        upper = now + timedelta(minutes=RESERVATION_LOOKAHEAD_MINUTES)
        for reservation in reservations:
            if lower < reservation.from_time < upper:
                return reservation
        return None

    def try_assign_freed_table(
        self, table_id: int, game_id: Optional[int], sessions: "SessionManager"
    ) -> QueueAssignment:
        """
        Hands a table that just became free to the waitlist.

        A party that asked for this table goes before plain arrival order;
        otherwise the longest-waiting party of the game gets it, whatever
        table it asked for.
        The chosen party gets a session started right away and its entry is
        marked served; its pending order, if any, is linked to that session.
        Nothing is assigned while a reservation on the table is about to start.
        """
        with self.repo.transaction():
            table = self.repo.lock_table(table_id)
            if table is None:
                return QueueAssignment(assigned=False, message="Table not found")
            if table.status == TableStatus.MAINTENANCE.value:
                return QueueAssignment(assigned=False, message="Table is under maintenance")
            game_id = game_id or table.game_id

            waiting = self.list_waiting(game_id)
            if not waiting:
                return QueueAssignment(assigned=False, message="No one in queue for this game")
            preferred = next((e for e in waiting if e.preferred_table_id == table.id), None)
            entry = preferred or waiting[0]

            now = self.clock()
            reservation = self._imminent_reservation(table.id, now)
            if reservation is not None:
                logger.info(
                    f"Skipping queue assignment for table {table.id}: "
                    f"reservation {reservation.id} at {format_time(reservation.from_time)}"
                )
                return QueueAssignment(assigned=False, message="Table has upcoming reservation")

            intent = self._intent(entry)
            report = self.resolver.check_conflicts(table.id, self._assumed_window(entry, now), exclude_queue_id=entry.id)
            if not self.resolver.allows(report):
                return QueueAssignment(assigned=False, message=self.resolver.summarize(report).message)

            session = sessions.open_session(table, game_id, intent, entry.customer_name, now, queue_entry=entry)

            order = self.billing.pending_order_for_queue(entry.id)
            if order is not None:
                self.billing.link_order_to_session(order, session.id)
            else:
                order = self.billing.create_pending_order(entry.customer_name, "queue", session_id=session.id)

            self.repo.update(entry, status=QueueStatus.SERVED.value, preferred_table_id=table.id)
            logger.info(f"Queue entry {entry.id} ({entry.customer_name}) got table {table.id}, session {session.id}")
            return QueueAssignment(
                assigned=True,
                message=f"Table assigned to {entry.customer_name} from queue. Session started ({intent.kind}).",
                entry=entry,
                session=session,
                order=order,
            )
