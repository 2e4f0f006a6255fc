"""
Advance reservations.

A reservation never holds a table by itself; it blocks overlapping windows
for the other channels. Pending reservations only warn, active ones block.
"""
from datetime import datetime, timedelta
from typing import Callable, Optional

from loguru import logger

from config import DEFAULT_RESERVATION_MINUTES
from exceptions import NotFoundError, ValidationError
from helper import TimeWindow
from managers.conflict_resolver import ConflictResolver
from managers.table_manager import TableManager
from models import OverrideMode, ReservationStatus, TableDB, TableReservationDB, TableStatus
from repository import Repository

# status -> statuses it may move to through update()
ALLOWED_TRANSITIONS = {
    ReservationStatus.PENDING.value: {ReservationStatus.ACTIVE.value, ReservationStatus.CANCELLED.value},
    ReservationStatus.ACTIVE.value: {ReservationStatus.DONE.value, ReservationStatus.CANCELLED.value},
}

MUTABLE_FIELDS = ("status", "notes")


class ReservationManager:

    def __init__(
        self,
        repo: Repository,
        clock: Callable[[], datetime] = datetime.now,
        resolver: Optional[ConflictResolver] = None,
    ):
        self.repo = repo
        self.clock = clock
        self.resolver = resolver or ConflictResolver(repo, clock)
        self.tables = TableManager(repo, clock)

    def get(self, reservation_id: int) -> TableReservationDB:
        return self.repo.require(TableReservationDB, reservation_id, "Reservation")

    def list_open(self) -> list[TableReservationDB]:
        return self.repo.find(
            TableReservationDB,
            order_by=TableReservationDB.from_time.asc(),
            status=[ReservationStatus.PENDING.value, ReservationStatus.ACTIVE.value],
        )

    def create(
        self,
        table_id: int,
        from_time: datetime,
        customer_name: str,
        duration_minutes: Optional[int] = None,
        customer_phone: Optional[str] = None,
        notes: Optional[str] = None,
        override: OverrideMode = OverrideMode.NONE,
    ) -> TableReservationDB:
        duration_minutes = duration_minutes or DEFAULT_RESERVATION_MINUTES
        to_time = from_time + timedelta(minutes=duration_minutes)
        if to_time <= self.clock():
            raise ValidationError("Reservation window is already over")

        with self.repo.transaction():
            table = self.repo.lock_table(table_id)
            if table is None:
                raise NotFoundError("Table not found")

            self.resolver.ensure_bookable(table.id, TimeWindow(from_time, to_time), override, duration_minutes)

            reservation = self.repo.create(
                TableReservationDB,
                table_id=table.id,
                customer_name=customer_name,
                customer_phone=customer_phone,
                from_time=from_time,
                to_time=to_time,
                status=ReservationStatus.PENDING.value,
                notes=notes or "",
            )
            logger.info(f"Reservation {reservation.id} on table {table.id} for {from_time} - {to_time}")
            return reservation

    def auto_assign(self, reservation_id: int) -> tuple[TableReservationDB, TableDB]:
        """
        Moves a reservation onto the first free table of the station.

        Unlike :meth:`create` this does not look at time windows; it only
        trusts the table's current status.
        """
        with self.repo.transaction():
            reservation = self.get(reservation_id)
            if reservation.status != ReservationStatus.PENDING.value:
                raise ValidationError(f"Reservation is {reservation.status}")
            candidate = self.repo.find_one(TableDB, order_by=TableDB.id.asc(), status=TableStatus.AVAILABLE.value)
            if candidate is None:
                raise ValidationError("No available table")
            table = self.repo.lock_table(candidate.id)
            self.repo.update(reservation, table_id=table.id, status=ReservationStatus.ACTIVE.value)
            self.tables.set_status(table, TableStatus.RESERVED)
            return reservation, table

    def cancel(self, reservation_id: int) -> TableReservationDB:
        """Cancels a reservation. The table is left alone, it was never held."""
        return self.update(reservation_id, status=ReservationStatus.CANCELLED.value)

    def update(self, reservation_id: int, **patch) -> TableReservationDB:
        unknown = set(patch) - set(MUTABLE_FIELDS)
        if unknown:
            raise ValidationError(f"Fields cannot be changed: {', '.join(sorted(unknown))}")

        with self.repo.transaction():
            reservation = self.get(reservation_id)
            status = patch.get("status")
            if status is not None:
                status = ReservationStatus(status).value
                if status != reservation.status and status not in ALLOWED_TRANSITIONS.get(reservation.status, set()):
                    raise ValidationError(f"Reservation cannot move from {reservation.status} to {status}")
                patch["status"] = status
            return self.repo.update(reservation, **{k: v for k, v in patch.items() if v is not None})
