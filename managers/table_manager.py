"""
Table records and their status.

A table's stored ``status`` is a cache of the commitments that exist on it.
:meth:`TableManager.reconcile` recomputes it from the authoritative session,
queue and reservation rows whenever the two could have drifted apart.
"""
from datetime import datetime
from typing import Callable, Optional

from loguru import logger

from exceptions import NotFoundError, ValidationError
from helper import derive_table_status, reservation_window
from models import (
    GameDB,
    QueueEntryDB,
    QueueStatus,
    ReservationStatus,
    SessionStatus,
    TableDB,
    TableReservationDB,
    TableSessionDB,
    TableStatus,
)
from repository import Repository


class TableManager:

    def __init__(self, repo: Repository, clock: Callable[[], datetime] = datetime.now):
        self.repo = repo
        self.clock = clock

    def list(self) -> list[TableDB]:
        return self.repo.find(TableDB, order_by=TableDB.id.asc())

    def get(self, table_id: int) -> TableDB:
        return self.repo.require(TableDB, table_id, "Table")

    def create(self, name: str, game_id: int, price_per_minute=0, frame_charge=0, status=TableStatus.AVAILABLE) -> TableDB:
        with self.repo.transaction():
            self.repo.require(GameDB, game_id, "Game")
            return self.repo.create(
                TableDB,
                name=name,
                game_id=game_id,
                status=TableStatus(status).value,
                price_per_minute=price_per_minute,
                frame_charge=frame_charge,
            )

    def update(self, table_id: int, **fields) -> TableDB:
        """
        Edits a table's name, pricing or game. ``status`` may only be moved in
        and out of maintenance; every other status is owned by the managers.
        """
        with self.repo.transaction():
            table = self.repo.lock_table(table_id)
            if table is None:
                raise NotFoundError("Table not found")
            if "game_id" in fields and fields["game_id"] != table.game_id:
                self.repo.require(GameDB, fields["game_id"], "Game")

            status = fields.pop("status", None)
            self.repo.update(table, **fields)

            if status is not None:
                status = TableStatus(status)
                if status == TableStatus.MAINTENANCE:
                    self.repo.update(table, status=status.value)
                elif table.status == TableStatus.MAINTENANCE.value:
                    self.repo.update(table, status=TableStatus.AVAILABLE.value)
                    self.reconcile(table)
                elif status.value != table.status:
                    raise ValidationError("Table status is managed by sessions, queue and reservations")
            return table

    def reconcile(self, table: TableDB) -> TableDB:
        """Rewrites ``table.status`` from the commitments that actually exist on it."""
        now = self.clock()
        active_session = self.repo.find_one(TableSessionDB, table_id=table.id, status=SessionStatus.ACTIVE.value)
        seated_entry = self.repo.find_one(QueueEntryDB, preferred_table_id=table.id, status=QueueStatus.SEATED.value)
        covering = None
        for reservation in self.repo.find(TableReservationDB, table_id=table.id, status=ReservationStatus.ACTIVE.value):
            window = reservation_window(reservation)
            if window.start <= now < window.end:
                covering = reservation
                break

        derived = derive_table_status(table, active_session, seated_entry, covering)
        if derived.value != table.status:
            logger.warning(f"Table {table.id} status drifted: stored {table.status}, derived {derived.value}")
            self.repo.update(table, status=derived.value)
        return table

    def reconcile_by_id(self, table_id: int) -> TableDB:
        with self.repo.transaction():
            table = self.repo.lock_table(table_id)
            if table is None:
                raise NotFoundError("Table not found")
            return self.reconcile(table)

    def set_status(self, table: TableDB, status: TableStatus) -> TableDB:
        if table.status == TableStatus.MAINTENANCE.value:
            return table
        return self.repo.update(table, status=status.value)
