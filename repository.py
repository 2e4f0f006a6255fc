"""
Tenant-scoped persistence collaborator.

Offers equality-filter find/create/update/delete over the ORM models. Every
query is ANDed with the caller's station, so managers never see another
station's rows. Joins are done in memory by the callers.
"""
from contextlib import contextmanager
from typing import Any, Iterator, Optional

from loguru import logger
from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.orm import Session

from exceptions import ConflictError, ForbiddenError, InternalError, NotFoundError
from models import TableDB
from tenant import TenantScope


class Repository:

    def __init__(self, db: Session, scope: TenantScope):
        self.db = db
        self.scope = scope
        self._depth = 0

    def _query(self, model, filters: dict[str, Any]):
        query = self.db.query(model).filter(model.station_id == self.scope.station_id)
        for field, value in filters.items():
            column = getattr(model, field)
            if isinstance(value, (list, tuple, set)):
                query = query.filter(column.in_(list(value)))
            else:
                query = query.filter(column == value)
        return query

    def find(self, model, order_by=None, **filters) -> list:
        query = self._query(model, filters)
        if order_by is not None:
            query = query.order_by(order_by)
        return query.all()

    def find_one(self, model, order_by=None, **filters) -> Optional[Any]:
        query = self._query(model, filters)
        if order_by is not None:
            query = query.order_by(order_by)
        return query.first()

    def count(self, model, **filters) -> int:
        return self._query(model, filters).count()

    def get(self, model, id: int) -> Optional[Any]:
        """
        Loads one row by primary key.

        Returns None when the row does not exist and raises ForbiddenError
        when it exists but belongs to another station.
        """
        instance = self.db.get(model, id)
        if instance is None:
            return None
        if instance.station_id != self.scope.station_id:
            raise ForbiddenError(f"{model.__name__.removesuffix('DB')} {id} belongs to another station")
        return instance

    def require(self, model, id: int, label: str) -> Any:
        instance = self.get(model, id)
        if instance is None:
            raise NotFoundError(f"{label} not found")
        return instance

    def create(self, model, **values) -> Any:
        instance = model(station_id=self.scope.station_id, **values)
        self.db.add(instance)
        self._flush()
        return instance

    def update(self, instance, **values) -> Any:
        for field, value in values.items():
            setattr(instance, field, value)
        self._flush()
        return instance

    def update_where(self, model, values: dict[str, Any], **filters) -> int:
        rows = self._query(model, filters).all()
        for row in rows:
            for field, value in values.items():
                setattr(row, field, value)
        self._flush()
        return len(rows)

    def delete(self, instance) -> None:
        self.db.delete(instance)
        self._flush()

    def lock_table(self, table_id: int) -> Optional[TableDB]:
        """
        Loads a table row with a row-level lock held until the surrounding
        transaction ends, serialising check-then-act sequences on that table
        across processes. SQLite ignores FOR UPDATE; there the partial unique
        indexes are the only guard.
        """
        instance = self.get(TableDB, table_id)
        if instance is None:
            return None
        return (
            self.db.query(TableDB)
            .filter(TableDB.id == table_id)
            .with_for_update()
            .populate_existing()
            .one()
        )

    def _flush(self) -> None:
        try:
            self.db.flush()
        except IntegrityError as e:
            logger.warning(f"Integrity violation on flush: {e.orig}")
            raise ConflictError("Table was committed by a concurrent request, please retry") from e

    @contextmanager
    def transaction(self) -> Iterator["Repository"]:
        """
        Groups every write of one operation into a single commit.

        Nested use joins the outer transaction, so a manager operation that
        calls another one (stop -> queue hand-over) commits exactly once.
        """
        self._depth += 1
        try:
            yield self
            if self._depth == 1:
                self.db.commit()
        except IntegrityError as e:
            self.db.rollback()
            raise ConflictError("Table was committed by a concurrent request, please retry") from e
        except SQLAlchemyError as e:
            self.db.rollback()
            logger.exception("Database error, transaction rolled back")
            raise InternalError(f"Database error: {e}") from e
        except Exception:
            if self._depth == 1:
                self.db.rollback()
            raise
        finally:
            self._depth -= 1
