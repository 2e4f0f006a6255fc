from datetime import date

from fastapi import APIRouter, Depends, Query
from fastapi.encoders import jsonable_encoder

from dependencies import get_conflict_resolver, get_table_manager
from managers.conflict_resolver import ConflictResolver
from managers.table_manager import TableManager
from models import *

table_router = APIRouter(
    tags=["Table"]
)


def _table(table) -> dict:
    return jsonable_encoder(Table.model_validate(table))


@table_router.get("/tables", tags=["Table"])
def get_tables(tables: TableManager = Depends(get_table_manager)):
    return [_table(t) for t in tables.list()]


@table_router.get("/tables/{id}", tags=["Table"])
def get_table(id: int, tables: TableManager = Depends(get_table_manager)):
    return _table(tables.get(id))


@table_router.post("/tables", status_code=201, tags=["Table"])
def create_table(table: Table, tables: TableManager = Depends(get_table_manager)):
    db_table = tables.create(
        table.name,
        table.game_id,
        price_per_minute=table.price_per_minute,
        frame_charge=table.frame_charge,
        status=table.status,
    )
    return _table(db_table)


@table_router.put("/tables/{id}", tags=["Table"])
def update_table(id: int, updated_table: Table, tables: TableManager = Depends(get_table_manager)):
    """
    Updates name, game and pricing. Status can only be toggled into or out of maintenance.
    """
    fields = updated_table.model_dump(exclude_unset=True, exclude={"id"})
    return {"success": True, "table": _table(tables.update(id, **fields))}


@table_router.post("/tables/{id}/reconcile", tags=["Table"])
def reconcile_table(id: int, tables: TableManager = Depends(get_table_manager)):
    """
    Recomputes a table's status from its active session, seated party and
    active reservations.
    """
    return {"success": True, "table": _table(tables.reconcile_by_id(id))}


@table_router.get("/tables/{id}/available-slots", tags=["Table"])
def get_available_slots(
    id: int,
    day: date = Query(...),
    tables: TableManager = Depends(get_table_manager),
    resolver: ConflictResolver = Depends(get_conflict_resolver),
):
    """
    Hourly availability of a table for one day.
    """
    table = tables.get(id)
    return jsonable_encoder(resolver.available_slots(table.id, day))
