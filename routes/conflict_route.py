from datetime import timedelta

from fastapi import APIRouter, Depends
from fastapi.encoders import jsonable_encoder

from dependencies import get_clock, get_conflict_resolver, get_table_manager
from helper import candidate_window
from managers.conflict_resolver import ConflictResolver
from managers.table_manager import TableManager
from models import *

conflict_router = APIRouter(
    tags=["Conflict"]
)

@conflict_router.post("/conflicts/check", tags=["Conflict"])
def check_conflicts(
    body: ConflictCheck,
    resolver: ConflictResolver = Depends(get_conflict_resolver),
    tables: TableManager = Depends(get_table_manager),
    clock=Depends(get_clock),
):
    """
    Dry-run conflict check for a window on a table, with the prompt text a
    client shows before booking.
    """
    table = tables.get(body.table_id)
    window = candidate_window(clock(), body.start_time, body.end_time, body.duration_minutes)
    report = resolver.check_conflicts(
        table.id,
        window,
        exclude_session_id=body.exclude_session_id,
        exclude_reservation_id=body.exclude_reservation_id,
        exclude_queue_id=body.exclude_queue_id,
    )
    return jsonable_encoder({"report": report, "summary": resolver.summarize(report)})


@conflict_router.post("/conflicts/suggestions", tags=["Conflict"])
def suggest_alternatives(
    body: ConflictCheck,
    resolver: ConflictResolver = Depends(get_conflict_resolver),
    tables: TableManager = Depends(get_table_manager),
    clock=Depends(get_clock),
):
    table = tables.get(body.table_id)
    start = body.start_time or clock()
    duration = body.duration_minutes
    if duration is None and body.end_time is not None:
        duration = int((body.end_time - start) / timedelta(minutes=1))
    return jsonable_encoder(resolver.suggest_alternatives(table.id, start, duration or 60))
