from typing import Optional

from fastapi import APIRouter, Depends, Query
from fastapi.encoders import jsonable_encoder

from dependencies import get_queue_manager
from managers.queue_manager import QueueManager
from models import *
from routes import websocket

queue_router = APIRouter(
    tags=["Queue"]
)


def _entry(entry) -> dict:
    return jsonable_encoder(QueueEntry.model_validate(entry))


@queue_router.get("/queue", tags=["Queue"])
def get_queue(game_id: Optional[int] = Query(None), queue: QueueManager = Depends(get_queue_manager)):
    """
    Lists waiting parties in arrival order, optionally for one game.
    """
    return [_entry(e) for e in queue.list_waiting(game_id)]


@queue_router.get("/queue/{id}", tags=["Queue"])
def get_queue_entry(id: int, queue: QueueManager = Depends(get_queue_manager)):
    return _entry(queue.get(id))


@queue_router.post("/queue", status_code=201, tags=["Queue"])
async def enqueue(body: QueueEntryCreate, queue: QueueManager = Depends(get_queue_manager)):
    """
    Adds a party to the waitlist.

    Args:
        body (QueueEntryCreate): Customer, game, optional preferred table, booking intent and food cart.

    Returns:
        dict: The entry with its estimated wait, and the companion order if a cart was attached.
    """
    entry, order = queue.enqueue(
        body.customer_name,
        body.game_id,
        body.intent,
        preferred_table_id=body.preferred_table_id,
        phone=body.phone,
        members=body.members,
        cart_items=body.cart_items,
    )
    payload = _entry(entry)
    payload["order"] = jsonable_encoder(Order.model_validate(order)) if order else None
    await websocket.broadcast_table_event("QUEUE_JOINED", _entry(entry))
    return payload


@queue_router.post("/queue/next", tags=["Queue"])
async def seat_next(body: Optional[QueueNext] = None, queue: QueueManager = Depends(get_queue_manager)):
    """
    Seats the longest-waiting party at a free table for its game.
    """
    entry, table = queue.auto_next(body.game_id if body else None)
    payload = _entry(entry)
    payload["table"] = jsonable_encoder(Table.model_validate(table))
    await websocket.broadcast_table_event("QUEUE_SEATED", payload)
    return payload


@queue_router.post("/queue/clear", tags=["Queue"])
def clear_queue(queue: QueueManager = Depends(get_queue_manager)):
    return {"success": True, "cancelled": queue.clear()}


@queue_router.post("/queue/{id}/assign", tags=["Queue"])
async def assign_table(id: int, body: QueueAssign, queue: QueueManager = Depends(get_queue_manager)):
    override = OverrideMode.ACKNOWLEDGE_WARNINGS if body.acknowledge_conflicts else OverrideMode.NONE
    entry, table = queue.assign(id, body.table_id, override)
    payload = _entry(entry)
    payload["table"] = jsonable_encoder(Table.model_validate(table))
    await websocket.broadcast_table_event("QUEUE_SEATED", payload)
    return payload


@queue_router.post("/queue/{id}/complete", tags=["Queue"])
def complete_entry(id: int, queue: QueueManager = Depends(get_queue_manager)):
    return {"success": True, "entry": _entry(queue.complete(id))}


@queue_router.post("/queue/{id}/cancel", tags=["Queue"])
def cancel_entry(id: int, queue: QueueManager = Depends(get_queue_manager)):
    return {"success": True, "entry": _entry(queue.cancel(id))}


@queue_router.post("/queue/{id}/no-show", tags=["Queue"])
def no_show_entry(id: int, queue: QueueManager = Depends(get_queue_manager)):
    return {"success": True, "entry": _entry(queue.no_show(id))}
