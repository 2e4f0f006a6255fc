from fastapi import APIRouter, Depends
from fastapi.encoders import jsonable_encoder

from dependencies import get_session_manager
from managers.session_manager import SessionManager, StopResult
from models import *
from routes import websocket

session_router = APIRouter(
    tags=["Session"]
)


def _override(acknowledge: bool) -> OverrideMode:
    return OverrideMode.ACKNOWLEDGE_WARNINGS if acknowledge else OverrideMode.NONE


def _stop_payload(result: StopResult) -> dict:
    assignment = result.queue_assignment
    payload = {
        "success": True,
        "session": TableSession.model_validate(result.session).model_dump(),
        "bill": Bill.model_validate(result.bill).model_dump() if result.bill else None,
        "queue_assignment": None,
    }
    if assignment is not None:
        payload["queue_assignment"] = {
            "assigned": assignment.assigned,
            "message": assignment.message,
            "entry": QueueEntry.model_validate(assignment.entry).model_dump() if assignment.entry else None,
            "session": TableSession.model_validate(assignment.session).model_dump() if assignment.session else None,
            "order": Order.model_validate(assignment.order).model_dump() if assignment.order else None,
        }
    return jsonable_encoder(payload)


@session_router.get("/sessions", tags=["Session"])
def get_active_sessions(sessions: SessionManager = Depends(get_session_manager)):
    """
    Retrieves all active sessions of the station.

    Returns:
        list: Active sessions ordered by start time.
    """
    return jsonable_encoder([TableSession.model_validate(s) for s in sessions.list_active()])


@session_router.get("/sessions/{id}", tags=["Session"])
def get_session(id: int, sessions: SessionManager = Depends(get_session_manager)):
    return jsonable_encoder(TableSession.model_validate(sessions.get(id)))


@session_router.post("/sessions/start", status_code=201, tags=["Session"])
async def start_session(body: SessionStart, sessions: SessionManager = Depends(get_session_manager)):
    """
    Starts a walk-in session on a table.

    Args:
        body (SessionStart): Table, game, booking intent and optional reservation being fulfilled.

    Returns:
        dict: The created session and its companion pending order.
    """
    session, order = sessions.start(
        body.table_id,
        body.game_id,
        body.intent,
        customer_name=body.customer_name,
        reservation_id=body.reservation_id,
        override=_override(body.acknowledge_conflicts),
    )
    payload = jsonable_encoder({
        "success": True,
        "session": TableSession.model_validate(session),
        "order": Order.model_validate(order),
    })
    await websocket.broadcast_table_event("SESSION_STARTED", payload["session"])
    return payload


@session_router.post("/sessions/stop", tags=["Session"])
async def stop_session(body: SessionStop, sessions: SessionManager = Depends(get_session_manager)):
    """
    Stops an active session, bills it unless skip_bill is set and hands the
    table to the next waiting party.
    """
    payload = _stop_payload(sessions.stop(body.session_id, skip_bill=body.skip_bill, cart_items=body.cart_items))
    await websocket.broadcast_table_event("SESSION_STOPPED", payload["session"])
    return payload


@session_router.post("/sessions/auto-release", tags=["Session"])
async def auto_release_session(body: SessionAutoRelease, sessions: SessionManager = Depends(get_session_manager)):
    """
    Releases an expired session (client timer or scheduled sweep). Always bills;
    a second call for the same session is rejected.
    """
    payload = _stop_payload(sessions.auto_release(body.session_id, cart_items=body.cart_items))
    await websocket.broadcast_table_event("SESSION_AUTO_RELEASED", payload["session"])
    return payload


@session_router.patch("/sessions/{id}", tags=["Session"])
def update_session(id: int, body: SessionUpdate, sessions: SessionManager = Depends(get_session_manager)):
    session = sessions.update(
        id,
        frame_count=body.frame_count,
        duration_minutes=body.duration_minutes,
        cart_items=body.cart_items,
        override=_override(body.acknowledge_conflicts),
    )
    return {"success": True, "session": jsonable_encoder(TableSession.model_validate(session))}
