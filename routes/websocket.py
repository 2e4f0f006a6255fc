import json

from fastapi import APIRouter, WebSocket, WebSocketDisconnect
from loguru import logger

websocket_router = APIRouter(
    tags=["websocket"])

# clients listening for table, session and queue events
active_connections: list[WebSocket] = []


def _disconnect(websocket: WebSocket) -> None:
    if websocket in active_connections:
        active_connections.remove(websocket)
    logger.debug(f"Table event listener left, {len(active_connections)} connected")


@websocket_router.websocket("/ws/tables")
async def table_events(websocket: WebSocket):
    """
    Live feed of table events for floor displays.

    The feed is one-way: anything a client sends is read and discarded so the
    disconnect is noticed.
    """
    await websocket.accept()
    active_connections.append(websocket)
    logger.debug(f"Table event listener joined, {len(active_connections)} connected")
    try:
        while True:
            await websocket.receive_text()
    except WebSocketDisconnect:
        _disconnect(websocket)


async def broadcast_table_event(event_type: str, data: dict):
    """
    Pushes an event (SESSION_STARTED, SESSION_STOPPED, QUEUE_SEATED, ...) to
    every listener; listeners whose socket is already closed are dropped.
    """
    message = json.dumps({"event": event_type, "data": data})
    for connection in list(active_connections):
        try:
            await connection.send_text(message)
        except RuntimeError:
            logger.warning("Dropping closed websocket connection")
            _disconnect(connection)
