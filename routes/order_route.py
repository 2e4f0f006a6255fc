from typing import Optional

from fastapi import APIRouter, Depends, Query
from fastapi.encoders import jsonable_encoder

from dependencies import get_repository
from models import *
from repository import Repository

order_router = APIRouter(
    tags=["Order"]
)

@order_router.get("/orders", tags=["Order"])
def get_orders(
    status: Optional[str] = Query(None),
    session_id: Optional[int] = Query(None),
    queue_id: Optional[int] = Query(None),
    repo: Repository = Depends(get_repository),
):
    """
    Retrieves companion orders, optionally filtered by status, session or queue entry.

    Returns:
        list: A list of order dictionaries.
    """
    filters = {k: v for k, v in {"status": status, "session_id": session_id, "queue_id": queue_id}.items() if v is not None}
    orders = repo.find(OrderDB, order_by=OrderDB.id.asc(), **filters)
    return jsonable_encoder([Order.model_validate(o) for o in orders])


@order_router.get("/bills", tags=["Order"])
def get_bills(session_id: Optional[int] = Query(None), repo: Repository = Depends(get_repository)):
    """
    Retrieves bills, optionally for a single session.
    """
    filters = {"session_id": session_id} if session_id is not None else {}
    bills = repo.find(BillDB, order_by=BillDB.id.asc(), **filters)
    return jsonable_encoder([Bill.model_validate(b) for b in bills])
