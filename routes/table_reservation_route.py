from fastapi import APIRouter, Depends
from fastapi.encoders import jsonable_encoder

from dependencies import get_reservation_manager
from managers.reservation_manager import ReservationManager
from models import *

table_reservation_router = APIRouter(
    tags=["TableReservation"]
)


def _reservation(reservation) -> dict:
    return jsonable_encoder(TableReservationResponse.model_validate(reservation))


@table_reservation_router.get("/reservations", tags=["TableReservation"])
def get_reservations(reservations: ReservationManager = Depends(get_reservation_manager)):
    """
    Retrieves pending and active reservations, earliest first.
    """
    return [_reservation(r) for r in reservations.list_open()]


@table_reservation_router.get("/reservations/{id}", tags=["TableReservation"])
def get_reservation(id: int, reservations: ReservationManager = Depends(get_reservation_manager)):
    return _reservation(reservations.get(id))


@table_reservation_router.post("/reservations", status_code=201, tags=["TableReservation"])
def create_reservation(body: TableReservation, reservations: ReservationManager = Depends(get_reservation_manager)):
    """
    Books a table in advance.

    Args:
        body (TableReservation): Table, start time, duration and customer.

    Returns:
        dict: A success flag and the pending reservation. Overlapping bookings
        are answered with 409 naming the conflicting window.
    """
    reservation = reservations.create(
        body.table_id,
        body.from_time,
        body.customer_name,
        duration_minutes=body.duration_minutes,
        customer_phone=body.customer_phone,
        notes=body.notes,
        override=OverrideMode.ACKNOWLEDGE_WARNINGS if body.acknowledge_conflicts else OverrideMode.NONE,
    )
    return {"success": True, "reservation": _reservation(reservation)}


@table_reservation_router.post("/reservations/autoassign", tags=["TableReservation"])
def auto_assign_reservation(body: TableReservationAutoAssign, reservations: ReservationManager = Depends(get_reservation_manager)):
    reservation, table = reservations.auto_assign(body.reservation_id)
    return {
        "success": True,
        "reservation": _reservation(reservation),
        "table": jsonable_encoder(Table.model_validate(table)),
    }


@table_reservation_router.post("/reservations/{id}/cancel", tags=["TableReservation"])
def cancel_reservation(id: int, reservations: ReservationManager = Depends(get_reservation_manager)):
    return {"success": True, "reservation": _reservation(reservations.cancel(id))}


@table_reservation_router.patch("/reservations/{id}", tags=["TableReservation"])
def update_reservation(id: int, body: TableReservationUpdate, reservations: ReservationManager = Depends(get_reservation_manager)):
    reservation = reservations.update(id, **body.model_dump(exclude_unset=True))
    return {"success": True, "reservation": _reservation(reservation)}
