from datetime import datetime
from pydantic import BaseModel, Field
from typing import Optional

from models.LocalDateTime import LocalDateTime
from models.TableStatus import ReservationStatus

class TableReservation(BaseModel):
    table_id: int
    from_time: LocalDateTime
    duration_minutes: Optional[int] = Field(default=None, gt=0)
    customer_name: str
    customer_phone: Optional[str] = None
    notes: Optional[str] = None
    acknowledge_conflicts: bool = False

class TableReservationUpdate(BaseModel):
    status: Optional[ReservationStatus] = None
    notes: Optional[str] = None

class TableReservationAutoAssign(BaseModel):
    reservation_id: int

class TableReservationResponse(BaseModel):
    id: int
    table_id: Optional[int] = None
    customer_name: Optional[str] = None
    customer_phone: Optional[str] = None
    from_time: datetime
    to_time: datetime
    status: str
    notes: Optional[str] = None

    class Config:
        from_attributes = True
