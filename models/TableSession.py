from datetime import datetime
from pydantic import BaseModel
from typing import Optional

from models.BookingIntent import BookingIntent
from models.CartItem import CartItem

class SessionStart(BaseModel):
    table_id: int
    game_id: int
    intent: BookingIntent
    customer_name: Optional[str] = None
    reservation_id: Optional[int] = None
    acknowledge_conflicts: bool = False

class SessionStop(BaseModel):
    session_id: int
    skip_bill: bool = False
    cart_items: Optional[list[CartItem]] = None

class SessionAutoRelease(BaseModel):
    session_id: int
    cart_items: Optional[list[CartItem]] = None

class SessionUpdate(BaseModel):
    frame_count: Optional[int] = None
    duration_minutes: Optional[int] = None
    cart_items: Optional[list[CartItem]] = None
    acknowledge_conflicts: bool = False

class TableSession(BaseModel):
    id: int
    table_id: int
    game_id: int
    customer_name: Optional[str] = None
    start_time: datetime
    end_time: Optional[datetime] = None
    booking_type: str
    duration_minutes: Optional[int] = None
    frame_count: Optional[int] = None
    booking_end_time: Optional[datetime] = None
    status: str
    reservation_id: Optional[int] = None
    queue_entry_id: Optional[int] = None

    class Config:
        from_attributes = True
