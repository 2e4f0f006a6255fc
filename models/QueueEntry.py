from datetime import datetime
from pydantic import BaseModel, Field
from typing import Optional

from models.BookingIntent import BookingIntent, TimerIntent
from models.CartItem import CartItem

class QueueEntryCreate(BaseModel):
    customer_name: str
    phone: Optional[str] = None
    members: int = Field(default=1, ge=1)
    game_id: int
    preferred_table_id: Optional[int] = None
    intent: BookingIntent = TimerIntent(duration_minutes=60)
    cart_items: list[CartItem] = []

class QueueAssign(BaseModel):
    table_id: int
    acknowledge_conflicts: bool = False

class QueueNext(BaseModel):
    game_id: Optional[int] = None

class QueueEntry(BaseModel):
    id: int
    customer_name: str
    phone: Optional[str] = None
    members: int
    game_id: int
    preferred_table_id: Optional[int] = None
    booking_type: str
    duration_minutes: Optional[int] = None
    frame_count: Optional[int] = None
    status: str
    estimated_wait_minutes: Optional[int] = None
    cancel_reason: Optional[str] = None
    created_at: datetime

    class Config:
        from_attributes = True
