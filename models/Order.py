from datetime import datetime
from pydantic import BaseModel
from typing import Any, Optional

class Order(BaseModel):
    id: int
    person_name: Optional[str] = None
    status: str
    session_id: Optional[int] = None
    queue_id: Optional[int] = None
    order_source: Optional[str] = None
    items: Optional[list[dict[str, Any]]] = None

    class Config:
        from_attributes = True

class Bill(BaseModel):
    id: int
    bill_number: str
    session_id: int
    table_id: Optional[int] = None
    customer_name: Optional[str] = None
    minutes: int
    table_charges: float
    menu_charges: float
    total_amount: float
    items_summary: Optional[str] = None
    auto_released: bool
    status: str
    created_at: Optional[datetime] = None

    class Config:
        from_attributes = True
