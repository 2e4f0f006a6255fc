from pydantic import BaseModel
from typing import Optional

from models.TableStatus import TableStatus

class Table(BaseModel):
    id: Optional[int] = None
    name: str
    game_id: int
    status: TableStatus = TableStatus.AVAILABLE
    price_per_minute: float = 0
    frame_charge: float = 0

    class Config:
        from_attributes = True
