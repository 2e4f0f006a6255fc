from pydantic import BaseModel, Field
from typing import Optional

class CartItem(BaseModel):
    id: Optional[int] = None
    name: str
    price: float = 0
    qty: int = Field(default=1, ge=1)
