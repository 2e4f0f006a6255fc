from pydantic import BaseModel
from typing import Optional

class Game(BaseModel):
    id: Optional[int] = None
    name: str
