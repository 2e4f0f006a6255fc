from datetime import datetime
from enum import Enum
from pydantic import BaseModel
from typing import Any, Optional

from models.LocalDateTime import LocalDateTime


class Severity(str, Enum):
    NONE = "none"
    WARNING = "warning"
    ERROR = "error"

    @property
    def rank(self) -> int:
        return {"none": 0, "warning": 1, "error": 2}[self.value]


class ConflictType(str, Enum):
    ACTIVE_SESSION = "active_session"
    RESERVATION = "reservation"
    QUEUE_ASSIGNMENT = "queue_assignment"
    SYSTEM_ERROR = "system_error"


class OverrideMode(str, Enum):
    NONE = "none"
    ACKNOWLEDGE_WARNINGS = "acknowledge_warnings"


class Conflict(BaseModel):
    type: ConflictType
    severity: Severity
    source: str
    customer: Optional[str] = None
    conflict_start: Optional[datetime] = None
    conflict_end: Optional[datetime] = None
    message: str
    details: dict[str, Any] = {}


class ConflictReport(BaseModel):
    has_conflicts: bool = False
    severity: Severity = Severity.NONE
    conflicts: list[Conflict] = []


class ConflictSummary(BaseModel):
    title: str
    message: str
    can_proceed: bool
    severity: Severity = Severity.NONE
    question: Optional[str] = None
    details: list[str] = []


class Suggestion(BaseModel):
    start_time: datetime
    end_time: datetime
    label: str


class AvailableSlot(BaseModel):
    start_time: datetime
    end_time: datetime
    available: bool
    label: Optional[str] = None
    conflicts: int = 0
    reason: Optional[str] = None


class ConflictCheck(BaseModel):
    table_id: int
    start_time: Optional[LocalDateTime] = None
    end_time: Optional[LocalDateTime] = None
    duration_minutes: Optional[int] = None
    exclude_session_id: Optional[int] = None
    exclude_reservation_id: Optional[int] = None
    exclude_queue_id: Optional[int] = None
