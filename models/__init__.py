from .Base import Base
from .LocalDateTime import LocalDateTime, to_local_naive
from .TableStatus import TableStatus, SessionStatus, ReservationStatus, QueueStatus, OrderStatus
from .BookingIntent import BookingIntent, TimerIntent, SetIntent, FrameIntent
from .CartItem import CartItem
from .Conflict import (
    AvailableSlot,
    Conflict,
    ConflictCheck,
    ConflictReport,
    ConflictSummary,
    ConflictType,
    OverrideMode,
    Severity,
    Suggestion,
)
from .Game import Game
from .GameDB import GameDB
from .Table import Table
from .TableDB import TableDB
from .TableSession import TableSession, SessionStart, SessionStop, SessionAutoRelease, SessionUpdate
from .TableSessionDB import TableSessionDB
from .TableReservation import (
    TableReservation,
    TableReservationAutoAssign,
    TableReservationResponse,
    TableReservationUpdate,
)
from .TableReservationDB import TableReservationDB
from .QueueEntry import QueueEntry, QueueEntryCreate, QueueAssign, QueueNext
from .QueueEntryDB import QueueEntryDB
from .Order import Order, Bill
from .OrderDB import OrderDB
from .BillDB import BillDB
