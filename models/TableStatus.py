from enum import Enum


class TableStatus(str, Enum):
    AVAILABLE = "available"
    RESERVED = "reserved"
    OCCUPIED = "occupied"
    MAINTENANCE = "maintenance"


class SessionStatus(str, Enum):
    ACTIVE = "active"
    COMPLETED = "completed"


class ReservationStatus(str, Enum):
    PENDING = "pending"
    ACTIVE = "active"
    DONE = "done"
    CANCELLED = "cancelled"


class QueueStatus(str, Enum):
    WAITING = "waiting"
    SEATED = "seated"
    SERVED = "served"
    CANCELLED = "cancelled"


class OrderStatus(str, Enum):
    PENDING = "pending"
    BILLED = "billed"
    CANCELLED = "cancelled"
