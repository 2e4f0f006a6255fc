from sqlalchemy import JSON, Column, DateTime, ForeignKey, Index, Integer, String, Time, text
from models.Base import Base
from models.TableStatus import SessionStatus

class TableSessionDB(Base):
    __tablename__ = "table_session"

    id = Column(Integer, primary_key=True, index=True, autoincrement=True)
    station_id = Column(Integer, index=True, nullable=False)
    table_id = Column(Integer, ForeignKey("table.id"), nullable=False)
    game_id = Column(Integer, nullable=False)
    customer_name = Column(String)
    start_time = Column(DateTime, nullable=False)
    end_time = Column(DateTime)
    booking_type = Column(String, nullable=False)
    duration_minutes = Column(Integer)
    set_time = Column(Time)
    frame_count = Column(Integer)
    booking_end_time = Column(DateTime)
    status = Column(String, default=SessionStatus.ACTIVE.value, nullable=False)
    reservation_id = Column(Integer, ForeignKey("table_reservation.id"))
    queue_entry_id = Column(Integer, ForeignKey("queue_entry.id"))
    cart_items = Column(JSON)

    # at most one active session per table, even across concurrent writers
    __table_args__ = (
        Index(
            "uq_active_session_per_table",
            "table_id",
            unique=True,
            sqlite_where=text("status = 'active'"),
            postgresql_where=text("status = 'active'"),
        ),
    )
