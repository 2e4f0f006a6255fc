from sqlalchemy import Column, DateTime, ForeignKey, Index, Integer, String, Time, text
from models.Base import Base
from models.TableStatus import QueueStatus

class QueueEntryDB(Base):
    __tablename__ = "queue_entry"

    id = Column(Integer, primary_key=True, index=True, autoincrement=True)
    station_id = Column(Integer, index=True, nullable=False)
    customer_name = Column(String, nullable=False)
    phone = Column(String)
    members = Column(Integer, default=1)
    game_id = Column(Integer, ForeignKey("game.id"), nullable=False)
    preferred_table_id = Column(Integer, ForeignKey("table.id"))
    booking_type = Column(String, nullable=False)
    duration_minutes = Column(Integer)
    set_time = Column(Time)
    frame_count = Column(Integer)
    status = Column(String, default=QueueStatus.WAITING.value, nullable=False)
    estimated_wait_minutes = Column(Integer)
    cancel_reason = Column(String)
    created_at = Column(DateTime, nullable=False)

    # a table holds at most one seated party
    __table_args__ = (
        Index(
            "uq_seated_queue_per_table",
            "preferred_table_id",
            unique=True,
            sqlite_where=text("status = 'seated'"),
            postgresql_where=text("status = 'seated'"),
        ),
    )
