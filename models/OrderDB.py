from sqlalchemy import JSON, Column, ForeignKey, Integer, String
from models.Base import Base
from models.TableStatus import OrderStatus

class OrderDB(Base):
    __tablename__ = "table_order"

    id = Column(Integer, primary_key=True, index=True, autoincrement=True)
    station_id = Column(Integer, index=True, nullable=False)
    person_name = Column(String)
    status = Column(String, default=OrderStatus.PENDING.value, nullable=False)
    session_id = Column(Integer, ForeignKey("table_session.id"))
    queue_id = Column(Integer, ForeignKey("queue_entry.id"))
    order_source = Column(String)
    items = Column(JSON)
