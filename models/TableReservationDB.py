from sqlalchemy import Column, ForeignKey, Integer, String, DateTime
from sqlalchemy.orm import relationship
from models.Base import Base
from models.TableStatus import ReservationStatus

class TableReservationDB(Base):
    __tablename__ = "table_reservation"

    id = Column(Integer, primary_key=True, index=True, autoincrement=True)
    station_id = Column(Integer, index=True, nullable=False)
    table_id = Column(Integer, ForeignKey("table.id"))
    customer_name = Column(String)
    customer_phone = Column(String)
    from_time = Column(DateTime, nullable=False)
    to_time = Column(DateTime, nullable=False)
    status = Column(String, default=ReservationStatus.PENDING.value, nullable=False)
    notes = Column(String, default="")

    table = relationship("TableDB", back_populates="reservations")
