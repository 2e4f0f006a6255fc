from sqlalchemy import Column, ForeignKey, Integer, Numeric, String
from sqlalchemy.orm import relationship
from models.Base import Base
from models.TableStatus import TableStatus

class TableDB(Base):
    __tablename__ = "table"

    id = Column(Integer, primary_key=True, index=True, autoincrement=True)
    station_id = Column(Integer, index=True, nullable=False)
    game_id = Column(Integer, ForeignKey("game.id"), nullable=False)
    name = Column(String)
    status = Column(String, default=TableStatus.AVAILABLE.value, nullable=False)
    price_per_minute = Column(Numeric(10, 2), default=0)
    frame_charge = Column(Numeric(10, 2), default=0)

    reservations = relationship("TableReservationDB", back_populates="table")
