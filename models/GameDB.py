from sqlalchemy import Column, Integer, String
from models.Base import Base

class GameDB(Base):
    __tablename__ = "game"

    id = Column(Integer, primary_key=True, index=True, autoincrement=True)
    station_id = Column(Integer, index=True, nullable=False)
    name = Column(String, nullable=False)
