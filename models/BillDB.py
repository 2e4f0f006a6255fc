from sqlalchemy import JSON, Boolean, Column, DateTime, ForeignKey, Integer, Numeric, String
from models.Base import Base

class BillDB(Base):
    __tablename__ = "bill"

    id = Column(Integer, primary_key=True, index=True, autoincrement=True)
    station_id = Column(Integer, index=True, nullable=False)
    bill_number = Column(String, unique=True, nullable=False)
    # one bill per session, whichever path closes it
    session_id = Column(Integer, ForeignKey("table_session.id"), unique=True, nullable=False)
    table_id = Column(Integer, ForeignKey("table.id"))
    customer_name = Column(String)
    minutes = Column(Integer)
    table_charges = Column(Numeric(10, 2))
    menu_charges = Column(Numeric(10, 2))
    total_amount = Column(Numeric(10, 2))
    bill_items = Column(JSON)
    items_summary = Column(String)
    auto_released = Column(Boolean, default=False)
    status = Column(String, default="pending")
    created_at = Column(DateTime)
