from loguru import logger
from sqlalchemy import create_engine
from sqlalchemy.engine import Engine
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool

from config import DATABASE_URL, TESTING
from models import Base


def build_engine(url: str, testing: bool = False) -> Engine:
    """In-memory SQLite shared by every session under test, otherwise ``url``."""
    if testing:
        return create_engine("sqlite://", connect_args={"check_same_thread": False}, poolclass=StaticPool)
    if url.startswith("sqlite"):
        return create_engine(url, connect_args={"check_same_thread": False})
    return create_engine(url, pool_pre_ping=True)


engine = build_engine(DATABASE_URL, TESTING)
SessionLocal = sessionmaker(bind=engine, autocommit=False, autoflush=False)


def get_db():
    """One ORM session per request; managers commit through Repository.transaction()."""
    db = SessionLocal()
    try:
        yield db
    finally:
        db.close()


# partial unique indexes are created together with their tables
Base.metadata.create_all(bind=engine)
logger.debug(f"Database ready ({engine.url.get_backend_name()})")
