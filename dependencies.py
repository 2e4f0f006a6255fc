from datetime import datetime
from typing import Callable

from fastapi import Depends
from sqlalchemy.orm import Session

from database import get_db
from managers.conflict_resolver import ConflictResolver
from managers.queue_manager import QueueManager
from managers.reservation_manager import ReservationManager
from managers.session_manager import SessionManager
from managers.table_manager import TableManager
from repository import Repository
from tenant import TenantScope, get_tenant_scope


def get_clock() -> Callable[[], datetime]:
    return datetime.now


def get_repository(db: Session = Depends(get_db), scope: TenantScope = Depends(get_tenant_scope)) -> Repository:
    return Repository(db, scope)


def get_conflict_resolver(repo: Repository = Depends(get_repository), clock=Depends(get_clock)) -> ConflictResolver:
    return ConflictResolver(repo, clock)


def get_table_manager(repo: Repository = Depends(get_repository), clock=Depends(get_clock)) -> TableManager:
    return TableManager(repo, clock)


def get_session_manager(repo: Repository = Depends(get_repository), clock=Depends(get_clock)) -> SessionManager:
    return SessionManager(repo, clock)


def get_queue_manager(repo: Repository = Depends(get_repository), clock=Depends(get_clock)) -> QueueManager:
    return QueueManager(repo, clock)


def get_reservation_manager(repo: Repository = Depends(get_repository), clock=Depends(get_clock)) -> ReservationManager:
    return ReservationManager(repo, clock)
