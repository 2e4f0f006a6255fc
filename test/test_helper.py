from datetime import time, timedelta
from types import SimpleNamespace

import pytest

from exceptions import ConflictError, ForbiddenError, NotFoundError, ValidationError
from factories import *
from helper import (
    compute_end_time,
    derive_table_status,
    elapsed_minutes,
    intent_columns,
    intent_from_columns,
    session_window,
)
from repository import Repository
from tenant import TenantScope, get_tenant_scope


# =========================================================
# TEST: compute_end_time
# =========================================================
def test_compute_end_time_timer():
    assert compute_end_time(TimerIntent(duration_minutes=45), NOW) == NOW + timedelta(minutes=45)


def test_compute_end_time_set_later_today():
    assert compute_end_time(SetIntent(target_time=time(21, 15)), NOW) == NOW.replace(hour=21, minute=15)


def test_compute_end_time_set_at_now_rolls_over():
    assert compute_end_time(SetIntent(target_time=time(18, 0)), NOW) == NOW + timedelta(days=1)


def test_compute_end_time_frame_is_open_ended():
    assert compute_end_time(FrameIntent(frame_count=2), NOW) is None


def test_timer_requires_positive_duration():
    from pydantic import ValidationError as PydanticValidationError
    with pytest.raises(PydanticValidationError):
        TimerIntent(duration_minutes=0)


# =========================================================
# TEST: intent columns
# =========================================================
def test_intent_columns_roundtrip_for_set():
    columns = intent_columns(SetIntent(target_time=time(20, 0)))
    assert columns == {"booking_type": "set", "duration_minutes": None, "set_time": time(20, 0), "frame_count": None}
    assert intent_from_columns(**columns) == SetIntent(target_time=time(20, 0))


def test_timer_without_duration_is_open_ended():
    assert intent_from_columns("timer", None) == FrameIntent()


def test_session_window_falls_back_to_duration():
    session = SimpleNamespace(start_time=NOW, booking_end_time=None, duration_minutes=20)
    assert session_window(session).end == NOW + timedelta(minutes=20)

    session.duration_minutes = None
    assert session_window(session).is_open_ended


def test_elapsed_minutes_rounds_up():
    assert elapsed_minutes(NOW, NOW + timedelta(minutes=10, seconds=1)) == 11
    assert elapsed_minutes(NOW, NOW - timedelta(minutes=1)) == 0


# =========================================================
# TEST: derive_table_status
# =========================================================
def test_derive_table_status():
    table = SimpleNamespace(status="reserved")
    active = SimpleNamespace(status="active")
    seated = SimpleNamespace(status="seated")
    reservation = SimpleNamespace(status="active")

    assert derive_table_status(table) == TableStatus.AVAILABLE
    assert derive_table_status(table, active_session=active) == TableStatus.RESERVED
    assert derive_table_status(table, seated_entry=seated) == TableStatus.OCCUPIED
    assert derive_table_status(table, covering_reservation=reservation) == TableStatus.RESERVED
    assert derive_table_status(SimpleNamespace(status="maintenance"), active_session=active) == TableStatus.MAINTENANCE


# =========================================================
# TEST: TenantScope
# =========================================================
@pytest.mark.parametrize("header", [None, "", "x", "0", "-3"])
def test_tenant_scope_rejects_bad_header(header):
    with pytest.raises(ValidationError):
        get_tenant_scope(header)


def test_tenant_scope_from_header():
    assert get_tenant_scope("7") == TenantScope(station_id=7)


# =========================================================
# TEST: Repository
# =========================================================
def test_repository_create_stamps_station(db):
    repo = Repository(db, TenantScope(OTHER_STATION_ID))
    with repo.transaction():
        game = repo.create(GameDB, name="Darts")
    assert game.station_id == OTHER_STATION_ID


def test_repository_get_foreign_row(db):
    game = create_test_game(db, station_id=OTHER_STATION_ID)
    repo = Repository(db, TenantScope(STATION_ID))

    with pytest.raises(ForbiddenError):
        repo.get(GameDB, game.id)
    with pytest.raises(NotFoundError):
        repo.require(GameDB, 999, "Game")
    assert repo.find(GameDB) == []


def test_repository_transaction_rolls_back(db):
    repo = Repository(db, TenantScope(STATION_ID))

    with pytest.raises(ValidationError):
        with repo.transaction():
            repo.create(GameDB, name="Pool")
            raise ValidationError("abort")
    assert db.query(GameDB).count() == 0


def test_repository_nested_transaction_commits_once(db):
    repo = Repository(db, TenantScope(STATION_ID))

    with pytest.raises(ValidationError):
        with repo.transaction():
            with repo.transaction():
                repo.create(GameDB, name="Pool")
            raise ValidationError("abort")
    assert db.query(GameDB).count() == 0


def test_repository_maps_integrity_error_to_conflict(db):
    game = create_test_game(db)
    table = create_test_table(db, game.id)
    create_test_session(db, table.id, game.id)
    repo = Repository(db, TenantScope(STATION_ID))

    with pytest.raises(ConflictError):
        with repo.transaction():
            repo.create(
                TableSessionDB,
                table_id=table.id,
                game_id=game.id,
                start_time=NOW,
                booking_type="frame",
                status="active",
            )
    assert db.query(TableSessionDB).count() == 1
