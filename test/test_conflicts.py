from datetime import datetime, timedelta, timezone

import pytest
from sqlalchemy.exc import OperationalError

from exceptions import ConflictError
from factories import *
from helper import TimeWindow, candidate_window, windows_overlap
from managers.conflict_resolver import ConflictResolver


def window(start_min, end_min=None):
    end = NOW + timedelta(minutes=end_min) if end_min is not None else None
    return TimeWindow(NOW + timedelta(minutes=start_min), end)


# =========================================================
# TEST: windows_overlap
# =========================================================
@pytest.mark.parametrize("a, b, expected", [
    ((0, 30), (10, 40), True),
    ((0, 30), (30, 60), False),
    ((0, 30), (-30, 0), False),
    ((0, None), (120, 180), True),
    ((0, 30), (-60, None), True),
    ((0, None), (-60, None), True),
    ((0, 30), (31, None), False),
])
def test_windows_overlap(a, b, expected):
    assert windows_overlap(window(*a), window(*b)) is expected
    assert windows_overlap(window(*b), window(*a)) is expected


def test_candidate_window_defaults_to_now():
    w = candidate_window(NOW, duration_minutes=45)
    assert w.start == NOW
    assert w.end == NOW + timedelta(minutes=45)
    assert candidate_window(NOW).is_open_ended


# =========================================================
# TEST: ConflictResolver.check_conflicts
# =========================================================
def test_no_conflicts_on_free_table(repo, db, clock):
    game = create_test_game(db)
    table = create_test_table(db, game.id)

    report = ConflictResolver(repo, clock).check_conflicts(table.id, window(0, 60))
    assert report.has_conflicts is False
    assert report.severity == Severity.NONE
    assert report.conflicts == []


def test_active_session_is_error(repo, db, clock):
    game = create_test_game(db)
    table = create_test_table(db, game.id)
    create_test_session(db, table.id, game.id, booking_type="timer", duration_minutes=30, booking_end_time=NOW + timedelta(minutes=30))

    report = ConflictResolver(repo, clock).check_conflicts(table.id, window(15, 45))
    assert report.severity == Severity.ERROR
    assert report.conflicts[0].type == ConflictType.ACTIVE_SESSION
    assert report.conflicts[0].message == "Table is occupied until 18:30"


def test_session_end_is_exclusive(repo, db, clock):
    game = create_test_game(db)
    table = create_test_table(db, game.id)
    create_test_session(db, table.id, game.id, booking_type="timer", duration_minutes=30, booking_end_time=NOW + timedelta(minutes=30))

    report = ConflictResolver(repo, clock).check_conflicts(table.id, window(30, 60))
    assert report.has_conflicts is False


def test_open_ended_session_blocks_any_later_window(repo, db, clock):
    game = create_test_game(db)
    table = create_test_table(db, game.id)
    create_test_session(db, table.id, game.id, booking_type="frame")

    report = ConflictResolver(repo, clock).check_conflicts(table.id, window(24 * 60, 25 * 60))
    assert report.severity == Severity.ERROR
    assert report.conflicts[0].message == "Table is currently in an active session"


def test_pending_reservation_warns_active_reservation_blocks(repo, db, clock):
    game = create_test_game(db)
    table = create_test_table(db, game.id)
    create_test_reservation(db, table.id, NOW + timedelta(minutes=60), NOW + timedelta(minutes=120))
    resolver = ConflictResolver(repo, clock)

    report = resolver.check_conflicts(table.id, window(90, 150))
    assert report.severity == Severity.WARNING
    assert report.conflicts[0].message == "Reserved from 19:00 to 20:00"

    create_test_reservation(db, table.id, NOW + timedelta(minutes=120), NOW + timedelta(minutes=180), status="active")
    report = resolver.check_conflicts(table.id, window(90, 150))
    assert report.severity == Severity.ERROR
    assert len(report.conflicts) == 2


def test_cancelled_and_done_reservations_ignored(repo, db, clock):
    game = create_test_game(db)
    table = create_test_table(db, game.id)
    create_test_reservation(db, table.id, NOW, NOW + timedelta(minutes=60), status="cancelled")
    create_test_reservation(db, table.id, NOW, NOW + timedelta(minutes=60), status="done")

    report = ConflictResolver(repo, clock).check_conflicts(table.id, window(0, 60))
    assert report.has_conflicts is False


def test_seated_queue_party_warns(repo, db, clock):
    game = create_test_game(db)
    table = create_test_table(db, game.id, status="occupied")
    entry = create_test_queue_entry(db, game.id, customer_name="Maria", preferred_table_id=table.id, status="seated")
    resolver = ConflictResolver(repo, clock)

    report = resolver.check_conflicts(table.id, window(0, 60))
    assert report.severity == Severity.WARNING
    assert report.conflicts[0].message == "Table is assigned to queue member: Maria"

    report = resolver.check_conflicts(table.id, window(0, 60), exclude_queue_id=entry.id)
    assert report.has_conflicts is False


def test_exclusions_drop_own_booking(repo, db, clock):
    game = create_test_game(db)
    table = create_test_table(db, game.id)
    session = create_test_session(db, table.id, game.id)
    reservation = create_test_reservation(db, table.id, NOW, NOW + timedelta(minutes=60), status="active")

    report = ConflictResolver(repo, clock).check_conflicts(
        table.id, window(0, 60), exclude_session_id=session.id, exclude_reservation_id=reservation.id
    )
    assert report.has_conflicts is False


def test_conflicts_are_scoped_to_station(db, clock):
    from repository import Repository
    from tenant import TenantScope

    game = create_test_game(db)
    table = create_test_table(db, game.id)
    create_test_session(db, table.id, game.id, station_id=OTHER_STATION_ID)

    report = ConflictResolver(Repository(db, TenantScope(STATION_ID)), clock).check_conflicts(table.id, window(0, 60))
    assert report.has_conflicts is False


def test_check_is_idempotent(repo, db, clock):
    game = create_test_game(db)
    table = create_test_table(db, game.id)
    create_test_reservation(db, table.id, NOW, NOW + timedelta(minutes=60))
    resolver = ConflictResolver(repo, clock)

    first = resolver.check_conflicts(table.id, window(0, 30))
    second = resolver.check_conflicts(table.id, window(0, 30))
    assert first == second
    assert db.query(TableReservationDB).one().status == "pending"


def test_conflict_is_symmetric(repo, db, clock):
    game = create_test_game(db)
    first = create_test_table(db, game.id, "Table 1")
    second = create_test_table(db, game.id, "Table 2")
    resolver = ConflictResolver(repo, clock)
    a, b = (NOW, NOW + timedelta(minutes=60)), (NOW + timedelta(minutes=45), NOW + timedelta(minutes=90))

    create_test_reservation(db, first.id, *b, status="active")
    assert resolver.check_conflicts(first.id, TimeWindow(*a)).has_conflicts

    create_test_reservation(db, second.id, *a, status="active")
    assert resolver.check_conflicts(second.id, TimeWindow(*b)).has_conflicts


def test_lookup_failure_reports_system_error(repo, db, clock, monkeypatch):
    game = create_test_game(db)
    table = create_test_table(db, game.id)
    resolver = ConflictResolver(repo, clock)

    def broken_find(*args, **kwargs):
        raise OperationalError("SELECT", {}, Exception("database is locked"))
    monkeypatch.setattr(repo, "find", broken_find)

    report = resolver.check_conflicts(table.id, window(0, 30))
    assert report.has_conflicts is True
    assert report.severity == Severity.ERROR
    assert report.conflicts[0].type == ConflictType.SYSTEM_ERROR
    assert not ConflictResolver.allows(report, OverrideMode.ACKNOWLEDGE_WARNINGS)


# =========================================================
# TEST: summarize / allows
# =========================================================
def test_summarize_variants(repo, db, clock):
    game = create_test_game(db)
    table = create_test_table(db, game.id)
    resolver = ConflictResolver(repo, clock)

    summary = resolver.summarize(resolver.check_conflicts(table.id, window(0, 30)))
    assert summary.title == "No Conflicts"
    assert summary.can_proceed is True

    create_test_reservation(db, table.id, NOW, NOW + timedelta(minutes=60))
    summary = resolver.summarize(resolver.check_conflicts(table.id, window(0, 30)))
    assert summary.title == "Booking Warning"
    assert summary.message == "Potential conflict: Reserved from 18:00 to 19:00"
    assert summary.question == "Do you want to proceed anyway?"
    assert summary.can_proceed is True

    create_test_session(db, table.id, game.id)
    summary = resolver.summarize(resolver.check_conflicts(table.id, window(0, 30)))
    assert summary.title == "Booking Conflict"
    assert summary.message == "Cannot book: Table is currently in an active session"
    assert summary.can_proceed is False


@pytest.mark.parametrize("severity, override, expected", [
    (Severity.NONE, OverrideMode.NONE, True),
    (Severity.WARNING, OverrideMode.NONE, False),
    (Severity.WARNING, OverrideMode.ACKNOWLEDGE_WARNINGS, True),
    (Severity.ERROR, OverrideMode.ACKNOWLEDGE_WARNINGS, False),
])
def test_allows(severity, override, expected):
    report = ConflictReport(has_conflicts=severity != Severity.NONE, severity=severity)
    assert ConflictResolver.allows(report, override) is expected


# =========================================================
# TEST: suggest_alternatives / ensure_bookable
# =========================================================
def test_suggestions_skip_blocked_slots(repo, db, clock):
    game = create_test_game(db)
    table = create_test_table(db, game.id)
    create_test_reservation(db, table.id, NOW, NOW + timedelta(minutes=60), status="active")

    suggestions = ConflictResolver(repo, clock).suggest_alternatives(table.id, NOW, 30)
    assert [s.label for s in suggestions] == ["19:00 - 19:30", "19:30 - 20:00", "20:00 - 20:30"]


def test_suggestions_never_start_in_the_past(repo, db, clock):
    game = create_test_game(db)
    table = create_test_table(db, game.id)

    suggestions = ConflictResolver(repo, clock).suggest_alternatives(table.id, NOW - timedelta(hours=2), 30)
    assert suggestions[0].start_time == NOW


def test_ensure_bookable_raises_with_suggestions(repo, db, clock):
    game = create_test_game(db)
    table = create_test_table(db, game.id)
    create_test_reservation(db, table.id, NOW, NOW + timedelta(minutes=60), status="active")

    with pytest.raises(ConflictError) as exc_info:
        ConflictResolver(repo, clock).ensure_bookable(table.id, window(0, 30))
    assert exc_info.value.status_code == 409
    assert exc_info.value.summary.can_proceed is False
    assert len(exc_info.value.suggestions) == 3


# =========================================================
# TEST: POST /conflicts/check
# =========================================================
def test_check_endpoint(client, db):
    game = create_test_game(db)
    table = create_test_table(db, game.id)
    create_test_reservation(db, table.id, NOW + timedelta(minutes=30), NOW + timedelta(minutes=90))

    response = client.post("/conflicts/check", json={"table_id": table.id, "duration_minutes": 60})
    assert response.status_code == 200

    data = response.json()
    assert data["report"]["has_conflicts"] is True
    assert data["report"]["severity"] == "warning"
    assert data["summary"]["title"] == "Booking Warning"


def test_check_endpoint_unknown_table(client):
    response = client.post("/conflicts/check", json={"table_id": 999})
    assert response.status_code == 404


def test_suggestions_endpoint(client, db):
    game = create_test_game(db)
    table = create_test_table(db, game.id)

    response = client.post("/conflicts/suggestions", json={
        "table_id": table.id,
        "start_time": NOW.isoformat(),
        "end_time": (NOW + timedelta(minutes=30)).isoformat(),
    })
    assert response.status_code == 200
    assert len(response.json()) == 3


def test_check_endpoint_with_utc_offset(client, db):
    game = create_test_game(db)
    table = create_test_table(db, game.id)
    start = datetime(2026, 3, 20, 12, 0, tzinfo=timezone.utc)
    create_test_reservation(db, table.id, NOW + timedelta(days=30), NOW + timedelta(days=30, hours=1))

    response = client.post("/conflicts/check", json={
        "table_id": table.id,
        "start_time": start.isoformat(),
        "duration_minutes": 60,
    })
    assert response.status_code == 200
    assert response.json()["report"]["has_conflicts"] is False


def test_local_datetime_conversion():
    aware = datetime(2026, 3, 14, 17, 0, tzinfo=timezone.utc)
    assert to_local_naive(aware) == aware.astimezone().replace(tzinfo=None)
    assert to_local_naive(NOW) is NOW
