from datetime import timedelta

from factories import *


# =========================================================
# TEST: GET /tables
# =========================================================
def test_get_tables(client, db):
    game = create_test_game(db)
    create_test_table(db, game.id, "Table 1")
    create_test_table(db, game.id, "Table 2")

    response = client.get("/tables")
    assert response.status_code == 200

    data = response.json()
    assert len(data) == 2


def test_get_tables_only_own_station(client, db):
    game = create_test_game(db)
    other_game = create_test_game(db, "Snooker", station_id=OTHER_STATION_ID)
    create_test_table(db, game.id, "Table 1")
    create_test_table(db, other_game.id, "Foreign", station_id=OTHER_STATION_ID)

    response = client.get("/tables")
    assert response.status_code == 200
    assert [t["name"] for t in response.json()] == ["Table 1"]


def test_get_tables_without_station_header(client):
    response = client.get("/tables", headers={"X-Station-Id": ""})
    assert response.status_code == 400


def test_get_tables_with_invalid_station_header(client):
    response = client.get("/tables", headers={"X-Station-Id": "abc"})
    assert response.status_code == 400
    assert "integer" in response.json()["detail"]


# =========================================================
# TEST: GET /tables/{id}
# =========================================================
def test_get_table(client, db):
    game = create_test_game(db)
    table = create_test_table(db, game.id, "Table 1", price_per_minute=3)

    response = client.get(f"/tables/{table.id}")
    assert response.status_code == 200

    data = response.json()
    assert data["name"] == "Table 1"
    assert data["status"] == "available"
    assert data["price_per_minute"] == 3


def test_get_table_not_found(client):
    response = client.get("/tables/999")
    assert response.status_code == 404


def test_get_table_of_other_station(client, db):
    other_game = create_test_game(db, station_id=OTHER_STATION_ID)
    foreign = create_test_table(db, other_game.id, station_id=OTHER_STATION_ID)

    response = client.get(f"/tables/{foreign.id}")
    assert response.status_code == 403


# =========================================================
# TEST: POST /tables
# =========================================================
def test_create_table(client, db):
    game = create_test_game(db)

    response = client.post("/tables", json={"name": "Table 7", "game_id": game.id, "price_per_minute": 2.5})
    assert response.status_code == 201

    data = response.json()
    assert data["id"] is not None
    assert data["status"] == "available"

    db_table = db.query(TableDB).filter(TableDB.id == data["id"]).first()
    assert db_table.station_id == STATION_ID


def test_create_table_unknown_game(client):
    response = client.post("/tables", json={"name": "Table 7", "game_id": 42})
    assert response.status_code == 404


def test_create_table_invalid_payload(client):
    response = client.post("/tables", json={"name": "Table 7"})
    assert response.status_code == 400


# =========================================================
# TEST: PUT /tables/{id}
# =========================================================
def test_update_table(client, db):
    game = create_test_game(db)
    table = create_test_table(db, game.id, "Old")

    response = client.put(f"/tables/{table.id}", json={"name": "New", "game_id": game.id, "frame_charge": 80})
    assert response.status_code == 200
    assert response.json()["table"]["name"] == "New"
    assert response.json()["table"]["frame_charge"] == 80


def test_update_table_into_and_out_of_maintenance(client, db):
    game = create_test_game(db)
    table = create_test_table(db, game.id)

    response = client.put(f"/tables/{table.id}", json={"name": "Table 1", "game_id": game.id, "status": "maintenance"})
    assert response.status_code == 200
    assert response.json()["table"]["status"] == "maintenance"

    response = client.put(f"/tables/{table.id}", json={"name": "Table 1", "game_id": game.id, "status": "available"})
    assert response.status_code == 200
    assert response.json()["table"]["status"] == "available"


def test_update_table_rejects_manual_occupancy(client, db):
    game = create_test_game(db)
    table = create_test_table(db, game.id)

    response = client.put(f"/tables/{table.id}", json={"name": "Table 1", "game_id": game.id, "status": "reserved"})
    assert response.status_code == 400

    db.refresh(table)
    assert table.status == "available"


# =========================================================
# TEST: POST /tables/{id}/reconcile
# =========================================================
def test_reconcile_orphaned_reserved_table(client, db):
    game = create_test_game(db)
    table = create_test_table(db, game.id, status="reserved")

    response = client.post(f"/tables/{table.id}/reconcile")
    assert response.status_code == 200
    assert response.json()["table"]["status"] == "available"


def test_reconcile_keeps_table_with_active_session(client, db):
    game = create_test_game(db)
    table = create_test_table(db, game.id, status="available")
    create_test_session(db, table.id, game.id)

    response = client.post(f"/tables/{table.id}/reconcile")
    assert response.status_code == 200
    assert response.json()["table"]["status"] == "reserved"


def test_reconcile_seated_party_marks_occupied(client, db):
    game = create_test_game(db)
    table = create_test_table(db, game.id)
    create_test_queue_entry(db, game.id, preferred_table_id=table.id, status="seated")

    response = client.post(f"/tables/{table.id}/reconcile")
    assert response.json()["table"]["status"] == "occupied"


def test_reconcile_leaves_maintenance(client, db):
    game = create_test_game(db)
    table = create_test_table(db, game.id, status="maintenance")
    create_test_session(db, table.id, game.id)

    response = client.post(f"/tables/{table.id}/reconcile")
    assert response.json()["table"]["status"] == "maintenance"


# =========================================================
# TEST: GET /tables/{id}/available-slots
# =========================================================
def test_available_slots(client, db):
    game = create_test_game(db)
    table = create_test_table(db, game.id)
    create_test_reservation(db, table.id, NOW.replace(hour=20), NOW.replace(hour=21), status="active")

    response = client.get(f"/tables/{table.id}/available-slots", params={"day": NOW.date().isoformat()})
    assert response.status_code == 200

    slots = response.json()
    # 08:00 - 23:00
    assert len(slots) == 15
    blocked = [s for s in slots if not s["available"]]
    assert len(blocked) == 1
    assert blocked[0]["start_time"].startswith(NOW.date().isoformat() + "T20:00")
    assert blocked[0]["reason"] == "Reserved from 20:00 to 21:00"


def test_available_slots_requires_day(client, db):
    game = create_test_game(db)
    table = create_test_table(db, game.id)

    response = client.get(f"/tables/{table.id}/available-slots")
    assert response.status_code == 400


# =========================================================
# TEST: /games
# =========================================================
def test_create_and_list_games(client):
    response = client.post("/games", json={"name": "Pool"})
    assert response.status_code == 201

    response = client.get("/games")
    assert response.status_code == 200
    assert [g["name"] for g in response.json()] == ["Pool"]
