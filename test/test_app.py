from factories import *


# =========================================================
# TEST: GET /
# =========================================================
def test_root(client):
    response = client.get("/")
    assert response.status_code == 200
    assert response.json() == {"success": True}


def test_root_needs_no_station(clock):
    from fastapi.testclient import TestClient
    from app import app

    response = TestClient(app).get("/")
    assert response.status_code == 200


# =========================================================
# TEST: WebSocket /ws/tables
# =========================================================
def test_websocket_connects(client):
    with client.websocket_connect("/ws/tables") as ws:
        ws.send_text("ping")
