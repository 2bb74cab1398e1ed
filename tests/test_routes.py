import pytest

from extensions import db
from signage.models import Player


@pytest.fixture
def players(app):
    with app.app_context():
        db.session.add_all([
            Player(cpu_serial_number="PI-3", name="Canteen", installation="local", is_connected=True),
            Player(cpu_serial_number="PI-1", name="Atrium", installation="local"),
            Player(cpu_serial_number="PI-2", name="Board room", installation="hq", is_connected=True),
        ])
        db.session.commit()


def test_health(client):
    resp = client.get("/api/health")
    assert resp.status_code == 200
    assert resp.get_json()["status"] == "OK"


def test_list_players_sorted_and_paginated(client, players):
    resp = client.get("/api/players?perPage=2")
    data = resp.get_json()
    assert [p["name"] for p in data["players"]] == ["Atrium", "Board room"]
    assert data["pagination"] == {"page": 0, "perPage": 2, "total": 3, "pages": 2}

    resp = client.get("/api/players?perPage=2&page=1")
    assert [p["name"] for p in resp.get_json()["players"]] == ["Canteen"]


def test_list_players_by_installation(client, players):
    data = client.get("/api/players?installation=hq").get_json()
    assert [p["cpuSerialNumber"] for p in data["players"]] == ["PI-2"]


def test_get_player(client, players):
    resp = client.get("/api/players/PI-1")
    assert resp.status_code == 200
    record = resp.get_json()
    assert record["name"] == "Atrium"
    assert record["group"] == {"_id": None, "name": "default"}

    assert client.get("/api/players/NOPE").status_code == 404


def test_delete_player(app, client, players):
    with app.app_context():
        player_id = Player.query.filter_by(cpu_serial_number="PI-1").one().id

    resp = client.delete(f"/api/players/{player_id}")
    assert resp.status_code == 200
    assert client.get("/api/players/PI-1").status_code == 404
    assert client.delete(f"/api/players/{player_id}").status_code == 404


def test_player_stats_include_active_checkins(client, players, socket_client):
    socket_client.emit("status", {"cpuSerialNumber": "PI-9"}, {}, False, callback=True)

    stats = client.get("/api/players/stats").get_json()
    assert stats == {"total": 4, "connected": 3, "active": 1}
