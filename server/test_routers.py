"""
Test suite for the HTTP endpoints (health, metrics, room lookup).

Run with: pytest test_routers.py -v
"""

from unittest.mock import AsyncMock

import pytest
from fastapi import FastAPI
from fastapi.testclient import TestClient

from middleware.request_id import RequestIDMiddleware
from room import RoomManager
from routers.health import router as health_router, set_health_dependencies
from routers.rooms import router as rooms_router, set_room_manager
from services.game_logger import GameLogger


@pytest.fixture
def room_manager():
    game_logger = GameLogger()
    rm = RoomManager(game_logger=game_logger)
    set_health_dependencies(room_manager=rm, game_logger=game_logger)
    set_room_manager(rm)
    yield rm
    set_health_dependencies()
    set_room_manager(None)


@pytest.fixture
def client(room_manager):
    app = FastAPI()
    app.add_middleware(RequestIDMiddleware)
    app.include_router(health_router)
    app.include_router(rooms_router)
    return TestClient(app)


class TestHealth:

    def test_health(self, client):
        response = client.get("/health")
        assert response.status_code == 200
        assert response.json()["status"] == "ok"

    def test_request_id_echoed(self, client):
        response = client.get("/health", headers={"X-Request-ID": "abc-123"})
        assert response.headers["X-Request-ID"] == "abc-123"

    def test_request_id_generated(self, client):
        assert client.get("/health").headers["X-Request-ID"]

    def test_ready_without_redis(self, client):
        response = client.get("/ready")
        assert response.status_code == 200
        assert response.json()["checks"]["redis"]["status"] == "not_configured"

    def test_ready_redis_down(self, client, room_manager):
        redis_client = AsyncMock()
        redis_client.ping.side_effect = ConnectionError("refused")
        set_health_dependencies(redis_client=redis_client, room_manager=room_manager)

        response = client.get("/ready")

        assert response.status_code == 503
        assert response.json()["status"] == "degraded"

    def test_metrics(self, client, room_manager):
        room = room_manager.create_room("p0", "Host")
        room_manager.join_room(room.code, "p1", "Guest")
        room.game.start_game("p0")
        room_manager.create_room("x", "Solo")

        data = client.get("/metrics").json()

        assert data["active_rooms"] == 2
        assert data["total_players"] == 3
        assert data["games_in_progress"] == 1
        assert data["events"]["game_created"] == 2
        assert "Host" not in str(data)


class TestRoomLookup:

    def test_lookup(self, client, room_manager):
        room = room_manager.create_room("p0", "Host")

        response = client.get(f"/api/rooms/{room.code.lower()}")

        assert response.status_code == 200
        assert response.json() == {
            "room_code": room.code,
            "player_count": 1,
            "max_players": 8,
            "started": False,
            "joinable": True,
        }

    def test_started_room_not_joinable(self, client, room_manager):
        room = room_manager.create_room("p0", "Host")
        room_manager.join_room(room.code, "p1", "Guest")
        room.game.start_game("p0")

        assert client.get(f"/api/rooms/{room.code}").json()["joinable"] is False

    def test_unknown_room(self, client):
        assert client.get("/api/rooms/NOPE00").status_code == 404

    def test_no_manager(self, client):
        set_room_manager(None)
        assert client.get("/api/rooms/ABC123").status_code == 503
