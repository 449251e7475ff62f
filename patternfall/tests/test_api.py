"""
Tests for API layer.

Tests:
- API service methods
- HTTP endpoints via TestClient
- Session lifecycle via API
- Error handling
"""

import json
import pytest
from fastapi.testclient import TestClient

from ..api.app import create_app
from ..api.schemas import (
    CreateSessionRequest,
    ErrorCode,
    InputRequest,
    JumpRequest,
    SessionStatus,
    TickRequest,
)
from ..api.service import APIService, RequestError, SessionNotFoundError
from .conftest import STEP_TICKS, level_data


class TestAPIService:
    """Tests for APIService."""

    @pytest.fixture
    def service(self):
        """Create a fresh API service."""
        return APIService()

    def test_create_builtin_session(self, service):
        """Without inline levels the built-in campaign is used."""
        response = service.create_session(CreateSessionRequest())

        assert response.status == SessionStatus.ACTIVE
        assert response.level_count == 7
        assert response.level_id == 1
        assert response.level_title == "First Steps"

    def test_get_nonexistent_session(self, service):
        with pytest.raises(SessionNotFoundError):
            service.get_session("nonexistent-id")

    def test_invalid_direction(self, service):
        session_id = service.create_session(CreateSessionRequest()).session_id

        with pytest.raises(RequestError) as exc_info:
            service.push_input(session_id, InputRequest(direction="north"))

        assert exc_info.value.error_code == ErrorCode.INVALID_DIRECTION

    def test_queue_full_not_an_error(self, service):
        session_id = service.create_session(CreateSessionRequest()).session_id

        results = [service.push_input(session_id, InputRequest(direction="right")).accepted for _ in range(3)]

        assert results == [True, True, False]

    def test_tick_returns_events(self, service):
        request = CreateSessionRequest(levels=[level_data(exit=[1, 0])])
        session_id = service.create_session(request).session_id
        service.push_input(session_id, InputRequest(direction="right"))

        response = service.tick(session_id, TickRequest(count=STEP_TICKS + 10))

        assert response.status == SessionStatus.WON
        assert response.ticks_run == STEP_TICKS
        assert [e.type for e in response.events] == ["level_started", "landed", "won"]
        assert response.events[1].data == {"col": 1, "row": 0}

    def test_game_state(self, service):
        request = CreateSessionRequest(levels=[level_data(
            cells=[{"position": [1, 1], "id": "mid", "mechanic": "solid_color",
                    "mechanic_params": {"color": "#ABCDEF"}}],
        )])
        session_id = service.create_session(request).session_id

        state = service.get_game_state(session_id)

        assert state.grid_size == 3
        assert len(state.cells) == 9
        mid = next(c for c in state.cells if c.id == "mid")
        assert mid.current_color == "#ABCDEF"
        assert mid.mechanic == "solid_color"
        assert state.player.phase == "idle"
        assert state.border_behavior == "block"

    def test_jump_invalid_index(self, service):
        session_id = service.create_session(CreateSessionRequest()).session_id

        with pytest.raises(RequestError) as exc_info:
            service.jump(session_id, JumpRequest(index=99))

        assert exc_info.value.error_code == ErrorCode.INVALID_LEVEL_INDEX

    def test_end_session(self, service):
        session_id = service.create_session(CreateSessionRequest()).session_id

        assert service.end_session(session_id)
        assert session_id not in service.list_sessions()
        assert not service.end_session(session_id)


class TestHTTPAPI:
    """Tests for the FastAPI application."""

    @pytest.fixture
    def client(self):
        return TestClient(create_app(APIService()))

    def _create(self, client, **body):
        response = client.post("/api/v1/sessions", json=body)
        assert response.status_code == 200, response.text
        return response.json()["session_id"]

    def test_health(self, client):
        response = client.get("/api/v1/health")

        assert response.status_code == 200
        assert response.json()["status"] == "healthy"

    def test_validate_level(self, client):
        response = client.post("/api/v1/levels/validate", json=level_data())

        assert response.status_code == 200
        assert response.json()["valid"] is True

    def test_validate_reports_errors(self, client):
        body = level_data(rules=[{"condition": {"type": "pattern_break", "pattern": []},
                                  "effect": {"type": "kill"}}])

        response = client.post("/api/v1/levels/validate", json=body)

        assert response.status_code == 200
        assert response.json()["valid"] is False
        assert response.json()["errors"]

    def test_validate_schema_error(self, client):
        response = client.post("/api/v1/levels/validate", json={"grid_size": 0})

        assert response.status_code == 422
        assert response.json()["error_code"] == "VALIDATION_ERROR"

    def test_round_trip_win(self, client):
        """Create a session, move onto the exit, observe the win."""
        session_id = self._create(client, levels=[level_data(exit=[1, 0])])

        response = client.post(f"/api/v1/sessions/{session_id}/input", json={"direction": "right"})
        assert response.status_code == 200
        assert response.json()["accepted"] is True

        response = client.post(f"/api/v1/sessions/{session_id}/tick", json={"count": 30})
        body = response.json()
        assert response.status_code == 200
        assert body["status"] == "won"
        assert [e["type"] for e in body["events"]][-2:] == ["landed", "won"]

        state = client.get(f"/api/v1/sessions/{session_id}/state").json()
        assert state["status"] == "won"
        assert state["player"]["col"] == 1

    def test_death_and_retry(self, client):
        session_id = self._create(client, levels=[level_data(border_behavior="kill")])
        client.post(f"/api/v1/sessions/{session_id}/input", json={"direction": "left"})

        body = client.post(f"/api/v1/sessions/{session_id}/tick", json={}).json()
        assert body["status"] == "dead"
        assert body["events"][-1]["type"] == "killed"

        response = client.post(f"/api/v1/sessions/{session_id}/retry")
        assert response.status_code == 200
        assert response.json()["status"] == "active"
        assert response.json()["death_count"] == 1

    def test_advance_and_jump(self, client):
        session_id = self._create(client, levels=[level_data(id="a"), level_data(id="b")])

        response = client.post(f"/api/v1/sessions/{session_id}/advance")
        assert response.json()["level_id"] == "b"

        response = client.post(f"/api/v1/sessions/{session_id}/jump", json={"index": 0})
        assert response.json()["level_id"] == "a"

        response = client.post(f"/api/v1/sessions/{session_id}/jump", json={"index": 5})
        assert response.status_code == 400
        assert response.json()["error_code"] == "INVALID_LEVEL_INDEX"

    def test_session_not_found(self, client):
        response = client.get("/api/v1/sessions/missing")

        assert response.status_code == 404
        assert response.json()["error_code"] == "SESSION_NOT_FOUND"

    def test_invalid_direction(self, client):
        session_id = self._create(client)

        response = client.post(f"/api/v1/sessions/{session_id}/input", json={"direction": "north"})

        assert response.status_code == 400
        assert response.json()["error_code"] == "INVALID_DIRECTION"

    def test_tick_count_bounds(self, client):
        session_id = self._create(client)

        response = client.post(f"/api/v1/sessions/{session_id}/tick", json={"count": 601})

        assert response.status_code == 422

    def test_invalid_start_index(self, client):
        response = client.post("/api/v1/sessions", json={"start_index": 10})

        assert response.status_code == 400
        assert response.json()["error_code"] == "INVALID_LEVEL_INDEX"
        assert client.get("/api/v1/sessions").json()["count"] == 0

    @pytest.mark.parametrize("grid_size", [-1, 1_000_000])
    def test_inline_level_schema_error(self, client, grid_size):
        response = client.post("/api/v1/sessions", json={"levels": [{"grid_size": grid_size}]})

        assert response.status_code == 422
        assert response.json()["error_code"] == "VALIDATION_ERROR"
        assert client.get("/api/v1/sessions").json()["count"] == 0

    def test_level_load_failed(self, tmp_path):
        (tmp_path / "index.json").write_text(json.dumps([1]))
        client = TestClient(create_app(APIService(levels_dir=tmp_path)))

        response = client.post("/api/v1/sessions", json={})

        assert response.status_code == 409
        assert response.json()["error_code"] == "LEVEL_LOAD_FAILED"

    def test_list_and_end(self, client):
        session_id = self._create(client)

        assert client.get("/api/v1/sessions").json()["sessions"] == [session_id]

        response = client.delete(f"/api/v1/sessions/{session_id}")
        assert response.json() == {"success": True, "session_id": session_id}
        assert client.get(f"/api/v1/sessions/{session_id}").status_code == 404
