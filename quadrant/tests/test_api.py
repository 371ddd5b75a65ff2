"""
Tests for API layer.

Tests:
- API service methods
- Action events (STATE_UPDATE, ACTION_REJECTED, GAME_OVER)
- REST endpoints
- WebSocket protocol
"""

import pytest
from fastapi.testclient import TestClient

from ..api.app import create_app
from ..api.schemas import (
    ActionRequest,
    CreateSessionRequest,
    ErrorCode,
    ErrorResponse,
    EventType,
    SessionStatus,
)
from ..api.service import APIService, SessionNotFound
from ..session import SessionManager


@pytest.fixture
def service():
    """A fresh API service with reproducible shuffles."""
    return APIService(SessionManager(rng_seed=1))


@pytest.fixture
def session_id(service):
    return service.create_session(CreateSessionRequest()).session_id


@pytest.fixture
def client(service):
    return TestClient(create_app(service=service))


class TestAPIService:
    """Tests for APIService."""

    def test_create_session(self, service):
        """Creating a session sets up the game with the built-in deck."""
        response = service.create_session(CreateSessionRequest())

        assert response.session_id is not None
        assert response.status == SessionStatus.ACTIVE
        assert response.turn == 1
        assert response.phase == "PlayAndDraw"

    def test_create_session_with_bad_deck(self, service):
        response = service.create_session(CreateSessionRequest(deck_card_ids=["EN03110"]))

        assert isinstance(response, ErrorResponse)
        assert response.error_code == ErrorCode.INVALID_DECK
        assert service.list_sessions() == []

    def test_get_nonexistent_session(self, service):
        """Getting nonexistent session returns error."""
        response = service.get_session("nonexistent-id")

        assert isinstance(response, ErrorResponse)
        assert response.error_code == "SESSION_NOT_FOUND"

    def test_end_session(self, service, session_id):
        assert service.end_session(session_id)

        assert session_id not in service.list_sessions()
        assert not service.end_session(session_id)

    def test_accepted_action_yields_state_update(self, service, session_id):
        request = ActionRequest(type="DRAW", count=2, request_id="req-1")

        outcome = service.submit_action(session_id, request)

        assert outcome.success
        assert len(outcome.events) == 1
        event = outcome.events[0]
        assert event.type == EventType.STATE_UPDATE
        assert event.request_id == "req-1"
        assert event.state.counters == 5
        assert len(event.state.hand) == 9
        assert [e.type for e in event.new_log_entries] == ["draw"]

    def test_rejected_action_yields_action_rejected(self, service, session_id):
        before = service.get_game_state(session_id).state

        outcome = service.submit_action(session_id, ActionRequest(type="NEXT_PHASE", request_id="req-2"))

        assert not outcome.success
        assert len(outcome.events) == 1
        event = outcome.events[0]
        assert event.type == EventType.ACTION_REJECTED
        assert event.request_id == "req-2"
        assert "counters" in event.reason.lower()
        assert service.get_game_state(session_id).state == before

    def test_game_over_event(self, service, session_id):
        """Running out of cards ends the game with a GAME_OVER event."""
        engine = service.session_manager.get_session(session_id).engine
        engine.state.deck.clear()
        engine.state.hand.clear()
        engine.state.counters = 0

        service.submit_action(session_id, ActionRequest(type="NEXT_PHASE"))
        service.submit_action(session_id, ActionRequest(type="NEXT_PHASE"))
        outcome = service.submit_action(session_id, ActionRequest(type="NEXT_PHASE"))

        assert outcome.success
        assert [e.type for e in outcome.events] == [EventType.STATE_UPDATE, EventType.GAME_OVER]
        game_over = outcome.events[-1]
        assert game_over.victory is False
        assert game_over.score == 0
        assert service.get_session(session_id).status == SessionStatus.GAME_OVER

    def test_submit_to_unknown_session_raises(self, service):
        with pytest.raises(SessionNotFound):
            service.submit_action("missing", ActionRequest(type="DRAW"))

    def test_log_since(self, service, session_id):
        full = service.get_log(session_id).entries
        service.submit_action(session_id, ActionRequest(type="DRAW"))

        newer = service.get_log(session_id, since=full[-1].id).entries

        assert full[0].type == "game_start"
        assert [e.type for e in newer] == ["draw"]

    def test_state_sync_carries_full_log(self, service, session_id):
        sync = service.state_sync(session_id)

        assert sync.type == EventType.STATE_SYNC
        assert sync.state.game_id == session_id
        assert len(sync.log) == sync.state.log_size

    def test_mission_gap(self, service, session_id):
        response = service.get_mission_gap(session_id, mission_index=1)

        assert response.can_complete is False
        assert response.hint.startswith("Need:")
        assert response.gap["missing_skills"]

    def test_mission_gap_bad_index(self, service, session_id):
        response = service.get_mission_gap(session_id, mission_index=9)

        assert isinstance(response, ErrorResponse)
        assert response.error_code == ErrorCode.VALIDATION_ERROR

    def test_list_cards(self, service):
        response = service.list_cards()

        assert response.count == len(response.cards)
        by_id = {card.card_id: card for card in response.cards}
        assert by_id["EN03094"].card_type == "Mission"
        assert by_id["EN03094"].details["score"] == 35
        assert "requirements" in by_id["EN03094"].details


class TestRestEndpoints:
    """HTTP endpoints through the FastAPI app."""

    def test_health(self, client):
        response = client.get("/health")

        assert response.status_code == 200
        assert response.json()["status"] == "healthy"

    def test_create_and_get_session(self, client):
        created = client.post("/api/v1/sessions", json={})
        assert created.status_code == 200
        session_id = created.json()["session_id"]

        fetched = client.get(f"/api/v1/sessions/{session_id}")

        assert fetched.status_code == 200
        assert fetched.json()["status"] == "active"
        assert session_id in client.get("/api/v1/sessions").json()["sessions"]

    def test_create_with_invalid_deck(self, client):
        response = client.post("/api/v1/sessions", json={"deck_card_ids": ["NOPE"]})

        assert response.status_code == 400
        assert response.json()["error_code"] == "INVALID_DECK"

    def test_unknown_session_is_404(self, client):
        assert client.get("/api/v1/sessions/missing").status_code == 404
        assert client.get("/api/v1/sessions/missing/state").status_code == 404

        response = client.post("/api/v1/sessions/missing/actions", json={"type": "DRAW"})
        assert response.status_code == 404
        assert response.json()["error_code"] == "SESSION_NOT_FOUND"

    def test_state_and_log(self, client, session_id):
        state = client.get(f"/api/v1/sessions/{session_id}/state").json()["state"]
        log = client.get(f"/api/v1/sessions/{session_id}/log").json()["entries"]

        assert state["phase"] == "PlayAndDraw"
        assert len(state["missions"]) == 5
        assert state["deck_size"] + len(state["hand"]) == 32
        assert log[0]["type"] == "game_start"

    def test_submit_action(self, client, session_id):
        response = client.post(
            f"/api/v1/sessions/{session_id}/actions",
            json={"type": "DRAW", "count": 1, "request_id": "abc"},
        )

        body = response.json()
        assert response.status_code == 200
        assert body["success"] is True
        assert body["request_id"] == "abc"
        assert body["events"][0]["type"] == "STATE_UPDATE"

    def test_rejected_action_is_still_200(self, client, session_id):
        response = client.post(f"/api/v1/sessions/{session_id}/actions", json={"type": "NEXT_PHASE"})

        body = response.json()
        assert response.status_code == 200
        assert body["success"] is False
        assert body["events"][0]["type"] == "ACTION_REJECTED"

    def test_malformed_action_is_422(self, client, session_id):
        response = client.post(
            f"/api/v1/sessions/{session_id}/actions",
            json={"type": "DRAW", "count": 0},
        )

        assert response.status_code == 422

    def test_mission_gap(self, client, session_id):
        response = client.get(f"/api/v1/sessions/{session_id}/missions/1/gap")

        assert response.status_code == 200
        assert response.json()["can_complete"] is False

    def test_cards(self, client):
        body = client.get("/api/v1/cards").json()

        assert body["database"]
        assert body["count"] == len(body["cards"])

    def test_end_session(self, client, session_id):
        response = client.delete(f"/api/v1/sessions/{session_id}")

        assert response.json() == {"success": True, "session_id": session_id}
        assert client.get(f"/api/v1/sessions/{session_id}").status_code == 404


class TestWebSocket:
    """Actions and events over the session WebSocket."""

    def test_state_sync_on_connect(self, client, session_id):
        with client.websocket_connect(f"/api/v1/sessions/{session_id}/ws") as ws:
            message = ws.receive_json()

        assert message["type"] == "STATE_SYNC"
        assert message["state"]["game_id"] == session_id
        assert message["log"][0]["type"] == "game_start"

    def test_action_round_trip(self, client, session_id):
        with client.websocket_connect(f"/api/v1/sessions/{session_id}/ws") as ws:
            ws.receive_json()
            ws.send_json({"type": "DRAW", "count": 1, "request_id": "ws-1"})
            update = ws.receive_json()
            ws.send_json({"type": "NEXT_PHASE", "request_id": "ws-2"})
            rejected = ws.receive_json()

        assert update["type"] == "STATE_UPDATE"
        assert update["request_id"] == "ws-1"
        assert rejected["type"] == "ACTION_REJECTED"
        assert rejected["request_id"] == "ws-2"

    def test_ping_and_sync(self, client, session_id):
        with client.websocket_connect(f"/api/v1/sessions/{session_id}/ws") as ws:
            ws.receive_json()
            ws.send_json({"type": "ping"})
            pong = ws.receive_json()
            ws.send_json({"type": "sync"})
            sync = ws.receive_json()

        assert pong == {"type": "pong"}
        assert sync["type"] == "STATE_SYNC"

    def test_invalid_messages(self, client, session_id):
        with client.websocket_connect(f"/api/v1/sessions/{session_id}/ws") as ws:
            ws.receive_json()
            ws.send_text("not json")
            bad_json = ws.receive_json()
            ws.send_json({"type": "TELEPORT"})
            bad_action = ws.receive_json()

        assert bad_json["type"] == "error"
        assert bad_action["type"] == "error"
        assert bad_action["payload"]["error_code"] == "VALIDATION_ERROR"

    def test_observer_sees_accepted_actions(self, client, session_id):
        url = f"/api/v1/sessions/{session_id}/ws"
        with client.websocket_connect(url) as observer, client.websocket_connect(url) as player:
            observer.receive_json()
            player.receive_json()
            player.send_json({"type": "DRAW"})
            player.receive_json()

            assert observer.receive_json()["type"] == "STATE_UPDATE"

    def test_sync_after_session_ended(self, client, service, session_id):
        """A sync request on a socket whose session was ended reports the error."""
        with client.websocket_connect(f"/api/v1/sessions/{session_id}/ws") as ws:
            ws.receive_json()
            service.end_session(session_id)
            ws.send_json({"type": "sync"})
            message = ws.receive_json()

        assert message["type"] == "error"
        assert message["payload"]["error_code"] == "SESSION_NOT_FOUND"

    def test_unknown_session(self, client):
        with client.websocket_connect("/api/v1/sessions/missing/ws") as ws:
            message = ws.receive_json()

        assert message["type"] == "error"
        assert message["payload"]["error_code"] == "SESSION_NOT_FOUND"
