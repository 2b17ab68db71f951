from __future__ import annotations

import pytest
from fastapi.testclient import TestClient

from vmc.main import create_app


@pytest.fixture
def client():
    with TestClient(create_app(vend_duration_ms=100)) as c:
        yield c


@pytest.fixture
def slow_client():
    # Nothing completes while the test runs; shutdown cancels the pending vend.
    with TestClient(create_app(vend_duration_ms=60_000)) as c:
        yield c


def test_websocket_connect_receives_snapshot(client) -> None:
    with client.websocket_connect("/") as ws:
        assert ws.receive_json() == {"type": "status", "status": "idle", "items": []}


def test_websocket_vend_scenario_with_two_observers(client) -> None:
    with client.websocket_connect("/") as first, client.websocket_connect("/ws") as second:
        first.receive_json()
        second.receive_json()

        first.send_json({"type": "vend", "items": ["A1", "B3"]})

        ack = first.receive_json()
        assert ack["type"] == "vend-response"
        assert ack["success"] is True
        assert ack["items"] == ["A1", "B3"]
        assert ack["estimatedTime"] == 100
        for ws in (first, second):
            assert ws.receive_json() == {
                "type": "status",
                "status": "vending",
                "items": ["A1", "B3"],
                "message": "Vending started",
            }

        second.send_json({"type": "vend", "items": ["C2"]})
        busy = second.receive_json()
        assert busy["success"] is False
        assert busy["currentItems"] == ["A1", "B3"]

        for ws in (first, second):
            complete = ws.receive_json()
            assert complete["type"] == "vend-complete"
            assert complete["status"] == "idle"
            assert complete["vendedItems"] == ["A1", "B3"]


def test_websocket_status_and_health(client) -> None:
    with client.websocket_connect("/") as ws:
        ws.receive_json()

        ws.send_json({"type": "status"})
        status = ws.receive_json()
        assert status["status"] == "idle"
        assert status["message"] == "Machine is idle"
        assert "items" not in status

        ws.send_json({"type": "health"})
        health = ws.receive_json()
        assert health["status"] == "healthy"
        assert health["service"]


def test_websocket_malformed_payload(client) -> None:
    with client.websocket_connect("/") as ws:
        ws.receive_json()

        ws.send_text("this is not json")

        assert ws.receive_json() == {"type": "error", "message": "Invalid JSON"}
        ws.send_json({"type": "status"})
        assert ws.receive_json()["status"] == "idle"


def test_http_health_and_status(client) -> None:
    health = client.get("/health")
    assert health.status_code == 200
    assert health.json()["status"] == "healthy"

    status = client.get("/status")
    assert status.status_code == 200
    assert status.json()["status"] == "idle"


def test_http_vend_is_broadcast_to_observers(slow_client) -> None:
    with slow_client.websocket_connect("/") as ws:
        ws.receive_json()

        response = slow_client.post("/vend", json={"items": [3, 4]})

        assert response.status_code == 200
        assert response.json()["success"] is True
        assert ws.receive_json() == {"type": "status", "status": "vending", "items": [3, 4], "message": "Vending started"}

        busy = slow_client.post("/vend", json={"items": [5]})
        assert busy.status_code == 409
        assert busy.json()["currentItems"] == [3, 4]

        status = slow_client.get("/status").json()
        assert status["status"] == "vending"
        assert status["items"] == [3, 4]
        assert status["elapsedTime"] >= 0


def test_http_vend_rejects_invalid_items(client) -> None:
    response = client.post("/vend", json={"items": []})

    assert response.status_code == 400
    assert response.json()["success"] is False
    assert client.get("/status").json()["status"] == "idle"


def test_websocket_binary_frames_are_parsed_as_commands(client) -> None:
    with client.websocket_connect("/") as ws:
        ws.receive_json()

        ws.send_bytes(b'{"type": "status"}')
        assert ws.receive_json()["message"] == "Machine is idle"

        ws.send_bytes(b"\x00\x01")
        assert ws.receive_json() == {"type": "error", "message": "Invalid JSON"}

        ws.send_bytes(b'{"type": "vend", "items": ["A1"]}')
        ack = ws.receive_json()
        assert ack["success"] is True
        assert ack["items"] == ["A1"]
