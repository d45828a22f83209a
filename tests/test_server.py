from __future__ import annotations

import pytest
from fastapi.testclient import TestClient

from server.app import ControllerManager, create_app


@pytest.fixture
def manager():
    return ControllerManager(num_floors=10, car_count=2)


@pytest.fixture
def client(manager):
    # Used without a context manager so the background tick loop never starts.
    return TestClient(create_app(manager))


class TestControllerApi:

    def test_state(self, client):
        response = client.get("/state")
        assert response.status_code == 200
        body = response.json()
        assert body["service"] == "normal"
        assert [car["id"] for car in body["cars"]] == [0, 1]

    def test_hall_call_is_assigned(self, client, manager):
        response = client.post("/requests", json={"floor": 5, "direction": "up"})
        assert response.status_code == 202
        assert "request_id" in response.json()

        car = client.get("/cars/0").json()
        assert car["up_destinations"] == [5]
        assert car["direction"] == "up"

        manager.controller.run(5)
        assert client.get("/cars/0").json()["door_state"] == "open"

    def test_invalid_hall_calls(self, client):
        assert client.post("/requests", json={"floor": 99, "direction": "up"}).status_code == 400
        assert client.post("/requests", json={"floor": 3, "direction": "left"}).status_code == 400
        assert client.post("/requests", json={"floor": 3}).status_code == 422

    def test_destination_for_unknown_car(self, client):
        response = client.post("/cars/9/destinations", json={"floor": 3})
        assert response.status_code == 404
        assert "Unknown car 9" in response.json()["detail"]
        assert client.get("/cars/9").status_code == 404

    def test_destination(self, client):
        response = client.post("/cars/1/destinations", json={"floor": 7})
        assert response.status_code == 202
        assert response.json()["car"]["up_destinations"] == [7]
        assert client.post("/cars/1/destinations", json={"floor": 70}).status_code == 400

    def test_remove_destination(self, client):
        client.post("/cars/0/destinations", json={"floor": 6})
        response = client.delete("/cars/0/destinations/6")
        assert response.status_code == 200
        assert response.json()["up_destinations"] == []
        assert response.json()["mode"] == "idle"
        assert client.delete("/cars/0/destinations/6").status_code == 404
        assert client.delete("/cars/0/destinations/60").status_code == 400

    def test_load_updates(self, client):
        assert client.put("/cars/0/load", json={"load": 3}).json()["load"] == 3
        assert client.put("/cars/0/load", json={"load": 100}).status_code == 409
        assert client.put("/cars/0/load", json={"load": -1}).status_code == 400

    def test_scoring_selection(self, client):
        response = client.post("/scoring", json={"name": "nearest"})
        assert response.status_code == 200
        assert response.json()["scoring"] == "nearest"
        assert client.post("/scoring", json={"name": "bogus"}).status_code == 400

    def test_availability_and_emergency(self, client, manager):
        body = client.post("/cars/0/availability", json={"available": False, "reason": "inspection"}).json()
        assert body["cars"][0]["mode"] == "out_of_service"
        assert body["service"] == "degraded"
        assert body["reason"] == "inspection"

        assert client.post("/cars/1/emergency").status_code == 202
        manager.controller.tick()
        assert client.get("/cars/1").json()["mode"] == "emergency"
        assert client.get("/state").json()["service"] == "no_service"

        body = client.post("/cars/0/availability", json={"available": True}).json()
        assert body["cars"][0]["mode"] == "idle"

    def test_cancel_pending_request(self, client):
        client.post("/cars/0/availability", json={"available": False})
        client.post("/cars/1/availability", json={"available": False})
        request_id = client.post("/requests", json={"floor": 4, "direction": "down"}).json()["request_id"]
        assert client.get("/state").json()["pending"][0]["id"] == request_id

        assert client.delete(f"/requests/{request_id}").status_code == 200
        assert client.delete(f"/requests/{request_id}").status_code == 404

    def test_stream_sends_initial_state(self, client):
        with client.websocket_connect("/ws/stream") as websocket:
            payload = websocket.receive_json()
        assert payload["time"] == 0
        assert len(payload["cars"]) == 2
