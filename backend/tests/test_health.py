def test_health_endpoints(client):
    assert client.get("/api/health").json() == {"status": "ok"}

    live = client.get("/api/health/live")
    assert live.status_code == 200
    assert live.json()["status"] == "ok"

    ready = client.get("/api/health/ready")
    assert ready.status_code == 200
    payload = ready.json()
    assert payload["status"] == "ok"
    assert payload["database"]["ok"] is True
    assert payload["database"]["missing_tables"] == []


def test_time_structure_exposes_the_locked_grid(client):
    response = client.get("/api/time-structure")

    assert response.status_code == 200
    payload = response.json()
    assert payload["days"][0] == "Monday" and payload["days"][-1] == "Saturday"
    assert [item["period"] for item in payload["periods"]] == [1, 2, 3, 4, 5, 6, 7, 8]
    assert payload["periods"][0]["label"] == "08:30 - 09:20"
    assert [item["period"] for item in payload["periods"] if item["isSpecial"]] == [8]
    assert payload["labSlots"] == [
        {"name": "A", "periods": [2, 3, 4], "label": "09:20 - 12:05"},
        {"name": "B", "periods": [5, 6, 7], "label": "12:45 - 15:15"},
    ]
    assert payload["minLabSessionsPerWeek"] == 2
