from slotforge.schemas.academic import FacultyDesignation, SubjectType


def three_lab_campus(campus):
    for subject_id in ("lab-a", "lab-b", "lab-c"):
        campus.subject(subject_id, SubjectType.lab)
    for index, subject_id in enumerate(("lab-a", "lab-a", "lab-b", "lab-b", "lab-c", "lab-c"), start=1):
        campus.teacher(f"f-{index}", labs=[subject_id])
    campus.batch(students=60)
    return campus


def test_generate_persists_the_timetable(client, campus):
    campus.with_two_labs()
    campus.batch()

    response = client.post("/api/timetables/generate", json=campus.request_payload())

    assert response.status_code == 200
    body = response.json()
    assert body["success"] is True
    assert body["timetable"]["batchId"] == "batch-1"
    assert body["labRotations"] == []
    assert body["explanations"][-1]["message"].startswith("Timetable generated successfully")

    stored = client.get("/api/timetables/batch-1")
    assert stored.status_code == 200
    assert stored.json()["id"] == body["timetable"]["id"]
    assert len(stored.json()["entries"]) == 6
    assert [item["batchId"] for item in client.get("/api/timetables").json()] == ["batch-1"]


def test_generate_without_persist_stores_nothing(client, campus):
    campus.with_two_labs()
    campus.batch()

    response = client.post("/api/timetables/generate", json=campus.request_payload(persist=False))

    assert response.json()["success"] is True
    assert client.get("/api/timetables/batch-1").status_code == 404
    assert client.get("/api/timetables").json() == []


def test_failed_generation_is_not_persisted(client, campus):
    campus.subject("lab-a", SubjectType.lab)
    campus.teacher("f-1", designation=FacultyDesignation.professor, labs=["lab-a"])
    campus.batch()

    response = client.post("/api/timetables/generate", json=campus.request_payload())

    assert response.status_code == 200
    body = response.json()
    assert body["success"] is False
    assert body["timetable"] is None
    assert body["explanations"][-1]["source"] == "WORKLOAD"
    assert client.get("/api/timetables/batch-1").status_code == 404


def test_invalid_payload_is_rejected(client, campus):
    payload = campus.request_payload()
    payload.pop("batchId")

    response = client.post("/api/timetables/generate", json=payload)

    assert response.status_code == 422


def test_delete_timetable(client, campus):
    campus.with_two_labs()
    campus.batch()
    client.post("/api/timetables/generate", json=campus.request_payload())

    assert client.delete("/api/timetables/batch-1").status_code == 204
    assert client.get("/api/timetables/batch-1").status_code == 404
    assert client.delete("/api/timetables/batch-1").status_code == 404


def test_rotations_are_stored_and_advance_on_regeneration(client, campus):
    three_lab_campus(campus)

    first = client.post("/api/timetables/generate", json=campus.request_payload()).json()
    assert first["success"] is True
    assert first["labRotations"][0] == {
        "batchId": "batch-1",
        "subBatchId": "batch-1-A1",
        "sessionNumber": 0,
        "labId": "lab-1",
    }

    stored = client.get("/api/timetables/rotations/batch-1").json()
    assert len(stored) == 6
    assert stored == first["labRotations"]

    second = client.post("/api/timetables/generate", json=campus.request_payload()).json()
    assert second["labRotations"][0]["labId"] == "lab-2"
    assert len(client.get("/api/timetables/rotations/batch-1").json()) == 12
    # Regeneration replaces the stored timetable.
    assert len(client.get("/api/timetables").json()) == 1


def test_second_batch_avoids_resources_booked_by_the_first(client, campus):
    campus.with_two_labs()
    campus.batch("batch-1")
    campus.batch("batch-2")

    first = client.post("/api/timetables/generate", json=campus.request_payload("batch-1")).json()
    second = client.post("/api/timetables/generate", json=campus.request_payload("batch-2")).json()

    assert first["success"] is True
    assert second["success"] is True
    sessions = {
        (entry["day"], entry["labSlot"])
        for entry in second["timetable"]["entries"]
        if entry["isLabSession"]
    }
    assert sessions == {(1, "A"), (1, "B")}
    warnings = [item for item in second["explanations"] if item["level"] == "WARNING"]
    assert len(warnings) == 2
    assert [item["batchId"] for item in client.get("/api/timetables").json()] == ["batch-1", "batch-2"]


def test_conflict_check_on_stored_timetable(client, campus):
    campus.with_two_labs()
    campus.batch()
    client.post("/api/timetables/generate", json=campus.request_payload())
    subjects = [subject.model_dump(mode="json", by_alias=True) for subject in campus.subjects]

    response = client.post("/api/timetables/batch-1/conflicts", json={"subjects": subjects})

    assert response.status_code == 200
    assert response.json() == {"batch_id": "batch-1", "conflicts": []}


def test_conflict_check_for_unknown_batch(client):
    response = client.post("/api/timetables/nothing/conflicts", json={"subjects": []})

    assert response.status_code == 404


def test_workload_report(client, campus):
    campus.with_two_labs()
    campus.batch()
    entries = client.post("/api/timetables/generate", json=campus.request_payload()).json()["timetable"]["entries"]
    payload = campus.request_payload()["academic"]

    response = client.post(
        "/api/workload",
        json={"faculty": payload["faculty"], "subjects": payload["subjects"], "entries": entries},
    )

    assert response.status_code == 200
    body = response.json()
    assert body["hasViolation"] is False
    assert [(stat["facultyId"], stat["labSessions"], stat["labLimit"]) for stat in body["stats"]] == [
        ("f-1", 1, 2.0),
        ("f-2", 1, 2.0),
    ]
