def _save(client, headers, day, content):
    return client.post("/api/notes", json={"date": day, "content": content}, headers=headers)


def test_upsert_keeps_one_note_per_day(client, auth_headers):
    first = _save(client, auth_headers, "2024-03-05", "[ ] Groceries")
    assert first.status_code == 200
    assert first.json()["data"]["date"] == "2024-03-05T12:00:00.000Z"
    second = _save(client, auth_headers, "2024-03-05T12:00:00.000Z", "[x] Groceries")
    assert second.json()["data"]["id"] == first.json()["data"]["id"]

    notes = client.get("/api/notes", params={"date": "2024-03-05"}, headers=auth_headers).json()["data"]
    assert len(notes) == 1
    assert notes[0]["content"] == "[x] Groceries"


def test_missing_content_is_stored_empty(client, auth_headers):
    response = client.post("/api/notes", json={"date": "2024-03-05"}, headers=auth_headers)
    assert response.status_code == 200
    assert response.json()["data"]["content"] == ""


def test_list_by_range_newest_first(client, auth_headers):
    for day in ("2024-03-01", "2024-03-03", "2024-03-10"):
        _save(client, auth_headers, day, f"[ ] {day}")
    notes = client.get(
        "/api/notes",
        params={"startDate": "2024-03-01", "endDate": "2024-03-05"},
        headers=auth_headers,
    ).json()["data"]
    assert [note["date"][:10] for note in notes] == ["2024-03-03", "2024-03-01"]


def test_date_is_required(client, auth_headers):
    response = client.get("/api/notes", headers=auth_headers)
    assert response.status_code == 400
    assert response.json()["error"] == "Date is required"
    response = client.post("/api/notes", json={"content": "x"}, headers=auth_headers)
    assert response.status_code == 400
    assert response.json()["error"] == "Date is required"
    assert client.delete("/api/notes", headers=auth_headers).status_code == 400


def test_delete_note(client, auth_headers):
    _save(client, auth_headers, "2024-03-05", "[ ] a")
    assert client.delete("/api/notes", params={"date": "2024-03-05"}, headers=auth_headers).status_code == 200
    assert client.get("/api/notes", params={"date": "2024-03-05"}, headers=auth_headers).json()["data"] == []
    response = client.delete("/api/notes", params={"date": "2024-03-05"}, headers=auth_headers)
    assert response.status_code == 404
    assert response.json()["error"] == "Note not found"


def test_notes_are_private(client, auth_headers, make_user):
    _save(client, auth_headers, "2024-03-05", "[ ] mine")
    other = make_user("bo@example.com", name="Bo")
    assert client.get("/api/notes", params={"date": "2024-03-05"}, headers=other).json()["data"] == []
    assert client.delete("/api/notes", params={"date": "2024-03-05"}, headers=other).status_code == 404
    _save(client, other, "2024-03-05", "[ ] theirs")
    notes = client.get("/api/notes", params={"date": "2024-03-05"}, headers=auth_headers).json()["data"]
    assert notes[0]["content"] == "[ ] mine"
