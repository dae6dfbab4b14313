def _create(client, headers, name, **extra):
    response = client.post("/api/tasks", json={"name": name, **extra}, headers=headers)
    assert response.status_code == 201, response.text
    return response.json()["data"]


def _names(client, headers):
    return [task["name"] for task in client.get("/api/tasks", headers=headers).json()["data"]]


def test_create_task_defaults(client, auth_headers):
    task = _create(client, auth_headers, "  Read  ")
    assert task["name"] == "Read"
    assert task["color"] == "#0ea5e9"
    assert task["isActive"] is True
    assert task["isCompleted"] is False
    assert task["sortOrder"] == 0
    assert task["completions"] == []
    assert _create(client, auth_headers, "Run", color="#22C55E")["sortOrder"] == 1


def test_invalid_color_is_rejected_without_a_row(client, auth_headers):
    response = client.post("/api/tasks", json={"name": "Meditate", "color": "red"}, headers=auth_headers)
    assert response.status_code == 400
    assert response.json() == {"success": False, "error": "Invalid color format"}
    assert _names(client, auth_headers) == []


def test_name_validation(client, auth_headers):
    response = client.post("/api/tasks", json={"name": "   "}, headers=auth_headers)
    assert response.status_code == 400
    assert response.json()["error"] == "Task name is required"
    response = client.post("/api/tasks", json={}, headers=auth_headers)
    assert response.json()["error"] == "Task name is required"
    response = client.post("/api/tasks", json={"name": "x" * 101}, headers=auth_headers)
    assert response.json()["error"] == "Task name is too long"
    response = client.post("/api/tasks", json={"name": "ok", "description": "d" * 501}, headers=auth_headers)
    assert response.json()["error"] == "Description is too long"


def test_patch_task(client, auth_headers):
    task = _create(client, auth_headers, "Read")
    response = client.patch(
        f"/api/tasks/{task['id']}",
        json={"name": "Read a chapter", "emoji": "📚", "isCompleted": True},
        headers=auth_headers,
    )
    assert response.status_code == 200
    data = response.json()["data"]
    assert data["name"] == "Read a chapter"
    assert data["emoji"] == "📚"
    assert data["isCompleted"] is True
    assert data["completedAt"]

    data = client.patch(f"/api/tasks/{task['id']}", json={"isCompleted": False}, headers=auth_headers).json()["data"]
    assert data["isCompleted"] is False
    assert data["completedAt"] is None

    response = client.patch(f"/api/tasks/{task['id']}", json={"color": "blue"}, headers=auth_headers)
    assert response.status_code == 400


def test_inactive_tasks_are_hidden_from_the_list(client, auth_headers):
    task = _create(client, auth_headers, "Read")
    _create(client, auth_headers, "Run")
    client.patch(f"/api/tasks/{task['id']}", json={"isActive": False}, headers=auth_headers)
    assert _names(client, auth_headers) == ["Run"]
    assert client.get(f"/api/tasks/{task['id']}", headers=auth_headers).status_code == 200


def test_reorder_tasks(client, auth_headers):
    a = _create(client, auth_headers, "A")
    b = _create(client, auth_headers, "B")
    c = _create(client, auth_headers, "C")
    response = client.put("/api/tasks/reorder", json={"taskIds": [c["id"], a["id"], b["id"]]}, headers=auth_headers)
    assert response.status_code == 200
    tasks = client.get("/api/tasks", headers=auth_headers).json()["data"]
    assert [task["name"] for task in tasks] == ["C", "A", "B"]
    assert [task["sortOrder"] for task in tasks] == [0, 1, 2]


def test_reorder_validation(client, auth_headers, make_user):
    a = _create(client, auth_headers, "A")
    b = _create(client, auth_headers, "B")

    response = client.put("/api/tasks/reorder", json={"taskIds": []}, headers=auth_headers)
    assert response.status_code == 400
    assert response.json()["error"] == "At least one task ID is required"

    response = client.put("/api/tasks/reorder", json={"taskIds": [a["id"], a["id"]]}, headers=auth_headers)
    assert response.json()["error"] == "Duplicate task IDs"

    response = client.put("/api/tasks/reorder", json={"taskIds": [a["id"]]}, headers=auth_headers)
    assert response.status_code == 400

    response = client.put("/api/tasks/reorder", json={"taskIds": [a["id"], "missing"]}, headers=auth_headers)
    assert response.status_code == 404

    other = make_user("bo@example.com", name="Bo")
    foreign = _create(client, other, "Theirs")
    response = client.put(
        "/api/tasks/reorder",
        json={"taskIds": [b["id"], a["id"], foreign["id"]]},
        headers=auth_headers,
    )
    assert response.status_code == 404
    assert _names(client, auth_headers) == ["A", "B"]


def test_tasks_are_private(client, auth_headers, make_user):
    task = _create(client, auth_headers, "Mine")
    other = make_user("bo@example.com", name="Bo")
    assert client.get("/api/tasks", headers=other).json()["data"] == []
    for method in ("get", "delete"):
        response = getattr(client, method)(f"/api/tasks/{task['id']}", headers=other)
        assert response.status_code == 404
        assert response.json()["error"] == "Task not found"
    response = client.patch(f"/api/tasks/{task['id']}", json={"name": "Stolen"}, headers=other)
    assert response.status_code == 404
    assert _names(client, auth_headers) == ["Mine"]


def test_delete_task(client, auth_headers):
    task = _create(client, auth_headers, "Read")
    assert client.delete(f"/api/tasks/{task['id']}", headers=auth_headers).status_code == 200
    assert client.get(f"/api/tasks/{task['id']}", headers=auth_headers).status_code == 404
    assert client.delete(f"/api/tasks/{task['id']}", headers=auth_headers).status_code == 404
