import uuid

from fastapi.testclient import TestClient

from conftest import auth, image


class TestE2E:
    def test_complete_user_journey(self, client: TestClient, storage_root):
        # 1. Register
        email = f"user_{uuid.uuid4().hex[:8]}@example.com"
        r = client.post("/api/register", json={"name": "A", "email": email, "password": "password1"})
        assert r.status_code == 201
        registered = r.json()["data"]
        assert registered["token"]
        user_id = registered["user"]["id"]

        # 2. Login mints a new token for the same user
        r = client.post("/api/login", json={"email": email, "password": "password1"})
        assert r.status_code == 200
        logged_in = r.json()["data"]
        assert logged_in["user"]["id"] == user_id
        assert logged_in["token"] != registered["token"]
        token = logged_in["token"]

        # 3. Create a task
        r = client.post(
            "/api/tasks",
            data={"title": "T", "description": "D", "time": "2025-01-01"},
            files=image(),
            headers=auth(token),
        )
        assert r.status_code == 201
        task = r.json()["data"]
        assert task["status"] == "pending"

        # 4. List returns exactly that task
        r = client.get("/api/tasks", headers=auth(token))
        assert r.status_code == 200
        tasks = r.json()["data"]
        assert len(tasks) == 1
        assert tasks[0]["id"] == task["id"]

        # 5. Another user sees nothing and cannot touch it
        other = f"other_{uuid.uuid4().hex[:8]}@example.com"
        r = client.post("/api/register", json={"name": "B", "email": other, "password": "password2"})
        other_token = r.json()["data"]["token"]
        r = client.get("/api/tasks", headers=auth(other_token))
        assert r.json()["data"] == []
        r = client.delete(f"/api/tasks/{task['id']}", headers=auth(other_token))
        assert r.status_code == 404

        # 6. Complete it, check the report, delete it
        r = client.post(
            f"/api/tasks/{task['id']}",
            data={"title": "T", "description": "D", "time": "2025-01-02", "status": "completed"},
            files=image(name="done.png", mime="image/png"),
            headers=auth(token),
        )
        assert r.status_code == 200
        r = client.get("/api/tasks/completedcount", headers=auth(other_token))
        assert r.json()["data"] == [{"owner_id": user_id, "owner_name": "A", "completed_tasks_count": 1}]

        r = client.delete(f"/api/tasks/{task['id']}", headers=auth(token))
        assert r.status_code == 200
        r = client.get("/api/tasks", headers=auth(token))
        assert r.json()["data"] == []
        assert list((storage_root / "attachments").iterdir()) == []

    def test_concurrent_operations(self, client: TestClient):
        """Concurrent task creation by one user."""
        import concurrent.futures

        r = client.post(
            "/api/register",
            json={"name": "C", "email": f"test_{uuid.uuid4().hex[:8]}@example.com", "password": "password1"},
        )
        token = r.json()["data"]["token"]

        def create_task(i):
            return client.post(
                "/api/tasks",
                data={"title": f"Concurrent Task {i}", "description": "D", "time": "2025-01-01"},
                files=image(),
                headers=auth(token),
            )

        with concurrent.futures.ThreadPoolExecutor(max_workers=3) as executor:
            responses = list(executor.map(create_task, range(5)))

        assert all(r.status_code == 201 for r in responses)

        r = client.get("/api/tasks", headers=auth(token))
        titles = {task["title"] for task in r.json()["data"]}
        assert titles == {f"Concurrent Task {i}" for i in range(5)}

    def test_unknown_api_route_uses_envelope(self, client: TestClient):
        r = client.get("/api/nope")
        assert r.status_code == 404
        assert r.json()["status"] == "fail"

    def test_frontend_served(self, client: TestClient):
        r = client.get("/")
        assert r.status_code == 200
        assert "TaskDesk" in r.text
