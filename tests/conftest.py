import os
import tempfile
import uuid

# Point the app at throw-away locations before anything imports taskdesk.config
_TMP = tempfile.mkdtemp(prefix="taskdesk-tests-")
os.environ["DATABASE_URL"] = f"sqlite:///{_TMP}/taskdesk_test.db"
os.environ["STORAGE_ROOT"] = os.path.join(_TMP, "storage")

import pytest
from fastapi.testclient import TestClient

from taskdesk import config
from taskdesk.database import Base, SessionLocal, engine
from taskdesk.main import app

PASSWORD = "password1"


# Recreate all tables for each test
@pytest.fixture(autouse=True)
def setup_database():
    Base.metadata.drop_all(bind=engine)
    Base.metadata.create_all(bind=engine)
    yield
    Base.metadata.drop_all(bind=engine)


@pytest.fixture(autouse=True)
def storage_root(tmp_path, monkeypatch):
    root = tmp_path / "storage"
    monkeypatch.setattr(config, "STORAGE_ROOT", str(root))
    return root


@pytest.fixture
def db():
    session = SessionLocal()
    try:
        yield session
    finally:
        session.close()


@pytest.fixture
def client():
    return TestClient(app)


def register_user(client, name="Alice", email=None, password=PASSWORD):
    """Register a user and return (user dict, token)."""
    email = email or f"user_{uuid.uuid4().hex[:8]}@example.com"
    r = client.post("/api/register", json={"name": name, "email": email, "password": password})
    assert r.status_code == 201, r.text
    data = r.json()["data"]
    return data["user"], data["token"]


def auth(token):
    return {"Authorization": f"Bearer {token}"}


def image(name="img.jpg", content=b"\xff\xd8\xff\xe0fake-jpeg", mime="image/jpeg"):
    return {"attachment": (name, content, mime)}


def task_form(**overrides):
    form = {"title": "T", "description": "D", "time": "2025-01-01"}
    form.update(overrides)
    return form


def create_task(client, token, files=None, **overrides):
    r = client.post("/api/tasks", data=task_form(**overrides), files=files or image(), headers=auth(token))
    assert r.status_code == 201, r.text
    return r.json()["data"]
