# Shared test fixtures - points the server at a throwaway SQLite database
import os
import tempfile
import uuid

_TEST_DB_DIR = tempfile.mkdtemp(prefix="nivo-test-")
os.environ["DATABASE_URL"] = f"sqlite:///{os.path.join(_TEST_DB_DIR, 'nivo_test.db')}"
os.environ["JWT_SECRET_KEY"] = "test-secret-key"
os.environ["LOG_LEVEL"] = "ERROR"

import pytest

LEFT = {"ear": 7, "shoulder": 11, "hip": 23}
RIGHT = {"ear": 8, "shoulder": 12, "hip": 24}


def make_frame(ear=(0.5, 0.2), shoulder=(0.5, 0.3), hip=(0.5, 0.6), side="left",
               visible=0.95, hidden=0.1, count=33):
    """33-point frame with one side's ear/shoulder/hip placed and visible"""
    frame = [{"x": 0.5, "y": 0.5, "visibility": 0.9} for _ in range(count)]
    shown, occluded = (LEFT, RIGHT) if side == "left" else (RIGHT, LEFT)

    for part, point in (("ear", ear), ("shoulder", shoulder), ("hip", hip)):
        if shown[part] < count:
            frame[shown[part]] = {"x": point[0], "y": point[1], "visibility": visible}
        if occluded[part] < count:
            frame[occluded[part]] = {"x": 0.5, "y": 0.5, "visibility": hidden}
    return frame


@pytest.fixture
def frame_factory():
    return make_frame


@pytest.fixture
def db():
    from nivo_server import database
    assert database.init_database()
    return database


@pytest.fixture
def user_id(db):
    from nivo_server import auth
    success, _, new_id = auth.register_user(f"user_{uuid.uuid4().hex[:12]}", "secret")
    assert success
    return new_id


@pytest.fixture
def client():
    from fastapi.testclient import TestClient
    from nivo_server.main import app
    with TestClient(app) as test_client:
        yield test_client


@pytest.fixture
def auth_headers(client):
    username = f"user_{uuid.uuid4().hex[:12]}"
    response = client.post("/auth/register", json={"username": username, "password": "secret"})
    assert response.status_code == 200
    response = client.post("/auth/login", json={"username": username, "password": "secret"})
    assert response.status_code == 200
    return {"Authorization": f"Bearer {response.json()['token']}"}
