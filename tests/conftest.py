"""Shared fixtures: isolated SQLite database, upload dir and API client."""
import os
import tempfile

# 必须在导入任何项目模块之前设置
_TMP_DIR = tempfile.mkdtemp(prefix="coursepapers-test-")
os.environ["DB_URL"] = f"sqlite:///{os.path.join(_TMP_DIR, 'test.db')}"
os.environ["UPLOAD_DIR"] = os.path.join(_TMP_DIR, "uploads")
os.environ["LOG_DIR"] = os.path.join(_TMP_DIR, "logs")
os.environ["JWT_SECRET_KEY"] = "test-secret"

import pytest
from fastapi.testclient import TestClient

from db_models import Base, engine, Session
from backend.main import app


@pytest.fixture(autouse=True)
def reset_db():
    """Every test starts from empty tables."""
    Base.metadata.drop_all(engine)
    Base.metadata.create_all(engine)
    yield


@pytest.fixture
def db():
    session = Session()
    try:
        yield session
    finally:
        session.close()


@pytest.fixture
def client():
    with TestClient(app) as c:
        yield c


def register_and_login(client, email: str, name: str, password: str = "secret123") -> dict:
    """Register an account and return bearer headers for it."""
    response = client.post("/register", json={"email": email, "name": name, "password": password})
    assert response.status_code == 200, response.text
    response = client.post("/login", data={"username": email, "password": password})
    assert response.status_code == 200, response.text
    return {"Authorization": f"Bearer {response.json()['access_token']}"}


@pytest.fixture
def admin_headers(client):
    """The first registered account becomes the admin."""
    return register_and_login(client, "admin@uni.edu", "Admin")


@pytest.fixture
def student_headers(client, admin_headers):
    return register_and_login(client, "alice@uni.edu", "Alice")


@pytest.fixture
def other_student_headers(client, admin_headers):
    return register_and_login(client, "bob@uni.edu", "Bob")


def upload(client, headers, content: bytes = b"%PDF-1.4 homework", filename: str = "hw1.pdf", **fields):
    """POST /papers/upload with sensible defaults."""
    data = {
        "course_id": "CS101",
        "title": "HW1",
        "description": "",
        "paper_type": "assignment",
        "year": "2024",
        "semester": "Fall 2024",
    }
    data.update(fields)
    return client.post(
        "/papers/upload",
        data=data,
        files={"file": (filename, content, "application/octet-stream")},
        headers=headers,
    )
