"""Tests for authentication, course management and the admin dashboard."""
from jose import jwt

from backend.deps import ALGORITHM, SECRET_KEY
from conftest import register_and_login, upload
from db_models import User


def test_first_account_is_admin(client):
    first = client.post("/register", json={"email": "Admin@Uni.edu", "name": "Admin", "password": "pw"}).json()
    second = client.post("/register", json={"email": "alice@uni.edu", "name": "Alice", "password": "pw"}).json()
    assert first["is_admin"] is True
    assert first["email"] == "admin@uni.edu"
    assert second["is_admin"] is False


def test_duplicate_email_is_refused(client, student_headers):
    response = client.post("/register", json={"email": "alice@uni.edu", "name": "A2", "password": "pw"})
    assert response.status_code == 400
    assert response.json()["detail"] == "该邮箱已注册"


def test_login_and_me(client, student_headers):
    me = client.get("/me", headers=student_headers).json()
    assert me["email"] == "alice@uni.edu"
    assert me["name"] == "Alice"
    assert me["is_admin"] is False

    response = client.post("/login", data={"username": "alice@uni.edu", "password": "wrong"})
    assert response.status_code == 401


def test_me_requires_valid_token(client):
    assert client.get("/me").status_code == 401
    assert client.get("/me", headers={"Authorization": "Bearer nope"}).status_code == 401


def test_course_crud_is_admin_only(client, admin_headers, student_headers):
    assert client.post("/courses", json={"code": "CS101", "name": "Intro"}, headers=student_headers).status_code == 403

    course = client.post("/courses", json={"code": "cs101", "name": "Intro", "description": "Basics"},
                         headers=admin_headers).json()
    assert course["code"] == "CS101"

    assert client.post("/courses", json={"code": "CS101", "name": "Dup"}, headers=admin_headers).status_code == 400

    updated = client.put(f"/courses/{course['id']}", json={"name": "Intro to CS"}, headers=admin_headers).json()
    assert updated["name"] == "Intro to CS"
    assert updated["code"] == "CS101"

    assert client.get(f"/courses/{course['id']}", headers=student_headers).json()["name"] == "Intro to CS"
    assert client.delete(f"/courses/{course['id']}", headers=admin_headers).status_code == 200
    assert client.get(f"/courses/{course['id']}", headers=admin_headers).status_code == 404


def test_course_with_papers_cannot_be_deleted(client, admin_headers, student_headers):
    course_id = upload(client, student_headers).json()["course_id"]
    response = client.delete(f"/courses/{course_id}", headers=admin_headers)
    assert response.status_code == 400


def test_dashboard_stats(client, admin_headers, student_headers):
    first = upload(client, student_headers, content=b"aaaa").json()["id"]
    upload(client, student_headers, content=b"bb")
    client.patch(f"/papers/{first}/review", json={"status": "rejected", "rejection_reason": "blurry"},
                 headers=admin_headers)

    stats = client.get("/admin/dashboard", headers=admin_headers).json()
    assert stats == {
        "total_papers": 2,
        "pending_papers": 1,
        "approved_papers": 0,
        "rejected_papers": 1,
        "total_courses": 1,
        "total_students": 1,
        "total_storage": 6,
    }
    assert client.get("/admin/dashboard", headers=student_headers).status_code == 403


def test_admin_lists_users(client, admin_headers):
    register_and_login(client, "carol@uni.edu", "Carol")
    users = client.get("/admin/users", headers=admin_headers).json()
    assert [u["email"] for u in users] == ["admin@uni.edu", "carol@uni.edu"]


def test_token_carries_admin_flag(client, admin_headers, student_headers):
    token = student_headers["Authorization"].split()[1]
    claims = jwt.decode(token, SECRET_KEY, algorithms=[ALGORITHM])
    assert claims["adm"] is False
    assert claims["email"] == "alice@uni.edu"


def test_token_is_invalid_after_role_change(client, db, student_headers):
    user = db.query(User).filter(User.email == "alice@uni.edu").one()
    user.is_admin = True
    db.commit()

    assert client.get("/me", headers=student_headers).status_code == 401
    # 重新登录后获得新的管理员身份
    headers = {"Authorization": "Bearer " + client.post(
        "/login", data={"username": "alice@uni.edu", "password": "secret123"}
    ).json()["access_token"]}
    assert client.get("/me", headers=headers).json()["is_admin"] is True
