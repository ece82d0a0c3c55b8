import pytest
from fastapi.testclient import TestClient

from backend.app.core.security import get_password_hash
from backend.app.db.base import Base
from backend.app.db.session import SessionLocal, engine
from backend.app.main import app
from backend.app.models.user import User
from backend.app.services import auth_sessions


@pytest.fixture(autouse=True)
def setup_db():
    Base.metadata.drop_all(bind=engine)
    Base.metadata.create_all(bind=engine)
    yield
    Base.metadata.drop_all(bind=engine)


def create_user(username: str, password: str):
    db = SessionLocal()
    try:
        db.add(User(username=username, hashed_password=get_password_hash(password)))
        db.commit()
    finally:
        db.close()


def login(client: TestClient, username: str, password: str) -> str:
    response = client.post("/auth/login", json={"username": username, "password": password})
    assert response.status_code == 200
    return response.json()["access_token"]


def auth_headers(token: str) -> dict:
    return {"Authorization": f"Bearer {token}"}


def test_me_returns_current_user():
    client = TestClient(app)
    create_user("me", "secret")
    token = login(client, "me", "secret")
    response = client.get("/auth/me", headers=auth_headers(token))
    assert response.status_code == 200
    data = response.json()
    assert data["username"] == "me"
    assert isinstance(data.get("id"), int)


def test_me_accepts_session_cookie():
    client = TestClient(app)
    create_user("cookie", "secret")
    login(client, "cookie", "secret")
    response = client.get("/auth/me")
    assert response.status_code == 200
    assert response.json()["username"] == "cookie"


def test_me_without_token_returns_401():
    client = TestClient(app)
    response = client.get("/auth/me")
    assert response.status_code == 401


def test_me_with_invalid_token_returns_401():
    client = TestClient(app)
    response = client.get("/auth/me", headers={"Authorization": "Bearer invalid"})
    assert response.status_code == 401


def test_logout_revokes_token():
    client = TestClient(app)
    create_user("logout", "secret")
    token = login(client, "logout", "secret")

    response = client.post("/auth/logout", headers=auth_headers(token))
    assert response.status_code == 200

    again = TestClient(app)
    assert again.get("/auth/me", headers=auth_headers(token)).status_code == 401


def test_change_password_rotates_session():
    client = TestClient(app)
    create_user("rotate", "secret")
    old_token = login(client, "rotate", "secret")

    response = client.patch(
        "/auth/change-password",
        json={"current_password": "secret", "new_password": "newsecret", "confirm_password": "newsecret"},
        headers=auth_headers(old_token),
    )
    assert response.status_code == 200
    new_token = response.json()["access_token"]
    assert new_token != old_token

    fresh = TestClient(app)
    assert fresh.get("/auth/me", headers=auth_headers(old_token)).status_code == 401
    assert fresh.get("/auth/me", headers=auth_headers(new_token)).status_code == 200
    assert fresh.post("/auth/login", json={"username": "rotate", "password": "secret"}).status_code == 401
    assert fresh.post("/auth/login", json={"username": "rotate", "password": "newsecret"}).status_code == 200


def test_change_password_wrong_current_password_returns_401():
    client = TestClient(app)
    create_user("wrongcurrent", "secret")
    token = login(client, "wrongcurrent", "secret")
    response = client.patch(
        "/auth/change-password",
        json={"current_password": "nope", "new_password": "newsecret", "confirm_password": "newsecret"},
        headers=auth_headers(token),
    )
    assert response.status_code == 401


def test_change_password_mismatch_returns_422():
    client = TestClient(app)
    create_user("mismatch", "secret")
    token = login(client, "mismatch", "secret")
    response = client.patch(
        "/auth/change-password",
        json={"current_password": "secret", "new_password": "newsecret", "confirm_password": "other"},
        headers=auth_headers(token),
    )
    assert response.status_code == 422


def test_update_profile_sets_company_name():
    client = TestClient(app)
    create_user("profile", "secret")
    token = login(client, "profile", "secret")

    response = client.patch("/auth/update-profile", json={"company_name": "  Acme Studio "}, headers=auth_headers(token))
    assert response.status_code == 200
    assert response.json()["company_name"] == "Acme Studio"

    blank = client.patch("/auth/update-profile", json={"company_name": "   "}, headers=auth_headers(token))
    assert blank.status_code == 400


def test_failed_session_rotation_keeps_old_password(monkeypatch):
    client = TestClient(app, raise_server_exceptions=False)
    create_user("atomic", "secret")
    token = login(client, "atomic", "secret")

    def failing_new_session(user_id):
        raise RuntimeError("session store unavailable")

    monkeypatch.setattr(auth_sessions, "_new_session", failing_new_session)
    response = client.patch(
        "/auth/change-password",
        json={"current_password": "secret", "new_password": "newsecret", "confirm_password": "newsecret"},
        headers=auth_headers(token),
    )
    assert response.status_code == 500
    monkeypatch.undo()

    fresh = TestClient(app)
    assert fresh.get("/auth/me", headers=auth_headers(token)).status_code == 200
    assert fresh.post("/auth/login", json={"username": "atomic", "password": "secret"}).status_code == 200
    assert fresh.post("/auth/login", json={"username": "atomic", "password": "newsecret"}).status_code == 401
