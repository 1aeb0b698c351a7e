"""Tests covering the authentication endpoints."""

from __future__ import annotations

import pytest
from flask.testing import FlaskClient

from models import db
from models.refresh_token import RefreshToken
from models.user import User
from services import auth_service

SIGNUP = {"email": "j1@example.com", "username": "jay_one", "password": "J1Pass123"}


def _create_user(email: str, username: str, password: str, *, verified: bool = False) -> User:
    """Helper to create and persist a user."""

    user = User(email=email, username=username, verified=verified)
    user.set_password(password)
    db.session.add(user)
    db.session.commit()
    return user


def _login(client: FlaskClient, email: str, password: str) -> dict:
    response = client.post("/auth/login", json={"email": email, "password": password})
    assert response.status_code == 200
    return response.get_json()["data"]


def test_signup_creates_user(client: FlaskClient, app, sent_links):
    response = client.post("/auth/signup", json=SIGNUP)

    assert response.status_code == 201
    assert response.get_json() == {
        "status": "SUCCESS",
        "code": 201,
        "message": "User registered",
        "data": "User registered successfully",
    }
    with app.app_context():
        assert User.query.filter_by(email="j1@example.com").one().verified is False
    assert len(sent_links) == 1


def test_signup_conflict(client: FlaskClient, app, sent_links):
    client.post("/auth/signup", json=SIGNUP)

    response = client.post("/auth/signup", json=SIGNUP)

    assert response.status_code == 409
    payload = response.get_json()
    assert payload["status"] == "ERROR"
    assert payload["code"] == 409
    assert payload["message"] == "User with email j1@example.com already exists"
    with app.app_context():
        assert User.query.count() == 1


def test_signup_missing_fields(client: FlaskClient):
    response = client.post("/auth/signup", json={})

    assert response.status_code == 400
    payload = response.get_json()
    assert payload["status"] == "ERROR"
    assert payload["code"] == 400
    assert payload["message"] == "Email, username, and password cannot be empty or null"


def test_signup_unexpected_error_is_generic(client: FlaskClient, monkeypatch):
    def _broken_notifier(email, token):
        raise ConnectionError("mail relay 10.0.0.5 refused connection")

    monkeypatch.setattr(auth_service, "send_verification_email", _broken_notifier)

    response = client.post("/auth/signup", json=SIGNUP)

    assert response.status_code == 500
    payload = response.get_json()
    assert payload["message"] == "An unexpected error occurred"
    assert payload["data"] is None


def test_check_email(client: FlaskClient, app):
    with app.app_context():
        _create_user("taken@example.com", "taken", "secret123")

    empty = client.get("/auth/check-email?email=%20")
    taken = client.get("/auth/check-email?email=taken@example.com")
    free = client.get("/auth/check-email?email=free@example.com")

    assert empty.status_code == 400
    assert empty.get_json()["message"] == "Email must not be empty"
    assert taken.status_code == 409
    assert taken.get_json()["message"] == (
        "This email is already registered. Would you like to login instead?"
    )
    assert free.status_code == 200
    assert free.get_json()["message"] == "Email is available"


def test_login_returns_tokens(client: FlaskClient, app):
    """Users should receive access and refresh tokens for valid credentials."""

    with app.app_context():
        _create_user("j1@example.com", "jay_one", "J1Pass123")

    response = client.post(
        "/auth/login",
        json={"email": "j1@example.com", "password": "J1Pass123"},
    )

    assert response.status_code == 200
    payload = response.get_json()
    assert payload["status"] == "SUCCESS"
    assert payload["message"] == "Login successful"
    assert payload["data"]["email"] == "j1@example.com"
    assert payload["data"]["message"] == "Login successful"
    assert payload["data"]["token"]
    assert payload["data"]["refreshToken"]


@pytest.mark.parametrize(
    "payload, status_code",
    [
        ({"email": "j1@example.com"}, 400),
        ({"password": "J1Pass123"}, 400),
        ({"email": "j1@example.com", "password": "wrong"}, 401),
        ({"email": "ghost@example.com", "password": "J1Pass123"}, 401),
    ],
)
def test_login_validation(client: FlaskClient, app, payload, status_code):
    """Login endpoint should validate request bodies and credentials."""

    with app.app_context():
        _create_user("j1@example.com", "jay_one", "J1Pass123")

    response = client.post("/auth/login", json=payload)

    assert response.status_code == status_code


def test_login_failures_share_one_response(client: FlaskClient, app):
    with app.app_context():
        _create_user("j1@example.com", "jay_one", "J1Pass123")

    wrong_password = client.post(
        "/auth/login", json={"email": "j1@example.com", "password": "nope"}
    )
    unknown_email = client.post(
        "/auth/login", json={"email": "ghost@example.com", "password": "nope"}
    )

    assert wrong_password.get_json() == unknown_email.get_json()
    assert wrong_password.get_json()["message"] == "Invalid email or password"


def test_login_requires_json(client: FlaskClient):
    response = client.post("/auth/login", data="email=x", content_type="text/plain")

    assert response.status_code == 400
    assert "Request content type" in response.get_json()["message"]


def test_refresh_and_logout_flow(client: FlaskClient, app):
    with app.app_context():
        _create_user("j1@example.com", "jay_one", "J1Pass123")
    tokens = _login(client, "j1@example.com", "J1Pass123")

    refreshed = client.post("/auth/refresh", json={"refreshToken": tokens["refreshToken"]})
    assert refreshed.status_code == 200
    assert refreshed.get_json()["message"] == "Token refreshed"
    new_tokens = refreshed.get_json()["data"]

    reused = client.post("/auth/refresh", json={"refreshToken": tokens["refreshToken"]})
    assert reused.status_code == 401

    logout = client.post(
        "/auth/logout",
        headers={"Authorization": f"Bearer {new_tokens['refreshToken']}"},
    )
    assert logout.status_code == 200
    assert logout.get_json() == {
        "status": "SUCCESS",
        "code": 200,
        "message": "Logged out successfully",
        "data": "Refresh token invalidated",
    }

    with app.app_context():
        assert RefreshToken.query.count() == 0

    after_logout = client.post(
        "/auth/refresh", json={"refreshToken": new_tokens["refreshToken"]}
    )
    assert after_logout.status_code == 401


@pytest.mark.parametrize("body", [{}, {"refreshToken": ""}, {"refreshToken": 42}])
def test_refresh_requires_token(client: FlaskClient, body):
    response = client.post("/auth/refresh", json=body)

    assert response.status_code == 401
    assert response.get_json()["message"] == "Refresh token is missing"


@pytest.mark.parametrize(
    "headers",
    [{}, {"Authorization": "Token abc"}, {"Authorization": "bearer abc"}],
)
def test_logout_rejects_malformed_header_before_service(client: FlaskClient, monkeypatch, headers):
    def _should_not_run(token):
        raise AssertionError("logout service must not be reached")

    monkeypatch.setattr(auth_service, "logout", _should_not_run)

    response = client.post("/auth/logout", headers=headers)

    assert response.status_code == 401
    payload = response.get_json()
    assert payload["status"] == "ERROR"
    assert payload["message"] == "Refresh token is missing or malformed"


def test_logout_with_unknown_token(client: FlaskClient):
    response = client.post("/auth/logout", headers={"Authorization": "Bearer garbage"})

    assert response.status_code == 401
    assert response.get_json()["message"] == "Refresh token is invalid or expired"
