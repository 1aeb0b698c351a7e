"""End-to-end email verification flow tests."""

from __future__ import annotations

from datetime import datetime, timedelta
from urllib.parse import parse_qs, urlparse

from models import db
from models.user import User
from models.verification_token import VerificationToken


def _token_from_link(link: str) -> str:
    return parse_qs(urlparse(link).query)["token"][0]


def _signup(client, email: str = "verify@example.com", username: str = "verify_me") -> None:
    response = client.post(
        "/auth/signup",
        json={"email": email, "username": username, "password": "secret123"},
    )
    assert response.status_code == 201


def test_verify_marks_user_and_consumes_token(app, client, sent_links):
    _signup(client)
    token = _token_from_link(sent_links[0][1])

    response = client.get(f"/auth/verify?token={token}")

    assert response.status_code == 201
    assert response.get_json() == {
        "status": "SUCCESS",
        "code": 201,
        "message": "User verified",
        "data": None,
    }
    with app.app_context():
        assert User.query.filter_by(email="verify@example.com").one().verified is True
        assert VerificationToken.query.count() == 0

    repeat = client.get(f"/auth/verify?token={token}")
    assert repeat.status_code == 401
    assert repeat.get_json()["message"] == "Invalid token"


def test_verify_unknown_token(client):
    response = client.get("/auth/verify?token=unknown")

    assert response.status_code == 401
    assert response.get_json()["message"] == "Invalid token"


def test_verify_expired_token(app, client, sent_links):
    _signup(client)
    token = _token_from_link(sent_links[0][1])

    with app.app_context():
        stored = VerificationToken.find_by_token(token)
        stored.expiry_date = datetime.utcnow() - timedelta(minutes=5)
        db.session.commit()

    response = client.get(f"/auth/verify?token={token}")

    assert response.status_code == 401
    assert response.get_json()["message"] == "Verification token has expired"
    with app.app_context():
        assert User.query.one().verified is False


def test_resend_issues_new_link(client, sent_links):
    _signup(client)

    response = client.post("/auth/verify/resend", json={"email": "verify@example.com"})

    assert response.status_code == 200
    assert response.get_json()["message"] == "Verification email sent"
    assert len(sent_links) == 2

    old_token = _token_from_link(sent_links[0][1])
    new_token = _token_from_link(sent_links[1][1])
    assert client.get(f"/auth/verify?token={old_token}").status_code == 401
    assert client.get(f"/auth/verify?token={new_token}").status_code == 201


def test_resend_unknown_email(client):
    response = client.post("/auth/verify/resend", json={"email": "ghost@example.com"})

    assert response.status_code == 404


def test_purge_command_removes_expired_tokens(app, client, sent_links):
    _signup(client)
    with app.app_context():
        VerificationToken.query.one().expiry_date = datetime.utcnow() - timedelta(hours=1)
        db.session.commit()

    result = app.test_cli_runner().invoke(args=["purge-expired-tokens"])

    assert result.exit_code == 0
    assert "Removed 1 verification tokens and 0 refresh tokens." in result.output
    with app.app_context():
        assert VerificationToken.query.count() == 0
