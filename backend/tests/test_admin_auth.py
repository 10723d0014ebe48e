from __future__ import annotations

from isp_vouchers.deps import get_current_operator
from isp_vouchers.main import app
from isp_vouchers.models import OperatorLevel
from isp_vouchers.security import create_session_token, hash_password, parse_session_token, verify_password

from helpers import make_operator


def test_password_hashing():
    password = "correct-horse-battery-staple"
    hashed = hash_password(password)
    assert verify_password(password, hashed)
    assert not verify_password("wrong-password", hashed)


def test_session_token_round_trip(db_session):
    operator = make_operator(db_session)
    token = create_session_token(operator.id)
    assert parse_session_token(token, 60) == {"operator_id": str(operator.id)}


def test_login_sets_cookie_and_me_reads_it(client, db_session):
    operator = make_operator(db_session, username="noc")

    response = client.post("/api/admin/login", json={"username": "noc", "password": "secret"})
    assert response.status_code == 200
    assert response.json()["data"]["operator"]["username"] == "noc"
    assert "operator_session=" in response.headers.get("set-cookie", "")

    response = client.get("/api/admin/me")
    assert response.status_code == 200
    assert response.json()["data"]["operator"] == {
        "id": str(operator.id),
        "username": "noc",
        "level": "admin",
    }


def test_login_rejects_bad_password(client, db_session):
    make_operator(db_session, username="noc")

    response = client.post("/api/admin/login", json={"username": "noc", "password": "guess"})

    assert response.status_code == 401
    assert response.json() == {
        "ok": False,
        "error": {"code": "INVALID_CREDENTIALS", "message": "Invalid login."},
    }


def test_admin_routes_require_session(client):
    response = client.get("/api/admin/voucher-batches")
    assert response.status_code == 401
    assert response.json()["error"]["code"] == "UNAUTHENTICATED"

    response = client.get("/api/admin/voucher-batches", headers={"Cookie": "operator_session=forged"})
    assert response.status_code == 401


def test_destructive_routes_require_admin_level(client, db_session, profile):
    operator = make_operator(db_session, username="viewer", level=OperatorLevel.OPERATOR)
    app.dependency_overrides[get_current_operator] = lambda: operator
    try:
        response = client.get("/api/admin/voucher-batches")
        assert response.status_code == 200

        response = client.post(
            "/api/admin/voucher-batches",
            json={"name": "Nope", "profile_id": str(profile.id), "total_count": 1},
        )
        assert response.status_code == 403
        assert response.json()["error"]["code"] == "FORBIDDEN"
    finally:
        app.dependency_overrides.pop(get_current_operator, None)
