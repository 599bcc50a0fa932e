# tests/test_auth_gate.py
from datetime import datetime, timedelta, timezone

from sellhub.core.security import issue_token
from sellhub.middleware.auth import path_matches


def test_health_is_not_gated(client):
    r = client.get("/health")
    assert r.status_code == 200
    assert r.json() == {"ok": True}


def test_missing_header_is_unauthorized(client):
    r = client.get("/api/customers")
    assert r.status_code == 401
    assert r.json()["detail"] == "unauthorized"
    assert r.headers.get("www-authenticate") == "Bearer"


def test_non_bearer_header_is_unauthorized(client):
    r = client.get("/api/customers", headers={"Authorization": "Basic abc"})
    assert r.status_code == 401
    assert r.json()["detail"] == "unauthorized"


def test_garbage_token_is_invalid(client):
    r = client.get("/api/customers", headers={"Authorization": "Bearer nope"})
    assert r.status_code == 401
    assert r.json()["detail"] == "invalid token"


def test_expired_token_is_invalid(client):
    past = datetime.now(timezone.utc) - timedelta(hours=1)
    token = issue_token("owner", {"uid": 1, "role": "OWNER"}, ttl=timedelta(minutes=1), now=past)
    r = client.get("/api/auth/me", headers={"Authorization": f"Bearer {token}"})
    assert r.status_code == 401
    assert r.json()["detail"] == "invalid token"


def test_token_with_unknown_role_is_invalid(client):
    token = issue_token("owner", {"uid": 1, "role": "ROOT"})
    r = client.get("/api/auth/me", headers={"Authorization": f"Bearer {token}"})
    assert r.status_code == 401
    assert r.json()["detail"] == "invalid token"


def test_options_preflight_passes(client):
    r = client.options("/api/customers", headers={
        "Origin": "http://example.com",
        "Access-Control-Request-Method": "GET",
    })
    assert r.status_code == 200


def test_me_returns_context(client, owner):
    r = client.get("/api/auth/me", headers=owner)
    assert r.status_code == 200, r.text
    body = r.json()
    assert body["username"] == "owner"
    assert body["role"] == "OWNER"
    assert isinstance(body["uid"], int)


def test_login_returns_token_and_user(client):
    r = client.post("/api/auth/login", json={"username": "staff", "password": "staff123"})
    assert r.status_code == 200, r.text
    body = r.json()
    assert body["token"]
    assert body["user"]["role"] == "STAFF"
    assert "password_hash" not in body["user"]


def test_login_failures_are_indistinguishable(client):
    bad_pw = client.post("/api/auth/login", json={"username": "staff", "password": "wrong-pw"})
    no_user = client.post("/api/auth/login", json={"username": "ghost", "password": "wrong-pw"})
    assert bad_pw.status_code == no_user.status_code == 401
    assert bad_pw.json() == no_user.json()


def test_request_id_header(client):
    r = client.get("/health")
    assert r.headers.get("x-request-id")


def test_path_matches():
    assert path_matches("/api/auth/login", "/api/auth/login")
    assert not path_matches("/api/auth/login", "/api/auth/login/x")
    assert path_matches("/api/public/**", "/api/public")
    assert path_matches("/api/public/**", "/api/public/a/b")
    assert not path_matches("/api/public/**", "/api/publicity")
