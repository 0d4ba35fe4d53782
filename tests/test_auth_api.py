"""Tests for authentication endpoints"""
import pytest
from fastapi.testclient import TestClient

from gqlauth.api.tokens import schema_id_for_user
from gqlauth.config import Settings, settings


@pytest.fixture
def login(client: TestClient, user, schema, user_password, monkeypatch):
    """Log alice in against the Public API schema; returns the payload"""
    monkeypatch.setattr(settings, "SCHEMA_ID", schema.id)

    def _login() -> dict:
        response = client.post("/auth/authenticate", json={"email": "alice", "password": user_password})
        assert response.status_code == 200
        return response.json()

    return _login


def _jwt_headers(payload: dict) -> dict:
    return {"Authorization": f"JWT {payload['jwt']}"}


# ---------------------------------------------------------------------------
# POST /auth/authenticate
# ---------------------------------------------------------------------------

def test_authenticate(client: TestClient, login, user_password):
    """Test logging in returns both tokens and sets the refresh cookie"""
    response = client.post(
        "/auth/authenticate", json={"email": "a@b.com", "password": user_password}
    )
    assert response.status_code == 200

    data = response.json()
    assert data["schema"] == "Public API"
    assert data["jwt"].count(".") == 2
    assert data["jwtExpiresAt"] > 0
    assert data["refreshTokenExpiresAt"] > data["jwtExpiresAt"]
    assert data["user"]["fullName"] == "Alice Doe"
    assert data["user"]["groups"] == ["Editors"]

    set_cookie = response.headers["set-cookie"]
    assert set_cookie.startswith(f"gql_refreshToken={data['refreshToken']}")
    assert "HttpOnly" in set_cookie
    assert "Secure" in set_cookie
    assert "SameSite=strict" in set_cookie


def test_authenticate_records_last_login(client: TestClient, db, user, login):
    assert user.last_login_date is None

    login()

    db.refresh(user)
    assert user.last_login_date is not None


def test_authenticate_wrong_password(client: TestClient, db, user, login):
    response = client.post("/auth/authenticate", json={"email": "alice", "password": "nope"})
    db.refresh(user)
    assert user.last_login_date is None
    assert response.status_code == 401
    assert response.json()["code"] == "INVALID"
    assert response.json()["message"] == "We couldn't log you in with the provided details"


def test_authenticate_unknown_user(client: TestClient, login):
    response = client.post("/auth/authenticate", json={"email": "bob", "password": "nope"})
    assert response.status_code == 401


def test_authenticate_without_schema(client: TestClient, user, user_password):
    response = client.post("/auth/authenticate", json={"email": "alice", "password": user_password})
    assert response.status_code == 400
    assert response.json()["error"] == "InvalidSchemaError"


def test_authenticate_validation(client: TestClient):
    response = client.post("/auth/authenticate", json={"email": "", "password": "x"})
    assert response.status_code == 422


def test_schema_for_group(user, schema):
    config = Settings(_env_file=None, PERMISSION_TYPE="multiple", SCHEMA_ID=1, GROUP_SCHEMAS={"editors": schema.id})
    assert schema_id_for_user(user, config) == schema.id

    config = Settings(_env_file=None, PERMISSION_TYPE="multiple", SCHEMA_ID=1, GROUP_SCHEMAS={"authors": 5})
    assert schema_id_for_user(user, config) is None

    config = Settings(_env_file=None, PERMISSION_TYPE="single", SCHEMA_ID=7, GROUP_SCHEMAS={"editors": schema.id})
    assert schema_id_for_user(user, config) == 7


# ---------------------------------------------------------------------------
# POST /auth/refresh
# ---------------------------------------------------------------------------

def test_refresh_with_cookie(client: TestClient, login):
    payload = login()
    client.cookies.clear()

    response = client.post(
        "/auth/refresh", headers={"Cookie": f"gql_refreshToken={payload['refreshToken']}"}
    )
    assert response.status_code == 200
    assert response.json()["refreshToken"] != payload["refreshToken"]
    assert response.json()["schema"] == "Public API"


def test_refresh_with_body(client: TestClient, login):
    payload = login()
    client.cookies.clear()

    response = client.post("/auth/refresh", json={"refreshToken": payload["refreshToken"]})
    assert response.status_code == 200
    assert response.json()["user"]["username"] == "alice"


def test_refresh_twice_fails(client: TestClient, login):
    payload = login()
    client.cookies.clear()

    first = client.post("/auth/refresh", json={"refreshToken": payload["refreshToken"]})
    assert first.status_code == 200

    client.cookies.clear()
    second = client.post("/auth/refresh", json={"refreshToken": payload["refreshToken"]})
    assert second.status_code == 401
    assert second.json()["message"] == "Invalid Refresh Token"


def test_refresh_without_token(client: TestClient):
    response = client.post("/auth/refresh")
    assert response.status_code == 401
    assert response.json()["code"] == "INVALID"


# ---------------------------------------------------------------------------
# GET /auth/viewer
# ---------------------------------------------------------------------------

def test_viewer_with_jwt(client: TestClient, login):
    payload = login()

    response = client.get("/auth/viewer", headers=_jwt_headers(payload))
    assert response.status_code == 200
    assert response.json()["id"] == 42
    assert response.json()["email"] == "a@b.com"


def test_viewer_requires_credentials(client: TestClient):
    """Test the error body for a request with no Authorization header"""
    response = client.get("/auth/viewer")
    assert response.status_code == 401
    assert response.headers["www-authenticate"] == "Bearer"
    assert response.json() == {
        "error": "MissingCredentialError",
        "code": "FORBIDDEN",
        "message": "Invalid Authorization Header",
        "errors": {},
    }


def test_viewer_rejects_tampered_jwt(client: TestClient, login):
    payload = login()
    header, claims, signature = payload["jwt"].split(".")

    response = client.get("/auth/viewer", headers={"Authorization": f"JWT {header}.{claims}.{signature[::-1]}"})
    assert response.status_code == 401


# ---------------------------------------------------------------------------
# POST /auth/revoke, /auth/revoke-all
# ---------------------------------------------------------------------------

def test_revoke_current_token(client: TestClient, login):
    payload = login()

    response = client.post("/auth/revoke", headers=_jwt_headers(payload))
    assert response.status_code == 200
    assert response.json() == {"success": True, "revoked": 1}

    response = client.get("/auth/viewer", headers=_jwt_headers(payload))
    assert response.status_code == 401


def test_revoke_all_tokens(client: TestClient, login):
    first = login()
    second = login()

    response = client.post("/auth/revoke-all", headers=_jwt_headers(second))
    assert response.status_code == 200
    assert response.json() == {"success": True, "revoked": 2}

    assert client.get("/auth/viewer", headers=_jwt_headers(first)).status_code == 401
    assert client.get("/auth/viewer", headers=_jwt_headers(second)).status_code == 401


# ---------------------------------------------------------------------------
# Health
# ---------------------------------------------------------------------------

def test_health(client: TestClient):
    response = client.get("/health")
    assert response.status_code == 200
    assert response.json()["status"] == "healthy"


def test_readiness(client: TestClient):
    response = client.get("/health/ready")
    assert response.status_code == 200
    assert response.json()["checks"]["signing_key"] is True


def test_health_stats(client: TestClient, login):
    login()
    response = client.get("/health/stats")
    assert response.status_code == 200
    assert response.json()["tokens"]["access_live"] == 1
    assert response.json()["tokens"]["refresh_live"] == 1
