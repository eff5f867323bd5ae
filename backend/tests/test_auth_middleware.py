from datetime import datetime, timedelta, timezone

import jwt
import pytest

from sga.auth import parse_bearer
from sga.errors import AuthError


def _error(r):
    body = r.json()
    assert body["success"] is False
    return body["error"]["code"]


def test_parse_bearer():
    assert parse_bearer("Bearer abc") == "abc"
    with pytest.raises(AuthError) as exc:
        parse_bearer(None)
    assert exc.value.code == "AUTH_TOKEN_REQUIRED"
    for bad in ("Token abc", "Bearer", "Bearer ", "Bearer a b", "bearer abc"):
        with pytest.raises(AuthError) as exc:
            parse_bearer(bad)
        assert exc.value.code == "AUTH_TOKEN_INVALID"


def test_missing_header_is_401(client, api):
    r = client.get(f"{api}/students")
    assert r.status_code == 401
    assert _error(r) == "AUTH_TOKEN_REQUIRED"


def test_malformed_header_is_401(client, api):
    r = client.get(f"{api}/students", headers={"Authorization": "Token abc"})
    assert r.status_code == 401
    assert _error(r) == "AUTH_TOKEN_INVALID"


def test_tampered_token_is_401(client, api, auth_headers):
    header, payload, _ = auth_headers["admin"]["Authorization"].split(".")
    forged = f"{header}.{payload}.c2lnbmF0dXJl"
    r = client.get(f"{api}/students", headers={"Authorization": forged})
    assert r.status_code == 401
    assert _error(r) == "AUTH_TOKEN_INVALID"


def test_expired_token_is_401(client, api, settings, seeded):
    token = jwt.encode(
        {
            "usuarioId": seeded["admin"].id,
            "rol": "admin",
            "type": "access",
            "exp": datetime.now(timezone.utc) - timedelta(minutes=1),
        },
        settings.JWT_SECRET,
        algorithm=settings.JWT_ALGORITHM,
    )
    r = client.get(f"{api}/students", headers={"Authorization": f"Bearer {token}"})
    assert r.status_code == 401
    assert _error(r) == "AUTH_TOKEN_EXPIRED"


def test_unknown_role_claim_is_rejected(client, api, settings):
    token = jwt.encode(
        {"usuarioId": 1, "rol": "superuser", "exp": datetime.now(timezone.utc) + timedelta(hours=1)},
        settings.JWT_SECRET,
        algorithm=settings.JWT_ALGORITHM,
    )
    r = client.get(f"{api}/students", headers={"Authorization": f"Bearer {token}"})
    assert r.status_code == 401
    assert _error(r) == "AUTH_TOKEN_INVALID"


def test_refresh_token_is_not_an_access_token(client, api, container, seeded):
    refresh = container.resolve("authService").generate_refresh_token(seeded["admin"])
    r = client.get(f"{api}/students", headers={"Authorization": f"Bearer {refresh}"})
    assert r.status_code == 401


def test_valid_token_passes_and_request_is_tagged(client, api, auth_headers):
    r = client.get(f"{api}/students", headers={**auth_headers["admin"], "X-Request-ID": "req-123"})
    assert r.status_code == 200
    assert r.json()["success"] is True
    assert r.headers["X-Request-ID"] == "req-123"
