from sga import models
from sga.seed import DEFAULT_PASSWORD


def _login(client, api, identifier, password=DEFAULT_PASSWORD):
    return client.post(f"{api}/auth/login", json={"identifier": identifier, "password": password})


def test_login_with_dni_and_email(client, api, seeded):
    r = _login(client, api, seeded["admin"].dni)
    assert r.status_code == 200
    data = r.json()["data"]
    assert data["token"] and data["refreshToken"]
    assert data["user"]["rol"] == "admin"
    r = _login(client, api, seeded["docente"].email)
    assert r.status_code == 200
    assert r.json()["data"]["user"]["rol"] == "docente"


def test_login_token_opens_protected_routes(client, api, seeded):
    token = _login(client, api, seeded["admin"].dni).json()["data"]["token"]
    r = client.get(f"{api}/auth/me", headers={"Authorization": f"Bearer {token}"})
    assert r.status_code == 200
    assert r.json()["data"]["usuarioId"] == seeded["admin"].id


def test_bad_credentials(client, api, seeded):
    r = _login(client, api, seeded["admin"].dni, "WrongPass1")
    assert r.status_code == 401
    assert r.json()["error"]["code"] == "AUTH_INVALID_CREDENTIALS"
    r = _login(client, api, "99999999")
    assert r.json()["error"]["code"] == "AUTH_INVALID_CREDENTIALS"


def test_inactive_user_cannot_login(client, api, container, make_user):
    user = make_user(status=models.USER_INACTIVE)
    r = _login(client, api, user.dni, "Password123")
    assert r.status_code == 401
    assert r.json()["error"]["code"] == "AUTH_USER_INACTIVE"


def test_first_login_requires_password_change(client, api, make_user):
    user = make_user(role=models.ROLE_TEACHER, must_change_password=True)
    r = _login(client, api, user.dni, "Password123")
    assert r.status_code == 200
    data = r.json()["data"]
    assert data["requiresPasswordChange"] is True
    temp = {"Authorization": f"Bearer {data['tempToken']}"}

    r = client.post(f"{api}/auth/change-password", json={"new_password": "short"}, headers=temp)
    assert r.status_code == 400

    r = client.post(f"{api}/auth/change-password", json={"new_password": "NewPassw0rd"}, headers=temp)
    assert r.status_code == 200
    assert r.json()["data"]["token"]

    r = _login(client, api, user.dni, "NewPassw0rd")
    assert r.status_code == 200
    assert "token" in r.json()["data"]


def test_refresh_token_flow(client, api, seeded):
    refresh = _login(client, api, seeded["admin"].dni).json()["data"]["refreshToken"]
    r = client.post(f"{api}/auth/refresh-token", json={"refresh_token": refresh})
    assert r.status_code == 200
    token = r.json()["data"]["token"]
    assert client.get(f"{api}/courses", headers={"Authorization": f"Bearer {token}"}).status_code == 200

    r = client.post(f"{api}/auth/refresh-token", json={"refresh_token": "garbage"})
    assert r.status_code == 401
    assert r.json()["error"]["code"] == "AUTH_TOKEN_INVALID"


def test_access_token_is_not_a_refresh_token(client, api, seeded):
    token = _login(client, api, seeded["admin"].dni).json()["data"]["token"]
    r = client.post(f"{api}/auth/refresh-token", json={"refresh_token": token})
    assert r.status_code == 401
