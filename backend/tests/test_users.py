NEW_USER = {"dni": "40000004", "first_names": " Luis ", "last_names": "Quispe", "role": "estudiante", "email": "luis@sga.local"}


def test_admin_registers_user_with_dni_as_first_password(client, api, auth_headers):
    r = client.post(f"{api}/users", json=NEW_USER, headers=auth_headers["admin"])
    assert r.status_code == 201
    data = r.json()["data"]
    assert data["first_names"] == "Luis"
    assert data["must_change_password"] is True
    assert "password_hash" not in data

    r = client.post(f"{api}/auth/login", json={"identifier": NEW_USER["dni"], "password": NEW_USER["dni"]})
    assert r.status_code == 200
    assert r.json()["data"]["requiresPasswordChange"] is True


def test_registered_user_can_get_a_student_profile(client, api, auth_headers):
    r = client.post(f"{api}/auth/register", json=NEW_USER, headers=auth_headers["admin"])
    assert r.status_code == 201
    user_id = r.json()["data"]["id"]
    r = client.post(f"{api}/students", json={"user_id": user_id, "modality": "ORDINARIO", "area": "A"}, headers=auth_headers["admin"])
    assert r.status_code == 201
    assert r.json()["data"]["user"]["id"] == user_id


def test_register_requires_admin(client, api, auth_headers):
    r = client.post(f"{api}/auth/register", json=NEW_USER)
    assert r.status_code == 401
    r = client.post(f"{api}/auth/register", json=NEW_USER, headers=auth_headers["docente"])
    assert r.status_code == 403
    r = client.post(f"{api}/users", json=NEW_USER, headers=auth_headers["estudiante"])
    assert r.status_code == 403


def test_register_validation_and_duplicates(client, api, auth_headers, seeded):
    admin = auth_headers["admin"]
    r = client.post(f"{api}/users", json=dict(NEW_USER, dni="123", email="bad", role="rector"), headers=admin)
    assert r.status_code == 400
    details = r.json()["error"]["details"]
    assert set(details) == {"dni", "email", "role"}

    r = client.post(f"{api}/users", json=dict(NEW_USER, dni=seeded["docente"].dni), headers=admin)
    assert r.status_code == 422
    assert r.json()["error"]["code"] == "USER_DNI_EXISTS"
    r = client.post(f"{api}/users", json=dict(NEW_USER, email=seeded["docente"].email), headers=admin)
    assert r.json()["error"]["code"] == "USER_EMAIL_EXISTS"


def test_list_users_filters_and_is_admin_only(client, api, auth_headers, make_user):
    make_user(first_names="Rosa")
    r = client.get(f"{api}/users", params={"search": "rosa"}, headers=auth_headers["admin"])
    assert r.status_code == 200
    assert [u["first_names"] for u in r.json()["data"]] == ["Rosa"]

    r = client.get(f"{api}/users", params={"role": "docente"}, headers=auth_headers["admin"])
    assert r.json()["pagination"]["total"] == 1
    assert all("password_hash" not in u for u in r.json()["data"])

    assert client.get(f"{api}/users", headers=auth_headers["docente"]).status_code == 403


def test_users_read_only_their_own_account(client, api, auth_headers, seeded):
    own = seeded["estudiante"]
    r = client.get(f"{api}/users/{own.id}", headers=auth_headers["estudiante"])
    assert r.status_code == 200
    assert r.json()["data"]["dni"] == own.dni

    r = client.get(f"{api}/users/{seeded['admin'].id}", headers=auth_headers["estudiante"])
    assert r.status_code == 403
    assert r.json()["error"]["code"] == "AUTH_ACCESS_DENIED"

    # docente is not privileged here
    r = client.get(f"{api}/users/{own.id}", headers=auth_headers["docente"])
    assert r.status_code == 403
    r = client.get(f"{api}/users/{seeded['docente'].id}", headers=auth_headers["docente"])
    assert r.status_code == 200


def test_admin_reads_any_user(client, api, auth_headers, seeded):
    r = client.get(f"{api}/users/{seeded['estudiante'].id}", headers=auth_headers["admin"])
    assert r.status_code == 200
    r = client.get(f"{api}/users/9999", headers=auth_headers["admin"])
    assert r.status_code == 404
    r = client.get(f"{api}/users/9999", headers=auth_headers["estudiante"])
    assert r.status_code == 403


def test_update_own_profile(client, api, auth_headers, seeded):
    own = seeded["estudiante"]
    headers = auth_headers["estudiante"]
    r = client.put(f"{api}/users/{own.id}", json={"first_names": " Elena María ", "phone": "999111222"}, headers=headers)
    assert r.status_code == 200
    assert r.json()["data"]["first_names"] == "Elena María"
    assert r.json()["data"]["phone"] == "999111222"

    r = client.put(f"{api}/users/{own.id}", json={"role": "admin"}, headers=headers)
    assert r.status_code == 422
    assert r.json()["error"]["code"] == "USER_ROLE_IMMUTABLE"
    r = client.put(f"{api}/users/{own.id}", json={"dni": "12345678"}, headers=headers)
    assert r.json()["error"]["code"] == "USER_DNI_IMMUTABLE"
    r = client.put(f"{api}/users/{own.id}", json={"email": seeded["admin"].email}, headers=headers)
    assert r.json()["error"]["code"] == "USER_EMAIL_EXISTS"
    r = client.put(f"{api}/users/{own.id}", json={"status": "inactivo"}, headers=headers)
    assert r.status_code == 403


def test_update_other_user_is_forbidden(client, api, auth_headers, seeded):
    r = client.put(f"{api}/users/{seeded['docente'].id}", json={"first_names": "X"}, headers=auth_headers["estudiante"])
    assert r.status_code == 403


def test_delete_deactivates_user(client, api, auth_headers, seeded, make_user):
    user = make_user()
    r = client.delete(f"{api}/users/{user.id}", headers=auth_headers["docente"])
    assert r.status_code == 403
    r = client.delete(f"{api}/users/{user.id}", headers=auth_headers["admin"])
    assert r.status_code == 200
    assert r.json()["data"]["status"] == "inactivo"

    r = client.post(f"{api}/auth/login", json={"identifier": user.dni, "password": "Password123"})
    assert r.status_code == 401
    assert r.json()["error"]["code"] == "AUTH_USER_INACTIVE"
    assert client.delete(f"{api}/users/9999", headers=auth_headers["admin"]).status_code == 404
