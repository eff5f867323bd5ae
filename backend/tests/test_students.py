import re
from datetime import datetime, timezone

from sga import models


def test_create_student_generates_internal_code(client, api, auth_headers, make_user):
    user = make_user()
    r = client.post(
        f"{api}/students",
        json={"user_id": user.id, "modality": "PRIMERA_OPCION", "area": "B"},
        headers=auth_headers["admin"],
    )
    assert r.status_code == 201
    data = r.json()["data"]
    assert data["internal_code"] == f"{datetime.now(timezone.utc).year}-B-PRI-001"
    assert data["user"]["id"] == user.id


def test_internal_code_sequence_continues(client, api, auth_headers, make_user, seeded):
    user = make_user()
    r = client.post(f"{api}/students", json={"user_id": user.id, "modality": "ORDINARIO", "area": "A"}, headers=auth_headers["admin"])
    assert r.status_code == 201
    code = r.json()["data"]["internal_code"]
    assert re.fullmatch(r"\d{4}-A-ORD-002", code)
    assert seeded["student"].internal_code.endswith("-001")


def test_create_student_rules(client, api, auth_headers, seeded, make_user):
    docente = make_user(role=models.ROLE_TEACHER)
    r = client.post(f"{api}/students", json={"user_id": docente.id, "modality": "ORDINARIO"}, headers=auth_headers["admin"])
    assert r.status_code == 422
    assert r.json()["error"]["code"] == "USER_NOT_STUDENT_ROLE"

    r = client.post(f"{api}/students", json={"user_id": seeded["estudiante"].id, "modality": "ORDINARIO"}, headers=auth_headers["admin"])
    assert r.status_code == 422
    assert r.json()["error"]["code"] == "USER_ALREADY_STUDENT"

    r = client.post(f"{api}/students", json={"user_id": 9999, "modality": "ORDINARIO"}, headers=auth_headers["admin"])
    assert r.status_code == 404

    r = client.post(f"{api}/students", json={"user_id": seeded["estudiante"].id, "modality": "NOCTURNO"}, headers=auth_headers["admin"])
    assert r.status_code == 400
    assert "modality" in r.json()["error"]["details"]


def test_list_students_paginates_and_filters(client, api, auth_headers, make_student):
    for _ in range(3):
        make_student(modality="DIRIMENCIA", area="C")
    r = client.get(f"{api}/students", params={"modality": "DIRIMENCIA", "limit": 2}, headers=auth_headers["docente"])
    assert r.status_code == 200
    body = r.json()
    assert len(body["data"]) == 2
    assert body["pagination"] == {"page": 1, "limit": 2, "total": 3, "totalPages": 2}
    assert all(s["modality"] == "DIRIMENCIA" for s in body["data"])


def test_update_and_delete_student(client, api, auth_headers, make_student):
    student, user = make_student()
    r = client.put(f"{api}/students/{student.id}", json={"modality": "DIRIMENCIA"}, headers=auth_headers["admin"])
    assert r.status_code == 200
    assert r.json()["data"]["modality"] == "DIRIMENCIA"

    r = client.delete(f"{api}/students/{student.id}", headers=auth_headers["admin"])
    assert r.status_code == 200
    assert r.json()["data"]["user"]["status"] == models.USER_INACTIVE

    r = client.delete(f"{api}/students/{student.id}", headers=auth_headers["docente"])
    assert r.status_code == 403
