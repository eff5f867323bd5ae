def test_course_crud(client, api, auth_headers):
    admin = auth_headers["admin"]
    r = client.post(f"{api}/courses", json={"name": " Algebra ", "area": "A", "description": "Basics"}, headers=admin)
    assert r.status_code == 201
    course = r.json()["data"]
    assert course["name"] == "Algebra"
    assert course["status"] == "activo"

    r = client.get(f"{api}/courses", params={"area": "A"}, headers=auth_headers["docente"])
    assert r.status_code == 200
    assert [c["id"] for c in r.json()["data"]] == [course["id"]]

    r = client.put(f"{api}/courses/{course['id']}", json={"description": "Updated"}, headers=admin)
    assert r.json()["data"]["description"] == "Updated"

    r = client.delete(f"{api}/courses/{course['id']}", headers=admin)
    assert r.json()["data"]["status"] == "inactivo"

    r = client.get(f"{api}/courses/999", headers=admin)
    assert r.status_code == 404


def test_students_cannot_read_courses(client, api, auth_headers):
    assert client.get(f"{api}/courses", headers=auth_headers["estudiante"]).status_code == 403


def test_create_group_and_read_seats(client, api, auth_headers, make_group):
    group = make_group(capacity=20)
    assert group["start_time"] == "08:00"
    assert group["available_seats"] == 20
    r = client.get(f"{api}/groups/{group['id']}", headers=auth_headers["docente"])
    assert r.status_code == 200
    assert r.json()["data"]["active_enrollments"] == 0


def test_group_schedule_validation(client, api, auth_headers):
    payload = {"name": "G1", "area": "A", "modality": "ORDINARIO", "days": "LUN", "start_time": "10:00", "end_time": "09:00"}
    r = client.post(f"{api}/groups", json=payload, headers=auth_headers["admin"])
    assert r.status_code == 400
    assert "end_time" in r.json()["error"]["details"]

    payload.update(end_time="25:00", capacity=0)
    r = client.post(f"{api}/groups", json=payload, headers=auth_headers["admin"])
    assert set(r.json()["error"]["details"]) == {"end_time", "capacity"}


def test_group_combination_is_unique(client, api, auth_headers, make_group):
    make_group(name="Alfa")
    payload = {"name": "Alfa", "area": "A", "modality": "ORDINARIO", "days": "LUN", "start_time": "14:00", "end_time": "16:00"}
    r = client.post(f"{api}/groups", json=payload, headers=auth_headers["admin"])
    assert r.status_code == 422
    assert r.json()["error"]["code"] == "GROUP_DUPLICATE_COMBINATION"
    payload["modality"] = "DIRIMENCIA"
    assert client.post(f"{api}/groups", json=payload, headers=auth_headers["admin"]).status_code == 201


def test_update_group_checks_against_stored_times(client, api, auth_headers, make_group):
    group = make_group(start_time="08:00", end_time="10:00")
    r = client.put(f"{api}/groups/{group['id']}", json={"end_time": "07:00"}, headers=auth_headers["admin"])
    assert r.status_code == 400
    r = client.put(f"{api}/groups/{group['id']}", json={"end_time": "11:30"}, headers=auth_headers["admin"])
    assert r.status_code == 200
    assert r.json()["data"]["end_time"] == "11:30"


def test_group_status_toggle(client, api, auth_headers, make_group):
    group = make_group()
    r = client.patch(f"{api}/groups/{group['id']}/status", json={"status": "INACTIVO"}, headers=auth_headers["admin"])
    assert r.status_code == 200
    assert r.json()["data"]["status"] == "INACTIVO"
    r = client.patch(f"{api}/groups/{group['id']}/status", json={"status": "CERRADO"}, headers=auth_headers["admin"])
    assert r.status_code == 400
    r = client.get(f"{api}/groups", params={"status": "INACTIVO"}, headers=auth_headers["admin"])
    assert r.json()["pagination"]["total"] == 1
