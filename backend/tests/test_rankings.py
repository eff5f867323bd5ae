import pytest


@pytest.fixture
def ranked_group(client, api, auth_headers, seeded, make_group, enroll, make_student, make_course, make_evaluation):
    """Two enrolled students: the seeded one averages 18, the other 10."""
    group = make_group()
    other, _ = make_student()
    for student_id in (seeded["student"].id, other.id):
        enroll(student_id, group["id"])
    course = make_course("A")
    evaluation = make_evaluation(group["id"])
    grades = [
        {"student_id": seeded["student"].id, "course_id": course["id"], "score": 18},
        {"student_id": other.id, "course_id": course["id"], "score": 10},
    ]
    r = client.post(f"{api}/grades/bulk", json={"evaluation_id": evaluation["id"], "grades": grades}, headers=auth_headers["docente"])
    assert r.status_code == 201
    return {"group": group, "other": other, "evaluation": evaluation}


def test_group_ranking_orders_by_average(client, api, auth_headers, seeded, ranked_group):
    r = client.get(f"{api}/rankings/group/{ranked_group['group']['id']}", headers=auth_headers["docente"])
    assert r.status_code == 200
    data = r.json()["data"]
    assert data["total_students"] == 2
    assert data["group_average"] == 14.0
    first, second = data["ranking"]
    assert (first["position"], first["student_id"], first["average"]) == (1, seeded["student"].id, 18.0)
    assert (second["position"], second["student_id"], second["average"]) == (2, ranked_group["other"].id, 10.0)
    assert first["passed_courses"] == 1
    assert second["passed_courses"] == 0


def test_group_ranking_is_staff_only(client, api, auth_headers, ranked_group):
    r = client.get(f"{api}/rankings/group/{ranked_group['group']['id']}", headers=auth_headers["estudiante"])
    assert r.status_code == 403
    assert client.get(f"{api}/rankings/group/9999", headers=auth_headers["admin"]).status_code == 404


def test_student_reads_own_position(client, api, auth_headers, seeded, ranked_group):
    r = client.get(f"{api}/rankings/student/{seeded['student'].id}", headers=auth_headers["estudiante"])
    assert r.status_code == 200
    data = r.json()["data"]
    assert data["position"] == 1
    assert data["gap_to_first"] == 0.0
    assert data["group_id"] == ranked_group["group"]["id"]


def test_student_cannot_read_other_position(client, api, auth_headers, ranked_group):
    other = ranked_group["other"]
    r = client.get(f"{api}/rankings/student/{other.id}", headers=auth_headers["estudiante"])
    assert r.status_code == 403
    assert r.json()["error"]["code"] == "AUTH_ACCESS_DENIED"

    r = client.get(f"{api}/rankings/student/{other.id}", headers=auth_headers["docente"])
    data = r.json()["data"]
    assert (data["position"], data["total_students"], data["gap_to_first"]) == (2, 2, 8.0)


def test_position_without_enrollment_is_empty(client, api, auth_headers, make_student):
    student, _ = make_student()
    r = client.get(f"{api}/rankings/student/{student.id}", headers=auth_headers["admin"])
    assert r.status_code == 200
    assert r.json()["data"] is None
    assert r.json()["message"] == "Student has no active enrollment"
