from types import SimpleNamespace

import pytest
from sqlalchemy.exc import OperationalError

from sga.auth import Principal, authorize_owner_or_roles, authorize_role
from sga.container import Container
from sga.errors import AuthError, ForbiddenError


def _request(principal=None, path_params=None):
    return SimpleNamespace(
        state=SimpleNamespace(user=principal),
        path_params=path_params or {},
        url=SimpleNamespace(path="/resource"),
        app=SimpleNamespace(state=SimpleNamespace(container=Container())),
    )


def test_authorize_role_unit():
    check = authorize_role("admin")
    assert check(_request(Principal(1, "admin"))).user_id == 1
    with pytest.raises(ForbiddenError):
        check(_request(Principal(2, "docente")))
    with pytest.raises(AuthError):
        check(_request(None))


def test_privileged_role_skips_fetch():
    def fetcher(container, resource_id):
        raise AssertionError("should not fetch")

    grant = authorize_owner_or_roles(fetcher)(_request(Principal(1, "docente"), {"id": "9"}))
    assert grant.resource is None


def test_owner_gets_fetched_resource():
    resource = SimpleNamespace(user_id=7)
    grant = authorize_owner_or_roles(lambda c, i: resource)(_request(Principal(7, "estudiante"), {"id": "3"}))
    assert grant.resource is resource


def test_owner_mismatch_and_lookup_failure_are_forbidden():
    check = authorize_owner_or_roles(lambda c, i: SimpleNamespace(user_id=8))
    with pytest.raises(ForbiddenError):
        check(_request(Principal(7, "estudiante"), {"id": "3"}))
    with pytest.raises(ForbiddenError):
        check(_request(Principal(7, "estudiante"), {"id": "abc"}))

    def broken(container, resource_id):
        raise OperationalError("SELECT", {}, Exception("db down"))

    with pytest.raises(ForbiddenError):
        authorize_owner_or_roles(broken)(_request(Principal(7, "estudiante"), {"id": "3"}))


def test_several_owner_roles_share_the_check():
    check = authorize_owner_or_roles(
        lambda c, i: SimpleNamespace(id=i),
        privileged_roles=("admin",),
        owner_roles=("docente", "estudiante"),
        owner_field="id",
    )
    assert check(_request(Principal(4, "docente"), {"id": "4"})).resource.id == 4
    assert check(_request(Principal(5, "estudiante"), {"id": "5"})).resource.id == 5
    with pytest.raises(ForbiddenError):
        check(_request(Principal(4, "docente"), {"id": "5"}))


def test_docente_cannot_create_course(client, api, auth_headers):
    r = client.post(f"{api}/courses", json={"name": "Algebra", "area": "A"}, headers=auth_headers["docente"])
    assert r.status_code == 403
    assert r.json()["error"]["code"] == "AUTH_ACCESS_DENIED"


def test_student_cannot_list_students(client, api, auth_headers):
    r = client.get(f"{api}/students", headers=auth_headers["estudiante"])
    assert r.status_code == 403


def test_student_reads_own_profile(client, api, auth_headers, seeded):
    student = seeded["student"]
    r = client.get(f"{api}/students/{student.id}", headers=auth_headers["estudiante"])
    assert r.status_code == 200
    data = r.json()["data"]
    assert data["internal_code"] == student.internal_code
    assert data["user"]["dni"] == seeded["estudiante"].dni
    assert "password_hash" not in data["user"]


def test_student_cannot_read_other_profile(client, api, auth_headers, make_student):
    other, _ = make_student()
    r = client.get(f"{api}/students/{other.id}", headers=auth_headers["estudiante"])
    assert r.status_code == 403
    assert r.json()["error"]["code"] == "AUTH_ACCESS_DENIED"


def test_missing_student_is_403_for_owner_but_404_for_admin(client, api, auth_headers):
    r = client.get(f"{api}/students/9999", headers=auth_headers["estudiante"])
    assert r.status_code == 403
    r = client.get(f"{api}/students/9999", headers=auth_headers["admin"])
    assert r.status_code == 404
    assert r.json()["error"]["code"] == "RESOURCE_NOT_FOUND"


def test_docente_reads_any_profile(client, api, auth_headers, make_student):
    other, _ = make_student()
    r = client.get(f"{api}/students/{other.id}", headers=auth_headers["docente"])
    assert r.status_code == 200


def test_admin_reads_any_profile(client, api, auth_headers, make_student):
    other, user = make_student()
    r = client.get(f"{api}/students/{other.id}", headers=auth_headers["admin"])
    assert r.status_code == 200
    data = r.json()["data"]
    assert data["id"] == other.id
    assert data["user"]["dni"] == user.dni


def test_temporary_token_only_allows_password_change(client, api, bearer, seeded):
    headers = bearer(seeded["admin"], temporary=True)
    r = client.get(f"{api}/students", headers=headers)
    assert r.status_code == 403
    r = client.get(f"{api}/students/{seeded['student'].id}", headers=headers)
    assert r.status_code == 403
