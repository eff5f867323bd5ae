import pytest
from fastapi.testclient import TestClient

from sga import models
from sga.config import Settings
from sga.database import build_engine
from sga.main import create_app
from sga.seed import seed
from sga.services import hash_password


@pytest.fixture
def settings(monkeypatch):
    monkeypatch.setenv("ENV", "dev")
    monkeypatch.setenv("LOG_LEVEL", "WARNING")
    return Settings()


@pytest.fixture
def engine(tmp_path):
    """A fresh SQLite database per test."""
    eng = build_engine(f"sqlite:///{tmp_path / 'test.db'}")
    yield eng
    eng.dispose()


@pytest.fixture
def app(settings, engine):
    return create_app(settings, engine=engine)


@pytest.fixture
def container(app):
    return app.state.container


@pytest.fixture
def seeded(container):
    """admin / docente / estudiante users plus the estudiante's student profile."""
    return seed(container)


@pytest.fixture
def client(app, seeded):
    return TestClient(app)


@pytest.fixture
def api(settings):
    return settings.API_PREFIX


@pytest.fixture
def bearer(container):
    def make(user, temporary=False):
        token = container.resolve("authService").generate_token(user, temporary=temporary)
        return {"Authorization": f"Bearer {token}"}
    return make


@pytest.fixture
def auth_headers(seeded, bearer):
    return {role: bearer(seeded[role]) for role in models.ROLES}


@pytest.fixture
def make_user(container):
    counter = {"n": 0}

    def make(role=models.ROLE_STUDENT, **overrides):
        counter["n"] += 1
        n = counter["n"]
        data = {
            "dni": f"5{n:07d}",
            "email": f"user{n}@sga.local",
            "password_hash": hash_password("Password123"),
            "role": role,
            "first_names": f"Name{n}",
            "last_names": "Tester",
        }
        data.update(overrides)
        return container.resolve("userRepository").create(models.User(**data))
    return make


@pytest.fixture
def make_student(container, make_user):
    def make(modality="ORDINARIO", area="A"):
        user = make_user(models.ROLE_STUDENT)
        repo = container.resolve("studentRepository")
        code = repo.generate_internal_code(modality, area)
        student = repo.create(models.Student(user_id=user.id, internal_code=code, modality=modality))
        return student, user
    return make


@pytest.fixture
def make_group(client, api, auth_headers):
    counter = {"n": 0}

    def make(**overrides):
        counter["n"] += 1
        payload = {
            "name": f"Grupo {counter['n']}",
            "area": "A",
            "modality": "ORDINARIO",
            "days": "LUN-MIE-VIE",
            "start_time": "08:00",
            "end_time": "10:00",
            "capacity": 30,
        }
        payload.update(overrides)
        r = client.post(f"{api}/groups", json=payload, headers=auth_headers["admin"])
        assert r.status_code == 201, r.json()
        return r.json()["data"]
    return make


@pytest.fixture
def enroll(client, api, auth_headers):
    def make(student_id, group_id):
        r = client.post(
            f"{api}/enrollments",
            json={"student_id": student_id, "group_id": group_id, "amount_paid": 150.0},
            headers=auth_headers["admin"],
        )
        assert r.status_code == 201, r.json()
        return r.json()["data"]
    return make


@pytest.fixture
def make_course(client, api, auth_headers):
    counter = {"n": 0}

    def make(area="A"):
        counter["n"] += 1
        r = client.post(f"{api}/courses", json={"name": f"Curso {counter['n']}", "area": area}, headers=auth_headers["admin"])
        assert r.status_code == 201, r.json()
        return r.json()["data"]
    return make


@pytest.fixture
def make_evaluation(client, api, auth_headers):
    def make(group_id, week_number=1, evaluation_date="2026-03-02"):
        r = client.post(
            f"{api}/evaluations",
            json={"group_id": group_id, "week_number": week_number, "evaluation_date": evaluation_date},
            headers=auth_headers["docente"],
        )
        assert r.status_code == 201, r.json()
        return r.json()["data"]
    return make
