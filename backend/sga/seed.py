"""Seed the database with one user per role and a student profile.

Run with `python -m sga.seed` from the backend folder. Existing users
(matched by DNI) are left untouched so the script can be re-run.
"""

import logging
import os

from . import models
from .config import get_settings
from .container import Container
from .database import create_db_and_tables
from .dependencies import configure_dependencies
from .logging_config import configure_logging
from .services import hash_password

logger = logging.getLogger("sga.seed")

DEFAULT_PASSWORD = os.getenv("SEED_PASSWORD", "Password123")

SEED_USERS = [
    {"dni": "10000001", "email": "admin@sga.local", "role": models.ROLE_ADMIN, "first_names": "Ana", "last_names": "Admin"},
    {"dni": "20000002", "email": "docente@sga.local", "role": models.ROLE_TEACHER, "first_names": "Diego", "last_names": "Docente"},
    {"dni": "30000003", "email": "estudiante@sga.local", "role": models.ROLE_STUDENT, "first_names": "Elena", "last_names": "Estudiante"},
]


def seed(container: Container, password: str = DEFAULT_PASSWORD) -> dict:
    """Create the seed users and a student profile for the estudiante.

    Returns a mapping of role -> user, plus `"student"` for the profile.
    """
    users = container.resolve("userRepository")
    students = container.resolve("studentRepository")
    created = {}
    for data in SEED_USERS:
        user = users.find_by_identifier(data["dni"])
        if user is None:
            user = users.create(models.User(password_hash=hash_password(password), **data))
            logger.info("seeded user dni=%s role=%s", user.dni, user.role)
        created[user.role] = user

    student_user = created[models.ROLE_STUDENT]
    if not students.is_user_student(student_user.id):
        code = students.generate_internal_code("ORDINARIO", "A")
        students.create(models.Student(user_id=student_user.id, internal_code=code, modality="ORDINARIO"))
        logger.info("seeded student code=%s", code)
    rows, _ = students.list(search=student_user.dni)
    created["student"] = rows[0][0]
    return created


def main():
    settings = get_settings()
    configure_logging(settings.LOG_LEVEL)
    container = configure_dependencies(Container(), settings)
    create_db_and_tables(container.resolve("engine"))
    seed(container)
    logger.info("seed complete database=%s", settings.DATABASE_URL)


if __name__ == "__main__":
    main()
