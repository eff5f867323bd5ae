"""SQLModel data models.

This module defines the application's database tables using SQLModel.
Role, status and modality values are stored as the plain strings used on
the wire (see the constants below).
"""

from datetime import date, datetime, time, timezone
from typing import Optional

from sqlalchemy import UniqueConstraint
from sqlmodel import Field, SQLModel

ROLE_ADMIN = "admin"
ROLE_TEACHER = "docente"
ROLE_STUDENT = "estudiante"
ROLES = (ROLE_ADMIN, ROLE_TEACHER, ROLE_STUDENT)

USER_ACTIVE = "activo"
USER_INACTIVE = "inactivo"

AREAS = ("A", "B", "C", "D")
MODALITIES = ("ORDINARIO", "PRIMERA_OPCION", "DIRIMENCIA")

COURSE_STATUSES = ("activo", "inactivo")
GROUP_STATUSES = ("ACTIVO", "INACTIVO")

ENROLLMENT_ACTIVE = "MATRICULADO"
ENROLLMENT_WITHDRAWN = "RETIRADO"

EVALUATION_SCHEDULED = "PROGRAMADA"
EVALUATION_STATUSES = ("PROGRAMADA", "EN_CURSO", "FINALIZADA", "CANCELADA")
# allowed next states; FINALIZADA and CANCELADA are terminal
EVALUATION_TRANSITIONS = {
    "PROGRAMADA": ("EN_CURSO", "CANCELADA"),
    "EN_CURSO": ("FINALIZADA", "CANCELADA"),
    "FINALIZADA": (),
    "CANCELADA": (),
}

ATTENDANCE_STATUSES = ("PRESENTE", "TARDANZA", "AUSENTE")
GRADE_MIN, GRADE_MAX = 0.0, 20.0
PASSING_GRADE = 11.0


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


class User(SQLModel, table=True):
    """A person who can log in.

    Fields:
    - `dni`: 8-digit national id, usable as login identifier
    - `email`: optional unique e-mail, also usable as login identifier
    - `password_hash`: hashed password string (never store plaintext)
    - `role`: one of `ROLES`
    - `must_change_password`: first login only yields a temporary token
    """
    id: Optional[int] = Field(default=None, primary_key=True)
    dni: str = Field(index=True, unique=True, nullable=False)
    email: Optional[str] = Field(default=None, index=True, unique=True)
    password_hash: str
    role: str = Field(index=True)
    first_names: str
    last_names: str
    phone: Optional[str] = None
    status: str = Field(default=USER_ACTIVE)
    must_change_password: bool = False
    created_at: datetime = Field(default_factory=_utcnow)


class Student(SQLModel, table=True):
    """Academic profile attached to a `User` with role `estudiante`."""
    id: Optional[int] = Field(default=None, primary_key=True)
    user_id: int = Field(foreign_key="user.id", unique=True, index=True)
    internal_code: str = Field(unique=True, index=True)
    modality: str = Field(index=True)
    created_at: datetime = Field(default_factory=_utcnow)


class Course(SQLModel, table=True):
    id: Optional[int] = Field(default=None, primary_key=True)
    name: str = Field(index=True)
    area: str = Field(index=True)
    description: Optional[str] = None
    status: str = Field(default="activo")
    created_at: datetime = Field(default_factory=_utcnow)


class Group(SQLModel, table=True):
    """A class section: area + modality + name is unique."""
    id: Optional[int] = Field(default=None, primary_key=True)
    name: str
    area: str = Field(index=True)
    modality: str = Field(index=True)
    days: str
    start_time: time
    end_time: time
    capacity: int = 30
    status: str = Field(default="ACTIVO")
    created_at: datetime = Field(default_factory=_utcnow)


class Enrollment(SQLModel, table=True):
    """A student's enrollment in a group."""
    id: Optional[int] = Field(default=None, primary_key=True)
    student_id: int = Field(foreign_key="student.id", index=True)
    group_id: int = Field(foreign_key="group.id", index=True)
    enrolled_at: datetime = Field(default_factory=_utcnow)
    amount_paid: float = 0.0
    status: str = Field(default=ENROLLMENT_ACTIVE, index=True)
    withdrawal_reason: Optional[str] = None
    withdrawn_at: Optional[datetime] = None


class Evaluation(SQLModel, table=True):
    """A weekly evaluation scheduled for a group."""
    id: Optional[int] = Field(default=None, primary_key=True)
    group_id: int = Field(foreign_key="group.id", index=True)
    week_number: int
    evaluation_date: date
    description: Optional[str] = None
    duration_minutes: int = 120
    status: str = Field(default=EVALUATION_SCHEDULED, index=True)
    created_at: datetime = Field(default_factory=_utcnow)


class Grade(SQLModel, table=True):
    """Score (0-20) of a student in one course of an evaluation."""
    __table_args__ = (UniqueConstraint("evaluation_id", "student_id", "course_id"),)

    id: Optional[int] = Field(default=None, primary_key=True)
    evaluation_id: int = Field(foreign_key="evaluation.id", index=True)
    student_id: int = Field(foreign_key="student.id", index=True)
    course_id: int = Field(foreign_key="course.id", index=True)
    score: float
    notes: Optional[str] = None
    created_at: datetime = Field(default_factory=_utcnow)


class Attendance(SQLModel, table=True):
    """One attendance mark per student, group and class date."""
    __table_args__ = (UniqueConstraint("student_id", "group_id", "class_date"),)

    id: Optional[int] = Field(default=None, primary_key=True)
    student_id: int = Field(foreign_key="student.id", index=True)
    group_id: int = Field(foreign_key="group.id", index=True)
    class_date: date = Field(index=True)
    status: str
    check_in_time: Optional[time] = None
    notes: Optional[str] = None
    created_at: datetime = Field(default_factory=_utcnow)
