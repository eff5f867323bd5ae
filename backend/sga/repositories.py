"""Repository classes encapsulating database operations.

Each repository is small and focused on a single aggregate (users,
students, courses, groups, enrollments, evaluations, grades,
attendance). Repositories are container singletons holding the engine;
every method opens its own short-lived `Session`, so returned SQLModel
objects are detached but fully loaded.
"""

from datetime import date, datetime, timezone
from typing import Optional, Tuple

from sqlalchemy import func, or_
from sqlalchemy.engine import Engine
from sqlmodel import Session, select

from . import models


class BaseRepository:
    """Generic by-id CRUD shared by the concrete repositories."""
    model = None

    def __init__(self, engine: Engine):
        if self.model is None:
            raise TypeError(f"{type(self).__name__} must define a model")
        self.engine = engine

    def _session(self) -> Session:
        return Session(self.engine)

    def create(self, obj):
        """Persist a new row and return the refreshed instance."""
        with self._session() as session:
            session.add(obj)
            session.commit()
            session.refresh(obj)
            return obj

    def find_by_id(self, obj_id: int):
        """Return the row with primary key `obj_id` or `None`."""
        with self._session() as session:
            return session.get(self.model, obj_id)

    def update(self, obj_id: int, changes: dict):
        """Apply `changes` to the row and return it, or `None` if missing."""
        with self._session() as session:
            obj = session.get(self.model, obj_id)
            if obj is None:
                return None
            for key, value in changes.items():
                setattr(obj, key, value)
            session.add(obj)
            session.commit()
            session.refresh(obj)
            return obj

    def count(self) -> int:
        with self._session() as session:
            return session.exec(select(func.count()).select_from(self.model)).one()


def _paginate(stmt, page: int, limit: int):
    return stmt.offset((page - 1) * limit).limit(limit)


def _count(session: Session, stmt) -> int:
    return session.exec(select(func.count()).select_from(stmt.subquery())).one()


class UserRepository(BaseRepository):
    model = models.User

    def find_by_identifier(self, identifier: str) -> Optional[models.User]:
        """Look a user up by DNI or e-mail."""
        stmt = select(models.User).where(
            or_(models.User.dni == identifier, models.User.email == identifier)
        )
        with self._session() as session:
            return session.exec(stmt).first()

    def soft_delete(self, user_id: int) -> Optional[models.User]:
        return self.update(user_id, {"status": models.USER_INACTIVE})

    def exists_by(self, field: str, value, exclude_id: Optional[int] = None) -> bool:
        """True when another user already holds `value` in column `field`."""
        column = getattr(models.User, field)
        stmt = select(models.User.id).where(column == value)
        if exclude_id is not None:
            stmt = stmt.where(models.User.id != exclude_id)
        with self._session() as session:
            return session.exec(stmt).first() is not None

    def list(self, role: Optional[str] = None, status: Optional[str] = None, search: Optional[str] = None, page: int = 1, limit: int = 10):
        """Return `(users, total)`; `search` matches DNI, names or e-mail."""
        stmt = select(models.User)
        if role:
            stmt = stmt.where(models.User.role == role)
        if status:
            stmt = stmt.where(models.User.status == status)
        if search:
            like = f"%{search}%"
            stmt = stmt.where(or_(
                models.User.dni.contains(search),
                models.User.first_names.ilike(like),
                models.User.last_names.ilike(like),
                models.User.email.ilike(like),
            ))
        with self._session() as session:
            total = _count(session, stmt)
            rows = session.exec(_paginate(stmt.order_by(models.User.created_at.desc(), models.User.id.desc()), page, limit)).all()
            return list(rows), total


class StudentRepository(BaseRepository):
    model = models.Student

    def find_by_id_with_user(self, student_id: int) -> Optional[Tuple[models.Student, models.User]]:
        stmt = (
            select(models.Student, models.User)
            .join(models.User, models.User.id == models.Student.user_id)
            .where(models.Student.id == student_id)
        )
        with self._session() as session:
            return session.exec(stmt).first()

    def is_user_student(self, user_id: int) -> bool:
        stmt = select(models.Student.id).where(models.Student.user_id == user_id)
        with self._session() as session:
            return session.exec(stmt).first() is not None

    def list(self, modality: Optional[str] = None, search: Optional[str] = None, page: int = 1, limit: int = 10):
        """Return `(rows, total)` where rows are `(Student, User)` pairs.

        `search` matches the internal code, DNI or (case-insensitively)
        first or last names.
        """
        stmt = select(models.Student, models.User).join(models.User, models.User.id == models.Student.user_id)
        if modality:
            stmt = stmt.where(models.Student.modality == modality)
        if search:
            like = f"%{search}%"
            stmt = stmt.where(or_(
                models.Student.internal_code.contains(search),
                models.User.dni.contains(search),
                models.User.first_names.ilike(like),
                models.User.last_names.ilike(like),
            ))
        with self._session() as session:
            total = _count(session, stmt)
            rows = session.exec(_paginate(stmt.order_by(models.Student.created_at.desc(), models.Student.id.desc()), page, limit)).all()
            return list(rows), total

    def generate_internal_code(self, modality: str, area: Optional[str] = None) -> str:
        """Build the next `YYYY-AREA-MOD-NNN` code for the current year."""
        mod_code = {"ORDINARIO": "ORD", "PRIMERA_OPCION": "PRI", "DIRIMENCIA": "DIR"}.get(modality, "ORD")
        prefix = f"{datetime.now(timezone.utc).year}-{area or 'X'}-{mod_code}"
        stmt = (
            select(models.Student.internal_code)
            .where(models.Student.internal_code.startswith(prefix))
            .order_by(models.Student.internal_code.desc())
        )
        with self._session() as session:
            last = session.exec(stmt).first()
        next_number = int(last[-3:]) + 1 if last else 1
        return f"{prefix}-{next_number:03d}"


class CourseRepository(BaseRepository):
    model = models.Course

    def list(self, area: Optional[str] = None, status: Optional[str] = None, search: Optional[str] = None, page: int = 1, limit: int = 10):
        stmt = select(models.Course)
        if area:
            stmt = stmt.where(models.Course.area == area)
        if status:
            stmt = stmt.where(models.Course.status == status)
        if search:
            stmt = stmt.where(models.Course.name.ilike(f"%{search}%"))
        with self._session() as session:
            total = _count(session, stmt)
            rows = session.exec(_paginate(stmt.order_by(models.Course.area, models.Course.name), page, limit)).all()
            return list(rows), total

    def soft_delete(self, course_id: int) -> Optional[models.Course]:
        return self.update(course_id, {"status": "inactivo"})


class GroupRepository(BaseRepository):
    model = models.Group

    def find_with_enrollment_count(self, group_id: int) -> Optional[dict]:
        """Return the group plus `active_enrollments` and `available_seats`."""
        with self._session() as session:
            group = session.get(models.Group, group_id)
            if group is None:
                return None
            active = session.exec(
                select(func.count(models.Enrollment.id)).where(
                    models.Enrollment.group_id == group_id,
                    models.Enrollment.status == models.ENROLLMENT_ACTIVE,
                )
            ).one()
        return {"group": group, "active_enrollments": active, "available_seats": group.capacity - active}

    def exists_unique_combination(self, area: str, modality: str, name: str, exclude_id: Optional[int] = None) -> bool:
        stmt = select(models.Group.id).where(
            models.Group.area == area,
            models.Group.modality == modality,
            models.Group.name == name,
        )
        if exclude_id is not None:
            stmt = stmt.where(models.Group.id != exclude_id)
        with self._session() as session:
            return session.exec(stmt).first() is not None

    def list(self, area: Optional[str] = None, modality: Optional[str] = None, status: Optional[str] = None, page: int = 1, limit: int = 10):
        stmt = select(models.Group)
        if area:
            stmt = stmt.where(models.Group.area == area)
        if modality:
            stmt = stmt.where(models.Group.modality == modality)
        if status:
            stmt = stmt.where(models.Group.status == status)
        with self._session() as session:
            total = _count(session, stmt)
            rows = session.exec(_paginate(stmt.order_by(models.Group.area, models.Group.name), page, limit)).all()
            return list(rows), total


class EnrollmentRepository(BaseRepository):
    model = models.Enrollment

    def find_active_by_student(self, student_id: int) -> Optional[Tuple[models.Enrollment, models.Group]]:
        stmt = (
            select(models.Enrollment, models.Group)
            .join(models.Group, models.Group.id == models.Enrollment.group_id)
            .where(
                models.Enrollment.student_id == student_id,
                models.Enrollment.status == models.ENROLLMENT_ACTIVE,
            )
        )
        with self._session() as session:
            return session.exec(stmt).first()

    def list(self, group_id: Optional[int] = None, student_id: Optional[int] = None, status: Optional[str] = None, page: int = 1, limit: int = 10):
        stmt = select(models.Enrollment)
        if group_id:
            stmt = stmt.where(models.Enrollment.group_id == group_id)
        if student_id:
            stmt = stmt.where(models.Enrollment.student_id == student_id)
        if status:
            stmt = stmt.where(models.Enrollment.status == status)
        with self._session() as session:
            total = _count(session, stmt)
            rows = session.exec(_paginate(stmt.order_by(models.Enrollment.enrolled_at.desc(), models.Enrollment.id.desc()), page, limit)).all()
            return list(rows), total

    def find_active(self, student_id: int, group_id: int) -> Optional[models.Enrollment]:
        stmt = select(models.Enrollment).where(
            models.Enrollment.student_id == student_id,
            models.Enrollment.group_id == group_id,
            models.Enrollment.status == models.ENROLLMENT_ACTIVE,
        )
        with self._session() as session:
            return session.exec(stmt).first()

    def active_in_group(self, group_id: int):
        """`(Student, User)` rows for every active enrollment of the group."""
        stmt = (
            select(models.Student, models.User)
            .join(models.Enrollment, models.Enrollment.student_id == models.Student.id)
            .join(models.User, models.User.id == models.Student.user_id)
            .where(
                models.Enrollment.group_id == group_id,
                models.Enrollment.status == models.ENROLLMENT_ACTIVE,
            )
            .order_by(models.Student.internal_code)
        )
        with self._session() as session:
            return list(session.exec(stmt).all())

    def withdraw(self, enrollment_id: int, reason: str) -> Optional[models.Enrollment]:
        return self.update(enrollment_id, {
            "status": models.ENROLLMENT_WITHDRAWN,
            "withdrawn_at": datetime.now(timezone.utc),
            "withdrawal_reason": reason,
        })


class EvaluationRepository(BaseRepository):
    model = models.Evaluation

    def list(self, group_id: Optional[int] = None, status: Optional[str] = None, page: int = 1, limit: int = 10):
        stmt = select(models.Evaluation)
        if group_id:
            stmt = stmt.where(models.Evaluation.group_id == group_id)
        if status:
            stmt = stmt.where(models.Evaluation.status == status)
        with self._session() as session:
            total = _count(session, stmt)
            rows = session.exec(_paginate(stmt.order_by(models.Evaluation.evaluation_date.desc(), models.Evaluation.id.desc()), page, limit)).all()
            return list(rows), total


def _round(value) -> Optional[float]:
    return round(float(value), 2) if value is not None else None


class GradeRepository(BaseRepository):
    model = models.Grade

    def create_many(self, grades) -> list:
        """Insert all grades in one transaction."""
        with self._session() as session:
            session.add_all(grades)
            session.commit()
            for grade in grades:
                session.refresh(grade)
            return list(grades)

    def exists_duplicate(self, evaluation_id: int, student_id: int, course_id: int) -> bool:
        stmt = select(models.Grade.id).where(
            models.Grade.evaluation_id == evaluation_id,
            models.Grade.student_id == student_id,
            models.Grade.course_id == course_id,
        )
        with self._session() as session:
            return session.exec(stmt).first() is not None

    def _scoped(self, stmt, group_id: Optional[int], evaluation_id: Optional[int]):
        if evaluation_id:
            stmt = stmt.where(models.Grade.evaluation_id == evaluation_id)
        if group_id:
            stmt = stmt.where(models.Evaluation.group_id == group_id)
        return stmt

    def by_student(self, student_id: int, group_id: Optional[int] = None, evaluation_id: Optional[int] = None, course_id: Optional[int] = None):
        """`(Grade, Evaluation, Course)` rows, newest evaluation first."""
        stmt = (
            select(models.Grade, models.Evaluation, models.Course)
            .join(models.Evaluation, models.Evaluation.id == models.Grade.evaluation_id)
            .join(models.Course, models.Course.id == models.Grade.course_id)
            .where(models.Grade.student_id == student_id)
        )
        stmt = self._scoped(stmt, group_id, evaluation_id)
        if course_id:
            stmt = stmt.where(models.Grade.course_id == course_id)
        stmt = stmt.order_by(models.Evaluation.evaluation_date.desc(), models.Course.name)
        with self._session() as session:
            return list(session.exec(stmt).all())

    def average(self, student_id: int, group_id: Optional[int] = None, evaluation_id: Optional[int] = None) -> Optional[float]:
        """Mean score rounded to 2 decimals, or `None` without grades."""
        stmt = (
            select(func.avg(models.Grade.score))
            .join(models.Evaluation, models.Evaluation.id == models.Grade.evaluation_id)
            .where(models.Grade.student_id == student_id)
        )
        with self._session() as session:
            return _round(session.exec(self._scoped(stmt, group_id, evaluation_id)).one())

    def course_averages(self, student_id: int, group_id: Optional[int] = None, evaluation_id: Optional[int] = None) -> dict:
        """Map course id -> mean score for the student."""
        stmt = (
            select(models.Grade.course_id, func.avg(models.Grade.score))
            .join(models.Evaluation, models.Evaluation.id == models.Grade.evaluation_id)
            .where(models.Grade.student_id == student_id)
            .group_by(models.Grade.course_id)
        )
        with self._session() as session:
            return {course_id: float(avg) for course_id, avg in session.exec(self._scoped(stmt, group_id, evaluation_id)).all()}

    def list(self, evaluation_id: Optional[int] = None, student_id: Optional[int] = None, course_id: Optional[int] = None, group_id: Optional[int] = None, page: int = 1, limit: int = 10):
        stmt = select(models.Grade).join(models.Evaluation, models.Evaluation.id == models.Grade.evaluation_id)
        stmt = self._scoped(stmt, group_id, evaluation_id)
        if student_id:
            stmt = stmt.where(models.Grade.student_id == student_id)
        if course_id:
            stmt = stmt.where(models.Grade.course_id == course_id)
        with self._session() as session:
            total = _count(session, stmt)
            rows = session.exec(_paginate(stmt.order_by(models.Evaluation.evaluation_date.desc(), models.Grade.id), page, limit)).all()
            return list(rows), total


def _date_range(stmt, date_from: Optional[date], date_to: Optional[date]):
    if date_from:
        stmt = stmt.where(models.Attendance.class_date >= date_from)
    if date_to:
        stmt = stmt.where(models.Attendance.class_date <= date_to)
    return stmt


class AttendanceRepository(BaseRepository):
    model = models.Attendance

    def exists_for_date(self, student_id: int, group_id: int, class_date: date) -> bool:
        stmt = select(models.Attendance.id).where(
            models.Attendance.student_id == student_id,
            models.Attendance.group_id == group_id,
            models.Attendance.class_date == class_date,
        )
        with self._session() as session:
            return session.exec(stmt).first() is not None

    def create_many(self, records) -> int:
        """Insert the records that are not already marked for that date.

        Returns the number of rows inserted; duplicates are skipped.
        """
        created = 0
        with self._session() as session:
            for record in records:
                exists = session.exec(select(models.Attendance.id).where(
                    models.Attendance.student_id == record.student_id,
                    models.Attendance.group_id == record.group_id,
                    models.Attendance.class_date == record.class_date,
                )).first()
                if exists is None:
                    session.add(record)
                    created += 1
            session.commit()
        return created

    def for_student(self, student_id: int, group_id: int, date_from: Optional[date] = None, date_to: Optional[date] = None):
        stmt = select(models.Attendance).where(
            models.Attendance.student_id == student_id,
            models.Attendance.group_id == group_id,
        )
        stmt = _date_range(stmt, date_from, date_to).order_by(models.Attendance.class_date)
        with self._session() as session:
            return list(session.exec(stmt).all())

    def for_group(self, group_id: int, date_from: Optional[date] = None, date_to: Optional[date] = None):
        """`(Attendance, Student, User)` rows ordered by student then date."""
        stmt = (
            select(models.Attendance, models.Student, models.User)
            .join(models.Student, models.Student.id == models.Attendance.student_id)
            .join(models.User, models.User.id == models.Student.user_id)
            .where(models.Attendance.group_id == group_id)
        )
        stmt = _date_range(stmt, date_from, date_to).order_by(models.Attendance.student_id, models.Attendance.class_date)
        with self._session() as session:
            return list(session.exec(stmt).all())

    def list(self, group_id: Optional[int] = None, student_id: Optional[int] = None, status: Optional[str] = None, date_from: Optional[date] = None, date_to: Optional[date] = None, page: int = 1, limit: int = 10):
        stmt = select(models.Attendance)
        if group_id:
            stmt = stmt.where(models.Attendance.group_id == group_id)
        if student_id:
            stmt = stmt.where(models.Attendance.student_id == student_id)
        if status:
            stmt = stmt.where(models.Attendance.status == status)
        stmt = _date_range(stmt, date_from, date_to)
        with self._session() as session:
            total = _count(session, stmt)
            rows = session.exec(_paginate(stmt.order_by(models.Attendance.class_date.desc(), models.Attendance.student_id), page, limit)).all()
            return list(rows), total
