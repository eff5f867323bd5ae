"""Business logic services used by the use-cases.

This module holds small service classes that coordinate repositories and
domain rules. Services are intentionally thin: they validate input,
enforce business rules and raise typed `sga.errors` exceptions; the
use-cases persist aggregates via repositories.
"""

import logging
import re
from datetime import datetime, time, timedelta, timezone
from typing import Optional

import jwt
from passlib.context import CryptContext

from . import models, repositories
from .config import Settings
from .errors import AuthError, BusinessLogicError, NotFoundError, ValidationError

PWD_CTX = CryptContext(schemes=["pbkdf2_sha256"], deprecated="auto")
PASSWORD_RE = re.compile(r"^(?=.*[a-z])(?=.*[A-Z])(?=.*\d).{8,}$")
TIME_RE = re.compile(r"^([01]\d|2[0-3]):([0-5]\d)$")

TOKEN_ACCESS = "access"
TOKEN_TEMP = "temp"
TOKEN_REFRESH = "refresh"

logger = logging.getLogger("sga.auth")


def hash_password(password: str) -> str:
    return PWD_CTX.hash(password)


def is_valid_password(password: Optional[str]) -> bool:
    """At least 8 chars with an upper-case letter, a lower-case letter and a digit."""
    return bool(password) and PASSWORD_RE.match(password) is not None


class AuthService:
    """Authentication related operations: login, token issue and verification."""
    def __init__(self, user_repo: repositories.UserRepository, settings: Settings):
        self.user_repo = user_repo
        self.settings = settings

    def login(self, identifier: str, password: str) -> dict:
        """Authenticate by DNI or e-mail.

        Users flagged `must_change_password` only receive a short-lived
        temporary token that is good for the password change endpoint.
        """
        if not identifier or not password:
            raise AuthError("DNI/e-mail and password are required", "AUTH_INVALID_CREDENTIALS")
        user = self.user_repo.find_by_identifier(identifier)
        if not user:
            raise AuthError("Invalid credentials", "AUTH_INVALID_CREDENTIALS")
        if user.status != models.USER_ACTIVE:
            raise AuthError("User is inactive", "AUTH_USER_INACTIVE")
        if not PWD_CTX.verify(password, user.password_hash):
            logger.info("login_failed user_id=%s", user.id)
            raise AuthError("Invalid credentials", "AUTH_INVALID_CREDENTIALS")
        if user.must_change_password:
            return {
                "requiresPasswordChange": True,
                "tempToken": self.generate_token(user, temporary=True),
                "message": "Password change required",
            }
        return {
            "token": self.generate_token(user),
            "refreshToken": self.generate_refresh_token(user),
            "user": {
                "usuarioId": user.id,
                "dni": user.dni,
                "nombres": user.first_names,
                "apellidos": user.last_names,
                "rol": user.role,
            },
        }

    def change_password_first_login(self, user_id: int, new_password: str) -> dict:
        if not is_valid_password(new_password):
            raise ValidationError(
                "Password must be at least 8 characters and include an upper-case letter, a lower-case letter and a digit"
            )
        user = self.user_repo.find_by_id(user_id)
        if not user:
            raise AuthError("User not found", "AUTH_USER_NOT_FOUND")
        user = self.user_repo.update(user_id, {
            "password_hash": hash_password(new_password),
            "must_change_password": False,
        })
        return {
            "token": self.generate_token(user),
            "refreshToken": self.generate_refresh_token(user),
            "message": "Password updated",
        }

    def refresh_token(self, refresh_token: str) -> dict:
        if not refresh_token:
            raise AuthError("Refresh token required", "AUTH_TOKEN_REQUIRED")
        claims = self._decode(refresh_token, self.settings.JWT_REFRESH_SECRET, "Refresh token")
        if claims.get("type") != TOKEN_REFRESH:
            raise AuthError("Invalid refresh token", "AUTH_TOKEN_INVALID")
        user = self.user_repo.find_by_id(claims.get("usuarioId"))
        if not user:
            raise AuthError("User not found", "AUTH_USER_NOT_FOUND")
        if user.status != models.USER_ACTIVE:
            raise AuthError("User is inactive", "AUTH_USER_INACTIVE")
        return {"token": self.generate_token(user)}

    def generate_token(self, user: models.User, temporary: bool = False) -> str:
        if temporary:
            expires = timedelta(minutes=self.settings.JWT_TEMP_EXPIRE_MINUTES)
        else:
            expires = timedelta(hours=self.settings.JWT_EXPIRE_HOURS)
        payload = {
            "usuarioId": user.id,
            "dni": user.dni,
            "rol": user.role,
            "type": TOKEN_TEMP if temporary else TOKEN_ACCESS,
            "exp": datetime.now(timezone.utc) + expires,
        }
        return jwt.encode(payload, self.settings.JWT_SECRET, algorithm=self.settings.JWT_ALGORITHM)

    def generate_refresh_token(self, user: models.User) -> str:
        payload = {
            "usuarioId": user.id,
            "dni": user.dni,
            "type": TOKEN_REFRESH,
            "exp": datetime.now(timezone.utc) + timedelta(days=self.settings.JWT_REFRESH_EXPIRE_DAYS),
        }
        return jwt.encode(payload, self.settings.JWT_REFRESH_SECRET, algorithm=self.settings.JWT_ALGORITHM)

    def verify_token(self, token: str) -> dict:
        """Decode and verify an access (or temporary) token.

        Returns the claims on success or raises `AuthError` with
        `AUTH_TOKEN_EXPIRED` / `AUTH_TOKEN_INVALID`.
        """
        claims = self._decode(token, self.settings.JWT_SECRET, "Token")
        if claims.get("type", TOKEN_ACCESS) not in (TOKEN_ACCESS, TOKEN_TEMP):
            raise AuthError("Invalid token", "AUTH_TOKEN_INVALID")
        if not isinstance(claims.get("usuarioId"), int) or claims.get("rol") not in models.ROLES:
            raise AuthError("Invalid token payload", "AUTH_TOKEN_INVALID")
        return claims

    def _decode(self, token: str, secret: str, label: str) -> dict:
        try:
            return jwt.decode(token, secret, algorithms=[self.settings.JWT_ALGORITHM])
        except jwt.ExpiredSignatureError:
            raise AuthError(f"{label} expired", "AUTH_TOKEN_EXPIRED")
        except jwt.InvalidTokenError:
            raise AuthError(f"{label} invalid", "AUTH_TOKEN_INVALID")


def _check_choice(errors: dict, data: dict, field: str, choices, required: bool, label: str):
    value = data.get(field)
    if value is None:
        if required:
            errors[field] = f"{label} is required"
    elif value not in choices:
        errors[field] = f"{label} must be one of: {', '.join(choices)}"


def _check_text(errors: dict, data: dict, field: str, required: bool, label: str):
    value = data.get(field)
    if value is None:
        if required:
            errors[field] = f"{label} is required"
    elif not str(value).strip():
        errors[field] = f"{label} cannot be empty"


def _raise_if(errors: dict):
    if errors:
        raise ValidationError("Validation failed", errors)


class StudentService:
    """Rules for creating and updating student profiles."""
    def __init__(self, student_repo: repositories.StudentRepository, user_repo: repositories.UserRepository):
        self.student_repo = student_repo
        self.user_repo = user_repo

    def validate_student_data(self, data: dict, is_update: bool = False):
        errors = {}
        if not is_update and not data.get("user_id"):
            errors["user_id"] = "User id is required"
        _check_choice(errors, data, "modality", models.MODALITIES, not is_update, "Modality")
        _check_choice(errors, data, "area", models.AREAS, False, "Area")
        _raise_if(errors)

    def validate_user_for_student(self, user_id: int) -> models.User:
        user = self.user_repo.find_by_id(user_id)
        if not user:
            raise NotFoundError("User not found")
        if user.role != models.ROLE_STUDENT:
            raise BusinessLogicError("User must have the estudiante role", "USER_NOT_STUDENT_ROLE")
        if user.status != models.USER_ACTIVE:
            raise BusinessLogicError("User must be active", "USER_NOT_ACTIVE")
        return user

    def check_user_not_student(self, user_id: int):
        if self.student_repo.is_user_student(user_id):
            raise BusinessLogicError("User is already registered as a student", "USER_ALREADY_STUDENT")


class CourseService:
    def validate_course_data(self, data: dict, is_update: bool = False):
        errors = {}
        _check_text(errors, data, "name", not is_update, "Course name")
        _check_choice(errors, data, "area", models.AREAS, not is_update, "Area")
        _check_choice(errors, data, "status", models.COURSE_STATUSES, False, "Status")
        _raise_if(errors)


def parse_time(value: str) -> time:
    hours, minutes = value.split(":")
    return time(int(hours), int(minutes))


class GroupService:
    """Rules for group schedules, capacity and uniqueness."""
    def __init__(self, group_repo: repositories.GroupRepository):
        self.group_repo = group_repo

    def validate_group_data(self, data: dict, is_update: bool = False):
        """Validate a create/update payload and raise `ValidationError`.

        Times use `HH:MM`; when both ends are present the end must be
        strictly after the start.
        """
        errors = {}
        _check_choice(errors, data, "area", models.AREAS, not is_update, "Area")
        _check_choice(errors, data, "modality", models.MODALITIES, not is_update, "Modality")
        _check_text(errors, data, "name", not is_update, "Group name")
        _check_text(errors, data, "days", not is_update, "Class days")
        for field, label in (("start_time", "Start time"), ("end_time", "End time")):
            value = data.get(field)
            if value is None:
                if not is_update:
                    errors[field] = f"{label} is required"
            elif not TIME_RE.match(value):
                errors[field] = f"{label} must use HH:MM format"
        start, end = data.get("start_time"), data.get("end_time")
        if start and end and "start_time" not in errors and "end_time" not in errors:
            if parse_time(end) <= parse_time(start):
                errors["end_time"] = "End time must be after start time"
        capacity = data.get("capacity")
        if capacity is not None and capacity <= 0:
            errors["capacity"] = "Capacity must be greater than 0"
        _check_choice(errors, data, "status", models.GROUP_STATUSES, False, "Status")
        _raise_if(errors)

    def validate_unique_combination(self, area: str, modality: str, name: str, exclude_id: Optional[int] = None):
        if self.group_repo.exists_unique_combination(area, modality, name, exclude_id):
            raise BusinessLogicError(
                "A group with the same area, modality and name already exists",
                "GROUP_DUPLICATE_COMBINATION",
            )


class EnrollmentService:
    """Enrollment rules: one active enrollment, seats left, matching modality."""
    def __init__(self, enrollment_repo: repositories.EnrollmentRepository, group_repo: repositories.GroupRepository, student_repo: repositories.StudentRepository):
        self.enrollment_repo = enrollment_repo
        self.group_repo = group_repo
        self.student_repo = student_repo

    def validate_enrollment_data(self, data: dict):
        errors = {}
        for field, label in (("student_id", "Student id"), ("group_id", "Group id")):
            value = data.get(field)
            if value is None:
                errors[field] = f"{label} is required"
            elif value <= 0:
                errors[field] = f"{label} must be a positive number"
        amount = data.get("amount_paid")
        if amount is None:
            errors["amount_paid"] = "Amount paid is required"
        elif amount < 0:
            errors["amount_paid"] = "Amount paid must be >= 0"
        _raise_if(errors)

    def validate_available_capacity(self, group_id: int) -> dict:
        info = self.group_repo.find_with_enrollment_count(group_id)
        if not info:
            raise BusinessLogicError("Group not found", "GROUP_NOT_FOUND")
        if info["group"].status != "ACTIVO":
            raise BusinessLogicError("Group is not active", "GROUP_INACTIVE")
        if info["available_seats"] <= 0:
            raise BusinessLogicError("Group has no available seats", "ENROLLMENT_NO_CAPACITY")
        return info

    def validate_modality_match(self, student_id: int, group: models.Group) -> models.Student:
        student = self.student_repo.find_by_id(student_id)
        if not student:
            raise BusinessLogicError("Student not found", "STUDENT_NOT_FOUND")
        if student.modality != group.modality:
            raise BusinessLogicError(
                f"Student modality ({student.modality}) does not match group modality ({group.modality})",
                "ENROLLMENT_MODALIDAD_MISMATCH",
            )
        return student

    def validate_no_active_enrollment(self, student_id: int):
        active = self.enrollment_repo.find_active_by_student(student_id)
        if active:
            _, group = active
            raise BusinessLogicError(
                f"Student is already enrolled in group {group.name}",
                "ENROLLMENT_ALREADY_ENROLLED",
            )

    def validate_withdrawal_reason(self, reason: Optional[str]):
        if not reason or not reason.strip():
            raise ValidationError("Withdrawal reason is required")
        if len(reason.strip()) < 10:
            raise ValidationError("Withdrawal reason must be at least 10 characters")


DNI_RE = re.compile(r"^\d{8}$")
EMAIL_RE = re.compile(r"^[^@\s]+@[^@\s]+\.[^@\s]+$")


class UserService:
    """Rules for registering and updating users."""
    def __init__(self, user_repo: repositories.UserRepository):
        self.user_repo = user_repo

    def validate_user_data(self, data: dict, is_update: bool = False):
        errors = {}
        dni = data.get("dni")
        if dni is None:
            if not is_update:
                errors["dni"] = "DNI is required"
        elif not DNI_RE.match(dni):
            errors["dni"] = "DNI must be exactly 8 digits"
        email = data.get("email")
        if email and not EMAIL_RE.match(email):
            errors["email"] = "Invalid e-mail format"
        _check_text(errors, data, "first_names", not is_update, "First names")
        _check_text(errors, data, "last_names", not is_update, "Last names")
        _check_choice(errors, data, "role", models.ROLES, not is_update, "Role")
        _check_choice(errors, data, "status", (models.USER_ACTIVE, models.USER_INACTIVE), False, "Status")
        _raise_if(errors)

    def check_uniqueness(self, dni: Optional[str], email: Optional[str], exclude_id: Optional[int] = None):
        if dni and self.user_repo.exists_by("dni", dni, exclude_id):
            raise BusinessLogicError("DNI is already registered", "USER_DNI_EXISTS")
        if email and self.user_repo.exists_by("email", email, exclude_id):
            raise BusinessLogicError("E-mail is already registered", "USER_EMAIL_EXISTS")

    def check_immutable_fields(self, data: dict):
        for field, code in (("dni", "USER_DNI_IMMUTABLE"), ("role", "USER_ROLE_IMMUTABLE")):
            if data.get(field) is not None:
                raise BusinessLogicError(f"Changing {field} is not allowed", code)


class EvaluationService:
    """Rules for scheduling evaluations and moving them through their states."""
    def __init__(self, group_repo: repositories.GroupRepository):
        self.group_repo = group_repo

    def validate_evaluation_data(self, data: dict, is_update: bool = False):
        errors = {}
        if data.get("group_id") is None:
            if not is_update:
                errors["group_id"] = "Group id is required"
        elif data["group_id"] <= 0:
            errors["group_id"] = "Group id must be a positive number"
        week = data.get("week_number")
        if week is None:
            if not is_update:
                errors["week_number"] = "Week number is required"
        elif not 1 <= week <= 52:
            errors["week_number"] = "Week number must be between 1 and 52"
        if not is_update and data.get("evaluation_date") is None:
            errors["evaluation_date"] = "Evaluation date is required"
        duration = data.get("duration_minutes")
        if duration is not None and duration <= 0:
            errors["duration_minutes"] = "Duration must be greater than 0"
        description = data.get("description")
        if description and len(description) > 200:
            errors["description"] = "Description cannot exceed 200 characters"
        _check_choice(errors, data, "status", models.EVALUATION_STATUSES, False, "Status")
        _raise_if(errors)

    def validate_group_exists(self, group_id: int) -> models.Group:
        group = self.group_repo.find_by_id(group_id)
        if not group:
            raise BusinessLogicError("Group not found", "GROUP_NOT_FOUND")
        return group

    def validate_state_transition(self, current: str, new: str):
        if new not in models.EVALUATION_TRANSITIONS.get(current, ()):
            raise BusinessLogicError(f"Cannot change status from {current} to {new}", "INVALID_STATE_TRANSITION")


def _check_positive_id(errors: dict, data: dict, field: str, label: str):
    value = data.get(field)
    if value is None:
        errors[field] = f"{label} is required"
    elif value <= 0:
        errors[field] = f"{label} must be a positive number"


class GradeService:
    """Rules for recording grades against an evaluation."""
    def __init__(self, grade_repo: repositories.GradeRepository, enrollment_repo: repositories.EnrollmentRepository, evaluation_repo: repositories.EvaluationRepository, course_repo: repositories.CourseRepository, group_repo: repositories.GroupRepository):
        self.grade_repo = grade_repo
        self.enrollment_repo = enrollment_repo
        self.evaluation_repo = evaluation_repo
        self.course_repo = course_repo
        self.group_repo = group_repo

    def validate_grade_data(self, data: dict):
        errors = {}
        _check_positive_id(errors, data, "evaluation_id", "Evaluation id")
        _check_positive_id(errors, data, "student_id", "Student id")
        _check_positive_id(errors, data, "course_id", "Course id")
        score = data.get("score")
        if score is None:
            errors["score"] = "Score is required"
        elif not models.GRADE_MIN <= score <= models.GRADE_MAX:
            errors["score"] = "Score must be between 0 and 20"
        notes = data.get("notes")
        if notes and len(notes) > 500:
            errors["notes"] = "Notes cannot exceed 500 characters"
        _raise_if(errors)

    def validate_evaluation_exists(self, evaluation_id: int) -> models.Evaluation:
        evaluation = self.evaluation_repo.find_by_id(evaluation_id)
        if not evaluation:
            raise BusinessLogicError("Evaluation not found", "EVALUATION_NOT_FOUND")
        return evaluation

    def validate_grade_business_rules(self, data: dict, evaluation: Optional[models.Evaluation] = None) -> dict:
        """Check evaluation, enrollment, course area and duplicates.

        The student must be actively enrolled in the evaluation's group and
        the course must belong to the group's area.
        """
        evaluation = evaluation or self.validate_evaluation_exists(data["evaluation_id"])
        if not self.enrollment_repo.find_active(data["student_id"], evaluation.group_id):
            raise BusinessLogicError("Student is not enrolled in the evaluation's group", "STUDENT_NOT_ENROLLED")
        group = self.group_repo.find_by_id(evaluation.group_id)
        course = self.course_repo.find_by_id(data["course_id"])
        if not course:
            raise BusinessLogicError("Course not found", "COURSE_NOT_FOUND")
        if course.area != group.area:
            raise BusinessLogicError(
                f"Course belongs to area {course.area} but the group is area {group.area}",
                "COURSE_AREA_MISMATCH",
            )
        if self.grade_repo.exists_duplicate(data["evaluation_id"], data["student_id"], data["course_id"]):
            raise BusinessLogicError("A grade already exists for this student, course and evaluation", "GRADE_DUPLICATE")
        return {"evaluation": evaluation, "course": course}


class AttendanceService:
    """Rules for marking attendance of enrolled students."""
    def __init__(self, attendance_repo: repositories.AttendanceRepository, enrollment_repo: repositories.EnrollmentRepository):
        self.attendance_repo = attendance_repo
        self.enrollment_repo = enrollment_repo

    @staticmethod
    def _check_mark(errors: dict, mark: dict):
        status = mark.get("status")
        if not status:
            errors["status"] = "Attendance status is required"
        elif status not in models.ATTENDANCE_STATUSES:
            errors["status"] = f"Status must be one of: {', '.join(models.ATTENDANCE_STATUSES)}"
        check_in = mark.get("check_in_time")
        if check_in and not TIME_RE.match(check_in):
            errors["check_in_time"] = "Check-in time must use HH:MM format"

    def validate_attendance_data(self, data: dict):
        errors = {}
        _check_positive_id(errors, data, "student_id", "Student id")
        _check_positive_id(errors, data, "group_id", "Group id")
        if data.get("class_date") is None:
            errors["class_date"] = "Class date is required"
        self._check_mark(errors, data)
        _raise_if(errors)

    def validate_bulk_attendance_data(self, data: dict):
        """Validate a group-wide payload; per-item errors are keyed by index."""
        errors = {}
        _check_positive_id(errors, data, "group_id", "Group id")
        if data.get("class_date") is None:
            errors["class_date"] = "Class date is required"
        marks = data.get("marks") or []
        if not marks:
            errors["marks"] = "At least one attendance mark is required"
        item_errors = []
        for index, mark in enumerate(marks):
            mark_errors = {}
            _check_positive_id(mark_errors, mark, "student_id", "Student id")
            self._check_mark(mark_errors, mark)
            if mark_errors:
                item_errors.append({"index": index, "errors": mark_errors})
        if item_errors:
            errors["marks"] = item_errors
        _raise_if(errors)

    def validate_no_duplicate(self, student_id: int, group_id: int, class_date):
        if self.attendance_repo.exists_for_date(student_id, group_id, class_date):
            raise BusinessLogicError("Attendance already recorded for this student on this date", "ATTENDANCE_DUPLICATE")

    def validate_student_enrolled(self, student_id: int, group_id: int) -> models.Enrollment:
        enrollment = self.enrollment_repo.find_active(student_id, group_id)
        if not enrollment:
            raise BusinessLogicError("Student is not enrolled in this group", "STUDENT_NOT_ENROLLED")
        return enrollment


class RankingService:
    """Group rankings by average score.

    Averages cover the group's evaluations, or a single evaluation when
    `evaluation_id` is given. A course counts as passed when its average
    reaches `models.PASSING_GRADE`.
    """
    def __init__(self, grade_repo: repositories.GradeRepository, enrollment_repo: repositories.EnrollmentRepository):
        self.grade_repo = grade_repo
        self.enrollment_repo = enrollment_repo

    def group_ranking(self, group_id: int, evaluation_id: Optional[int] = None) -> dict:
        entries = []
        for student, user in self.enrollment_repo.active_in_group(group_id):
            average = self.grade_repo.average(student.id, group_id, evaluation_id) or 0.0
            courses = self.grade_repo.course_averages(student.id, group_id, evaluation_id)
            entries.append({
                "student_id": student.id,
                "internal_code": student.internal_code,
                "full_name": f"{user.first_names} {user.last_names}",
                "average": average,
                "passed_courses": sum(1 for avg in courses.values() if avg >= models.PASSING_GRADE),
            })
        # stable sort keeps internal-code order on ties
        entries.sort(key=lambda e: e["average"], reverse=True)
        ranking = [{"position": i, **entry} for i, entry in enumerate(entries, start=1)]
        group_average = round(sum(e["average"] for e in entries) / len(entries), 2) if entries else 0.0
        return {
            "group_id": group_id,
            "evaluation_id": evaluation_id,
            "group_average": group_average,
            "total_students": len(ranking),
            "ranking": ranking,
        }

    def student_position(self, student_id: int, evaluation_id: Optional[int] = None) -> Optional[dict]:
        """Position of the student in the group of their active enrollment.

        Returns `None` when the student has no active enrollment.
        """
        active = self.enrollment_repo.find_active_by_student(student_id)
        if not active:
            return None
        _, group = active
        data = self.group_ranking(group.id, evaluation_id)
        entry = next((e for e in data["ranking"] if e["student_id"] == student_id), None)
        if entry is None:
            return None
        first = data["ranking"][0]
        return {
            "student_id": student_id,
            "group_id": group.id,
            "evaluation_id": evaluation_id,
            "position": entry["position"],
            "total_students": data["total_students"],
            "average": entry["average"],
            "passed_courses": entry["passed_courses"],
            "group_average": data["group_average"],
            "gap_to_first": round(first["average"] - entry["average"], 2),
        }
