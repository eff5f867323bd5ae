"""Use-case classes, one per application operation.

Use-cases sit between the HTTP routes and the repositories: they call
the services for validation and business rules, persist through the
repositories and return plain dictionaries ready for the success
envelope. They are registered as container singletons.
"""

from typing import Optional

from . import models
from .errors import BusinessLogicError, NotFoundError, ValidationError
from .repositories import (
    AttendanceRepository,
    CourseRepository,
    EnrollmentRepository,
    EvaluationRepository,
    GradeRepository,
    GroupRepository,
    StudentRepository,
    UserRepository,
)
from .responses import build_pagination
from .services import (
    AttendanceService,
    CourseService,
    EnrollmentService,
    EvaluationService,
    GradeService,
    GroupService,
    RankingService,
    StudentService,
    UserService,
    hash_password,
    parse_time,
)

MAX_PAGE_SIZE = 100


def normalize_paging(page: Optional[int], limit: Optional[int]):
    page = page if page and page > 0 else 1
    limit = limit if limit and limit > 0 else 10
    return page, min(limit, MAX_PAGE_SIZE)


def user_summary(user: models.User) -> dict:
    return {
        "id": user.id,
        "dni": user.dni,
        "email": user.email,
        "first_names": user.first_names,
        "last_names": user.last_names,
        "phone": user.phone,
        "status": user.status,
        "role": user.role,
    }


def student_payload(student: models.Student, user: models.User) -> dict:
    out = student.model_dump()
    out["user"] = user_summary(user)
    return out


# students

class CreateStudentUseCase:
    def __init__(self, student_repo: StudentRepository, student_service: StudentService):
        self.student_repo = student_repo
        self.student_service = student_service

    def execute(self, data: dict) -> dict:
        self.student_service.validate_student_data(data)
        user = self.student_service.validate_user_for_student(data["user_id"])
        self.student_service.check_user_not_student(data["user_id"])
        code = self.student_repo.generate_internal_code(data["modality"], data.get("area"))
        student = self.student_repo.create(models.Student(
            user_id=data["user_id"],
            internal_code=code,
            modality=data["modality"],
        ))
        return student_payload(student, user)


class GetStudentsUseCase:
    def __init__(self, student_repo: StudentRepository):
        self.student_repo = student_repo

    def execute(self, modality: Optional[str] = None, search: Optional[str] = None, page: int = 1, limit: int = 10) -> dict:
        page, limit = normalize_paging(page, limit)
        rows, total = self.student_repo.list(modality=modality, search=search, page=page, limit=limit)
        return {
            "students": [student_payload(s, u) for s, u in rows],
            "pagination": build_pagination(page, limit, total),
        }


class GetStudentByIdUseCase:
    """Return a student with its user.

    `prefetched` lets the ownership check hand over the row it already
    loaded; only the user half is fetched then.
    """
    def __init__(self, student_repo: StudentRepository, user_repo: UserRepository):
        self.student_repo = student_repo
        self.user_repo = user_repo

    def execute(self, student_id: int, prefetched: Optional[models.Student] = None) -> dict:
        if prefetched is not None and prefetched.id == student_id:
            user = self.user_repo.find_by_id(prefetched.user_id)
            if user:
                return student_payload(prefetched, user)
        row = self.student_repo.find_by_id_with_user(student_id)
        if not row:
            raise NotFoundError("Student not found")
        return student_payload(*row)


class UpdateStudentUseCase:
    def __init__(self, student_repo: StudentRepository, student_service: StudentService):
        self.student_repo = student_repo
        self.student_service = student_service

    def execute(self, student_id: int, data: dict) -> dict:
        if not self.student_repo.find_by_id(student_id):
            raise NotFoundError("Student not found")
        self.student_service.validate_student_data(data, is_update=True)
        changes = {k: v for k, v in data.items() if k in ("modality",) and v is not None}
        if changes:
            self.student_repo.update(student_id, changes)
        return student_payload(*self.student_repo.find_by_id_with_user(student_id))


class DeleteStudentUseCase:
    """Soft delete: the owning user is marked inactive."""
    def __init__(self, student_repo: StudentRepository, user_repo: UserRepository):
        self.student_repo = student_repo
        self.user_repo = user_repo

    def execute(self, student_id: int) -> dict:
        row = self.student_repo.find_by_id_with_user(student_id)
        if not row:
            raise NotFoundError("Student not found")
        student, user = row
        user = self.user_repo.soft_delete(user.id)
        return student_payload(student, user)


# courses

class CreateCourseUseCase:
    def __init__(self, course_repo: CourseRepository, course_service: CourseService):
        self.course_repo = course_repo
        self.course_service = course_service

    def execute(self, data: dict) -> dict:
        self.course_service.validate_course_data(data)
        course = self.course_repo.create(models.Course(
            name=data["name"].strip(),
            area=data["area"],
            description=data.get("description") or None,
            status="activo",
        ))
        return course.model_dump()


class GetCoursesUseCase:
    def __init__(self, course_repo: CourseRepository):
        self.course_repo = course_repo

    def execute(self, area: Optional[str] = None, status: Optional[str] = None, search: Optional[str] = None, page: int = 1, limit: int = 10) -> dict:
        page, limit = normalize_paging(page, limit)
        rows, total = self.course_repo.list(area=area, status=status, search=search, page=page, limit=limit)
        return {
            "courses": [c.model_dump() for c in rows],
            "pagination": build_pagination(page, limit, total),
        }


class GetCourseByIdUseCase:
    def __init__(self, course_repo: CourseRepository):
        self.course_repo = course_repo

    def execute(self, course_id: int) -> dict:
        course = self.course_repo.find_by_id(course_id)
        if not course:
            raise NotFoundError("Course not found")
        return course.model_dump()


class UpdateCourseUseCase:
    def __init__(self, course_repo: CourseRepository, course_service: CourseService):
        self.course_repo = course_repo
        self.course_service = course_service

    def execute(self, course_id: int, data: dict) -> dict:
        if not self.course_repo.find_by_id(course_id):
            raise NotFoundError("Course not found")
        self.course_service.validate_course_data(data, is_update=True)
        changes = {k: v for k, v in data.items() if v is not None}
        if "name" in changes:
            changes["name"] = changes["name"].strip()
        return self.course_repo.update(course_id, changes).model_dump()


class DeleteCourseUseCase:
    def __init__(self, course_repo: CourseRepository):
        self.course_repo = course_repo

    def execute(self, course_id: int) -> dict:
        if not self.course_repo.find_by_id(course_id):
            raise NotFoundError("Course not found")
        return self.course_repo.soft_delete(course_id).model_dump()


# groups

def group_payload(group: models.Group, active_enrollments: Optional[int] = None) -> dict:
    out = group.model_dump()
    out["start_time"] = group.start_time.strftime("%H:%M")
    out["end_time"] = group.end_time.strftime("%H:%M")
    if active_enrollments is not None:
        out["active_enrollments"] = active_enrollments
        out["available_seats"] = group.capacity - active_enrollments
    return out


class CreateGroupUseCase:
    def __init__(self, group_repo: GroupRepository, group_service: GroupService):
        self.group_repo = group_repo
        self.group_service = group_service

    def execute(self, data: dict) -> dict:
        self.group_service.validate_group_data(data)
        name = data["name"].strip()
        self.group_service.validate_unique_combination(data["area"], data["modality"], name)
        group = self.group_repo.create(models.Group(
            name=name,
            area=data["area"],
            modality=data["modality"],
            days=data["days"],
            start_time=parse_time(data["start_time"]),
            end_time=parse_time(data["end_time"]),
            capacity=data.get("capacity") or 30,
            status="ACTIVO",
        ))
        return group_payload(group, 0)


class GetGroupsUseCase:
    def __init__(self, group_repo: GroupRepository):
        self.group_repo = group_repo

    def execute(self, area: Optional[str] = None, modality: Optional[str] = None, status: Optional[str] = None, page: int = 1, limit: int = 10) -> dict:
        page, limit = normalize_paging(page, limit)
        rows, total = self.group_repo.list(area=area, modality=modality, status=status, page=page, limit=limit)
        return {
            "groups": [group_payload(g) for g in rows],
            "pagination": build_pagination(page, limit, total),
        }


class GetGroupByIdUseCase:
    def __init__(self, group_repo: GroupRepository):
        self.group_repo = group_repo

    def execute(self, group_id: int) -> dict:
        info = self.group_repo.find_with_enrollment_count(group_id)
        if not info:
            raise NotFoundError("Group not found")
        return group_payload(info["group"], info["active_enrollments"])


class UpdateGroupUseCase:
    def __init__(self, group_repo: GroupRepository, group_service: GroupService):
        self.group_repo = group_repo
        self.group_service = group_service

    def execute(self, group_id: int, data: dict) -> dict:
        existing = self.group_repo.find_by_id(group_id)
        if not existing:
            raise NotFoundError("Group not found")
        changes = {k: v for k, v in data.items() if v is not None}
        # the end-after-start rule needs both ends, so fill in the stored one
        merged = dict(changes)
        if "start_time" in merged or "end_time" in merged:
            merged.setdefault("start_time", existing.start_time.strftime("%H:%M"))
            merged.setdefault("end_time", existing.end_time.strftime("%H:%M"))
        self.group_service.validate_group_data(merged, is_update=True)
        if {"area", "modality", "name"} & changes.keys():
            self.group_service.validate_unique_combination(
                changes.get("area", existing.area),
                changes.get("modality", existing.modality),
                changes.get("name", existing.name).strip(),
                exclude_id=group_id,
            )
        for field in ("start_time", "end_time"):
            if field in changes:
                changes[field] = parse_time(changes[field])
        if "name" in changes:
            changes["name"] = changes["name"].strip()
        return group_payload(self.group_repo.update(group_id, changes))


class ActivateDeactivateGroupUseCase:
    def __init__(self, group_repo: GroupRepository):
        self.group_repo = group_repo

    def execute(self, group_id: int, status: str) -> dict:
        if not self.group_repo.find_by_id(group_id):
            raise NotFoundError("Group not found")
        if status not in models.GROUP_STATUSES:
            raise ValidationError("Status must be ACTIVO or INACTIVO")
        return group_payload(self.group_repo.update(group_id, {"status": status}))


# enrollments

class EnrollStudentUseCase:
    def __init__(self, enrollment_repo: EnrollmentRepository, enrollment_service: EnrollmentService):
        self.enrollment_repo = enrollment_repo
        self.enrollment_service = enrollment_service

    def execute(self, data: dict) -> dict:
        self.enrollment_service.validate_enrollment_data(data)
        self.enrollment_service.validate_no_active_enrollment(data["student_id"])
        info = self.enrollment_service.validate_available_capacity(data["group_id"])
        self.enrollment_service.validate_modality_match(data["student_id"], info["group"])
        enrollment = self.enrollment_repo.create(models.Enrollment(
            student_id=data["student_id"],
            group_id=data["group_id"],
            amount_paid=float(data["amount_paid"]),
            status=models.ENROLLMENT_ACTIVE,
        ))
        return enrollment.model_dump()


class GetEnrollmentsUseCase:
    def __init__(self, enrollment_repo: EnrollmentRepository):
        self.enrollment_repo = enrollment_repo

    def execute(self, group_id: Optional[int] = None, student_id: Optional[int] = None, status: Optional[str] = None, page: int = 1, limit: int = 10) -> dict:
        page, limit = normalize_paging(page, limit)
        rows, total = self.enrollment_repo.list(group_id=group_id, student_id=student_id, status=status, page=page, limit=limit)
        return {
            "enrollments": [e.model_dump() for e in rows],
            "pagination": build_pagination(page, limit, total),
        }


class WithdrawStudentUseCase:
    def __init__(self, enrollment_repo: EnrollmentRepository, enrollment_service: EnrollmentService):
        self.enrollment_repo = enrollment_repo
        self.enrollment_service = enrollment_service

    def execute(self, enrollment_id: int, reason: Optional[str]) -> dict:
        self.enrollment_service.validate_withdrawal_reason(reason)
        enrollment = self.enrollment_repo.find_by_id(enrollment_id)
        if not enrollment:
            raise NotFoundError("Enrollment not found")
        if enrollment.status == models.ENROLLMENT_WITHDRAWN:
            raise BusinessLogicError("Enrollment is already withdrawn", "ENROLLMENT_ALREADY_WITHDRAWN")
        return self.enrollment_repo.withdraw(enrollment_id, reason.strip()).model_dump()


# users

def user_payload(user: models.User) -> dict:
    out = user_summary(user)
    out["must_change_password"] = user.must_change_password
    out["created_at"] = user.created_at
    return out


class RegisterUserUseCase:
    """Create a user whose initial password is their DNI.

    The account is flagged `must_change_password`, so the first login only
    yields a temporary token.
    """
    def __init__(self, user_repo: UserRepository, user_service: UserService):
        self.user_repo = user_repo
        self.user_service = user_service

    def execute(self, data: dict) -> dict:
        self.user_service.validate_user_data(data)
        email = data.get("email") or None
        self.user_service.check_uniqueness(data["dni"], email)
        user = self.user_repo.create(models.User(
            dni=data["dni"],
            email=email,
            password_hash=hash_password(data["dni"]),
            must_change_password=True,
            role=data["role"],
            first_names=data["first_names"].strip(),
            last_names=data["last_names"].strip(),
            phone=data.get("phone") or None,
            status=models.USER_ACTIVE,
        ))
        return user_payload(user)


class GetUsersUseCase:
    def __init__(self, user_repo: UserRepository):
        self.user_repo = user_repo

    def execute(self, role: Optional[str] = None, status: Optional[str] = None, search: Optional[str] = None, page: int = 1, limit: int = 10) -> dict:
        page, limit = normalize_paging(page, limit)
        rows, total = self.user_repo.list(role=role, status=status, search=search, page=page, limit=limit)
        return {
            "users": [user_payload(u) for u in rows],
            "pagination": build_pagination(page, limit, total),
        }


class GetUserByIdUseCase:
    def __init__(self, user_repo: UserRepository):
        self.user_repo = user_repo

    def execute(self, user_id: int, prefetched: Optional[models.User] = None) -> dict:
        user = prefetched if prefetched is not None and prefetched.id == user_id else self.user_repo.find_by_id(user_id)
        if not user:
            raise NotFoundError("User not found")
        return user_payload(user)


class UpdateUserUseCase:
    """Update profile fields; DNI and role are immutable."""
    FIELDS = ("email", "first_names", "last_names", "phone", "status")

    def __init__(self, user_repo: UserRepository, user_service: UserService):
        self.user_repo = user_repo
        self.user_service = user_service

    def execute(self, user_id: int, data: dict) -> dict:
        if not self.user_repo.find_by_id(user_id):
            raise NotFoundError("User not found")
        self.user_service.check_immutable_fields(data)
        self.user_service.validate_user_data(data, is_update=True)
        if data.get("email"):
            self.user_service.check_uniqueness(None, data["email"], exclude_id=user_id)
        changes = {k: v for k, v in data.items() if k in self.FIELDS and v is not None}
        for field in ("first_names", "last_names"):
            if field in changes:
                changes[field] = changes[field].strip()
        return user_payload(self.user_repo.update(user_id, changes))


class DeleteUserUseCase:
    """Soft delete: the user is marked inactive."""
    def __init__(self, user_repo: UserRepository):
        self.user_repo = user_repo

    def execute(self, user_id: int) -> dict:
        if not self.user_repo.find_by_id(user_id):
            raise NotFoundError("User not found")
        return user_payload(self.user_repo.soft_delete(user_id))


# evaluations

class ScheduleEvaluationUseCase:
    def __init__(self, evaluation_repo: EvaluationRepository, evaluation_service: EvaluationService):
        self.evaluation_repo = evaluation_repo
        self.evaluation_service = evaluation_service

    def execute(self, data: dict) -> dict:
        self.evaluation_service.validate_evaluation_data(data)
        self.evaluation_service.validate_group_exists(data["group_id"])
        evaluation = self.evaluation_repo.create(models.Evaluation(
            group_id=data["group_id"],
            week_number=data["week_number"],
            evaluation_date=data["evaluation_date"],
            description=(data.get("description") or "").strip() or None,
            duration_minutes=data.get("duration_minutes") or 120,
            status=models.EVALUATION_SCHEDULED,
        ))
        return evaluation.model_dump()


class GetEvaluationsUseCase:
    def __init__(self, evaluation_repo: EvaluationRepository):
        self.evaluation_repo = evaluation_repo

    def execute(self, group_id: Optional[int] = None, status: Optional[str] = None, page: int = 1, limit: int = 10) -> dict:
        page, limit = normalize_paging(page, limit)
        rows, total = self.evaluation_repo.list(group_id=group_id, status=status, page=page, limit=limit)
        return {
            "evaluations": [e.model_dump() for e in rows],
            "pagination": build_pagination(page, limit, total),
        }


class GetEvaluationByIdUseCase:
    def __init__(self, evaluation_repo: EvaluationRepository):
        self.evaluation_repo = evaluation_repo

    def execute(self, evaluation_id: int) -> dict:
        evaluation = self.evaluation_repo.find_by_id(evaluation_id)
        if not evaluation:
            raise NotFoundError("Evaluation not found")
        return evaluation.model_dump()


class UpdateEvaluationUseCase:
    def __init__(self, evaluation_repo: EvaluationRepository, evaluation_service: EvaluationService):
        self.evaluation_repo = evaluation_repo
        self.evaluation_service = evaluation_service

    def execute(self, evaluation_id: int, data: dict) -> dict:
        existing = self.evaluation_repo.find_by_id(evaluation_id)
        if not existing:
            raise NotFoundError("Evaluation not found")
        changes = {k: v for k, v in data.items() if v is not None}
        self.evaluation_service.validate_evaluation_data(changes, is_update=True)
        if changes.get("status", existing.status) != existing.status:
            self.evaluation_service.validate_state_transition(existing.status, changes["status"])
        if changes.get("group_id", existing.group_id) != existing.group_id:
            self.evaluation_service.validate_group_exists(changes["group_id"])
        if "description" in changes:
            changes["description"] = changes["description"].strip() or None
        return self.evaluation_repo.update(evaluation_id, changes).model_dump()


class CancelEvaluationUseCase:
    def __init__(self, evaluation_repo: EvaluationRepository, evaluation_service: EvaluationService):
        self.evaluation_repo = evaluation_repo
        self.evaluation_service = evaluation_service

    def execute(self, evaluation_id: int) -> dict:
        existing = self.evaluation_repo.find_by_id(evaluation_id)
        if not existing:
            raise NotFoundError("Evaluation not found")
        self.evaluation_service.validate_state_transition(existing.status, "CANCELADA")
        return self.evaluation_repo.update(evaluation_id, {"status": "CANCELADA"}).model_dump()


# grades

def _new_grade(data: dict) -> models.Grade:
    return models.Grade(
        evaluation_id=data["evaluation_id"],
        student_id=data["student_id"],
        course_id=data["course_id"],
        score=float(data["score"]),
        notes=(data.get("notes") or "").strip() or None,
    )


class RegisterGradeUseCase:
    def __init__(self, grade_repo: GradeRepository, grade_service: GradeService):
        self.grade_repo = grade_repo
        self.grade_service = grade_service

    def execute(self, data: dict) -> dict:
        self.grade_service.validate_grade_data(data)
        self.grade_service.validate_grade_business_rules(data)
        return self.grade_repo.create(_new_grade(data)).model_dump()


class RegisterBulkGradesUseCase:
    """Validate every grade of one evaluation, then insert them together.

    One invalid item rejects the whole batch.
    """
    def __init__(self, grade_repo: GradeRepository, grade_service: GradeService):
        self.grade_repo = grade_repo
        self.grade_service = grade_service

    def execute(self, evaluation_id: int, items: list) -> dict:
        if not items:
            raise ValidationError("At least one grade is required", {"grades": "At least one grade is required"})
        evaluation = self.grade_service.validate_evaluation_exists(evaluation_id)
        batch, seen = [], set()
        for item in items:
            data = dict(item, evaluation_id=evaluation_id)
            self.grade_service.validate_grade_data(data)
            key = (data["student_id"], data["course_id"])
            if key in seen:
                raise BusinessLogicError("The batch repeats a student and course", "GRADE_DUPLICATE")
            seen.add(key)
            self.grade_service.validate_grade_business_rules(data, evaluation)
            batch.append(_new_grade(data))
        grades = self.grade_repo.create_many(batch)
        return {"evaluation_id": evaluation_id, "created": len(grades), "grades": [g.model_dump() for g in grades]}


class GetGradesUseCase:
    def __init__(self, grade_repo: GradeRepository):
        self.grade_repo = grade_repo

    def execute(self, evaluation_id: Optional[int] = None, student_id: Optional[int] = None, course_id: Optional[int] = None, group_id: Optional[int] = None, page: int = 1, limit: int = 10) -> dict:
        page, limit = normalize_paging(page, limit)
        rows, total = self.grade_repo.list(
            evaluation_id=evaluation_id, student_id=student_id, course_id=course_id, group_id=group_id, page=page, limit=limit,
        )
        return {
            "grades": [g.model_dump() for g in rows],
            "pagination": build_pagination(page, limit, total),
        }


class GetStudentGradesUseCase:
    """A student's grades grouped by evaluation, with averages."""
    def __init__(self, grade_repo: GradeRepository):
        self.grade_repo = grade_repo

    def execute(self, student_id: int, group_id: Optional[int] = None, evaluation_id: Optional[int] = None, course_id: Optional[int] = None) -> dict:
        by_evaluation = {}
        rows = self.grade_repo.by_student(student_id, group_id, evaluation_id, course_id)
        for grade, evaluation, course in rows:
            entry = by_evaluation.setdefault(evaluation.id, {
                "evaluation_id": evaluation.id,
                "week_number": evaluation.week_number,
                "evaluation_date": evaluation.evaluation_date,
                "grades": [],
            })
            entry["grades"].append({
                "grade_id": grade.id,
                "course": {"id": course.id, "name": course.name, "area": course.area},
                "score": grade.score,
                "notes": grade.notes,
            })
        for entry in by_evaluation.values():
            entry["average"] = self.grade_repo.average(student_id, evaluation_id=entry["evaluation_id"])
        return {
            "student_id": student_id,
            "group_id": group_id,
            "general_average": self.grade_repo.average(student_id, group_id),
            "evaluation_average": self.grade_repo.average(student_id, evaluation_id=evaluation_id) if evaluation_id else None,
            "total_grades": len(rows),
            "evaluations": list(by_evaluation.values()),
        }


# attendance

def _new_attendance(data: dict, group_id: int, class_date) -> models.Attendance:
    check_in = data.get("check_in_time")
    return models.Attendance(
        student_id=data["student_id"],
        group_id=group_id,
        class_date=class_date,
        status=data["status"],
        check_in_time=parse_time(check_in) if check_in else None,
        notes=data.get("notes") or None,
    )


def attendance_payload(record: models.Attendance) -> dict:
    out = record.model_dump()
    out["check_in_time"] = record.check_in_time.strftime("%H:%M") if record.check_in_time else None
    return out


def _rate(present: int, late: int, total: int) -> float:
    """Late arrivals count as attended."""
    return round((present + late) / total * 100, 2) if total else 0.0


class RegisterAttendanceUseCase:
    def __init__(self, attendance_repo: AttendanceRepository, attendance_service: AttendanceService):
        self.attendance_repo = attendance_repo
        self.attendance_service = attendance_service

    def execute(self, data: dict) -> dict:
        self.attendance_service.validate_attendance_data(data)
        self.attendance_service.validate_student_enrolled(data["student_id"], data["group_id"])
        self.attendance_service.validate_no_duplicate(data["student_id"], data["group_id"], data["class_date"])
        record = self.attendance_repo.create(_new_attendance(data, data["group_id"], data["class_date"]))
        return attendance_payload(record)


class RegisterBulkAttendanceUseCase:
    """Mark a whole class at once; marks already recorded are skipped."""
    def __init__(self, attendance_repo: AttendanceRepository, attendance_service: AttendanceService):
        self.attendance_repo = attendance_repo
        self.attendance_service = attendance_service

    def execute(self, data: dict) -> dict:
        self.attendance_service.validate_bulk_attendance_data(data)
        for mark in data["marks"]:
            self.attendance_service.validate_student_enrolled(mark["student_id"], data["group_id"])
        created = self.attendance_repo.create_many(
            [_new_attendance(mark, data["group_id"], data["class_date"]) for mark in data["marks"]]
        )
        return {
            "group_id": data["group_id"],
            "class_date": data["class_date"],
            "created": created,
            "total": len(data["marks"]),
        }


class GetAttendancesUseCase:
    def __init__(self, attendance_repo: AttendanceRepository):
        self.attendance_repo = attendance_repo

    def execute(self, group_id: Optional[int] = None, student_id: Optional[int] = None, status: Optional[str] = None, date_from=None, date_to=None, page: int = 1, limit: int = 10) -> dict:
        page, limit = normalize_paging(page, limit)
        rows, total = self.attendance_repo.list(
            group_id=group_id, student_id=student_id, status=status, date_from=date_from, date_to=date_to, page=page, limit=limit,
        )
        return {
            "attendances": [attendance_payload(a) for a in rows],
            "pagination": build_pagination(page, limit, total),
        }


class GetAttendanceSummaryUseCase:
    def __init__(self, attendance_repo: AttendanceRepository):
        self.attendance_repo = attendance_repo

    def by_student(self, student_id: int, group_id: int, date_from=None, date_to=None) -> dict:
        records = self.attendance_repo.for_student(student_id, group_id, date_from, date_to)
        counts = {status: 0 for status in models.ATTENDANCE_STATUSES}
        for record in records:
            counts[record.status] += 1
        return {
            "student_id": student_id,
            "group_id": group_id,
            "total_classes": len(records),
            "present": counts["PRESENTE"],
            "late": counts["TARDANZA"],
            "absent": counts["AUSENTE"],
            "attendance_rate": _rate(counts["PRESENTE"], counts["TARDANZA"], len(records)),
            "attendances": [attendance_payload(r) for r in records],
        }

    def by_group(self, group_id: int, date_from=None, date_to=None) -> list:
        students = {}
        for record, student, user in self.attendance_repo.for_group(group_id, date_from, date_to):
            entry = students.setdefault(student.id, {
                "student_id": student.id,
                "internal_code": student.internal_code,
                "full_name": f"{user.first_names} {user.last_names}",
                "total_classes": 0,
                "present": 0,
                "late": 0,
                "absent": 0,
            })
            entry["total_classes"] += 1
            entry[{"PRESENTE": "present", "TARDANZA": "late", "AUSENTE": "absent"}[record.status]] += 1
        for entry in students.values():
            entry["attendance_rate"] = _rate(entry["present"], entry["late"], entry["total_classes"])
        return list(students.values())


# rankings

class GetGroupRankingUseCase:
    def __init__(self, ranking_service: RankingService, group_repo: GroupRepository):
        self.ranking_service = ranking_service
        self.group_repo = group_repo

    def execute(self, group_id: int, evaluation_id: Optional[int] = None) -> dict:
        if not self.group_repo.find_by_id(group_id):
            raise NotFoundError("Group not found")
        return self.ranking_service.group_ranking(group_id, evaluation_id)


class GetStudentPositionUseCase:
    def __init__(self, ranking_service: RankingService):
        self.ranking_service = ranking_service

    def execute(self, student_id: int, evaluation_id: Optional[int] = None) -> Optional[dict]:
        return self.ranking_service.student_position(student_id, evaluation_id)
