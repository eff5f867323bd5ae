"""Dependency wiring.

`configure_dependencies` populates a `Container` with the engine,
repositories, services, use-cases and the health controller. It runs
once inside `create_app()` before any request is served; `verify_wiring`
then resolves every singleton so a broken registration aborts startup
instead of surfacing at request time.
"""

import time
from functools import partial

from . import repositories, services, use_cases
from .config import Settings
from .container import Container
from .database import build_engine, ping_database
from .health import HealthController

REPOSITORIES = {
    "userRepository": repositories.UserRepository,
    "studentRepository": repositories.StudentRepository,
    "courseRepository": repositories.CourseRepository,
    "groupRepository": repositories.GroupRepository,
    "enrollmentRepository": repositories.EnrollmentRepository,
    "evaluationRepository": repositories.EvaluationRepository,
    "gradeRepository": repositories.GradeRepository,
    "attendanceRepository": repositories.AttendanceRepository,
}

# use-case name -> (class, names of the constructor dependencies)
USE_CASES = {
    "createStudentUseCase": (use_cases.CreateStudentUseCase, ("studentRepository", "studentService")),
    "getStudentsUseCase": (use_cases.GetStudentsUseCase, ("studentRepository",)),
    "getStudentByIdUseCase": (use_cases.GetStudentByIdUseCase, ("studentRepository", "userRepository")),
    "updateStudentUseCase": (use_cases.UpdateStudentUseCase, ("studentRepository", "studentService")),
    "deleteStudentUseCase": (use_cases.DeleteStudentUseCase, ("studentRepository", "userRepository")),
    "createCourseUseCase": (use_cases.CreateCourseUseCase, ("courseRepository", "courseService")),
    "getCoursesUseCase": (use_cases.GetCoursesUseCase, ("courseRepository",)),
    "getCourseByIdUseCase": (use_cases.GetCourseByIdUseCase, ("courseRepository",)),
    "updateCourseUseCase": (use_cases.UpdateCourseUseCase, ("courseRepository", "courseService")),
    "deleteCourseUseCase": (use_cases.DeleteCourseUseCase, ("courseRepository",)),
    "createGroupUseCase": (use_cases.CreateGroupUseCase, ("groupRepository", "groupService")),
    "getGroupsUseCase": (use_cases.GetGroupsUseCase, ("groupRepository",)),
    "getGroupByIdUseCase": (use_cases.GetGroupByIdUseCase, ("groupRepository",)),
    "updateGroupUseCase": (use_cases.UpdateGroupUseCase, ("groupRepository", "groupService")),
    "activateDeactivateGroupUseCase": (use_cases.ActivateDeactivateGroupUseCase, ("groupRepository",)),
    "enrollStudentUseCase": (use_cases.EnrollStudentUseCase, ("enrollmentRepository", "enrollmentService")),
    "getEnrollmentsUseCase": (use_cases.GetEnrollmentsUseCase, ("enrollmentRepository",)),
    "withdrawStudentUseCase": (use_cases.WithdrawStudentUseCase, ("enrollmentRepository", "enrollmentService")),
    "registerUserUseCase": (use_cases.RegisterUserUseCase, ("userRepository", "userService")),
    "getUsersUseCase": (use_cases.GetUsersUseCase, ("userRepository",)),
    "getUserByIdUseCase": (use_cases.GetUserByIdUseCase, ("userRepository",)),
    "updateUserUseCase": (use_cases.UpdateUserUseCase, ("userRepository", "userService")),
    "deleteUserUseCase": (use_cases.DeleteUserUseCase, ("userRepository",)),
    "scheduleEvaluationUseCase": (use_cases.ScheduleEvaluationUseCase, ("evaluationRepository", "evaluationService")),
    "getEvaluationsUseCase": (use_cases.GetEvaluationsUseCase, ("evaluationRepository",)),
    "getEvaluationByIdUseCase": (use_cases.GetEvaluationByIdUseCase, ("evaluationRepository",)),
    "updateEvaluationUseCase": (use_cases.UpdateEvaluationUseCase, ("evaluationRepository", "evaluationService")),
    "cancelEvaluationUseCase": (use_cases.CancelEvaluationUseCase, ("evaluationRepository", "evaluationService")),
    "registerGradeUseCase": (use_cases.RegisterGradeUseCase, ("gradeRepository", "gradeService")),
    "registerBulkGradesUseCase": (use_cases.RegisterBulkGradesUseCase, ("gradeRepository", "gradeService")),
    "getGradesUseCase": (use_cases.GetGradesUseCase, ("gradeRepository",)),
    "getStudentGradesUseCase": (use_cases.GetStudentGradesUseCase, ("gradeRepository",)),
    "registerAttendanceUseCase": (use_cases.RegisterAttendanceUseCase, ("attendanceRepository", "attendanceService")),
    "registerBulkAttendanceUseCase": (use_cases.RegisterBulkAttendanceUseCase, ("attendanceRepository", "attendanceService")),
    "getAttendancesUseCase": (use_cases.GetAttendancesUseCase, ("attendanceRepository",)),
    "getAttendanceSummaryUseCase": (use_cases.GetAttendanceSummaryUseCase, ("attendanceRepository",)),
    "getGroupRankingUseCase": (use_cases.GetGroupRankingUseCase, ("rankingService", "groupRepository")),
    "getStudentPositionUseCase": (use_cases.GetStudentPositionUseCase, ("rankingService",)),
}


def _build(cls, dependency_names, c: Container):
    return cls(*(c.resolve(name) for name in dependency_names))


def configure_dependencies(container: Container, settings: Settings, engine=None) -> Container:
    """Register every service on `container` and return it.

    Passing `engine` skips building one from `settings.DATABASE_URL`
    (tests use this to share an engine).
    """
    container.singleton("settings", lambda c: settings)
    if engine is not None:
        container.singleton("engine", lambda c: engine)
    else:
        container.singleton("engine", lambda c: build_engine(settings.DATABASE_URL))

    for name, cls in REPOSITORIES.items():
        container.singleton(name, partial(_build, cls, ("engine",)))

    container.singleton("authService", lambda c: services.AuthService(c.resolve("userRepository"), c.resolve("settings")))
    container.singleton("studentService", lambda c: services.StudentService(c.resolve("studentRepository"), c.resolve("userRepository")))
    container.singleton("courseService", lambda c: services.CourseService())
    container.singleton("groupService", lambda c: services.GroupService(c.resolve("groupRepository")))
    container.singleton("enrollmentService", lambda c: services.EnrollmentService(
        c.resolve("enrollmentRepository"),
        c.resolve("groupRepository"),
        c.resolve("studentRepository"),
    ))
    container.singleton("userService", lambda c: services.UserService(c.resolve("userRepository")))
    container.singleton("evaluationService", lambda c: services.EvaluationService(c.resolve("groupRepository")))
    container.singleton("gradeService", lambda c: services.GradeService(
        c.resolve("gradeRepository"),
        c.resolve("enrollmentRepository"),
        c.resolve("evaluationRepository"),
        c.resolve("courseRepository"),
        c.resolve("groupRepository"),
    ))
    container.singleton("attendanceService", lambda c: services.AttendanceService(c.resolve("attendanceRepository"), c.resolve("enrollmentRepository")))
    container.singleton("rankingService", lambda c: services.RankingService(c.resolve("gradeRepository"), c.resolve("enrollmentRepository")))

    for name, (cls, deps) in USE_CASES.items():
        container.singleton(name, partial(_build, cls, deps))

    container.singleton("startedAt", lambda c: time.monotonic())
    container.singleton("dbProbe", lambda c: partial(ping_database, c.resolve("engine")))
    # controllers are transient
    container.register("healthController", lambda c: HealthController(
        c.resolve("dbProbe"),
        environment=settings.ENV,
        version=settings.APP_VERSION,
        started_at=c.resolve("startedAt"),
    ))
    return container


def verify_wiring(container: Container, names) -> None:
    """Resolve each name once; raises `ServiceNotFoundError` on a gap."""
    for name in names:
        container.resolve(name)
