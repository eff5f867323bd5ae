"""Attendance endpoints.

Auth: marking, listing and group summaries admin and docente; a
student's summary admin, docente or the student themself.
"""

from datetime import date
from typing import Optional

from fastapi import APIRouter, Depends

from ..auth import authenticate, authorize_owner_or_roles, authorize_role, repository_fetcher
from ..errors import ValidationError
from ..responses import success_response
from ..schemas import AttendanceBulkIn, AttendanceCreate
from . import provide

router = APIRouter(prefix="/attendances", tags=["attendances"], dependencies=[Depends(authenticate)])

staff = authorize_role("admin", "docente")
owner_or_staff = authorize_owner_or_roles(
    repository_fetcher("studentRepository"),
    id_param="student_id",
    message="You can only view your own attendance",
)


@router.post("", status_code=201, dependencies=[Depends(staff)])
def register_attendance(payload: AttendanceCreate, use_case=Depends(provide("registerAttendanceUseCase"))):
    return success_response(use_case.execute(payload.model_dump()), "Attendance registered")


@router.post("/bulk", status_code=201, dependencies=[Depends(staff)])
def register_bulk_attendance(payload: AttendanceBulkIn, use_case=Depends(provide("registerBulkAttendanceUseCase"))):
    data = payload.model_dump()
    result = use_case.execute(data)
    return success_response(result, f"{result['created']} of {result['total']} marks registered")


@router.get("", dependencies=[Depends(staff)])
def list_attendances(
    group_id: Optional[int] = None,
    student_id: Optional[int] = None,
    status: Optional[str] = None,
    date_from: Optional[date] = None,
    date_to: Optional[date] = None,
    page: int = 1,
    limit: int = 10,
    use_case=Depends(provide("getAttendancesUseCase")),
):
    result = use_case.execute(
        group_id=group_id, student_id=student_id, status=status, date_from=date_from, date_to=date_to, page=page, limit=limit,
    )
    return success_response(result["attendances"], pagination=result["pagination"])


@router.get("/summary/student/{student_id}", dependencies=[Depends(owner_or_staff)])
def student_summary(
    student_id: int,
    group_id: Optional[int] = None,
    date_from: Optional[date] = None,
    date_to: Optional[date] = None,
    use_case=Depends(provide("getAttendanceSummaryUseCase")),
):
    if group_id is None:
        raise ValidationError("Validation failed", {"group_id": "Group id is required"})
    return success_response(use_case.by_student(student_id, group_id, date_from, date_to))


@router.get("/summary/group/{group_id}", dependencies=[Depends(staff)])
def group_summary(
    group_id: int,
    date_from: Optional[date] = None,
    date_to: Optional[date] = None,
    use_case=Depends(provide("getAttendanceSummaryUseCase")),
):
    return success_response(use_case.by_group(group_id, date_from, date_to))
