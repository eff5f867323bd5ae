"""Enrollment endpoints: enroll, list, withdraw."""

from typing import Optional

from fastapi import APIRouter, Depends

from ..auth import authenticate, authorize_role
from ..responses import success_response
from ..schemas import EnrollmentCreate, WithdrawIn
from . import provide

router = APIRouter(prefix="/enrollments", tags=["enrollments"], dependencies=[Depends(authenticate)])

admin_only = authorize_role("admin")
staff = authorize_role("admin", "docente")


@router.post("", status_code=201, dependencies=[Depends(admin_only)])
def enroll_student(payload: EnrollmentCreate, use_case=Depends(provide("enrollStudentUseCase"))):
    return success_response(use_case.execute(payload.model_dump()), "Student enrolled")


@router.get("", dependencies=[Depends(staff)])
def list_enrollments(
    group_id: Optional[int] = None,
    student_id: Optional[int] = None,
    status: Optional[str] = None,
    page: int = 1,
    limit: int = 10,
    use_case=Depends(provide("getEnrollmentsUseCase")),
):
    result = use_case.execute(group_id=group_id, student_id=student_id, status=status, page=page, limit=limit)
    return success_response(result["enrollments"], pagination=result["pagination"])


@router.patch("/{enrollment_id}/withdraw", dependencies=[Depends(admin_only)])
def withdraw_student(enrollment_id: int, payload: WithdrawIn, use_case=Depends(provide("withdrawStudentUseCase"))):
    return success_response(use_case.execute(enrollment_id, payload.reason), "Student withdrawn")
