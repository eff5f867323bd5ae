"""Grade endpoints.

Auth: register and list admin and docente; a student's grades admin,
docente or the student themself.
"""

from typing import Optional

from fastapi import APIRouter, Depends

from ..auth import authenticate, authorize_owner_or_roles, authorize_role, repository_fetcher
from ..responses import success_response
from ..schemas import GradeBulkIn, GradeCreate
from . import provide

router = APIRouter(prefix="/grades", tags=["grades"], dependencies=[Depends(authenticate)])

staff = authorize_role("admin", "docente")
owner_or_staff = authorize_owner_or_roles(
    repository_fetcher("studentRepository"),
    id_param="student_id",
    message="You can only view your own grades",
)


@router.post("", status_code=201, dependencies=[Depends(staff)])
def register_grade(payload: GradeCreate, use_case=Depends(provide("registerGradeUseCase"))):
    return success_response(use_case.execute(payload.model_dump()), "Grade registered")


@router.post("/bulk", status_code=201, dependencies=[Depends(staff)])
def register_bulk_grades(payload: GradeBulkIn, use_case=Depends(provide("registerBulkGradesUseCase"))):
    items = [item.model_dump() for item in payload.grades]
    result = use_case.execute(payload.evaluation_id, items)
    return success_response(result, f"{result['created']} grades registered")


@router.get("", dependencies=[Depends(staff)])
def list_grades(
    evaluation_id: Optional[int] = None,
    student_id: Optional[int] = None,
    course_id: Optional[int] = None,
    group_id: Optional[int] = None,
    page: int = 1,
    limit: int = 10,
    use_case=Depends(provide("getGradesUseCase")),
):
    result = use_case.execute(
        evaluation_id=evaluation_id, student_id=student_id, course_id=course_id, group_id=group_id, page=page, limit=limit,
    )
    return success_response(result["grades"], pagination=result["pagination"])


@router.get("/student/{student_id}", dependencies=[Depends(owner_or_staff)])
def student_grades(
    student_id: int,
    group_id: Optional[int] = None,
    evaluation_id: Optional[int] = None,
    course_id: Optional[int] = None,
    use_case=Depends(provide("getStudentGradesUseCase")),
):
    return success_response(use_case.execute(student_id, group_id=group_id, evaluation_id=evaluation_id, course_id=course_id))
