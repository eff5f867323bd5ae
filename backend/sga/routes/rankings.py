"""Ranking endpoints.

Auth: group rankings admin and docente; a student's own position admin,
docente or the student themself.
"""

from typing import Optional

from fastapi import APIRouter, Depends

from ..auth import authenticate, authorize_owner_or_roles, authorize_role, repository_fetcher
from ..responses import success_response
from . import provide

router = APIRouter(prefix="/rankings", tags=["rankings"], dependencies=[Depends(authenticate)])

staff = authorize_role("admin", "docente")
owner_or_staff = authorize_owner_or_roles(
    repository_fetcher("studentRepository"),
    id_param="student_id",
    message="You can only view your own ranking position",
)


@router.get("/group/{group_id}", dependencies=[Depends(staff)])
def group_ranking(group_id: int, evaluation_id: Optional[int] = None, use_case=Depends(provide("getGroupRankingUseCase"))):
    return success_response(use_case.execute(group_id, evaluation_id))


@router.get("/student/{student_id}", dependencies=[Depends(owner_or_staff)])
def student_position(student_id: int, evaluation_id: Optional[int] = None, use_case=Depends(provide("getStudentPositionUseCase"))):
    position = use_case.execute(student_id, evaluation_id)
    if position is None:
        return success_response(None, "Student has no active enrollment")
    return success_response(position)
