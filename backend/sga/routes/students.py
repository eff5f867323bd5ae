"""Student endpoints.

Auth: create/update/delete admin; list admin and docente; get by id
admin, docente or the student that owns the profile.
"""

from typing import Optional

from fastapi import APIRouter, Depends

from ..auth import OwnershipGrant, authenticate, authorize_owner_or_roles, authorize_role, repository_fetcher
from ..responses import success_response
from ..schemas import StudentCreate, StudentUpdate
from . import provide

router = APIRouter(prefix="/students", tags=["students"], dependencies=[Depends(authenticate)])

admin_only = authorize_role("admin")
staff = authorize_role("admin", "docente")
owner_or_staff = authorize_owner_or_roles(
    repository_fetcher("studentRepository"),
    id_param="student_id",
    message="You do not have permission to view this student",
)


@router.post("", status_code=201, dependencies=[Depends(admin_only)])
def create_student(payload: StudentCreate, use_case=Depends(provide("createStudentUseCase"))):
    return success_response(use_case.execute(payload.model_dump()), "Student created")


@router.get("", dependencies=[Depends(staff)])
def list_students(
    modality: Optional[str] = None,
    search: Optional[str] = None,
    page: int = 1,
    limit: int = 10,
    use_case=Depends(provide("getStudentsUseCase")),
):
    result = use_case.execute(modality=modality, search=search, page=page, limit=limit)
    return success_response(result["students"], pagination=result["pagination"])


@router.get("/{student_id}")
def get_student(
    student_id: int,
    grant: OwnershipGrant = Depends(owner_or_staff),
    use_case=Depends(provide("getStudentByIdUseCase")),
):
    return success_response(use_case.execute(student_id, prefetched=grant.resource))


@router.put("/{student_id}", dependencies=[Depends(admin_only)])
def update_student(student_id: int, payload: StudentUpdate, use_case=Depends(provide("updateStudentUseCase"))):
    return success_response(use_case.execute(student_id, payload.model_dump(exclude_unset=True)), "Student updated")


@router.delete("/{student_id}", dependencies=[Depends(admin_only)])
def delete_student(student_id: int, use_case=Depends(provide("deleteStudentUseCase"))):
    return success_response(use_case.execute(student_id), "Student deactivated")
