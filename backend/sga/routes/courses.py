"""Course endpoints: admin writes, admin and docente read."""

from typing import Optional

from fastapi import APIRouter, Depends

from ..auth import authenticate, authorize_role
from ..responses import success_response
from ..schemas import CourseCreate, CourseUpdate
from . import provide

router = APIRouter(prefix="/courses", tags=["courses"], dependencies=[Depends(authenticate)])

admin_only = authorize_role("admin")
staff = authorize_role("admin", "docente")


@router.post("", status_code=201, dependencies=[Depends(admin_only)])
def create_course(payload: CourseCreate, use_case=Depends(provide("createCourseUseCase"))):
    return success_response(use_case.execute(payload.model_dump()), "Course created")


@router.get("", dependencies=[Depends(staff)])
def list_courses(
    area: Optional[str] = None,
    status: Optional[str] = None,
    search: Optional[str] = None,
    page: int = 1,
    limit: int = 10,
    use_case=Depends(provide("getCoursesUseCase")),
):
    result = use_case.execute(area=area, status=status, search=search, page=page, limit=limit)
    return success_response(result["courses"], pagination=result["pagination"])


@router.get("/{course_id}", dependencies=[Depends(staff)])
def get_course(course_id: int, use_case=Depends(provide("getCourseByIdUseCase"))):
    return success_response(use_case.execute(course_id))


@router.put("/{course_id}", dependencies=[Depends(admin_only)])
def update_course(course_id: int, payload: CourseUpdate, use_case=Depends(provide("updateCourseUseCase"))):
    return success_response(use_case.execute(course_id, payload.model_dump(exclude_unset=True)), "Course updated")


@router.delete("/{course_id}", dependencies=[Depends(admin_only)])
def delete_course(course_id: int, use_case=Depends(provide("deleteCourseUseCase"))):
    return success_response(use_case.execute(course_id), "Course deactivated")
