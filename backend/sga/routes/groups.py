"""Group endpoints."""

from typing import Optional

from fastapi import APIRouter, Depends

from ..auth import authenticate, authorize_role
from ..responses import success_response
from ..schemas import GroupCreate, GroupStatusIn, GroupUpdate
from . import provide

router = APIRouter(prefix="/groups", tags=["groups"], dependencies=[Depends(authenticate)])

admin_only = authorize_role("admin")
staff = authorize_role("admin", "docente")


@router.post("", status_code=201, dependencies=[Depends(admin_only)])
def create_group(payload: GroupCreate, use_case=Depends(provide("createGroupUseCase"))):
    return success_response(use_case.execute(payload.model_dump()), "Group created")


@router.get("", dependencies=[Depends(staff)])
def list_groups(
    area: Optional[str] = None,
    modality: Optional[str] = None,
    status: Optional[str] = None,
    page: int = 1,
    limit: int = 10,
    use_case=Depends(provide("getGroupsUseCase")),
):
    result = use_case.execute(area=area, modality=modality, status=status, page=page, limit=limit)
    return success_response(result["groups"], pagination=result["pagination"])


@router.get("/{group_id}", dependencies=[Depends(staff)])
def get_group(group_id: int, use_case=Depends(provide("getGroupByIdUseCase"))):
    return success_response(use_case.execute(group_id))


@router.put("/{group_id}", dependencies=[Depends(admin_only)])
def update_group(group_id: int, payload: GroupUpdate, use_case=Depends(provide("updateGroupUseCase"))):
    return success_response(use_case.execute(group_id, payload.model_dump(exclude_unset=True)), "Group updated")


@router.patch("/{group_id}/status", dependencies=[Depends(admin_only)])
def set_group_status(group_id: int, payload: GroupStatusIn, use_case=Depends(provide("activateDeactivateGroupUseCase"))):
    return success_response(use_case.execute(group_id, payload.status), "Group status updated")
