"""User endpoints.

Auth: create/list/delete admin; get and update by id admin or the user
themself.
"""

from typing import Optional

from fastapi import APIRouter, Depends

from .. import models
from ..auth import OwnershipGrant, authenticate, authorize_owner_or_roles, authorize_role, repository_fetcher
from ..errors import ForbiddenError
from ..responses import success_response
from ..schemas import UserCreate, UserUpdate
from . import provide

router = APIRouter(prefix="/users", tags=["users"], dependencies=[Depends(authenticate)])

admin_only = authorize_role("admin")
admin_or_self = authorize_owner_or_roles(
    repository_fetcher("userRepository"),
    privileged_roles=(models.ROLE_ADMIN,),
    owner_roles=(models.ROLE_TEACHER, models.ROLE_STUDENT),
    owner_field="id",
    id_param="user_id",
    message="You can only access your own user account",
)


@router.post("", status_code=201, dependencies=[Depends(admin_only)])
def create_user(payload: UserCreate, use_case=Depends(provide("registerUserUseCase"))):
    return success_response(use_case.execute(payload.model_dump()), "User created")


@router.get("", dependencies=[Depends(admin_only)])
def list_users(
    role: Optional[str] = None,
    status: Optional[str] = None,
    search: Optional[str] = None,
    page: int = 1,
    limit: int = 10,
    use_case=Depends(provide("getUsersUseCase")),
):
    result = use_case.execute(role=role, status=status, search=search, page=page, limit=limit)
    return success_response(result["users"], pagination=result["pagination"])


@router.get("/{user_id}")
def get_user(
    user_id: int,
    grant: OwnershipGrant = Depends(admin_or_self),
    use_case=Depends(provide("getUserByIdUseCase")),
):
    return success_response(use_case.execute(user_id, prefetched=grant.resource))


@router.put("/{user_id}")
def update_user(
    user_id: int,
    payload: UserUpdate,
    grant: OwnershipGrant = Depends(admin_or_self),
    use_case=Depends(provide("updateUserUseCase")),
):
    data = payload.model_dump(exclude_unset=True)
    if "status" in data and grant.principal.role != models.ROLE_ADMIN:
        raise ForbiddenError("Only administrators can change a user's status")
    return success_response(use_case.execute(user_id, data), "User updated")


@router.delete("/{user_id}", dependencies=[Depends(admin_only)])
def delete_user(user_id: int, use_case=Depends(provide("deleteUserUseCase"))):
    return success_response(use_case.execute(user_id), "User deactivated")
