"""Authentication endpoints: login, token refresh, password change.

`/auth/register` is admin-only; it creates the account with the DNI as
the initial password.
"""

from fastapi import APIRouter, Depends

from ..auth import Principal, authenticate, authorize_role
from ..models import ROLES
from ..responses import success_response
from ..schemas import ChangePasswordIn, LoginIn, RefreshTokenIn, UserCreate
from ..services import AuthService
from . import provide

router = APIRouter(prefix="/auth", tags=["auth"])


@router.post("/login")
def login(payload: LoginIn, auth: AuthService = Depends(provide("authService"))):
    """Authenticate with DNI or e-mail and return access + refresh tokens.

    Users that must change their password get `requiresPasswordChange`
    and a short-lived `tempToken` instead.
    """
    result = auth.login(payload.identifier, payload.password)
    return success_response(result, "Login successful")


@router.post("/refresh-token")
def refresh_token(payload: RefreshTokenIn, auth: AuthService = Depends(provide("authService"))):
    return success_response(auth.refresh_token(payload.refresh_token))


@router.post("/change-password")
def change_password(
    payload: ChangePasswordIn,
    principal: Principal = Depends(authenticate),
    auth: AuthService = Depends(provide("authService")),
):
    """Set a new password; accepts the temporary token issued at login."""
    result = auth.change_password_first_login(principal.user_id, payload.new_password)
    return success_response(result, result["message"])


@router.get("/me", dependencies=[Depends(authenticate)])
def me(principal: Principal = Depends(authorize_role(*ROLES))):
    return success_response({"usuarioId": principal.user_id, "rol": principal.role, "dni": principal.claims.get("dni")})


@router.post("/register", status_code=201, dependencies=[Depends(authenticate), Depends(authorize_role("admin"))])
def register(payload: UserCreate, use_case=Depends(provide("registerUserUseCase"))):
    return success_response(use_case.execute(payload.model_dump()), "User registered")
