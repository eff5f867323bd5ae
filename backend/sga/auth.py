"""Authentication and authorization dependencies.

This module provides the FastAPI dependencies that guard the API:

- `authenticate` validates the `Authorization: Bearer <token>` header,
  verifies the token through the container's `authService` and attaches
  the resulting `Principal` to `request.state.user`.
- `authorize_role(*roles)` is a pure check over the attached principal.
- `authorize_owner_or_roles(fetcher, ...)` grants privileged roles
  unconditional access and lets owner roles through only for
  resources it owns, handing the fetched resource forward.

Every failure raises a typed `sga.errors` exception; the error boundary
in `sga.error_handlers` turns them into responses.
"""

import logging
from dataclasses import dataclass, field
from typing import Any, Callable, Optional, Sequence

from fastapi import Request
from sqlalchemy.exc import SQLAlchemyError

from . import models
from .container import Container
from .errors import AuthError, ForbiddenError

logger = logging.getLogger("sga.auth")

Fetcher = Callable[[Container, int], Optional[Any]]


@dataclass(frozen=True)
class Principal:
    """Identity and role decoded from a verified token, scoped to one request."""
    user_id: int
    role: str
    claims: dict = field(default_factory=dict)

    @classmethod
    def from_claims(cls, claims: dict) -> "Principal":
        return cls(user_id=claims["usuarioId"], role=claims["rol"], claims=dict(claims))

    @property
    def is_temporary(self) -> bool:
        return self.claims.get("type") == "temp"


@dataclass(frozen=True)
class OwnershipGrant:
    """Outcome of an ownership check.

    `resource` is the row loaded for the owner check, or `None` when a
    privileged role was let through without a lookup.
    """
    principal: Principal
    resource: Optional[Any] = None


def get_container(request: Request) -> Container:
    return request.app.state.container


def parse_bearer(header: Optional[str]) -> str:
    """Extract the token from an `Authorization` header value."""
    if not header:
        raise AuthError("Authentication token required", "AUTH_TOKEN_REQUIRED")
    parts = header.split(" ")
    if len(parts) != 2 or parts[0] != "Bearer" or not parts[1]:
        raise AuthError("Invalid token format. Use: Bearer <token>", "AUTH_TOKEN_INVALID")
    return parts[1]


def authenticate(request: Request) -> Principal:
    """FastAPI dependency that returns the authenticated principal.

    Raises `AuthError` for a missing or malformed header and lets the
    auth service's `AuthError` (expired/invalid signature) propagate.
    """
    token = parse_bearer(request.headers.get("Authorization"))
    claims = get_container(request).resolve("authService").verify_token(token)
    principal = Principal.from_claims(claims)
    request.state.user = principal
    return principal


def current_principal(request: Request) -> Principal:
    """Return the principal attached upstream or fail closed."""
    principal = getattr(request.state, "user", None)
    if principal is None:
        raise AuthError("User is not authenticated", "AUTH_TOKEN_REQUIRED")
    return principal


def authorize_role(*allowed_roles: str) -> Callable[[Request], Principal]:
    """Build a dependency admitting only principals whose role is in `allowed_roles`.

    Temporary (password-change) tokens are never admitted here.
    """
    def check_role(request: Request) -> Principal:
        principal = current_principal(request)
        if principal.is_temporary:
            raise ForbiddenError("Password change required before using this resource")
        if principal.role not in allowed_roles:
            raise ForbiddenError("You do not have permission to perform this operation")
        return principal

    check_role.allowed_roles = tuple(allowed_roles)
    return check_role


def repository_fetcher(service_name: str) -> Fetcher:
    """Fetch-by-id through a repository registered in the container."""
    def fetch(container: Container, resource_id: int):
        return container.resolve(service_name).find_by_id(resource_id)
    return fetch


def authorize_owner_or_roles(
    fetcher: Fetcher,
    privileged_roles: Sequence[str] = (models.ROLE_ADMIN, models.ROLE_TEACHER),
    owner_roles: Sequence[str] = (models.ROLE_STUDENT,),
    owner_field: str = "user_id",
    id_param: str = "id",
    message: str = "You do not have permission to view this resource",
) -> Callable[[Request], OwnershipGrant]:
    """Build a dependency for single-resource routes keyed by a path id.

    Privileged roles pass without a lookup. Owner roles pass only
    when `getattr(resource, owner_field)` equals the principal's user id.
    Any other outcome, including a failed lookup, is forbidden.
    """
    def check_owner(request: Request) -> OwnershipGrant:
        principal = current_principal(request)
        if principal.is_temporary:
            raise ForbiddenError("Password change required before using this resource")
        if principal.role in privileged_roles:
            return OwnershipGrant(principal)
        if principal.role in owner_roles:
            try:
                resource_id = int(request.path_params[id_param])
                resource = fetcher(get_container(request), resource_id)
            except (KeyError, ValueError, SQLAlchemyError) as exc:
                logger.warning("ownership_lookup_failed path=%s error=%s", request.url.path, exc)
                resource = None
            if resource is not None and getattr(resource, owner_field, None) == principal.user_id:
                return OwnershipGrant(principal, resource)
        raise ForbiddenError(message)

    return check_owner
