"""
FastAPI dependencies: configuration, service wiring, authentication and
role checks.

Role checks consult the access policy exactly once per request, before the
route body runs. Tests replace `get_services` through
`app.dependency_overrides`.
"""

import logging
from dataclasses import dataclass
from functools import lru_cache
from typing import Callable, Optional

from fastapi import Depends, Query
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer

from domain.access_policy import Permission, is_permitted
from domain.errors import AuthenticationError, NotFoundError, PermissionDeniedError
from domain.user import User
from services.container import RegistryServices, build_services
from services.settings import Settings

logger = logging.getLogger(__name__)

_bearer = HTTPBearer(auto_error=False)


@lru_cache(maxsize=1)
def get_settings() -> Settings:
    return Settings.from_env()


@lru_cache(maxsize=1)
def _default_services() -> RegistryServices:
    return build_services(get_settings())


def get_services() -> RegistryServices:
    return _default_services()


def get_current_user(
    credentials: Optional[HTTPAuthorizationCredentials] = Depends(_bearer),
    services: RegistryServices = Depends(get_services),
) -> User:
    """Resolve the bearer token to a stored user."""
    if credentials is None or not credentials.credentials:
        raise AuthenticationError("Access token is required")

    claims = services.auth.verify_token(credentials.credentials)
    try:
        return services.auth.get_profile(claims.user_id)
    except NotFoundError:
        raise AuthenticationError("User not found") from None


def require_permission(permission: Permission) -> Callable[..., User]:
    """Dependency factory: the current user, if their role grants `permission`."""

    def checker(user: User = Depends(get_current_user)) -> User:
        if not is_permitted(user.role, permission):
            logger.warning(
                "Denied %s to user %s with role %s",
                permission.value,
                user.email,
                user.role.value,
            )
            raise PermissionDeniedError("Insufficient permissions")
        return user

    return checker


@dataclass(frozen=True)
class PageParams:
    page: int
    page_size: int
    sort_by: Optional[str]
    sort_order: Optional[str]


def get_page_params(
    page: int = Query(1, ge=1, description="Page number, starting at 1"),
    limit: int = Query(10, ge=1, description="Items per page"),
    sort_by: Optional[str] = Query(None, description="Sort field; unknown fields use the default"),
    sort_order: Optional[str] = Query(None, description="ASC or DESC"),
    services: RegistryServices = Depends(get_services),
) -> PageParams:
    return PageParams(
        page=page,
        page_size=min(limit, services.settings.max_page_size),
        sort_by=sort_by,
        sort_order=sort_order,
    )


__all__ = [
    "PageParams",
    "get_current_user",
    "get_page_params",
    "get_services",
    "get_settings",
    "require_permission",
]
