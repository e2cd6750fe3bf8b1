"""Request dependencies: settings, matcher and HTTP Basic auth."""

import secrets
from typing import Optional

from fastapi import Depends, HTTPException, Request, status
from fastapi.security import HTTPBasic, HTTPBasicCredentials

from core.config import Settings
from tenant_matcher import TenantNameMatcher


_basic = HTTPBasic(auto_error=False)


def get_settings(request: Request) -> Settings:
    return request.app.state.settings


def get_matcher(request: Request) -> TenantNameMatcher:
    """The matcher built at startup (or by the last reload)."""
    return request.app.state.matcher


def require_user(
    settings: Settings = Depends(get_settings),
    credentials: Optional[HTTPBasicCredentials] = Depends(_basic),
) -> Optional[str]:
    """Check Basic credentials against TENANCY_USERS_JSON.

    Auth is disabled when no users are configured.
    """
    if not settings.auth_enabled:
        return None

    if credentials is not None:
        for user, password in settings.users:
            user_ok = secrets.compare_digest(credentials.username.encode("utf-8"), user.encode("utf-8"))
            password_ok = secrets.compare_digest(credentials.password.encode("utf-8"), password.encode("utf-8"))
            if user_ok and password_ok:
                return user

    raise HTTPException(
        status_code=status.HTTP_401_UNAUTHORIZED,
        detail="Authentication required",
        headers={"WWW-Authenticate": 'Basic realm="Restricted"'},
    )
