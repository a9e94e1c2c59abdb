"""API v1 dependencies for hardstore.

Contains shared dependencies for API endpoints.
"""

from collections.abc import Awaitable, Callable
from typing import Annotated

from fastapi import Depends, Request
from sqlalchemy.ext.asyncio import AsyncSession

from hardstore.adapters.store import SqlAccountStore, SqlSessionStore
from hardstore.app.config import get_settings
from hardstore.app.logging import set_user_context
from hardstore.core.domain.auth import AuthenticatedContext, Role
from hardstore.core.errors import ForbiddenError, UnauthorizedError
from hardstore.infra import get_session
from hardstore.services.auth_service import AuthService, policy_from_config
from hardstore.services.session_service import SessionService

DbSession = Annotated[AsyncSession, Depends(get_session)]


def get_auth_service(db: DbSession) -> AuthService:
    """Build a request-scoped AuthService over the SQL stores."""
    security = get_settings().security
    sessions = SessionService(SqlSessionStore(db), ttl_seconds=security.session_ttl)
    return AuthService(
        SqlAccountStore(db),
        sessions,
        policy=policy_from_config(security),
        cas_max_retries=security.cas_max_retries,
    )


Auth = Annotated[AuthService, Depends(get_auth_service)]


def get_session_token(request: Request) -> str | None:
    """Read the session cookie (name from COOKIE_NAME)."""
    return request.cookies.get(get_settings().cookie.name)


SessionToken = Annotated[str | None, Depends(get_session_token)]


async def get_current_user(auth: Auth, token: SessionToken) -> AuthenticatedContext:
    """Get current authenticated user from session cookie.

    Raises:
        UnauthorizedError: If no session cookie or session is invalid/expired
    """
    context = await auth.check_session(token)
    if context is None:
        raise UnauthorizedError()
    set_user_context(context.user_id, context.username)
    return context


CurrentUser = Annotated[AuthenticatedContext, Depends(get_current_user)]


def require_role(
    *roles: Role,
) -> Callable[[AuthenticatedContext], Awaitable[AuthenticatedContext]]:
    """Dependency factory restricting an endpoint to the given roles."""

    async def checker(user: CurrentUser) -> AuthenticatedContext:
        if user.role not in roles:
            raise ForbiddenError("Access denied")
        return user

    return checker


AdminUser = Annotated[AuthenticatedContext, Depends(require_role(Role.ADMIN))]
