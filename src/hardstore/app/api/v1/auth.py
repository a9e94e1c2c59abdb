"""Authentication API endpoints.

Endpoints:
- POST /api/v1/login - Login with username/password
- POST /api/v1/logout - Logout (revoke session)
- GET /api/v1/session - Get current session info
- POST /api/v1/register - Create an account
"""

from datetime import datetime
from typing import Self

from fastapi import APIRouter, Response, status
from pydantic import BaseModel, EmailStr, Field, model_validator

from hardstore.app.api.v1.dependencies import Auth, CurrentUser, SessionToken
from hardstore.app.config import get_settings
from hardstore.app.metrics.collector import LOGIN_ATTEMPTS_TOTAL
from hardstore.core.domain.auth import LoginResult, Role
from hardstore.core.errors import AccountLockedError, InvalidCredentialsError

router = APIRouter(tags=["auth"])


class LoginRequest(BaseModel):
    """Request schema for login."""

    username: str = Field(..., min_length=1)
    password: str = Field(..., min_length=1)


class SessionResponse(BaseModel):
    """Response schema for session info."""

    user_id: str
    username: str
    role: Role
    expires_at: datetime


class RegisterRequest(BaseModel):
    """Request schema for registration.

    Suppliers must state what they supply and how much.
    """

    username: str = Field(..., min_length=1)
    password: str = Field(..., min_length=1)
    confirm_password: str
    role: Role = Role.USER
    first_name: str | None = None
    last_name: str | None = None
    email: EmailStr | None = None
    phone: str | None = Field(default=None, pattern=r"^[0-9]{11}$")
    supply: str | None = None
    supply_quantity: int | None = Field(default=None, gt=0)

    @model_validator(mode="after")
    def _check(self) -> Self:
        if self.password != self.confirm_password:
            raise ValueError("Passwords do not match")
        if self.role == Role.ADMIN:
            raise ValueError("Admin accounts cannot self-register")
        if self.role == Role.SUPPLIER and (not self.supply or not self.supply_quantity):
            raise ValueError("Supply and quantity are required for suppliers")
        return self

    def profile(self) -> dict[str, object]:
        return self.model_dump(
            include={
                "first_name",
                "last_name",
                "email",
                "phone",
                "supply",
                "supply_quantity",
            },
            exclude_none=True,
        )


class RegisterResponse(BaseModel):
    """Response schema for registration."""

    user_id: str
    username: str
    role: Role


@router.post("/login")
async def login(body: LoginRequest, response: Response, auth: Auth) -> SessionResponse:
    """Login with username and password.

    On success, sets a session cookie and returns session info.
    On a wrong password or unknown username, returns 401.
    While the account is in cooldown, returns 429 with Retry-After.
    """
    outcome = await auth.login(body.username, body.password)
    LOGIN_ATTEMPTS_TOTAL.labels(outcome=outcome.result.value).inc()

    if outcome.result == LoginResult.LOCKED:
        raise AccountLockedError(
            retry_after=outcome.remaining_seconds or 0,
            cooldown_until=outcome.cooldown_until,
        )

    settings = get_settings()
    if outcome.result == LoginResult.DENY:
        attempts_remaining = (
            outcome.attempts_remaining
            if settings.security.expose_attempts_remaining
            else None
        )
        raise InvalidCredentialsError(attempts_remaining=attempts_remaining)

    session = outcome.session
    account = outcome.account
    if outcome.result != LoginResult.ALLOW or session is None or account is None:
        raise InvalidCredentialsError()

    response.set_cookie(
        key=settings.cookie.name,
        value=session.id,
        httponly=True,
        samesite=settings.cookie.samesite,
        secure=settings.cookie.secure,
        path="/",
        max_age=auth.sessions.ttl_seconds,
    )

    return SessionResponse(
        user_id=account.user_id,
        username=account.username,
        role=account.role,
        expires_at=session.expires_at,
    )


@router.post("/logout")
async def logout(response: Response, auth: Auth, token: SessionToken) -> dict[str, str]:
    """Logout by revoking session and clearing cookie.

    Always succeeds (even if no session cookie present).
    """
    await auth.logout(token)

    response.delete_cookie(key=get_settings().cookie.name, path="/")

    return {"message": "Logged out"}


@router.get("/session")
async def get_session_info(user: CurrentUser) -> SessionResponse:
    """Get current session info.

    Returns 401 if not authenticated or session is invalid.
    """
    return SessionResponse(
        user_id=user.user_id,
        username=user.username,
        role=user.role,
        expires_at=user.session.expires_at,
    )


@router.post("/register", status_code=status.HTTP_201_CREATED)
async def register(body: RegisterRequest, auth: Auth) -> RegisterResponse:
    """Create an account. Returns 409 if the username is taken."""
    account = await auth.register(
        body.username, body.password, body.role, body.profile()
    )
    return RegisterResponse(
        user_id=account.user_id, username=account.username, role=account.role
    )
