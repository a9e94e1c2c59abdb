"""Authentication domain models.

- AccountSecurityState: the security-relevant slice of a user record
- AccountMutation: field values a login evaluation asks the store to write
- Decision: AccountGuard output (ALLOW / DENY / LOCKED)
- AuthSession: server-issued bearer session
- LoginOutcome / AuthenticatedContext: what AuthService hands to handlers

All models are frozen pydantic models. Building one from a stored row
validates every required field, so a corrupt row raises ValidationError
instead of turning into a half-filled record.
"""

import math
from datetime import UTC, datetime, timedelta
from enum import StrEnum

from pydantic import BaseModel, Field, field_validator


class Role(StrEnum):
    """Account roles."""

    ADMIN = "admin"
    STAFF = "staff"
    SUPPLIER = "supplier"
    USER = "user"


class DecisionKind(StrEnum):
    """AccountGuard verdicts."""

    ALLOW = "ALLOW"
    DENY = "DENY"
    LOCKED = "LOCKED"


class LoginResult(StrEnum):
    """AuthService.login outcomes."""

    ALLOW = "ALLOW"
    DENY = "DENY"
    LOCKED = "LOCKED"
    INVALID_CREDENTIALS = "INVALID_CREDENTIALS"


def ensure_utc(value: datetime | None) -> datetime | None:
    """Treat naive datetimes as UTC (drivers may drop tzinfo)."""
    if value is None or value.tzinfo is not None:
        return value
    return value.replace(tzinfo=UTC)


def seconds_until(moment: datetime, now: datetime) -> int:
    """Whole seconds from now until moment, rounded up.

    Decreases in one-second steps: two calls less than a second apart can
    return the same value. Use the timedelta for sub-second precision.
    """
    return max(0, math.ceil((moment - now).total_seconds()))


class LockoutPolicy(BaseModel):
    """Throttling thresholds.

    Attributes:
        max_failed_attempts: budget used for attempts_remaining
        short_threshold / short_seconds: first cooldown tier
        long_threshold / long_seconds: second cooldown tier
    """

    max_failed_attempts: int = Field(default=5, gt=0)
    short_threshold: int = Field(default=3, gt=0)
    short_seconds: int = Field(default=60, gt=0)
    long_threshold: int = Field(default=5, gt=0)
    long_seconds: int = Field(default=300, gt=0)

    model_config = {"frozen": True}


class AccountSecurityState(BaseModel):
    """Security fields of one account, as read from the store."""

    user_id: str = Field(min_length=1)
    username: str = Field(min_length=1)
    role: Role
    password_hash: str = Field(min_length=1)
    failed_attempts: int = Field(ge=0)
    last_failed_at: datetime | None = None
    cooldown_until: datetime | None = None

    model_config = {"frozen": True}

    @field_validator("last_failed_at", "cooldown_until")
    @classmethod
    def _as_utc(cls, value: datetime | None) -> datetime | None:
        return ensure_utc(value)

    def active_cooldown(self, now: datetime) -> datetime | None:
        """Return cooldown_until while it is still in the future, else None."""
        if self.cooldown_until is None or now >= self.cooldown_until:
            return None
        return self.cooldown_until


class AccountMutation(BaseModel):
    """Absolute values to write for the three throttling fields."""

    failed_attempts: int = Field(ge=0)
    last_failed_at: datetime | None = None
    cooldown_until: datetime | None = None

    model_config = {"frozen": True}


class Decision(BaseModel):
    """AccountGuard output.

    Attributes:
        kind: ALLOW / DENY / LOCKED
        mutation: fields the caller must persist (None: write nothing)
        attempts_so_far: failed attempts after this one (DENY)
        attempts_remaining: failures left before the long lock (DENY)
        cooldown_until: end of the active cooldown (LOCKED)
        remaining: exact time left until cooldown_until (LOCKED)
        remaining_seconds: remaining rounded up to whole seconds (LOCKED)
        reason: why a new lock was set (LOCKED by this attempt)
    """

    kind: DecisionKind
    mutation: AccountMutation | None = None
    attempts_so_far: int | None = None
    attempts_remaining: int | None = None
    cooldown_until: datetime | None = None
    remaining: timedelta | None = None
    remaining_seconds: int | None = None
    reason: str | None = None

    model_config = {"frozen": True}


class AuthSession(BaseModel):
    """Bearer session. expires_at is fixed at creation."""

    id: str = Field(min_length=1)
    user_id: str = Field(min_length=1)
    created_at: datetime
    expires_at: datetime

    model_config = {"frozen": True}

    @field_validator("created_at", "expires_at")
    @classmethod
    def _as_utc(cls, value: datetime) -> datetime:
        return ensure_utc(value)

    def is_expired(self, now: datetime) -> bool:
        return now >= self.expires_at


class AuthenticatedContext(BaseModel):
    """Identity attached to a request that carried a valid session."""

    session: AuthSession
    user_id: str
    username: str
    role: Role

    model_config = {"frozen": True}


class LoginOutcome(BaseModel):
    """Result of AuthService.login."""

    result: LoginResult
    session: AuthSession | None = None
    account: AccountSecurityState | None = None
    attempts_remaining: int | None = None
    remaining_seconds: int | None = None
    cooldown_until: datetime | None = None

    model_config = {"frozen": True}
