"""Domain models and enums."""

from hardstore.core.domain.auth import (
    AccountMutation,
    AccountSecurityState,
    AuthenticatedContext,
    AuthSession,
    Decision,
    DecisionKind,
    LockoutPolicy,
    LoginOutcome,
    LoginResult,
    Role,
    ensure_utc,
    seconds_until,
)

__all__ = [
    "AccountMutation",
    "AccountSecurityState",
    "AuthenticatedContext",
    "AuthSession",
    "Decision",
    "DecisionKind",
    "LockoutPolicy",
    "LoginOutcome",
    "LoginResult",
    "Role",
    "ensure_utc",
    "seconds_until",
]
