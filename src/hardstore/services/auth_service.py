"""Authentication orchestration for route handlers.

Ties the pieces together:
- login: AccountStore lookup → password check → AccountGuard → CAS write
  → SessionService.create on ALLOW
- check_session / logout: thin wrappers over SessionService
- register / unlock / reset_password: account management

Login state lives in the store only. Each failed attempt is written with a
compare-and-swap against the state it was evaluated on; a lost race is
re-read and re-evaluated so two concurrent failures never both count
from the same value.
"""

import logging

from hardstore.app.config import SecurityConfig
from hardstore.core.domain.auth import (
    AccountSecurityState,
    AuthenticatedContext,
    DecisionKind,
    LockoutPolicy,
    LoginOutcome,
    LoginResult,
    Role,
)
from hardstore.core.errors import StoreUnavailableError, UserNotFoundError
from hardstore.core.interfaces.store import AccountStore
from hardstore.core.logging_schema import LogEvent
from hardstore.core.models import utc_now
from hardstore.core.security import burn_verification, hash_password, verify_password
from hardstore.services.account_guard import evaluate
from hardstore.services.session_service import Clock, SessionService

logger = logging.getLogger(__name__)


def policy_from_config(config: SecurityConfig) -> LockoutPolicy:
    """Build LockoutPolicy from SECURITY_ settings."""
    return LockoutPolicy(
        max_failed_attempts=config.max_failed_attempts,
        short_threshold=config.short_lockout_threshold,
        short_seconds=config.short_lockout_seconds,
        long_threshold=config.long_lockout_threshold,
        long_seconds=config.long_lockout_seconds,
    )


class AuthService:
    """Login, session check, logout and account management."""

    def __init__(
        self,
        accounts: AccountStore,
        sessions: SessionService,
        clock: Clock = utc_now,
        policy: LockoutPolicy | None = None,
        cas_max_retries: int = 5,
    ) -> None:
        self._accounts = accounts
        self._sessions = sessions
        self._clock = clock
        self._policy = policy or LockoutPolicy()
        self._cas_max_retries = cas_max_retries

    @property
    def sessions(self) -> SessionService:
        return self._sessions

    async def login(self, username: str, password: str) -> LoginOutcome:
        """Authenticate username/password.

        Returns:
            LoginOutcome: ALLOW (with session), DENY, LOCKED or
            INVALID_CREDENTIALS (unknown username)

        Raises:
            StoreUnavailableError: store unreachable, or the account kept
                changing under us for cas_max_retries attempts
        """
        checked_hash: str | None = None
        password_ok = False

        for _ in range(self._cas_max_retries + 1):
            account = await self._accounts.find_by_username(username)
            if account is None:
                burn_verification(password)
                logger.info(
                    "Login for unknown username",
                    extra={"event": LogEvent.LOGIN_UNKNOWN_USER},
                )
                return LoginOutcome(result=LoginResult.INVALID_CREDENTIALS)

            now = self._clock()
            # No hashing while locked; evaluate() ignores the password then
            if account.active_cooldown(now) is None and checked_hash != account.password_hash:
                password_ok = verify_password(password, account.password_hash)
                checked_hash = account.password_hash

            decision = evaluate(account, password_ok, now, self._policy)

            if decision.mutation is not None:
                written = await self._accounts.apply_mutation(account, decision.mutation)
                if not written:
                    logger.info(
                        "Concurrent login update, re-evaluating",
                        extra={"event": LogEvent.LOGIN_CONFLICT, "username": username},
                    )
                    continue

            if decision.kind == DecisionKind.ALLOW:
                try:
                    session = await self._sessions.create(account.user_id)
                except UserNotFoundError:
                    # Account deleted between the read and the session insert
                    logger.info(
                        "Login for deleted account",
                        extra={"event": LogEvent.LOGIN_UNKNOWN_USER, "username": username},
                    )
                    return LoginOutcome(result=LoginResult.INVALID_CREDENTIALS)
                logger.info(
                    "Login succeeded",
                    extra={
                        "event": LogEvent.LOGIN_SUCCEEDED,
                        "username": username,
                        "user_id": account.user_id,
                    },
                )
                return LoginOutcome(
                    result=LoginResult.ALLOW, session=session, account=account
                )

            if decision.kind == DecisionKind.DENY:
                logger.warning(
                    "Login denied",
                    extra={
                        "event": LogEvent.LOGIN_DENIED,
                        "username": username,
                        "failed_attempts": decision.attempts_so_far,
                    },
                )
                return LoginOutcome(
                    result=LoginResult.DENY,
                    attempts_remaining=decision.attempts_remaining,
                )

            if decision.mutation is not None:
                logger.warning(
                    "Account locked",
                    extra={
                        "event": LogEvent.ACCOUNT_LOCKED,
                        "username": username,
                        "reason": decision.reason,
                        "cooldown_seconds": decision.remaining_seconds,
                    },
                )
            else:
                logger.info(
                    "Login attempt during cooldown",
                    extra={
                        "event": LogEvent.LOGIN_THROTTLED,
                        "username": username,
                        "remaining_seconds": decision.remaining_seconds,
                    },
                )
            return LoginOutcome(
                result=LoginResult.LOCKED,
                remaining_seconds=decision.remaining_seconds,
                cooldown_until=decision.cooldown_until,
            )

        raise StoreUnavailableError("Account is busy, try again")

    async def check_session(self, token: str | None) -> AuthenticatedContext | None:
        """Resolve a session token to the calling account.

        Returns None for missing, unknown or expired tokens and for
        sessions whose account no longer exists.
        """
        session = await self._sessions.validate(token)
        if session is None:
            return None

        account = await self._accounts.find_by_id(session.user_id)
        if account is None:
            return None

        return AuthenticatedContext(
            session=session,
            user_id=account.user_id,
            username=account.username,
            role=account.role,
        )

    async def logout(self, token: str | None) -> None:
        """Revoke the session. Unknown tokens are ignored."""
        await self._sessions.revoke(token)

    async def register(
        self,
        username: str,
        password: str,
        role: Role = Role.USER,
        profile: dict[str, object] | None = None,
    ) -> AccountSecurityState:
        """Create an account.

        Raises:
            UsernameTakenError: username already exists
        """
        account = await self._accounts.create(
            username, hash_password(password), role, profile
        )
        logger.info(
            "Account registered",
            extra={
                "event": LogEvent.ACCOUNT_REGISTERED,
                "username": username,
                "role": str(role),
            },
        )
        return account

    async def unlock(self, username: str) -> bool:
        """Clear failed attempts and cooldown. False if user is unknown."""
        unlocked = await self._accounts.unlock(username)
        if unlocked:
            logger.info(
                "Account unlocked",
                extra={"event": LogEvent.ACCOUNT_UNLOCKED, "username": username},
            )
        return unlocked

    async def reset_password(self, username: str, new_password: str) -> bool:
        """Set a new password and unlock. False if user is unknown."""
        updated = await self._accounts.set_password(username, hash_password(new_password))
        if updated:
            logger.info(
                "Password reset",
                extra={"event": LogEvent.PASSWORD_RESET, "username": username},
            )
        return updated
