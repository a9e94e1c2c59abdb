"""Persistence interfaces for accounts and sessions.

Implementations must:
- Apply AccountMutation as one atomic compare-and-swap per username
- Raise StoreUnavailableError when the backing store cannot be reached
- Never raise on unknown keys (return None / False instead)
"""

from abc import ABC, abstractmethod
from datetime import datetime

from hardstore.core.domain.auth import (
    AccountMutation,
    AccountSecurityState,
    AuthSession,
    Role,
)


class AccountStore(ABC):
    """Account records keyed by username (and by user id)."""

    @abstractmethod
    async def find_by_username(self, username: str) -> AccountSecurityState | None:
        ...

    @abstractmethod
    async def find_by_id(self, user_id: str) -> AccountSecurityState | None:
        ...

    @abstractmethod
    async def apply_mutation(
        self, expected: AccountSecurityState, mutation: AccountMutation
    ) -> bool:
        """Write mutation only if the stored row still matches expected.

        Matching compares failed_attempts and cooldown_until.

        Returns:
            True if written, False if another writer got there first
            (or the account is gone).
        """
        ...

    @abstractmethod
    async def create(
        self,
        username: str,
        password_hash: str,
        role: Role,
        profile: dict[str, object] | None = None,
    ) -> AccountSecurityState:
        """Insert a new account with a zeroed throttling state.

        Raises:
            UsernameTakenError: username already exists
        """
        ...

    @abstractmethod
    async def set_password(self, username: str, password_hash: str) -> bool:
        """Replace the password hash and clear throttling state."""
        ...

    @abstractmethod
    async def unlock(self, username: str) -> bool:
        """Clear failed_attempts and cooldown_until."""
        ...


class SessionStore(ABC):
    """Session records keyed by session id."""

    @abstractmethod
    async def find(self, session_id: str) -> AuthSession | None:
        ...

    @abstractmethod
    async def insert(self, session: AuthSession) -> None:
        """Persist a new session.

        Raises:
            UserNotFoundError: session.user_id no longer exists
        """
        ...

    @abstractmethod
    async def delete(self, session_id: str) -> bool:
        """Delete by id. Returns True if a row existed."""
        ...

    @abstractmethod
    async def delete_expired(self, now: datetime) -> int:
        """Delete every session with expires_at <= now. Returns the count."""
        ...
