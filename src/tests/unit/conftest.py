"""Fixtures for auth unit tests.

In-memory stores stand in for PostgreSQL; FakeClock makes time explicit.
"""

from collections.abc import Callable
from datetime import UTC, datetime, timedelta

import pytest

from hardstore.app.config import get_settings
from hardstore.core.domain.auth import (
    AccountMutation,
    AccountSecurityState,
    AuthSession,
    Role,
)
from hardstore.core.errors import UsernameTakenError
from hardstore.core.interfaces.store import AccountStore, SessionStore
from hardstore.core.models import generate_ulid
from hardstore.core.security import hash_password
from hardstore.services.auth_service import AuthService
from hardstore.services.session_service import SessionService

T0 = datetime(2026, 3, 1, 9, 0, 0, tzinfo=UTC)


class FakeClock:
    """Callable clock that only moves when told to."""

    def __init__(self, start: datetime = T0) -> None:
        self.now = start

    def __call__(self) -> datetime:
        return self.now

    def advance(self, seconds: float) -> None:
        self.now += timedelta(seconds=seconds)


class InMemoryAccountStore(AccountStore):
    """AccountStore over a dict, with CAS semantics matching the SQL store.

    interleave: callbacks run inside apply_mutation before the compare,
    simulating a concurrent writer landing first.
    """

    def __init__(self) -> None:
        self.accounts: dict[str, AccountSecurityState] = {}
        self.interleave: list[Callable[[], None]] = []
        self.cas_calls = 0

    def put(self, account: AccountSecurityState) -> None:
        self.accounts[account.username] = account

    async def find_by_username(self, username: str) -> AccountSecurityState | None:
        return self.accounts.get(username)

    async def find_by_id(self, user_id: str) -> AccountSecurityState | None:
        for account in self.accounts.values():
            if account.user_id == user_id:
                return account
        return None

    async def apply_mutation(
        self, expected: AccountSecurityState, mutation: AccountMutation
    ) -> bool:
        self.cas_calls += 1
        if self.interleave:
            self.interleave.pop(0)()

        current = self.accounts.get(expected.username)
        if current is None:
            return False
        if (
            current.failed_attempts != expected.failed_attempts
            or current.cooldown_until != expected.cooldown_until
        ):
            return False
        self.accounts[expected.username] = current.model_copy(
            update=mutation.model_dump()
        )
        return True

    async def create(
        self,
        username: str,
        password_hash: str,
        role: Role,
        profile: dict[str, object] | None = None,
    ) -> AccountSecurityState:
        if username in self.accounts:
            raise UsernameTakenError()
        account = AccountSecurityState(
            user_id=generate_ulid(),
            username=username,
            role=role,
            password_hash=password_hash,
            failed_attempts=0,
        )
        self.accounts[username] = account
        return account

    async def _reset(self, username: str, **update: object) -> bool:
        current = self.accounts.get(username)
        if current is None:
            return False
        self.accounts[username] = current.model_copy(
            update={
                "failed_attempts": 0,
                "last_failed_at": None,
                "cooldown_until": None,
                **update,
            }
        )
        return True

    async def set_password(self, username: str, password_hash: str) -> bool:
        return await self._reset(username, password_hash=password_hash)

    async def unlock(self, username: str) -> bool:
        return await self._reset(username)


class InMemorySessionStore(SessionStore):
    """SessionStore over a dict. Keeps expired rows until deleted."""

    def __init__(self) -> None:
        self.sessions: dict[str, AuthSession] = {}

    async def find(self, session_id: str) -> AuthSession | None:
        return self.sessions.get(session_id)

    async def insert(self, session: AuthSession) -> None:
        self.sessions[session.id] = session

    async def delete(self, session_id: str) -> bool:
        return self.sessions.pop(session_id, None) is not None

    async def delete_expired(self, now: datetime) -> int:
        expired = [sid for sid, s in self.sessions.items() if s.expires_at <= now]
        for sid in expired:
            del self.sessions[sid]
        return len(expired)


@pytest.fixture(autouse=True)
def clear_settings_cache():
    """Pick up env changes made with monkeypatch."""
    get_settings.cache_clear()
    yield
    get_settings.cache_clear()


@pytest.fixture
def clock() -> FakeClock:
    return FakeClock()


@pytest.fixture
def account_store() -> InMemoryAccountStore:
    return InMemoryAccountStore()


@pytest.fixture
def session_store() -> InMemorySessionStore:
    return InMemorySessionStore()


@pytest.fixture
def session_service(session_store: InMemorySessionStore, clock: FakeClock) -> SessionService:
    return SessionService(session_store, clock=clock)


@pytest.fixture
def auth_service(
    account_store: InMemoryAccountStore,
    session_service: SessionService,
    clock: FakeClock,
) -> AuthService:
    return AuthService(account_store, session_service, clock=clock)


@pytest.fixture(scope="session")
def alice_hash() -> str:
    """Hashing is slow; hash once per run."""
    return hash_password("correct-horse")


@pytest.fixture
def alice(account_store: InMemoryAccountStore, alice_hash: str) -> AccountSecurityState:
    """Staff account 'alice' with password 'correct-horse'."""
    account = AccountSecurityState(
        user_id="01HARDSTOREALICE0000000000",
        username="alice",
        role=Role.STAFF,
        password_hash=alice_hash,
        failed_attempts=0,
    )
    account_store.put(account)
    return account
