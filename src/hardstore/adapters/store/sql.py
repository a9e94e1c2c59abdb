"""SQLModel-backed AccountStore and SessionStore.

Rows are converted to domain models with explicit constructors so a row
missing a required field fails validation loudly.

Throttling writes are a single conditional UPDATE (compare-and-swap on
failed_attempts and cooldown_until), committed on its own. Either the whole
mutation lands or none of it does.
"""

from collections.abc import Iterator
from contextlib import contextmanager
from datetime import datetime

from sqlalchemy import delete, select, update
from sqlalchemy.exc import IntegrityError, InterfaceError, OperationalError
from sqlalchemy.ext.asyncio import AsyncSession
from sqlmodel import col

from hardstore.core.domain.auth import (
    AccountMutation,
    AccountSecurityState,
    AuthSession,
    Role,
)
from hardstore.core.errors import (
    StoreUnavailableError,
    UsernameTakenError,
    UserNotFoundError,
)
from hardstore.core.interfaces.store import AccountStore, SessionStore
from hardstore.core.models import Session, User

_PROFILE_FIELDS = frozenset({
    "first_name",
    "last_name",
    "email",
    "phone",
    "supply",
    "supply_quantity",
})


@contextmanager
def _store_errors() -> Iterator[None]:
    """Map connectivity failures to StoreUnavailableError."""
    try:
        yield
    except (OperationalError, InterfaceError, OSError) as e:
        raise StoreUnavailableError() from e


def account_from_row(user: User) -> AccountSecurityState:
    return AccountSecurityState(
        user_id=user.id,
        username=user.username,
        role=Role(user.role),
        password_hash=user.password_hash,
        failed_attempts=user.failed_attempts,
        last_failed_at=user.last_failed_at,
        cooldown_until=user.cooldown_until,
    )


def session_from_row(row: Session) -> AuthSession:
    return AuthSession(
        id=row.id,
        user_id=row.user_id,
        created_at=row.created_at,
        expires_at=row.expires_at,
    )


class SqlAccountStore(AccountStore):
    """AccountStore over the users table."""

    def __init__(self, db: AsyncSession) -> None:
        self._db = db

    async def _find(self, *criteria) -> AccountSecurityState | None:
        # Bypass the identity map: a lost CAS must re-read the committed row
        stmt = select(User).where(*criteria).execution_options(populate_existing=True)
        with _store_errors():
            result = await self._db.execute(stmt)
            user = result.scalar_one_or_none()
        if user is None:
            return None
        return account_from_row(user)

    async def find_by_username(self, username: str) -> AccountSecurityState | None:
        return await self._find(col(User.username) == username)

    async def find_by_id(self, user_id: str) -> AccountSecurityState | None:
        return await self._find(col(User.id) == user_id)

    async def apply_mutation(
        self, expected: AccountSecurityState, mutation: AccountMutation
    ) -> bool:
        stmt = (
            update(User)
            .where(
                col(User.username) == expected.username,
                col(User.failed_attempts) == expected.failed_attempts,
                col(User.cooldown_until).is_not_distinct_from(expected.cooldown_until),
            )
            .values(**mutation.model_dump())
            .execution_options(synchronize_session=False)
        )
        with _store_errors():
            result = await self._db.execute(stmt)
            await self._db.commit()
        return result.rowcount == 1

    async def create(
        self,
        username: str,
        password_hash: str,
        role: Role,
        profile: dict[str, object] | None = None,
    ) -> AccountSecurityState:
        extra = {k: v for k, v in (profile or {}).items() if k in _PROFILE_FIELDS}
        user = User(
            username=username,
            password_hash=password_hash,
            role=role.value,
            failed_attempts=0,
            **extra,
        )
        self._db.add(user)
        with _store_errors():
            try:
                await self._db.commit()
            except IntegrityError as e:
                await self._db.rollback()
                raise UsernameTakenError() from e
            await self._db.refresh(user)
        return account_from_row(user)

    async def _reset(self, username: str, **values: object) -> bool:
        stmt = (
            update(User)
            .where(col(User.username) == username)
            .values(failed_attempts=0, last_failed_at=None, cooldown_until=None, **values)
            .execution_options(synchronize_session=False)
        )
        with _store_errors():
            result = await self._db.execute(stmt)
            await self._db.commit()
        return result.rowcount == 1

    async def set_password(self, username: str, password_hash: str) -> bool:
        return await self._reset(username, password_hash=password_hash)

    async def unlock(self, username: str) -> bool:
        return await self._reset(username)


class SqlSessionStore(SessionStore):
    """SessionStore over the sessions table."""

    def __init__(self, db: AsyncSession) -> None:
        self._db = db

    async def find(self, session_id: str) -> AuthSession | None:
        with _store_errors():
            result = await self._db.execute(
                select(Session).where(col(Session.id) == session_id)
            )
            row = result.scalar_one_or_none()
        if row is None:
            return None
        return session_from_row(row)

    async def insert(self, session: AuthSession) -> None:
        self._db.add(Session(**session.model_dump()))
        with _store_errors():
            try:
                await self._db.commit()
            except IntegrityError as e:
                # FK: the account was deleted after login read it
                await self._db.rollback()
                raise UserNotFoundError() from e

    async def delete(self, session_id: str) -> bool:
        with _store_errors():
            result = await self._db.execute(
                delete(Session).where(col(Session.id) == session_id)
            )
            await self._db.commit()
        return result.rowcount == 1

    async def delete_expired(self, now: datetime) -> int:
        with _store_errors():
            result = await self._db.execute(
                delete(Session).where(col(Session.expires_at) <= now)
            )
            await self._db.commit()
        return result.rowcount
