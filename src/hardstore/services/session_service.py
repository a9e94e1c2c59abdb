"""Session management service for hardstore.

Provides session lifecycle management:
- Create: Mint a new bearer session with absolute TTL
- Validate: Look up a session, deleting it on read once expired
- Revoke: Delete a session (idempotent)
- Purge expired: Optional storage hygiene sweep

Configuration via SecurityConfig (SECURITY_ env prefix).
"""

import logging
import secrets
from collections.abc import Callable
from datetime import datetime, timedelta

from hardstore.core.domain.auth import AuthSession
from hardstore.core.interfaces.store import SessionStore
from hardstore.core.logging_schema import LogEvent
from hardstore.core.models import utc_now

logger = logging.getLogger(__name__)

Clock = Callable[[], datetime]

DEFAULT_SESSION_TTL_SECONDS = 86400


def generate_session_id() -> str:
    """256 random bits, URL-safe."""
    return secrets.token_urlsafe(32)


class SessionService:
    """Service for managing user sessions.

    Multiple concurrent sessions per user are allowed.
    """

    def __init__(
        self,
        store: SessionStore,
        clock: Clock = utc_now,
        ttl_seconds: int = DEFAULT_SESSION_TTL_SECONDS,
    ) -> None:
        self._store = store
        self._clock = clock
        self._ttl = timedelta(seconds=ttl_seconds)

    @property
    def ttl_seconds(self) -> int:
        return int(self._ttl.total_seconds())

    async def create(self, user_id: str) -> AuthSession:
        """Create a new session for a user.

        Args:
            user_id: User ID to create session for

        Returns:
            Persisted session with expires_at = now + TTL
        """
        now = self._clock()
        session = AuthSession(
            id=generate_session_id(),
            user_id=user_id,
            created_at=now,
            expires_at=now + self._ttl,
        )
        await self._store.insert(session)
        logger.info(
            "Session created",
            extra={"event": LogEvent.SESSION_CREATED, "user_id": user_id},
        )
        return session

    async def validate(self, session_id: str | None) -> AuthSession | None:
        """Get a valid session by ID.

        Returns None if the id is empty, unknown or expired. Expired
        sessions are deleted on the way out.
        """
        if not session_id:
            return None

        session = await self._store.find(session_id)
        if session is None:
            return None

        if session.is_expired(self._clock()):
            await self._store.delete(session_id)
            logger.info(
                "Session expired",
                extra={"event": LogEvent.SESSION_EXPIRED, "user_id": session.user_id},
            )
            return None

        return session

    async def revoke(self, session_id: str | None) -> bool:
        """Delete a session.

        Returns:
            True if a session was deleted, False if none existed
        """
        if not session_id:
            return False

        deleted = await self._store.delete(session_id)
        if deleted:
            logger.info("Session revoked", extra={"event": LogEvent.SESSION_REVOKED})
        return deleted

    async def purge_expired(self) -> int:
        """Delete all expired sessions. Not needed for correctness."""
        count = await self._store.delete_expired(self._clock())
        logger.info(
            "Expired sessions purged",
            extra={"event": LogEvent.SESSIONS_PURGED, "count": count},
        )
        return count
