"""Store interfaces consumed by the auth services."""

from hardstore.core.interfaces.store import AccountStore, SessionStore

__all__ = ["AccountStore", "SessionStore"]
