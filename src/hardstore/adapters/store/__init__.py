"""Store adapters."""

from hardstore.adapters.store.sql import (
    SqlAccountStore,
    SqlSessionStore,
    account_from_row,
    session_from_row,
)

__all__ = [
    "SqlAccountStore",
    "SqlSessionStore",
    "account_from_row",
    "session_from_row",
]
