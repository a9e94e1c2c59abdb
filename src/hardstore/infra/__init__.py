"""Infrastructure connections (DB)."""

from hardstore.infra.postgresql import (
    close_db,
    get_engine,
    get_session,
    get_session_factory,
    init_db,
)

__all__ = [
    "init_db",
    "close_db",
    "get_engine",
    "get_session",
    "get_session_factory",
]
