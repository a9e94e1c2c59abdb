"""Database models for hardstore.

Models are defined using SQLModel (SQLAlchemy + Pydantic).
"""

from hardstore.core.models.auth import Session, User, generate_ulid, utc_now

__all__ = [
    "User",
    "Session",
    "generate_ulid",
    "utc_now",
]
