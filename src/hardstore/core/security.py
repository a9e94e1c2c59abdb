"""Password hashing and verification using Argon2id."""

from functools import lru_cache

from argon2 import PasswordHasher
from argon2.exceptions import InvalidHashError, VerificationError, VerifyMismatchError

_hasher = PasswordHasher()


def hash_password(password: str) -> str:
    """Hash a password using Argon2id."""
    return _hasher.hash(password)


def verify_password(password: str, password_hash: str) -> bool:
    """Verify a password against its hash.

    A malformed stored hash verifies as False instead of raising.
    """
    try:
        _hasher.verify(password_hash, password)
        return True
    except (VerifyMismatchError, VerificationError, InvalidHashError):
        return False


@lru_cache(maxsize=1)
def _dummy_hash() -> str:
    return _hasher.hash("hardstore-dummy-password")


def burn_verification(password: str) -> None:
    """Spend one Argon2 verification for a login with no matching account.

    Keeps the unknown-username path as slow as the wrong-password path.
    """
    verify_password(password, _dummy_hash())
