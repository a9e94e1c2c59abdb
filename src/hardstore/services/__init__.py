"""Service layer."""

from hardstore.services.account_guard import evaluate
from hardstore.services.auth_service import AuthService, policy_from_config
from hardstore.services.session_service import SessionService

__all__ = [
    "AuthService",
    "SessionService",
    "evaluate",
    "policy_from_config",
]
