"""Logging field schema - v1.0

Standard fields (added to all logs):
- schema_version: Log schema version
- service: Service name (hardstore-api)
- event: Event type (login_succeeded, account_locked, etc.)
- trace_id: Request trace ID
- duration_ms: Duration in milliseconds

High cardinality fields (OK in logs, NOT in metric labels):
- username
- user_id

Never log passwords, password hashes or session ids.
"""

from enum import StrEnum


class LogEvent(StrEnum):
    """Standard log event types.

    Use these event types in the 'event' extra field for consistent
    log filtering and analysis.
    """

    # Login
    LOGIN_SUCCEEDED = "login_succeeded"
    LOGIN_DENIED = "login_denied"
    LOGIN_UNKNOWN_USER = "login_unknown_user"
    LOGIN_THROTTLED = "login_throttled"
    ACCOUNT_LOCKED = "account_locked"
    LOGIN_CONFLICT = "login_conflict"

    # Sessions
    SESSION_CREATED = "session_created"
    SESSION_EXPIRED = "session_expired"
    SESSION_REVOKED = "session_revoked"
    SESSIONS_PURGED = "sessions_purged"

    # Account management
    ACCOUNT_REGISTERED = "account_registered"
    ACCOUNT_UNLOCKED = "account_unlocked"
    PASSWORD_RESET = "password_reset"

    # Store
    DB_CONNECTED = "db_connected"
    DB_ERROR = "db_error"

    # Lifecycle events
    APP_STARTED = "app_started"
    APP_STOPPED = "app_stopped"

    # API events
    REQUEST_COMPLETE = "request_complete"
    REQUEST_FAILED = "request_failed"
    REQUEST_SLOW = "request_slow"
