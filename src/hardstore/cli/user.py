"""User management CLI commands."""

import argparse
import asyncio
import getpass
import sys

from sqlalchemy import select

from hardstore.adapters.store import SqlAccountStore, SqlSessionStore
from hardstore.app.config import get_settings
from hardstore.core.domain.auth import Role
from hardstore.core.errors import UsernameTakenError
from hardstore.core.models import User, utc_now
from hardstore.infra import close_db, get_session_factory, init_db
from hardstore.services.auth_service import AuthService, policy_from_config
from hardstore.services.session_service import SessionService


def _auth_service(db) -> AuthService:
    security = get_settings().security
    return AuthService(
        SqlAccountStore(db),
        SessionService(SqlSessionStore(db), ttl_seconds=security.session_ttl),
        policy=policy_from_config(security),
        cas_max_retries=security.cas_max_retries,
    )


async def create_user(username: str, password: str, role: Role) -> int:
    """Create a new user."""
    async with get_session_factory()() as db:
        try:
            await _auth_service(db).register(username, password, role)
        except UsernameTakenError:
            print(f"Error: User '{username}' already exists")
            return 1
    print(f"User '{username}' created with role '{role}'")
    return 0


async def reset_password(username: str, password: str) -> int:
    """Reset user password (also unlocks the account)."""
    async with get_session_factory()() as db:
        if not await _auth_service(db).reset_password(username, password):
            print(f"Error: User '{username}' not found")
            return 1
    print(f"Password reset for '{username}'")
    return 0


async def unlock_user(username: str) -> int:
    """Clear failed attempts and cooldown."""
    async with get_session_factory()() as db:
        if not await _auth_service(db).unlock(username):
            print(f"Error: User '{username}' not found")
            return 1
    print(f"Account '{username}' unlocked")
    return 0


async def list_users() -> int:
    """List all users with their lockout state."""
    async with get_session_factory()() as db:
        result = await db.execute(select(User).order_by(User.username))
        users = result.scalars().all()

    if not users:
        print("No users found")
        return 0

    now = utc_now()
    print(f"{'Username':<20} {'Role':<10} {'Failed':<7} {'Locked until':<25}")
    print("-" * 64)
    for user in users:
        locked = "-"
        if user.cooldown_until is not None and user.cooldown_until > now:
            locked = user.cooldown_until.strftime("%Y-%m-%d %H:%M:%S")
        print(f"{user.username:<20} {user.role:<10} {user.failed_attempts:<7} {locked:<25}")
    return 0


async def purge_sessions() -> int:
    """Delete expired sessions."""
    async with get_session_factory()() as db:
        count = await _auth_service(db).sessions.purge_expired()
    print(f"Purged {count} expired session(s)")
    return 0


def get_password_interactive(confirm: bool = True) -> str:
    """Get password interactively with optional confirmation."""
    password = getpass.getpass("Password: ")
    if not password:
        print("Error: Password cannot be empty")
        sys.exit(1)

    if confirm:
        password_confirm = getpass.getpass("Confirm password: ")
        if password != password_confirm:
            print("Error: Passwords do not match")
            sys.exit(1)

    return password


async def _run(coro_factory) -> int:
    await init_db()
    try:
        return await coro_factory()
    finally:
        await close_db()


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        description="Hardstore user management",
        prog="hardstore-user",
    )
    subparsers = parser.add_subparsers(dest="command", required=True)

    create_parser = subparsers.add_parser("create", help="Create a new user")
    create_parser.add_argument("username", help="Username to create")
    create_parser.add_argument(
        "--role", "-r",
        choices=[r.value for r in Role],
        default=Role.USER.value,
        help="Account role (default: user)",
    )
    create_parser.add_argument(
        "--password", "-p",
        help="Password (will prompt if not provided)",
    )

    reset_parser = subparsers.add_parser("reset-password", help="Reset user password")
    reset_parser.add_argument("username", help="Username to reset password")
    reset_parser.add_argument(
        "--password", "-p",
        help="New password (will prompt if not provided)",
    )

    unlock_parser = subparsers.add_parser("unlock", help="Clear a login lockout")
    unlock_parser.add_argument("username", help="Username to unlock")

    subparsers.add_parser("list", help="List all users")
    subparsers.add_parser("purge-sessions", help="Delete expired sessions")

    return parser


def main(argv: list[str] | None = None) -> None:
    """CLI entry point."""
    args = build_parser().parse_args(argv)

    if args.command == "create":
        password = args.password or get_password_interactive()
        code = asyncio.run(_run(lambda: create_user(args.username, password, Role(args.role))))

    elif args.command == "reset-password":
        password = args.password or get_password_interactive()
        code = asyncio.run(_run(lambda: reset_password(args.username, password)))

    elif args.command == "unlock":
        code = asyncio.run(_run(lambda: unlock_user(args.username)))

    elif args.command == "list":
        code = asyncio.run(_run(list_users))

    else:
        code = asyncio.run(_run(purge_sessions))

    sys.exit(code)


if __name__ == "__main__":
    main()
