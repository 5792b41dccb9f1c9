#!/usr/bin/env python3
"""
TaskGuard -- task management API with bearer-token auth and role-based access.

Usage:
  python main.py serve
  python main.py serve --host 0.0.0.0 --port 8080
  python main.py create-account --username alice --password 'correct horse'
  python main.py promote 3f2a9c0e5b7d4e1f8a6b2c9d0e1f2a3b

Environment variables (see core/config.py):
  SECRET_KEY     Token signing key, at least 32 characters. Required unless DEBUG=true.
  DATABASE_URL   SQLAlchemy URL. Defaults to taskguard.db next to this file.
  DEBUG          Development mode; auto-generates SECRET_KEY.
"""

import argparse
import sys
from datetime import timedelta

import anyio

from auth.accounts import AccountService
from auth.passwords import PasswordHasher
from auth.store import AccountStore
from auth.tokens import TokenService
from core.config import get_settings
from core.errors import TaskGuardError


def _account_service() -> tuple[AccountService, AccountStore]:
    """Build the same account use-case graph the API lifespan builds."""
    settings = get_settings()
    store = AccountStore(settings.database_url)
    service = AccountService(
        store,
        PasswordHasher(rounds=settings.bcrypt_rounds),
        TokenService(settings.secret_key, lifetime=timedelta(seconds=settings.token_lifetime_seconds)),
        timeout=settings.operation_timeout_seconds,
    )
    return service, store


def _serve(args: argparse.Namespace) -> int:
    import uvicorn

    uvicorn.run("asgi:app", host=args.host, port=args.port, reload=args.reload)
    return 0


def _create_account(args: argparse.Namespace) -> int:
    service, store = _account_service()
    try:
        account = anyio.run(service.create_account, args.username, args.password)
    except TaskGuardError as exc:
        print(f"  [!] Could not create account: {exc.message}", file=sys.stderr)
        return 1
    finally:
        store.close()
    print(f"  Created {account.username} ({account.role.name}) id={account.id}")
    return 0


def _promote(args: argparse.Namespace) -> int:
    service, store = _account_service()
    try:
        anyio.run(service.promote, args.account_id)
    except TaskGuardError as exc:
        print(f"  [!] Could not promote {args.account_id}: {exc.message}", file=sys.stderr)
        return 1
    finally:
        store.close()
    print(f"  {args.account_id} promoted to administrator")
    return 0


def main(argv: list[str] | None = None) -> int:
    parser = argparse.ArgumentParser(
        prog="taskguard",
        description="Task management API guarded by bearer tokens and roles.",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  python main.py serve --reload
  python main.py create-account --username admin --password 'change-me-now'
  python main.py promote <account_id>
        """,
    )
    sub = parser.add_subparsers(dest="command", metavar="COMMAND")

    serve = sub.add_parser("serve", help="Run the HTTP API with uvicorn")
    serve.add_argument("--host", default="127.0.0.1", help="Bind address (default: 127.0.0.1)")
    serve.add_argument("--port", type=int, default=8000, help="Bind port (default: 8000)")
    serve.add_argument("--reload", action="store_true", help="Restart on code changes (development)")
    serve.set_defaults(func=_serve)

    create = sub.add_parser(
        "create-account",
        help="Create an account. The first account in an empty database becomes administrator.",
    )
    create.add_argument("--username", required=True, metavar="NAME")
    create.add_argument("--password", required=True, metavar="PASSWORD")
    create.set_defaults(func=_create_account)

    promote = sub.add_parser("promote", help="Grant the administrator role to an account")
    promote.add_argument("account_id", metavar="ACCOUNT_ID")
    promote.set_defaults(func=_promote)

    args = parser.parse_args(argv)
    if not getattr(args, "func", None):
        parser.print_help()
        return 0
    return args.func(args)


if __name__ == "__main__":
    sys.exit(main())
