#!/usr/bin/env python3
"""
Rolegate -- token authentication and role-based authorization service.

Usage:
  python main.py serve
  python main.py create-admin --username root --password 'long-passphrase'
  python main.py check 42 ITEM_WRITE

Environment variables:
  JWT_SECRET    Required. Token signing secret, at least 32 characters.
  HOST          Bind address host:port (default 127.0.0.1:8080).
  DATABASE_URL  SQLAlchemy URL (default sqlite:///./rolegate.db).
  See core/config.py for the full list.
"""

import argparse
import sys

from pydantic import ValidationError

from core.config import Settings, get_settings


def _load_settings() -> Settings:
    """Load settings or exit with a readable message. Missing JWT_SECRET is fatal."""
    try:
        return get_settings()
    except ValidationError as exc:
        print("  [!] Invalid configuration:", file=sys.stderr)
        for err in exc.errors():
            print(f"      {err.get('msg', '')}", file=sys.stderr)
        sys.exit(2)


def _user_id(value: str) -> int:
    """argparse type for USER_ID: a positive id the store can hold."""
    from core.database import MAX_ID

    try:
        user_id = int(value)
    except ValueError:
        raise argparse.ArgumentTypeError(f"not an integer: {value!r}") from None
    if not 0 < user_id <= MAX_ID:
        raise argparse.ArgumentTypeError(f"out of range: {value}")
    return user_id


def _open_stores(settings: Settings):
    from auth.rbac import RBACRepository
    from auth.store import UserStore
    from core.database import create_db_engine

    engine = create_db_engine(settings.database_url, settings.db_pool_size, settings.db_pool_timeout)
    return engine, UserStore(engine), RBACRepository(engine)


def _serve(settings: Settings, args: argparse.Namespace) -> int:
    import uvicorn

    host, port = settings.bind
    uvicorn.run("asgi:app", host=host, port=port, reload=args.reload, log_level=settings.log_level.lower())
    return 0


def _create_admin(settings: Settings, args: argparse.Namespace) -> int:
    from auth.bootstrap import ensure_admin

    engine, user_store, rbac = _open_stores(settings)
    try:
        user_id = ensure_admin(
            user_store,
            rbac,
            args.username,
            args.password,
            settings.admin_permission,
            settings.bcrypt_rounds,
        )
    finally:
        engine.dispose()
    print(f"  {args.username} (id={user_id}) holds {settings.admin_permission}.")
    return 0


def _check(settings: Settings, args: argparse.Namespace) -> int:
    engine, _user_store, rbac = _open_stores(settings)
    try:
        allowed = rbac.has_permission(args.user_id, args.permission)
    finally:
        engine.dispose()
    print(f"  user {args.user_id} {'HAS' if allowed else 'LACKS'} {args.permission}")
    return 0 if allowed else 1


def main() -> None:
    parser = argparse.ArgumentParser(
        prog="rolegate",
        description="Token authentication and role-based authorization service.",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  JWT_SECRET=... python main.py serve
  JWT_SECRET=... python main.py create-admin --username root --password 'long-passphrase'
  JWT_SECRET=... python main.py check 1 RBAC_ADMIN
        """,
    )
    sub = parser.add_subparsers(dest="command")

    serve = sub.add_parser("serve", help="Run the HTTP API on HOST")
    serve.add_argument("--reload", action="store_true", help="Reload on code changes (development only)")

    admin = sub.add_parser("create-admin", help="Create or promote a user to administrator")
    admin.add_argument("--username", required=True)
    admin.add_argument("--password", required=True)

    check = sub.add_parser("check", help="Report whether a user holds a permission (exit 0 yes, 1 no)")
    check.add_argument("user_id", type=_user_id)
    check.add_argument("permission")

    args = parser.parse_args()
    if args.command is None:
        parser.print_help()
        return

    settings = _load_settings()
    handlers = {"serve": _serve, "create-admin": _create_admin, "check": _check}
    sys.exit(handlers[args.command](settings, args))


if __name__ == "__main__":
    main()
