#!/usr/bin/env python3
"""
Judgment Notes API -- process entry point.

Usage:
  python main.py                       # same as `serve`
  python main.py serve
  python main.py serve --port 9000
  python main.py migrate
  python main.py create-admin --email admin@example.com --name "Site Admin"

Environment variables (see core/config.py for the full list):
  DATABASE_URL  Required. sqlite:///judgment_notes.db or postgresql://user:pw@host/db
  SECRET_KEY    Required unless DEBUG=true. At least 32 characters.
  PORT          Listener port (default 8080).

Startup is fail-fast: a missing DATABASE_URL, an invalid SECRET_KEY or a
failed migration terminates the process with a non-zero exit code before the
listener opens. There is no retry.
"""

import argparse
import getpass
import logging
import sys

from pydantic import ValidationError as SettingsError

from core.config import Settings, get_settings

logging.basicConfig(
    level=logging.INFO,
    format="%(asctime)s %(levelname)-5s %(name)s %(message)s",
    datefmt="%Y-%m-%d %H:%M:%S",
)
logger = logging.getLogger("judgmentnotes.main")


def _load_settings() -> Settings:
    try:
        settings = get_settings()
    except SettingsError as e:
        logger.critical("Invalid configuration: %s", e)
        sys.exit(1)
    if not settings.database_url:
        logger.critical("DATABASE_URL is required")
        sys.exit(1)
    return settings


def _migrate(settings: Settings) -> None:
    from core.database import make_engine
    from core.migrate import MigrationError, run_migrations

    engine = make_engine(settings.database_url)
    try:
        run_migrations(engine, settings.migrations_dir)
    except MigrationError as e:
        logger.critical("%s", e)
        sys.exit(1)
    finally:
        engine.dispose()


def cmd_serve(args: argparse.Namespace) -> None:
    import uvicorn

    settings = _load_settings()
    _migrate(settings)
    host = args.host or settings.host
    port = args.port or settings.port
    logger.info("API listening on %s:%d", host, port)
    uvicorn.run("api.main:app", host=host, port=port, log_level=settings.log_level.lower())


def cmd_migrate(args: argparse.Namespace) -> None:
    _migrate(_load_settings())


def cmd_create_admin(args: argparse.Namespace) -> None:
    """Create an admin account directly in the store.

    Self-registration only ever produces `user` accounts and the user admin
    API requires an existing admin, so the first admin comes from here.
    """
    settings = _load_settings()
    _migrate(settings)

    from auth import admin
    from auth.store import UserStore
    from core.database import make_engine
    from core.errors import AppError

    password = args.password or getpass.getpass("Password for new admin: ")
    engine = make_engine(settings.database_url)
    try:
        store = UserStore(engine)
        existing = store.count_admins()
        if existing:
            logger.info("%d admin account(s) already exist; adding another", existing)
        user = admin.create_user(store, args.email, args.name, password, role="admin")
    except AppError as e:
        print(f"  [!] {e.message}")
        sys.exit(1)
    finally:
        engine.dispose()
    print(f"Created admin {user.email} (id {user.id}).")


def main() -> None:
    parser = argparse.ArgumentParser(
        prog="judgment-notes",
        description="REST backend for judgment notes with JWT auth and role-based access control.",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  DATABASE_URL=sqlite:///judgment_notes.db DEBUG=true python main.py serve
  python main.py migrate
  python main.py create-admin --email admin@example.com --name "Site Admin"
        """,
    )
    sub = parser.add_subparsers(dest="command")

    serve = sub.add_parser("serve", help="Apply migrations, then start the HTTP server (default)")
    serve.add_argument("--host", default=None, help="Bind address (default: HOST or 0.0.0.0)")
    serve.add_argument("--port", type=int, default=None, help="Listener port (default: PORT or 8080)")
    serve.set_defaults(func=cmd_serve)

    migrate = sub.add_parser("migrate", help="Apply pending migrations and exit")
    migrate.set_defaults(func=cmd_migrate)

    create_admin = sub.add_parser("create-admin", help="Create an admin account")
    create_admin.add_argument("--email", required=True)
    create_admin.add_argument("--name", required=True)
    create_admin.add_argument(
        "--password",
        default=None,
        help="Password (at least 6 characters). Prompted for when omitted.",
    )
    create_admin.set_defaults(func=cmd_create_admin)

    args = parser.parse_args()
    if args.command is None:
        args = parser.parse_args(["serve"])
    args.func(args)


if __name__ == "__main__":
    main()
