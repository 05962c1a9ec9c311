#!/usr/bin/env python3
"""
Restaurant Back Office -- console client for staff login, the live dashboard
and account management.

Usage:
  python main.py
  python main.py --seed-demo
  python main.py --db-url sqlite:///./demo.db --seed-demo
  python main.py --config /etc/backoffice/config.properties

Configuration (highest priority first):
  environment variables      DB_URL, JWT_SECRET, SESSION_TIMEOUT, ...
  .env file                  same names
  config.properties          db.url, jwt.secret, session.timeout, ...
  built-in defaults          local SQLite file, 24 h tokens, 30 min idle timeout
"""

import argparse
import asyncio
import logging
import os

from auth.service import AuthService
from auth.session import SessionState
from auth.store import UserStore
from auth.tokens import TokenIssuer
from console.app import ConsoleApp
from console.seed import DEMO_PASSWORD, seed_demo_users
from core.config import PROPERTIES_ENV_VAR, Settings, get_settings
from operations.store import OperationsStore

logger = logging.getLogger("backoffice")


def main() -> None:
    parser = argparse.ArgumentParser(
        prog="restaurant-backoffice",
        description="Restaurant back-office console: staff login, dashboard and accounts.",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  python main.py --seed-demo            create default roles and demo users, then start
  DB_URL=sqlite:///./shop.db python main.py
  SESSION_TIMEOUT=300000 python main.py  5 minute idle timeout
        """,
    )
    parser.add_argument(
        "--db-url",
        metavar="URL",
        help="SQLAlchemy database URL (overrides db.url / DB_URL)",
    )
    parser.add_argument(
        "--config",
        metavar="PATH",
        help="Path to a config.properties file",
    )
    parser.add_argument(
        "--seed-demo",
        action="store_true",
        help=f"Create the default roles and demo accounts (password: {DEMO_PASSWORD})",
    )
    parser.add_argument(
        "--refresh",
        type=float,
        default=60.0,
        metavar="SECONDS",
        help="Dashboard background refresh interval (default: 60)",
    )
    parser.add_argument(
        "-v",
        "--verbose",
        action="store_true",
        help="Log at DEBUG level",
    )
    args = parser.parse_args()

    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.INFO,
        format="%(asctime)s %(levelname)-5s %(name)s %(message)s",
        datefmt="%Y-%m-%d %H:%M:%S",
    )

    if args.config:
        os.environ[PROPERTIES_ENV_VAR] = args.config
        get_settings.cache_clear()
    settings: Settings = get_settings()
    db_url = args.db_url or settings.engine_url()

    users = UserStore(db_url)
    operations = OperationsStore(db_url)
    auth = AuthService(users, TokenIssuer.from_settings(settings), SessionState.from_settings(settings))
    logger.info("Back office started (session timeout %d ms)", settings.session_timeout)

    if args.seed_demo:
        created = seed_demo_users(auth)
        if created:
            print(f"Created demo accounts: {', '.join(created)} (password: {DEMO_PASSWORD})")
        else:
            print("Demo accounts already exist.")

    app = ConsoleApp(auth, operations, currency=settings.currency, refresh_interval=args.refresh)
    try:
        asyncio.run(app.run())
    except KeyboardInterrupt:
        print()
    finally:
        operations.close()
        users.close()


if __name__ == "__main__":
    main()
