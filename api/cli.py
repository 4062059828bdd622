#!/usr/bin/env python3
"""CLI for Habit Tracker API management tasks.

Usage:
    python -m cli <command>

Commands:
    migrate    Run database migrations
    stats      Print a user's analytics overview for a date range as JSON
"""

import argparse
import asyncio
import json
import logging
import sys
from datetime import date
from pathlib import Path

logging.basicConfig(
    level=logging.INFO,
    format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
)
logger = logging.getLogger(__name__)

API_DIR = Path(__file__).resolve().parent


def _get_alembic_config():
    from alembic.config import Config

    cfg = Config(str(API_DIR / "alembic.ini"))
    # Make script_location absolute so it works from any working directory.
    cfg.set_main_option("script_location", str(API_DIR / "alembic"))
    return cfg


def cmd_migrate(target: str = "head") -> int:
    """Run database migrations."""
    from alembic import command

    logger.info("Running database migrations...")
    command.upgrade(_get_alembic_config(), target)
    logger.info("Migrations complete")
    return 0


async def _overview(user_id: str, start: date, end: date) -> dict:
    from dataclasses import asdict

    from core.database import create_engine, create_session_maker, dispose_engine
    from services.analytics_service import get_overview_stats

    engine = create_engine()
    try:
        session_maker = create_session_maker(engine)
        async with session_maker() as session:
            stats = await get_overview_stats(session, user_id, start, end)
    finally:
        await dispose_engine(engine)
    return asdict(stats)


def cmd_stats(user_id: str, start: date, end: date) -> int:
    """Print the analytics overview for a user."""
    if start > end:
        logger.error("--start must be on or before --end")
        return 2

    overview = asyncio.run(_overview(user_id, start, end))
    print(
        json.dumps(
            {
                "user_id": user_id,
                "start_date": start.isoformat(),
                "end_date": end.isoformat(),
                **overview,
            },
            indent=2,
        )
    )
    return 0


def main(argv: list[str] | None = None) -> int:
    parser = argparse.ArgumentParser(
        description="Habit Tracker API CLI",
        formatter_class=argparse.RawDescriptionHelpFormatter,
    )
    subparsers = parser.add_subparsers(dest="command", help="Available commands")

    migrate = subparsers.add_parser("migrate", help="Run database migrations")
    migrate.add_argument(
        "target",
        nargs="?",
        default="head",
        help="Target revision (default: head)",
    )

    stats = subparsers.add_parser(
        "stats",
        help="Print a user's analytics overview as JSON",
    )
    stats.add_argument("--user-id", required=True)
    stats.add_argument("--start", required=True, type=date.fromisoformat)
    stats.add_argument("--end", required=True, type=date.fromisoformat)

    args = parser.parse_args(argv)

    if args.command == "migrate":
        return cmd_migrate(args.target)
    elif args.command == "stats":
        return cmd_stats(args.user_id, args.start, args.end)
    else:
        parser.print_help()
        return 1


if __name__ == "__main__":
    sys.exit(main())
