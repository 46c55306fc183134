import argparse

from loguru import logger
from sqlalchemy import create_engine

from auralog.config import get_settings
from auralog.db.database import Base, ensure_sqlite_directory

settings = get_settings()


def init_database():
    """Create all tables."""
    import auralog.models  # noqa: F401

    ensure_sqlite_directory(settings.sync_database_url)
    engine = create_engine(settings.sync_database_url)
    Base.metadata.create_all(engine)
    logger.info("Database initialized")


def run_tick(test_mode: bool = False):
    """Run one reminder tick now."""
    from auralog.scheduler.jobs import run_daily_reminders

    attempted = run_daily_reminders(test_mode=test_mode)
    logger.info(f"Done. Attempted {attempted} user(s).")


def main():
    parser = argparse.ArgumentParser(description="Aura Log reminder service CLI")
    subparsers = parser.add_subparsers(dest="command", help="Commands")

    # init command
    subparsers.add_parser("init", help="Initialize database")

    # seed command
    subparsers.add_parser("seed", help="Seed the static quote pool")

    # tick command
    subparsers.add_parser("tick", help="Run one scheduled reminder tick now")

    # send-now command
    subparsers.add_parser(
        "send-now",
        help="Send a test reminder to every opted-in user, ignoring time and last send",
    )

    # serve command
    subparsers.add_parser("serve", help="Start API server and scheduler")

    args = parser.parse_args()

    if args.command == "init":
        init_database()
    elif args.command == "seed":
        from auralog.db.seed import main as seed_main

        seed_main()
    elif args.command == "tick":
        run_tick()
    elif args.command == "send-now":
        run_tick(test_mode=True)
    elif args.command == "serve":
        import uvicorn

        uvicorn.run(
            "auralog.main:app",
            host=settings.api_host,
            port=settings.api_port,
            reload=settings.debug,
        )
    else:
        parser.print_help()


if __name__ == "__main__":
    main()
