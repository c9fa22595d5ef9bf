"""Run database migrations using shared.migrations.runner.

Usage:
    python db_migrate.py          # Run all pending migrations
    python db_migrate.py --dry    # Show pending migrations without applying
"""

import argparse
import asyncio
import logging
import sys
from pathlib import Path

# Ensure backend/ is on sys.path so api.* and shared.* are importable
sys.path.insert(0, str(Path(__file__).resolve().parent.parent))

from api.core.config import get_settings
from shared.database import DatabaseManager, PoolConfig
from shared.migrations.runner import MigrationRunner

logging.basicConfig(level=logging.INFO, format="%(levelname)s: %(message)s")


async def main(dry: bool) -> None:
    settings = get_settings()
    db = DatabaseManager(
        settings.database_url, PoolConfig.for_service("cli", ssl=settings.database_ssl)
    )
    await db.connect()

    try:
        runner = MigrationRunner(db.pool)

        if dry:
            pending = await runner.list_pending()
            print(f"Pending: {len(pending)}")
            for path in pending:
                print(f"  -> {path.stem}")
            if not pending:
                print("Database is up to date.")
        else:
            newly_applied = await runner.run_pending()
            if not newly_applied:
                print("No pending migrations.")
            else:
                print(f"Applied {len(newly_applied)} migration(s).")
    finally:
        await db.disconnect()


if __name__ == "__main__":
    parser = argparse.ArgumentParser(description="Apply SQL migrations")
    parser.add_argument("--dry", action="store_true", help="List pending migrations only")
    asyncio.run(main(parser.parse_args().dry))
