"""Collect today's ANR stats and send them to the stats API (run daily from cron).

Usage:
    python collect_stats.py                    # All ANRs
    python collect_stats.py --anr-id 1 --anr-id 2
    python collect_stats.py --force            # Skip the already-collected check
"""

import argparse
import asyncio
import logging
import sys
from pathlib import Path

# Ensure backend/ is on sys.path so api.* and shared.* are importable
sys.path.insert(0, str(Path(__file__).resolve().parent.parent))

from api.core.config import get_settings
from api.core.logging import setup_logging
from api.services import StatsAlreadyCollectedError, StatsAnrService, StatsApiClient, StatsError
from shared.database import DatabaseManager, PoolConfig

logger = logging.getLogger("collect_stats")


def parse_args(argv: list[str] | None = None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(description="Collect and send the daily ANR stats")
    parser.add_argument(
        "--anr-id",
        dest="anr_ids",
        type=int,
        action="append",
        default=[],
        help="ANR id to collect (repeatable, default: all ANRs)",
    )
    parser.add_argument(
        "--force",
        action="store_true",
        help="Send the stats even if they were already collected today",
    )
    return parser.parse_args(argv)


async def main(args: argparse.Namespace) -> int:
    settings = get_settings()
    setup_logging(settings)

    db = DatabaseManager(
        settings.database_url, PoolConfig.for_service("cli", ssl=settings.database_ssl)
    )
    stats_api = StatsApiClient(
        base_url=settings.stats_api_url,
        api_key=settings.stats_api_key,
        timeout=settings.stats_api_timeout,
    )

    try:
        await db.connect()
        service = StatsAnrService(db.pool, stats_api)
        stats = await service.collect_stats(args.anr_ids, force=args.force)
        logger.info(f"Collected {len(stats)} stats data point(s)")
        return 0
    except StatsAlreadyCollectedError as e:
        logger.warning(str(e))
        return 1
    except StatsError as e:
        logger.error(f"Stats collection failed: {e}")
        return 1
    finally:
        await stats_api.close()
        await db.disconnect()


if __name__ == "__main__":
    sys.exit(asyncio.run(main(parse_args())))
