"""
Периодическая задача: снимок индекса и пересчёт процентилей.

    python -m utils.snapshot 7d
    python -m utils.snapshot 30d

Запускается внешним планировщиком (cron), раз в 7 и 30 дней соответственно.
"""
import asyncio
import logging
import sys

from core.database import AsyncSessionLocal, close_engine
from services.stats import SNAPSHOT_COLUMNS, refresh_percentiles, snapshot_ratings

log = logging.getLogger(__name__)
logging.basicConfig(level=logging.INFO)


async def async_snapshot(horizon: str) -> None:
    async with AsyncSessionLocal() as db:
        updated = await snapshot_ratings(db, horizon)
        log.info("Snapshot %s written for %s users", horizon, updated)
        refreshed = await refresh_percentiles(db)
        log.info("Percentiles refreshed for %s visible users", refreshed)
    await close_engine()


def main(argv: list[str]) -> int:
    if len(argv) != 1 or argv[0] not in SNAPSHOT_COLUMNS:
        log.error("Usage: python -m utils.snapshot {%s}", "|".join(SNAPSHOT_COLUMNS))
        return 2
    asyncio.run(async_snapshot(argv[0]))
    return 0


if __name__ == "__main__":
    sys.exit(main(sys.argv[1:]))
