"""Standalone runner for the orphan membership sweep.

Intended for a scheduled machine after bulk deletes, resolving join rows
re-added by an add-member that raced a season or league delete.

Usage:
    python -m xblade.cli.purge_orphans

Exit codes:
    0 - Success
    1 - Failure (check logs for details)
"""

import asyncio
import logging
import sys
from datetime import datetime, timezone

from xblade.services.maintenance_service import purge_orphan_memberships
from xblade.utils.db_async import SessionLocal, dispose_engine

logging.basicConfig(
    level=logging.INFO,
    format="%(asctime)s [%(levelname)s] %(name)s: %(message)s",
    datefmt="%Y-%m-%d %H:%M:%S",
)
logger = logging.getLogger("purge_orphans")


async def main() -> int:
    """Run the sweep once.

    Returns:
        Exit code (0 for success, 1 for failure)
    """
    start_time = datetime.now(timezone.utc)
    logger.info("Starting orphan membership sweep")

    try:
        async with SessionLocal() as db:
            result = await purge_orphan_memberships(db)

        elapsed = (datetime.now(timezone.utc) - start_time).total_seconds()
        logger.info(f"Sweep complete in {elapsed:.1f}s: {result.total} row(s) repaired")
        return 0

    except Exception as e:
        elapsed = (datetime.now(timezone.utc) - start_time).total_seconds()
        logger.error(f"Sweep failed after {elapsed:.1f}s: {e}", exc_info=True)
        return 1

    finally:
        await dispose_engine()


if __name__ == "__main__":
    exit_code = asyncio.run(main())
    sys.exit(exit_code)
