"""Run the reassignment sweep for one or more sheets.

Usage:
    python -m assign_engine.tools.run_sweep --sheet loans
    python -m assign_engine.tools.run_sweep --sheet loans --sheet members --loop
    python -m assign_engine.tools.run_sweep --sheet loans --loop --interval 600
"""

from __future__ import annotations

import argparse
import asyncio
import logging
import sys
from datetime import datetime, timezone

from assign_engine.adapters.persistence.database import async_session_factory, engine
from assign_engine.config import settings
from assign_engine.infrastructure.api.dependencies import build_sweep_uc

logging.basicConfig(level=logging.INFO, format="%(levelname)s | %(message)s")
logger = logging.getLogger(__name__)


async def sweep_once(sheet_ids: list[str]) -> int:
    """Sweep every sheet in its own transaction. Returns the number of failed items."""
    failed = 0
    for sheet_id in sheet_ids:
        async with async_session_factory() as session:
            results = await build_sweep_uc(session).execute(sheet_id, datetime.now(timezone.utc))
            await session.commit()

        for r in results:
            if r.error:
                failed += 1
                logger.warning("Sheet %s item %s: %s", sheet_id, r.item_id, r.error)
            else:
                logger.info(
                    "Sheet %s item %s: %s → %s",
                    sheet_id, r.item_id, r.previous_assignee_id, r.new_assignee_id,
                )
    return failed


async def run(sheet_ids: list[str], loop: bool, interval: int) -> int:
    try:
        failed = await sweep_once(sheet_ids)
        while loop:
            await asyncio.sleep(interval)
            failed = await sweep_once(sheet_ids)
        return failed
    finally:
        await engine.dispose()


def main() -> None:
    parser = argparse.ArgumentParser(description="Reassign overdue work items")
    parser.add_argument("--sheet", action="append", required=True, help="Sheet id (repeatable)")
    parser.add_argument("--loop", action="store_true", help="Keep sweeping on an interval")
    parser.add_argument(
        "--interval",
        type=int,
        default=settings.sweep_interval_seconds,
        help="Seconds between sweeps with --loop",
    )
    args = parser.parse_args()

    failed = asyncio.run(run(args.sheet, args.loop, args.interval))
    sys.exit(1 if failed else 0)


if __name__ == "__main__":
    main()
