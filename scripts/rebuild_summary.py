"""Rebuild the daily summary table from stored asset snapshots.

Replays the daily reconciliation for every snapshot date in the database,
oldest first, using the backfill settings from the environment. Useful after
changing BACKFILL_STRATEGY or after importing snapshots from another copy.

Usage:
    python scripts/rebuild_summary.py [--reset] [--dry-run]
"""

import os
import sys

# Add project root to path
sys.path.insert(0, os.path.dirname(os.path.dirname(os.path.abspath(__file__))))

from dotenv import load_dotenv

from download_stats.config import load_config
from download_stats.errors import ReconciliationError
from download_stats.reconcile import rebuild_history
from download_stats.store import SnapshotStore
from download_stats.utils.logger import setup_logging

load_dotenv()


def main(argv: list[str] | None = None) -> int:
    argv = sys.argv[1:] if argv is None else argv
    reset = "--reset" in argv
    dry_run = "--dry-run" in argv

    logger = setup_logging(os.environ.get("LOG_LEVEL", "INFO"))
    logger.info("Starting daily summary rebuild")

    try:
        config = load_config()
    except ValueError as e:
        logger.error("Configuration error: %s", e)
        return 1

    if not os.path.exists(config.db_path):
        logger.error("Database not found: %s", config.db_path)
        return 1

    store = SnapshotStore.open_copy(config.db_path) if dry_run else SnapshotStore.open(config.db_path)
    try:
        replayed = rebuild_history(store, config.backfill, reset=reset)
        if dry_run:
            for entry in store.load_daily_summary():
                logger.info("  %s: %+d", entry.date, entry.downloads_delta)
    except ReconciliationError as e:
        logger.error("Rebuild failed, daily summary left unchanged: %s", e)
        return 1
    finally:
        store.close()

    logger.info("Replayed %d snapshot date(s)%s", replayed, " (dry run, nothing written)" if dry_run else "")
    return 0


if __name__ == "__main__":
    sys.exit(main())
