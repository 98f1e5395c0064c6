import logging
import os
import sqlite3
import sys
from datetime import datetime
from typing import Optional
from zoneinfo import ZoneInfo

from dotenv import load_dotenv

from download_stats.config import load_config
from download_stats.errors import ReconciliationError
from download_stats.github import GitHubReleasesClient
from download_stats.reconcile import record_and_reconcile
from download_stats.store import SnapshotStore
from download_stats.utils.logger import setup_logging

load_dotenv()

logger = logging.getLogger(__name__)


def _close_quietly(store: Optional[SnapshotStore]) -> None:
    """Close the store; the data is already committed, so a failure here is only logged."""
    if store is None:
        return
    try:
        store.close()
        logger.info("Database connection closed.")
    except sqlite3.Error as e:
        logger.warning("Error closing database: %s", e)


def main(argv: Optional[list[str]] = None) -> None:
    argv = sys.argv[1:] if argv is None else argv
    dry_run = "--dry-run" in argv
    log = setup_logging(os.environ.get("LOG_LEVEL", "INFO"))
    log.info("Starting release download stats update")

    try:
        config = load_config()
    except ValueError as e:
        log.error("Configuration error: %s", e)
        sys.exit(1)

    today = datetime.now(ZoneInfo(config.timezone)).date()
    log.info(
        "Run date: %s, repo: %s, backfill strategy: %s",
        today, config.github.repo, config.backfill.strategy.value,
    )

    if dry_run:
        store = SnapshotStore.open_copy(config.db_path)
        log.info("Dry run: working on an in-memory copy of %s", config.db_path)
    else:
        store = SnapshotStore.open(config.db_path)

    failed = False
    try:
        releases = GitHubReleasesClient(config.github).fetch_releases()
        result = record_and_reconcile(store, today, releases, config.backfill)
        for day, delta in result.entries:
            log.info("  %s: %+d", day, delta)
    except ReconciliationError as e:
        log.error("Reconciliation failed, nothing stored for %s: %s", today, e)
        failed = True
    finally:
        _close_quietly(store)

    if failed:
        sys.exit(1)

    if dry_run:
        log.info("Dry run complete, nothing written")
    else:
        log.info("Download stats updated successfully")


if __name__ == "__main__":
    main()
