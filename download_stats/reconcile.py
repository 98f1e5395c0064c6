"""Turn stored asset snapshots into one daily summary row per calendar day.

A run looks for the last snapshot before today, measures the download delta
across the gap and writes one summary row per gap day. Nothing is written
until every value for the run has been computed, so a failing run leaves the
summary table untouched.
"""

import logging
from dataclasses import dataclass, field
from datetime import date, timedelta
from typing import Optional

from download_stats.config import BackfillConfig, BackfillStrategy
from download_stats.delta import calculate_delta
from download_stats.distribute import distribute, should_distribute
from download_stats.gaps import detect_gap
from download_stats.models import BackfillRun, Release
from download_stats.store import SnapshotStore
from download_stats.summary import recent_deltas, write_summaries

logger = logging.getLogger(__name__)


@dataclass
class ReconcileResult:
    entries: list[tuple[date, int]] = field(default_factory=list)
    backfill: Optional[BackfillRun] = None
    changed: int = 0


def _compute_entries(
    store: SnapshotStore, today: date, config: BackfillConfig
) -> tuple[list[tuple[date, int]], Optional[BackfillRun]]:
    gap = detect_gap(store, today)
    if gap is None:
        logger.info("First run detected. Initializing %s with delta=0", today)
        return [(today, 0)], None

    if not should_distribute(gap.days, config):
        yesterday = today - timedelta(days=1)
        delta = calculate_delta(store, yesterday, today)
        logger.info(
            "No backfill (strategy=%s, gap=%d, minimum=%d): %s delta=%d",
            config.strategy.value, gap.days, config.minimum_gap_days, today, delta,
        )
        return [(today, delta)], None

    total_delta = calculate_delta(store, gap.last_snapshot_date, today)
    baseline: list[int] = []
    if config.strategy is BackfillStrategy.PATTERN:
        baseline = recent_deltas(store, gap.last_snapshot_date, config.lookback_days)

    values = distribute(gap.days, total_delta, config, baseline)
    dates = gap.dates()
    run = BackfillRun(
        start_date=gap.last_snapshot_date,
        end_date=today,
        total_delta=total_delta,
        strategy=config.strategy.value,
        lookback_days=config.lookback_days if config.strategy is BackfillStrategy.PATTERN else None,
        minimum_gap_days=config.minimum_gap_days,
    )
    logger.info(
        "Backfilling %d day(s) from %s to %s with %s distribution, total delta=%d",
        len(dates), dates[0], dates[-1], run.strategy, total_delta,
    )
    return list(zip(dates, values)), run


def reconcile(
    store: SnapshotStore,
    today: date,
    config: BackfillConfig,
    fetch_timestamp: Optional[str] = None,
) -> ReconcileResult:
    """Compute and persist the daily summary rows for a run ending ``today``.

    Raises:
        ReconciliationError: On an invalid gap or an unusable distribution.
            Nothing is written in that case.
    """
    entries, run = _compute_entries(store, today, config)
    changed = write_summaries(store, entries, fetch_timestamp)
    return ReconcileResult(entries=entries, backfill=run, changed=changed)


def record_and_reconcile(
    store: SnapshotStore,
    today: date,
    releases: list[Release],
    config: BackfillConfig,
) -> ReconcileResult:
    """Store today's snapshot and reconcile it as one transaction.

    If reconciliation fails the snapshot is rolled back too, so the next run
    still sees the previous snapshot and backfills the whole gap.
    """
    with store.transaction():
        store.record_snapshot(today, releases)
        return reconcile(store, today, config)


def rebuild_history(
    store: SnapshotStore,
    config: BackfillConfig,
    reset: bool = False,
    fetch_timestamp: Optional[str] = None,
) -> int:
    """Replay reconciliation for every stored snapshot date, oldest first.

    The delete and every replayed day commit together; a failing day leaves
    the summary table as it was.

    Args:
        store: Snapshot store to rebuild.
        config: Backfill settings to replay with.
        reset: Delete all existing summary rows first, so days that the
            replay does not cover are not left behind.
        fetch_timestamp: Timestamp stamped on changed rows.

    Returns:
        Number of snapshot dates replayed.
    """
    dates = store.snapshot_dates()
    if not dates:
        logger.info("No snapshots stored, nothing to rebuild")
        return 0

    with store.transaction() as conn:
        if reset:
            deleted = conn.execute("DELETE FROM daily_summary").rowcount
            logger.info("Clearing %d daily summary row(s)", deleted)
        for day in dates:
            reconcile(store, day, config, fetch_timestamp)

    logger.info("Rebuilt daily summary from %d snapshot date(s), %s to %s", len(dates), dates[0], dates[-1])
    return len(dates)
