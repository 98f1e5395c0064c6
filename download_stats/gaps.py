import logging
from datetime import date
from typing import Optional

from download_stats.errors import InvalidGapError
from download_stats.models import Gap
from download_stats.store import SnapshotStore

logger = logging.getLogger(__name__)


def last_snapshot_before(store: SnapshotStore, today: date) -> Optional[date]:
    row = store.conn.execute(
        "SELECT MAX(date) FROM asset_daily_stats WHERE date < ?",
        (today.isoformat(),),
    ).fetchone()
    if not row or row[0] is None:
        return None
    return date.fromisoformat(row[0])


def detect_gap(store: SnapshotStore, today: date, last_snapshot_date: Optional[date] = None) -> Optional[Gap]:
    """Find the span between the most recent prior snapshot and ``today``.

    Args:
        store: Snapshot store to query.
        today: Date of the current run.
        last_snapshot_date: Overrides the store lookup; used to validate
            dates that came from elsewhere.

    Returns:
        The Gap, or None when no snapshot exists before today (first run).

    Raises:
        InvalidGapError: If the last snapshot is not strictly before today.
    """
    if last_snapshot_date is None:
        last_snapshot_date = last_snapshot_before(store, today)
    if last_snapshot_date is None:
        logger.info("No snapshot recorded before %s", today)
        return None

    gap = Gap(last_snapshot_date=last_snapshot_date, today=today)
    if gap.days <= 0:
        raise InvalidGapError(
            f"Last snapshot {last_snapshot_date} is not before {today} (gap of {gap.days} day(s))"
        )
    logger.info("Last snapshot %s, gap of %d day(s) up to %s", last_snapshot_date, gap.days, today)
    return gap
