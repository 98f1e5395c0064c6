import logging
from datetime import date
from typing import Iterable, Optional

from download_stats.store import SnapshotStore, utc_timestamp

logger = logging.getLogger(__name__)

# Unchanged rows keep their timestamp so a repeated run leaves the table identical.
UPSERT_SUMMARY_SQL = """
INSERT INTO daily_summary (date, downloads_delta, fetch_timestamp)
VALUES (?, ?, ?)
ON CONFLICT(date) DO UPDATE SET
    downloads_delta = excluded.downloads_delta,
    fetch_timestamp = excluded.fetch_timestamp
WHERE daily_summary.downloads_delta != excluded.downloads_delta
"""


def recent_deltas(store: SnapshotStore, before: date, limit: int) -> list[int]:
    """Return up to ``limit`` summary deltas dated strictly before ``before``, oldest first."""
    rows = store.conn.execute(
        "SELECT downloads_delta FROM daily_summary WHERE date < ? ORDER BY date DESC LIMIT ?",
        (before.isoformat(), limit),
    ).fetchall()
    return [int(r[0] or 0) for r in reversed(rows)]


def write_summaries(
    store: SnapshotStore,
    entries: Iterable[tuple[date, int]],
    fetch_timestamp: Optional[str] = None,
) -> int:
    """Upsert (date, delta) pairs into the daily summary as one transaction.

    Either every date is written or, if any write fails, none is.

    Returns:
        Number of rows inserted or changed.
    """
    fetch_timestamp = fetch_timestamp or utc_timestamp()
    rows = [(day.isoformat(), int(delta), fetch_timestamp) for day, delta in entries]
    if not rows:
        logger.info("No summary rows to write")
        return 0

    before = store.conn.total_changes
    with store.transaction() as conn:
        conn.executemany(UPSERT_SUMMARY_SQL, rows)
    changed = store.conn.total_changes - before

    logger.info(
        "Wrote daily summary for %s..%s: %d row(s), %d changed",
        rows[0][0], rows[-1][0], len(rows), changed,
    )
    return changed
