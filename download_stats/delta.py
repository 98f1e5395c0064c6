import logging
from datetime import date

from download_stats.store import SnapshotStore

logger = logging.getLogger(__name__)

# An asset missing from the older snapshot is new, so its whole count is new downloads.
AGGREGATE_DELTA_SQL = """
SELECT
    COALESCE(SUM(
        CASE
            WHEN old.download_count IS NULL THEN new.download_count
            ELSE new.download_count - old.download_count
        END
    ), 0) AS delta
FROM asset_daily_stats AS new
LEFT JOIN asset_daily_stats AS old
    ON new.asset_id = old.asset_id AND old.date = ?
WHERE new.date = ?
"""


def calculate_delta(store: SnapshotStore, older: date, newer: date) -> int:
    """Net new downloads across all assets between two snapshot dates."""
    row = store.conn.execute(AGGREGATE_DELTA_SQL, (older.isoformat(), newer.isoformat())).fetchone()
    delta = int(row[0] or 0)
    logger.info("Download delta %s -> %s: %d", older, newer, delta)
    return delta
