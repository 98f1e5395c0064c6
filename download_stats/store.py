"""SQLite persistence for asset snapshots and the daily summary.

One row per (asset, day) in ``asset_daily_stats`` and one row per day in
``daily_summary``. Both tables are written with upserts keyed by their
primary key, so re-running a day replaces rather than accumulates.
"""

import logging
import os
import sqlite3
from contextlib import contextmanager
from datetime import date, datetime, timezone
from pathlib import Path
from typing import Iterator, Optional

from download_stats.models import DailySummaryEntry, Release

logger = logging.getLogger(__name__)

SCHEMA = """
CREATE TABLE IF NOT EXISTS asset_daily_stats (
    asset_id INTEGER NOT NULL,
    asset_name TEXT NOT NULL,
    tag_name TEXT NOT NULL,
    date TEXT NOT NULL,
    download_count INTEGER NOT NULL,
    draft INTEGER NOT NULL,
    prerelease INTEGER NOT NULL,
    fetch_timestamp TEXT NOT NULL,
    PRIMARY KEY (asset_id, date)
);

CREATE TABLE IF NOT EXISTS daily_summary (
    date TEXT PRIMARY KEY,
    downloads_delta INTEGER NOT NULL,
    fetch_timestamp TEXT NOT NULL
);
"""


def utc_timestamp(now: Optional[datetime] = None) -> str:
    """Return an ISO 8601 UTC timestamp with millisecond precision, e.g. 2026-02-10T06:00:00.000Z."""
    now = now or datetime.now(timezone.utc)
    return now.astimezone(timezone.utc).strftime("%Y-%m-%dT%H:%M:%S.") + f"{now.microsecond // 1000:03d}Z"


class SnapshotStore:
    def __init__(self, conn: sqlite3.Connection):
        self.conn = conn
        self._depth = 0

    @classmethod
    def open(cls, path: str) -> "SnapshotStore":
        """Open (creating if needed) the database at ``path`` and ensure the schema."""
        directory = os.path.dirname(path)
        if directory:
            os.makedirs(directory, exist_ok=True)
        store = cls(sqlite3.connect(path))
        store.setup_schema()
        logger.info("Opened download database at %s", path)
        return store

    @classmethod
    def in_memory(cls) -> "SnapshotStore":
        store = cls(sqlite3.connect(":memory:"))
        store.setup_schema()
        return store

    @classmethod
    def open_copy(cls, path: str) -> "SnapshotStore":
        """Return an in-memory copy of the database at ``path`` without writing to it.

        The file is opened read-only; a missing file gives an empty database.
        """
        if not os.path.exists(path):
            return cls.in_memory()
        source = cls(sqlite3.connect(f"{Path(path).resolve().as_uri()}?mode=ro", uri=True))
        try:
            store = source.copy_in_memory()
        finally:
            source.close()
        store.setup_schema()
        return store

    def copy_in_memory(self) -> "SnapshotStore":
        """Return an in-memory copy of this database, for dry runs."""
        target = sqlite3.connect(":memory:")
        self.conn.backup(target)
        return SnapshotStore(target)

    def setup_schema(self) -> None:
        self.conn.executescript(SCHEMA)

    @contextmanager
    def transaction(self) -> Iterator[sqlite3.Connection]:
        """Commit everything executed inside the block, or nothing on error.

        Nested blocks join the outermost one, which alone commits.
        """
        self._depth += 1
        try:
            if self._depth > 1:
                yield self.conn
            else:
                with self.conn:
                    yield self.conn
        finally:
            self._depth -= 1

    def close(self) -> None:
        self.conn.close()

    def record_snapshot(self, day: date, releases: list[Release], fetch_timestamp: Optional[str] = None) -> int:
        """Upsert today's counter for every asset of every release.

        Draft and prerelease releases are stored too, with their flags.

        Returns:
            Number of asset rows written.
        """
        fetch_timestamp = fetch_timestamp or utc_timestamp()
        rows = [
            (
                asset.id,
                asset.name,
                release.tag_name,
                day.isoformat(),
                asset.download_count,
                int(release.draft),
                int(release.prerelease),
                fetch_timestamp,
            )
            for release in releases
            for asset in release.assets
        ]
        if not rows:
            logger.warning("No assets to record for %s", day)
            return 0

        with self.transaction() as conn:
            conn.executemany(
                """
                INSERT OR REPLACE INTO asset_daily_stats
                (asset_id, asset_name, tag_name, date, download_count, draft, prerelease, fetch_timestamp)
                VALUES (?, ?, ?, ?, ?, ?, ?, ?)
                """,
                rows,
            )
        logger.info("Stored %d asset snapshot row(s) for %s", len(rows), day)
        return len(rows)

    def snapshot_dates(self) -> list[date]:
        rows = self.conn.execute("SELECT DISTINCT date FROM asset_daily_stats ORDER BY date ASC").fetchall()
        return [date.fromisoformat(r[0]) for r in rows]

    def load_daily_summary(self, since: Optional[date] = None) -> list[DailySummaryEntry]:
        """Return summary rows in date order, optionally only those on or after ``since``."""
        if since is None:
            rows = self.conn.execute(
                "SELECT date, downloads_delta, fetch_timestamp FROM daily_summary ORDER BY date ASC"
            ).fetchall()
        else:
            rows = self.conn.execute(
                "SELECT date, downloads_delta, fetch_timestamp FROM daily_summary WHERE date >= ? ORDER BY date ASC",
                (since.isoformat(),),
            ).fetchall()
        return [DailySummaryEntry(date.fromisoformat(d), delta, ts) for d, delta, ts in rows]
