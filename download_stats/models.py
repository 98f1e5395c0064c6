from dataclasses import dataclass, field
from datetime import date, timedelta
from typing import Optional


@dataclass
class Asset:
    id: int
    name: str
    download_count: int = 0


@dataclass
class Release:
    id: int
    tag_name: str
    draft: bool = False
    prerelease: bool = False
    assets: list[Asset] = field(default_factory=list)


@dataclass(frozen=True)
class DailySummaryEntry:
    date: date
    downloads_delta: int
    fetch_timestamp: Optional[str] = None


@dataclass(frozen=True)
class Gap:
    """Span between the last recorded snapshot and today.

    The day after ``last_snapshot_date`` is gap day 1 and ``today`` is the
    last gap day.
    """

    last_snapshot_date: date
    today: date

    @property
    def days(self) -> int:
        return (self.today - self.last_snapshot_date).days

    def dates(self) -> list[date]:
        """Calendar dates of the gap, oldest first."""
        return [self.last_snapshot_date + timedelta(days=i) for i in range(1, self.days + 1)]


@dataclass(frozen=True)
class BackfillRun:
    start_date: date  # exclusive
    end_date: date  # inclusive
    total_delta: int
    strategy: str
    lookback_days: Optional[int] = None
    minimum_gap_days: Optional[int] = None
