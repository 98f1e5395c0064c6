from datetime import date

import pytest

from download_stats.config import BackfillConfig, BackfillStrategy, GitHubConfig, PatternFallback
from download_stats.models import Asset, Release
from download_stats.store import SnapshotStore


def releases_from_counts(counts: dict[int, int], draft: bool = False, prerelease: bool = False) -> list[Release]:
    """One release holding an asset per (asset id -> download count) pair."""
    return [
        Release(
            id=1,
            tag_name="v1.0.0",
            draft=draft,
            prerelease=prerelease,
            assets=[Asset(id=asset_id, name=f"asset-{asset_id}.zip", download_count=count)
                    for asset_id, count in counts.items()],
        )
    ]


@pytest.fixture
def store():
    s = SnapshotStore.in_memory()
    yield s
    s.close()


@pytest.fixture
def seed(store):
    """Record a snapshot: seed(date(2026, 2, 10), {101: 500, 102: 20})."""

    def _seed(day: date, counts: dict[int, int]) -> None:
        store.record_snapshot(day, releases_from_counts(counts), fetch_timestamp="2026-01-01T00:00:00.000Z")

    return _seed


@pytest.fixture
def even_config():
    return BackfillConfig(strategy=BackfillStrategy.EVEN, minimum_gap_days=2, lookback_days=30)


@pytest.fixture
def pattern_config():
    return BackfillConfig(
        strategy=BackfillStrategy.PATTERN,
        minimum_gap_days=2,
        lookback_days=30,
        pattern_fallback=PatternFallback.EVEN,
    )


@pytest.fixture
def github_config():
    return GitHubConfig(repo="octo-org/octo-app", token="ghp_test123", max_pages=3)


@pytest.fixture
def make_releases():
    return releases_from_counts
