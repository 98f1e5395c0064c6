import os
import re
from dataclasses import dataclass, field
from enum import Enum
from typing import Optional
from zoneinfo import ZoneInfo, ZoneInfoNotFoundError

DEFAULT_REPO = "comfyanonymous/ComfyUI"
DEFAULT_DB_PATH = os.path.join("data", "downloads.db")

_REPO_PATTERN = re.compile(r"^[A-Za-z0-9_.-]+/[A-Za-z0-9_.-]+$")


class BackfillStrategy(str, Enum):
    NONE = "none"
    EVEN = "even"
    PATTERN = "pattern"
    # Declared by the read side but has no distribution behind it yet.
    STOCHASTIC = "stochastic"


class PatternFallback(str, Enum):
    EVEN = "even"
    NONE = "none"


IMPLEMENTED_STRATEGIES = (BackfillStrategy.NONE, BackfillStrategy.EVEN, BackfillStrategy.PATTERN)


@dataclass(frozen=True)
class GitHubConfig:
    repo: str = DEFAULT_REPO
    token: Optional[str] = None
    max_pages: int = 10


@dataclass(frozen=True)
class BackfillConfig:
    strategy: BackfillStrategy = BackfillStrategy.EVEN
    minimum_gap_days: int = 2
    lookback_days: int = 30
    pattern_fallback: PatternFallback = PatternFallback.EVEN


@dataclass(frozen=True)
class AppConfig:
    github: GitHubConfig = field(default_factory=GitHubConfig)
    backfill: BackfillConfig = field(default_factory=BackfillConfig)
    db_path: str = DEFAULT_DB_PATH
    timezone: str = "UTC"


def load_config() -> AppConfig:
    """Load and validate all configuration from environment variables.

    Every problem is collected and reported in a single ValueError so a bad
    deployment fails once, before any data is touched.
    """
    errors: list[str] = []

    def _get(name: str, default: str = "") -> str:
        return os.environ.get(name, "").strip() or default

    def _positive_int(name: str, default: int) -> int:
        raw = _get(name)
        if not raw:
            return default
        try:
            value = int(raw)
        except ValueError:
            errors.append(f"{name} must be an integer, got {raw!r}")
            return default
        if value < 1:
            errors.append(f"{name} must be at least 1, got {value}")
        return value

    def _choice(name: str, enum_cls, default):
        raw = _get(name).lower()
        if not raw:
            return default
        try:
            return enum_cls(raw)
        except ValueError:
            allowed = ", ".join(m.value for m in enum_cls)
            errors.append(f"{name} must be one of: {allowed} (got {raw!r})")
            return default

    repo = _get("GITHUB_REPO", DEFAULT_REPO)
    if not _REPO_PATTERN.match(repo):
        errors.append(f"GITHUB_REPO must look like 'owner/name', got {repo!r}")

    strategy = _choice("BACKFILL_STRATEGY", BackfillStrategy, BackfillStrategy.EVEN)
    if strategy not in IMPLEMENTED_STRATEGIES:
        errors.append(f"BACKFILL_STRATEGY '{strategy.value}' is not implemented")

    backfill = BackfillConfig(
        strategy=strategy,
        minimum_gap_days=_positive_int("BACKFILL_MIN_GAP_DAYS", 2),
        lookback_days=_positive_int("BACKFILL_LOOKBACK_DAYS", 30),
        pattern_fallback=_choice("BACKFILL_PATTERN_FALLBACK", PatternFallback, PatternFallback.EVEN),
    )

    tz_name = _get("DOWNLOADS_TIMEZONE", "UTC")
    try:
        ZoneInfo(tz_name)
    except (ZoneInfoNotFoundError, ValueError):
        errors.append(f"DOWNLOADS_TIMEZONE is not a known time zone: {tz_name!r}")

    github = GitHubConfig(
        repo=repo,
        token=_get("PAT") or _get("GITHUB_TOKEN") or None,
        max_pages=_positive_int("GITHUB_MAX_PAGES", 10),
    )

    if errors:
        raise ValueError(f"Invalid configuration: {'; '.join(errors)}")

    return AppConfig(
        github=github,
        backfill=backfill,
        db_path=_get("DOWNLOADS_DB_PATH", DEFAULT_DB_PATH),
        timezone=tz_name,
    )
