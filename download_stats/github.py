import logging
from typing import Optional

import requests

from download_stats.config import GitHubConfig
from download_stats.models import Asset, Release

logger = logging.getLogger(__name__)

API_BASE = "https://api.github.com"
USER_AGENT = "download-stats-fetcher (python-requests)"


class GitHubReleasesClient:
    def __init__(self, config: GitHubConfig, session: Optional[requests.Session] = None):
        self.config = config
        self.session = session or requests.Session()

    @property
    def releases_url(self) -> str:
        return f"{API_BASE}/repos/{self.config.repo}/releases"

    def _headers(self) -> dict[str, str]:
        headers = {
            "Accept": "application/vnd.github.v3+json",
            "User-Agent": USER_AGENT,
        }
        if self.config.token:
            headers["Authorization"] = f"token {self.config.token}"
        return headers

    @staticmethod
    def _parse_release(raw: dict) -> Release:
        return Release(
            id=int(raw["id"]),
            tag_name=raw.get("tag_name") or "",
            draft=bool(raw.get("draft")),
            prerelease=bool(raw.get("prerelease")),
            assets=[
                Asset(
                    id=int(a["id"]),
                    name=a.get("name") or "",
                    download_count=int(a.get("download_count") or 0),
                )
                for a in raw.get("assets") or []
            ],
        )

    def fetch_releases(self) -> list[Release]:
        """Fetch every release of the configured repository.

        Must not raise. Any request or payload failure is logged and an empty
        list is returned, so the run records an empty snapshot for today
        instead of aborting.
        """
        logger.info("Fetching releases from %s...", self.releases_url)
        releases: list[Release] = []
        url: Optional[str] = self.releases_url
        params: Optional[dict] = {"per_page": 100}

        try:
            for _ in range(self.config.max_pages):
                if not url:
                    break
                resp = self.session.get(url, headers=self._headers(), params=params, timeout=30)
                resp.raise_for_status()
                releases.extend(self._parse_release(r) for r in resp.json())
                # The next link already carries the query string
                url = resp.links.get("next", {}).get("url")
                params = None
            else:
                if url:
                    logger.warning(
                        "Stopped after %d page(s); more releases are available",
                        self.config.max_pages,
                    )
        except (requests.RequestException, ValueError, KeyError, TypeError) as e:
            logger.error("GitHub releases fetch failed: %s", e, exc_info=True)
            return []

        logger.info("Fetched %d releases.", len(releases))
        return releases
