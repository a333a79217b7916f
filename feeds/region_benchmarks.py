"""
Region benchmark feed.

Loads the regional price-per-acre benchmark table from an http(s) URL or a
local JSON file. The feed is best effort: an unreachable source or a
malformed payload yields an empty table and a logged warning, never an
exception.

Expected payload:
    {"Berkshires (Western MA)": {"median_ppacre": 12000, "p25": 9000, "p75": 15000}}
"""

import json
import logging
from pathlib import Path
from typing import Any, Dict, Optional, Union

import requests

from core.valuation import RegionBenchmark, RegionStatsCache, parse_region_stats


logger = logging.getLogger(__name__)


# =============================================================================
# Configuration
# =============================================================================

USER_AGENT = "ParcelScout/1.0 (region benchmark loader)"
REQUEST_TIMEOUT_SECONDS = 30


def is_url(source: str) -> bool:
    return str(source).lower().startswith(("http://", "https://"))


class RegionBenchmarkFeed:
    """
    Fetches region benchmark payloads.

    Features:
    - Single requests.Session with an identifying User-Agent
    - Request timeout on every fetch
    - Local file fallback for offline use
    """

    def __init__(
        self,
        timeout: int = REQUEST_TIMEOUT_SECONDS,
        session: Optional[requests.Session] = None,
    ):
        self.timeout = timeout
        self._session = session or requests.Session()
        self._session.headers.update({
            "User-Agent": USER_AGENT,
            "Accept": "application/json",
        })

    def fetch_payload(self, source: Union[str, Path]) -> Any:
        """
        Fetch the raw payload.

        Raises:
            requests.RequestException: On network errors.
            OSError: If a local file cannot be read.
            ValueError: If the body is not JSON.
        """
        if is_url(str(source)):
            response = self._session.get(str(source), timeout=self.timeout)
            response.raise_for_status()
            return response.json()
        return json.loads(Path(source).read_text(encoding="utf-8"))

    def fetch(self, source: Union[str, Path, None]) -> Dict[str, RegionBenchmark]:
        """
        Fetch and parse the benchmark table.

        Args:
            source: URL or local path (None or empty yields an empty table)

        Returns:
            Region name -> RegionBenchmark; empty on any failure
        """
        if not source:
            return {}
        try:
            payload = self.fetch_payload(source)
        except (requests.RequestException, OSError, ValueError) as e:
            logger.warning("Region stats unavailable from %s: %s", source, e)
            return {}

        if not isinstance(payload, dict):
            logger.warning(
                "Region stats from %s is %s, expected an object",
                source,
                type(payload).__name__,
            )
            return {}

        table = parse_region_stats(payload)
        logger.info("Fetched benchmark stats for %d regions from %s", len(table), source)
        return table

    def load_into(self, cache: RegionStatsCache, source: Union[str, Path, None]) -> Dict[str, RegionBenchmark]:
        """Populate a cache from the source (no-op if already populated)."""
        return cache.populate(lambda: self.fetch(source))

    def close(self) -> None:
        self._session.close()

    def __enter__(self) -> "RegionBenchmarkFeed":
        return self

    def __exit__(self, *exc) -> None:
        self.close()


def load_region_stats(
    source: Union[str, Path, None],
    timeout: int = REQUEST_TIMEOUT_SECONDS,
) -> Dict[str, RegionBenchmark]:
    """
    Convenience function to fetch a benchmark table.

    Args:
        source: URL or local path
        timeout: Request timeout in seconds

    Returns:
        Region name -> RegionBenchmark
    """
    with RegionBenchmarkFeed(timeout=timeout) as feed:
        return feed.fetch(source)
