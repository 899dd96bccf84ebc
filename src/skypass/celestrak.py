"""Element-set sources: local TLE files and the CelesTrak GP service.

CelesTrak serves current general-perturbation element sets without an
account. Responses are cached on disk and requests are spaced out to stay
within CelesTrak's usage policy (it blocks clients that re-download the
same data more often than it is updated, roughly every two hours).
"""

from __future__ import annotations

import time
import logging
from pathlib import Path
from typing import Optional

import requests

from .tle_parser import ElementLines, split_elements

logger = logging.getLogger(__name__)

GP_URL = "https://celestrak.org/NORAD/elements/gp.php"

RATE_LIMIT_DELAY = 1.0  # seconds between requests
CACHE_MAX_AGE_HOURS = 2.0


class CelesTrakClient:
    """Client for the CelesTrak GP element-set query API."""

    def __init__(
        self,
        cache_dir: Optional[Path] = None,
        session: Optional[requests.Session] = None,
        timeout: float = 30.0,
    ):
        self.cache_dir = Path(cache_dir) if cache_dir else Path("data/cache")
        self.session = session or requests.Session()
        self.timeout = timeout
        self._last_request_time = 0.0

    def _rate_limit(self):
        """Respect CelesTrak rate limits."""
        elapsed = time.time() - self._last_request_time
        if elapsed < RATE_LIMIT_DELAY:
            time.sleep(RATE_LIMIT_DELAY - elapsed)
        self._last_request_time = time.time()

    def _query(self, params: dict[str, str], use_cache: bool = True) -> str:
        """Fetch TLE text for a GP query, with optional disk caching."""
        cache_key = "_".join(f"{k}-{v}" for k, v in sorted(params.items()))
        cache_file = self.cache_dir / f"{cache_key}.tle"

        if use_cache and cache_file.exists():
            age_hours = (time.time() - cache_file.stat().st_mtime) / 3600
            if age_hours < CACHE_MAX_AGE_HOURS:
                logger.debug("Cache hit: %s", cache_file.name)
                return cache_file.read_text()

        self._rate_limit()
        logger.info("Querying CelesTrak: %s", params)

        resp = self.session.get(
            GP_URL,
            params={**params, "FORMAT": "tle"},
            timeout=self.timeout,
        )
        resp.raise_for_status()
        text = resp.text

        # CelesTrak answers unknown objects with HTTP 200 and a plain message
        if "No GP data found" in text:
            logger.warning("No GP data for %s", params)
            text = ""

        if use_cache and text:
            self.cache_dir.mkdir(parents=True, exist_ok=True)
            cache_file.write_text(text)

        return text

    def get_elements(self, norad_id: int, use_cache: bool = True) -> list[ElementLines]:
        """Latest element set for a single object."""
        raw = self._query({"CATNR": str(norad_id)}, use_cache=use_cache)
        return split_elements(raw) if raw.strip() else []

    def get_group(self, group: str, use_cache: bool = True) -> list[ElementLines]:
        """Element sets for a named CelesTrak group (e.g. ``stations``, ``amateur``)."""
        raw = self._query({"GROUP": group}, use_cache=use_cache)
        return split_elements(raw) if raw.strip() else []


def load_tle_file(filepath: str | Path) -> list[ElementLines]:
    """Load ``(name, line1, line2)`` triples from a local 2- or 3-line TLE file."""
    text = Path(filepath).read_text()
    return split_elements(text)
