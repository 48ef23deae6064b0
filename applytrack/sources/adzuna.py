"""Adzuna job search, the live listing provider.

Sign up at https://developer.adzuna.com/ for an app id and key.
"""
from __future__ import annotations

import threading
from typing import Any

import requests

from applytrack.errors import UpstreamUnavailable
from applytrack.log import get_logger
from applytrack.normalize import PROVIDER_SOURCE, normalize_results
from applytrack.sources.base import ListingProvider, ProviderPage

log = get_logger(__name__)

BASE_URL = "https://api.adzuna.com/v1/api/jobs/{country}/search/{page}"


class AdzunaProvider(ListingProvider):
    name = PROVIDER_SOURCE

    def __init__(
        self,
        app_id: str,
        app_key: str,
        *,
        country: str = "us",
        timeout: float = 8.0,
        session: requests.Session | None = None,
    ) -> None:
        self.app_id = app_id
        self.app_key = app_key
        self.country = country
        self.timeout = timeout
        self.session = session or requests.Session()

    def _fetch(self, url: str, params: dict) -> Any:
        """GET and decode JSON, giving up once ``timeout`` seconds of wall clock have passed.

        ``requests`` only bounds each connect and each socket read, so a server
        trickling its body can outlast that. The request runs on a daemon
        thread and is abandoned at the deadline.
        """
        outcome: dict[str, Any] = {}

        def worker() -> None:
            try:
                r = self.session.get(url, params=params, timeout=self.timeout)
                r.raise_for_status()
                outcome["data"] = r.json()
            except Exception as exc:
                outcome["error"] = exc

        t = threading.Thread(target=worker, name="adzuna-fetch", daemon=True)
        t.start()
        t.join(self.timeout)
        if t.is_alive():
            raise UpstreamUnavailable(f"Adzuna did not answer within {self.timeout:g}s")

        exc = outcome.get("error")
        if isinstance(exc, (requests.RequestException, ValueError)):
            raise UpstreamUnavailable(f"Adzuna search failed: {exc}") from exc
        if exc is not None:
            raise exc
        return outcome.get("data")

    def search(self, query: str, location: str, page: int, page_size: int) -> ProviderPage:
        params: dict = {
            "app_id": self.app_id,
            "app_key": self.app_key,
            "results_per_page": page_size,
            "what": query,
            "content-type": "application/json",
        }
        if location:
            params["where"] = location

        data = self._fetch(BASE_URL.format(country=self.country, page=page), params)

        # A null result list is an empty page.
        if not isinstance(data, dict) or not isinstance(data.get("results") or [], list):
            raise UpstreamUnavailable("Adzuna returned a malformed body")

        listings = normalize_results(data, requested_location=location, country=self.country)
        try:
            total = int(data.get("count") or len(listings))
        except (TypeError, ValueError):
            total = len(listings)
        log.debug("Adzuna q=%r loc=%r page=%d returned %d of %d", query, location, page, len(listings), total)
        return ProviderPage(listings=listings, total=total)
