"""
Job search across the live provider and the local catalog.

search → provider (if configured) → on any failure, local catalog.
Provider errors are never raised to the caller; the result's ``source``
and ``degraded`` flags say which path served it.
"""
from __future__ import annotations

from concurrent.futures import ThreadPoolExecutor
from typing import Iterable

import requests

from applytrack.config import Settings
from applytrack.errors import UpstreamUnavailable, ValidationError
from applytrack.log import get_logger
from applytrack.models import JOB_TYPES, SOURCE_LOCAL, Listing, SearchResult
from applytrack.sources import ListingProvider, LocalCatalog, get_provider

log = get_logger(__name__)

DEFAULT_QUERY = "software engineer"
DEFAULT_PAGE_SIZE = 20


def _check_paging(page: int, page_size: int) -> None:
    if page < 1:
        raise ValidationError("page must be 1 or greater")
    if page_size < 1:
        raise ValidationError("page size must be 1 or greater")


class JobAggregator:
    def __init__(
        self,
        provider: ListingProvider | None = None,
        catalog: LocalCatalog | None = None,
    ) -> None:
        self.provider = provider
        self.catalog = catalog or LocalCatalog()

    def search(
        self,
        query: str = DEFAULT_QUERY,
        location: str = "",
        page: int = 1,
        page_size: int = DEFAULT_PAGE_SIZE,
        job_type: str | None = None,
    ) -> SearchResult:
        _check_paging(page, page_size)
        if job_type and job_type not in JOB_TYPES:
            raise ValidationError(f"Unknown job type {job_type!r}; expected one of {', '.join(JOB_TYPES)}")

        query = (query or "").strip()
        location = (location or "").strip()

        degraded = False
        if self.provider is not None:
            try:
                result = self.provider.search(query, location, page, page_size)
                listings = result.listings
                if job_type:
                    listings = [j for j in listings if j.job_type == job_type]
                log.info("[%s] q=%r returned %d jobs", self.provider.name, query, len(listings))
                return SearchResult(listings=listings, total=result.total, source=self.provider.name)
            except UpstreamUnavailable as exc:
                log.warning("Provider unavailable, using local catalog: %s", exc)
                degraded = True
            except Exception as exc:
                log.exception("Provider search crashed, using local catalog: %s", exc)
                degraded = True

        local = self.catalog.search(query, location, page, page_size, job_type)
        return SearchResult(
            listings=local.listings,
            total=local.total,
            source=SOURCE_LOCAL,
            degraded=degraded,
        )

    def search_many(
        self,
        queries: Iterable[str],
        location: str = "",
        page: int = 1,
        page_size: int = DEFAULT_PAGE_SIZE,
        job_type: str | None = None,
        max_workers: int = 4,
    ) -> dict[str, SearchResult]:
        """Run several searches in parallel; results keyed by query, in input order."""
        queries = list(dict.fromkeys(queries))
        if not queries:
            return {}
        with ThreadPoolExecutor(max_workers=min(max_workers, len(queries))) as pool:
            futures = {
                q: pool.submit(self.search, q, location, page, page_size, job_type)
                for q in queries
            }
            return {q: fut.result() for q, fut in futures.items()}

    def get_by_id(self, listing_id: str) -> Listing | None:
        """Local catalog lookup only; the provider has no by-id endpoint here."""
        return self.catalog.get(listing_id)


def build_aggregator(settings: Settings, session: requests.Session | None = None) -> JobAggregator:
    return JobAggregator(provider=get_provider(settings, session))
