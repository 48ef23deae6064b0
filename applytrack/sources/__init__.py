from .base import ListingProvider, ProviderPage
from .adzuna import AdzunaProvider
from .catalog import CATALOG, LocalCatalog

import requests

from applytrack.config import Settings
from applytrack.log import get_logger

log = get_logger(__name__)

__all__ = [
    "ListingProvider", "ProviderPage", "AdzunaProvider",
    "CATALOG", "LocalCatalog", "get_provider",
]


def get_provider(settings: Settings, session: requests.Session | None = None) -> ListingProvider | None:
    if settings.provider_configured:
        log.info("Registered provider: Adzuna (%s)", settings.adzuna_country)
        return AdzunaProvider(
            settings.adzuna_app_id,
            settings.adzuna_app_key,
            country=settings.adzuna_country,
            timeout=settings.provider_timeout,
            session=session,
        )
    log.info("No Adzuna credentials found — serving the local catalog")
    return None
