from __future__ import annotations

from abc import ABC, abstractmethod
from dataclasses import dataclass

from applytrack.models import Listing


@dataclass
class ProviderPage:
    listings: list[Listing]
    total: int


class ListingProvider(ABC):
    name: str = "provider"

    @abstractmethod
    def search(self, query: str, location: str, page: int, page_size: int) -> ProviderPage:
        """One page of normalized listings; raises UpstreamUnavailable on any failure."""
