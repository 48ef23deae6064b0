"""
Convert Adzuna's raw search hits into canonical Listing records.

Pure functions, no I/O. Every field degrades to a default instead of
failing the whole record.
"""
from __future__ import annotations

import hashlib
from typing import Any

from applytrack.log import get_logger
from applytrack.models import DEFAULT_JOB_TYPE, JOB_TYPES, Listing, Salary, from_iso, utcnow

log = get_logger(__name__)

PROVIDER_SOURCE = "adzuna"
UNKNOWN_COMPANY = "Unknown Company"
DEFAULT_LOCATION = "Remote"

# Adzuna country segment → currency it reports salaries in.
COUNTRY_CURRENCY: dict[str, str] = {
    "us": "USD", "gb": "GBP", "ca": "CAD", "au": "AUD", "nz": "NZD",
    "in": "INR", "sg": "SGD", "za": "ZAR", "br": "BRL", "mx": "MXN",
    "pl": "PLN", "ch": "CHF", "de": "EUR", "fr": "EUR", "nl": "EUR",
    "it": "EUR", "es": "EUR", "at": "EUR", "be": "EUR",
}

_CONTRACT_TYPE_MAP: dict[str, str] = {
    "permanent": "full-time",
    "contract": "contract",
}

_CONTRACT_TIME_MAP: dict[str, str] = {
    "full_time": "full-time",
    "part_time": "part-time",
}


def _nested_name(value: Any) -> str:
    if isinstance(value, dict):
        name = value.get("display_name")
        if name:
            return str(name).strip()
    return ""


def _whole_units(value: Any) -> int:
    try:
        return int(round(float(value or 0)))
    except (TypeError, ValueError, OverflowError):
        return 0


def _job_type(hit: dict) -> str:
    """Map contract fields onto the enumerated job types; unknown → full-time."""
    contract_type = str(hit.get("contract_type") or "").strip().lower()
    if contract_type in _CONTRACT_TYPE_MAP:
        return _CONTRACT_TYPE_MAP[contract_type]
    if contract_type in JOB_TYPES:
        return contract_type
    contract_time = str(hit.get("contract_time") or "").strip().lower()
    return _CONTRACT_TIME_MAP.get(contract_time, DEFAULT_JOB_TYPE)


def _tags(hit: dict) -> list[str]:
    category = hit.get("category")
    if isinstance(category, dict) and category.get("tag"):
        return [str(category["tag"])]
    return []


def _posted_at(raw: Any):
    # Adzuna format: "2025-09-26T07:20:13Z"
    if not raw:
        return utcnow()
    try:
        return from_iso(raw)
    except (TypeError, ValueError):
        log.debug("Unparseable created timestamp %r", raw)
        return utcnow()


def _listing_id(hit: dict, title: str, company: str, location: str) -> str:
    raw_id = hit.get("id")
    if raw_id not in (None, ""):
        return str(raw_id)
    return hashlib.sha256(f"{title}{company}{location}".encode()).hexdigest()[:12]


def normalize_adzuna(hit: Any, requested_location: str = "", country: str = "us") -> Listing:
    """Map one Adzuna result onto a Listing with defaults for every gap."""
    if not isinstance(hit, dict):
        hit = {}

    title = str(hit.get("title") or "").strip()
    company = _nested_name(hit.get("company")) or UNKNOWN_COMPANY
    location = _nested_name(hit.get("location")) or requested_location or DEFAULT_LOCATION

    return Listing(
        id=_listing_id(hit, title, company, location),
        title=title,
        company=company,
        location=location,
        description=str(hit.get("description") or ""),
        apply_url=str(hit.get("redirect_url") or "#"),
        salary=Salary(
            min=_whole_units(hit.get("salary_min")),
            max=_whole_units(hit.get("salary_max")),
            currency=COUNTRY_CURRENCY.get(country.lower(), "USD"),
        ),
        job_type=_job_type(hit),
        tags=_tags(hit),
        source=PROVIDER_SOURCE,
        posted_at=_posted_at(hit.get("created")),
    )


def normalize_results(data: dict, requested_location: str = "", country: str = "us") -> list[Listing]:
    results = data.get("results") if isinstance(data, dict) else None
    if not isinstance(results, list):
        return []
    return [normalize_adzuna(hit, requested_location, country) for hit in results]
