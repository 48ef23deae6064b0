from datetime import datetime, timezone

from applytrack.models import JOB_TYPES
from applytrack.normalize import normalize_adzuna, normalize_results


def _fields(listing) -> dict:
    return listing.to_dict()


def test_full_adzuna_hit():
    hit = {
        "id": 4123,
        "title": "Data Engineer",
        "company": {"display_name": "Acme"},
        "location": {"display_name": "Denver, CO"},
        "description": "Pipelines",
        "redirect_url": "https://adzuna.example/4123",
        "salary_min": 99999.6,
        "salary_max": "120000.4",
        "contract_type": "permanent",
        "category": {"tag": "it-jobs", "label": "IT Jobs"},
        "created": "2025-09-26T07:20:13Z",
    }
    job = normalize_adzuna(hit, requested_location="Colorado")

    assert job.id == "4123"
    assert job.company == "Acme"
    assert job.location == "Denver, CO"
    assert job.apply_url == "https://adzuna.example/4123"
    assert job.salary.min == 100000
    assert job.salary.max == 120000
    assert job.salary.currency == "USD"
    assert job.job_type == "full-time"
    assert job.tags == ["it-jobs"]
    assert job.source == "adzuna"
    assert job.posted_at == datetime(2025, 9, 26, 7, 20, 13, tzinfo=timezone.utc)


def test_missing_fields_get_defaults():
    job = normalize_adzuna({"title": "Welder"})

    assert job.company == "Unknown Company"
    assert job.location == "Remote"
    assert job.apply_url == "#"
    assert job.salary.min == 0 and job.salary.max == 0
    assert job.tags == []
    assert job.job_type == "full-time"
    assert job.id  # stable hash fallback
    assert all(value is not None for value in _fields(job).values())


def test_location_falls_back_to_requested_location():
    assert normalize_adzuna({"title": "x"}, requested_location="Austin").location == "Austin"


def test_malformed_fields_degrade_instead_of_raising():
    hit = {
        "company": "not-a-dict",
        "location": None,
        "salary_min": "lots",
        "salary_max": float("nan"),
        "category": ["odd"],
        "created": "yesterday-ish",
        "contract_type": "gig",
    }
    job = normalize_adzuna(hit)

    assert job.company == "Unknown Company"
    assert job.salary.min == 0 and job.salary.max == 0
    assert job.tags == []
    assert job.job_type in JOB_TYPES
    assert job.posted_at.tzinfo is not None


def test_non_dict_record_still_yields_listing():
    job = normalize_adzuna(None)
    assert job.title == ""
    assert job.job_type == "full-time"


def test_contract_fields_map_onto_enum():
    assert normalize_adzuna({"contract_type": "contract"}).job_type == "contract"
    assert normalize_adzuna({"contract_time": "part_time"}).job_type == "part-time"
    assert normalize_adzuna({"contract_type": "internship"}).job_type == "internship"


def test_currency_follows_country():
    assert normalize_adzuna({"salary_min": 1}, country="gb").salary.currency == "GBP"


def test_normalize_results_tolerates_missing_array():
    assert normalize_results({"count": 3}) == []
    assert len(normalize_results({"results": [{}, {}]})) == 2
