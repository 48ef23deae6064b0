import json
import threading
import time
from http.server import BaseHTTPRequestHandler, ThreadingHTTPServer

import pytest
import requests

from applytrack.aggregator import JobAggregator, build_aggregator
from applytrack.config import Settings
from applytrack.errors import UpstreamUnavailable, ValidationError
from applytrack.sources import CATALOG, AdzunaProvider, ListingProvider, ProviderPage
from applytrack.sources import adzuna
from applytrack.normalize import normalize_adzuna


class FakeResponse:
    def __init__(self, status: int = 200, body=None) -> None:
        self.status_code = status
        self.body = body

    def raise_for_status(self) -> None:
        if self.status_code >= 400:
            raise requests.HTTPError(f"{self.status_code} error")

    def json(self):
        if isinstance(self.body, Exception):
            raise self.body
        return self.body


class FakeSession:
    def __init__(self, response=None, error: Exception | None = None) -> None:
        self.response = response
        self.error = error
        self.calls: list[tuple[str, dict, float]] = []

    def get(self, url, params=None, timeout=None):
        self.calls.append((url, params, timeout))
        if self.error is not None:
            raise self.error
        return self.response


class BrokenProvider(ListingProvider):
    name = "adzuna"

    def __init__(self, error: Exception) -> None:
        self.error = error

    def search(self, query, location, page, page_size):
        raise self.error


def _provider(session) -> AdzunaProvider:
    return AdzunaProvider("id", "key", timeout=8, session=session)


def test_no_credentials_always_serves_local_catalog():
    agg = build_aggregator(Settings())
    for query in ("engineer", "", "nothing-matches-this", "React"):
        result = agg.search(query)
        assert result.source == "local-demo"
        assert result.degraded is False


def test_local_pagination_reports_filtered_total():
    agg = JobAggregator()
    everything = agg.search("engineer", page=1, page_size=100)
    page_two = agg.search("engineer", page=2, page_size=3)

    assert page_two.total == everything.total
    assert len(page_two.listings) <= 3
    assert [j.id for j in page_two.listings] == [j.id for j in everything.listings][3:6]


def test_local_filters_query_location_and_type():
    agg = JobAggregator()

    react = agg.search("react", page_size=50)
    assert [j.id for j in react.listings] == ["mock1", "mock3", "mock6", "mock8"]

    remote = agg.search("", location="REMOTE", page_size=50)
    assert {j.id for j in remote.listings} == {"mock2", "mock6"}

    typed = agg.search("developer", page_size=50, job_type="remote")
    assert [j.id for j in typed.listings] == ["mock6"]


def test_local_catalog_keeps_declaration_order():
    result = JobAggregator().search("", page_size=50)
    assert [j.id for j in result.listings] == [j.id for j in CATALOG]
    assert result.total == 8


def test_page_past_the_end_is_empty_but_total_is_kept():
    result = JobAggregator().search("", page=5, page_size=3)
    assert result.listings == []
    assert result.total == 8


def test_provider_success_passes_through_order_and_count():
    body = {
        "count": 1234,
        "results": [
            {"id": 2, "title": "B", "company": {"display_name": "Beta"}},
            {"id": 1, "title": "A"},
        ],
    }
    session = FakeSession(FakeResponse(200, body))
    result = JobAggregator(provider=_provider(session)).search("python", "Boston", 2, 10)

    assert result.source == "adzuna"
    assert result.degraded is False
    assert result.total == 1234
    assert [j.id for j in result.listings] == ["2", "1"]
    assert result.listings[1].company == "Unknown Company"
    assert result.listings[1].location == "Boston"

    url, params, timeout = session.calls[0]
    assert url.endswith("/jobs/us/search/2")
    assert params["what"] == "python"
    assert params["where"] == "Boston"
    assert params["results_per_page"] == 10
    assert timeout == 8


@pytest.mark.parametrize(
    "session",
    [
        FakeSession(error=requests.Timeout("slow")),
        FakeSession(error=requests.ConnectionError("down")),
        FakeSession(FakeResponse(503, {})),
        FakeSession(FakeResponse(200, ValueError("not json"))),
        FakeSession(FakeResponse(200, ["not", "an", "object"])),
    ],
)
def test_provider_failures_fall_back_silently(session):
    result = JobAggregator(provider=_provider(session)).search("engineer", page=1, page_size=3)

    assert result.source == "local-demo"
    assert result.degraded is True
    assert len(result.listings) <= 3


def test_unexpected_provider_crash_is_also_masked():
    agg = JobAggregator(provider=BrokenProvider(RuntimeError("bug")))
    assert agg.search("").source == "local-demo"


def test_adzuna_provider_raises_upstream_unavailable():
    with pytest.raises(UpstreamUnavailable):
        _provider(FakeSession(FakeResponse(401, {}))).search("x", "", 1, 5)


def test_type_filter_applies_to_provider_page():
    class Fixed(ListingProvider):
        name = "adzuna"

        def search(self, query, location, page, page_size):
            listings = [
                normalize_adzuna({"id": 1, "contract_type": "contract"}),
                normalize_adzuna({"id": 2}),
            ]
            return ProviderPage(listings=listings, total=40)

    result = JobAggregator(provider=Fixed()).search("x", job_type="contract")
    assert [j.id for j in result.listings] == ["1"]
    assert result.total == 40


def test_invalid_paging_and_type_are_rejected():
    agg = JobAggregator()
    with pytest.raises(ValidationError):
        agg.search("x", page=0)
    with pytest.raises(ValidationError):
        agg.search("x", page_size=0)
    with pytest.raises(ValidationError):
        agg.search("x", job_type="gig")


def test_get_by_id_uses_local_catalog_only():
    session = FakeSession(error=AssertionError("network must not be used"))
    agg = JobAggregator(provider=_provider(session))

    assert agg.get_by_id("mock4").title == "DevOps Engineer"
    assert agg.get_by_id("4123") is None
    assert session.calls == []


def test_search_many_runs_each_query():
    results = JobAggregator().search_many(["react", "python", "react"], page_size=50)
    assert list(results) == ["react", "python"]
    assert results["python"].total == 2


def test_null_results_is_an_empty_provider_page():
    session = FakeSession(FakeResponse(200, {"count": 0, "results": None}))
    result = JobAggregator(provider=_provider(session)).search("nothing")

    assert result.source == "adzuna"
    assert result.listings == []
    assert result.total == 0


# ── Real sockets ─────────────────────────────────────────────────────────


@pytest.fixture
def listing_server(monkeypatch):
    """Local HTTP server answering every GET with one listing, one byte every ``delay`` seconds."""
    body = json.dumps({"count": 1, "results": [{"id": 7, "title": "Engineer"}]}).encode()
    settings = {"delay": 0.0}

    class Handler(BaseHTTPRequestHandler):
        def do_GET(self):
            self.send_response(200)
            self.send_header("Content-Type", "application/json")
            self.send_header("Content-Length", str(len(body)))
            self.end_headers()
            try:
                if not settings["delay"]:
                    self.wfile.write(body)
                    return
                for i in range(len(body)):
                    self.wfile.write(body[i:i + 1])
                    self.wfile.flush()
                    time.sleep(settings["delay"])
            except OSError:
                pass

        def log_message(self, *args):
            pass

    server = ThreadingHTTPServer(("127.0.0.1", 0), Handler)
    server.daemon_threads = True
    threading.Thread(target=server.serve_forever, daemon=True).start()
    port = server.server_address[1]
    monkeypatch.setattr(adzuna, "BASE_URL", f"http://127.0.0.1:{port}/{{country}}/search/{{page}}")
    yield settings
    server.shutdown()
    server.server_close()


def test_provider_reads_a_prompt_server(listing_server):
    agg = JobAggregator(provider=AdzunaProvider("id", "key", timeout=2.0))
    result = agg.search("engineer")

    assert result.source == "adzuna"
    assert [j.id for j in result.listings] == ["7"]


def test_slow_trickling_body_is_cut_off_at_the_timeout(listing_server):
    # About 5s to send the whole body, each byte well inside a per-read timeout.
    listing_server["delay"] = 0.1
    agg = JobAggregator(provider=AdzunaProvider("id", "key", timeout=0.5))

    started = time.monotonic()
    result = agg.search("engineer")
    elapsed = time.monotonic() - started

    assert elapsed < 2.0
    assert result.source == "local-demo"
    assert result.degraded is True


def test_provider_deadline_raises_upstream_unavailable(listing_server):
    listing_server["delay"] = 0.1
    with pytest.raises(UpstreamUnavailable, match="within 0.3s"):
        AdzunaProvider("id", "key", timeout=0.3).search("engineer", "", 1, 5)
