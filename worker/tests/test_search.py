import pytest

from place_curator.core.errors import GooglePlacesError
from place_curator.etl import search
from place_curator.models import Candidate, LocationRef, SearchPage

LOCATION = LocationRef(city="台北市", country="台灣")


class FakeSearchClient:
    """Serves ``pages[keyword]`` in order; a page that is an exception is raised."""

    def __init__(self, pages):
        self.pages = {keyword: list(items) for keyword, items in pages.items()}
        self.calls = []

    def search(self, keyword, location, page_token=None):
        self.calls.append((keyword, page_token))
        page = self.pages[keyword].pop(0)
        if isinstance(page, Exception):
            raise page
        return page


def _page(prefix, count, token=None):
    return SearchPage([Candidate(external_id=f"{prefix}{i}", name=f"{prefix}{i}") for i in range(count)], token)


@pytest.fixture
def sleeps(monkeypatch):
    recorded = []
    monkeypatch.setattr(search.time, "sleep", recorded.append)
    return recorded


def test_collect_candidates_follows_tokens_with_delay(sleeps):
    client = FakeSearchClient({"a": [_page("a", 20, "t1"), _page("b", 20, "t2"), _page("c", 5)]})

    outcome = search.collect_candidates(client, ["a"], LOCATION, max_pages=3, page_delay=2.0)

    assert outcome.total_fetched == 45
    assert outcome.pages_per_keyword == [3]
    assert client.calls == [("a", None), ("a", "t1"), ("a", "t2")]
    assert sleeps == [2.0, 2.0]


def test_collect_candidates_respects_max_pages(sleeps):
    client = FakeSearchClient({"a": [_page("a", 20, "t1"), _page("b", 20, "t2")]})

    outcome = search.collect_candidates(client, ["a"], LOCATION, max_pages=1)

    assert outcome.pages_per_keyword == [1]
    assert sleeps == []


def test_failed_keyword_does_not_stop_others(sleeps):
    client = FakeSearchClient(
        {
            "a": [_page("a", 5, "t1"), GooglePlacesError("INVALID_REQUEST")],
            "b": [GooglePlacesError("OVER_QUERY_LIMIT")],
            "c": [_page("c", 3)],
        }
    )
    progress = []

    outcome = search.collect_candidates(
        client,
        ["a", "b", "c"],
        LOCATION,
        max_pages=3,
        on_keyword_done=lambda done, total, keyword, fetched: progress.append((done, total, keyword, fetched)),
    )

    assert outcome.total_fetched == 8
    assert outcome.pages_per_keyword == [1, 0, 1]
    assert outcome.failed_keywords == ["a", "b"]
    assert progress == [(1, 3, "a", 5), (2, 3, "b", 0), (3, 3, "c", 3)]
