"""Tests for the metadata clients and fallback chain."""
import requests

from booktracker.client import GoogleBooksClient, OpenLibraryClient
from booktracker.lookup import MetadataLookup
from booktracker.models import MetadataResult

GOOGLE_HIT = {
    "items": [{
        "volumeInfo": {
            "categories": ["Fiction"],
            "pageCount": 412,
            "imageLinks": {"thumbnail": "http://g/thumb.jpg"},
        }
    }]
}
OPEN_LIBRARY_HIT = {"docs": [{"cover_i": 7, "subject": ["Sci-fi"], "number_of_pages_median": 500}]}


class FakeResponse:
    def __init__(self, status_code=200, payload=None, text=""):
        self.status_code = status_code
        self._payload = payload
        self.text = text
    
    def json(self):
        if isinstance(self._payload, Exception):
            raise self._payload
        return self._payload


class FakeSession:
    """Replays queued responses (or raises queued exceptions)."""
    
    def __init__(self, *responses):
        self.responses = list(responses)
        self.calls = []
    
    def get(self, url, params=None, timeout=None):
        self.calls.append((url, params))
        response = self.responses.pop(0)
        if isinstance(response, Exception):
            raise response
        return response
    
    def close(self):
        pass


def make_client(cls, *responses, **kwargs):
    kwargs.setdefault("max_retries", 1)
    client = cls(base_backoff=0, **kwargs)
    client.session = FakeSession(*responses)
    return client


class FakeSource:
    def __init__(self, name, result=None, error=None):
        self.name = name
        self.result = result
        self.error = error
        self.titles = []
    
    def fetch_metadata(self, title):
        self.titles.append(title)
        if self.error:
            raise self.error
        return self.result
    
    def close(self):
        pass


def test_first_non_empty_source_wins():
    """Test that later sources are not queried after a hit."""
    hit = MetadataResult(cover="c", genre="Fiction", pages=1)
    primary = FakeSource("primary", result=hit)
    fallback = FakeSource("fallback", result=MetadataResult("x", "y", 2))
    
    assert MetadataLookup([primary, fallback]).fetch("Dune") == hit
    assert fallback.titles == []


def test_falls_back_when_primary_empty():
    """Test fallback on an empty primary result."""
    hit = MetadataResult(cover="c", genre="Fiction", pages=1)
    fallback = FakeSource("fallback", result=hit)
    
    assert MetadataLookup([FakeSource("primary"), fallback]).fetch("Dune") == hit
    assert fallback.titles == ["Dune"]


def test_falls_back_when_primary_raises():
    """Test that a source error is swallowed and the next source tried."""
    hit = MetadataResult(cover="c", genre="Fiction", pages=1)
    primary = FakeSource("primary", error=RuntimeError("boom"))
    
    assert MetadataLookup([primary, FakeSource("fallback", result=hit)]).fetch("Dune") == hit


def test_all_sources_fail_returns_empty():
    """Test the empty-defaults sentinel."""
    lookup = MetadataLookup([FakeSource("a"), FakeSource("b", error=ValueError("bad"))])
    
    assert lookup.fetch("Dune") == MetadataResult(cover="", genre="Unknown", pages=0)


def test_google_client_query_and_parse():
    """Test the primary request shape and normalization."""
    client = make_client(GoogleBooksClient, FakeResponse(200, GOOGLE_HIT), api_key="k")
    
    result = client.fetch_metadata("Dune")
    
    assert result == MetadataResult(cover="http://g/thumb.jpg", genre="Fiction", pages=412)
    url, params = client.session.calls[0]
    assert url == GoogleBooksClient.BASE_URL
    assert params == {"q": "intitle:Dune", "key": "k"}


def test_open_library_client_query_and_parse():
    """Test the fallback request shape and normalization."""
    client = make_client(OpenLibraryClient, FakeResponse(200, OPEN_LIBRARY_HIT))
    
    result = client.fetch_metadata("Dune")
    
    assert result == MetadataResult(
        cover="https://covers.openlibrary.org/b/id/7-L.jpg", genre="Sci-fi", pages=500
    )
    assert client.session.calls[0][1] == {"title": "Dune"}


def test_retries_server_errors():
    """Test that a 5xx is retried."""
    client = make_client(
        GoogleBooksClient,
        FakeResponse(503),
        FakeResponse(200, GOOGLE_HIT),
        max_retries=2,
    )
    
    assert client.search("Dune") == GOOGLE_HIT
    assert len(client.session.calls) == 2


def test_client_error_not_retried():
    """Test that a 4xx gives up immediately."""
    client = make_client(GoogleBooksClient, FakeResponse(403, text="forbidden"), max_retries=3)
    
    assert client.search("Dune") is None
    assert len(client.session.calls) == 1


def test_transport_and_parse_failures_return_none():
    """Test connection errors and undecodable bodies."""
    offline = make_client(GoogleBooksClient, requests.exceptions.ConnectionError("offline"))
    garbled = make_client(GoogleBooksClient, FakeResponse(200, ValueError("not json")))
    
    assert offline.fetch_metadata("Dune") is None
    assert garbled.fetch_metadata("Dune") is None


def test_full_chain_falls_back_to_open_library():
    """Test Google returning nothing, then Open Library answering."""
    google = make_client(GoogleBooksClient, FakeResponse(200, {"totalItems": 0}))
    open_library = make_client(OpenLibraryClient, FakeResponse(200, OPEN_LIBRARY_HIT))
    
    with MetadataLookup([google, open_library]) as lookup:
        result = lookup.fetch("Dune")
    
    assert result.pages == 500


class FakeCache:
    def __init__(self):
        self.data = {}
    
    def cache_get(self, key):
        return self.data.get(key)
    
    def cache_set(self, key, value, ttl):
        self.data[key] = value
        return True


def test_cached_response_skips_request():
    """Test that a cached response is reused."""
    cache = FakeCache()
    first = make_client(GoogleBooksClient, FakeResponse(200, GOOGLE_HIT), cache_db=cache)
    first.fetch_metadata("Dune")
    
    second = make_client(GoogleBooksClient, cache_db=cache)
    
    assert second.fetch_metadata("  DUNE ").pages == 412
    assert second.session.calls == []
    assert list(cache.data) == ["metadata:google:dune"]
