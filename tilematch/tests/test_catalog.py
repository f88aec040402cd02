"""
Tests for the catalog provider and cache.

The PokeAPI provider is exercised against a fake requests session; no
test touches the network.
"""

import pytest
import requests

from ..catalog.provider import PokeApiCatalogProvider, StaticCatalogProvider, parse_results
from ..catalog.cache import CatalogCache
from ..engine_core.errors import CatalogUnavailable
from ..engine_core.state import Item
from .conftest import make_items, FailingProvider


class FakeResponse:
    def __init__(self, payload=None, status_code=200):
        self.payload = payload
        self.status_code = status_code

    def raise_for_status(self):
        if self.status_code >= 400:
            raise requests.HTTPError(f"{self.status_code} Server Error")

    def json(self):
        if isinstance(self.payload, Exception):
            raise self.payload
        return self.payload


class FakeSession:
    def __init__(self, response):
        self.response = response
        self.calls = []

    def get(self, url, params=None, timeout=None):
        self.calls.append({"url": url, "params": params, "timeout": timeout})
        if isinstance(self.response, Exception):
            raise self.response
        return self.response


def pokeapi_payload(*ids):
    return {
        "count": len(ids),
        "results": [
            {"name": f"mon{i}", "url": f"https://pokeapi.co/api/v2/pokemon/{i}/"}
            for i in ids
        ],
    }


class TestParseResults:
    """PokeAPI list entries to Items."""

    def test_ids_from_urls(self):
        items = parse_results(pokeapi_payload(1, 25, 150)["results"])

        assert [item.item_id for item in items] == [1, 25, 150]
        assert items[1].name == "mon25"
        assert items[1].display_ref.endswith("/official-artwork/25.png")

    def test_drops_unusable_entries(self):
        results = [
            {"name": "no-url"},
            {"name": "bad", "url": "https://pokeapi.co/api/v2/pokemon/abc/"},
            {"name": "form", "url": "https://pokeapi.co/api/v2/pokemon/10001/"},
            "garbage",
            {"name": "ok", "url": "https://pokeapi.co/api/v2/pokemon/7/"},
        ]

        items = parse_results(results)

        assert [item.item_id for item in items] == [7]


class TestPokeApiProvider:
    """HTTP fetch and failure mapping."""

    def test_fetch(self):
        session = FakeSession(FakeResponse(pokeapi_payload(1, 2, 3)))
        provider = PokeApiCatalogProvider(
            base_url="https://pokeapi.test/pokemon/", limit=50, timeout=3.0, session=session
        )

        items = provider.fetch_catalog()

        assert len(items) == 3
        assert session.calls == [
            {"url": "https://pokeapi.test/pokemon/", "params": {"limit": 50}, "timeout": 3.0}
        ]

    def test_connection_error(self):
        session = FakeSession(requests.ConnectionError("refused"))
        provider = PokeApiCatalogProvider(session=session)

        with pytest.raises(CatalogUnavailable):
            provider.fetch_catalog()

    def test_http_error(self):
        provider = PokeApiCatalogProvider(session=FakeSession(FakeResponse({}, status_code=503)))

        with pytest.raises(CatalogUnavailable):
            provider.fetch_catalog()

    def test_invalid_json(self):
        provider = PokeApiCatalogProvider(session=FakeSession(FakeResponse(ValueError("bad json"))))

        with pytest.raises(CatalogUnavailable):
            provider.fetch_catalog()

    def test_missing_results(self):
        provider = PokeApiCatalogProvider(session=FakeSession(FakeResponse({"count": 0})))

        with pytest.raises(CatalogUnavailable):
            provider.fetch_catalog()


class TestCatalogCache:
    """Process-wide item cache."""

    def test_fetches_once(self, catalog, provider):
        catalog.get()
        catalog.get()

        assert provider.fetch_count == 1
        assert catalog.loaded
        assert catalog.size == 20

    def test_failure_not_cached(self, items):
        failing = FailingProvider()
        catalog = CatalogCache(provider=failing)

        with pytest.raises(CatalogUnavailable):
            catalog.get()
        with pytest.raises(CatalogUnavailable):
            catalog.get()

        assert failing.fetch_count == 2
        assert not catalog.loaded

    def test_empty_catalog_rejected(self):
        catalog = CatalogCache(provider=StaticCatalogProvider([]))

        with pytest.raises(CatalogUnavailable):
            catalog.get()
        assert not catalog.loaded

    def test_duplicates_removed(self):
        items = make_items(3) + [Item(item_id=2, display_ref="dup.png")]
        catalog = CatalogCache(provider=StaticCatalogProvider(items))

        assert [item.item_id for item in catalog.get()] == [1, 2, 3]

    def test_warm(self, catalog):
        assert catalog.warm()
        assert catalog.loaded

    def test_warm_failure(self):
        assert not CatalogCache(provider=FailingProvider()).warm()

    def test_no_fetch_on_cold_cache(self, catalog, provider):
        with pytest.raises(CatalogUnavailable):
            catalog.get(fetch=False)
        assert provider.fetch_count == 0

    def test_invalidate(self, catalog, provider):
        catalog.get()
        catalog.invalidate()
        catalog.get()

        assert provider.fetch_count == 2
