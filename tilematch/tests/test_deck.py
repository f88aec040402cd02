"""
Tests for deck building.

Tests:
- Deck shape (pairs, unique tile ids)
- Degrading the pair count on a small catalog
- Empty decks and catalog failures
"""

import random
from collections import Counter

import pytest

from ..engine_core.deck import DeckBuilder
from ..engine_core.errors import CatalogUnavailable, EmptyDeck
from ..engine_core.state import TileState, AssetStatus
from ..catalog.cache import CatalogCache
from ..catalog.provider import StaticCatalogProvider
from .conftest import make_items, FailingProvider


class TestDeckShape:
    """Every deck is a set of exact pairs."""

    @pytest.mark.parametrize("pairs", [1, 3, 6, 10])
    def test_every_item_appears_twice(self, catalog, pairs):
        deck = DeckBuilder(catalog=catalog, rng=random.Random(pairs)).build_deck(pairs)

        assert len(deck.tiles) == 2 * pairs
        assert deck.pair_count == pairs
        counts = Counter(tile.item_id for tile in deck.tiles)
        assert len(counts) == pairs
        assert set(counts.values()) == {2}

    def test_tile_ids_unique(self, catalog):
        deck = DeckBuilder(catalog=catalog, rng=random.Random(1)).build_deck(10)

        ids = [tile.tile_id for tile in deck.tiles]
        assert len(ids) == len(set(ids))
        for tile in deck.tiles:
            assert tile.tile_id in (f"{tile.item_id}-a", f"{tile.item_id}-b")

    def test_tiles_start_face_down_and_unloaded(self, catalog):
        deck = DeckBuilder(catalog=catalog, rng=random.Random(2)).build_deck(3)

        assert all(tile.state == TileState.FACE_DOWN for tile in deck.tiles)
        assert all(tile.asset == AssetStatus.NOT_LOADED for tile in deck.tiles)

    def test_pair_shares_image(self, catalog):
        deck = DeckBuilder(catalog=catalog, rng=random.Random(3)).build_deck(4)

        images = {}
        for tile in deck.tiles:
            images.setdefault(tile.item_id, set()).add(tile.image_ref)
        assert all(len(refs) == 1 for refs in images.values())

    def test_same_seed_same_deck(self, catalog):
        first = DeckBuilder(catalog=catalog, rng=random.Random(42)).build_deck(6)
        second = DeckBuilder(catalog=catalog, rng=random.Random(42)).build_deck(6)

        assert [t.tile_id for t in first.tiles] == [t.tile_id for t in second.tiles]

    def test_fresh_tiles_every_build(self, catalog):
        builder = DeckBuilder(catalog=catalog, rng=random.Random(5))
        first = builder.build_deck(3)
        first.tiles[0].state = TileState.MATCHED

        second = builder.build_deck(3)
        assert all(tile.state == TileState.FACE_DOWN for tile in second.tiles)


class TestDegradedDeck:
    """Small catalogs shrink the deck instead of failing."""

    def test_pair_count_reduced(self):
        catalog = CatalogCache(provider=StaticCatalogProvider(make_items(2)))

        deck = DeckBuilder(catalog=catalog, rng=random.Random(0)).build_deck(6)

        assert deck.pair_count == 2
        assert deck.requested_pairs == 6
        assert deck.degraded
        assert len(deck.tiles) == 4
        assert "2 pairs" in deck.notice

    def test_full_deck_has_no_notice(self, catalog):
        deck = DeckBuilder(catalog=catalog, rng=random.Random(0)).build_deck(3)

        assert not deck.degraded
        assert deck.notice is None


class TestDeckFailures:
    """Failures surface as engine errors."""

    @pytest.mark.parametrize("pairs", [0, -1])
    def test_non_positive_pairs(self, catalog, pairs):
        with pytest.raises(EmptyDeck):
            DeckBuilder(catalog=catalog).build_deck(pairs)

    def test_catalog_down(self):
        catalog = CatalogCache(provider=FailingProvider())

        with pytest.raises(CatalogUnavailable):
            DeckBuilder(catalog=catalog).build_deck(3)

    def test_empty_catalog(self):
        catalog = CatalogCache(provider=StaticCatalogProvider([]))

        with pytest.raises(CatalogUnavailable):
            DeckBuilder(catalog=catalog).build_deck(3)

    def test_cold_cache_without_fetch(self, catalog, provider):
        builder = DeckBuilder(catalog=catalog, fetch=False)

        with pytest.raises(CatalogUnavailable):
            builder.build_deck(3)
        assert provider.fetch_count == 0

    def test_warm_cache_without_fetch(self, catalog, provider):
        catalog.warm()

        deck = DeckBuilder(catalog=catalog, fetch=False).build_deck(3)

        assert deck.pair_count == 3
        assert provider.fetch_count == 1

    def test_catalog_fetched_once(self, catalog, provider):
        builder = DeckBuilder(catalog=catalog)
        builder.build_deck(3)
        builder.build_deck(6)

        assert provider.fetch_count == 1
