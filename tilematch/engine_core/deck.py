"""
Deck Builder - Turns catalog items into a shuffled board.

Steps:
1. Get the catalog (from the process-wide cache, fetching on a miss)
2. Degrade the pair count if the catalog is smaller than requested
3. Sample distinct items uniformly without replacement
4. Create two tiles per item ("<id>-a", "<id>-b")
5. Shuffle uniformly (Fisher-Yates via random.shuffle)
"""

from __future__ import annotations
from dataclasses import dataclass, field
from typing import TYPE_CHECKING
import logging
import random

from .state import Tile
from .errors import EmptyDeck

if TYPE_CHECKING:
    from ..catalog.cache import CatalogCache

logger = logging.getLogger(__name__)


@dataclass
class DeckResult:
    """A freshly built deck and how many pairs it actually holds."""
    tiles: list[Tile]
    pair_count: int
    requested_pairs: int
    notice: str | None = None  # Set when the pair count was reduced

    @property
    def degraded(self) -> bool:
        return self.pair_count < self.requested_pairs


@dataclass
class DeckBuilder:
    """
    Builds decks from a CatalogCache.

    fetch=False restricts the builder to an already-warm cache. The API
    warms the cache in a worker thread and then builds on the event loop
    without making network calls there.
    """
    catalog: CatalogCache
    rng: random.Random = field(default_factory=random.Random)
    fetch: bool = True

    def build_deck(self, requested_pairs: int) -> DeckResult:
        """
        Build a shuffled deck of 2 x pair_count tiles.

        Raises:
            CatalogUnavailable: catalog fetch failed or yielded no items
            EmptyDeck: the pair count resolved to zero
        """
        if requested_pairs <= 0:
            raise EmptyDeck(f"Cannot build a deck with {requested_pairs} pairs")

        items = self.catalog.get(fetch=self.fetch)

        pair_count = requested_pairs
        notice = None
        if len(items) < requested_pairs:
            pair_count = len(items)
            notice = (
                f"Only {pair_count} items available; "
                f"playing with {pair_count} pairs instead of {requested_pairs}."
            )
            logger.warning(f"Requested {requested_pairs} pairs, only {pair_count} available. Adjusting.")

        if pair_count == 0:
            raise EmptyDeck("No items available to build a deck")

        chosen = self.rng.sample(items, pair_count)

        tiles: list[Tile] = []
        for item in chosen:
            tiles.extend(Tile.pair_for(item))
        self.rng.shuffle(tiles)

        return DeckResult(
            tiles=tiles,
            pair_count=pair_count,
            requested_pairs=requested_pairs,
            notice=notice,
        )
