"""
Asset Readiness - Lazy image loading for tiles.

Tile images are loaded on demand: when a tile is first selected, or
when the power-up needs every unmatched tile shown at once. The
power-up waits for all outstanding loads through a ReadinessGate so
the reveal never shows blank tiles. A failed load counts as settled.
"""

from __future__ import annotations
from abc import ABC, abstractmethod
from typing import Callable
import logging

from .state import Tile, AssetStatus

logger = logging.getLogger(__name__)


class AssetLoader(ABC):
    """Loads an image reference and reports success or failure once."""

    @abstractmethod
    def load(self, image_ref: str, on_settled: Callable[[bool], None]) -> None:
        """
        Start loading image_ref.

        on_settled(ok) must be called exactly once, possibly synchronously.
        """
        ...

    def reset(self) -> None:
        """Forget every in-flight load. Waiters of forgotten loads are never called."""
        pass


class ReadinessGate:
    """
    Counter of pending loads with a continuation.

    hold() before starting each load, release() when it settles, arm()
    once every load has been started. on_ready runs exactly once, when
    the gate is armed and nothing is pending. Loads that settle
    synchronously are handled because the gate cannot fire before arm().
    """

    def __init__(self, on_ready: Callable[[], None]):
        self._on_ready = on_ready
        self._pending = 0
        self._armed = False
        self._fired = False

    @property
    def pending(self) -> int:
        return self._pending

    @property
    def fired(self) -> bool:
        return self._fired

    def hold(self):
        self._pending += 1

    def release(self):
        if self._pending > 0:
            self._pending -= 1
        self._maybe_fire()

    def arm(self):
        self._armed = True
        self._maybe_fire()

    def _maybe_fire(self):
        if self._armed and self._pending == 0 and not self._fired:
            self._fired = True
            self._on_ready()


class AssetTracker:
    """
    Tracks load status per tile and de-duplicates in-flight loads.

    A tile that is already LOADING gets the new waiter appended instead
    of a second load request.
    """

    def __init__(self, loader: AssetLoader):
        self.loader = loader
        self._waiters: dict[int, list[Callable[[bool], None]]] = {}

    def ensure(self, tile: Tile, on_settled: Callable[[bool], None] | None = None) -> bool:
        """
        Make sure the tile's image is (being) loaded.

        Returns True if the asset was already settled, in which case
        on_settled is called immediately.
        """
        if tile.asset.settled:
            if on_settled:
                on_settled(tile.asset == AssetStatus.LOADED)
            return True

        if on_settled:
            self._waiters.setdefault(id(tile), []).append(on_settled)

        if tile.asset == AssetStatus.LOADING:
            return False

        tile.asset = AssetStatus.LOADING
        self.loader.load(tile.image_ref, lambda ok: self._settle(tile, ok))
        return False

    def _settle(self, tile: Tile, ok: bool):
        if tile.asset.settled:
            return
        tile.asset = AssetStatus.LOADED if ok else AssetStatus.FAILED
        if not ok:
            logger.warning(f"Image for tile {tile.tile_id} failed to load: {tile.image_ref}")
        for waiter in self._waiters.pop(id(tile), []):
            waiter(ok)

    def reset(self):
        """Drop waiters of the previous board and let the loader forget its loads."""
        self._waiters.clear()
        self.loader.reset()
