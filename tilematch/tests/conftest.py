"""
Pytest fixtures for TileMatch tests.

Everything runs on a ManualScheduler, so delays are driven explicitly
with scheduler.advance() and no test sleeps.
"""

import random

import pytest

from ..config import Timings
from ..engine_core.state import Item, Tile, Board, GameSession
from ..engine_core.events import RecordingRenderer
from ..engine_core.scheduler import ManualScheduler, ScheduledTasks
from ..engine_core.errors import CatalogUnavailable
from ..catalog.provider import CatalogProvider, StaticCatalogProvider
from ..catalog.cache import CatalogCache
from ..session.controller import GameController


def make_items(count: int) -> list[Item]:
    return [
        Item(item_id=i, display_ref=f"https://img.test/{i}.png", name=f"item{i}")
        for i in range(1, count + 1)
    ]


def make_session(item_count: int = 3) -> GameSession:
    """An active session with an unshuffled board: 1-a, 1-b, 2-a, 2-b, ..."""
    tiles = []
    for item in make_items(item_count):
        tiles.extend(Tile.pair_for(item))
    return GameSession(
        generation=0,
        difficulty="easy",
        pair_count=item_count,
        time_left=60,
        active=True,
        board=Board(tiles),
    )


def item_ids(session: GameSession) -> list[int]:
    """Distinct item ids on the board, in sorted order."""
    return sorted({tile.item_id for tile in session.board})


class FailingProvider(CatalogProvider):
    """Catalog provider that is always down."""

    def __init__(self):
        self.fetch_count = 0

    def fetch_catalog(self) -> list[Item]:
        self.fetch_count += 1
        raise CatalogUnavailable("connection refused")


@pytest.fixture
def timings() -> Timings:
    return Timings()


@pytest.fixture
def scheduler() -> ManualScheduler:
    return ManualScheduler()


@pytest.fixture
def tasks(scheduler: ManualScheduler) -> ScheduledTasks:
    return ScheduledTasks(scheduler)


@pytest.fixture
def renderer() -> RecordingRenderer:
    return RecordingRenderer()


@pytest.fixture
def items() -> list[Item]:
    return make_items(20)


@pytest.fixture
def provider(items: list[Item]) -> StaticCatalogProvider:
    return StaticCatalogProvider(items)


@pytest.fixture
def catalog(provider: StaticCatalogProvider) -> CatalogCache:
    return CatalogCache(provider=provider)


@pytest.fixture
def session() -> GameSession:
    return make_session(3)


@pytest.fixture
def controller(renderer, scheduler, catalog, timings) -> GameController:
    """Controller with images that load instantly and a seeded shuffle."""
    return GameController(
        renderer=renderer,
        scheduler=scheduler,
        catalog=catalog,
        timings=timings,
        rng=random.Random(7),
    )
