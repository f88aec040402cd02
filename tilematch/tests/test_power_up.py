"""
Tests for the reveal-all power-up.

Tests:
- One use per game
- Matched tiles excluded from reveal and conceal
- The pending first selection survives the conceal
- Waiting for client-side image loads (failures count as settled)
"""

import pytest

from ..engine_core.power_up import PowerUpController
from ..engine_core.turn import TurnStateMachine
from ..engine_core.assets import AssetTracker
from ..engine_core.state import TileState, AssetStatus
from ..engine_core.events import EventType
from ..catalog.assets import PreloadedAssetLoader, ClientAssetLoader


@pytest.fixture
def assets():
    return AssetTracker(PreloadedAssetLoader())


@pytest.fixture
def power_up(renderer, tasks, assets, timings):
    return PowerUpController(renderer, tasks, assets, timings=timings)


@pytest.fixture
def turn(renderer, tasks, assets, timings):
    return TurnStateMachine(renderer, tasks, on_win=lambda: None, timings=timings, assets=assets)


def states(session):
    return {tile.tile_id: tile.state for tile in session.board}


class TestActivation:
    """Guards and the one-use rule."""

    def test_reveals_then_conceals(self, power_up, session, scheduler, timings):
        assert power_up.activate(session)

        assert all(s == TileState.FACE_UP for s in states(session).values())
        assert session.locked

        scheduler.advance(timings.reveal)

        assert all(s == TileState.FACE_DOWN for s in states(session).values())
        assert not session.locked

    def test_only_once_per_game(self, power_up, session, scheduler, renderer):
        assert power_up.activate(session)
        scheduler.run_until_idle()
        renderer.clear()

        assert not power_up.activate(session)
        assert session.power_up_used
        assert renderer.events_since(0) == []

    def test_ignored_when_locked(self, power_up, session):
        session.locked = True

        assert not power_up.activate(session)
        assert not session.power_up_used

    def test_ignored_when_inactive(self, power_up, session):
        session.active = False

        assert not power_up.activate(session)
        assert not session.power_up_used

    def test_disables_button(self, power_up, session, renderer):
        power_up.activate(session)

        changes = renderer.of_type(EventType.POWER_UP_CHANGED)
        assert changes[-1].payload == {"available": False}

    def test_clicks_ignored_during_reveal(self, power_up, turn, session):
        power_up.activate(session)

        assert not turn.select_tile(session, "1-a")
        assert session.clicks == 0


class TestTurnInteraction:
    """The power-up must not clobber the turn in progress."""

    def test_matched_tiles_excluded(self, power_up, turn, session, scheduler, renderer, timings):
        turn.select_tile(session, "1-a")
        turn.select_tile(session, "1-b")
        scheduler.advance(timings.settle)
        renderer.clear()

        power_up.activate(session)
        scheduler.advance(timings.reveal)

        touched = {e.payload["tile_id"] for e in renderer.of_type(EventType.TILE_STATE_CHANGED)}
        assert "1-a" not in touched
        assert "1-b" not in touched
        assert session.board.get("1-a").state == TileState.MATCHED
        assert session.board.get("2-a").state == TileState.FACE_DOWN

    def test_pending_first_selection_stays_up(self, power_up, turn, session, scheduler, timings):
        turn.select_tile(session, "2-a")

        assert power_up.activate(session)
        scheduler.advance(timings.reveal)

        assert session.board.get("2-a").state == TileState.FACE_UP
        assert session.board.get("2-b").state == TileState.FACE_DOWN
        assert session.first_selected.tile_id == "2-a"
        assert not session.locked

        # The turn completes normally
        assert turn.select_tile(session, "2-b")
        assert session.pairs_matched == 1

    def test_conceal_skipped_after_game_end(self, power_up, session, scheduler, timings):
        power_up.activate(session)
        session.active = False

        scheduler.advance(timings.reveal)

        assert all(s == TileState.FACE_UP for s in states(session).values())


class TestAssetGating:
    """Reveal waits for every image load to settle."""

    @pytest.fixture
    def loader(self, scheduler, renderer):
        return ClientAssetLoader(scheduler, on_request=renderer.asset_requested, timeout=5.0)

    @pytest.fixture
    def power_up(self, renderer, tasks, loader, timings):
        return PowerUpController(renderer, tasks, AssetTracker(loader), timings=timings)

    def test_waits_for_loads(self, power_up, session, loader, renderer):
        power_up.activate(session)

        assert sorted(loader.pending_refs) == [f"https://img.test/{i}.png" for i in (1, 2, 3)]
        assert len(renderer.of_type(EventType.ASSET_REQUESTED)) == 3
        assert all(s == TileState.FACE_DOWN for s in states(session).values())

        loader.settle("https://img.test/1.png")
        loader.settle("https://img.test/2.png")
        assert all(s == TileState.FACE_DOWN for s in states(session).values())

        loader.settle("https://img.test/3.png")
        assert all(s == TileState.FACE_UP for s in states(session).values())

    def test_failed_load_counts_as_settled(self, power_up, session, loader):
        power_up.activate(session)

        loader.settle("https://img.test/1.png", ok=False)
        loader.settle("https://img.test/2.png")
        loader.settle("https://img.test/3.png")

        tile = session.board.get("1-a")
        assert tile.state == TileState.FACE_UP
        assert tile.asset == AssetStatus.FAILED
        assert tile.visible_image is None
        assert session.board.get("2-a").visible_image == "https://img.test/2.png"

    def test_forgotten_load_times_out(self, power_up, session, loader, scheduler):
        power_up.activate(session)

        scheduler.advance(5.0)

        assert loader.pending_refs == []
        assert all(s == TileState.FACE_UP for s in states(session).values())
        assert all(tile.asset == AssetStatus.FAILED for tile in session.board)

    def test_stale_reveal_dropped(self, power_up, session, loader, tasks):
        power_up.activate(session)
        tasks.cancel_all()

        loader.settle_all()

        assert all(s == TileState.FACE_DOWN for s in states(session).values())
