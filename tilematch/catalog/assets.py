"""
Asset Loaders - Who actually loads tile images.

- PreloadedAssetLoader: images are always available (offline, CLI)
- ClientAssetLoader: the renderer loads the image and reports back;
  a timeout settles forgotten loads as failures
"""

from __future__ import annotations
from typing import Callable
import logging

from ..engine_core.assets import AssetLoader
from ..engine_core.scheduler import Handle, Scheduler

logger = logging.getLogger(__name__)


class PreloadedAssetLoader(AssetLoader):
    """Every image settles immediately as loaded."""

    def load(self, image_ref: str, on_settled: Callable[[bool], None]) -> None:
        on_settled(True)


class ClientAssetLoader(AssetLoader):
    """
    Asks the renderer to load an image and waits for its report.

    Usage:
        loader = ClientAssetLoader(scheduler, on_request=renderer.asset_requested)
        ...
        loader.settle(image_ref, ok=True)   # when the client reports back

    Several tiles share one image, so one report settles every waiter
    for that reference.
    """

    def __init__(
        self,
        scheduler: Scheduler,
        on_request: Callable[[str], None] | None = None,
        timeout: float = 5.0,
    ):
        self.scheduler = scheduler
        self.on_request = on_request
        self.timeout = timeout
        self._pending: dict[str, list[Callable[[bool], None]]] = {}
        self._timeouts: dict[str, Handle] = {}

    @property
    def pending_refs(self) -> list[str]:
        return list(self._pending)

    def load(self, image_ref: str, on_settled: Callable[[bool], None]) -> None:
        first_request = image_ref not in self._pending
        self._pending.setdefault(image_ref, []).append(on_settled)
        if not first_request:
            return

        if self.timeout > 0:
            self._timeouts[image_ref] = self.scheduler.call_later(
                self.timeout, lambda: self._expire(image_ref)
            )
        if self.on_request:
            self.on_request(image_ref)

    def settle(self, image_ref: str, ok: bool = True) -> int:
        """
        Report a finished load. Returns how many waiters were settled
        (0 for an unknown or already settled reference).
        """
        handle = self._timeouts.pop(image_ref, None)
        if handle is not None:
            handle.cancel()
        waiters = self._pending.pop(image_ref, [])
        for waiter in waiters:
            waiter(ok)
        return len(waiters)

    def settle_all(self, ok: bool = True) -> int:
        return sum(self.settle(ref, ok) for ref in list(self._pending))

    def reset(self) -> None:
        for handle in self._timeouts.values():
            handle.cancel()
        self._timeouts.clear()
        self._pending.clear()

    def _expire(self, image_ref: str):
        if image_ref in self._pending:
            logger.warning(f"Image load timed out: {image_ref}")
            self.settle(image_ref, ok=False)
