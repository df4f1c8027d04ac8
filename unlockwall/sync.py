# unlockwall/sync.py
from __future__ import annotations
import logging
from typing import Dict, Optional

from .errors import PersistError
from .grid import Grid
from .store import Subscription

log = logging.getLogger(__name__)


class GridSync:
    """
    Keeps a Grid converged with the store's `<namespace>/<index>` mapping.

    Read path: every snapshot is applied key by key, in whatever order it
    arrives; the latest value for a key wins. Write path: persist() writes one
    key and applies it locally before the store answers, without waiting
    for the subscription echo; a rejected write keeps the local value.
    """

    def __init__(self, store, grid: Grid, namespace: str = "logos"):
        self.store = store
        self.grid = grid
        self.namespace = namespace
        self.subscription: Optional[Subscription] = None
        self.last_error: Optional[Exception] = None

    def start(self) -> None:
        if self.subscription is not None and not self.subscription.cancelled:
            return
        self.subscription = self.store.subscribe(self.namespace, self.apply_snapshot, self._on_error)

    def stop(self) -> None:
        if self.subscription is not None:
            self.subscription.cancel()

    def key(self, index: int) -> str:
        return f"{self.namespace}/{index}"

    def apply_snapshot(self, mapping: Dict[str, str]) -> int:
        if not mapping:
            log.info("no saved logos under %s", self.namespace)
            return 0
        changed = 0
        for raw_key, data in mapping.items():
            try:
                index = int(raw_key)
            except (TypeError, ValueError):
                log.warning("skipping non-numeric key %s/%s", self.namespace, raw_key)
                continue
            if not self.grid.contains(index):
                log.warning("skipping out-of-range cell %d", index)
                continue
            if self.grid.apply(index, data):
                changed += 1
        return changed

    def _on_error(self, error: Exception) -> None:
        # the grid just stays stale for whatever could not be read
        self.last_error = error
        log.error("logo data read error: %s", error)

    def persist(self, index: int, image_data: str) -> None:
        if not self.grid.contains(index):
            raise PersistError(f"cell {index} does not exist")
        # optimistic: the cell shows the image even if the store rejects it
        self.grid.apply(index, image_data)
        try:
            self.store.write(self.key(index), image_data)
        except OSError as e:
            log.error("saving logo for cell %d failed: %s", index, e)
            raise PersistError(f"Failed to save logo: {e}") from e
        log.info("logo saved for cell %d", index)
