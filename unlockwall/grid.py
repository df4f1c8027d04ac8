# unlockwall/grid.py
from __future__ import annotations
from dataclasses import dataclass
from threading import RLock
from typing import Dict, List, Optional


@dataclass(frozen=True)
class Cell:
    index: int
    image_data: Optional[str] = None

    @property
    def locked(self) -> bool:
        return not self.image_data


class Grid:
    """
    In-memory read-through cache of the store's cell -> image mapping.

    Safety:
      - store subscriptions may deliver from another thread, so every access
        goes through the lock
    """

    def __init__(self, size: int):
        if size <= 0:
            raise ValueError("grid size must be positive")
        self._lock = RLock()
        self._cells: List[Cell] = [Cell(index=i) for i in range(size)]

    def __len__(self) -> int:
        return len(self._cells)

    def contains(self, index: int) -> bool:
        return 0 <= index < len(self._cells)

    def cell(self, index: int) -> Cell:
        if not self.contains(index):
            raise ValueError(f"cell index {index} out of range")
        with self._lock:
            return self._cells[index]

    def apply(self, index: int, image_data: Optional[str]) -> bool:
        """Replace a cell's image. Out-of-range or empty values are ignored."""
        if not self.contains(index) or not image_data:
            return False
        with self._lock:
            if self._cells[index].image_data == image_data:
                return False
            self._cells[index] = Cell(index=index, image_data=image_data)
            return True

    def unlocked(self) -> Dict[int, str]:
        with self._lock:
            return {c.index: c.image_data for c in self._cells if not c.locked}
