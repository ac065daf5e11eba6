"""
Rolling position history per body, kept by whoever draws the system.
"""

from __future__ import annotations

from collections import deque
from typing import Deque, Dict, Iterable, List, Tuple

from .constants import TRAIL_LENGTH

Point = Tuple[float, float]


class TrailBuffer:
    """
    One bounded deque per body index. Once a trail holds ``capacity`` points
    the oldest one is dropped on every append.
    """

    def __init__(self, capacity: int = TRAIL_LENGTH) -> None:
        if capacity <= 0:
            raise ValueError("capacity must be positive")
        self.capacity = capacity
        self._trails: Dict[int, Deque[Point]] = {}

    def record(self, positions: Iterable[Iterable[float]]) -> None:
        for idx, (x, y) in enumerate(positions):
            trail = self._trails.get(idx)
            if trail is None:
                trail = self._trails[idx] = deque(maxlen=self.capacity)
            trail.append((float(x), float(y)))

    def trail(self, index: int) -> List[Point]:
        return list(self._trails.get(index, ()))

    def __len__(self) -> int:
        return len(self._trails)

    def as_lists(self) -> List[List[List[float]]]:
        """Trails in body order as nested lists for JSON."""
        return [
            [[x, y] for x, y in self._trails[idx]] for idx in sorted(self._trails)
        ]
