"""Bounded candidate list for n-nearest-neighbour searches."""

import heapq
import itertools
from typing import Any, List, Tuple


class NearestNeighborList:
    """
    Keeps the ``capacity`` closest candidates offered so far.

    Backed by a max-heap on squared distance (distances are negated for
    ``heapq``), so the current worst candidate is always at ``_heap[0]``.
    A running sequence number breaks ties, which keeps candidates that are
    not orderable themselves out of the comparison.
    """
    __slots__ = ("capacity", "_heap", "_seq")

    def __init__(self, capacity: int):
        if capacity < 0:
            raise ValueError(f"capacity must be >= 0, got {capacity}")
        self.capacity = capacity
        self._heap: List[Tuple[float, int, Any]] = []
        self._seq = itertools.count()

    def __len__(self) -> int:
        return len(self._heap)

    def is_capacity_reached(self) -> bool:
        return len(self._heap) >= self.capacity

    def max_priority(self) -> float:
        """Squared distance of the current worst candidate (inf when empty)."""
        if not self._heap:
            return float("inf")
        return -self._heap[0][0]

    def insert(self, item: Any, dist_sqd: float) -> bool:
        """
        Offer a candidate.

        Returns:
            True if the candidate was kept (possibly evicting the worst one).
        """
        if self.capacity == 0:
            return False
        entry = (-dist_sqd, -next(self._seq), item)
        if len(self._heap) < self.capacity:
            heapq.heappush(self._heap, entry)
            return True
        if dist_sqd < -self._heap[0][0]:
            heapq.heapreplace(self._heap, entry)
            return True
        return False

    def get_highest(self) -> Any:
        """The worst (farthest) candidate, without removing it."""
        return self._heap[0][2] if self._heap else None

    def remove_highest(self) -> Any:
        """Pop and return the worst (farthest) candidate."""
        return heapq.heappop(self._heap)[2]

    def drain(self) -> List[Any]:
        """Empty the list, returning candidates nearest first."""
        out = [None] * len(self._heap)
        for i in range(len(out) - 1, -1, -1):
            out[i] = self.remove_highest()
        return out
