"""Axis-aligned hyper-rectangles bounding a subtree during neighbour search."""

import math
from typing import List, Sequence, Tuple


class HRect:
    """
    Per-dimension ``[lo, hi]`` bounds of the region a subtree can occupy.

    Rectangles are built on the fly while descending and never stored on
    nodes.
    """
    __slots__ = ("lo", "hi")

    def __init__(self, lo: Sequence[float], hi: Sequence[float]):
        if len(lo) != len(hi):
            raise ValueError(
                f"HRect: bound lengths differ ({len(lo)} != {len(hi)})"
            )
        self.lo: List[float] = list(lo)
        self.hi: List[float] = list(hi)

    @classmethod
    def infinite(cls, k: int) -> "HRect":
        """The rectangle covering all of K-dimensional space."""
        return cls([-math.inf] * k, [math.inf] * k)

    def split(self, dim: int, value: float) -> Tuple["HRect", "HRect"]:
        """
        Cut the rectangle at ``value`` along ``dim``.

        Returns:
            (left, right): left keeps ``hi[dim] = value``, right keeps
            ``lo[dim] = value``.
        """
        left = HRect(self.lo, self.hi)
        right = HRect(self.lo, self.hi)
        left.hi[dim] = value
        right.lo[dim] = value
        return left, right

    def closest(self, target: Sequence[float]) -> Tuple[float, ...]:
        """The point inside the rectangle nearest to ``target``."""
        return tuple(
            lo if t <= lo else hi if t >= hi else t
            for t, lo, hi in zip(target, self.lo, self.hi)
        )

    def sqdist_to(self, target: Sequence[float]) -> float:
        """Squared distance from ``target`` to the nearest point of the rectangle."""
        total = 0.0
        for t, lo, hi in zip(target, self.lo, self.hi):
            if t < lo:
                diff = lo - t
            elif t > hi:
                diff = t - hi
            else:
                continue
            total += diff * diff
        return total

    def __contains__(self, point: Sequence[float]) -> bool:
        return all(lo <= p <= hi for p, lo, hi in zip(point, self.lo, self.hi))

    def __repr__(self) -> str:
        return f"HRect(lo={self.lo!r}, hi={self.hi!r})"
