from abc import ABC, abstractmethod
from typing import Iterable, Optional, Sequence, Tuple
import logging
import numbers

from kd_trees.logging_config import get_logger

# Get logger for this module
logger = get_logger("KDTree")

Coordinates = Tuple[float, ...]


def as_coordinates(key: Iterable[float]) -> Coordinates:
    """
    Copy a coordinate-bearing sequence into an immutable tuple of floats.

    Lists, tuples and numpy arrays are all accepted. The copy is what keeps
    later mutation of the caller's sequence from reaching the tree.
    """
    return tuple(float(c) for c in key)


def sqdist(a: Sequence[float], b: Sequence[float]) -> float:
    """Squared Euclidean distance between two equally long vectors."""
    total = 0.0
    for x, y in zip(a, b):
        diff = x - y
        total += diff * diff
    return total


class Point(ABC):
    """
    Capability required from keys of a ``TypedKDTree``.

    Implement ``coordinates`` on an existing class, or use
    :class:`CoordinatePoint` directly. Every instance used with one tree must
    return the same number of coordinates. Instances must be hashable
    (``@dataclass(frozen=True)`` or a custom ``__hash__``).
    """

    @abstractmethod
    def coordinates(self) -> Optional[Sequence[float]]:
        """
        Return the coordinate vector of this key.

        Returns:
            One float per dimension, or None to mark the key as absent.
        """
        pass


class CoordinatePoint(Point):
    """Value-semantics point; also the key type of typed query results."""
    __slots__ = ("_coords",)

    def __init__(self, *coords: float):
        # accept CoordinatePoint(1, 2, 3) as well as CoordinatePoint((1, 2, 3))
        if len(coords) == 1 and not isinstance(coords[0], numbers.Real):
            coords = coords[0]
        if isinstance(coords, (str, bytes)):
            raise TypeError(f"CoordinatePoint: expected numbers, got {type(coords).__name__}")
        self._coords: Coordinates = as_coordinates(coords)

    def coordinates(self) -> Coordinates:
        return self._coords

    def __len__(self) -> int:
        return len(self._coords)

    def __eq__(self, other) -> bool:
        if not isinstance(other, CoordinatePoint):
            return NotImplemented
        return self._coords == other._coords

    def __hash__(self) -> int:
        return hash(self._coords)

    def __repr__(self) -> str:
        return f"{self.__class__.__name__}{self._coords!r}"


def debug_log(message, *args, **kwargs):
    """Log a debug message only if debug logging is enabled"""
    if logger.isEnabledFor(logging.DEBUG):
        logger.debug(message, *args, **kwargs)
