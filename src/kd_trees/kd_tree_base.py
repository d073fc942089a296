"""KD-tree over fixed-dimension float keys."""

from __future__ import annotations

from typing import Any, Dict, Iterable, List, Optional

from kd_trees.base import Coordinates, as_coordinates, debug_log
from kd_trees.exceptions import InvalidKeyError, KeyMissingError, NeighborCountError
from kd_trees.kd_node import KDNodeArena


class KDTree:
    """
    KD-tree supporting insertion, soft deletion, equality search, range
    search and n-nearest-neighbour queries on K-dimensional float keys.

    The split dimension is chosen naively by depth modulo K, so the shape of
    the tree depends only on insertion order. Semantics:

    - Keys are copied on insertion. Two different sequences holding the same
      numbers address the same entry.
    - Values are *not* copied; mutating a stored value object is visible
      through the tree.
    - Deletion only marks a node as deleted. Rebuilding is left to the
      caller (see ``TypedKDTree.optimize``).

    Attributes:
        arena (KDNodeArena): Storage for all nodes, deleted ones included.
        root (Optional[int]): Arena index of the root, None if empty.
    """
    __slots__ = ("_k", "arena", "root", "_count")

    def __init__(self, k: int):
        if k < 1:
            raise ValueError(f"KDTree: invalid key size {k!r}, must be >= 1")
        self._k = k
        self.arena = KDNodeArena()
        self.root: Optional[int] = None
        self._count = 0
        debug_log("Created KDTree with K=%d", k)

    @staticmethod
    def _coerce(key: Iterable[float]) -> Coordinates:
        if isinstance(key, (str, bytes)):
            raise InvalidKeyError(f"KDTree: key must be a sequence of numbers, got {type(key).__name__}")
        try:
            return as_coordinates(key)
        except (TypeError, ValueError) as e:
            raise InvalidKeyError(f"KDTree: malformed key {key!r}") from e

    def _check_key(self, key: Optional[Iterable[float]]) -> Coordinates:
        if key is None:
            raise InvalidKeyError("KDTree: key must not be None")
        coords = self._coerce(key)
        if len(coords) != self._k:
            raise InvalidKeyError(
                f"KDTree: wrong key size {len(coords)}, expected {self._k}"
            )
        return coords

    # Public API
    def insert(self, key: Iterable[float], value: Any) -> None:
        """
        Insert ``value`` at ``key``, replacing the value of an existing entry.

        Args:
            key: K coordinates.
            value: Stored as-is.

        Raises:
            InvalidKeyError: If key is None or its length is not K.
        """
        coords = self._check_key(key)
        self.root, added = self.arena.insert(self.root, coords, value, self._k)
        if added:
            self._count += 1

    def search(self, key: Iterable[float]) -> Any:
        """
        Find the value stored at exactly ``key``.

        Returns:
            The value, or None if no live entry has that key.

        Raises:
            InvalidKeyError: If key is None or its length is not K.
        """
        coords = self._check_key(key)
        idx = self.arena.find_live(self.root, coords, self._k)
        return None if idx is None else self.arena[idx].value

    def __contains__(self, key: Iterable[float]) -> bool:
        coords = self._check_key(key)
        return self.arena.find_live(self.root, coords, self._k) is not None

    def delete(self, key: Iterable[float]) -> None:
        """
        Mark the entry at ``key`` as deleted.

        The node stays in place until the tree is rebuilt.

        Raises:
            InvalidKeyError: If key is None or its length is not K.
            KeyMissingError: If no live entry has that key.
        """
        coords = self._check_key(key)
        idx = self.arena.find_live(self.root, coords, self._k)
        if idx is None:
            raise KeyMissingError(f"KDTree: key {coords} missing")
        self.arena[idx].deleted = True
        self._count -= 1

    def nearest(self, key: Iterable[float]) -> Any:
        """
        Value of the live entry closest to ``key``.

        Raises:
            InvalidKeyError: If key is None or its length is not K.
            NeighborCountError: If the tree holds no live entries.
        """
        return self.nearest_values(key, 1)[0]

    def nearest_values(self, key: Iterable[float], n: int) -> List[Any]:
        """
        Values of the ``n`` live entries closest to ``key``, nearest first.

        Raises:
            InvalidKeyError: If key is None or its length is not K.
            NeighborCountError: If n is negative or greater than ``size()``.
        """
        return [self.arena[i].value for i in self._nearest(key, n)]

    def nearest_keys(self, key: Iterable[float], n: int) -> List[Coordinates]:
        """Like :meth:`nearest_values` but returns the matched keys."""
        return [self.arena[i].key for i in self._nearest(key, n)]

    def _nearest(self, key: Iterable[float], n: int) -> List[int]:
        coords = self._check_key(key)
        if n < 0 or n > self._count:
            raise NeighborCountError(
                f"KDTree: number of neighbors ({n}) cannot be negative or "
                f"greater than number of nodes ({self._count})"
            )
        return self.arena.nearest(self.root, coords, n, self._k)

    def range_search(self, low: Iterable[float], high: Iterable[float]) -> List[Any]:
        """
        Values of all live entries inside the closed box ``[low, high]``.

        Bounds with ``low[d] > high[d]`` in some dimension describe an empty
        box and give an empty list.

        Raises:
            InvalidKeyError: If a bound is None, the bounds differ in length,
                or their length is not K.
        """
        if low is None or high is None:
            raise InvalidKeyError("KDTree: range bounds must not be None")
        lowk = self._coerce(low)
        uppk = self._coerce(high)
        if len(lowk) != len(uppk) or len(lowk) != self._k:
            raise InvalidKeyError(
                f"KDTree: wrong range size ({len(lowk)}, {len(uppk)}), expected {self._k}"
            )
        if any(lo > hi for lo, hi in zip(lowk, uppk)):
            debug_log("Reversed range bounds %s > %s, returning empty result", lowk, uppk)
            return []
        return [
            self.arena[i].value
            for i in self.arena.range_search(self.root, lowk, uppk, self._k)
        ]

    def to_map(self) -> Optional[Dict[Coordinates, Any]]:
        """
        Live entries ordered top-down, left-to-right.

        Returns:
            A dict of key -> value, or None if nothing was ever inserted.
        """
        if self.root is None:
            return None
        arena = self.arena
        return {
            arena[i].key: arena[i].value
            for i, _ in arena.iter_preorder(self.root)
            if not arena[i].deleted
        }

    def size(self) -> int:
        """Number of live key-value entries."""
        return self._count

    __len__ = size

    def dimensions(self) -> int:
        return self._k

    def node_count(self) -> int:
        """Physical node count, soft-deleted nodes included."""
        return len(self.arena)

    def is_empty(self) -> bool:
        return self.root is None

    def to_debug_string(self) -> str:
        return "Empty KDTree" if self.is_empty() else self.arena.dump(self.root)

    __str__ = to_debug_string

    def __repr__(self) -> str:
        return f"KDTree(k={self._k}, size={self._count}, nodes={len(self.arena)})"
