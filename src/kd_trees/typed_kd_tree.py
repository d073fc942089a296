"""
Typed wrapper around :class:`KDTree`.

Differences to ``KDTree``:

- The underlying tree is created lazily on the first insertion; the length
  of that first key's coordinates fixes the dimension from then on.
- Keys are any :class:`Point` implementation, values any type ``V``.
- ``insert``/``delete`` (and their ``*_many`` batch forms) return the tree
  itself for chaining; ``last_value``/``last_values`` report what the last
  such call did.
- A None key (or one whose ``coordinates()`` is None) never raises: lookups
  return None or an empty list and mutations do nothing.
- ``nearest_values``/``nearest_keys`` clamp ``n`` to the tree size.
- The only error a well-formed call can hit is ``PointDimensionError``,
  raised when a ``Point`` implementation returns coordinates of the wrong
  length. Keys must be hashable; an unhashable key raises ``TypeError``
  before the tree changes.

Example::

    tree: TypedKDTree[CoordinatePoint, str] = TypedKDTree()
    tree.insert(CoordinatePoint(1, 2, 3), "yes").insert(CoordinatePoint(-1, -2, -3), "no")
    maybe = tree.insert(CoordinatePoint(0, 0, 0), "maybe").last_value()
"""

from __future__ import annotations

from typing import Dict, Generic, Iterable, List, Mapping, Optional, TypeVar

from kd_trees.base import CoordinatePoint, Point, debug_log
from kd_trees.exceptions import AlreadyInitializedError, PointDimensionError
from kd_trees.kd_tree_base import KDTree

K = TypeVar("K", bound=Point)
V = TypeVar("V")


def _check_hashable(key: Point) -> None:
    # keys index last_values()
    try:
        hash(key)
    except TypeError as e:
        raise TypeError(
            f"TypedKDTree: keys must be hashable, got {type(key).__name__!r}"
        ) from e


class TypedKDTree(Generic[K, V]):
    """KD-tree keyed by :class:`Point` implementations with typed values."""
    __slots__ = ("_tree", "_last_values", "_last_key")

    def __init__(self):
        self._tree: Optional[KDTree] = None
        # effects of the last insert/delete call, in application order
        self._last_values: Dict[K, V] = {}
        self._last_key: Optional[K] = None

    def initialize(self, dimensions: int) -> None:
        """
        Create the underlying tree ahead of the first insertion.

        Useful to pin the dimension when the ``Point`` implementation is not
        under your control.

        Raises:
            ValueError: If dimensions < 1.
            AlreadyInitializedError: If the tree already exists.
        """
        if dimensions < 1:
            raise ValueError(
                f"TypedKDTree: your `Point` must have dimensions >= 1, got {dimensions}"
            )
        if self._tree is not None:
            raise AlreadyInitializedError(
                "TypedKDTree: the underlying KDTree has already been initialized"
            )
        self._tree = KDTree(dimensions)

    # Mutations
    def insert(self, key: Optional[K], value: V) -> TypedKDTree[K, V]:
        """
        Insert or update one entry.

        Returns:
            The tree itself, for chaining.

        Raises:
            PointDimensionError: If ``key.coordinates()`` has the wrong length.
            TypeError: If ``key`` is not hashable.
        """
        self._last_values = {}
        self._insert_one(key, value)
        return self

    def insert_many(self, pairs: Optional[Mapping[K, V]]) -> TypedKDTree[K, V]:
        """
        Insert several entries; ``last_values()`` then holds all of them.

        Entries are applied one by one, so an error part-way leaves the
        earlier ones inserted.
        """
        self._last_values = {}
        if pairs:
            for key, value in pairs.items():
                self._insert_one(key, value)
        return self

    def delete(self, key: Optional[K]) -> TypedKDTree[K, V]:
        """
        Soft-delete one entry. Deleting a missing key does nothing.

        Returns:
            The tree itself, for chaining.
        """
        self._last_values = {}
        self._delete_one(key)
        return self

    def delete_many(self, keys: Optional[Iterable[K]]) -> TypedKDTree[K, V]:
        """Soft-delete several entries; ``last_values()`` holds the removed ones."""
        self._last_values = {}
        if keys:
            for key in keys:
                self._delete_one(key)
        return self

    def _insert_one(self, key: Optional[K], value: V) -> None:
        if self._is_key_or_tree_null(key, skip_tree_check=True):
            return
        _check_hashable(key)
        coords = key.coordinates()
        if self._tree is None:
            self.initialize(len(coords))
        self._tree.insert(coords, value)
        self._last_values[key] = value
        self._last_key = key

    def _delete_one(self, key: Optional[K]) -> None:
        if self._is_key_or_tree_null(key):
            return
        _check_hashable(key)
        coords = key.coordinates()
        if coords not in self._tree:
            return
        value = self._tree.search(coords)
        self._tree.delete(coords)
        self._last_values[key] = value
        self._last_key = key

    # Queries
    def search(self, key: Optional[K]) -> Optional[V]:
        """Value at exactly ``key``, or None."""
        if self._is_key_or_tree_null(key):
            return None
        return self._tree.search(key.coordinates())

    def nearest(self, key: Optional[K]) -> Optional[V]:
        """Value nearest to ``key``, or None if the tree holds nothing."""
        if self._is_key_or_tree_null(key) or self._tree.size() == 0:
            return None
        return self._tree.nearest(key.coordinates())

    def nearest_values(self, key: Optional[K], n: int) -> List[V]:
        """
        Values of the ``n`` entries nearest to ``key``, nearest first.

        ``n`` is clamped to ``size()``.
        """
        size = self.size()
        if self._is_key_or_tree_null(key) or size == 0:
            return []
        return self._tree.nearest_values(key.coordinates(), min(n, size))

    def nearest_keys(self, key: Optional[K], n: int) -> List[Point]:
        """
        Keys of the ``n`` entries nearest to ``key``, nearest first.

        The returned keys are :class:`CoordinatePoint` instances, not the
        objects originally inserted.
        """
        size = self.size()
        if self._is_key_or_tree_null(key) or size == 0:
            return []
        return [
            CoordinatePoint(coords)
            for coords in self._tree.nearest_keys(key.coordinates(), min(n, size))
        ]

    def range_search(self, low: Optional[K], high: Optional[K]) -> List[V]:
        """Values with keys inside the closed box ``[low, high]``."""
        if (
            self._is_key_or_tree_null(low)
            or self._is_key_or_tree_null(high)
            or self._tree.size() == 0
        ):
            return []
        return self._tree.range_search(low.coordinates(), high.coordinates())

    def to_map(self) -> Dict[Point, V]:
        """
        Live entries ordered top-down, left-to-right.

        Keys are :class:`CoordinatePoint` instances.
        """
        raw = self._tree.to_map() if self._tree is not None else None
        if not raw:
            return {}
        return {CoordinatePoint(coords): value for coords, value in raw.items()}

    def last_value(self) -> Optional[V]:
        """Value inserted or deleted by the most recent mutating call."""
        if self._last_key is None:
            return None
        return self._last_values.get(self._last_key)

    def last_values(self) -> Dict[K, V]:
        """
        All key-value pairs affected by the most recent mutating call.

        Only the final call is reported, so use the ``*_many`` forms to get
        a whole batch back.
        """
        return self._last_values

    def optimize(self, center: K) -> TypedKDTree[K, V]:
        """
        Rebuild the tree without deleted nodes, inserting the live entries
        from nearest to farthest from ``center``.

        Entries close to ``center`` end up near the root. This reshapes the
        tree heuristically; it does not balance it.

        Raises:
            ValueError: If center is None.
            PointDimensionError: If ``center.coordinates()`` has the wrong
                length.
        """
        if center is None or center.coordinates() is None:
            raise ValueError(
                "TypedKDTree: to optimize the tree you must provide a valid "
                "center point, but you passed None"
            )
        if self._tree is None:
            return self
        self._check_dimensions(center.coordinates())

        old = self._tree
        entries = old.to_map() or {}
        ordered = old.nearest_keys(center.coordinates(), old.size())

        fresh = KDTree(old.dimensions())
        for coords in ordered:
            fresh.insert(coords, entries[coords])
        self._tree = fresh
        debug_log(
            "Optimized tree: %d nodes -> %d nodes (%d live)",
            old.node_count(), fresh.node_count(), fresh.size(),
        )
        return self

    def size(self) -> int:
        """Number of live entries, 0 if not initialized."""
        return self._tree.size() if self._tree is not None else 0

    __len__ = size

    def dimensions(self) -> int:
        """Key dimension, 0 if not yet initialized."""
        return self._tree.dimensions() if self._tree is not None else 0

    def node_count(self) -> int:
        """Physical node count of the underlying tree, 0 if not initialized."""
        return self._tree.node_count() if self._tree is not None else 0

    @property
    def tree(self) -> Optional[KDTree]:
        """The underlying untyped tree, None until initialized."""
        return self._tree

    def __str__(self) -> str:
        return str(self._tree) if self._tree is not None else "Empty KDTree"

    def __repr__(self) -> str:
        return f"TypedKDTree(dimensions={self.dimensions()}, size={self.size()})"

    def _is_key_or_tree_null(self, key: Optional[K], skip_tree_check: bool = False) -> bool:
        """
        True if the call should short-circuit: no tree yet (unless skipped),
        or ``key``/its coordinates are None.

        Raises:
            PointDimensionError: If the key's coordinates disagree with the
                tree's dimension.
        """
        if not skip_tree_check and self._tree is None:
            return True

        coords = key.coordinates() if key is not None else None
        if coords is None:
            return True

        if self._tree is not None:
            self._check_dimensions(coords)
        return False

    def _check_dimensions(self, coords) -> None:
        if len(coords) != self._tree.dimensions():
            raise PointDimensionError(
                "TypedKDTree: the key returned by your `Point` implementation "
                f"has {len(coords)} coordinates, the tree has "
                f"{self._tree.dimensions()} dimensions"
            )
