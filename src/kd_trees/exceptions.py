"""Exceptions raised by the KD-tree layers.

Every class also derives from the builtin a caller would naturally catch,
so ``except ValueError`` keeps working around a bad key and
``except KeyError`` around a missing one.
"""


class KDTreeError(Exception):
    """Base class for all KD-tree errors."""


class InvalidKeyError(KDTreeError, ValueError):
    """A key (or range bound) is ``None``, not numeric, or its length does not match K."""


class KeyMissingError(KDTreeError, KeyError):
    """No live node holds the requested key."""

    def __str__(self) -> str:
        # KeyError quotes its argument; keep the message readable
        return str(self.args[0]) if self.args else ""


class NeighborCountError(KDTreeError, IndexError):
    """The requested neighbour count is negative or exceeds the tree size."""


class PointDimensionError(KDTreeError, RuntimeError):
    """A ``Point`` implementation returned coordinates of the wrong length.

    This signals an inconsistent ``Point.coordinates()`` implementation
    rather than a bad argument.
    """


class AlreadyInitializedError(KDTreeError, RuntimeError):
    """``TypedKDTree.initialize`` was called on an initialized tree."""
