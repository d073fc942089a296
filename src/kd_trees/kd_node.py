"""KD-tree nodes and the arena that owns them.

Nodes live in a flat list and refer to their children by index, so the tree
itself only holds the index of its root. All traversals are written as
loops over an explicit stack: a KD-tree built from sorted input degenerates
into a list, and recursion would hit the interpreter limit long before
memory runs out.

Split rule, used identically by every operation: at depth ``d`` the split
dimension is ``s = d % K``; a key goes left iff ``key[s] < node.key[s]``,
otherwise right.
"""

from __future__ import annotations

from typing import Any, Iterator, List, Optional, Sequence, Tuple

from kd_trees.base import Coordinates, sqdist
from kd_trees.hrect import HRect
from kd_trees.neighbor_list import NearestNeighborList


class KDNode:
    """One stored key. ``left``/``right`` are arena indices or None."""
    __slots__ = ("key", "value", "deleted", "left", "right")

    def __init__(self, key: Coordinates, value: Any = None):
        self.key = key
        self.value = value
        self.deleted = False
        self.left: Optional[int] = None
        self.right: Optional[int] = None

    def __repr__(self) -> str:
        flag = ", deleted" if self.deleted else ""
        return f"KDNode(key={self.key!r}, value={self.value!r}{flag})"


class KDNodeArena:
    """
    Owns every node of one KD-tree and implements the tree algorithms.

    Nodes are appended on insertion and never removed, so ``len(arena)`` is
    the physical node count including soft-deleted nodes.
    """
    __slots__ = ("nodes",)

    def __init__(self):
        self.nodes: List[KDNode] = []

    def __len__(self) -> int:
        return len(self.nodes)

    def __getitem__(self, idx: int) -> KDNode:
        return self.nodes[idx]

    def _new_node(self, key: Coordinates, value: Any) -> int:
        self.nodes.append(KDNode(key, value))
        return len(self.nodes) - 1

    # Public API
    def insert(
        self, root: Optional[int], key: Coordinates, value: Any, k: int
    ) -> Tuple[int, bool]:
        """
        Insert ``key`` below ``root`` or update the node already holding it.

        Returns:
            (root, added): the (possibly new) root index, and whether the key
            became a new live entry. Updating a live node gives False;
            reviving a soft-deleted node gives True.
        """
        if root is None:
            return self._new_node(key, value), True

        nodes = self.nodes
        cur = root
        depth = 0
        while True:
            node = nodes[cur]
            if node.key == key:
                revived = node.deleted
                node.value = value
                node.deleted = False
                return root, revived

            s = depth % k
            if key[s] < node.key[s]:
                if node.left is None:
                    node.left = self._new_node(key, value)
                    return root, True
                cur = node.left
            else:
                if node.right is None:
                    node.right = self._new_node(key, value)
                    return root, True
                cur = node.right
            depth += 1

    def find(self, root: Optional[int], key: Sequence[float], k: int) -> Optional[int]:
        """
        Exact-match descent.

        Returns:
            Index of the node whose key equals ``key`` (deleted or not), or
            None. A key can be held by at most one node.
        """
        nodes = self.nodes
        cur = root
        depth = 0
        while cur is not None:
            node = nodes[cur]
            if node.key == key:
                return cur
            s = depth % k
            cur = node.left if key[s] < node.key[s] else node.right
            depth += 1
        return None

    def find_live(self, root: Optional[int], key: Sequence[float], k: int) -> Optional[int]:
        """Like :meth:`find`, but a soft-deleted match counts as not found."""
        idx = self.find(root, key, k)
        if idx is None or self.nodes[idx].deleted:
            return None
        return idx

    def nearest(
        self, root: Optional[int], target: Sequence[float], n: int, k: int
    ) -> List[int]:
        """
        Branch-and-bound search for the ``n`` live nodes closest to ``target``.

        Each node is offered to a bounded candidate list, then the child on
        the target's side of the split is searched before the other one. The
        far child is skipped once the list is full and its bounding
        rectangle is no closer than the worst candidate. Deleted nodes are
        never offered, but their subtrees are still searched.

        Returns:
            Up to ``n`` node indices, nearest first.
        """
        nnl = NearestNeighborList(n)
        if root is None or n == 0:
            return []

        nodes = self.nodes
        # (node index, depth, bounding rectangle, is the far child)
        stack: List[Tuple[int, int, HRect, bool]] = [
            (root, 0, HRect.infinite(k), False)
        ]
        while stack:
            idx, depth, hr, is_far = stack.pop()
            if (
                is_far
                and nnl.is_capacity_reached()
                and not hr.sqdist_to(target) < nnl.max_priority()
            ):
                continue

            node = nodes[idx]
            if not node.deleted:
                nnl.insert(idx, sqdist(node.key, target))

            s = depth % k
            pivot = node.key[s]
            left_hr, right_hr = hr.split(s, pivot)
            if target[s] < pivot:
                near, near_hr, far, far_hr = node.left, left_hr, node.right, right_hr
            else:
                near, near_hr, far, far_hr = node.right, right_hr, node.left, left_hr

            # far goes in first so the whole near subtree is done before it
            if far is not None:
                stack.append((far, depth + 1, far_hr, True))
            if near is not None:
                stack.append((near, depth + 1, near_hr, False))

        return nnl.drain()

    def range_search(
        self, root: Optional[int], low: Sequence[float], high: Sequence[float], k: int
    ) -> List[int]:
        """
        Collect live nodes with ``low[d] <= key[d] <= high[d]`` for every d.

        Results come in traversal order: left subtree, node, right subtree.
        """
        out: List[int] = []
        if root is None:
            return out

        nodes = self.nodes
        stack: List[Tuple[int, int, bool]] = [(root, 0, False)]
        while stack:
            idx, depth, expanded = stack.pop()
            node = nodes[idx]
            if expanded:
                if not node.deleted and all(
                    lo <= c <= hi for c, lo, hi in zip(node.key, low, high)
                ):
                    out.append(idx)
                continue

            s = depth % k
            pivot = node.key[s]
            if node.right is not None and high[s] >= pivot:
                stack.append((node.right, depth + 1, False))
            stack.append((idx, depth, True))
            if node.left is not None and low[s] < pivot:
                stack.append((node.left, depth + 1, False))
        return out

    def iter_preorder(self, root: Optional[int]) -> Iterator[Tuple[int, int]]:
        """Yield ``(index, depth)`` top-down, left-to-right, deleted nodes included."""
        if root is None:
            return
        nodes = self.nodes
        stack = [(root, 0)]
        while stack:
            idx, depth = stack.pop()
            yield idx, depth
            node = nodes[idx]
            if node.right is not None:
                stack.append((node.right, depth + 1))
            if node.left is not None:
                stack.append((node.left, depth + 1))

    def dump(self, root: Optional[int]) -> str:
        """
        Indented pre-order rendering, one node per line.

        Children are prefixed with ``L``/``R``; soft-deleted nodes end in
        ``*``.
        """
        if root is None:
            return ""
        nodes = self.nodes
        lines = []
        stack = [(root, 0, "")]
        while stack:
            idx, depth, side = stack.pop()
            node = nodes[idx]
            mark = "*" if node.deleted else ""
            lines.append(f"{'  ' * depth}{side}{node.key}  {node.value!r}{mark}")
            if node.right is not None:
                stack.append((node.right, depth + 1, "R "))
            if node.left is not None:
                stack.append((node.left, depth + 1, "L "))
        return "\n".join(lines)
