"""Pretty-printing and display utilities for KD-tree structures."""

from __future__ import annotations

import collections
import math
from typing import TYPE_CHECKING, Union

if TYPE_CHECKING:
    from kd_trees.kd_tree_base import KDTree
    from kd_trees.typed_kd_tree import TypedKDTree


# ANSI colour codes
PRIMARY = '\033[32m'    # green
SECONDARY = '\033[33m'  # yellow
RESET = '\033[0m'


def _format_key(key) -> str:
    return "(" + ", ".join(f"{c:g}" for c in key) + ")"


def _unwrap(tree):
    from kd_trees.typed_kd_tree import TypedKDTree

    if isinstance(tree, TypedKDTree):
        return tree.tree
    return tree


def print_pretty(tree: Union[KDTree, TypedKDTree, None], color: bool = True) -> str:
    """
    Prints a KD-tree so:
      • Lines go from the root (depth 0) down to the deepest level.
      • Within a line, nodes appear left→right in traversal order.
      • All columns have the same width, so initial indent and
        inter-node spacing are uniform.
      • Soft-deleted nodes are highlighted and marked with ``*``.
    """
    from kd_trees.kd_tree_base import KDTree

    tree = _unwrap(tree)
    if tree is None:
        return "KDTree: None"

    if not isinstance(tree, KDTree):
        raise TypeError(f"print_pretty() expects KDTree or TypedKDTree, got {type(tree).__name__}")

    if tree.is_empty():
        return f"{type(tree).__name__}: Empty"

    arena = tree.arena

    # 1) First pass: collect each node's text per depth and track max length
    layers_raw = collections.defaultdict(list)  # depth -> list of node-strings
    visible = collections.defaultdict(list)     # depth -> uncoloured lengths
    max_len = 0
    for idx, depth in arena.iter_preorder(tree.root):
        node = arena[idx]
        text = _format_key(node.key)
        if node.deleted:
            text += "*"
        max_len = max(max_len, len(text))
        visible[depth].append(len(text))
        if color:
            text = f"{SECONDARY}{text}{RESET}" if node.deleted else text
        layers_raw[depth].append(text)

    # 2) Define a fixed column width: widest text + 2 spaces padding
    column_width = max_len + 2

    # 3) Pad each layer, indenting deeper (wider) layers less
    all_depths = sorted(layers_raw.keys())
    max_slots = max(len(v) for v in layers_raw.values())

    out_lines = []
    for depth in all_depths:
        texts = layers_raw[depth]
        padded = []
        for text, length in zip(texts, visible[depth]):
            pad = column_width - length
            padded.append(" " * (pad // 2) + text + " " * (pad - pad // 2))
        spaces = int(math.floor((max_slots - len(texts)) * column_width / 2 + 0.5))
        layer_id = f"{PRIMARY}Depth {depth}{RESET}" if color else f"Depth {depth}"
        out_lines.append(f"{layer_id}:  {' ' * spaces}{''.join(padded)}")

    return type(tree).__name__ + "\n" + "\n\n".join(out_lines) + "\n"


def print_structure(
    tree: Union[KDTree, TypedKDTree, None],
    max_depth: int = 2,
) -> str:
    """Return a debugging-oriented structural dump of a KD-tree.

    Shows every node down to ``max_depth`` with its arena index, split
    dimension, child indices and deleted flag.
    """
    tree = _unwrap(tree)
    if tree is None or tree.is_empty():
        return f"Empty {type(tree).__name__ if tree is not None else 'KDTree'}"

    k = tree.dimensions()
    arena = tree.arena
    result = [
        f"{type(tree).__name__}(k={k}, size={tree.size()}, nodes={tree.node_count()}, root={tree.root})"
    ]
    for idx, depth in arena.iter_preorder(tree.root):
        if depth > max_depth:
            continue
        node = arena[idx]
        prefix = ' ' * (4 * (depth + 1))
        result.append(
            f"{prefix}#{idx} split={depth % k} key={_format_key(node.key)} "
            f"left={node.left} right={node.right}"
            f"{' deleted' if node.deleted else ''}"
        )
    if any(depth > max_depth for _, depth in arena.iter_preorder(tree.root)):
        result.append(f"{' ' * 4}... (max depth reached)")
    return "\n".join(result)
