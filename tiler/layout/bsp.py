"""
Binary Space Partition Layout Tree

Split nodes divide their space horizontally or vertically at a ratio, leaf
nodes reference the tile shown in that space. Nodes are frozen; every
operation returns a new root that shares all untouched subtrees with the old
one, or the old root itself when nothing changed.
"""

from __future__ import annotations
import uuid
from dataclasses import dataclass, replace
from enum import Enum
from typing import Iterator, List, NamedTuple, Optional, Union

from ..protocol import Direction

MIN_RATIO = 0.1
MAX_RATIO = 0.9


class SplitDirection(Enum):
    """Orientation of a split's divider."""

    HORIZONTAL = "horizontal"  # Children stacked top/bottom
    VERTICAL = "vertical"  # Children side by side left/right


@dataclass(frozen=True)
class LeafNode:
    """A node showing a single tile."""

    id: str
    tile_id: str


@dataclass(frozen=True)
class SplitNode:
    """A node dividing its space between two children."""

    id: str
    direction: SplitDirection
    ratio: float
    first: "LayoutNode"
    second: "LayoutNode"


LayoutNode = Union[SplitNode, LeafNode]


class _EmptyTree:
    """Sentinel returned by remove_node when the last leaf is removed."""

    _instance = None

    def __new__(cls):
        if cls._instance is None:
            cls._instance = super().__new__(cls)
        return cls._instance

    def __repr__(self) -> str:
        return "EMPTY"

    def __bool__(self) -> bool:
        return False


EMPTY = _EmptyTree()


class SplitResult(NamedTuple):
    """Outcome of a successful split."""

    new_root: LayoutNode
    new_tile_id: str


def _new_id() -> str:
    return str(uuid.uuid4())


def clamp_ratio(ratio: float) -> float:
    """Clamp a divider ratio into the allowed range."""
    return max(MIN_RATIO, min(MAX_RATIO, ratio))


def create_leaf(tile_id: Optional[str] = None) -> LeafNode:
    """Create a leaf with a fresh node id (and tile id unless given)."""
    return LeafNode(id=_new_id(), tile_id=tile_id or _new_id())


def _matches(node: LeafNode, target_id: str) -> bool:
    return node.id == target_id or node.tile_id == target_id


# Structural operations


def split_node(
    root: LayoutNode,
    target_id: str,
    direction: SplitDirection,
    ratio: float = 0.5,
) -> Optional[SplitResult]:
    """
    Split the leaf matching ``target_id`` (node id or tile id) in two.

    The original leaf becomes the first child of a new split and a new leaf
    with a fresh tile id becomes the second.

    Returns:
        SplitResult with the new root and new tile id, or None if no leaf
        matches ``target_id``
    """
    new_tile_id = _new_id()
    new_root = _split_recursive(
        root, target_id, direction, clamp_ratio(ratio), new_tile_id
    )
    if new_root is None:
        return None
    return SplitResult(new_root, new_tile_id)


def _split_recursive(
    node: LayoutNode,
    target_id: str,
    direction: SplitDirection,
    ratio: float,
    new_tile_id: str,
) -> Optional[LayoutNode]:
    if isinstance(node, LeafNode):
        if _matches(node, target_id):
            return SplitNode(
                id=_new_id(),
                direction=direction,
                ratio=ratio,
                first=node,
                second=create_leaf(new_tile_id),
            )
        return None

    first = _split_recursive(node.first, target_id, direction, ratio, new_tile_id)
    if first is not None:
        return replace(node, first=first)

    second = _split_recursive(node.second, target_id, direction, ratio, new_tile_id)
    if second is not None:
        return replace(node, second=second)

    return None


def remove_node(root: LayoutNode, target_id: str) -> Union[LayoutNode, _EmptyTree]:
    """
    Remove the leaf matching ``target_id`` and promote its sibling.

    Returns:
        The new root, EMPTY if the root leaf itself was removed, or the
        unchanged root if nothing matched
    """
    if isinstance(root, LeafNode):
        return EMPTY if _matches(root, target_id) else root

    if isinstance(root.first, LeafNode) and _matches(root.first, target_id):
        return root.second
    if isinstance(root.second, LeafNode) and _matches(root.second, target_id):
        return root.first

    first = remove_node(root.first, target_id)
    if first is not root.first:
        return root.second if first is EMPTY else replace(root, first=first)

    second = remove_node(root.second, target_id)
    if second is not root.second:
        return root.first if second is EMPTY else replace(root, second=second)

    return root


def resize_split(root: LayoutNode, split_id: str, new_ratio: float) -> LayoutNode:
    """Set the ratio of the split ``split_id``, clamped into range."""
    result = _resize_recursive(root, split_id, clamp_ratio(new_ratio))
    return root if result is None else result


def _resize_recursive(
    node: LayoutNode, split_id: str, ratio: float
) -> Optional[LayoutNode]:
    if isinstance(node, LeafNode):
        return None
    if node.id == split_id:
        return replace(node, ratio=ratio)

    first = _resize_recursive(node.first, split_id, ratio)
    if first is not None:
        return replace(node, first=first)

    second = _resize_recursive(node.second, split_id, ratio)
    if second is not None:
        return replace(node, second=second)

    return None


def swap_tiles(root: LayoutNode, tile_id1: str, tile_id2: str) -> LayoutNode:
    """
    Exchange the tiles shown by two leaves.

    Split structure, ratios and leaf node ids stay put; only the tile ids
    move. Unknown ids leave the tree untouched.
    """
    if tile_id1 == tile_id2:
        return root
    if not (contains_tile(root, tile_id1) and contains_tile(root, tile_id2)):
        return root
    return _swap_recursive(root, tile_id1, tile_id2)


def _swap_recursive(node: LayoutNode, tile_id1: str, tile_id2: str) -> LayoutNode:
    if isinstance(node, LeafNode):
        if node.tile_id == tile_id1:
            return replace(node, tile_id=tile_id2)
        if node.tile_id == tile_id2:
            return replace(node, tile_id=tile_id1)
        return node

    first = _swap_recursive(node.first, tile_id1, tile_id2)
    second = _swap_recursive(node.second, tile_id1, tile_id2)
    if first is node.first and second is node.second:
        return node
    return replace(node, first=first, second=second)


def adjust_split_ratio(root: LayoutNode, tile_id: str, delta: float) -> LayoutNode:
    """
    Adjust the ratio of the split directly containing a tile.

    Positive delta grows the first child, negative grows the second.
    """
    parent = find_parent_split(root, tile_id)
    if parent is None:
        return root
    return resize_split(root, parent.id, parent.ratio + delta)


def adjust_split_in_direction(
    root: LayoutNode,
    tile_id: str,
    direction: Direction,
    delta: float,
) -> LayoutNode:
    """
    Grow a tile towards ``direction`` by moving the nearest matching divider.

    Left/right move the closest vertical ancestor split, up/down the closest
    horizontal one.
    """
    direction = Direction(direction)
    wanted = SplitDirection.VERTICAL if direction.is_horizontal else SplitDirection.HORIZONTAL

    # Innermost ancestor first
    for split in reversed(find_ancestor_splits(root, tile_id)):
        if split.direction != wanted:
            continue

        # The divider follows the direction whichever child holds the tile:
        # a first child grows, a second child shrinks, and vice versa.
        grows_forward = direction in (Direction.RIGHT, Direction.DOWN)
        adjusted = delta if grows_forward else -delta
        return resize_split(root, split.id, split.ratio + adjusted)

    return root


# Queries


def find_node_by_tile_id(root: LayoutNode, tile_id: str) -> Optional[LeafNode]:
    """Find the leaf showing ``tile_id``."""
    if isinstance(root, LeafNode):
        return root if root.tile_id == tile_id else None
    return find_node_by_tile_id(root.first, tile_id) or find_node_by_tile_id(
        root.second, tile_id
    )


def contains_tile(node: LayoutNode, tile_id: str) -> bool:
    """Whether ``tile_id`` is shown anywhere below ``node``."""
    return find_node_by_tile_id(node, tile_id) is not None


def get_all_tile_ids(node: LayoutNode) -> List[str]:
    """All tile ids in traversal order (first subtree before second)."""
    if isinstance(node, LeafNode):
        return [node.tile_id]
    return get_all_tile_ids(node.first) + get_all_tile_ids(node.second)


def count_tiles(node: LayoutNode) -> int:
    """Number of leaves in the tree."""
    if isinstance(node, LeafNode):
        return 1
    return count_tiles(node.first) + count_tiles(node.second)


def iter_splits(node: LayoutNode) -> Iterator[SplitNode]:
    """Yield every split node, parents before children."""
    if isinstance(node, SplitNode):
        yield node
        yield from iter_splits(node.first)
        yield from iter_splits(node.second)


def find_parent_split(
    root: LayoutNode, tile_id: str, parent: Optional[SplitNode] = None
) -> Optional[SplitNode]:
    """The split whose direct child is the leaf showing ``tile_id``."""
    if isinstance(root, LeafNode):
        return parent if root.tile_id == tile_id else None
    return find_parent_split(root.first, tile_id, root) or find_parent_split(
        root.second, tile_id, root
    )


def find_ancestor_splits(root: LayoutNode, tile_id: str) -> List[SplitNode]:
    """All splits above the tile, outermost first."""
    if isinstance(root, LeafNode):
        return []
    for child in (root.first, root.second):
        if isinstance(child, LeafNode):
            if child.tile_id == tile_id:
                return [root]
            continue
        below = find_ancestor_splits(child, tile_id)
        if below:
            return [root] + below
    return []


def which_child(split: SplitNode, tile_id: str) -> Optional[str]:
    """Return "first" or "second" for the child subtree holding the tile."""
    if contains_tile(split.first, tile_id):
        return "first"
    if contains_tile(split.second, tile_id):
        return "second"
    return None
