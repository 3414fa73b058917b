"""
Layout System

Provides the BSP layout tree and the geometry computed from it.
"""

from .bsp import (
    EMPTY,
    MAX_RATIO,
    MIN_RATIO,
    LayoutNode,
    LeafNode,
    SplitDirection,
    SplitNode,
    SplitResult,
    adjust_split_in_direction,
    adjust_split_ratio,
    clamp_ratio,
    contains_tile,
    count_tiles,
    create_leaf,
    find_ancestor_splits,
    find_node_by_tile_id,
    find_parent_split,
    get_all_tile_ids,
    iter_splits,
    remove_node,
    resize_split,
    split_node,
    swap_tiles,
    which_child,
)
from .geometry import (
    ADJACENCY_TOLERANCE,
    TileBounds,
    bounds_by_tile,
    calculate_bounds,
    find_adjacent_tile,
)

__all__ = [
    # Tree types
    "EMPTY",
    "MAX_RATIO",
    "MIN_RATIO",
    "LayoutNode",
    "LeafNode",
    "SplitDirection",
    "SplitNode",
    "SplitResult",
    # Tree operations
    "adjust_split_in_direction",
    "adjust_split_ratio",
    "clamp_ratio",
    "create_leaf",
    "remove_node",
    "resize_split",
    "split_node",
    "swap_tiles",
    # Tree queries
    "contains_tile",
    "count_tiles",
    "find_ancestor_splits",
    "find_node_by_tile_id",
    "find_parent_split",
    "get_all_tile_ids",
    "iter_splits",
    "which_child",
    # Geometry
    "ADJACENCY_TOLERANCE",
    "TileBounds",
    "bounds_by_tile",
    "calculate_bounds",
    "find_adjacent_tile",
]
