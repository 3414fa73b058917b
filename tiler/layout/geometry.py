"""
Layout Geometry

Maps a layout tree onto a container rectangle and answers spatial questions
about the resulting tiles.
"""

from __future__ import annotations
from typing import Dict, List, NamedTuple, Optional

from ..protocol import Area, Direction
from .bsp import LayoutNode, LeafNode, SplitDirection

# Pixels of slack allowed when deciding that a tile lies beyond an edge
ADJACENCY_TOLERANCE = 5


class TileBounds(NamedTuple):
    """Calculated rectangle for one tile."""

    tile_id: str
    bounds: Area


def calculate_bounds(node: LayoutNode, container: Area) -> List[TileBounds]:
    """
    Calculate pixel bounds for every tile in the tree.

    Each split places its divider at ``round(origin + size * ratio)``; the
    first child ends at the divider and the second starts there, so the
    returned rectangles cover the container exactly.

    Args:
        node: Root of the layout tree
        container: Rectangle to partition

    Returns:
        List of TileBounds in traversal order
    """
    if isinstance(node, LeafNode):
        return [TileBounds(node.tile_id, container)]

    x, y, width, height = container.x, container.y, container.width, container.height

    if node.direction == SplitDirection.VERTICAL:
        split_x = round(x + width * node.ratio)
        first = Area(x, y, split_x - x, height)
        second = Area(split_x, y, x + width - split_x, height)
    else:
        split_y = round(y + height * node.ratio)
        first = Area(x, y, width, split_y - y)
        second = Area(x, split_y, width, y + height - split_y)

    return calculate_bounds(node.first, first) + calculate_bounds(node.second, second)


def bounds_by_tile(tile_bounds: List[TileBounds]) -> Dict[str, Area]:
    """Index calculated bounds by tile id."""
    return {tb.tile_id: tb.bounds for tb in tile_bounds}


def find_adjacent_tile(
    tile_bounds: List[TileBounds],
    current_tile_id: str,
    direction: Direction,
    tolerance: int = ADJACENCY_TOLERANCE,
) -> Optional[str]:
    """
    Find the nearest tile in a direction from the current tile.

    A candidate must lie beyond the current tile's edge (within
    ``tolerance``) and have its center strictly on that side. The winner
    minimizes ``alignment * 2 + distance`` where alignment is the cross-axis
    center offset, which favors tiles in the same row or column.

    Returns:
        The adjacent tile id, or None if nothing lies in that direction
    """
    direction = Direction(direction)
    current = next((tb.bounds for tb in tile_bounds if tb.tile_id == current_tile_id), None)
    if current is None:
        return None

    best_id = None
    best_score = None

    for tile_id, other in tile_bounds:
        if tile_id == current_tile_id:
            continue

        if direction == Direction.LEFT:
            in_direction = other.x + other.width <= current.x + tolerance
            distance = current.center_x - other.center_x
            alignment = abs(current.center_y - other.center_y)
        elif direction == Direction.RIGHT:
            in_direction = other.x >= current.x + current.width - tolerance
            distance = other.center_x - current.center_x
            alignment = abs(current.center_y - other.center_y)
        elif direction == Direction.UP:
            in_direction = other.y + other.height <= current.y + tolerance
            distance = current.center_y - other.center_y
            alignment = abs(current.center_x - other.center_x)
        else:  # DOWN
            in_direction = other.y >= current.y + current.height - tolerance
            distance = other.center_y - current.center_y
            alignment = abs(current.center_x - other.center_x)

        if not in_direction or distance <= 0:
            continue

        score = alignment * 2 + distance
        # Strict comparison keeps the earliest tile on ties
        if best_score is None or score < best_score:
            best_id, best_score = tile_id, score

    return best_id
