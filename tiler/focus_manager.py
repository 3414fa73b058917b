"""
Focus Manager

Handles focused tile tracking and directional focus, swap and resize.
"""

from __future__ import annotations
import logging
from typing import TYPE_CHECKING, Callable, Optional

from pubsub import pub

from . import topics
from .layout.bsp import (
    LayoutNode,
    adjust_split_in_direction,
    contains_tile,
    get_all_tile_ids,
    swap_tiles,
)
from .layout.geometry import ADJACENCY_TOLERANCE, calculate_bounds, find_adjacent_tile
from .protocol import Area, Direction

if TYPE_CHECKING:
    from .lifecycle_manager import TileLifecycleManager

logger = logging.getLogger(__name__)


class FocusManager:
    """Manages focus for tiles.

    The focused tile is stored as a plain tile id and checked against the
    current layout tree every time it is read, so structural edits can never
    leave it dangling. This component subscribes to focus command events and
    publishes FOCUS_CHANGED.

    Responsibilities:
    - Track the focused tile; repair() moves a stale id to the first tile
    - Wake a sleeping tile when it receives focus
    - CMD_FOCUS_TILE: Focus a specific tile
    - CMD_FOCUS_DIRECTION: Focus the neighbor in a direction
    - CMD_SWAP_DIRECTION: Swap the focused tile with its neighbor
    - CMD_RESIZE_DIRECTION: Grow the focused tile towards a direction
    """

    def __init__(
        self,
        lifecycle: "TileLifecycleManager",
        get_layout_fn: Callable[[], Optional[LayoutNode]],
        commit_layout_fn: Callable[[LayoutNode], None],
        get_area_fn: Callable[[], Area],
        adjacency_tolerance: int = ADJACENCY_TOLERANCE,
        resize_step: float = 0.05,
    ):
        """Initialize focus manager.

        Args:
            lifecycle: Lifecycle manager used to wake focused tiles
            get_layout_fn: Function returning the current layout tree
            commit_layout_fn: Function replacing the layout tree and running a layout pass
            get_area_fn: Function returning the container area
            adjacency_tolerance: Pixel slack for neighbor search
            resize_step: Default ratio delta for directional resize
        """
        self._lifecycle = lifecycle
        self._get_layout = get_layout_fn
        self._commit_layout = commit_layout_fn
        self._get_area = get_area_fn
        self.adjacency_tolerance = adjacency_tolerance
        self.resize_step = resize_step

        self._focused_tile_id: Optional[str] = None

        self._setup_subscriptions()

    def _setup_subscriptions(self):
        """Subscribe to focus command events."""
        pub.subscribe(self._on_focus_tile, topics.CMD_FOCUS_TILE)
        pub.subscribe(self._on_focus_direction, topics.CMD_FOCUS_DIRECTION)
        pub.subscribe(self._on_swap_direction, topics.CMD_SWAP_DIRECTION)
        pub.subscribe(self._on_resize_direction, topics.CMD_RESIZE_DIRECTION)

    @property
    def focused_tile_id(self) -> Optional[str]:
        """The focused tile id, validated against the current tree.

        A stale id reads as the first tile in traversal order. Reading never
        wakes tiles or publishes events; repair() does.
        """
        root = self._get_layout()
        if root is None:
            return None
        if self._focused_tile_id is None or not contains_tile(root, self._focused_tile_id):
            return get_all_tile_ids(root)[0]
        return self._focused_tile_id

    def repair(self) -> Optional[str]:
        """Reassign a stale focus to the first tile and announce it.

        Returns:
            The focused tile id after repair
        """
        current = self.focused_tile_id
        if current is None:
            self._focused_tile_id = None
        elif current != self._focused_tile_id:
            stale = self._focused_tile_id
            self._assign(current)
            logger.debug(f"Repaired focus {stale} -> {current}")
        return current

    def focus(self, tile_id: str) -> bool:
        """Focus a tile, waking it if it is sleeping.

        Returns:
            True if the tile is in the layout and now focused
        """
        root = self._get_layout()
        if root is None or not contains_tile(root, tile_id):
            return False
        self._assign(tile_id)
        return True

    def _assign(self, tile_id: str):
        self._focused_tile_id = tile_id
        # The wake runs in the background; focus does not wait for it
        self._lifecycle.request_wake(tile_id)
        pub.sendMessage(topics.FOCUS_CHANGED, tile_id=tile_id)

    def clear(self):
        """Forget the focused tile (used before restoring a session)."""
        self._focused_tile_id = None

    def on_tile_removed(self, tile_id: str) -> Optional[str]:
        """Reassign focus if the removed tile had it.

        Returns:
            The focused tile id after reassignment
        """
        if self._focused_tile_id == tile_id:
            self._focused_tile_id = None
        return self.repair()

    def _find_neighbor(self, direction: Direction) -> Optional[str]:
        current = self.repair()
        if current is None:
            return None

        tile_bounds = calculate_bounds(self._get_layout(), self._get_area())
        return find_adjacent_tile(
            tile_bounds, current, direction, self.adjacency_tolerance
        )

    def focus_direction(self, direction: Direction) -> bool:
        """Move focus to the adjacent tile in a direction.

        Returns:
            True if focus moved
        """
        neighbor = self._find_neighbor(direction)
        if neighbor is None:
            return False
        self._assign(neighbor)
        return True

    def swap_direction(self, direction: Direction) -> bool:
        """Swap the focused tile with its neighbor in a direction.

        Focus stays on the same tile id, which now occupies the neighbor's
        place in the layout.

        Returns:
            True if a swap happened
        """
        neighbor = self._find_neighbor(direction)
        if neighbor is None:
            return False

        current = self._focused_tile_id
        self._commit_layout(swap_tiles(self._get_layout(), current, neighbor))
        logger.debug(f"Swapped {current} with {neighbor} ({Direction(direction).value})")
        return True

    def resize_in_direction(
        self, direction: Direction, delta: Optional[float] = None
    ) -> bool:
        """Grow the focused tile towards a direction.

        Returns:
            True if a split ratio changed
        """
        current = self.repair()
        if current is None:
            return False

        root = self._get_layout()
        step = self.resize_step if delta is None else delta
        new_root = adjust_split_in_direction(root, current, direction, step)
        if new_root is root:
            return False

        self._commit_layout(new_root)
        return True

    # Command event handlers
    def _on_focus_tile(self, tile_id):
        """Handle CMD_FOCUS_TILE command."""
        self.focus(tile_id)

    def _on_focus_direction(self, direction):
        """Handle CMD_FOCUS_DIRECTION command."""
        self.focus_direction(direction)

    def _on_swap_direction(self, direction):
        """Handle CMD_SWAP_DIRECTION command."""
        self.swap_direction(direction)

    def _on_resize_direction(self, direction, delta=None):
        """Handle CMD_RESIZE_DIRECTION command."""
        self.resize_in_direction(direction, delta)
