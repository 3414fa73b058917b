"""
Tile Manager

Owns the current layout tree and wires the lifecycle and focus managers
together. Every structural command replaces the tree and runs a layout pass:
bounds are recalculated, handed to the lifecycle manager, and published for
overlay layers.
"""

from __future__ import annotations
import asyncio
import logging
import os
from contextlib import contextmanager
from typing import Any, Dict, List, Optional, Set

from pubsub import pub

from . import topics
from .config import TilerConfig
from .focus_manager import FocusManager
from .layout.bsp import (
    EMPTY,
    LayoutNode,
    SplitDirection,
    adjust_split_ratio,
    contains_tile,
    count_tiles,
    create_leaf,
    get_all_tile_ids,
    remove_node,
    resize_split,
    split_node,
)
from .layout.geometry import TileBounds, calculate_bounds
from .lifecycle_manager import TileLifecycleManager
from .persistence import (
    SessionFormatError,
    layout_from_dict,
    session_to_dict,
    tile_record,
    tiles_from_session,
)
from .protocol import Area, ContentViewProvider

logger = logging.getLogger(__name__)

DEFAULT_AREA = Area(0, 0, 1280, 800)


class TileManager:
    """
    Tiling layout engine

    Architecture:
    1. Lifecycle manager owns tile records and content views
    2. Focus manager tracks the focused tile (self-subscribes to focus commands)
    3. This manager owns the tree and runs layout passes

    The tree is never mutated: every operation builds a new tree and swaps
    the reference.
    """

    def __init__(
        self,
        provider: ContentViewProvider,
        config: Optional[TilerConfig] = None,
        area: Optional[Area] = None,
    ):
        """Initialize tile manager.

        Args:
            provider: Content-view provider used for live tiles
            config: Engine configuration
            area: Container area the tree is laid out in
        """
        self.config = config or TilerConfig()
        self.area = area or DEFAULT_AREA
        self.root: Optional[LayoutNode] = None

        # Setup debug event logging if enabled
        if os.getenv("TILER_DEBUG"):
            pub.subscribe(self.debug_event_logger, pub.ALL_TOPICS)

        self.lifecycle = TileLifecycleManager(provider, self.config)

        # Focus management (self-subscribes to events)
        self.focus = FocusManager(
            lifecycle=self.lifecycle,
            get_layout_fn=lambda: self.root,
            commit_layout_fn=self._commit_layout,
            get_area_fn=lambda: self.area,
            adjacency_tolerance=self.config.adjacency_tolerance,
            resize_step=self.config.resize_step,
        )

        self._layout_hold = 0
        self._closing: Set[asyncio.Task] = set()

        self._setup_subscriptions()

    def _setup_subscriptions(self):
        """Subscribe to command and focus events."""
        pub.subscribe(self._on_split, topics.CMD_SPLIT)
        pub.subscribe(self._on_close_tile, topics.CMD_CLOSE_TILE)
        pub.subscribe(self._on_resize_focused, topics.CMD_RESIZE_FOCUSED)
        pub.subscribe(self._on_focus_changed, topics.FOCUS_CHANGED)

    @property
    def focused_tile_id(self) -> Optional[str]:
        """Get the focused tile id (delegates to FocusManager)."""
        return self.focus.focused_tile_id

    def tile_ids(self) -> List[str]:
        """Tile ids in layout order."""
        return get_all_tile_ids(self.root) if self.root is not None else []

    # Structural commands

    def initialize(self, url: Optional[str] = None) -> str:
        """Create the first tile.

        Returns:
            The id of the first tile (or of the existing first tile if the
            layout is already initialized)
        """
        if self.root is not None:
            return self.tile_ids()[0]

        leaf = create_leaf()
        with self._holding_layout():
            self.root = leaf
            self.lifecycle.open_tile(leaf.tile_id, url)
            pub.sendMessage(topics.TILE_CREATED, tile_id=leaf.tile_id)
            self.focus.focus(leaf.tile_id)

        logger.info(f"Initialized layout with tile {leaf.tile_id[:8]}")
        self.update_layout()
        self._session_changed("initialize")
        return leaf.tile_id

    def split(
        self,
        direction: SplitDirection,
        target_id: Optional[str] = None,
        url: Optional[str] = None,
    ) -> Optional[str]:
        """Split a tile (the focused one by default) and focus the new tile.

        Returns:
            The new tile id, or None if the target is not in the layout
        """
        if self.root is None:
            logger.debug("Split ignored: layout not initialized")
            return None

        target = target_id or self.focus.focused_tile_id
        result = split_node(
            self.root,
            target,
            SplitDirection(direction),
            self.config.default_split_ratio,
        )
        if result is None:
            logger.debug(f"Split ignored: no tile {target}")
            return None

        with self._holding_layout():
            self.root = result.new_root
            self.lifecycle.open_tile(result.new_tile_id, url)
            pub.sendMessage(topics.TILE_CREATED, tile_id=result.new_tile_id)
            self.focus.focus(result.new_tile_id)

        logger.info(
            f"Split {target[:8]} {SplitDirection(direction).value}, "
            f"new tile {result.new_tile_id[:8]}"
        )
        self.update_layout()
        self._session_changed("split")
        return result.new_tile_id

    def close_tile(self, tile_id: Optional[str] = None) -> bool:
        """Close a tile (the focused one by default).

        The last remaining tile is never closed. Focus moves to the first
        remaining tile if the closed tile had it. The content view is torn
        down in the background.

        Returns:
            True if the tile was removed from the layout
        """
        if self.root is None:
            return False

        tile_id = tile_id or self.focus.focused_tile_id
        if not contains_tile(self.root, tile_id):
            logger.debug(f"Close ignored: no tile {tile_id}")
            return False
        if count_tiles(self.root) <= 1:
            logger.debug("Close ignored: cannot close the last tile")
            return False

        new_root = remove_node(self.root, tile_id)
        # Only a lone leaf reduces to EMPTY
        if new_root is EMPTY:
            return False

        with self._holding_layout():
            self.root = new_root
            self.focus.on_tile_removed(tile_id)
            self._schedule_close(tile_id)
            pub.sendMessage(topics.TILE_CLOSED, tile_id=tile_id)

        logger.info(f"Closed tile {tile_id[:8]}")
        self.update_layout()
        self._session_changed("close")
        return True

    def resize_split(self, split_id: str, ratio: float) -> bool:
        """Set a split's ratio (clamped).

        Returns:
            True if the split exists
        """
        if self.root is None:
            return False

        new_root = resize_split(self.root, split_id, ratio)
        if new_root is self.root:
            return False
        self._commit_layout(new_root)
        return True

    def resize_focused(self, delta: float) -> bool:
        """Move the divider of the split directly containing the focused tile.

        Positive delta grows the first child of that split.

        Returns:
            True if the focused tile has a parent split
        """
        focused = self.focus.focused_tile_id
        if focused is None:
            return False

        new_root = adjust_split_ratio(self.root, focused, delta)
        if new_root is self.root:
            return False
        self._commit_layout(new_root)
        return True

    def set_area(self, area: Area) -> List[TileBounds]:
        """Change the container area (window resize) and run a layout pass."""
        self.area = area
        return self.update_layout()

    # Layout pass

    def update_layout(self) -> List[TileBounds]:
        """Recalculate bounds, apply them to tiles, and publish the result.

        Returns:
            Bounds for every tile in layout order
        """
        if self.root is None:
            return []

        with self._holding_layout():
            focused = self.focus.focused_tile_id
            tile_bounds = calculate_bounds(self.root, self.area)
            self.lifecycle.apply_layout(tile_bounds, focused)

        pub.sendMessage(topics.LAYOUT_CHANGED, tile_bounds=tile_bounds)
        pub.sendMessage(topics.OVERLAY_UPDATED, payload=self.overlay_state(tile_bounds))
        return tile_bounds

    def overlay_state(
        self, tile_bounds: Optional[List[TileBounds]] = None
    ) -> Dict[str, Any]:
        """Build the overlay payload: per-tile bounds, focus and audio state."""
        if self.root is None:
            return {"tiles": [], "focusedTileId": None}

        if tile_bounds is None:
            tile_bounds = calculate_bounds(self.root, self.area)
        focused = self.focus.focused_tile_id

        tiles = []
        for tile_id, bounds in tile_bounds:
            tile = self.lifecycle.get_tile(tile_id)
            tiles.append(
                {
                    "tileId": tile_id,
                    "windowBounds": bounds.to_dict(),
                    "isFocused": tile_id == focused,
                    "isAudioPlaying": tile.is_audio_playing if tile else False,
                    "isMuted": tile.is_muted if tile else False,
                }
            )
        return {"tiles": tiles, "focusedTileId": focused}

    # Tile metadata

    def set_muted(self, tile_id: str, muted: bool) -> bool:
        if not self.lifecycle.set_muted(tile_id, muted):
            return False
        self._publish_overlay()
        self._session_changed("mute")
        return True

    def set_audio_playing(self, tile_id: str, playing: bool) -> bool:
        if not self.lifecycle.set_audio_playing(tile_id, playing):
            return False
        self._publish_overlay()
        return True

    def update_tile(
        self,
        tile_id: str,
        url: Optional[str] = None,
        title: Optional[str] = None,
        favicon_url: Optional[str] = None,
        is_loading: Optional[bool] = None,
    ) -> bool:
        """Record navigation state for a tile; url and title changes are persisted."""
        if not self.lifecycle.update_tile(tile_id, url, title, favicon_url, is_loading):
            return False
        if url is not None or title is not None:
            self._session_changed("navigate")
        return True

    # Persistence

    def serialize(self) -> Optional[Dict[str, Any]]:
        """Build the session shape for the current layout.

        Returns:
            Session data, or None before the layout is initialized
        """
        if self.root is None:
            return None

        records = []
        for tile_id in get_all_tile_ids(self.root):
            tile = self.lifecycle.get_tile(tile_id)
            if tile is None:
                records.append(tile_record(tile_id, self.config.default_url, "", False))
            else:
                records.append(tile_record(tile.id, tile.url, tile.title, tile.is_muted))
        return session_to_dict(self.root, records, self.focus.focused_tile_id)

    def restore(self, data: Dict[str, Any]) -> None:
        """Replace the current layout with a saved session.

        Restored tiles start sleeping; the layout pass that follows wakes the
        ones that are large enough or focused. Current tiles missing from the
        session are closed.

        Raises:
            SessionFormatError: if the session data is malformed
        """
        if not isinstance(data, dict) or "layout" not in data:
            raise SessionFormatError("Session has no layout")

        layout = layout_from_dict(data["layout"])
        records = {record["id"]: record for record in tiles_from_session(data)}

        with self._holding_layout():
            keep = set(get_all_tile_ids(layout))
            for tile_id in list(self.lifecycle.tiles):
                if tile_id not in keep:
                    self._schedule_close(tile_id)

            self.focus.clear()
            self.root = layout

            for tile_id in get_all_tile_ids(layout):
                record = records.get(tile_id)
                if record is None:
                    logger.warning(f"Session has no record for tile {tile_id[:8]}, using defaults")
                    record = tile_record(tile_id, self.config.default_url, "", False)
                if self.lifecycle.get_tile(tile_id) is not None:
                    # Already open under the same id: keep its view
                    self.lifecycle.update_tile(tile_id, url=record["url"], title=record["title"])
                    self.lifecycle.set_muted(tile_id, record["isMuted"])
                    continue
                self.lifecycle.restore_tile(
                    tile_id, record["url"], record["title"], record["isMuted"]
                )

            focused_id = data.get("focusedTileId")
            if not focused_id or not self.focus.focus(focused_id):
                self.focus.focus(get_all_tile_ids(layout)[0])

        logger.info(f"Restored session with {count_tiles(layout)} tiles")
        self.update_layout()

    async def wait_idle(self) -> None:
        """Wait for pending teardowns and lifecycle transitions."""
        while self._closing:
            await asyncio.gather(*list(self._closing))
        await self.lifecycle.wait_idle()

    # Internals

    @contextmanager
    def _holding_layout(self):
        """Suppress focus-triggered layout passes while the tree is edited."""
        self._layout_hold += 1
        try:
            yield
        finally:
            self._layout_hold -= 1

    def _commit_layout(self, root: LayoutNode) -> None:
        self.root = root
        self.update_layout()
        self._session_changed("layout")

    def _schedule_close(self, tile_id: str) -> None:
        task = asyncio.get_running_loop().create_task(self.lifecycle.close_tile(tile_id))
        self._closing.add(task)
        task.add_done_callback(self._closing.discard)

    def _publish_overlay(self) -> None:
        if self.root is not None:
            pub.sendMessage(topics.OVERLAY_UPDATED, payload=self.overlay_state())

    def _session_changed(self, reason: str) -> None:
        pub.sendMessage(topics.SESSION_CHANGED, reason=reason)

    def debug_event_logger(self, topic=pub.AUTO_TOPIC, **kwargs):
        """Log all events published on the event bus."""
        topic_name = topic.getName()
        data_str = ", ".join(f"{k}={v}" for k, v in kwargs.items() if k != "topic")
        logger.debug(f"EVENT: {topic_name} | {data_str}")

    # Command event handlers

    def _on_split(self, direction):
        """Handle CMD_SPLIT command."""
        self.split(direction)

    def _on_close_tile(self):
        """Handle CMD_CLOSE_TILE command."""
        self.close_tile()

    def _on_resize_focused(self, delta):
        """Handle CMD_RESIZE_FOCUSED command."""
        self.resize_focused(delta)

    def _on_focus_changed(self, tile_id):
        """Run a layout pass when focus moves outside a structural edit."""
        if self._layout_hold == 0:
            self.update_layout()
