"""
tiler

A binary space partition tiling layout engine for multi-pane content viewers.

This package provides:
- An immutable layout tree with split, remove, resize and swap operations
- Bounds calculation and directional neighbor search
- A lifecycle manager that puts small unfocused tiles to sleep
- Focus tracking with directional focus, swap and resize
- Session (de)serialization

Example usage (tile transitions run as asyncio tasks, so the manager is
driven from inside an event loop):
    import asyncio
    from tiler import TileManager, HeadlessViewProvider, SplitDirection

    async def main():
        manager = TileManager(HeadlessViewProvider())
        manager.initialize()
        manager.split(SplitDirection.VERTICAL)
        await manager.wait_idle()
        return manager.overlay_state()

    asyncio.run(main())

Or inspect a saved session:
    python -m tiler inspect session.json
"""

__version__ = "0.1.0"

from .protocol import (
    Area,
    Direction,
    ContentViewProvider,
    ContentViewError,
    ContentViewCreationError,
    SnapshotCaptureError,
    HeadlessViewProvider,
)

from .layout import (
    EMPTY,
    LayoutNode,
    LeafNode,
    SplitNode,
    SplitDirection,
    TileBounds,
    calculate_bounds,
    find_adjacent_tile,
)

from .config import TilerConfig
from .lifecycle_manager import TileLifecycleManager, Tile, TileState, SleepingTile
from .focus_manager import FocusManager
from .tile_manager import TileManager
from .persistence import SessionFormatError, save_session, load_session

__all__ = [
    # Protocol
    "Area",
    "Direction",
    "ContentViewProvider",
    "ContentViewError",
    "ContentViewCreationError",
    "SnapshotCaptureError",
    "HeadlessViewProvider",
    # Layout
    "EMPTY",
    "LayoutNode",
    "LeafNode",
    "SplitNode",
    "SplitDirection",
    "TileBounds",
    "calculate_bounds",
    "find_adjacent_tile",
    # Engine
    "TilerConfig",
    "TileLifecycleManager",
    "Tile",
    "TileState",
    "SleepingTile",
    "FocusManager",
    "TileManager",
    # Persistence
    "SessionFormatError",
    "save_session",
    "load_session",
]
