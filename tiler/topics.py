"""
Event Topics for the tiler Layout Engine

All pub/sub topics are defined here for easy discovery and documentation.
Topic naming convention: <category>.<action>

Every topic carries a fixed set of keyword arguments (listed below each
name); pypubsub rejects listeners and messages that disagree with them.
"""

# Tile lifecycle events
TILE_CREATED = "tile.created"
"""Published when a tile enters the layout. Params: tile_id"""

TILE_CLOSED = "tile.closed"
"""Published when a tile leaves the layout. Params: tile_id"""

TILE_STATE_CHANGED = "tile.state_changed"
"""Published when a tile becomes live or sleeping. Params: tile_id, state"""

TILE_ERROR = "tile.error"
"""Published when a content view operation fails for a tile. Params: tile_id, error"""

# Focus state notifications
FOCUS_CHANGED = "focus.changed"
"""Published when the focused tile changes. Params: tile_id (or None)"""

# Layout notifications
LAYOUT_CHANGED = "layout.changed"
"""Published after every layout pass. Params: tile_bounds"""

OVERLAY_UPDATED = "overlay.updated"
"""Published after every layout pass for indicator layers. Params: payload"""

SESSION_CHANGED = "session.changed"
"""Published after any state-affecting operation so it can be persisted. Params: reason"""

# Command events (imperative - tell components to do something)
# These are triggered by user input (keybinds) or IPC commands

CMD_SPLIT = "cmd.split"
"""Command: Split the focused tile. Params: direction (SplitDirection)"""

CMD_CLOSE_TILE = "cmd.close_tile"
"""Command: Close the focused tile."""

CMD_FOCUS_TILE = "cmd.focus_tile"
"""Command: Focus a specific tile. Params: tile_id"""

CMD_FOCUS_DIRECTION = "cmd.focus_direction"
"""Command: Move focus to the neighbor in a direction. Params: direction"""

CMD_SWAP_DIRECTION = "cmd.swap_direction"
"""Command: Swap the focused tile with its neighbor. Params: direction"""

CMD_RESIZE_DIRECTION = "cmd.resize_direction"
"""Command: Grow the focused tile towards a direction. Params: direction, delta (optional)"""

CMD_RESIZE_FOCUSED = "cmd.resize_focused"
"""Command: Grow or shrink the focused tile within its parent split. Params: delta"""
