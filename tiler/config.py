"""
Engine Configuration

Thresholds and defaults for the layout engine, plus the colors used when
rendering placeholders for sleeping tiles.
"""

from __future__ import annotations
from dataclasses import dataclass
from typing import Tuple


Color = Tuple[int, int, int, int]


def parse_color(color: str | Color) -> Color:
    """Placeholder colors as 0-255 RGBA: "#RRGGBB", "#RRGGBBAA" or a 4-tuple."""
    if isinstance(color, tuple):
        if len(color) != 4 or not all(0 <= c <= 255 for c in color):
            raise ValueError(f"Color tuple must be four 0-255 values, got {color!r}")
        return color
    if not isinstance(color, str):
        raise ValueError(f"Color must be a hex string or RGBA tuple, got {type(color).__name__}")

    digits = color[1:] if color.startswith("#") else color
    if len(digits) not in (6, 8):
        raise ValueError(f"Color must be #RRGGBB or #RRGGBBAA, got {color!r}")
    try:
        channels = [int(digits[i:i + 2], 16) for i in range(0, len(digits), 2)]
    except ValueError:
        raise ValueError(f"Color {color!r} is not hexadecimal") from None
    if len(channels) == 3:
        channels.append(0xFF)
    return tuple(channels)


@dataclass
class TilerConfig:
    """Layout engine configuration."""

    # New tiles
    default_url: str = "https://www.google.com"
    default_title: str = "New Tab"
    default_split_ratio: float = 0.5

    # Tiles smaller than this (either axis) are put to sleep unless focused
    min_tile_width: int = 200
    min_tile_height: int = 150

    # Keyboard resize step as a fraction of the split
    resize_step: float = 0.05

    # Slack in pixels for directional neighbor search
    adjacency_tolerance: int = 5

    # Seconds to wait for a snapshot before falling back to a placeholder
    snapshot_timeout: float = 2.0

    # Render title placeholders with cairo when no snapshot is available
    render_placeholders: bool = False
    placeholder_background_color: str | Color = "#252526"
    placeholder_text_color: str | Color = "#cccccc"
    placeholder_font_size: float = 14.0

    def __post_init__(self):
        """Parse color strings into tuples and validate thresholds."""
        self.placeholder_background_color = parse_color(
            self.placeholder_background_color
        )
        self.placeholder_text_color = parse_color(self.placeholder_text_color)

        if self.min_tile_width < 0 or self.min_tile_height < 0:
            raise ValueError("Tile size thresholds must not be negative")
        if self.snapshot_timeout <= 0:
            raise ValueError("snapshot_timeout must be positive")

    def is_too_small(self, width: float, height: float) -> bool:
        """Whether a tile of this size should sleep when unfocused."""
        return width < self.min_tile_width or height < self.min_tile_height
