"""
Placeholder Rendering

Draws a title card for sleeping tiles whose snapshot could not be captured.
Requires pycairo (the ``render`` extra); it is imported on first use.
"""

from __future__ import annotations
import io
from typing import Tuple

from .config import TilerConfig


def _set_cairo_color(ctx, color: Tuple[int, int, int, int]):
    """Set Cairo color from RGBA tuple (0-255 values)."""
    ctx.set_source_rgba(
        color[0] / 255.0, color[1] / 255.0, color[2] / 255.0, color[3] / 255.0
    )


def _fit_title(ctx, title: str, max_width: float) -> str:
    """Truncate a title with an ellipsis so it fits ``max_width``."""
    if ctx.text_extents(title).width <= max_width:
        return title

    ellipsis = "..."
    available = max_width - ctx.text_extents(ellipsis).width

    # Binary search for right length
    left, right = 0, len(title)
    while left < right:
        mid = (left + right + 1) // 2
        if ctx.text_extents(title[:mid]).width <= available:
            left = mid
        else:
            right = mid - 1

    return title[:left] + ellipsis


def render_placeholder(
    title: str, width: int, height: int, config: TilerConfig
) -> bytes:
    """
    Render a PNG showing only the tile's title, centered.

    Args:
        title: Page title to show
        width: Image width in pixels (at least 1)
        height: Image height in pixels (at least 1)
        config: Supplies colors and font size

    Returns:
        PNG-encoded image bytes
    """
    import cairo

    width = max(1, int(width))
    height = max(1, int(height))

    surface = cairo.ImageSurface(cairo.FORMAT_ARGB32, width, height)
    ctx = cairo.Context(surface)

    _set_cairo_color(ctx, config.placeholder_background_color)
    ctx.rectangle(0, 0, width, height)
    ctx.fill()

    ctx.select_font_face(
        "sans-serif", cairo.FONT_SLANT_NORMAL, cairo.FONT_WEIGHT_NORMAL
    )
    ctx.set_font_size(config.placeholder_font_size)
    _set_cairo_color(ctx, config.placeholder_text_color)

    text = _fit_title(ctx, title or config.default_title, width - 20)
    extents = ctx.text_extents(text)
    ctx.move_to((width - extents.width) / 2, height / 2 + extents.height / 2)
    ctx.show_text(text)

    surface.flush()
    buffer = io.BytesIO()
    surface.write_to_png(buffer)
    return buffer.getvalue()
