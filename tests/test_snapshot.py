"""
Unit tests for placeholder rendering (requires pycairo).
"""

import pytest

cairo = pytest.importorskip("cairo")

from tiler.config import TilerConfig  # noqa: E402
from tiler.layout.geometry import TileBounds  # noqa: E402
from tiler.lifecycle_manager import TileLifecycleManager  # noqa: E402
from tiler.protocol import Area, SnapshotCaptureError  # noqa: E402
from tiler.snapshot import _fit_title, render_placeholder  # noqa: E402

PNG_SIGNATURE = b"\x89PNG\r\n\x1a\n"


@pytest.mark.unit
class TestRenderPlaceholder:
    """Test title card rendering."""

    def test_renders_png(self):
        image = render_placeholder("Example Domain", 160, 120, TilerConfig())

        assert image.startswith(PNG_SIGNATURE)

    def test_zero_size_is_clamped(self):
        image = render_placeholder("Example", 0, 0, TilerConfig())

        assert image.startswith(PNG_SIGNATURE)

    def test_long_title_is_truncated(self):
        surface = cairo.ImageSurface(cairo.FORMAT_ARGB32, 10, 10)
        ctx = cairo.Context(surface)
        ctx.set_font_size(14)

        text = _fit_title(ctx, "A very long page title " * 10, 100)

        assert text.endswith("...")
        assert len(text) < 230

    def test_short_title_unchanged(self):
        surface = cairo.ImageSurface(cairo.FORMAT_ARGB32, 10, 10)
        ctx = cairo.Context(surface)
        ctx.set_font_size(14)

        assert _fit_title(ctx, "Hi", 500) == "Hi"

    @pytest.mark.asyncio
    async def test_failed_capture_uses_rendered_placeholder(self, provider):
        config = TilerConfig(snapshot_timeout=0.05, render_placeholders=True)
        provider.capture_error = SnapshotCaptureError("no frame")
        manager = TileLifecycleManager(provider, config)
        await manager.open_tile("t1")

        manager.apply_layout([TileBounds("t1", Area(0, 0, 120, 90))], None)
        await manager.wait_idle()

        retained = manager.get_retained("t1")
        assert retained.is_placeholder
        assert retained.snapshot.startswith(PNG_SIGNATURE)
