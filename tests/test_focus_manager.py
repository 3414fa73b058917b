"""
Unit tests for focus tracking and directional commands.
"""

import pytest
from pubsub import pub

from tiler import topics
from tiler.focus_manager import FocusManager
from tiler.layout.bsp import LeafNode, SplitDirection, SplitNode, remove_node, get_all_tile_ids
from tiler.layout.geometry import TileBounds
from tiler.lifecycle_manager import TileLifecycleManager, TileState
from tiler.protocol import Area, Direction


class LayoutHolder:
    """Stands in for the tile manager's tree reference."""

    def __init__(self, root, area):
        self.root = root
        self.area = area
        self.commits = 0

    def commit(self, root):
        self.root = root
        self.commits += 1


def make_grid():
    """2x2 grid: (A / B) | (C / D)."""
    left = SplitNode(
        "left", SplitDirection.HORIZONTAL, 0.5, LeafNode("la", "A"), LeafNode("lb", "B")
    )
    right = SplitNode(
        "right", SplitDirection.HORIZONTAL, 0.5, LeafNode("lc", "C"), LeafNode("ld", "D")
    )
    return SplitNode("root", SplitDirection.VERTICAL, 0.5, left, right)


@pytest.fixture
def holder(standard_area):
    return LayoutHolder(make_grid(), standard_area)


@pytest.fixture
def lifecycle(provider, config):
    return TileLifecycleManager(provider, config)


@pytest.fixture
def focus(lifecycle, holder):
    return FocusManager(
        lifecycle=lifecycle,
        get_layout_fn=lambda: holder.root,
        commit_layout_fn=holder.commit,
        get_area_fn=lambda: holder.area,
    )


@pytest.mark.unit
class TestFocusTracking:
    """Test the focused tile invariant."""

    def test_defaults_to_first_tile(self, focus):
        assert focus.focused_tile_id == "A"

    def test_no_focus_without_layout(self, focus, holder):
        holder.root = None

        assert focus.focused_tile_id is None

    def test_focus_known_tile(self, focus):
        assert focus.focus("C")
        assert focus.focused_tile_id == "C"

    def test_focus_unknown_tile(self, focus):
        focus.focus("B")

        assert not focus.focus("missing")
        assert focus.focused_tile_id == "B"

    def test_focus_publishes_event(self, focus):
        received = []

        def on_focus_changed(tile_id):
            received.append(tile_id)

        pub.subscribe(on_focus_changed, topics.FOCUS_CHANGED)
        focus.focus("D")

        assert received == ["D"]

    def test_removed_tile_reassigns_focus(self, focus, holder):
        focus.focus("C")
        holder.root = remove_node(holder.root, "C")

        assert focus.on_tile_removed("C") == "A"

    def test_removing_other_tile_keeps_focus(self, focus, holder):
        focus.focus("D")
        holder.root = remove_node(holder.root, "A")

        assert focus.on_tile_removed("A") == "D"

    def test_stale_focus_repaired_on_read(self, focus, holder):
        focus.focus("B")
        holder.root = remove_node(holder.root, "B")

        assert focus.focused_tile_id == "A"

    def test_stale_focus_read_has_no_side_effects(self, focus, holder, lifecycle):
        """Reading a stale focus works without an event loop."""
        received = []

        def on_focus_changed(tile_id):
            received.append(tile_id)

        lifecycle.restore_tile("A", "https://example.org")
        focus.focus("B")
        pub.subscribe(on_focus_changed, topics.FOCUS_CHANGED)
        holder.root = remove_node(holder.root, "B")

        assert focus.focused_tile_id == "A"
        assert received == []
        assert not lifecycle.is_transitioning("A")

    @pytest.mark.asyncio
    async def test_repair_announces_and_wakes(self, focus, holder, lifecycle):
        received = []

        def on_focus_changed(tile_id):
            received.append(tile_id)

        lifecycle.restore_tile("A", "https://example.org")
        focus.focus("B")
        pub.subscribe(on_focus_changed, topics.FOCUS_CHANGED)
        holder.root = remove_node(holder.root, "B")

        assert focus.repair() == "A"
        assert focus.repair() == "A"
        await lifecycle.wait_idle()

        assert received == ["A"]
        assert lifecycle.get_tile("A").state == TileState.LIVE

    def test_repair_without_layout(self, focus, holder):
        holder.root = None

        assert focus.repair() is None

    def test_clear(self, focus):
        focus.focus("C")
        focus.clear()

        assert focus.focused_tile_id == "A"

    @pytest.mark.asyncio
    async def test_focus_wakes_sleeping_tile(self, focus, lifecycle):
        lifecycle.restore_tile("C", "https://example.org")
        lifecycle.apply_layout([TileBounds("C", Area(0, 0, 100, 100))], None)

        focus.focus("C")
        await lifecycle.wait_idle()

        assert lifecycle.get_tile("C").state == TileState.LIVE


@pytest.mark.unit
class TestDirectionalFocus:
    """Test moving focus between neighbors."""

    def test_focus_direction(self, focus):
        focus.focus("A")

        assert focus.focus_direction(Direction.RIGHT)
        assert focus.focused_tile_id == "C"
        assert focus.focus_direction(Direction.DOWN)
        assert focus.focused_tile_id == "D"
        assert focus.focus_direction(Direction.LEFT)
        assert focus.focused_tile_id == "B"

    def test_focus_direction_at_edge(self, focus):
        focus.focus("A")

        assert not focus.focus_direction(Direction.UP)
        assert focus.focused_tile_id == "A"

    def test_focus_direction_accepts_string(self, focus):
        focus.focus("A")

        assert focus.focus_direction("right")
        assert focus.focused_tile_id == "C"

    def test_focus_direction_command(self, focus):
        focus.focus("A")

        pub.sendMessage(topics.CMD_FOCUS_DIRECTION, direction=Direction.DOWN)

        assert focus.focused_tile_id == "B"

    def test_focus_tile_command(self, focus):
        pub.sendMessage(topics.CMD_FOCUS_TILE, tile_id="D")

        assert focus.focused_tile_id == "D"


@pytest.mark.unit
class TestSwapAndResize:
    """Test directional structural commands."""

    def test_swap_direction(self, focus, holder):
        focus.focus("A")

        assert focus.swap_direction(Direction.RIGHT)

        assert get_all_tile_ids(holder.root) == ["C", "B", "A", "D"]
        assert focus.focused_tile_id == "A"
        assert holder.commits == 1

    def test_swap_without_neighbor(self, focus, holder):
        focus.focus("A")

        assert not focus.swap_direction(Direction.LEFT)
        assert holder.commits == 0

    def test_swap_command(self, focus, holder):
        focus.focus("D")

        pub.sendMessage(topics.CMD_SWAP_DIRECTION, direction=Direction.UP)

        assert get_all_tile_ids(holder.root) == ["A", "B", "D", "C"]

    def test_resize_in_direction(self, focus, holder):
        focus.focus("A")

        assert focus.resize_in_direction(Direction.RIGHT)

        assert holder.root.ratio == pytest.approx(0.55)

    def test_resize_with_explicit_delta(self, focus, holder):
        focus.focus("B")

        assert focus.resize_in_direction(Direction.UP, 0.2)

        assert holder.root.first.ratio == pytest.approx(0.3)

    def test_resize_without_matching_split(self, focus, holder):
        holder.root = SplitNode(
            "s", SplitDirection.VERTICAL, 0.5, LeafNode("la", "A"), LeafNode("lb", "B")
        )

        assert not focus.resize_in_direction(Direction.DOWN)
        assert holder.commits == 0

    def test_resize_command(self, focus, holder):
        focus.focus("C")

        pub.sendMessage(topics.CMD_RESIZE_DIRECTION, direction=Direction.LEFT, delta=0.1)

        assert holder.root.ratio == pytest.approx(0.4)
