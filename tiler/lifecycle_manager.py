"""
Tile Lifecycle Manager

Decides which tiles keep a materialized content view (live) and which are
torn down to a retained snapshot (sleeping), and runs those transitions
against the content-view provider.
"""

from __future__ import annotations
import asyncio
import logging
from dataclasses import dataclass
from enum import Enum, auto
from typing import Any, Awaitable, Dict, List, Optional, Set, Tuple

from pubsub import pub

from . import topics
from .config import TilerConfig
from .layout.geometry import TileBounds
from .protocol import (
    Area,
    ContentViewCreationError,
    ContentViewError,
    ContentViewProvider,
)

logger = logging.getLogger(__name__)


class TileState(Enum):
    """Whether a tile's content view exists."""

    LIVE = "live"
    SLEEPING = "sleeping"


class TransitionState(Enum):
    """Per-tile transition marker; at most one transition runs per tile."""

    IDLE = auto()
    SLEEP_IN_PROGRESS = auto()
    WAKE_IN_PROGRESS = auto()


@dataclass
class Tile:
    """A content pane placed in the layout."""

    id: str
    url: str
    title: str = "New Tab"
    is_muted: bool = False
    is_audio_playing: bool = False
    state: TileState = TileState.LIVE
    bounds: Optional[Area] = None
    view: Any = None
    error: Optional[str] = None
    favicon_url: Optional[str] = None
    is_loading: bool = False
    transition: TransitionState = TransitionState.IDLE
    pending_wake: bool = False
    pending_sleep: bool = False

    @property
    def in_transition(self) -> bool:
        return self.transition != TransitionState.IDLE


@dataclass
class SleepingTile:
    """What is kept of a tile while its content view is torn down."""

    id: str
    url: str
    title: str
    is_muted: bool
    snapshot: Optional[bytes] = None
    is_placeholder: bool = False


def _short(tile_id: str) -> str:
    return tile_id[:8] if tile_id else "unknown"


class TileLifecycleManager:
    """Owns tile records and their live/sleeping transitions.

    Layout passes are synchronous: apply_layout() records bounds and schedules
    transitions as asyncio tasks. Each tile has its own TransitionState; a
    wake requested while a sleep is running (or a sleep decided during a
    wake) is queued and started as soon as the running transition finishes.

    Responsibilities:
    - Sleep unfocused tiles smaller than the configured minimum size
    - Wake tiles that grow back above it or receive focus
    - Keep live views positioned and muted as requested
    - Surface provider failures per tile without touching other tiles
    """

    def __init__(
        self,
        provider: ContentViewProvider,
        config: Optional[TilerConfig] = None,
    ):
        """Initialize lifecycle manager.

        Args:
            provider: Content-view provider that creates and destroys views
            config: Engine configuration (thresholds, snapshot timeout)
        """
        self.provider = provider
        self.config = config or TilerConfig()

        self.tiles: Dict[str, Tile] = {}
        self.sleeping: Dict[str, SleepingTile] = {}

        self._transitions: Dict[str, asyncio.Task] = {}
        self._background: Set[asyncio.Task] = set()

    # Registration

    def open_tile(
        self,
        tile_id: str,
        url: Optional[str] = None,
        title: Optional[str] = None,
        muted: bool = False,
    ) -> asyncio.Task:
        """Register a new live tile and materialize its view.

        Returns:
            The task creating the view
        """
        tile = Tile(
            id=tile_id,
            url=url or self.config.default_url,
            title=title or self.config.default_title,
            is_muted=muted,
            state=TileState.LIVE,
        )
        self.tiles[tile_id] = tile
        return self._start(tile, TransitionState.WAKE_IN_PROGRESS)

    def restore_tile(
        self,
        tile_id: str,
        url: str,
        title: Optional[str] = None,
        muted: bool = False,
    ) -> Tile:
        """Register a tile from a saved session as sleeping.

        The next layout pass decides whether it wakes.
        """
        title = title or self.config.default_title
        tile = Tile(
            id=tile_id,
            url=url,
            title=title,
            is_muted=muted,
            state=TileState.SLEEPING,
        )
        self.tiles[tile_id] = tile
        self.sleeping[tile_id] = SleepingTile(
            id=tile_id, url=url, title=title, is_muted=muted, is_placeholder=True
        )
        return tile

    async def close_tile(self, tile_id: str) -> bool:
        """Tear down a tile once any in-flight transition has finished."""
        tile = self.tiles.get(tile_id)
        if tile is None:
            return False

        tile.pending_wake = False
        tile.pending_sleep = False
        while tile_id in self._transitions:
            task = self._transitions[tile_id]
            await asyncio.wait([task])
            if not task.cancelled() and task.exception() is not None:
                logger.error(
                    f"[Lifecycle:{_short(tile_id)}] Transition failed before close: "
                    f"{task.exception()!r}"
                )

        del self.tiles[tile_id]
        self.sleeping.pop(tile_id, None)

        if tile.view is not None:
            view, tile.view = tile.view, None
            try:
                await self.provider.destroy(view)
            except ContentViewError as e:
                self._report_error(tile, e)

        logger.info(f"[Lifecycle:{_short(tile_id)}] Closed")
        return True

    # Queries

    def get_tile(self, tile_id: str) -> Optional[Tile]:
        return self.tiles.get(tile_id)

    def get_retained(self, tile_id: str) -> Optional[SleepingTile]:
        """Retained metadata for a sleeping tile."""
        return self.sleeping.get(tile_id)

    def is_transitioning(self, tile_id: str) -> bool:
        return tile_id in self._transitions

    def live_tile_ids(self) -> List[str]:
        return [t.id for t in self.tiles.values() if t.state == TileState.LIVE]

    def sleeping_tile_ids(self) -> List[str]:
        return [t.id for t in self.tiles.values() if t.state == TileState.SLEEPING]

    # Layout pass

    def apply_layout(
        self, tile_bounds: List[TileBounds], focused_tile_id: Optional[str]
    ) -> None:
        """Record new bounds and schedule the transitions they imply.

        A tile sleeps when it is smaller than the minimum size on either axis
        and is not focused; it wakes when it is large enough again or focused.
        Tiles with a transition in flight keep it; the opposite transition
        is queued and started when it finishes, and a later pass can cancel
        the queued one again.
        """
        for tile_id, bounds in tile_bounds:
            tile = self.tiles.get(tile_id)
            if tile is None:
                logger.debug(f"[Lifecycle:{_short(tile_id)}] No tile record, skipping")
                continue

            tile.bounds = bounds
            wants_live = tile_id == focused_tile_id or not self.config.is_too_small(
                bounds.width, bounds.height
            )

            if tile.transition == TransitionState.SLEEP_IN_PROGRESS:
                tile.pending_wake = wants_live
                continue
            if tile.transition == TransitionState.WAKE_IN_PROGRESS:
                # The wake applies tile.bounds when it completes
                tile.pending_sleep = not wants_live
                continue

            if tile.state == TileState.LIVE:
                if not wants_live:
                    self._start(tile, TransitionState.SLEEP_IN_PROGRESS)
                elif tile.view is not None:
                    self._spawn(tile, self.provider.set_bounds(tile.view, bounds))
            elif wants_live and tile.error is None:
                self._start(tile, TransitionState.WAKE_IN_PROGRESS)

    def request_wake(self, tile_id: str) -> Optional[asyncio.Task]:
        """Wake a sleeping tile regardless of its size.

        Returns:
            The task the wake will complete with, or None if the tile is
            unknown or already live
        """
        tile = self.tiles.get(tile_id)
        if tile is None:
            return None

        if tile.transition == TransitionState.SLEEP_IN_PROGRESS:
            logger.debug(f"[Lifecycle:{_short(tile_id)}] Wake queued behind sleep")
            tile.pending_wake = True
            return self._transitions.get(tile_id)
        if tile.transition == TransitionState.WAKE_IN_PROGRESS:
            tile.pending_sleep = False
            return self._transitions.get(tile_id)
        if tile.state == TileState.LIVE:
            return None

        return self._start(tile, TransitionState.WAKE_IN_PROGRESS)

    async def wait_idle(self) -> None:
        """Wait until no transition or view update is in flight."""
        while self._transitions or self._background:
            pending = list(self._transitions.values()) + list(self._background)
            await asyncio.gather(*pending)

    # Tile metadata from the content collaborator

    def set_muted(self, tile_id: str, muted: bool) -> bool:
        tile = self.tiles.get(tile_id)
        if tile is None:
            return False

        tile.is_muted = muted
        retained = self.sleeping.get(tile_id)
        if retained is not None:
            retained.is_muted = muted
        if tile.view is not None:
            self._spawn(tile, self.provider.set_muted(tile.view, muted))
        return True

    def set_audio_playing(self, tile_id: str, playing: bool) -> bool:
        tile = self.tiles.get(tile_id)
        if tile is None:
            return False
        tile.is_audio_playing = playing
        return True

    def update_tile(
        self,
        tile_id: str,
        url: Optional[str] = None,
        title: Optional[str] = None,
        favicon_url: Optional[str] = None,
        is_loading: Optional[bool] = None,
    ) -> bool:
        """Record navigation state reported for a tile."""
        tile = self.tiles.get(tile_id)
        if tile is None:
            return False

        retained = self.sleeping.get(tile_id)
        if url is not None:
            tile.url = url
            if retained is not None:
                retained.url = url
        if title is not None:
            tile.title = title
            if retained is not None:
                retained.title = title
        if favicon_url is not None:
            tile.favicon_url = favicon_url
        if is_loading is not None:
            tile.is_loading = is_loading
        return True

    # Transitions

    def _start(self, tile: Tile, transition: TransitionState) -> asyncio.Task:
        tile.transition = transition
        task = asyncio.get_running_loop().create_task(
            self._run_transition(tile, transition)
        )
        self._transitions[tile.id] = task
        return task

    async def _run_transition(self, tile: Tile, transition: TransitionState) -> None:
        try:
            if transition == TransitionState.SLEEP_IN_PROGRESS:
                await self._sleep(tile)
            else:
                await self._wake(tile)
        finally:
            tile.transition = TransitionState.IDLE
            self._transitions.pop(tile.id, None)

            pending_wake, pending_sleep = tile.pending_wake, tile.pending_sleep
            tile.pending_wake = tile.pending_sleep = False

            if tile.id in self.tiles:
                if pending_wake and tile.state == TileState.SLEEPING:
                    logger.debug(f"[Lifecycle:{_short(tile.id)}] Starting queued wake")
                    self._start(tile, TransitionState.WAKE_IN_PROGRESS)
                elif pending_sleep and tile.state == TileState.LIVE:
                    logger.debug(f"[Lifecycle:{_short(tile.id)}] Starting queued sleep")
                    self._start(tile, TransitionState.SLEEP_IN_PROGRESS)

    async def _sleep(self, tile: Tile) -> None:
        snapshot, is_placeholder = await self._capture(tile)

        try:
            await self.provider.destroy(tile.view)
        except ContentViewError as e:
            self._report_error(tile, e)
            return

        self.sleeping[tile.id] = SleepingTile(
            id=tile.id,
            url=tile.url,
            title=tile.title,
            is_muted=tile.is_muted,
            snapshot=snapshot,
            is_placeholder=is_placeholder,
        )
        tile.view = None
        self._set_state(tile, TileState.SLEEPING)

    async def _capture(self, tile: Tile) -> Tuple[Optional[bytes], bool]:
        """Capture a snapshot, falling back to a title placeholder."""
        snapshot = None
        try:
            snapshot = await asyncio.wait_for(
                self.provider.capture(tile.view), self.config.snapshot_timeout
            )
        except asyncio.TimeoutError:
            logger.warning(
                f"[Lifecycle:{_short(tile.id)}] Snapshot timed out after "
                f"{self.config.snapshot_timeout}s, using placeholder"
            )
        except Exception as e:
            logger.warning(
                f"[Lifecycle:{_short(tile.id)}] Snapshot failed ({e!r}), using placeholder"
            )

        if snapshot:
            return snapshot, False

        if self.config.render_placeholders and tile.bounds is not None:
            try:
                from .snapshot import render_placeholder

                image = render_placeholder(
                    tile.title, tile.bounds.width, tile.bounds.height, self.config
                )
                return image, True
            except Exception as e:
                logger.warning(
                    f"[Lifecycle:{_short(tile.id)}] Placeholder rendering failed ({e!r})"
                )

        return None, True

    async def _wake(self, tile: Tile) -> None:
        # Mute and navigation updates can land while create() is awaited
        try:
            view = await self.provider.create(tile.url)
        except ContentViewCreationError as e:
            if tile.id not in self.sleeping:
                self.sleeping[tile.id] = SleepingTile(
                    id=tile.id,
                    url=tile.url,
                    title=tile.title,
                    is_muted=tile.is_muted,
                    is_placeholder=True,
                )
            self._report_error(tile, e)
            self._set_state(tile, TileState.SLEEPING)
            return

        self.sleeping.pop(tile.id, None)
        tile.view = view
        tile.error = None
        self._set_state(tile, TileState.LIVE)

        try:
            if tile.is_muted:
                await self.provider.set_muted(view, True)
            if tile.bounds is not None:
                await self.provider.set_bounds(view, tile.bounds)
        except ContentViewError as e:
            self._report_error(tile, e)

    def _set_state(self, tile: Tile, state: TileState) -> None:
        old_state, tile.state = tile.state, state
        if old_state != state:
            logger.info(
                f"[Lifecycle:{_short(tile.id)}] {old_state.value} → {state.value}"
            )
        pub.sendMessage(topics.TILE_STATE_CHANGED, tile_id=tile.id, state=state)

    def _report_error(self, tile: Tile, error: Exception) -> None:
        tile.error = str(error) or type(error).__name__
        logger.error(f"[Lifecycle:{_short(tile.id)}] {type(error).__name__}: {tile.error}")
        pub.sendMessage(topics.TILE_ERROR, tile_id=tile.id, error=tile.error)

    # View updates outside transitions

    def _spawn(self, tile: Tile, call: Awaitable[None]) -> None:
        task = asyncio.get_running_loop().create_task(self._guarded(tile, call))
        self._background.add(task)
        task.add_done_callback(self._background.discard)

    async def _guarded(self, tile: Tile, call: Awaitable[None]) -> None:
        try:
            await call
        except ContentViewError as e:
            self._report_error(tile, e)
