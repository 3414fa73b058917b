"""
Tiler Collaborator Contracts

Shared value types and the interfaces the layout engine expects from the
outside world: the content-view provider that materializes panes, and the
error taxonomy those collaborators report through.
"""

from __future__ import annotations
from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Dict, List, Optional
import itertools


class Direction(Enum):
    """Cardinal direction for focus, swap and resize commands."""

    LEFT = "left"
    RIGHT = "right"
    UP = "up"
    DOWN = "down"

    @property
    def is_horizontal(self) -> bool:
        """Whether movement happens along the x-axis."""
        return self in (Direction.LEFT, Direction.RIGHT)


@dataclass
class Area:
    """Area with position and dimensions."""

    x: int = 0
    y: int = 0
    width: int = 0
    height: int = 0

    @property
    def center_x(self) -> float:
        return self.x + self.width / 2

    @property
    def center_y(self) -> float:
        return self.y + self.height / 2

    def to_dict(self) -> Dict[str, int]:
        return {"x": self.x, "y": self.y, "width": self.width, "height": self.height}


# Error taxonomy


class ContentViewError(Exception):
    """Base class for failures reported by a content-view provider."""


class ContentViewCreationError(ContentViewError):
    """A content view could not be materialized for a tile."""


class SnapshotCaptureError(ContentViewError):
    """A snapshot of a live content view could not be captured."""


class ContentViewProvider(ABC):
    """Materializes and tears down content panes.

    All calls are coroutines; the layout engine awaits them from lifecycle
    transitions only.
    """

    @abstractmethod
    async def create(self, url: str) -> Any:
        """Create a content view loading ``url`` and return its handle.

        Raises:
            ContentViewCreationError: if the view cannot be created
        """

    @abstractmethod
    async def destroy(self, handle: Any) -> None:
        """Destroy a previously created view."""

    @abstractmethod
    async def set_bounds(self, handle: Any, area: Area) -> None:
        """Position a view inside the host window."""

    @abstractmethod
    async def set_muted(self, handle: Any, muted: bool) -> None:
        """Mute or unmute a view's audio."""

    @abstractmethod
    async def capture(self, handle: Any) -> Optional[bytes]:
        """Capture an image of the view, or None if nothing was captured."""


@dataclass
class HeadlessView:
    """In-memory stand-in for a materialized content view."""

    handle: int
    url: str
    bounds: Optional[Area] = None
    muted: bool = False


@dataclass
class HeadlessViewProvider(ContentViewProvider):
    """Provider that keeps views in memory without rendering anything.

    Used by the session inspector and handy for embedding the engine in
    environments that have no real content backend.
    """

    views: Dict[int, HeadlessView] = field(default_factory=dict)
    _ids: Any = field(default_factory=lambda: itertools.count(1), repr=False)

    async def create(self, url: str) -> int:
        handle = next(self._ids)
        self.views[handle] = HeadlessView(handle=handle, url=url)
        return handle

    async def destroy(self, handle: int) -> None:
        self.views.pop(handle, None)

    async def set_bounds(self, handle: int, area: Area) -> None:
        if handle in self.views:
            self.views[handle].bounds = area

    async def set_muted(self, handle: int, muted: bool) -> None:
        if handle in self.views:
            self.views[handle].muted = muted

    async def capture(self, handle: int) -> Optional[bytes]:
        return None

    def live_urls(self) -> List[str]:
        """URLs of all currently materialized views."""
        return [view.url for view in self.views.values()]
