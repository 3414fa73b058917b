"""
Shared pytest fixtures for tiler tests.
"""

import asyncio
import itertools

import pytest
from pubsub import pub

from tiler.config import TilerConfig
from tiler.protocol import Area, ContentViewCreationError, ContentViewError


def pytest_configure(config):
    config.addinivalue_line("markers", "unit: fast tests without a real content backend")


@pytest.fixture(autouse=True)
def reset_event_bus():
    """Drop every listener registered during a test."""
    yield
    pub.unsubAll()


class MockViewProvider:
    """Recording content-view provider with failure injection."""

    def __init__(self):
        self._ids = itertools.count(1)
        self.views = {}
        self.calls = []
        self.fail_create = set()
        self.fail_destroy = set()
        self.capture_result = b"png-bytes"
        self.capture_error = None
        self.capture_delay = 0.0
        self.destroy_delay = 0.0
        self.create_delay = 0.0

    async def create(self, url):
        self.calls.append(("create", url))
        if self.create_delay:
            await asyncio.sleep(self.create_delay)
        if url in self.fail_create:
            raise ContentViewCreationError(f"cannot load {url}")
        handle = next(self._ids)
        self.views[handle] = {"url": url, "bounds": None, "muted": False}
        return handle

    async def destroy(self, handle):
        self.calls.append(("destroy", handle))
        if self.destroy_delay:
            await asyncio.sleep(self.destroy_delay)
        if handle in self.fail_destroy:
            raise ContentViewError(f"cannot destroy {handle}")
        self.views.pop(handle, None)

    async def set_bounds(self, handle, area):
        self.calls.append(("set_bounds", handle))
        self.views[handle]["bounds"] = area

    async def set_muted(self, handle, muted):
        self.calls.append(("set_muted", handle, muted))
        self.views[handle]["muted"] = muted

    async def capture(self, handle):
        self.calls.append(("capture", handle))
        if self.capture_delay:
            await asyncio.sleep(self.capture_delay)
        if self.capture_error is not None:
            raise self.capture_error
        return self.capture_result

    def count(self, name):
        return sum(1 for call in self.calls if call[0] == name)


@pytest.fixture
def provider():
    """Fresh recording provider."""
    return MockViewProvider()


@pytest.fixture
def config():
    """Default config with a short snapshot timeout."""
    return TilerConfig(snapshot_timeout=0.05)


@pytest.fixture
def standard_area():
    """Standard 1920x1080 area for layout tests."""
    return Area(0, 0, 1920, 1080)


@pytest.fixture
def small_area():
    """Small 800x600 area for layout tests."""
    return Area(0, 0, 800, 600)


@pytest.fixture
def portrait_area():
    """Portrait 1080x1920 area for layout tests."""
    return Area(0, 0, 1080, 1920)
