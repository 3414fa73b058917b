"""
Tests for the session inspector command line.
"""

import json

import pytest
from typer.testing import CliRunner

from tiler.__main__ import app
from tiler.persistence import save_session


runner = CliRunner()


def write_session(path, tile_b_id="tile-b"):
    save_session(
        path,
        {
            "layout": {
                "type": "split",
                "id": "split-1",
                "direction": "vertical",
                "ratio": 0.9,
                "first": {"type": "leaf", "id": "leaf-1", "tileId": "tile-a"},
                "second": {"type": "leaf", "id": "leaf-2", "tileId": tile_b_id},
            },
            "tiles": [
                {"id": "tile-a", "url": "https://a.example", "title": "A", "isMuted": False},
                {"id": "tile-b", "url": "https://b.example", "title": "B", "isMuted": True},
            ],
            "focusedTileId": "tile-b",
        },
    )


@pytest.mark.unit
class TestInspect:
    """Test `python -m tiler inspect`."""

    def test_inspect_prints_overlay(self, tmp_path):
        path = tmp_path / "session.json"
        write_session(path)

        result = runner.invoke(app, ["inspect", str(path), "--width", "1000", "--height", "600"])

        assert result.exit_code == 0
        overlay = json.loads(result.stdout)
        assert overlay["focusedTileId"] == "tile-b"
        first, second = overlay["tiles"]
        assert first["windowBounds"] == {"x": 0, "y": 0, "width": 900, "height": 600}
        assert first["state"] == "live"
        # Focused tiles stay live below the size threshold
        assert second["windowBounds"]["width"] == 100
        assert second["state"] == "live"
        assert second["isMuted"]

    def test_inspect_verbose_flag(self, tmp_path):
        path = tmp_path / "session.json"
        write_session(path)

        result = runner.invoke(app, ["-v", "inspect", str(path)])

        assert result.exit_code == 0

    def test_inspect_missing_file(self, tmp_path):
        result = runner.invoke(app, ["inspect", str(tmp_path / "missing.json")])

        assert result.exit_code == 1
        assert "no session" in result.output

    def test_inspect_malformed_session(self, tmp_path):
        path = tmp_path / "session.json"
        path.write_text(json.dumps({"layout": {"type": "bogus"}}))

        result = runner.invoke(app, ["inspect", str(path)])

        assert result.exit_code == 1
        assert "error:" in result.output

    def test_inspect_non_string_tile_id(self, tmp_path):
        """Bad ids are reported, not raised as a traceback."""
        path = tmp_path / "session.json"
        write_session(path, tile_b_id=5)

        result = runner.invoke(app, ["inspect", str(path)])

        assert result.exit_code == 1
        assert "error:" in result.output
        assert result.exception is None or isinstance(result.exception, SystemExit)

    def test_rejects_non_positive_size(self, tmp_path):
        path = tmp_path / "session.json"
        write_session(path)

        result = runner.invoke(app, ["inspect", str(path), "--width", "0"])

        assert result.exit_code != 0

    def test_no_command_shows_usage(self):
        result = runner.invoke(app, [])

        assert "Usage" in result.output
