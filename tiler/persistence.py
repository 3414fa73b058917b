"""
Session Persistence

Converts layout trees and tile records to and from the plain-data session
shape, and stores sessions as JSON files. When to save is up to the caller.

Session shape:
    {
        "layout": {"type": "split", "id", "direction", "ratio", "first", "second"}
                | {"type": "leaf", "id", "tileId"},
        "tiles": [{"id", "url", "title", "isMuted"}, ...],
        "focusedTileId": str | None,
    }
"""

from __future__ import annotations
import json
import os
from pathlib import Path
from typing import Any, Dict, Iterable, List, Optional, Set

from .layout.bsp import LayoutNode, LeafNode, SplitDirection, SplitNode, clamp_ratio


class SessionFormatError(ValueError):
    """Persisted session data does not describe a valid layout."""


def layout_to_dict(node: LayoutNode) -> Dict[str, Any]:
    """Serialize a layout tree."""
    if isinstance(node, LeafNode):
        return {"type": "leaf", "id": node.id, "tileId": node.tile_id}
    return {
        "type": "split",
        "id": node.id,
        "direction": node.direction.value,
        "ratio": node.ratio,
        "first": layout_to_dict(node.first),
        "second": layout_to_dict(node.second),
    }


def layout_from_dict(data: Dict[str, Any]) -> LayoutNode:
    """
    Deserialize a layout tree.

    Ratios are clamped into range on the way in.

    Raises:
        SessionFormatError: if the data is malformed or repeats a tile id
    """
    return _node_from_dict(data, set())


def _require_str(data: Dict[str, Any], key: str) -> str:
    value = data[key]
    if not isinstance(value, str) or not value:
        raise SessionFormatError(f"Field {key!r} must be a non-empty string, got {value!r}")
    return value


def _node_from_dict(data: Any, seen: Set[str]) -> LayoutNode:
    if not isinstance(data, dict):
        raise SessionFormatError(f"Layout node must be an object, got {type(data).__name__}")

    node_type = data.get("type")
    try:
        if node_type == "leaf":
            tile_id = _require_str(data, "tileId")
            if tile_id in seen:
                raise SessionFormatError(f"Tile {tile_id} appears twice in layout")
            seen.add(tile_id)
            return LeafNode(id=_require_str(data, "id"), tile_id=tile_id)

        if node_type == "split":
            return SplitNode(
                id=_require_str(data, "id"),
                direction=SplitDirection(data["direction"]),
                ratio=clamp_ratio(float(data["ratio"])),
                first=_node_from_dict(data["first"], seen),
                second=_node_from_dict(data["second"], seen),
            )
    except KeyError as e:
        raise SessionFormatError(f"Layout node missing field {e}") from e
    except (TypeError, ValueError) as e:
        if isinstance(e, SessionFormatError):
            raise
        raise SessionFormatError(f"Invalid layout node: {e}") from e

    raise SessionFormatError(f"Unknown layout node type: {node_type!r}")


def tile_record(tile_id: str, url: str, title: str, is_muted: bool) -> Dict[str, Any]:
    """Build one persisted tile record."""
    return {"id": tile_id, "url": url, "title": title, "isMuted": is_muted}


def session_to_dict(
    layout: LayoutNode,
    tiles: Iterable[Dict[str, Any]],
    focused_tile_id: Optional[str],
) -> Dict[str, Any]:
    return {
        "layout": layout_to_dict(layout),
        "tiles": list(tiles),
        "focusedTileId": focused_tile_id,
    }


def tiles_from_session(data: Dict[str, Any]) -> List[Dict[str, Any]]:
    """
    Validate and normalize the tile records of a session.

    Missing ``title`` and ``isMuted`` fields are filled with defaults, as
    older sessions did not store them.
    """
    records = data.get("tiles", [])
    if not isinstance(records, list):
        raise SessionFormatError("Session tiles must be a list")

    tiles = []
    for record in records:
        if not isinstance(record, dict) or "id" not in record or "url" not in record:
            raise SessionFormatError(f"Invalid tile record: {record!r}")
        if not isinstance(record["id"], str) or not isinstance(record["url"], str):
            raise SessionFormatError(f"Tile record id and url must be strings: {record!r}")
        tiles.append(
            tile_record(
                record["id"],
                record["url"],
                record.get("title", ""),
                bool(record.get("isMuted", False)),
            )
        )
    return tiles


def save_session(path: str | Path, data: Dict[str, Any]) -> None:
    """Write a session to ``path`` as JSON, replacing it atomically."""
    path = Path(path)
    path.parent.mkdir(parents=True, exist_ok=True)
    tmp_path = path.with_name(path.name + ".tmp")
    tmp_path.write_text(json.dumps(data, indent=2), encoding="utf-8")
    os.replace(tmp_path, path)


def load_session(path: str | Path) -> Optional[Dict[str, Any]]:
    """
    Read a session written by save_session.

    Returns:
        The session data, or None if the file does not exist

    Raises:
        SessionFormatError: if the file is not valid session JSON
    """
    path = Path(path)
    if not path.exists():
        return None

    try:
        data = json.loads(path.read_text(encoding="utf-8"))
    except json.JSONDecodeError as e:
        raise SessionFormatError(f"Session file {path} is not valid JSON: {e}") from e

    if not isinstance(data, dict) or "layout" not in data:
        raise SessionFormatError(f"Session file {path} has no layout")
    return data
