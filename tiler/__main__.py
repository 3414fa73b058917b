"""
Main entry point for running tiler as a module.

Usage:
    python -m tiler [-v] inspect SESSION.json [--width W] [--height H]
"""

import asyncio
import json
import logging
from pathlib import Path
from typing import Annotated, Optional

import typer

from .config import TilerConfig
from .persistence import SessionFormatError, load_session
from .protocol import Area, HeadlessViewProvider
from .tile_manager import TileManager

logger = logging.getLogger(__name__)

app = typer.Typer(
    name="tiler",
    help="BSP tiling layout engine tools.",
    no_args_is_help=True,
)


async def inspect_session(
    data, width: int, height: int, config: Optional[TilerConfig] = None
):
    """Lay out a stored session headlessly.

    Returns:
        The overlay payload with each tile's lifecycle state added
    """
    manager = TileManager(
        HeadlessViewProvider(), config=config, area=Area(0, 0, width, height)
    )
    manager.restore(data)
    await manager.wait_idle()

    overlay = manager.overlay_state()
    for entry in overlay["tiles"]:
        tile = manager.lifecycle.get_tile(entry["tileId"])
        entry["state"] = tile.state.value
    return overlay


@app.callback()
def cli(
    verbose: Annotated[
        bool,
        typer.Option("--verbose", "-v", help="Log engine activity to stderr."),
    ] = False,
) -> None:
    """BSP tiling layout engine tools."""
    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.WARNING,
        format="%(asctime)s %(name)s %(levelname)s: %(message)s",
    )


@app.command()
def inspect(
    session: Annotated[Path, typer.Argument(help="Path to a session JSON file.")],
    width: Annotated[int, typer.Option("--width", min=1, help="Container width.")] = 1280,
    height: Annotated[int, typer.Option("--height", min=1, help="Container height.")] = 800,
) -> None:
    """Print the overlay layout of a stored session."""
    try:
        data = load_session(session)
        if data is None:
            typer.echo(f"error: no session at {session}", err=True)
            raise typer.Exit(1)
        overlay = asyncio.run(inspect_session(data, width, height))
    except SessionFormatError as e:
        typer.echo(f"error: {e}", err=True)
        raise typer.Exit(1) from None

    typer.echo(json.dumps(overlay, indent=2))


def main() -> None:
    """Main entry point."""
    app(prog_name="tiler")


if __name__ == "__main__":
    main()
