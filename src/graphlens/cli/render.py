"""Render command — run the full view pipeline and emit positioned output."""

import asyncio
import json
from pathlib import Path
from typing import List, Optional

import typer
from rich.table import Table

from ..exceptions import GraphLensError
from ..logging_config import setup_logging
from ..pipeline import ViewPipeline, serialize_layout
from ..views.models import ViewMode, ViewParams
from . import app
from ._common import (
    CONFIG_OPTION,
    FORMAT_OPTION,
    SNAPSHOT_ARGUMENT,
    console,
    read_snapshot,
    resolve_config,
)

_PREVIEW_ROWS = 40


@app.command()
def render(
    snapshot_path: Path = SNAPSHOT_ARGUMENT,
    mode: ViewMode = typer.Option(
        ViewMode.ARCHITECTURE,
        "--mode",
        "-m",
        help="View mode",
        case_sensitive=False,
    ),
    focus: Optional[str] = typer.Option(
        None,
        "--focus",
        help="Focused node id (impact root, flow root, trace start)",
    ),
    search: str = typer.Option("", "--search", "-s", help="Search query overlay"),
    collapse: Optional[List[str]] = typer.Option(
        None,
        "--collapse",
        help="Container id to collapse (repeatable)",
    ),
    max_depth: int = typer.Option(
        2,
        "--max-depth",
        help="Flow mode depth: 0 domains, 1 files, 2 symbols",
        min=0,
        max=2,
    ),
    scope: Optional[str] = typer.Option(
        None,
        "--scope",
        help="Only keep symbols under this directory prefix",
    ),
    output: Optional[Path] = typer.Option(
        None,
        "--output",
        "-o",
        help="Write the renderer JSON to this file",
    ),
    fmt: str = FORMAT_OPTION,
    config: Optional[Path] = CONFIG_OPTION,
    verbose: bool = typer.Option(False, "--verbose", "-v", help="Show every node"),
    quiet: bool = typer.Option(False, "--quiet", "-q", help="Suppress logging"),
):
    """
    Project, filter, and lay out a snapshot for one view mode.

    [bold cyan]Examples:[/bold cyan]

      graphlens render snapshot.json --mode risk

      graphlens render snapshot.json --mode impact --focus "src/api.ts:handleLogin:10"

      graphlens render snapshot.json --format json -o layout.json
    """
    logger = setup_logging(verbose=verbose, quiet=quiet)

    try:
        settings = resolve_config(config=config, verbose=verbose, quiet=quiet)
        snapshot = read_snapshot(snapshot_path, scope)

        pipeline = ViewPipeline(settings)
        pipeline.set_snapshot(snapshot)
        params = ViewParams(
            mode=mode,
            focused_node_id=focus,
            search_query=search,
            collapsed_nodes=frozenset(collapse or ()),
            max_depth=max_depth,
        )
        result = asyncio.run(pipeline.render(params))
        payload = serialize_layout(result)

        if output is not None:
            output.write_text(json.dumps(payload, indent=2), encoding="utf-8")

        if fmt == "json":
            print(json.dumps(payload, indent=2))
        else:
            _output_rich(payload, mode, verbose=verbose)
            if output is not None:
                console.print(f"  Wrote [green]{output}[/green]")

    except typer.Exit:
        raise
    except GraphLensError as e:
        console.print(f"[red]Error:[/red] {e}")
        raise typer.Exit(1)
    except Exception as e:
        logger.exception("Unexpected error")
        console.print(f"[red]Unexpected error:[/red] {e}")
        raise typer.Exit(1)


def _output_rich(payload: dict, mode: ViewMode, verbose: bool = False):
    nodes = payload["nodes"]
    edges = payload["edges"]

    console.print()
    console.print(f"[bold cyan]graphlens — {mode.value} view[/bold cyan]")
    console.print(f"  [bold]{len(nodes)}[/bold] nodes, [bold]{len(edges)}[/bold] edges")
    if payload["fallback"]:
        console.print("  [yellow]Layout failed; showing pre-layout positions[/yellow]")
    console.print()

    if not nodes:
        console.print("  [dim]Nothing to show for this view.[/dim]")
        return

    table = Table(show_header=True, header_style="bold", box=None, padding=(0, 2))
    table.add_column("Node")
    table.add_column("Kind", style="dim")
    table.add_column("Position", justify="right")
    table.add_column("Size", justify="right")
    table.add_column("Opacity", justify="right")

    shown = nodes if verbose else nodes[:_PREVIEW_ROWS]
    for node in shown:
        position = node["position"]
        size = node["size"]
        visibility = node["visibility"]
        label = node["label"]
        if visibility.get("glowColor"):
            label = f"[{visibility['glowColor']}]{label}[/]"
        elif visibility["highlighted"]:
            label = f"[bold]{label}[/bold]"
        table.add_row(
            label,
            node["kind"],
            f"{position['x']:.0f}, {position['y']:.0f}",
            f"{size['width']:.0f} x {size['height']:.0f}",
            f"{visibility['opacity']:.2f}",
        )

    console.print(table)
    if len(shown) < len(nodes):
        console.print(f"  [dim]... {len(nodes) - len(shown)} more (use --verbose)[/dim]")
