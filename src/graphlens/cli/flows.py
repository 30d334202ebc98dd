"""Flows command — execution flows from entry points to sinks."""

import json
from pathlib import Path
from typing import Optional

import typer
from rich.table import Table

from ..exceptions import GraphLensError
from ..logging_config import setup_logging
from ..pipeline import ViewPipeline
from . import app
from ._common import (
    CONFIG_OPTION,
    FORMAT_OPTION,
    SNAPSHOT_ARGUMENT,
    console,
    read_snapshot,
    resolve_config,
    short_id,
)


@app.command()
def flows(
    snapshot_path: Path = SNAPSHOT_ARGUMENT,
    fmt: str = FORMAT_OPTION,
    config: Optional[Path] = CONFIG_OPTION,
    verbose: bool = typer.Option(False, "--verbose", "-v", help="List every sink"),
    quiet: bool = typer.Option(False, "--quiet", "-q", help="Suppress logging"),
):
    """
    List detected execution flows (entry point, category, sinks reached).
    """
    logger = setup_logging(verbose=verbose, quiet=quiet)

    try:
        settings = resolve_config(config=config, verbose=verbose, quiet=quiet)
        pipeline = ViewPipeline(settings)
        pipeline.set_snapshot(read_snapshot(snapshot_path))
        detected = pipeline.flows

        if fmt == "json":
            output = [
                {
                    "entry_point": flow.entry_point,
                    "category": flow.category,
                    "sinks": list(flow.sinks),
                    "path": list(flow.path),
                }
                for flow in detected
            ]
            print(json.dumps(output, indent=2))
            return

        console.print()
        if not detected:
            console.print("[dim]No execution flows detected.[/dim]")
            return

        table = Table(show_header=True, header_style="bold", box=None, padding=(0, 2))
        table.add_column("Entry point")
        table.add_column("Category", style="cyan")
        table.add_column("Sinks", justify="right")
        table.add_column("Reach", justify="right")
        for flow in detected:
            sinks = ", ".join(short_id(s) for s in flow.sinks) if verbose else str(len(flow.sinks))
            table.add_row(short_id(flow.entry_point), flow.category, sinks, str(len(flow.path)))

        console.print(f"[bold cyan]{len(detected)} execution flow(s)[/bold cyan]")
        console.print(table)
        console.print()

    except typer.Exit:
        raise
    except GraphLensError as e:
        console.print(f"[red]Error:[/red] {e}")
        raise typer.Exit(1)
    except Exception as e:
        logger.exception("Unexpected error")
        console.print(f"[red]Unexpected error:[/red] {e}")
        raise typer.Exit(1)
