"""Metrics command — coupling metrics ranked by normalized score."""

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
def metrics(
    snapshot_path: Path = SNAPSHOT_ARGUMENT,
    top: int = typer.Option(20, "--top", "-n", help="Number of symbols to show", min=1),
    fmt: str = FORMAT_OPTION,
    config: Optional[Path] = CONFIG_OPTION,
    verbose: bool = typer.Option(False, "--verbose", "-v", help="Verbose logging"),
    quiet: bool = typer.Option(False, "--quiet", "-q", help="Suppress logging"),
):
    """
    Show the most coupled symbols (in/out degree, CBO, normalized score).
    """
    logger = setup_logging(verbose=verbose, quiet=quiet)

    try:
        settings = resolve_config(config=config, verbose=verbose, quiet=quiet)
        pipeline = ViewPipeline(settings)
        pipeline.set_snapshot(read_snapshot(snapshot_path))
        ranked = sorted(
            pipeline.metrics.values(), key=lambda m: (-m.normalized_score, m.node_id)
        )[:top]

        if fmt == "json":
            output = {
                m.node_id: {
                    "in_degree": m.in_degree,
                    "out_degree": m.out_degree,
                    "cbo": m.cbo,
                    "normalized_score": round(m.normalized_score, 3),
                    "color": m.color,
                }
                for m in ranked
            }
            print(json.dumps(output, indent=2))
            return

        console.print()
        if not ranked:
            console.print("[dim]Snapshot has no symbols.[/dim]")
            return

        table = Table(show_header=True, header_style="bold", box=None, padding=(0, 2))
        table.add_column("Symbol")
        table.add_column("In", justify="right")
        table.add_column("Out", justify="right")
        table.add_column("CBO", justify="right")
        table.add_column("Score", justify="right")
        for m in ranked:
            table.add_row(
                short_id(m.node_id),
                str(m.in_degree),
                str(m.out_degree),
                str(m.cbo),
                f"[{m.color}]{m.normalized_score:.2f}[/]",
            )

        console.print(f"[bold cyan]Top {len(ranked)} coupled symbol(s)[/bold cyan]")
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
