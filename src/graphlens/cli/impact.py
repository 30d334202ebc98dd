"""Impact command — blast radius of changing one symbol."""

import json
from pathlib import Path
from typing import Optional

import typer

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
def impact(
    snapshot_path: Path = SNAPSHOT_ARGUMENT,
    node_id: str = typer.Argument(..., help="Symbol id (filePath:name:startLine)"),
    hops: Optional[int] = typer.Option(None, "--hops", help="BFS hop bound", min=1),
    fmt: str = FORMAT_OPTION,
    config: Optional[Path] = CONFIG_OPTION,
    verbose: bool = typer.Option(False, "--verbose", "-v", help="Verbose logging"),
    quiet: bool = typer.Option(False, "--quiet", "-q", help="Suppress logging"),
):
    """
    Show upstream callers, downstream callees, and affected containers.
    """
    logger = setup_logging(verbose=verbose, quiet=quiet)

    try:
        overrides = {"impact_hops": hops} if hops is not None else {}
        settings = resolve_config(config=config, verbose=verbose, quiet=quiet, **overrides)
        pipeline = ViewPipeline(settings)
        pipeline.set_snapshot(read_snapshot(snapshot_path))

        if node_id not in pipeline.snapshot.symbol_map():
            console.print(f"[yellow]Unknown symbol:[/yellow] {node_id}")
            raise typer.Exit(1)

        analysis = pipeline.analyze_impact(node_id)
        neighbors = pipeline.related_nodes(node_id)
        stats = analysis.stats

        if fmt == "json":
            output = {
                "node": node_id,
                "affected_functions": stats.affected_functions,
                "affected_files": sorted(analysis.affected_files),
                "affected_domains": sorted(analysis.affected_domains),
                "upstream": list(analysis.upstream),
                "downstream": list(analysis.downstream),
                "same_file": sorted(neighbors.same_file),
            }
            print(json.dumps(output, indent=2))
            return

        console.print()
        console.print(f"[bold cyan]Impact of[/bold cyan] {node_id}")
        console.print(
            f"  [bold]{stats.affected_functions}[/bold] functions in "
            f"[bold]{stats.affected_files}[/bold] files across "
            f"[bold]{stats.affected_domains}[/bold] domains"
        )
        console.print()
        sections = (
            ("Upstream", analysis.upstream),
            ("Downstream", analysis.downstream),
            ("Same file", tuple(sorted(neighbors.same_file))),
        )
        for title, ids in sections:
            console.print(f"[bold]{title}[/bold] ({len(ids)})")
            for other in ids:
                console.print(f"  {short_id(other)}")
            if not ids:
                console.print("  [dim]none[/dim]")
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
