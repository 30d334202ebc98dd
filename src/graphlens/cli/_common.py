"""Shared CLI helpers."""

from pathlib import Path
from typing import Optional

import typer
from rich.console import Console

from ..config import GraphLensConfig, load_config
from ..graph.models import Snapshot
from ..graph.snapshot import filter_by_directory, load_snapshot
from ..logging_config import verbosity_from_flags

console = Console()

SNAPSHOT_ARGUMENT = typer.Argument(
    ...,
    help="Snapshot JSON exported by the indexer",
    exists=True,
    file_okay=True,
    dir_okay=False,
)

CONFIG_OPTION = typer.Option(
    None,
    "--config",
    "-c",
    help="Configuration file (TOML)",
    exists=True,
    file_okay=True,
    dir_okay=False,
)

FORMAT_OPTION = typer.Option(
    "rich",
    "--format",
    "-f",
    help="Output format: rich (human-readable) or json",
)


def resolve_config(
    config: Optional[Path] = None,
    verbose: bool = False,
    quiet: bool = False,
    **overrides,
) -> GraphLensConfig:
    """Build configuration from CLI options.

    The flags only override file and environment verbosity when given.
    """
    if verbose or quiet:
        overrides["verbosity"] = verbosity_from_flags(verbose, quiet)
    return load_config(config_file=config, **overrides)


def read_snapshot(path: Path, scope: Optional[str] = None) -> Snapshot:
    """Load a snapshot, optionally restricted to a directory prefix."""
    snapshot = load_snapshot(path)
    if scope:
        snapshot = filter_by_directory(snapshot, scope)
    return snapshot


def short_id(node_id: str) -> str:
    """Symbol ids without the directory part, for table cells."""
    return node_id.replace("\\", "/").rsplit("/", 1)[-1]
