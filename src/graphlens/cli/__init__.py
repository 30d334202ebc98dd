"""graphlens command-line interface; subcommands register on import."""

import typer

from .. import __version__
from ._common import console

app = typer.Typer(
    name="graphlens",
    help="graphlens - View projection and layout for code dependency graphs",
    add_completion=False,
    rich_markup_mode="rich",
    no_args_is_help=True,
)


@app.callback(invoke_without_command=True)
def _root(
    ctx: typer.Context,
    version: bool = typer.Option(False, "--version", help="Show version and exit"),
):
    """Analyze and lay out graph snapshots exported by the code indexer."""
    if version:
        console.print(f"[bold cyan]graphlens[/bold cyan] version [green]{__version__}[/green]")
        raise typer.Exit(0)
    if ctx.invoked_subcommand is None:
        console.print(ctx.get_help())
        raise typer.Exit(0)


# Import subcommands to register them
from .render import render as _render  # noqa: F401, E402
from .impact import impact as _impact  # noqa: F401, E402
from .flows import flows as _flows  # noqa: F401, E402
from .metrics import metrics as _metrics  # noqa: F401, E402


def main():
    app()
