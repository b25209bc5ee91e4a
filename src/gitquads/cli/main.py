"""Top-level callback: version flag."""

import typer

from . import app
from ._common import console


@app.callback(invoke_without_command=True)
def main(
    ctx: typer.Context,
    version: bool = typer.Option(
        False,
        "--version",
        help="Show version and exit",
    ),
):
    """
    Convert git history into subject-predicate-object-label quads.

    [bold cyan]Examples:[/bold cyan]

      git-quads import . -o history.nq

      git-quads import /path/to/repo -o history.db

      git-quads vocab
    """
    from .. import __version__

    if version:
        console.print(f"[bold cyan]git-quads[/bold cyan] version [green]{__version__}[/green]")
        raise typer.Exit(0)

    if ctx.invoked_subcommand is None:
        console.print(ctx.get_help())
        raise typer.Exit(0)
