"""Import command: write a repository's history as quads."""

from pathlib import Path
from typing import Optional

import typer
from rich.table import Table

from ..api import import_repository
from ..exceptions import GitQuadsError
from ..logging_config import setup_logging
from ..sinks import open_destination
from . import app
from ._common import console, resolve_config


@app.command("import")
def import_history(
    path: Path = typer.Argument(
        Path("."),
        help="Repository to import (work tree or bare repository)",
    ),
    output: str = typer.Option(
        "-",
        "--output",
        "-o",
        help="Destination: '-' for N-Quads on stdout, a .db/.sqlite file, or an N-Quads file",
    ),
    no_batch: bool = typer.Option(
        False,
        "--no-batch",
        help="Write quads one at a time even if the destination supports batches",
    ),
    dedupe_people: bool = typer.Option(
        False,
        "--dedupe-people",
        help="Write each person's facts only once per run",
    ),
    no_gephi_hints: bool = typer.Option(
        False,
        "--no-gephi-hints",
        help="Do not mark literal predicates as Gephi node attributes",
    ),
    config: Optional[Path] = typer.Option(
        None,
        "-c",
        "--config",
        help="Configuration file (TOML)",
        exists=True,
        file_okay=True,
        dir_okay=False,
        readable=True,
    ),
    verbose: bool = typer.Option(False, "--verbose", "-v", help="Enable debug logging"),
    quiet: bool = typer.Option(False, "--quiet", "-q", help="Only log errors"),
    log_file: Optional[str] = typer.Option(None, "--log-file", help="Also write logs to this file"),
):
    """
    Import the full history of a repository.

    Every run re-walks the whole history. Writing to a .db file twice
    leaves the store unchanged, since identical quads are stored once.

    [bold cyan]Examples:[/bold cyan]

      git-quads import . > history.nq

      git-quads import ~/src/project -o project.db --dedupe-people
    """
    try:
        settings = resolve_config(
            config=config,
            no_batch=no_batch,
            dedupe_people=dedupe_people,
            no_gephi_hints=no_gephi_hints,
            verbose=verbose,
            quiet=quiet,
        )
    except GitQuadsError as e:
        console.print(f"[red]Error:[/red] {e}")
        raise typer.Exit(1)

    # config files and GITQUADS_VERBOSITY count as much as -v/-q
    logger = setup_logging(
        verbose=settings.verbosity == "verbose",
        quiet=settings.verbosity == "quiet",
        log_file=log_file,
    )

    try:
        with open_destination(output) as writer:
            stats = import_repository(writer, path, config=settings)

    except GitQuadsError as e:
        logger.error(f"{e.__class__.__name__}: {e}")
        console.print(f"[red]Error:[/red] {e}")
        if "commits_processed" in e.context:
            console.print(
                f"[dim]{e.context['commits_processed']} commits were written before the failure[/dim]"
            )
        raise typer.Exit(1)

    except KeyboardInterrupt:
        logger.info("Import interrupted by user")
        console.print("\n[yellow]Import interrupted[/yellow]")
        raise typer.Exit(130)

    if settings.verbosity == "quiet":
        return

    table = Table(title="Import summary", show_header=False)
    table.add_column("Field", style="bold")
    table.add_column("Value")
    table.add_row("Repository", str(path))
    table.add_row("Destination", "stdout" if output == "-" else output)
    table.add_row("Commits", str(stats.commits))
    table.add_row("Quads", str(stats.quads))
    console.print(table)
