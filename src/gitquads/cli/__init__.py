"""CLI entry point: registers all subcommands."""

import typer

app = typer.Typer(
    name="git-quads",
    help="git-quads - Git history as a graph of quads",
    add_completion=False,
    rich_markup_mode="rich",
)


# Import subcommands to register them
from .main import main as _main_callback  # noqa: F401, E402
from .import_history import import_history as _import_history  # noqa: F401, E402
from .vocab import vocab as _vocab  # noqa: F401, E402
