"""Shared CLI helpers."""

from pathlib import Path
from typing import Optional

from rich.console import Console

from ..config import ImportConfig, load_config

# stdout may carry the N-Quads stream, so the CLI talks on stderr
console = Console(stderr=True)


def resolve_config(
    config: Optional[Path] = None,
    no_batch: bool = False,
    dedupe_people: bool = False,
    no_gephi_hints: bool = False,
    verbose: bool = False,
    quiet: bool = False,
) -> ImportConfig:
    """Build config from CLI options."""
    overrides = {}
    if no_batch:
        overrides["batch"] = False
    if dedupe_people:
        overrides["dedupe_people"] = True
    if no_gephi_hints:
        overrides["gephi_hints"] = False
    if verbose:
        overrides["verbose"] = True
    if quiet:
        overrides["quiet"] = True
    return load_config(config_file=config, **overrides)
