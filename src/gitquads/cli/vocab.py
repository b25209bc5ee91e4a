"""Vocab command: show the fixed predicate and type IRIs."""

from rich.table import Table

from ..graph.vocabulary import VOCABULARY
from . import app
from ._common import console


@app.command("vocab")
def vocab():
    """Print the predicate and type IRIs used in the output."""
    table = Table(title="Vocabulary")
    table.add_column("Term", style="bold")
    table.add_column("IRI", style="cyan")
    for term, iri in VOCABULARY.items():
        table.add_row(term, iri.to_nquads())
    console.print(table)
