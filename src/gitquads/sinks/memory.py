"""In-memory fact store."""

from __future__ import annotations

from typing import Iterator, Sequence

from ..graph.quad import Quad


class MemoryQuadStore:
    """A set of quads that remembers first-seen order.

    Writing a quad that is already present is a no-op, so repeated facts
    collapse the way they do in a real graph store.
    """

    def __init__(self):
        self._quads: dict[Quad, None] = {}
        self.writes = 0

    def write_quad(self, quad: Quad) -> None:
        self.writes += 1
        self._quads.setdefault(quad, None)

    def write_quads(self, quads: Sequence[Quad]) -> int:
        self.writes += 1
        for quad in quads:
            self._quads.setdefault(quad, None)
        return len(quads)

    def __contains__(self, quad: Quad) -> bool:
        return quad in self._quads

    def __iter__(self) -> Iterator[Quad]:
        return iter(self._quads)

    def __len__(self) -> int:
        return len(self._quads)

    def quads(self) -> list[Quad]:
        return list(self._quads)
