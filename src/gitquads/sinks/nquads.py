"""N-Quads text output."""

from __future__ import annotations

from typing import TextIO

from ..graph.quad import Quad


class NQuadsWriter:
    """Writes one N-Quads line per quad. No batch support."""

    def __init__(self, stream: TextIO):
        self.stream = stream
        self.count = 0

    def write_quad(self, quad: Quad) -> None:
        self.stream.write(quad.to_nquads())
        self.stream.write("\n")
        self.count += 1

    def flush(self) -> None:
        self.stream.flush()
