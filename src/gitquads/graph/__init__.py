"""Quad values, N-Quads codec and the fixed vocabulary."""

from .quad import IRI, BNode, Bool, Quad, String, Time, Value, parse_nquads_line
from .vocabulary import VOCABULARY

__all__ = [
    "IRI",
    "BNode",
    "Bool",
    "String",
    "Time",
    "Value",
    "Quad",
    "parse_nquads_line",
    "VOCABULARY",
]
