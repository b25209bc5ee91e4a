"""Quad value types and the N-Quads line codec.

Every value is a frozen dataclass, so quads hash and compare by value. Two
quads are the same fact exactly when all four positions are equal.
"""

from __future__ import annotations

import re
from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Optional, Union

XSD_BOOLEAN = "http://www.w3.org/2001/XMLSchema#boolean"
XSD_DATETIME = "http://www.w3.org/2001/XMLSchema#dateTime"

_ESCAPES = {"\\": "\\\\", '"': '\\"', "\n": "\\n", "\r": "\\r", "\t": "\\t"}
_UNESCAPES = {v[1]: k for k, v in _ESCAPES.items()}
_UCHAR_RE = re.compile(r"\\u([0-9A-Fa-f]{4})|\\U([0-9A-Fa-f]{8})")


def _uchar(ch: str) -> str:
    return f"\\u{ord(ch):04X}"


def _is_surrogate(ch: str) -> bool:
    # lone surrogates stand for raw bytes that were not valid UTF-8
    return "\ud800" <= ch <= "\udfff"


def _escape(text: str) -> str:
    out = []
    for ch in text:
        if ch in _ESCAPES:
            out.append(_ESCAPES[ch])
        elif _is_surrogate(ch):
            out.append(_uchar(ch))
        else:
            out.append(ch)
    return "".join(out)


def _escape_iri(text: str) -> str:
    return "".join(_uchar(ch) if ch in "\\>" or _is_surrogate(ch) else ch for ch in text)


def _unescape_iri(text: str) -> str:
    return _UCHAR_RE.sub(lambda m: chr(int(m.group(1) or m.group(2), 16)), text)


def _unescape(text: str) -> str:
    out = []
    i = 0
    while i < len(text):
        ch = text[i]
        if ch == "\\" and i + 1 < len(text):
            nxt = text[i + 1]
            if nxt in _UNESCAPES:
                out.append(_UNESCAPES[nxt])
                i += 2
                continue
            if nxt in ("u", "U"):
                width = 4 if nxt == "u" else 8
                out.append(chr(int(text[i + 2 : i + 2 + width], 16)))
                i += 2 + width
                continue
        out.append(ch)
        i += 1
    return "".join(out)


@dataclass(frozen=True)
class IRI:
    value: str

    def to_nquads(self) -> str:
        return f"<{_escape_iri(self.value)}>"


@dataclass(frozen=True)
class BNode:
    value: str

    def to_nquads(self) -> str:
        return f"_:{self.value}"


@dataclass(frozen=True)
class String:
    value: str

    def to_nquads(self) -> str:
        return f'"{_escape(self.value)}"'


@dataclass(frozen=True)
class Bool:
    value: bool

    def to_nquads(self) -> str:
        return f'"{str(self.value).lower()}"^^<{XSD_BOOLEAN}>'


@dataclass(frozen=True)
class Time:
    """A point in time; naive datetimes are taken as UTC.

    Equality follows the rendered text, not the instant: the same moment
    written with two different offsets is two different values.
    """

    value: datetime = field(compare=False)
    text: str = field(init=False, repr=False)

    def __post_init__(self) -> None:
        if self.value.tzinfo is None:
            object.__setattr__(self, "value", self.value.replace(tzinfo=timezone.utc))
        text = self.value.isoformat()
        if text.endswith("+00:00"):
            text = text[: -len("+00:00")] + "Z"
        object.__setattr__(self, "text", text)

    def rfc3339(self) -> str:
        return self.text

    def to_nquads(self) -> str:
        return f'"{self.rfc3339()}"^^<{XSD_DATETIME}>'


Value = Union[IRI, BNode, String, Bool, Time]


@dataclass(frozen=True)
class Quad:
    """A subject-predicate-object fact with an optional label."""

    subject: Value
    predicate: Value
    object: Value
    label: Optional[Value] = None

    def to_nquads(self) -> str:
        """Render as one N-Quads statement, without the trailing newline."""
        parts = [self.subject.to_nquads(), self.predicate.to_nquads(), self.object.to_nquads()]
        if self.label is not None:
            parts.append(self.label.to_nquads())
        return " ".join(parts) + " ."

    def __str__(self) -> str:
        return self.to_nquads()


_TERM_RE = re.compile(
    r"""
    \s*(?:
        <(?P<iri>[^>]*)>
      | _:(?P<bnode>\S+)
      | "(?P<lit>(?:[^"\\]|\\.)*)"(?:\^\^<(?P<dtype>[^>]*)>|@(?P<lang>[A-Za-z0-9-]+))?
    )
    """,
    re.VERBOSE,
)


def parse_term(text: str, pos: int = 0) -> tuple[Value, int]:
    """Parse one N-Quads term starting at ``pos``; return it and the end offset."""
    m = _TERM_RE.match(text, pos)
    if m is None:
        raise ValueError(f"invalid N-Quads term at offset {pos}: {text[pos:pos + 40]!r}")
    if m.group("iri") is not None:
        return IRI(_unescape_iri(m.group("iri"))), m.end()
    if m.group("bnode") is not None:
        return BNode(m.group("bnode")), m.end()
    raw = _unescape(m.group("lit"))
    dtype = m.group("dtype")
    if dtype == XSD_BOOLEAN:
        return Bool(raw == "true"), m.end()
    if dtype == XSD_DATETIME:
        return Time(datetime.fromisoformat(raw.replace("Z", "+00:00"))), m.end()
    return String(raw), m.end()


def parse_nquads_line(line: str) -> Quad:
    """Parse a single N-Quads statement produced by ``Quad.to_nquads``."""
    text = line.strip()
    if not text.endswith("."):
        raise ValueError(f"N-Quads statement must end with '.': {line!r}")
    body = text[:-1].rstrip()

    terms: list[Value] = []
    pos = 0
    while pos < len(body):
        term, pos = parse_term(body, pos)
        terms.append(term)
        while pos < len(body) and body[pos].isspace():
            pos += 1

    if len(terms) not in (3, 4):
        raise ValueError(f"expected 3 or 4 terms, got {len(terms)}: {line!r}")
    return Quad(*terms)
