"""Exception hierarchy for git-quads."""

from .taxonomy import (
    ConfigurationError,
    ErrorCode,
    GitQuadsError,
    ImportCancelledError,
    SinkError,
    SourceResolutionError,
    TraversalError,
)

__all__ = [
    "ErrorCode",
    "GitQuadsError",
    "SourceResolutionError",
    "TraversalError",
    "ImportCancelledError",
    "SinkError",
    "ConfigurationError",
]
