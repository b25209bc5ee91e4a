"""Error taxonomy with error codes and recovery hints.

Error Code Convention:
    GQ1xx - Source resolution errors
    GQ2xx - Traversal errors
    GQ3xx - Sink errors
    GQ4xx - Configuration errors
"""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import Any


class ErrorCode(Enum):
    """Structured error codes for logging and debugging."""

    # Source resolution errors (GQ1xx)
    GQ100 = "GQ100"  # Not a git repository
    GQ101 = "GQ101"  # Git executable not found
    GQ102 = "GQ102"  # Remote lookup failed

    # Traversal errors (GQ2xx)
    GQ200 = "GQ200"  # History walk failed
    GQ201 = "GQ201"  # Tree resolution failed
    GQ202 = "GQ202"  # Tree diff failed
    GQ203 = "GQ203"  # Git subprocess timeout
    GQ204 = "GQ204"  # Malformed git output
    GQ205 = "GQ205"  # Import cancelled

    # Sink errors (GQ3xx)
    GQ300 = "GQ300"  # Destination rejected a write

    # Configuration errors (GQ4xx)
    GQ400 = "GQ400"  # Invalid config file
    GQ401 = "GQ401"  # Invalid config value


@dataclass
class GitQuadsError(Exception):
    """Base exception with structured context.

    Attributes:
        message: Human-readable error description
        code: Structured error code for categorization
        context: Additional context (stage, commit hash, path, ...)
        recoverable: Whether the error can be recovered from
        recovery_hint: Suggested fix for the user
    """

    message: str
    code: ErrorCode
    context: dict[str, Any] = field(default_factory=dict)
    recoverable: bool = False
    recovery_hint: str | None = None

    def __str__(self) -> str:
        return f"[{self.code.value}] {self.message}"

    def __post_init__(self) -> None:
        super().__init__(str(self))

    def to_json(self) -> dict[str, Any]:
        """Structured logging format."""
        return {
            "error_code": self.code.value,
            "message": self.message,
            "context": self.context,
            "recoverable": self.recoverable,
            "recovery_hint": self.recovery_hint,
        }


class SourceResolutionError(GitQuadsError):
    """The repository cannot be opened (GQ1xx)."""

    pass


class TraversalError(GitQuadsError):
    """History walk, tree resolution or diff failed mid-run (GQ2xx)."""

    pass


class ImportCancelledError(TraversalError):
    """The caller asked the import to stop (GQ205)."""

    pass


@dataclass
class SinkError(GitQuadsError):
    """The destination rejected a write (GQ3xx).

    ``written`` is how many quads of the failing batch were persisted
    before the failure.
    """

    written: int = 0

    def to_json(self) -> dict[str, Any]:
        data = super().to_json()
        data["written"] = self.written
        return data


class ConfigurationError(GitQuadsError):
    """Invalid configuration file or value (GQ4xx)."""

    pass
