"""Exception types raised by the graph engine."""

from __future__ import annotations


class CanvasError(Exception):
    """Base class for graph engine errors."""


class GraphIntegrityError(CanvasError, ValueError):
    """Raised when a change set would break a graph invariant."""


class SnapshotError(CanvasError, ValueError):
    """Raised when a persisted snapshot cannot be turned into a graph."""


class UnknownNodeKindError(CanvasError, ValueError):
    """Raised when a node kind is not present in the registry."""

    def __init__(self, kind: str, available: list[str] | None = None):
        self.kind = kind
        self.available = available or []
        message = f"Unknown node kind: {kind}"
        if self.available:
            message += f". Available kinds: {self.available}"
        super().__init__(message)


class ClipboardAccessError(CanvasError):
    """Raised by clipboard adapters when the platform clipboard cannot be read."""
