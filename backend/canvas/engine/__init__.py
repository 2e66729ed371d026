"""Graph editing engine.

Key Components:
- models: Node / Edge value types and change sets
- coordinates: Screen ↔ logical coordinate mapping
- store: GraphStore, the single source of truth for a session
- validator: ConnectionValidator (self-loops, kind compatibility, cycles)
- operations: NodeOperations (add, duplicate, paste, drag-to-create, ...)
- clipboard: ClipboardBridge (system image paste vs. internal node paste)
- persistence: PersistenceCoordinator (debounced single-flight saves)
"""

from .errors import (
    CanvasError,
    ClipboardAccessError,
    GraphIntegrityError,
    SnapshotError,
    UnknownNodeKindError,
)
from .models import Connection, Edge, EdgeKind, Node, Point

__all__ = [
    "CanvasError",
    "ClipboardAccessError",
    "Connection",
    "Edge",
    "EdgeKind",
    "GraphIntegrityError",
    "Node",
    "Point",
    "SnapshotError",
    "UnknownNodeKindError",
]
