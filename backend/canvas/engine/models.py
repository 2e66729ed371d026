"""Graph value types and change sets.

Nodes and edges are treated as values: the store never mutates one in place,
it swaps in an updated copy (``dataclasses.replace``) when a change is
applied. ``data`` payloads are opaque to the engine and deep-copied whenever a
node is cloned or serialized.

Wire format (one snapshot entry each):

    node: {"id", "type", "position": {"x", "y"}, "data", "selected", "measured"?}
    edge: {"id", "source", "target", "sourceHandle", "targetHandle", "type"}

Persistent edges serialize with type "animated" (the canvas edge style),
temporary edges with type "temporary".
"""

from __future__ import annotations

import copy
import uuid
from dataclasses import dataclass, field, replace
from enum import Enum
from typing import Any, Dict, Optional, Union

from .errors import GraphIntegrityError

# Kind tag of the placeholder node left behind by an aborted connection drag
PLACEHOLDER_KIND = "drop"

# Edge "type" written to snapshots for persistent edges
PERSISTENT_EDGE_STYLE = "animated"


def new_id() -> str:
    """Generate a fresh node / edge id."""
    return str(uuid.uuid4())


class EdgeKind(str, Enum):
    PERSISTENT = "persistent"
    TEMPORARY = "temporary"


@dataclass(frozen=True)
class Point:
    x: float = 0.0
    y: float = 0.0

    def offset(self, dx: float, dy: float) -> "Point":
        return Point(self.x + dx, self.y + dy)

    def to_dict(self) -> Dict[str, float]:
        return {"x": self.x, "y": self.y}

    @staticmethod
    def from_dict(d: Dict[str, Any]) -> "Point":
        return Point(x=float(d["x"]), y=float(d["y"]))


@dataclass(frozen=True)
class Dimensions:
    """Rendered node size as reported by the UI."""

    width: float
    height: float

    def to_dict(self) -> Dict[str, float]:
        return {"width": self.width, "height": self.height}

    @staticmethod
    def from_dict(d: Dict[str, Any]) -> "Dimensions":
        return Dimensions(width=float(d["width"]), height=float(d["height"]))


@dataclass
class Node:
    """One node on the canvas.

    Attributes:
        id: Unique node id, assigned at creation and never reused
        kind: Node kind tag, resolved through the node-kind registry
        position: Top-left position in logical graph coordinates
        data: Kind-specific payload (opaque to the engine)
        selected: Whether the node is part of the current selection
        measured: Rendered size, once the UI has reported it
    """

    id: str
    kind: str
    position: Point = field(default_factory=Point)
    data: Dict[str, Any] = field(default_factory=dict)
    selected: bool = False
    measured: Optional[Dimensions] = None

    def __post_init__(self):
        """Validate node fields."""
        if not self.id:
            raise ValueError("node id cannot be empty")
        if not self.kind:
            raise ValueError("node kind cannot be empty")

    @property
    def is_placeholder(self) -> bool:
        return self.kind == PLACEHOLDER_KIND

    def clone(self, **changes: Any) -> "Node":
        """Copy this node with a deep-copied payload and the given field overrides."""
        changes.setdefault("data", copy.deepcopy(self.data))
        return replace(self, **changes)

    def to_dict(self) -> Dict[str, Any]:
        d: Dict[str, Any] = {
            "id": self.id,
            "type": self.kind,
            "position": self.position.to_dict(),
            "data": copy.deepcopy(self.data),
            "selected": self.selected,
        }
        if self.measured is not None:
            d["measured"] = self.measured.to_dict()
        return d

    @staticmethod
    def from_dict(d: Dict[str, Any]) -> "Node":
        measured = d.get("measured")
        return Node(
            id=d["id"],
            kind=d["type"],
            position=Point.from_dict(d.get("position") or {"x": 0, "y": 0}),
            data=copy.deepcopy(d.get("data") or {}),
            selected=bool(d.get("selected", False)),
            measured=Dimensions.from_dict(measured) if measured else None,
        )


@dataclass
class Edge:
    """Directed connection from a producer node to a consumer node.

    Attributes:
        id: Unique edge identifier
        source: Producer node id
        target: Consumer node id
        source_handle: Optional output handle on the source node
        target_handle: Optional input handle on the target node
        kind: persistent (saved) or temporary (exists only during a drag)
        selected: UI selection state; not part of the snapshot
    """

    id: str
    source: str
    target: str
    source_handle: Optional[str] = None
    target_handle: Optional[str] = None
    kind: EdgeKind = EdgeKind.PERSISTENT
    selected: bool = False

    def __post_init__(self):
        """Validate edge definition."""
        if not self.id:
            raise ValueError("edge id cannot be empty")
        if not self.source:
            raise ValueError("source node cannot be empty")
        if not self.target:
            raise ValueError("target node cannot be empty")
        if self.source == self.target:
            raise GraphIntegrityError(f"self-loop detected: {self.source} -> {self.target}")

    @property
    def is_temporary(self) -> bool:
        return self.kind == EdgeKind.TEMPORARY

    def to_dict(self) -> Dict[str, Any]:
        return {
            "id": self.id,
            "source": self.source,
            "target": self.target,
            "sourceHandle": self.source_handle,
            "targetHandle": self.target_handle,
            "type": EdgeKind.TEMPORARY.value if self.is_temporary else PERSISTENT_EDGE_STYLE,
        }

    @staticmethod
    def from_dict(d: Dict[str, Any]) -> "Edge":
        kind = EdgeKind.TEMPORARY if d.get("type") == EdgeKind.TEMPORARY.value else EdgeKind.PERSISTENT
        return Edge(
            id=d["id"],
            source=d["source"],
            target=d["target"],
            source_handle=d.get("sourceHandle"),
            target_handle=d.get("targetHandle"),
            kind=kind,
        )


@dataclass(frozen=True)
class Connection:
    """A proposed edge, as produced while the user drags a connection."""

    source: str
    target: Optional[str]
    source_handle: Optional[str] = None
    target_handle: Optional[str] = None


# ---------------------------------------------------------------------------
# Change sets
# ---------------------------------------------------------------------------


@dataclass(frozen=True)
class NodeAdd:
    item: Node


@dataclass(frozen=True)
class NodePosition:
    id: str
    position: Point
    dragging: bool = False


@dataclass(frozen=True)
class NodeSelect:
    id: str
    selected: bool


@dataclass(frozen=True)
class NodeDimensions:
    id: str
    dimensions: Dimensions


@dataclass(frozen=True)
class NodeReplace:
    id: str
    item: Node


@dataclass(frozen=True)
class NodeRemove:
    id: str


@dataclass(frozen=True)
class EdgeAdd:
    item: Edge


@dataclass(frozen=True)
class EdgeSelect:
    id: str
    selected: bool


@dataclass(frozen=True)
class EdgeReplace:
    id: str
    item: Edge


@dataclass(frozen=True)
class EdgeRemove:
    id: str


NodeChange = Union[NodeAdd, NodePosition, NodeSelect, NodeDimensions, NodeReplace, NodeRemove]
EdgeChange = Union[EdgeAdd, EdgeSelect, EdgeReplace, EdgeRemove]
