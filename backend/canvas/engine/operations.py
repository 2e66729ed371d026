"""Node Operations Service

Higher-level gestures built on top of the GraphStore. Each public method is
one user gesture and makes at most one store commit, so a gesture is either
fully visible to the persistence coordinator or not at all.

Gestures:
- add_node / duplicate_node / duplicate_selected / paste_nodes / select_all
- connect: validated edge creation
- start_connection / handle_connection_abort / add_placeholder_at /
  finalize_placeholder: the drag-to-create flow around the placeholder node
- spawn_derived_node / spawn_grid: nodes produced from an existing node
- create_node_from_file: upload + node creation for dropped or pasted files

Validation rejections are silent: the gesture simply does not create the edge.
"""

from __future__ import annotations

import copy
import logging
from dataclasses import dataclass
from typing import TYPE_CHECKING, Any, Dict, Iterable, List, Optional, Sequence

from .. import settings
from .coordinates import ViewState, derived_node_position, grid_positions
from .models import (
    PLACEHOLDER_KIND,
    Connection,
    Edge,
    EdgeAdd,
    EdgeKind,
    EdgeRemove,
    EdgeReplace,
    Node,
    NodeAdd,
    NodeRemove,
    NodeReplace,
    NodeSelect,
    Point,
    new_id,
)

if TYPE_CHECKING:
    from ..collaborators import Analytics, FileStorage
    from ..nodes.registry import NodeKindRegistry
    from .store import GraphStore
    from .validator import ConnectionValidator

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class ConnectionDragEnd:
    """Pointer-up at the end of a connection drag.

    Attributes:
        pointer: Pointer position in screen coordinates
        from_node_id: Node the drag started from
        from_handle_type: "source" when the drag started on an output handle,
            "target" when it started on an input handle
        from_handle_id: Handle id on the origin node, if any
        is_valid: True when the drag ended on a handle that accepted it
    """

    pointer: Point
    from_node_id: Optional[str]
    from_handle_type: str = "source"
    from_handle_id: Optional[str] = None
    is_valid: bool = False


def kind_for_mime_type(mime_type: str) -> str:
    """Node kind for an uploaded file, by MIME prefix."""
    if mime_type.startswith("image/"):
        return "image"
    if mime_type.startswith("video/"):
        return "video"
    if mime_type.startswith("audio/"):
        return "audio"
    return "file"


class NodeOperations:
    """Node lifecycle gestures for one canvas."""

    def __init__(
        self,
        store: "GraphStore",
        registry: "NodeKindRegistry",
        validator: "ConnectionValidator",
        view: Optional[ViewState] = None,
        analytics: Optional["Analytics"] = None,
        file_storage: Optional["FileStorage"] = None,
    ):
        self._store = store
        self._registry = registry
        self._validator = validator
        self._view = view or ViewState()
        self._analytics = analytics
        self._file_storage = file_storage

    # -- Creation --

    def add_node(
        self,
        kind: str,
        position: Optional[Point] = None,
        data: Optional[Dict[str, Any]] = None,
        selected: bool = False,
        source: str = "toolbar",
    ) -> Node:
        """Create a node of ``kind``; ``data`` is merged over the kind's defaults.

        Raises:
            UnknownNodeKindError: If ``kind`` is not registered
        """
        node = self._build_node(kind, position, data, selected)
        self._store.apply_node_changes([NodeAdd(node)])
        self._track(node.kind, source)
        return node

    def duplicate_node(self, node_id: str) -> Optional[Node]:
        """Clone a node at +offset; the clone becomes the selection's replacement."""
        node = self._store.get_node(node_id)
        if node is None or node.is_placeholder:
            return None

        duplicate = self._clone_with_offset(node)
        self._store.apply_node_changes([
            NodeSelect(node.id, False),
            NodeAdd(duplicate),
        ])
        self._track(duplicate.kind, "duplicate")
        return duplicate

    def duplicate_selected(self) -> List[Node]:
        selected = [n for n in self._store.selected_nodes() if not n.is_placeholder]
        duplicates = [self._clone_with_offset(n) for n in selected]
        if not duplicates:
            return []

        changes = [NodeSelect(n.id, False) for n in selected]
        changes.extend(NodeAdd(d) for d in duplicates)
        self._store.apply_node_changes(changes)
        for duplicate in duplicates:
            self._track(duplicate.kind, "duplicate")
        return duplicates

    def paste_nodes(self, nodes: Iterable[Node]) -> List[Node]:
        """Paste previously copied nodes, offset, replacing the current selection."""
        pasted = [self._clone_with_offset(n) for n in nodes if not n.is_placeholder]
        if not pasted:
            return []

        changes = [NodeSelect(n.id, False) for n in self._store.selected_nodes()]
        changes.extend(NodeAdd(n) for n in pasted)
        self._store.apply_node_changes(changes)

        for node in pasted:
            self._track(node.kind, "paste")
        logger.info(f"Pasted {len(pasted)} nodes")
        return pasted

    def select_all(self) -> None:
        self._store.apply_node_changes([
            NodeSelect(n.id, True) for n in self._store.nodes if not n.selected
        ])

    # -- Edges --

    def connect(self, connection: Connection) -> Optional[Edge]:
        """Create a persistent edge if the validator accepts ``connection``."""
        if not self._validator.is_valid_connection(connection):
            return None

        edge = Edge(
            id=new_id(),
            source=connection.source,
            target=connection.target,
            source_handle=connection.source_handle,
            target_handle=connection.target_handle,
        )
        self._store.apply_edge_changes([EdgeAdd(edge)])
        return edge

    # -- Drag-to-create --

    def start_connection(self) -> None:
        """A new connection drag begins: discard leftovers of an aborted one."""
        node_changes, edge_changes = self._clear_drag_artifacts()
        self._store.apply(node_changes=node_changes, edge_changes=edge_changes)

    def handle_connection_abort(self, event: ConnectionDragEnd) -> Optional[Node]:
        """Drop a placeholder + temporary edge where a connection drag ended on empty canvas."""
        if event.is_valid or not event.from_node_id:
            return None

        origin = self._store.get_node(event.from_node_id)
        if origin is None or origin.is_placeholder:
            return None

        from_source_handle = event.from_handle_type == "source"
        placeholder = self._build_node(
            PLACEHOLDER_KIND,
            self._view.to_logical(event.pointer),
            {"isSource": not from_source_handle},
        )
        if from_source_handle:
            edge = Edge(
                id=new_id(),
                source=origin.id,
                target=placeholder.id,
                source_handle=event.from_handle_id,
                kind=EdgeKind.TEMPORARY,
            )
        else:
            edge = Edge(
                id=new_id(),
                source=placeholder.id,
                target=origin.id,
                target_handle=event.from_handle_id,
                kind=EdgeKind.TEMPORARY,
            )

        node_changes, edge_changes = self._clear_drag_artifacts()
        node_changes.append(NodeAdd(placeholder))
        edge_changes.append(EdgeAdd(edge))
        self._store.apply(node_changes=node_changes, edge_changes=edge_changes)
        self._track(PLACEHOLDER_KIND, "connection")
        return placeholder

    def add_placeholder_at(self, pointer: Point) -> Node:
        """Double-click / context-menu "add a new node here"."""
        placeholder = self._build_node(PLACEHOLDER_KIND, self._view.to_logical(pointer), None)
        node_changes, edge_changes = self._clear_drag_artifacts()
        node_changes.append(NodeAdd(placeholder))
        self._store.apply(node_changes=node_changes, edge_changes=edge_changes)
        self._track(PLACEHOLDER_KIND, "canvas")
        return placeholder

    def finalize_placeholder(
        self,
        node_id: str,
        kind: str,
        data: Optional[Dict[str, Any]] = None,
    ) -> Optional[Node]:
        """Turn a placeholder into a ``kind`` node and make its edge persistent.

        The temporary edge is kept only if the new kind may be wired that way;
        otherwise it is dropped and the node stays unconnected.
        """
        placeholder = self._store.get_node(node_id)
        if placeholder is None or not placeholder.is_placeholder:
            return None
        if kind == PLACEHOLDER_KIND:
            raise ValueError("a placeholder must be finalized to a real node kind")

        node = self._build_node(kind, placeholder.position, data, placeholder.selected)
        node = node.clone(id=placeholder.id, measured=placeholder.measured)

        edge_changes = []
        for edge in self._store.edges_for_node(node.id):
            if not edge.is_temporary:
                continue
            if self._edge_allowed_after_finalize(edge, node):
                edge_changes.append(EdgeReplace(edge.id, Edge(
                    id=edge.id,
                    source=edge.source,
                    target=edge.target,
                    source_handle=edge.source_handle,
                    target_handle=edge.target_handle,
                    kind=EdgeKind.PERSISTENT,
                )))
            else:
                logger.debug(f"Dropping edge {edge.id}: {kind} cannot be wired to its origin")
                edge_changes.append(EdgeRemove(edge.id))

        self._store.apply(node_changes=[NodeReplace(node.id, node)], edge_changes=edge_changes)
        self._track(kind, "placeholder")
        return node

    def _edge_allowed_after_finalize(self, edge: Edge, node: Node) -> bool:
        def kind_of(node_id: str) -> Optional[str]:
            if node_id == node.id:
                return node.kind
            other = self._store.get_node(node_id)
            return other.kind if other else None

        source_kind = kind_of(edge.source)
        target_kind = kind_of(edge.target)
        if source_kind is None or target_kind is None:
            return False
        if not self._registry.can_connect(source_kind, target_kind):
            return False
        return not self._validator.would_create_cycle(edge.source, edge.target)

    def _clear_drag_artifacts(self) -> tuple[list, list]:
        node_changes = [NodeRemove(n.id) for n in self._store.placeholder_nodes()]
        edge_changes = [EdgeRemove(e.id) for e in self._store.temporary_edges()]
        return node_changes, edge_changes

    # -- Derived nodes --

    def spawn_derived_node(
        self,
        source_id: str,
        kind: str,
        data: Optional[Dict[str, Any]] = None,
        connect: bool = True,
    ) -> Optional[Node]:
        """Create a node to the right of ``source_id``, selected, wired from it."""
        source = self._store.get_node(source_id)
        if source is None:
            return None

        node = self._build_node(kind, derived_node_position(source), data, selected=True)
        node_changes = [NodeSelect(source.id, False), NodeAdd(node)]
        edge_changes = []
        if connect and self._registry.can_connect(source.kind, node.kind):
            edge_changes.append(EdgeAdd(Edge(
                id=f"edge-{source.id}-{node.id}",
                source=source.id,
                target=node.id,
            )))

        self._store.apply(node_changes=node_changes, edge_changes=edge_changes)
        self._track(node.kind, "derived")
        return node

    def spawn_grid(
        self,
        source_id: str,
        kind: str,
        items: Sequence[Dict[str, Any]],
        columns: Optional[int] = None,
        spacing: Optional[float] = None,
        connect: bool = True,
    ) -> List[Node]:
        """Create one node per payload in ``items``, laid out in a grid beside the source."""
        source = self._store.get_node(source_id)
        if source is None or not items:
            return []

        positions = grid_positions(source, len(items), columns=columns, spacing=spacing)
        nodes = [
            self._build_node(kind, position, item)
            for position, item in zip(positions, items)
        ]
        edge_changes = []
        if connect and self._registry.can_connect(source.kind, kind):
            edge_changes = [
                EdgeAdd(Edge(id=f"edge-{source.id}-{n.id}", source=source.id, target=n.id))
                for n in nodes
            ]

        self._store.apply(node_changes=[NodeAdd(n) for n in nodes], edge_changes=edge_changes)
        for node in nodes:
            self._track(node.kind, "derived")
        return nodes

    # -- Files --

    async def create_node_from_file(
        self,
        data: bytes,
        name: str,
        mime_type: str,
        position: Optional[Point] = None,
        source: str = "drop",
        kind: Optional[str] = None,
    ) -> Node:
        """Upload a file and create a node showing it.

        The node is placed at ``position`` or at the centre of the viewport as
        it is when the upload finishes. Upload errors propagate and nothing is
        added to the graph.

        The kind follows the uploaded MIME type unless ``kind`` is given.
        """
        if self._file_storage is None:
            raise RuntimeError("no file storage configured")

        uploaded = await self._file_storage.upload(
            data, bucket=settings.UPLOAD_BUCKET, name=name, mime_type=mime_type,
        )
        return self.add_node(
            kind or kind_for_mime_type(uploaded.mime_type),
            position=position or self._view.center(),
            data={"url": uploaded.url, "mimeType": uploaded.mime_type, "name": name},
            source=source,
        )

    # -- Helpers --

    def _build_node(
        self,
        kind: str,
        position: Optional[Point],
        data: Optional[Dict[str, Any]],
        selected: bool = False,
    ) -> Node:
        merged = self._registry.default_data(kind)
        merged.update(copy.deepcopy(data or {}))
        return Node(
            id=new_id(),
            kind=kind,
            position=position or Point(0.0, 0.0),
            data=merged,
            selected=selected,
        )

    @staticmethod
    def _clone_with_offset(node: Node) -> Node:
        offset = settings.DUPLICATE_OFFSET
        return node.clone(
            id=new_id(),
            position=node.position.offset(offset, offset),
            selected=True,
        )

    def _track(self, kind: str, source: str) -> None:
        if self._analytics is None:
            return
        try:
            self._analytics.track("toolbar", "node", "added", {"type": kind, "source": source})
        except Exception as e:
            logger.warning(f"Analytics event failed for {kind}: {e}")
