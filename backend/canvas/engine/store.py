"""Graph State Store: the single source of truth for one editing session.

Holds the node and edge collections and applies incremental change sets. A
call to ``apply_node_changes`` / ``apply_edge_changes`` / ``apply`` is one
commit: the changes are folded over working copies, the result is checked
against the graph invariants, and only then swapped in and announced to
subscribers (the persistence coordinator). A change set that would break an
invariant raises ``GraphIntegrityError`` and leaves the store untouched.

Invariants checked on every commit:
- every edge references existing nodes (node removal cascades to its edges)
- node ids and edge ids are unique (adding an existing id replaces in place)
- at most one temporary edge and at most one placeholder node
- persistent edges form a DAG (temporary edges are not counted)
"""

from __future__ import annotations

import logging
from dataclasses import replace
from typing import Any, Callable, Dict, Iterable, List, Mapping, Optional

from .errors import GraphIntegrityError, SnapshotError
from .models import (
    Edge,
    EdgeAdd,
    EdgeChange,
    EdgeRemove,
    EdgeReplace,
    EdgeSelect,
    Node,
    NodeAdd,
    NodeChange,
    NodeDimensions,
    NodePosition,
    NodeRemove,
    NodeReplace,
    NodeSelect,
)
from .validator import find_cycle

logger = logging.getLogger(__name__)

Listener = Callable[[], None]


class GraphStore:
    """In-memory node / edge collections with change-set application."""

    def __init__(
        self,
        nodes: Optional[Iterable[Node]] = None,
        edges: Optional[Iterable[Edge]] = None,
    ):
        self._nodes: Dict[str, Node] = {n.id: n for n in nodes or []}
        self._edges: Dict[str, Edge] = {e.id: e for e in edges or []}
        self._check_invariants(self._nodes, self._edges)
        self._listeners: List[Listener] = []

    # -- Accessors --

    @property
    def nodes(self) -> List[Node]:
        return list(self._nodes.values())

    @property
    def edges(self) -> List[Edge]:
        return list(self._edges.values())

    def get_node(self, node_id: Optional[str]) -> Optional[Node]:
        if node_id is None:
            return None
        return self._nodes.get(node_id)

    def get_edge(self, edge_id: str) -> Optional[Edge]:
        return self._edges.get(edge_id)

    def persistent_edges(self) -> List[Edge]:
        return [e for e in self._edges.values() if not e.is_temporary]

    def temporary_edges(self) -> List[Edge]:
        return [e for e in self._edges.values() if e.is_temporary]

    def placeholder_nodes(self) -> List[Node]:
        return [n for n in self._nodes.values() if n.is_placeholder]

    def selected_nodes(self) -> List[Node]:
        return [n for n in self._nodes.values() if n.selected]

    def edges_for_node(self, node_id: str) -> List[Edge]:
        return [e for e in self._edges.values()
                if e.source == node_id or e.target == node_id]

    # -- Subscribers --

    def subscribe(self, listener: Listener) -> Callable[[], None]:
        """Register a commit listener. Returns a function that unregisters it."""
        self._listeners.append(listener)

        def unsubscribe() -> None:
            if listener in self._listeners:
                self._listeners.remove(listener)

        return unsubscribe

    # -- Mutation --

    def apply_node_changes(self, changes: Iterable[NodeChange]) -> List[Node]:
        self.apply(node_changes=changes)
        return self.nodes

    def apply_edge_changes(self, changes: Iterable[EdgeChange]) -> List[Edge]:
        self.apply(edge_changes=changes)
        return self.edges

    def apply(
        self,
        node_changes: Iterable[NodeChange] = (),
        edge_changes: Iterable[EdgeChange] = (),
    ) -> None:
        """Apply node changes, then edge changes, as a single commit."""
        node_changes = list(node_changes)
        edge_changes = list(edge_changes)
        if not node_changes and not edge_changes:
            return

        nodes = dict(self._nodes)
        edges = dict(self._edges)
        for change in node_changes:
            self._apply_node_change(change, nodes, edges)
        for change in edge_changes:
            self._apply_edge_change(change, edges)

        self._check_invariants(nodes, edges)
        self._nodes = nodes
        self._edges = edges
        self._notify()

    def add_nodes(self, *nodes: Node) -> None:
        self.apply(node_changes=[NodeAdd(n) for n in nodes])

    def add_edges(self, *edges: Edge) -> None:
        self.apply(edge_changes=[EdgeAdd(e) for e in edges])

    def remove_nodes(self, *node_ids: str) -> None:
        self.apply(node_changes=[NodeRemove(nid) for nid in node_ids])

    def remove_edges(self, *edge_ids: str) -> None:
        self.apply(edge_changes=[EdgeRemove(eid) for eid in edge_ids])

    @staticmethod
    def _apply_node_change(change: NodeChange, nodes: Dict[str, Node], edges: Dict[str, Edge]) -> None:
        if isinstance(change, NodeAdd):
            nodes[change.item.id] = change.item
            return

        node = nodes.get(change.id)
        if node is None:
            # Changes for nodes that are already gone are dropped silently
            logger.debug(f"Ignoring {type(change).__name__} for unknown node {change.id}")
            return

        if isinstance(change, NodePosition):
            nodes[node.id] = node.clone(position=change.position)
        elif isinstance(change, NodeSelect):
            nodes[node.id] = node.clone(selected=change.selected)
        elif isinstance(change, NodeDimensions):
            nodes[node.id] = node.clone(measured=change.dimensions)
        elif isinstance(change, NodeReplace):
            if change.item.id != change.id:
                raise GraphIntegrityError(
                    f"replacement for node {change.id} carries id {change.item.id}"
                )
            nodes[node.id] = change.item
        elif isinstance(change, NodeRemove):
            del nodes[node.id]
            for edge_id in [eid for eid, e in edges.items()
                            if e.source == node.id or e.target == node.id]:
                del edges[edge_id]
        else:
            raise TypeError(f"unsupported node change: {change!r}")

    @staticmethod
    def _apply_edge_change(change: EdgeChange, edges: Dict[str, Edge]) -> None:
        if isinstance(change, EdgeAdd):
            edges[change.item.id] = change.item
        elif isinstance(change, EdgeSelect):
            edge = edges.get(change.id)
            if edge is not None:
                edges[change.id] = replace(edge, selected=change.selected)
        elif isinstance(change, EdgeReplace):
            if change.id not in edges:
                logger.debug(f"Ignoring EdgeReplace for unknown edge {change.id}")
                return
            if change.item.id != change.id:
                raise GraphIntegrityError(
                    f"replacement for edge {change.id} carries id {change.item.id}"
                )
            edges[change.id] = change.item
        elif isinstance(change, EdgeRemove):
            edges.pop(change.id, None)
        else:
            raise TypeError(f"unsupported edge change: {change!r}")

    @staticmethod
    def _check_invariants(nodes: Mapping[str, Node], edges: Mapping[str, Edge]) -> None:
        for edge in edges.values():
            if edge.source not in nodes:
                raise GraphIntegrityError(f"edge {edge.id}: source node '{edge.source}' not found")
            if edge.target not in nodes:
                raise GraphIntegrityError(f"edge {edge.id}: target node '{edge.target}' not found")

        temporary = [e.id for e in edges.values() if e.is_temporary]
        if len(temporary) > 1:
            raise GraphIntegrityError(f"more than one temporary edge: {temporary}")

        placeholders = [n.id for n in nodes.values() if n.is_placeholder]
        if len(placeholders) > 1:
            raise GraphIntegrityError(f"more than one placeholder node: {placeholders}")

        cycle = find_cycle(e for e in edges.values() if not e.is_temporary)
        if cycle:
            raise GraphIntegrityError(f"cycle detected: {' -> '.join(cycle)}")

    def _notify(self) -> None:
        for listener in list(self._listeners):
            listener()

    # -- Serialisation --

    def snapshot(self) -> Dict[str, Any]:
        """Deep, JSON-serializable copy of the graph for persistence.

        Drag artifacts (placeholder nodes, temporary edges) are left out.
        """
        return {
            "nodes": [n.to_dict() for n in self._nodes.values() if not n.is_placeholder],
            "edges": [e.to_dict() for e in self._edges.values()
                      if not e.is_temporary
                      and not self._nodes[e.source].is_placeholder
                      and not self._nodes[e.target].is_placeholder],
        }

    @classmethod
    def from_snapshot(cls, snapshot: Any) -> "GraphStore":
        """Build a store from a persisted snapshot.

        Raises:
            SnapshotError: If the snapshot is malformed or violates an invariant
        """
        if not isinstance(snapshot, Mapping):
            raise SnapshotError(f"snapshot must be a mapping, got {type(snapshot).__name__}")

        raw_nodes = snapshot.get("nodes") or []
        raw_edges = snapshot.get("edges") or []
        if not isinstance(raw_nodes, list) or not isinstance(raw_edges, list):
            raise SnapshotError("snapshot nodes and edges must be lists")

        try:
            nodes = [Node.from_dict(d) for d in raw_nodes]
            edges = [Edge.from_dict(d) for d in raw_edges]
        except (KeyError, TypeError, ValueError, AttributeError) as e:
            raise SnapshotError(f"malformed snapshot entry: {e}") from e

        # Drag artifacts are never restored
        nodes = [n for n in nodes if not n.is_placeholder]
        edges = [e for e in edges if not e.is_temporary]

        node_ids = [n.id for n in nodes]
        if len(node_ids) != len(set(node_ids)):
            duplicates = {nid for nid in node_ids if node_ids.count(nid) > 1}
            raise SnapshotError(f"duplicate node IDs found: {duplicates}")
        edge_ids = [e.id for e in edges]
        if len(edge_ids) != len(set(edge_ids)):
            duplicates = {eid for eid in edge_ids if edge_ids.count(eid) > 1}
            raise SnapshotError(f"duplicate edge IDs found: {duplicates}")

        try:
            return cls(nodes, edges)
        except GraphIntegrityError as e:
            raise SnapshotError(str(e)) from e
