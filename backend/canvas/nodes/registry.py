"""Node-Kind Registry

This module maps a node kind tag to a small capability bundle instead of a
class hierarchy: the graph engine holds no knowledge of what any kind does and
resolves everything kind-specific through the registry at the call site.

Key Components:
- NodeKindDefinition: Metadata, default data and connection rules for a kind
- NodeKindRegistry: Explicitly constructed registry instance
- create_default_registry: Registry pre-loaded with the built-in kinds

Design Principles:
- One registry instance per session, injected rather than global
- Compatibility is answered by both ends: the source kind says what it may
  feed, the target kind says what it accepts
- Unknown kinds are never compatible with anything
"""

from __future__ import annotations

import copy
import logging
from dataclasses import dataclass, field
from typing import Any, Callable, Dict, List, Optional

from ..engine.errors import UnknownNodeKindError

logger = logging.getLogger(__name__)

KindPredicate = Callable[[str], bool]


def _any_kind(kind: str) -> bool:
    return True


@dataclass
class NodeKindDefinition:
    """Metadata definition for a node kind.

    Attributes:
        kind: Unique identifier for the node kind (e.g., "image")
        display_name: Human-readable name for UI display
        description: Brief description of what the node does
        category: Category for grouping (e.g., "media", "transform")
        default_data: Payload every new node of this kind starts from
        can_feed: Predicate over target kinds this kind may feed
        accepts: Predicate over source kinds this kind accepts input from
        renderer: Identifier of the UI component that renders this kind
        icon: Optional icon identifier for UI rendering
        color: Optional color code for UI theming
    """

    kind: str
    display_name: str
    description: str
    category: str
    default_data: Dict[str, Any] = field(default_factory=dict)
    can_feed: KindPredicate = _any_kind
    accepts: KindPredicate = _any_kind
    renderer: Optional[str] = None
    icon: Optional[str] = None
    color: Optional[str] = None

    def __post_init__(self):
        """Validate node kind definition after initialization."""
        if not self.kind:
            raise ValueError("kind cannot be empty")
        if not self.display_name:
            raise ValueError("display_name cannot be empty")
        if not isinstance(self.default_data, dict):
            raise ValueError("default_data must be a dictionary")

    def to_dict(self) -> Dict[str, Any]:
        return {
            "kind": self.kind,
            "display_name": self.display_name,
            "description": self.description,
            "category": self.category,
            "default_data": copy.deepcopy(self.default_data),
            "renderer": self.renderer,
            "icon": self.icon,
            "color": self.color,
        }


class NodeKindRegistry:
    """Lookup table from kind tag to NodeKindDefinition."""

    def __init__(self):
        self._definitions: Dict[str, NodeKindDefinition] = {}

    def register(self, definition: NodeKindDefinition) -> NodeKindDefinition:
        """Register (or replace) a node kind."""
        if definition.kind in self._definitions:
            logger.warning(f"Replacing node kind: {definition.kind}")
        self._definitions[definition.kind] = definition
        logger.debug(f"Registered node kind: {definition.kind} ({definition.display_name})")
        return definition

    def register_kind(
        self,
        kind: str,
        display_name: str,
        description: str,
        category: str,
        default_data: Optional[Dict[str, Any]] = None,
        can_feed: KindPredicate = _any_kind,
        accepts: KindPredicate = _any_kind,
        renderer: Optional[str] = None,
        icon: Optional[str] = None,
        color: Optional[str] = None,
    ) -> NodeKindDefinition:
        """Build and register a definition in one call."""
        return self.register(NodeKindDefinition(
            kind=kind,
            display_name=display_name,
            description=description,
            category=category,
            default_data=default_data or {},
            can_feed=can_feed,
            accepts=accepts,
            renderer=renderer,
            icon=icon,
            color=color,
        ))

    def get(self, kind: str) -> Optional[NodeKindDefinition]:
        return self._definitions.get(kind)

    def require(self, kind: str) -> NodeKindDefinition:
        """Get a definition, raising UnknownNodeKindError if it is missing."""
        definition = self._definitions.get(kind)
        if definition is None:
            raise UnknownNodeKindError(kind, sorted(self._definitions))
        return definition

    def default_data(self, kind: str) -> Dict[str, Any]:
        """Fresh deep copy of a kind's default payload."""
        return copy.deepcopy(self.require(kind).default_data)

    def can_connect(self, source_kind: str, target_kind: str) -> bool:
        """Can a node of ``source_kind`` feed a node of ``target_kind``?"""
        source = self._definitions.get(source_kind)
        target = self._definitions.get(target_kind)
        if source is None or target is None:
            return False
        return bool(source.can_feed(target_kind) and target.accepts(source_kind))

    def is_registered(self, kind: str) -> bool:
        return kind in self._definitions

    def list_kinds(self) -> List[NodeKindDefinition]:
        return list(self._definitions.values())

    def list_kinds_by_category(self, category: str) -> List[NodeKindDefinition]:
        return [
            definition
            for definition in self._definitions.values()
            if definition.category == category
        ]


def create_default_registry() -> NodeKindRegistry:
    """Create a registry with the built-in node kinds registered."""
    from .base import register_builtin_kinds

    registry = NodeKindRegistry()
    register_builtin_kinds(registry)
    return registry
