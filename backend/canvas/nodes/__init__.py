"""Node-kind registry and built-in kinds."""

from .registry import (
    NodeKindDefinition,
    NodeKindRegistry,
    create_default_registry,
)

__all__ = ["NodeKindDefinition", "NodeKindRegistry", "create_default_registry"]
