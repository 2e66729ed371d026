"""CanvasSession: one open project.

Wires a GraphStore to its validator, operations, clipboard bridge and
persistence coordinator, and owns the view state they share. Every store
commit is forwarded to the coordinator, which saves after edits settle.

Usage:
    async with await CanvasSession.open("p-1", persistence=client, file_storage=client) as session:
        node = session.operations.add_node("text")
"""

from __future__ import annotations

import logging
from typing import Any, Dict, Optional

from .collaborators import (
    Analytics,
    FileStorage,
    LoggingAnalytics,
    LoggingNotifier,
    Notifier,
    Persistence,
    SystemClipboard,
)
from .engine.clipboard import ClipboardBridge
from .engine.coordinates import Viewport, ViewState
from .engine.errors import SnapshotError
from .engine.operations import NodeOperations
from .engine.persistence import PersistenceCoordinator
from .engine.store import GraphStore
from .engine.validator import ConnectionValidator
from .nodes.registry import NodeKindRegistry, create_default_registry

logger = logging.getLogger(__name__)


class CanvasSession:
    """Composition root for one editing session."""

    def __init__(
        self,
        project_id: str,
        persistence: Persistence,
        store: Optional[GraphStore] = None,
        registry: Optional[NodeKindRegistry] = None,
        view: Optional[ViewState] = None,
        file_storage: Optional[FileStorage] = None,
        analytics: Optional[Analytics] = None,
        notifier: Optional[Notifier] = None,
        system_clipboard: Optional[SystemClipboard] = None,
        debounce_seconds: Optional[float] = None,
    ):
        self.project_id = project_id
        self.store = store or GraphStore()
        self.registry = registry or create_default_registry()
        self.view = view or ViewState()
        self.notifier = notifier or LoggingNotifier()

        self.validator = ConnectionValidator(self.store, self.registry)
        self.operations = NodeOperations(
            self.store,
            self.registry,
            self.validator,
            view=self.view,
            analytics=analytics or LoggingAnalytics(),
            file_storage=file_storage,
        )
        self.clipboard = ClipboardBridge(
            self.store,
            self.operations,
            system_clipboard=system_clipboard,
            notifier=self.notifier,
        )
        self.persistence = PersistenceCoordinator(
            project_id,
            self.snapshot,
            persistence,
            notifier=self.notifier,
            debounce_seconds=debounce_seconds,
        )
        self._unsubscribe = self.store.subscribe(self.persistence.notify)

    @classmethod
    async def open(
        cls,
        project_id: str,
        persistence: Persistence,
        **kwargs: Any,
    ) -> "CanvasSession":
        """Load a project and start a session on it.

        A missing snapshot opens an empty canvas. A corrupt one does too, with a
        warning; it is only overwritten once the user edits. Load errors propagate.
        """
        raw = await persistence.load(project_id)
        store = GraphStore()
        viewport = None
        if raw is not None:
            try:
                store = GraphStore.from_snapshot(raw)
                if isinstance(raw.get("viewport"), dict):
                    viewport = Viewport.from_dict(raw["viewport"])
            except (SnapshotError, ValueError, TypeError) as e:
                logger.warning(f"Project {project_id}: corrupt snapshot, opening empty canvas: {e}")
                store = GraphStore()

        session = cls(project_id, persistence, store=store, **kwargs)
        if viewport is not None:
            session.view.viewport = viewport
        logger.info(f"Opened project {project_id} with {len(store.nodes)} nodes, {len(store.edges)} edges")
        return session

    def snapshot(self) -> Dict[str, Any]:
        snapshot = self.store.snapshot()
        snapshot["viewport"] = self.view.viewport.to_dict()
        return snapshot

    def set_viewport(self, viewport: Viewport) -> None:
        """Pan / zoom. Saved with the next snapshot; does not trigger a save by itself."""
        self.view.viewport = viewport

    def resize(self, width: float, height: float) -> None:
        self.view.screen_width = width
        self.view.screen_height = height

    async def close(self) -> None:
        self._unsubscribe()
        await self.persistence.close()

    async def __aenter__(self) -> "CanvasSession":
        return self

    async def __aexit__(self, *exc_info: Any) -> None:
        await self.close()
