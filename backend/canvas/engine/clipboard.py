"""Clipboard Bridge

Resolves one paste gesture to exactly one outcome, in priority order:

1. An image on the system clipboard (or in the paste event's items) is
   uploaded and placed as an image node at the viewport centre.
2. Nodes copied inside the canvas are pasted at an offset.
3. Nothing happens.

Clipboard read failures fall through to step 2. An upload failure ends the
gesture with a toast and an unchanged graph.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from enum import Enum
from typing import TYPE_CHECKING, List, Optional, Sequence

from ..collaborators import ClipboardImage
from .models import Node

if TYPE_CHECKING:
    from ..collaborators import Notifier, SystemClipboard
    from .operations import NodeOperations
    from .store import GraphStore

logger = logging.getLogger(__name__)


class PasteOutcome(str, Enum):
    IMAGE = "image"
    NODES = "nodes"
    NOTHING = "nothing"
    IGNORED = "ignored"
    FAILED = "failed"


@dataclass(frozen=True)
class PasteItem:
    """One entry of a native paste event."""

    mime_type: str
    data: bytes = b""
    name: str = ""

    @property
    def is_image(self) -> bool:
        return self.mime_type.startswith("image/")


@dataclass(frozen=True)
class PasteEvent:
    """A native paste event as delivered by the host UI."""

    items: Sequence[PasteItem] = field(default_factory=tuple)
    target_is_editable: bool = False

    def first_image(self) -> Optional[ClipboardImage]:
        for item in self.items:
            if item.is_image and item.data:
                return ClipboardImage(data=item.data, mime_type=item.mime_type, name=item.name)
        return None


class ClipboardBridge:
    """Copy / paste for one canvas session."""

    def __init__(
        self,
        store: "GraphStore",
        operations: "NodeOperations",
        system_clipboard: Optional["SystemClipboard"] = None,
        notifier: Optional["Notifier"] = None,
    ):
        self._store = store
        self._operations = operations
        self._system_clipboard = system_clipboard
        self._notifier = notifier
        self._copied: List[Node] = []

    @property
    def copied_nodes(self) -> List[Node]:
        return list(self._copied)

    def copy(self) -> List[Node]:
        """Remember the selected nodes. An empty selection keeps the previous copy."""
        selected = [n.clone() for n in self._store.selected_nodes() if not n.is_placeholder]
        if selected:
            self._copied = selected
            logger.debug(f"Copied {len(selected)} nodes")
        return self.copied_nodes

    async def paste(self, target_is_editable: bool = False) -> PasteOutcome:
        """Keyboard-shortcut paste: consults the system clipboard first."""
        if target_is_editable:
            return PasteOutcome.IGNORED
        return await self._resolve(await self._read_system_image())

    async def handle_paste_event(self, event: PasteEvent) -> PasteOutcome:
        """Native paste event: images come from the event's own items."""
        if event.target_is_editable:
            return PasteOutcome.IGNORED
        return await self._resolve(event.first_image())

    async def _read_system_image(self) -> Optional[ClipboardImage]:
        if self._system_clipboard is None:
            return None
        try:
            return await self._system_clipboard.read_image()
        except Exception as e:
            # Unsupported API or denied permission: behave as if there is no image
            logger.debug(f"System clipboard unavailable: {e}")
            return None

    async def _resolve(self, image: Optional[ClipboardImage]) -> PasteOutcome:
        if image is not None:
            try:
                await self._operations.create_node_from_file(
                    image.data, image.filename, image.mime_type, source="clipboard", kind="image",
                )
            except Exception as e:
                logger.warning(f"Clipboard image upload failed: {e}")
                if self._notifier is not None:
                    self._notifier.error("Failed to paste image", str(e))
                return PasteOutcome.FAILED
            return PasteOutcome.IMAGE

        if self._copied:
            self._operations.paste_nodes(self._copied)
            return PasteOutcome.NODES

        return PasteOutcome.NOTHING
