"""Collaborator interfaces the graph engine calls but does not implement.

Each collaborator is a Protocol so that the API client, the in-process
database adapters and test doubles can all be injected interchangeably.
LoggingAnalytics and LoggingNotifier are the default sinks when a session is
built without real ones.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Any, Dict, Optional, Protocol

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class UploadResult:
    """Where an uploaded blob ended up."""

    url: str
    mime_type: str

    def to_dict(self) -> Dict[str, str]:
        return {"url": self.url, "mimeType": self.mime_type}


@dataclass(frozen=True)
class ClipboardImage:
    """Image data read from the platform clipboard."""

    data: bytes
    mime_type: str
    name: str = ""

    @property
    def filename(self) -> str:
        if self.name:
            return self.name
        extension = self.mime_type.split("/", 1)[1] if "/" in self.mime_type else ""
        return f"clipboard-image.{extension or 'png'}"


class Persistence(Protocol):
    """Stores and restores project snapshots."""

    async def save(self, project_id: str, snapshot: Dict[str, Any]) -> None:
        ...

    async def load(self, project_id: str) -> Optional[Dict[str, Any]]:
        ...


class FileStorage(Protocol):
    """Turns a binary blob into a URL a node can reference."""

    async def upload(
        self,
        data: bytes,
        bucket: str,
        name: str,
        mime_type: str,
    ) -> UploadResult:
        ...


class Analytics(Protocol):
    """Fire-and-forget event sink."""

    def track(
        self,
        category: str,
        kind: str,
        action: str,
        metadata: Optional[Dict[str, Any]] = None,
    ) -> None:
        ...


class Notifier(Protocol):
    """Surfaces failures (and the occasional success) as user-visible toasts."""

    def error(self, title: str, message: str = "") -> None:
        ...

    def info(self, title: str, message: str = "") -> None:
        ...


class SystemClipboard(Protocol):
    """Platform clipboard access.

    ``read_image`` returns None when the clipboard holds no image and may raise
    when access is unsupported or permission is denied.
    """

    async def read_image(self) -> Optional[ClipboardImage]:
        ...


class LoggingAnalytics:
    """Analytics sink that writes events to the ``canvas.analytics`` logger."""

    def __init__(self, logger_name: str = "canvas.analytics"):
        self._logger = logging.getLogger(logger_name)

    def track(
        self,
        category: str,
        kind: str,
        action: str,
        metadata: Optional[Dict[str, Any]] = None,
    ) -> None:
        self._logger.info(f"{category}.{kind}.{action} {metadata or {}}")


class LoggingNotifier:
    """Notifier that only logs; used when no UI is attached."""

    def __init__(self, logger_name: str = "canvas.notifications"):
        self._logger = logging.getLogger(logger_name)

    def error(self, title: str, message: str = "") -> None:
        self._logger.error(f"{title}: {message}" if message else title)

    def info(self, title: str, message: str = "") -> None:
        self._logger.info(f"{title}: {message}" if message else title)
