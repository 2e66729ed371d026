"""Persistence Coordinator

Debounced, single-flight saving of a session's snapshot.

- every store commit calls ``notify()``, which (re)starts the quiescence timer
- when the timer fires while a save is running, it is re-armed instead of
  starting a second save
- the snapshot is taken when the save starts, never when the mutation happened
- a failed save is reported and recorded; the next mutation retries with the
  then-current snapshot
"""

from __future__ import annotations

import asyncio
import logging
from dataclasses import dataclass
from datetime import datetime, timezone
from typing import TYPE_CHECKING, Any, Callable, Dict, Optional

from .. import settings

if TYPE_CHECKING:
    from ..collaborators import Notifier, Persistence

logger = logging.getLogger(__name__)

SnapshotSource = Callable[[], Dict[str, Any]]


@dataclass
class SaveState:
    is_saving: bool = False
    last_saved_at: Optional[datetime] = None
    last_error: Optional[str] = None

    def to_dict(self) -> Dict[str, Any]:
        return {
            "isSaving": self.is_saving,
            "lastSavedAt": self.last_saved_at.isoformat() if self.last_saved_at else None,
            "lastError": self.last_error,
        }


class PersistenceCoordinator:
    """Writes ``snapshot_source()`` to ``persistence`` after edits settle."""

    def __init__(
        self,
        project_id: str,
        snapshot_source: SnapshotSource,
        persistence: "Persistence",
        notifier: Optional["Notifier"] = None,
        debounce_seconds: Optional[float] = None,
    ):
        self.project_id = project_id
        self._snapshot_source = snapshot_source
        self._persistence = persistence
        self._notifier = notifier
        self._debounce = settings.SAVE_DEBOUNCE_SECONDS if debounce_seconds is None else debounce_seconds

        self.state = SaveState()
        self._timer: Optional[asyncio.TimerHandle] = None
        self._save_task: Optional[asyncio.Task] = None
        self._dirty = False
        self._closed = False

    @property
    def is_dirty(self) -> bool:
        return self._dirty

    def notify(self) -> None:
        """Record a mutation and restart the debounce window."""
        if self._closed:
            return
        self._dirty = True
        try:
            asyncio.get_running_loop()
        except RuntimeError:
            # No loop: stays pending until the next flush()
            logger.debug(f"Project {self.project_id}: mutation recorded without a running loop")
            return
        self._arm()

    def _arm(self) -> None:
        if self._timer is not None:
            self._timer.cancel()
        loop = asyncio.get_running_loop()
        self._timer = loop.call_later(self._debounce, self._fire)

    def _fire(self) -> None:
        self._timer = None
        if self._save_task is not None and not self._save_task.done():
            logger.debug(f"Project {self.project_id}: save in flight, re-arming")
            self._arm()
            return
        self._save_task = asyncio.get_running_loop().create_task(self._save())

    async def _save(self) -> None:
        snapshot = self._snapshot_source()
        self._dirty = False
        self.state.is_saving = True
        try:
            await self._persistence.save(self.project_id, snapshot)
        except Exception as e:
            # Leave the mutation pending so flush() and the next edit retry it
            self._dirty = True
            self.state.last_error = str(e)
            logger.error(f"Failed to save project {self.project_id}: {e}")
            if self._notifier is not None:
                self._notifier.error("Failed to save project", str(e))
        else:
            self.state.last_saved_at = datetime.now(timezone.utc)
            self.state.last_error = None
            logger.info(
                f"Saved project {self.project_id} "
                f"({len(snapshot.get('nodes', []))} nodes, {len(snapshot.get('edges', []))} edges)"
            )
        finally:
            self.state.is_saving = False

    async def flush(self) -> None:
        """Save now if there are unsaved mutations, after any in-flight save."""
        if self._timer is not None:
            self._timer.cancel()
            self._timer = None
        if self._save_task is not None and not self._save_task.done():
            await self._save_task
        if self._dirty:
            self._save_task = asyncio.get_running_loop().create_task(self._save())
            await self._save_task

    async def close(self) -> None:
        await self.flush()
        self._closed = True
