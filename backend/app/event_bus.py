"""Project-scoped SSE Event Bus.

Every editor that has a project open subscribes to that project's stream and
receives the events pushed for it: ``saved`` after a content write, ``toast``
for notifications, ``project_deleted`` as the final event of a stream.

Architecture:
  - In-process callers (project routes, EventBusNotifier) use EventBus.push()
  - Out-of-process sessions use HTTP POST to /api/internal/events/{project_id}
    which delegates to EventBus.push()
  - Clients subscribe via EventBus.subscribe() which returns an async generator

Event Envelope:
  {
    "event": "<event_type>",
    "data": {
      "project_id": "<project_id>",
      "timestamp": "<ISO 8601>",
      ...payload
    }
  }
"""

from __future__ import annotations

import asyncio
import json
import time
from datetime import datetime, timezone
from typing import AsyncGenerator, Dict, List, Optional

from fastapi import APIRouter
from pydantic import BaseModel

from canvas.logging_config import get_sse_logger

logger = get_sse_logger()

router = APIRouter()

# Buffer limits: prevent unbounded memory growth for projects nobody watches
BUFFER_MAX_EVENTS = 50
BUFFER_MAX_AGE_SECS = 300

# Stop signals: events that tell the SSE generator to close the connection
STOP_EVENTS = frozenset({"project_deleted"})


class EventBus:
    """Fan-out of project events to every connected subscriber.

    Events pushed while nobody is subscribed are buffered and replayed to the
    first subscriber.
    """

    def __init__(
        self,
        buffer_max_events: int = BUFFER_MAX_EVENTS,
        buffer_max_age_secs: int = BUFFER_MAX_AGE_SECS,
    ):
        self._streams: Dict[str, List[asyncio.Queue]] = {}
        self._buffers: Dict[str, dict] = {}
        self._buffer_max_events = buffer_max_events
        self._buffer_max_age_secs = buffer_max_age_secs
        self._lock = asyncio.Lock()

    def subscriber_count(self, project_id: str) -> int:
        return len(self._streams.get(project_id, []))

    def push(self, project_id: str, event_type: str, data: dict) -> None:
        """Deliver an event to every subscriber of a project, or buffer it.

        Synchronous: there are no await points, so no lock is needed here.
        """
        data = {"project_id": project_id, **data}
        if "timestamp" not in data:
            data["timestamp"] = datetime.now(timezone.utc).isoformat()

        event = {"event": event_type, "data": data}
        queues = self._streams.get(project_id)
        if queues:
            for queue in queues:
                queue.put_nowait(event)
            logger.info(f"Event sent: {event_type} for {project_id} ({len(queues)} subscribers)")
        else:
            self._buffer_event(project_id, event, event_type)

    async def subscribe(
        self,
        project_id: str,
        stop_events: Optional[frozenset] = None,
        keepalive_interval: float = 30.0,
    ) -> AsyncGenerator[str, None]:
        """Subscribe to a project's events, yielding SSE-formatted strings."""
        if stop_events is None:
            stop_events = STOP_EVENTS

        logger.info(f"Client subscribed: {project_id}")
        queue: asyncio.Queue = asyncio.Queue()

        async with self._lock:
            self._streams.setdefault(project_id, []).append(queue)
            buf = self._buffers.pop(project_id, None)

        buffered = buf["events"] if buf else []
        if buffered:
            logger.info(f"Flushing {len(buffered)} buffered events for {project_id}")
        try:
            for event in buffered:
                yield _format_sse(event)
                if event.get("event") in stop_events:
                    return

            while True:
                try:
                    event = await asyncio.wait_for(queue.get(), timeout=keepalive_interval)
                    if event is None:  # Sentinel to stop
                        break
                    yield _format_sse(event)

                    if event.get("event") in stop_events:
                        break
                except asyncio.TimeoutError:
                    yield ": keepalive\n\n"
        finally:
            async with self._lock:
                queues = self._streams.get(project_id, [])
                if queue in queues:
                    queues.remove(queue)
                if not queues:
                    self._streams.pop(project_id, None)
            logger.info(f"Client unsubscribed: {project_id}")

    def close_project(self, project_id: str) -> None:
        """Stop every stream of a project and drop its buffer."""
        for queue in self._streams.get(project_id, []):
            queue.put_nowait(None)
        self._buffers.pop(project_id, None)

    def _buffer_event(self, project_id: str, event: dict, event_type: str) -> None:
        if project_id not in self._buffers:
            self._cleanup_stale_buffers()
            self._buffers[project_id] = {
                "events": [],
                "created_at": time.monotonic(),
            }

        buf = self._buffers[project_id]
        if len(buf["events"]) < self._buffer_max_events:
            buf["events"].append(event)
            logger.info(f"Event buffered ({len(buf['events'])}): {event_type} for {project_id}")
        else:
            logger.warning(
                f"Buffer full ({self._buffer_max_events}), dropping: {event_type} for {project_id}"
            )

    def _cleanup_stale_buffers(self) -> None:
        now = time.monotonic()
        stale = [
            pid
            for pid, buf in self._buffers.items()
            if now - buf["created_at"] > self._buffer_max_age_secs
        ]
        for pid in stale:
            removed = self._buffers.pop(pid, None)
            if removed:
                logger.info(f"Cleaned up stale buffer for {pid} ({len(removed['events'])} events)")


def _format_sse(event: dict) -> str:
    """Format an event dict as an SSE string."""
    return f"event: {event['event']}\ndata: {json.dumps(event['data'])}\n\n"


class EventBusNotifier:
    """Notifier that pushes ``toast`` events onto a project's stream."""

    def __init__(self, project_id: str, bus: Optional[EventBus] = None):
        self.project_id = project_id
        self._bus = bus

    @property
    def bus(self) -> EventBus:
        return self._bus or get_event_bus()

    def error(self, title: str, message: str = "") -> None:
        self.bus.push(self.project_id, "toast", {"level": "error", "title": title, "message": message})

    def info(self, title: str, message: str = "") -> None:
        self.bus.push(self.project_id, "toast", {"level": "info", "title": title, "message": message})


# --- Singleton ---

_bus: Optional[EventBus] = None


def get_event_bus() -> EventBus:
    """Get the global EventBus singleton."""
    global _bus
    if _bus is None:
        _bus = EventBus()
    return _bus


def push_event(project_id: str, event_type: str, data: dict) -> None:
    get_event_bus().push(project_id, event_type, data)


# --- Internal API for cross-process push (out-of-process sessions) ---


class InternalEventRequest(BaseModel):
    event_type: str
    data: dict


@router.post("/api/internal/events/{project_id}")
async def push_event_endpoint(project_id: str, payload: InternalEventRequest):
    """Internal endpoint for cross-process SSE event push."""
    logger.info(f"Received event via API: {payload.event_type} for {project_id}")
    get_event_bus().push(project_id, payload.event_type, payload.data)
    return {"status": "ok", "project_id": project_id}
