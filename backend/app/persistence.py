"""In-process collaborators backed by the project database.

DatabasePersistence and DatabaseFileStorage let a CanvasSession run inside the
service process and talk to SQLAlchemy directly instead of over HTTP.
"""

from __future__ import annotations

import logging
from typing import Any, Dict, Optional

from canvas.collaborators import UploadResult
from canvas.engine.errors import CanvasError

from app.database import get_session_ctx
from app.event_bus import push_event
from app.repositories.project import ProjectRepository
from app.repositories.stored_file import StoredFileRepository

logger = logging.getLogger("canvas.app.persistence")

FILES_URL_PREFIX = "/api/v2/files"


def file_url(bucket: str, file_id: str) -> str:
    return f"{FILES_URL_PREFIX}/{bucket}/{file_id}"


class ProjectNotFoundError(CanvasError):
    """Raised when saving to a project that does not exist."""


class DatabasePersistence:
    """Persistence collaborator over ProjectRepository."""

    async def load(self, project_id: str) -> Optional[Dict[str, Any]]:
        async with get_session_ctx() as session:
            project = await ProjectRepository(session).get(project_id)
        if project is None:
            raise ProjectNotFoundError(f"Project '{project_id}' not found")
        return project.content

    async def save(self, project_id: str, snapshot: Dict[str, Any]) -> None:
        async with get_session_ctx() as session:
            project = await ProjectRepository(session).save_content(project_id, snapshot)
        if project is None:
            raise ProjectNotFoundError(f"Project '{project_id}' not found")
        push_event(project_id, "saved", {"saved_at": project.saved_at.isoformat()})
        logger.debug(f"Saved content for project {project_id}")


class DatabaseFileStorage:
    """FileStorage collaborator over StoredFileRepository."""

    async def upload(
        self,
        data: bytes,
        bucket: str,
        name: str,
        mime_type: str,
    ) -> UploadResult:
        async with get_session_ctx() as session:
            stored = await StoredFileRepository(session).create(
                bucket=bucket, data=data, mime_type=mime_type, name=name,
            )
        logger.info(f"Stored file {stored.id} in {bucket} ({stored.size} bytes, {mime_type})")
        return UploadResult(url=file_url(bucket, stored.id), mime_type=mime_type)
