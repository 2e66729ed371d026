"""Project API endpoints.

CRUD for canvas projects, content read/write and the per-project SSE stream.
Content writes are validated with the same rules the editor enforces, so a
corrupt or cyclic graph is rejected with 422 instead of being stored.
"""

from __future__ import annotations

import logging
from typing import Any, Dict, List, Optional

from fastapi import APIRouter, HTTPException, Query
from fastapi.responses import StreamingResponse
from pydantic import BaseModel, Field

from canvas.engine.coordinates import Viewport
from canvas.engine.errors import SnapshotError
from canvas.engine.store import GraphStore

from app.database import get_session_ctx
from app.event_bus import get_event_bus, push_event
from app.repositories.project import ProjectRepository

logger = logging.getLogger("canvas.routes.projects")

router = APIRouter(prefix="/api/v2/projects", tags=["projects"])


# --- Schemas ---


class ProjectCreate(BaseModel):
    name: str = Field(..., min_length=1, max_length=255)
    user_id: str = Field(..., min_length=1, max_length=64)
    content: Optional[Dict[str, Any]] = None


class ProjectUpdate(BaseModel):
    name: str = Field(..., min_length=1, max_length=255)


class ProjectContent(BaseModel):
    content: Dict[str, Any]


class ProjectContentResponse(BaseModel):
    project_id: str
    content: Optional[Dict[str, Any]] = None
    saved_at: Optional[str] = None


class ProjectResponse(BaseModel):
    id: str
    name: str
    user_id: str
    node_count: int = 0
    edge_count: int = 0
    created_at: str
    updated_at: str
    saved_at: Optional[str] = None


class ProjectListResponse(BaseModel):
    projects: List[ProjectResponse]
    total: int
    page: int
    page_size: int


# --- Endpoints ---


@router.post("", status_code=201, response_model=ProjectResponse)
async def create_project(payload: ProjectCreate):
    content = _normalize_content(payload.content) if payload.content is not None else None
    async with get_session_ctx() as session:
        project = await ProjectRepository(session).create(
            name=payload.name,
            user_id=payload.user_id,
            content=content,
        )
        logger.info(f"Project created: {project.id} ({project.name}) for {project.user_id}")
        return _project_to_response(project)


@router.get("", response_model=ProjectListResponse)
async def list_projects(
    user_id: Optional[str] = Query(None),
    page: int = Query(1, ge=1),
    page_size: int = Query(50, ge=1, le=100),
):
    """List projects, most recently updated first."""
    async with get_session_ctx() as session:
        projects, total = await ProjectRepository(session).list(
            user_id=user_id, page=page, page_size=page_size,
        )
        return ProjectListResponse(
            projects=[_project_to_response(p) for p in projects],
            total=total,
            page=page,
            page_size=page_size,
        )


@router.get("/{project_id}", response_model=ProjectResponse)
async def get_project(project_id: str):
    async with get_session_ctx() as session:
        project = await ProjectRepository(session).get(project_id)
    if not project:
        raise HTTPException(status_code=404, detail=f"Project '{project_id}' not found")
    return _project_to_response(project)


@router.put("/{project_id}", response_model=ProjectResponse)
async def rename_project(project_id: str, payload: ProjectUpdate):
    async with get_session_ctx() as session:
        project = await ProjectRepository(session).rename(project_id, payload.name)
        if not project:
            raise HTTPException(status_code=404, detail=f"Project '{project_id}' not found")
        logger.info(f"Project renamed: {project.id} -> {project.name}")
        return _project_to_response(project)


@router.delete("/{project_id}", status_code=200)
async def delete_project(project_id: str):
    async with get_session_ctx() as session:
        deleted = await ProjectRepository(session).delete(project_id)
    if not deleted:
        raise HTTPException(status_code=404, detail=f"Project '{project_id}' not found")
    push_event(project_id, "project_deleted", {})
    logger.info(f"Project deleted: {project_id}")
    return {"success": True}


@router.get("/{project_id}/content", response_model=ProjectContentResponse)
async def get_project_content(project_id: str):
    async with get_session_ctx() as session:
        project = await ProjectRepository(session).get(project_id)
    if not project:
        raise HTTPException(status_code=404, detail=f"Project '{project_id}' not found")
    return ProjectContentResponse(
        project_id=project.id,
        content=project.content,
        saved_at=project.saved_at.isoformat() if project.saved_at else None,
    )


@router.put("/{project_id}/content", response_model=ProjectContentResponse)
async def save_project_content(project_id: str, payload: ProjectContent):
    """Replace the stored snapshot. 422 if it is not a valid graph."""
    content = _normalize_content(payload.content)
    async with get_session_ctx() as session:
        project = await ProjectRepository(session).save_content(project_id, content)
        if not project:
            raise HTTPException(status_code=404, detail=f"Project '{project_id}' not found")
        saved_at = project.saved_at.isoformat()

    push_event(project_id, "saved", {
        "saved_at": saved_at,
        "node_count": len(content["nodes"]),
        "edge_count": len(content["edges"]),
    })
    logger.info(f"Project content saved: {project_id} ({len(content['nodes'])} nodes)")
    return ProjectContentResponse(project_id=project_id, content=content, saved_at=saved_at)


@router.get("/{project_id}/events")
async def project_events(project_id: str):
    """SSE stream of a project's events (saved, toast, project_deleted)."""
    async with get_session_ctx() as session:
        project = await ProjectRepository(session).get(project_id)
    if not project:
        raise HTTPException(status_code=404, detail=f"Project '{project_id}' not found")

    return StreamingResponse(
        get_event_bus().subscribe(project_id),
        media_type="text/event-stream",
        headers={"Cache-Control": "no-cache", "X-Accel-Buffering": "no"},
    )


# --- Helpers ---


def _normalize_content(content: Dict[str, Any]) -> Dict[str, Any]:
    """Validate a snapshot and return it in canonical form.

    Drag artifacts are dropped; the viewport is kept when present.
    """
    try:
        store = GraphStore.from_snapshot(content)
        viewport = content.get("viewport")
        normalized = store.snapshot()
        if viewport is not None:
            if not isinstance(viewport, dict):
                raise SnapshotError("viewport must be an object")
            normalized["viewport"] = Viewport.from_dict(viewport).to_dict()
    except (SnapshotError, ValueError, TypeError) as e:
        raise HTTPException(status_code=422, detail=f"Invalid project content: {e}")
    return normalized


def _project_to_response(project) -> ProjectResponse:
    content = project.content or {}
    return ProjectResponse(
        id=project.id,
        name=project.name,
        user_id=project.user_id,
        node_count=len(content.get("nodes", [])),
        edge_count=len(content.get("edges", [])),
        created_at=project.created_at.isoformat() if project.created_at else "",
        updated_at=project.updated_at.isoformat() if project.updated_at else "",
        saved_at=project.saved_at.isoformat() if project.saved_at else None,
    )
