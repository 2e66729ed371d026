"""Repository layer for canvas projects.

Provides async CRUD operations for ProjectModel plus content read/write.
"""

from __future__ import annotations

from datetime import datetime, timezone
from typing import Any, Dict, List, Optional, Tuple

from sqlalchemy import func, select
from sqlalchemy.ext.asyncio import AsyncSession

from app.models.db import ProjectModel


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


class ProjectRepository:
    """Data access layer for projects."""

    def __init__(self, session: AsyncSession):
        self.session = session

    async def create(
        self,
        name: str,
        user_id: str,
        content: Optional[Dict[str, Any]] = None,
    ) -> ProjectModel:
        project = ProjectModel(
            name=name,
            user_id=user_id,
            content=content,
            saved_at=_utcnow() if content is not None else None,
        )
        self.session.add(project)
        await self.session.flush()
        return project

    async def get(self, project_id: str) -> Optional[ProjectModel]:
        result = await self.session.execute(
            select(ProjectModel).where(ProjectModel.id == project_id)
        )
        return result.scalar_one_or_none()

    async def list(
        self,
        user_id: Optional[str] = None,
        page: int = 1,
        page_size: int = 50,
    ) -> Tuple[List[ProjectModel], int]:
        query = select(ProjectModel)
        count_query = select(func.count()).select_from(ProjectModel)
        if user_id is not None:
            query = query.where(ProjectModel.user_id == user_id)
            count_query = count_query.where(ProjectModel.user_id == user_id)

        query = (
            query
            .order_by(ProjectModel.updated_at.desc())
            .offset((page - 1) * page_size)
            .limit(page_size)
        )

        result = await self.session.execute(query)
        projects = list(result.scalars().all())

        count_result = await self.session.execute(count_query)
        total = count_result.scalar() or 0

        return projects, total

    async def rename(self, project_id: str, name: str) -> Optional[ProjectModel]:
        project = await self.get(project_id)
        if not project:
            return None
        project.name = name
        project.updated_at = _utcnow()
        await self.session.flush()
        return project

    async def save_content(
        self,
        project_id: str,
        content: Dict[str, Any],
    ) -> Optional[ProjectModel]:
        """Replace the stored snapshot. Returns None for an unknown project."""
        project = await self.get(project_id)
        if not project:
            return None
        now = _utcnow()
        project.content = content
        project.saved_at = now
        project.updated_at = now
        await self.session.flush()
        return project

    async def delete(self, project_id: str) -> bool:
        project = await self.get(project_id)
        if not project:
            return False
        await self.session.delete(project)
        await self.session.flush()
        return True
