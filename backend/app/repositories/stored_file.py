"""Repository layer for uploaded files."""

from __future__ import annotations

from typing import Optional

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from app.models.db import StoredFileModel


class StoredFileRepository:
    """Data access layer for stored files."""

    def __init__(self, session: AsyncSession):
        self.session = session

    async def create(
        self,
        bucket: str,
        data: bytes,
        mime_type: str,
        name: str = "",
    ) -> StoredFileModel:
        stored = StoredFileModel(
            bucket=bucket,
            name=name,
            mime_type=mime_type,
            size=len(data),
            data=data,
        )
        self.session.add(stored)
        await self.session.flush()
        return stored

    async def get(self, bucket: str, file_id: str) -> Optional[StoredFileModel]:
        result = await self.session.execute(
            select(StoredFileModel).where(
                StoredFileModel.bucket == bucket,
                StoredFileModel.id == file_id,
            )
        )
        return result.scalar_one_or_none()
