"""Tests for ProjectRepository and StoredFileRepository.

Covers CRUD, pagination, content writes and blob storage.
Uses in-memory SQLite via conftest fixtures.
"""

from __future__ import annotations

import pytest
from sqlalchemy.ext.asyncio import AsyncSession

from app.repositories.project import ProjectRepository
from app.repositories.stored_file import StoredFileRepository

SNAPSHOT = {
    "nodes": [{"id": "a", "type": "text", "position": {"x": 0, "y": 0}, "data": {}, "selected": False}],
    "edges": [],
}


# ---------------------------------------------------------------------------
# Projects
# ---------------------------------------------------------------------------


class TestProjectRepository:

    @pytest.mark.asyncio
    async def test_create_and_get(self, test_session: AsyncSession):
        repo = ProjectRepository(test_session)

        project = await repo.create(name="Moodboard", user_id="u-1")
        fetched = await repo.get(project.id)

        assert fetched is not None
        assert fetched.name == "Moodboard"
        assert fetched.content is None
        assert fetched.saved_at is None

    @pytest.mark.asyncio
    async def test_create_with_content(self, test_session: AsyncSession):
        project = await ProjectRepository(test_session).create(name="P", user_id="u-1", content=SNAPSHOT)

        assert project.content == SNAPSHOT
        assert project.saved_at is not None

    @pytest.mark.asyncio
    async def test_get_missing(self, test_session: AsyncSession):
        assert await ProjectRepository(test_session).get("nope") is None

    @pytest.mark.asyncio
    async def test_list_filters_by_user_and_paginates(self, test_session: AsyncSession):
        repo = ProjectRepository(test_session)
        for i in range(3):
            await repo.create(name=f"mine-{i}", user_id="u-1")
        await repo.create(name="theirs", user_id="u-2")

        mine, total = await repo.list(user_id="u-1", page=1, page_size=2)
        everything, grand_total = await repo.list()

        assert total == 3
        assert len(mine) == 2
        assert all(p.user_id == "u-1" for p in mine)
        assert grand_total == 4
        assert len(everything) == 4

    @pytest.mark.asyncio
    async def test_rename(self, test_session: AsyncSession):
        repo = ProjectRepository(test_session)
        project = await repo.create(name="Old", user_id="u-1")

        renamed = await repo.rename(project.id, "New")

        assert renamed.name == "New"
        assert await repo.rename("nope", "X") is None

    @pytest.mark.asyncio
    async def test_save_content(self, test_session: AsyncSession):
        repo = ProjectRepository(test_session)
        project = await repo.create(name="P", user_id="u-1")

        saved = await repo.save_content(project.id, SNAPSHOT)

        assert saved.content == SNAPSHOT
        assert saved.saved_at is not None
        assert await repo.save_content("nope", SNAPSHOT) is None

    @pytest.mark.asyncio
    async def test_delete(self, test_session: AsyncSession):
        repo = ProjectRepository(test_session)
        project = await repo.create(name="P", user_id="u-1")

        assert await repo.delete(project.id) is True
        assert await repo.get(project.id) is None
        assert await repo.delete(project.id) is False


# ---------------------------------------------------------------------------
# Stored files
# ---------------------------------------------------------------------------


class TestStoredFileRepository:

    @pytest.mark.asyncio
    async def test_create_and_get(self, test_session: AsyncSession):
        repo = StoredFileRepository(test_session)

        stored = await repo.create(bucket="files", data=b"abc", mime_type="image/png", name="a.png")
        fetched = await repo.get("files", stored.id)

        assert fetched.data == b"abc"
        assert fetched.size == 3
        assert fetched.mime_type == "image/png"

    @pytest.mark.asyncio
    async def test_get_is_scoped_to_bucket(self, test_session: AsyncSession):
        repo = StoredFileRepository(test_session)
        stored = await repo.create(bucket="files", data=b"abc", mime_type="image/png")

        assert await repo.get("avatars", stored.id) is None
