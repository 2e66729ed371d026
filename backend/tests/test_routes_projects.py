"""Tests for project API routes (app/routes/projects.py).

Covers:
- POST /api/v2/projects
- GET /api/v2/projects (list)
- GET / PUT / DELETE /api/v2/projects/{id}
- GET / PUT /api/v2/projects/{id}/content (including 422 on invalid graphs)
- GET /api/v2/projects/{id}/events (404 check)
- GET /health
"""

from __future__ import annotations

import pytest
from httpx import AsyncClient

from app.event_bus import get_event_bus


# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------

VALID_CONTENT = {
    "nodes": [
        {"id": "a", "type": "image", "position": {"x": 0, "y": 0}, "data": {"url": "u"}, "selected": False},
        {"id": "b", "type": "transcribe", "position": {"x": 500, "y": 0}, "data": {}, "selected": False},
        {"id": "p", "type": "drop", "position": {"x": 900, "y": 0}, "data": {"isSource": False}},
    ],
    "edges": [
        {"id": "e1", "source": "a", "target": "b", "sourceHandle": None, "targetHandle": None, "type": "animated"},
        {"id": "t1", "source": "b", "target": "p", "type": "temporary"},
    ],
    "viewport": {"x": 0, "y": 0, "zoom": 1},
}


async def _create_project(client: AsyncClient, **overrides) -> dict:
    """Helper: create a project and return response JSON."""
    payload = {"name": "Moodboard", "user_id": "u-1", **overrides}
    resp = await client.post("/api/v2/projects", json=payload)
    assert resp.status_code == 201, resp.text
    return resp.json()


# ---------------------------------------------------------------------------
# CRUD
# ---------------------------------------------------------------------------


class TestProjectCrud:

    @pytest.mark.asyncio
    async def test_create_project(self, client: AsyncClient):
        project = await _create_project(client)

        assert project["name"] == "Moodboard"
        assert project["user_id"] == "u-1"
        assert project["node_count"] == 0
        assert project["saved_at"] is None

    @pytest.mark.asyncio
    async def test_create_validates_name(self, client: AsyncClient):
        resp = await client.post("/api/v2/projects", json={"name": "", "user_id": "u-1"})
        assert resp.status_code == 422

    @pytest.mark.asyncio
    async def test_create_with_invalid_content(self, client: AsyncClient):
        resp = await client.post("/api/v2/projects", json={
            "name": "P", "user_id": "u-1", "content": {"nodes": "broken"},
        })
        assert resp.status_code == 422

    @pytest.mark.asyncio
    async def test_list_projects(self, client: AsyncClient):
        await _create_project(client, name="one")
        await _create_project(client, name="two", user_id="u-2")

        resp = await client.get("/api/v2/projects", params={"user_id": "u-1"})

        assert resp.status_code == 200
        data = resp.json()
        assert data["total"] == 1
        assert [p["name"] for p in data["projects"]] == ["one"]

    @pytest.mark.asyncio
    async def test_get_project(self, client: AsyncClient):
        project = await _create_project(client)

        resp = await client.get(f"/api/v2/projects/{project['id']}")

        assert resp.status_code == 200
        assert resp.json()["id"] == project["id"]

    @pytest.mark.asyncio
    async def test_get_missing_project(self, client: AsyncClient):
        resp = await client.get("/api/v2/projects/nope")
        assert resp.status_code == 404

    @pytest.mark.asyncio
    async def test_rename_project(self, client: AsyncClient):
        project = await _create_project(client)

        resp = await client.put(f"/api/v2/projects/{project['id']}", json={"name": "Renamed"})

        assert resp.status_code == 200
        assert resp.json()["name"] == "Renamed"

    @pytest.mark.asyncio
    async def test_rename_missing_project(self, client: AsyncClient):
        resp = await client.put("/api/v2/projects/nope", json={"name": "X"})
        assert resp.status_code == 404

    @pytest.mark.asyncio
    async def test_delete_project(self, client: AsyncClient):
        project = await _create_project(client)

        resp = await client.delete(f"/api/v2/projects/{project['id']}")

        assert resp.status_code == 200
        assert (await client.get(f"/api/v2/projects/{project['id']}")).status_code == 404
        assert (await client.delete(f"/api/v2/projects/{project['id']}")).status_code == 404


# ---------------------------------------------------------------------------
# Content
# ---------------------------------------------------------------------------


class TestProjectContent:

    @pytest.mark.asyncio
    async def test_new_project_has_no_content(self, client: AsyncClient):
        project = await _create_project(client)

        resp = await client.get(f"/api/v2/projects/{project['id']}/content")

        assert resp.status_code == 200
        assert resp.json()["content"] is None

    @pytest.mark.asyncio
    async def test_save_and_load_content(self, client: AsyncClient):
        project = await _create_project(client)

        put = await client.put(f"/api/v2/projects/{project['id']}/content", json={"content": VALID_CONTENT})
        get = await client.get(f"/api/v2/projects/{project['id']}/content")

        assert put.status_code == 200
        content = get.json()["content"]
        assert [n["id"] for n in content["nodes"]] == ["a", "b"]
        assert [e["id"] for e in content["edges"]] == ["e1"]
        assert content["viewport"] == {"x": 0, "y": 0, "zoom": 1}
        assert get.json()["saved_at"] is not None

    @pytest.mark.asyncio
    async def test_project_reports_counts(self, client: AsyncClient):
        project = await _create_project(client)
        await client.put(f"/api/v2/projects/{project['id']}/content", json={"content": VALID_CONTENT})

        resp = await client.get(f"/api/v2/projects/{project['id']}")

        assert resp.json()["node_count"] == 2
        assert resp.json()["edge_count"] == 1

    @pytest.mark.asyncio
    async def test_save_pushes_saved_event(self, client: AsyncClient):
        project = await _create_project(client)

        await client.put(f"/api/v2/projects/{project['id']}/content", json={"content": VALID_CONTENT})

        buffered = get_event_bus()._buffers[project["id"]]["events"]
        assert buffered[-1]["event"] == "saved"
        assert buffered[-1]["data"]["node_count"] == 2

    @pytest.mark.asyncio
    @pytest.mark.parametrize("content", [
        {"nodes": "broken", "edges": []},
        {"nodes": [{"id": "a"}], "edges": []},
        {"nodes": [{"id": "a", "type": "text"}], "edges": [{"id": "e", "source": "a", "target": "ghost"}]},
        {
            "nodes": [{"id": "a", "type": "text"}, {"id": "b", "type": "text"}],
            "edges": [
                {"id": "e1", "source": "a", "target": "b"},
                {"id": "e2", "source": "b", "target": "a"},
            ],
        },
        {"nodes": [], "edges": [], "viewport": {"x": 0, "y": 0, "zoom": 0}},
    ])
    async def test_invalid_content_rejected(self, client: AsyncClient, content):
        project = await _create_project(client)

        resp = await client.put(f"/api/v2/projects/{project['id']}/content", json={"content": content})

        assert resp.status_code == 422
        stored = await client.get(f"/api/v2/projects/{project['id']}/content")
        assert stored.json()["content"] is None

    @pytest.mark.asyncio
    async def test_save_content_missing_project(self, client: AsyncClient):
        resp = await client.put("/api/v2/projects/nope/content", json={"content": {"nodes": [], "edges": []}})
        assert resp.status_code == 404

    @pytest.mark.asyncio
    async def test_events_for_missing_project(self, client: AsyncClient):
        resp = await client.get("/api/v2/projects/nope/events")
        assert resp.status_code == 404


class TestHealth:

    @pytest.mark.asyncio
    async def test_health(self, client: AsyncClient):
        resp = await client.get("/health")
        assert resp.status_code == 200
        assert resp.json() == {"status": "ok"}
