"""Project service API client.

Implements the Persistence and FileStorage collaborators over HTTP against the
project service (app/main.py), so an editing session can run in a separate
process from the database.

Environment:
    CANVAS_API_URL: Base URL of the project service
    CANVAS_API_TOKEN: Optional bearer token

Usage:
    client = CanvasApiClient()
    project = await client.create_project("Moodboard", user_id="u-1")
    await client.save(project["id"], store.snapshot())
    snapshot = await client.load(project["id"])
"""

import logging
from typing import Any, Dict, Optional

import httpx

from . import config, settings
from .collaborators import UploadResult
from .engine.errors import CanvasError

logger = logging.getLogger("canvas.client")

API_PREFIX = "/api/v2"


class CanvasApiError(CanvasError):
    """Raised when a project service call fails."""

    def __init__(self, message: str, status_code: Optional[int] = None):
        super().__init__(message)
        self.status_code = status_code


class CanvasApiClient:
    """Async client for the project service.

    Args:
        base_url: Service URL. Falls back to CANVAS_API_URL.
        token: Bearer token. Falls back to CANVAS_API_TOKEN.
        timeout: HTTP request timeout in seconds.
        transport: Optional httpx transport (tests pass an ASGITransport).
    """

    def __init__(
        self,
        base_url: Optional[str] = None,
        token: Optional[str] = None,
        timeout: Optional[float] = None,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ):
        self._base_url = (base_url or config.CANVAS_API_URL).rstrip("/")
        self._token = token if token is not None else config.CANVAS_API_TOKEN
        self._timeout = timeout or settings.API_HTTP_TIMEOUT
        self._transport = transport
        self._client: Optional[httpx.AsyncClient] = None

    async def _get_client(self) -> httpx.AsyncClient:
        if self._client is None or self._client.is_closed:
            headers = {"Authorization": f"Bearer {self._token}"} if self._token else {}
            self._client = httpx.AsyncClient(
                base_url=self._base_url + API_PREFIX,
                headers=headers,
                timeout=self._timeout,
                transport=self._transport,
                limits=httpx.Limits(
                    max_connections=settings.API_HTTP_MAX_CONNECTIONS,
                    max_keepalive_connections=settings.API_HTTP_MAX_KEEPALIVE,
                ),
            )
        return self._client

    async def close(self) -> None:
        if self._client and not self._client.is_closed:
            await self._client.aclose()
            self._client = None

    async def _request(self, method: str, path: str, **kwargs: Any) -> httpx.Response:
        client = await self._get_client()
        try:
            resp = await client.request(method, path, **kwargs)
        except httpx.TimeoutException as e:
            raise CanvasApiError(f"Project service timeout: {method} {path}") from e
        except httpx.TransportError as e:
            raise CanvasApiError(f"Project service connection error: {method} {path}") from e

        if resp.status_code >= 400:
            try:
                detail = resp.json().get("detail", resp.text)
            except ValueError:
                detail = resp.text
            raise CanvasApiError(
                f"Project service error {resp.status_code} on {method} {path}: {str(detail)[:200]}",
                status_code=resp.status_code,
            )
        return resp

    # ------------------------------------------------------------------
    # Projects
    # ------------------------------------------------------------------

    async def create_project(
        self,
        name: str,
        user_id: str,
        content: Optional[Dict[str, Any]] = None,
    ) -> Dict[str, Any]:
        resp = await self._request(
            "POST", "/projects", json={"name": name, "user_id": user_id, "content": content},
        )
        project = resp.json()
        logger.info(f"create_project: id={project['id']}, name={name}")
        return project

    async def get_project(self, project_id: str) -> Dict[str, Any]:
        resp = await self._request("GET", f"/projects/{project_id}")
        return resp.json()

    # ------------------------------------------------------------------
    # Persistence
    # ------------------------------------------------------------------

    async def load(self, project_id: str) -> Optional[Dict[str, Any]]:
        """Fetch the stored snapshot; None when the project has no content yet."""
        resp = await self._request("GET", f"/projects/{project_id}/content")
        return resp.json().get("content")

    async def save(self, project_id: str, snapshot: Dict[str, Any]) -> None:
        await self._request("PUT", f"/projects/{project_id}/content", json={"content": snapshot})
        logger.debug(f"save: project={project_id}, nodes={len(snapshot.get('nodes', []))}")

    # ------------------------------------------------------------------
    # File storage
    # ------------------------------------------------------------------

    async def upload(
        self,
        data: bytes,
        bucket: str,
        name: str,
        mime_type: str,
    ) -> UploadResult:
        resp = await self._request(
            "POST",
            f"/files/{bucket}",
            content=data,
            headers={"Content-Type": mime_type, "X-File-Name": name},
        )
        body = resp.json()
        url = body["url"]
        if url.startswith("/"):
            url = self._base_url + url
        logger.info(f"upload: bucket={bucket}, name={name}, size={len(data)}")
        return UploadResult(url=url, mime_type=body.get("mimeType", mime_type))
