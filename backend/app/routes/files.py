"""File upload / download endpoints.

Uploads take the raw request body; the MIME type comes from Content-Type and
the original file name from the X-File-Name header.
"""

from __future__ import annotations

from typing import Optional

from fastapi import APIRouter, Header, HTTPException, Request, Response
from pydantic import BaseModel

from canvas import settings
from canvas.logging_config import get_api_logger

from app.database import get_session_ctx
from app.persistence import file_url
from app.repositories.stored_file import StoredFileRepository

logger = get_api_logger()

router = APIRouter(prefix="/api/v2/files", tags=["files"])


class UploadResponse(BaseModel):
    id: str
    bucket: str
    name: str
    url: str
    mimeType: str
    size: int


@router.post("/{bucket}", status_code=201, response_model=UploadResponse)
async def upload_file(
    bucket: str,
    request: Request,
    content_type: Optional[str] = Header(None),
    x_file_name: Optional[str] = Header(None),
):
    data = await request.body()
    if not data:
        raise HTTPException(status_code=400, detail="Empty upload body")
    if len(data) > settings.MAX_UPLOAD_BYTES:
        raise HTTPException(
            status_code=413,
            detail=f"Upload of {len(data)} bytes exceeds limit of {settings.MAX_UPLOAD_BYTES}",
        )

    mime_type = (content_type or "application/octet-stream").split(";", 1)[0].strip()
    async with get_session_ctx() as session:
        stored = await StoredFileRepository(session).create(
            bucket=bucket, data=data, mime_type=mime_type, name=x_file_name or "",
        )
        logger.info(f"Upload stored: {bucket}/{stored.id} ({stored.size} bytes, {mime_type})")
        return UploadResponse(
            id=stored.id,
            bucket=bucket,
            name=stored.name,
            url=file_url(bucket, stored.id),
            mimeType=stored.mime_type,
            size=stored.size,
        )


@router.get("/{bucket}/{file_id}")
async def download_file(bucket: str, file_id: str):
    async with get_session_ctx() as session:
        stored = await StoredFileRepository(session).get(bucket, file_id)
    if not stored:
        raise HTTPException(status_code=404, detail=f"File '{bucket}/{file_id}' not found")
    headers = {}
    if stored.name:
        headers["Content-Disposition"] = f'inline; filename="{stored.name}"'
    return Response(content=stored.data, media_type=stored.mime_type, headers=headers)
