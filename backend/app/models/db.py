"""SQLAlchemy ORM models for the canvas project service.

Tables:
- projects: Canvas projects with their persisted graph snapshot
- stored_files: Uploaded blobs referenced by image / video / audio / file nodes
"""

from __future__ import annotations

import uuid
from datetime import datetime, timezone
from typing import Any, Dict, Optional

from sqlalchemy import DateTime, Index, Integer, LargeBinary, String
from sqlalchemy.dialects.sqlite import JSON
from sqlalchemy.orm import Mapped, mapped_column

from app.database import Base


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


def _gen_uuid() -> str:
    return str(uuid.uuid4())


# ─── Project ─────────────────────────────────────────────────────────


class ProjectModel(Base):
    """A canvas project.

    ``content`` holds the last saved snapshot ({nodes, edges, viewport}) or
    NULL for a project that was never edited.
    """

    __tablename__ = "projects"

    id: Mapped[str] = mapped_column(String(64), primary_key=True, default=_gen_uuid)
    name: Mapped[str] = mapped_column(String(255), nullable=False)
    user_id: Mapped[str] = mapped_column(String(64), nullable=False)

    content: Mapped[Optional[Dict[str, Any]]] = mapped_column(
        JSON, nullable=True, comment="Graph snapshot JSON: {nodes, edges, viewport}",
    )

    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), nullable=False, default=_utcnow,
    )
    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), nullable=False, default=_utcnow, onupdate=_utcnow,
    )
    saved_at: Mapped[Optional[datetime]] = mapped_column(
        DateTime(timezone=True), nullable=True, comment="Last content write",
    )

    __table_args__ = (
        Index("ix_projects_user_id", "user_id"),
    )


# ─── Stored File ─────────────────────────────────────────────────────


class StoredFileModel(Base):
    """Uploaded blob, addressed by bucket + id."""

    __tablename__ = "stored_files"

    id: Mapped[str] = mapped_column(String(64), primary_key=True, default=_gen_uuid)
    bucket: Mapped[str] = mapped_column(String(64), nullable=False)
    name: Mapped[str] = mapped_column(String(255), nullable=False, default="")
    mime_type: Mapped[str] = mapped_column(String(128), nullable=False)
    size: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    data: Mapped[bytes] = mapped_column(LargeBinary, nullable=False)

    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), nullable=False, default=_utcnow,
    )

    __table_args__ = (
        Index("ix_stored_files_bucket", "bucket"),
    )
