"""FastAPI Application Entry Point.

Configures the app, lifespan, CORS, and includes all route modules.
"""

from __future__ import annotations

import logging
import os
from contextlib import asynccontextmanager

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from canvas.logging_config import configure_logging

from .database import close_db, init_db

logger = logging.getLogger("canvas.app")


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Manage database lifecycle."""
    configure_logging()
    await init_db()
    logger.info("Canvas project service started")
    yield
    await close_db()


app = FastAPI(title="Canvas Project API", version="2.0.0", lifespan=lifespan)

# CORS configuration: configurable via CORS_ORIGINS env var (comma-separated)
_default_origins = "http://localhost:3000,http://127.0.0.1:3000"
CORS_ORIGINS = [
    o.strip() for o in os.getenv("CORS_ORIGINS", _default_origins).split(",") if o.strip()
]

app.add_middleware(
    CORSMiddleware,
    allow_origins=CORS_ORIGINS,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

# Include routers
from .event_bus import router as events_router  # noqa: E402
from .routes.files import router as files_router  # noqa: E402
from .routes.projects import router as projects_router  # noqa: E402

app.include_router(events_router)
app.include_router(projects_router)
app.include_router(files_router)


@app.get("/health")
async def health_check():
    """Health check endpoint for container orchestration."""
    return {"status": "ok"}


if __name__ == "__main__":
    import uvicorn

    from canvas.config import API_HOST, API_PORT

    uvicorn.run("app.main:app", host=API_HOST, port=API_PORT)
