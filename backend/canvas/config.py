"""Canvas configuration constants: single source of truth for infrastructure env vars."""

import os

# Project service base URL: used by the engine-side API client
CANVAS_API_URL = os.getenv("CANVAS_API_URL", "http://localhost:8000")

# Server binding: used by entrypoint / uvicorn
API_HOST = os.getenv("API_HOST", "0.0.0.0")
API_PORT = int(os.getenv("API_PORT", "8000"))

# Optional bearer token forwarded by the API client
CANVAS_API_TOKEN = os.getenv("CANVAS_API_TOKEN", "")

# Logging: LOG_DIR holds the per-channel files (sse.log, api.log)
LOG_DIR = os.getenv("LOG_DIR", "")
LOG_LEVEL = os.getenv("LOG_LEVEL", "INFO").upper()
