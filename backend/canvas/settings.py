"""Canvas runtime settings: tunable parameters for the graph engine.

All values read from environment variables with sensible defaults.
Import from here instead of hardcoding.

Infrastructure config (API address, host/port, tokens) stays in
canvas/config.py.
"""

from __future__ import annotations

import os


def _int(key: str, default: int) -> int:
    return int(os.getenv(key, str(default)))


def _float(key: str, default: float) -> float:
    return float(os.getenv(key, str(default)))


def _str(key: str, default: str) -> str:
    return os.getenv(key, default)


# =====================================================================
# Persistence
# =====================================================================

# Quiescence window before a snapshot is written (seconds)
SAVE_DEBOUNCE_SECONDS = _float("SAVE_DEBOUNCE_SECONDS", 1.0)


# =====================================================================
# Node placement (logical coordinates)
# =====================================================================

# Offset applied to duplicated and pasted nodes
DUPLICATE_OFFSET = _float("DUPLICATE_OFFSET", 200.0)

# Horizontal gap between a source node and a node derived from it
DERIVED_NODE_GAP = _float("DERIVED_NODE_GAP", 100.0)

# Fallback size when the UI has not reported a node's measured size
DEFAULT_NODE_WIDTH = _float("DEFAULT_NODE_WIDTH", 400.0)
DEFAULT_NODE_HEIGHT = _float("DEFAULT_NODE_HEIGHT", 400.0)

# Grid spawning (e.g. one image split into tiles)
GRID_COLUMNS = _int("GRID_COLUMNS", 3)
GRID_SPACING = _float("GRID_SPACING", 60.0)

# Screen size used for "center of the viewport" when the UI has not reported one
DEFAULT_SCREEN_WIDTH = _float("DEFAULT_SCREEN_WIDTH", 1440.0)
DEFAULT_SCREEN_HEIGHT = _float("DEFAULT_SCREEN_HEIGHT", 900.0)


# =====================================================================
# Uploads
# =====================================================================

# Destination bucket for pasted / dropped files
UPLOAD_BUCKET = _str("UPLOAD_BUCKET", "files")

# Largest accepted upload body (bytes)
MAX_UPLOAD_BYTES = _int("MAX_UPLOAD_BYTES", 20 * 1024 * 1024)


# =====================================================================
# HTTP Clients (engine → project service)
# =====================================================================

API_HTTP_TIMEOUT = _float("API_HTTP_TIMEOUT", 30.0)
API_HTTP_MAX_CONNECTIONS = _int("API_HTTP_MAX_CONNECTIONS", 10)
API_HTTP_MAX_KEEPALIVE = _int("API_HTTP_MAX_KEEPALIVE", 5)
