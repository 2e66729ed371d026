"""Coordinate mapping between pointer (screen) space and logical graph space.

The viewport describes the current pan/zoom: a logical point ``p`` is drawn at
``p * zoom + (x, y)`` on screen, so the inverse is ``(s - (x, y)) / zoom``.
Everything here is a pure function of its arguments except ``ViewState``,
which is the small mutable holder a session shares with the operations that
need "where is the user looking right now".
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional

from .. import settings
from .models import Node, Point


@dataclass(frozen=True)
class Viewport:
    x: float = 0.0
    y: float = 0.0
    zoom: float = 1.0

    def __post_init__(self):
        if self.zoom <= 0:
            raise ValueError(f"viewport zoom must be positive, got {self.zoom}")

    def to_dict(self) -> Dict[str, float]:
        return {"x": self.x, "y": self.y, "zoom": self.zoom}

    @staticmethod
    def from_dict(d: Dict[str, Any]) -> "Viewport":
        return Viewport(x=float(d.get("x", 0.0)), y=float(d.get("y", 0.0)), zoom=float(d.get("zoom", 1.0)))


def screen_to_logical(point: Point, viewport: Viewport) -> Point:
    return Point(
        (point.x - viewport.x) / viewport.zoom,
        (point.y - viewport.y) / viewport.zoom,
    )


def logical_to_screen(point: Point, viewport: Viewport) -> Point:
    return Point(
        point.x * viewport.zoom + viewport.x,
        point.y * viewport.zoom + viewport.y,
    )


def viewport_center(viewport: Viewport, width: float, height: float) -> Point:
    """Logical point under the middle of a ``width`` x ``height`` screen."""
    return screen_to_logical(Point(width / 2, height / 2), viewport)


def _node_size(node: Node) -> tuple[float, float]:
    if node.measured is not None:
        return node.measured.width, node.measured.height
    return settings.DEFAULT_NODE_WIDTH, settings.DEFAULT_NODE_HEIGHT


def derived_node_position(node: Node, gap: Optional[float] = None) -> Point:
    """Position for a node spawned from ``node``: to its right, same row."""
    if gap is None:
        gap = settings.DERIVED_NODE_GAP
    width, _ = _node_size(node)
    return Point(node.position.x + width + gap, node.position.y)


def grid_positions(
    node: Node,
    count: int,
    columns: Optional[int] = None,
    spacing: Optional[float] = None,
) -> List[Point]:
    """Positions for ``count`` nodes laid out in a grid to the right of ``node``.

    The grid starts one node-width plus ``spacing`` to the right and is raised
    by 1.2 node-heights so a 3x3 grid sits roughly centred on the source row.
    """
    if columns is None:
        columns = settings.GRID_COLUMNS
    if spacing is None:
        spacing = settings.GRID_SPACING
    if columns < 1:
        raise ValueError("grid needs at least one column")

    width, height = _node_size(node)
    start_x = node.position.x + width + spacing
    start_y = node.position.y - height * 1.2

    positions = []
    for i in range(count):
        row, col = divmod(i, columns)
        positions.append(Point(
            start_x + col * (width + spacing),
            start_y + row * (height + spacing),
        ))
    return positions


@dataclass
class ViewState:
    """Current pan/zoom plus the on-screen size of the canvas pane."""

    viewport: Viewport = field(default_factory=Viewport)
    screen_width: float = field(default_factory=lambda: settings.DEFAULT_SCREEN_WIDTH)
    screen_height: float = field(default_factory=lambda: settings.DEFAULT_SCREEN_HEIGHT)

    def center(self) -> Point:
        return viewport_center(self.viewport, self.screen_width, self.screen_height)

    def to_logical(self, point: Point) -> Point:
        return screen_to_logical(point, self.viewport)
