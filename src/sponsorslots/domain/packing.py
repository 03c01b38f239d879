"""Deterministic spiral packing for word-cloud layouts.

Boxes are placed in the order given (callers pass largest first) by walking
an outward spiral from the canvas centre until a spot without overlap is
found. If the spiral runs out of attempts the canvas is scanned row by row
for a free spot. There is no randomness: identical input yields an
identical layout.

Placed boxes are indexed in a coarse grid of square cells, so each
collision test only looks at boxes in the cells the candidate touches.
"""

from __future__ import annotations

import math
from dataclasses import dataclass

CELL_SIZE = 64.0
_MARGIN_X = 10.0
_MARGIN_Y = 20.0


@dataclass(frozen=True)
class Box:
    """Item to place; ``key`` identifies it in the result."""

    key: str
    width: float
    height: float


@dataclass(frozen=True)
class PlacedBox:
    key: str
    x: float
    y: float
    width: float
    height: float


def _overlaps(a: PlacedBox, x: float, y: float, w: float, h: float, padding: float) -> bool:
    return not (
        x + w + padding <= a.x
        or a.x + a.width + padding <= x
        or y + h + padding <= a.y
        or a.y + a.height + padding <= y
    )


class _Occupancy:
    """Placed boxes bucketed by the grid cells they cover."""

    def __init__(self, padding: float, cell_size: float = CELL_SIZE) -> None:
        self.padding = padding
        self.cell_size = cell_size
        self._cells: dict[tuple[int, int], list[PlacedBox]] = {}

    def _span(self, lo: float, hi: float) -> range:
        return range(math.floor(lo / self.cell_size), math.floor(hi / self.cell_size) + 1)

    def add(self, box: PlacedBox) -> None:
        for cx in self._span(box.x, box.x + box.width):
            for cy in self._span(box.y, box.y + box.height):
                self._cells.setdefault((cx, cy), []).append(box)

    def blocker(self, x: float, y: float, w: float, h: float) -> PlacedBox | None:
        """First placed box that the candidate (plus padding) would touch."""
        p = self.padding
        cells = self._cells
        for cx in self._span(x - p, x + w + p):
            for cy in self._span(y - p, y + h + p):
                for other in cells.get((cx, cy), ()):
                    if _overlaps(other, x, y, w, h, p):
                        return other
        return None


def canvas_height(count: int) -> float:
    """Portrait canvas: grows with the number of items."""
    return float(max(800, count * 60))


def _spiral_steps(max_attempts: int) -> list[tuple[float, float, float]]:
    # (cos, squashed sin, radius growth) per attempt; shared by every box
    steps = []
    for attempt in range(max_attempts):
        angle = attempt * 0.4
        # sin-based wobble keeps the spiral from looking mechanical
        growth = attempt * 4 + math.sin(attempt * 0.7) * 8
        steps.append((math.cos(angle), math.sin(angle) * 0.6, growth))
    return steps


def _scan_rows(
    occupancy: _Occupancy, box: Box, canvas_width: float, height: float
) -> tuple[float, float] | None:
    step = max(4.0, box.height / 4)
    y = _MARGIN_Y
    while y + box.height <= height - _MARGIN_Y:
        x = _MARGIN_X
        while x + box.width <= canvas_width - _MARGIN_X:
            other = occupancy.blocker(x, y, box.width, box.height)
            if other is None:
                return x, y
            x = max(x + 1, other.x + other.width + occupancy.padding)
        y += step
    return None


def pack_spiral(
    boxes: list[Box],
    canvas_width: float = 600.0,
    *,
    max_attempts: int = 2000,
    padding: float = 6.0,
) -> list[PlacedBox]:
    """Place every box exactly once, in input order.

    Boxes never overlap while the canvas has room; only when neither the
    spiral nor the row scan finds space does a box go on a fixed outer ring.
    """
    if not boxes:
        return []
    height = canvas_height(len(boxes))
    centre_x = canvas_width / 2
    centre_y = height * (0.35 if max(b.height for b in boxes) >= 24 else 0.31)
    steps = _spiral_steps(max_attempts)
    occupancy = _Occupancy(padding)

    def clamp(x: float, y: float, box: Box) -> tuple[float, float]:
        return (
            max(_MARGIN_X, min(x, canvas_width - box.width - _MARGIN_X)),
            max(_MARGIN_Y, min(y, height - box.height - _MARGIN_Y)),
        )

    placed: list[PlacedBox] = []
    for index, box in enumerate(boxes):
        start_radius = 0 if index == 0 else 5
        half_w = box.width / 2
        half_h = box.height / 2
        found: tuple[float, float] | None = None
        for cos_a, sin_a, growth in steps:
            radius = start_radius + growth
            x, y = clamp(centre_x + radius * cos_a - half_w, centre_y + radius * sin_a - half_h, box)
            if occupancy.blocker(x, y, box.width, box.height) is None:
                found = (x, y)
                break
        if found is None:
            found = _scan_rows(occupancy, box, canvas_width, height)
        if found is None:
            angle = index * 0.7
            radius = 50 + index * 20
            found = clamp(
                centre_x + radius * math.cos(angle) - half_w,
                centre_y + radius * math.sin(angle) * 0.6 - half_h,
                box,
            )
        spot = PlacedBox(box.key, round(found[0], 2), round(found[1], 2), box.width, box.height)
        occupancy.add(spot)
        placed.append(spot)
    return placed
