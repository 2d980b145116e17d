"""Coverage rasterizer -- which grid cells does the print touch?

The relevant moves are drawn as 1-px lines onto a black bed-sized raster
(one pixel per mm, pixel ``(0, 0)`` at the bed origin), then every cell
of the probe grid is tested for any lit pixel inside its bounding box.

Lines are drawn with ``cv2.LINE_8`` and no anti-aliasing so that a pixel
is either covered (255) or empty (0).  Endpoints are rounded half-up to
the nearest pixel after each segment is clipped to the bed in mm.

Cell bounding boxes (pixels, half-open ``[left, right) x [front, back)``)::

    left  = floor(col * step_x + (inset_left  if col > 0 else 0))
    right = ceil(left + step_x + (inset_left  if col == 0 else 0)
                               + (inset_right if col == last_col else 0))
    front = floor(row * step_y + (inset_front if row > 0 else 0))
    back  = ceil(front + step_y + (inset_front if row == 0 else 0)
                                + (inset_back  if row == last_row else 0))

Border cells absorb the inset margin so that extrusion between the
outermost probe row/column and the bed edge still counts.  Boxes that
reach past the raster are clipped to it.

Usage::

    surface = render_moves(moves, config)
    occupied = used_cells(surface, config)   # (rows - 1, cols - 1) bool
"""

from __future__ import annotations

import logging
import math
from typing import Iterable, NamedTuple

import cv2
import numpy as np

from sparse_levelling.configs.loader import LevellingConfig
from sparse_levelling.gcode.parser import MotionSegment

logger = logging.getLogger(__name__)

COVERED = 255


class CellBox(NamedTuple):
    """Half-open pixel bounding box of one grid cell."""

    left: int
    right: int
    front: int
    back: int


# ---------------------------------------------------------------------------
# Rasterization
# ---------------------------------------------------------------------------


def _to_px(v: float) -> int:
    """Round a mm coordinate half-up to a pixel index."""
    return int(math.floor(v + 0.5))


def blank_surface(config: LevellingConfig) -> np.ndarray:
    """Return an all-empty uint8 raster of shape (height_px, width_px)."""
    return np.zeros((config.bed.height_px, config.bed.width_px), dtype=np.uint8)


def clip_segment(
    start: tuple[float, float],
    end: tuple[float, float],
    xmin: float,
    ymin: float,
    xmax: float,
    ymax: float,
) -> tuple[tuple[float, float], tuple[float, float]] | None:
    """Clip a segment to an axis-aligned rectangle (Liang-Barsky).

    Returns the clipped ``(start, end)`` or None when the segment lies
    entirely outside.  Endpoints already inside are returned unchanged.
    """
    x0, y0 = start
    x1, y1 = end
    dx = x1 - x0
    dy = y1 - y0
    t0, t1 = 0.0, 1.0

    for p, q in ((-dx, x0 - xmin), (dx, xmax - x0), (-dy, y0 - ymin), (dy, ymax - y0)):
        if p == 0:
            if q < 0:
                return None
            continue
        t = q / p
        if p < 0:
            if t > t1:
                return None
            t0 = max(t0, t)
        else:
            if t < t0:
                return None
            t1 = min(t1, t)

    if t0 > 0:
        start = (x0 + t0 * dx, y0 + t0 * dy)
    if t1 < 1:
        end = (x0 + t1 * dx, y0 + t1 * dy)
    return start, end


def draw_moves(surface: np.ndarray, moves: Iterable[MotionSegment]) -> np.ndarray:
    """Draw the XY projection of *moves* onto *surface* in place.

    Segments are clipped to the raster (with a one pixel margin) in mm
    before rounding, so far off-bed coordinates never reach OpenCV.
    Drawing is idempotent per pixel, so order and duplicates do not
    matter.  Returns *surface* for chaining.
    """
    height, width = surface.shape[:2]
    for move in moves:
        clipped = clip_segment(
            (move.start.x, move.start.y),
            (move.end.x, move.end.y),
            -1.0,
            -1.0,
            float(width),
            float(height),
        )
        if clipped is None:
            continue
        (x0, y0), (x1, y1) = clipped
        p0 = (_to_px(x0), _to_px(y0))
        p1 = (_to_px(x1), _to_px(y1))
        cv2.line(surface, p0, p1, COVERED, thickness=1, lineType=cv2.LINE_8)
    return surface


def render_moves(moves: Iterable[MotionSegment], config: LevellingConfig) -> np.ndarray:
    """Rasterize *moves* onto a fresh bed-sized surface.

    Parameters
    ----------
    moves : Iterable[MotionSegment]
        Relevant moves; only ``start``/``end`` X and Y are used.
    config : LevellingConfig
        Provides the bed size.

    Returns
    -------
    np.ndarray
        uint8 array, shape (height_px, width_px); 255 = covered.
    """
    return draw_moves(blank_surface(config), moves)


# ---------------------------------------------------------------------------
# Cell occupancy
# ---------------------------------------------------------------------------


def cell_box(row: int, col: int, config: LevellingConfig) -> CellBox:
    """Pixel bounding box of cell ``(row, col)`` (unclipped)."""
    ins = config.inset
    step_x = config.step_x
    step_y = config.step_y
    last_col = config.cells_x - 1
    last_row = config.cells_y - 1

    left = math.floor(col * step_x + (ins.left if col > 0 else 0.0))
    right = math.ceil(
        left
        + step_x
        + (ins.left if col == 0 else 0.0)
        + (ins.right if col == last_col else 0.0)
    )
    front = math.floor(row * step_y + (ins.front if row > 0 else 0.0))
    back = math.ceil(
        front
        + step_y
        + (ins.front if row == 0 else 0.0)
        + (ins.back if row == last_row else 0.0)
    )
    return CellBox(int(left), int(right), int(front), int(back))


def cell_boxes(config: LevellingConfig) -> list[list[CellBox]]:
    """Bounding boxes for every cell, indexed ``[row][col]``."""
    return [
        [cell_box(row, col, config) for col in range(config.cells_x)]
        for row in range(config.cells_y)
    ]


def used_cells(surface: np.ndarray, config: LevellingConfig) -> np.ndarray:
    """Determine which cells contain at least one covered pixel.

    Parameters
    ----------
    surface : np.ndarray
        Raster from ``render_moves``.
    config : LevellingConfig
        Grid geometry.

    Returns
    -------
    np.ndarray
        bool array, shape (points_y - 1, points_x - 1).
    """
    height, width = surface.shape[:2]
    occupied = np.zeros((config.cells_y, config.cells_x), dtype=bool)

    for row, boxes in enumerate(cell_boxes(config)):
        for col, box in enumerate(boxes):
            front, back = max(box.front, 0), min(box.back, height)
            left, right = max(box.left, 0), min(box.right, width)
            if front >= back or left >= right:
                continue
            occupied[row, col] = bool(surface[front:back, left:right].any())

    logger.info("%d of %d areas used.", int(occupied.sum()), occupied.size)
    return occupied


def compute_used_cells(
    moves: Iterable[MotionSegment],
    config: LevellingConfig,
) -> tuple[np.ndarray, np.ndarray]:
    """Rasterize *moves* and test every cell.

    Returns
    -------
    tuple[np.ndarray, np.ndarray]
        ``(surface, occupied)``.
    """
    logger.info("Computing used area of the bed")
    surface = render_moves(moves, config)
    return surface, used_cells(surface, config)
