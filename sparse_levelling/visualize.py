"""Debug visualisation of the coverage and probe selection.

Draws, on a bed-sized RGB image (1 px per mm):
    - dark grey margins outside the mesh insets
    - light pink used cells, light grey unused cells
    - the relevant moves in black
    - the inset border in black
    - probe points as small dots, red = probed, black = skipped

The image is flipped vertically before saving so the bed origin
(front-left) ends up bottom-left, as seen from above the printer.
"""

from __future__ import annotations

import logging
from pathlib import Path
from typing import Iterable

import cv2
import numpy as np

from sparse_levelling.configs.loader import LevellingConfig
from sparse_levelling.gcode.parser import MotionSegment
from sparse_levelling.mesh.coverage import clip_segment
from sparse_levelling.mesh.grid import LevellingGrid
from sparse_levelling.utils import fs

logger = logging.getLogger(__name__)

# RGB
WHITE = (255, 255, 255)
BLACK = (0, 0, 0)
DARK_GRAY = (169, 169, 169)
LIGHT_GRAY = (211, 211, 211)
LIGHT_PINK = (255, 182, 193)
RED = (255, 0, 0)

POINT_RADIUS_PX = 2


def _px(v: float) -> int:
    return int(np.floor(v + 0.5))


def render_debug_image(
    config: LevellingConfig,
    grid: LevellingGrid,
    moves: Iterable[MotionSegment],
    occupied: np.ndarray,
    selected: np.ndarray,
) -> np.ndarray:
    """Render the debug overview.

    Parameters
    ----------
    config : LevellingConfig
        Bed size and insets.
    grid : LevellingGrid
        Probe points.
    moves : Iterable[MotionSegment]
        Relevant moves.
    occupied : np.ndarray
        Used cells, bool (rows - 1, cols - 1).
    selected : np.ndarray
        Probed points, bool (rows, cols).

    Returns
    -------
    np.ndarray
        uint8 RGB image, shape (height_px, width_px, 3), origin bottom-left.
    """
    height, width = config.bed.height_px, config.bed.width_px
    ins = config.inset
    img = np.full((height, width, 3), WHITE, dtype=np.uint8)

    # Margins outside the mesh area
    img[:_px(ins.front), :] = DARK_GRAY
    img[height - _px(ins.back):, :] = DARK_GRAY
    img[:, :_px(ins.left)] = DARK_GRAY
    img[:, width - _px(ins.right):] = DARK_GRAY

    cells_y, cells_x = grid.cell_shape
    for row in range(cells_y):
        for col in range(cells_x):
            p1 = grid.point(row, col)
            p2 = grid.point(row + 1, col + 1)
            color = LIGHT_PINK if occupied[row, col] else LIGHT_GRAY
            cv2.rectangle(
                img,
                (_px(p1.x), _px(p1.y)),
                (_px(p2.x), _px(p2.y)),
                color,
                thickness=-1,
            )

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
        cv2.line(
            img,
            (_px(x0), _px(y0)),
            (_px(x1), _px(y1)),
            BLACK,
            thickness=1,
            lineType=cv2.LINE_8,
        )

    first = grid.point(0, 0)
    last = grid.point(grid.rows - 1, grid.cols - 1)
    cv2.rectangle(
        img,
        (_px(first.x), _px(first.y)),
        (_px(last.x), _px(last.y)),
        BLACK,
        thickness=1,
    )

    for row in range(grid.rows):
        for col in range(grid.cols):
            p = grid.point(row, col)
            color = RED if selected[row, col] else BLACK
            cv2.circle(img, (_px(p.x), _px(p.y)), POINT_RADIUS_PX, color, thickness=-1)

    return np.ascontiguousarray(img[::-1])


def save_debug_image(
    path: str | Path,
    config: LevellingConfig,
    grid: LevellingGrid,
    moves: Iterable[MotionSegment],
    occupied: np.ndarray,
    selected: np.ndarray,
) -> Path:
    """Render the debug overview and save it as PNG at *path*."""
    path = Path(path)
    img = render_debug_image(config, grid, moves, occupied, selected)
    fs.atomic_save_image(img, path)
    logger.debug("Debug image %dx%d written to %s", img.shape[1], img.shape[0], path)
    return path
