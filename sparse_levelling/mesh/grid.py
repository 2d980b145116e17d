"""Probe grid geometry.

Probe point ``(row, col)`` sits at::

    x = inset_left  + col * step_x
    y = inset_front + row * step_y

    step_x = (bed_width  - inset_left  - inset_right) / (points_x - 1)
    step_y = (bed_height - inset_front - inset_back)  / (points_y - 1)

Rows run front to back (Y), columns left to right (X).  The grid is
built once and only read afterwards.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import NamedTuple

import numpy as np

from sparse_levelling.configs.loader import LevellingConfig


class GridPoint(NamedTuple):
    """Planar probe coordinate in mm."""

    x: float
    y: float


@dataclass(frozen=True, eq=False)
class LevellingGrid:
    """Evenly spaced probe points within the mesh insets.

    Attributes
    ----------
    xs : np.ndarray
        Column X coordinates, shape (cols,).
    ys : np.ndarray
        Row Y coordinates, shape (rows,).
    step_x, step_y : float
        Point spacing in mm.
    """

    xs: np.ndarray
    ys: np.ndarray
    step_x: float
    step_y: float

    @property
    def rows(self) -> int:
        return int(self.ys.shape[0])

    @property
    def cols(self) -> int:
        return int(self.xs.shape[0])

    @property
    def shape(self) -> tuple[int, int]:
        return self.rows, self.cols

    @property
    def cell_shape(self) -> tuple[int, int]:
        """Shape of the cell matrix, ``(rows - 1, cols - 1)``."""
        return self.rows - 1, self.cols - 1

    def point(self, row: int, col: int) -> GridPoint:
        """Return the probe point at ``(row, col)``.

        Raises
        ------
        IndexError
            If the index is outside the grid (negative indices included).
        """
        if not (0 <= row < self.rows and 0 <= col < self.cols):
            raise IndexError(
                f"grid index ({row}, {col}) outside {self.rows} x {self.cols}"
            )
        return GridPoint(float(self.xs[col]), float(self.ys[row]))


def build_grid(
    width_mm: float,
    height_mm: float,
    inset_front: float,
    inset_back: float,
    inset_left: float,
    inset_right: float,
    points_x: int,
    points_y: int,
) -> LevellingGrid:
    """Compute the probe grid.

    Parameters
    ----------
    width_mm, height_mm : float
        Bed size.
    inset_front, inset_back, inset_left, inset_right : float
        Distance from each bed edge to the outermost probe row/column.
    points_x, points_y : int
        Probe counts per axis, both >= 2.

    Returns
    -------
    LevellingGrid
        Point ``(0, 0)`` is exactly ``(inset_left, inset_front)`` and the
        last point exactly ``(width - inset_right, height - inset_back)``.

    Raises
    ------
    ValueError
        If a count is below 2.
    """
    if points_x < 2 or points_y < 2:
        raise ValueError(f"need >= 2 points per axis, got {points_x} x {points_y}")

    x_last = width_mm - inset_right
    y_last = height_mm - inset_back
    step_x = (x_last - inset_left) / (points_x - 1)
    step_y = (y_last - inset_front) / (points_y - 1)

    # linspace is start + i * step with the endpoint pinned exactly
    xs = np.linspace(inset_left, x_last, points_x, dtype=np.float64)
    ys = np.linspace(inset_front, y_last, points_y, dtype=np.float64)
    xs.setflags(write=False)
    ys.setflags(write=False)

    return LevellingGrid(xs=xs, ys=ys, step_x=step_x, step_y=step_y)


def grid_from_config(config: LevellingConfig) -> LevellingGrid:
    """Build the probe grid described by *config*."""
    return build_grid(
        width_mm=config.bed.width_mm,
        height_mm=config.bed.height_mm,
        inset_front=config.inset.front,
        inset_back=config.inset.back,
        inset_left=config.inset.left,
        inset_right=config.inset.right,
        points_x=config.probe_grid.points_x,
        points_y=config.probe_grid.points_y,
    )
