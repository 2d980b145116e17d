"""Point selection -- expand used cells to the probe points at their corners."""

from __future__ import annotations

import logging

import numpy as np

logger = logging.getLogger(__name__)


def select_points(occupied: np.ndarray) -> np.ndarray:
    """Mark the four corner points of every occupied cell.

    Parameters
    ----------
    occupied : np.ndarray
        bool array of shape (rows - 1, cols - 1) from ``used_cells``.

    Returns
    -------
    np.ndarray
        bool array of shape (rows, cols).  A point shared by several
        cells is selected if any of them is occupied.

    Raises
    ------
    ValueError
        If *occupied* is not a 2-D array.
    """
    occupied = np.asarray(occupied, dtype=bool)
    if occupied.ndim != 2:
        raise ValueError(f"occupied must be 2-D, got shape {occupied.shape}")

    logger.info("Computing points to probe.")

    cells_y, cells_x = occupied.shape
    selected = np.zeros((cells_y + 1, cells_x + 1), dtype=bool)
    selected[:-1, :-1] |= occupied
    selected[:-1, 1:] |= occupied
    selected[1:, :-1] |= occupied
    selected[1:, 1:] |= occupied

    logger.info(
        "%d of %d points are to be probed.", int(selected.sum()), selected.size
    )
    return selected
