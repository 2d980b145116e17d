"""
Probe mesh module.

Grid geometry, rasterized print coverage per grid cell, and expansion of
used cells to the probe points that must be measured.
"""

from sparse_levelling.mesh.coverage import (
    CellBox,
    cell_box,
    compute_used_cells,
    render_moves,
    used_cells,
)
from sparse_levelling.mesh.grid import (
    GridPoint,
    LevellingGrid,
    build_grid,
    grid_from_config,
)
from sparse_levelling.mesh.selection import select_points

__all__ = [
    "CellBox",
    "GridPoint",
    "LevellingGrid",
    "build_grid",
    "cell_box",
    "compute_used_cells",
    "grid_from_config",
    "render_moves",
    "select_points",
    "used_cells",
]
