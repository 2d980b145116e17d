"""Levelling block generator -- selected probe points to Marlin UBL G-code.

The emitted block zeroes and disables the mesh, invalidates the mesh
point nearest to each selected probe location, probes only the
invalidated points, fills the rest and activates the result::

    ; reduced levelling start
    G29 P0 ; zero mesh and turn off
    ; invalidate the point nearest to XY
    G29 I1 X55 Y5
    ...
    G29 P1 C ; probe all invalid
    G29 P3 ; fill unpopulated
    G29 A ; activate
    G29 T0 ; output mesh
    ; reduced levelling end

Points are emitted row by row (front to back), left to right within a
row.  Coordinates use at most three decimals with no trailing zeros and
``.`` as decimal separator regardless of locale.  Unlike a ``###.###``
format, a leading zero is kept (``0.5``, not ``.5``) and zero prints as
``0`` rather than an empty string, so every word carries a number.
"""

from __future__ import annotations

import logging
from io import StringIO

import numpy as np

from sparse_levelling.mesh.grid import LevellingGrid

logger = logging.getLogger(__name__)

BLOCK_START = "; reduced levelling start"
BLOCK_END = "; reduced levelling end"


class GCodeError(Exception):
    """Raised when G-code generation fails due to invalid input."""

    pass


# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------


def format_coord(value: float) -> str:
    """Format a coordinate with up to three decimals, trailing zeros removed.

    Examples
    --------
    >>> format_coord(55.0)
    '55'
    >>> format_coord(56.6666)
    '56.667'
    >>> format_coord(0.5)
    '0.5'
    """
    text = f"{value:.3f}".rstrip("0").rstrip(".")
    if text in ("-0", ""):
        return "0"
    return text


# ---------------------------------------------------------------------------
# Generator
# ---------------------------------------------------------------------------


class LevellingBlockGenerator:
    """Build the reduced ``G29`` sequence for a set of probe points.

    Parameters
    ----------
    newline : str
        Line terminator, default ``"\\n"``.  Every line, including the
        last, is terminated.
    """

    def __init__(self, newline: str = "\n") -> None:
        self._nl = newline

    # ------------------------------------------------------------------
    # Public API
    # ------------------------------------------------------------------

    def generate(self, grid: LevellingGrid, selected: np.ndarray) -> str:
        """Generate the levelling block.

        Parameters
        ----------
        grid : LevellingGrid
            Probe point coordinates.
        selected : np.ndarray
            bool array of shape ``grid.shape``.

        Returns
        -------
        str
            Complete block, one command per line.

        Raises
        ------
        GCodeError
            If *selected* does not match the grid shape.
        """
        selected = np.asarray(selected, dtype=bool)
        if selected.shape != grid.shape:
            raise GCodeError(
                f"selection shape {selected.shape} does not match "
                f"grid shape {grid.shape}"
            )

        logger.info("Generate bed levelling gcode.")

        buf = StringIO()
        self._write_header(buf)

        for row in range(grid.rows):
            for col in range(grid.cols):
                if selected[row, col]:
                    self._write_invalidate(buf, grid, row, col)

        self._write_footer(buf)

        block = buf.getvalue()
        logger.debug("Generated levelling block:\n%s", block)
        return block

    # ------------------------------------------------------------------
    # Individual commands
    # ------------------------------------------------------------------

    def _line(self, buf: StringIO, text: str) -> None:
        buf.write(text)
        buf.write(self._nl)

    def _write_invalidate(
        self, buf: StringIO, grid: LevellingGrid, row: int, col: int,
    ) -> None:
        p = grid.point(row, col)
        self._line(buf, f"G29 I1 X{format_coord(p.x)} Y{format_coord(p.y)}")

    # ------------------------------------------------------------------
    # Header / footer
    # ------------------------------------------------------------------

    def _write_header(self, buf: StringIO) -> None:
        self._line(buf, BLOCK_START)
        self._line(buf, "G29 P0 ; zero mesh and turn off")
        self._line(buf, "; invalidate the point nearest to XY")

    def _write_footer(self, buf: StringIO) -> None:
        self._line(buf, "G29 P1 C ; probe all invalid")
        self._line(buf, "G29 P3 ; fill unpopulated")
        self._line(buf, "G29 A ; activate")
        self._line(buf, "G29 T0 ; output mesh")
        self._line(buf, BLOCK_END)


def generate_levelling_gcode(grid: LevellingGrid, selected: np.ndarray) -> str:
    """Convenience wrapper around ``LevellingBlockGenerator().generate``."""
    return LevellingBlockGenerator().generate(grid, selected)
