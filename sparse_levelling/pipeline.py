"""End-to-end processing: G-code lines in, rewritten G-code lines out.

``process_lines`` is pure (no file access) and returns every
intermediate so callers can inspect or visualise them.
``process_file`` adds reading the input and writing the outputs; nothing
is written unless processing succeeded.

Usage::

    from sparse_levelling.configs.loader import load_config
    from sparse_levelling.pipeline import process_file

    result = process_file("part.gcode", load_config(), debug=True)
    print(result.output_path)
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, replace
from pathlib import Path
from typing import Optional, Sequence

import numpy as np

from sparse_levelling.configs.loader import LevellingConfig
from sparse_levelling.errors import LevellingError
from sparse_levelling.gcode.generator import LevellingBlockGenerator
from sparse_levelling.gcode.markers import MarkerIndices, find_markers
from sparse_levelling.gcode.parser import MotionSegment, relevant_moves
from sparse_levelling.gcode.splice import splice_block
from sparse_levelling.mesh.coverage import compute_used_cells
from sparse_levelling.mesh.grid import LevellingGrid, grid_from_config
from sparse_levelling.mesh.selection import select_points
from sparse_levelling.utils import fs
from sparse_levelling.visualize import save_debug_image

logger = logging.getLogger(__name__)

OUTPUT_SUFFIX = "_level"
DEBUG_SUFFIX = "_debug"


@dataclass(frozen=True, eq=False)
class LevellingResult:
    """Everything computed for one file.

    Attributes
    ----------
    markers : MarkerIndices
        Marker positions in the input.
    moves : list[MotionSegment]
        Relevant (filtered) moves.
    grid : LevellingGrid
        Probe point geometry.
    surface : np.ndarray
        Coverage raster, uint8 (height_px, width_px).
    occupied : np.ndarray
        Used cells, bool (rows - 1, cols - 1).
    selected : np.ndarray
        Points to probe, bool (rows, cols).
    block : str
        Generated levelling block.
    output_lines : list[str]
        Input with the levelling block replaced.
    output_path : Path | None
        Where the output was written (``process_file`` only).
    """

    markers: MarkerIndices
    moves: list[MotionSegment]
    grid: LevellingGrid
    surface: np.ndarray
    occupied: np.ndarray
    selected: np.ndarray
    block: str
    output_lines: list[str]
    output_path: Optional[Path] = None

    @property
    def probe_count(self) -> int:
        return int(self.selected.sum())


def process_lines(lines: Sequence[str], config: LevellingConfig) -> LevellingResult:
    """Run the full transform on in-memory lines.

    Parameters
    ----------
    lines : Sequence[str]
        Input file lines without terminators.
    config : LevellingConfig
        Validated configuration.

    Returns
    -------
    LevellingResult

    Raises
    ------
    LevellingError
        Any of ``MissingMarkerError``, ``MarkerOrderError``,
        ``ParseError``, ``NoRelevantMovesError``.
    """
    if not lines:
        raise LevellingError("No gcode")

    markers = find_markers(lines, config.markers)

    moves = relevant_moves(
        markers.main_section(lines),
        config.filter.max_height_mm,
        first_line_no=markers.main_start + 2,
    )

    logger.info("Generating levelling grid")
    grid = grid_from_config(config)

    surface, occupied = compute_used_cells(moves, config)
    selected = select_points(occupied)

    block = LevellingBlockGenerator().generate(grid, selected)
    output_lines = splice_block(lines, markers, block)

    return LevellingResult(
        markers=markers,
        moves=moves,
        grid=grid,
        surface=surface,
        occupied=occupied,
        selected=selected,
        block=block,
        output_lines=output_lines,
    )


def output_path_for(input_path: str | Path) -> Path:
    """Default output location: ``<stem>_level<suffix>`` beside the input."""
    return fs.sibling_path(input_path, OUTPUT_SUFFIX)


def debug_image_path_for(input_path: str | Path) -> Path:
    return fs.sibling_path(input_path, DEBUG_SUFFIX, ".png")


def debug_log_path_for(input_path: str | Path) -> Path:
    return fs.sibling_path(input_path, DEBUG_SUFFIX, ".txt")


def process_file(
    input_path: str | Path,
    config: LevellingConfig,
    output_path: str | Path | None = None,
    debug: bool = False,
) -> LevellingResult:
    """Read *input_path*, rewrite its levelling block and save the result.

    Parameters
    ----------
    input_path : str | Path
        G-code file to process.
    config : LevellingConfig
        Validated configuration.
    output_path : str | Path | None
        Destination; defaults to ``output_path_for(input_path)``.
    debug : bool
        Also save a visualisation PNG next to the input.

    Returns
    -------
    LevellingResult
        With ``output_path`` set.

    Raises
    ------
    FileNotFoundError
        If *input_path* does not exist.
    LevellingError
        If processing fails; no file is written in that case.
    """
    input_path = Path(input_path)
    logger.info("Reading file %s", input_path)
    lines = fs.read_lines(input_path)
    newline = fs.sniff_newline(input_path)

    result = process_lines(lines, config)

    if debug:
        logger.info("Generating visualization.")
        image_path = debug_image_path_for(input_path)
        save_debug_image(
            image_path,
            config,
            result.grid,
            result.moves,
            result.occupied,
            result.selected,
        )
        logger.info("Saved visualization to %s", image_path)

    target = Path(output_path) if output_path is not None else output_path_for(input_path)
    fs.atomic_write_lines(target, result.output_lines, newline=newline)
    logger.info("Saved modified gcode to %s", target)

    return replace(result, output_path=target)
