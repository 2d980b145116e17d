"""Splice the generated levelling block into the original file.

Everything before the levelling-start marker and after the levelling-end
marker is copied unchanged; the markers and the lines between them are
replaced by the block.
"""

from __future__ import annotations

import logging
from typing import Sequence

from sparse_levelling.gcode.markers import MarkerIndices

logger = logging.getLogger(__name__)


def splice_block(
    lines: Sequence[str],
    markers: MarkerIndices,
    block: str | Sequence[str],
) -> list[str]:
    """Replace the levelling block in *lines*.

    Parameters
    ----------
    lines : Sequence[str]
        Original file lines without terminators.
    markers : MarkerIndices
        Validated marker positions within *lines*.
    block : str | Sequence[str]
        Replacement, either as text (split on line breaks) or as lines.

    Returns
    -------
    list[str]
        ``len(lines) - markers.levelling_span + len(block_lines)`` lines.
    """
    block_lines = block.splitlines() if isinstance(block, str) else list(block)

    head = lines[:markers.levelling_start]
    tail = lines[markers.levelling_end + 1:]

    out = [*head, *block_lines, *tail]
    logger.debug(
        "Replaced %d levelling lines with %d generated lines",
        markers.levelling_span,
        len(block_lines),
    )
    return out
