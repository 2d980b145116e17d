"""Marker scanning -- locate the main section and the levelling block.

The slicer profile is expected to emit four comment lines:

    ; BEGIN LEVEL           <- levelling block start (replaced)
    ...                     <- existing G29 sequence (replaced)
    ; END LEVEL             <- levelling block end (replaced)
    ...
    ; End Start G-code      <- main section start
    ...                     <- actual print moves
    ; Begin End G-code      <- main section end

Lines are compared after stripping surrounding whitespace.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Sequence

from sparse_levelling.configs.loader import MarkerConfig
from sparse_levelling.errors import MarkerOrderError, MissingMarkerError

logger = logging.getLogger(__name__)


@dataclass(frozen=True, slots=True)
class MarkerIndices:
    """0-based line indices of the four marker lines.

    Invariants (checked by ``find_markers``):
        ``levelling_start < levelling_end < main_end`` and
        ``main_start < main_end``.
    """

    main_start: int
    main_end: int
    levelling_start: int
    levelling_end: int

    def main_section(self, lines: Sequence[str]) -> list[str]:
        """Return the lines strictly between the main-section markers."""
        return list(lines[self.main_start + 1:self.main_end])

    @property
    def levelling_span(self) -> int:
        """Number of lines replaced, markers included."""
        return self.levelling_end - self.levelling_start + 1


def find_markers(lines: Sequence[str], markers: MarkerConfig) -> MarkerIndices:
    """Scan *lines* for the configured markers.

    Parameters
    ----------
    lines : Sequence[str]
        Complete file contents, one entry per line.
    markers : MarkerConfig
        Marker strings to look for.

    Returns
    -------
    MarkerIndices
        Validated marker positions.  If a marker appears more than once,
        its last occurrence is used.

    Raises
    ------
    MissingMarkerError
        If any marker line is absent.
    MarkerOrderError
        If the markers are not in the required relative order.
    """
    wanted = markers.as_dict()
    lookup = {text: name for name, text in wanted.items()}
    found: dict[str, int] = {}

    for idx, line in enumerate(lines):
        name = lookup.get(line.strip())
        if name is not None:
            found[name] = idx

    for name in ("main_start", "main_end", "levelling_start", "levelling_end"):
        if name not in found:
            raise MissingMarkerError(wanted[name])

    result = MarkerIndices(**found)

    if result.levelling_start >= result.levelling_end:
        raise MarkerOrderError(
            f"Marker '{markers.levelling_start}' (line {result.levelling_start + 1}) "
            f"must come before '{markers.levelling_end}' "
            f"(line {result.levelling_end + 1})"
        )
    if result.levelling_end >= result.main_end:
        raise MarkerOrderError(
            f"Markers '{markers.levelling_start}' and '{markers.levelling_end}' "
            f"must come before '{markers.main_end}' (line {result.main_end + 1})"
        )
    if result.main_start >= result.main_end:
        raise MarkerOrderError(
            f"Marker '{markers.main_start}' (line {result.main_start + 1}) "
            f"must come before '{markers.main_end}' (line {result.main_end + 1})"
        )

    logger.debug(
        "Markers: levelling %d-%d, main section %d-%d",
        result.levelling_start,
        result.levelling_end,
        result.main_start,
        result.main_end,
    )
    return result
