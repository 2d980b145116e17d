"""Errors raised while rewriting a levelling block.

Every error is fatal: the run stops before any output file is written.
"""

from __future__ import annotations


class LevellingError(Exception):
    """Base class for all processing failures."""

    pass


class MissingMarkerError(LevellingError):
    """Raised when one of the four required marker lines is absent."""

    def __init__(self, marker: str) -> None:
        super().__init__(f"Marker '{marker}' not found")
        self.marker = marker


class MarkerOrderError(LevellingError):
    """Raised when the markers are present but in the wrong order."""

    pass


class NoRelevantMovesError(LevellingError):
    """Raised when the main section yields no extruding low moves."""

    pass


class ParseError(LevellingError):
    """Raised when a ``G1`` line cannot be split into parameter words.

    Parameters
    ----------
    line_no : int | None
        1-based line number within the parsed section, if known.
    text : str
        The offending (comment-stripped) line.
    reason : str
        Short description of what failed.
    """

    def __init__(self, text: str, reason: str, line_no: int | None = None) -> None:
        where = f"line {line_no}: " if line_no is not None else ""
        super().__init__(f"{where}{reason}: {text!r}")
        self.line_no = line_no
        self.text = text
        self.reason = reason
