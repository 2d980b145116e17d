"""G1 parser -- turn main-section lines into motion segments.

Only linear moves (``G1``) with relative extrusion are understood.  The
parser is a fold: an immutable ``Position`` is threaded through the
lines and every ``G1`` produces one ``MotionSegment`` whose ``start`` is
the previous segment's ``end``.

Parameter words:
    ``X``, ``Y``, ``Z``  absolute target; omitted axes keep their value
    ``E``                extrusion delta (relative); omitted means 0
    ``F``                feed rate (mm/min); omitted means 0

Numbers always use ``.`` as decimal separator regardless of locale.

Usage::

    from sparse_levelling.gcode.parser import relevant_moves
    moves = relevant_moves(section_lines, max_height_mm=1.0)
"""

from __future__ import annotations

import logging
import math
import re
from dataclasses import dataclass
from typing import Iterable, Iterator

from sparse_levelling.errors import NoRelevantMovesError, ParseError

logger = logging.getLogger(__name__)

COMMENT_CHAR = ";"

# "G1" as a whole word: G10 / G11 (firmware retract) are different commands
_KEYWORD_RE = re.compile(r"^G1(?!\d)")
_NUMBER = r"[+-]?(?:\d+\.?\d*|\.\d+)"
_PARAMS_RE = re.compile(rf"\s*(?:[XYZEF]{_NUMBER}\s*)*")
_WORD_RE = re.compile(rf"([XYZEF])({_NUMBER})")


# ---------------------------------------------------------------------------
# Data model
# ---------------------------------------------------------------------------


@dataclass(frozen=True, slots=True)
class Position:
    """Tool position in mm (bed origin at front-left)."""

    x: float = 0.0
    y: float = 0.0
    z: float = 0.0


ORIGIN = Position()


@dataclass(frozen=True, slots=True)
class MotionSegment:
    """One parsed ``G1`` instruction.

    Parameters
    ----------
    start : Position
        Position before the move (previous segment's ``end``).
    end : Position
        Position after the move.
    extrusion : float
        Relative extrusion delta ``E`` (0 when omitted).
    feedrate : float
        ``F`` value in mm/min (0 when omitted).
    """

    start: Position
    end: Position
    extrusion: float = 0.0
    feedrate: float = 0.0

    @property
    def is_stationary(self) -> bool:
        """True when the move does not change the position."""
        return self.start == self.end


# ---------------------------------------------------------------------------
# Line handling
# ---------------------------------------------------------------------------


def strip_comment(line: str) -> str:
    """Drop everything from the first ``;`` on and trim whitespace."""
    return line.split(COMMENT_CHAR, 1)[0].strip()


def is_motion_line(text: str) -> bool:
    """True if comment-free *text* is a ``G1`` instruction."""
    return _KEYWORD_RE.match(text) is not None


def motion_lines(
    lines: Iterable[str],
    first_line_no: int = 1,
) -> Iterator[tuple[int, str]]:
    """Yield ``(line_no, text)`` for every ``G1`` line in *lines*.

    Comments are stripped and blank lines skipped.  *first_line_no* is
    the number reported for the first element of *lines*.
    """
    for line_no, raw in enumerate(lines, start=first_line_no):
        text = strip_comment(raw)
        if text and is_motion_line(text):
            yield line_no, text


def parse_words(text: str, line_no: int | None = None) -> dict[str, float]:
    """Extract the parameter words of a single ``G1`` line.

    Parameters
    ----------
    text : str
        Comment-free line starting with ``G1``.
    line_no : int | None
        Line number used in error messages.

    Returns
    -------
    dict[str, float]
        Letter -> value.  A repeated letter keeps its first value.

    Raises
    ------
    ParseError
        If the line is not ``G1`` or anything after the keyword is not
        a recognized letter followed by a decimal number.
    """
    match = _KEYWORD_RE.match(text)
    if match is None:
        raise ParseError(text, "not a G1 instruction", line_no)

    body = text[match.end():]
    if _PARAMS_RE.fullmatch(body) is None:
        raise ParseError(text, "malformed parameter words", line_no)

    words: dict[str, float] = {}
    for letter, value in _WORD_RE.findall(body):
        number = float(value)
        if not math.isfinite(number):
            raise ParseError(text, f"{letter} value out of range", line_no)
        words.setdefault(letter, number)
    return words


def parse_line(
    text: str,
    current: Position,
    line_no: int | None = None,
) -> MotionSegment:
    """Parse one ``G1`` line starting from *current*.

    Omitted axes keep the value from *current*; omitted ``E``/``F`` are 0.
    """
    words = parse_words(text, line_no)
    end = Position(
        x=words.get("X", current.x),
        y=words.get("Y", current.y),
        z=words.get("Z", current.z),
    )
    return MotionSegment(
        start=current,
        end=end,
        extrusion=words.get("E", 0.0),
        feedrate=words.get("F", 0.0),
    )


def parse_moves(
    lines: Iterable[str],
    origin: Position = ORIGIN,
    first_line_no: int = 1,
) -> Iterator[MotionSegment]:
    """Parse all ``G1`` lines in file order (single pass).

    Parameters
    ----------
    lines : Iterable[str]
        Raw lines, comments included.
    origin : Position
        Start position of the first segment, default (0, 0, 0).
    first_line_no : int
        Line number of the first element, for error messages.

    Yields
    ------
    MotionSegment
        One per ``G1`` line; each ``start`` equals the previous ``end``.
    """
    position = origin
    for line_no, text in motion_lines(lines, first_line_no):
        segment = parse_line(text, position, line_no)
        position = segment.end
        yield segment


# ---------------------------------------------------------------------------
# Filtering
# ---------------------------------------------------------------------------


def is_relevant(move: MotionSegment, max_height_mm: float) -> bool:
    """True for extruding moves that end at or below *max_height_mm*.

    Excludes feed-rate-only lines, travel, retraction and unretraction
    (positive ``E`` without any motion).
    """
    return (
        move.end.z <= max_height_mm
        and move.extrusion > 0
        and not move.is_stationary
    )


def relevant_moves(
    lines: Iterable[str],
    max_height_mm: float,
    first_line_no: int = 1,
) -> list[MotionSegment]:
    """Parse the main section and keep only the first-layer extrusions.

    Parameters
    ----------
    lines : Iterable[str]
        Main-section lines (between the main markers).
    max_height_mm : float
        Height filter, see ``FilterConfig``.
    first_line_no : int
        Line number of the first element, for error messages.

    Returns
    -------
    list[MotionSegment]
        Relevant moves in file order.

    Raises
    ------
    ParseError
        If a ``G1`` line cannot be parsed.
    NoRelevantMovesError
        If no move survives the filter.
    """
    logger.info("Parsing G1 commands")

    total = 0
    moves: list[MotionSegment] = []
    for move in parse_moves(lines, first_line_no=first_line_no):
        total += 1
        if is_relevant(move, max_height_mm):
            moves.append(move)

    if not moves:
        raise NoRelevantMovesError(
            "Found zero relevant moves. Make sure you have the marker "
            "comments in the right places."
        )

    logger.info("Found %d relevant G1 commands (%d total).", len(moves), total)
    return moves
