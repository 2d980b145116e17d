"""
G-code module.

Marker scanning, G1 parsing with position tracking, generation of the
reduced levelling block, and splicing it back into the file.
"""

from sparse_levelling.gcode.generator import (
    GCodeError,
    LevellingBlockGenerator,
    format_coord,
    generate_levelling_gcode,
)
from sparse_levelling.gcode.markers import MarkerIndices, find_markers
from sparse_levelling.gcode.parser import (
    MotionSegment,
    Position,
    parse_moves,
    relevant_moves,
)
from sparse_levelling.gcode.splice import splice_block

__all__ = [
    "GCodeError",
    "LevellingBlockGenerator",
    "MarkerIndices",
    "MotionSegment",
    "Position",
    "find_markers",
    "format_coord",
    "generate_levelling_gcode",
    "parse_moves",
    "relevant_moves",
    "splice_block",
]
