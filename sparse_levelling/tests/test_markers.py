"""Tests for marker scanning."""

from __future__ import annotations

import pytest

from sparse_levelling.configs.loader import LevellingConfig, MarkerConfig, load_config
from sparse_levelling.errors import MarkerOrderError, MissingMarkerError
from sparse_levelling.gcode.markers import MarkerIndices, find_markers


# ---------------------------------------------------------------------------
# Fixtures
# ---------------------------------------------------------------------------


@pytest.fixture()
def markers() -> MarkerConfig:
    return load_config().markers


@pytest.fixture()
def lines() -> list[str]:
    return [
        "M140 S60",
        "; BEGIN LEVEL",
        "G29",
        "; END LEVEL",
        "G28",
        "; End Start G-code",
        "G1 X10 Y10 E1",
        "; Begin End G-code",
        "M84",
    ]


# ---------------------------------------------------------------------------
# Lookup
# ---------------------------------------------------------------------------


class TestFindMarkers:
    def test_indices(self, lines: list[str], markers: MarkerConfig) -> None:
        found = find_markers(lines, markers)
        assert found == MarkerIndices(
            main_start=5, main_end=7, levelling_start=1, levelling_end=3
        )

    def test_whitespace_trimmed(self, lines: list[str], markers: MarkerConfig) -> None:
        lines[1] = "   ; BEGIN LEVEL \t"
        lines[7] = "; Begin End G-code\r"
        found = find_markers(lines, markers)
        assert found.levelling_start == 1
        assert found.main_end == 7

    def test_substring_does_not_match(
        self, lines: list[str], markers: MarkerConfig
    ) -> None:
        lines[3] = "; END LEVEL here"
        with pytest.raises(MissingMarkerError) as exc:
            find_markers(lines, markers)
        assert exc.value.marker == "; END LEVEL"

    def test_last_occurrence_wins(self, lines: list[str], markers: MarkerConfig) -> None:
        lines.insert(0, "; End Start G-code")
        found = find_markers(lines, markers)
        assert found.main_start == 6

    def test_main_section(self, lines: list[str], markers: MarkerConfig) -> None:
        found = find_markers(lines, markers)
        assert found.main_section(lines) == ["G1 X10 Y10 E1"]

    def test_levelling_span(self, lines: list[str], markers: MarkerConfig) -> None:
        assert find_markers(lines, markers).levelling_span == 3


# ---------------------------------------------------------------------------
# Errors
# ---------------------------------------------------------------------------


class TestMarkerErrors:
    @pytest.mark.parametrize(
        "marker",
        ["; BEGIN LEVEL", "; END LEVEL", "; End Start G-code", "; Begin End G-code"],
    )
    def test_missing(
        self, lines: list[str], markers: MarkerConfig, marker: str
    ) -> None:
        lines.remove(marker)
        with pytest.raises(MissingMarkerError, match=marker):
            find_markers(lines, markers)

    def test_empty_input(self, markers: MarkerConfig) -> None:
        with pytest.raises(MissingMarkerError):
            find_markers([], markers)

    def test_levelling_markers_swapped(
        self, lines: list[str], markers: MarkerConfig
    ) -> None:
        lines[1], lines[3] = lines[3], lines[1]
        with pytest.raises(MarkerOrderError):
            find_markers(lines, markers)

    def test_levelling_after_main_end(
        self, lines: list[str], markers: MarkerConfig
    ) -> None:
        lines += ["; BEGIN LEVEL", "G29", "; END LEVEL"]
        with pytest.raises(MarkerOrderError):
            find_markers(lines, markers)

    def test_main_markers_swapped(
        self, lines: list[str], markers: MarkerConfig
    ) -> None:
        lines[5], lines[7] = lines[7], lines[5]
        with pytest.raises(MarkerOrderError):
            find_markers(lines, markers)

    def test_levelling_inside_main_section_allowed(
        self, markers: MarkerConfig
    ) -> None:
        lines = [
            "; End Start G-code",
            "; BEGIN LEVEL",
            "; END LEVEL",
            "G1 X1 Y1 E1",
            "; Begin End G-code",
        ]
        found = find_markers(lines, markers)
        assert found.levelling_end < found.main_end
