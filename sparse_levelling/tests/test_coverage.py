"""Tests for the coverage rasterizer.

Validates cell boundaries (including the inset margins absorbed by
border cells), clipping, and the set-like laws of rasterization:
idempotence, order independence and monotonicity.
"""

from __future__ import annotations

from dataclasses import replace

import numpy as np
import pytest

from sparse_levelling.configs.loader import (
    BedConfig,
    LevellingConfig,
    ProbeGridConfig,
    load_config,
)
from sparse_levelling.gcode.parser import MotionSegment, Position
from sparse_levelling.mesh.coverage import (
    COVERED,
    CellBox,
    cell_box,
    clip_segment,
    compute_used_cells,
    render_moves,
    used_cells,
)


# ---------------------------------------------------------------------------
# Fixtures
# ---------------------------------------------------------------------------


@pytest.fixture()
def config() -> LevellingConfig:
    return load_config()


def _move(x0: float, y0: float, x1: float, y1: float) -> MotionSegment:
    return MotionSegment(
        start=Position(x0, y0, 0.2), end=Position(x1, y1, 0.2), extrusion=0.1
    )


def _occupied_cells(moves: list[MotionSegment], config: LevellingConfig) -> set:
    _, occupied = compute_used_cells(moves, config)
    return {(int(r), int(c)) for r, c in zip(*np.nonzero(occupied))}


# ---------------------------------------------------------------------------
# Raster
# ---------------------------------------------------------------------------


class TestRender:
    def test_surface_shape(self, config: LevellingConfig) -> None:
        surface = render_moves([], config)
        assert surface.shape == (310, 310)
        assert surface.dtype == np.uint8
        assert not surface.any()

    def test_row_is_y(self, config: LevellingConfig) -> None:
        surface = render_moves([_move(10, 100, 20, 100)], config)
        assert surface[100, 15] == COVERED
        assert surface[15, 100] == 0

    def test_endpoint_rounding(self, config: LevellingConfig) -> None:
        surface = render_moves([_move(9.5, 40.4, 9.5, 44.6)], config)
        assert surface[40, 10] == COVERED
        assert surface[45, 10] == COVERED
        assert surface[39, 10] == 0
        assert surface[46, 10] == 0

    def test_outside_bed_is_clipped(self, config: LevellingConfig) -> None:
        surface = render_moves([_move(-50, -50, -10, -10)], config)
        assert not surface.any()

    def test_far_off_bed_endpoint(self, config: LevellingConfig) -> None:
        surface = render_moves([_move(10, 20, 99999999999, 20)], config)
        assert surface[20, 10:].all()
        assert not surface[:20].any()
        assert not surface[21:].any()

    def test_far_off_bed_both_ends(self, config: LevellingConfig) -> None:
        surface = render_moves([_move(-1e12, 100, 1e12, 100)], config)
        assert surface[100].all()
        assert int(surface.astype(bool).sum()) == 310


# ---------------------------------------------------------------------------
# Cell boxes
# ---------------------------------------------------------------------------


class TestCellBox:
    def test_border_cells_absorb_insets(self, config: LevellingConfig) -> None:
        assert cell_box(0, 0, config) == CellBox(left=0, right=55, front=0, back=55)
        assert cell_box(5, 5, config) == CellBox(
            left=255, right=310, front=255, back=310
        )

    def test_inner_cell(self, config: LevellingConfig) -> None:
        assert cell_box(2, 1, config) == CellBox(
            left=55, right=105, front=105, back=155
        )

    def test_boxes_tile_the_bed(self, config: LevellingConfig) -> None:
        rights = [cell_box(0, c, config).right for c in range(config.cells_x)]
        lefts = [cell_box(0, c, config).left for c in range(config.cells_x)]
        assert lefts[0] == 0
        assert lefts[1:] == rights[:-1]
        assert rights[-1] == config.bed.width_px

    def test_uneven_step(self, config: LevellingConfig) -> None:
        cfg = replace(
            config,
            bed=BedConfig(width_mm=235, height_mm=310),
            probe_grid=ProbeGridConfig(points_x=4, points_y=7),
        )
        assert [cell_box(0, c, cfg)[:2] for c in range(3)] == [
            (0, 80),
            (80, 155),
            (155, 235),
        ]


# ---------------------------------------------------------------------------
# Occupancy
# ---------------------------------------------------------------------------


class TestUsedCells:
    def test_short_diagonal(self, config: LevellingConfig) -> None:
        assert _occupied_cells([_move(10, 10, 20, 20)], config) == {(0, 0)}

    def test_horizontal_line(self, config: LevellingConfig) -> None:
        assert _occupied_cells([_move(50, 100, 150, 100)], config) == {
            (1, 0),
            (1, 1),
            (1, 2),
        }

    def test_line_on_cell_edge(self, config: LevellingConfig) -> None:
        # x = 55 is the first column of cell 1, not the last of cell 0
        assert _occupied_cells([_move(55, 10, 55, 20)], config) == {(0, 1)}

    def test_extrusion_in_front_inset(self, config: LevellingConfig) -> None:
        assert _occupied_cells([_move(1, 1, 3, 3)], config) == {(0, 0)}

    def test_extrusion_in_back_right_inset(self, config: LevellingConfig) -> None:
        assert _occupied_cells([_move(306, 306, 309, 309)], config) == {(5, 5)}

    def test_empty(self, config: LevellingConfig) -> None:
        _, occupied = compute_used_cells([], config)
        assert occupied.shape == (6, 6)
        assert not occupied.any()

    def test_box_past_surface_is_clipped(self, config: LevellingConfig) -> None:
        cfg = replace(config, bed=BedConfig(width_mm=309.5, height_mm=310))
        surface = render_moves([_move(300, 300, 309, 309)], cfg)
        assert surface.shape == (310, 310)
        occupied = used_cells(surface, cfg)
        assert occupied[5, 5]


class TestRasterLaws:
    @pytest.fixture()
    def moves(self) -> list[MotionSegment]:
        return [
            _move(10, 10, 120, 40),
            _move(200, 250, 290, 260),
            _move(60, 160, 60, 300),
            _move(150, 150, 155, 152),
        ]

    def test_idempotent(self, config: LevellingConfig, moves: list) -> None:
        once = render_moves(moves, config)
        twice = render_moves(moves + moves, config)
        np.testing.assert_array_equal(once, twice)

    def test_order_independent(self, config: LevellingConfig, moves: list) -> None:
        forward = render_moves(moves, config)
        backward = render_moves(list(reversed(moves)), config)
        np.testing.assert_array_equal(forward, backward)

    def test_monotonic(self, config: LevellingConfig, moves: list) -> None:
        _, subset = compute_used_cells(moves[:2], config)
        _, full = compute_used_cells(moves, config)
        assert not (subset & ~full).any()


class TestClipSegment:
    def test_inside_unchanged(self) -> None:
        assert clip_segment((1.25, 2.5), (7.75, 9.0), 0, 0, 10, 10) == (
            (1.25, 2.5),
            (7.75, 9.0),
        )

    def test_outside(self) -> None:
        assert clip_segment((-5, -5), (-1, 20), 0, 0, 10, 10) is None
        assert clip_segment((11, 5), (20, 5), 0, 0, 10, 10) is None

    def test_partial(self) -> None:
        (x0, y0), (x1, y1) = clip_segment((5, 5), (1e15, 5), 0, 0, 10, 10)
        assert (x0, y0) == (5, 5)
        assert x1 == pytest.approx(10.0)
        assert y1 == 5

    def test_crossing_keeps_slope(self) -> None:
        (x0, y0), (x1, y1) = clip_segment((-10, -10), (20, 20), 0, 0, 10, 10)
        assert (x0, y0) == pytest.approx((0.0, 0.0))
        assert (x1, y1) == pytest.approx((10.0, 10.0))

    def test_far_off_bed_cells(self) -> None:
        config = load_config()
        assert _occupied_cells([_move(10, 20, 99999999999, 20)], config) == {
            (0, c) for c in range(6)
        }
