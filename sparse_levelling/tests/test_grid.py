"""Tests for probe grid geometry."""

from __future__ import annotations

import numpy as np
import pytest

from sparse_levelling.configs.loader import LevellingConfig, load_config
from sparse_levelling.mesh.grid import GridPoint, LevellingGrid, build_grid, grid_from_config


@pytest.fixture()
def config() -> LevellingConfig:
    return load_config()


@pytest.fixture()
def grid(config: LevellingConfig) -> LevellingGrid:
    return grid_from_config(config)


class TestDefaultGrid:
    def test_shape(self, grid: LevellingGrid) -> None:
        assert grid.shape == (7, 7)
        assert grid.cell_shape == (6, 6)

    def test_first_and_last_point(self, grid: LevellingGrid) -> None:
        assert grid.point(0, 0) == GridPoint(5.0, 5.0)
        assert grid.point(6, 6) == GridPoint(305.0, 305.0)

    def test_even_spacing(self, grid: LevellingGrid) -> None:
        assert grid.step_x == pytest.approx(50.0)
        np.testing.assert_allclose(np.diff(grid.xs), 50.0)
        np.testing.assert_allclose(np.diff(grid.ys), 50.0)

    def test_row_is_y(self, grid: LevellingGrid) -> None:
        p = grid.point(2, 1)
        assert (p.x, p.y) == (55.0, 105.0)

    def test_out_of_range(self, grid: LevellingGrid) -> None:
        with pytest.raises(IndexError):
            grid.point(7, 0)
        with pytest.raises(IndexError):
            grid.point(0, -1)

    def test_read_only(self, grid: LevellingGrid) -> None:
        with pytest.raises(ValueError):
            grid.xs[0] = 0.0


class TestBuildGrid:
    def test_asymmetric_insets(self) -> None:
        grid = build_grid(220, 200, 10, 20, 3, 7, points_x=3, points_y=2)
        assert grid.shape == (2, 3)
        assert grid.point(0, 0) == GridPoint(3.0, 10.0)
        assert grid.point(1, 2) == GridPoint(213.0, 180.0)
        assert grid.step_x == pytest.approx(105.0)
        assert grid.step_y == pytest.approx(170.0)

    def test_last_point_exact(self) -> None:
        grid = build_grid(300, 300, 0, 0, 0, 0, points_x=7, points_y=4)
        assert grid.xs[-1] == 300.0
        assert grid.ys[-1] == 300.0

    def test_too_few_points(self) -> None:
        with pytest.raises(ValueError):
            build_grid(300, 300, 0, 0, 0, 0, points_x=1, points_y=5)
