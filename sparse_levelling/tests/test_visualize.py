"""Tests for the debug visualisation."""

from __future__ import annotations

from pathlib import Path

import numpy as np
import pytest
from PIL import Image

from sparse_levelling.configs.loader import LevellingConfig, load_config
from sparse_levelling.pipeline import LevellingResult, process_lines
from sparse_levelling.visualize import (
    BLACK,
    DARK_GRAY,
    LIGHT_GRAY,
    LIGHT_PINK,
    RED,
    render_debug_image,
    save_debug_image,
)


@pytest.fixture()
def config() -> LevellingConfig:
    return load_config()


@pytest.fixture()
def result(config: LevellingConfig) -> LevellingResult:
    lines = [
        "; BEGIN LEVEL",
        "; END LEVEL",
        "; End Start G-code",
        "G1 Z0.2",
        "G1 X10 Y10",
        "G1 X20 Y20 E0.5",
        "; Begin End G-code",
    ]
    return process_lines(lines, config)


def _render(result: LevellingResult, config: LevellingConfig) -> np.ndarray:
    return render_debug_image(
        config, result.grid, result.moves, result.occupied, result.selected
    )


class TestRenderDebugImage:
    def test_shape(self, result: LevellingResult, config: LevellingConfig) -> None:
        img = _render(result, config)
        assert img.shape == (310, 310, 3)
        assert img.dtype == np.uint8

    def test_origin_bottom_left(
        self, result: LevellingResult, config: LevellingConfig
    ) -> None:
        img = _render(result, config)
        # bed (x, y) is image (row = H - 1 - y, col = x)
        assert tuple(img[309 - 5, 5]) == RED
        assert tuple(img[309 - 305, 305]) == BLACK

    def test_cell_colors(self, result: LevellingResult, config: LevellingConfig) -> None:
        img = _render(result, config)
        assert tuple(img[309 - 40, 45]) == LIGHT_PINK
        assert tuple(img[309 - 150, 150]) == LIGHT_GRAY

    def test_margin(self, result: LevellingResult, config: LevellingConfig) -> None:
        img = _render(result, config)
        assert tuple(img[309 - 150, 1]) == DARK_GRAY

    def test_move_drawn(self, result: LevellingResult, config: LevellingConfig) -> None:
        img = _render(result, config)
        assert tuple(img[309 - 15, 15]) == BLACK


class TestSaveDebugImage:
    def test_png_written(
        self, tmp_path: Path, result: LevellingResult, config: LevellingConfig
    ) -> None:
        path = save_debug_image(
            tmp_path / "part_debug.png",
            config,
            result.grid,
            result.moves,
            result.occupied,
            result.selected,
        )
        with Image.open(path) as im:
            assert im.size == (310, 310)
            assert im.mode == "RGB"
        assert not list(tmp_path.glob("*.tmp*"))
