"""Configuration loader for sparse levelling.

Loads and validates ``levelling.yaml`` into typed, frozen dataclasses.
Bed size, mesh insets, probe counts, the height filter and the four
marker comments all come from the config -- nothing is hardcoded in the
processing modules.

All lengths are in **millimetres**; the bed origin is the front-left
corner.

Usage::

    from sparse_levelling.configs.loader import load_config
    cfg = load_config()                          # default path
    cfg = load_config("/custom/levelling.yaml")  # explicit path
"""

from __future__ import annotations

import logging
import math
from dataclasses import dataclass
from pathlib import Path
from typing import Any

import yaml

from sparse_levelling.utils.fs import load_yaml

logger = logging.getLogger(__name__)


# ---------------------------------------------------------------------------
# Exceptions
# ---------------------------------------------------------------------------


class ConfigError(Exception):
    """Raised when configuration validation fails."""

    pass


# ---------------------------------------------------------------------------
# Dataclasses -- mirror the YAML structure
# ---------------------------------------------------------------------------


@dataclass(frozen=True)
class BedConfig:
    """Printable bed dimensions in mm.

    The coverage raster is ``ceil(height_mm)`` x ``ceil(width_mm)``
    pixels, one pixel per millimetre.
    """

    width_mm: float
    height_mm: float

    @property
    def width_px(self) -> int:
        return int(math.ceil(self.width_mm))

    @property
    def height_px(self) -> int:
        return int(math.ceil(self.height_mm))


@dataclass(frozen=True)
class InsetConfig:
    """Distance from each bed edge to the outermost probe points (mm)."""

    front: float
    back: float
    left: float
    right: float


@dataclass(frozen=True)
class ProbeGridConfig:
    """Number of probe points along each axis (both >= 2)."""

    points_x: int
    points_y: int


@dataclass(frozen=True)
class FilterConfig:
    """Move filter applied after parsing.

    Parameters
    ----------
    max_height_mm : float
        Moves whose destination Z is above this are ignored.  Should be
        larger than the first layer height plus any offsets.
    """

    max_height_mm: float


@dataclass(frozen=True)
class MarkerConfig:
    """Exact (whitespace-trimmed) marker lines expected in the G-code."""

    main_start: str
    main_end: str
    levelling_start: str
    levelling_end: str

    def as_dict(self) -> dict[str, str]:
        return {
            "main_start": self.main_start,
            "main_end": self.main_end,
            "levelling_start": self.levelling_start,
            "levelling_end": self.levelling_end,
        }


@dataclass(frozen=True)
class LevellingConfig:
    """Complete configuration loaded from ``levelling.yaml``."""

    bed: BedConfig
    inset: InsetConfig
    probe_grid: ProbeGridConfig
    filter: FilterConfig
    markers: MarkerConfig

    # -- Convenience helpers ------------------------------------------------

    @property
    def step_x(self) -> float:
        """Spacing between probe columns in mm."""
        span = self.bed.width_mm - self.inset.left - self.inset.right
        return span / (self.probe_grid.points_x - 1)

    @property
    def step_y(self) -> float:
        """Spacing between probe rows in mm."""
        span = self.bed.height_mm - self.inset.front - self.inset.back
        return span / (self.probe_grid.points_y - 1)

    @property
    def cells_x(self) -> int:
        return self.probe_grid.points_x - 1

    @property
    def cells_y(self) -> int:
        return self.probe_grid.points_y - 1


# ---------------------------------------------------------------------------
# Internal parsing helpers
# ---------------------------------------------------------------------------


def _parse_count(label: str, raw: Any) -> int:
    """Parse a probe count, rejecting non-integral floats like ``7.5``."""
    val = float(raw)
    if not val.is_integer():
        raise ConfigError(f"probe_grid.{label} must be an integer, got {raw!r}")
    return int(val)


def _parse_markers(data: dict[str, Any]) -> MarkerConfig:
    """Parse the ``markers`` section; markers are compared trimmed."""
    return MarkerConfig(
        main_start=str(data["main_start"]).strip(),
        main_end=str(data["main_end"]).strip(),
        levelling_start=str(data["levelling_start"]).strip(),
        levelling_end=str(data["levelling_end"]).strip(),
    )


# ---------------------------------------------------------------------------
# Validation
# ---------------------------------------------------------------------------


def _validate_config(cfg: LevellingConfig) -> None:
    """Validate cross-field consistency.

    Raises
    ------
    ConfigError
        On any invalid combination.
    """
    # -- Bed ----------------------------------------------------------------
    if cfg.bed.width_mm <= 0 or cfg.bed.height_mm <= 0:
        raise ConfigError(
            f"Bed size must be positive, got "
            f"{cfg.bed.width_mm} x {cfg.bed.height_mm}"
        )

    # -- Insets -------------------------------------------------------------
    for name, value in (
        ("front", cfg.inset.front),
        ("back", cfg.inset.back),
        ("left", cfg.inset.left),
        ("right", cfg.inset.right),
    ):
        if value < 0:
            raise ConfigError(f"mesh_inset_mm.{name} must be >= 0, got {value}")

    span_x = cfg.bed.width_mm - cfg.inset.left - cfg.inset.right
    span_y = cfg.bed.height_mm - cfg.inset.front - cfg.inset.back
    if span_x <= 0:
        raise ConfigError(
            f"Left/right insets ({cfg.inset.left} + {cfg.inset.right}) "
            f"leave no usable width on a {cfg.bed.width_mm} mm bed"
        )
    if span_y <= 0:
        raise ConfigError(
            f"Front/back insets ({cfg.inset.front} + {cfg.inset.back}) "
            f"leave no usable depth on a {cfg.bed.height_mm} mm bed"
        )

    # -- Probe grid ---------------------------------------------------------
    pg = cfg.probe_grid
    if pg.points_x < 2 or pg.points_y < 2:
        raise ConfigError(
            f"probe_grid must be >= 2 x 2, got {pg.points_x} x {pg.points_y}"
        )

    # -- Filter -------------------------------------------------------------
    if cfg.filter.max_height_mm <= 0:
        raise ConfigError(
            f"filter.max_height_mm must be > 0, got {cfg.filter.max_height_mm}"
        )

    # -- Markers ------------------------------------------------------------
    markers = cfg.markers.as_dict()
    for name, value in markers.items():
        if not value:
            raise ConfigError(f"markers.{name} must not be empty")
    if len(set(markers.values())) != len(markers):
        raise ConfigError(f"markers must be pairwise distinct, got {markers}")


# ---------------------------------------------------------------------------
# Public API
# ---------------------------------------------------------------------------


def parse_config(data: dict[str, Any]) -> LevellingConfig:
    """Build and validate a config from an already-loaded mapping.

    Parameters
    ----------
    data : dict[str, Any]
        Mapping with the structure of ``levelling.yaml``.

    Returns
    -------
    LevellingConfig
        Fully validated, frozen configuration object.

    Raises
    ------
    ConfigError
        If any field is missing or fails validation.
    """
    if not isinstance(data, dict):
        raise ConfigError(
            f"Configuration root must be a mapping, got {type(data).__name__}"
        )

    try:
        bd = data["bed"]
        bed = BedConfig(
            width_mm=float(bd["width_mm"]),
            height_mm=float(bd["height_mm"]),
        )

        ins = data["mesh_inset_mm"]
        inset = InsetConfig(
            front=float(ins["front"]),
            back=float(ins["back"]),
            left=float(ins["left"]),
            right=float(ins["right"]),
        )

        pg = data["probe_grid"]
        probe_grid = ProbeGridConfig(
            points_x=_parse_count("points_x", pg["points_x"]),
            points_y=_parse_count("points_y", pg["points_y"]),
        )

        fl = data.get("filter", {})
        move_filter = FilterConfig(
            max_height_mm=float(fl.get("max_height_mm", 1.0)),
        )

        markers = _parse_markers(data["markers"])

        config = LevellingConfig(
            bed=bed,
            inset=inset,
            probe_grid=probe_grid,
            filter=move_filter,
            markers=markers,
        )

    except KeyError as exc:
        raise ConfigError(
            f"Missing required configuration key: {exc}"
        ) from exc
    except (TypeError, ValueError) as exc:
        raise ConfigError(
            f"Invalid configuration value: {exc}"
        ) from exc

    _validate_config(config)
    return config


def load_config(path: str | Path | None = None) -> LevellingConfig:
    """Load and validate levelling configuration from YAML.

    Parameters
    ----------
    path : str | Path | None
        Path to ``levelling.yaml``.  ``None`` loads the default shipped
        alongside this module.

    Returns
    -------
    LevellingConfig
        Fully validated, frozen configuration object.

    Raises
    ------
    ConfigError
        If any field is missing or fails validation.
    FileNotFoundError
        If *path* does not exist.
    """
    if path is None:
        path = Path(__file__).parent / "levelling.yaml"
    else:
        path = Path(path)

    if not path.exists():
        raise FileNotFoundError(f"Configuration file not found: {path}")

    logger.info("Loading configuration from %s", path)

    try:
        data = load_yaml(path)
    except yaml.YAMLError as exc:
        raise ConfigError(str(exc)) from exc
    if data is None:
        raise ConfigError(f"Empty configuration file: {path}")

    config = parse_config(data)
    logger.debug(
        "Bed %.1f x %.1f mm, %d x %d probe points, max height %.2f mm",
        config.bed.width_mm,
        config.bed.height_mm,
        config.probe_grid.points_x,
        config.probe_grid.points_y,
        config.filter.max_height_mm,
    )
    return config
