"""
Sparse Levelling Package.

Post-processor for sliced G-code that restricts mesh bed levelling to the
grid points underneath the area the first layers actually cover.  The
``G29`` block between two marker comments is replaced with one that only
invalidates and re-probes those points.

Subpackages:
    configs: Bed, probe grid and marker configuration loading
    gcode: Marker scanning, G1 parsing, levelling block generation, splicing
    mesh: Probe grid geometry, coverage rasterization, point selection
    utils: Atomic file I/O and logging setup
    scripts: Command-line entry point
"""

__all__ = ["configs", "gcode", "mesh", "utils", "pipeline", "visualize"]
