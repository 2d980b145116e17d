#!/usr/bin/env python3
"""
Run Levelling Script.

Replace the levelling block of a sliced G-code file with a reduced
Marlin UBL sequence that only probes the mesh points under the first
layer.

Usage:
    python -m sparse_levelling.scripts.run_levelling part.gcode
    python -m sparse_levelling.scripts.run_levelling part.gcode --debug
    python -m sparse_levelling.scripts.run_levelling part.gcode -c my_bed.yaml -o out.gcode

Outputs (next to the input):
    <stem>_level<suffix>   rewritten G-code
    <stem>_debug.png       coverage overview (--debug only)
    <stem>_debug.txt       run log (--debug, or when processing fails)
"""

from __future__ import annotations

import argparse
import logging
import sys
from pathlib import Path
from typing import Optional, Sequence

from sparse_levelling.configs.loader import ConfigError, load_config
from sparse_levelling.errors import LevellingError
from sparse_levelling.pipeline import debug_log_path_for, process_file
from sparse_levelling.utils import logging_config

logger = logging.getLogger(__name__)


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="sparse-levelling",
        description="Probe only the bed mesh points the first layer touches",
        formatter_class=argparse.RawDescriptionHelpFormatter,
    )
    parser.add_argument(
        "gcode",
        type=str,
        help="Sliced G-code file containing the four marker comments",
    )
    parser.add_argument(
        "--config",
        "-c",
        type=str,
        help="Configuration file path (default: bundled levelling.yaml)",
    )
    parser.add_argument(
        "--output",
        "-o",
        type=str,
        help="Output path (default: <stem>_level<suffix> beside the input)",
    )
    parser.add_argument(
        "--debug",
        action="store_true",
        help="Write a debug PNG and the run log next to the input",
    )
    parser.add_argument(
        "--log-level",
        type=str,
        default="INFO",
        choices=["DEBUG", "INFO", "WARNING", "ERROR"],
        help="Console log level",
    )
    return parser


def main(argv: Optional[Sequence[str]] = None) -> int:
    args = build_parser().parse_args(argv)
    input_path = Path(args.gcode)

    logging_config.setup_logging(
        log_level=args.log_level,
        context={"file": input_path.name},
        quiet_libs=["PIL"],
    )
    run_log = logging_config.capture_run_log()

    status = 0
    try:
        config = load_config(args.config)
        result = process_file(
            input_path,
            config,
            output_path=args.output,
            debug=args.debug,
        )
        logger.info(
            "Done: probing %d of %d points", result.probe_count, result.selected.size
        )
    except (LevellingError, ConfigError, FileNotFoundError) as e:
        logger.error("Error: %s", e)
        status = 1
    except Exception as e:
        logger.exception("Unexpected error: %s", e)
        status = 1

    try:
        if (status != 0 or args.debug) and input_path.parent.is_dir():
            log_path = debug_log_path_for(input_path)
            logging_config.dump_run_log(run_log, str(log_path))
            if status == 0:
                logger.info("Saved run log to %s", log_path)
    finally:
        logging_config.release_run_log(run_log)
        logging_config.pop_context(["file"])

    return status


if __name__ == "__main__":
    sys.exit(main())
