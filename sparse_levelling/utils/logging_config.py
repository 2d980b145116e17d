"""Unified logging configuration for the command-line entry point.

Provides:
    - Console handler (stderr) with optional ANSI colors
    - An in-memory run log that is written to ``*_debug.txt`` only for
      debug runs or failures
    - Contextual fields (e.g. ``file=part.gcode``) on every record
    - Warning capture (Python warnings → logging)

Public API:
    setup_logging(log_level="INFO", context={"file": ...})
    capture_run_log() / dump_run_log(handler, path) / release_run_log(handler)
    push_context(file="part.gcode")
    pop_context(keys=["file"])

Format example:
    2025-10-28T13:45:12.345Z | INFO     | file=part.gcode | Message

Idempotent: repeated setup_logging() calls don't duplicate handlers.
"""

import contextvars
import logging
import logging.handlers
import sys
from datetime import datetime, timezone
from pathlib import Path
from typing import Any, Dict, List, Optional


_context_var = contextvars.ContextVar('logging_context', default={})

_configured = False


class ContextFormatter(logging.Formatter):
    """Formatter that appends contextual fields pushed via push_context().

    Timestamps are UTC; the level name is optionally colored.
    """

    def __init__(self, use_color: bool = True):
        super().__init__()
        self.use_color = use_color and sys.stderr.isatty()

        self.colors = {
            'DEBUG': '\033[36m',    # Cyan
            'INFO': '\033[32m',     # Green
            'WARNING': '\033[33m',  # Yellow
            'ERROR': '\033[31m',    # Red
            'CRITICAL': '\033[35m', # Magenta
            'RESET': '\033[0m'
        }

    def format(self, record: logging.LogRecord) -> str:
        context = _context_var.get({})
        ts = datetime.fromtimestamp(record.created, tz=timezone.utc)
        ts_str = ts.strftime('%Y-%m-%dT%H:%M:%S.%f')[:-3] + 'Z'

        level = record.levelname
        if self.use_color:
            level = f"{self.colors.get(level, '')}{level:8s}{self.colors['RESET']}"
        else:
            level = f"{level:8s}"

        context_str = ' '.join(f"{k}={v}" for k, v in context.items())

        parts = [ts_str, '|', level, '|']
        if context_str:
            parts.extend([context_str, '|'])
        parts.append(record.getMessage())

        line = ' '.join(parts)

        if record.exc_info:
            line += '\n' + self.formatException(record.exc_info)

        return line


def setup_logging(
    log_level: str = "INFO",
    *,
    color: bool = True,
    capture_warnings: bool = True,
    quiet_libs: Optional[List[str]] = None,
    context: Optional[Dict[str, Any]] = None
) -> Dict[str, Any]:
    """Configure root logger (idempotent).

    Parameters
    ----------
    log_level : str
        Console level: "DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"
    color : bool
        Use ANSI colors in console output, default True
    capture_warnings : bool
        Capture Python warnings to logging, default True
    quiet_libs : list[str], optional
        Library names to set to WARNING level (e.g., ["PIL"])
    context : dict, optional
        Initial contextual fields (e.g., {"file": "part.gcode"})

    Returns
    -------
    dict
        Configuration info: {"handlers": [...]}

    Examples
    --------
    >>> setup_logging(log_level="DEBUG", context={"file": "part.gcode"})
    """
    global _configured

    root = logging.getLogger()

    if _configured:
        for handler in list(root.handlers):
            handler.close()
        root.handlers.clear()

    level = getattr(logging, log_level.upper())
    root.setLevel(level)

    # Pinned so a later capture_run_log() can lower the root level
    console_handler = logging.StreamHandler(sys.stderr)
    console_handler.setLevel(level)
    console_handler.setFormatter(ContextFormatter(color))
    root.addHandler(console_handler)

    if context:
        push_context(**context)

    if quiet_libs:
        for lib in quiet_libs:
            logging.getLogger(lib).setLevel(logging.WARNING)

    if capture_warnings:
        route_warnings()

    _configured = True

    return {'handlers': [console_handler]}


def capture_run_log(level: int = logging.DEBUG) -> logging.handlers.MemoryHandler:
    """Buffer every record of the current run in memory.

    The buffer is only written out (see ``dump_run_log``) when the run
    is in debug mode or fails, so a clean run leaves no log file.  The
    root logger is lowered to *level* if needed; handlers that carry
    their own level (the console) are unaffected.

    Returns
    -------
    logging.handlers.MemoryHandler
        Handler attached to the root logger; never flushes on its own.
    """
    handler = logging.handlers.MemoryHandler(
        capacity=sys.maxsize,
        flushLevel=logging.CRITICAL + 1,
        target=None,
        flushOnClose=False,
    )
    handler.setLevel(level)
    root = logging.getLogger()
    if root.level == logging.NOTSET or root.level > level:
        root.setLevel(level)
    root.addHandler(handler)
    return handler


def dump_run_log(handler: logging.handlers.MemoryHandler, log_file: str) -> None:
    """Write the records buffered by *handler* to *log_file*.

    The file is replaced on every run; the buffer is emptied.
    """
    log_path = Path(log_file)
    log_path.parent.mkdir(parents=True, exist_ok=True)

    file_handler = logging.FileHandler(log_path, mode='w', encoding='utf-8')
    file_handler.setFormatter(ContextFormatter(use_color=False))
    try:
        handler.setTarget(file_handler)
        handler.flush()
    finally:
        handler.setTarget(None)
        file_handler.close()


def release_run_log(handler: logging.handlers.MemoryHandler) -> None:
    """Detach *handler* from the root logger and drop its buffer."""
    logging.getLogger().removeHandler(handler)
    handler.buffer.clear()
    handler.close()


def push_context(**kwargs) -> None:
    """Add contextual fields to all subsequent log records.

    Examples
    --------
    >>> push_context(file="part.gcode")
    >>> logger.info("Parsing")  # → "... | file=part.gcode | Parsing"
    """
    current = _context_var.get({})
    updated = {**current, **kwargs}
    _context_var.set(updated)


def pop_context(keys: Optional[List[str]] = None) -> None:
    """Remove contextual fields; all of them when *keys* is None."""
    if keys is None:
        _context_var.set({})
    else:
        current = dict(_context_var.get({}))
        for key in keys:
            current.pop(key, None)
        _context_var.set(current)


def route_warnings() -> None:
    """Route Python warnings to logging.warning()."""
    logging.captureWarnings(True)
    warnings_logger = logging.getLogger('py.warnings')
    warnings_logger.setLevel(logging.WARNING)
