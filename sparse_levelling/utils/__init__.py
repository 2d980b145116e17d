"""Cross-cutting utilities (lowest dependency layer).

    - Atomic file I/O and YAML loading (fs)
    - Unified logging (logging_config)

No module in utils/ may import from the rest of the package.
"""

from . import fs
from . import logging_config

from .logging_config import setup_logging

__all__ = [
    'fs',
    'logging_config',
    'setup_logging',
]
