"""Cross-cutting utilities (lowest dependency layer).

This package provides shared primitives for:
    - Flame file validation (validators)
    - Color parsing and byte conversion (color)
    - Atomic I/O: PNG and YAML (fs)
    - Provenance hashing (hashing)
    - Unified logging (logging_config)
    - Wall-clock timing (profiler)

No module in utils/ may import from upper layers (renderer, scripts).

Convenience imports:
    from fractal_flame.utils import fs, validators
    from fractal_flame.utils.logging_config import setup_logging, get_logger
"""

from . import color
from . import fs
from . import hashing
from . import logging_config
from . import profiler
from . import validators

from .logging_config import get_logger, push_context, setup_logging

__all__ = [
    # Modules
    'color',
    'fs',
    'hashing',
    'logging_config',
    'profiler',
    'validators',
    # Direct exports
    'setup_logging',
    'get_logger',
    'push_context',
]
