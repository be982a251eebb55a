"""Cross-cutting utilities (lowest dependency layer).

This package provides shared primitives for:
    - Config and result validation (validators)
    - Point-set geometry (geometry)
    - Atomic I/O (fs)
    - Provenance hashing (hashing)
    - Stage timers (profiler)
    - Unified logging (logging_config)

No module in utils/ may import from data_pipeline/.

Convenience imports:
    from epicycle_tracer.utils import fs, geometry, validators
    from epicycle_tracer.utils.logging_config import setup_logging, get_logger
"""

from . import fs
from . import geometry
from . import hashing
from . import logging_config
from . import profiler
from . import validators

from .logging_config import get_logger, push_context, setup_logging

__all__ = [
    # Modules
    'fs',
    'geometry',
    'hashing',
    'logging_config',
    'profiler',
    'validators',
    # Direct exports
    'setup_logging',
    'get_logger',
    'push_context',
]
