"""
FlareSight utilities module.

Provides logging helpers and sampling statistics.
"""

from .logging import (
    StructuredLogger,
    SamplingStats,
    setup_console_logging
)

__all__ = [
    'StructuredLogger',
    'SamplingStats',
    'setup_console_logging'
]
