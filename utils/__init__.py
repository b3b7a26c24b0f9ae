"""
Utility modules for the ARV comp engine.
"""

from .formatting import format_currency, format_percent, format_distance
from .config import Config
from .logging_setup import configure_logging

__all__ = [
    "format_currency",
    "format_percent",
    "format_distance",
    "Config",
    "configure_logging",
]
