"""
Utilities: logging and configuration.
"""

from ragchat.utils.logging import configure_logging, get_logger, set_log_level

__all__ = [
    "configure_logging",
    "get_logger",
    "set_log_level",
]
