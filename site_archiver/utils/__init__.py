"""
Utility modules for the site archiver.

Contains logging, path handling, robots.txt parsing utilities, and constants.
"""

from .log import setup_logger, get_logger
from .paths import sanitize, resolve_url, ensure_dir
from .robots import RobotsHandler, RobotsRules

__all__ = [
    "setup_logger",
    "get_logger",
    "sanitize",
    "resolve_url",
    "ensure_dir",
    "RobotsHandler",
    "RobotsRules",
]
