"""
hashtree - Core Package

Settings and logging configuration shared by the tree engine.
"""

from hashtree.core.config import Settings, get_settings, settings
from hashtree.core.logging import setup_logging

__all__ = [
    "Settings",
    "get_settings",
    "settings",
    "setup_logging",
]
