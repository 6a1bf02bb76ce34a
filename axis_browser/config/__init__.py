"""
Config package for axis_browser.

Responsible for:
- settings models (Settings, PaginationSettings)
- the config directory loader lives in axis_browser.config.loader
"""

from .model import PaginationSettings, Settings

__all__ = ["PaginationSettings", "Settings"]
