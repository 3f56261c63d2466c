"""
Config package export.

Keeps import sites clean and stable:
    from dir_cache.config import get_settings, DirCacheSettings
"""

from __future__ import annotations

from .settings import DirCacheSettings, get_settings

__all__ = ["DirCacheSettings", "get_settings"]
