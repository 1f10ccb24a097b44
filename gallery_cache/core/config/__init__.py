"""
Configuration Module

Settings (pydantic-settings) and system-wide constants.
"""

from gallery_cache.core.config.settings import Settings, get_settings, reload_settings

__all__ = ["Settings", "get_settings", "reload_settings"]
