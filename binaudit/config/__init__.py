"""
==============================================================================
Configuration Package
==============================================================================

Centralized configuration management using Pydantic Settings.

Usage:
------
    from binaudit.config import get_settings, Settings

    settings = get_settings()
    print(settings.bin_code_length)
    print(settings.terminal_status_set)

==============================================================================
"""

from .settings import Settings, get_settings

__all__ = [
    "Settings",
    "get_settings",
]
