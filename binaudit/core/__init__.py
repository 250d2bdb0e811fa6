"""
==============================================================================
Core Package
==============================================================================

Core infrastructure for the application.

Modules:
--------
- exceptions: AppException class and error factory functions
- dependencies: FastAPI dependency functions for the audit engine

Usage:
------
    from binaudit.core import AppException
    from binaudit.core import exceptions

    raise exceptions.unknown_bin("QQQ")

==============================================================================
"""

from .exceptions import (
    AppException,
    register_exception_handlers,
)

__all__ = [
    "AppException",
    "register_exception_handlers",
]
