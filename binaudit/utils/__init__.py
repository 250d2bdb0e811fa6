"""
==============================================================================
Utilities Package
==============================================================================

Utility classes and functions for the application.

Modules:
--------
- validators: Code normalization and bin code format validation

==============================================================================
"""

from .validators import BinCodeValidator, normalize_code

__all__ = [
    "BinCodeValidator",
    "normalize_code",
]
