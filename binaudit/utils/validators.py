"""
==============================================================================
Validation Utilities Module
==============================================================================

Code normalization and format validation for scanned labels.

This module implements:
- normalize_code: The one normalization rule for item and bin codes
- BinCodeValidator: Validates the shape of a scanned bin label

Normalization Rule:
------------------
Physical labels vary in case and surrounding whitespace, so every code is
trimmed and uppercased before it is stored, compared, or looked up.

Validation Rules for Bin Codes:
------------------------------
- Exact length (configurable, default 3)
- Letters only ("alpha", default) or letters and digits ("alnum")

==============================================================================
"""

from __future__ import annotations

import re
from typing import Any, Optional, Tuple


def normalize_code(value: Any) -> str:
    """
    Normalize an item or bin code.

    Args:
        value: Raw code (None is treated as empty)

    Returns:
        Trimmed, uppercased code

    Example:
        >>> normalize_code("  abc ")
        'ABC'
    """
    if value is None:
        return ""
    return str(value).strip().upper()


class BinCodeValidator:
    """
    Validator for bin code shape.

    Example:
        >>> validator = BinCodeValidator(length=3)
        >>> validator.validate(" abc")
        (True, 'ABC', None)
        >>> validator.validate("ab")
        (False, None, 'Bin code must be exactly 3 characters')
    """

    CHARSET_PATTERNS = {
        "alpha": "A-Z",
        "alnum": "A-Z0-9",
    }

    CHARSET_LABELS = {
        "alpha": "letters",
        "alnum": "letters and digits",
    }

    def __init__(self, length: int = 3, charset: str = "alpha") -> None:
        if charset not in self.CHARSET_PATTERNS:
            raise ValueError(f"Unsupported bin code charset: {charset}")

        self.length = length
        self.charset = charset
        self._pattern = re.compile(
            rf"^[{self.CHARSET_PATTERNS[charset]}]{{{length}}}$"
        )

    def validate(self, raw_code: Optional[str]) -> Tuple[bool, Optional[str], Optional[str]]:
        """
        Validate and normalize a bin code.

        Args:
            raw_code: Decoded bin label

        Returns:
            Tuple of (is_valid, normalized_code, error_message)
        """
        code = normalize_code(raw_code)

        if not code:
            return False, None, "Bin code is required"

        if len(code) != self.length:
            return False, None, f"Bin code must be exactly {self.length} characters"

        if not self._pattern.match(code):
            return False, None, f"Bin code can only contain {self.CHARSET_LABELS[self.charset]}"

        return True, code, None

    def is_valid(self, raw_code: Optional[str]) -> bool:
        """Quick validation check."""
        is_valid, _, _ = self.validate(raw_code)
        return is_valid
