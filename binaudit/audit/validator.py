"""
==============================================================================
Bin Validator Module
==============================================================================

Gate that decides whether a scanned bin code may open an audit session.

Check Order:
-----------
1. Format (length / charset)        -> bad-format
2. Inventory loaded                 -> no-snapshot
3. Bin present in the snapshot      -> unknown-bin

==============================================================================
"""

from __future__ import annotations

import logging
from typing import Optional, Tuple

from binaudit.core import exceptions
from binaudit.core.exceptions import AppException
from binaudit.inventory import InventoryIndex
from binaudit.utils.validators import BinCodeValidator, normalize_code

from .models import BinRejectReason


# Module logger
logger = logging.getLogger(__name__)


class BinValidator:
    """
    Validates scanned bin codes against format rules and the current snapshot.

    Example:
        >>> validator = BinValidator(index, BinCodeValidator(length=3))
        >>> validator.validate("abc")
        (True, 'ABC', None)
        >>> validator.validate("ab")
        (False, None, <BinRejectReason.BAD_FORMAT: 'bad-format'>)
    """

    def __init__(self, index: InventoryIndex, code_validator: BinCodeValidator) -> None:
        self._index = index
        self._code_validator = code_validator

    def validate(
        self,
        raw_code: Optional[str]
    ) -> Tuple[bool, Optional[str], Optional[BinRejectReason]]:
        """
        Validate a scanned bin code.

        Args:
            raw_code: Decoded bin label

        Returns:
            Tuple of (is_valid, normalized_bin, reject_reason)
        """
        is_valid, normalized, _ = self._code_validator.validate(raw_code)
        if not is_valid:
            return False, None, BinRejectReason.BAD_FORMAT

        if self._index.current_snapshot() is None:
            return False, None, BinRejectReason.NO_SNAPSHOT

        if not self._index.is_known_bin(normalized):
            return False, None, BinRejectReason.UNKNOWN_BIN

        return True, normalized, None

    def require_valid(self, raw_code: Optional[str]) -> str:
        """
        Validate a bin code or raise the matching AppException.

        Returns:
            Normalized bin code

        Raises:
            AppException: BAD_BIN_FORMAT, NO_SNAPSHOT or UNKNOWN_BIN
        """
        is_valid, normalized, reason = self.validate(raw_code)
        if is_valid:
            return normalized

        logger.info(f"Bin rejected: {raw_code!r} ({reason.value})")
        raise self._to_exception(raw_code, reason)

    def _to_exception(self, raw_code: Optional[str], reason: BinRejectReason) -> AppException:
        if reason is BinRejectReason.BAD_FORMAT:
            _, _, message = self._code_validator.validate(raw_code)
            return exceptions.bad_bin_format(raw_code or "", message)
        if reason is BinRejectReason.NO_SNAPSHOT:
            return exceptions.no_snapshot()
        return exceptions.unknown_bin(normalize_code(raw_code))
