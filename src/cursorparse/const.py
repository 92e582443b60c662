"""
General use constants.
"""

from __future__ import annotations
from typing import Final

EOF_EXPECTED: Final[str] = "not eof"
"""Reported by `end_of_input` when there is input left."""
END_OF_INPUT: Final[str] = "expected unit; end of input"
"""Reported by `any_unit` when there is no input left."""
MISMATCH_FORMAT: Final[str] = '{expected}; actual: "{actual}"; index={index}'
"""Message format for unit-level mismatches."""

WHITESPACES: Final[frozenset[str]] = frozenset({" ", "\t", "\n", "\r", "\f"})
DECIMAL: Final[frozenset[str]] = frozenset({"0", "1", "2", "3", "4", "5", "6", "7", "8", "9"})
