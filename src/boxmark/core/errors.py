"""Exceptions raised by Boxmark."""

from __future__ import annotations

from typing import Optional


class FormatError(ValueError):
    """
    Raised when label data cannot be parsed or normalized.

    Covers malformed label lines, wrong field counts and degenerate
    image dimensions.
    """

    def __init__(self, message: str, line_number: Optional[int] = None) -> None:
        self.line_number = line_number
        if line_number is not None:
            message = f"line {line_number}: {message}"
        super().__init__(message)
