"""
Exception hierarchy for SheetSearch.

Everything raised by the fetch/parse pipeline inherits from SheetSearchError,
so callers can catch broad or narrow as needed.
"""
from enum import Enum
from typing import Optional


class SheetSearchError(Exception):
    """Base exception for all SheetSearch errors."""


class NetworkError(SheetSearchError):
    """Transport failure, timeout or non-200 response."""

    def __init__(self, message: str, status: Optional[int] = None):
        self.status = status
        super().__init__(message)


class ParseErrorKind(str, Enum):
    ENCODING = "encoding"
    NO_GRID_FOUND = "no_grid_found"
    NO_DATA = "no_data"


class ParseError(SheetSearchError):
    """The published page could not be turned into an inventory."""

    def __init__(self, kind: ParseErrorKind, message: str):
        self.kind = kind
        super().__init__(message)


class ValidationError(SheetSearchError):
    """Invalid input from a caller (empty/malformed URL, bad interval)."""
