"""
gpxstream - Error codes and exceptions

``ErrorCode`` values equal their names so they stay stable in logs.
``E_`` prefix = fatal, ``W_`` prefix = warning (logged, never raised).
"""

from __future__ import annotations

from enum import Enum
from typing import Optional


class ErrorCode(str, Enum):
    # Parse
    E_PARSE_MALFORMED = "E_PARSE_MALFORMED"
    E_PARSE_EMPTY = "E_PARSE_EMPTY"

    # Configuration
    E_CONFIG_INVALID = "E_CONFIG_INVALID"
    E_CONFIG_VERSION = "E_CONFIG_VERSION"

    # Registry
    E_FORMAT_UNSUPPORTED = "E_FORMAT_UNSUPPORTED"

    # Warnings (non-fatal)
    W_FIELD_LENIENT = "W_FIELD_LENIENT"
    W_UNKNOWN_ELEMENT = "W_UNKNOWN_ELEMENT"


class GpxError(Exception):
    """Base class for every fatal gpxstream error."""

    def __init__(self, code: ErrorCode, message: str):
        super().__init__(message)
        self.code = code
        self.message = message

    def __str__(self) -> str:
        return f"[{self.code.value}] {self.message}"


class GpxParseError(GpxError):
    """The XML tokenizer gave up: malformed markup or a truncated document.

    There is no partial recovery; the whole conversion stops here.
    """

    def __init__(self, message: str, filename: Optional[str] = None,
                 line: int = 0, column: int = 0,
                 code: ErrorCode = ErrorCode.E_PARSE_MALFORMED):
        self.filename = filename
        self.line = line
        self.column = column
        where = f"File: {filename or '<stream>'} Line: {line} Column: {column}"
        super().__init__(code, f"Read error: {message} {where}")


class GpxConfigError(GpxError):
    def __init__(self, message: str, code: ErrorCode = ErrorCode.E_CONFIG_INVALID):
        super().__init__(code, message)
