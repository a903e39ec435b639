"""
STARSIGHT Custom Exceptions

Provides the exception hierarchy for the STARSIGHT frame analysis engine.
Degenerate frames (empty star fields, flat or saturated images) are valid
input and never raise; these exceptions are reserved for input that cannot
be interpreted as a frame at all, and for invalid configuration.

Exception Hierarchy:
    StarsightError (base)
    ├── ConfigurationError
    └── InvalidInputError
"""

from typing import Any, Optional


class StarsightError(Exception):
    """Base exception for all STARSIGHT errors.

    Attributes:
        message: Human-readable error description
        details: Optional dict with additional error context
    """

    def __init__(self, message: str, details: Optional[dict[str, Any]] = None) -> None:
        self.message = message
        self.details = details or {}
        super().__init__(message)

    def __str__(self) -> str:
        if self.details:
            detail_str = ", ".join(f"{k}={v}" for k, v in self.details.items())
            return f"{self.message} ({detail_str})"
        return self.message


# =============================================================================
# Configuration Errors
# =============================================================================

class ConfigurationError(StarsightError):
    """Invalid analysis configuration.

    Raised when a configuration value is out of range or an unknown
    configuration key is supplied.
    """

    def __init__(
        self,
        message: str,
        config_key: Optional[str] = None,
        value: Any = None,
    ) -> None:
        details: dict[str, Any] = {}
        if config_key:
            details["config_key"] = config_key
        if value is not None:
            details["value"] = value
        super().__init__(message, details)
        self.config_key = config_key
        self.value = value


# =============================================================================
# Input Errors
# =============================================================================

class InvalidInputError(StarsightError):
    """Pixel buffer is structurally invalid.

    Raised for zero-sized buffers, buffers whose length does not match
    width * height, non-finite pixel values, or regions outside the frame.
    """

    def __init__(
        self,
        message: str,
        width: Optional[int] = None,
        height: Optional[int] = None,
        length: Optional[int] = None,
        reason: Optional[str] = None,
    ) -> None:
        details: dict[str, Any] = {}
        if width is not None:
            details["width"] = width
        if height is not None:
            details["height"] = height
        if length is not None:
            details["length"] = length
        if reason:
            details["reason"] = reason
        super().__init__(message, details)
        self.width = width
        self.height = height
        self.length = length
        self.reason = reason


# =============================================================================
# Convenience aliases
# =============================================================================

Error = StarsightError
