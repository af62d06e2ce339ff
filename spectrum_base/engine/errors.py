"""Error kinds raised by the spectrum engine.

Every error is detected from the shape or value of the inputs and is
raised immediately; nothing is retried or clamped.  Each kind also derives
from the closest built-in exception so callers that already catch
``ValueError``/``IndexError`` keep working.
"""

from __future__ import annotations

__all__ = [
    "SpectrumError",
    "InvalidDomain",
    "InvalidInterval",
    "NotEvenlySpaced",
    "InvalidFilterConfig",
    "WindowTooLarge",
    "InvalidScale",
    "DimensionMismatch",
]


class SpectrumError(Exception):
    """Base class for every error raised by :mod:`spectrum_base.engine`."""


class InvalidDomain(SpectrumError, ValueError):
    """Raised when a coordinate domain is not strictly monotonic or has zero step."""


class InvalidInterval(SpectrumError, IndexError):
    """Raised when a requested view interval lies outside the spectrum or runs the wrong way."""


class NotEvenlySpaced(SpectrumError, ValueError):
    """Raised when integration, moments or derivatives are requested on irregular data."""


class InvalidFilterConfig(SpectrumError, ValueError):
    """Raised for an unusable Savitzky-Golay window/degree/derivative combination."""


class WindowTooLarge(SpectrumError, ValueError):
    """Raised when a filter window is longer than the sequence it is applied to."""

    def __init__(self, window: int, length: int):
        self.window = window
        self.length = length
        super().__init__(f"Savitzky-Golay window ({window}) larger than sequence length ({length})")


class InvalidScale(SpectrumError, ValueError):
    """Raised when a line shape receives a non-positive scale."""


class DimensionMismatch(SpectrumError, ValueError):
    """Raised when paired sequences (coordinates/intensities, x/y data) disagree in size."""
