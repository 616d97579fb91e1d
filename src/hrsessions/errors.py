"""Exceptions raised at the edges of the session engine.

The analytics functions themselves never raise for in-range input; these
types cover the two places where things can go wrong: reading samples and
building a configuration.
"""

from __future__ import annotations


class HRSessionsError(Exception):
    """Base class for all hrsessions errors."""


class SampleSourceError(HRSessionsError):
    """A sample source could not supply data."""

    def __init__(self, message: str, code: str = "FETCH_ERROR") -> None:
        super().__init__(message)
        self.code = code

    def __repr__(self) -> str:
        return f"SampleSourceError(code={self.code!r}, message={str(self)!r})"


class ConfigError(HRSessionsError, ValueError):
    """A configuration value was rejected at construction time."""

    def __init__(self, message: str, field: str) -> None:
        super().__init__(message)
        self.field = field
