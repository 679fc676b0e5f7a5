"""Exceptions raised by the filter.

All fatal conditions of a run derive from :class:`TmxFilterError` so the
command line can report them uniformly.  Configuration problems are kept apart
because they are detected before any input is read.
"""

from __future__ import annotations

from typing import Optional


class TmxFilterError(Exception):
    """Base class for errors that abort a filtering run."""

    def __init__(self, message: str, unit: Optional[int] = None) -> None:
        self.unit = unit
        if unit is not None:
            message = f"translation unit #{unit}: {message}"
        super().__init__(message)


class MalformedStreamError(TmxFilterError):
    """A unit was opened but the input ended or nested before it closed."""


class MalformedUnitError(TmxFilterError):
    """A collected unit violates the structure the filters rely on."""


class ConfigurationError(ValueError):
    """Invalid language or session choice."""
