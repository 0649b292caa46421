"""
Error conditions raised by the flight report engine.

Everything derives from ReportError so the command line can turn any of them
into a clean exit while library callers still catch the precise condition.
"""

from __future__ import annotations


class ReportError(Exception):
    """Base class for every failure raised by the report engine."""


class DivisionUndefined(ReportError, ZeroDivisionError):
    """A rate or average was read from an aggregate with a zero denominator."""


class ClassificationError(ReportError):
    """A record could not be placed in any configured bucket."""


class InvalidLimit(ReportError, ValueError):
    """Ranking limit outside the accepted range."""

    def __init__(self, limit: object, low: int, high: int) -> None:
        super().__init__(f"limit must be between {low} and {high}, got {limit!r}")
        self.limit = limit


class NotFound(ReportError, KeyError):
    """Reference lookup miss (airport, carrier or plane)."""

    def __str__(self) -> str:
        # KeyError quotes its argument; keep the plain message instead.
        return str(self.args[0]) if self.args else ""


class SourceError(ReportError):
    """The flight record source failed or was already consumed."""
