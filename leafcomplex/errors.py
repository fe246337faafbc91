"""Exception taxonomy for the analysis core."""

from __future__ import annotations


class LeafComplexError(Exception):
    """Base class for every error raised by the analysis core."""


class InvalidInputError(LeafComplexError):
    """Input that can never be processed (zero kernel, malformed raster)."""


class NoValidPointsError(LeafComplexError):
    """No usable foreground: empty contour, zero alpha mass, no candidates."""


class GeometryDegenerateError(LeafComplexError):
    """Two points cannot be connected through the mask.

    Recovered locally by the path engine, never surfaced to callers.
    """


class ConfigError(LeafComplexError, ValueError):
    """Configuration value out of its usable domain."""


class AnalysisFailedError(LeafComplexError):
    """One image's analysis failed; carries the per-stage error map."""

    def __init__(self, errors: dict[str, str]) -> None:
        self.errors = dict(errors)
        detail = "; ".join(f"{sid}: {msg}" for sid, msg in sorted(self.errors.items()))
        super().__init__(f"Analysis failed ({detail})")
