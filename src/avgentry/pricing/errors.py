from __future__ import annotations


class BreakEvenError(Exception):
    """Base exception for break-even pricing errors."""
    pass


class ValidationError(BreakEvenError, ValueError):
    """Raised when positions or instrument constants are malformed."""
    pass


class NoExposureError(BreakEvenError):
    """Raised when an aggregation is requested for a side with zero volume."""
    pass
