"""
Exception and warning hierarchy for rerand.

All exceptions inherit from RerandError so callers can catch any
library-specific failure. Validation errors are also ValueErrors, and
degenerate statistics are also ArithmeticErrors, so generic handlers
keep working.
"""

from __future__ import annotations

__all__ = [
    "RerandError",
    "ValidationError",
    "InvalidPartition",
    "DegenerateStatistic",
    "ComputationalInfeasibilityWarning",
]


class RerandError(Exception):
    """Base exception for all rerand errors."""


class ValidationError(RerandError, ValueError):
    """User-provided inputs failed validation."""


class InvalidPartition(ValidationError):
    """
    Treatment assignment is not a valid two-group partition of the design.

    Raised when the treatment set is empty, covers every observation,
    contains duplicate or out-of-range indices, or (blocked designs) when
    a block does not hold exactly one treated unit or block sizes differ.
    """


class DegenerateStatistic(RerandError, ArithmeticError):
    """
    The test statistic returned a non-finite or non-scalar value.

    Attributes:
        value: The offending value.
        assignment: Treatment indices it was computed on, if known.
    """

    def __init__(self, message: str, value: object = None, assignment: object = None):
        super().__init__(message)
        self.value = value
        self.assignment = assignment


class ComputationalInfeasibilityWarning(RuntimeWarning):
    """Exhaustive enumeration was requested for a very large design."""
