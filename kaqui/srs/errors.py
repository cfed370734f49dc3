"""
Scheduler error types and invariant checks.

Out-of-range weights and scores are programming defects: they are always
reported at critical level and, in strict mode, raised. They are never
clamped, so that a broken update law stays visible.
"""

from __future__ import annotations

import math

from loguru import logger


class KaquiError(Exception):
    """Base class for errors raised by the scheduler."""


class InvariantViolation(KaquiError, AssertionError):
    """A weight, score or answer set broke one of its invariants."""


class InsufficientItemsError(KaquiError):
    """Fewer enabled items than the answer set needs."""


class StateDecodeError(KaquiError, ValueError):
    """A saved session blob could not be decoded."""


def report_violation(message: str, strict: bool = True) -> None:
    """Log an invariant violation and raise it in strict mode."""
    logger.critical(message)
    if strict:
        raise InvariantViolation(message)


def check_unit_range(name: str, value: float, strict: bool = True, **context) -> float:
    """
    Check that value lies in [0, 1].

    Args:
        name: Quantity name used in the report
        value: Value to check (NaN is a violation)
        strict: Raise instead of only logging
        **context: Extra values included in the report

    Returns:
        The value, unchanged
    """
    if math.isnan(value) or not 0.0 <= value <= 1.0:
        details = ", ".join(f"{key}: {val}" for key, val in context.items())
        report_violation(f"Invalid {name}: {value}" + (f", {details}" if details else ""), strict)
    return value


def check_non_negative(name: str, value: float, strict: bool = True, **context) -> float:
    """Check that value is >= 0 (NaN is a violation)."""
    if math.isnan(value) or value < 0.0:
        details = ", ".join(f"{key}: {val}" for key, val in context.items())
        report_violation(f"Invalid {name}: {value}" + (f", {details}" if details else ""), strict)
    return value
