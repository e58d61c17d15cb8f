"""
Error types for HRV feature extraction.

Two conditions are distinguished:

- ``InsufficientDataError``: too few beat samples or accepted RR intervals.
  Terminal for the call; the caller may retry with a longer recording.
- ``DegenerateComputationError``: a ratio or geometric quantity would need a
  zero denominator or the square root of a negative number. By default the
  field is set to NaN and the reason recorded; ``strict`` extraction raises.
"""

import logging
import math
from typing import Dict, Optional

logger = logging.getLogger(__name__)


class InsufficientDataError(ValueError):
    """Raised when there are not enough samples or intervals to compute features."""


class DegenerateComputationError(ArithmeticError):
    """Raised in strict mode when one or more features are undefined."""

    def __init__(self, degenerate: Dict[str, str]):
        self.degenerate = dict(degenerate)
        fields = ', '.join(sorted(self.degenerate))
        super().__init__(f"Undefined features: {fields}")


def flag_degenerate(
    field: str,
    reason: str,
    flags: Optional[Dict[str, str]] = None
) -> float:
    """
    Record an undefined feature and return NaN for it.

    Args:
        field: Feature name
        reason: Short diagnostic message
        flags: Mapping that collects field -> reason (optional)

    Returns:
        float('nan')
    """
    logger.warning("Feature %s is undefined: %s", field, reason)
    if flags is not None:
        flags[field] = reason
    return float('nan')


def safe_ratio(
    numerator: float,
    denominator: float,
    field: str,
    flags: Optional[Dict[str, str]] = None,
    scale: float = 1.0
) -> float:
    """
    Divide two features, flagging zero or non-finite denominators.

    Args:
        numerator: Dividend
        denominator: Divisor
        field: Name of the resulting feature
        flags: Mapping that collects degenerate fields
        scale: Multiplier applied to the ratio (e.g. 100 for percentages)

    Returns:
        ``scale * numerator / denominator`` or NaN
    """
    if not (math.isfinite(numerator) and math.isfinite(denominator)):
        return flag_degenerate(field, "undefined operand", flags)
    if denominator == 0:
        return flag_degenerate(field, "division by zero", flags)
    return float(scale * numerator / denominator)
