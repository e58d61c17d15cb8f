"""
Poincaré Plot Geometry

SD1/SD2 ellipse descriptors derived from SDRR and RMSSD.
"""

import math
from typing import Dict, Optional

from mindmetrics.errors import flag_degenerate


def compute_poincare(
    sdrr: float,
    rmssd: float,
    flags: Optional[Dict[str, str]] = None
) -> Dict[str, float]:
    """
    Compute Poincaré SD1 (short-term) and SD2 (long-term) variability.

    SD1 = RMSSD / sqrt(2)
    SD2 = sqrt(2 * SDRR^2 - SD1^2)

    A negative SD2 radicand is reported as NaN with a flag, never clamped.

    Args:
        sdrr: Standard deviation of RR intervals (ms)
        rmssd: Root mean square of successive differences (ms)
        flags: Mapping that collects degenerate fields

    Returns:
        Dictionary with SD1 and SD2

    Examples:
        >>> compute_poincare(0.0, 0.0)
        {'SD1': 0.0, 'SD2': 0.0}
    """
    if math.isnan(rmssd):
        sd1 = flag_degenerate('SD1', "RMSSD is undefined", flags)
    else:
        sd1 = rmssd / math.sqrt(2)

    if math.isnan(sdrr) or math.isnan(sd1):
        sd2 = flag_degenerate('SD2', "SDRR or SD1 is undefined", flags)
    else:
        radicand = 2 * sdrr ** 2 - sd1 ** 2
        if radicand < 0:
            sd2 = flag_degenerate(
                'SD2', f"negative radicand {radicand:.6g} (SDRR small relative to RMSSD)", flags
            )
        else:
            sd2 = math.sqrt(radicand)

    return {'SD1': float(sd1), 'SD2': float(sd2)}
