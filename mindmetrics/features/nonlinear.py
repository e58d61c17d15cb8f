"""
Non-linear HRV Feature Extraction Module

Extracts complexity measures from RR intervals: sample entropy and the
Higuchi fractal dimension. Both are deterministic for a given input.
"""

import logging
from typing import Dict, Optional

import numpy as np

from mindmetrics.config import SAMPEN_M, SAMPEN_R_FACTOR, HIGUCHI_KMAX
from mindmetrics.errors import flag_degenerate

logger = logging.getLogger(__name__)


def sample_entropy(
    signal: np.ndarray,
    m: int = SAMPEN_M,
    r: Optional[float] = None,
    flags: Optional[Dict[str, str]] = None,
    field: str = 'sampen'
) -> float:
    """
    Calculate Sample Entropy of a signal.

    Sample Entropy measures the regularity and unpredictability of a time series.
    Lower values indicate more regular/predictable signals. Templates of
    length m and m+1 are both taken from the first N - m positions, distances
    are Chebyshev and self-matches are excluded.

    Args:
        signal: Input signal
        m: Embedding dimension (pattern length)
        r: Tolerance (if None, uses 0.2 * sample std)
        flags: Mapping that collects degenerate fields
        field: Feature name used when flagging

    Returns:
        ln(B / A), or NaN when no template matches exist
    """
    signal = np.asarray(signal, dtype=float)
    N = len(signal)

    if N < m + 2:
        return flag_degenerate(field, f"needs at least {m + 2} values, got {N}", flags)

    if r is None:
        r = SAMPEN_R_FACTOR * np.std(signal, ddof=1)
    if np.isnan(r):
        return flag_degenerate(field, "tolerance is undefined", flags)

    def _count_matches(length):
        patterns = np.array([signal[i:i + length] for i in range(N - m)])
        count = 0
        for i in range(len(patterns) - 1):
            dist = np.max(np.abs(patterns[i + 1:] - patterns[i]), axis=1)
            count += int(np.sum(dist <= r))
        return count

    B = _count_matches(m)
    A = _count_matches(m + 1)

    if A == 0 or B == 0:
        return flag_degenerate(field, f"no template matches (A={A}, B={B})", flags)

    return float(np.log(B / A))


def higuchi_fd(
    signal: np.ndarray,
    kmax: int = HIGUCHI_KMAX,
    flags: Optional[Dict[str, str]] = None,
    field: str = 'higuci'
) -> float:
    """
    Calculate the Higuchi fractal dimension of a signal.

    For each scale k the normalized curve length L(k) is averaged over the
    k possible starting offsets; the dimension is the least-squares slope of
    ln L(k) against ln(1/k). kmax is capped at N // 2.

    Args:
        signal: Input signal
        kmax: Largest scale
        flags: Mapping that collects degenerate fields
        field: Feature name used when flagging

    Returns:
        Fractal dimension (about 1 for smooth curves, about 2 for white noise)

    Examples:
        >>> line = np.arange(100, dtype=float)
        >>> round(higuchi_fd(line), 3)
        1.0
    """
    signal = np.asarray(signal, dtype=float)
    N = len(signal)
    kmax = min(kmax, N // 2)

    if kmax < 2:
        return flag_degenerate(field, f"series of {N} values is too short", flags)

    log_lengths = []
    log_inv_k = []
    skipped_scales = []

    for k in range(1, kmax + 1):
        lengths = []
        for offset in range(k):
            n_max = (N - offset - 1) // k
            if n_max < 1:
                continue
            subseries = signal[offset::k][:n_max + 1]
            curve_length = np.sum(np.abs(np.diff(subseries)))
            normalization = (N - 1) / (n_max * k)
            lengths.append(curve_length * normalization / k)

        mean_length = np.mean(lengths) if lengths else 0.0
        if mean_length > 0:
            log_lengths.append(np.log(mean_length))
            log_inv_k.append(np.log(1.0 / k))
        else:
            skipped_scales.append(k)

    if skipped_scales:
        logger.debug(
            "Higuchi fit skipped %d of %d scales with zero curve length: %s",
            len(skipped_scales), kmax, skipped_scales
        )

    if len(log_lengths) < 2:
        return flag_degenerate(field, "curve length is zero at every scale", flags)

    slope, _ = np.polyfit(log_inv_k, log_lengths, 1)
    return float(slope)


def compute_nonlinear(
    rr_intervals: np.ndarray,
    m: int = SAMPEN_M,
    r_factor: float = SAMPEN_R_FACTOR,
    kmax: int = HIGUCHI_KMAX,
    flags: Optional[Dict[str, str]] = None
) -> Dict[str, float]:
    """
    Extract non-linear complexity features from RR intervals.

    Args:
        rr_intervals: RR intervals in milliseconds
        m: Sample entropy embedding dimension
        r_factor: Sample entropy tolerance as a fraction of SDRR
        kmax: Largest Higuchi scale
        flags: Mapping that collects degenerate fields

    Returns:
        Dictionary with sampen and higuci
    """
    rr_intervals = np.asarray(rr_intervals, dtype=float)

    if len(rr_intervals) > 1:
        r = r_factor * np.std(rr_intervals, ddof=1)
    else:
        r = float('nan')

    features = {
        'sampen': sample_entropy(rr_intervals, m=m, r=r, flags=flags),
        'higuci': higuchi_fd(rr_intervals, kmax=kmax, flags=flags),
    }
    logger.debug("Non-linear features: %s", features)

    return features
