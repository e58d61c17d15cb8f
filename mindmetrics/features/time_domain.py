"""
Time Domain HRV Feature Extraction Module

Extracts distributional and successive-difference statistics from RR
intervals and from the relative RR series ``(rr - mean) / mean``.

Standard deviations are sample deviations (``ddof=1``). A deviation of a
single value is undefined and comes back as NaN with a diagnostic flag.
"""

from typing import Dict, Optional

import numpy as np
from scipy import stats

from mindmetrics.errors import InsufficientDataError, flag_degenerate, safe_ratio

RR_KEYS = {
    'mean': 'MEAN_RR',
    'median': 'MEDIAN_RR',
    'sdrr': 'SDRR',
    'rmssd': 'RMSSD',
    'sdsd': 'SDSD',
    'sdrr_rmssd': 'SDRR_RMSSD',
    'kurt': 'KURT',
    'skew': 'SKEW',
}

REL_RR_KEYS = {
    'mean': 'MEAN_REL_RR',
    'median': 'MEDIAN_REL_RR',
    'sdrr': 'SDRR_REL_RR',
    'rmssd': 'RMSSD_REL_RR',
    'sdsd': 'SDSD_REL_RR',
    'sdrr_rmssd': 'SDRR_RMSSD_REL_RR',
    'kurt': 'KURT_REL_RR',
    'skew': 'SKEW_REL_RR',
}


def sample_std(
    values: np.ndarray,
    field: str,
    flags: Optional[Dict[str, str]] = None
) -> float:
    """
    Sample standard deviation, undefined for fewer than two values.

    Args:
        values: Input values
        field: Feature name used when flagging
        flags: Mapping that collects degenerate fields

    Returns:
        Standard deviation with ``ddof=1``, or NaN
    """
    if len(values) < 2:
        return flag_degenerate(field, "standard deviation of fewer than 2 values", flags)
    return float(np.std(values, ddof=1))


def relative_rr(rr_intervals: np.ndarray) -> np.ndarray:
    """
    Normalize RR intervals by their mean: ``(rr - mean) / mean``.

    Args:
        rr_intervals: RR intervals in milliseconds

    Returns:
        Relative RR series (same length and order)
    """
    rr_intervals = np.asarray(rr_intervals, dtype=float)
    mean_rr = np.mean(rr_intervals)
    return (rr_intervals - mean_rr) / mean_rr


def extract_distribution_shape(
    values: np.ndarray,
    keys: Dict[str, str],
    flags: Optional[Dict[str, str]] = None
) -> Dict[str, float]:
    """
    Excess kurtosis and skewness (biased moment estimators).

    Args:
        values: Input series
        keys: Output key names for 'kurt' and 'skew'
        flags: Mapping that collects degenerate fields

    Returns:
        Dictionary with kurtosis and skewness
    """
    if np.ptp(values) == 0:
        return {
            keys['kurt']: flag_degenerate(keys['kurt'], "zero variance", flags),
            keys['skew']: flag_degenerate(keys['skew'], "zero variance", flags),
        }

    return {
        keys['kurt']: float(stats.kurtosis(values, fisher=True, bias=True)),
        keys['skew']: float(stats.skew(values, bias=True)),
    }


def extract_series_statistics(
    values: np.ndarray,
    keys: Dict[str, str],
    flags: Optional[Dict[str, str]] = None
) -> Dict[str, float]:
    """
    Central tendency, dispersion and successive-difference statistics.

    Args:
        values: RR or relative RR series (at least 2 elements)
        keys: Output key names (``RR_KEYS`` or ``REL_RR_KEYS``)
        flags: Mapping that collects degenerate fields

    Returns:
        Dictionary of statistics keyed by ``keys``
    """
    features = {}

    features[keys['mean']] = float(np.mean(values))
    features[keys['median']] = float(np.median(values))
    features[keys['sdrr']] = sample_std(values, keys['sdrr'], flags)

    # The first interval has no predecessor
    successive_diffs = np.diff(values)
    features[keys['rmssd']] = float(np.sqrt(np.mean(successive_diffs ** 2)))
    features[keys['sdsd']] = sample_std(successive_diffs, keys['sdsd'], flags)

    features[keys['sdrr_rmssd']] = safe_ratio(
        features[keys['sdrr']], features[keys['rmssd']], keys['sdrr_rmssd'], flags
    )

    features.update(extract_distribution_shape(values, keys, flags))

    return features


def extract_pnn(successive_diffs: np.ndarray) -> Dict[str, float]:
    """
    Percentage of successive differences larger than 25 ms and 50 ms.

    Args:
        successive_diffs: ``np.diff`` of the RR intervals

    Returns:
        Dictionary with pNN25 and pNN50 (0-100)
    """
    abs_diffs = np.abs(successive_diffs)
    n_diffs = len(successive_diffs)

    return {
        'pNN25': float(np.sum(abs_diffs > 25) / n_diffs * 100),
        'pNN50': float(np.sum(abs_diffs > 50) / n_diffs * 100),
    }


def compute_time_domain(
    rr_intervals: np.ndarray,
    flags: Optional[Dict[str, str]] = None
) -> Dict[str, float]:
    """
    Extract all time-domain HRV features.

    Args:
        rr_intervals: RR intervals in milliseconds
        flags: Mapping that collects degenerate fields

    Returns:
        Dictionary with MEAN_RR, MEDIAN_RR, SDRR, RMSSD, SDSD, SDRR_RMSSD,
        HR, pNN25, pNN50, KURT, SKEW and their ``_REL_RR`` counterparts
        (HR and pNN are not repeated for the relative series)

    Raises:
        InsufficientDataError: If fewer than 2 intervals are given

    Examples:
        >>> features = compute_time_domain(np.array([800.0, 850.0, 780.0, 900.0]))
        >>> round(features['MEAN_RR'], 1)
        832.5
    """
    rr_intervals = np.asarray(rr_intervals, dtype=float)
    if len(rr_intervals) < 2:
        raise InsufficientDataError(
            f"At least 2 RR intervals are required, got {len(rr_intervals)}"
        )

    features = extract_series_statistics(rr_intervals, RR_KEYS, flags)
    features['HR'] = safe_ratio(60000.0, features['MEAN_RR'], 'HR', flags)
    features.update(extract_pnn(np.diff(rr_intervals)))

    features.update(
        extract_series_statistics(relative_rr(rr_intervals), REL_RR_KEYS, flags)
    )

    return features
