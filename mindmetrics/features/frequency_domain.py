"""
Frequency Domain HRV Feature Extraction Module

Extracts VLF/LF/HF band powers from the RR series using FFT analysis.

The RR index is used as the time axis with unit spacing, so frequencies are
in cycles per beat rather than Hz. RR intervals are not evenly spaced in
wall-clock time; this approximation is kept deliberately and is not
corrected by resampling.
"""

from typing import Dict, Optional, Tuple

import numpy as np

from mindmetrics.config import VLF_BAND, LF_BAND, HF_BAND
from mindmetrics.errors import safe_ratio

BANDS = {
    'VLF': VLF_BAND,
    'LF': LF_BAND,
    'HF': HF_BAND,
}


def compute_power_spectrum(rr_intervals: np.ndarray) -> Tuple[np.ndarray, np.ndarray]:
    """
    Compute the one-sided power spectrum of the mean-detrended RR series.

    Args:
        rr_intervals: RR intervals in milliseconds

    Returns:
        Tuple of (frequencies in cycles/beat, squared FFT magnitudes)
    """
    rr_intervals = np.asarray(rr_intervals, dtype=float)

    # Remove the DC component
    detrended = rr_intervals - np.mean(rr_intervals)

    fft = np.fft.fft(detrended)
    freqs = np.fft.fftfreq(len(detrended), d=1.0)
    power = np.abs(fft) ** 2

    # Only positive frequencies
    positive_mask = freqs >= 0
    return freqs[positive_mask], power[positive_mask]


def integrate_bands(
    freqs: np.ndarray,
    power: np.ndarray,
    bands: Dict[str, Tuple[float, float]] = BANDS
) -> Dict[str, float]:
    """
    Sum spectral power over half-open ``(low, high]`` frequency bands.

    Bins outside every band are ignored.

    Args:
        freqs: Bin frequencies
        power: Power per bin
        bands: Band name -> (low, high)

    Returns:
        Dictionary of band powers
    """
    features = {}
    for name, (low, high) in bands.items():
        mask = (freqs > low) & (freqs <= high)
        features[name] = float(np.sum(power[mask])) if np.any(mask) else 0.0
    return features


def compute_spectrum(
    rr_intervals: np.ndarray,
    flags: Optional[Dict[str, str]] = None
) -> Dict[str, float]:
    """
    Extract all frequency-domain HRV features.

    Ratios with a zero denominator (no power in the relevant bands) are NaN
    and flagged rather than reported as 0.

    Args:
        rr_intervals: RR intervals in milliseconds
        flags: Mapping that collects degenerate fields

    Returns:
        Dictionary with VLF, VLF_PCT, LF, LF_PCT, LF_NU, HF, HF_PCT, HF_NU,
        TP, LF_HF and HF_LF

    Examples:
        >>> rr = 800 + 50 * np.sin(2 * np.pi * 0.25 * np.arange(64))
        >>> features = compute_spectrum(rr)
        >>> features['HF'] > features['LF']
        True
    """
    freqs, power = compute_power_spectrum(rr_intervals)
    features = integrate_bands(freqs, power)

    vlf, lf, hf = features['VLF'], features['LF'], features['HF']
    tp = vlf + lf + hf
    features['TP'] = tp

    features['VLF_PCT'] = safe_ratio(vlf, tp, 'VLF_PCT', flags, scale=100.0)
    features['LF_PCT'] = safe_ratio(lf, tp, 'LF_PCT', flags, scale=100.0)
    features['HF_PCT'] = safe_ratio(hf, tp, 'HF_PCT', flags, scale=100.0)

    # Normalized units
    features['LF_NU'] = safe_ratio(lf, lf + hf, 'LF_NU', flags)
    features['HF_NU'] = safe_ratio(hf, lf + hf, 'HF_NU', flags)

    features['LF_HF'] = safe_ratio(lf, hf, 'LF_HF', flags)
    features['HF_LF'] = safe_ratio(hf, lf, 'HF_LF', flags)

    return features
