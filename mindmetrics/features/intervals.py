"""
RR Interval Extraction Module

Turns raw beat timestamps into physiologically plausible RR intervals.
"""

import logging
from collections.abc import Mapping
from typing import Any, NamedTuple, Sequence

import numpy as np

from mindmetrics.config import RR_MIN_MS, RR_MAX_MS
from mindmetrics.errors import InsufficientDataError

logger = logging.getLogger(__name__)


class BeatSample(NamedTuple):
    """A single beat reading: timestamp in milliseconds and the sensor value."""
    time: float
    value: float = float('nan')


def sample_times(samples: Sequence[Any]) -> np.ndarray:
    """
    Read the timestamps of a sequence of beat samples.

    Accepts ``BeatSample`` objects (or anything with a ``time`` attribute),
    mappings with a ``'time'`` key, and ``(time, value)`` pairs.

    Args:
        samples: Ordered beat samples

    Returns:
        Array of timestamps in milliseconds
    """
    times = []
    for sample in samples:
        if hasattr(sample, 'time'):
            times.append(sample.time)
        elif isinstance(sample, Mapping):
            times.append(sample['time'])
        else:
            times.append(sample[0])
    return np.asarray(times, dtype=float)


def filter_rr_intervals(
    rr_intervals: np.ndarray,
    min_rr: float = RR_MIN_MS,
    max_rr: float = RR_MAX_MS
) -> np.ndarray:
    """
    Drop physiologically implausible RR intervals.

    Both bounds are exclusive. Values outside the window are removed,
    not clamped.

    Args:
        rr_intervals: RR intervals in milliseconds
        min_rr: Lower bound (ms)
        max_rr: Upper bound (ms)

    Returns:
        Filtered RR intervals
    """
    rr_intervals = np.asarray(rr_intervals, dtype=float)
    if len(rr_intervals) == 0:
        return rr_intervals

    valid_mask = (rr_intervals > min_rr) & (rr_intervals < max_rr)
    return rr_intervals[valid_mask]


def extract_intervals(
    samples: Sequence[Any],
    min_rr: float = RR_MIN_MS,
    max_rr: float = RR_MAX_MS
) -> np.ndarray:
    """
    Compute filtered RR intervals from consecutive beat samples.

    Each adjacent pair contributes ``t[i] - t[i-1]`` if it falls inside
    ``(min_rr, max_rr)``. Out-of-order pairs give a negative difference and
    are dropped like any other artifact. The input is never modified.

    Args:
        samples: Ordered beat samples (see ``sample_times``)
        min_rr: Lower bound (ms)
        max_rr: Upper bound (ms)

    Returns:
        Array of accepted RR intervals in milliseconds

    Raises:
        InsufficientDataError: If fewer than 2 samples are given

    Examples:
        >>> extract_intervals([BeatSample(0, 70), BeatSample(800, 75), BeatSample(5000, 72)])
        array([800.])
    """
    if len(samples) < 2:
        raise InsufficientDataError(
            f"At least 2 beat samples are required, got {len(samples)}"
        )

    rr_intervals = np.diff(sample_times(samples))
    accepted = filter_rr_intervals(rr_intervals, min_rr, max_rr)

    dropped = len(rr_intervals) - len(accepted)
    if dropped:
        logger.debug(
            "Dropped %d of %d intervals outside (%.0f, %.0f) ms",
            dropped, len(rr_intervals), min_rr, max_rr
        )

    return accepted
