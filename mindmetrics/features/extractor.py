"""
HRV Feature Extractor

Main module for turning beat samples into the flat HRV feature record and
for batch extraction over a DataFrame of beats.
"""

import logging
from dataclasses import dataclass, field
from typing import Any, Dict, Sequence

import numpy as np
import pandas as pd
from tqdm import tqdm

from mindmetrics.config import (
    RR_MIN_MS,
    RR_MAX_MS,
    MIN_INTERVALS,
    SAMPEN_M,
    SAMPEN_R_FACTOR,
    HIGUCHI_KMAX,
)
from mindmetrics.errors import InsufficientDataError, DegenerateComputationError
from mindmetrics.features.intervals import BeatSample, extract_intervals
from mindmetrics.features.time_domain import compute_time_domain
from mindmetrics.features.poincare import compute_poincare
from mindmetrics.features.frequency_domain import compute_spectrum
from mindmetrics.features.nonlinear import compute_nonlinear

logger = logging.getLogger(__name__)

FEATURE_NAMES = (
    'MEAN_RR', 'MEDIAN_RR', 'SDRR', 'RMSSD', 'SDSD', 'SDRR_RMSSD', 'HR',
    'pNN25', 'pNN50', 'SD1', 'SD2', 'KURT', 'SKEW',
    'MEAN_REL_RR', 'MEDIAN_REL_RR', 'SDRR_REL_RR', 'RMSSD_REL_RR',
    'SDSD_REL_RR', 'SDRR_RMSSD_REL_RR', 'KURT_REL_RR', 'SKEW_REL_RR',
    'VLF', 'VLF_PCT', 'LF', 'LF_PCT', 'LF_NU', 'HF', 'HF_PCT', 'HF_NU',
    'TP', 'LF_HF', 'HF_LF',
    'sampen', 'higuci',
)


@dataclass(frozen=True)
class FeatureRecord:
    """
    Result of one extraction call.

    Attributes:
        features: Feature name -> value for every name in FEATURE_NAMES
        degenerate: Feature name -> reason, for features that are NaN
            because they are mathematically undefined for this input
        rr_count: Number of accepted RR intervals
    """
    features: Dict[str, float]
    degenerate: Dict[str, str] = field(default_factory=dict)
    rr_count: int = 0

    def __getitem__(self, name: str) -> float:
        return self.features[name]

    @property
    def is_degenerate(self) -> bool:
        return bool(self.degenerate)

    def to_dict(self) -> Dict[str, float]:
        """Flat feature mapping in FEATURE_NAMES order."""
        return {name: self.features[name] for name in FEATURE_NAMES}


class HRVFeatureExtractor:
    """
    HRV feature extraction from beat timestamps.

    Holds configuration only; every call works on its own input, so one
    instance can be shared between threads.
    """

    def __init__(
        self,
        min_rr: float = RR_MIN_MS,
        max_rr: float = RR_MAX_MS,
        min_intervals: int = MIN_INTERVALS,
        sampen_m: int = SAMPEN_M,
        sampen_r_factor: float = SAMPEN_R_FACTOR,
        higuchi_kmax: int = HIGUCHI_KMAX,
        strict: bool = False
    ):
        """
        Initialize feature extractor.

        Args:
            min_rr: Lower RR bound in ms (exclusive)
            max_rr: Upper RR bound in ms (exclusive)
            min_intervals: Fewest accepted RR intervals to extract from
                (at least 2)
            sampen_m: Sample entropy embedding dimension
            sampen_r_factor: Sample entropy tolerance as a fraction of SDRR
            higuchi_kmax: Largest Higuchi scale
            strict: Raise DegenerateComputationError instead of returning
                NaN-flagged features
        """
        if min_intervals < 2:
            raise ValueError(f"min_intervals must be at least 2, got {min_intervals}")
        if not 0 <= min_rr < max_rr:
            raise ValueError(f"Invalid RR window ({min_rr}, {max_rr})")

        self.min_rr = min_rr
        self.max_rr = max_rr
        self.min_intervals = min_intervals
        self.sampen_m = sampen_m
        self.sampen_r_factor = sampen_r_factor
        self.higuchi_kmax = higuchi_kmax
        self.strict = strict

    def extract_features_from_intervals(self, rr_intervals: np.ndarray) -> FeatureRecord:
        """
        Extract all features from already filtered RR intervals.

        Args:
            rr_intervals: RR intervals in milliseconds

        Returns:
            FeatureRecord

        Raises:
            InsufficientDataError: If fewer than min_intervals intervals
            DegenerateComputationError: In strict mode, if any feature is undefined
        """
        rr_intervals = np.asarray(rr_intervals, dtype=float)
        if len(rr_intervals) < self.min_intervals:
            raise InsufficientDataError(
                f"At least {self.min_intervals} RR intervals are required, "
                f"got {len(rr_intervals)}"
            )

        flags = {}
        features = {}

        features.update(compute_time_domain(rr_intervals, flags))
        features.update(compute_poincare(features['SDRR'], features['RMSSD'], flags))
        features.update(compute_spectrum(rr_intervals, flags))
        features.update(compute_nonlinear(
            rr_intervals,
            m=self.sampen_m,
            r_factor=self.sampen_r_factor,
            kmax=self.higuchi_kmax,
            flags=flags
        ))

        if self.strict and flags:
            raise DegenerateComputationError(flags)

        return FeatureRecord(features=features, degenerate=flags, rr_count=len(rr_intervals))

    def extract_features_from_samples(self, samples: Sequence[Any]) -> FeatureRecord:
        """
        Extract all features from a sequence of beat samples.

        Args:
            samples: Ordered beat samples (BeatSample, mappings with a
                'time' key, or (time, value) pairs)

        Returns:
            FeatureRecord
        """
        rr_intervals = extract_intervals(samples, self.min_rr, self.max_rr)
        return self.extract_features_from_intervals(rr_intervals)

    def extract_features_batch(
        self,
        beats_df: pd.DataFrame,
        record_col: str = 'record_id',
        time_col: str = 'time',
        value_col: str = 'value',
        verbose: bool = True
    ) -> pd.DataFrame:
        """
        Extract features for every recording in a long-format beats table.

        Records with insufficient data are skipped and reported.

        Args:
            beats_df: One row per beat sample
            record_col: Column identifying the recording
            time_col: Beat timestamp column (ms)
            value_col: Beat value column
            verbose: Whether to show progress bar

        Returns:
            DataFrame indexed by record id with one column per feature plus
            rr_count and n_degenerate
        """
        for col in (record_col, time_col):
            if col not in beats_df.columns:
                raise ValueError(f"Beats table must contain a '{col}' column")

        groups = beats_df.groupby(record_col, sort=False)

        iterator = groups
        if verbose:
            iterator = tqdm(groups, total=groups.ngroups, desc="Extracting HRV features")

        rows = []
        skipped = []

        for record_id, group in iterator:
            values = group[value_col] if value_col in group.columns else np.full(len(group), np.nan)
            samples = [
                BeatSample(t, v) for t, v in zip(group[time_col].to_numpy(), np.asarray(values))
            ]

            try:
                record = self.extract_features_from_samples(samples)
            except InsufficientDataError as e:
                logger.info("Skipping record %s: %s", record_id, e)
                skipped.append(record_id)
                continue

            row = record.to_dict()
            row['rr_count'] = record.rr_count
            row['n_degenerate'] = len(record.degenerate)
            row[record_col] = record_id
            rows.append(row)

        if skipped and verbose:
            print(f"\nSkipped {len(skipped)} record(s) with insufficient data")

        columns = [record_col] + list(FEATURE_NAMES) + ['rr_count', 'n_degenerate']
        features_df = pd.DataFrame(rows, columns=columns)
        return features_df.set_index(record_col)


def extract_hrv_features(
    samples: Sequence[Any],
    strict: bool = False,
    **kwargs
) -> Dict[str, float]:
    """
    Convenience function returning the flat feature mapping.

    Args:
        samples: Ordered beat samples
        strict: Raise DegenerateComputationError on undefined features
        **kwargs: Further HRVFeatureExtractor options

    Returns:
        Feature name -> value (undefined features are NaN)

    Examples:
        >>> beats = [{'time': t, 'value': 75} for t in (0, 800, 1650, 2430, 3330)]
        >>> features = extract_hrv_features(beats)
        >>> round(features['MEAN_RR'], 1)
        832.5
    """
    extractor = HRVFeatureExtractor(strict=strict, **kwargs)
    return extractor.extract_features_from_samples(samples).to_dict()
