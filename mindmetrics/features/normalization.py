"""
Feature normalization for downstream scoring.

The classifier and its per-feature statistics live outside this package;
this module only applies externally supplied (mean, std) pairs.
"""

from typing import Callable, Dict, Mapping, Sequence, Tuple

import numpy as np

from mindmetrics.features.extractor import FEATURE_NAMES


def normalize_features(
    features: Mapping[str, float],
    stats: Mapping[str, Tuple[float, float]],
    feature_names: Sequence[str] = FEATURE_NAMES
) -> np.ndarray:
    """
    Z-score a feature record into an ordered vector.

    A standard deviation of 0 is treated as 1. NaN features stay NaN.

    Args:
        features: Feature name -> value (e.g. ``FeatureRecord.to_dict()``)
        stats: Feature name -> (mean, std)
        feature_names: Output order

    Returns:
        1D array of normalized features

    Raises:
        KeyError: If a feature or its statistics are missing

    Examples:
        >>> normalize_features({'HR': 80.0}, {'HR': (70.0, 5.0)}, ['HR'])
        array([2.])
    """
    values = np.array([features[name] for name in feature_names], dtype=float)
    mean = np.array([stats[name][0] for name in feature_names], dtype=float)
    std = np.array([stats[name][1] for name in feature_names], dtype=float)

    # Avoid division by zero
    std = np.where(std == 0, 1, std)
    return (values - mean) / std


def score_features(
    features: Mapping[str, float],
    stats: Mapping[str, Tuple[float, float]],
    classifier: Callable[[np.ndarray], str]
) -> str:
    """
    Normalize a feature record and pass it to an opaque scoring function.

    Args:
        features: Feature name -> value
        stats: Feature name -> (mean, std)
        classifier: Callable taking the normalized vector, returning a label

    Returns:
        Class label produced by the classifier
    """
    return classifier(normalize_features(features, stats))


def load_feature_stats(stats_df) -> Dict[str, Tuple[float, float]]:
    """
    Read per-feature statistics from a DataFrame with 'mean' and 'std' columns
    indexed by feature name.
    """
    return {
        name: (float(row['mean']), float(row['std']))
        for name, row in stats_df.iterrows()
    }
