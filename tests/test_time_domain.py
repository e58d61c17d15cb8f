"""
Unit Tests for RR Interval Extraction, Time-Domain and Poincaré Features
"""

import math
from types import MappingProxyType

import numpy as np
import pytest

from mindmetrics.errors import InsufficientDataError
from mindmetrics.features.intervals import (
    BeatSample,
    extract_intervals,
    filter_rr_intervals,
    sample_times
)
from mindmetrics.features.time_domain import (
    compute_time_domain,
    relative_rr,
    sample_std
)
from mindmetrics.features.poincare import compute_poincare


def _beats_from_rr(rr_intervals, start=0.0):
    times = np.concatenate([[start], start + np.cumsum(rr_intervals)])
    return [BeatSample(float(t), 70.0) for t in times]


class TestExtractIntervals:
    """Tests for extract_intervals function."""

    def test_regular_beats(self):
        """Test that evenly spaced beats give constant intervals."""
        beats = [BeatSample(t, 75.0) for t in (0, 800, 1600, 2400, 3200)]
        rr = extract_intervals(beats)
        np.testing.assert_array_equal(rr, [800, 800, 800, 800])

    def test_empty_input_raises(self):
        """Test that no samples raise InsufficientDataError."""
        with pytest.raises(InsufficientDataError):
            extract_intervals([])

    def test_single_sample_raises(self):
        """Test that a single sample raises InsufficientDataError."""
        with pytest.raises(InsufficientDataError):
            extract_intervals([BeatSample(0, 70)])

    def test_long_gap_dropped(self):
        """Test that a gap above 2000 ms is discarded, not clamped."""
        rr = extract_intervals([BeatSample(0, 70), BeatSample(800, 70), BeatSample(5000, 70)])
        np.testing.assert_array_equal(rr, [800])

    def test_bounds_are_exclusive(self):
        """Test that exactly 250 ms and 2000 ms are rejected."""
        beats = [BeatSample(t, 70) for t in (0, 250, 750, 2750, 4749)]
        rr = extract_intervals(beats)
        np.testing.assert_array_equal(rr, [500, 1999])

    def test_out_of_order_pair_dropped(self):
        """Test that a negative interval fails the plausibility filter."""
        beats = [BeatSample(t, 70) for t in (1000, 1800, 1700, 2500)]
        rr = extract_intervals(beats)
        np.testing.assert_array_equal(rr, [800, 800])

    def test_input_not_mutated(self):
        """Test that the caller's sequence is left untouched."""
        beats = [BeatSample(t, 70) for t in (0, 800, 100, 900)]
        original = list(beats)
        extract_intervals(beats)
        assert beats == original

    def test_accepts_mappings_and_pairs(self):
        """Test that dicts and (time, value) pairs are accepted."""
        as_dicts = [{'time': 0, 'value': 70}, {'time': 900, 'value': 71}]
        as_pairs = [(0, 70), (900, 71)]
        np.testing.assert_array_equal(extract_intervals(as_dicts), [900])
        np.testing.assert_array_equal(extract_intervals(as_pairs), [900])
        np.testing.assert_array_equal(sample_times(as_pairs), [0, 900])

    def test_accepts_any_mapping(self):
        """Test that read-only mappings are read by their 'time' key."""
        beats = [MappingProxyType({'time': t, 'value': 70}) for t in (0, 850, 1700)]
        np.testing.assert_array_equal(extract_intervals(beats), [850, 850])

    def test_filtering_is_idempotent(self):
        """Test that re-extracting from reconstructed beats keeps every interval."""
        beats = [BeatSample(t, 70) for t in (0, 800, 900, 1700, 6000, 6850, 7600)]
        rr = extract_intervals(beats)
        rr_again = extract_intervals(_beats_from_rr(rr))
        np.testing.assert_array_equal(rr, rr_again)

    def test_filter_rr_intervals_empty(self):
        """Test that filtering an empty array returns an empty array."""
        assert len(filter_rr_intervals(np.array([]))) == 0


class TestTimeDomain:
    """Tests for compute_time_domain function."""

    def test_constant_intervals(self):
        """Test the all-800 ms scenario."""
        flags = {}
        features = compute_time_domain(np.array([800.0, 800.0, 800.0, 800.0]), flags)

        assert features['MEAN_RR'] == 800
        assert features['SDRR'] == 0
        assert features['RMSSD'] == 0
        assert features['HR'] == pytest.approx(75.0)
        assert features['pNN25'] == 0
        assert features['pNN50'] == 0

        # RMSSD of 0 leaves the ratio undefined
        assert math.isnan(features['SDRR_RMSSD'])
        assert 'SDRR_RMSSD' in flags
        assert math.isnan(features['KURT'])
        assert 'SKEW' in flags

    def test_known_values(self):
        """Test statistics for intervals [800, 850, 780, 900]."""
        rr = np.array([800.0, 850.0, 780.0, 900.0])
        features = compute_time_domain(rr)

        assert features['MEAN_RR'] == pytest.approx(832.5)
        assert features['MEDIAN_RR'] == pytest.approx(825.0)
        assert features['SDRR'] == pytest.approx(np.std(rr, ddof=1))
        assert features['RMSSD'] == pytest.approx(np.sqrt((2500 + 4900 + 14400) / 3))
        assert features['SDSD'] == pytest.approx(np.std([50, -70, 120], ddof=1))
        assert features['SDRR_RMSSD'] == pytest.approx(features['SDRR'] / features['RMSSD'])
        assert features['HR'] == pytest.approx(60000 / 832.5)
        assert features['pNN50'] == pytest.approx(200 / 3)
        assert features['pNN25'] == pytest.approx(100.0)

    def test_relative_mean_is_zero(self):
        """Test that the relative RR series has zero mean."""
        rng = np.random.default_rng(0)
        rr = rng.uniform(600, 1100, size=50)
        features = compute_time_domain(rr)
        assert abs(features['MEAN_REL_RR']) < 1e-12
        np.testing.assert_allclose(np.mean(relative_rr(rr)), 0, atol=1e-12)

    def test_relative_family_scales_with_mean(self):
        """Test that relative dispersion equals RR dispersion over MEAN_RR."""
        rr = np.array([800.0, 850.0, 780.0, 900.0, 820.0])
        features = compute_time_domain(rr)
        mean_rr = features['MEAN_RR']
        assert features['SDRR_REL_RR'] == pytest.approx(features['SDRR'] / mean_rr)
        assert features['RMSSD_REL_RR'] == pytest.approx(features['RMSSD'] / mean_rr)
        assert features['SDRR_RMSSD_REL_RR'] == pytest.approx(features['SDRR_RMSSD'])
        assert features['SKEW_REL_RR'] == pytest.approx(features['SKEW'])
        assert features['KURT_REL_RR'] == pytest.approx(features['KURT'])

    def test_pnn25_not_below_pnn50(self):
        """Test that pNN25 >= pNN50 on random intervals."""
        rng = np.random.default_rng(1)
        for _ in range(20):
            rr = rng.normal(850, 60, size=40)
            features = compute_time_domain(rr)
            assert features['pNN25'] >= features['pNN50']

    def test_two_intervals_sdsd_undefined(self):
        """Test that a single successive difference has undefined SDSD in both families."""
        flags = {}
        features = compute_time_domain(np.array([800.0, 850.0]), flags)
        assert features['RMSSD'] == pytest.approx(50.0)
        assert math.isnan(features['SDSD'])
        assert math.isnan(features['SDSD_REL_RR'])
        assert 'SDSD' in flags and 'SDSD_REL_RR' in flags

    def test_single_interval_raises(self):
        """Test that fewer than 2 intervals raise InsufficientDataError."""
        with pytest.raises(InsufficientDataError):
            compute_time_domain(np.array([800.0]))

    def test_sample_std_single_value(self):
        """Test that the deviation of one value is NaN and flagged."""
        flags = {}
        assert math.isnan(sample_std(np.array([5.0]), 'X', flags))
        assert 'X' in flags

    def test_expected_keys(self):
        """Test that exactly the RR and relative RR keys are produced."""
        features = compute_time_domain(np.array([800.0, 850.0, 780.0, 900.0]))
        expected = {
            'MEAN_RR', 'MEDIAN_RR', 'SDRR', 'RMSSD', 'SDSD', 'SDRR_RMSSD', 'HR',
            'pNN25', 'pNN50', 'KURT', 'SKEW',
            'MEAN_REL_RR', 'MEDIAN_REL_RR', 'SDRR_REL_RR', 'RMSSD_REL_RR',
            'SDSD_REL_RR', 'SDRR_RMSSD_REL_RR', 'KURT_REL_RR', 'SKEW_REL_RR'
        }
        assert set(features) == expected


class TestPoincare:
    """Tests for compute_poincare function."""

    def test_formulas(self):
        """Test SD1 and SD2 against their closed forms."""
        result = compute_poincare(sdrr=50.0, rmssd=40.0)
        sd1 = 40.0 / math.sqrt(2)
        assert result['SD1'] == pytest.approx(sd1)
        assert result['SD2'] == pytest.approx(math.sqrt(2 * 50.0 ** 2 - sd1 ** 2))

    def test_negative_radicand_flagged(self):
        """Test that a negative SD2 radicand gives NaN and a flag, not 0."""
        flags = {}
        result = compute_poincare(sdrr=10.0, rmssd=100.0, flags=flags)
        assert result['SD1'] == pytest.approx(100.0 / math.sqrt(2))
        assert math.isnan(result['SD2'])
        assert 'SD2' in flags

    def test_undefined_input_propagates(self):
        """Test that an undefined RMSSD leaves both descriptors undefined."""
        flags = {}
        result = compute_poincare(sdrr=10.0, rmssd=float('nan'), flags=flags)
        assert math.isnan(result['SD1'])
        assert math.isnan(result['SD2'])
        assert set(flags) == {'SD1', 'SD2'}

    def test_zero_variability(self):
        """Test that zero SDRR and RMSSD give zero axes."""
        assert compute_poincare(0.0, 0.0) == {'SD1': 0.0, 'SD2': 0.0}


if __name__ == '__main__':
    pytest.main([__file__, '-v'])
