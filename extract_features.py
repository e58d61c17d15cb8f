"""
HRV Feature Extraction Script

Reads a long-format CSV of beat samples (one row per beat, with a record id,
a timestamp in milliseconds and the sensor value), extracts the HRV feature
record for every recording and writes them to a features CSV.

Recordings with fewer than the recommended number of RR intervals are
rejected before extraction.
"""

import argparse
import logging
from pathlib import Path

import pandas as pd

from mindmetrics.config import RECOMMENDED_MIN_INTERVALS
from mindmetrics.features.extractor import HRVFeatureExtractor


def parse_args():
    parser = argparse.ArgumentParser(description="Extract HRV features from beat timestamps")
    parser.add_argument('beats_csv', type=Path, help="CSV with record_id, time, value columns")
    parser.add_argument('--output', type=Path, default=Path('./data/processed/hrv_features.csv'))
    parser.add_argument('--record-col', default='record_id')
    parser.add_argument('--time-col', default='time')
    parser.add_argument('--value-col', default='value')
    parser.add_argument('--min-intervals', type=int, default=RECOMMENDED_MIN_INTERVALS,
                        help="Reject recordings with fewer accepted RR intervals")
    parser.add_argument('--strict', action='store_true',
                        help="Fail on undefined features instead of writing NaN")
    parser.add_argument('--quiet', action='store_true')
    return parser.parse_args()


def main():
    """Main function to extract HRV features for a beats table."""
    args = parse_args()

    logging.basicConfig(
        level=logging.ERROR if args.quiet else logging.INFO,
        format='%(asctime)s %(levelname)s %(name)s: %(message)s'
    )

    print("="*80)
    print("HRV FEATURE EXTRACTION")
    print("="*80)

    print(f"\n1. Loading beats from {args.beats_csv}...")
    beats_df = pd.read_csv(args.beats_csv)
    n_records = beats_df[args.record_col].nunique()
    print(f"   ✓ Loaded {len(beats_df)} beats from {n_records} records")

    print("\n2. Extracting features...")
    extractor = HRVFeatureExtractor(min_intervals=args.min_intervals, strict=args.strict)
    features_df = extractor.extract_features_batch(
        beats_df,
        record_col=args.record_col,
        time_col=args.time_col,
        value_col=args.value_col,
        verbose=not args.quiet
    )
    print(f"   ✓ Extracted {len(features_df)} of {n_records} records")

    n_flagged = int((features_df['n_degenerate'] > 0).sum())
    if n_flagged:
        print(f"   ! {n_flagged} records have undefined features (written as NaN)")

    print("\n3. Saving results...")
    args.output.parent.mkdir(parents=True, exist_ok=True)
    features_df.to_csv(args.output)
    print(f"   ✓ Saved features to {args.output}")

    print("\n" + "="*80)
    print("Feature extraction complete!")
    print("="*80)


if __name__ == "__main__":
    main()
