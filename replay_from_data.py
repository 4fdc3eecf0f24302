#!/usr/bin/env python3
"""
Replay Script - Feed historical spins from a file through the hybrid engine
and report how each model and the combined top-12 would have performed.

Usage:
    python replay_from_data.py <data_file> [--save]
    python replay_from_data.py data/my_spins.txt
    python replay_from_data.py data/my_spins.csv --save

Supported formats:
    - .txt or .csv with one spin per line: "17" or "17,CW"
    - Lines without a direction alternate CW/CCW from the previous spin
    - Lines with non-numeric content are skipped (headers, comments)
    - Most recent spin should be at the bottom of the file

--save replaces the saved session state with the replayed one, so the
server starts from it on its next load.
"""

import os
import sys
import time
from collections import Counter

sys.path.insert(0, os.path.dirname(os.path.abspath(__file__)))

from config import (
    TOTAL_NUMBERS, DIRECTION_CW, ENGINE_STATE_PATH, get_number_color,
)
from hybrid_predictor.ml.engine import run_test
from hybrid_predictor.ml.observation import (
    InvalidSpinError, build_observations, parse_number, parse_direction,
)
from hybrid_predictor.session.session_manager import GameSession
from hybrid_predictor.session.state_store import StateStore


def load_data(filepath):
    """Load (number, direction) pairs from a text/csv file, one spin per line."""
    if not os.path.exists(filepath):
        print(f"  ERROR: File not found: {filepath}")
        sys.exit(1)

    entries = []
    skipped = 0
    with open(filepath, 'r') as f:
        for line_num, line in enumerate(f, 1):
            line = line.strip()
            if not line:
                continue

            parts = [p.strip() for p in line.split(',')]
            try:
                number = parse_number(parts[0])
                direction = parse_direction(parts[1]) if len(parts) > 1 and parts[1] else None
                entries.append((number, direction))
            except InvalidSpinError as e:
                skipped += 1
                # First lines are usually a header
                if line_num > 3:
                    print(f"  WARNING: Line {line_num}: {e} Skipped.")

    return entries, skipped


def print_dataset_summary(observations):
    numbers = [o.number for o in observations]
    counts = Counter(numbers)
    expected = len(numbers) / TOTAL_NUMBERS
    cw = sum(1 for o in observations if o.direction == DIRECTION_CW)

    print(f"\n  Dataset:")
    print(f"  {'─' * 40}")
    print(f"  Total spins:        {len(numbers)}")
    print(f"  Unique numbers:     {len(counts)}/37")
    print(f"  CW / CCW:           {cw} / {len(numbers) - cw}")
    print(f"  Expected frequency: {expected:.1f} per number")
    print(f"\n  Top 5 most frequent:")
    for num, count in counts.most_common(5):
        ratio = count / expected
        bar = "█" * int(ratio * 10)
        print(f"    #{num:2d} ({get_number_color(num):5s}): {count:3d} hits ({ratio:.2f}x expected) {bar}")


def print_report(report, elapsed):
    print(f"\n{'═' * 60}")
    print(f"  REPLAY RESULTS")
    print(f"{'═' * 60}")
    print(f"  Hybrid top-12 hits:   {report['top12_hits']}/{report['total_spins']} "
          f"({report['top12_accuracy']}%, random {report['expected_random']}%)")
    print(f"\n  {'Model':18s} {'Weight':>8s} {'Accuracy':>9s} {'Hits':>6s}")
    for model in report['models']:
        print(f"  {model['name']:18s} {model['weight']:8.3f} "
              f"{model['accuracy'] * 100:8.1f}% {model['hits']:6d}")
    print(f"\n  Time: {elapsed:.2f}s")


def main():
    args = [a for a in sys.argv[1:] if not a.startswith('--')]
    save = '--save' in sys.argv[1:]

    if not args:
        print("\nUsage: python replay_from_data.py <data_file> [--save]")
        print("\nFile format: one spin per line, '17' or '17,CW', most recent at bottom")
        sys.exit(1)

    filepath = args[0]
    print(f"\n{'═' * 60}")
    print(f"  HYBRID ROULETTE PREDICTOR - REPLAY")
    print(f"{'═' * 60}")
    print(f"\n  Loading data from: {filepath}")

    entries, skipped = load_data(filepath)
    if not entries:
        print("  ERROR: No valid spins found in file!")
        sys.exit(1)

    print(f"  Loaded:  {len(entries)} spins")
    if skipped > 0:
        print(f"  Skipped: {skipped} invalid lines")

    observations = build_observations(entries)
    print_dataset_summary(observations)

    t0 = time.time()
    report = run_test(observations)
    print_report(report, time.time() - t0)

    if save:
        session = GameSession(StateStore(ENGINE_STATE_PATH))
        session.reset()
        session.import_spins([(o.number, o.direction) for o in observations])
        print(f"\n  State saved to: {ENGINE_STATE_PATH}")
        print(f"  Next step: Run 'python run.py' and open http://localhost:5050")

    print(f"{'═' * 60}\n")


if __name__ == '__main__':
    main()
