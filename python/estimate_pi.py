#!/usr/bin/env python3
import sys
import multiprocessing
from strategies import TOTAL_TRIALS, run_all

USAGE = ("Usage: {} [total_trials] [workers] [seed]\n"
         f"  total_trials defaults to {TOTAL_TRIALS:,}; the P4 loop pays a lock per trial "
         "(about 4us), so pass a smaller count for quick runs")


def parse_args(argv):
    if len(argv) > 4:
        raise ValueError(f"expected at most 3 arguments, got {len(argv) - 1}")

    total = int(argv[1]) if len(argv) > 1 else TOTAL_TRIALS
    workers = int(argv[2]) if len(argv) > 2 else None
    seed = int(argv[3]) if len(argv) > 3 else None

    if total < 1:
        raise ValueError(f"total_trials must be positive, got {total}")
    if workers is not None and workers < 1:
        raise ValueError(f"workers must be positive, got {workers}")
    if seed is not None and seed < 0:
        raise ValueError(f"seed must be non-negative, got {seed}")
    return total, workers, seed


def main(argv=None):
    if argv is None:
        argv = sys.argv

    try:
        total, workers, seed = parse_args(argv)
    except ValueError as e:
        print(e)
        print(USAGE.format(argv[0]))
        sys.exit(1)

    print(f"Number of processor threads = {multiprocessing.cpu_count()}")

    for report in run_all(total=total, workers=workers, seed=seed):
        print(report)


if __name__ == "__main__":
    main()
