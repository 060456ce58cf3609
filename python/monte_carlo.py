import math
from dataclasses import dataclass

import numpy as np

# Points drawn per numpy call inside sample()
BLOCK_SIZE = 1_000_000

# Largest x*x + y*y whose square root still rounds to 1.0
BOUNDARY = float(np.nextafter(1.0, 2.0))


@dataclass(frozen=True)
class TrialBatch:
    trials: int


@dataclass(frozen=True)
class PartialResult:
    in_circle: int = 0
    in_square: int = 0

    def __add__(self, other):
        return PartialResult(self.in_circle + other.in_circle,
                             self.in_square + other.in_square)


def in_circle(x, y):
    # Same answer as sqrt(x*x + y*y) <= 1.0. Works for floats and numpy arrays alike
    return x * x + y * y <= BOUNDARY


def trial(rng):
    x = rng.random()
    y = rng.random()
    return bool(in_circle(x, y))


def sample(trials, rng):
    if trials < 0:
        raise ValueError(f"trials must be >= 0, got {trials}")

    inside = 0
    remaining = trials
    while remaining > 0:
        size = min(BLOCK_SIZE, remaining)
        points = rng.random((size, 2))
        inside += int(np.count_nonzero(in_circle(points[:, 0], points[:, 1])))
        remaining -= size

    return PartialResult(inside, trials)


def partition(total, workers):
    """Split total trials into equal batches, one per worker.

    The remainder of total / workers is dropped, so the batches cover
    workers * (total // workers) trials.
    """
    if workers < 1:
        raise ValueError(f"workers must be >= 1, got {workers}")
    if total < 0:
        raise ValueError(f"total must be >= 0, got {total}")

    trials_per_worker = total // workers
    return [TrialBatch(trials_per_worker) for _ in range(workers)]


def spawn_seeds(seed, count):
    # One independent stream per worker, reproducible from the run seed
    return np.random.SeedSequence(seed).spawn(count)


def make_rng(seed_seq):
    return np.random.default_rng(seed_seq)


def reduce_results(results):
    total = PartialResult()
    for result in results:
        total += result
    return total


def estimate(point_in_circle, point_in_square):
    if point_in_square == 0:
        return math.nan
    return 4.0 * point_in_circle / point_in_square
