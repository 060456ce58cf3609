import asyncio
import multiprocessing
import os
import threading
import time
from concurrent.futures import ALL_COMPLETED, ProcessPoolExecutor, ThreadPoolExecutor, wait
from dataclasses import dataclass

from counters import AggregateState
from monte_carlo import (estimate, make_rng, partition, reduce_results, sample,
                         spawn_seeds, trial)

TOTAL_TRIALS = 600_000_000


class Stopwatch:
    def __init__(self):
        self._started = None
        self._elapsed = 0.0

    def start(self):
        self._started = time.perf_counter()
        self._elapsed = 0.0

    def stop(self):
        self._elapsed = time.perf_counter() - self._started
        self._started = None

    @property
    def elapsed(self):
        if self._started is not None:
            return time.perf_counter() - self._started
        return self._elapsed


@dataclass(frozen=True)
class HarnessReport:
    label: str
    estimate: float
    elapsed: float
    in_circle: int
    trials: int

    def __str__(self):
        return f"{self.label} Pi = {self.estimate}  Time elapse = {self.elapsed}sec  run={self.trials}"


@dataclass(frozen=True)
class WorkerSpan:
    index: int
    started: float
    finished: float


def default_thread_count():
    # Same default as ThreadPoolExecutor
    return min(32, (os.cpu_count() or 1) + 4)


def _prepare(state, workers):
    if state is None:
        state = AggregateState()
    state.reset()
    if workers is None:
        workers = multiprocessing.cpu_count()
    return state, workers


def _finish(label, state, stopwatch):
    stopwatch.stop()
    result = state.snapshot()
    return HarnessReport(label, estimate(result.in_circle, result.in_square),
                         stopwatch.elapsed, result.in_circle, result.in_square)


# Single thread

def run_sequential(total=TOTAL_TRIALS, workers=None, state=None, seed=None, label="Single"):
    """One loop over every trial on the calling thread. workers is ignored."""
    state, _ = _prepare(state, workers)
    stopwatch = Stopwatch()
    stopwatch.start()

    state.add(sample(total, make_rng(seed)))

    return _finish(label, state, stopwatch)


# Default parallel loop

def default_chunksize(count, workers):
    # Same heuristic multiprocessing.Pool.map uses
    chunksize, extra = divmod(count, workers * 4)
    if extra:
        chunksize += 1
    return chunksize


def parallel_for(start, stop, body, max_workers=None, local_init=None, chunksize=None):
    """Call body(i, local) for every i in range(start, stop) on a thread pool.

    The index range is cut into chunks that idle threads pull on demand, so
    faster threads end up doing more of the work. local_init(worker_index) is
    called once per pool thread and its return value is passed to body as
    local. Exceptions raised by body propagate to the caller.
    """
    count = max(0, stop - start)
    if count == 0:
        return
    if max_workers is None:
        max_workers = default_thread_count()
    if chunksize is None:
        chunksize = default_chunksize(count, max_workers)

    chunks = iter(range(start, stop, chunksize))
    lock = threading.Lock()

    def drain(worker_index):
        local = local_init(worker_index) if local_init is not None else None
        while True:
            with lock:
                lo = next(chunks, None)
            if lo is None:
                return
            for i in range(lo, min(lo + chunksize, stop)):
                body(i, local)

    with ThreadPoolExecutor(max_workers=max_workers) as executor:
        futures = [executor.submit(drain, i) for i in range(max_workers)]
        for future in futures:
            future.result()


def run_parallel_loop(total=TOTAL_TRIALS, workers=None, state=None, seed=None, label="P4"):
    """Every trial increments the shared counters, so each one takes a lock
    round-trip. Expect microseconds per trial, far slower than the batched runs.
    """
    if workers is None:
        workers = default_thread_count()
    state, workers = _prepare(state, workers)
    seeds = spawn_seeds(seed, workers)

    def body(_, rng):
        if trial(rng):
            state.point_in_circle.increment()
        state.point_in_square.increment()

    stopwatch = Stopwatch()
    stopwatch.start()

    parallel_for(0, total, body, max_workers=workers,
                 local_init=lambda worker_index: make_rng(seeds[worker_index]))

    return _finish(label, state, stopwatch)


# Fixed worker pool, one atomic add per worker

_shared_state = None


def _init_pool_worker(state):
    global _shared_state
    _shared_state = state


def _sample_into_shared_state(args):
    batch, seed_seq = args
    _shared_state.add(sample(batch.trials, make_rng(seed_seq)))


def run_partitioned(total=TOTAL_TRIALS, workers=None, state=None, seed=None, label="Parallel"):
    state, workers = _prepare(state, workers)
    tasks = list(zip(partition(total, workers), spawn_seeds(seed, workers)))

    stopwatch = Stopwatch()
    stopwatch.start()

    with multiprocessing.Pool(processes=workers, initializer=_init_pool_worker,
                              initargs=(state,)) as pool:
        pool.map(_sample_into_shared_state, tasks, chunksize=1)

    return _finish(label, state, stopwatch)


# Explicit worker units, collected then reduced

def _sample_batch(batch, seed_seq):
    return sample(batch.trials, make_rng(seed_seq))


def run_worker_units(total=TOTAL_TRIALS, workers=None, state=None, seed=None, label="Parallel 2"):
    state, workers = _prepare(state, workers)
    batches = partition(total, workers)
    seeds = spawn_seeds(seed, workers)

    stopwatch = Stopwatch()
    stopwatch.start()

    with ProcessPoolExecutor(max_workers=workers) as executor:
        futures = [executor.submit(_sample_batch, batch, seed_seq)
                   for batch, seed_seq in zip(batches, seeds)]
        wait(futures, return_when=ALL_COMPLETED)

    state.add(reduce_results(future.result() for future in futures))

    return _finish(label, state, stopwatch)


# async / await

async def sample_async(batch, seed_seq, index=0, spans=None):
    started = time.perf_counter()
    result = sample(batch.trials, make_rng(seed_seq))
    if spans is not None:
        spans.append(WorkerSpan(index, started, time.perf_counter()))
    return result


async def _await_in_turn(batches, seeds, state, spans):
    # Each worker is awaited before the next one is created, so nothing overlaps
    for index, (batch, seed_seq) in enumerate(zip(batches, seeds)):
        state.add(await sample_async(batch, seed_seq, index, spans))


def run_cooperative(total=TOTAL_TRIALS, workers=None, state=None, seed=None,
                    label="Parallel 3", spans=None):
    """Await one coroutine per batch, one after another.

    Coroutines alone do not run anything concurrently: without something like
    asyncio.gather driving several of them, this takes as long as the
    sequential run. Pass a list as spans to record when each worker ran.
    """
    state, workers = _prepare(state, workers)
    batches = partition(total, workers)
    seeds = spawn_seeds(seed, workers)

    stopwatch = Stopwatch()
    stopwatch.start()

    asyncio.run(_await_in_turn(batches, seeds, state, spans))

    return _finish(label, state, stopwatch)


HARNESSES = (
    run_sequential,
    run_parallel_loop,
    run_partitioned,
    run_worker_units,
    run_cooperative,
)


def run_all(total=TOTAL_TRIALS, workers=None, seed=None):
    state = AggregateState()
    for harness in HARNESSES:
        # run_parallel_loop picks its own thread count when workers is None
        yield harness(total=total, workers=workers, state=state, seed=seed)
