import threading

from counters import AggregateState, AtomicCounter
from monte_carlo import PartialResult


def test_counter_add_and_reset():
    counter = AtomicCounter()
    counter.increment()
    counter.add(41)
    assert counter.value == 42
    counter.reset()
    assert counter.value == 0


def test_counter_loses_no_updates_across_threads():
    counter = AtomicCounter()

    def hammer():
        for _ in range(1000):
            counter.increment()

    threads = [threading.Thread(target=hammer) for _ in range(64)]
    for t in threads:
        t.start()
    for t in threads:
        t.join()

    assert counter.value == 64_000


def test_aggregate_state():
    state = AggregateState()
    state.add(PartialResult(3, 4))
    state.add(PartialResult(1, 6))
    assert state.snapshot() == PartialResult(4, 10)

    state.reset()
    assert state.snapshot() == PartialResult(0, 0)
