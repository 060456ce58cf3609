import multiprocessing

from monte_carlo import PartialResult


class AtomicCounter:
    """Integer counter shared between threads and pool processes.

    Backed by a lock-protected multiprocessing.Value, so it can be handed to
    worker processes through a Pool initializer.
    """

    def __init__(self, value=0):
        self._value = multiprocessing.Value('q', value)

    def add(self, amount):
        with self._value.get_lock():
            self._value.value += amount

    def increment(self):
        self.add(1)

    def reset(self):
        with self._value.get_lock():
            self._value.value = 0

    @property
    def value(self):
        with self._value.get_lock():
            return self._value.value


class AggregateState:
    def __init__(self):
        self.point_in_circle = AtomicCounter()
        self.point_in_square = AtomicCounter()

    def reset(self):
        self.point_in_circle.reset()
        self.point_in_square.reset()

    def add(self, result):
        self.point_in_circle.add(result.in_circle)
        self.point_in_square.add(result.in_square)

    def snapshot(self):
        return PartialResult(self.point_in_circle.value, self.point_in_square.value)
