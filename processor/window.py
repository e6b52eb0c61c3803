"""Fixed-size trailing window of raw values with sample standard deviation."""

import statistics


class SampleWindow:
    """
    Circular buffer of the last `size` values, written at `index % size`.

    The stddev is taken over every slot, so callers only ask for it once
    `size` values have been recorded.
    """

    __slots__ = ("_values", "_size", "_recorded")

    def __init__(self, size: int):
        if size < 2:
            raise ValueError("window size must be at least 2 for a sample stddev")
        self._size = size
        self._values: list[float] = [0.0] * size
        self._recorded = 0

    def record(self, index: int, value: float):
        self._values[index % self._size] = value
        self._recorded += 1

    @property
    def is_full(self) -> bool:
        return self._recorded >= self._size

    def sample_std_dev(self) -> float:
        return statistics.stdev(self._values)

    def snapshot(self) -> list[float]:
        return list(self._values)

    def __len__(self) -> int:
        return self._size
