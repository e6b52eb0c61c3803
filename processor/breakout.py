"""Breakout tracking over the most recent spike/no-spike decisions."""


class BreakoutTracker:
    """
    Circular record of the last `size` spike flags.

    A breakout is declared when strictly more than `threshold` of the
    flags are set. Flags are never cleared wholesale; they are overwritten
    one slot at a time as new decisions arrive.
    """

    __slots__ = ("_flags", "_threshold")

    def __init__(self, size: int, threshold: int):
        if size < 1:
            raise ValueError("tracker size must be at least 1")
        self._flags: list[bool] = [False] * size
        self._threshold = threshold

    def declare_spike(self, slot: int, is_spike: bool):
        self._flags[slot % len(self._flags)] = is_spike

    def spike_count(self) -> int:
        return sum(self._flags)

    def is_breakout(self) -> bool:
        return self.spike_count() > self._threshold

    def snapshot(self) -> list[bool]:
        return list(self._flags)
