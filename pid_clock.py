# pid_clock.py

import time


class MonotonicClock:
    """Wall-independent millisecond clock backed by time.monotonic()."""

    def now(self):
        return int(time.monotonic() * 1000)


class ManualClock:
    """
    Clock that only moves when told to.

    Used by the tests and by the simulated demos so a control loop can be
    stepped through synthetic time.
    """

    def __init__(self, start=0):
        self._now = int(start)

    def now(self):
        return self._now

    def advance(self, ms):
        if ms < 0:
            raise ValueError(f"clock cannot move backwards (step {ms} ms)")
        self._now += int(ms)
        return self._now

    def set(self, ms):
        if ms < self._now:
            raise ValueError(f"clock cannot move backwards ({self._now} -> {ms} ms)")
        self._now = int(ms)
        return self._now
