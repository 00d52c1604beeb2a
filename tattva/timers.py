"""Single-threaded timer queue.

Timers only fire from ``run_due``/``advance``, on the caller's thread. The
dashboard pumps it with the monotonic clock on every poll; tests pump it with
simulated time.
"""

import heapq
import itertools


class TimerHandle:
    __slots__ = ("when", "callback", "cancelled")

    def __init__(self, when, callback):
        self.when      = when
        self.callback  = callback
        self.cancelled = False

    def cancel(self):
        self.cancelled = True


class TimerQueue:
    def __init__(self, start=0.0):
        self.now    = start
        self._heap  = []
        self._order = itertools.count()

    def call_later(self, delay, callback):
        handle = TimerHandle(self.now + max(delay, 0), callback)
        heapq.heappush(self._heap, (handle.when, next(self._order), handle))
        return handle

    def run_due(self, now):
        """Fire every timer due at or before ``now``, oldest first.

        Callbacks run with ``self.now`` set to their own due time, so timers
        they schedule are measured from when they fired, not from ``now``.
        Returns the number of callbacks run.
        """
        fired = 0
        while self._heap and self._heap[0][0] <= now:
            when, _, handle = heapq.heappop(self._heap)
            self.now = max(self.now, when)
            if handle.cancelled:
                continue
            handle.callback()
            fired += 1
        self.now = max(self.now, now)
        return fired

    def advance(self, seconds):
        return self.run_due(self.now + seconds)

    def pending(self):
        return sum(1 for _, _, h in self._heap if not h.cancelled)
