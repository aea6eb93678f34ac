import time
from collections import defaultdict, deque

class SimpleRateLimiter:
    def __init__(self, clock=time.monotonic):
        self.hits = defaultdict(deque)  # key -> timestamps
        self.clock = clock
        self._last_sweep = clock()

    def allow(self, key: str, limit: int, per_sec: int) -> bool:
        now = self.clock()
        if now - self._last_sweep > per_sec:
            self._sweep(now, per_sec)

        q = self.hits[key]
        while q and now - q[0] > per_sec:
            q.popleft()
        if len(q) >= limit:
            return False
        q.append(now)
        return True

    def _sweep(self, now: float, per_sec: int) -> None:
        # Drop keys whose newest hit has left the window.
        for key in [k for k, q in self.hits.items() if not q or now - q[-1] > per_sec]:
            del self.hits[key]
        self._last_sweep = now
