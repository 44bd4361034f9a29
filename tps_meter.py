import threading
import time
from collections import deque

import cb_state as st


class TpsMeter:
    """
    Rolling ticks-per-second reading. The server loop calls tick() once per
    tick; readers call get_tps() from any thread.
    """

    __slots__ = ("window", "max_tps", "ticks", "first_ts", "_clock", "_lock")

    def __init__(self, window=None, max_tps=None, clock=time.time, history=None):
        self.window = st.TPS_WINDOW if window is None else window
        self.max_tps = st.MAX_TPS if max_tps is None else max_tps
        self.ticks = deque(maxlen=st.TICK_HISTORY if history is None else history)
        self.first_ts = None  # time of the first tick ever seen
        self._clock = clock
        self._lock = threading.Lock()

    def _purge_old(self, now):
        cutoff = now - self.window
        while self.ticks and self.ticks[0] <= cutoff:
            self.ticks.popleft()

    def tick(self, ts=None):
        ts = self._clock() if ts is None else ts
        with self._lock:
            if self.first_ts is None:
                self.first_ts = ts
            self.ticks.append(ts)
            self._purge_old(ts)

    def get_tps(self, now=None) -> float:
        now = self._clock() if now is None else now
        with self._lock:
            if self.first_ts is None:
                return self.max_tps
            self._purge_old(now)
            span = min(self.window, now - self.first_ts)
            if span <= 0:
                return self.max_tps
            return min(self.max_tps, len(self.ticks) / span)

    def reset(self):
        with self._lock:
            dropped = len(self.ticks)
            self.ticks.clear()
            self.first_ts = None
        print(f"[TpsMeter] Reset, dropped {dropped} ticks")


default_meter = TpsMeter()


def get_tps() -> float:
    return default_meter.get_tps()
