import bisect
import threading
import time
from enum import Enum

import numpy as np

import tps_meter

RECORDING_IDLE_MS = 2000

FEATURE_LABELS = (
    "TPS Difference",
    "Recording length",
    "Total left clicks",
    "Maximum left click delay",
    "Average left click delay",
    "Minimum left click delay",
    "Performed hits",
    "Total right clicks",
    "Blocks placed",
    "Maximum place delay",
    "Average place delay",
    "Minimum place delay",
    "Label",
)
FEATURE_COUNT = len(FEATURE_LABELS)


def now_ms() -> int:
    return int(time.time() * 1000)


class EventKind(str, Enum):
    LEFT_CLICK = "left_click"
    RIGHT_CLICK = "right_click"
    BLOCK_PLACE = "block_place"
    HIT = "hit"


class ExpiredSessionError(RuntimeError):
    """Raised when data is appended to a recording that has already expired."""

    def __init__(self, last_activity: int, now: int):
        self.last_activity = last_activity
        self.now = now
        self.idle_ms = RECORDING_IDLE_MS
        super().__init__(
            f"Data should not be added to an expired recording "
            f"(idle {now - last_activity}ms > {RECORDING_IDLE_MS}ms)"
        )


def get_delays(timestamps) -> np.ndarray:
    """Durations between chronologically consecutive timestamps."""
    if len(timestamps) < 2:
        return np.empty(0, dtype=np.int64)
    return np.diff(np.asarray(timestamps, dtype=np.int64))


def _delay_stats(delays):
    # (max, average, min); zeros when there is nothing to measure
    if delays.size == 0:
        return 0, 0.0, 0
    return int(delays.max()), float(delays.mean()), int(delays.min())


class Recording:
    """
    Recording of one player that starts when the player engages a recordable
    action. Once a recording has gone RECORDING_IDLE_MS without activity it is
    expired and refuses further data.

    Timestamps are integer milliseconds taken from `clock`. The server load
    (ticks per second) is read from `load_provider` once at creation and again
    whenever features are extracted.
    """

    __slots__ = (
        "_clock",
        "_load_provider",
        "_lock",
        "_session_start",
        "_last_activity",
        "_baseline_load",
        "_left_clicks",
        "_left_click_delays",
        "_right_clicks",
        "_block_places",
        "_block_place_delays",
        "_hits",
    )

    def __init__(self, clock=None, load_provider=None):
        self._clock = clock or now_ms
        self._load_provider = load_provider or tps_meter.get_tps
        self._lock = threading.Lock()

        now = self._clock()
        self._session_start = now
        self._last_activity = now
        self._baseline_load = float(self._load_provider())

        self._left_clicks = []
        self._left_click_delays = None  # filled lazily, dropped on append
        self._right_clicks = 0
        self._block_places = []
        self._block_place_delays = None
        self._hits = 0

    # ------------------------------------------------------------------
    # Appending
    # ------------------------------------------------------------------

    def append(self, kind, at=None):
        kind = EventKind(kind)
        with self._lock:
            now = self._clock()
            if self._expired_at(now):
                raise ExpiredSessionError(self._last_activity, now)
            at = int(now if at is None else at)

            if kind is EventKind.LEFT_CLICK:
                bisect.insort(self._left_clicks, at)
                self._left_click_delays = None
            elif kind is EventKind.BLOCK_PLACE:
                bisect.insort(self._block_places, at)
                self._block_place_delays = None
            elif kind is EventKind.RIGHT_CLICK:
                self._right_clicks += 1
            else:
                self._hits += 1

            if at > self._last_activity:
                self._last_activity = at

    def add_left_click(self, at=None):
        self.append(EventKind.LEFT_CLICK, at)

    def add_right_click(self, at=None):
        self.append(EventKind.RIGHT_CLICK, at)

    def add_block_place(self, at=None):
        self.append(EventKind.BLOCK_PLACE, at)

    def add_hit(self, at=None):
        """Adds a performed hit (damaging an entity)."""
        self.append(EventKind.HIT, at)

    # ------------------------------------------------------------------
    # Expiry
    # ------------------------------------------------------------------

    def _expired_at(self, now):
        return now - self._last_activity > RECORDING_IDLE_MS

    def is_expired(self, now=None) -> bool:
        now = self._clock() if now is None else now
        with self._lock:
            return self._expired_at(now)

    # ------------------------------------------------------------------
    # Derived statistics
    # ------------------------------------------------------------------

    def _left_delays(self):
        if self._left_click_delays is None:
            self._left_click_delays = get_delays(self._left_clicks)
        return self._left_click_delays

    def _place_delays(self):
        if self._block_place_delays is None:
            self._block_place_delays = get_delays(self._block_places)
        return self._block_place_delays

    def _stats(self, current_load):
        if current_load is None:
            current_load = self._load_provider()
        left_max, left_avg, left_min = _delay_stats(self._left_delays())
        place_max, place_avg, place_min = _delay_stats(self._place_delays())
        return (
            self._baseline_load - float(current_load),
            int(self._last_activity - self._session_start),
            len(self._left_clicks),
            left_max,
            left_avg,
            left_min,
            self._hits,
            self._right_clicks,
            len(self._block_places),
            place_max,
            place_avg,
            place_min,
        )

    def extract_features(self, current_load=None) -> np.ndarray:
        """
        Array with all data for the detection model to process, laid out as
        FEATURE_LABELS. The trailing label slot is always 0.
        """
        with self._lock:
            stats = self._stats(current_load)
        return np.array(stats + (0,), dtype=np.float64)

    def describe(self, current_load=None) -> str:
        with self._lock:
            stats = self._stats(current_load)
        return "".join(
            f"{label}: {value}\n" for label, value in zip(FEATURE_LABELS, stats)
        )

    def __str__(self):
        return self.describe()

    # ------------------------------------------------------------------
    # Read-only views
    # ------------------------------------------------------------------

    @property
    def session_start(self) -> int:
        return self._session_start

    @property
    def last_activity(self) -> int:
        return self._last_activity

    @property
    def session_length(self) -> int:
        return int(self._last_activity - self._session_start)

    @property
    def baseline_load(self) -> float:
        return self._baseline_load

    @property
    def left_click_times(self) -> tuple:
        with self._lock:
            return tuple(self._left_clicks)

    @property
    def block_place_times(self) -> tuple:
        with self._lock:
            return tuple(self._block_places)

    @property
    def right_click_count(self) -> int:
        return self._right_clicks

    @property
    def hit_count(self) -> int:
        return self._hits

    @property
    def left_click_delays(self) -> list:
        with self._lock:
            return self._left_delays().tolist()

    @property
    def block_place_delays(self) -> list:
        with self._lock:
            return self._place_delays().tolist()
