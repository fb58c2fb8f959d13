import bisect
import logging
from typing import List, Optional

logger = logging.getLogger(__name__)

DEFAULT_BEAT_LENGTH = 500.0


class TimingPoint:
    def __init__(self, time: float, beat_length: float, meter: int = 4, sample_set: int = 0,
                 sample_index: int = 0, volume: int = 100, uninherited: Optional[bool] = None,
                 effects: int = 0):
        self.time = time
        self.beat_length = beat_length
        self.meter = meter
        self.sample_set = sample_set
        self.sample_index = sample_index
        self.volume = volume
        self.uninherited = beat_length > 0 if uninherited is None else uninherited
        self.effects = effects

    @property
    def kiai(self) -> bool:
        return bool(self.effects & 1)

    def __repr__(self):
        return f"TimingPoint({self.time}, beat_length={self.beat_length})"


class TimingParser:
    """Beat-length lookup over a chart's timing points.

    The list is taken in source order. Points with a non-positive beat length
    (inherited slider-velocity points) never change the running tempo.
    """

    def __init__(self, timing_points: List[TimingPoint], default_beat_length: float = DEFAULT_BEAT_LENGTH):
        self.timing_points = list(timing_points)
        self.default_beat_length = default_beat_length

        times = [tp.time for tp in self.timing_points]
        self.ordered = all(a <= b for a, b in zip(times, times[1:]))
        if not self.ordered:
            logger.debug("timing points are not ascending, falling back to a linear scan")

        self.tempo_points = [tp for tp in self.timing_points if tp.beat_length > 0]
        self.offsets = [tp.time for tp in self.tempo_points]

    def beat_length_at(self, time: float) -> float:
        if not self.ordered:
            return self._scan(time)

        idx = bisect.bisect_right(self.offsets, time) - 1
        return self.tempo_points[idx].beat_length if idx >= 0 else self.default_beat_length

    def _scan(self, time: float) -> float:
        beat_length = self.default_beat_length
        for tp in self.timing_points:
            if tp.time > time:
                break
            if tp.beat_length > 0:
                beat_length = tp.beat_length
        return beat_length

    def bpm_at(self, time: float) -> float:
        return 60000.0 / self.beat_length_at(time)

    def __len__(self):
        return len(self.timing_points)
