from typing import List, Optional, Tuple

import numpy as np

from geometry.curves import CurveKind

Point = Tuple[float, float]

DEFAULT_HIT_SAMPLE = "0:0:0:0:"


class HitObject:
    def __init__(self, x, y, time, hit_sound=0, new_combo=False, hit_sample=DEFAULT_HIT_SAMPLE):
        self.x, self.y = x, y
        self.time = int(time)
        self.hit_sound = hit_sound
        self.new_combo = new_combo
        self.hit_sample = hit_sample
        self.resolved = False

    @property
    def should_render(self):
        return not self.resolved

    @property
    def position(self) -> Point:
        return float(self.x), float(self.y)

    def resolve(self):
        """Retire the object for good. There is no way back to a renderable state."""
        self.resolved = True

    def end_time(self):
        return self.time

    def __repr__(self):
        state = "resolved" if self.resolved else "pending"
        return f"{type(self).__name__}({self.x},{self.y} @ {self.time}, {state})"


class HitCircle(HitObject):
    pass


class Slider(HitObject):
    def __init__(self, x, y, time, curve_kind, curve_points, length, slide_count=1,
                 edge_sounds: Optional[List[int]] = None, edge_sets: Optional[List[List[int]]] = None,
                 **kwargs):
        super().__init__(x, y, time, **kwargs)
        self.curve_kind = CurveKind.parse(curve_kind)
        # the start position is the first control point
        self.control_points = np.vstack(([[x, y]], np.asarray(curve_points, dtype=float).reshape(-1, 2)))
        self.control_points.setflags(write=False)
        self.length = float(length)
        self.slide_count = max(1, int(slide_count))
        self.edge_sounds = list(edge_sounds or [])
        self.edge_sets = [list(edge_set) for edge_set in (edge_sets or [])]


class Spinner(HitObject):
    def __init__(self, x, y, time, end_time, **kwargs):
        super().__init__(x, y, time, **kwargs)
        self._end_time = int(end_time)

    def end_time(self):
        return self._end_time
