import logging
import math
from typing import Dict, Optional

from emulator.objects import Point, Slider
from geometry.curves import GeneratedCurve, generate

logger = logging.getLogger(__name__)

PIXELS_PER_BEAT = 100


def one_slide_duration(slider, beat_length, slider_multiplier):
    pixels_per_beat = slider_multiplier * PIXELS_PER_BEAT
    return slider.length / pixels_per_beat * beat_length


def slide_duration(slider, beat_length, slider_multiplier):
    """Total time the ball needs for every slide of the slider, in ms."""
    return one_slide_duration(slider, beat_length, slider_multiplier) * slider.slide_count


def slide_progress(elapsed, duration_per_repeat):
    """Repeat index and ping-pong adjusted progress along the curve."""
    repeat_number = int(math.floor(elapsed / duration_per_repeat))
    repeat_progress = (elapsed / duration_per_repeat) % 1.0
    if repeat_number % 2 == 1:
        repeat_progress = 1.0 - repeat_progress
    return repeat_number, max(0.0, min(1.0, repeat_progress))


def ball_position(slider, curve: GeneratedCurve, current_time, beat_length, slider_multiplier) -> Optional[Point]:
    duration_per_repeat = one_slide_duration(slider, beat_length, slider_multiplier)
    elapsed = current_time - slider.time
    if elapsed < 0 or elapsed > duration_per_repeat * slider.slide_count:
        return None
    if len(curve) == 0:
        return None
    if duration_per_repeat <= 0:
        return curve.start

    _, progress = slide_progress(elapsed, duration_per_repeat)
    return curve.point_at_distance(progress * curve.path_length)


class CurveCache:
    """Generated curves keyed by slider identity, valid for one loaded chart."""

    def __init__(self):
        self._curves: Dict[Slider, GeneratedCurve] = {}

    def get(self, slider: Slider) -> GeneratedCurve:
        curve = self._curves.get(slider)
        if curve is None:
            curve = self._curves[slider] = self._generate(slider)
        return curve

    @staticmethod
    def _generate(slider):
        curve = generate(slider.control_points, slider.curve_kind, slider.length)
        logger.debug("generated %s curve with %d points for slider at %d",
                     slider.curve_kind.name, len(curve), slider.time)
        return curve

    def clear(self):
        self._curves.clear()

    def __len__(self):
        return len(self._curves)

    def __contains__(self, slider):
        return slider in self._curves


class SliderBall:
    def __init__(self, slider: Slider, curve: GeneratedCurve, beat_length, slider_multiplier):
        self.slider = slider
        self.curve = curve
        # sampled once at the slider start and held for the whole slide
        self.beat_length = beat_length
        self.slider_multiplier = slider_multiplier

        self.duration_per_repeat = one_slide_duration(slider, beat_length, slider_multiplier)
        self.total_duration = self.duration_per_repeat * slider.slide_count

        self.start_time = slider.time
        self.end_time = self.start_time + self.total_duration

    def get_position_at_progress(self, progress) -> Optional[Point]:
        progress = max(0.0, min(1.0, progress))
        return self.curve.point_at_distance(progress * self.curve.path_length)

    def get_position_at_time(self, current_time) -> Optional[Point]:
        return ball_position(self.slider, self.curve, current_time, self.beat_length, self.slider_multiplier)

    def repeat_index(self, current_time) -> Optional[int]:
        elapsed = current_time - self.start_time
        if elapsed < 0 or elapsed > self.total_duration or self.duration_per_repeat <= 0:
            return None
        return slide_progress(elapsed, self.duration_per_repeat)[0]

    def end_position(self) -> Point:
        return self.curve.end if self.slider.slide_count % 2 == 1 else self.curve.start


class SliderKinematics:
    def __init__(self, timing_parser, slider_multiplier, curve_cache: Optional[CurveCache] = None):
        self.timing_parser = timing_parser
        self.slider_multiplier = slider_multiplier
        self.curve_cache = curve_cache if curve_cache is not None else CurveCache()
        self._balls: Dict[Slider, SliderBall] = {}

    def _require_slider(self, hit_object):
        if not isinstance(hit_object, Slider):
            raise TypeError(f"expected a Slider, got {type(hit_object).__name__}")

    def curve_for(self, slider: Slider) -> GeneratedCurve:
        self._require_slider(slider)
        return self.curve_cache.get(slider)

    def ball_for(self, slider: Slider) -> SliderBall:
        self._require_slider(slider)
        ball = self._balls.get(slider)
        if ball is None:
            beat_length = self.timing_parser.beat_length_at(slider.time)
            ball = self._balls[slider] = SliderBall(slider, self.curve_for(slider), beat_length,
                                                     self.slider_multiplier)
        return ball

    def slide_duration(self, slider: Slider):
        return self.ball_for(slider).total_duration

    def end_time(self, slider: Slider):
        return self.ball_for(slider).end_time

    def ball_position(self, slider: Slider, current_time) -> Optional[Point]:
        return self.ball_for(slider).get_position_at_time(current_time)

    def repeat_index(self, slider: Slider, current_time) -> Optional[int]:
        return self.ball_for(slider).repeat_index(current_time)

    def end_position(self, slider: Slider) -> Point:
        return self.ball_for(slider).end_position()

    def clear(self):
        self._balls.clear()
        self.curve_cache.clear()
