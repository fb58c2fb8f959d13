import logging
from typing import List, Optional, Tuple

from emulator.Beatmap import Beatmap
from emulator.config import PlayConfig
from emulator.kinematics import SliderKinematics
from emulator.objects import HitCircle, HitObject, Point, Slider
from emulator.timing import TimingParser
from emulator.visibility import SliderFollowState, VisibilityWindow, VisibleObject
from geometry.utils import circle_radius, within_radius

logger = logging.getLogger(__name__)


class PlayContext:
    """Everything a frame of play needs for one loaded chart.

    Collaborators receive this handle explicitly. Only one context per
    playfield should be alive at a time; that is up to whoever creates it.
    """

    def __init__(self, beatmap: Beatmap, config: Optional[PlayConfig] = None):
        self.beatmap = beatmap
        self.config = config or PlayConfig()

        self.timing = TimingParser(beatmap.timing_points, self.config.default_beat_length)
        self.kinematics = SliderKinematics(self.timing, beatmap.difficulty.slider_multiplier)
        self.window = VisibilityWindow(beatmap.hit_objects, self.kinematics,
                                       self.config.preempt_time, self.config.fade_out_time)
        self.hit_radius = circle_radius(beatmap.difficulty.circle_size)

    def beat_length_at(self, time: float) -> float:
        return self.timing.beat_length_at(time)

    def visible_objects(self, current_time: float) -> List[VisibleObject]:
        return self.window.visible_objects(current_time)

    def visible_circles(self, current_time: float) -> List[HitCircle]:
        return [v.hit_object for v in self.visible_objects(current_time) if isinstance(v.hit_object, HitCircle)]

    def visible_sliders(self, current_time: float) -> List[Slider]:
        return [v.hit_object for v in self.visible_objects(current_time) if isinstance(v.hit_object, Slider)]

    def ball_position(self, slider: Slider, current_time: float) -> Optional[Point]:
        return self.kinematics.ball_position(slider, current_time)

    def follow_state(self, slider: Slider) -> Optional[SliderFollowState]:
        return self.window.follow_states.get(slider)

    def click(self, x: float, y: float, current_time: float) -> Optional[HitObject]:
        """Offer a click to the earliest visible object under the cursor.

        Returns the object that took the click, or None when it hit nothing.
        """
        for visible in self.visible_objects(current_time):
            obj = visible.hit_object
            if isinstance(obj, HitCircle):
                if within_radius(x, y, obj.position, self.hit_radius):
                    logger.debug("circle at %d hit at %.1f", obj.time, current_time)
                    self.window.retire(obj)
                    return obj
            elif isinstance(obj, Slider):
                if within_radius(x, y, visible.ball_position, self.hit_radius):
                    logger.debug("slider at %d grabbed at %.1f", obj.time, current_time)
                    self.window.follow_state(obj).is_active = True
                    return obj
        return None

    def track(self, x: float, y: float, current_time: float) -> List[Slider]:
        """Follow the cursor on every held slider; returns sliders completed this step."""
        completed = []
        for slider, state in list(self.window.follow_states.items()):
            if not state.is_active:
                continue
            ball = self.kinematics.ball_for(slider)
            sample_time = min(current_time, ball.end_time)
            if within_radius(x, y, ball.get_position_at_time(sample_time), self.hit_radius):
                state.user_progress = sample_time - slider.time
            else:
                state.is_active = False
                continue
            if sample_time >= ball.end_time:
                self.window.retire(slider)
                completed.append(slider)
        return completed

    def update(self, current_time: float, cursor: Optional[Tuple[float, float]] = None) -> List[VisibleObject]:
        """Run one game-update step and return what should be on screen."""
        if cursor is not None:
            self.track(cursor[0], cursor[1], current_time)
        self.window.retire_expired(current_time)
        return self.visible_objects(current_time)

    def close(self):
        self.kinematics.clear()
        self.window.follow_states.clear()
