import logging
from dataclasses import dataclass
from enum import Enum
from typing import Dict, List, Optional

from emulator.kinematics import SliderKinematics
from emulator.objects import HitObject, Point, Slider, Spinner

logger = logging.getLogger(__name__)


class ObjectState(Enum):
    PENDING = "pending"
    VISIBLE = "visible"
    RESOLVED = "resolved"


@dataclass(frozen=True)
class VisibleObject:
    hit_object: HitObject
    alpha: float
    ball_position: Optional[Point] = None


@dataclass
class SliderFollowState:
    user_progress: float = 0.0
    is_active: bool = False


class VisibilityWindow:
    """Show/hide/retire bookkeeping for the hit objects of one chart.

    An object shows up ``preempt_time`` ms before its hit time and fades out
    over ``fade_out_time`` ms after its reference time (hit time for circles,
    end time for sliders and spinners). Retirement is permanent.
    """

    def __init__(self, hit_objects: List[HitObject], kinematics: SliderKinematics,
                 preempt_time: float = 600.0, fade_out_time: float = 100.0):
        self.hit_objects = list(hit_objects)
        self.kinematics = kinematics
        self.preempt_time = preempt_time
        self.fade_out_time = fade_out_time
        self.follow_states: Dict[Slider, SliderFollowState] = {}

        times = [obj.time for obj in self.hit_objects]
        self._ordered = all(a <= b for a, b in zip(times, times[1:]))

    def show_time(self, obj: HitObject) -> float:
        return obj.time - self.preempt_time

    def reference_time(self, obj: HitObject) -> float:
        if isinstance(obj, Slider):
            return self.kinematics.end_time(obj)
        if isinstance(obj, Spinner):
            return obj.end_time()
        return obj.time

    def expiry_time(self, obj: HitObject) -> float:
        return self.reference_time(obj) + self.fade_out_time

    def alpha(self, obj: HitObject, current_time: float) -> float:
        reference = self.reference_time(obj)
        if current_time <= reference:
            return 1.0
        if self.fade_out_time <= 0:
            return 0.0
        return max(0.0, 1.0 - (current_time - reference) / self.fade_out_time)

    def is_expired(self, obj: HitObject, current_time: float) -> bool:
        # the fade has run out, which for a zero fade-out is just past the reference time
        return current_time >= self.expiry_time(obj) and self.alpha(obj, current_time) <= 0

    def is_visible(self, obj: HitObject, current_time: float) -> bool:
        if obj.resolved or current_time < self.show_time(obj):
            return False
        return self.alpha(obj, current_time) > 0

    def state(self, obj: HitObject, current_time: float) -> ObjectState:
        if obj.resolved or self.is_expired(obj, current_time):
            return ObjectState.RESOLVED
        if current_time < self.show_time(obj):
            return ObjectState.PENDING
        return ObjectState.VISIBLE

    def visible_objects(self, current_time: float) -> List[VisibleObject]:
        visible = []
        for obj in self.hit_objects:
            if self._ordered and self.show_time(obj) > current_time:
                break
            if not self.is_visible(obj, current_time):
                continue
            ball = None
            if isinstance(obj, Slider):
                ball = self.kinematics.ball_position(obj, current_time)
            visible.append(VisibleObject(obj, self.alpha(obj, current_time), ball))
        return visible

    def follow_state(self, slider: Slider) -> SliderFollowState:
        state = self.follow_states.get(slider)
        if state is None:
            state = self.follow_states[slider] = SliderFollowState()
        return state

    def retire(self, obj: HitObject):
        if not obj.resolved:
            logger.debug("retiring %r", obj)
        obj.resolve()
        self.follow_states.pop(obj, None)

    def retire_expired(self, current_time: float) -> List[HitObject]:
        retired = []
        for obj in self.hit_objects:
            if self._ordered and self.show_time(obj) > current_time:
                break
            if not obj.resolved and self.is_expired(obj, current_time):
                self.retire(obj)
                retired.append(obj)
        return retired
