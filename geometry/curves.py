import math
import logging
from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from enum import Enum

import numpy as np

logger = logging.getLogger(__name__)

TWO_PI = 2 * math.pi

MIN_OUTPUT_POINTS = 20
OUTPUT_SPACING = 3
MIN_BEZIER_POINTS = 50
BEZIER_SPACING = 2
MIN_CATMULL_POINTS = 10
COLLINEAR_EPSILON = 1e-6
FALLBACK_OFFSET_X = 100
SNAP_TOLERANCE = 1e-9


class CurveKind(Enum):
    LINEAR = "L"
    PERFECT_CIRCLE = "P"
    BEZIER = "B"
    CATMULL_ROM = "C"

    @classmethod
    def parse(cls, token):
        """Map a curve letter (or an existing kind) to a CurveKind, defaulting to LINEAR."""
        if isinstance(token, cls):
            return token
        letter = str(token or "").strip()[:1].upper()
        for kind in cls:
            if kind.value == letter:
                return kind
        return cls.LINEAR


def as_points(points):
    return np.asarray(points, dtype=float).reshape(-1, 2)


def segment_lengths(points):
    deltas = np.diff(as_points(points), axis=0)
    return np.hypot(deltas[:, 0], deltas[:, 1])


def cumulative_lengths(points):
    return np.concatenate(([0.0], np.cumsum(segment_lengths(points))))


def path_length(points):
    return float(segment_lengths(points).sum())


def output_point_count(length):
    return max(MIN_OUTPUT_POINTS, int(length // OUTPUT_SPACING))


def _walk(points, cumulative, distance):
    if len(points) == 1 or distance <= 0:
        return points[0]
    if distance >= cumulative[-1]:
        return points[-1]

    # first segment whose far end reaches the distance; it always has non-zero length
    index = int(np.searchsorted(cumulative, distance, side="left"))
    start, end = points[index - 1], points[index]
    ratio = (distance - cumulative[index - 1]) / (cumulative[index] - cumulative[index - 1])
    return start + (end - start) * ratio


def point_at_distance(points, distance, cumulative=None):
    """Linearly interpolated point lying `distance` along the polyline.

    Distances before the start or past the end clamp to the first or last point.
    Returns None for an empty polyline.
    """
    points = as_points(points)
    if len(points) == 0:
        return None
    if cumulative is None:
        cumulative = cumulative_lengths(points)
    x, y = _walk(points, cumulative, distance)
    return float(x), float(y)


def resample(points, target_length):
    """Re-place points along a raw polyline at uniform arc-length steps.

    Emits ``output_point_count(target_length)`` points spaced
    ``target_length / (count - 1)`` apart, or fewer when the raw path is shorter.
    When the walk reaches the end of the raw path, the last output point is
    snapped onto the last raw point. Zero-length paths come back unchanged.
    """
    points = as_points(points)
    if len(points) < 2:
        return points

    cumulative = cumulative_lengths(points)
    total = cumulative[-1]
    if total == 0:
        return points

    count = output_point_count(target_length)
    step = target_length / (count - 1)
    if step <= 0:
        return points[:1].copy()

    targets = step * np.arange(1, count)
    targets = targets[targets <= total]
    index = np.searchsorted(cumulative, targets, side="left")
    ratio = (targets - cumulative[index - 1]) / (cumulative[index] - cumulative[index - 1])
    sampled = points[index - 1] + (points[index] - points[index - 1]) * ratio[:, None]
    result = np.vstack((points[:1], sampled))

    walked = targets[-1] if len(targets) else 0.0
    if total - walked <= step * (1 + SNAP_TOLERANCE):
        if len(result) > 1:
            result[-1] = points[-1]
        else:
            result = np.vstack((result, points[-1:]))
    return result


def circumcenter(p1, p2, p3):
    ax, ay = p1
    bx, by = p2
    cx, cy = p3

    d = 2 * (ax * (by - cy) + bx * (cy - ay) + cx * (ay - by))
    if abs(d) < COLLINEAR_EPSILON:
        return None

    ux = ((ax ** 2 + ay ** 2) * (by - cy) + (bx ** 2 + by ** 2) * (cy - ay) + (cx ** 2 + cy ** 2) * (ay - by)) / d
    uy = ((ax ** 2 + ay ** 2) * (cx - bx) + (bx ** 2 + by ** 2) * (ax - cx) + (cx ** 2 + cy ** 2) * (bx - ax)) / d
    return np.array([ux, uy])


def _wrap_angle(angle):
    angle = angle % TWO_PI
    # float modulo of a tiny negative value can land exactly on 2*pi
    return 0.0 if angle >= TWO_PI else angle


def arc_sweep(start_angle, mid_angle, end_angle):
    """Signed sweep from start to end that passes through the middle angle.

    Positive sweeps run counter-clockwise (increasing angle).
    """
    start_to_mid = _wrap_angle(mid_angle - start_angle)
    mid_to_end = _wrap_angle(end_angle - mid_angle)
    start_to_end = _wrap_angle(end_angle - start_angle)

    # going counter-clockwise the two partial deltas add up to start_to_end when
    # the middle point lies on the way, and to start_to_end + 2*pi otherwise
    if start_to_mid + mid_to_end - start_to_end < math.pi:
        return start_to_end
    return start_to_end - TWO_PI


def split_bezier_segments(points):
    """Split a composite Bezier control list on every doubled (anchor) point."""
    points = as_points(points)
    segments = []
    current = [points[0]]

    i = 1
    while i < len(points):
        current.append(points[i])
        if i < len(points) - 1 and np.array_equal(points[i], points[i + 1]):
            segments.append(current)
            current = [points[i]]
            i += 1
        i += 1

    if len(current) > 1:
        segments.append(current)
    if not segments:
        return [points]
    return [np.array(segment) for segment in segments]


def bezier_point(control_points, t):
    control_points = as_points(control_points)
    ts = np.atleast_1d(np.asarray(t, dtype=float))
    n = len(control_points)

    work = np.broadcast_to(control_points, (len(ts), n, 2)).copy()
    weight = ts[:, None, None]
    for r in range(1, n):
        work[:, :n - r] = (1 - weight) * work[:, :n - r] + weight * work[:, 1:n - r + 1]

    result = work[:, 0]
    if np.ndim(t) == 0:
        return float(result[0, 0]), float(result[0, 1])
    return result


def bezier_samples(control_points, target_length):
    control_points = as_points(control_points)
    if len(control_points) < 2:
        return control_points
    count = max(MIN_BEZIER_POINTS, int(target_length // BEZIER_SPACING))
    ts = np.arange(count) / max(1, count - 1)
    return bezier_point(control_points, ts)


def catmull_rom_point(p0, p1, p2, p3, t):
    p0, p1, p2, p3 = (np.asarray(p, dtype=float) for p in (p0, p1, p2, p3))
    ts = np.atleast_1d(np.asarray(t, dtype=float))[:, None]
    t2 = ts * ts
    t3 = t2 * ts

    result = 0.5 * (
        2 * p1
        + (-p0 + p2) * ts
        + (2 * p0 - 5 * p1 + 4 * p2 - p3) * t2
        + (-p0 + 3 * p1 - 3 * p2 + p3) * t3
    )
    if np.ndim(t) == 0:
        return float(result[0, 0]), float(result[0, 1])
    return result


@dataclass(frozen=True, eq=False)
class GeneratedCurve:
    points: np.ndarray
    length: float
    cumulative: np.ndarray = field(init=False, repr=False)

    def __post_init__(self):
        points = as_points(self.points).copy()
        points.setflags(write=False)
        object.__setattr__(self, "points", points)
        object.__setattr__(self, "length", float(self.length))
        object.__setattr__(self, "cumulative", cumulative_lengths(points))

    def __len__(self):
        return len(self.points)

    @property
    def path_length(self):
        return float(self.cumulative[-1])

    @property
    def start(self):
        return float(self.points[0, 0]), float(self.points[0, 1])

    @property
    def end(self):
        return float(self.points[-1, 0]), float(self.points[-1, 1])

    def point_at_distance(self, distance):
        return point_at_distance(self.points, distance, self.cumulative)


class Curve(ABC):
    def __init__(self, points, target_length):
        self.points = as_points(points)
        self.target_length = float(target_length)
        self.samples = self._calculate()
        self.length = path_length(self.samples)

    @abstractmethod
    def _calculate(self):
        pass

    def _linear_fallback(self, reason):
        logger.debug("%s curve falls back to linear: %s", type(self).__name__, reason)
        return Linear(self.points, self.target_length).samples

    def get_length(self):
        return self.length

    def get_points(self):
        return self.samples

    def point_at(self, t):
        t = max(0.0, min(1.0, t))
        return point_at_distance(self.samples, t * self.length)

    def get_end_direction(self):
        return _direction(self.samples)

    def to_generated(self):
        return GeneratedCurve(self.samples, self.target_length)


def _direction(points):
    if len(points) < 2:
        return np.zeros(2)
    delta = points[-1] - points[-2]
    length = math.hypot(delta[0], delta[1])
    return delta / length if length > 0 else np.zeros(2)


class Linear(Curve):
    def _calculate(self):
        points = self.points
        if len(points) < 2:
            return points.copy()

        cumulative = cumulative_lengths(points)
        total = cumulative[-1]
        if total == 0:
            return points.copy()

        count = output_point_count(self.target_length)
        step = self.target_length / (count - 1)
        direction = _direction(points)

        samples = []
        for distance in step * np.arange(count):
            if distance <= total:
                samples.append(_walk(points, cumulative, distance))
            else:
                # overshoot continues along the last segment instead of clamping
                samples.append(points[-1] + direction * (distance - total))
        return np.array(samples)

    def get_end_direction(self):
        return _direction(self.points)


class Perfect(Curve):
    def _calculate(self):
        if len(self.points) != 3:
            return self._linear_fallback(f"expected 3 control points, got {len(self.points)}")

        p1, p2, p3 = self.points
        center = circumcenter(p1, p2, p3)
        if center is None:
            return self._linear_fallback("control points are collinear")

        self.center = center
        self.radius = math.hypot(*(p1 - center))
        self.start_angle = math.atan2(p1[1] - center[1], p1[0] - center[0])
        mid_angle = math.atan2(p2[1] - center[1], p2[0] - center[0])
        end_angle = math.atan2(p3[1] - center[1], p3[0] - center[0])

        sweep = arc_sweep(self.start_angle, mid_angle, end_angle)
        if abs(sweep) * self.radius > self.target_length:
            sweep = math.copysign(self.target_length / self.radius, sweep)
        self.sweep = sweep

        arc_length = abs(sweep) * self.radius
        count = output_point_count(arc_length)
        angles = self.start_angle + sweep * (np.arange(count) / max(1, count - 1))
        raw = center + self.radius * np.column_stack((np.cos(angles), np.sin(angles)))
        return resample(raw, self.target_length)


class Bezier(Curve):
    def _calculate(self):
        segments = split_bezier_segments(self.points)
        segment_length = self.target_length / len(segments)

        parts = []
        for i, segment in enumerate(segments):
            samples = bezier_samples(segment, segment_length)
            # the joint point already ends the previous sub-curve
            parts.append(samples if i == 0 else samples[1:])
        return resample(np.vstack(parts), self.target_length)


class Catmull(Curve):
    def _calculate(self):
        if len(self.points) < 4:
            return self._linear_fallback(f"needs 4 control points, got {len(self.points)}")

        num_segments = len(self.points) - 3
        per_segment = max(MIN_CATMULL_POINTS, int(self.target_length // (num_segments * 3)))
        ts = np.arange(per_segment) / per_segment

        parts = []
        for i in range(num_segments):
            # t stops short of 1, the next segment starts on the joint
            parts.append(catmull_rom_point(*self.points[i:i + 4], ts))

        raw = np.vstack(parts)
        raw[-1] = self.points[-1]
        return resample(raw, self.target_length)


CURVE_CLASSES = {
    CurveKind.LINEAR: Linear,
    CurveKind.PERFECT_CIRCLE: Perfect,
    CurveKind.BEZIER: Bezier,
    CurveKind.CATMULL_ROM: Catmull,
}


def ensure_two_points(control_points):
    points = as_points(control_points)
    if len(points) == 0:
        raise ValueError("a curve needs at least one control point")
    if len(points) < 2:
        points = np.vstack((points, points[0] + (FALLBACK_OFFSET_X, 0)))
    return points


def create_curve(curve_kind, control_points, target_length):
    points = ensure_two_points(control_points)
    curve_class = CURVE_CLASSES[CurveKind.parse(curve_kind)]
    return curve_class(points, max(0.0, float(target_length)))


def generate(control_points, curve_kind, target_length):
    """Build the arc-length-uniform polyline for a slider's control points."""
    return create_curve(curve_kind, control_points, target_length).to_generated()
