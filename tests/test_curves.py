import math

import numpy as np
import pytest

from geometry.curves import (Bezier, Catmull, CurveKind, GeneratedCurve, arc_sweep, bezier_samples,
                             circumcenter, create_curve, generate, output_point_count, path_length,
                             point_at_distance, resample, split_bezier_segments)

LENGTH_CASES = [
    ("L", [(0, 0), (300, 0)], 30),
    ("L", [(0, 0), (300, 0)], 150),
    ("L", [(0, 0), (100, 0), (100, 100)], 180),
    ("L", [(0, 0), (300, 0)], 400),
    ("P", [(0, 0), (100, 100), (200, 0)], 60),
    ("P", [(0, 0), (100, 100), (200, 0)], 150),
    ("P", [(0, 0), (100, 100), (200, 0)], 300),
    ("B", [(0, 0), (100, 200), (200, 0)], 60),
    ("B", [(0, 0), (100, 200), (200, 0)], 250),
    ("B", [(0, 0), (50, 100), (100, 0), (100, 0), (150, -100), (200, 0)], 220),
    ("C", [(0, 0), (50, 100), (100, 0), (150, 100), (200, 0), (250, 100)], 60),
    ("C", [(0, 0), (50, 100), (100, 0), (150, 100), (200, 0), (250, 100)], 300),
]


def resample_step(target_length):
    return target_length / (output_point_count(target_length) - 1)


@pytest.mark.parametrize("kind, points, target", LENGTH_CASES)
def test_polyline_length_matches_target(kind, points, target):
    curve = generate(points, kind, target)

    assert len(curve) >= 2
    assert abs(path_length(curve.points) - target) <= resample_step(target)
    assert curve.length == target


@pytest.mark.parametrize("kind, points, target", LENGTH_CASES)
def test_generation_is_deterministic(kind, points, target):
    first = generate(points, kind, target)
    second = generate(points, kind, target)

    np.testing.assert_array_equal(first.points, second.points)


def test_linear_extrapolates_past_last_point():
    curve = generate([(0, 0), (100, 0)], "L", 150)

    assert curve.start == (0.0, 0.0)
    assert curve.end == pytest.approx((150.0, 0.0))
    assert len(curve) == 50


def test_linear_samples_are_uniform():
    curve = generate([(0, 0), (90, 0), (90, 90)], "L", 180)
    spacing = np.hypot(*np.diff(curve.points, axis=0).T)

    # samples straddling the corner cut it, the others sit exactly one step apart
    straight = spacing[np.isclose(spacing, resample_step(180))]
    assert len(straight) >= len(spacing) - 1


def test_linear_with_zero_length_returns_control_points():
    curve = generate([(10, 10), (10, 10)], "L", 100)

    np.testing.assert_array_equal(curve.points, [[10, 10], [10, 10]])


def test_single_point_gets_synthetic_second_point():
    curve = generate([(10, 20)], "L", 100)

    assert curve.start == (10.0, 20.0)
    assert curve.end == pytest.approx((110.0, 20.0))


def test_no_control_points_is_rejected():
    with pytest.raises(ValueError):
        generate([], "L", 100)


def test_collinear_perfect_circle_matches_linear():
    points = [(0, 0), (50, 0), (100, 0)]

    perfect = generate(points, "P", 100)
    linear = generate(points, "L", 100)

    np.testing.assert_array_equal(perfect.points, linear.points)


def test_perfect_circle_needs_exactly_three_points():
    points = [(0, 0), (50, 50), (100, 0), (150, 50)]

    np.testing.assert_array_equal(generate(points, "P", 120).points, generate(points, "L", 120).points)


def test_perfect_circle_passes_through_middle_point():
    curve = generate([(0, 0), (50, 50), (100, 0)], "P", 500)
    radii = np.hypot(curve.points[:, 0] - 50, curve.points[:, 1])

    assert radii == pytest.approx(50, abs=0.05)
    assert (curve.points[:, 1] >= -1e-9).all()
    assert curve.end == (100.0, 0.0)


def test_perfect_circle_is_shortened_to_target_length():
    curve = create_curve("P", [(0, 0), (50, 50), (100, 0)], 100)

    assert abs(curve.sweep) == pytest.approx(2.0)
    assert math.copysign(1, curve.sweep) == -1
    assert curve.get_length() == pytest.approx(100, abs=resample_step(100))


def test_circumcenter_of_right_triangle():
    center = circumcenter((0, 0), (50, 50), (100, 0))

    assert tuple(center) == pytest.approx((50, 0))
    assert circumcenter((0, 0), (1, 1), (2, 2)) is None


@pytest.mark.parametrize("start, mid, end, expected", [
    (0, 90, 180, 180),
    (0, -90, 180, -180),
    (0, 90, 300, 300),
    (0, 200, 40, -320),
    (10, 5, 0, -10),
])
def test_arc_sweep_goes_through_middle(start, mid, end, expected):
    sweep = arc_sweep(math.radians(start), math.radians(mid), math.radians(end))

    assert math.degrees(sweep) == pytest.approx(expected)


def test_bezier_splits_on_duplicated_anchor():
    points = [(0, 0), (50, 100), (100, 0), (100, 0), (150, -100), (200, 0)]

    first, second = split_bezier_segments(points)

    np.testing.assert_array_equal(first, [[0, 0], [50, 100], [100, 0]])
    np.testing.assert_array_equal(second, [[100, 0], [150, -100], [200, 0]])

    first_samples = bezier_samples(first, 110)
    second_samples = bezier_samples(second, 110)
    assert tuple(first_samples[-1]) == (100.0, 0.0)
    assert tuple(second_samples[0]) == (100.0, 0.0)


def test_bezier_without_anchor_is_one_segment():
    segments = split_bezier_segments([(0, 0), (100, 200), (200, 0)])

    assert len(segments) == 1


def test_composite_bezier_has_no_repeated_joint():
    curve = Bezier([(0, 0), (50, 100), (100, 0), (100, 0), (150, -100), (200, 0)], 1000)

    spacing = np.hypot(*np.diff(curve.samples, axis=0).T)
    assert (spacing > 0).all()
    assert tuple(curve.samples[-1]) == (200.0, 0.0)


def test_catmull_rom_with_three_points_falls_back_to_linear():
    points = [(0, 0), (100, 50), (200, 0)]

    np.testing.assert_array_equal(generate(points, "C", 150).points, generate(points, "L", 150).points)


def test_catmull_rom_ends_on_last_control_point():
    curve = Catmull([(0, 0), (50, 50), (100, 0), (150, 50), (200, 0)], 1000)

    assert tuple(curve.samples[-1]) == (200.0, 0.0)


def test_unknown_curve_kind_defaults_to_linear():
    points = [(0, 0), (60, 80)]

    assert CurveKind.parse("X") is CurveKind.LINEAR
    assert CurveKind.parse("") is CurveKind.LINEAR
    assert CurveKind.parse("b") is CurveKind.BEZIER
    np.testing.assert_array_equal(generate(points, "X", 100).points, generate(points, "L", 100).points)


def test_resample_leaves_zero_length_path_alone():
    points = np.array([[5.0, 5.0], [5.0, 5.0], [5.0, 5.0]])

    np.testing.assert_array_equal(resample(points, 100), points)


def test_resample_snaps_end_onto_raw_path():
    raw = np.column_stack((np.linspace(0, 99.5, 7), np.zeros(7)))

    result = resample(raw, 100)

    assert len(result) <= output_point_count(100)
    assert tuple(result[-1]) == (99.5, 0.0)


def test_point_at_distance_walks_segments():
    points = [(0, 0), (100, 0), (100, 100)]

    assert point_at_distance(points, 50) == (50.0, 0.0)
    assert point_at_distance(points, 150) == (100.0, 50.0)
    assert point_at_distance(points, -5) == (0.0, 0.0)
    assert point_at_distance(points, 1000) == (100.0, 100.0)
    assert point_at_distance([], 10) is None


def test_generated_curve_is_read_only():
    curve = GeneratedCurve([(0, 0), (3, 4)], 5)

    assert curve.path_length == 5.0
    with pytest.raises(ValueError):
        curve.points[0, 0] = 1.0
