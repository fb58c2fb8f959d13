import pytest

from emulator.kinematics import CurveCache, SliderKinematics, slide_duration, slide_progress
from emulator.objects import HitCircle, Slider
from emulator.timing import TimingParser, TimingPoint


@pytest.fixture
def slider():
    return Slider(0, 0, 1000, "L", [(140, 0)], 140, slide_count=2)


@pytest.fixture
def kinematics():
    return SliderKinematics(TimingParser([TimingPoint(0, 500)]), 1.4)


def test_slide_duration_formula(slider):
    assert slide_duration(slider, 500, 1.4) == pytest.approx(1000)
    assert slide_duration(slider, 250, 1.4) == pytest.approx(500)
    assert slide_duration(slider, 500, 2.8) == pytest.approx(500)


def test_slide_progress_ping_pongs():
    assert slide_progress(250, 500) == (0, 0.5)
    assert slide_progress(750, 500) == (1, 0.5)
    assert slide_progress(500, 500) == (1, 1.0)
    assert slide_progress(1000, 500) == (2, 0.0)


@pytest.mark.parametrize("time, expected", [
    (1000, (0, 0)),
    (1250, (70, 0)),
    (1500, (140, 0)),
    (1750, (70, 0)),
    (2000, (0, 0)),
])
def test_ball_goes_back_and_forth(kinematics, slider, time, expected):
    assert kinematics.ball_position(slider, time) == pytest.approx(expected, abs=1e-6)


@pytest.mark.parametrize("time", [999, 2001])
def test_ball_is_absent_outside_the_slide(kinematics, slider, time):
    assert kinematics.ball_position(slider, time) is None


def test_repeat_index(kinematics, slider):
    assert kinematics.repeat_index(slider, 1100) == 0
    assert kinematics.repeat_index(slider, 1600) == 1
    assert kinematics.repeat_index(slider, 500) is None


def test_beat_length_is_sampled_at_slider_start(slider):
    timing = TimingParser([TimingPoint(0, 500), TimingPoint(1200, 250)])
    kinematics = SliderKinematics(timing, 1.4)

    assert kinematics.slide_duration(slider) == pytest.approx(1000)
    assert kinematics.end_time(slider) == pytest.approx(2000)
    assert kinematics.ball_position(slider, 1250) == pytest.approx((70, 0), abs=1e-6)


def test_curves_are_generated_once_per_slider(kinematics, slider):
    other = Slider(0, 0, 1000, "L", [(140, 0)], 140, slide_count=2)

    first = kinematics.curve_for(slider)
    assert kinematics.curve_for(slider) is first
    assert kinematics.curve_for(other) is not first
    assert len(kinematics.curve_cache) == 2
    assert slider in kinematics.curve_cache


def test_shared_cache(slider):
    cache = CurveCache()
    timing = TimingParser([])
    first = SliderKinematics(timing, 1.4, curve_cache=cache)
    second = SliderKinematics(timing, 1.4, curve_cache=cache)

    assert first.curve_for(slider) is second.curve_for(slider)


def test_clear_drops_cached_state(kinematics, slider):
    kinematics.ball_for(slider)
    kinematics.clear()

    assert len(kinematics.curve_cache) == 0


def test_non_sliders_are_rejected(kinematics):
    with pytest.raises(TypeError):
        kinematics.ball_position(HitCircle(0, 0, 1000), 1000)


def test_end_position_depends_on_slide_count(kinematics, slider):
    single = Slider(0, 0, 1000, "L", [(140, 0)], 140)

    assert kinematics.end_position(slider) == pytest.approx((0, 0))
    assert kinematics.end_position(single) == pytest.approx((140, 0), abs=1e-6)


def test_zero_length_slider_keeps_ball_on_start(kinematics):
    slider = Slider(30, 40, 1000, "L", [(30, 40)], 0)

    assert kinematics.ball_position(slider, 1000) == (30.0, 40.0)
    assert kinematics.ball_position(slider, 1001) is None


def test_ball_position_at_progress(kinematics, slider):
    ball = kinematics.ball_for(slider)

    assert ball.get_position_at_progress(0.25) == pytest.approx((35, 0), abs=1e-6)
    assert ball.get_position_at_progress(2) == pytest.approx((140, 0), abs=1e-6)


def test_sample_chart_sliders(beatmap):
    kinematics = SliderKinematics(beatmap.timing_parser, beatmap.difficulty.slider_multiplier)
    linear, bezier = beatmap.sliders

    assert kinematics.end_time(linear) == pytest.approx(2000)
    assert kinematics.end_time(bezier) == pytest.approx(3000 + 2 * 200 / 140 * 500)
    assert kinematics.ball_position(linear, 1750) == pytest.approx((170, 100), abs=1e-6)
