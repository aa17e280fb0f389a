import math

import pytest

from gaze_heatmap.configs import FilterSettings
from gaze_heatmap.processing import AxisFilters, LowPassFilter, OneEuroFilter, alpha_for_cutoff


def test_alpha_for_cutoff_matches_single_pole_formula():
    dt = 1 / 60
    expected = 1 / (1 + (1 / (2 * math.pi * 1.0)) / dt)
    assert alpha_for_cutoff(1.0, dt) == pytest.approx(expected)


def test_low_pass_first_value_passes_through():
    lp = LowPassFilter(alpha=0.5)
    assert lp.filter(4.0) == 4.0
    assert lp.filter(8.0) == 6.0
    lp.reset()
    assert not lp.has_value


def test_first_call_returns_raw_value():
    f = OneEuroFilter()
    assert f.filter(12.5, 0.0) == 12.5
    assert f.state.has_value
    assert f.state.value_estimate == 12.5


def test_first_call_without_timestamp_returns_raw_value():
    f = OneEuroFilter()
    assert f.filter(-3.0) == -3.0


def test_constant_input_converges_without_overshoot():
    f = OneEuroFilter(min_cutoff=1.1, beta=0.01)
    previous = f.filter(0.0, 0.0)
    for i in range(1, 300):
        out = f.filter(10.0, i / 60)
        assert previous <= out <= 10.0
        previous = out
    assert previous == pytest.approx(10.0, abs=1e-6)


def test_identical_values_stay_put():
    f = OneEuroFilter()
    for i in range(50):
        out = f.filter(250.0, i * 0.03)
        assert out == pytest.approx(250.0, abs=1e-9)


def test_reset_makes_next_call_a_first_call():
    f = OneEuroFilter()
    for i in range(10):
        f.filter(float(i * 20), i / 30)

    f.reset()
    assert not f.state.has_value
    assert f.state.last_timestamp_s is None
    assert f.filter(42.0, 100.0) == 42.0


def test_frequency_follows_timestamps():
    f = OneEuroFilter(frequency_hz=60.0)
    f.filter(0.0, 0.0)
    f.filter(1.0, 0.02)
    assert f.frequency == pytest.approx(50.0)


def test_missing_timestamp_keeps_previous_frequency():
    f = OneEuroFilter()
    f.filter(0.0, 0.0)
    f.filter(1.0, 0.02)

    out = f.filter(2.0, None)
    assert f.frequency == pytest.approx(50.0)
    assert math.isfinite(out)

    out = f.filter(3.0, math.nan)
    assert f.frequency == pytest.approx(50.0)
    assert math.isfinite(out)


def test_duplicate_and_out_of_order_timestamps_are_floored():
    f = OneEuroFilter(min_dt_s=1e-3)
    f.filter(0.0, 1.0)

    out = f.filter(5.0, 1.0)
    assert f.frequency == pytest.approx(1000.0)
    assert 0.0 <= out <= 5.0

    out = f.filter(6.0, 0.5)
    assert f.frequency == pytest.approx(1000.0)
    assert math.isfinite(out)


def test_speed_raises_responsiveness():
    slow = OneEuroFilter(min_cutoff=1.1, beta=0.0)
    adaptive = OneEuroFilter(min_cutoff=1.1, beta=0.05)
    for f in (slow, adaptive):
        f.filter(0.0, 0.0)

    assert adaptive.filter(500.0, 1 / 60) > slow.filter(500.0, 1 / 60)


def test_reset_restores_initial_frequency():
    f = OneEuroFilter(frequency_hz=30.0)
    f.filter(0.0, 0.0)
    f.filter(0.0, 0.001)
    f.reset()
    assert f.frequency == 30.0


def test_invalid_parameters_are_rejected():
    with pytest.raises(ValueError):
        OneEuroFilter(min_cutoff=0.0)
    with pytest.raises(ValueError):
        OneEuroFilter(frequency_hz=0.0)


def test_axis_filters_do_not_share_state():
    filters = AxisFilters.from_settings(FilterSettings())
    assert filters.filter(10.0, 500.0, 0.0) == (10.0, 500.0)

    x, y = filters.filter(10.0, 500.0, 0.02)
    assert x == pytest.approx(10.0)
    assert y == pytest.approx(500.0)

    filters.x.reset()
    assert not filters.x.state.has_value
    assert filters.y.state.has_value


def test_axis_filters_require_distinct_instances():
    f = OneEuroFilter()
    with pytest.raises(ValueError):
        AxisFilters(f, f)
