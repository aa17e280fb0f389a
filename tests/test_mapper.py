import math

import pytest

from gaze_heatmap.configs import StabilitySettings
from gaze_heatmap.models import RejectReason, StabilizedPoint
from gaze_heatmap.processing import StabilityMapper


@pytest.fixture
def mapper(viewport):
    return StabilityMapper(StabilitySettings(), viewport)


def test_maps_into_surface_local_coordinates(mapper, surface):
    result = mapper.map(300.0, 200.0, 0.9, 0.0, surface)
    assert result.accepted
    assert result.reason is None
    assert result.point == StabilizedPoint(200.0, 150.0)
    assert mapper.last_point == result.point


@pytest.mark.parametrize("x, y, expected", [
    (100.0, 50.0, StabilizedPoint(0.0, 0.0)),
    (500.0, 350.0, StabilizedPoint(400.0, 300.0)),
])
def test_surface_edges_are_inclusive(mapper, surface, x, y, expected):
    result = mapper.map(x, y, 0.9, 0.0, surface)
    assert result.accepted
    assert result.point == expected


@pytest.mark.parametrize("x, y, confidence, reason", [
    (300.0, 200.0, 0.5, RejectReason.LOW_CONFIDENCE),
    (300.0, 200.0, math.nan, RejectReason.LOW_CONFIDENCE),
    (math.nan, 200.0, 0.9, RejectReason.NON_FINITE),
    (300.0, math.inf, 0.9, RejectReason.NON_FINITE),
    (1000.0, 200.0, 0.9, RejectReason.OUTSIDE_VIEWPORT),
    (300.0, -101.0, 0.9, RejectReason.OUTSIDE_VIEWPORT),
    (850.0, 200.0, 0.9, RejectReason.OFF_SURFACE),
    (50.0, 200.0, 0.9, RejectReason.OFF_SURFACE),
])
def test_rejections(mapper, surface, x, y, confidence, reason):
    result = mapper.map(x, y, confidence, 0.0, surface)
    assert not result.accepted
    assert result.point is None
    assert result.reason is reason


def test_confidence_threshold_is_inclusive(mapper, surface):
    assert mapper.map(300.0, 200.0, 0.55, 0.0, surface).accepted


def test_gross_rejection_keeps_previous_point(mapper, surface):
    first = mapper.map(300.0, 200.0, 0.9, 0.0, surface)
    mapper.map(300.0, 200.0, 0.1, 0.016, surface)
    mapper.map(math.nan, math.nan, 0.9, 0.032, surface)
    assert mapper.last_point == first.point


def test_off_surface_clears_previous_point(mapper, surface):
    mapper.map(110.0, 60.0, 0.9, 0.0, surface)

    off = mapper.map(50.0, 200.0, 0.9, 0.016, surface)
    assert off.reason is RejectReason.OFF_SURFACE
    assert mapper.last_point is None

    # No clamping against the point from before the look-away.
    back = mapper.map(490.0, 340.0, 0.9, 0.032, surface)
    assert back.point == StabilizedPoint(390.0, 290.0)


def test_small_motion_snaps_to_previous_point(mapper, surface):
    first = mapper.map(300.0, 200.0, 0.9, 0.0, surface)
    second = mapper.map(300.5, 200.5, 0.9, 0.016, surface)
    assert second.accepted
    assert second.point == first.point


def test_motion_at_deadband_is_not_snapped(mapper, surface):
    mapper.map(300.0, 200.0, 0.9, 0.0, surface)
    second = mapper.map(301.5, 200.0, 0.9, 0.016, surface)
    assert second.point == StabilizedPoint(201.5, 150.0)


def test_large_jump_is_clamped_to_max_step(mapper, surface):
    mapper.map(110.0, 60.0, 0.9, 0.0, surface)
    result = mapper.map(490.0, 60.0, 0.9, 0.1, surface)

    assert mapper.max_step(0.1) == pytest.approx(175.0)
    assert result.accepted
    assert result.point.x == pytest.approx(10.0 + 175.0)
    assert result.point.y == pytest.approx(10.0)


def test_clamp_preserves_direction(mapper, surface):
    mapper.map(110.0, 60.0, 0.9, 0.0, surface)
    result = mapper.map(410.0, 340.0, 0.9, 0.016, surface)

    dx = result.point.x - 10.0
    dy = result.point.y - 10.0
    assert math.hypot(dx, dy) == pytest.approx(120.0 + 550.0 * 0.016)
    assert dx / dy == pytest.approx(300.0 / 280.0)


def test_elapsed_time_is_floored(mapper, surface):
    mapper.map(110.0, 60.0, 0.9, 0.0, surface)
    result = mapper.map(490.0, 60.0, 0.9, 0.001, surface)
    assert result.point.x == pytest.approx(10.0 + 120.0 + 550.0 * 0.008)


def test_missing_timestamp_uses_default_interval(mapper, surface):
    mapper.map(110.0, 60.0, 0.9, None, surface)
    result = mapper.map(490.0, 60.0, 0.9, None, surface)
    assert result.point.x == pytest.approx(10.0 + 120.0 + 550.0 * 0.016)


def test_reset_forgets_continuity(mapper, surface):
    mapper.map(110.0, 60.0, 0.9, 0.0, surface)
    mapper.reset()
    assert mapper.last_point is None

    result = mapper.map(490.0, 340.0, 0.9, 0.001, surface)
    assert result.point == StabilizedPoint(390.0, 290.0)
