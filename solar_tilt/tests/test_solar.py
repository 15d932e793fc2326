from __future__ import annotations

import math

import pytest

from solar_tilt.simulation.panels import PanelGroup
from solar_tilt.simulation.solar import clearsky_weather, hourly_energy, sample_times, surface_orientation


def _group(tilt_deg: float, azimuth_deg: float = 0.0) -> PanelGroup:
    return PanelGroup(
        id="g", tilt_angle=math.radians(tilt_deg), relative_azimuth=math.radians(azimuth_deg)
    )


def test_positive_tilt_faces_the_equator() -> None:
    assert surface_orientation(_group(20.0), 42.0) == pytest.approx((20.0, 180.0))
    assert surface_orientation(_group(20.0), -30.0) == pytest.approx((20.0, 0.0))


def test_negative_tilt_faces_the_pole() -> None:
    assert surface_orientation(_group(-35.0), 42.0) == pytest.approx((35.0, 0.0))


def test_relative_azimuth_rotates_the_panel() -> None:
    tilt, azimuth = surface_orientation(_group(10.0, azimuth_deg=-30.0), 42.0)
    assert tilt == pytest.approx(10.0)
    assert azimuth == pytest.approx(150.0)


def test_sample_times_are_interval_midpoints() -> None:
    times = sample_times(day_of_year=2, hour=13, times_per_hour=4)
    assert len(times) == 4
    assert str(times[0].tz) == "UTC"
    assert (times[0].dayofyear, times[0].hour, times[0].minute, times[0].second) == (2, 13, 7, 30)
    assert times[-1].minute == 52


def test_no_energy_at_night() -> None:
    assert hourly_energy([_group(20.0)], 42.0, 172, 0, 4) == 0.0


def test_noon_energy_scales_with_area_and_efficiency() -> None:
    small = PanelGroup(id="a", tilt_angle=0.3, area=1.0, efficiency=0.2)
    large = PanelGroup(id="b", tilt_angle=0.3, area=3.0, efficiency=0.2)
    one = hourly_energy([small], 42.0, 172, 12, 4)
    assert one > 0.0
    assert hourly_energy([large], 42.0, 172, 12, 4) == pytest.approx(3.0 * one)
    assert hourly_energy([small, large], 42.0, 172, 12, 4) == pytest.approx(4.0 * one)


def test_clearsky_weather_is_cached_per_hour() -> None:
    first = clearsky_weather(42.0, 172, 12, 4)
    assert clearsky_weather(42.0, 172, 12, 4) is first
    assert {"apparent_zenith", "azimuth", "ghi", "dni", "dhi"} <= set(first.columns)
