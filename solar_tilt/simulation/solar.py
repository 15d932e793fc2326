"""
Produccion fotovoltaica de cielo despejado con pvlib.

Posicion solar y cielo despejado (Ineichen) de ``pvlib.location.Location``;
irradiancia en el plano del panel con ``pvlib.irradiance.get_total_irradiance``.
El sitio se ubica en longitud 0 con hora UTC, de modo que la hora del dia es
aproximadamente la hora solar.
"""

from __future__ import annotations

import math
from functools import lru_cache
from typing import Sequence, Tuple

import pandas as pd
from pvlib.irradiance import get_total_irradiance
from pvlib.location import Location

from .panels import PanelGroup

REFERENCE_YEAR = 2023


@lru_cache(maxsize=8)
def site(latitude_deg: float) -> Location:
    return Location(latitude_deg, 0.0, tz="UTC", name=f"lat {latitude_deg:g}")


def sample_times(day_of_year: int, hour: int, times_per_hour: int) -> pd.DatetimeIndex:
    """Puntos medios de los ``times_per_hour`` subintervalos de una hora."""
    start = pd.Timestamp(year=REFERENCE_YEAR, month=1, day=1, tz="UTC") + pd.Timedelta(
        days=day_of_year - 1, hours=hour
    )
    step = pd.Timedelta(hours=1.0 / times_per_hour)
    return pd.DatetimeIndex([start + step * (j + 0.5) for j in range(times_per_hour)])


@lru_cache(maxsize=2048)
def clearsky_weather(
    latitude_deg: float, day_of_year: int, hour: int, times_per_hour: int
) -> pd.DataFrame:
    """Posicion solar e irradiancias de cielo despejado de una hora (no modificar)."""
    location = site(latitude_deg)
    times = sample_times(day_of_year, hour, times_per_hour)
    solpos = location.get_solarposition(times)
    clearsky = location.get_clearsky(times, model="ineichen", solar_position=solpos)
    return pd.DataFrame(
        {
            "apparent_zenith": solpos["apparent_zenith"],
            "azimuth": solpos["azimuth"],
            "ghi": clearsky["ghi"],
            "dni": clearsky["dni"],
            "dhi": clearsky["dhi"],
        },
        index=times,
    )


def surface_orientation(group: PanelGroup, latitude_deg: float) -> Tuple[float, float]:
    """
    Inclinacion y azimut del panel en grados (convencion pvlib: azimut desde
    el norte en sentido horario). Inclinacion positiva mira al ecuador.
    """
    equator = 180.0 if latitude_deg >= 0.0 else 0.0
    tilt = math.degrees(group.tilt_angle)
    azimuth = equator if tilt >= 0.0 else equator + 180.0
    azimuth += math.degrees(group.relative_azimuth)
    return abs(tilt), azimuth % 360.0


def plane_of_array(group: PanelGroup, latitude_deg: float, weather: pd.DataFrame) -> pd.Series:
    """Irradiancia global en el plano del panel (W/m2)."""
    surface_tilt, surface_azimuth = surface_orientation(group, latitude_deg)
    poa = get_total_irradiance(
        surface_tilt=surface_tilt,
        surface_azimuth=surface_azimuth,
        solar_zenith=weather["apparent_zenith"],
        solar_azimuth=weather["azimuth"],
        dni=weather["dni"],
        ghi=weather["ghi"],
        dhi=weather["dhi"],
        model="isotropic",
    )
    return poa["poa_global"].fillna(0.0).clip(lower=0.0)


def field_power(groups: Sequence[PanelGroup], latitude_deg: float, weather: pd.DataFrame) -> pd.Series:
    """Potencia (W) de todos los grupos en cada instante de ``weather``."""
    total = pd.Series(0.0, index=weather.index)
    for group in groups:
        total = total + plane_of_array(group, latitude_deg, weather) * group.area * group.efficiency
    return total


def hourly_energy(
    groups: Sequence[PanelGroup],
    latitude_deg: float,
    day_of_year: int,
    hour: int,
    times_per_hour: int,
) -> float:
    """Energia (kWh) producida durante una hora, integrada en ``times_per_hour`` pasos."""
    weather = clearsky_weather(float(latitude_deg), int(day_of_year), int(hour), int(times_per_hour))
    power = field_power(groups, latitude_deg, weather)
    return float(power.sum()) / times_per_hour / 1000.0


if __name__ == "__main__":
    row = PanelGroup(id="demo", tilt_angle=math.radians(20.0))
    noon = clearsky_weather(42.0, 172, 12, 4)
    print("Elevacion al mediodia (grados):", round(90.0 - float(noon["apparent_zenith"].min()), 2))
    print("Energia 12h-13h (kWh):", round(hourly_energy([row], 42.0, 172, 12, 4), 4))
