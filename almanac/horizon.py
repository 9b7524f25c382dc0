"""Equatorial to horizontal coordinate transform with refraction and dip."""

from __future__ import annotations

import math
from dataclasses import dataclass
from typing import Optional, Tuple

from .location import GeoLocation
from .timescale import TimeValue

__all__ = [
    "BENNETT_TERM",
    "EquatorialCoordinates",
    "gmst",
    "horizontal_parallax",
    "mean_radius_dip",
    "refraction",
    "refraction_factor",
    "refraction_of_std_atmosphere",
    "spheroid_dip",
    "to_horizontal",
]

MEAN_EARTH_RADIUS_M = 6372000.0
EQUATORIAL_RADIUS_M = 6378137.0  # WGS84
POLAR_RADIUS_M = 6356752.3
EQUATORIAL_RADIUS_KM = 6378.14  # used for the lunar horizontal parallax

# Bennett refraction at the geometric horizon in arcminutes.
BENNETT_TERM = 1.0 / math.tan(math.radians(7.31 / 4.4))

# Below this apparent elevation (plus dip) no refraction is applied.
NEAR_HORIZON = -0.5


@dataclass(frozen=True)
class EquatorialCoordinates:
    """Right ascension and declination in degrees."""

    right_ascension: float
    declination: float


def gmst(mjd: float) -> float:
    """Mean sidereal time of Greenwich in radians for a modified Julian day (UT)."""

    mjd0 = math.floor(mjd)
    ut = 86400.0 * (mjd - mjd0)
    jct0 = (mjd0 - 51544.5) / 36525
    jct = (mjd - 51544.5) / 36525
    seconds = 24110.54841 + 8640184.812866 * jct0 + 1.0027379093 * ut + (0.093104 - 0.0000062 * jct) * jct * jct
    days = seconds / 86400.0
    return (days - math.floor(days)) * 2 * math.pi


def refraction(elevation: float) -> float:
    """Atmospheric refraction in arcminutes for an apparent elevation in degrees."""

    return 1.0 / math.tan(math.radians(elevation + 7.31 / (elevation + 4.4)))


def refraction_factor(altitude: float) -> float:
    """Pressure/temperature scaling of refraction in a standard atmosphere."""

    temperature = 1 - (0.0065 * altitude) / 288.15
    pressure = temperature ** 5.255
    return pressure / temperature


def refraction_of_std_atmosphere(altitude: float) -> float:
    """Horizon refraction in arcminutes at the observer altitude."""

    return BENNETT_TERM * refraction_factor(altitude)


def spheroid_dip(latitude: float, altitude: float) -> float:
    """Geodetic dip of the horizon in degrees using the WGS84 prime-vertical radius."""

    if altitude == 0:
        return 0.0
    lat = math.radians(latitude)
    r1 = EQUATORIAL_RADIUS_M * math.cos(lat)
    r2 = POLAR_RADIUS_M * math.sin(lat)
    radius = EQUATORIAL_RADIUS_M * EQUATORIAL_RADIUS_M / math.sqrt(r1 * r1 + r2 * r2)
    return math.degrees(math.acos(radius / (radius + altitude)))


def mean_radius_dip(altitude: float) -> float:
    """Approximate dip in degrees on a spherical earth including a refraction allowance."""

    if altitude == 0:
        return 0.0
    radius = MEAN_EARTH_RADIUS_M
    return math.degrees(math.acos(radius / (radius + altitude))) + math.sqrt(altitude) * (19.0 / 3600)


def horizontal_parallax(distance_km: float) -> float:
    """Horizontal parallax in degrees for a geocentric distance in km."""

    return math.degrees(math.asin(EQUATORIAL_RADIUS_KM / distance_km))


def to_horizontal(
    coordinates: EquatorialCoordinates,
    moment: TimeValue,
    location: GeoLocation,
    nutation: float,
    obliquity: float,
    distance_km: Optional[float] = None,
) -> Tuple[float, float]:
    """Transform apparent equatorial coordinates into azimuth and elevation.

    Parameters
    ----------
    coordinates:
        Apparent right ascension and declination of the body.
    moment:
        Instant of observation; its mean solar equivalent drives sidereal time.
    location:
        Observer position.
    nutation, obliquity:
        Nutation in longitude and true obliquity in degrees, needed for the
        apparent sidereal time.
    distance_km:
        Geocentric distance; when given the horizontal parallax is applied.

    Returns
    -------
    tuple[float, float]
        Azimuth (compass bearing, degrees from north) and apparent elevation.
    """

    ra = math.radians(coordinates.right_ascension)
    decl = math.radians(coordinates.declination)
    lat = math.radians(location.latitude)
    sin_lat = math.sin(lat)
    cos_lat = math.cos(lat)

    mjd = moment.to_mean_solar().mjd
    equation_of_equinoxes = nutation * math.cos(math.radians(obliquity))
    tau = gmst(mjd) + math.radians(equation_of_equinoxes) + math.radians(location.longitude) - ra

    sin_elevation = sin_lat * math.sin(decl) + cos_lat * math.cos(decl) * math.cos(tau)
    elevation = math.degrees(math.asin(max(-1.0, min(1.0, sin_elevation))))

    dip = spheroid_dip(location.latitude, location.altitude)
    if elevation >= NEAR_HORIZON - dip:
        correction = refraction_factor(location.altitude) * refraction(elevation) / 60
        if distance_km is not None:
            correction -= horizontal_parallax(distance_km)
        elevation += correction

    azimuth = math.degrees(math.atan2(math.sin(tau), math.cos(tau) * sin_lat - math.tan(decl) * cos_lat)) + 180
    return azimuth, elevation
