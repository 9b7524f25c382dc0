"""Validated geographic observer location."""

from __future__ import annotations

import math
from dataclasses import dataclass
from typing import Optional
from zoneinfo import ZoneInfo, ZoneInfoNotFoundError

from .errors import OutOfRangeError

__all__ = ["GeoLocation", "MAX_ALTITUDE"]

MAX_ALTITUDE = 11000.0


def check_coordinates(latitude: float, longitude: float, altitude: float) -> None:
    """Validate a latitude/longitude/altitude triple.

    Raises
    ------
    OutOfRangeError
        Naming the first offending field.
    """

    if not math.isfinite(latitude):
        raise OutOfRangeError(f"Latitude must be a finite value: {latitude}")
    if not math.isfinite(longitude):
        raise OutOfRangeError(f"Longitude must be a finite value: {longitude}")
    if not math.isfinite(altitude):
        raise OutOfRangeError(f"Altitude must be a finite value: {altitude}")
    if latitude > 90.0 or latitude < -90.0:
        raise OutOfRangeError(f"Degrees out of range -90.0 <= latitude <= +90.0: {latitude}")
    if longitude >= 180.0 or longitude < -180.0:
        raise OutOfRangeError(f"Degrees out of range -180.0 <= longitude < +180.0: {longitude}")
    if altitude < 0.0 or altitude >= MAX_ALTITUDE:
        raise OutOfRangeError(f"Meters out of range 0 <= altitude < +11,000: {altitude}")


def load_zone(zone: str) -> ZoneInfo:
    try:
        return ZoneInfo(zone)
    except (ZoneInfoNotFoundError, ValueError) as exc:
        raise ValueError(f"Unknown time zone: {zone}") from exc


@dataclass(frozen=True)
class GeoLocation:
    """Observer position on the earth (degrees, east-positive; meters).

    ``zone`` is an optional IANA zone name used to interpret calendar dates
    of the observer.
    """

    latitude: float
    longitude: float
    altitude: float = 0.0
    zone: Optional[str] = None

    def __post_init__(self) -> None:
        try:
            latitude = float(self.latitude)
            longitude = float(self.longitude)
            altitude = float(self.altitude)
        except (TypeError, ValueError) as exc:
            raise OutOfRangeError(f"Coordinates must be numbers: {exc}") from exc
        check_coordinates(latitude, longitude, altitude)
        if self.zone is not None:
            load_zone(self.zone)
        object.__setattr__(self, "latitude", latitude)
        object.__setattr__(self, "longitude", longitude)
        object.__setattr__(self, "altitude", altitude)

    @property
    def observer_zone(self) -> Optional[ZoneInfo]:
        return None if self.zone is None else load_zone(self.zone)
