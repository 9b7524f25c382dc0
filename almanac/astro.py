"""Query functions over the sun and moon models for callers that want one-shot answers."""

from __future__ import annotations

import json
import logging
from datetime import date, datetime
from enum import Enum
from typing import Dict, Optional, Type, TypeVar, Union

from .errors import UnsupportedFeatureError
from .location import GeoLocation
from .lunar_time import LunarTime, Moonlight
from .moon import MoonPosition
from .phases import MoonPhase
from .seasons import AstronomicalSeason
from .solar_time import CalculatorSpec, SolarTime, Twilight
from .solar_time import equation_of_time as _equation_of_time
from .sun import SunPosition
from .timescale import TimeValue
from .zodiac import Body, Direction, Zodiac, ZodiacEvent, ZodiacKind

__all__ = [
    "TWILIGHT_SELECTORS",
    "compute_sun_times",
    "equation_of_time",
    "moon_phase_moment",
    "moon_position",
    "moonlight",
    "season_moment",
    "sun_position",
    "sunrise",
    "sunset",
    "zodiac_crossing",
]

LOGGER = logging.getLogger(__name__)

# "official" is the standard horizon with refraction and solar radius
TWILIGHT_SELECTORS: Dict[str, Optional[Twilight]] = {
    "official": None,
    "blue_hour": Twilight.BLUE_HOUR,
    "civil": Twilight.CIVIL,
    "nautical": Twilight.NAUTICAL,
    "astronomical": Twilight.ASTRONOMICAL,
}

E = TypeVar("E", bound=Enum)


def _member(enum_type: Type[E], value: Union[E, str]) -> E:
    if isinstance(value, enum_type):
        return value
    try:
        return enum_type[str(value).strip().upper()]
    except KeyError as exc:
        raise ValueError(f"Unknown {enum_type.__name__}: {value}") from exc


def _twilight(selector: Union[Twilight, str, None]) -> Optional[Twilight]:
    if selector is None or isinstance(selector, Twilight):
        return selector
    try:
        return TWILIGHT_SELECTORS[selector]
    except KeyError as exc:
        raise ValueError(f"Unsupported twilight selector: {selector}") from exc


def sunrise(
    location: GeoLocation,
    day: date,
    calculator: CalculatorSpec = None,
    twilight: Union[Twilight, str, None] = None,
) -> Optional[TimeValue]:
    """Sunrise (or start of twilight) on *day*, ``None`` if the sun does not rise."""

    return SolarTime(location, calculator).sunrise(day, _twilight(twilight))


def sunset(
    location: GeoLocation,
    day: date,
    calculator: CalculatorSpec = None,
    twilight: Union[Twilight, str, None] = None,
) -> Optional[TimeValue]:
    """Sunset (or end of twilight) on *day*, ``None`` if the sun does not set."""

    return SolarTime(location, calculator).sunset(day, _twilight(twilight))


def equation_of_time(moment: TimeValue, calculator: CalculatorSpec = None) -> float:
    """Apparent minus mean solar time in seconds."""

    return _equation_of_time(moment, calculator)


def sun_position(moment: TimeValue, location: GeoLocation) -> SunPosition:
    return SunPosition.at(moment, location)


def moon_position(moment: TimeValue, location: GeoLocation) -> MoonPosition:
    return MoonPosition.at(moment, location)


def season_moment(season: Union[AstronomicalSeason, str], year: int) -> TimeValue:
    return _member(AstronomicalSeason, season).in_year(year)


def moon_phase_moment(phase: Union[MoonPhase, str], lunation: int) -> TimeValue:
    return _member(MoonPhase, phase).at_lunation(lunation)


def zodiac_crossing(
    body: Union[Body, str],
    zodiac: Union[Zodiac, str],
    direction: Union[Direction, str],
    start: TimeValue,
    kind: Union[ZodiacKind, str] = ZodiacKind.CONSTELLATION,
) -> TimeValue:
    """First entry into or exit from a zodiac by the sun or moon at or after *start*.

    Raises
    ------
    ValueError
        For unknown names or when asking for the sign of Ophiuchus.
    """

    event = ZodiacEvent(_member(Body, body), _member(Zodiac, zodiac), _member(ZodiacKind, kind))
    return event.at_or_after(start, _member(Direction, direction))


def moonlight(location: GeoLocation, day: date) -> Moonlight:
    return LunarTime(location).on(day)


def _as_datetime(moment: Optional[TimeValue]) -> Optional[datetime]:
    return None if moment is None else moment.to_datetime()


def compute_sun_times(
    date_utc: date,
    lat: float,
    lon: float,
    elev_m: float,
    twilight: str = "official",
    calculator: CalculatorSpec = None,
) -> Dict[str, object]:
    """Compute sunrise, sunset and solar noon for the given date and location.

    Parameters
    ----------
    date_utc:
        Calendar date of the observer.
    lat, lon:
        Geographic coordinates in degrees (east-positive longitude).
    elev_m:
        Observer elevation above mean sea level in meters.
    twilight:
        Twilight selector, one of :data:`TWILIGHT_SELECTORS`.
    calculator:
        Calculator instance or registered name.

    Returns
    -------
    dict
        ``sunrise``, ``sunset`` and ``solar_noon`` as UTC datetimes (or
        ``None``), ``status`` and the name of the ``calculator``.
    """

    location = GeoLocation(lat, lon, elev_m)
    selector = _twilight(twilight)
    solar = SolarTime(location, calculator)
    rise = solar.sunrise(date_utc, selector)
    set_ = solar.sunset(date_utc, selector)

    if rise is not None or set_ is not None:
        status = "ok"
    else:
        try:
            elevation = solar.highest_elevation(date_utc)
        except UnsupportedFeatureError:
            LOGGER.warning(json.dumps({"event": "status_indeterminate", "calculator": solar.calculator.name}))
            status = "indeterminate"
        else:
            status = "polar_day" if elevation > 90 - solar.zenith_angle(selector) else "polar_night"

    return {
        "sunrise": _as_datetime(rise),
        "sunset": _as_datetime(set_),
        "solar_noon": solar.transit_at_noon(date_utc).to_datetime(),
        "status": status,
        "calculator": solar.calculator.name,
    }
