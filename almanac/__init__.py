"""Sun and moon ephemeris and event engine."""

from .astro import (
    compute_sun_times,
    equation_of_time,
    moon_phase_moment,
    moon_position,
    moonlight,
    season_moment,
    sun_position,
    sunrise,
    sunset,
    zodiac_crossing,
)
from .calculators import Calculator, CalculatorRegistry, default_registry
from .errors import OutOfRangeError, UnsupportedFeatureError
from .location import GeoLocation
from .lunar_time import LunarTime, Moonlight
from .phases import MoonPhase, illumination
from .seasons import AstronomicalSeason, SolarTerm
from .solar_time import SolarTime, Sunshine, Twilight
from .timescale import TimeScale, TimeValue
from .zodiac import Body, Direction, Zodiac, ZodiacEvent, ZodiacKind

__all__ = [
    "AstronomicalSeason",
    "Body",
    "Calculator",
    "CalculatorRegistry",
    "Direction",
    "GeoLocation",
    "LunarTime",
    "MoonPhase",
    "Moonlight",
    "OutOfRangeError",
    "SolarTerm",
    "SolarTime",
    "Sunshine",
    "TimeScale",
    "TimeValue",
    "Twilight",
    "UnsupportedFeatureError",
    "Zodiac",
    "ZodiacEvent",
    "ZodiacKind",
    "compute_sun_times",
    "default_registry",
    "equation_of_time",
    "illumination",
    "moon_phase_moment",
    "moon_position",
    "moonlight",
    "season_moment",
    "sun_position",
    "sunrise",
    "sunset",
    "zodiac_crossing",
]
