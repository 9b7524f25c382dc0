"""Pydantic models for API requests and responses."""

from __future__ import annotations

from datetime import date, datetime
from enum import Enum
from typing import Any, Dict, List, Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator, model_validator

from almanac.location import GeoLocation, load_zone
from almanac.timescale import TimeValue


class Twilight(str, Enum):
    """Enumeration of supported twilight definitions."""

    official = "official"
    blue_hour = "blue_hour"
    civil = "civil"
    nautical = "nautical"
    astronomical = "astronomical"


class CalculatorName(str, Enum):
    SIMPLE = "SIMPLE"
    NOAA = "NOAA"
    CC = "CC"
    MEEUS = "MEEUS"


class LocationParams(BaseModel):
    """Observer coordinates shared by the location based endpoints."""

    model_config = ConfigDict(populate_by_name=True)

    lat: float = Field(..., ge=-90.0, le=90.0, description="Latitude in degrees")
    lon: float = Field(..., ge=-180.0, lt=180.0, description="Longitude in degrees")
    elev_m: float = Field(0.0, ge=0.0, lt=11000.0, description="Observer elevation in meters")
    tz: Optional[str] = Field(None, description="IANA time zone of the observer")

    @field_validator("tz")
    def validate_tz(cls, value: Optional[str]) -> Optional[str]:
        if value is None:
            return value
        load_zone(value)
        return value

    @model_validator(mode="after")
    def validate_location(self) -> "LocationParams":
        # the engine checks are authoritative
        self.to_location()
        return self

    def to_location(self) -> GeoLocation:
        return GeoLocation(self.lat, self.lon, self.elev_m, self.tz)


class SunQueryParams(LocationParams):
    """Validated query parameters for the ``/sun`` endpoint."""

    date_utc: date = Field(..., alias="date", description="Calendar date (YYYY-MM-DD)")
    offset_hours: Optional[float] = Field(
        None,
        description="Optional fixed offset in hours applied to derive local times",
    )
    twilight: Twilight = Field(Twilight.official, description="Twilight definition")
    calculator: Optional[CalculatorName] = Field(None, description="Sunrise/sunset algorithm")

    @field_validator("offset_hours")
    def validate_offset_hours(cls, value: Optional[float]) -> Optional[float]:
        if value is None:
            return value
        if not -24.0 < value < 24.0:
            raise ValueError("offset_hours must be within ±24 hours")
        return value


class MoonQueryParams(LocationParams):
    """Query parameters for ``/moon``; ``at`` selects the instant of the position."""

    date_local: date = Field(..., alias="date", description="Local calendar date (YYYY-MM-DD)")
    at: Optional[datetime] = Field(None, description="Instant for the lunar position (ISO-8601)")

    @field_validator("at")
    def validate_at(cls, value: Optional[datetime]) -> Optional[datetime]:
        if value is None:
            return value
        if value.tzinfo is None:
            raise ValueError("at must carry a UTC offset")
        TimeValue.from_datetime(value)
        return value


class SunResponse(BaseModel):
    """Successful sunrise/sunset response payload."""

    ok: bool = True
    status: str = Field(..., description="Computation status")
    date_utc: date = Field(..., description="Requested date")
    latitude: float = Field(..., description="Latitude in degrees")
    longitude: float = Field(..., description="Longitude in degrees")
    elevation_m: float = Field(..., description="Elevation above mean sea level")
    twilight: Twilight = Field(..., description="Applied twilight definition")
    calculator: str = Field(..., description="Name of the applied calculator")
    sunrise_utc: Optional[str] = Field(None, description="Sunrise time in UTC (ISO-8601)")
    sunset_utc: Optional[str] = Field(None, description="Sunset time in UTC (ISO-8601)")
    solar_noon_utc: Optional[str] = Field(None, description="Solar transit in UTC (ISO-8601)")
    equation_of_time_s: float = Field(..., description="Equation of time at solar noon in seconds")
    offset_hours: Optional[float] = Field(None, description="User-specified offset in hours")
    sunrise_local: Optional[str] = Field(
        None, description="Sunrise expressed in local time when offset provided"
    )
    sunset_local: Optional[str] = Field(
        None, description="Sunset expressed in local time when offset provided"
    )


class PositionResponse(BaseModel):
    """Apparent position of a body in degrees."""

    right_ascension: float
    declination: float
    azimuth: float
    elevation: float
    distance_km: Optional[float] = None


class MoonResponse(BaseModel):
    ok: bool = True
    day: date
    zone: str
    moonrise_utc: Optional[str] = None
    moonset_utc: Optional[str] = None
    moonrise_local: Optional[str] = None
    moonset_local: Optional[str] = None
    above_at_start: bool
    length_s: int
    illumination: float
    position: Optional[PositionResponse] = None


class EventResponse(BaseModel):
    """Single astronomical instant."""

    ok: bool = True
    event: str
    moment_utc: str
    julian_day: float


class YearResponse(BaseModel):
    ok: bool = True
    year: int
    seasons: Dict[str, str]
    solar_terms: Dict[str, Dict[str, Any]]
    moon_phases: List[Dict[str, Any]]


class CalculatorsResponse(BaseModel):
    ok: bool = True
    default: str
    calculators: List[str]


class HealthResponse(BaseModel):
    """Health-check response."""

    ok: bool = True
    calculators: List[str]


class ErrorResponse(BaseModel):
    """Error payload."""

    ok: bool = False
    code: str
    error: str
