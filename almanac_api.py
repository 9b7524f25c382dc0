"""FastAPI application exposing sun and moon event computations."""

from __future__ import annotations

import json
import logging
import time
from contextlib import asynccontextmanager
from datetime import UTC, datetime, timedelta, timezone
from typing import Optional

from fastapi import Depends, FastAPI, HTTPException, Query, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from pydantic import ValidationError

from almanac import astro
from almanac.calculators import default_registry
from almanac.config import cors_origins, default_calculator_name, log_level
from almanac.errors import UnsupportedFeatureError
from almanac.lunar_time import LunarTime
from almanac.phases import illumination
from almanac.timescale import TimeValue
from almanac.yearbook import compute_year
from almanac.zodiac import Body, Direction, ZodiacKind
from models import (
    CalculatorsResponse,
    ErrorResponse,
    EventResponse,
    HealthResponse,
    MoonQueryParams,
    MoonResponse,
    PositionResponse,
    SunQueryParams,
    SunResponse,
    YearResponse,
)

logging.basicConfig(level=log_level(), format="%(message)s")
LOGGER = logging.getLogger("almanac-api")

APP_DESCRIPTION = "Sunrise, sunset, twilight, moon, season and zodiac calculations"

ERROR_RESPONSES = {
    400: {"model": ErrorResponse},
    422: {"model": ErrorResponse},
    500: {"model": ErrorResponse},
    501: {"model": ErrorResponse},
}


@asynccontextmanager
async def lifespan(app: FastAPI):  # pragma: no cover - exercised in integration tests
    registry = default_registry()
    LOGGER.info(
        json.dumps(
            {"event": "startup", "calculators": registry.names(), "default": default_calculator_name()}
        )
    )
    yield


app = FastAPI(
    title="Almanac API",
    description=APP_DESCRIPTION,
    version="1.0.0",
    lifespan=lifespan,
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=cors_origins(),
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


def _format_utc(dt: Optional[datetime]) -> Optional[str]:
    if dt is None:
        return None
    return dt.astimezone(UTC).isoformat().replace("+00:00", "Z")


def _format_local(dt: Optional[datetime], offset_hours: Optional[float]) -> Optional[str]:
    if dt is None or offset_hours is None:
        return None
    offset = timezone(timedelta(hours=offset_hours))
    return dt.astimezone(offset).isoformat()


def _format_moment(moment: Optional[TimeValue]) -> Optional[str]:
    # signed years before 1, which datetime cannot hold
    return None if moment is None else moment.isoformat()


def _as_moment(dt: datetime) -> TimeValue:
    # naive instants are read as UTC
    if dt.tzinfo is None:
        dt = dt.replace(tzinfo=UTC)
    return TimeValue.from_datetime(dt)


def _error_response(status_code: int, code: str, message: str) -> JSONResponse:
    payload = ErrorResponse(code=code, error=message)
    LOGGER.error(json.dumps({"event": "error", "code": code, "message": message}))
    return JSONResponse(status_code=status_code, content=payload.model_dump())


def _log_request(event: str, started: float, **fields: object) -> None:
    payload = {"event": event}
    payload.update(fields)
    payload["duration_ms"] = round((time.perf_counter() - started) * 1000.0, 3)
    LOGGER.info(json.dumps(payload, default=str))


@app.exception_handler(RequestValidationError)
async def validation_exception_handler(
    request: Request, exc: RequestValidationError
) -> JSONResponse:
    messages = ", ".join(error["msg"] for error in exc.errors())
    return _error_response(422, "validation_error", messages)


@app.exception_handler(ValidationError)
async def model_validation_exception_handler(request: Request, exc: ValidationError) -> JSONResponse:
    messages = ", ".join(error["msg"] for error in exc.errors())
    return _error_response(422, "validation_error", messages)


@app.exception_handler(UnsupportedFeatureError)
async def unsupported_exception_handler(request: Request, exc: UnsupportedFeatureError) -> JSONResponse:
    return _error_response(501, "unsupported_feature", str(exc))


@app.exception_handler(HTTPException)
async def http_exception_handler(request: Request, exc: HTTPException) -> JSONResponse:
    detail = exc.detail
    if isinstance(detail, dict):
        message = detail.get("error") or detail.get("message") or str(detail)
    elif isinstance(detail, list):
        message = ", ".join(str(item) for item in detail)
    else:
        message = str(detail)
    return _error_response(exc.status_code, f"http_{exc.status_code}", message)


@app.exception_handler(Exception)
async def unhandled_exception_handler(request: Request, exc: Exception) -> JSONResponse:
    LOGGER.exception("Unhandled exception", exc_info=exc)
    return _error_response(500, "internal_error", "Unhandled server error")


@app.get("/health", response_model=HealthResponse)
def health() -> HealthResponse:
    return HealthResponse(ok=True, calculators=default_registry().names())


@app.get("/calculators", response_model=CalculatorsResponse)
def calculators() -> CalculatorsResponse:
    return CalculatorsResponse(default=default_calculator_name(), calculators=default_registry().names())


@app.get("/sun", response_model=SunResponse, responses=ERROR_RESPONSES)
def sun_endpoint(params: SunQueryParams = Depends()) -> SunResponse:
    start_time = time.perf_counter()
    calculator = params.calculator.value if params.calculator is not None else None
    try:
        result = astro.compute_sun_times(
            date_utc=params.date_utc,
            lat=params.lat,
            lon=params.lon,
            elev_m=params.elev_m,
            twilight=params.twilight.value,
            calculator=calculator,
        )
        solar_noon = result["solar_noon"]
        eot = astro.equation_of_time(TimeValue.from_datetime(solar_noon), result["calculator"])
    except ValueError as exc:
        raise HTTPException(status_code=400, detail=str(exc))

    response = SunResponse(
        status=result["status"],
        date_utc=params.date_utc,
        latitude=params.lat,
        longitude=params.lon,
        elevation_m=params.elev_m,
        twilight=params.twilight,
        calculator=result["calculator"],
        sunrise_utc=_format_utc(result.get("sunrise")),
        sunset_utc=_format_utc(result.get("sunset")),
        solar_noon_utc=_format_utc(solar_noon),
        equation_of_time_s=round(eot, 3),
        offset_hours=params.offset_hours,
        sunrise_local=_format_local(result.get("sunrise"), params.offset_hours),
        sunset_local=_format_local(result.get("sunset"), params.offset_hours),
    )

    _log_request(
        "sun",
        start_time,
        lat=params.lat,
        lon=params.lon,
        date=params.date_utc.isoformat(),
        twilight=params.twilight.value,
        calculator=response.calculator,
        status=response.status,
    )
    return response


@app.get("/moon", response_model=MoonResponse, responses=ERROR_RESPONSES)
def moon_endpoint(params: MoonQueryParams = Depends()) -> MoonResponse:
    start_time = time.perf_counter()
    try:
        location = params.to_location()
        light = LunarTime(location).on(params.date_local)
        moment = _as_moment(params.at) if params.at is not None else light.start.plus_days(0.5)
        position = astro.moon_position(moment, location)
        fraction = illumination(moment)
    except ValueError as exc:
        raise HTTPException(status_code=400, detail=str(exc))

    response = MoonResponse(
        day=params.date_local,
        zone=light.zone,
        moonrise_utc=_format_moment(light.moonrise),
        moonset_utc=_format_moment(light.moonset),
        moonrise_local=None if light.moonrise is None else light.moonrise_local().isoformat(),
        moonset_local=None if light.moonset is None else light.moonset_local().isoformat(),
        above_at_start=light.above,
        length_s=light.length,
        illumination=fraction,
        position=PositionResponse(
            right_ascension=position.right_ascension,
            declination=position.declination,
            azimuth=position.azimuth,
            elevation=position.elevation,
            distance_km=position.distance,
        ),
    )
    _log_request("moon", start_time, lat=params.lat, lon=params.lon, date=params.date_local.isoformat())
    return response


@app.get("/season", response_model=EventResponse, responses=ERROR_RESPONSES)
def season_endpoint(
    season: str = Query(..., description="VERNAL_EQUINOX, SUMMER_SOLSTICE, AUTUMNAL_EQUINOX or WINTER_SOLSTICE"),
    year: int = Query(..., ge=-2000, le=2999),
) -> EventResponse:
    start_time = time.perf_counter()
    try:
        moment = astro.season_moment(season, year)
        formatted = _format_moment(moment)
    except ValueError as exc:
        raise HTTPException(status_code=400, detail=str(exc))
    _log_request("season", start_time, season=season, year=year)
    return EventResponse(event=season.upper(), moment_utc=formatted, julian_day=moment.value)


@app.get("/moon-phase", response_model=EventResponse, responses=ERROR_RESPONSES)
def moon_phase_endpoint(
    phase: str = Query(..., description="NEW_MOON, FIRST_QUARTER, FULL_MOON or LAST_QUARTER"),
    lunation: int = Query(..., ge=-49000, le=12400, description="Lunation count since 2000-01-06"),
) -> EventResponse:
    start_time = time.perf_counter()
    try:
        moment = astro.moon_phase_moment(phase, lunation)
        formatted = _format_moment(moment)
    except ValueError as exc:
        raise HTTPException(status_code=400, detail=str(exc))
    _log_request("moon_phase", start_time, phase=phase, lunation=lunation)
    return EventResponse(event=phase.upper(), moment_utc=formatted, julian_day=moment.value)


@app.get("/zodiac", response_model=EventResponse, responses=ERROR_RESPONSES)
def zodiac_endpoint(
    body: Body = Query(...),
    zodiac: str = Query(..., description="Name of the constellation or sign, e.g. ARIES"),
    start: datetime = Query(..., description="Start of the search (ISO-8601, UTC if naive)"),
    direction: Direction = Query(Direction.ENTRY),
    kind: ZodiacKind = Query(ZodiacKind.CONSTELLATION),
) -> EventResponse:
    start_time = time.perf_counter()
    try:
        moment = astro.zodiac_crossing(body, zodiac, direction, _as_moment(start), kind)
    except ValueError as exc:
        raise HTTPException(status_code=400, detail=str(exc))
    _log_request("zodiac", start_time, body=body.value, zodiac=zodiac, direction=direction.value, kind=kind.value)
    return EventResponse(
        event=f"{body.value}:{zodiac.upper()}:{direction.value}",
        moment_utc=_format_moment(moment),
        julian_day=moment.value,
    )


@app.get("/year", response_model=YearResponse, responses=ERROR_RESPONSES)
def year_endpoint(year: int = Query(..., ge=1, le=2999)) -> YearResponse:
    start_time = time.perf_counter()
    try:
        table = compute_year(year)
    except ValueError as exc:
        raise HTTPException(status_code=400, detail=str(exc))

    response = YearResponse(
        year=year,
        seasons={name: _format_utc(dt) for name, dt in table["seasons"].items()},
        solar_terms={
            code: {"name": entry["name"], "longitude": entry["longitude"], "moment_utc": _format_utc(entry["datetime"])}
            for code, entry in table["solar_terms"].items()
        },
        moon_phases=[
            {"phase": entry["phase"], "lunation": entry["lunation"], "moment_utc": _format_utc(entry["datetime"])}
            for entry in table["moon_phases"]
        ],
    )
    _log_request("year", start_time, year=year)
    return response
