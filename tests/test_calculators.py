from __future__ import annotations

import math
from datetime import date

import pytest

from almanac.calculators import (
    CC,
    DECLINATION,
    MEEUS,
    NOAA,
    RIGHT_ASCENSION,
    SIMPLE,
    SOLAR_LONGITUDE,
    STD_ZENITH,
    Calculator,
    CalculatorRegistry,
    default_registry,
)
from almanac.config import parallel_jobs

JDE_25A = 2448908.5


class ConstantCalculator(Calculator):
    name = "constant"

    def sunrise(self, day, latitude, longitude, zenith):
        return None

    def sunset(self, day, latitude, longitude, zenith):
        return None

    def equation_of_time(self, jde):
        return 0.0

    def declination(self, jde):
        return 0.0


def test_default_registry_holds_builtins():
    registry = default_registry()
    assert registry.names() == [CC, MEEUS, NOAA, SIMPLE]
    assert list(registry) == registry.names()
    assert registry is default_registry()


def test_lookup_is_case_insensitive():
    registry = default_registry()
    assert registry.get("noaa").name == NOAA
    assert " Meeus " in registry
    assert "unknown" not in registry
    assert 42 not in registry


def test_default_calculator_follows_environment(monkeypatch):
    registry = default_registry()
    assert registry.get().name == MEEUS
    monkeypatch.setenv("ALMANAC_CALCULATOR", "cc")
    assert registry.get().name == CC


def test_unknown_calculator():
    with pytest.raises(ValueError, match="Unknown calculator: NASA"):
        default_registry().get("NASA")


def test_first_registration_wins():
    registry = CalculatorRegistry()
    first = ConstantCalculator()
    second = ConstantCalculator()
    assert registry.register(first) is first
    assert registry.register(second) is first
    assert registry.get("CONSTANT") is first
    assert registry.register(second, replace=True) is second
    assert registry.get("constant") is second


def test_register_rejects_invalid_entries():
    registry = CalculatorRegistry()
    with pytest.raises(TypeError):
        registry.register("MEEUS")  # type: ignore[arg-type]
    blank = ConstantCalculator()
    blank.name = "  "
    with pytest.raises(ValueError):
        registry.register(blank)


@pytest.mark.parametrize(
    "name, declination, tolerance",
    [
        (MEEUS, -7.78409, 0.002),
        (NOAA, -7.78507, 0.002),
        (CC, -7.78415, 0.002),
        (SIMPLE, -7.939, 0.02),
    ],
)
def test_declination_meeus_25a(name, declination, tolerance):
    calculator = default_registry().get(name)
    assert calculator.feature(JDE_25A, DECLINATION) == pytest.approx(declination, abs=tolerance)


def test_unsupported_features_are_nan():
    jde = JDE_25A
    assert math.isnan(default_registry().get(SIMPLE).feature(jde, RIGHT_ASCENSION))
    for name in (SIMPLE, NOAA, CC, MEEUS):
        assert math.isnan(default_registry().get(name).feature(jde, "unknown"))


@pytest.mark.parametrize("name, right_ascension", [(NOAA, 198.38083), (CC, 198.37833)])
def test_right_ascension_meeus_25a(name, right_ascension):
    calculator = default_registry().get(name)
    assert calculator.feature(JDE_25A, RIGHT_ASCENSION) == pytest.approx(right_ascension, abs=0.002)


def test_meeus_features():
    jde = JDE_25A
    meeus = default_registry().get(MEEUS)
    assert meeus.feature(jde, RIGHT_ASCENSION) == pytest.approx(198.37826, abs=0.002)
    assert meeus.feature(jde, SOLAR_LONGITUDE) == pytest.approx(199.908, abs=0.005)


def test_geodetic_angles():
    registry = default_registry()
    assert registry.get(CC).geodetic_angle(-22.36, 46) == pytest.approx(0.2535, abs=1e-3)
    assert registry.get(NOAA).geodetic_angle(45.0, 1000.0) == 0.0
    assert registry.get(NOAA).zenith_angle(45.0, 1000.0) == STD_ZENITH
    assert registry.get(MEEUS).zenith_angle(0.0, 0.0) == STD_ZENITH
    assert registry.get(MEEUS).zenith_angle(0.0, 5895.0) > STD_ZENITH + 2


def test_equation_of_time_agrees_between_calculators():
    registry = default_registry()
    values = [registry.get(name).equation_of_time(JDE_25A) for name in (SIMPLE, NOAA, CC, MEEUS)]
    # mid October, close to the annual maximum of about 13.7 minutes
    for value in values:
        assert value == pytest.approx(values[-1], abs=60)
        assert 700 < value < 900


def test_simple_calculator_precision():
    simple = default_registry().get(SIMPLE)
    assert simple.precision_seconds == 60
    sunrise = simple.sunrise(date(1990, 6, 25), 40.9, -74.3, STD_ZENITH)
    assert round(sunrise.posix) % 60 == 0


def test_simple_calculator_reports_latitudes_out_of_scope(caplog):
    simple = default_registry().get(SIMPLE)
    simple.sunrise(date(2016, 3, 1), 60.0, 10.0, STD_ZENITH)
    assert "calculator_out_of_scope" not in caplog.text
    simple.sunset(date(2016, 3, 1), 70.0, 10.0, STD_ZENITH)
    assert "calculator_out_of_scope" in caplog.text
    assert '"latitude": 70.0' in caplog.text


def test_parallel_jobs_setting(monkeypatch):
    monkeypatch.delenv("ALMANAC_JOBS", raising=False)
    assert parallel_jobs() is None
    monkeypatch.setenv("ALMANAC_JOBS", "-1")
    assert parallel_jobs() == -1
    monkeypatch.setenv("ALMANAC_JOBS", "0")
    with pytest.raises(ValueError):
        parallel_jobs()
    monkeypatch.setenv("ALMANAC_JOBS", "many")
    with pytest.raises(ValueError):
        parallel_jobs()
