"""
Tests for CLI argument parsing and output formatting
"""

import pytest

from internal.application import formatCity, formatForecast, formatRefreshResult, formatWeather, parseArguments
from internal.services.tracking import RefreshResult
from tests.utils import createForecast, createSnapshot


class TestParseArguments:
    def testCurrentJoinsCityWords(self):
        args = parseArguments(["current", "New", "York"])

        assert args.command == "current"
        assert args.city == ["New", "York"]
        assert args.config == "config.toml"
        assert args.units is None

    def testGlobalOptions(self):
        args = parseArguments(["-c", "other.toml", "--units", "imperial", "--lang", "tr", "coords", "41.01", "28.95"])

        assert args.config == "other.toml"
        assert args.units == "imperial"
        assert args.lang == "tr"
        assert (args.lat, args.lon) == (41.01, 28.95)

    def testTrackCommands(self):
        assert parseArguments(["track", "remove", "17"]).id == 17
        assert parseArguments(["track", "refresh"]).id is None
        assert parseArguments(["track", "list"]).track_command == "list"

    def testInvalidUnitsRejected(self):
        with pytest.raises(SystemExit):
            parseArguments(["units", "kelvin"])

    def testConfigDirsAccumulate(self):
        args = parseArguments(["--config-dir", "a", "--config-dir", "b", "--print-config"])

        assert args.config_dir == ["a", "b"]
        assert args.print_config is True
        assert args.command is None


class TestFormatting:
    def testFormatWeather(self):
        text = formatWeather(createSnapshot(name="Istanbul", temp=15.5))

        assert text.startswith("Istanbul, TR (41.0138, 28.9497)")
        assert "Scattered clouds" in text
        assert "15.5°C" in text
        # 1697601000 + 3h offset
        assert "Sunrise: 06:50" in text

    def testFormatWeatherImperial(self):
        text = formatWeather(createSnapshot(units="imperial", temp=60.0))

        assert "60.0°F" in text
        assert "mph" in text

    def testFormatForecastHourly(self):
        forecast = createForecast(41.0, 29.0, slots=4)

        assert len(formatForecast(forecast, daily=False).splitlines()) == 4

    def testFormatCityWithoutWeather(self):
        city = {
            "id": 1,
            "name": "Ankara",
            "country": "TR",
            "lat": 39.93,
            "lon": 32.86,
            "last_updated": 1697644800000,
            "weather": None,
        }

        assert formatCity(city).startswith("[1] Ankara, TR: no data")

    def testFormatRefreshResult(self):
        city = {
            "id": 5,
            "name": "Istanbul",
            "country": "TR",
            "lat": 41.0138,
            "lon": 28.9497,
            "last_updated": 1697644800000,
            "weather": createSnapshot(),
        }
        result = RefreshResult(cities=[city], refreshed=0, failures={5: "Failed to fetch weather for Istanbul"})

        text = formatRefreshResult(result)

        assert "Refreshed 0 of 1 cities" in text
        assert "Failed [5]: Failed to fetch weather for Istanbul" in text
