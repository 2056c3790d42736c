"""
End-to-end workflows through WeatherApplication.

The OpenWeatherMap API is emulated with httpx.MockTransport, storage is a
real SQLite file in a temporary directory.
"""

import argparse
from typing import Dict, List

import httpx
import pytest

from internal.application import WeatherApplication, parseArguments
from internal.config.manager import ConfigManager

# name -> (country, lat, lon, temperature)
CITIES = {
    "istanbul": ("TR", 41.0138, 28.9497, 15.5),
    "ankara": ("TR", 39.9334, 32.8597, 9.0),
    "london": ("GB", 51.5085, -0.1257, 11.0),
    "paris": ("FR", 48.8534, 2.3488, 13.0),
}


def currentPayload(name: str) -> Dict:
    country, lat, lon, temp = CITIES[name.lower()]
    return {
        "coord": {"lon": lon, "lat": lat},
        "weather": [{"id": 802, "main": "Clouds", "description": "scattered clouds", "icon": "03d"}],
        "main": {
            "temp": temp,
            "feels_like": temp - 1,
            "temp_min": temp - 2,
            "temp_max": temp + 2,
            "pressure": 1013,
            "humidity": 65,
        },
        "visibility": 10000,
        "wind": {"speed": 3.5, "deg": 180},
        "dt": 1697644800,
        "sys": {"country": country, "sunrise": 1697601000, "sunset": 1697640600},
        "timezone": 10800,
        "name": name.title(),
        "cod": 200,
    }


def forecastPayload(lat: float, lon: float) -> Dict:
    entries = []
    for i in range(16):
        dt = 1697652000 + i * 10800
        entries.append(
            {
                "dt": dt,
                "main": {
                    "temp": 10.0 + i,
                    "feels_like": 9.0 + i,
                    "temp_min": 9.5 + i,
                    "temp_max": 10.5 + i,
                    "pressure": 1015,
                    "humidity": 70,
                },
                "weather": [{"id": 500, "main": "Rain", "description": "light rain", "icon": "10n"}],
                "wind": {"speed": 4.1, "deg": 200},
                "visibility": 9000,
                "pop": 0.4,
            }
        )
    return {
        "cod": "200",
        "list": entries,
        "city": {"name": "", "country": "", "coord": {"lat": lat, "lon": lon}, "timezone": 10800},
    }


class FakeOpenWeatherMapApi:
    """MockTransport handler serving /weather and /forecast"""

    def __init__(self):
        self.requests: List[httpx.Request] = []
        self.failingCities: set[str] = set()

    def countPath(self, suffix: str) -> int:
        return sum(1 for request in self.requests if request.url.path.endswith(suffix))

    def __call__(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        params = request.url.params
        if params.get("appid") != "test_key":
            return httpx.Response(401, json={"cod": 401, "message": "Invalid API key."})

        if request.url.path.endswith("/forecast"):
            return httpx.Response(200, json=forecastPayload(float(params["lat"]), float(params["lon"])))

        city = params.get("q")
        if city is None:
            lat, lon = float(params["lat"]), float(params["lon"])
            for name, (_, cityLat, cityLon, _) in CITIES.items():
                if abs(cityLat - lat) < 0.01 and abs(cityLon - lon) < 0.01:
                    city = name
                    break
            else:
                return httpx.Response(404, json={"cod": "404", "message": "city not found"})

        if city.lower() in self.failingCities:
            return httpx.Response(400, json={"cod": "400", "message": "bad request"})
        if city.lower() not in CITIES:
            return httpx.Response(404, json={"cod": "404", "message": "city not found"})
        return httpx.Response(200, json=currentPayload(city))


@pytest.fixture
def api():
    return FakeOpenWeatherMapApi()


@pytest.fixture
async def makeApp(configFile, api):
    """Factory: a fresh application over the same config, storage and API"""
    created: List[WeatherApplication] = []

    def factory() -> WeatherApplication:
        app = WeatherApplication(
            ConfigManager(str(configFile), dotEnvFile=str(configFile.parent / ".env")),
            transport=httpx.MockTransport(api),
        )
        created.append(app)
        return app

    yield factory
    for app in created:
        await app.shutdown()


def args(*argv: str) -> argparse.Namespace:
    return parseArguments(list(argv))


class TestCurrentWeather:
    @pytest.mark.asyncio
    async def test_current_by_city(self, makeApp, api):
        app = makeApp()

        output = await app.runCommand(args("current", "Istanbul"))

        assert "Istanbul, TR" in output
        assert "15.5°C" in output
        assert app.weatherService.activeWeather["name"] == "Istanbul"
        await app.weatherService.waitBackgroundTasks()
        # Forecast was prewarmed in background
        assert api.countPath("/forecast") == 1

    @pytest.mark.asyncio
    async def test_repeated_lookup_is_served_from_cache(self, makeApp, api):
        app = makeApp()

        await app.runCommand(args("current", "Istanbul"))
        await app.runCommand(args("current", "istanbul"))

        assert api.countPath("/weather") == 1

    @pytest.mark.asyncio
    async def test_imperial_units_per_call(self, makeApp, api):
        app = makeApp()

        output = await app.runCommand(args("--units", "imperial", "current", "London"))

        assert "°F" in output
        assert api.requests[0].url.params["units"] == "imperial"

    @pytest.mark.asyncio
    async def test_unknown_city_exit_code(self, makeApp, capsys):
        app = makeApp()

        exitCode = await app.run(args("current", "Atlantis"))

        assert exitCode == 1
        assert "Location not found: Atlantis" in capsys.readouterr().out

    @pytest.mark.asyncio
    async def test_coordinates(self, makeApp):
        app = makeApp()

        output = await app.runCommand(args("coords", "39.9334", "32.8597"))

        assert "Ankara, TR" in output

    @pytest.mark.asyncio
    async def test_last_snapshot_survives_restart(self, makeApp):
        first = makeApp()
        await first.runCommand(args("current", "Paris"))
        await first.shutdown()

        second = makeApp()
        output = await second.runCommand(args("last"))

        assert "Paris, FR" in output

    @pytest.mark.asyncio
    async def test_here_without_provider(self, makeApp, capsys):
        app = makeApp()

        exitCode = await app.run(args("here"))

        assert exitCode == 1
        assert "Error:" in capsys.readouterr().out


class TestForecast:
    @pytest.mark.asyncio
    async def test_forecast_shows_one_line_per_day(self, makeApp, api):
        app = makeApp()

        output = await app.runCommand(args("forecast", "Istanbul"))

        forecastLines = [line for line in output.splitlines() if "light rain" in line]
        # 16 three-hour slots starting 21:00 local cover 3 local days
        assert len(forecastLines) == 3

    @pytest.mark.asyncio
    async def test_hourly_forecast_shows_every_slot(self, makeApp):
        app = makeApp()

        output = await app.runCommand(args("forecast", "Istanbul", "--hourly"))

        assert len([line for line in output.splitlines() if "light rain" in line]) == 16


class TestTracking:
    @pytest.mark.asyncio
    async def test_add_list_remove(self, makeApp):
        app = makeApp()

        await app.runCommand(args("track", "add", "Istanbul"))
        await app.runCommand(args("track", "add", "London"))

        listing = await app.runCommand(args("track", "list"))
        assert "Istanbul, TR" in listing
        assert "London, GB" in listing

        cityId = app.trackingService.listCities()[0]["id"]
        removed = await app.runCommand(args("track", "remove", str(cityId)))
        assert removed == "Removed Istanbul, TR"
        assert [city["name"] for city in app.trackingService.listCities()] == ["London"]

    @pytest.mark.asyncio
    async def test_duplicate_city_is_rejected(self, makeApp, capsys):
        app = makeApp()
        await app.runCommand(args("track", "add", "Istanbul"))

        exitCode = await app.run(args("track", "add", "istanbul"))

        assert exitCode == 1
        assert len(app.trackingService.listCities()) == 1

    @pytest.mark.asyncio
    async def test_tracked_cities_survive_restart(self, makeApp):
        first = makeApp()
        await first.runCommand(args("track", "add", "Ankara"))
        await first.shutdown()

        second = makeApp()
        assert [city["name"] for city in second.trackingService.listCities()] == ["Ankara"]

    @pytest.mark.asyncio
    async def test_refresh_all_isolates_failures(self, makeApp, api):
        app = makeApp()
        for name in ("Istanbul", "Ankara", "London", "Paris"):
            await app.runCommand(args("track", "add", name))
        before = {city["name"]: city["last_updated"] for city in app.trackingService.listCities()}

        api.failingCities.add("london")
        output = await app.runCommand(args("track", "refresh"))

        assert "Refreshed 3 of 4 cities" in output
        after = {city["name"]: city for city in app.trackingService.listCities()}
        assert after["London"]["last_updated"] == before["London"]
        assert after["Istanbul"]["last_updated"] > before["Istanbul"]
        assert app.trackingService.progress.completed == 0
        assert app.trackingService.progress.total == 0

    @pytest.mark.asyncio
    async def test_refresh_bypasses_cache(self, makeApp, api):
        app = makeApp()
        await app.runCommand(args("track", "add", "Istanbul"))
        weatherCalls = api.countPath("/weather")

        await app.runCommand(args("track", "refresh"))

        assert api.countPath("/weather") == weatherCalls + 1


class TestPreferences:
    @pytest.mark.asyncio
    async def test_units_preference_is_used_by_later_calls(self, makeApp, api):
        app = makeApp()
        await app.runCommand(args("units", "imperial"))

        second = makeApp()
        await second.runCommand(args("current", "Istanbul"))

        assert api.requests[-1].url.params["units"] == "imperial"

    @pytest.mark.asyncio
    async def test_language_preference(self, makeApp, api):
        app = makeApp()
        output = await app.runCommand(args("language", "TR"))

        assert output == "Language set to tr"
        await app.runCommand(args("current", "Istanbul"))
        assert api.requests[0].url.params["lang"] == "tr"

    @pytest.mark.asyncio
    async def test_reset_clears_everything(self, makeApp):
        app = makeApp()
        await app.runCommand(args("track", "add", "Istanbul"))
        await app.runCommand(args("units", "imperial"))

        await app.runCommand(args("reset"))

        assert app.trackingService.listCities() == []
        assert app.store.getUnits() == "metric"
        assert app.store.loadLastSnapshot() is None


class TestConfiguration:
    @pytest.mark.asyncio
    async def test_disabled_cache_reaches_api_every_time(self, configFile, api):
        overrides = configFile.parent / "conf.d"
        overrides.mkdir()
        (overrides / "cache.toml").write_text("[openweathermap]\ncache-enabled = false\n", encoding="utf-8")
        app = WeatherApplication(
            ConfigManager(str(configFile), [str(overrides)], dotEnvFile=str(configFile.parent / ".env")),
            transport=httpx.MockTransport(api),
        )
        app.weatherService.prewarmForecast = False

        try:
            await app.runCommand(args("current", "Istanbul"))
            await app.runCommand(args("current", "Istanbul"))
        finally:
            await app.shutdown()

        assert api.countPath("/weather") == 2
