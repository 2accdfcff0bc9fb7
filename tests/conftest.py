"""Shared fixtures: OpenWeather payloads and a mock HTTP client."""

from typing import Any, Callable, Dict, List
from unittest.mock import AsyncMock

import httpx
import pytest

from weather_dashboard.history.store import HistoryStore
from weather_dashboard.weather.client import OpenWeatherClient
from weather_dashboard.weather.service import WeatherService

BASE_URL = "https://api.test"
API_KEY = "test-key"
START_TS = 1_700_000_000
THREE_HOURS = 3 * 60 * 60


def owm_sample(dt: int, temp: float = 60.4, humidity: int = 55, speed: float = 4.6,
               description: str = "clear sky", icon: str = "01d") -> Dict[str, Any]:
    """Build one OpenWeather sample (current or forecast entry)."""
    return {
        "dt": dt,
        "main": {"temp": temp, "humidity": humidity, "pressure": 1012},
        "wind": {"speed": speed, "deg": 180},
        "weather": [{"id": 800, "main": "Clear", "description": description, "icon": icon}],
    }


def forecast_payload(count: int = 40) -> Dict[str, Any]:
    """Build a forecast payload with `count` 3-hour samples."""
    return {
        "cod": "200",
        "cnt": count,
        "list": [owm_sample(START_TS + i * THREE_HOURS, temp=i + 0.5, speed=2.4) for i in range(count)],
    }


LONDON_MATCH = {"name": "London", "lat": 51.5073, "lon": -0.1277, "country": "GB", "state": "England"}


def _response(json_data: Any, status_code: int = 200) -> httpx.Response:
    return httpx.Response(status_code=status_code, json=json_data, request=httpx.Request("GET", BASE_URL))


def routed_http_client(routes: Dict[str, Any]) -> AsyncMock:
    """Mock httpx.AsyncClient answering by URL suffix.

    A route value is either a JSON body, an (body, status) tuple, or an
    exception instance to raise.
    """
    mock = AsyncMock(spec=httpx.AsyncClient)

    def _get(url: str, params=None):
        for suffix, outcome in routes.items():
            if url.endswith(suffix):
                if isinstance(outcome, Exception):
                    raise outcome
                if isinstance(outcome, tuple):
                    return _response(*outcome)
                return _response(outcome)
        raise AssertionError(f"Unexpected request to {url}")

    mock.get.side_effect = _get
    return mock


@pytest.fixture
def make_service() -> Callable[..., WeatherService]:
    """Factory building a WeatherService over a routed mock HTTP client."""

    def _make(geocode: Any = None, current: Any = None, forecast: Any = None) -> WeatherService:
        routes = {
            "/geo/1.0/direct": [LONDON_MATCH] if geocode is None else geocode,
            "/data/2.5/weather": owm_sample(START_TS) if current is None else current,
            "/data/2.5/forecast": forecast_payload() if forecast is None else forecast,
        }
        http_client = routed_http_client(routes)
        return WeatherService(OpenWeatherClient(api_key=API_KEY, base_url=BASE_URL, http_client=http_client))

    return _make


@pytest.fixture
def history_path(tmp_path) -> str:
    return str(tmp_path / "db" / "searchHistory.json")


@pytest.fixture
def history_store(history_path) -> HistoryStore:
    return HistoryStore(history_path)


def city_names(cities: List) -> List[str]:
    return [city.name for city in cities]
