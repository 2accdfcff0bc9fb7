"""HTTP client for the OpenWeather geocoding and weather APIs."""

import logging
from typing import Any, Dict, List, Optional

import httpx

from weather_dashboard.config import (
    API_KEY, API_BASE_URL, GEOCODING_PATH, WEATHER_PATH, UNITS,
    HTTP_TIMEOUT_SECONDS
)
from weather_dashboard.errors import ConfigurationError, UpstreamError
from weather_dashboard.weather.models import Coordinates

logger = logging.getLogger(__name__)


class OpenWeatherClient:
    """Async client for fetching raw payloads from OpenWeather."""

    def __init__(
        self,
        api_key: Optional[str] = None,
        base_url: Optional[str] = None,
        http_client: Optional[httpx.AsyncClient] = None
    ):
        """Initialize the weather client.

        Args:
            api_key: OpenWeather API key (defaults to API_KEY)
            base_url: Base URL shared by the geocoding and weather endpoints
                (defaults to API_BASE_URL)
            http_client: Optional pre-built client (creates one if None)

        Raises:
            ConfigurationError: If the API key or base URL is missing
        """
        api_key = API_KEY if api_key is None else api_key
        base_url = API_BASE_URL if base_url is None else base_url

        if not api_key:
            logger.error(f"Weather API key is not configured (base url set: {bool(base_url)})")
            raise ConfigurationError("Weather API key is not configured. Please check your .env file.")
        if not base_url:
            logger.error("Weather API base URL is not configured")
            raise ConfigurationError("Weather API base URL is not configured. Please check your .env file.")

        self.api_key = api_key
        self.base_url = base_url.rstrip("/")
        self.geo_url = f"{self.base_url}{GEOCODING_PATH}"
        self.weather_url = f"{self.base_url}{WEATHER_PATH}"
        self.client = http_client or httpx.AsyncClient(timeout=HTTP_TIMEOUT_SECONDS)

    async def geocode(self, city: str) -> List[Dict[str, Any]]:
        """Look up candidate locations for a city name.

        Args:
            city: Free-text city name

        Returns:
            Raw list of geocoding candidates (may be empty)

        Raises:
            UpstreamError: If the request fails or the payload is not a list
        """
        logger.info(f"Geocoding city: {city}")
        params = {"q": city, "limit": 1, "appid": self.api_key}
        data = await self._get_json(f"{self.geo_url}/direct", params, "location data")

        if not isinstance(data, list):
            logger.error(f"Unexpected geocoding payload type: {type(data).__name__}")
            raise UpstreamError("Failed to fetch location data")

        logger.info(f"Geocoder returned {len(data)} candidate(s) for '{city}'")
        return data

    async def get_current_weather(self, coordinates: Coordinates) -> Dict[str, Any]:
        """Fetch current conditions for the given coordinates."""
        return await self._get_json(
            f"{self.weather_url}/weather",
            self._weather_params(coordinates),
            "current weather"
        )

    async def get_forecast(self, coordinates: Coordinates) -> Dict[str, Any]:
        """Fetch the 5 day / 3 hour forecast for the given coordinates."""
        return await self._get_json(
            f"{self.weather_url}/forecast",
            self._weather_params(coordinates),
            "forecast"
        )

    def _weather_params(self, coordinates: Coordinates) -> Dict[str, Any]:
        return {
            "lat": coordinates.lat,
            "lon": coordinates.lon,
            "units": UNITS,
            "appid": self.api_key,
        }

    async def _get_json(self, url: str, params: Dict[str, Any], what: str) -> Any:
        """Issue a GET request and decode the JSON body.

        Args:
            url: Endpoint URL
            params: Query parameters
            what: Short label used in log and error messages

        Returns:
            Decoded JSON body

        Raises:
            UpstreamError: If the request fails or the body is not JSON
        """
        try:
            response = await self.client.get(url, params=params)
            response.raise_for_status()
            return response.json()

        except httpx.HTTPStatusError as e:
            logger.error(f"HTTP error from OpenWeather fetching {what}: {e.response.status_code} - {e.response.text}")
            raise UpstreamError(f"Failed to fetch {what}") from e
        except httpx.RequestError as e:
            logger.error(f"Request error to OpenWeather fetching {what}: {e}")
            raise UpstreamError(f"Failed to fetch {what}") from e
        except ValueError as e:
            logger.error(f"Invalid JSON from OpenWeather fetching {what}: {e}")
            raise UpstreamError(f"Failed to fetch {what}") from e

    async def aclose(self):
        """Close the async HTTP client."""
        await self.client.aclose()

    async def __aenter__(self):
        """Async context manager entry."""
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb):
        """Async context manager exit."""
        await self.aclose()
