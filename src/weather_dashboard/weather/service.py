"""Weather service orchestrating geocoding, fetching and parsing."""

import asyncio
import logging
import math
from datetime import datetime
from typing import Any, Dict, List, Optional

from pydantic import ValidationError

from weather_dashboard.config import FORECAST_DAYS, SAMPLES_PER_DAY
from weather_dashboard.errors import NotFoundError, UpstreamError
from weather_dashboard.weather.client import OpenWeatherClient
from weather_dashboard.weather.models import (
    Coordinates, GeocodeMatch, OwmForecastResponse, OwmSample,
    WeatherReading, WeatherResult
)

logger = logging.getLogger(__name__)


def round_half_up(value: float) -> int:
    """Round to the nearest integer, with halves going towards +infinity."""
    return math.floor(value + 0.5)


def format_display_date(timestamp: int) -> str:
    """Format a unix timestamp as a local calendar date (M/D/YYYY)."""
    moment = datetime.fromtimestamp(timestamp)
    return f"{moment.month}/{moment.day}/{moment.year}"


def to_reading(sample: OwmSample) -> WeatherReading:
    """Map a raw OpenWeather sample to a WeatherReading."""
    condition = sample.weather[0]
    return WeatherReading(
        date=format_display_date(sample.dt),
        temperature=round_half_up(sample.main.temp),
        humidity=sample.main.humidity,
        wind_speed=round_half_up(sample.wind.speed),
        description=condition.description,
        icon=condition.icon
    )


def parse_current_weather(raw: Dict[str, Any]) -> WeatherReading:
    """Parse a current-conditions payload.

    Raises:
        UpstreamError: If a required field is missing
    """
    try:
        return to_reading(OwmSample.model_validate(raw))
    except ValidationError as e:
        logger.error(f"Invalid current weather payload: {e}")
        raise UpstreamError("Invalid current weather data") from e


def build_forecast(raw: Dict[str, Any]) -> List[WeatherReading]:
    """Pick one sample per day from a 3-hour forecast payload.

    Every eighth sample starting at the first is kept, up to five days.
    A shorter feed yields a shorter forecast.

    Args:
        raw: Forecast payload with a 'list' of 3-hour samples

    Returns:
        Chronological daily readings

    Raises:
        UpstreamError: If the payload is missing required fields
    """
    try:
        forecast = OwmForecastResponse.model_validate(raw)
    except ValidationError as e:
        logger.error(f"Invalid forecast payload: {e}")
        raise UpstreamError("Invalid forecast data") from e

    daily = forecast.samples[::SAMPLES_PER_DAY][:FORECAST_DAYS]
    logger.info(f"Built {len(daily)} daily readings from {len(forecast.samples)} forecast samples")
    return [to_reading(sample) for sample in daily]


class WeatherService:
    """Service for looking up weather by city name."""

    def __init__(self, client: Optional[OpenWeatherClient] = None):
        """Initialize the weather service.

        Args:
            client: Weather client instance (creates default if None)

        Raises:
            ConfigurationError: If the default client cannot be configured
        """
        self.client = client or OpenWeatherClient()

    async def get_weather_for_city(self, city: str) -> WeatherResult:
        """
        Get current conditions and a daily forecast for a city.

        Args:
            city: Free-text city name

        Returns:
            WeatherResult with current weather, forecast and coordinates

        Raises:
            NotFoundError: If the geocoder has no match for the city
            UpstreamError: If any upstream call fails or returns bad data
        """
        coordinates = await self.resolve_coordinates(city)
        logger.info(f"Getting weather for {coordinates.name} (lat={coordinates.lat}, lon={coordinates.lon})")

        current_raw, forecast_raw = await self._fetch_weather(coordinates)

        return WeatherResult(
            current=parse_current_weather(current_raw),
            forecast=build_forecast(forecast_raw),
            coordinates=coordinates
        )

    async def resolve_coordinates(self, city: str) -> Coordinates:
        """Resolve a city name to the first geocoding match.

        Raises:
            NotFoundError: If there is no match
            UpstreamError: If the geocoding call fails or the match is malformed
        """
        matches = await self.client.geocode(city)
        if not matches:
            logger.warning(f"No geocoding match for '{city}'")
            raise NotFoundError("City not found")

        try:
            match = GeocodeMatch.model_validate(matches[0])
            return Coordinates(lat=match.lat, lon=match.lon, name=match.name)
        except ValidationError as e:
            logger.error(f"Invalid geocoding match for '{city}': {e}")
            raise UpstreamError("Invalid location data") from e

    async def _fetch_weather(self, coordinates: Coordinates) -> tuple:
        """Fetch current conditions and forecast concurrently.

        Both calls are awaited to completion even when one fails.

        Returns:
            Tuple of (current payload, forecast payload)

        Raises:
            UpstreamError: If either call fails
        """
        results = await asyncio.gather(
            self.client.get_current_weather(coordinates),
            self.client.get_forecast(coordinates),
            return_exceptions=True
        )

        for result in results:
            if isinstance(result, BaseException):
                if isinstance(result, UpstreamError):
                    raise result
                logger.error(f"Unexpected error fetching weather data: {result}")
                raise UpstreamError("Failed to fetch weather data") from result

        current_raw, forecast_raw = results
        return current_raw, forecast_raw

    async def aclose(self):
        """Close the weather client."""
        if self.client:
            try:
                await self.client.aclose()
            except Exception as e:
                logger.error(f"Error closing weather client: {e}")

    async def __aenter__(self):
        """Async context manager entry."""
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb):
        await self.aclose()
