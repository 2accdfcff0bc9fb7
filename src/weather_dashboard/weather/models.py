"""Data models for weather lookups and OpenWeather payloads."""

from typing import List, Optional

from pydantic import BaseModel, ConfigDict, Field


class Coordinates(BaseModel):
    """Coordinates resolved from a free-text city query."""
    lat: float = Field(..., ge=-90, le=90, description="Latitude in decimal degrees")
    lon: float = Field(..., ge=-180, le=180, description="Longitude in decimal degrees")
    name: str = Field(..., description="Display name returned by the geocoder")


class WeatherReading(BaseModel):
    """One normalized weather sample."""
    model_config = ConfigDict(populate_by_name=True)

    date: str = Field(..., description="Local calendar date, M/D/YYYY")
    temperature: int = Field(..., description="Temperature in Fahrenheit, rounded")
    humidity: int = Field(..., description="Relative humidity in percent")
    wind_speed: int = Field(..., alias="windSpeed", description="Wind speed in mph, rounded")
    description: str = Field(..., description="Human readable conditions")
    icon: str = Field(..., description="OpenWeather icon code")


class WeatherResult(BaseModel):
    """Weather lookup response model."""
    current: WeatherReading = Field(..., description="Current conditions")
    forecast: List[WeatherReading] = Field(..., description="Daily forecast, at most five days")
    coordinates: Coordinates = Field(..., description="Resolved location")


class WeatherRequest(BaseModel):
    """Body of a weather lookup; either key is accepted."""
    model_config = ConfigDict(populate_by_name=True)

    city_name: Optional[str] = Field(None, alias="cityName")
    city: Optional[str] = None

    def resolved_city(self) -> Optional[str]:
        """Return the requested city name, or None if neither key is usable."""
        for candidate in (self.city_name, self.city):
            if candidate and candidate.strip():
                return candidate.strip()
        return None


class GeocodeMatch(BaseModel):
    """Raw candidate from the OpenWeather direct geocoding API."""
    lat: float
    lon: float
    name: str
    country: Optional[str] = None
    state: Optional[str] = None


class OwmMain(BaseModel):
    temp: float
    humidity: int


class OwmWind(BaseModel):
    speed: float


class OwmCondition(BaseModel):
    description: str
    icon: str


class OwmSample(BaseModel):
    """A single OpenWeather observation, current or forecast."""
    dt: int = Field(..., description="Unix timestamp in seconds")
    main: OwmMain
    wind: OwmWind
    weather: List[OwmCondition] = Field(..., min_length=1)


class OwmForecastResponse(BaseModel):
    """Raw response from the OpenWeather 5 day / 3 hour forecast API."""
    samples: List[OwmSample] = Field(..., alias="list")


class ErrorResponse(BaseModel):
    """Error response model."""
    error: str = Field(..., description="Error message")
    message: Optional[str] = Field(None, description="Internal detail, non-production only")
