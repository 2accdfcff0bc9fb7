"""Configuration settings for the weather dashboard service."""

import os
from typing import Final
from dotenv import load_dotenv

load_dotenv()

# OpenWeather configuration
API_KEY: str = os.getenv("API_KEY", "")
API_BASE_URL: str = os.getenv("API_BASE_URL", "")
GEOCODING_PATH: Final[str] = "/geo/1.0"
WEATHER_PATH: Final[str] = "/data/2.5"
UNITS: Final[str] = "imperial"
HTTP_TIMEOUT_SECONDS: float = float(os.getenv("HTTP_TIMEOUT_SECONDS", "30"))

# Forecast shaping
SAMPLES_PER_DAY: Final[int] = 8  # 3-hour feed
FORECAST_DAYS: Final[int] = 5

# Server configuration
HOST: str = os.getenv("HOST", "0.0.0.0")
PORT: int = int(os.getenv("PORT", "3001"))
DEBUG: bool = os.getenv("DEBUG", "false").lower() == "true"
APP_ENV: str = os.getenv("APP_ENV", "production").lower()

# Storage and static files
HISTORY_FILE: str = os.getenv("HISTORY_FILE", os.path.join("db", "searchHistory.json"))
STATIC_DIR: str = os.getenv("STATIC_DIR", os.path.join("client", "dist"))


def expose_error_details() -> bool:
    """Whether internal error messages may be echoed back to clients."""
    return APP_ENV != "production"
