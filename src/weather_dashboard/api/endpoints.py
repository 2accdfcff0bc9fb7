"""API endpoints for the weather dashboard service."""

import logging
from typing import List, Optional

from fastapi import APIRouter, BackgroundTasks, Depends, Request
from fastapi.responses import JSONResponse

from weather_dashboard.config import expose_error_details
from weather_dashboard.errors import (
    ConfigurationError, InvalidInputError, NotFoundError, StorageError, WeatherAppError
)
from weather_dashboard.history.models import City, MessageResponse
from weather_dashboard.history.store import HistoryStore
from weather_dashboard.weather.models import ErrorResponse, WeatherRequest, WeatherResult
from weather_dashboard.weather.service import WeatherService

logger = logging.getLogger(__name__)

# Create router
router = APIRouter(prefix="/weather", tags=["weather"])

_ERROR_RESPONSES = {
    400: {"model": ErrorResponse},
    404: {"model": ErrorResponse},
    500: {"model": ErrorResponse},
}


def get_weather_service(request: Request) -> WeatherService:
    """Dependency returning the weather service built at startup."""
    service = getattr(request.app.state, "weather_service", None)
    if service is None:
        raise ConfigurationError("Weather service is not initialized")
    return service


def get_history_store(request: Request) -> HistoryStore:
    """Dependency returning the history store built at startup."""
    store = getattr(request.app.state, "history_store", None)
    if store is None:
        raise StorageError("Search history is not initialized")
    return store


def error_response(status_code: int, error: str, detail: Optional[str] = None) -> JSONResponse:
    """Build a JSON error body, echoing detail only outside production."""
    content = {"error": error}
    if detail and expose_error_details():
        content["message"] = detail
    return JSONResponse(status_code=status_code, content=content)


async def record_search(history_store: HistoryStore, city: str) -> None:
    """Add a searched city to the history, logging instead of raising."""
    try:
        await history_store.add_city(city)
        logger.info(f"City added to history: {city}")
    except StorageError as e:
        logger.error(f"Failed to add '{city}' to search history: {e}")


@router.post("", response_model=WeatherResult, responses=_ERROR_RESPONSES)
async def get_weather(
    payload: WeatherRequest,
    background_tasks: BackgroundTasks,
    weather_service: WeatherService = Depends(get_weather_service),
    history_store: HistoryStore = Depends(get_history_store)
):
    """Get current weather and a five day forecast for a city.

    The city is recorded in the search history after the response is
    prepared; a history failure never fails the lookup.

    Args:
        payload: Request body with 'cityName' or 'city'
        background_tasks: Tasks run after the response is sent
        weather_service: Injected weather service
        history_store: Injected history store

    Returns:
        WeatherResult, or a JSON error response

    Raises:
        InvalidInputError: If neither key holds a city name
    """
    city = payload.resolved_city()
    if not city:
        logger.info("No city provided in request")
        raise InvalidInputError("City name is required")

    try:
        logger.info(f"Fetching weather data for city: {city}")
        result = await weather_service.get_weather_for_city(city)

    except NotFoundError:
        logger.info(f"City not found: {city}")
        return error_response(404, "City not found")

    except ConfigurationError as e:
        logger.error(f"Weather service configuration error: {e}")
        return error_response(500, "Weather service configuration error")

    except WeatherAppError as e:
        logger.error(f"Error fetching weather for '{city}': {e}")
        return error_response(500, "Failed to fetch weather data", e.message)

    except Exception as e:
        logger.exception(f"Unexpected error fetching weather for '{city}'")
        return error_response(500, "Failed to fetch weather data", str(e))

    background_tasks.add_task(record_search, history_store, city)

    logger.info(f"Successfully retrieved weather with {len(result.forecast)} forecast days")
    return result


@router.get("/history", response_model=List[City], responses=_ERROR_RESPONSES)
async def get_search_history(history_store: HistoryStore = Depends(get_history_store)):
    """Get the search history.

    Returns:
        Every searched city in insertion order
    """
    try:
        cities = await history_store.list_cities()
        logger.info(f"Search history retrieved: {len(cities)} cities")
        return cities

    except StorageError as e:
        logger.error(f"Error fetching search history: {e}")
        return error_response(500, "Failed to fetch search history", e.message)


@router.delete("/history", include_in_schema=False)
@router.delete("/history/", include_in_schema=False)
async def delete_without_id():
    """Answer a delete that names no city."""
    logger.info("Delete requested without a city id")
    return error_response(404, "City not found in history")


@router.delete("/history/{city_id}", response_model=MessageResponse, responses=_ERROR_RESPONSES)
async def delete_from_history(city_id: str, history_store: HistoryStore = Depends(get_history_store)):
    """Delete a city from the search history.

    Args:
        city_id: Identifier of the city to delete
    """
    try:
        logger.info(f"Attempting to delete city with ID: {city_id}")
        removed = await history_store.remove_city(city_id)

    except StorageError as e:
        logger.error(f"Error deleting city {city_id}: {e}")
        return error_response(500, "Failed to delete city from history", e.message)

    if not removed:
        return error_response(404, "City not found in history")

    return MessageResponse(message="City deleted successfully")


@router.get("/health")
async def health_check() -> dict:
    """Health check endpoint.

    Returns:
        Health status response
    """
    return {"status": "healthy", "service": "weather-dashboard"}
