"""Main FastAPI application for the weather dashboard service."""

import logging
import os
import traceback
from contextlib import asynccontextmanager
from typing import AsyncGenerator, Optional

import uvicorn
from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import FileResponse, JSONResponse

from weather_dashboard.api.endpoints import error_response, router as weather_router
from weather_dashboard.config import HOST, PORT, DEBUG, APP_ENV, STATIC_DIR, expose_error_details
from weather_dashboard.errors import WeatherAppError
from weather_dashboard.history.store import HistoryStore
from weather_dashboard.logging_config import configure_logging
from weather_dashboard.weather.service import WeatherService

# Configure logging
configure_logging(debug=DEBUG)
logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncGenerator[None, None]:
    """Application lifespan manager.

    Builds the services that were not injected into create_app. A missing
    API key raises ConfigurationError here and aborts startup.
    """
    try:
        if getattr(app.state, "weather_service", None) is None:
            app.state.weather_service = WeatherService()
        if getattr(app.state, "history_store", None) is None:
            app.state.history_store = HistoryStore()

        logger.info(f"Environment: {APP_ENV}")
        logger.info(f"Search history stored at {app.state.history_store.file_path}")
        logger.info(f"Static files being served from: {app.state.static_dir}")
        logger.info("Starting Weather Dashboard Service")
        yield
    except Exception as e:
        logger.error(f"Startup error: {e}")
        logger.error(traceback.format_exc())
        raise
    finally:
        logger.info("Shutting down Weather Dashboard Service")
        service = getattr(app.state, "weather_service", None)
        if service is not None:
            await service.aclose()


def register_exception_handlers(app: FastAPI) -> None:
    """Map errors escaping the routes to JSON error bodies."""

    @app.exception_handler(RequestValidationError)
    async def invalid_body_handler(_request: Request, exc: RequestValidationError):
        logger.info(f"Rejected invalid request body: {exc.errors()}")
        return error_response(400, "Invalid request body", str(exc.errors()))

    @app.exception_handler(WeatherAppError)
    async def app_error_handler(request: Request, exc: WeatherAppError):
        logger.error(f"Error handling {request.method} {request.url.path}: {exc}")
        if exc.status_code < 500 and exc.message:
            return error_response(exc.status_code, exc.message)
        # Detail of server errors is echoed only outside production
        return error_response(exc.status_code, "Internal Server Error", exc.message)

    @app.exception_handler(Exception)
    async def unhandled_error_handler(request: Request, exc: Exception):
        logger.exception(f"Unhandled error on {request.method} {request.url.path}")
        message = str(exc) if expose_error_details() else "Something went wrong"
        return JSONResponse(status_code=500, content={"error": "Internal Server Error", "message": message})


def create_app(
    weather_service: Optional[WeatherService] = None,
    history_store: Optional[HistoryStore] = None,
    static_dir: Optional[str] = None
) -> FastAPI:
    """Create and configure FastAPI application.

    Args:
        weather_service: Prebuilt weather service (built at startup if None)
        history_store: Prebuilt history store (built at startup if None)
        static_dir: Directory holding the client build (defaults to STATIC_DIR)

    Returns:
        Configured FastAPI application instance
    """
    app = FastAPI(
        title="Weather Dashboard Service",
        description="Current weather and five day forecasts by city, with a search history",
        version="0.1.0",
        docs_url="/docs",
        redoc_url="/redoc",
        openapi_url="/openapi.json",
        lifespan=lifespan
    )

    app.state.weather_service = weather_service
    app.state.history_store = history_store
    app.state.static_dir = os.path.abspath(static_dir or STATIC_DIR)

    # Add CORS middleware
    app.add_middleware(
        CORSMiddleware,
        allow_origins=["*"],
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    register_exception_handlers(app)

    # Include API routers
    app.include_router(weather_router)

    @app.get("/test", tags=["root"])
    async def test_route() -> dict:
        """Check that API routing works."""
        return {"message": "API routes are working"}

    # Must stay last: everything not matched above belongs to the client app
    @app.get("/{full_path:path}", include_in_schema=False)
    async def serve_client(full_path: str):
        """Serve a client build file, falling back to the SPA entry document."""
        static_root = app.state.static_dir
        candidate = os.path.abspath(os.path.join(static_root, full_path))
        if full_path and candidate.startswith(static_root + os.sep) and os.path.isfile(candidate):
            return FileResponse(candidate)

        index_path = os.path.join(static_root, "index.html")
        if not os.path.isfile(index_path):
            logger.error(f"Error serving index.html: {index_path} does not exist")
            return JSONResponse(status_code=500, content={"error": "Error serving the application"})
        return FileResponse(index_path)

    return app


# Create app instance for uvicorn
app = create_app()


def main() -> None:
    """Main entry point for the application."""
    logger.info(f"Starting server on {HOST}:{PORT}")
    uvicorn.run(
        "weather_dashboard.main:app" if DEBUG else app,
        host=HOST,
        port=PORT,
        reload=DEBUG,
        log_level="info" if not DEBUG else "debug"
    )


if __name__ == "__main__":
    main()
