"""
FastAPI Application Factory.

Usage:
    # Development
    uvicorn api.app:create_app --factory --reload

    # Production
    uvicorn api.app:app --host 0.0.0.0 --port 8080 --workers 4
"""

from contextlib import asynccontextmanager
from typing import AsyncGenerator

from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException as StarletteHTTPException

from api.routes.categories import CATEGORIES_ERROR_MESSAGE
from api.routes.search import SEARCH_ERROR_MESSAGE
from config.database import MongoConnectionError, MongoDatabase
from config.settings import get_settings
from core.logging import configure_logging, get_logger
from core.middleware import RequestTracingMiddleware


logger = get_logger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncGenerator[None, None]:
    """
    Application lifespan handler.

    Startup: configure logging, open the MongoDB client.
    Shutdown: close the MongoDB client.
    """
    settings = get_settings()

    configure_logging(
        json_logs=settings.is_production,
        log_level="DEBUG" if settings.debug else "INFO",
    )

    logger.info(
        "Starting listing search API",
        environment=settings.environment,
        port=settings.port,
    )

    mongo = MongoDatabase(settings).connect()
    app.state.mongo = mongo

    try:
        yield
    finally:
        logger.info("Shutting down listing search API")
        mongo.close()
        app.state.mongo = None


_ERROR_MESSAGES = {
    404: "Not found",
    405: "Method not allowed",
}


async def http_error_handler(request: Request, exc: StarletteHTTPException) -> JSONResponse:
    """Render every HTTP error as the single {"error": ...} object."""
    return JSONResponse(
        status_code=exc.status_code,
        content={"error": _ERROR_MESSAGES.get(exc.status_code, str(exc.detail))},
        headers=getattr(exc, "headers", None),
    )


# Failures before a route's own handler runs (dependency resolution)
# still answer with that route's error body
_ROUTE_ERROR_MESSAGES = {
    "/api/search": SEARCH_ERROR_MESSAGE,
    "/api/categories": CATEGORIES_ERROR_MESSAGE,
}


def _server_error(request: Request) -> JSONResponse:
    message = _ROUTE_ERROR_MESSAGES.get(request.url.path, "Internal server error")
    return JSONResponse(status_code=500, content={"error": message})


async def database_error_handler(request: Request, exc: MongoConnectionError) -> JSONResponse:
    logger.error("Database unavailable", path=request.url.path, error=str(exc))
    return _server_error(request)


async def unhandled_error_handler(request: Request, exc: Exception) -> JSONResponse:
    logger.error(
        "Unhandled error",
        path=request.url.path,
        error=str(exc),
        error_type=type(exc).__name__,
    )
    return _server_error(request)


def create_app() -> FastAPI:
    """
    Create and configure the FastAPI application.

    Returns:
        Configured FastAPI application
    """
    settings = get_settings()

    app = FastAPI(
        title="Listing Search API",
        description="""
        Faceted search over marketplace listings.

        ## Main Endpoints

        - `GET /api/search` - Ranked, paginated listings plus facet counts
        - `GET /api/categories` - Categories and their attribute schemas

        ## Health Checks

        - `/health` - Basic health check
        - `/health/detailed` - Detailed health with MongoDB status
        - `/ready` - Kubernetes readiness probe
        - `/live` - Kubernetes liveness probe
        """,
        version="1.0.0",
        lifespan=lifespan,
        docs_url="/docs" if settings.is_development else None,
        redoc_url="/redoc" if settings.is_development else None,
    )

    # =========================================================================
    # Middleware (order matters - first added = outermost)
    # =========================================================================

    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.cors_origins,
        allow_credentials=True,
        allow_methods=["GET"],
        allow_headers=["*"],
    )

    app.add_middleware(RequestTracingMiddleware)

    app.add_exception_handler(StarletteHTTPException, http_error_handler)
    app.add_exception_handler(MongoConnectionError, database_error_handler)
    app.add_exception_handler(Exception, unhandled_error_handler)

    # =========================================================================
    # Routes
    # =========================================================================

    from api.routes.health import router as health_router
    app.include_router(health_router, tags=["Health"])

    from api.routes.search import router as search_router
    app.include_router(search_router)

    from api.routes.categories import router as categories_router
    app.include_router(categories_router)

    return app


# Create default app instance for uvicorn
# Usage: uvicorn api.app:app
app = create_app()
