import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI
from fastapi.exceptions import RequestValidationError
from starlette.exceptions import HTTPException as StarletteHTTPException

from .core import errors
from .core.config import Settings, get_settings
from .core.logging import init_logging, request_context_middleware
from .db.dal import Database
from .db.schema import init_db
from .routers import convert, health, rates
from .services.rates.cache_service import RateCache, build_rate_cache


def create_app(
    settings_override: Settings | None = None, rate_cache: RateCache | None = None
) -> FastAPI:
    """Application factory.

    settings_override: pass an already constructed Settings instance for tests
    to isolate environment (e.g., temp DB). Falls back to cached get_settings().
    rate_cache: inject a prepared cache (e.g. with a fake provider); otherwise one
    is built from settings. Either way it is loaded on startup and persisted on
    shutdown.
    """
    settings = settings_override or get_settings()
    init_logging(debug=settings.debug)

    try:
        init_db(settings.db_path)  # type: ignore[arg-type]
    except Exception:
        # Failing to init DB is fatal; re-raise after logging
        logging.getLogger("unitconv").exception("failed to initialise database on startup")
        raise

    cache = rate_cache or build_rate_cache(settings, Database(settings.db_path))  # type: ignore[arg-type]

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        with cache:
            yield

    app = FastAPI(
        title=settings.app_name,
        debug=settings.debug,
        version=settings.version,
        lifespan=lifespan,
    )
    app.state.settings = settings
    app.state.rate_cache = cache

    # Middleware (request id / structured logging)
    app.middleware("http")(request_context_middleware)

    # Error handlers
    app.add_exception_handler(errors.UnitConvError, errors.conversion_error_handler)
    app.add_exception_handler(StarletteHTTPException, errors.not_found_handler)
    app.add_exception_handler(RequestValidationError, errors.validation_error_handler)
    app.add_exception_handler(Exception, errors.server_error_handler)

    # Routers
    app.include_router(health.router)
    app.include_router(convert.router)
    app.include_router(rates.router)

    @app.get("/")
    async def root():
        return {"message": "unitconv API", "version": settings.version}

    return app
