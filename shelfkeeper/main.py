# 📄 File: shelfkeeper/main.py
#
# 🧭 Purpose (Layman Explanation):
# The main control center that starts the ShelfKeeper subscriptions service, connects the
# database, starts the daily item-limit check and makes everything ready to answer requests.
#
# 🧪 Purpose (Technical Summary):
# FastAPI application factory and entry point: lifespan (logging, database engine and
# sessions, reconciliation scheduler), middleware stack, v1 routers and exception handlers
# rendering the shared error envelope.
#
# 🔗 Dependencies:
# - FastAPI, uvicorn
# - shelfkeeper.shared.config.settings
# - shelfkeeper.shared.infrastructure.database
# - shelfkeeper.background_jobs.reconciliation_scheduler
#
# 🔄 Connected Modules / Calls From:
# - uvicorn server startup (shelfkeeper.main:app)
# - shelfkeeper-api console script
# - Docker container entry point

import logging
from contextlib import asynccontextmanager
from typing import AsyncGenerator

import uvicorn
from fastapi import FastAPI, Request, Response
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException as StarletteHTTPException

from shelfkeeper.shared.config.settings import get_settings
from shelfkeeper.shared.core.exceptions import ShelfKeeperException
from shelfkeeper.shared.infrastructure.database.connection import close_database, init_database
from shelfkeeper.shared.infrastructure.database.session import initialize_sessions, session_manager
from shelfkeeper.shared.utils.logging import log_shutdown_event, log_startup_event, setup_logging
from shelfkeeper.api.middleware import (
    AuthenticationMiddleware,
    ErrorHandlingMiddleware,
    RequestLoggingMiddleware,
    error_envelope,
    exception_envelope,
)
from shelfkeeper.api.v1.health import health_router
from shelfkeeper.api.v1.router import api_v1_router
from shelfkeeper.background_jobs.reconciliation_scheduler import ReconciliationScheduler

logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncGenerator[None, None]:
    """
    Application lifespan context manager.

    Startup: logging, database engine, session factory, reconciliation scheduler.
    Shutdown: drain the scheduler, then close the database.
    """
    settings = get_settings()
    setup_logging()
    log_startup_event(settings.APP_NAME, settings.APP_VERSION, extra={"environment": settings.ENVIRONMENT})

    scheduler = None
    try:
        await init_database()
        logger.info("✅ Database connection initialized")

        await initialize_sessions()
        logger.info("✅ Session manager initialized")

        if settings.RECONCILIATION_ENABLED:
            scheduler = ReconciliationScheduler(
                interval=settings.RECONCILIATION_INTERVAL,
                drain_timeout=settings.RECONCILIATION_DRAIN_TIMEOUT_SECONDS,
            )
            scheduler.start()
            app.state.reconciliation_scheduler = scheduler
            logger.info("✅ Reconciliation scheduler started")
        else:
            logger.info("Reconciliation scheduler disabled")

        logger.info("✅ ShelfKeeper subscriptions API startup complete")
        yield

    except Exception as e:
        logger.error(f"❌ Startup failed: {e}")
        raise

    finally:
        logger.info("🔄 ShelfKeeper subscriptions API shutting down...")

        if scheduler is not None:
            await scheduler.stop()
            app.state.reconciliation_scheduler = None

        session_manager.reset()
        await close_database()
        log_shutdown_event(settings.APP_NAME)


def create_application() -> FastAPI:
    """
    Application factory function.

    Creates and configures the FastAPI application with middleware, routers
    and exception handlers based on the current environment.
    """
    settings = get_settings()

    app = FastAPI(
        title=settings.APP_NAME,
        description=settings.APP_DESCRIPTION,
        version=settings.APP_VERSION,
        docs_url="/docs" if not settings.is_production else None,
        redoc_url="/redoc" if not settings.is_production else None,
        lifespan=lifespan,
    )
    app.state.reconciliation_scheduler = None

    # =========================================================================
    # MIDDLEWARE (last added runs first)
    # =========================================================================

    app.add_middleware(AuthenticationMiddleware)
    app.add_middleware(ErrorHandlingMiddleware)
    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.cors_origins_list,
        allow_credentials=settings.CORS_ALLOW_CREDENTIALS,
        allow_methods=["GET", "POST", "PATCH", "OPTIONS"],
        allow_headers=["Authorization", "Content-Type", "X-Access-Token", "X-Request-ID"],
        expose_headers=["X-Request-ID"],
    )
    app.add_middleware(RequestLoggingMiddleware)

    # =========================================================================
    # ROUTERS
    # =========================================================================

    # Probes are also served unprefixed for load balancers.
    app.include_router(health_router, tags=["Health Check"])
    app.include_router(api_v1_router, prefix="/api/v1")

    # =========================================================================
    # EXCEPTION HANDLERS
    # =========================================================================

    @app.exception_handler(ShelfKeeperException)
    async def shelfkeeper_exception_handler(request: Request, exc: ShelfKeeperException) -> JSONResponse:
        if exc.status_code >= 500:
            logger.error(f"{exc.error_code}: {exc.message}")
        return exception_envelope(request, exc)

    @app.exception_handler(RequestValidationError)
    async def request_validation_handler(request: Request, exc: RequestValidationError) -> JSONResponse:
        errors = [
            {"field": ".".join(str(part) for part in error.get("loc", ())), "message": error.get("msg", "")}
            for error in exc.errors()
        ]
        return error_envelope(request, 422, "VALIDATION_ERROR", "Request validation failed", {"errors": errors})

    @app.exception_handler(StarletteHTTPException)
    async def http_exception_handler(request: Request, exc: StarletteHTTPException) -> JSONResponse:
        message = exc.detail if isinstance(exc.detail, str) else "Request failed"
        code = "NOT_FOUND" if exc.status_code == 404 else "HTTP_ERROR"
        return error_envelope(request, exc.status_code, code, message, {"path": request.url.path})

    # =========================================================================
    # ROOT ENDPOINTS
    # =========================================================================

    @app.get("/", include_in_schema=False)
    async def root() -> dict:
        return {
            "name": settings.APP_NAME,
            "version": settings.APP_VERSION,
            "description": settings.APP_DESCRIPTION,
            "health_check": "/health",
            "api_base": "/api/v1",
        }

    @app.get("/favicon.ico", include_in_schema=False)
    async def favicon():
        return Response(status_code=204)

    return app


# Create the FastAPI application
app = create_application()


def main():
    """
    Run the application with uvicorn (``shelfkeeper-api`` console script).
    """
    settings = get_settings()
    uvicorn.run(
        "shelfkeeper.main:app",
        host=settings.HOST,
        port=settings.PORT,
        reload=settings.RELOAD and settings.is_development,
        log_level=settings.LOG_LEVEL.lower(),
        workers=1 if settings.RELOAD else settings.WORKERS,
    )


if __name__ == "__main__":
    main()
