"""FastAPI application entry point."""

from contextlib import asynccontextmanager
from typing import AsyncGenerator

from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from redis.exceptions import RedisError
from sqlalchemy.exc import IntegrityError, SQLAlchemyError

from app.config import settings
from app.core.database import check_db_connection, close_db
from app.core.exceptions import AppException, DatabaseError
from app.core.integrity import translate_integrity_error
from app.core.logging import get_logger, setup_logging
from app.core.redis import close_redis, init_redis
from app.core.usage import validate_usage_rules
from app.middleware.request_logging import RequestLoggingMiddleware

# Setup logging on module load
setup_logging()
logger = get_logger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncGenerator[None, None]:
    """Application lifespan manager."""
    logger.info(
        "application_starting",
        app_name=settings.app_name,
        version=settings.app_version,
        environment=settings.environment,
    )

    if await check_db_connection():
        logger.info("database_connected")
    else:
        logger.error("database_connection_failed")

    # Without Redis logout cannot revoke tokens; everything else works
    try:
        await init_redis()
    except (RedisError, OSError) as e:
        logger.warning("redis_init_failed", error=str(e))

    yield

    logger.info("application_shutting_down")
    await close_redis()
    await close_db()
    logger.info("application_stopped")


def create_app() -> FastAPI:
    """Create and configure FastAPI application."""
    app = FastAPI(
        title=settings.app_name,
        version=settings.app_version,
        description="Backend for a technology review and news site",
        docs_url="/docs" if not settings.is_production else None,
        redoc_url="/redoc" if not settings.is_production else None,
        openapi_url="/openapi.json" if not settings.is_production else None,
        lifespan=lifespan,
    )

    _setup_middleware(app)
    _setup_exception_handlers(app)
    _setup_routers(app)

    # All models are imported by now; a broken rule table must stop startup
    validate_usage_rules()

    return app


def _setup_middleware(app: FastAPI) -> None:
    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.cors_origins,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    # Added last so it wraps everything and logs all requests
    app.add_middleware(RequestLoggingMiddleware)


def _problem_response(request: Request, exc: AppException) -> JSONResponse:
    error_detail = exc.detail
    if isinstance(error_detail, dict):
        error_detail["instance"] = str(request.url.path)

    return JSONResponse(
        status_code=exc.status_code,
        content=error_detail,
        headers={"Content-Type": "application/problem+json"},
    )


def _setup_exception_handlers(app: FastAPI) -> None:
    """Configure global exception handlers (RFC 7807 problem details)."""

    @app.exception_handler(AppException)
    async def app_exception_handler(request: Request, exc: AppException) -> JSONResponse:
        return _problem_response(request, exc)

    @app.exception_handler(IntegrityError)
    async def integrity_exception_handler(request: Request, exc: IntegrityError) -> JSONResponse:
        translated = translate_integrity_error(exc)
        if translated is None:
            logger.exception("database_error", error=str(exc), path=request.url.path)
            return _problem_response(request, DatabaseError())

        logger.info(
            "constraint_violation",
            error_code=translated.error_code,
            path=request.url.path,
        )
        return _problem_response(request, translated)

    @app.exception_handler(SQLAlchemyError)
    async def database_exception_handler(request: Request, exc: SQLAlchemyError) -> JSONResponse:
        logger.exception("database_error", error=str(exc), path=request.url.path)
        return _problem_response(request, DatabaseError())

    @app.exception_handler(Exception)
    async def general_exception_handler(request: Request, exc: Exception) -> JSONResponse:
        logger.exception("unhandled_exception", error=str(exc), path=request.url.path)

        return JSONResponse(
            status_code=500,
            content={
                "type": "https://api.techreview.local/errors/internal_error",
                "title": "Internal Server Error",
                "status": 500,
                "detail": "An unexpected error occurred" if settings.is_production else str(exc),
                "instance": str(request.url.path),
            },
            headers={"Content-Type": "application/problem+json"},
        )


def _setup_routers(app: FastAPI) -> None:
    """Register API routers."""
    from app.modules.auth.router import router as auth_router
    from app.modules.catalog.router import router as catalog_router
    from app.modules.content.router import router as content_router
    from app.modules.health.router import router as health_router

    # Health checks (no prefix)
    app.include_router(health_router, tags=["Health"])

    app.include_router(
        auth_router,
        prefix=f"{settings.api_prefix}/auth",
        tags=["Authentication"],
    )
    app.include_router(
        catalog_router,
        prefix=settings.api_prefix,
    )
    app.include_router(
        content_router,
        prefix=settings.api_prefix,
    )


# Create app instance
app = create_app()
