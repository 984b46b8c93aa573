"""FastAPI application with lifespan management."""

import asyncio
from collections.abc import AsyncGenerator
from contextlib import asynccontextmanager
from datetime import UTC, datetime

import structlog
from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from sqlalchemy import text
from sqlalchemy.exc import OperationalError, SQLAlchemyError

from course_media.api.middleware import RequestLoggingMiddleware
from course_media.api.routes.courses import router as courses_router
from course_media.api.routes.videos import router as videos_router
from course_media.config import settings
from course_media.lifecycle import MediaLifecycle
from course_media.logging_config import configure_logging
from course_media.storage.database import async_session, engine
from course_media.storage.files import LocalFileStorage
from course_media.video.streaming import LocalVideoStreamer
from course_media.video.tokens import VideoTokenSigner

logger = structlog.get_logger()


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncGenerator[None]:
    """Manage application startup and shutdown.

    Startup:
        - Configure logging.
        - Build file storage, video signer/streamer and media lifecycle.
    Shutdown:
        - Dispose database engine (close connection pool).
    """
    configure_logging(
        environment=str(settings.environment),
        log_level=settings.log_level,
    )

    storage = LocalFileStorage(settings.public_dir, settings.static_url_prefix)
    app.state.storage = storage
    app.state.video_signer = VideoTokenSigner(
        settings.video_signing_secret,
        settings.video_token_ttl_ms,
    )
    app.state.video_streamer = LocalVideoStreamer(
        storage, chunk_bytes=settings.stream_chunk_bytes
    )
    app.state.lifecycle = MediaLifecycle(async_session, storage)

    logger.info(
        "app_started",
        environment=str(settings.environment),
        public_dir=str(storage.public_dir),
    )
    yield

    await engine.dispose()
    logger.info("app_stopped")


app = FastAPI(
    title="Course Media",
    description="Signed video delivery and media lifecycle for online courses",
    version="0.1.0",
    lifespan=lifespan,
    debug=settings.is_dev,
)

app.add_middleware(RequestLoggingMiddleware)
app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.cors_allowed_origins,
    allow_credentials=settings.cors_allow_credentials,
    allow_methods=settings.cors_allowed_methods,
    allow_headers=settings.cors_allowed_headers,
    expose_headers=["Content-Range", "Accept-Ranges", "Content-Length"],
)


HEALTH_CHECK_TIMEOUT = 5.0


@app.get("/health")
async def health() -> JSONResponse:
    """Deep health check: DB connectivity and the media directory."""
    checks: dict[str, str] = {}
    overall = "ok"

    # DB check
    try:
        async with async_session() as session:
            await asyncio.wait_for(
                session.execute(text("SELECT 1")),
                timeout=HEALTH_CHECK_TIMEOUT,
            )
        checks["db"] = "ok"
    except (TimeoutError, OperationalError, SQLAlchemyError) as e:
        logger.warning("health_check_db_error", error=type(e).__name__)
        checks["db"] = f"error: {type(e).__name__}"
        overall = "degraded"
    except Exception as e:
        logger.error("health_check_db_unexpected", error=str(e), exc_info=True)
        checks["db"] = f"error: {type(e).__name__}"
        overall = "degraded"

    # Media directory check
    storage: LocalFileStorage = app.state.storage
    if storage.public_dir.is_dir():
        checks["storage"] = "ok"
    else:
        logger.warning("health_check_storage_missing", path=str(storage.public_dir))
        checks["storage"] = "error: public_dir missing"
        overall = "degraded"

    status_code = 200 if overall == "ok" else 503
    return JSONResponse(
        status_code=status_code,
        content={
            "status": overall,
            "checks": checks,
            "timestamp": datetime.now(UTC).isoformat(timespec="seconds"),
        },
    )


@app.exception_handler(Exception)
async def unhandled_exception_handler(
    request: Request,
    exc: Exception,
) -> JSONResponse:
    """Catch-all handler for unhandled exceptions."""
    logger.error("unhandled_exception", exc_info=exc, path=request.url.path)
    return JSONResponse(
        status_code=500,
        content={"detail": "Internal server error"},
    )


app.include_router(videos_router)
app.include_router(courses_router, prefix="/api/v1")
