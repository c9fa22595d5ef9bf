"""FastAPI application factory"""

import asyncio
import logging
import time
from collections.abc import AsyncGenerator
from contextlib import asynccontextmanager

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from api.core.config import get_settings
from api.core.database import get_database_manager, init_database_manager
from api.core.dependencies import close_stats_api
from api.core.logging import setup_logging
from api.routers import stats_router

logger = logging.getLogger(__name__)

_start_time: float = 0.0
_db_retry_task: asyncio.Task | None = None


async def _db_retry_loop(db_manager) -> None:
    """Retry the DB connection in the background after a failed startup."""
    delay = 5
    max_delay = 60
    while not db_manager.is_connected:
        await asyncio.sleep(delay)
        try:
            await db_manager.connect()
            logger.info("Database connected (background retry)")
        except Exception as e:
            delay = min(delay * 2, max_delay)
            logger.warning(
                f"DB background retry failed: {type(e).__name__}: {e}, next retry in {delay}s"
            )


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncGenerator[None, None]:
    """Handle startup and shutdown"""
    global _start_time, _db_retry_task
    _start_time = time.time()

    settings = get_settings()
    logger.info(f"Starting stats API server ({settings.environment})")

    db_manager = init_database_manager(settings.database_url, ssl=settings.database_ssl)
    try:
        await asyncio.wait_for(db_manager.connect(), timeout=30)
    except Exception as e:
        logger.error(
            f"DB connection failed during startup: {type(e).__name__}: {e}, "
            "retrying in background"
        )
        _db_retry_task = asyncio.create_task(_db_retry_loop(db_manager))

    yield

    logger.info("Shutting down stats API server")
    if _db_retry_task:
        _db_retry_task.cancel()
    await close_stats_api()
    await db_manager.disconnect()


def create_app() -> FastAPI:
    """Create and configure FastAPI application"""
    settings = get_settings()

    setup_logging(settings)

    app = FastAPI(
        title="Stats API",
        description="Daily collection of analysis stats",
        version="1.0.0",
        lifespan=lifespan,
        docs_url="/docs" if settings.is_development else None,
        redoc_url="/redoc" if settings.is_development else None,
    )

    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.cors_origins,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    app.include_router(stats_router.router)

    @app.get("/health")
    async def health():
        """Liveness check (no DB dependency)"""
        return {"status": "healthy", "uptime_seconds": int(time.time() - _start_time)}

    @app.get("/status")
    async def status():
        """Readiness check, includes the DB health"""
        db_ok = await get_database_manager().check_health()
        return {
            "service": "stats-api",
            "uptime_seconds": int(time.time() - _start_time),
            "db_connected": db_ok,
            "environment": settings.environment,
        }

    return app
