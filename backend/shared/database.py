"""PostgreSQL connection pool management shared by the API and the scripts."""

from __future__ import annotations

import asyncio
import logging
from collections.abc import AsyncGenerator
from dataclasses import dataclass, fields
from typing import Any, ClassVar

import asyncpg

logger = logging.getLogger(__name__)


@dataclass
class PoolConfig:
    """Database pool configuration with sensible defaults."""

    min_size: int = 1
    max_size: int = 5
    timeout: float = 10.0
    command_timeout: float = 30.0
    max_inactive_connection_lifetime: float = 300.0
    max_retries: int = 3
    retry_delay: float = 2.0
    ssl: str | None = None

    # - api: long-running server, keeps a warm connection
    # - cli: one collection run from cron, no idle connections
    _SERVICE_PRESETS: ClassVar[dict[str, dict]] = {
        "api": {"min_size": 1, "max_size": 10},
        "cli": {"min_size": 0, "max_size": 2, "max_retries": 1},
    }

    @classmethod
    def for_service(cls, service: str, **overrides) -> PoolConfig:
        """Create a PoolConfig from the service preset plus *overrides*.

        Unknown keys are ignored so settings objects can be splatted in.
        """
        valid_keys = {f.name for f in fields(cls) if not f.name.startswith("_")}
        preset = dict(cls._SERVICE_PRESETS.get(service, {}))
        preset.update(overrides)
        filtered = {k: v for k, v in preset.items() if k in valid_keys}
        return cls(**filtered)


class DatabaseManager:
    """Manages the asyncpg pool lifecycle with connect retries."""

    def __init__(self, database_url: str, config: PoolConfig | None = None):
        self.database_url = database_url
        self.config = config or PoolConfig()
        self._pool: asyncpg.Pool | None = None

    def _pool_kwargs(self) -> dict[str, Any]:
        cfg = self.config
        kwargs: dict[str, Any] = {
            "dsn": self.database_url,
            "min_size": cfg.min_size,
            "max_size": cfg.max_size,
            "timeout": cfg.timeout,
            "command_timeout": cfg.command_timeout,
            "max_inactive_connection_lifetime": cfg.max_inactive_connection_lifetime,
        }
        if cfg.ssl:
            kwargs["ssl"] = cfg.ssl
        return kwargs

    async def connect(self) -> None:
        """Create the pool, retrying with exponential backoff."""
        if self._pool is not None:
            logger.warning("Database pool already initialized")
            return

        cfg = self.config
        for attempt in range(1, cfg.max_retries + 1):
            pool: asyncpg.Pool | None = None
            try:
                pool = await asyncpg.create_pool(**self._pool_kwargs())

                async with pool.acquire() as conn:
                    await conn.fetchval("SELECT 1")

                # Published only once verified
                self._pool = pool
                logger.info(f"Database pool created (size={cfg.min_size}-{cfg.max_size})")
                return
            except asyncio.CancelledError:
                if pool is not None:
                    pool.terminate()
                raise
            except Exception as e:
                if pool is not None:
                    await pool.close()
                if attempt < cfg.max_retries:
                    delay = cfg.retry_delay * (2 ** (attempt - 1))
                    logger.warning(
                        f"Database connection attempt {attempt}/{cfg.max_retries} failed: "
                        f"{type(e).__name__}: {e}, retrying in {delay}s..."
                    )
                    await asyncio.sleep(delay)
                else:
                    logger.exception(
                        f"Database connection failed after {cfg.max_retries} attempts: "
                        f"{type(e).__name__}: {e}"
                    )
                    raise

    async def disconnect(self) -> None:
        """Close the pool."""
        if self._pool is None:
            return

        try:
            await self._pool.close()
            self._pool = None
            logger.info("Database pool closed")
        except Exception as e:
            logger.exception(f"Error closing database pool: {e}")

    async def check_health(self) -> bool:
        """Test if the pool can actually execute a query."""
        if self._pool is None:
            return False
        try:
            async with self._pool.acquire(timeout=2.0) as conn:
                await conn.fetchval("SELECT 1")
            return True
        except Exception:
            return False

    @property
    def is_connected(self) -> bool:
        return self._pool is not None

    @property
    def pool(self) -> asyncpg.Pool:
        """Get the connection pool. Raises if not initialized."""
        if self._pool is None:
            raise RuntimeError("Database pool not initialized. Call connect() first.")
        return self._pool

    async def get_connection(self) -> AsyncGenerator[asyncpg.Connection, None]:
        """Yield a connection from the pool (for dependency injection)."""
        async with self.pool.acquire() as conn:
            yield conn
