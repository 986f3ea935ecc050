import logging

import asyncpg

from grant_management.core.exceptions import AppException
from grant_management.core.settings import settings
from grant_management.database.schema import apply_schema

logger = logging.getLogger(__name__)


class DatabaseUnavailableException(AppException):
    def __init__(self, message: str):
        super().__init__("DATABASE_UNAVAILABLE", message, status_code=503)


class GrantStorePool:
    """asyncpg pool backing the PostgreSQL store; the schema is applied on connect."""

    def __init__(self, dsn_params: dict, min_size: int = 1, max_size: int = 10):
        self._dsn_params = dsn_params
        self._min_size = min_size
        self._max_size = max_size
        self._pool: asyncpg.Pool | None = None

    @property
    def connected(self) -> bool:
        return self._pool is not None and not self._pool.is_closing()

    async def connect(self) -> None:
        if self._pool is not None:
            return
        database = self._dsn_params.get("database")
        try:
            pool = await asyncpg.create_pool(
                **self._dsn_params, min_size=self._min_size, max_size=self._max_size
            )
            async with pool.acquire() as conn:
                await apply_schema(conn)
        except (OSError, asyncpg.PostgresError) as e:
            logger.error("Grant store unavailable (%s): %s", database, e)
            raise DatabaseUnavailableException(f"Database connection failed: {e}") from e
        self._pool = pool
        logger.info("Grant store pool ready (%s, %d-%d)", database, self._min_size, self._max_size)

    async def close(self) -> None:
        if self._pool is None:
            return
        await self._pool.close()
        self._pool = None
        logger.info("Grant store pool closed")

    def acquire(self) -> asyncpg.pool.PoolAcquireContext:
        if self._pool is None:
            raise DatabaseUnavailableException("Grant store pool is not connected")
        return self._pool.acquire()


db_pool = GrantStorePool(
    {
        "host": settings.database_host,
        "port": settings.database_port,
        "user": settings.database_user,
        "password": settings.database_password,
        "database": settings.database_name,
    },
    min_size=settings.database_pool_min_size,
    max_size=settings.database_pool_max_size,
)
