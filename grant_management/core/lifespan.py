import logging
from collections.abc import AsyncGenerator
from contextlib import asynccontextmanager

from fastapi import FastAPI

from grant_management.constants.enums import StoreBackend
from grant_management.core.logging import setup_logging
from grant_management.core.settings import settings
from grant_management.database import db_pool

logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncGenerator[None, None]:
    setup_logging(settings.log_level)
    logger.info("Application startup initiated (store=%s)", settings.store_backend)
    if settings.store_backend == StoreBackend.POSTGRES.value:
        await db_pool.connect()
    yield
    logger.info("Application shutdown initiated")
    if settings.store_backend == StoreBackend.POSTGRES.value:
        await db_pool.close()
