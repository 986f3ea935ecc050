import logging

import uvicorn
from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from grant_management.api import api_router
from grant_management.constants.enums import StoreBackend
from grant_management.core.exceptions import AppException, OAuthException
from grant_management.core.lifespan import lifespan
from grant_management.core.settings import settings
from grant_management.database import db_pool
from grant_management.schemas.common import create_error_response, create_oauth_error_response

logger = logging.getLogger(__name__)

app = FastAPI(
    title=settings.app_name,
    version=settings.app_version,
    debug=settings.debug,
    lifespan=lifespan,
)


@app.exception_handler(AppException)
async def app_exception_handler(request: Request, exc: AppException) -> JSONResponse:
    logger.warning(
        "AppException on %s %s: code=%s message=%s",
        request.method,
        request.url.path,
        exc.code,
        exc.message,
    )
    return create_error_response(
        code=exc.code,
        message=exc.message,
        status_code=exc.status_code,
    )


@app.exception_handler(OAuthException)
async def oauth_exception_handler(request: Request, exc: OAuthException) -> JSONResponse:
    logger.warning(
        "OAuthException on %s %s: error=%s description=%s",
        request.method,
        request.url.path,
        exc.error.value,
        exc.description,
    )
    return create_oauth_error_response(
        error=exc.error.value,
        description=exc.description,
        status_code=exc.status_code,
    )


@app.exception_handler(RequestValidationError)
async def validation_exception_handler(
    request: Request, exc: RequestValidationError
) -> JSONResponse:
    logger.warning(
        "Validation error on %s %s: %s",
        request.method,
        request.url.path,
        exc.errors(),
    )
    return create_error_response(
        code="VALIDATION_ERROR",
        message="Request validation failed",
        status_code=400,
    )


@app.exception_handler(Exception)
async def unhandled_exception_handler(request: Request, exc: Exception) -> JSONResponse:
    logger.exception(
        "Unhandled exception on %s %s: %s",
        request.method,
        request.url.path,
        exc,
    )
    return create_error_response(
        code="INTERNAL_ERROR",
        message="An unexpected error occurred",
        status_code=500,
    )


app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.allowed_origin_list,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

app.include_router(api_router)


@app.get("/health")
async def health_check() -> dict[str, str]:
    if settings.store_backend == StoreBackend.POSTGRES.value and not db_pool.connected:
        return {"status": "degraded", "store": settings.store_backend}
    return {"status": "healthy", "store": settings.store_backend}


def main() -> None:
    uvicorn.run(
        "grant_management.main:app",
        host="localhost",
        port=8000,
        reload=settings.debug,
    )


if __name__ == "__main__":
    main()
