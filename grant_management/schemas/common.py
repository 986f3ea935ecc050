import logging
from datetime import datetime, timezone
from typing import Generic, TypeVar
from uuid import uuid4

from fastapi.responses import JSONResponse
from pydantic import BaseModel

logger = logging.getLogger(__name__)

T = TypeVar("T")


class MetaResponse(BaseModel):
    request_id: str
    timestamp: datetime


class ErrorResponse(BaseModel):
    code: str
    message: str
    target: str | None = None


class ApiResponse(BaseModel, Generic[T]):
    meta: MetaResponse
    data: T | None = None
    error: ErrorResponse | None = None


class OAuthErrorResponse(BaseModel):
    error: str
    error_description: str | None = None


def create_error_response(
    code: str, message: str, target: str | None = None, status_code: int = 400
) -> JSONResponse:
    request_id = str(uuid4())
    response = ApiResponse(
        meta=MetaResponse(
            request_id=request_id,
            timestamp=datetime.now(timezone.utc),
        ),
        data=None,
        error=ErrorResponse(code=code, message=message, target=target),
    )
    logger.warning(
        "Error response [%s] status=%d code=%s target=%s message=%s",
        request_id,
        status_code,
        code,
        target,
        message,
    )
    return JSONResponse(
        status_code=status_code,
        content=response.model_dump(mode="json"),
    )


def create_oauth_error_response(
    error: str, description: str | None, status_code: int = 400
) -> JSONResponse:
    logger.warning(
        "OAuth error response status=%d error=%s description=%s",
        status_code,
        error,
        description,
    )
    return JSONResponse(
        status_code=status_code,
        content=OAuthErrorResponse(error=error, error_description=description).model_dump(),
        headers={"Cache-Control": "no-store"},
    )
