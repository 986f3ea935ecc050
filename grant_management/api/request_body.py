import json
import logging
from typing import Any, TypeVar

from fastapi import Request
from pydantic import BaseModel, ValidationError

from grant_management.constants import OAuthErrorCode
from grant_management.core.exceptions import OAuthException

logger = logging.getLogger(__name__)

ModelT = TypeVar("ModelT", bound=BaseModel)

FORM_CONTENT_TYPES = ("application/x-www-form-urlencoded", "multipart/form-data")
LIST_FIELDS = ("authorization_details[]",)


async def read_body(request: Request) -> dict[str, Any]:
    """Read a form-encoded or JSON request body into a dict."""
    content_type = request.headers.get("content-type", "")
    if content_type.startswith(FORM_CONTENT_TYPES):
        form = await request.form()
        body: dict[str, Any] = {}
        for key in form.keys():
            values = form.getlist(key)
            if key in LIST_FIELDS:
                body[key.removesuffix("[]")] = [_load_json(value) for value in values]
            else:
                body[key] = values[-1]
        return body

    raw = await request.body()
    if not raw:
        return {}
    try:
        body = json.loads(raw)
    except json.JSONDecodeError as e:
        raise OAuthException(OAuthErrorCode.INVALID_REQUEST, "Request body is not valid JSON") from e
    if not isinstance(body, dict):
        raise OAuthException(OAuthErrorCode.INVALID_REQUEST, "Request body must be an object")
    if "authorization_details[]" in body:
        body["authorization_details"] = body.pop("authorization_details[]")
    return body


async def parse_body(request: Request, model: type[ModelT]) -> ModelT:
    return validate_params(request, model, await read_body(request))


def validate_params(request: Request, model: type[ModelT], body: dict[str, Any]) -> ModelT:
    try:
        return model.model_validate(body)
    except ValidationError as e:
        fields = ", ".join(".".join(str(part) for part in error["loc"]) for error in e.errors())
        logger.warning("Invalid %s body on %s: %s", model.__name__, request.url.path, fields)
        raise OAuthException(
            OAuthErrorCode.INVALID_REQUEST, f"Missing or invalid parameters: {fields}"
        ) from e


def _load_json(value: Any) -> Any:
    if not isinstance(value, str):
        return value
    try:
        return json.loads(value)
    except json.JSONDecodeError as e:
        raise OAuthException(
            OAuthErrorCode.INVALID_AUTHORIZATION_DETAILS,
            "authorization_details[] entries must be JSON objects",
        ) from e
