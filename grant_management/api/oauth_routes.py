import logging

from fastapi import APIRouter, Request
from fastapi.responses import HTMLResponse, JSONResponse

from grant_management.constants.enums import AuthorizationDetailType, GrantManagementAction
from grant_management.core.dependencies import (
    AuthorizationRequestServiceDep,
    CallerContextDep,
    TokenIssuerServiceDep,
)
from grant_management.core.settings import settings
from grant_management.schemas.consent import ConsentView
from grant_management.schemas.oauth import (
    AuthorizationServerMetadata,
    AuthorizeRequest,
    PushedAuthorizationRequest,
    PushedAuthorizationResponse,
    TokenRequest,
    TokenResponse,
)
from grant_management.utils.consent_page import render_consent_page
from grant_management.utils.pkce import SUPPORTED_METHODS

from grant_management.api.request_body import parse_body, validate_params

logger = logging.getLogger(__name__)

router = APIRouter(tags=["OAuth"])

NO_STORE = {"Cache-Control": "no-store"}


def build_metadata() -> AuthorizationServerMetadata:
    issuer = settings.issuer_url.rstrip("/")
    return AuthorizationServerMetadata(
        issuer=issuer,
        authorization_endpoint=f"{issuer}/authorize",
        token_endpoint=f"{issuer}/token",
        pushed_authorization_request_endpoint=f"{issuer}/par",
        grant_management_endpoint=f"{issuer}/grants",
        authorization_details_types_supported=[t.value for t in AuthorizationDetailType],
        grant_types_supported=["authorization_code"],
        response_types_supported=["code"],
        code_challenge_methods_supported=list(SUPPORTED_METHODS),
        grant_management_actions_supported=[a.value for a in GrantManagementAction],
    )


def _wants_json(request: Request) -> bool:
    return "application/json" in request.headers.get("accept", "")


def _render_consent(request: Request, view: ConsentView) -> JSONResponse | HTMLResponse:
    if _wants_json(request):
        return JSONResponse(content=view.model_dump(mode="json", by_alias=True), headers=NO_STORE)
    return HTMLResponse(content=render_consent_page(view), headers=NO_STORE)


@router.post(
    "/par",
    response_model=PushedAuthorizationResponse,
    status_code=201,
    summary="Push an authorization request",
)
async def push_authorization_request(
    request: Request,
    authorization_request_service: AuthorizationRequestServiceDep,
) -> JSONResponse:
    payload = await parse_body(request, PushedAuthorizationRequest)
    result = await authorization_request_service.push(payload)
    return JSONResponse(status_code=201, content=result.model_dump(), headers=NO_STORE)


@router.post(
    "/authorize",
    response_model=None,
    summary="Render the consent view for a pushed request",
)
async def authorize(
    request: Request,
    authorization_request_service: AuthorizationRequestServiceDep,
    caller: CallerContextDep,
) -> JSONResponse | HTMLResponse:
    payload = await parse_body(request, AuthorizeRequest)
    view = await authorization_request_service.authorize(
        payload.request_uri, payload.client_id, caller.subject
    )
    return _render_consent(request, view)


@router.get(
    "/authorize",
    response_model=None,
    summary="Render the consent view for a pushed request",
)
async def authorize_redirect(
    request: Request,
    authorization_request_service: AuthorizationRequestServiceDep,
    caller: CallerContextDep,
) -> JSONResponse | HTMLResponse:
    payload = validate_params(request, AuthorizeRequest, dict(request.query_params))
    view = await authorization_request_service.authorize(
        payload.request_uri, payload.client_id, caller.subject
    )
    return _render_consent(request, view)


@router.post("/token", response_model=TokenResponse, summary="Exchange an authorization code")
async def token(
    request: Request,
    token_issuer_service: TokenIssuerServiceDep,
) -> JSONResponse:
    payload = await parse_body(request, TokenRequest)
    result = await token_issuer_service.exchange_code(payload)
    return JSONResponse(content=result.model_dump(mode="json", by_alias=True), headers=NO_STORE)


@router.get("/metadata", response_model=AuthorizationServerMetadata)
@router.post("/metadata", response_model=AuthorizationServerMetadata)
@router.get(
    "/.well-known/oauth-authorization-server",
    response_model=AuthorizationServerMetadata,
    summary="Authorization server metadata",
)
async def metadata() -> AuthorizationServerMetadata:
    return build_metadata()
