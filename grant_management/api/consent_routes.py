import logging

from fastapi import APIRouter, Request
from fastapi.responses import JSONResponse, RedirectResponse

from grant_management.core.dependencies import (
    AuthorizationRequestServiceDep,
    CallerContextDep,
    ConsentServiceDep,
)
from grant_management.schemas.consent import ConsentSubmission, ConsentView

from grant_management.api.request_body import parse_body

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/AuthorizationRequests", tags=["Consent"])


@router.get("/{request_id}", response_model=ConsentView, summary="Read a pushed request")
async def get_authorization_request(
    request_id: str,
    authorization_request_service: AuthorizationRequestServiceDep,
) -> JSONResponse:
    view = await authorization_request_service.render_consent(request_id)
    return JSONResponse(content=view.model_dump(mode="json", by_alias=True))


@router.put(
    "/{request_id}/consent",
    status_code=301,
    summary="Record the subject's consent and redirect with the code",
)
async def submit_consent(
    request_id: str,
    request: Request,
    consent_service: ConsentServiceDep,
    caller: CallerContextDep,
) -> RedirectResponse:
    submission = await parse_body(request, ConsentSubmission)
    location = await consent_service.submit_consent(request_id, submission, caller.subject)
    return RedirectResponse(url=location, status_code=301)
