import json
import logging
from datetime import datetime, timezone
from typing import Any

from pydantic import ValidationError

from grant_management.constants import OAuthErrorCode
from grant_management.constants.enums import (
    AuthorizationRequestStatus,
    GrantManagementAction,
    GrantStatus,
)
from grant_management.core.exceptions import NotFoundException, OAuthException
from grant_management.core.settings import settings
from grant_management.dtos.authorization_request_dtos import CreateAuthorizationRequestDTO
from grant_management.dtos.grant_dtos import CreateGrantDTO, UpdateGrantDTO
from grant_management.models.authorization_detail import (
    AuthorizationDetailBase,
    parse_authorization_detail,
)
from grant_management.models.authorization_request import AuthorizationRequest
from grant_management.repositories.base import Store
from grant_management.schemas.consent import ConsentView
from grant_management.schemas.oauth import (
    PushedAuthorizationRequest,
    PushedAuthorizationResponse,
)
from grant_management.services.authorization_detail_aggregator import aggregate_details
from grant_management.services.consent_view import build_consent_view
from grant_management.services.grant_service import build_grant_response
from grant_management.utils.id_generator import (
    build_request_uri,
    generate_grant_id,
    generate_id,
    parse_request_uri,
)
from grant_management.utils.pkce import SUPPORTED_METHODS

logger = logging.getLogger(__name__)


def parse_authorization_details(
    raw: str | list[dict[str, Any]] | None,
) -> list[AuthorizationDetailBase]:
    """Parse the ``authorization_details`` parameter into typed details."""
    if raw is None or raw == "":
        return []
    if isinstance(raw, str):
        try:
            raw = json.loads(raw)
        except json.JSONDecodeError as e:
            raise OAuthException(
                OAuthErrorCode.INVALID_AUTHORIZATION_DETAILS,
                f"authorization_details is not valid JSON: {e.msg}",
            ) from e
    if not isinstance(raw, list):
        raise OAuthException(
            OAuthErrorCode.INVALID_AUTHORIZATION_DETAILS,
            "authorization_details must be a JSON array",
        )

    details = []
    for item in raw:
        if not item:
            continue
        if not isinstance(item, dict):
            raise OAuthException(
                OAuthErrorCode.INVALID_AUTHORIZATION_DETAILS,
                "Each authorization detail must be a JSON object",
            )
        try:
            details.append(parse_authorization_detail(item))
        except ValueError as e:
            # pydantic's ValidationError is a ValueError too
            raise OAuthException(
                OAuthErrorCode.INVALID_AUTHORIZATION_DETAILS, str(e).splitlines()[0]
            ) from e
    return details


def resolve_grant_management_action(
    requested: str | None, grant_id: str | None
) -> GrantManagementAction:
    if not requested:
        return GrantManagementAction.MERGE if grant_id else GrantManagementAction.CREATE
    try:
        return GrantManagementAction(requested)
    except ValueError:
        raise OAuthException(
            OAuthErrorCode.INVALID_REQUEST,
            f"Unsupported grant_management_action: {requested}",
        ) from None


class AuthorizationRequestService:

    def __init__(self, store: Store):
        self._store = store

    async def push(self, payload: PushedAuthorizationRequest) -> PushedAuthorizationResponse:
        if payload.response_type != "code":
            raise OAuthException(
                OAuthErrorCode.INVALID_REQUEST,
                f"Unsupported response_type: {payload.response_type}",
            )
        details = parse_authorization_details(payload.authorization_details)
        action = resolve_grant_management_action(
            payload.grant_management_action, payload.grant_id
        )
        challenge_method = self._resolve_challenge_method(payload)

        grant_id = payload.grant_id or generate_grant_id()
        request_id = generate_id("req")
        async with self._store.transaction(lock_key=grant_id):
            grant, created = await self._store.grants.create_if_absent(
                CreateGrantDTO(
                    id=grant_id,
                    client_id=payload.client_id,
                    subject=payload.subject,
                    actor=payload.requested_actor,
                )
            )
            if grant.client_id != payload.client_id:
                logger.warning(
                    "PAR for grant %s from foreign client %s", grant_id, payload.client_id
                )
                raise OAuthException(
                    OAuthErrorCode.INVALID_REQUEST,
                    "grant_id belongs to a different client",
                )
            if grant.status == GrantStatus.REVOKED.value:
                raise OAuthException(OAuthErrorCode.INVALID_REQUEST, "Grant has been revoked")

            await self._store.authorization_requests.create(
                request_id,
                CreateAuthorizationRequestDTO(
                    grant_id=grant_id,
                    client_id=payload.client_id,
                    redirect_uri=payload.redirect_uri,
                    response_type=payload.response_type,
                    scope=payload.scope,
                    state=payload.state,
                    authorization_details=details,
                    grant_management_action=action.value,
                    requested_actor=payload.requested_actor,
                    subject=payload.subject,
                    code_challenge=payload.code_challenge,
                    code_challenge_method=challenge_method,
                    expires_in=settings.par_expires_in,
                ),
            )

        if created:
            logger.info("Grant created: %s (client=%s)", grant_id, payload.client_id)
        logger.info(
            "Authorization request pushed: %s grant=%s action=%s details=%d",
            request_id,
            grant_id,
            action.value,
            len(details),
        )
        return PushedAuthorizationResponse(
            request_uri=build_request_uri(request_id),
            expires_in=settings.par_expires_in,
        )

    def _resolve_challenge_method(self, payload: PushedAuthorizationRequest) -> str | None:
        if not payload.code_challenge:
            if settings.require_pkce:
                raise OAuthException(OAuthErrorCode.INVALID_REQUEST, "code_challenge is required")
            return None
        method = payload.code_challenge_method or "plain"
        if method not in SUPPORTED_METHODS:
            raise OAuthException(
                OAuthErrorCode.INVALID_REQUEST,
                f"Unsupported code_challenge_method: {method}",
            )
        return method

    async def load_pending(self, request_id: str) -> AuthorizationRequest:
        """Fetch a request that can still be consented, expiring it if stale."""
        request = await self._store.authorization_requests.find_by_id(request_id)
        if request is None:
            logger.warning("Authorization request not found: %s", request_id)
            raise NotFoundException(
                "AUTHORIZATION_REQUEST_NOT_FOUND",
                f"Authorization request {request_id} not found",
            )
        if request.status == AuthorizationRequestStatus.PENDING.value and request.is_expired(
            datetime.now(timezone.utc)
        ):
            await self._store.authorization_requests.expire(request_id)
            logger.warning("Authorization request expired: %s", request_id)
            raise OAuthException(
                OAuthErrorCode.INVALID_REQUEST_URI, "The request_uri has expired"
            )
        if request.status != AuthorizationRequestStatus.PENDING.value:
            logger.warning("Authorization request %s is %s", request_id, request.status)
            raise OAuthException(
                OAuthErrorCode.INVALID_REQUEST_URI,
                f"The authorization request is {request.status}",
            )
        return request

    async def authorize(
        self,
        request_uri: str,
        client_id: str | None = None,
        caller_subject: str | None = None,
    ) -> ConsentView:
        request = await self.load_pending(parse_request_uri(request_uri))
        if client_id and client_id != request.client_id:
            logger.warning("Client mismatch on authorize for request %s", request.id)
            raise OAuthException(OAuthErrorCode.INVALID_CLIENT)
        if request.subject and caller_subject and request.subject != caller_subject:
            logger.warning("Subject mismatch on authorize for request %s", request.id)
            raise OAuthException(
                OAuthErrorCode.ACCESS_DENIED,
                "The request is bound to a different subject",
                status_code=403,
            )
        if caller_subject and not request.subject:
            request = await self._store.authorization_requests.bind_subject(
                request.id, caller_subject
            ) or request

        async with self._store.transaction(lock_key=request.grant_id):
            grant, _ = await self._store.grants.create_if_absent(
                CreateGrantDTO(
                    id=request.grant_id,
                    client_id=request.client_id,
                    subject=request.subject,
                    actor=request.requested_actor,
                )
            )
            if (request.subject and not grant.subject) or (
                request.requested_actor and not grant.actor
            ):
                grant = await self._store.grants.update(
                    grant.id,
                    UpdateGrantDTO(
                        subject=grant.subject or request.subject,
                        actor=grant.actor or request.requested_actor,
                    ),
                ) or grant

        records = await self._store.authorization_details.find_active_by_grant(grant.id)
        logger.info("Rendering consent for request %s grant=%s", request.id, grant.id)
        return build_consent_view(request, build_grant_response(grant, aggregate_details(records)))

    async def render_consent(self, request_id: str) -> ConsentView:
        request = await self._store.authorization_requests.find_by_id(request_id)
        if request is None:
            raise NotFoundException(
                "AUTHORIZATION_REQUEST_NOT_FOUND",
                f"Authorization request {request_id} not found",
            )
        grant = await self._store.grants.find_by_id(request.grant_id)
        if grant is None:
            raise NotFoundException("GRANT_NOT_FOUND", f"Grant {request.grant_id} not found")
        records = await self._store.authorization_details.find_active_by_grant(grant.id)
        return build_consent_view(request, build_grant_response(grant, aggregate_details(records)))
