import logging
from datetime import datetime, timezone
from urllib.parse import urlencode

from grant_management.constants import OAuthErrorCode
from grant_management.constants.enums import GrantStatus
from grant_management.core.exceptions import NotFoundException, OAuthException
from grant_management.dtos.authorization_detail_dtos import CreateAuthorizationDetailDTO
from grant_management.dtos.consent_dtos import CreateConsentDTO
from grant_management.dtos.grant_dtos import UpdateGrantDTO
from grant_management.models.authorization_request import AuthorizationRequest
from grant_management.models.consent import Consent
from grant_management.repositories.base import Store
from grant_management.schemas.consent import ConsentSubmission
from grant_management.services.authorization_detail_aggregator import (
    approve_details,
    resets_grant,
    resolve_scope,
)
from grant_management.services.authorization_request_service import (
    AuthorizationRequestService,
    parse_authorization_details,
)
from grant_management.services.permission_flattener import flatten_records
from grant_management.utils.id_generator import generate_id

logger = logging.getLogger(__name__)


def build_redirect_location(request: AuthorizationRequest) -> str:
    params = {"code": request.id}
    if request.state:
        params["state"] = request.state
    separator = "&" if "?" in request.redirect_uri else "?"
    return f"{request.redirect_uri}{separator}{urlencode(params)}"


class ConsentService:

    def __init__(self, store: Store, authorization_request_service: AuthorizationRequestService):
        self._store = store
        self._authorization_request_service = authorization_request_service

    async def submit_consent(
        self,
        request_id: str,
        submission: ConsentSubmission,
        caller_subject: str | None = None,
    ) -> str:
        """Record the subject's approval and return the redirect location."""
        if submission.request_id and submission.request_id != request_id:
            raise OAuthException(OAuthErrorCode.INVALID_REQUEST, "request_ID does not match")

        request = await self._authorization_request_service.load_pending(request_id)
        if submission.grant_id and submission.grant_id != request.grant_id:
            raise OAuthException(OAuthErrorCode.INVALID_REQUEST, "grant_id does not match")
        if submission.client_id and submission.client_id != request.client_id:
            raise OAuthException(OAuthErrorCode.INVALID_CLIENT)

        subject = submission.subject or caller_subject or request.subject
        if not subject:
            raise OAuthException(OAuthErrorCode.INVALID_REQUEST, "subject is required")
        bound = request.subject or caller_subject
        if bound and bound != subject:
            logger.warning("Consent for request %s by unexpected subject", request_id)
            raise OAuthException(
                OAuthErrorCode.ACCESS_DENIED,
                "The request is bound to a different subject",
                status_code=403,
            )

        submitted = parse_authorization_details(submission.authorization_details)
        approved = approve_details(request.authorization_details, submitted)
        scope = request.scope if submission.scope is None else submission.scope

        consent = await self._record_consent(request, subject, scope, approved)
        logger.info(
            "Consent appended: %s grant=%s action=%s previous=%s details=%d",
            consent.id,
            consent.grant_id,
            consent.grant_management_action,
            consent.previous_consent_id,
            len(approved),
        )
        return build_redirect_location(request)

    async def _record_consent(
        self,
        request: AuthorizationRequest,
        subject: str,
        scope: str,
        approved: list,
    ) -> Consent:
        grant_id = request.grant_id
        action = request.grant_management_action
        store = self._store
        async with store.transaction(lock_key=grant_id):
            grant = await store.grants.find_by_id(grant_id)
            if grant is None:
                raise NotFoundException("GRANT_NOT_FOUND", f"Grant {grant_id} not found")
            if grant.status != GrantStatus.ACTIVE.value:
                raise OAuthException(OAuthErrorCode.INVALID_GRANT, "Grant has been revoked")

            if not await store.authorization_requests.mark_consented(
                request.id, datetime.now(timezone.utc)
            ):
                raise OAuthException(
                    OAuthErrorCode.INVALID_REQUEST_URI, "The authorization request was already used"
                )

            consent = await store.consents.append(
                generate_id("cns"),
                CreateConsentDTO(
                    grant_id=grant_id,
                    request_id=request.id,
                    subject=subject,
                    scope=scope,
                    grant_management_action=action,
                ),
            )
            if resets_grant(action):
                superseded = await store.authorization_details.deactivate_by_grant(grant_id)
                if superseded:
                    logger.info("Superseded %d details on grant %s", superseded, grant_id)

            offset = len(await store.authorization_details.find_active_by_grant(grant_id))
            await store.authorization_details.create_many(
                [
                    CreateAuthorizationDetailDTO(
                        consent_id=consent.id,
                        grant_id=grant_id,
                        request_id=request.id,
                        identifier=detail.key(offset + index),
                        detail=detail,
                    )
                    for index, detail in enumerate(approved)
                ]
            )
            await store.grants.update(
                grant_id,
                UpdateGrantDTO(
                    scope=resolve_scope(grant.scope, scope, action),
                    subject=grant.subject or subject,
                    actor=grant.actor or request.requested_actor,
                ),
            )
            records = await store.authorization_details.find_active_by_grant(grant_id)
            await store.permissions.replace_for_grant(grant_id, flatten_records(records))
        return consent
