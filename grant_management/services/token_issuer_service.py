import logging
from datetime import datetime, timezone

from grant_management.constants import OAuthErrorCode
from grant_management.constants.enums import AuthorizationRequestStatus, GrantStatus
from grant_management.core.exceptions import OAuthException
from grant_management.core.settings import settings
from grant_management.repositories.base import Store
from grant_management.schemas.oauth import TokenRequest, TokenResponse
from grant_management.services.authorization_detail_aggregator import aggregate_details
from grant_management.utils.id_generator import generate_access_token
from grant_management.utils.pkce import verify_code_verifier

logger = logging.getLogger(__name__)

AUTHORIZATION_CODE_GRANT = "authorization_code"


def _invalid_grant(description: str) -> OAuthException:
    logger.warning("Token request rejected: %s", description)
    return OAuthException(OAuthErrorCode.INVALID_GRANT, description)


class TokenIssuerService:

    def __init__(self, store: Store):
        self._store = store

    async def exchange_code(self, payload: TokenRequest) -> TokenResponse:
        if payload.grant_type != AUTHORIZATION_CODE_GRANT:
            logger.warning("Unsupported grant_type: %s", payload.grant_type)
            raise OAuthException(OAuthErrorCode.UNSUPPORTED_GRANT_TYPE)
        if not payload.code:
            raise OAuthException(OAuthErrorCode.INVALID_REQUEST, "code is required")

        request = await self._store.authorization_requests.find_by_id(payload.code)
        if request is None:
            raise _invalid_grant("Unknown authorization code")
        if request.status != AuthorizationRequestStatus.CONSENTED.value:
            raise _invalid_grant("Authorization code has not been approved")
        if payload.client_id and payload.client_id != request.client_id:
            raise _invalid_grant("Authorization code was issued to another client")
        if payload.redirect_uri and payload.redirect_uri != request.redirect_uri:
            raise _invalid_grant("redirect_uri does not match the authorization request")
        if request.code_challenge:
            if not payload.code_verifier or not verify_code_verifier(
                payload.code_verifier, request.code_challenge, request.code_challenge_method
            ):
                raise _invalid_grant("PKCE verification failed")

        grant = await self._store.grants.find_by_id(request.grant_id)
        if grant is None:
            raise _invalid_grant("Grant not found")
        if grant.status != GrantStatus.ACTIVE.value:
            raise _invalid_grant("Grant has been revoked")

        if not await self._store.authorization_requests.consume_code(
            request.id, datetime.now(timezone.utc)
        ):
            raise _invalid_grant("Authorization code has already been used")

        records = await self._store.authorization_details.find_active_by_grant(grant.id)
        logger.info("Token issued: grant=%s client=%s", grant.id, request.client_id)
        return TokenResponse(
            access_token=generate_access_token(grant.id),
            expires_in=settings.access_token_expires_in,
            scope=grant.scope,
            grant_id=grant.id,
            authorization_details=aggregate_details(records),
            actor=grant.actor,
        )
