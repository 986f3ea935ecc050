import logging

from grant_management.constants.enums import GrantStatus
from grant_management.core.exceptions import NotFoundException
from grant_management.dtos.grant_dtos import GrantFilterDTO, UpdateGrantDTO
from grant_management.models.authorization_detail import AuthorizationDetailBase
from grant_management.models.consent import Consent
from grant_management.models.grant import Grant
from grant_management.models.permission import Permission
from grant_management.repositories.base import Store
from grant_management.schemas.grant import ConsentSummaryResponse, GrantResponse
from grant_management.services.authorization_detail_aggregator import aggregate_details
from grant_management.services.permission_flattener import reconstruct_authorization_details

logger = logging.getLogger(__name__)


def build_grant_response(
    grant: Grant,
    details: list[AuthorizationDetailBase],
    consents: list[Consent] | None = None,
    consent_details: dict[str, list[AuthorizationDetailBase]] | None = None,
) -> GrantResponse:
    consent_details = consent_details or {}
    return GrantResponse(
        id=grant.id,
        client_id=grant.client_id,
        subject=grant.subject,
        actor=grant.actor,
        scope=grant.scope,
        status=grant.status,
        authorization_details=details,
        consents=[
            ConsentSummaryResponse(
                **consent.model_dump(),
                authorization_details=consent_details.get(consent.id, []),
            )
            for consent in consents or []
        ],
        created_at=grant.created_at,
        updated_at=grant.updated_at,
        revoked_at=grant.revoked_at,
    )


class GrantService:

    def __init__(self, store: Store):
        self._store = store

    async def _require_grant(self, grant_id: str) -> Grant:
        grant = await self._store.grants.find_by_id(grant_id)
        if grant is None:
            logger.warning("Grant not found: %s", grant_id)
            raise NotFoundException("GRANT_NOT_FOUND", f"Grant {grant_id} not found")
        return grant

    async def _to_response(self, grant: Grant) -> GrantResponse:
        records = await self._store.authorization_details.find_active_by_grant(grant.id)
        consents = await self._store.consents.find_by_grant(grant.id)
        consent_details = {
            consent.id: [
                record.detail
                for record in await self._store.authorization_details.find_by_consent(consent.id)
            ]
            for consent in consents
        }
        return build_grant_response(grant, aggregate_details(records), consents, consent_details)

    async def get_grant(self, grant_id: str) -> GrantResponse:
        grant = await self._require_grant(grant_id)
        return await self._to_response(grant)

    async def list_grants(self, filters: GrantFilterDTO) -> list[GrantResponse]:
        grants = await self._store.grants.find_all(filters)
        return [await self._to_response(grant) for grant in grants]

    async def revoke_grant(self, grant_id: str) -> Grant:
        grant = await self._require_grant(grant_id)
        if grant.status == GrantStatus.REVOKED.value:
            return grant
        async with self._store.transaction(lock_key=grant_id):
            revoked = await self._store.grants.update(
                grant_id, UpdateGrantDTO(status=GrantStatus.REVOKED.value)
            )
        logger.info("Grant revoked: %s (client=%s)", grant_id, grant.client_id)
        return revoked or grant

    async def get_permissions(self, grant_id: str, attribute: str | None = None) -> list[Permission]:
        await self._require_grant(grant_id)
        return await self._store.permissions.find_by_grant(grant_id, attribute)

    async def get_permission_details(self, grant_id: str) -> list[AuthorizationDetailBase]:
        rows = await self.get_permissions(grant_id)
        return reconstruct_authorization_details(rows)
