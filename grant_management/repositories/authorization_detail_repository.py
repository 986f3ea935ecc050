import json

from grant_management.dtos.authorization_detail_dtos import CreateAuthorizationDetailDTO
from grant_management.models.authorization_detail import AuthorizationDetailRecord
from grant_management.utils.id_generator import generate_id

from .base import AuthorizationDetailRepository
from .postgres_base import PostgresRepository, affected_rows


class PostgresAuthorizationDetailRepository(
    PostgresRepository[AuthorizationDetailRecord], AuthorizationDetailRepository
):
    table_name = "authorization_details"
    json_columns = ("detail",)

    def __init__(self, conn):
        super().__init__(conn, AuthorizationDetailRecord)

    async def create_many(
        self, dtos: list[CreateAuthorizationDetailDTO]
    ) -> list[AuthorizationDetailRecord]:
        query = """
            INSERT INTO authorization_details (
                id, consent_id, grant_id, request_id, type_code, identifier, detail
            ) VALUES (
                :id, :consent_id, :grant_id, :request_id, :type_code, :identifier, :detail::jsonb
            )
            RETURNING *
        """
        created = []
        for dto in dtos:
            params = {
                "id": generate_id("ad"),
                "consent_id": dto.consent_id,
                "grant_id": dto.grant_id,
                "request_id": dto.request_id,
                "type_code": dto.detail.type_code,
                "identifier": dto.identifier,
                "detail": json.dumps(dto.detail.to_payload()),
            }
            created.append(await self._fetch_one(query, params))
        return created

    async def find_active_by_grant(self, grant_id: str) -> list[AuthorizationDetailRecord]:
        query = """
            SELECT * FROM authorization_details
            WHERE grant_id = :grant_id AND active
            ORDER BY seq ASC
        """
        return await self._fetch_all(query, {"grant_id": grant_id})

    async def find_active_by_types(self, type_codes: list[str]) -> list[AuthorizationDetailRecord]:
        query = """
            SELECT * FROM authorization_details
            WHERE type_code = ANY(:type_codes) AND active
            ORDER BY seq ASC
        """
        return await self._fetch_all(query, {"type_codes": type_codes})

    async def find_by_consent(self, consent_id: str) -> list[AuthorizationDetailRecord]:
        query = """
            SELECT * FROM authorization_details
            WHERE consent_id = :consent_id
            ORDER BY seq ASC
        """
        return await self._fetch_all(query, {"consent_id": consent_id})

    async def deactivate_by_grant(self, grant_id: str) -> int:
        query = """
            UPDATE authorization_details
            SET active = FALSE
            WHERE grant_id = :grant_id AND active
        """
        return affected_rows(await self._execute(query, {"grant_id": grant_id}))
