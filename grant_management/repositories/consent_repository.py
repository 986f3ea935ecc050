from grant_management.dtos.consent_dtos import CreateConsentDTO
from grant_management.models.consent import Consent

from .base import ConsentRepository
from .postgres_base import PostgresRepository


class PostgresConsentRepository(PostgresRepository[Consent], ConsentRepository):
    table_name = "consents"

    def __init__(self, conn):
        super().__init__(conn, Consent)

    async def append(self, consent_id: str, dto: CreateConsentDTO) -> Consent:
        async with self.conn.transaction():
            # held until commit, so concurrent appends on one grant queue up here
            await self._execute(
                "SELECT pg_advisory_xact_lock(hashtext(:grant_id))",
                {"grant_id": dto.grant_id},
            )
            previous = await self.find_latest(dto.grant_id)
            query = """
                INSERT INTO consents (
                    id, grant_id, request_id, subject, scope,
                    grant_management_action, previous_consent_id
                ) VALUES (
                    :id, :grant_id, :request_id, :subject, :scope,
                    :grant_management_action, :previous_consent_id
                )
                RETURNING *
            """
            params = {
                "id": consent_id,
                **dto.model_dump(),
                "previous_consent_id": previous.id if previous else None,
            }
            return await self._fetch_one(query, params)

    async def find_latest(self, grant_id: str) -> Consent | None:
        query = """
            SELECT * FROM consents
            WHERE grant_id = :grant_id
            ORDER BY seq DESC
            LIMIT 1
        """
        return await self._fetch_one(query, {"grant_id": grant_id})

    async def find_by_grant(self, grant_id: str) -> list[Consent]:
        query = """
            SELECT * FROM consents
            WHERE grant_id = :grant_id
            ORDER BY seq ASC
        """
        return await self._fetch_all(query, {"grant_id": grant_id})
