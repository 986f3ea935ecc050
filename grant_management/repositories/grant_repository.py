from grant_management.dtos.grant_dtos import CreateGrantDTO, GrantFilterDTO, UpdateGrantDTO
from grant_management.models.grant import Grant

from .base import GrantRepository
from .postgres_base import PostgresRepository


class PostgresGrantRepository(PostgresRepository[Grant], GrantRepository):
    table_name = "grants"

    def __init__(self, conn):
        super().__init__(conn, Grant)

    async def create_if_absent(self, dto: CreateGrantDTO) -> tuple[Grant, bool]:
        query = """
            INSERT INTO grants (id, client_id, subject, actor, status, scope)
            VALUES (:id, :client_id, :subject, :actor, :status, :scope)
            ON CONFLICT (id) DO NOTHING
            RETURNING *
        """
        created = await self._fetch_one(query, dto.model_dump())
        if created is not None:
            return created, True
        existing = await self.find_by_id(dto.id)
        return existing, False

    async def update(self, grant_id: str, dto: UpdateGrantDTO) -> Grant | None:
        update_fields = dto.model_dump(exclude_none=True)
        if not update_fields:
            return await self.find_by_id(grant_id)

        set_clause = ", ".join(f"{k} = :{k}" for k in update_fields.keys())
        revoked_clause = ""
        if update_fields.get("status") == "revoked":
            revoked_clause = ", revoked_at = COALESCE(revoked_at, NOW())"

        query = f"""
            UPDATE grants
            SET {set_clause}{revoked_clause}, updated_at = NOW()
            WHERE id = :grant_id
            RETURNING *
        """
        return await self._fetch_one(query, {"grant_id": grant_id, **update_fields})

    async def find_all(self, filters: GrantFilterDTO) -> list[Grant]:
        criteria = filters.model_dump(exclude_none=True)
        where_clause = " AND ".join(f"{k} = :{k}" for k in criteria.keys()) or "TRUE"
        query = f"""
            SELECT * FROM grants
            WHERE {where_clause}
            ORDER BY created_at DESC
        """
        return await self._fetch_all(query, criteria)
