from grant_management.models.permission import Permission

from .base import PermissionRepository
from .postgres_base import PostgresRepository


class PostgresPermissionRepository(PostgresRepository[Permission], PermissionRepository):
    table_name = "permissions"

    def __init__(self, conn):
        super().__init__(conn, Permission)

    async def replace_for_grant(self, grant_id: str, rows: list[Permission]) -> int:
        async with self.conn.transaction():
            await self._execute(
                "DELETE FROM permissions WHERE grant_id = :grant_id", {"grant_id": grant_id}
            )
            if rows:
                await self.conn.executemany(
                    """
                    INSERT INTO permissions (resource_identifier, grant_id, attribute, value, request_id)
                    VALUES ($1, $2, $3, $4, $5)
                    """,
                    [
                        (row.resource_identifier, row.grant_id, row.attribute, row.value, row.request_id)
                        for row in rows
                    ],
                )
        return len(rows)

    async def find_by_grant(self, grant_id: str, attribute: str | None = None) -> list[Permission]:
        if attribute is None:
            query = "SELECT * FROM permissions WHERE grant_id = :grant_id ORDER BY seq"
            return await self._fetch_all(query, {"grant_id": grant_id})
        query = """
            SELECT * FROM permissions
            WHERE grant_id = :grant_id AND attribute = :attribute
            ORDER BY seq
        """
        return await self._fetch_all(query, {"grant_id": grant_id, "attribute": attribute})

