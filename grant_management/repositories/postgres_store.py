from collections.abc import AsyncIterator
from contextlib import asynccontextmanager

import asyncpg

from grant_management.repositories.authorization_detail_repository import PostgresAuthorizationDetailRepository
from grant_management.repositories.authorization_request_repository import PostgresAuthorizationRequestRepository
from grant_management.repositories.base import Store
from grant_management.repositories.consent_repository import PostgresConsentRepository
from grant_management.repositories.grant_repository import PostgresGrantRepository
from grant_management.repositories.permission_repository import PostgresPermissionRepository


class PostgresStore(Store):
    def __init__(self, conn: asyncpg.Connection):
        self.conn = conn
        self.grants = PostgresGrantRepository(conn)
        self.authorization_requests = PostgresAuthorizationRequestRepository(conn)
        self.consents = PostgresConsentRepository(conn)
        self.authorization_details = PostgresAuthorizationDetailRepository(conn)
        self.permissions = PostgresPermissionRepository(conn)

    @asynccontextmanager
    async def transaction(self, lock_key: str | None = None) -> AsyncIterator[None]:
        async with self.conn.transaction():
            if lock_key is not None:
                await self.conn.execute("SELECT pg_advisory_xact_lock(hashtext($1))", lock_key)
            yield
