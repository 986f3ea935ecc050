import json
from datetime import datetime

from grant_management.dtos.authorization_request_dtos import (
    CreateAuthorizationRequestDTO,
)
from grant_management.models.authorization_request import AuthorizationRequest

from .base import AuthorizationRequestRepository
from .postgres_base import PostgresRepository, affected_rows


class PostgresAuthorizationRequestRepository(
    PostgresRepository[AuthorizationRequest], AuthorizationRequestRepository
):
    table_name = "authorization_requests"
    json_columns = ("authorization_details",)

    def __init__(self, conn):
        super().__init__(conn, AuthorizationRequest)

    async def create(
        self, request_id: str, dto: CreateAuthorizationRequestDTO
    ) -> AuthorizationRequest:
        query = """
            INSERT INTO authorization_requests (
                id, grant_id, client_id, redirect_uri, response_type, scope, state,
                authorization_details, grant_management_action, requested_actor,
                subject, code_challenge, code_challenge_method, expires_in
            ) VALUES (
                :id, :grant_id, :client_id, :redirect_uri, :response_type, :scope, :state,
                :authorization_details::jsonb, :grant_management_action, :requested_actor,
                :subject, :code_challenge, :code_challenge_method, :expires_in
            )
            RETURNING *
        """
        params = dto.model_dump(exclude={"authorization_details"})
        params["id"] = request_id
        params["authorization_details"] = json.dumps(
            [detail.to_payload() for detail in dto.authorization_details]
        )
        return await self._fetch_one(query, params)

    async def bind_subject(self, request_id: str, subject: str) -> AuthorizationRequest | None:
        query = """
            UPDATE authorization_requests
            SET subject = :subject
            WHERE id = :request_id
            RETURNING *
        """
        return await self._fetch_one(query, {"request_id": request_id, "subject": subject})

    async def mark_consented(self, request_id: str, now: datetime) -> bool:
        query = """
            UPDATE authorization_requests
            SET status = 'consented', consented_at = :now
            WHERE id = :request_id AND status = 'pending'
        """
        result = await self._execute(query, {"request_id": request_id, "now": now})
        return affected_rows(result) == 1

    async def expire(self, request_id: str) -> None:
        query = """
            UPDATE authorization_requests
            SET status = 'expired'
            WHERE id = :request_id AND status = 'pending'
        """
        await self._execute(query, {"request_id": request_id})

    async def consume_code(self, request_id: str, now: datetime) -> bool:
        query = """
            UPDATE authorization_requests
            SET code_used_at = :now
            WHERE id = :request_id AND code_used_at IS NULL
        """
        result = await self._execute(query, {"request_id": request_id, "now": now})
        return affected_rows(result) == 1
