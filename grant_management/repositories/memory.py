"""In-memory store used for development and tests.

Every method body runs without awaiting between read and write, so each
call is atomic on the event loop; ``transaction`` adds per-key locks for
multi-call sequences.
"""

import asyncio
from collections.abc import AsyncIterator
from contextlib import asynccontextmanager
from datetime import datetime, timezone

from grant_management.dtos.authorization_detail_dtos import CreateAuthorizationDetailDTO
from grant_management.dtos.authorization_request_dtos import (
    CreateAuthorizationRequestDTO,
)
from grant_management.dtos.consent_dtos import CreateConsentDTO
from grant_management.dtos.grant_dtos import CreateGrantDTO, GrantFilterDTO, UpdateGrantDTO
from grant_management.models.authorization_detail import AuthorizationDetailRecord
from grant_management.models.authorization_request import AuthorizationRequest
from grant_management.models.consent import Consent
from grant_management.models.grant import Grant
from grant_management.models.permission import Permission
from grant_management.repositories.base import (
    AuthorizationDetailRepository,
    AuthorizationRequestRepository,
    ConsentRepository,
    GrantRepository,
    PermissionRepository,
    Store,
)
from grant_management.utils.id_generator import generate_id


def _now() -> datetime:
    return datetime.now(timezone.utc)


class InMemoryGrantRepository(GrantRepository):
    def __init__(self) -> None:
        self._grants: dict[str, Grant] = {}

    async def find_by_id(self, grant_id: str) -> Grant | None:
        grant = self._grants.get(grant_id)
        return grant.model_copy(deep=True) if grant else None

    async def create_if_absent(self, dto: CreateGrantDTO) -> tuple[Grant, bool]:
        existing = self._grants.get(dto.id)
        if existing is not None:
            return existing.model_copy(deep=True), False
        now = _now()
        grant = Grant(**dto.model_dump(), created_at=now, updated_at=now)
        self._grants[grant.id] = grant
        return grant.model_copy(deep=True), True

    async def update(self, grant_id: str, dto: UpdateGrantDTO) -> Grant | None:
        grant = self._grants.get(grant_id)
        if grant is None:
            return None
        changes = dto.model_dump(exclude_none=True)
        if not changes:
            return grant.model_copy(deep=True)
        now = _now()
        changes["updated_at"] = now
        if changes.get("status") == "revoked" and grant.revoked_at is None:
            changes["revoked_at"] = now
        updated = grant.model_copy(update=changes)
        self._grants[grant_id] = updated
        return updated.model_copy(deep=True)

    async def find_all(self, filters: GrantFilterDTO) -> list[Grant]:
        criteria = filters.model_dump(exclude_none=True)
        return [
            grant.model_copy(deep=True)
            for grant in self._grants.values()
            if all(getattr(grant, field) == value for field, value in criteria.items())
        ]


class InMemoryAuthorizationRequestRepository(AuthorizationRequestRepository):
    def __init__(self) -> None:
        self._requests: dict[str, AuthorizationRequest] = {}

    async def create(
        self, request_id: str, dto: CreateAuthorizationRequestDTO
    ) -> AuthorizationRequest:
        request = AuthorizationRequest(
            id=request_id,
            **dto.model_dump(exclude={"authorization_details"}),
            authorization_details=dto.authorization_details,
            created_at=_now(),
        )
        self._requests[request_id] = request
        return request.model_copy(deep=True)

    async def find_by_id(self, request_id: str) -> AuthorizationRequest | None:
        request = self._requests.get(request_id)
        return request.model_copy(deep=True) if request else None

    async def bind_subject(self, request_id: str, subject: str) -> AuthorizationRequest | None:
        request = self._requests.get(request_id)
        if request is None:
            return None
        request.subject = subject
        return request.model_copy(deep=True)

    async def mark_consented(self, request_id: str, now: datetime) -> bool:
        request = self._requests.get(request_id)
        if request is None or request.status != "pending":
            return False
        request.status = "consented"
        request.consented_at = now
        return True

    async def expire(self, request_id: str) -> None:
        request = self._requests.get(request_id)
        if request is not None and request.status == "pending":
            request.status = "expired"

    async def consume_code(self, request_id: str, now: datetime) -> bool:
        request = self._requests.get(request_id)
        if request is None or request.code_used_at is not None:
            return False
        request.code_used_at = now
        return True


class InMemoryConsentRepository(ConsentRepository):
    def __init__(self) -> None:
        self._consents: dict[str, Consent] = {}
        self._chains: dict[str, list[str]] = {}

    async def append(self, consent_id: str, dto: CreateConsentDTO) -> Consent:
        chain = self._chains.setdefault(dto.grant_id, [])
        consent = Consent(
            id=consent_id,
            **dto.model_dump(),
            previous_consent_id=chain[-1] if chain else None,
            created_at=_now(),
        )
        self._consents[consent_id] = consent
        chain.append(consent_id)
        return consent.model_copy(deep=True)

    async def find_by_id(self, consent_id: str) -> Consent | None:
        consent = self._consents.get(consent_id)
        return consent.model_copy(deep=True) if consent else None

    async def find_latest(self, grant_id: str) -> Consent | None:
        chain = self._chains.get(grant_id)
        if not chain:
            return None
        return self._consents[chain[-1]].model_copy(deep=True)

    async def find_by_grant(self, grant_id: str) -> list[Consent]:
        return [
            self._consents[consent_id].model_copy(deep=True)
            for consent_id in self._chains.get(grant_id, [])
        ]


class InMemoryAuthorizationDetailRepository(AuthorizationDetailRepository):
    def __init__(self) -> None:
        self._records: dict[str, AuthorizationDetailRecord] = {}

    async def create_many(
        self, dtos: list[CreateAuthorizationDetailDTO]
    ) -> list[AuthorizationDetailRecord]:
        created = []
        for dto in dtos:
            record = AuthorizationDetailRecord(
                id=generate_id("ad"),
                consent_id=dto.consent_id,
                grant_id=dto.grant_id,
                request_id=dto.request_id,
                type_code=dto.detail.type_code,
                identifier=dto.identifier,
                detail=dto.detail,
                created_at=_now(),
            )
            self._records[record.id] = record
            created.append(record.model_copy(deep=True))
        return created

    async def find_active_by_grant(self, grant_id: str) -> list[AuthorizationDetailRecord]:
        return [
            record.model_copy(deep=True)
            for record in self._records.values()
            if record.grant_id == grant_id and record.active
        ]

    async def find_active_by_types(self, type_codes: list[str]) -> list[AuthorizationDetailRecord]:
        return [
            record.model_copy(deep=True)
            for record in self._records.values()
            if record.type_code in type_codes and record.active
        ]

    async def find_by_consent(self, consent_id: str) -> list[AuthorizationDetailRecord]:
        return [
            record.model_copy(deep=True)
            for record in self._records.values()
            if record.consent_id == consent_id
        ]

    async def deactivate_by_grant(self, grant_id: str) -> int:
        count = 0
        for record in self._records.values():
            if record.grant_id == grant_id and record.active:
                record.active = False
                count += 1
        return count


class InMemoryPermissionRepository(PermissionRepository):
    def __init__(self) -> None:
        self._rows: dict[str, list[Permission]] = {}

    async def replace_for_grant(self, grant_id: str, rows: list[Permission]) -> int:
        self._rows[grant_id] = [row.model_copy() for row in rows]
        return len(rows)

    async def find_by_grant(self, grant_id: str, attribute: str | None = None) -> list[Permission]:
        return [
            row.model_copy()
            for row in self._rows.get(grant_id, [])
            if attribute is None or row.attribute == attribute
        ]


class InMemoryStore(Store):
    def __init__(self) -> None:
        self.grants = InMemoryGrantRepository()
        self.authorization_requests = InMemoryAuthorizationRequestRepository()
        self.consents = InMemoryConsentRepository()
        self.authorization_details = InMemoryAuthorizationDetailRepository()
        self.permissions = InMemoryPermissionRepository()
        self._locks: dict[str, asyncio.Lock] = {}
        self._lock_users: dict[str, int] = {}

    @asynccontextmanager
    async def transaction(self, lock_key: str | None = None) -> AsyncIterator[None]:
        key = lock_key or ""
        lock = self._locks.setdefault(key, asyncio.Lock())
        self._lock_users[key] = self._lock_users.get(key, 0) + 1
        try:
            async with lock:
                yield
        finally:
            # drop the lock once nobody holds or waits for it
            self._lock_users[key] -= 1
            if not self._lock_users[key]:
                del self._lock_users[key]
                del self._locks[key]
