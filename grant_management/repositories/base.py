from abc import ABC, abstractmethod
from contextlib import AbstractAsyncContextManager
from datetime import datetime

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


class GrantRepository(ABC):

    @abstractmethod
    async def find_by_id(self, grant_id: str) -> Grant | None:
        ...

    @abstractmethod
    async def create_if_absent(self, dto: CreateGrantDTO) -> tuple[Grant, bool]:
        """Insert unless the id exists; returns the stored grant and whether it was created."""
        ...

    @abstractmethod
    async def update(self, grant_id: str, dto: UpdateGrantDTO) -> Grant | None:
        ...

    @abstractmethod
    async def find_all(self, filters: GrantFilterDTO) -> list[Grant]:
        ...


class AuthorizationRequestRepository(ABC):

    @abstractmethod
    async def create(self, request_id: str, dto: CreateAuthorizationRequestDTO) -> AuthorizationRequest:
        ...

    @abstractmethod
    async def find_by_id(self, request_id: str) -> AuthorizationRequest | None:
        ...

    @abstractmethod
    async def bind_subject(self, request_id: str, subject: str) -> AuthorizationRequest | None:
        ...

    @abstractmethod
    async def mark_consented(self, request_id: str, now: datetime) -> bool:
        """Move a pending request to consented; False if it was not pending."""
        ...

    @abstractmethod
    async def expire(self, request_id: str) -> None:
        ...

    @abstractmethod
    async def consume_code(self, request_id: str, now: datetime) -> bool:
        """Set code_used_at once; False for every caller after the first."""
        ...


class ConsentRepository(ABC):

    @abstractmethod
    async def append(self, consent_id: str, dto: CreateConsentDTO) -> Consent:
        """Insert a consent linked to the current head of its grant's chain."""
        ...

    @abstractmethod
    async def find_by_id(self, consent_id: str) -> Consent | None:
        ...

    @abstractmethod
    async def find_latest(self, grant_id: str) -> Consent | None:
        ...

    @abstractmethod
    async def find_by_grant(self, grant_id: str) -> list[Consent]:
        """Consents of a grant, oldest first."""
        ...


class AuthorizationDetailRepository(ABC):

    @abstractmethod
    async def create_many(
        self, dtos: list[CreateAuthorizationDetailDTO]
    ) -> list[AuthorizationDetailRecord]:
        ...

    @abstractmethod
    async def find_active_by_grant(self, grant_id: str) -> list[AuthorizationDetailRecord]:
        ...

    @abstractmethod
    async def find_active_by_types(self, type_codes: list[str]) -> list[AuthorizationDetailRecord]:
        ...

    @abstractmethod
    async def find_by_consent(self, consent_id: str) -> list[AuthorizationDetailRecord]:
        ...

    @abstractmethod
    async def deactivate_by_grant(self, grant_id: str) -> int:
        ...


class PermissionRepository(ABC):

    @abstractmethod
    async def replace_for_grant(self, grant_id: str, rows: list[Permission]) -> int:
        ...

    @abstractmethod
    async def find_by_grant(self, grant_id: str, attribute: str | None = None) -> list[Permission]:
        ...


class Store(ABC):
    grants: GrantRepository
    authorization_requests: AuthorizationRequestRepository
    consents: ConsentRepository
    authorization_details: AuthorizationDetailRepository
    permissions: PermissionRepository

    @abstractmethod
    def transaction(self, lock_key: str | None = None) -> AbstractAsyncContextManager[None]:
        """Serialise a multi-write operation, optionally per lock_key."""
        ...
