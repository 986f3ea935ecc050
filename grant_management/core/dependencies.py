import logging
from collections.abc import AsyncGenerator
from typing import Annotated

from fastapi import Depends, HTTPException, status
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer

from grant_management.constants.enums import StoreBackend
from grant_management.core.security import caller_token_service
from grant_management.core.settings import settings
from grant_management.database import db_pool
from grant_management.dtos.caller_dtos import CallerContext
from grant_management.repositories import InMemoryStore, PostgresStore, Store
from grant_management.services.authorization_request_service import (
    AuthorizationRequestService,
)
from grant_management.services.consent_service import ConsentService
from grant_management.services.evaluation_service import EvaluationService
from grant_management.services.grant_service import GrantService
from grant_management.services.token_issuer_service import TokenIssuerService

logger = logging.getLogger(__name__)

http_bearer = HTTPBearer(auto_error=False)

memory_store = InMemoryStore()


async def get_store() -> AsyncGenerator[Store, None]:
    if settings.store_backend == StoreBackend.POSTGRES.value:
        async with db_pool.acquire() as conn:
            yield PostgresStore(conn)
    else:
        yield memory_store


StoreDep = Annotated[Store, Depends(get_store)]


def get_authorization_request_service(store: StoreDep) -> AuthorizationRequestService:
    return AuthorizationRequestService(store)


def get_consent_service(
    store: StoreDep,
    authorization_request_service: AuthorizationRequestService = Depends(
        get_authorization_request_service
    ),
) -> ConsentService:
    return ConsentService(store, authorization_request_service)


def get_token_issuer_service(store: StoreDep) -> TokenIssuerService:
    return TokenIssuerService(store)


def get_evaluation_service(store: StoreDep) -> EvaluationService:
    return EvaluationService(store)


def get_grant_service(store: StoreDep) -> GrantService:
    return GrantService(store)


async def get_caller_context(
    credentials: Annotated[HTTPAuthorizationCredentials | None, Depends(http_bearer)],
) -> CallerContext:
    if credentials is None:
        return CallerContext()

    claims = caller_token_service.verify_caller_token(credentials.credentials)
    if claims is None:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Invalid or expired access token",
            headers={"WWW-Authenticate": "Bearer"},
        )
    return caller_token_service.to_context(claims)


CallerContextDep = Annotated[CallerContext, Depends(get_caller_context)]
AuthorizationRequestServiceDep = Annotated[
    AuthorizationRequestService, Depends(get_authorization_request_service)
]
ConsentServiceDep = Annotated[ConsentService, Depends(get_consent_service)]
TokenIssuerServiceDep = Annotated[TokenIssuerService, Depends(get_token_issuer_service)]
EvaluationServiceDep = Annotated[EvaluationService, Depends(get_evaluation_service)]
GrantServiceDep = Annotated[GrantService, Depends(get_grant_service)]
