from grant_management.repositories.base import (
    AuthorizationDetailRepository,
    AuthorizationRequestRepository,
    ConsentRepository,
    GrantRepository,
    PermissionRepository,
    Store,
)
from grant_management.repositories.memory import InMemoryStore
from grant_management.repositories.postgres_store import PostgresStore

__all__ = [
    "AuthorizationDetailRepository",
    "AuthorizationRequestRepository",
    "ConsentRepository",
    "GrantRepository",
    "InMemoryStore",
    "PermissionRepository",
    "PostgresStore",
    "Store",
]
