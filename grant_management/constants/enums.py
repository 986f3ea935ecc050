from enum import Enum


class GrantStatus(str, Enum):
    ACTIVE = "active"
    REVOKED = "revoked"


class AuthorizationRequestStatus(str, Enum):
    PENDING = "pending"
    CONSENTED = "consented"
    EXPIRED = "expired"


class GrantManagementAction(str, Enum):
    CREATE = "create"
    MERGE = "merge"
    UPDATE = "update"
    REPLACE = "replace"


class AuthorizationDetailType(str, Enum):
    MCP = "mcp"
    FS = "fs"
    DATABASE = "database"
    API = "api"


class EvaluationSemantic(str, Enum):
    EXECUTE_ALL = "execute_all"
    PERMIT_ON_FIRST_PERMIT = "permit_on_first_permit"
    DENY_ON_FIRST_DENY = "deny_on_first_deny"


class StoreBackend(str, Enum):
    MEMORY = "memory"
    POSTGRES = "postgres"


class RiskLevel(str, Enum):
    LOW = "low"
    MEDIUM = "medium"
    HIGH = "high"
