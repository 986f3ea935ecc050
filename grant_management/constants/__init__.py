from grant_management.constants.enums import (
    AuthorizationDetailType,
    AuthorizationRequestStatus,
    EvaluationSemantic,
    GrantManagementAction,
    GrantStatus,
    RiskLevel,
    StoreBackend,
)
from grant_management.constants.oauth_errors import OAUTH_ERROR_MESSAGES, OAuthErrorCode

__all__ = [
    "AuthorizationDetailType",
    "AuthorizationRequestStatus",
    "EvaluationSemantic",
    "GrantManagementAction",
    "GrantStatus",
    "OAUTH_ERROR_MESSAGES",
    "OAuthErrorCode",
    "RiskLevel",
    "StoreBackend",
]
