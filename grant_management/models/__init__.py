from grant_management.models.authorization_detail import (
    AUTHORIZATION_DETAIL_TYPES,
    ApiAuthorizationDetail,
    AuthorizationDetail,
    AuthorizationDetailBase,
    AuthorizationDetailRecord,
    DatabaseAuthorizationDetail,
    EssentialClaim,
    FsAuthorizationDetail,
    McpAuthorizationDetail,
    parse_authorization_detail,
)
from grant_management.models.authorization_request import AuthorizationRequest
from grant_management.models.consent import Consent
from grant_management.models.grant import Grant
from grant_management.models.permission import Permission

__all__ = [
    "AUTHORIZATION_DETAIL_TYPES",
    "ApiAuthorizationDetail",
    "AuthorizationDetail",
    "AuthorizationDetailBase",
    "AuthorizationDetailRecord",
    "AuthorizationRequest",
    "Consent",
    "DatabaseAuthorizationDetail",
    "EssentialClaim",
    "FsAuthorizationDetail",
    "Grant",
    "McpAuthorizationDetail",
    "Permission",
    "parse_authorization_detail",
]
